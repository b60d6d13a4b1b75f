# ============================================================================
# COOKUNITY MCP - BASE SERVER
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Base MCP server class: tool / prompt / resource registration, protocol
# handlers, and the choice of transport. CookUnityMCPServer adds the tools.
# ============================================================================

import json
import logging
import sys
from typing import Callable

from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.lowlevel.server import NotificationOptions
from mcp.types import (
    Tool,
    ToolAnnotations,
    TextContent,
    Prompt,
    GetPromptResult,
    Resource,
)

from .errors import ToolExecutionError
from .transport import run_stdio, run_http

logger = logging.getLogger(__name__)

__all__ = [
    "BaseMCPServer",
    "create_mcp_server",
]


# ============================================================================
# STATIC RESOURCE CONTENT
# ============================================================================

DOCS_GETTING_STARTED = """# Getting Started with CookUnity MCP

## Quick Start

1. Set your CookUnity account credentials:
   export COOKUNITY_EMAIL=you@example.com
   export COOKUNITY_PASSWORD=...
2. Run the server: cookunity-mcp
   (or TRANSPORT=http PORT=3000 cookunity-mcp for the HTTP endpoint on /mcp)

## Tools (15 total)

- **Menu** (3 tools): browse, search, meal details
- **Account** (3 tools): profile, orders, invoice history
- **Deliveries** (3 tools): calendar, skip, unskip
- **Cart** (5 tools): view, add, remove, clear, confirm order
- **Pricing** (1 tool): price breakdown with fees, taxes and credits

## Weekly Workflow

1. `cookunity_list_deliveries` to find an editable week
2. `cookunity_search_meals` to find meals and their inventory IDs
3. `cookunity_add_to_cart` for each meal
4. `cookunity_get_price_breakdown` to check totals
5. `cookunity_confirm_order` to lock the order in

Changes are only possible before a week's cutoff.
"""


def create_mcp_server(
    name: str,
    version: str,
    instructions: str,
) -> Server:
    """Create a configured MCP Server instance."""
    return Server(
        name=name,
        version=version,
        instructions=instructions,
    )


class BaseMCPServer:
    """Base MCP server with shared infrastructure.
    Provides: Server initialization, common handlers, transport layer.
    Subclasses add: tools, prompts and their handlers.
    """

    def __init__(
        self,
        name: str,
        version: str,
        instructions: str,
    ) -> None:
        self.name = name
        self.version = version
        self.instructions = instructions

        # Create MCP server instance
        self.server = create_mcp_server(name, version, instructions)

        # Tools and handlers (set by subclass)
        self._tools: list[dict] = []
        self._tool_handlers: dict[str, Callable] = {}
        self._prompts: list[Prompt] = []
        self._prompt_handlers: dict[str, Callable] = {}

        # Resources
        self._static_resources: dict[str, str] = {
            "cookunity://docs/getting-started": DOCS_GETTING_STARTED,
        }

    def register_tools(self, tools: list[dict]) -> None:
        self._tools.extend(tools)

    def register_tool_handler(self, name: str, handler: Callable) -> None:
        self._tool_handlers[name] = handler

    def register_prompts(self, prompts: list[Prompt]) -> None:
        self._prompts.extend(prompts)

    def register_prompt_handler(self, name: str, handler: Callable) -> None:
        self._prompt_handlers[name] = handler

    def setup_handlers(self) -> None:
        """Set up all MCP protocol handlers. Call AFTER registering tools."""
        self._setup_tool_handlers()
        self._setup_prompt_handlers()
        self._setup_resource_handlers()

    def list_tool_definitions(self) -> list[Tool]:
        tools_list = []
        for tool in self._tools:
            annotations = None
            if "annotations" in tool:
                ann = tool["annotations"]
                annotations = ToolAnnotations(
                    readOnlyHint=ann.get("readOnlyHint"),
                    destructiveHint=ann.get("destructiveHint"),
                    idempotentHint=ann.get("idempotentHint"),
                    openWorldHint=ann.get("openWorldHint"),
                )
            tools_list.append(Tool(
                name=tool["name"],
                title=tool.get("title"),
                description=tool["description"],
                inputSchema=tool["inputSchema"],
                annotations=annotations,
            ))
        return tools_list

    async def dispatch_tool(self, name: str, arguments: dict | None) -> list[TextContent]:
        """Run a tool and render its result as text.

        Strings pass through as-is (markdown views); anything else is
        dumped as JSON. Handler failures are logged and re-raised as
        ToolExecutionError, which the MCP server reports as an
        ``isError`` result carrying the ``Error: ...`` text.
        """
        valid_tools = [t["name"] for t in self._tools]
        if name not in valid_tools:
            raise ValueError(f"Unknown tool: {name}")

        handler = self._tool_handlers.get(name) or self._tool_handlers.get("*")
        if not handler:
            raise ValueError(f"No handler registered for tool: {name}")

        try:
            result = await handler(name, arguments or {})
        except Exception as e:
            logger.error(f"Error in {name}: {e}")
            raise ToolExecutionError(name, e) from e

        if isinstance(result, str):
            return [TextContent(type="text", text=result)]
        formatted = json.dumps(result, indent=2, default=str)
        return [TextContent(type="text", text=formatted)]

    def _setup_tool_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.list_tool_definitions()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict) -> list[TextContent]:
            return await self.dispatch_tool(name, arguments)

    def _setup_prompt_handlers(self) -> None:
        @self.server.list_prompts()
        async def list_prompts() -> list[Prompt]:
            return self._prompts

        @self.server.get_prompt()
        async def get_prompt(name: str, arguments: dict[str, str] | None = None) -> GetPromptResult:
            handler = self._prompt_handlers.get(name)
            if not handler:
                raise ValueError(f"Unknown prompt: {name}")
            return handler(name, arguments)

    def _setup_resource_handlers(self) -> None:
        @self.server.list_resources()
        async def list_resources() -> list[Resource]:
            resources = []
            for uri, _ in self._static_resources.items():
                name = uri.split("/")[-1].replace("-", " ").title()
                resources.append(Resource(
                    uri=uri,
                    name=f"{name} Guide",
                    description=f"Documentation: {name}",
                    mimeType="text/markdown",
                ))
            return resources

        @self.server.read_resource()
        async def read_resource(uri) -> str:
            uri_str = str(uri)
            if uri_str in self._static_resources:
                return self._static_resources[uri_str]
            raise ValueError(f"Unknown resource: {uri_str}")

    def get_init_options(self) -> InitializationOptions:
        return InitializationOptions(
            server_name=self.name,
            server_version=self.version,
            capabilities=self.server.get_capabilities(
                notification_options=NotificationOptions(),
                experimental_capabilities={},
            ),
            instructions=self.instructions,
        )

    def run(self, transport: str = "stdio", host: str = "0.0.0.0", port: int = 3000) -> None:
        """Run the MCP server with specified transport."""
        if transport == "http":
            run_http(
                server=self.server,
                version=self.version,
                host=host,
                port=port,
            )
        else:
            print("[cookunity-mcp] Running via stdio", file=sys.stderr)
            run_stdio(
                server=self.server,
                init_options=self.get_init_options(),
            )
