# ============================================================================
# COOKUNITY MCP - BACKEND MODULE
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Public API:
#   CookUnityClient         - GraphQL gateway (menu + subscription services)
#   CookUnityMCPServer      - Full MCP server with 15 meal delivery tools
#   create_cookunity_server - Factory function
#   COOKUNITY_TOOLS         - Tool definitions list
#   COOKUNITY_PROMPTS       - Prompt definitions list
# ============================================================================

from .cookunity_client import CookUnityClient
from .tools import (
    COOKUNITY_TOOLS,
    COOKUNITY_PROMPTS,
    CookUnityMCPServer,
    create_cookunity_server,
)

__all__ = [
    "CookUnityClient",
    "COOKUNITY_TOOLS",
    "COOKUNITY_PROMPTS",
    "CookUnityMCPServer",
    "create_cookunity_server",
]
