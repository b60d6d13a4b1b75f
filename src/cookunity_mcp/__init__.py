# ============================================================================
# COOKUNITY MCP - Meal Delivery Server
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Manage a CookUnity meal delivery account from an AI agent. 15 tools for:
#   - Menu: 3 tools (browse, search, meal details)
#   - Account: 3 tools (profile, orders, invoice history)
#   - Deliveries: 3 tools (calendar, skip, unskip)
#   - Cart: 5 tools (view, add, remove, clear, confirm order)
#   - Pricing: 1 tool (price breakdown)
#
# Usage:
#   export COOKUNITY_EMAIL=you@example.com
#   export COOKUNITY_PASSWORD=...
#   cookunity-mcp
#
# Environment Variables:
#   COOKUNITY_EMAIL    - Account email (required)
#   COOKUNITY_PASSWORD - Account password (required)
#   TRANSPORT          - Transport: stdio (default) or http
#   HOST / PORT        - HTTP bind address (default 0.0.0.0:3000)
#   LOG_LEVEL          - Logging level (default INFO)
# ============================================================================

import logging
import os
import sys

# Version from package metadata
from importlib.metadata import version as _get_version
__version__ = _get_version("cookunity-mcp")

# Public API
__all__ = [
    "__version__",
    "main",
]

DEFAULT_PORT = 3000


def _configure_logging(level_name: str) -> None:
    """Single stderr handler on the package logger; stdout belongs to stdio."""
    logger = logging.getLogger("cookunity_mcp")
    logger.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def _validate_credentials(email: str | None, password: str | None) -> tuple[str, str]:
    """Both credentials are required at startup; exit(1) otherwise."""
    if not email or not password:
        print(
            "ERROR: COOKUNITY_EMAIL and COOKUNITY_PASSWORD environment variables are required.",
            file=sys.stderr,
        )
        print("", file=sys.stderr)
        print("Set them to your CookUnity account login:", file=sys.stderr)
        print("  export COOKUNITY_EMAIL=you@example.com", file=sys.stderr)
        print("  export COOKUNITY_PASSWORD=your_password", file=sys.stderr)
        sys.exit(1)
    return email, password


def _parse_port(value: str | None) -> int:
    if not value:
        return DEFAULT_PORT
    try:
        return int(value)
    except ValueError:
        print(f"ERROR: PORT must be an integer, got {value!r}", file=sys.stderr)
        sys.exit(1)


def main() -> None:
    """Main entry point - runs the CookUnity MCP server."""
    _configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

    email, password = _validate_credentials(
        os.environ.get("COOKUNITY_EMAIL"),
        os.environ.get("COOKUNITY_PASSWORD"),
    )
    transport = os.environ.get("TRANSPORT", "stdio").lower()
    host = os.environ.get("HOST", "0.0.0.0")
    port = _parse_port(os.environ.get("PORT"))

    print(
        f"[cookunity-mcp] Starting server v{__version__} (15 tools: "
        f"3 menu + 3 account + 3 deliveries + 5 cart + 1 pricing)...",
        file=sys.stderr,
    )

    try:
        from .backend import create_cookunity_server
        server = create_cookunity_server(email=email, password=password)
        server.run(transport=transport, host=host, port=port)
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
