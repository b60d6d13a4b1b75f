# ============================================================================
# COOKUNITY MCP - CORE MODULE
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Shared core components for the MCP server:
#   - Session manager (login handshake + bearer token lifecycle)
#   - Error taxonomy
#   - Base MCP server class
#   - Transport layer (STDIO + HTTP)
#
# ARCHITECTURE:
# CookUnityMCPServer (backend/) extends this core with 15 meal delivery tools.
# ============================================================================

from .errors import (
    CookUnityError,
    AuthenticationError,
    InvalidCredentialsError,
    RateLimitedError,
    TransportError,
    GraphQLError,
    PreconditionError,
    NotFoundError,
    DomainRejectionError,
    ToolExecutionError,
)
from .auth import (
    SessionToken,
    SessionManager,
)
from .server import (
    BaseMCPServer,
    create_mcp_server,
)
from .transport import (
    run_stdio,
    run_http,
    create_http_app,
)

__all__ = [
    "CookUnityError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "RateLimitedError",
    "TransportError",
    "GraphQLError",
    "PreconditionError",
    "NotFoundError",
    "DomainRejectionError",
    "ToolExecutionError",
    "SessionToken",
    "SessionManager",
    "BaseMCPServer",
    "create_mcp_server",
    "run_stdio",
    "run_http",
    "create_http_app",
]
