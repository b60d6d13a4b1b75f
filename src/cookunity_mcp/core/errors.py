# ============================================================================
# COOKUNITY MCP - ERROR TAXONOMY
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Every failure surfaced by the session manager and the GraphQL gateway is
# one of these types. Callers classify by type, never by message text:
#
#   AuthenticationError     - login handshake failed
#   InvalidCredentialsError - HTTP 401 on a data call
#   RateLimitedError        - HTTP 429 on a data call
#   TransportError          - any other HTTP failure / network error
#   GraphQLError            - HTTP 200 with an "errors" list
#   PreconditionError       - caller-side problem detected locally
#   NotFoundError           - requested date / meal not in upstream listing
#   DomainRejectionError    - upstream returned a typed error result
#   ToolExecutionError      - a tool handler failed (wraps the cause)
# ============================================================================

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
]


class CookUnityError(Exception):
    """Base class for all CookUnity MCP errors."""


class AuthenticationError(CookUnityError):
    """The login handshake failed at some step."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Authentication failed: {detail}")


class InvalidCredentialsError(CookUnityError):
    def __init__(self) -> None:
        super().__init__(
            "Authentication expired or credentials rejected. "
            "Please check your COOKUNITY_EMAIL and COOKUNITY_PASSWORD."
        )


class RateLimitedError(CookUnityError):
    def __init__(self) -> None:
        super().__init__("Rate limited by CookUnity API. Please wait before retrying.")


class TransportError(CookUnityError):
    """Non-2xx response (other than 401/429) or a network-level failure.

    ``status_code`` is None when no HTTP response was received
    (timeouts, connection errors).
    """

    def __init__(self, status_code: int | None, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        status = status_code if status_code is not None else "unknown"
        super().__init__(f"CookUnity API error (HTTP {status}): {detail}")


class GraphQLError(CookUnityError):
    def __init__(self, messages: list[str]) -> None:
        self.messages = messages
        super().__init__(f"GraphQL errors: {', '.join(messages)}")


class ToolExecutionError(CookUnityError):
    """A tool handler failed. The cause is chained as ``__cause__``."""

    def __init__(self, tool: str, cause: Exception) -> None:
        self.tool = tool
        super().__init__(f"Error: {cause}")


class PreconditionError(CookUnityError, ValueError):
    """Caller-facing precondition failure, raised before any upstream call it guards."""


class NotFoundError(PreconditionError, LookupError):
    """Requested delivery date or meal is not present upstream."""


class DomainRejectionError(CookUnityError):
    """Upstream answered with a typed error result (e.g. OrderCreationError)."""

    def __init__(self, reason: str, out_of_stock_ids: list | None = None) -> None:
        self.reason = reason
        self.out_of_stock_ids = [str(i) for i in out_of_stock_ids or []]
        message = reason
        if self.out_of_stock_ids:
            message += f" Out of stock: {', '.join(self.out_of_stock_ids)}"
        super().__init__(message)
