"""Custom exception types used across the Bitbucket MCP server."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class ConfigurationError(Exception):
    """Raised at startup when connection settings cannot be resolved.

    Configuration problems are fatal and never retryable; no HTTP client is
    built until the settings validate.
    """

    category = "configuration"
    code = "CONFIGURATION_ERROR"
    retryable = False


class UsageError(Exception):
    """Raised when a tool cannot proceed due to caller misconfiguration or bad inputs.

    This is intended to surface a clear, single-line message to the caller
    before any request is sent upstream.
    """

    category = "validation"
    code = "USAGE_ERROR"
    retryable = False


class MissingContextError(UsageError):
    code = "MISSING_CONTEXT"

    def __init__(self, operation: str, context_key: str, platform_type: str) -> None:
        super().__init__(
            f"{operation}: {context_key} is required for Bitbucket {platform_type}. "
            f"Pass {context_key!r} or set BITBUCKET_DEFAULT_PROJECT."
        )
        self.operation = operation
        self.context_key = context_key
        self.platform_type = platform_type
        self.details = {"missing": [context_key]}


class InvalidArgumentsError(UsageError):
    code = "INVALID_ARGUMENTS"

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        fields: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.fields = list(fields or [])
        self.details = {"fields": self.fields} if self.fields else {}


class UnsupportedOperationError(Exception):
    """Raised for operation names this server does not implement.

    Also raised when an operation exists for only one platform and the
    configured platform is the other one.
    """

    category = "not_supported"
    code = "METHOD_NOT_FOUND"
    # JSON-RPC "method not found".
    rpc_code = -32601
    retryable = False

    def __init__(self, operation: str, platform_type: Optional[str] = None) -> None:
        if platform_type:
            message = f"Operation {operation!r} is not available on Bitbucket {platform_type}"
        else:
            message = f"Unknown operation: {operation!r}"
        super().__init__(message)
        self.operation = operation
        self.platform_type = platform_type


class ApiError(Exception):
    """A classified upstream failure.

    Carries the HTTP status (when there was a response), the platform the
    request targeted, a remediation paragraph and the raw response body.
    ``str(exc)`` renders message plus remediation so the caller never needs
    the logs to act on it.
    """

    kind = "upstream"
    category = "upstream"
    code = "UPSTREAM_ERROR"
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        platform_type: str,
        status_code: Optional[int] = None,
        remediation: str = "",
        raw_detail: Optional[Dict[str, Any]] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.platform_type = platform_type
        self.status_code = status_code
        self.remediation = remediation
        self.raw_detail: Dict[str, Any] = dict(raw_detail or {})
        self.url = url

    @property
    def hint(self) -> str:
        return self.remediation

    @property
    def details(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {"kind": self.kind, "platform_type": self.platform_type}
        if self.status_code is not None:
            details["status_code"] = self.status_code
        if self.url:
            details["url"] = self.url
        if self.raw_detail:
            details["raw_detail"] = self.raw_detail
        return details

    def __str__(self) -> str:
        if not self.remediation:
            return self.message
        return f"{self.message}\n\n{self.remediation}"


class BitbucketAuthError(ApiError):
    kind = "authentication"
    category = "auth"
    code = "AUTHENTICATION_FAILED"


class BadRequestError(ApiError):
    kind = "bad_request"
    category = "validation"
    code = "BAD_REQUEST"


class ForbiddenError(ApiError):
    kind = "forbidden"
    category = "permission"
    code = "FORBIDDEN"


class NotFoundError(ApiError):
    kind = "not_found"
    category = "not_found"
    code = "NOT_FOUND"


class ConnectivityError(ApiError):
    kind = "connectivity"
    category = "connectivity"
    code = "CONNECTIVITY_ERROR"
    retryable = True


class UpstreamError(ApiError):
    pass


__all__ = [
    "ApiError",
    "BadRequestError",
    "BitbucketAuthError",
    "ConfigurationError",
    "ConnectivityError",
    "ForbiddenError",
    "InvalidArgumentsError",
    "MissingContextError",
    "NotFoundError",
    "UnsupportedOperationError",
    "UpstreamError",
    "UsageError",
]
