"""Exception hierarchy shared by every node backend."""

from __future__ import annotations

import re

import httpx

__all__ = [
    "UnaError",
    "MissingBackendError",
    "InvalidBackendError",
    "UnauthorizedError",
    "BackendNotImplementedError",
    "ConfigError",
    "MissingFieldError",
    "InvalidFieldError",
    "ParsingHexError",
    "NodeConnectionError",
    "NodeTimeoutError",
    "ApiError",
    "UnknownError",
    "ConversionError",
    "from_http_error",
    "api_error_from_status",
]


class UnaError(Exception):
    """Base class of every error raised by this package."""

    default_message = "unknown error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class MissingBackendError(UnaError):
    default_message = "missing backend"


class InvalidBackendError(UnaError, ValueError):
    default_message = "invalid backend"


class UnauthorizedError(UnaError, PermissionError):
    default_message = "unauthorized credentials"


class BackendNotImplementedError(UnaError, NotImplementedError):
    default_message = "not implemented"


class ConfigError(UnaError):
    """A node configuration could not be used."""


class _FieldConfigError(ConfigError):
    template = "{field}"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(self.template.format(field=field))


class MissingFieldError(_FieldConfigError, KeyError):
    template = "Missing field: {field}"


class InvalidFieldError(_FieldConfigError, ValueError):
    template = "Invalid field: {field}"


class ParsingHexError(_FieldConfigError):
    template = "Error parsing field {field}: expected hex string"


class NodeConnectionError(UnaError, ConnectionError):
    default_message = "connection error"


class NodeTimeoutError(NodeConnectionError, TimeoutError):
    default_message = "timeout"


class ApiError(UnaError):
    default_message = "api error"


class UnknownError(UnaError):
    pass


class ConversionError(UnaError):
    default_message = "conversion error"


def _request_url(err: Exception) -> str | None:
    try:
        return str(err.request.url)  # type: ignore[attr-defined]
    except (AttributeError, RuntimeError):
        return None


def from_http_error(err: Exception) -> UnaError:
    """Map an HTTP client exception to the matching package error."""
    url = _request_url(err)
    if isinstance(err, httpx.TimeoutException):
        return NodeTimeoutError(f"timeout: {url}" if url else "timeout")
    if isinstance(err, httpx.ConnectError):
        return NodeConnectionError(f"couldn't connect to {url}" if url else str(err))
    if isinstance(err, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return NodeConnectionError(str(err).replace("builder error: ", ""))
    return ApiError(str(err))


_RPC_ERROR = re.compile(r"RpcError")
_RPC_MESSAGE = re.compile(r'message: "(?P<msg>.*)"')


def api_error_from_status(message: str) -> ApiError:
    """Build an ApiError from an RPC status message, unwrapping RpcError text."""
    if _RPC_ERROR.search(message):
        match = _RPC_MESSAGE.search(message)
        if match:
            return ApiError(match.group("msg"))
    return ApiError(message)