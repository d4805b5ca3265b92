import httpx
import pytest

from una.errors import (
    ApiError,
    BackendNotImplementedError,
    ConfigError,
    InvalidBackendError,
    InvalidFieldError,
    MissingBackendError,
    MissingFieldError,
    NodeConnectionError,
    NodeTimeoutError,
    ParsingHexError,
    UnaError,
    UnauthorizedError,
    api_error_from_status,
    from_http_error,
)

URL = "http://localhost:8080/v1/getinfo"


@pytest.mark.parametrize(
    "cls, builtin, message",
    [
        (MissingBackendError, UnaError, "missing backend"),
        (InvalidBackendError, ValueError, "invalid backend"),
        (UnauthorizedError, PermissionError, "unauthorized credentials"),
        (BackendNotImplementedError, NotImplementedError, "not implemented"),
    ],
)
def test_default_messages(cls, builtin, message):
    err = cls()
    assert str(err) == message
    assert isinstance(err, builtin) and isinstance(err, UnaError)


def test_missing_field():
    err = MissingFieldError("url")
    assert str(err) == "Missing field: url"
    assert err.field == "url"
    assert isinstance(err, KeyError) and isinstance(err, ConfigError)


def test_invalid_field():
    err = InvalidFieldError("url")
    assert str(err) == "Invalid field: url"
    assert isinstance(err, ValueError)


def test_parsing_hex_error():
    err = ParsingHexError("tls_certificate")
    assert str(err) == "Error parsing field tls_certificate: expected hex string"
    assert isinstance(err, ConfigError)


def test_custom_message_kept():
    assert str(ApiError("boom")) == "boom"


def test_rpc_error_message_extracted():
    status = 'RpcError { code: Some(900), message: "Duplicate label" }'
    err = api_error_from_status(status)
    assert isinstance(err, ApiError)
    assert str(err) == "Duplicate label"


def test_rpc_error_without_message_kept_whole():
    status = "RpcError { code: Some(900) }"
    assert str(api_error_from_status(status)) == status


def test_non_rpc_status_passthrough():
    assert str(api_error_from_status('message: "ignored"')) == 'message: "ignored"'


def test_timeout_maps_to_timeout_error():
    request = httpx.Request("GET", URL)
    err = from_http_error(httpx.ConnectTimeout("slow", request=request))
    assert isinstance(err, NodeTimeoutError)
    assert isinstance(err, TimeoutError)
    assert str(err) == f"timeout: {URL}"


def test_connect_error_maps_to_connection_error():
    request = httpx.Request("GET", URL)
    err = from_http_error(httpx.ConnectError("refused", request=request))
    assert isinstance(err, NodeConnectionError)
    assert not isinstance(err, NodeTimeoutError)
    assert str(err) == f"couldn't connect to {URL}"


def test_connect_error_without_request_uses_text():
    err = from_http_error(httpx.ConnectError("refused"))
    assert str(err) == "refused"


def test_invalid_url_maps_to_connection_error():
    err = from_http_error(httpx.InvalidURL("builder error: bad url"))
    assert isinstance(err, NodeConnectionError)
    assert str(err) == "bad url"


def test_other_http_error_maps_to_api_error():
    request = httpx.Request("GET", URL)
    response = httpx.Response(404, request=request)
    err = from_http_error(httpx.HTTPStatusError("not found", request=request, response=response))
    assert isinstance(err, ApiError)
    assert str(err) == "not found"