import pytest

from una.cln_grpc_config import ClnGrpcConfig
from una.errors import InvalidFieldError, MissingFieldError, ParsingHexError
from una.types import NodeConfig

CERT = b"server certificate"
KEY = b"client key"
CLIENT_CERT = b"client certificate"
URL = "https://localhost:9737"


def _fields(**overrides):
    fields = {
        "url": URL,
        "tls_certificate": CERT.hex(),
        "tls_client_key": KEY.hex(),
        "tls_client_certificate": CLIENT_CERT.hex(),
    }
    fields.update(overrides)
    return {name: value for name, value in fields.items() if value is not None}


def test_valid_config_decodes_all_certificates():
    config = ClnGrpcConfig.from_node_config(NodeConfig(**_fields()))
    assert config.url == URL
    assert config.tls_certificate == CERT
    assert config.tls_client_key == KEY
    assert config.tls_client_certificate == CLIENT_CERT


def test_upper_case_hex_is_accepted():
    config = ClnGrpcConfig.from_node_config(NodeConfig(**_fields(tls_client_key=KEY.hex().upper())))
    assert config.tls_client_key == KEY


@pytest.mark.parametrize(
    "missing", ["url", "tls_certificate", "tls_client_key", "tls_client_certificate"]
)
def test_missing_field(missing):
    with pytest.raises(MissingFieldError) as info:
        ClnGrpcConfig.from_node_config(NodeConfig(**_fields(**{missing: None})))
    assert info.value.field == missing
    assert str(info.value) == f"Missing field: {missing}"


def test_missing_fields_reported_in_order():
    with pytest.raises(MissingFieldError) as info:
        ClnGrpcConfig.from_node_config(NodeConfig(url=URL))
    assert info.value.field == "tls_certificate"


@pytest.mark.parametrize("url", ["", "not a url", "http://", "localhost:port", "host/path"])
def test_invalid_url(url):
    with pytest.raises(InvalidFieldError) as info:
        ClnGrpcConfig.from_node_config(NodeConfig(**_fields(url=url)))
    assert info.value.field == "url"
    assert str(info.value) == "Invalid field: url"


@pytest.mark.parametrize("url", ["localhost:9737", "http://127.0.0.1:9737", "https://[::1]:9737/"])
def test_accepted_urls(url):
    assert ClnGrpcConfig.from_node_config(NodeConfig(**_fields(url=url))).url == url


def test_url_checked_before_hex():
    with pytest.raises(InvalidFieldError):
        ClnGrpcConfig.from_node_config(NodeConfig(**_fields(url="", tls_certificate="zz")))


@pytest.mark.parametrize(
    "field", ["tls_certificate", "tls_client_key", "tls_client_certificate"]
)
def test_bad_hex(field):
    with pytest.raises(ParsingHexError) as info:
        ClnGrpcConfig.from_node_config(NodeConfig(**_fields(**{field: "abc"})))
    assert info.value.field == field
    assert str(info.value) == f"Error parsing field {field}: expected hex string"


def test_first_bad_hex_field_wins():
    with pytest.raises(ParsingHexError) as info:
        ClnGrpcConfig.from_node_config(
            NodeConfig(**_fields(tls_certificate="ab cd", tls_client_key="zz"))
        )
    assert info.value.field == "tls_certificate"