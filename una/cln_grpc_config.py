"""Configuration of a Core Lightning node reached over gRPC."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from una.errors import InvalidFieldError, MissingFieldError, ParsingHexError
from una.types import NodeConfig

__all__ = ["ClnGrpcConfig"]

_HEX = re.compile(r"(?:[0-9a-fA-F]{2})*")
_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")
_PORT = re.compile(r"[0-9]*")
_FORBIDDEN = set('"<>\\')


def _decode_hex(value: str) -> Optional[bytes]:
    if not _HEX.fullmatch(value):
        return None
    return bytes.fromhex(value)


def _valid_authority(authority: str) -> bool:
    host_port = authority.rpartition("@")[2]
    if host_port.startswith("["):
        host, bracket, rest = host_port[1:].partition("]")
        if not bracket or not host:
            return False
        return rest == "" or (rest.startswith(":") and bool(_PORT.fullmatch(rest[1:])))
    if host_port.count(":") > 1:
        return False
    host, _, port = host_port.partition(":")
    return bool(host) and bool(_PORT.fullmatch(port))


def _is_valid_uri(url: str) -> bool:
    if not url:
        return False
    if any(ord(char) <= 32 or ord(char) >= 127 or char in _FORBIDDEN for char in url):
        return False
    if url == "*" or url.startswith("/"):
        return True
    has_scheme = "://" in url
    if has_scheme:
        scheme, rest = url.split("://", 1)
        if not _SCHEME.fullmatch(scheme):
            return False
    else:
        rest = url
    authority = re.split(r"[/?#]", rest, maxsplit=1)[0]
    if not authority:
        return False
    if not has_scheme and authority != rest:
        return False
    return _valid_authority(authority)


@dataclass(frozen=True)
class ClnGrpcConfig:
    url: str
    tls_certificate: bytes
    tls_client_key: bytes
    tls_client_certificate: bytes

    @classmethod
    def from_node_config(cls, config: NodeConfig) -> "ClnGrpcConfig":
        """Check that ``config`` holds what the gRPC backend needs and decode it."""
        for name in ("url", "tls_certificate", "tls_client_key", "tls_client_certificate"):
            if getattr(config, name) is None:
                raise MissingFieldError(name)

        if not _is_valid_uri(config.url):
            raise InvalidFieldError("url")

        decoded = {}
        for name in ("tls_certificate", "tls_client_key", "tls_client_certificate"):
            value = _decode_hex(getattr(config, name))
            if value is None:
                raise ParsingHexError(name)
            decoded[name] = value

        return cls(url=config.url, **decoded)