"""Node backend speaking to LND over its REST interface."""

from __future__ import annotations

import math
import re
import ssl
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

import httpx

from una.errors import (
    ApiError,
    ConversionError,
    MissingFieldError,
    NodeConnectionError,
    ParsingHexError,
    UnauthorizedError,
    from_http_error,
)
from una.types import (
    Backend,
    ChannelStats,
    CreateInvoiceParams,
    CreateInvoiceResult,
    Network,
    NodeConfig,
    NodeInfo,
    PayInvoiceParams,
    PayInvoiceResult,
)
from una.utils import b64_to_hex, get_amount_msat

__all__ = [
    "LndRestConfig",
    "LndRest",
    "create_invoice_request",
    "create_invoice_result",
    "node_info_from_getinfo",
    "send_payment_request",
    "pay_invoice_result",
]

DEFAULT_EXPIRY = 3600
MACAROON_HEADER = "Grpc-Metadata-macaroon"

_I32_MAX = 2**31 - 1
_U64_MAX = 2**64 - 1
_HEX = re.compile(r"(?:[0-9a-fA-F]{2})*")
_UNSIGNED = re.compile(r"\+?[0-9]+")

_CREATE_INVOICE_FIELDS = ("r_hash", "payment_request", "add_index", "payment_addr")
_GETINFO_FIELDS = (
    "version",
    "commit_hash",
    "identity_pubkey",
    "alias",
    "color",
    "num_pending_channels",
    "num_active_channels",
    "num_inactive_channels",
    "num_peers",
    "block_height",
    "block_hash",
    "best_header_timestamp",
    "synced_to_chain",
    "synced_to_graph",
    "testnet",
    "chains",
    "uris",
    "features",
)
_SEND_PAYMENT_FIELDS = ("payment_error", "payment_preimage", "payment_hash")
_API_ERROR_FIELDS = ("code", "message", "details")


def _decode_hex(value: str) -> Optional[bytes]:
    if not _HEX.fullmatch(value):
        return None
    return bytes.fromhex(value)


@dataclass(frozen=True)
class LndRestConfig:
    url: str
    macaroon: str
    tls_certificate: bytes

    @classmethod
    def from_node_config(cls, config: NodeConfig) -> "LndRestConfig":
        """Check that ``config`` holds what LND REST needs and decode it."""
        if config.url is None:
            raise MissingFieldError("url")
        if config.macaroon is None:
            raise MissingFieldError("macaroon")
        if config.tls_certificate is None:
            raise MissingFieldError("tls_certificate")
        certificate = _decode_hex(config.tls_certificate)
        if certificate is None:
            raise ParsingHexError("tls_certificate")
        return cls(url=config.url, macaroon=config.macaroon, tls_certificate=certificate)


def _require(data: Any, fields: Iterable[str], what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ApiError(f"error decoding response body: expected {what} object")
    for name in fields:
        if name not in data:
            raise ApiError(f"error decoding response body: missing field `{name}`")
    return data


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as err:
        raise ApiError(f"error decoding response body: {err}") from err


def _wrap_i32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 2**32 if value > _I32_MAX else value


def _float_str(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def _parse_u64(text: Any) -> int:
    if not isinstance(text, str) or not _UNSIGNED.fullmatch(text):
        raise ConversionError("couldn't convert string to integer")
    value = int(text)
    if value > _U64_MAX:
        raise ConversionError("couldn't convert string to integer")
    return value


def create_invoice_request(params: CreateInvoiceParams) -> dict[str, Any]:
    """Body of a ``POST /v1/invoices`` request."""
    value_msat = get_amount_msat(params.amount, params.amount_msat)
    expiry = DEFAULT_EXPIRY if params.expire_in is None else params.expire_in
    if expiry > _I32_MAX:
        raise ConversionError(f"expiry {expiry} does not fit in a signed 32-bit integer")
    return {
        "memo": params.description,
        "r_preimage": params.payment_preimage,
        "value_msat": 0 if value_msat is None else value_msat,
        "description_hash": params.description_hash,
        "expiry": expiry,
        "fallback_addr": params.fallback_address,
        "cltv_expiry": None if params.cltv_expiry is None else _wrap_i32(params.cltv_expiry),
    }


def create_invoice_result(data: Any) -> CreateInvoiceResult:
    """Turn an invoice creation response into a CreateInvoiceResult."""
    data = _require(data, _CREATE_INVOICE_FIELDS, "invoice")
    return CreateInvoiceResult(
        payment_request=data["payment_request"],
        payment_hash=b64_to_hex(data["r_hash"]),
        label=None,
    )


def _network(chains: Any) -> Network:
    if not chains:
        return Network.unknown("Unknown")
    first = chains[0]
    if not isinstance(first, Mapping) or "network" not in first or "chain" not in first:
        raise ApiError("error decoding response body: invalid chain entry")
    name = first["network"]
    if name in ("mainnet", "testnet", "regtest"):
        return Network(name)
    return Network.unknown(name)


def node_info_from_getinfo(data: Any) -> NodeInfo:
    """Turn a ``/v1/getinfo`` response into a NodeInfo."""
    data = _require(data, _GETINFO_FIELDS, "getinfo")
    return NodeInfo(
        backend=Backend.LND_REST,
        version=data["version"],
        network=_network(data["chains"]),
        node_pubkey=data["identity_pubkey"],
        channels=ChannelStats(
            active=data["num_active_channels"],
            inactive=data["num_inactive_channels"],
            pending=data["num_pending_channels"],
        ),
    )


def send_payment_request(params: PayInvoiceParams) -> dict[str, Any]:
    """Body of a ``POST /v1/channels/transactions`` request."""
    amount_msat = get_amount_msat(params.amount, params.amount_msat)
    max_fee_msat = get_amount_msat(params.max_fee_sat, params.max_fee_msat)
    return {
        "dest": None,
        "amt": None,
        "amt_msat": None if amount_msat is None else str(amount_msat),
        "payment_hash": None,
        "payment_request": params.payment_request,
        "final_cltv_delta": None,
        "fee_limit": {
            "fixed": None,
            "fixed_msat": None if max_fee_msat is None else str(max_fee_msat),
            "percent": None if params.max_fee_percent is None else _float_str(params.max_fee_percent),
        },
        "outgoing_chan_id": None,
        "last_hop_pubkey": None,
        "cltv_limit": None,
        "allow_self_payment": False,
        "dest_features": None,
        "payment_addr": None,
    }


def pay_invoice_result(data: Any) -> PayInvoiceResult:
    """Turn a synchronous payment response into a PayInvoiceResult."""
    data = _require(data, _SEND_PAYMENT_FIELDS, "payment")
    if data["payment_error"]:
        raise ApiError(data["payment_error"])
    payment_hash = b64_to_hex(data["payment_hash"])
    payment_preimage = b64_to_hex(data["payment_preimage"])
    route = data.get("payment_route")
    if route is None:
        raise ApiError("invoice paid but missing route")
    route = _require(route, ("total_fees_msat",), "route")
    return PayInvoiceResult(
        payment_hash=payment_hash,
        payment_preimage=payment_preimage,
        fees_msat=_parse_u64(route["total_fees_msat"]),
    )


def _ssl_context(certificate: bytes) -> ssl.SSLContext:
    try:
        return ssl.create_default_context(cadata=certificate.decode("ascii"))
    except (ssl.SSLError, ValueError) as err:
        raise NodeConnectionError(f"invalid TLS certificate: {err}") from err


def _header_value(value: str) -> bytes:
    raw = value.encode("utf-8")
    if any((byte < 32 and byte != 9) or byte == 127 for byte in raw):
        raise ApiError("failed to parse header value")
    return raw


async def _check_response(response: httpx.Response) -> None:
    status = response.status_code
    if status == 200:
        return
    if status == 500:
        error = _require(_decode_json(response), _API_ERROR_FIELDS, "error")
        if error["message"] == "permission denied":
            raise UnauthorizedError()
        raise ApiError(error["message"])
    if status >= 400:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise from_http_error(err) from err


class LndRest:
    """An LND node reached through its REST API."""

    def __init__(self, config: LndRestConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config
        context = _ssl_context(config.tls_certificate) if client is None else None
        self._headers = {MACAROON_HEADER: _header_value(config.macaroon)}
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(verify=context, timeout=None)

    async def __aenter__(self) -> "LndRest":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _call(self, method: str, path: str, body: Optional[dict] = None) -> Any:
        url = f"{self.config.url}{path}"
        try:
            response = await self._client.request(method, url, json=body, headers=self._headers)
        except (httpx.RequestError, httpx.InvalidURL) as err:
            raise from_http_error(err) from err
        await _check_response(response)
        return _decode_json(response)

    async def create_invoice(self, invoice: CreateInvoiceParams) -> CreateInvoiceResult:
        data = await self._call("POST", "/v1/invoices", create_invoice_request(invoice))
        return create_invoice_result(data)

    async def get_info(self) -> NodeInfo:
        data = await self._call("GET", "/v1/getinfo")
        return node_info_from_getinfo(data)

    async def pay_invoice(self, invoice: PayInvoiceParams) -> PayInvoiceResult:
        data = await self._call("POST", "/v1/channels/transactions", send_payment_request(invoice))
        return pay_invoice_result(data)

    async def aclose(self) -> None:
        """Close the HTTP client if this node created it."""
        if self._owns_client:
            await self._client.aclose()