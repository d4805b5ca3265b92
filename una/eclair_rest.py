"""Node backend speaking to Eclair over its REST interface."""

from __future__ import annotations

import base64
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

import httpx

from una.errors import (
    ApiError,
    MissingFieldError,
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
from una.utils import get_amount_msat

__all__ = [
    "EclairRestConfig",
    "ChannelState",
    "EclairRest",
    "create_invoice_request",
    "create_invoice_result",
    "node_info_from_getinfo",
    "pay_invoice_request",
    "pay_invoice_result",
]

DEFAULT_EXPIRY = 3600
PAYMENT_FAILED = "payment-failed"

_U64_MAX = 2**64 - 1
_NO_FAILURE_MESSAGE = "error paying invoice, couldn't extract error message"

_CREATE_INVOICE_FIELDS = ("serialized", "paymentHash")
_GETINFO_FIELDS = ("version", "nodeId", "alias", "color", "network")
_PAY_INVOICE_FIELDS = ("type", "id", "paymentHash")


@dataclass(frozen=True)
class EclairRestConfig:
    url: str
    username: str
    password: str

    @classmethod
    def from_node_config(cls, config: NodeConfig) -> "EclairRestConfig":
        """Check that ``config`` holds what Eclair REST needs."""
        for name in ("url", "username", "password"):
            if getattr(config, name) is None:
                raise MissingFieldError(name)
        return cls(url=config.url, username=config.username, password=config.password)


class ChannelState(str, Enum):
    NORMAL = "NORMAL"
    OFFLINE = "OFFLINE"
    CLOSED = "CLOSED"
    PENDING = "PENDING"


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


def _without_none(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _f64_to_u64(value: float) -> int:
    """Saturating float to unsigned conversion, truncating toward zero."""
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value) or value >= _U64_MAX:
        return _U64_MAX
    return int(value)


def create_invoice_request(params: CreateInvoiceParams) -> dict[str, Any]:
    """Form fields of a ``POST /createinvoice`` request; absent values are left out."""
    amount_msat = get_amount_msat(params.amount, params.amount_msat)
    return _without_none(
        {
            "description": params.description,
            "descriptionHash": params.description_hash,
            "paymentPreimage": params.payment_preimage,
            "amountMsat": 0 if amount_msat is None else amount_msat,
            "expireIn": DEFAULT_EXPIRY if params.expire_in is None else params.expire_in,
            "fallbackAddress": params.fallback_address,
        }
    )


def create_invoice_result(data: Any) -> CreateInvoiceResult:
    """Turn an invoice creation response into a CreateInvoiceResult."""
    data = _require(data, _CREATE_INVOICE_FIELDS, "invoice")
    return CreateInvoiceResult(
        payment_request=data["serialized"],
        payment_hash=data["paymentHash"],
        label=data.get("description"),
    )


def node_info_from_getinfo(data: Any) -> NodeInfo:
    """Turn a ``/getinfo`` response into a NodeInfo with empty channel counts."""
    data = _require(data, _GETINFO_FIELDS, "getinfo")
    name = data["network"]
    network = Network(name) if name in ("mainnet", "testnet", "regtest") else Network.unknown(name)
    return NodeInfo(
        backend=Backend.ECLAIR_REST,
        version=data["version"],
        network=network,
        node_pubkey=data["nodeId"],
        channels=ChannelStats(active=0, inactive=0, pending=0),
    )


def _channel_states(data: Any) -> list[ChannelState]:
    if not isinstance(data, list):
        raise ApiError("error decoding response body: expected channel list")
    states = []
    for channel in data:
        channel = _require(channel, ("state",), "channel")
        try:
            states.append(ChannelState(channel["state"]))
        except ValueError as err:
            raise ApiError(
                f"error decoding response body: unknown channel state {channel['state']!r}"
            ) from err
    return states


def pay_invoice_request(params: PayInvoiceParams) -> dict[str, Any]:
    """Form fields of a ``POST /payinvoice`` request; absent values are left out."""
    return _without_none(
        {
            "invoice": params.payment_request,
            "amountMsat": get_amount_msat(params.amount, params.amount_msat),
            "maxAttempts": None,
            "maxFeeFlatSat": get_amount_msat(params.max_fee_sat, params.max_fee_msat),
            "maxFeePct": None
            if params.max_fee_percent is None
            else _f64_to_u64(params.max_fee_percent),
            "externalId": None,
            "pathFindingExperimentName": None,
            "blocking": True,
        }
    )


def _failure_message(failures: Any) -> str:
    if not failures or not isinstance(failures, list):
        return _NO_FAILURE_MESSAGE
    failure = failures[0]
    if not isinstance(failure, Mapping):
        return _NO_FAILURE_MESSAGE
    route_error = failure.get("e")
    if isinstance(route_error, Mapping) and "failureMessage" in route_error:
        return str(route_error["failureMessage"])
    error = failure.get("t")
    if error is not None:
        return str(error)
    return _NO_FAILURE_MESSAGE


def pay_invoice_result(data: Any) -> PayInvoiceResult:
    """Turn a blocking payment response into a PayInvoiceResult."""
    data = _require(data, _PAY_INVOICE_FIELDS, "payment")
    if data["type"] == PAYMENT_FAILED:
        raise ApiError(_failure_message(data.get("failures")))

    parts = data.get("parts")
    fees_msat = None
    if parts is not None:
        if not isinstance(parts, list):
            raise ApiError("error decoding response body: expected list of parts")
        fees_msat = sum(int(_require(part, ("feesPaid",), "part")["feesPaid"]) for part in parts)

    preimage = data.get("paymentPreimage")
    if preimage is None:
        raise ApiError("invoice paid but missing preimage")
    return PayInvoiceResult(
        payment_hash=data["paymentHash"],
        payment_preimage=preimage,
        fees_msat=fees_msat,
    )


async def _check_response(response: httpx.Response) -> None:
    status = response.status_code
    if status == 200:
        return
    if status == 400:
        error = _require(_decode_json(response), ("error",), "error")
        raise ApiError(error["error"])
    if status == 401:
        raise UnauthorizedError()
    if status >= 400:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise from_http_error(err) from err


class EclairRest:
    """An Eclair node reached through its REST API."""

    def __init__(self, config: EclairRestConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config
        credentials = f"{config.username}:{config.password}".encode("utf-8")
        self._headers = {"Authorization": "Basic " + base64.b64encode(credentials).decode("ascii")}
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=None)

    async def __aenter__(self) -> "EclairRest":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _call(self, path: str, form: Optional[dict] = None) -> Any:
        url = f"{self.config.url}{path}"
        try:
            response = await self._client.request("POST", url, data=form, headers=self._headers)
        except (httpx.RequestError, httpx.InvalidURL) as err:
            raise from_http_error(err) from err
        await _check_response(response)
        return _decode_json(response)

    async def create_invoice(self, invoice: CreateInvoiceParams) -> CreateInvoiceResult:
        data = await self._call("/createinvoice", create_invoice_request(invoice))
        return create_invoice_result(data)

    async def get_info(self) -> NodeInfo:
        info = node_info_from_getinfo(await self._call("/getinfo"))
        states = _channel_states(await self._call("/channels"))
        info.channels = ChannelStats(
            active=states.count(ChannelState.NORMAL),
            inactive=states.count(ChannelState.OFFLINE),
            pending=states.count(ChannelState.PENDING),
        )
        return info

    async def pay_invoice(self, invoice: PayInvoiceParams) -> PayInvoiceResult:
        data = await self._call("/payinvoice", pay_invoice_request(invoice))
        return pay_invoice_result(data)

    async def aclose(self) -> None:
        """Close the HTTP client if this node created it."""
        if self._owns_client:
            await self._client.aclose()