"""Data types shared by every node backend."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, ClassVar, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    WithJsonSchema,
)

__all__ = [
    "NodeConfig",
    "Backend",
    "Network",
    "CreateInvoiceParams",
    "CreateInvoiceResult",
    "Invoice",
    "InvoiceStatus",
    "ChannelStats",
    "NodeInfo",
    "PayInvoiceParams",
    "PayInvoiceResult",
    "parse_backend",
    "NETWORK_JSON_SCHEMA",
]

U64 = Annotated[int, Field(ge=0, le=2**64 - 1)]
U32 = Annotated[int, Field(ge=0, le=2**32 - 1)]
I64 = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]
I32 = Annotated[int, Field(ge=-(2**31), le=2**31 - 1)]


class NodeConfig(BaseModel):
    url: Optional[str] = None
    macaroon: Optional[str] = None
    tls_certificate: Optional[str] = None
    tls_client_key: Optional[str] = None
    tls_client_certificate: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class Backend(str, Enum):
    LND_REST = "LndRest"
    LND_GRPC = "LndGrpc"
    CLN_GRPC = "ClnGrpc"
    ECLAIR_REST = "EclairRest"
    INVALID_BACKEND = "InvalidBackend"

    def __str__(self) -> str:
        return self.value


def parse_backend(name: str) -> Backend:
    """Return the backend called ``name``, or INVALID_BACKEND if there is none."""
    try:
        return Backend(name)
    except ValueError:
        return Backend.INVALID_BACKEND


_KNOWN_NETWORKS = ("mainnet", "testnet", "regtest")


@dataclass(frozen=True)
class Network:
    """A bitcoin network; ``unknown`` networks carry the name the node reported."""

    kind: str
    name: Optional[str] = None

    MAINNET: ClassVar["Network"]
    TESTNET: ClassVar["Network"]
    REGTEST: ClassVar["Network"]

    def __post_init__(self) -> None:
        if self.kind in _KNOWN_NETWORKS:
            if self.name is not None:
                raise ValueError(f"network {self.kind} takes no name")
        elif self.kind == "unknown":
            if self.name is None:
                raise ValueError("unknown network needs a name")
        else:
            raise ValueError(f"invalid network kind: {self.kind}")

    @classmethod
    def unknown(cls, name: str) -> "Network":
        return cls("unknown", name)

    @classmethod
    def from_json(cls, value: Any) -> "Network":
        if isinstance(value, Network):
            return value
        if isinstance(value, str) and value in _KNOWN_NETWORKS:
            return cls(value)
        if isinstance(value, dict) and set(value) == {"unknown"} and isinstance(value["unknown"], str):
            return cls.unknown(value["unknown"])
        raise ValueError(f"invalid network: {value!r}")

    def to_json(self) -> Any:
        if self.kind == "unknown":
            return {"unknown": self.name}
        return self.kind


Network.MAINNET = Network("mainnet")
Network.TESTNET = Network("testnet")
Network.REGTEST = Network("regtest")

NETWORK_JSON_SCHEMA: dict = {
    "oneOf": [
        {"type": "string", "enum": list(_KNOWN_NETWORKS)},
        {
            "type": "object",
            "required": ["unknown"],
            "properties": {"unknown": {"type": "string"}},
            "additionalProperties": False,
        },
    ]
}

NetworkField = Annotated[
    Network,
    PlainValidator(Network.from_json),
    PlainSerializer(lambda network: network.to_json()),
    WithJsonSchema(NETWORK_JSON_SCHEMA),
]


class CreateInvoiceParams(BaseModel):
    amount: Optional[U64] = None
    amount_msat: Optional[U64] = None
    description: Optional[str] = None
    description_hash: Optional[str] = None
    label: Optional[str] = None
    expire_in: Optional[U32] = None
    fallback_address: Optional[str] = None
    payment_preimage: Optional[str] = None
    cltv_expiry: Optional[U32] = None


class CreateInvoiceResult(BaseModel):
    payment_request: str
    payment_hash: str
    label: Optional[str] = None


class InvoiceStatus(str, Enum):
    PENDING = "Pending"
    SETTLED = "Settled"
    CANCELLED = "Cancelled"
    ACCEPTED = "Accepted"


class Invoice(BaseModel):
    bolt11: str
    memo: str
    amount: U64
    amount_msat: U64
    pre_image: Optional[str] = None
    payment_hash: str
    settled: bool
    settle_date: Optional[I64] = None
    creation_date: I64
    expiry: I32
    status: InvoiceStatus


class ChannelStats(BaseModel):
    active: I64
    inactive: I64
    pending: I64


class NodeInfo(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    backend: Backend
    version: str
    network: NetworkField
    node_pubkey: str
    channels: ChannelStats


class PayInvoiceParams(BaseModel):
    payment_request: str
    amount: Optional[U64] = None
    amount_msat: Optional[U64] = None
    max_fee_sat: Optional[U64] = None
    max_fee_msat: Optional[U64] = None
    max_fee_percent: Optional[float] = None


class PayInvoiceResult(BaseModel):
    payment_hash: str
    payment_preimage: str
    fees_msat: Optional[U64] = None