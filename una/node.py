"""A node of any supported backend behind one interface."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, Protocol, TypeVar, Union, runtime_checkable

from pydantic import BaseModel, ValidationError

from una.cln_grpc_config import ClnGrpcConfig
from una.eclair_rest import EclairRest, EclairRestConfig
from una.errors import BackendNotImplementedError, ConversionError, InvalidBackendError
from una.lnd_rest import LndRest, LndRestConfig
from una.types import (
    Backend,
    CreateInvoiceParams,
    CreateInvoiceResult,
    NodeConfig,
    NodeInfo,
    PayInvoiceParams,
    PayInvoiceResult,
    parse_backend,
)

__all__ = ["NodeMethods", "Node"]

_Model = TypeVar("_Model", bound=BaseModel)


@runtime_checkable
class NodeMethods(Protocol):
    """What every node backend can do."""

    async def create_invoice(self, invoice: CreateInvoiceParams) -> CreateInvoiceResult: ...

    async def get_info(self) -> NodeInfo: ...

    async def pay_invoice(self, invoice: PayInvoiceParams) -> PayInvoiceResult: ...


def _coerce(model: type[_Model], value: Any) -> _Model:
    if isinstance(value, model):
        return value
    if isinstance(value, Mapping):
        try:
            return model.model_validate(dict(value))
        except ValidationError as err:
            raise ConversionError(str(err)) from err
    raise ConversionError(f"expected {model.__name__} or a mapping, got {type(value).__name__}")


def _lnd_rest(config: NodeConfig) -> NodeMethods:
    return LndRest(LndRestConfig.from_node_config(config))


def _cln_grpc(config: NodeConfig) -> NodeMethods:
    ClnGrpcConfig.from_node_config(config)
    raise BackendNotImplementedError()


def _eclair_rest(config: NodeConfig) -> NodeMethods:
    return EclairRest(EclairRestConfig.from_node_config(config))


_FACTORIES: dict[Backend, Callable[[NodeConfig], NodeMethods]] = {
    Backend.LND_REST: _lnd_rest,
    Backend.CLN_GRPC: _cln_grpc,
    Backend.ECLAIR_REST: _eclair_rest,
}


class Node:
    """A node of the chosen backend; calls to it run one at a time."""

    def __init__(
        self,
        backend: Union[Backend, str],
        config: Union[NodeConfig, Mapping[str, Any]],
    ) -> None:
        if isinstance(backend, Backend):
            self.backend = backend
        elif isinstance(backend, str):
            self.backend = parse_backend(backend)
        else:
            raise InvalidBackendError()
        node_config = _coerce(NodeConfig, config)
        factory = _FACTORIES.get(self.backend)
        if factory is None:
            raise InvalidBackendError()
        self.node: NodeMethods = factory(node_config)
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "Node":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def create_invoice(
        self, invoice: Union[CreateInvoiceParams, Mapping[str, Any]]
    ) -> CreateInvoiceResult:
        params = _coerce(CreateInvoiceParams, invoice)
        async with self._lock:
            return await self.node.create_invoice(params)

    async def get_info(self) -> NodeInfo:
        async with self._lock:
            return await self.node.get_info()

    async def pay_invoice(
        self, invoice: Union[PayInvoiceParams, Mapping[str, Any]]
    ) -> PayInvoiceResult:
        params = _coerce(PayInvoiceParams, invoice)
        async with self._lock:
            return await self.node.pay_invoice(params)

    async def aclose(self) -> None:
        """Release what the backend holds open."""
        close = getattr(self.node, "aclose", None)
        if close is not None:
            await close()