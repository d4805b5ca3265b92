# una

Universal Node API: one asynchronous interface for creating invoices, paying
invoices and reading node information across Lightning node backends.

## Backends

| Name         | Configuration fields                                   | Status                     |
|--------------|--------------------------------------------------------|----------------------------|
| `LndRest`    | `url`, `macaroon`, `tls_certificate`                   | supported                  |
| `EclairRest` | `url`, `username`, `password`                          | supported                  |
| `ClnGrpc`    | `url`, `tls_certificate`, `tls_client_key`, `tls_client_certificate` | configuration only |

## What this package does not do

There is no gRPC client for Core Lightning. `una.cln_grpc_config.ClnGrpcConfig`
checks a `ClnGrpc` configuration (required fields, URL shape, hex-encoded
certificates and key), but `Node("ClnGrpc", config)` raises
`BackendNotImplementedError` once the configuration has passed those checks.
`LndGrpc` is listed in `una.types.Backend` but has no implementation: `Node`
raises `InvalidBackendError` for it, as for any unknown backend name.

## Installation

```
pip install .
```

With test tools:

```
pip install ".[test]"
```

## Library use

`una.node.Node` takes a backend (a `una.types.Backend` or its name) and a
`una.types.NodeConfig` or a plain mapping of the same fields. Its methods are
coroutines and calls on one node run one at a time:

- `get_info()` returns a `NodeInfo` (backend, version, network, public key,
  active/inactive/pending channel counts)
- `create_invoice(params)` takes `CreateInvoiceParams` or a mapping and returns
  a `CreateInvoiceResult`
- `pay_invoice(params)` takes `PayInvoiceParams` or a mapping and returns a
  `PayInvoiceResult`
- `aclose()` closes the HTTP client; `Node` is also an async context manager

```python
import asyncio

from una.node import Node
from una.types import CreateInvoiceParams, NodeConfig

password = "password"


async def run() -> None:
    config = NodeConfig(
        url="http://localhost:8080",
        username="user",
        password=password,
    )
    async with Node("EclairRest", config) as node:
        info = await node.get_info()
        print(info.version, info.network.to_json())

        invoice = await node.create_invoice(
            CreateInvoiceParams(amount=1000, description="coffee")
        )
        print(invoice.payment_request)


asyncio.run(run())
```

Amounts may be given in satoshis (`amount`, `max_fee_sat`) or millisatoshis
(`amount_msat`, `max_fee_msat`); when both are given the satoshi value wins.
Invoices expire after 3600 seconds unless `expire_in` is set.

For LND, the TLS certificate is given as the hex encoding of its PEM text and
the macaroon is sent as given in the `Grpc-Metadata-macaroon` header:

```python
config = NodeConfig(
    url="https://localhost:8080",
    macaroon="placeholder",
    tls_certificate="2d2d2d2d2d424547494e...",
)
node = Node("LndRest", config)
```

The backends can also be used directly: `una.lnd_rest.LndRest` and
`una.eclair_rest.EclairRest` take a `LndRestConfig` / `EclairRestConfig`
(built with `from_node_config`) and, optionally, an `httpx.AsyncClient` to use
instead of one of their own.

`una.utils` holds the amount helpers `sat_to_msat`, `msat_to_sat`,
`get_amount_msat`, `get_amount_sat` and `b64_to_hex`.

## Errors

Every failure is a subclass of `una.errors.UnaError`:

- `MissingFieldError` (also a `KeyError`) — a required configuration field is absent
- `InvalidFieldError` (also a `ValueError`) — a configuration field is malformed
- `ParsingHexError` — a configuration field is not a hex string
- `InvalidBackendError` (also a `ValueError`) — unknown or unusable backend
- `BackendNotImplementedError` — the backend has no implementation
- `UnauthorizedError` (also a `PermissionError`) — the node rejected the credentials
- `ApiError` — the node reported an error or sent a response that could not be read
- `NodeConnectionError` and its subclass `NodeTimeoutError` — network failures
- `ConversionError` — a value could not be converted (bad base64, bad integer, bad parameters)

## Command line

```
una-cli --backend EclairRest --url http://localhost:8080 --username user --password password info
```

```
una-cli --backend LndRest --url https://localhost:8080 \
    --macaroon placeholder --tls_certificate 2d2d2d2d2d424547494e... \
    createinvoice 1000 "coffee"
```

`--backend` (`-b`) is required and is one of `LndRest`, `ClnGrpc` and
`EclairRest`. The commands are `info` and `createinvoice AMOUNT [DESCRIPTION]`,
with the amount in satoshis. Results are printed as indented JSON; errors are
printed to standard error with exit status 1. `--version` prints the version.

## JSON schemas

Write JSON schemas of the public data types (backend, network, node config,
node info, channel stats, invoice parameters and results) into a directory:

```
una-schemas ./schemas
```

Without an argument the schemas are written to `schemas/` under the current
directory. The same is available as `una.schemas.write_all(directory)`.

## Tests

```
pytest
```