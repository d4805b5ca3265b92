"""Write JSON schemas of the public data types to a directory."""

from __future__ import annotations

import copy
import json
import sys
from pathlib import Path
from typing import Callable, Iterable, Optional

from pydantic import TypeAdapter

from una.types import (
    NETWORK_JSON_SCHEMA,
    Backend,
    ChannelStats,
    CreateInvoiceParams,
    CreateInvoiceResult,
    NodeConfig,
    NodeInfo,
    PayInvoiceParams,
    PayInvoiceResult,
)

__all__ = ["write_schema", "write_all", "main"]


def _network_schema() -> dict:
    return {"title": "Network", **copy.deepcopy(NETWORK_JSON_SCHEMA)}


_SCHEMAS: list[tuple[str, Callable[[], dict]]] = [
    ("backend", lambda: TypeAdapter(Backend).json_schema()),
    ("network", _network_schema),
    ("node_config", NodeConfig.model_json_schema),
    ("node_info", NodeInfo.model_json_schema),
    ("channel_stats", ChannelStats.model_json_schema),
    ("create_invoice_params", CreateInvoiceParams.model_json_schema),
    ("create_invoice_result", CreateInvoiceResult.model_json_schema),
    ("pay_invoice_params", PayInvoiceParams.model_json_schema),
    ("pay_invoice_result", PayInvoiceResult.model_json_schema),
]


def write_schema(directory: Path | str, name: str, schema: dict) -> Path:
    """Write ``schema`` as pretty JSON to ``<directory>/<name>.json``."""
    path = Path(directory) / f"{name}.json"
    path.write_text(json.dumps(schema, indent=2), encoding="utf-8")
    return path


def write_all(directory: Path | str) -> list[Path]:
    """Create ``directory`` if needed and write every schema into it."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return [write_schema(directory, name, build()) for name, build in _SCHEMAS]


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    directory = Path(args[0]) if args else Path("schemas")
    write_all(directory)
    print(f"Wrote schemas to {directory}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())