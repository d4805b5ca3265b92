"""Command line front end: control any node backend."""

from __future__ import annotations

import argparse
import asyncio
import json
import re
import sys
from typing import Optional, Sequence

from pydantic import BaseModel

from una.errors import UnaError
from una.node import Node
from una.types import CreateInvoiceParams, NodeConfig, parse_backend

__all__ = ["build_parser", "main"]

_U64_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")
_BACKENDS = ("LndRest", "ClnGrpc", "EclairRest")


def _satoshis(text: str) -> int:
    if not _UNSIGNED.fullmatch(text) or int(text) > _U64_MAX:
        raise argparse.ArgumentTypeError("amount must be in satoshis")
    return int(text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="una-cli",
        description="Universal Node API, control any node backend from the command-line",
    )
    parser.add_argument("--version", action="version", version="%(prog)s 1.0")
    parser.add_argument("-b", "--backend", choices=_BACKENDS, help="Specifies the node backend")
    parser.add_argument("--url", help="[LndRest,ClnGrpc,EclairRest] Sets the node URL")
    parser.add_argument("--macaroon", help="[LndRest] Sets the node macaroon")
    parser.add_argument(
        "--tls_certificate", help="[LndRest,ClnGrpc] Sets the node self-signed TLS certificate"
    )
    parser.add_argument(
        "--tls_client_certificate", help="[ClnGrpc] Sets the client identity TLS certificate"
    )
    parser.add_argument("--tls_client_key", help="[ClnGrpc] Sets the client identity TLS key")
    parser.add_argument("--username", help="[EclairRest] Sets the node username")
    parser.add_argument("--password", help="[EclairRest] Sets the node password")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True
    commands.add_parser("info", help="see information about your node")
    create = commands.add_parser("createinvoice", help="create new invoice")
    create.add_argument("amount", type=_satoshis, help="amount in sats")
    create.add_argument("description", nargs="?", help="description")
    return parser


def _print_json(model: BaseModel) -> None:
    print(json.dumps(model.model_dump(mode="json"), indent=2))


async def _run(args: argparse.Namespace, config: NodeConfig) -> int:
    async with Node(parse_backend(args.backend), config) as node:
        if args.command == "info":
            _print_json(await node.get_info())
        elif args.command == "createinvoice":
            params = CreateInvoiceParams(amount=args.amount, description=args.description or "")
            _print_json(await node.create_invoice(params))
        else:
            print("invalid command. use una-cli --help to see usage instructions.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.backend is None:
        parser.error("backend is required")
    config = NodeConfig(
        url=args.url,
        macaroon=args.macaroon,
        tls_certificate=args.tls_certificate,
        tls_client_certificate=args.tls_client_certificate,
        tls_client_key=args.tls_client_key,
        username=args.username,
        password=args.password,
    )
    try:
        return asyncio.run(_run(args, config))
    except UnaError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())