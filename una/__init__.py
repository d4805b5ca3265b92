"""Universal Node API: one async interface to LND and Eclair REST nodes, with shared types and errors."""

__version__ = "1.0.0"

__all__ = [
    "cli",
    "cln_grpc_config",
    "eclair_rest",
    "errors",
    "lnd_rest",
    "node",
    "schemas",
    "types",
    "utils",
]