"""Amount conversions and encoding helpers."""

from __future__ import annotations

import base64
import binascii
from typing import Optional

from una.errors import ConversionError

__all__ = ["sat_to_msat", "msat_to_sat", "get_amount_msat", "get_amount_sat", "b64_to_hex"]

_MSAT_PER_SAT = 1_000


def sat_to_msat(sat: int) -> int:
    return sat * _MSAT_PER_SAT


def msat_to_sat(msat: int) -> int:
    return msat // _MSAT_PER_SAT


def get_amount_msat(sat: Optional[int], msat: Optional[int]) -> Optional[int]:
    """Amount in millisatoshis, preferring the satoshi value when both are given."""
    if sat is not None:
        return sat_to_msat(sat)
    return msat


def get_amount_sat(sat: Optional[int], msat: Optional[int]) -> Optional[int]:
    """Amount in satoshis, preferring the satoshi value when both are given."""
    if sat is not None:
        return sat
    if msat is not None:
        return msat_to_sat(msat)
    return None


def b64_to_hex(b64: str) -> str:
    """Re-encode a base64 string as lower-case hex."""
    try:
        return base64.b64decode(b64, validate=True).hex()
    except (binascii.Error, ValueError) as err:
        raise ConversionError("couldn't convert base64 to hex") from err