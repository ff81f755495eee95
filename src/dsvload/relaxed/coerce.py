from __future__ import annotations

import re
from typing import Any

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
INT64_DIGITS = 19

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def coerce_key(key: str) -> Any:
    """
    Turn a textual object key into its natural scalar.

    First match wins:
      1. "true"/"false", any case      -> bool
      2. integer literal (no . e E)    -> int (32-bit range or 64-bit range)
      3. decimal/exponential literal   -> float
      4. anything else                 -> the string unchanged

    Integer text beyond the signed 64-bit range is handled by rule 3.
    """
    lowered = key.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    # longer digit runs cannot fit 64 bits; skip int() so they reach the float rule
    if _INTEGER_RE.fullmatch(key) and len(key.lstrip("+-").lstrip("0")) <= INT64_DIGITS:
        n = int(key)
        if INT64_MIN <= n <= INT64_MAX:
            return n

    if _DECIMAL_RE.fullmatch(key):
        return float(key)

    return key
