from __future__ import annotations

import re
from typing import Any

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: Any) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value.strip()))


def normalize_address(value: Any) -> str:
    """
    Canonical form is lowercase `0x` + 40 hex characters. Checksum casing is discarded.
    """
    if not isinstance(value, str):
        raise ValueError(f"address must be a string, got {type(value).__name__}")
    v = value.strip()
    if not _ADDRESS_RE.match(v):
        raise ValueError(f"malformed address: {v[:64]!r}")
    return v.lower()


def short_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"
