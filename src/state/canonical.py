"""
Deterministic encoding helpers.

Failure details captured in step storage are canonical JSON so two runs
that fail the same way record byte-identical errors. Addresses and hashes
in the in-memory chain come from ``digest_hex``.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding; amounts are raw integers")
    if isinstance(value, dict):
        for k, item in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_floats(item)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def canonical_json(value: Any) -> str:
    """Compact JSON with sorted keys; NaN and floats are rejected."""
    _reject_floats(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """ASCII, NUL-terminated domain separation prefix."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    return b"scenario-tester:" + label.encode("ascii") + b":v" + str(version).encode("ascii") + b"\x00"


def digest_hex(label: str, *parts: str, nbytes: int = 20) -> str:
    """Truncated domain-separated sha256 over length-prefixed parts."""
    h = hashlib.sha256(domain_sep_bytes(label))
    for part in parts:
        raw = part.encode("utf-8")
        h.update(len(raw).to_bytes(4, "big"))
        h.update(raw)
    return h.hexdigest()[: 2 * nbytes]
