"""
Deterministic key material for the in-memory chain.

Secret keys are derived from a seed string, public keys are BLS12-381 G1
points (``py_ecc``), and every address is a truncated domain-separated hash
of the key it belongs to. The encodings mimic the shape of real bech32m
strings (``tnam1...``, ``tpknam1...``, ``znam1...``) so the resolver
classifies them the same way it classifies real chain output.
"""

from __future__ import annotations

import hashlib
from functools import lru_cache

from py_ecc.bls import G2Basic
from py_ecc.optimized_bls12_381 import curve_order

from ..core.resolver import ADDRESS_PREFIX, PAYMENT_ADDRESS_PREFIX, PUBLIC_KEY_PREFIX
from ..state.canonical import digest_hex, domain_sep_bytes

_SEP = "1"


def derive_secret_key(seed: str) -> int:
    if not isinstance(seed, str) or not seed:
        raise ValueError("seed must be a non-empty string")
    digest = hashlib.sha256(domain_sep_bytes("wallet-key") + seed.encode("utf-8")).digest()
    sk = int.from_bytes(digest, "big") % int(curve_order)
    # Zero is not a valid secret key; the chance of hitting it is negligible.
    return sk or 1


@lru_cache(maxsize=4096)
def public_key_for(seed: str) -> str:
    return PUBLIC_KEY_PREFIX + _SEP + G2Basic.SkToPk(derive_secret_key(seed)).hex()


def implicit_address(public_key: str) -> str:
    return ADDRESS_PREFIX + _SEP + digest_hex("implicit-address", public_key)


def established_address(counter: int) -> str:
    return ADDRESS_PREFIX + _SEP + digest_hex("established-address", str(counter))


def token_address(symbol: str) -> str:
    return ADDRESS_PREFIX + _SEP + digest_hex("token", symbol)


def payment_address(public_key: str) -> str:
    return PAYMENT_ADDRESS_PREFIX + _SEP + digest_hex("payment-address", public_key, nbytes=32)


def is_public_key(text: str) -> bool:
    return text.startswith(PUBLIC_KEY_PREFIX + _SEP)
