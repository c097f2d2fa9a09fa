"""Chain-wide amounts and naming conventions shared by the generator and the in-memory chain."""

from __future__ import annotations

NATIVE_TOKEN = "nam"
NATIVE_SCALE = 1_000_000

MIN_FEE = 5 * NATIVE_SCALE
PROPOSAL_FUNDS = 500 * NATIVE_SCALE

DEFAULT_GAS_LIMIT = 300_000
# Raw native units charged per gas unit; DEFAULT_GAS_LIMIT * GAS_PRICE <= MIN_FEE.
GAS_PRICE = 1

FAUCET_ALIAS = "faucet"
FAUCET_MIN_AMOUNT = 100 * NATIVE_SCALE
FAUCET_MAX_AMOUNT = 2_000 * NATIVE_SCALE

ALIAS_PREFIX = "load-tester"
ESTABLISHED_ALIAS_PREFIX = "load-tester-enst"
SPENDING_KEY_SUFFIX = "-masp"
PAYMENT_ADDRESS_SUFFIX = "-pa"

MEMO = "load-tester"

# Epochs to wait after an unbond before its funds can be withdrawn.
UNBONDING_EPOCHS = 2

GENESIS_VALIDATORS = 3
MAX_BATCH_SIZE = 3
MAX_ACCOUNT_KEYS = 3


def fee_for(gas_limit: int) -> int:
    return gas_limit * GAS_PRICE


def spending_key_alias(alias: str) -> str:
    return alias + SPENDING_KEY_SUFFIX


def payment_address_alias(alias: str) -> str:
    return alias + PAYMENT_ADDRESS_SUFFIX
