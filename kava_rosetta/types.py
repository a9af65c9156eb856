"""Chain constants, currency tables and the small identifier types they use."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

NODE_VERSION = "v0.16.1"
BLOCKCHAIN = "Kava"
HISTORICAL_BALANCE_SUPPORTED = True
INCLUDE_MEMPOOL_COINS = False

SUCCESS_STATUS = "success"
FAILURE_STATUS = "failure"

FEE_OP_TYPE = "fee"
TRANSFER_OP_TYPE = "transfer"
MINT_OP_TYPE = "mint"
BURN_OP_TYPE = "burn"

ACC_LIQUID = "liquid"
ACC_LIQUID_DELEGATED = "liquid_delegated"
ACC_LIQUID_UNBONDING = "liquid_unbonding"
ACC_VESTING = "vesting"
ACC_VESTING_DELEGATED = "vesting_delegated"
ACC_VESTING_UNBONDING = "vesting_unbonding"

BALANCE_DYNAMIC = "dynamic"


@dataclass(frozen=True)
class Currency:
    """A currency as seen by clients: a symbol and its number of decimals."""

    symbol: str
    decimals: int


@dataclass(frozen=True)
class OperationStatus:
    """An operation status and whether it counts as successful."""

    status: str
    successful: bool


@dataclass(frozen=True)
class BalanceExemption:
    """A sub-account whose balance may change without a matching operation."""

    sub_account_address: Optional[str]
    exemption_type: str


@dataclass(frozen=True)
class SubAccountIdentifier:
    """Identifies a sub-account of an account."""

    address: str


@dataclass(frozen=True)
class AccountIdentifier:
    """Identifies an account, optionally narrowed to a sub-account."""

    address: str
    sub_account: Optional[SubAccountIdentifier] = None


OPERATION_TYPES: tuple[str, ...] = (
    FEE_OP_TYPE,
    TRANSFER_OP_TYPE,
    MINT_OP_TYPE,
    BURN_OP_TYPE,
)

OPERATION_STATUSES: tuple[OperationStatus, ...] = (
    OperationStatus(SUCCESS_STATUS, True),
    OperationStatus(FAILURE_STATUS, False),
)

CALL_METHODS: tuple[str, ...] = ()

BALANCE_EXEMPTIONS: tuple[BalanceExemption, ...] = tuple(
    BalanceExemption(sub_account, BALANCE_DYNAMIC)
    for sub_account in (
        ACC_LIQUID,
        ACC_VESTING,
        ACC_LIQUID_DELEGATED,
        ACC_VESTING_DELEGATED,
        ACC_LIQUID_UNBONDING,
        ACC_VESTING_UNBONDING,
    )
)

CURRENCIES: Mapping[str, Currency] = MappingProxyType(
    {
        "ukava": Currency("KAVA", 6),
        "hard": Currency("HARD", 6),
        "swp": Currency("SWP", 6),
        "usdx": Currency("USDX", 6),
    }
)

DENOMS: Mapping[str, str] = MappingProxyType(
    {
        "KAVA": "ukava",
        "HARD": "hard",
        "SWP": "swp",
        "USDX": "usdx",
    }
)


def currency_for_denom(denom: str) -> Optional[Currency]:
    """Return the supported currency for a chain denom, or None."""
    return CURRENCIES.get(denom)


def denom_for_symbol(symbol: str) -> Optional[str]:
    """Return the chain denom for a currency symbol, or None."""
    return DENOMS.get(symbol)