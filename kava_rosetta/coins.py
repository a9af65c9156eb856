"""Coin amounts and the textual coin list format used in chain events."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Union

_DENOM_PATTERN = r"[a-zA-Z][a-zA-Z0-9/:._-]{2,127}"
_DENOM_RE = re.compile(_DENOM_PATTERN)
_DEC_COIN_RE = re.compile(
    r"^([0-9]+(?:\.[0-9]+)?|\.[0-9]+)\s*(" + _DENOM_PATTERN + r")$"
)
_DEC_PRECISION = 18


class CoinParseError(ValueError):
    """Raised when a coin or coin list is malformed."""


@dataclass(frozen=True, order=True)
class Coin:
    """An integer amount of a single denom."""

    denom: str
    amount: int

    def __post_init__(self) -> None:
        if not _DENOM_RE.fullmatch(self.denom):
            raise CoinParseError(f"invalid denom: {self.denom}")
        if self.amount < 0:
            raise CoinParseError(f"negative coin amount: {self.amount}")

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


def _parse_dec_coin(text: str) -> tuple[str, int, bool]:
    """Parse one decimal coin; return denom, truncated amount and non-zero flag."""
    match = _DEC_COIN_RE.match(text.strip())
    if match is None:
        raise CoinParseError(f"invalid decimal coin expression: {text}")
    amount, denom = match.groups()
    whole, _, fraction = amount.partition(".")
    if len(fraction) > _DEC_PRECISION:
        raise CoinParseError(f"too much precision in decimal amount: {amount}")
    whole_value = int(whole or "0")
    non_zero = whole_value > 0 or any(ch != "0" for ch in fraction)
    return denom, whole_value, non_zero


def parse_coins_normalized(text: str) -> list[Coin]:
    """Parse a comma separated coin list, truncating decimal amounts.

    Zero amounts are dropped, the result is sorted by denom and a repeated
    denom is an error.
    """
    text = text.strip()
    if not text:
        return []

    parsed = [_parse_dec_coin(part) for part in text.split(",")]
    seen: set[str] = set()
    for denom, _, non_zero in parsed:
        if not non_zero:
            continue
        if denom in seen:
            raise CoinParseError(f"duplicate denomination {denom}")
        seen.add(denom)

    return sorted(
        (Coin(denom, amount) for denom, amount, non_zero in parsed if non_zero and amount > 0),
        key=lambda coin: coin.denom,
    )


def format_coins(coins: Iterable[Coin]) -> str:
    """Render coins in the comma separated form read by parse_coins_normalized."""
    return ",".join(str(coin) for coin in coins)


def amount_of(coins: Iterable[Coin], denom: str) -> int:
    """Return the total amount of a denom in a coin list."""
    return sum(coin.amount for coin in coins if coin.denom == denom)


def add_coins(coins: Iterable[Coin], *args: Union[Coin, Iterable[Coin]]) -> list[Coin]:
    """Sum coin lists and single coins into a sorted list without zero amounts."""
    totals: dict[str, int] = {}

    def _add(items: Iterable[Coin]) -> None:
        for coin in items:
            totals[coin.denom] = totals.get(coin.denom, 0) + coin.amount

    _add(coins)
    for extra in args:
        _add([extra] if isinstance(extra, Coin) else extra)

    return [Coin(denom, amount) for denom, amount in sorted(totals.items()) if amount > 0]