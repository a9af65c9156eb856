"""Bech32 encoding and account addresses."""

from __future__ import annotations

import hashlib
from typing import Iterable

ACCOUNT_PREFIX = "kava"
FEE_COLLECTOR_NAME = "fee_collector"
ADDRESS_LENGTH = 20

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_INDEX = {ch: i for i, ch in enumerate(_CHARSET)}
_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_MAX_LENGTH = 1023
_MAX_ADDRESS_BYTES = 255


class AddressError(ValueError):
    """Raised for malformed bech32 strings or account addresses."""


def _polymod(values: Iterable[int]) -> int:
    checksum = 1
    for value in values:
        top = checksum >> 25
        checksum = ((checksum & 0x1FFFFFF) << 5) ^ value
        for bit, generator in enumerate(_GENERATORS):
            if (top >> bit) & 1:
                checksum ^= generator
    return checksum


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(ch) >> 5 for ch in hrp] + [0] + [ord(ch) & 31 for ch in hrp]


def _create_checksum(hrp: str, data: list[int]) -> list[int]:
    polymod = _polymod(_hrp_expand(hrp) + data + [0] * 6) ^ 1
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def _convert_bits(data: Iterable[int], from_bits: int, to_bits: int, pad: bool) -> list[int]:
    acc = 0
    bits = 0
    result = []
    max_value = (1 << to_bits) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise AddressError("invalid data range")
        acc = (acc << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            result.append((acc >> bits) & max_value)
    if pad:
        if bits:
            result.append((acc << (to_bits - bits)) & max_value)
    elif bits >= from_bits or (acc << (to_bits - bits)) & max_value:
        raise AddressError("invalid padding in bech32 data")
    return result


def bech32_encode(hrp: str, data: bytes) -> str:
    """Encode bytes as a bech32 string with the given human readable part."""
    if not hrp:
        raise AddressError("empty human readable part")
    hrp = hrp.lower()
    words = _convert_bits(data, 8, 5, True)
    return hrp + "1" + "".join(_CHARSET[w] for w in words + _create_checksum(hrp, words))


def bech32_decode(address: str) -> tuple[str, bytes]:
    """Decode a bech32 string into its human readable part and bytes."""
    if len(address) > _MAX_LENGTH:
        raise AddressError(f"bech32 string too long: {len(address)}")
    if any(ord(ch) < 33 or ord(ch) > 126 for ch in address):
        raise AddressError("invalid character in bech32 string")
    if address.lower() != address and address.upper() != address:
        raise AddressError("bech32 string has mixed case")
    address = address.lower()

    separator = address.rfind("1")
    if separator < 1 or separator + 7 > len(address):
        raise AddressError("invalid bech32 separator position")

    hrp = address[:separator]
    try:
        words = [_CHARSET_INDEX[ch] for ch in address[separator + 1:]]
    except KeyError as exc:
        raise AddressError(f"invalid bech32 data character {exc.args[0]!r}") from None

    if _polymod(_hrp_expand(hrp) + words) != 1:
        raise AddressError("invalid bech32 checksum")

    return hrp, bytes(_convert_bits(words[:-6], 5, 8, False))


def address_hash(data: bytes) -> bytes:
    """Return the 20-byte truncated SHA-256 hash used for module addresses."""
    return hashlib.sha256(data).digest()[:ADDRESS_LENGTH]


def acc_address_to_bech32(raw: bytes) -> str:
    """Render raw account address bytes with the account prefix."""
    return bech32_encode(ACCOUNT_PREFIX, raw)


def acc_address_from_bech32(address: str) -> bytes:
    """Parse an account address, checking its prefix and length."""
    if not address.strip():
        raise AddressError("empty address string is not allowed")
    hrp, raw = bech32_decode(address)
    if hrp != ACCOUNT_PREFIX:
        raise AddressError(f"invalid Bech32 prefix; expected {ACCOUNT_PREFIX}, got {hrp}")
    if not raw:
        raise AddressError("addresses cannot be empty")
    if len(raw) > _MAX_ADDRESS_BYTES:
        raise AddressError(f"address max length is {_MAX_ADDRESS_BYTES}, got {len(raw)}")
    return raw


def module_address(name: str) -> str:
    """Return the account address of a module account by name."""
    return acc_address_to_bech32(address_hash(name.encode()))