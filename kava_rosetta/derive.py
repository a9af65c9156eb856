"""Derive account addresses from secp256k1 public keys."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from Crypto.Hash import RIPEMD160
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .address import acc_address_to_bech32
from .types import AccountIdentifier

COMPRESSED_PUBKEY_SIZE = 33
UNCOMPRESSED_PUBKEY_SIZE = 65


class CurveType(str, Enum):
    """Curves a public key may be declared on."""

    SECP256K1 = "secp256k1"
    SECP256R1 = "secp256r1"
    EDWARDS25519 = "edwards25519"
    TWEEDLE = "tweedle"
    PALLAS = "pallas"


@dataclass(frozen=True)
class PublicKey:
    """Public key bytes and the curve they belong to."""

    bytes: Optional[bytes]
    curve_type: Union[CurveType, str]


class DeriveError(ValueError):
    """Base class for errors while deriving an address."""


class UnsupportedCurveTypeError(DeriveError):
    """The public key is not on a supported curve."""


class PublicKeyNilError(DeriveError):
    """The public key holds no bytes."""


class InvalidPublicKeyError(DeriveError):
    """The public key bytes are not a valid secp256k1 point."""


def parse_public_key(public_key: PublicKey) -> bytes:
    """Return the 33-byte compressed form of a secp256k1 public key."""
    if public_key.curve_type != CurveType.SECP256K1:
        raise UnsupportedCurveTypeError(f"unsupported curve type: {public_key.curve_type}")

    raw = public_key.bytes
    if not raw:
        raise PublicKeyNilError("nil public key")

    if len(raw) not in (COMPRESSED_PUBKEY_SIZE, UNCOMPRESSED_PUBKEY_SIZE):
        raise InvalidPublicKeyError(f"malformed public key: invalid length: {len(raw)}")

    try:
        point = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), raw)
    except ValueError as exc:
        raise InvalidPublicKeyError(f"invalid public key: {exc}") from exc

    return point.public_bytes(Encoding.X962, PublicFormat.CompressedPoint)


def address_from_public_key(public_key: PublicKey) -> bytes:
    """Return the raw 20-byte account address of a public key."""
    compressed = parse_public_key(public_key)
    digest = RIPEMD160.new(hashlib.sha256(compressed).digest())
    return digest.digest()


def construction_derive(public_key: PublicKey) -> AccountIdentifier:
    """Return the account identifier owned by a public key."""
    return AccountIdentifier(acc_address_to_bech32(address_from_public_key(public_key)))