"""Minimal protobuf wire format encoding and decoding."""

from __future__ import annotations

from typing import Iterator, Union

WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_BYTES = 2
WIRE_FIXED32 = 5

_MASK64 = (1 << 64) - 1


class ProtoDecodeError(ValueError):
    """Raised for malformed protobuf data."""


def encode_varint(value: int) -> bytes:
    """Encode an integer as a varint; negatives use 64-bit two's complement."""
    value &= _MASK64
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_varint(data: bytes, pos: int = 0) -> tuple[int, int]:
    """Decode a varint at ``pos``; return its value and the following position."""
    result = 0
    for shift in range(0, 70, 7):
        if pos >= len(data):
            raise ProtoDecodeError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result & _MASK64, pos
    raise ProtoDecodeError("varint too long")


def _tag(number: int, wire_type: int) -> bytes:
    return encode_varint((number << 3) | wire_type)


def encode_varint_field(number: int, value: int) -> bytes:
    """Encode a varint field."""
    return _tag(number, WIRE_VARINT) + encode_varint(value)


def encode_bytes_field(number: int, value: Union[bytes, str]) -> bytes:
    """Encode a length-delimited field; strings are UTF-8 encoded."""
    if isinstance(value, str):
        value = value.encode()
    return _tag(number, WIRE_BYTES) + encode_varint(len(value)) + value


def iter_fields(data: bytes) -> Iterator[tuple[int, int, Union[int, bytes]]]:
    """Yield (field number, wire type, value) for every field in a message."""
    pos = 0
    while pos < len(data):
        key, pos = decode_varint(data, pos)
        number, wire_type = key >> 3, key & 7
        if number == 0:
            raise ProtoDecodeError("invalid field number 0")
        if wire_type == WIRE_VARINT:
            value, pos = decode_varint(data, pos)
            yield number, wire_type, value
        elif wire_type == WIRE_BYTES:
            length, pos = decode_varint(data, pos)
            end = pos + length
            if end > len(data):
                raise ProtoDecodeError("truncated length-delimited field")
            yield number, wire_type, bytes(data[pos:end])
            pos = end
        elif wire_type in (WIRE_FIXED64, WIRE_FIXED32):
            size = 8 if wire_type == WIRE_FIXED64 else 4
            if pos + size > len(data):
                raise ProtoDecodeError("truncated fixed-width field")
            yield number, wire_type, bytes(data[pos:pos + size])
            pos += size
        else:
            raise ProtoDecodeError(f"unsupported wire type {wire_type}")