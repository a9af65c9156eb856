"""JSON-RPC client for a node, with typed ABCI queries."""

from __future__ import annotations

import base64
import itertools
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterator, Optional, Union

import requests

from .address import acc_address_to_bech32
from .coins import Coin, add_coins
from .protowire import encode_bytes_field, encode_varint_field, iter_fields

DEFAULT_PAGE_LIMIT = 100
_DEC_PRECISION = 18

_ACCOUNT_PATH = "/cosmos.auth.v1beta1.Query/Account"
_BALANCES_PATH = "/cosmos.bank.v1beta1.Query/AllBalances"
_DELEGATIONS_PATH = "/cosmos.staking.v1beta1.Query/DelegatorDelegations"
_UNBONDING_PATH = "/cosmos.staking.v1beta1.Query/DelegatorUnbondingDelegations"
_SIMULATE_PATH = "/app/simulate"


class RPCError(Exception):
    """An error returned by the JSON-RPC endpoint."""

    def __init__(self, code: int, message: str, data: str = "") -> None:
        text = f"RPC error {code} - {message}"
        if data:
            text += f": {data}"
        super().__init__(text)
        self.code = code
        self.message = message
        self.data = data


class ABCIQueryError(Exception):
    """An ABCI query that finished with a non-zero code."""


@dataclass(frozen=True)
class ABCIResponse:
    """The response part of an ABCI query result."""

    code: int = 0
    log: str = ""
    value: Optional[bytes] = None
    height: int = 0

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ABCIResponse":
        value = data.get("value")
        return cls(
            code=int(data.get("code") or 0),
            log=data.get("log") or "",
            value=base64.b64decode(value) if value is not None else None,
            height=int(data.get("height") or 0),
        )


def parse_abci_result(response: ABCIResponse) -> bytes:
    """Return the value of a query response, raising on a non-zero code."""
    if response.code != 0:
        raise ABCIQueryError(response.log)
    return response.value or b""


@dataclass(frozen=True)
class AnyMessage:
    """A packed message with its type URL."""

    type_url: str
    value: bytes


@dataclass(frozen=True)
class Delegation:
    """A delegation of a delegator to a validator."""

    delegator_address: str
    validator_address: str
    shares: Decimal


@dataclass(frozen=True)
class DelegationResponse:
    """A delegation together with its balance."""

    delegation: Delegation
    balance: Optional[Coin]


@dataclass(frozen=True)
class UnbondingDelegationEntry:
    """One pending unbonding."""

    creation_height: int
    completion_time: Optional[datetime]
    initial_balance: int
    balance: int
    unbonding_id: int
    unbonding_on_hold_ref_count: int


@dataclass(frozen=True)
class UnbondingDelegation:
    """All unbonding entries of a delegator with one validator."""

    delegator_address: str
    validator_address: str
    entries: tuple[UnbondingDelegationEntry, ...]


def _fields(data: bytes) -> dict[int, list[Any]]:
    result: dict[int, list[Any]] = {}
    for number, _, value in iter_fields(data):
        result.setdefault(number, []).append(value)
    return result


def _text(fields: dict[int, list[Any]], number: int) -> str:
    values = fields.get(number)
    return values[-1].decode() if values else ""


def _int(fields: dict[int, list[Any]], number: int, signed: bool = False) -> int:
    values = fields.get(number)
    value = values[-1] if values else 0
    if signed and value >= 1 << 63:
        value -= 1 << 64
    return value


def _decode_coin(data: bytes) -> Coin:
    fields = _fields(data)
    return Coin(_text(fields, 1), int(_text(fields, 2) or "0"))


def _decode_timestamp(data: bytes) -> datetime:
    fields = _fields(data)
    moment = datetime.fromtimestamp(_int(fields, 1, signed=True), tz=timezone.utc)
    return moment + timedelta(microseconds=_int(fields, 2) // 1000)


def _decode_delegation_response(data: bytes) -> DelegationResponse:
    fields = _fields(data)
    inner = _fields(fields[1][-1]) if 1 in fields else {}
    shares = Decimal(int(_text(inner, 3) or "0")).scaleb(-_DEC_PRECISION)
    delegation = Delegation(_text(inner, 1), _text(inner, 2), shares)
    balance = _decode_coin(fields[2][-1]) if 2 in fields else None
    return DelegationResponse(delegation, balance)


def _decode_unbonding_entry(data: bytes) -> UnbondingDelegationEntry:
    fields = _fields(data)
    return UnbondingDelegationEntry(
        creation_height=_int(fields, 1, signed=True),
        completion_time=_decode_timestamp(fields[2][-1]) if 2 in fields else None,
        initial_balance=int(_text(fields, 3) or "0"),
        balance=int(_text(fields, 4) or "0"),
        unbonding_id=_int(fields, 5),
        unbonding_on_hold_ref_count=_int(fields, 6, signed=True),
    )


def _decode_unbonding(data: bytes) -> UnbondingDelegation:
    fields = _fields(data)
    return UnbondingDelegation(
        _text(fields, 1),
        _text(fields, 2),
        tuple(_decode_unbonding_entry(entry) for entry in fields.get(3, [])),
    )


def _address_text(address: Union[bytes, str]) -> str:
    return acc_address_to_bech32(address) if isinstance(address, bytes) else address


class HTTPClient:
    """A node client speaking JSON-RPC over HTTP."""

    def __init__(self, remote: str, session: Optional[requests.Session] = None) -> None:
        self.remote = remote
        self.session = session or requests.Session()
        self._ids = itertools.count(1)

    def _call(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        response = self.session.post(self.remote, json=payload, timeout=30)
        response.raise_for_status()
        body = response.json()
        error = body.get("error")
        if error:
            raise RPCError(int(error.get("code", 0)), error.get("message", ""), error.get("data") or "")
        return body.get("result") or {}

    def abci_query(self, path: str, data: bytes, height: int) -> bytes:
        """Run an ABCI query at a height and return its value."""
        result = self._call(
            "abci_query",
            {"path": path, "data": data.hex().upper(), "height": str(height), "prove": False},
        )
        return parse_abci_result(ABCIResponse.from_json(result.get("response") or {}))

    def block_by_hash(self, block_hash: bytes) -> dict[str, Any]:
        """Return the block result for a block hash."""
        return self._call("block_by_hash", {"hash": base64.b64encode(block_hash).decode()})

    def account(self, address: Union[bytes, str], height: int) -> AnyMessage:
        """Return the packed account stored at an address."""
        request = encode_bytes_field(1, _address_text(address))
        fields = _fields(self.abci_query(_ACCOUNT_PATH, request, height))
        packed = _fields(fields[1][-1]) if 1 in fields else {}
        values = packed.get(2)
        return AnyMessage(_text(packed, 1), values[-1] if values else b"")

    def _paginate(self, path: str, address: Union[bytes, str], height: int) -> Iterator[bytes]:
        key = b""
        while True:
            page = (encode_bytes_field(1, key) if key else b"") + encode_varint_field(3, DEFAULT_PAGE_LIMIT)
            request = encode_bytes_field(1, _address_text(address)) + encode_bytes_field(2, page)
            fields = _fields(self.abci_query(path, request, height))
            yield from fields.get(1, [])
            pagination = _fields(fields[2][-1]) if 2 in fields else {}
            next_key = pagination.get(1)
            if not next_key or not next_key[-1]:
                return
            key = next_key[-1]

    def balance(self, address: Union[bytes, str], height: int) -> list[Coin]:
        """Return every balance of an address, across all pages."""
        return add_coins([], [_decode_coin(item) for item in self._paginate(_BALANCES_PATH, address, height)])

    def delegations(self, address: Union[bytes, str], height: int) -> list[DelegationResponse]:
        """Return every delegation of a delegator."""
        return [_decode_delegation_response(item) for item in self._paginate(_DELEGATIONS_PATH, address, height)]

    def unbonding_delegations(self, address: Union[bytes, str], height: int) -> list[UnbondingDelegation]:
        """Return every unbonding delegation of a delegator."""
        return [_decode_unbonding(item) for item in self._paginate(_UNBONDING_PATH, address, height)]

    def simulate_tx(self, tx_bytes: bytes) -> dict[str, Any]:
        """Simulate an encoded transaction and return the decoded response."""
        return json.loads(self.abci_query(_SIMULATE_PATH, tx_bytes, 0))