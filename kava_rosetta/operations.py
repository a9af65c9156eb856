"""Turn chain events, messages and transactions into balance-changing operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence, Union

from .address import FEE_COLLECTOR_NAME, acc_address_to_bech32, module_address
from .coins import Coin, CoinParseError, parse_coins_normalized
from .types import (
    BURN_OP_TYPE,
    CURRENCIES,
    FEE_OP_TYPE,
    MINT_OP_TYPE,
    SUCCESS_STATUS,
    TRANSFER_OP_TYPE,
    AccountIdentifier,
    Currency,
)

EVENT_TYPE_TRANSFER = "transfer"
EVENT_TYPE_COIN_MINT = "coinbase"
EVENT_TYPE_COIN_BURN = "burn"

ATTRIBUTE_KEY_RECIPIENT = "recipient"
ATTRIBUTE_KEY_SENDER = "sender"
ATTRIBUTE_KEY_MINTER = "minter"
ATTRIBUTE_KEY_BURNER = "burner"
ATTRIBUTE_KEY_AMOUNT = "amount"
ATTRIBUTE_KEY_AUTHZ_MSG_INDEX = "authz_msg_index"

ETHEREUM_TX_EXTENSION = "/ethermint.evm.v1.ExtensionOptionsEthereumTx"

FEE_COLLECTOR_ADDRESS = module_address(FEE_COLLECTOR_NAME)


@dataclass(frozen=True)
class OperationIdentifier:
    """Position of an operation within a transaction."""

    index: int


@dataclass(frozen=True)
class Amount:
    """A signed integer value, as a string, of a currency."""

    value: str
    currency: Currency


@dataclass(frozen=True)
class Operation:
    """A single balance change of one account."""

    operation_identifier: OperationIdentifier
    type: str
    status: str
    account: AccountIdentifier
    amount: Amount
    related_operations: tuple[OperationIdentifier, ...] = ()


@dataclass(frozen=True)
class Attribute:
    """A key/value pair of an event."""

    key: str
    value: str


@dataclass(frozen=True)
class StringEvent:
    """A chain event with string attributes."""

    type: str
    attributes: tuple[Attribute, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", tuple(self.attributes))


@dataclass(frozen=True)
class MessageLog:
    """The events emitted while executing one message of a transaction."""

    msg_index: int = 0
    log: str = ""
    events: tuple[StringEvent, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "events", tuple(self.events))


@dataclass(frozen=True)
class MsgSend:
    """A bank send from one address to another."""

    from_address: str
    to_address: str
    amount: tuple[Coin, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", tuple(self.amount))


@dataclass(frozen=True)
class MultiSendIO:
    """One input or output of a multi-send."""

    address: str
    coins: tuple[Coin, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "coins", tuple(self.coins))


@dataclass(frozen=True)
class MsgMultiSend:
    """A bank send from several inputs to several outputs."""

    inputs: tuple[MultiSendIO, ...] = ()
    outputs: tuple[MultiSendIO, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))


@dataclass(frozen=True)
class Tx:
    """A decoded transaction: its messages, fee and extension option type URLs.

    When ``fee_payer`` is not given, the first signer of the first message pays.
    """

    msgs: tuple[Any, ...] = ()
    fee: tuple[Coin, ...] = ()
    fee_payer: Optional[str] = None
    extension_options: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "msgs", tuple(self.msgs))
        object.__setattr__(self, "fee", tuple(self.fee))
        object.__setattr__(self, "extension_options", tuple(self.extension_options))


def _msg_signers(msg: Any) -> list[str]:
    if isinstance(msg, MsgSend):
        return [msg.from_address]
    if isinstance(msg, MsgMultiSend):
        return [item.address for item in msg.inputs]
    return list(getattr(msg, "signers", ()))


def _tx_fee_payer(tx: Tx) -> str:
    if tx.fee_payer is not None:
        return tx.fee_payer
    for msg in tx.msgs:
        signers = _msg_signers(msg)
        if signers:
            return signers[0]
    raise ValueError("transaction has a fee but no fee payer")


def _parse_amount(attributes: dict[str, str]) -> list[Coin]:
    text = attributes.get(ATTRIBUTE_KEY_AMOUNT, "")
    try:
        return parse_coins_normalized(text)
    except CoinParseError as exc:
        raise CoinParseError(f"could not parse coins: {text}") from exc


def _balance_tracking_ops(
    op_type: str,
    sender: AccountIdentifier,
    amount: Iterable[Coin],
    recipient: AccountIdentifier,
    status: str,
    index: int,
) -> list[Operation]:
    ops: list[Operation] = []
    for coin in amount:
        currency = CURRENCIES.get(coin.denom)
        if currency is None:
            continue
        sender_id = OperationIdentifier(index + len(ops))
        ops.append(
            Operation(sender_id, op_type, status, sender, Amount(f"-{coin.amount}", currency))
        )
        ops.append(
            Operation(
                OperationIdentifier(index + len(ops)),
                op_type,
                status,
                recipient,
                Amount(str(coin.amount), currency),
                related_operations=(sender_id,),
            )
        )
    return ops


def _account_balance_ops(
    op_type: str,
    amount: Iterable[Coin],
    negative: bool,
    account: AccountIdentifier,
    status: str,
    index: int,
) -> list[Operation]:
    ops: list[Operation] = []
    for coin in amount:
        currency = CURRENCIES.get(coin.denom)
        if currency is None:
            continue
        value = f"-{coin.amount}" if negative else str(coin.amount)
        ops.append(
            Operation(
                OperationIdentifier(index + len(ops)),
                op_type,
                status,
                account,
                Amount(value, currency),
            )
        )
    return ops


def events_to_operations(
    events: Iterable[StringEvent], status: str, index: int
) -> list[Operation]:
    """Return operations for a sequence of events, indexed from ``index``."""
    ops: list[Operation] = []
    for event in events:
        ops.extend(event_to_operations(event, status, index + len(ops)))
    return ops


def event_to_operations(event: StringEvent, status: str, index: int) -> list[Operation]:
    """Return operations for a transfer, mint or burn event; others yield none."""
    attributes = {attribute.key: attribute.value for attribute in event.attributes}

    if event.type == EVENT_TYPE_TRANSFER:
        return _balance_tracking_ops(
            TRANSFER_OP_TYPE,
            AccountIdentifier(attributes.get(ATTRIBUTE_KEY_SENDER, "")),
            _parse_amount(attributes),
            AccountIdentifier(attributes.get(ATTRIBUTE_KEY_RECIPIENT, "")),
            status,
            index,
        )
    if event.type == EVENT_TYPE_COIN_MINT:
        return _account_balance_ops(
            MINT_OP_TYPE,
            _parse_amount(attributes),
            False,
            AccountIdentifier(attributes.get(ATTRIBUTE_KEY_MINTER, "")),
            status,
            index,
        )
    if event.type == EVENT_TYPE_COIN_BURN:
        return _account_balance_ops(
            BURN_OP_TYPE,
            _parse_amount(attributes),
            True,
            AccountIdentifier(attributes.get(ATTRIBUTE_KEY_BURNER, "")),
            status,
            index,
        )
    return []


def tx_to_operations(
    tx: Tx,
    events: Iterable[StringEvent],
    logs: Sequence[MessageLog],
    fee_status: str,
    op_status: str,
) -> list[Operation]:
    """Return the operations of a transaction.

    Ethereum transactions are read from their events; all others from their
    fee and messages.
    """
    if tx.extension_options and tx.extension_options[0] == ETHEREUM_TX_EXTENSION:
        return events_to_operations(events, SUCCESS_STATUS, 0)
    return _cosmos_tx_to_operations(tx, logs, fee_status, op_status)


def _cosmos_tx_to_operations(
    tx: Tx, logs: Sequence[MessageLog], fee_status: str, op_status: str
) -> list[Operation]:
    ops: list[Operation] = []
    if tx.fee:
        ops.extend(fee_to_operations(_tx_fee_payer(tx), tx.fee, fee_status, 0))

    for msg_index, msg in enumerate(tx.msgs):
        log = logs[msg_index] if msg_index < len(logs) else MessageLog(msg_index=msg_index)
        ops.extend(msg_to_operations(msg, log, op_status, len(ops)))
    return ops


def fee_to_operations(
    fee_payer: Union[bytes, str], amount: Iterable[Coin], status: str, index: int
) -> list[Operation]:
    """Return operations moving a fee from its payer to the fee collector."""
    payer = acc_address_to_bech32(fee_payer) if isinstance(fee_payer, bytes) else fee_payer
    return _balance_tracking_ops(
        FEE_OP_TYPE,
        AccountIdentifier(payer),
        amount,
        AccountIdentifier(FEE_COLLECTOR_ADDRESS),
        status,
        index,
    )


_LOG_EVENT_WIDTHS = {
    EVENT_TYPE_TRANSFER: 3,
    EVENT_TYPE_COIN_MINT: 2,
    EVENT_TYPE_COIN_BURN: 2,
}


def msg_to_operations(msg: Any, log: MessageLog, status: str, index: int) -> list[Operation]:
    """Return operations for one message from its log events.

    Multi-sends are read from the message itself. A send that did not
    succeed also yields operations from its contents.
    """
    if isinstance(msg, MsgMultiSend):
        return _multi_send_operations(msg, status, index)

    ops: list[Operation] = []
    for event in log.events:
        width = _LOG_EVENT_WIDTHS.get(event.type)
        if width is None:
            continue
        split = unflatten_events(event, event.type, width)
        ops.extend(events_to_operations(split, status, index + len(ops)))

    if status != SUCCESS_STATUS and isinstance(msg, MsgSend):
        ops.extend(
            _balance_tracking_ops(
                TRANSFER_OP_TYPE,
                AccountIdentifier(msg.from_address),
                msg.amount,
                AccountIdentifier(msg.to_address),
                status,
                index + len(ops),
            )
        )
    return ops


def _multi_send_operations(msg: MsgMultiSend, status: str, index: int) -> list[Operation]:
    ops: list[Operation] = []
    for item in msg.inputs:
        ops.extend(
            _account_balance_ops(
                TRANSFER_OP_TYPE, item.coins, True, AccountIdentifier(item.address),
                status, index + len(ops),
            )
        )
    for item in msg.outputs:
        ops.extend(
            _account_balance_ops(
                TRANSFER_OP_TYPE, item.coins, False, AccountIdentifier(item.address),
                status, index + len(ops),
            )
        )
    return ops


def unflatten_events(
    event: StringEvent, event_type: str, num_attributes: int
) -> list[StringEvent]:
    """Split an event holding several merged events into one event each.

    ``authz_msg_index`` attributes are dropped first; the rest must divide
    evenly into groups of ``num_attributes``.
    """
    attributes = [a for a in event.attributes if a.key != ATTRIBUTE_KEY_AUTHZ_MSG_INDEX]
    if len(attributes) % num_attributes:
        raise ValueError(
            f"unexpected number of attributes in {event_type} event: {len(attributes)}"
        )
    return [
        StringEvent(event_type, tuple(attributes[start:start + num_attributes]))
        for start in range(0, len(attributes), num_attributes)
    ]