import pytest

from kava_rosetta.address import acc_address_from_bech32, acc_address_to_bech32
from kava_rosetta.coins import Coin, CoinParseError, add_coins, amount_of, format_coins
from kava_rosetta.operations import (
    Attribute,
    MessageLog,
    MsgMultiSend,
    MsgSend,
    MultiSendIO,
    OperationIdentifier,
    StringEvent,
    Tx,
    event_to_operations,
    events_to_operations,
    fee_to_operations,
    msg_to_operations,
    tx_to_operations,
    unflatten_events,
)
from kava_rosetta.types import (
    BURN_OP_TYPE,
    CURRENCIES,
    DENOMS,
    FAILURE_STATUS,
    FEE_OP_TYPE,
    MINT_OP_TYPE,
    OPERATION_TYPES,
    SUCCESS_STATUS,
    TRANSFER_OP_TYPE,
    AccountIdentifier,
)

TEST_ADDRESSES = [acc_address_to_bech32(bytes([n]) * 20) for n in (1, 2, 3, 4)]
FEE_COLLECTOR = "kava17xpfvakm2amg962yls6f84z3kell8c5lvvhaa6"
IBC_DENOM = "ibc/27394FB092D2ECCD56123C74F36E4C1F926001CEADA9CA97EA622B25F41E5EB2A"


def make_coins(amounts):
    return add_coins([Coin(denom, amount) for denom, amount in amounts.items()])


def default_coins():
    return make_coins(
        {
            "ukava": 1234567,
            "hard": 2000000,
            "usdx": 3500000,
            "swp": 42,
            "bnb": 700,
            "busd": 800,
            "btcb": 900,
            IBC_DENOM: 1000,
        }
    )


OPERATION_CASES = [
    pytest.param(default_coins(), SUCCESS_STATUS, 0, id="success status"),
    pytest.param(default_coins(), FAILURE_STATUS, 0, id="failure status"),
    pytest.param(default_coins(), SUCCESS_STATUS, 10, id="non-zero starting index"),
    pytest.param(make_coins({"ukava": 5000}), SUCCESS_STATUS, 0, id="single denom"),
    pytest.param(make_coins({"busd": 5000}), SUCCESS_STATUS, 0, id="non-native single denom"),
]


def supported_count(coins):
    return sum(1 for coin in coins if coin.denom in CURRENCIES)


def assert_operation_invariants(ops, status, start_index):
    for position, op in enumerate(ops):
        assert op.operation_identifier.index == start_index + position
        assert op.status == status
        for related in op.related_operations:
            assert op.operation_identifier.index > related.index
        assert op.type in OPERATION_TYPES
        symbol = op.amount.currency.symbol
        assert symbol in DENOMS
        assert CURRENCIES[DENOMS[symbol]] == op.amount.currency


def assert_tracked_balance(ops, sender, coins, recipient):
    assert len(ops) == 2 * supported_count(coins)

    sums = {}
    for op in ops:
        symbol = op.amount.currency.symbol
        sums[symbol] = sums.get(symbol, 0) + int(op.amount.value)
    assert all(total == 0 for total in sums.values())

    for op in ops:
        assert op.account in (sender, recipient)
        denom = DENOMS[op.amount.currency.symbol]
        if op.account == sender:
            assert -int(op.amount.value) == amount_of(coins, denom)
            assert op.related_operations == ()
        else:
            assert int(op.amount.value) == amount_of(coins, denom)
            assert len(op.related_operations) == 1
            related_index = op.related_operations[0].index
            related = ops[related_index - ops[0].operation_identifier.index]
            assert related.operation_identifier.index == related_index
            assert related.account == sender
            assert int(op.amount.value) == -int(related.amount.value)
            assert op.amount.currency == related.amount.currency


def transfer_event(recipient, sender, coins):
    return StringEvent(
        "transfer",
        (
            Attribute("recipient", recipient),
            Attribute("sender", sender),
            Attribute("amount", format_coins(coins)),
        ),
    )


@pytest.mark.parametrize("start", [0, 10])
def test_events_to_operations(start):
    events = [
        transfer_event(TEST_ADDRESSES[1], TEST_ADDRESSES[0], default_coins()),
        transfer_event(TEST_ADDRESSES[2], TEST_ADDRESSES[1], default_coins()),
    ]
    ops = events_to_operations(events, SUCCESS_STATUS, start)
    assert len(ops) == 16
    for position, op in enumerate(ops):
        assert op.operation_identifier.index == position + start
        assert op.status == SUCCESS_STATUS


@pytest.mark.parametrize("coins,status,start", OPERATION_CASES)
def test_event_to_operations_transfer(coins, status, start):
    event = transfer_event(TEST_ADDRESSES[1], TEST_ADDRESSES[0], coins)
    ops = event_to_operations(event, status, start)
    assert_operation_invariants(ops, status, start)
    assert_tracked_balance(
        ops, AccountIdentifier(TEST_ADDRESSES[0]), coins, AccountIdentifier(TEST_ADDRESSES[1])
    )
    assert all(op.type == TRANSFER_OP_TYPE for op in ops)


def test_event_to_operations_mint_and_burn():
    mint = StringEvent(
        "coinbase", (Attribute("minter", TEST_ADDRESSES[0]), Attribute("amount", "500ukava,7bnb"))
    )
    ops = event_to_operations(mint, SUCCESS_STATUS, 3)
    assert len(ops) == 1
    assert ops[0].type == MINT_OP_TYPE
    assert ops[0].amount.value == "500"
    assert ops[0].operation_identifier == OperationIdentifier(3)
    assert ops[0].account == AccountIdentifier(TEST_ADDRESSES[0])

    burn = StringEvent(
        "burn", (Attribute("burner", TEST_ADDRESSES[1]), Attribute("amount", "20hard,30swp"))
    )
    ops = event_to_operations(burn, FAILURE_STATUS, 0)
    assert [op.amount.value for op in ops] == ["-20", "-30"]
    assert [op.type for op in ops] == [BURN_OP_TYPE, BURN_OP_TYPE]
    assert [op.amount.currency.symbol for op in ops] == ["HARD", "SWP"]


def test_event_to_operations_unknown_type():
    event = StringEvent("message", (Attribute("sender", TEST_ADDRESSES[0]),))
    assert event_to_operations(event, SUCCESS_STATUS, 0) == []


def test_event_to_operations_bad_amount():
    event = StringEvent(
        "transfer",
        (
            Attribute("recipient", TEST_ADDRESSES[1]),
            Attribute("sender", TEST_ADDRESSES[0]),
            Attribute("amount", "not coins"),
        ),
    )
    with pytest.raises(CoinParseError, match="could not parse coins"):
        event_to_operations(event, SUCCESS_STATUS, 0)


@pytest.mark.parametrize("coins,status,start", OPERATION_CASES)
def test_fee_to_operations(coins, status, start):
    payer = acc_address_from_bech32(TEST_ADDRESSES[0])
    ops = fee_to_operations(payer, coins, status, start)
    assert_operation_invariants(ops, status, start)
    assert_tracked_balance(
        ops, AccountIdentifier(TEST_ADDRESSES[0]), coins, AccountIdentifier(FEE_COLLECTOR)
    )
    assert all(op.type == FEE_OP_TYPE for op in ops)


def test_fee_to_operations_values():
    ops = fee_to_operations(TEST_ADDRESSES[0], [Coin("ukava", 1000)], SUCCESS_STATUS, 0)
    assert ops[0].amount.value == "-1000"
    assert ops[1].amount.value == "1000"
    assert ops[1].account == AccountIdentifier(FEE_COLLECTOR)
    assert ops[1].related_operations == (OperationIdentifier(0),)


def make_tx(fee=()):
    msg1 = MsgSend(TEST_ADDRESSES[0], TEST_ADDRESSES[1], default_coins())
    msg2 = MsgSend(TEST_ADDRESSES[0], TEST_ADDRESSES[1], default_coins())
    return Tx(msgs=(msg1, msg2), fee=fee)


LOGS = [MessageLog()]


def test_tx_to_operations_no_fee():
    tx = make_tx()
    ops = tx_to_operations(tx, [], LOGS, SUCCESS_STATUS, SUCCESS_STATUS)
    assert ops == []

    ops = tx_to_operations(tx, [], LOGS, FAILURE_STATUS, FAILURE_STATUS)
    assert len(ops) == 16
    for position, op in enumerate(ops):
        assert op.operation_identifier.index == position
        assert op.status == FAILURE_STATUS
        assert op.type != FEE_OP_TYPE


def test_tx_to_operations_with_fee():
    tx = make_tx(fee=make_coins({"ukava": 62501}))
    ops = tx_to_operations(tx, [], LOGS, SUCCESS_STATUS, SUCCESS_STATUS)
    assert len(ops) == 2
    assert all(op.type == FEE_OP_TYPE for op in ops)
    assert ops[0].account == AccountIdentifier(TEST_ADDRESSES[0])
    assert all(op.status == SUCCESS_STATUS for op in ops)

    ops = tx_to_operations(tx, [], LOGS, FAILURE_STATUS, FAILURE_STATUS)
    assert len(ops) == 18
    for position, op in enumerate(ops):
        assert op.operation_identifier.index == position
        assert op.status == FAILURE_STATUS
    assert {op.type for op in ops} == {FEE_OP_TYPE, TRANSFER_OP_TYPE}


def test_tx_to_operations_explicit_fee_payer():
    tx = Tx(msgs=(), fee=make_coins({"ukava": 10}), fee_payer=TEST_ADDRESSES[3])
    ops = tx_to_operations(tx, [], [], SUCCESS_STATUS, SUCCESS_STATUS)
    assert ops[0].account == AccountIdentifier(TEST_ADDRESSES[3])
    assert ops[1].account == AccountIdentifier(FEE_COLLECTOR)


def test_tx_to_operations_ethereum_uses_events():
    tx = Tx(
        msgs=(MsgSend(TEST_ADDRESSES[0], TEST_ADDRESSES[1], make_coins({"ukava": 9})),),
        fee=make_coins({"ukava": 100}),
        extension_options=("/ethermint.evm.v1.ExtensionOptionsEthereumTx",),
    )
    events = [transfer_event(TEST_ADDRESSES[2], TEST_ADDRESSES[3], make_coins({"hard": 5}))]
    ops = tx_to_operations(tx, events, [], FAILURE_STATUS, FAILURE_STATUS)
    assert [op.amount.value for op in ops] == ["-5", "5"]
    assert all(op.status == SUCCESS_STATUS for op in ops)
    assert all(op.type == TRANSFER_OP_TYPE for op in ops)


def test_msg_to_operations_log_transfer_with_authz():
    event = StringEvent(
        "transfer",
        (
            Attribute("recipient", TEST_ADDRESSES[1]),
            Attribute("sender", TEST_ADDRESSES[0]),
            Attribute("amount", "100ukava"),
            Attribute("authz_msg_index", "0"),
            Attribute("recipient", TEST_ADDRESSES[2]),
            Attribute("sender", TEST_ADDRESSES[0]),
            Attribute("amount", "50ukava"),
        ),
    )
    msg = MsgSend(TEST_ADDRESSES[0], TEST_ADDRESSES[1], make_coins({"ukava": 100}))
    ops = msg_to_operations(msg, MessageLog(events=(event,)), SUCCESS_STATUS, 4)
    assert [op.amount.value for op in ops] == ["-100", "100", "-50", "50"]
    assert [op.operation_identifier.index for op in ops] == [4, 5, 6, 7]
    assert ops[3].account == AccountIdentifier(TEST_ADDRESSES[2])
    assert ops[3].related_operations == (OperationIdentifier(6),)


def test_msg_to_operations_failure_appends_send():
    event = transfer_event(TEST_ADDRESSES[1], TEST_ADDRESSES[0], make_coins({"ukava": 7}))
    msg = MsgSend(TEST_ADDRESSES[0], TEST_ADDRESSES[1], make_coins({"hard": 3}))
    ops = msg_to_operations(msg, MessageLog(events=(event,)), FAILURE_STATUS, 0)
    assert [op.amount.value for op in ops] == ["-7", "7", "-3", "3"]
    assert [op.operation_identifier.index for op in ops] == [0, 1, 2, 3]
    assert ops[3].related_operations == (OperationIdentifier(2),)


def test_msg_to_operations_mint_and_burn_logs():
    mint = StringEvent(
        "coinbase",
        (
            Attribute("minter", TEST_ADDRESSES[0]),
            Attribute("amount", "10ukava"),
            Attribute("minter", TEST_ADDRESSES[1]),
            Attribute("amount", "20usdx"),
        ),
    )
    burn = StringEvent(
        "burn", (Attribute("burner", TEST_ADDRESSES[2]), Attribute("amount", "5swp"))
    )
    ops = msg_to_operations(object(), MessageLog(events=(mint, burn)), SUCCESS_STATUS, 1)
    assert [(op.type, op.amount.value) for op in ops] == [
        (MINT_OP_TYPE, "10"),
        (MINT_OP_TYPE, "20"),
        (BURN_OP_TYPE, "-5"),
    ]
    assert [op.operation_identifier.index for op in ops] == [1, 2, 3]


def test_msg_to_operations_multisend():
    msg = MsgMultiSend(
        inputs=(MultiSendIO(TEST_ADDRESSES[0], make_coins({"ukava": 100, "bnb": 5})),),
        outputs=(
            MultiSendIO(TEST_ADDRESSES[1], make_coins({"ukava": 60})),
            MultiSendIO(TEST_ADDRESSES[2], make_coins({"ukava": 40})),
        ),
    )
    ops = msg_to_operations(msg, MessageLog(), SUCCESS_STATUS, 0)
    assert [op.amount.value for op in ops] == ["-100", "60", "40"]
    assert [op.account.address for op in ops] == TEST_ADDRESSES[:3]
    assert [op.operation_identifier.index for op in ops] == [0, 1, 2]
    assert sum(int(op.amount.value) for op in ops) == 0


def test_unflatten_events():
    event = StringEvent(
        "coinbase",
        (
            Attribute("minter", "a"),
            Attribute("amount", "1ukava"),
            Attribute("authz_msg_index", "1"),
            Attribute("minter", "b"),
            Attribute("amount", "2ukava"),
        ),
    )
    assert unflatten_events(event, "coinbase", 2) == [
        StringEvent("coinbase", (Attribute("minter", "a"), Attribute("amount", "1ukava"))),
        StringEvent("coinbase", (Attribute("minter", "b"), Attribute("amount", "2ukava"))),
    ]


def test_unflatten_events_bad_count():
    event = StringEvent(
        "transfer", (Attribute("recipient", "a"), Attribute("sender", "b"))
    )
    with pytest.raises(ValueError, match="unexpected number of attributes"):
        unflatten_events(event, "transfer", 3)