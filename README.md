# kava_rosetta

A library of building blocks for serving Kava chain data in the Rosetta shape. It has no command-line entry point. Import the modules you need:

- **`kava_rosetta.types`** holds the chain constants: operation types (`fee`, `transfer`, `mint`, `burn`), operation statuses, balance exemptions and the supported currencies (`KAVA`, `HARD`, `SWP`, `USDX`, each with 6 decimals). The lookups `currency_for_denom` and `denom_for_symbol` map between chain denoms and currency symbols. It also defines the identifier types `Currency`, `AccountIdentifier`, `SubAccountIdentifier`, `OperationStatus` and `BalanceExemption`.
- **`kava_rosetta.coins`** works with coin strings such as `"1000ukava,5hard"`. `parse_coins_normalized` truncates decimal amounts, drops zero amounts, sorts the result by denom and rejects a repeated denom. The module also provides `format_coins`, `amount_of` and `add_coins`, and the `Coin` type.
- **`kava_rosetta.address`** encodes and decodes bech32 strings (`bech32_encode`, `bech32_decode`). It converts account addresses with `acc_address_to_bech32` and `acc_address_from_bech32`, and computes module account addresses with `module_address`.
- **`kava_rosetta.operations`** turns bank events (`transfer`, `coinbase`, `burn`), message logs and transactions into indexed operations. It provides `tx_to_operations`, `msg_to_operations`, `fee_to_operations`, `events_to_operations`, `event_to_operations` and `unflatten_events`. These work on the types `Tx`, `MsgSend`, `MsgMultiSend`, `MessageLog`, `StringEvent` and `Operation`. Only supported currencies produce operations. A transaction whose first extension option is an Ethereum transaction is read from its events, with every operation marked successful.
- **`kava_rosetta.derive`** derives a `kava1…` account address from a secp256k1 public key. The key may be compressed or uncompressed. It provides `construction_derive`, `address_from_public_key` and `parse_public_key`.
- **`kava_rosetta.protowire`** is a small protobuf wire-format encoder and decoder. The query client uses it.
- **`kava_rosetta.rpc`** contains `HTTPClient`, a Tendermint JSON-RPC client over `requests`. It provides:
  - `block_by_hash`, which returns the raw result dictionary;
  - `abci_query`;
  - `account`, which returns the packed account as an `AnyMessage`;
  - `balance`, `delegations` and `unbonding_delegations`, which follow pagination to the last page;
  - `simulate_tx`, which returns the decoded JSON response.

  The module also provides `parse_abci_result`.

## Install

```
pip install .
```

## Examples

Derive an address from a public key:

```python
import base64
from kava_rosetta.derive import CurveType, PublicKey, construction_derive

key = PublicKey(
    curve_type=CurveType.SECP256K1,
    bytes=base64.b64decode("AsAbWjsqD1ntOiVZCNRdAm1nrSP8rwZoNNin85jPaeaY"),
)
print(construction_derive(key).address)
# kava1vlpsrmdyuywvaqrv7rx6xga224sqfwz3fyfhwq
```

Turn a transfer event into operations:

```python
from kava_rosetta.operations import Attribute, StringEvent, event_to_operations

event = StringEvent("transfer", (
    Attribute("recipient", "kava1mq9qxlhze029lm0frzw2xr6hem8c3k9ts54w0w"),
    Attribute("sender", "kava1esagqd83rhqdtpy5sxhklaxgn58k2m3s3mnpea"),
    Attribute("amount", "1000ukava,5bnb"),
))
for op in event_to_operations(event, "success", 0):
    print(op.operation_identifier.index, op.account.address, op.amount.value)
```

Read a paginated balance from a node:

```python
from kava_rosetta.address import acc_address_from_bech32
from kava_rosetta.rpc import HTTPClient

client = HTTPClient("http://localhost:26657")
raw = acc_address_from_bech32("kava1vlpsrmdyuywvaqrv7rx6xga224sqfwz3fyfhwq")
for coin in client.balance(raw, 0):
    print(coin.denom, coin.amount)
```

## Errors

Errors are raised as exceptions:

- Malformed coin strings raise `CoinParseError`.
- Bad bech32 input or account addresses raise `AddressError`.
- An event whose attributes do not split evenly raises `ValueError`.
- An error reply from the JSON-RPC endpoint raises `RPCError`.
- A non-zero ABCI response code raises `ABCIQueryError`, with the node's log text as its message.
- Malformed protobuf data raises `ProtoDecodeError`.
- Problems with a public key raise a subclass of `DeriveError`:
  - `UnsupportedCurveTypeError`
  - `PublicKeyNilError`
  - `InvalidPublicKeyError`

## What it does not do

- It runs no HTTP server and answers no Rosetta API requests itself.
- It has no block, account or network services and no offline or online modes.
- Apart from address derivation, it does not build, combine, sign or hash transactions.
- It does not decode raw transaction bytes. Transactions are given to `tx_to_operations` as `Tx` values.

## Tests

```
pip install ".[test]"
pytest
```