"""Operation mapping, coins, bech32 addresses, key derivation and node queries for the Kava chain."""

__version__ = "0.1.0"

__all__ = ["address", "coins", "derive", "operations", "protowire", "rpc", "types"]