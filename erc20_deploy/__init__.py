"""Deploy a parameterized ERC-20 token contract to an EVM ledger and report the outcome."""

__version__ = "0.1.0"
