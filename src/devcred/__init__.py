"""devcred — a ledger of developer skill claims, peer verifications, and reputation."""

__version__ = "0.1.0"
