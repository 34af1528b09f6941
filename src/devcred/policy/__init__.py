"""Ledger policy — point values, thresholds, and the category table."""

from devcred.policy.resolver import PolicyResolver

__all__ = ["PolicyResolver"]
