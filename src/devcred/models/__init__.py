"""Ledger data models — records, keys, levels, and operation results."""

from devcred.models.result import LedgerError, LedgerResult
from devcred.models.skill import (
    DeveloperProfile,
    ReceiptKey,
    SkillCategory,
    SkillKey,
    SkillLevel,
    SkillRecord,
    SkillView,
    VerificationReceipt,
)

__all__ = [
    "DeveloperProfile",
    "LedgerError",
    "LedgerResult",
    "ReceiptKey",
    "SkillCategory",
    "SkillKey",
    "SkillLevel",
    "SkillRecord",
    "SkillView",
    "VerificationReceipt",
]
