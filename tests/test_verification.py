"""Tests for the peer verification engine — ordering of checks and effects."""

from pathlib import Path

import pytest

from devcred.models.result import LedgerError
from devcred.models.skill import (
    DeveloperProfile,
    ReceiptKey,
    SkillKey,
    SkillRecord,
    VerificationReceipt,
)
from devcred.persistence.ledger_store import LedgerStore, WriteSet
from devcred.policy.resolver import PolicyResolver
from devcred.skills.verification import PeerVerificationEngine

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def engine() -> PeerVerificationEngine:
    return PeerVerificationEngine(PolicyResolver.from_config_dir(CONFIG_DIR))


def _developer(store: LedgerStore, name: str, points: int, category: int = 1) -> None:
    store.profiles.set(name, DeveloperProfile(total_reputation=points, join_sequence=1))
    if points:
        store.skills.set(
            SkillKey(name, category),
            SkillRecord(points=points, self_reported_count=points // 10, last_updated=1),
        )


@pytest.fixture
def store() -> LedgerStore:
    store = LedgerStore()
    _developer(store, "victor", 60)
    _developer(store, "dana", 10)
    return store


class TestVerificationValidation:
    def test_valid_verification_passes(self, engine, store) -> None:
        assert engine.check(store, "victor", "dana", 1) is None

    def test_invalid_category_first(self, engine, store) -> None:
        rejection = engine.check(store, "dana", "dana", 9)
        assert rejection.error_code is LedgerError.INVALID_SKILL_CATEGORY

    def test_self_verification_blocked(self, engine, store) -> None:
        rejection = engine.check(store, "victor", "victor", 1)
        assert rejection.error_code is LedgerError.CANNOT_VERIFY_SELF
        assert "Self-verification" in rejection.errors[0]

    def test_self_check_precedes_reputation(self, engine, store) -> None:
        # dana has 10 reputation, still reported as self-verification.
        assert engine.check(store, "dana", "dana", 1).error_code is LedgerError.CANNOT_VERIFY_SELF

    def test_low_reputation_blocked(self, engine, store) -> None:
        rejection = engine.check(store, "dana", "victor", 1)
        assert rejection.error_code is LedgerError.INSUFFICIENT_REPUTATION
        assert "below minimum 50" in rejection.errors[0]

    def test_reputation_exactly_at_minimum(self, engine, store) -> None:
        _developer(store, "mia", 50)
        assert engine.check(store, "mia", "dana", 1) is None

    def test_missing_verifier_profile_reads_as_zero(self, engine, store) -> None:
        rejection = engine.check(store, "ghost", "dana", 1)
        assert rejection.error_code is LedgerError.INSUFFICIENT_REPUTATION
        assert "reputation 0" in rejection.errors[0]

    def test_duplicate_blocked(self, engine, store) -> None:
        store.receipts.set(
            ReceiptKey("victor", "dana", 1),
            VerificationReceipt(verification_sequence=2, points_awarded=5),
        )
        assert engine.check(store, "victor", "dana", 1).error_code is LedgerError.ALREADY_VERIFIED

    def test_duplicate_checked_before_skill(self, engine, store) -> None:
        store.receipts.set(
            ReceiptKey("victor", "dana", 2),
            VerificationReceipt(verification_sequence=2, points_awarded=5),
        )
        assert engine.check(store, "victor", "dana", 2).error_code is LedgerError.ALREADY_VERIFIED

    def test_target_must_have_skill(self, engine, store) -> None:
        rejection = engine.check(store, "victor", "dana", 2)
        assert rejection.error_code is LedgerError.SKILL_NOT_FOUND
        assert "not create" in rejection.errors[0]

    def test_target_without_anything(self, engine, store) -> None:
        # No skill record, so SKILL_NOT_FOUND is reported before NOT_AUTHORIZED.
        assert engine.check(store, "victor", "stranger", 1).error_code is LedgerError.SKILL_NOT_FOUND

    def test_target_profile_required(self, engine, store) -> None:
        store.skills.set(SkillKey("orphan", 1), SkillRecord(points=10, self_reported_count=1))
        assert engine.check(store, "victor", "orphan", 1).error_code is LedgerError.NOT_AUTHORIZED

    def test_threshold_follows_config(self, store) -> None:
        resolver = PolicyResolver({"version": "t", "min_verifier_reputation": 100})
        engine = PeerVerificationEngine(resolver)
        assert engine.check(store, "victor", "dana", 1).error_code is LedgerError.INSUFFICIENT_REPUTATION


class TestVerificationApply:
    def test_all_four_writes(self, engine, store) -> None:
        outcome = engine.apply(store, WriteSet(), "victor", "dana", 1, now=7)

        assert outcome.points_awarded == 5
        assert store.receipts.get(ReceiptKey("victor", "dana", 1)) == VerificationReceipt(
            verification_sequence=7, points_awarded=5,
        )
        skill = store.skills.get(SkillKey("dana", 1))
        assert skill.points == 15
        assert skill.verified_count == 1
        assert skill.self_reported_count == 1
        assert skill.last_updated == 7
        assert store.profiles.get("dana").total_reputation == 15
        assert store.profiles.get("victor").verifications_given == 1

    def test_verifier_reputation_unchanged(self, engine, store) -> None:
        engine.apply(store, WriteSet(), "victor", "dana", 1, now=7)
        assert store.profiles.get("victor").total_reputation == 60

    def test_rollback_undoes_all_writes(self, engine, store) -> None:
        before = store.snapshot()
        writes = WriteSet()
        engine.apply(store, writes, "victor", "dana", 1, now=7)
        writes.rollback()
        assert store.snapshot() == before
