"""Tests for LedgerService — proves the operation surface enforces the ledger rules."""

import threading
from pathlib import Path

import pytest

from devcred.models.result import LedgerError
from devcred.models.skill import SkillCategory, SkillLevel
from devcred.persistence.sequence import SequenceClock
from devcred.policy.resolver import PolicyResolver
from devcred.service import LedgerService


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


@pytest.fixture
def service(resolver: PolicyResolver) -> LedgerService:
    return LedgerService(resolver)


def _make_verifier(service: LedgerService, name: str = "victor", reports: int = 5) -> None:
    """Give a developer enough reputation (10 per report) to verify."""
    service.initialize_profile(name)
    for _ in range(reports):
        assert service.report_achievement(name, SkillCategory.DEFI_PROTOCOLS, "Audit").success


def _reputation_consistent(service: LedgerService, developer: str) -> bool:
    profile = service.get_profile(developer)
    total = sum(
        view.points
        for category in range(1, 7)
        if (view := service.get_skill(developer, category)) is not None
    )
    return profile.total_reputation == total


# ===================================================================
# Profile initialization
# ===================================================================

class TestInitializeProfile:
    def test_fresh_profile(self, service: LedgerService) -> None:
        result = service.initialize_profile("dana")
        assert result.success
        assert result.data["created"] is True

        profile = service.get_profile("dana")
        assert profile.total_reputation == 0
        assert profile.verifications_given == 0
        assert profile.active is True
        assert profile.join_sequence == result.data["join_sequence"]

    def test_idempotent(self, service: LedgerService) -> None:
        first = service.initialize_profile("dana")
        for _ in range(4):
            again = service.initialize_profile("dana")
            assert again.success
            assert again.data["created"] is False
        assert service.get_profile("dana").join_sequence == first.data["join_sequence"]
        assert service.status()["profiles"] == 1

    def test_reinitialize_never_resets(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        service.report_achievement("dana", 1, "First contract")
        service.initialize_profile("dana")
        assert service.get_profile("dana").total_reputation == 10

    def test_noop_does_not_advance_sequence(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        seq = service.sequence
        service.initialize_profile("dana")
        assert service.sequence == seq

    def test_unknown_profile_is_none(self, service: LedgerService) -> None:
        assert service.get_profile("nobody") is None


# ===================================================================
# Self-reported achievements
# ===================================================================

class TestReportAchievement:
    def test_fresh_developer_scenario(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        result = service.report_achievement("dana", 1, "Wrote my first Clarity contract")
        assert result.success
        assert result.data["points_awarded"] == 10

        view = service.get_skill("dana", 1)
        assert view.points == 10
        assert view.self_reported_count == 1
        assert view.verified_count == 0
        assert view.level == SkillLevel.BEGINNER
        assert service.get_profile("dana").total_reputation == 10

    def test_requires_profile(self, service: LedgerService) -> None:
        result = service.report_achievement("dana", 1, "Sneaky")
        assert not result.success
        assert result.error_code is LedgerError.NOT_AUTHORIZED
        assert service.get_profile("dana") is None
        assert service.get_skill("dana", 1) is None

    def test_out_of_range_category_leaves_store_unchanged(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        before = service.status()
        result = service.report_achievement("dana", 7, "Nope")
        assert result.error_code is LedgerError.INVALID_SKILL_CATEGORY
        assert service.status() == before
        assert service.get_profile("dana").total_reputation == 0

    def test_last_updated_tracks_sequence(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)
        first = service.get_skill("dana", 1).last_updated
        service.report_achievement("dana", 1)
        assert service.get_skill("dana", 1).last_updated > first

    def test_categories_are_separate(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)
        service.report_achievement("dana", 4)
        service.report_achievement("dana", 4)
        assert service.get_skill("dana", 1).points == 10
        assert service.get_skill("dana", 4).points == 20
        assert service.get_profile("dana").total_reputation == 30

    def test_level_progression(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        for _ in range(3):
            service.report_achievement("dana", 1)
        assert service.get_skill("dana", 1).level == SkillLevel.INTERMEDIATE
        for _ in range(5):
            service.report_achievement("dana", 1)
        assert service.get_skill("dana", 1).level == SkillLevel.ADVANCED
        for _ in range(8):
            service.report_achievement("dana", 1)
        assert service.get_skill("dana", 1).level == SkillLevel.EXPERT


# ===================================================================
# Peer verification
# ===================================================================

class TestVerifyPeerSkill:
    def test_verifier_scenario(self, service: LedgerService) -> None:
        _make_verifier(service)
        service.initialize_profile("dana")
        service.report_achievement("dana", 1, "Token contract")
        victor_before = service.get_profile("victor")

        result = service.verify_peer_skill("victor", "dana", 1)
        assert result.success
        assert result.data["points_awarded"] == 5

        view = service.get_skill("dana", 1)
        assert view.points == 15
        assert view.verified_count == 1
        assert service.get_profile("dana").total_reputation == 15

        victor = service.get_profile("victor")
        assert victor.verifications_given == victor_before.verifications_given + 1
        assert victor.total_reputation == victor_before.total_reputation

        receipt = service.get_peer_verification("victor", "dana", 1)
        assert receipt is not None
        assert receipt.points_awarded == 5
        assert receipt.verification_sequence == view.last_updated

    def test_duplicate_awards_once(self, service: LedgerService) -> None:
        _make_verifier(service)
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)

        assert service.verify_peer_skill("victor", "dana", 1).success
        second = service.verify_peer_skill("victor", "dana", 1)
        assert second.error_code is LedgerError.ALREADY_VERIFIED
        assert service.get_skill("dana", 1).points == 15
        assert service.get_profile("victor").verifications_given == 1

    def test_different_verifiers_each_count(self, service: LedgerService) -> None:
        _make_verifier(service, "victor")
        _make_verifier(service, "vera")
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)
        assert service.verify_peer_skill("victor", "dana", 1).success
        assert service.verify_peer_skill("vera", "dana", 1).success
        assert service.get_skill("dana", 1).points == 20
        assert service.get_skill("dana", 1).verified_count == 2

    def test_self_verification_regardless_of_reputation(self, service: LedgerService) -> None:
        _make_verifier(service, "victor", reports=20)
        result = service.verify_peer_skill("victor", "victor", SkillCategory.DEFI_PROTOCOLS)
        assert result.error_code is LedgerError.CANNOT_VERIFY_SELF

    def test_reputation_gate(self, service: LedgerService) -> None:
        _make_verifier(service, "newbie", reports=4)  # 40 reputation
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)
        result = service.verify_peer_skill("newbie", "dana", 1)
        assert result.error_code is LedgerError.INSUFFICIENT_REPUTATION
        assert service.get_peer_verification("newbie", "dana", 1) is None

    def test_gate_opens_once_reputation_reached(self, service: LedgerService) -> None:
        _make_verifier(service, "newbie", reports=4)
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)
        assert not service.verify_peer_skill("newbie", "dana", 1).success
        service.report_achievement("newbie", 3)
        assert service.verify_peer_skill("newbie", "dana", 1).success

    def test_verifier_without_profile(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)
        result = service.verify_peer_skill("ghost", "dana", 1)
        assert result.error_code is LedgerError.INSUFFICIENT_REPUTATION

    def test_skill_must_exist(self, service: LedgerService) -> None:
        _make_verifier(service)
        service.initialize_profile("dana")
        result = service.verify_peer_skill("victor", "dana", 1)
        assert result.error_code is LedgerError.SKILL_NOT_FOUND
        assert service.get_skill("dana", 1) is None

    def test_invalid_category(self, service: LedgerService) -> None:
        _make_verifier(service)
        result = service.verify_peer_skill("victor", "dana", 0)
        assert result.error_code is LedgerError.INVALID_SKILL_CATEGORY

    def test_rejection_writes_nothing(self, service: LedgerService) -> None:
        _make_verifier(service)
        service.initialize_profile("dana")
        before = service.status()
        service.verify_peer_skill("victor", "dana", 1)
        assert service.status() == before


# ===================================================================
# Invariants across operation sequences
# ===================================================================

class TestLedgerProperties:
    def test_points_monotonic_and_reputation_consistent(self, service: LedgerService) -> None:
        _make_verifier(service, "victor")
        _make_verifier(service, "vera")
        for dev in ("dana", "omar"):
            service.initialize_profile(dev)

        operations = [
            lambda: service.report_achievement("dana", 1),
            lambda: service.report_achievement("omar", 2),
            lambda: service.verify_peer_skill("victor", "dana", 1),
            lambda: service.verify_peer_skill("victor", "dana", 1),
            lambda: service.report_achievement("dana", 9),
            lambda: service.verify_peer_skill("vera", "omar", 2),
            lambda: service.verify_peer_skill("omar", "dana", 1),
            lambda: service.report_achievement("dana", 1),
        ]
        last_points = 0
        for op in operations:
            op()
            view = service.get_skill("dana", 1)
            points = view.points if view else 0
            assert points >= last_points
            last_points = points
            for dev in ("dana", "omar", "victor", "vera"):
                assert _reputation_consistent(service, dev)

        assert service.check_invariants() == []

    def test_sequence_strictly_increases(self, service: LedgerService) -> None:
        markers = [
            service.initialize_profile("a").data["join_sequence"],
            service.initialize_profile("b").data["join_sequence"],
            service.initialize_profile("c").data["join_sequence"],
        ]
        assert markers == sorted(set(markers))

    def test_injected_clock(self, resolver: PolicyResolver) -> None:
        service = LedgerService(resolver, clock=SequenceClock(start=840_000))
        service.initialize_profile("dana")
        assert service.get_profile("dana").join_sequence == 840_001

    def test_concurrent_duplicate_verifications(self, service: LedgerService) -> None:
        _make_verifier(service)
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)

        results = []
        barrier = threading.Barrier(8)

        def attempt() -> None:
            barrier.wait()
            results.append(service.verify_peer_skill("victor", "dana", 1))

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r.success) == 1
        assert service.get_skill("dana", 1).points == 15


# ===================================================================
# Display names and status
# ===================================================================

class TestQueries:
    def test_level_names(self, service: LedgerService) -> None:
        assert service.get_skill_level_name(1) == "Beginner"
        assert service.get_skill_level_name(4) == "Expert"

    def test_category_names(self, service: LedgerService) -> None:
        assert service.get_skill_category_name(2) == "DeFi Protocols"
        assert service.get_skill_category_name(7) == "Unknown Category"

    def test_status(self, service: LedgerService) -> None:
        service.initialize_profile("dana")
        service.report_achievement("dana", 1)
        status = service.status()
        assert status["profiles"] == 1
        assert status["skills"] == 1
        assert status["receipts"] == 0
        assert status["sequence"] == 2
        assert status["events"] is None
        assert status["categories"][1] == "Clarity Fundamentals"
        assert status["persistence_degraded"] is False
