"""Ledger service — the operation surface of the developer competency ledger.

This is the primary interface for programmatic access. It orchestrates:
- Profile initialization (idempotent)
- Self-reported achievements (category-checked, profile-gated)
- Peer verification (reputation-gated, once per verifier/developer/category)
- Read-only queries and display names
- Persistence (audit event log, state snapshot, replay of events the
  snapshot missed)

Every mutating operation runs under one writer lock: preconditions are
checked, then all writes are applied, then the audit event is appended,
then state is saved. A rejected precondition writes nothing. A failed
audit append rolls back every write of the operation.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from devcred.audit import audit_ledger
from devcred.models.result import LedgerError, LedgerResult
from devcred.models.skill import (
    DeveloperProfile,
    ReceiptKey,
    SkillKey,
    SkillView,
    VerificationReceipt,
)
from devcred.persistence.errors import LedgerIntegrityError
from devcred.persistence.event_log import EventKind, EventLog, EventRecord
from devcred.persistence.ledger_store import LedgerStore, WriteSet
from devcred.persistence.sequence import SequenceClock
from devcred.persistence.state_store import StateStore
from devcred.policy.resolver import PolicyResolver
from devcred.skills.classification import classify_level, level_name
from devcred.skills.reporting import AchievementReporter
from devcred.skills.verification import PeerVerificationEngine

logger = logging.getLogger(__name__)


class LedgerService:
    """Unified facade over the skill ledger.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = LedgerService(resolver)

        service.initialize_profile("dana")
        service.report_achievement("dana", 1, "Wrote a Clarity token")
        service.verify_peer_skill("victor", "dana", 1)
        service.get_skill("dana", 1)

    Persistence (optional):
        service = LedgerService(resolver, event_log=log, state_store=store)
        # State is loaded on construction and saved after each mutation.
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        store: Optional[LedgerStore] = None,
        clock: Optional[SequenceClock] = None,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._resolver = resolver
        self._reporter = AchievementReporter(resolver)
        self._verifier = PeerVerificationEngine(resolver)
        self._event_log = event_log
        self._state_store = state_store
        self._lock = threading.RLock()

        # A store that is not injected is rebuilt from durable state: the
        # snapshot first, then any logged events newer than the snapshot.
        rebuild = store is None
        sequence = 0
        if rebuild and state_store is not None:
            store, sequence = state_store.load_ledger()
        self._store = store if store is not None else LedgerStore()

        replayed = 0
        last = event_log.last_event if event_log is not None else None
        if rebuild and last is not None and last.sequence > sequence:
            replayed = self._replay_events(after=sequence)
            sequence = last.sequence
        self._clock = clock or SequenceClock(sequence)

        # Continue numbering from a reloaded log so event IDs never collide.
        self._event_counter = event_log.count if event_log is not None else 0

        # Set when a state save fails after the audit event was written.
        # The in-memory ledger and audit log agree; the state file is stale.
        self._persistence_degraded: bool = False

        if replayed:
            logger.warning(
                "Replayed %d logged events newer than the saved state", replayed,
            )
            self._safe_persist_post_audit()

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def initialize_profile(self, caller: str) -> LedgerResult:
        """Create the caller's profile. Repeat calls are a successful no-op."""
        with self._lock:
            existing = self._store.profiles.get(caller)
            if existing is not None:
                logger.debug("Profile for %s already exists, nothing to do", caller)
                return LedgerResult(
                    success=True,
                    data={
                        "developer": caller,
                        "created": False,
                        "join_sequence": existing.join_sequence,
                    },
                )

            now = self._clock.advance()
            writes = WriteSet()
            writes.set(
                self._store.profiles,
                caller,
                DeveloperProfile(join_sequence=now),
            )
            err = self._record_event(
                EventKind.PROFILE_INITIALIZED, caller, now, {"developer": caller},
            )
            if err:
                writes.rollback()
                return LedgerResult.rejected(LedgerError.PERSISTENCE_FAILURE, err)

            logger.info("Initialized profile for %s at sequence %d", caller, now)
            return self._committed({
                "developer": caller,
                "created": True,
                "join_sequence": now,
            })

    def report_achievement(
        self, caller: str, category: int, description: str = "",
    ) -> LedgerResult:
        """Record a self-reported achievement for the caller."""
        with self._lock:
            rejection = self._reporter.check(
                self._store, caller, category, description,
            )
            if rejection is not None:
                logger.debug(
                    "Report by %s rejected: %s", caller, rejection.error_code.value,
                )
                return rejection

            now = self._clock.advance()
            writes = WriteSet()
            outcome = self._reporter.apply(
                self._store, writes, caller, category, now,
            )
            err = self._record_event(
                EventKind.ACHIEVEMENT_REPORTED,
                caller,
                now,
                {
                    "developer": caller,
                    "category": category,
                    "description": description,
                    "points_awarded": outcome.points_awarded,
                },
            )
            if err:
                writes.rollback()
                return LedgerResult.rejected(LedgerError.PERSISTENCE_FAILURE, err)

            logger.info(
                "%s reported category %d: +%d points (now %d)",
                caller, category, outcome.points_awarded, outcome.skill.points,
            )
            return self._committed({
                "developer": caller,
                "category": category,
                "points_awarded": outcome.points_awarded,
                "points": outcome.skill.points,
                "total_reputation": outcome.profile.total_reputation,
            })

    def verify_peer_skill(
        self, caller: str, developer: str, category: int,
    ) -> LedgerResult:
        """Attest to another developer's existing skill in one category."""
        with self._lock:
            rejection = self._verifier.check(
                self._store, caller, developer, category,
            )
            if rejection is not None:
                logger.debug(
                    "Verification %s->%s/%s rejected: %s",
                    caller, developer, category, rejection.error_code.value,
                )
                return rejection

            now = self._clock.advance()
            writes = WriteSet()
            outcome = self._verifier.apply(
                self._store, writes, caller, developer, category, now,
            )
            err = self._record_event(
                EventKind.PEER_VERIFIED,
                caller,
                now,
                {
                    "verifier": caller,
                    "developer": developer,
                    "category": category,
                    "points_awarded": outcome.points_awarded,
                },
            )
            if err:
                writes.rollback()
                return LedgerResult.rejected(LedgerError.PERSISTENCE_FAILURE, err)

            logger.info(
                "%s verified %s in category %d: +%d points",
                caller, developer, category, outcome.points_awarded,
            )
            return self._committed({
                "verifier": caller,
                "developer": developer,
                "category": category,
                "points_awarded": outcome.points_awarded,
                "points": outcome.skill.points,
                "verified_count": outcome.skill.verified_count,
            })

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_skill(self, developer: str, category: int) -> Optional[SkillView]:
        key = SkillKey(developer, category)
        record = self._store.skills.get(key)
        if record is None:
            return None
        level = classify_level(record.points, self._resolver.level_thresholds())
        return SkillView.from_record(key, record, level)

    def get_profile(self, developer: str) -> Optional[DeveloperProfile]:
        return self._store.profiles.get(developer)

    def get_peer_verification(
        self, verifier: str, developer: str, category: int,
    ) -> Optional[VerificationReceipt]:
        """Advisory duplicate check. verify_peer_skill re-checks on write."""
        return self._store.receipts.get(ReceiptKey(verifier, developer, category))

    def get_skill_level_name(self, level: int) -> str:
        return level_name(level)

    def get_skill_category_name(self, category: int) -> str:
        return self._resolver.categories.name(category)

    def check_invariants(self) -> list[str]:
        """Recompute cross-relation invariants. Empty list means consistent."""
        with self._lock:
            return audit_ledger(self._store, self._resolver)

    def status(self) -> dict[str, Any]:
        return {
            "sequence": self._clock.current,
            "profiles": len(self._store.profiles),
            "skills": len(self._store.skills),
            "receipts": len(self._store.receipts),
            "events": self._event_log.count if self._event_log is not None else None,
            "categories": dict(self._resolver.categories.items()),
            "policy_version": self._resolver.version(),
            "persistence_degraded": self._persistence_degraded,
        }

    @property
    def sequence(self) -> int:
        return self._clock.current

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _committed(self, data: dict[str, Any]) -> LedgerResult:
        warning = self._safe_persist_post_audit()
        if warning:
            data["warning"] = warning
        return LedgerResult(success=True, data=data)

    def _next_event_id(self) -> str:
        """Generate a monotonically increasing unique event ID."""
        self._event_counter += 1
        return f"EVT-{self._event_counter:08d}"

    def _record_event(
        self,
        kind: EventKind,
        actor_id: str,
        sequence: int,
        payload: dict[str, Any],
    ) -> Optional[str]:
        """Append an audit event. Returns error string or None."""
        if self._event_log is None:
            return None
        try:
            event = EventRecord.create(
                event_id=self._next_event_id(),
                event_kind=kind,
                actor_id=actor_id,
                sequence=sequence,
                payload=payload,
            )
            self._event_log.append(event)
        except (ValueError, OSError) as e:
            logger.error("Event log append failed for %s: %s", kind.value, e)
            return f"Event log failure: {e}"
        return None

    def _replay_events(self, after: int) -> int:
        """Re-apply logged events with a sequence above after. Returns the count.

        Each event must pass the same checks it passed when first committed.

        Raises:
            LedgerIntegrityError: If an event cannot be applied to the store.
        """
        replayed = 0
        for event in self._event_log.events():
            if event.sequence <= after:
                continue
            try:
                self._replay_one(event)
            except (KeyError, TypeError, ValueError) as e:
                raise LedgerIntegrityError(
                    f"Cannot replay event {event.event_id}: {e}"
                ) from e
            replayed += 1
        return replayed

    def _replay_one(self, event: EventRecord) -> None:
        payload = event.payload
        writes = WriteSet()
        if event.event_kind is EventKind.PROFILE_INITIALIZED:
            developer = payload["developer"]
            if developer in self._store.profiles:
                raise ValueError(f"profile {developer} already exists")
            writes.set(
                self._store.profiles,
                developer,
                DeveloperProfile(join_sequence=event.sequence),
            )
            return

        developer = payload["developer"]
        category = int(payload["category"])
        points = int(payload["points_awarded"])
        if event.event_kind is EventKind.ACHIEVEMENT_REPORTED:
            rejection = self._reporter.check(self._store, developer, category, "")
            if rejection is None:
                self._reporter.apply(
                    self._store, writes, developer, category, event.sequence,
                    points=points,
                )
        else:
            verifier = payload["verifier"]
            rejection = self._verifier.check(
                self._store, verifier, developer, category,
            )
            if rejection is None:
                self._verifier.apply(
                    self._store, writes, verifier, developer, category,
                    event.sequence, bonus=points,
                )
        if rejection is not None:
            raise ValueError("; ".join(rejection.errors))

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Save state after the audit event has been committed.

        Must not roll back: the audit trail is already durable. On failure
        the state file is stale, so flag it and return a warning.
        """
        if self._state_store is None:
            return None
        try:
            self._state_store.save_ledger(self._store, self._clock.current)
            return None
        except OSError as e:
            self._persistence_degraded = True
            logger.warning("Ledger state save failed: %s", e)
            return f"Persistence degraded: {e}; state committed in audit trail but state file is stale"
