"""Sequence the reads and writes that follow a finished challenge."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from .models import (
    CareerProgressRecord,
    ChallengeDefinition,
    ChallengeProgressRecord,
    ProfileAggregate,
    ProgressStatus,
)
from .progression import aggregate_career_status, credit_profile, next_career_record, reconcile

logger = logging.getLogger(__name__)


class PersistenceGateway(Protocol):
    def get_challenge_progress(self, user_id: int, challenge_id: str) -> ChallengeProgressRecord | None: ...

    def upsert_challenge_progress(self, record: ChallengeProgressRecord) -> None: ...

    def get_career_progress(self, user_id: int, career_id: str) -> CareerProgressRecord | None: ...

    def upsert_career_progress(self, record: CareerProgressRecord) -> None: ...

    def get_profile(self, user_id: int) -> ProfileAggregate | None: ...

    def update_profile(self, user_id: int, fields: dict[str, int]) -> None: ...

    def list_challenge_definitions(self, career_id: str) -> list[ChallengeDefinition]: ...

    def list_challenge_progress(self, user_id: int) -> list[ChallengeProgressRecord]: ...


@dataclass(frozen=True)
class CompletionOutcome:
    """What the rollup managed to persist for one finished challenge."""

    score: int
    score_delta: int = 0
    is_first_completion: bool = False
    challenge_saved: bool = False
    profile: ProfileAggregate | None = None
    career_status: ProgressStatus | None = None

    @property
    def profile_credited(self) -> bool:
        return self.profile is not None


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


class ProgressionOrchestrator:
    """Apply a challenge score to challenge, profile, and career records.

    Nothing here raises: persistence failures are logged and reported through
    the returned outcome so the player still sees their score.

    The three records are not written in one transaction. A failed profile
    credit is lost for good: the challenge record already holds the new best,
    so replaying the same score yields no delta. The career rollup is derived
    from stored challenge records and is recomputed on the next completion.
    """

    def __init__(self, gateway: PersistenceGateway, now: Callable[[], str] = _utc_now) -> None:
        self.gateway = gateway
        self._now = now

    def on_challenge_complete(
        self,
        user_id: int,
        challenge_id: str,
        career_id: str,
        raw_score: int,
    ) -> CompletionOutcome:
        """Persist one finished play and roll it up into profile and career."""
        now = self._now()
        try:
            existing = self.gateway.get_challenge_progress(user_id, challenge_id)
        except Exception:
            logger.exception("Could not load progress for user %s challenge %s", user_id, challenge_id)
            return CompletionOutcome(score=raw_score)

        result = reconcile(existing, raw_score, user_id=user_id, challenge_id=challenge_id, now=now)
        record = result.next_record
        try:
            self.gateway.upsert_challenge_progress(record)
        except Exception:
            logger.exception("Could not save progress for user %s challenge %s", user_id, challenge_id)
            return CompletionOutcome(
                score=record.score,
                score_delta=result.score_delta,
                is_first_completion=result.is_first_completion,
            )
        logger.info(
            "Saved challenge %s for user %s: score=%d best=%d attempts=%d delta=%d",
            challenge_id,
            user_id,
            record.score,
            record.best_score,
            record.attempts,
            result.score_delta,
        )

        profile = self._credit_profile(user_id, result.score_delta)
        career_status = self._roll_up_career(user_id, career_id, record, now)
        return CompletionOutcome(
            score=record.score,
            score_delta=result.score_delta,
            is_first_completion=result.is_first_completion,
            challenge_saved=True,
            profile=profile,
            career_status=career_status,
        )

    def _credit_profile(self, user_id: int, score_delta: int) -> ProfileAggregate | None:
        if score_delta <= 0:
            return None
        try:
            profile = self.gateway.get_profile(user_id)
            if profile is None:
                logger.warning("Profile %s not found; skipping credit of %d", user_id, score_delta)
                return None
            credited = credit_profile(profile, score_delta)
            self.gateway.update_profile(
                user_id,
                {
                    "total_score": credited.total_score,
                    "experience": credited.experience,
                    "level": credited.level,
                },
            )
        except Exception:
            logger.exception("Could not credit profile %s with %d points", user_id, score_delta)
            return None
        if credited.level > profile.level:
            logger.info("Profile %s reached level %d", user_id, credited.level)
        return credited

    def _roll_up_career(
        self,
        user_id: int,
        career_id: str,
        just_written: ChallengeProgressRecord,
        now: str,
    ) -> ProgressStatus | None:
        try:
            definitions = self.gateway.list_challenge_definitions(career_id)
            ids = {definition.id for definition in definitions}
            siblings = {
                item.challenge_id: item
                for item in self.gateway.list_challenge_progress(user_id)
                if item.challenge_id in ids
            }
            siblings[just_written.challenge_id] = just_written
            computed = aggregate_career_status(
                definitions,
                {key: item.status for key, item in siblings.items()},
            )
            aggregate_score = sum(item.best_score for key, item in siblings.items() if key in ids)
            existing = self.gateway.get_career_progress(user_id, career_id)
            updated = next_career_record(
                existing,
                computed,
                aggregate_score,
                user_id=user_id,
                career_id=career_id,
                now=now,
            )
            if updated is None:
                return existing.status if existing is not None else computed
            self.gateway.upsert_career_progress(updated)
        except Exception:
            logger.exception("Could not update career %s for user %s", career_id, user_id)
            return None
        if updated.status is ProgressStatus.COMPLETED and (existing is None or existing.completed_at is None):
            logger.info("User %s completed career %s", user_id, career_id)
        return updated.status
