"""Pure progression rules: challenge reconciliation and career/profile rollups."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace

from .models import (
    LEVEL_SIZE,
    MAX_SCORE,
    CareerProgressRecord,
    ChallengeDefinition,
    ChallengeProgressRecord,
    ProfileAggregate,
    ProgressStatus,
    level_for_experience,
)


@dataclass(frozen=True)
class Reconciliation:
    """Next challenge record plus the credit it earns."""

    next_record: ChallengeProgressRecord
    score_delta: int
    is_first_completion: bool


def reconcile(
    existing: ChallengeProgressRecord | None,
    new_score: int,
    *,
    user_id: int,
    challenge_id: str,
    now: str,
) -> Reconciliation:
    """Fold one finished play into a challenge's progress record.

    Only the improvement over the previous best score is ever credited, so a
    replay that scores lower earns nothing but still counts as an attempt.
    """
    score = max(0, min(MAX_SCORE, int(new_score)))
    if existing is None:
        record = ChallengeProgressRecord(
            user_id=user_id,
            challenge_id=challenge_id,
            status=ProgressStatus.COMPLETED,
            score=score,
            best_score=score,
            attempts=1,
            completed_at=now,
        )
        return Reconciliation(next_record=record, score_delta=score, is_first_completion=True)

    record = replace(
        existing,
        status=ProgressStatus.COMPLETED,
        score=score,
        best_score=max(existing.best_score, score),
        attempts=existing.attempts + 1,
        completed_at=now,
    )
    return Reconciliation(
        next_record=record,
        score_delta=max(0, score - existing.best_score),
        is_first_completion=False,
    )


def aggregate_career_status(
    challenges: Iterable[ChallengeDefinition],
    progress: Mapping[str, ProgressStatus],
) -> ProgressStatus:
    """Derive a career's status from its challenges' statuses.

    Callers must merge the record they just wrote into ``progress`` first.
    A career with no challenges is never completed.
    """
    ids = [challenge.id for challenge in challenges]
    if ids and all(progress.get(challenge_id) is ProgressStatus.COMPLETED for challenge_id in ids):
        return ProgressStatus.COMPLETED
    if any(challenge_id in progress for challenge_id in ids):
        return ProgressStatus.IN_PROGRESS
    return ProgressStatus.NOT_STARTED


def advance_status(current: ProgressStatus, computed: ProgressStatus) -> ProgressStatus:
    """Return the later of two statuses; statuses never move backward."""
    return computed if computed.rank > current.rank else current


def next_career_record(
    existing: CareerProgressRecord | None,
    computed: ProgressStatus,
    aggregate_score: int,
    *,
    user_id: int,
    career_id: str,
    now: str,
) -> CareerProgressRecord | None:
    """Return the career record to persist, or ``None`` when nothing changed."""
    if existing is None:
        if computed is ProgressStatus.NOT_STARTED:
            return None
        return CareerProgressRecord(
            user_id=user_id,
            career_id=career_id,
            status=computed,
            score=aggregate_score,
            started_at=now,
            completed_at=now if computed is ProgressStatus.COMPLETED else None,
        )

    status = advance_status(existing.status, computed)
    completed_at = existing.completed_at
    if status is ProgressStatus.COMPLETED and completed_at is None:
        completed_at = now
    score = max(existing.score, aggregate_score)
    if status is existing.status and completed_at == existing.completed_at and score == existing.score:
        return None
    return replace(existing, status=status, score=score, completed_at=completed_at)


def credit_profile(profile: ProfileAggregate, score_delta: int) -> ProfileAggregate:
    """Apply a positive score delta to a profile's score, experience, and level."""
    delta = max(0, score_delta)
    experience = profile.experience + delta
    return replace(
        profile,
        total_score=profile.total_score + delta,
        experience=experience,
        level=level_for_experience(experience),
    )


def level_progress(experience: int, level: int) -> float:
    """Percent of the way from the current level to the next one."""
    floor = (level - 1) * LEVEL_SIZE
    percent = (experience - floor) * 100 / LEVEL_SIZE
    return min(100.0, max(0.0, percent))
