"""Core domain models for careers, challenges, and learner progress."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

LEVEL_SIZE = 100
MAX_SCORE = 100


class ProgressStatus(StrEnum):
    """Lifecycle of a challenge or career record.

    Members are ordered: a record may only move to a later member.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    ProgressStatus.NOT_STARTED: 0,
    ProgressStatus.IN_PROGRESS: 1,
    ProgressStatus.COMPLETED: 2,
}


@dataclass(frozen=True)
class ChallengeDefinition:
    """One playable mini-game inside a career."""

    id: str
    career_id: str
    title: str
    description: str
    order: int
    max_score: int
    archetype: str
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def time_limit(self) -> int:
        """Countdown length in seconds for one play session."""
        return int(self.config.get("time_limit", 180))


@dataclass(frozen=True)
class Career:
    """Themed, ordered collection of challenges."""

    id: str
    title: str
    description: str
    order: int
    challenges: list[ChallengeDefinition]


@dataclass(frozen=True)
class ChallengeProgressRecord:
    """Persisted progress for one (user, challenge) pair."""

    user_id: int
    challenge_id: str
    status: ProgressStatus
    score: int
    best_score: int
    attempts: int
    completed_at: str | None


@dataclass(frozen=True)
class CareerProgressRecord:
    """Persisted progress for one (user, career) pair."""

    user_id: int
    career_id: str
    status: ProgressStatus
    score: int
    started_at: str
    completed_at: str | None


@dataclass(frozen=True)
class ProfileAggregate:
    """Per-user score and experience totals."""

    id: int
    name: str
    total_score: int = 0
    experience: int = 0
    level: int = 1


def level_for_experience(experience: int) -> int:
    """Return the level reached with a given amount of experience."""
    return max(0, experience) // LEVEL_SIZE + 1
