"""Application service for profiles, careers, challenges, and progression."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .content_loader import load_careers
from .machine import ChallengeMachine, ChallengeResult, Scheduler
from .models import (
    Career,
    ChallengeDefinition,
    ChallengeProgressRecord,
    ProfileAggregate,
    ProgressStatus,
)
from .orchestrator import CompletionOutcome, ProgressionOrchestrator
from .progress import ProgressStore
from .progression import level_progress
from .scoring import round_half_up, stars_for

LEADERBOARD_SIZE = 10


@dataclass(frozen=True)
class CareerState:
    """Career state for one profile."""

    career: Career
    status: ProgressStatus
    completed_challenges: int
    total_challenges: int
    score: int
    max_score: int


@dataclass(frozen=True)
class ChallengeState:
    """Challenge state for one profile."""

    challenge: ChallengeDefinition
    unlocked: bool
    status: ProgressStatus
    best_score: int
    attempts: int

    @property
    def stars(self) -> int:
        return stars_for(self.best_score) if self.status is ProgressStatus.COMPLETED else 0


@dataclass(frozen=True)
class Achievement:
    """One achievement badge and whether it has been earned."""

    id: str
    title: str
    description: str
    earned: bool


@dataclass(frozen=True)
class ProfileSummary:
    """Profile overview with derived statistics."""

    profile: ProfileAggregate
    level_progress: float
    completed_careers: int
    completed_challenges: int
    average_score: int
    achievements: tuple[Achievement, ...]


@dataclass(frozen=True)
class LeaderboardEntry:
    """One leaderboard row."""

    rank: int
    profile_id: int
    name: str
    total_score: int
    level: int


class CareerService:
    """Coordinates profile state, challenge play, and progression."""

    def __init__(self, db_path: Path | str, scheduler: Scheduler | None = None) -> None:
        """Initialize service with database path."""
        self.careers = load_careers()
        self.progress = ProgressStore(db_path)
        self.progress.sync_catalog(self.careers)
        self.orchestrator = ProgressionOrchestrator(self.progress)
        self._scheduler = scheduler
        self._challenges: dict[str, ChallengeDefinition] = {
            challenge.id: challenge for career in self.careers.values() for challenge in career.challenges
        }

    def list_profiles(self) -> list[ProfileAggregate]:
        """Return all profiles."""
        return self.progress.list_profiles()

    def create_profile(self, name: str) -> ProfileAggregate:
        """Create profile by name."""
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Profile name cannot be empty.")
        return self.progress.create_profile(cleaned)

    def delete_profile(self, profile_id: int) -> bool:
        """Delete one profile by id."""
        return self.progress.delete_profile(profile_id)

    def get_profile(self, profile_id: int) -> ProfileAggregate:
        """Get one profile or raise ``KeyError``."""
        profile = self.progress.get_profile(profile_id)
        if profile is None:
            raise KeyError(profile_id)
        return profile

    def get_career(self, career_id: str) -> Career | None:
        """Get career by id."""
        return self.careers.get(career_id)

    def get_challenge(self, challenge_id: str) -> ChallengeDefinition | None:
        """Get challenge definition by id."""
        return self._challenges.get(challenge_id)

    def list_career_states(self, profile_id: int) -> list[CareerState]:
        """Return career states in island order."""
        records = self._challenge_records(profile_id)
        career_records = {item.career_id: item for item in self.progress.list_career_progress(profile_id)}
        states: list[CareerState] = []
        for career in self.careers.values():
            completed = [
                records[challenge.id]
                for challenge in career.challenges
                if challenge.id in records and records[challenge.id].status is ProgressStatus.COMPLETED
            ]
            record = career_records.get(career.id)
            states.append(
                CareerState(
                    career=career,
                    status=record.status if record is not None else ProgressStatus.NOT_STARTED,
                    completed_challenges=len(completed),
                    total_challenges=len(career.challenges),
                    score=sum(item.best_score for item in completed),
                    max_score=sum(challenge.max_score for challenge in career.challenges),
                )
            )
        return states

    def list_challenge_states(self, profile_id: int, career_id: str) -> list[ChallengeState]:
        """Return a career's challenges with sequential unlock state."""
        career = self.careers[career_id]
        records = self._challenge_records(profile_id)
        states: list[ChallengeState] = []
        previous_id: str | None = None
        for challenge in career.challenges:
            record = records.get(challenge.id)
            states.append(
                ChallengeState(
                    challenge=challenge,
                    unlocked=previous_id is None or previous_id in records,
                    status=record.status if record is not None else ProgressStatus.NOT_STARTED,
                    best_score=record.best_score if record is not None else 0,
                    attempts=record.attempts if record is not None else 0,
                )
            )
            previous_id = challenge.id
        return states

    def is_unlocked(self, profile_id: int, challenge_id: str) -> bool:
        """Return whether a challenge can be played."""
        challenge = self._challenges[challenge_id]
        for state in self.list_challenge_states(profile_id, challenge.career_id):
            if state.challenge.id == challenge_id:
                return state.unlocked
        return False

    def open_challenge(
        self,
        profile_id: int,
        challenge_id: str,
        scheduler: Scheduler | None = None,
        on_outcome: Callable[[CompletionOutcome], None] | None = None,
    ) -> ChallengeMachine:
        """Return a challenge machine whose proceed step records progression.

        ``on_outcome`` receives what the rollup persisted once the player proceeds.
        """
        challenge = self._challenges[challenge_id]
        if not self.is_unlocked(profile_id, challenge_id):
            raise ValueError(f"Challenge '{challenge_id}' is locked.")

        def on_proceed(result: ChallengeResult) -> None:
            outcome = self.record_completion(profile_id, result.challenge_id, result.score)
            if on_outcome is not None:
                on_outcome(outcome)

        return ChallengeMachine(challenge, on_proceed=on_proceed, scheduler=scheduler or self._scheduler)

    def record_completion(self, profile_id: int, challenge_id: str, score: int) -> CompletionOutcome:
        """Record a finished challenge score and roll up progression."""
        challenge = self._challenges[challenge_id]
        return self.orchestrator.on_challenge_complete(profile_id, challenge.id, challenge.career_id, score)

    def achievements(self, profile_id: int) -> list[Achievement]:
        """Return every achievement with earned flags."""
        return list(self.profile_summary(profile_id).achievements)

    def profile_summary(self, profile_id: int) -> ProfileSummary:
        """Return profile statistics and achievements."""
        profile = self.get_profile(profile_id)
        completed = [
            item
            for item in self._challenge_records(profile_id).values()
            if item.status is ProgressStatus.COMPLETED
        ]
        completed_careers = sum(
            1 for item in self.progress.list_career_progress(profile_id) if item.status is ProgressStatus.COMPLETED
        )
        average = round_half_up(sum(item.best_score for item in completed) / len(completed)) if completed else 0
        perfect = any(item.best_score >= 100 for item in completed)
        achievements = (
            Achievement("first-island", "First Island", "Complete your first career.", completed_careers >= 1),
            Achievement("challenge-master", "Challenge Master", "Complete 10 challenges.", len(completed) >= 10),
            Achievement("perfectionist", "Perfectionist", "Score 100 on any challenge.", perfect),
            Achievement("career-champion", "Career Champion", "Complete all 5 careers.", completed_careers >= 5),
            Achievement("level-10-legend", "Level 10 Legend", "Reach level 10.", profile.level >= 10),
        )
        return ProfileSummary(
            profile=profile,
            level_progress=level_progress(profile.experience, profile.level),
            completed_careers=completed_careers,
            completed_challenges=len(completed),
            average_score=average,
            achievements=achievements,
        )

    def leaderboard(self, limit: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        """Return top profiles by total score."""
        return [
            LeaderboardEntry(
                rank=index,
                profile_id=profile.id,
                name=profile.name,
                total_score=profile.total_score,
                level=profile.level,
            )
            for index, profile in enumerate(self.progress.leaderboard(limit), start=1)
        ]

    def close(self) -> None:
        """Close underlying resources."""
        self.progress.close()

    def _challenge_records(self, profile_id: int) -> dict[str, ChallengeProgressRecord]:
        return {item.challenge_id: item for item in self.progress.list_challenge_progress(profile_id)}
