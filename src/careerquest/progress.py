"""SQLite persistence for profiles, the challenge catalog, and progress records."""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .models import (
    Career,
    CareerProgressRecord,
    ChallengeDefinition,
    ChallengeProgressRecord,
    ProfileAggregate,
    ProgressStatus,
)

SCHEMA_VERSION = 1
PROFILE_FIELDS = frozenset({"total_score", "experience", "level"})


class ProgressStore:
    """Database access layer for learner progress."""

    def __init__(self, db_path: Path | str) -> None:
        """Initialize database and schema."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, _now()),
                )

    def _migrate_to_v1(self) -> None:
        """Create profile, catalog, and progress tables."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    total_score INTEGER NOT NULL DEFAULT 0,
                    experience INTEGER NOT NULL DEFAULT 0,
                    level INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS careers (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    order_index INTEGER NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS challenges (
                    id TEXT PRIMARY KEY,
                    career_id TEXT NOT NULL REFERENCES careers (id),
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    order_index INTEGER NOT NULL,
                    max_score INTEGER NOT NULL,
                    archetype TEXT NOT NULL,
                    config TEXT NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS challenge_progress (
                    profile_id INTEGER NOT NULL REFERENCES profiles (id) ON DELETE CASCADE,
                    challenge_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    best_score INTEGER NOT NULL,
                    attempts INTEGER NOT NULL,
                    completed_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (profile_id, challenge_id)
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS career_progress (
                    profile_id INTEGER NOT NULL REFERENCES profiles (id) ON DELETE CASCADE,
                    career_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    started_at TEXT NOT NULL,
                    completed_at TEXT,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (profile_id, career_id)
                )
                """)

    # --- profiles -------------------------------------------------------------

    def list_profiles(self) -> list[ProfileAggregate]:
        """Return profiles ordered by name."""
        rows = self._conn.execute(
            "SELECT id, name, total_score, experience, level FROM profiles ORDER BY name"
        ).fetchall()
        return [_profile_from_row(row) for row in rows]

    def create_profile(self, name: str) -> ProfileAggregate:
        """Create a new profile."""
        now = _now()
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO profiles (name, created_at, updated_at) VALUES (?, ?, ?)",
                (name, now, now),
            )
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Could not create profile.")
        return ProfileAggregate(id=int(row_id), name=name)

    def get_profile(self, user_id: int) -> ProfileAggregate | None:
        """Get one profile by id."""
        row = self._conn.execute(
            "SELECT id, name, total_score, experience, level FROM profiles WHERE id = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            return None
        return _profile_from_row(row)

    def update_profile(self, user_id: int, fields: dict[str, int]) -> None:
        """Overwrite aggregate profile fields."""
        unknown = sorted(set(fields) - PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(unknown)}")
        if not fields:
            return
        assignments = ", ".join(f"{name} = ?" for name in sorted(fields))
        values = [int(fields[name]) for name in sorted(fields)]
        with self._conn:
            cursor = self._conn.execute(
                f"UPDATE profiles SET {assignments}, updated_at = ? WHERE id = ?",
                (*values, _now(), user_id),
            )
        if cursor.rowcount == 0:
            raise KeyError(user_id)

    def delete_profile(self, user_id: int) -> bool:
        """Delete profile and all associated progress data."""
        with self._conn:
            self._conn.execute("DELETE FROM challenge_progress WHERE profile_id = ?", (user_id,))
            self._conn.execute("DELETE FROM career_progress WHERE profile_id = ?", (user_id,))
            cursor = self._conn.execute("DELETE FROM profiles WHERE id = ?", (user_id,))
        return cursor.rowcount > 0

    def leaderboard(self, limit: int = 10) -> list[ProfileAggregate]:
        """Return the top profiles by total score."""
        rows = self._conn.execute(
            """
            SELECT id, name, total_score, experience, level
            FROM profiles
            ORDER BY total_score DESC, name ASC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [_profile_from_row(row) for row in rows]

    # --- catalog --------------------------------------------------------------

    def sync_catalog(self, careers: dict[str, Career]) -> None:
        """Upsert bundled careers and challenge definitions."""
        with self._conn:
            for career in careers.values():
                self._conn.execute(
                    """
                    INSERT INTO careers (id, title, description, order_index)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        title = excluded.title,
                        description = excluded.description,
                        order_index = excluded.order_index
                    """,
                    (career.id, career.title, career.description, career.order),
                )
                for challenge in career.challenges:
                    self._conn.execute(
                        """
                        INSERT INTO challenges (
                            id, career_id, title, description, order_index, max_score, archetype, config
                        )
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET
                            career_id = excluded.career_id,
                            title = excluded.title,
                            description = excluded.description,
                            order_index = excluded.order_index,
                            max_score = excluded.max_score,
                            archetype = excluded.archetype,
                            config = excluded.config
                        """,
                        (
                            challenge.id,
                            challenge.career_id,
                            challenge.title,
                            challenge.description,
                            challenge.order,
                            challenge.max_score,
                            challenge.archetype,
                            json.dumps(challenge.config, sort_keys=True),
                        ),
                    )

    def list_challenge_definitions(self, career_id: str) -> list[ChallengeDefinition]:
        """Return a career's challenges in play order."""
        rows = self._conn.execute(
            """
            SELECT id, career_id, title, description, order_index, max_score, archetype, config
            FROM challenges
            WHERE career_id = ?
            ORDER BY order_index ASC, id ASC
            """,
            (career_id,),
        ).fetchall()
        return [
            ChallengeDefinition(
                id=str(row["id"]),
                career_id=str(row["career_id"]),
                title=str(row["title"]),
                description=str(row["description"]),
                order=int(row["order_index"]),
                max_score=int(row["max_score"]),
                archetype=str(row["archetype"]),
                config=json.loads(row["config"]),
            )
            for row in rows
        ]

    # --- challenge progress ---------------------------------------------------

    def get_challenge_progress(self, user_id: int, challenge_id: str) -> ChallengeProgressRecord | None:
        """Return one challenge record if present."""
        row = self._conn.execute(
            """
            SELECT profile_id, challenge_id, status, score, best_score, attempts, completed_at
            FROM challenge_progress
            WHERE profile_id = ? AND challenge_id = ?
            """,
            (user_id, challenge_id),
        ).fetchone()
        if row is None:
            return None
        return _challenge_record_from_row(row)

    def list_challenge_progress(self, user_id: int) -> list[ChallengeProgressRecord]:
        """Return every challenge record for a profile."""
        rows = self._conn.execute(
            """
            SELECT profile_id, challenge_id, status, score, best_score, attempts, completed_at
            FROM challenge_progress
            WHERE profile_id = ?
            ORDER BY challenge_id ASC
            """,
            (user_id,),
        ).fetchall()
        return [_challenge_record_from_row(row) for row in rows]

    def upsert_challenge_progress(self, record: ChallengeProgressRecord) -> None:
        """Insert or replace one challenge record."""
        now = _now()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO challenge_progress (
                    profile_id,
                    challenge_id,
                    status,
                    score,
                    best_score,
                    attempts,
                    completed_at,
                    created_at,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(profile_id, challenge_id) DO UPDATE SET
                    status = excluded.status,
                    score = excluded.score,
                    best_score = excluded.best_score,
                    attempts = excluded.attempts,
                    completed_at = excluded.completed_at,
                    updated_at = excluded.updated_at
                """,
                (
                    record.user_id,
                    record.challenge_id,
                    record.status.value,
                    record.score,
                    record.best_score,
                    record.attempts,
                    record.completed_at,
                    now,
                    now,
                ),
            )

    # --- career progress ------------------------------------------------------

    def get_career_progress(self, user_id: int, career_id: str) -> CareerProgressRecord | None:
        """Return one career record if present."""
        row = self._conn.execute(
            """
            SELECT profile_id, career_id, status, score, started_at, completed_at
            FROM career_progress
            WHERE profile_id = ? AND career_id = ?
            """,
            (user_id, career_id),
        ).fetchone()
        if row is None:
            return None
        return _career_record_from_row(row)

    def list_career_progress(self, user_id: int) -> list[CareerProgressRecord]:
        """Return every career record for a profile."""
        rows = self._conn.execute(
            """
            SELECT profile_id, career_id, status, score, started_at, completed_at
            FROM career_progress
            WHERE profile_id = ?
            ORDER BY career_id ASC
            """,
            (user_id,),
        ).fetchall()
        return [_career_record_from_row(row) for row in rows]

    def upsert_career_progress(self, record: CareerProgressRecord) -> None:
        """Insert or replace one career record."""
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO career_progress (
                    profile_id,
                    career_id,
                    status,
                    score,
                    started_at,
                    completed_at,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(profile_id, career_id) DO UPDATE SET
                    status = excluded.status,
                    score = excluded.score,
                    completed_at = excluded.completed_at,
                    updated_at = excluded.updated_at
                """,
                (
                    record.user_id,
                    record.career_id,
                    record.status.value,
                    record.score,
                    record.started_at,
                    record.completed_at,
                    _now(),
                ),
            )

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _profile_from_row(row: sqlite3.Row) -> ProfileAggregate:
    return ProfileAggregate(
        id=int(row["id"]),
        name=str(row["name"]),
        total_score=int(row["total_score"]),
        experience=int(row["experience"]),
        level=int(row["level"]),
    )


def _challenge_record_from_row(row: sqlite3.Row) -> ChallengeProgressRecord:
    return ChallengeProgressRecord(
        user_id=int(row["profile_id"]),
        challenge_id=str(row["challenge_id"]),
        status=ProgressStatus(row["status"]),
        score=int(row["score"]),
        best_score=int(row["best_score"]),
        attempts=int(row["attempts"]),
        completed_at=_optional_text(row["completed_at"]),
    )


def _career_record_from_row(row: sqlite3.Row) -> CareerProgressRecord:
    return CareerProgressRecord(
        user_id=int(row["profile_id"]),
        career_id=str(row["career_id"]),
        status=ProgressStatus(row["status"]),
        score=int(row["score"]),
        started_at=str(row["started_at"]),
        completed_at=_optional_text(row["completed_at"]),
    )


def _optional_text(value: Any) -> str | None:
    return str(value) if value is not None else None
