"""Lifecycle state machine shared by every mini-game.

``intro -> playing -> complete``, with ``complete -> intro`` for a retry and a
terminal ``closed`` phase reached by proceeding (score handed on) or exiting
(score discarded).
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from .models import ChallengeDefinition
from .scoring import new_session, score_session, stars_for
from .sessions import PlaySession

logger = logging.getLogger(__name__)


class Phase(StrEnum):
    INTRO = "intro"
    PLAYING = "playing"
    COMPLETE = "complete"
    CLOSED = "closed"


class InvalidTransition(RuntimeError):
    """Raised when an action is not allowed in the machine's current phase."""


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Run countdown callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass(frozen=True)
class ChallengeResult:
    """Outcome of one finished play session."""

    challenge_id: str
    score: int
    stars: int
    timed_out: bool


class ChallengeMachine:
    """Drive one mini-game instance through its lifecycle."""

    def __init__(
        self,
        definition: ChallengeDefinition,
        *,
        on_score: Callable[[ChallengeResult], None] | None = None,
        on_proceed: Callable[[ChallengeResult], None] | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.definition = definition
        self._on_score = on_score
        self._on_proceed = on_proceed
        self._scheduler = scheduler or ThreadingScheduler()
        self._clock = clock
        self._lock = threading.RLock()
        self._phase = Phase.INTRO
        self._session: PlaySession | None = None
        self._result: ChallengeResult | None = None
        self._timer: TimerHandle | None = None
        self._deadline: float | None = None
        self._generation = 0

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def session(self) -> PlaySession | None:
        return self._session

    @property
    def result(self) -> ChallengeResult | None:
        return self._result

    def time_remaining(self) -> float:
        """Seconds left on the countdown, or 0 when no session is running."""
        with self._lock:
            if self._phase is not Phase.PLAYING or self._deadline is None:
                return 0.0
            return max(0.0, self._deadline - self._clock())

    def start(self) -> PlaySession:
        """Begin play with a brand-new session and arm the countdown."""
        with self._lock:
            self._require(Phase.INTRO, "start")
            session = new_session(self.definition.archetype, self.definition.config)
            self._session = session
            self._result = None
            self._phase = Phase.PLAYING
            self._generation += 1
            generation = self._generation
            limit = self.definition.time_limit
            self._deadline = self._clock() + limit
            self._timer = self._scheduler.call_later(limit, lambda: self._expire(generation))
            logger.debug("Started challenge %s (limit=%ss)", self.definition.id, limit)
            return session

    def submit(self) -> ChallengeResult:
        """Finish the running session early and score it."""
        with self._lock:
            self._require(Phase.PLAYING, "submit")
            result = self._complete(timed_out=False)
        self._emit(result)
        return result

    def _expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._phase is not Phase.PLAYING:
                # Stale timer from a session that already ended.
                return
            result = self._complete(timed_out=True)
        logger.info("Challenge %s timed out with score %d", self.definition.id, result.score)
        self._emit(result)

    def try_again(self) -> None:
        """Discard the finished session and return to the intro screen."""
        with self._lock:
            self._require(Phase.COMPLETE, "try again")
            self._cancel_timer()
            self._session = None
            self._result = None
            self._phase = Phase.INTRO

    def proceed(self) -> ChallengeResult:
        """Leave the completion screen, handing the score on for progression."""
        with self._lock:
            self._require(Phase.COMPLETE, "proceed")
            result = self._result
            if result is None:
                raise InvalidTransition("No result to hand on.")
            self._close()
        if self._on_proceed is not None:
            self._on_proceed(result)
        return result

    def exit(self) -> None:
        """Abandon the mini-game without scoring or crediting anything."""
        with self._lock:
            if self._phase is Phase.CLOSED:
                raise InvalidTransition("Challenge is already closed.")
            if self._phase is Phase.PLAYING:
                logger.debug("Abandoned challenge %s mid-session", self.definition.id)
            self._close()

    def _complete(self, *, timed_out: bool) -> ChallengeResult:
        self._cancel_timer()
        if self._session is None:
            raise InvalidTransition("No session is running.")
        score = score_session(self.definition.archetype, self._session)
        result = ChallengeResult(
            challenge_id=self.definition.id,
            score=score,
            stars=stars_for(score),
            timed_out=timed_out,
        )
        self._result = result
        self._phase = Phase.COMPLETE
        return result

    def _emit(self, result: ChallengeResult) -> None:
        if self._on_score is not None:
            self._on_score(result)

    def _close(self) -> None:
        self._cancel_timer()
        self._generation += 1
        self._session = None
        self._phase = Phase.CLOSED

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._deadline = None

    def _require(self, expected: Phase, action: str) -> None:
        if self._phase is not expected:
            raise InvalidTransition(f"Cannot {action} while {self._phase.value}.")
