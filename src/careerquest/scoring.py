"""Scoring functions and the archetype registry.

Every scoring function maps a finished play session to an integer in
``[0, 100]``. They are pure and total: degenerate sessions (nothing selected,
no rounds played) score low instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from .models import MAX_SCORE
from .sessions import (
    ORDER_POINTS,
    PLATE_CATEGORIES,
    AlgorithmBuilderSession,
    BugHuntSession,
    CookingSession,
    CourtroomArgumentsSession,
    CrossExaminationSession,
    EmergencyRoomSession,
    EvidenceDetectiveSession,
    FactCheckSession,
    InterviewMasterSession,
    OrderTakingSession,
    PlatePresentationSession,
    PlaySession,
    StoryCrafterSession,
    SymptomDetectiveSession,
    SystemDesignSession,
    TreatmentPlannerSession,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Clamp a raw score into the valid ``[0, 100]`` range."""
    return max(0, min(MAX_SCORE, round_half_up(value)))


def average_rounds(scores: Iterable[int]) -> int:
    """Average per-round scores over the rounds actually played."""
    values = list(scores)
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def stars_for(score: int) -> int:
    """Return the 0-3 star rating shown on the completion screen."""
    if score >= 90:
        return 3
    if score >= 70:
        return 2
    if score >= 50:
        return 1
    return 0


# --- culinary -----------------------------------------------------------------


def score_cooking(session: CookingSession) -> int:
    rounds: list[int] = []
    for dish in session.cooked:
        time_score = max(0.0, 50 - abs(dish.elapsed - dish.target_time) * 5)
        temp_score = max(0.0, 50 - abs(dish.temperature - dish.ideal_temp) * 2)
        rounds.append(round_half_up(time_score + temp_score))
    return clamp_score(average_rounds(rounds))


def score_order_taking(session: OrderTakingSession) -> int:
    possible = sum(ORDER_POINTS[order.difficulty] for order in session.recalled)
    if possible == 0:
        return 0
    earned = sum(ORDER_POINTS[order.difficulty] for order in session.recalled if order.correct)
    return clamp_score(earned / possible * 100)


def score_plate_presentation(session: PlatePresentationSession) -> int:
    categories = session.selected_categories()
    balance = len(set(categories) & set(PLATE_CATEGORIES)) * 20
    variety = min(len(categories) * 5, 20)
    return clamp_score(balance + variety)


# --- health -------------------------------------------------------------------

_IDEAL_BEDS = {"critical": ("trauma", 20), "urgent": ("exam", 15), "stable": ("triage", 10)}
MISPLACED_POINTS = 5
DISCHARGE_POINTS = 10


def score_emergency_room(session: EmergencyRoomSession) -> int:
    total = 0
    for severity, bed_type in session.placements:
        ideal_bed, points = _IDEAL_BEDS[severity]
        total += points if bed_type == ideal_bed else MISPLACED_POINTS
    total += session.discharges * DISCHARGE_POINTS
    return clamp_score(total)


def score_symptom_detective(session: SymptomDetectiveSession) -> int:
    rounds: list[int] = []
    for diagnosis in session.diagnoses:
        if not diagnosis.correct:
            # Partial credit for committing to an answer.
            rounds.append(20)
            continue
        efficiency = max(0, 100 - diagnosis.actions_used * 10)
        speed_bonus = max(0, 20 - diagnosis.actions_used * 2)
        rounds.append(round_half_up(min(100, 50 + efficiency * 0.3 + speed_bonus)))
    return clamp_score(average_rounds(rounds))


def _score_treatment_case(steps: tuple[tuple[str, str], ...], required: tuple[str, ...]) -> int:
    planned_ids = {treatment_id for treatment_id, _ in steps}
    types = [treatment_type for _, treatment_type in steps]
    case_score = 20
    if all(item in planned_ids for item in required):
        case_score += 50
    if "lifestyle" in types and "medication" in types and types.index("lifestyle") <= types.index("medication"):
        case_score += 30
    if len(steps) > len(required) + 1:
        case_score -= 10
    return clamp_score(case_score)


def score_treatment_planner(session: TreatmentPlannerSession) -> int:
    return clamp_score(average_rounds(_score_treatment_case(case.steps, case.required) for case in session.planned))


# --- information technology ---------------------------------------------------


def score_algorithm_builder(session: AlgorithmBuilderSession) -> int:
    rounds: list[int] = []
    for program in session.programs:
        correct = program.blocks == program.solution
        correctness = 50 if correct else 0
        efficiency = max(0, 30 - abs(len(program.blocks) - len(program.solution)) * 5)
        elegance = 20 if correct else 0
        rounds.append(correctness + efficiency + elegance)
    return clamp_score(average_rounds(rounds))


def score_bug_hunt(session: BugHuntSession) -> int:
    total_bugs = sum(len(sample.bugs) for sample in session.hunted)
    if total_bugs == 0:
        return 0
    found = sum(len(sample.flagged & sample.bugs) for sample in session.hunted)
    false_positives = sum(len(sample.flagged - sample.bugs) for sample in session.hunted)
    return clamp_score((found * 10 - false_positives * 5) / (total_bugs * 10) * 100)


def system_design_metrics(session: SystemDesignSession) -> tuple[int, int, int]:
    """Return ``(speed, cost, reliability)`` for the current architecture."""
    placed = session.placed
    if not placed:
        return (0, 0, 0)
    types = {component.type for component in placed}

    cost = max(0, 100 - sum(component.cost for component in placed))

    speed = 50.0
    if "loadbalancer" in types:
        speed += 20
    if "cache" in types:
        speed += 20
    if "api" in types:
        speed += 10
    speed = max(0.0, speed - session.traffic / 5)

    average_connections = sum(len(component.connections) for component in placed) / len(placed)
    reliability = average_connections * 20
    if len(placed) >= 5:
        reliability += 20
    reliability = min(100.0, reliability)

    return (round_half_up(speed), cost, round_half_up(reliability))


def score_system_design(session: SystemDesignSession) -> int:
    speed, cost, reliability = system_design_metrics(session)
    types = {component.type for component in session.placed}
    total = 30.0 if {"frontend", "backend", "database"} <= types else 0.0
    total += min(40, sum(len(component.connections) * 10 for component in session.placed))
    total += (speed + cost + reliability) / 3 * 0.3
    return clamp_score(total)


# --- law ----------------------------------------------------------------------


def score_courtroom_arguments(session: CourtroomArgumentsSession) -> int:
    rounds: list[int] = []
    for case in session.presented:
        precedent = 30 if case.precedent_correct else 0
        complete = len(case.positions) == case.total_points and case.total_points > 0
        if complete and list(case.positions) == sorted(case.positions):
            logic = 40
        elif complete:
            logic = 20
        else:
            logic = 0
        persuasion = round_half_up(case.effectiveness * 0.3) if case.effectiveness is not None else 0
        rounds.append(precedent + logic + persuasion)
    return clamp_score(average_rounds(rounds))


def score_cross_examination(session: CrossExaminationSession) -> int:
    rounds: list[int] = []
    for witness in session.examined:
        contradictions = round_half_up(min(witness.found, witness.total) / witness.total * 50) if witness.total else 0
        questions = (
            round_half_up(sum(witness.effectiveness) / len(witness.effectiveness) * 0.3) if witness.effectiveness else 0
        )
        composure = round_half_up(witness.credibility / 100 * 20)
        rounds.append(contradictions + questions + composure)
    return clamp_score(average_rounds(rounds))


def score_evidence_detective(session: EvidenceDetectiveSession) -> int:
    evidence = sum(case.evidence_count for case in session.sorted_cases)
    if evidence == 0:
        return 0
    correct = sum(case.correct for case in session.sorted_cases)
    incorrect = sum(case.incorrect for case in session.sorted_cases)
    base = round_half_up(correct / evidence * 80)
    bonus = max(0, 20 - incorrect * 2)
    return clamp_score(base + bonus)


# --- media --------------------------------------------------------------------


def score_fact_check(session: FactCheckSession) -> int:
    if not session.verdicts:
        return 0
    correct = sum(1 for verdict in session.verdicts if verdict.correct)
    source_bonus = sum(5 for verdict in session.verdicts if verdict.used_source)
    base = round_half_up(correct / len(session.verdicts) * 85)
    return clamp_score(base + source_bonus)


def score_interview_master(session: InterviewMasterSession) -> int:
    rounds: list[int] = []
    for interview in session.interviews:
        coverage = min(1.0, interview.facts / interview.facts_needed) if interview.facts_needed else 0.0
        facts = round_half_up(coverage * 20) * 5
        follow_ups = min(10, interview.follow_ups * 5)
        rapport = round_half_up(interview.rapport / 100 * 10)
        rounds.append(facts + follow_ups + rapport)
    return clamp_score(average_rounds(rounds))


def story_crafter_feedback(session: StoryCrafterSession) -> tuple[int, int, int]:
    """Return the editor's ``(engagement, clarity, accuracy)`` ratings."""
    headline = session.headlines.get(session.headline, 0) if session.headline is not None else 0

    def has_category(section: str, category: str) -> bool:
        return any(session.fact_categories[item] == category for item in session.facts[section])

    structure = 0
    if has_category("lede", "lede"):
        structure += 15
    if len(session.facts["body"]) >= 2:
        structure += 15
    if has_category("conclusion", "conclusion"):
        structure += 10

    quotes = min(30, sum(len(items) for items in session.quotes.values()) * 10)
    placed_facts = sum(len(items) for items in session.facts.values())

    engagement = round_half_up(headline * 0.3 + structure + quotes * 0.3)
    clarity = round_half_up(structure * 1.2)
    if placed_facts >= 4:
        accuracy = 90
    elif placed_facts > 0:
        accuracy = 70
    else:
        accuracy = 0
    return (engagement, clarity, accuracy)


def score_story_crafter(session: StoryCrafterSession) -> int:
    engagement, clarity, accuracy = story_crafter_feedback(session)
    return clamp_score((engagement + clarity + accuracy) / 3)


# --- registry -----------------------------------------------------------------


@dataclass(frozen=True)
class Archetype:
    """Binds an archetype tag to its session shape and scoring function."""

    tag: str
    new_session: Callable[[dict[str, Any]], Any]
    score: Callable[[Any], int]


ARCHETYPES: dict[str, Archetype] = {
    archetype.tag: archetype
    for archetype in (
        Archetype("cooking", CookingSession.from_config, score_cooking),
        Archetype("order_taking", OrderTakingSession.from_config, score_order_taking),
        Archetype("plate_presentation", PlatePresentationSession.from_config, score_plate_presentation),
        Archetype("emergency_room", EmergencyRoomSession.from_config, score_emergency_room),
        Archetype("symptom_detective", SymptomDetectiveSession.from_config, score_symptom_detective),
        Archetype("treatment_planner", TreatmentPlannerSession.from_config, score_treatment_planner),
        Archetype("algorithm_builder", AlgorithmBuilderSession.from_config, score_algorithm_builder),
        Archetype("bug_hunt", BugHuntSession.from_config, score_bug_hunt),
        Archetype("system_design", SystemDesignSession.from_config, score_system_design),
        Archetype("courtroom_arguments", CourtroomArgumentsSession.from_config, score_courtroom_arguments),
        Archetype("cross_examination", CrossExaminationSession.from_config, score_cross_examination),
        Archetype("evidence_detective", EvidenceDetectiveSession.from_config, score_evidence_detective),
        Archetype("fact_check", FactCheckSession.from_config, score_fact_check),
        Archetype("interview_master", InterviewMasterSession.from_config, score_interview_master),
        Archetype("story_crafter", StoryCrafterSession.from_config, score_story_crafter),
    )
}


def get_archetype(tag: str) -> Archetype:
    """Return a registered archetype or raise ``ValueError``."""
    archetype = ARCHETYPES.get(tag)
    if archetype is None:
        raise ValueError(f"Unknown challenge archetype '{tag}'.")
    return archetype


def validate_config(tag: str, config: dict[str, Any]) -> None:
    """Raise ``ValueError`` when a challenge config cannot build a session."""
    archetype = get_archetype(tag)
    try:
        archetype.new_session(config)
    except (AttributeError, KeyError, TypeError) as exc:
        raise ValueError(f"Invalid config for archetype '{tag}': {exc}") from exc


def new_session(tag: str, config: dict[str, Any]) -> PlaySession:
    """Create an empty play session for an archetype."""
    return get_archetype(tag).new_session(config)


def score_session(tag: str, session: PlaySession) -> int:
    """Score a finished session with its archetype's scoring function."""
    return get_archetype(tag).score(session)
