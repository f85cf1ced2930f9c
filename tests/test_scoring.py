import random
from typing import Any

import pytest

from careerquest.content_loader import load_careers
from careerquest.models import ChallengeDefinition
from careerquest.scoring import (
    ARCHETYPES,
    average_rounds,
    clamp_score,
    new_session,
    round_half_up,
    score_session,
    stars_for,
    story_crafter_feedback,
    system_design_metrics,
    validate_config,
)


def test_round_half_up_and_clamp() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(67.49) == 67
    assert clamp_score(-12) == 0
    assert clamp_score(140) == 100
    assert average_rounds([]) == 0
    assert average_rounds([97, 38]) == 68


def test_stars_thresholds() -> None:
    assert [stars_for(score) for score in (100, 90, 89, 70, 69, 50, 49, 0)] == [3, 3, 2, 2, 1, 1, 0, 0]


def test_cooking_averages_over_cooked_dishes() -> None:
    session = new_session(
        "cooking",
        {
            "dishes": [
                {"name": "Steak", "cook_time": 12, "ideal_temp": 63},
                {"name": "Salmon", "cook_time": 8, "ideal_temp": 58},
                {"name": "Pasta", "cook_time": 10, "ideal_temp": 75},
            ]
        },
    )
    assert score_session("cooking", session) == 0

    session.stop_cooking(12, 63)
    session.stop_cooking(10, 60)
    # (100 + 86) / 2; the third dish was never cooked.
    assert score_session("cooking", session) == 93


def test_order_taking_weights_by_difficulty() -> None:
    session = new_session(
        "order_taking",
        {
            "orders": [
                {"items": ["Salmon"], "requests": ["Well-done"], "difficulty": "easy"},
                {"items": ["Steak", "Cake"], "requests": [], "difficulty": "medium"},
                {"items": ["Pasta"], "requests": ["Gluten-free"], "difficulty": "hard"},
            ]
        },
    )
    assert session.recall(["Salmon"], ["Well-done"]) is True
    assert session.recall(["Steak"], []) is False
    assert score_session("order_taking", session) == 40


def test_plate_presentation_balance_and_capacity() -> None:
    items = {
        "steak": "protein",
        "chicken": "protein",
        "broccoli": "vegetable",
        "rice": "starch",
        "potato": "starch",
        "herb": "garnish",
        "lemon": "garnish",
    }
    session = new_session("plate_presentation", {"items": items})
    session.toggle("steak")
    assert score_session("plate_presentation", session) == 25

    for item in items:
        session.toggle(item)
    # steak was toggled off, six of the remaining seven fit on the plate.
    assert len(session.selected) == 6
    assert "steak" not in session.selected
    assert score_session("plate_presentation", session) == 100


def test_emergency_room_only_fills_free_beds() -> None:
    session = new_session("emergency_room", {})
    assert session.free_beds() == ["b1", "b2", "b3"]
    assert session.place("p1", "b1") is True
    assert session.place("p2", "b1") is False
    assert session.place("p2", "b3") is True
    assert session.place("p2", "b2") is False
    assert session.place("p9", "b2") is False
    assert session.discharge("b1") is True
    assert session.discharge("b1") is False
    assert session.discharge("b2") is False
    # critical->trauma 20, urgent->triage 5, one discharge 10
    assert score_session("emergency_room", session) == 35

    for _ in range(6):
        session.place("p3", "b1")
    assert len(session.placements) == 3


def test_emergency_room_walk_ins_and_clamp() -> None:
    config = {
        "beds": [{"id": "t", "type": "trauma"}],
        "patients": [],
        "arrivals": ["critical", "critical", "critical", "critical"],
    }
    session = new_session("emergency_room", config)
    assert session.waiting == {}
    while session.arrivals:
        patient = session.admit_arrival()
        assert patient is not None
        assert session.place(patient, "t") is True
        assert session.discharge("t") is True
    assert session.admit_arrival() is None
    assert session.shift_over is True
    # four rounds of 20 + 10
    assert score_session("emergency_room", session) == 100


def test_emergency_room_waiting_room_capacity() -> None:
    session = new_session("emergency_room", {"arrivals": ["stable", "stable", "stable"]})
    assert session.admit_arrival() == "walk-in-1"
    assert session.admit_arrival() == "walk-in-2"
    assert session.admit_arrival() is None
    assert session.arrivals == ["stable"]


def test_emergency_room_rejects_bad_beds_and_patients() -> None:
    with pytest.raises(ValueError, match="bed type"):
        validate_config("emergency_room", {"beds": [{"id": "x", "type": "closet"}]})
    with pytest.raises(ValueError, match="severity"):
        validate_config("emergency_room", {"patients": [{"id": "p", "severity": "bored"}]})
    with pytest.raises(ValueError, match="Invalid config"):
        validate_config("emergency_room", {"beds": [{"type": "trauma"}]})


def test_symptom_detective_rewards_efficient_correct_diagnoses() -> None:
    session = new_session(
        "symptom_detective",
        {"patients": [{"diagnosis": "flu"}, {"diagnosis": "migraine"}], "exam_actions": ["vitals", "lungs"]},
    )
    session.examine("vitals")
    session.examine("vitals")
    session.examine("lungs")
    session.examine("xray")
    assert session.diagnose("flu") is True
    assert session.diagnoses[0].actions_used == 2
    assert session.diagnose("tension") is False
    assert session.diagnose("extra") is None
    assert score_session("symptom_detective", session) == 55


def test_treatment_planner_requires_coverage_and_lifestyle_first() -> None:
    config = {
        "cases": [
            {"treatments": {"a": "medication", "b": "lifestyle", "c": "lifestyle"}, "required": ["a", "b", "c"]},
            {"treatments": {"a": "medication", "b": "lifestyle"}, "required": ["a", "b"]},
        ]
    }
    session = new_session("treatment_planner", config)
    for treatment in ("b", "a", "c"):
        session.add(treatment)
    session.submit_plan()
    session.add("a")
    session.submit_plan()
    assert score_session("treatment_planner", session) == 60


def test_treatment_planner_rejects_unknown_required_treatment() -> None:
    with pytest.raises(ValueError):
        validate_config("treatment_planner", {"cases": [{"treatments": {"a": "medication"}, "required": ["z"]}]})


def test_algorithm_builder_correctness_and_efficiency() -> None:
    session = new_session(
        "algorithm_builder",
        {"problems": [{"solution": ["loop", "sort", "return"]}, {"solution": ["set", "loop", "return"]}]},
    )
    for block in ("loop", "sort", "return"):
        session.add_block(block)
    session.run()
    session.add_block("set")
    session.run()
    assert score_session("algorithm_builder", session) == 60


def test_algorithm_builder_block_limit() -> None:
    session = new_session("algorithm_builder", {"problems": [{"solution": ["a"]}]})
    for _ in range(12):
        session.add_block("a")
    assert len(session.blocks) == 10
    session.remove_block(0)
    session.remove_block(42)
    assert len(session.blocks) == 9


def test_bug_hunt_penalizes_false_positives() -> None:
    session = new_session("bug_hunt", {"samples": [{"bug_lines": [3]}, {"bug_lines": [2, 5]}]})
    session.flag(3)
    session.flag(4)
    session.flag(4)
    session.submit_sample()
    session.flag(2)
    session.flag(7)
    session.submit_sample()
    assert score_session("bug_hunt", session) == 50


def test_bug_hunt_nothing_submitted_scores_zero() -> None:
    session = new_session("bug_hunt", {"samples": [{"bug_lines": [1]}]})
    assert score_session("bug_hunt", session) == 0


def test_system_design_metrics_and_score() -> None:
    config = {
        "traffic": 100,
        "components": {
            "frontend": {"type": "frontend", "cost": 10},
            "backend": {"type": "backend", "cost": 20},
            "database": {"type": "database", "cost": 25},
        },
    }
    session = new_session("system_design", config)
    assert system_design_metrics(session) == (0, 0, 0)
    assert score_session("system_design", session) == 0

    frontend = session.place("frontend")
    backend = session.place("backend")
    database = session.place("database")
    assert session.place("mainframe") is None
    session.connect(frontend, backend)
    session.connect(backend, database)
    session.connect(database, database)

    assert system_design_metrics(session) == (30, 45, 13)
    assert score_session("system_design", session) == 59


def test_courtroom_arguments_logic_and_persuasion() -> None:
    case = {
        "precedent": "miranda",
        "points": {"a": 0, "b": 1, "c": 2},
        "persuasion": {"logical": 90, "emotional": 60},
    }
    session = new_session("courtroom_arguments", {"cases": [case, case]})
    session.cite("miranda")
    for point in ("a", "b", "c"):
        session.add_point(point)
    session.choose_closing("logical")
    first = session.present()
    assert first is not None and first.precedent_correct

    session.cite("mapp")
    for point in ("b", "a", "c"):
        session.add_point(point)
    session.choose_closing("emotional")
    session.present()
    # (30 + 40 + 27) and (0 + 20 + 18)
    assert score_session("courtroom_arguments", session) == 68


def test_cross_examination_tracks_credibility() -> None:
    config = {
        "witnesses": [
            {
                "statements": [
                    {"id": 1, "contradiction": False},
                    {"id": 2, "contradiction": True},
                    {"id": 3, "contradiction": False},
                    {"id": 4, "contradiction": True},
                ],
                "pairs": [[2, 4]],
            }
        ]
    }
    session = new_session("cross_examination", config)
    session.ask("clarifying", 80)
    session.ask("challenging", 60)
    session.ask("shouting", 100)
    assert session.credibility == 75
    assert session.pair(1, 3) is False
    assert session.pair(4, 2) is True
    session.complete_witness()
    assert score_session("cross_examination", session) == 86


def test_evidence_detective_sorting() -> None:
    session = new_session(
        "evidence_detective",
        {"cases": [{"evidence": {"a": True, "b": False, "c": True, "d": False}}]},
    )
    assert session.sort("a", True) is True
    assert session.sort("b", True) is False
    assert session.sort("b", False) is None
    assert session.sort("c", True) is True
    session.submit_case()
    assert score_session("evidence_detective", session) == 58


def test_fact_check_verification_rules() -> None:
    session = new_session(
        "fact_check",
        {
            "claims": [
                {"true": True},
                {"true": False},
                {"true": True, "needs_verification": True},
                {"true": False, "needs_verification": True},
            ]
        },
    )
    session.inspect_source()
    assert session.judge("true") is True
    assert session.judge("true") is False
    assert session.judge("false") is False
    assert session.judge("verify") is True
    assert session.judge("true") is None
    # 2/4 * 85 + one source bonus
    assert score_session("fact_check", session) == 48


def test_interview_master_unlocks_follow_ups() -> None:
    config = {
        "interviews": [
            {
                "key_facts_needed": 2,
                "questions": {
                    "q1": {"type": "opening", "opens": ["q3"], "rapport": 10},
                    "q2": {"type": "opening", "reveals_fact": True, "rapport": -5},
                    "q3": {"type": "follow-up", "reveals_fact": True, "rapport": 5},
                },
            },
            {
                "key_facts_needed": 1,
                "questions": {"q1": {"type": "opening", "rapport": 10}},
            },
        ]
    }
    session = new_session("interview_master", config)
    assert session.available_questions() == ["q1", "q2"]
    assert session.ask("q3") is False
    session.ask("q1")
    assert "q3" in session.available_questions()
    assert session.ask("q3") is True
    assert session.ask("q2") is True
    first = session.complete_interview()
    assert first is not None
    assert (first.facts, first.follow_ups, first.rapport) == (2, 1, 80)

    session.ask("q1")
    session.complete_interview()
    # round one: 100 + 5 + 8, round two: 0 + 0 + 8
    assert score_session("interview_master", session) == 61


def test_story_crafter_feedback_and_score() -> None:
    config = {
        "headlines": {"h1": 95, "h2": 40},
        "facts": {"f1": "lede", "f2": "body", "f3": "body", "f4": "conclusion"},
        "quotes": ["mayor"],
    }
    session = new_session("story_crafter", config)
    assert story_crafter_feedback(session) == (0, 0, 0)
    assert score_session("story_crafter", session) == 0

    session.choose_headline("h1")
    session.place_fact("f1", "lede")
    session.place_fact("f2", "body")
    session.place_fact("f3", "body")
    session.place_fact("f4", "body")
    session.place_fact("f4", "conclusion")
    session.place_quote("mayor", "body")
    session.place_quote("ghost", "body")

    assert story_crafter_feedback(session) == (72, 48, 90)
    assert score_session("story_crafter", session) == 70


def test_registry_covers_all_archetypes() -> None:
    assert set(ARCHETYPES) == {
        "cooking",
        "order_taking",
        "plate_presentation",
        "emergency_room",
        "symptom_detective",
        "treatment_planner",
        "algorithm_builder",
        "bug_hunt",
        "system_design",
        "courtroom_arguments",
        "cross_examination",
        "evidence_detective",
        "fact_check",
        "interview_master",
        "story_crafter",
    }


def test_unknown_archetype_and_bad_config_raise_value_error() -> None:
    with pytest.raises(ValueError, match="Unknown challenge archetype"):
        validate_config("juggling", {})
    with pytest.raises(ValueError):
        validate_config("cooking", {})
    with pytest.raises(ValueError, match="Invalid config"):
        validate_config("cooking", {"dishes": [{"name": "Soup"}]})
    with pytest.raises(ValueError):
        validate_config("plate_presentation", {"items": {"steak": "dessert"}})


BUNDLED_CHALLENGES = [challenge for career in load_careers().values() for challenge in career.challenges]


@pytest.mark.parametrize("challenge", BUNDLED_CHALLENGES, ids=lambda challenge: challenge.id)
def test_bundled_challenge_empty_session_scores_in_range(challenge: ChallengeDefinition) -> None:
    score = score_session(challenge.archetype, new_session(challenge.archetype, challenge.config))
    assert isinstance(score, int)
    assert 0 <= score <= 100


def _pick(rng: random.Random, values: Any) -> Any:
    values = sorted(values)
    return rng.choice(values) if values else "unknown"


def _step_cooking(session: Any, rng: random.Random) -> None:
    session.stop_cooking(rng.randint(-5, 40), rng.uniform(-20, 200))


def _step_order_taking(session: Any, rng: random.Random) -> None:
    items = sorted({item for order in session.orders for item in order.items})
    requests = sorted({item for order in session.orders for item in order.requests})
    session.recall(rng.sample(items, rng.randint(0, len(items))), rng.sample(requests, rng.randint(0, len(requests))))


def _step_plate_presentation(session: Any, rng: random.Random) -> None:
    session.toggle(_pick(rng, [*session.catalog, "truffle"]))


def _step_emergency_room(session: Any, rng: random.Random) -> None:
    action = rng.randrange(3)
    if action == 0:
        session.admit_arrival()
    elif action == 1:
        session.place(_pick(rng, [*session.waiting, "ghost"]), _pick(rng, [*session.beds, "hallway"]))
    else:
        session.discharge(_pick(rng, session.beds))


def _step_symptom_detective(session: Any, rng: random.Random) -> None:
    if rng.random() < 0.6:
        session.examine(_pick(rng, [*session.exam_actions, "x-ray"]))
    else:
        session.diagnose(_pick(rng, session.answers))


def _step_treatment_planner(session: Any, rng: random.Random) -> None:
    case = session.current_case
    treatments = list(case.treatments) if case is not None else []
    action = rng.randrange(3)
    if action == 0:
        session.add(_pick(rng, treatments))
    elif action == 1:
        session.remove(_pick(rng, treatments))
    else:
        session.submit_plan()


def _step_algorithm_builder(session: Any, rng: random.Random) -> None:
    blocks = sorted({block for solution in session.solutions for block in solution})
    action = rng.randrange(4)
    if action < 2:
        session.add_block(_pick(rng, blocks))
    elif action == 2:
        session.remove_block(rng.randint(-1, 10))
    else:
        session.run()


def _step_bug_hunt(session: Any, rng: random.Random) -> None:
    if rng.random() < 0.7:
        session.flag(rng.randint(1, 12))
    else:
        session.submit_sample()


def _step_system_design(session: Any, rng: random.Random) -> None:
    if rng.random() < 0.5:
        session.place(_pick(rng, [*session.catalog, "mainframe"]))
    else:
        session.connect(rng.randint(-1, 8), rng.randint(-1, 8))


def _step_courtroom_arguments(session: Any, rng: random.Random) -> None:
    case = session.current_case
    action = rng.randrange(5)
    if case is None or action == 4:
        session.present()
    elif action == 0:
        session.cite(_pick(rng, [item.precedent for item in session.cases]))
    elif action == 1:
        session.add_point(_pick(rng, case.positions))
    elif action == 2:
        session.remove_point(rng.randint(-1, 3))
    else:
        session.choose_closing(_pick(rng, [*case.persuasion, "rambling"]))


def _step_cross_examination(session: Any, rng: random.Random) -> None:
    action = rng.randrange(3)
    if action == 0:
        session.ask(_pick(rng, ["clarifying", "challenging", "leading", "rhetorical"]), rng.randint(0, 100))
    elif action == 1:
        session.pair(rng.randint(1, 10), rng.randint(1, 10))
    else:
        session.complete_witness()


def _step_evidence_detective(session: Any, rng: random.Random) -> None:
    if rng.random() < 0.7:
        keys = [key for case in session.cases for key in case]
        session.sort(_pick(rng, keys), rng.random() < 0.5)
    else:
        session.submit_case()


def _step_fact_check(session: Any, rng: random.Random) -> None:
    if rng.random() < 0.3:
        session.inspect_source()
    else:
        session.judge(_pick(rng, ["true", "false", "verify", "maybe"]))


def _step_interview_master(session: Any, rng: random.Random) -> None:
    if rng.random() < 0.7:
        session.ask(_pick(rng, [*session.available_questions(), "q9"]))
    else:
        session.complete_interview()


def _step_story_crafter(session: Any, rng: random.Random) -> None:
    action = rng.randrange(4)
    section = _pick(rng, ["lede", "body", "conclusion", "sidebar"])
    if action == 0:
        session.choose_headline(_pick(rng, session.headlines))
    elif action == 1:
        session.place_fact(_pick(rng, session.fact_categories), section)
    elif action == 2:
        session.place_quote(_pick(rng, session.quote_ids), section)
    else:
        session.remove_fact(_pick(rng, session.fact_categories))


RANDOM_STEPS = {
    "cooking": _step_cooking,
    "order_taking": _step_order_taking,
    "plate_presentation": _step_plate_presentation,
    "emergency_room": _step_emergency_room,
    "symptom_detective": _step_symptom_detective,
    "treatment_planner": _step_treatment_planner,
    "algorithm_builder": _step_algorithm_builder,
    "bug_hunt": _step_bug_hunt,
    "system_design": _step_system_design,
    "courtroom_arguments": _step_courtroom_arguments,
    "cross_examination": _step_cross_examination,
    "evidence_detective": _step_evidence_detective,
    "fact_check": _step_fact_check,
    "interview_master": _step_interview_master,
    "story_crafter": _step_story_crafter,
}


def test_random_steps_cover_every_archetype() -> None:
    assert set(RANDOM_STEPS) == set(ARCHETYPES)


@pytest.mark.parametrize("challenge", BUNDLED_CHALLENGES, ids=lambda challenge: challenge.id)
def test_random_play_always_scores_in_range(challenge: ChallengeDefinition) -> None:
    step = RANDOM_STEPS[challenge.archetype]
    for seed in range(20):
        rng = random.Random(seed)
        session = new_session(challenge.archetype, challenge.config)
        for _ in range(rng.randint(0, 80)):
            step(session, rng)
        score = score_session(challenge.archetype, session)
        assert 0 <= score <= 100, (challenge.id, seed, score)
