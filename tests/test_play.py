from collections.abc import Callable, Iterable

import pytest

from careerquest.content_loader import load_careers
from careerquest.machine import ChallengeMachine, ChallengeResult, Phase
from careerquest.play import PLAYERS, play_round
from careerquest.scoring import ARCHETYPES


class FakeHandle:
    def cancel(self) -> None:
        pass


class FakeScheduler:
    def __init__(self) -> None:
        self.callbacks: list[Callable[[], None]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        self.callbacks.append(callback)
        return FakeHandle()


def _machine(challenge_id: str, scheduler: FakeScheduler | None = None) -> ChallengeMachine:
    definitions = {
        challenge.id: challenge for career in load_careers().values() for challenge in career.challenges
    }
    return ChallengeMachine(definitions[challenge_id], scheduler=scheduler or FakeScheduler())


def _play(
    challenge_id: str,
    inputs: Iterable[str | Callable[[], str]],
    scheduler: FakeScheduler | None = None,
) -> tuple[ChallengeMachine, ChallengeResult | None, list[str]]:
    machine = _machine(challenge_id, scheduler)
    outputs: list[str] = []
    feed = iter(inputs)

    def input_fn(_: str) -> str:
        item = next(feed)
        return item() if callable(item) else item

    result = play_round(machine, input_fn, outputs.append)
    return machine, result, outputs


def test_every_archetype_has_a_terminal_driver() -> None:
    assert set(PLAYERS) == set(ARCHETYPES)


def test_cooking_plays_every_dish() -> None:
    machine, result, _ = _play("culinary-cooking", ["12", "63", "hot", "8", "58", "11", "75"])
    assert result is not None
    # 100, 100, then one minute late: 45 + 50
    assert result.score == 98
    assert machine.phase is Phase.COMPLETE


def test_order_taking_recall_by_menu_numbers() -> None:
    inputs = ["", "12", "4,1,5", "5,6", "", "7,6,2", "7,2", "", "9,3", "4,1,3"]
    _, result, outputs = _play("culinary-orders", inputs)
    assert result is not None
    # easy and medium right, hard wrong: 50 / 90
    assert result.score == 56
    assert outputs.count("Order correct!") == 2
    assert "That ticket was wrong." in outputs
    assert "Invalid choice." in outputs


def test_emergency_room_beds_and_walk_ins() -> None:
    _, result, outputs = _play("health-er-rush", ["1 1", "1 1", "1 2", "d 1", "2 1", "d 3", "s"])
    assert result is not None
    assert result.score == 65
    assert "That bed is taken." in outputs
    assert "New arrival: walk-in-1 [critical]" in outputs
    assert "That bed is already empty." in outputs


def test_symptom_detective_exams_and_diagnoses() -> None:
    _, result, outputs = _play("health-symptoms", ["2", "6", "d", "1", "d", "4", "9", "d", "3"])
    assert result is not None
    # 90, 20, 100
    assert result.score == 70
    assert "heart: Irregular heartbeat detected" in outputs
    assert "Incorrect. It was pneumonia." in outputs


def test_algorithm_builder_runs_programs() -> None:
    inputs = ["1", "8", "11", "r", "1", "3", "5", "7", "2", "u", "11", "r", "10", "11", "r"]
    _, result, outputs = _play("it-algorithms", inputs)
    assert result is not None
    # 100, 100, then two of six blocks: 0 + 10 + 0
    assert result.score == 70
    assert outputs.count("All tests passed!") == 2
    assert "Tests failed." in outputs


def test_bug_hunt_flags_lines() -> None:
    _, result, outputs = _play("it-bug-hunt", ["42", "3", "n", "4", "7", "n", "n"])
    assert result is not None
    # two bugs found, one false positive, three bugs in total
    assert result.score == 50
    assert "Invalid choice." in outputs
    assert "Found 0/1 bugs." in outputs


def test_courtroom_arguments_cases() -> None:
    _, result, outputs = _play("law-courtroom", ["1", "2,3,1", "1", "2", "1,2,3", "3"])
    assert result is not None
    # 30 + 40 + 27 and 0 + 20 + 21
    assert result.score == 69
    assert "Precedent accepted." in outputs
    assert "Precedent rejected by the judge." in outputs


def test_evidence_detective_rulings() -> None:
    inputs = ["a", "i", "a", "a", "q", "a", "i", "a", "a", "i", "a", "i"]
    _, result, outputs = _play("law-evidence", inputs)
    assert result is not None
    # ten of eleven right, one wrong: 73 + 18
    assert result.score == 91
    assert outputs.count("Overruled.") == 1
    assert "Invalid choice." in outputs


def test_interview_master_follow_ups() -> None:
    _, result, outputs = _play("media-interview", ["1", "2", "1", "n", "2", "1", "n"])
    assert result is not None
    # 100 + 5 + 8 and 50 + 0 + 6
    assert result.score == 85
    assert outputs.count("That's a key fact!") == 3


def test_submit_early_scores_partial_session() -> None:
    _, result, _ = _play("media-fact-check", ["i", "t", "s"])
    assert result is not None
    # one claim answered correctly with the source inspected
    assert result.score == 90


def test_exit_mid_session_closes_without_score() -> None:
    machine, result, _ = _play("media-story", ["h", "3", "x"])
    assert result is None
    assert machine.phase is Phase.CLOSED


def test_countdown_expiry_ends_play() -> None:
    scheduler = FakeScheduler()

    def expire() -> str:
        scheduler.callbacks[0]()
        return "8"

    machine, result, outputs = _play("culinary-cooking", ["12", "63", expire], scheduler)
    assert "Time's up!" in outputs
    assert result is not None
    assert result.timed_out is True
    assert result.score == 100
    assert machine.result == result


@pytest.mark.parametrize("command", ["s", "x"])
def test_every_driver_honours_submit_and_exit(command: str) -> None:
    for career in load_careers().values():
        for challenge in career.challenges:
            machine = _machine(challenge.id)
            result = play_round(machine, lambda _: command, lambda _: None)
            if command == "s":
                assert result is not None
                assert 0 <= result.score <= 100
                assert machine.phase is Phase.COMPLETE
            else:
                assert result is None
                assert machine.phase is Phase.CLOSED
