"""CLI entrypoint for the career challenge progression app."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from pathlib import Path

from .orchestrator import CompletionOutcome
from .play import play_round
from .service import CareerService

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
MENU_QUIT_COMMANDS = {"q"}
MENU_BACK_COMMANDS = {"b"}
DEFAULT_DB_PATH = Path(".careerquest") / "progress.db"

logger = logging.getLogger(__name__)


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(db_path: Path | str = DEFAULT_DB_PATH) -> CareerService:
    """Create app service with local database path."""
    return CareerService(db_path=db_path)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="careerquest", description="Career challenge progression")
    parser.add_argument("command", nargs="?", default="play", choices=["play"])
    parser.add_argument("--db", type=Path, default=DEFAULT_DB_PATH, help="SQLite database path")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.debug("Using database %s", args.db)
    return play_shell(db_path=args.db)


def play_shell(input_fn: InputFn = input, print_fn: PrintFn = print, db_path: Path | str = DEFAULT_DB_PATH) -> int:
    """Run persistent menu-driven shell."""
    service = _service(db_path)
    try:
        selected = _select_profile(service, input_fn, print_fn)
        if selected is None:
            return 0
        profile_id, profile_name = selected
        try:
            while True:
                print_fn("\n=== Career Islands ===")
                print_fn(f"Profile: {profile_name}")
                print_fn("1) Explore careers")
                print_fn("2) Profile")
                print_fn("3) Leaderboard")
                print_fn("b) Back")
                print_fn("q) Quit")
                choice = input_fn("Choose: ").strip().lower()

                if choice == "1":
                    _careers_flow(service, profile_id, input_fn, print_fn)
                elif choice == "2":
                    _profile_flow(service, profile_id, print_fn)
                elif choice == "3":
                    _leaderboard_flow(service, print_fn)
                elif choice in MENU_BACK_COMMANDS:
                    switched = _select_profile(service, input_fn, print_fn)
                    if switched is None:
                        return 0
                    profile_id, profile_name = switched
                elif choice in MENU_QUIT_COMMANDS:
                    return 0
                else:
                    print_fn("Invalid choice.")
        except QuitApp:
            return 0
    finally:
        service.close()


def _select_profile(service: CareerService, input_fn: InputFn, print_fn: PrintFn) -> tuple[int, str] | None:
    """Select existing profile or create new one."""
    while True:
        profiles = service.list_profiles()
        print_fn("\n=== Profiles ===")
        if profiles:
            for idx, profile in enumerate(profiles, start=1):
                print_fn(f"{idx}) {profile.name} (level {profile.level}, {profile.total_score} pts)")
        else:
            print_fn("No profiles yet.")
        print_fn("n) New profile")
        print_fn("d) Delete profile")
        print_fn("q) Quit")

        choice = input_fn("Select profile: ").strip().lower()
        if choice in MENU_QUIT_COMMANDS:
            return None
        if choice == "n":
            name = input_fn("New profile name: ").strip()
            if not name:
                print_fn("Profile name is required.")
                continue
            try:
                created = service.create_profile(name)
            except Exception:
                logger.debug("Profile creation failed for %r", name, exc_info=True)
                print_fn("Could not create profile (name may already exist).")
                continue
            return (created.id, created.name)
        if choice == "d":
            _delete_profile_flow(service, input_fn, print_fn)
            continue

        if choice.isdigit():
            index = int(choice) - 1
            if 0 <= index < len(profiles):
                selected = profiles[index]
                return (selected.id, selected.name)

        print_fn("Invalid profile selection.")


def _delete_profile_flow(service: CareerService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Delete a profile with explicit confirmation safeguard."""
    profiles = service.list_profiles()
    if not profiles:
        print_fn("No profiles available to delete.")
        return

    print_fn("\nDelete profile")
    for idx, profile in enumerate(profiles, start=1):
        print_fn(f"{idx}) {profile.name}")
    print_fn("b) Back")
    choice = input_fn("Choose profile to delete: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if not choice.isdigit():
        print_fn("Invalid choice.")
        return

    index = int(choice) - 1
    if not (0 <= index < len(profiles)):
        print_fn("Invalid choice.")
        return

    target = profiles[index]
    print_fn(f"WARNING: This permanently deletes profile '{target.name}' and all challenge and career progress.")
    confirm = input_fn("Type YES to confirm deletion: ").strip()
    if confirm != "YES":
        print_fn("Deletion cancelled.")
        return
    if service.delete_profile(target.id):
        print_fn(f"Deleted profile '{target.name}'.")
    else:
        print_fn("Profile was not found.")


def _careers_flow(service: CareerService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Pick a career and drill into its challenges."""
    while True:
        states = service.list_career_states(profile_id)
        print_fn("\n=== Careers ===")
        for idx, state in enumerate(states, start=1):
            print_fn(
                f"{idx}) {state.career.title} [{state.status.value}] "
                f"{state.completed_challenges}/{state.total_challenges} challenges, "
                f"{state.score}/{state.max_score} pts"
            )
        print_fn("b) Back")
        print_fn("q) Quit")
        choice = input_fn("Choose career: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp
        if choice.isdigit() and 0 <= int(choice) - 1 < len(states):
            _challenges_flow(service, profile_id, states[int(choice) - 1].career.id, input_fn, print_fn)
            continue
        print_fn("Invalid choice.")


def _challenges_flow(
    service: CareerService,
    profile_id: int,
    career_id: str,
    input_fn: InputFn,
    print_fn: PrintFn,
) -> None:
    """List a career's challenges and play unlocked ones."""
    career = service.careers[career_id]
    while True:
        states = service.list_challenge_states(profile_id, career_id)
        print_fn(f"\n=== {career.title} ===")
        print_fn(career.description)
        for idx, state in enumerate(states, start=1):
            if not state.unlocked:
                detail = "locked"
            elif state.attempts:
                detail = f"best {state.best_score}, {'*' * state.stars or '-'}, {state.attempts} attempts"
            else:
                detail = "new"
            print_fn(f"{idx}) {state.challenge.title} ({detail})")
        print_fn("b) Back")
        print_fn("q) Quit")
        choice = input_fn("Choose challenge: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp
        if not (choice.isdigit() and 0 <= int(choice) - 1 < len(states)):
            print_fn("Invalid choice.")
            continue
        state = states[int(choice) - 1]
        if not state.unlocked:
            print_fn("Complete the previous challenge to unlock this one.")
            continue
        _play_challenge_flow(service, profile_id, state.challenge.id, input_fn, print_fn)


def _play_challenge_flow(
    service: CareerService,
    profile_id: int,
    challenge_id: str,
    input_fn: InputFn,
    print_fn: PrintFn,
) -> None:
    """Play one challenge through its intro, play, and completion screens."""
    challenge = service.get_challenge(challenge_id)
    if challenge is None:
        print_fn("Unknown challenge.")
        return
    outcomes: list[CompletionOutcome] = []
    machine = service.open_challenge(profile_id, challenge_id, on_outcome=outcomes.append)
    while True:
        print_fn(f"\n{challenge.title}")
        print_fn(challenge.description)
        print_fn(f"Time limit: {challenge.time_limit}s. At any prompt, s submits early and x leaves.")
        if input_fn("Press Enter to start (b to go back): ").strip().lower() in MENU_BACK_COMMANDS:
            machine.exit()
            return
        result = play_round(machine, input_fn, print_fn)
        if result is None:
            print_fn("Left the challenge. Nothing was recorded.")
            return
        print_fn(f"Score: {result.score} ({'*' * result.stars or 'no stars'})")
        while True:
            choice = input_fn("c) Continue, r) Try again, x) Exit without saving: ").strip().lower()
            if choice in {"c", "r", "x"}:
                break
            print_fn("Invalid choice.")
        if choice == "r":
            machine.try_again()
            continue
        if choice == "x":
            machine.exit()
            print_fn("Score discarded.")
            return
        machine.proceed()
        if outcomes:
            _print_outcome(outcomes[-1], print_fn)
        return


def _print_outcome(outcome: CompletionOutcome, print_fn: PrintFn) -> None:
    if not outcome.challenge_saved:
        print_fn(f"Score {outcome.score} could not be saved. Check the log for details.")
        return
    if outcome.score_delta > 0:
        print_fn(f"+{outcome.score_delta} points")
    else:
        print_fn("No new points (best score not beaten).")
    if outcome.profile is not None:
        print_fn(f"Level {outcome.profile.level}, {outcome.profile.experience} XP")
    if outcome.career_status is not None:
        print_fn(f"Career status: {outcome.career_status.value}")


def _profile_flow(service: CareerService, profile_id: int, print_fn: PrintFn) -> None:
    """Print profile summary and achievements."""
    summary = service.profile_summary(profile_id)
    profile = summary.profile
    print_fn("\n=== Profile ===")
    print_fn(f"Name: {profile.name}")
    print_fn(f"Level: {profile.level} ({summary.level_progress:.0f}% to next)")
    print_fn(f"Experience: {profile.experience}")
    print_fn(f"Total score: {profile.total_score}")
    print_fn(f"Careers completed: {summary.completed_careers}")
    print_fn(f"Challenges completed: {summary.completed_challenges}")
    print_fn(f"Average score: {summary.average_score}")
    print_fn("Achievements:")
    for achievement in summary.achievements:
        mark = "x" if achievement.earned else " "
        print_fn(f"[{mark}] {achievement.title}: {achievement.description}")


def _leaderboard_flow(service: CareerService, print_fn: PrintFn) -> None:
    """Print the leaderboard."""
    entries = service.leaderboard()
    print_fn("\n=== Leaderboard ===")
    if not entries:
        print_fn("No profiles yet.")
        return
    for entry in entries:
        print_fn(f"{entry.rank}. {entry.name} - {entry.total_score} pts (level {entry.level})")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
