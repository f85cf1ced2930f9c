"""Terminal renditions of the mini-games, driven through a challenge machine.

Each archetype has a driver that reads player input, applies it to the play
session, and returns when every round has been played. At any prompt ``s``
submits the session early and ``x`` leaves without scoring. When the countdown
expires mid-prompt the machine has already scored the session, and the driver
stops.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .machine import ChallengeMachine, ChallengeResult, InvalidTransition, Phase
from .scoring import system_design_metrics
from .sessions import (
    ARTICLE_SECTIONS,
    PLATE_CAPACITY,
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
    StoryCrafterSession,
    SymptomDetectiveSession,
    SystemDesignSession,
    TreatmentPlannerSession,
)

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
SUBMIT_COMMANDS = {"s"}
EXIT_COMMANDS = {"x"}
VERDICT_KEYS = {"t": "true", "f": "false", "v": "verify"}
CROSS_EXAM_QUESTIONS = (
    ("clarifying", "Can you explain what you meant by that?", 60),
    ("clarifying", "Could you provide more details about that time?", 70),
    ("challenging", "Isn't it true that your statement contradicts your testimony?", 85),
    ("challenging", "That doesn't match your earlier testimony, does it?", 90),
    ("leading", "You were at the scene, weren't you?", 50),
    ("leading", "Isn't it possible you're mistaken?", 60),
)


class SubmitPlay(Exception):
    """Stop interacting and score the session."""


class AbandonPlay(Exception):
    """Leave the mini-game without scoring."""


class Console:
    """Prompt helper that honours the submit and exit commands and the countdown."""

    def __init__(self, machine: ChallengeMachine, input_fn: InputFn, print_fn: PrintFn) -> None:
        self.machine = machine
        self._input_fn = input_fn
        self.out = print_fn

    def ask(self, prompt: str) -> str:
        remaining = int(self.machine.time_remaining())
        raw = self._input_fn(f"[{remaining}s] {prompt} ").strip()
        if self.machine.phase is not Phase.PLAYING:
            raise SubmitPlay
        lowered = raw.lower()
        if lowered in EXIT_COMMANDS:
            raise AbandonPlay
        if lowered in SUBMIT_COMMANDS:
            raise SubmitPlay
        return raw

    def choose(self, prompt: str, options: list[str]) -> int:
        """Print numbered options and return the zero-based index picked."""
        for idx, option in enumerate(options, start=1):
            self.out(f"  {idx}) {option}")
        while True:
            raw = self.ask(prompt)
            if raw.isdigit() and 0 <= int(raw) - 1 < len(options):
                return int(raw) - 1
            self.out("Invalid choice.")

    def pick_many(self, prompt: str, options: list[str]) -> list[int]:
        """Return zero-based indexes picked by comma-separated numbers, in input order."""
        for idx, option in enumerate(options, start=1):
            self.out(f"  {idx}) {option}")
        while True:
            raw = self.ask(f"{prompt} (numbers separated by commas, blank for none):")
            picked = _parse_numbers(raw, len(options))
            if picked is not None:
                return picked
            self.out("Invalid choice.")

    def ask_number(self, prompt: str) -> float:
        while True:
            raw = self.ask(prompt)
            try:
                return float(raw)
            except ValueError:
                self.out("Enter a number.")


def _parse_numbers(raw: str, count: int) -> list[int] | None:
    if not raw:
        return []
    indexes: list[int] = []
    for part in raw.replace(" ", "").split(","):
        if not part.isdigit() or not 0 <= int(part) - 1 < count:
            return None
        indexes.append(int(part) - 1)
    return indexes


def _label(config: dict[str, Any], item_id: str) -> str:
    return str(config.get("labels", {}).get(item_id, item_id))


def _index(raw: str, count: int) -> int | None:
    if raw.isdigit() and 0 <= int(raw) - 1 < count:
        return int(raw) - 1
    return None


# --- culinary -----------------------------------------------------------------


def play_cooking(session: CookingSession, config: dict[str, Any], console: Console) -> None:
    while session.current_dish is not None:
        dish = session.current_dish
        console.out(f"\nDish {len(session.cooked) + 1}/{len(session.dishes)}: {dish.name}")
        console.out(f"Recipe card: {dish.cook_time} min to {dish.ideal_temp:g} C")
        elapsed = console.ask_number("Take it off the heat after how many minutes?")
        temperature = console.ask_number("Core temperature when you stop?")
        session.stop_cooking(int(elapsed), temperature)


def play_order_taking(session: OrderTakingSession, config: dict[str, Any], console: Console) -> None:
    menu = sorted({item for order in session.orders for item in order.items})
    requests = sorted({item for order in session.orders for item in order.requests})
    for number, order in enumerate(session.orders, start=1):
        console.out(f"\nTable {number} ({order.difficulty}) orders: {', '.join(sorted(order.items))}")
        if order.requests:
            console.out(f"Special requests: {', '.join(sorted(order.requests))}")
        console.ask("Memorize the order, then press Enter.")
        console.out("\nThe kitchen needs the ticket.")
        items = [menu[index] for index in console.pick_many("Which dishes?", menu)]
        chosen = [requests[index] for index in console.pick_many("Which special requests?", requests)]
        console.out("Order correct!" if session.recall(items, chosen) else "That ticket was wrong.")


def play_plate_presentation(session: PlatePresentationSession, config: dict[str, Any], console: Console) -> None:
    items = list(session.catalog)
    while True:
        console.out(f"\nPlate ({len(session.selected)}/{PLATE_CAPACITY}): {', '.join(session.selected) or 'empty'}")
        index = console.choose(
            "Toggle an item, or s to serve:",
            [f"{item} ({session.catalog[item]})" for item in items],
        )
        session.toggle(items[index])


# --- health -------------------------------------------------------------------


def play_emergency_room(session: EmergencyRoomSession, config: dict[str, Any], console: Console) -> None:
    conditions = {str(raw["id"]): str(raw.get("condition", "")) for raw in config.get("patients") or []}
    while not session.shift_over:
        if not session.waiting:
            session.admit_arrival()
        patients = list(session.waiting.items())
        beds = list(session.beds.items())
        console.out("\nWaiting room:")
        for idx, (patient_id, severity) in enumerate(patients, start=1):
            condition = conditions.get(patient_id, "")
            console.out(f"  {idx}) {patient_id} [{severity}] {condition}".rstrip())
        console.out("Beds:")
        for idx, (bed_id, bed_type) in enumerate(beds, start=1):
            console.out(f"  {idx}) {bed_type}: {session.occupied.get(bed_id, 'free')}")
        raw = console.ask("Place a patient (patient bed, e.g. 1 2) or discharge (d bed):").lower()
        parts = raw.split()
        if len(parts) == 2 and parts[0] == "d":
            bed = _index(parts[1], len(beds))
            if bed is None:
                console.out("Invalid choice.")
            elif session.discharge(beds[bed][0]):
                console.out("Patient discharged.")
                walk_in = session.admit_arrival()
                if walk_in is not None:
                    console.out(f"New arrival: {walk_in} [{session.waiting[walk_in]}]")
            else:
                console.out("That bed is already empty.")
            continue
        if len(parts) == 2:
            patient = _index(parts[0], len(patients))
            bed = _index(parts[1], len(beds))
            if patient is not None and bed is not None:
                placed = session.place(patients[patient][0], beds[bed][0])
                console.out("Patient placed." if placed else "That bed is taken.")
                continue
        console.out("Invalid choice.")
    console.out("Shift complete.")


def play_symptom_detective(session: SymptomDetectiveSession, config: dict[str, Any], console: Console) -> None:
    patients = config["patients"]
    actions = [str(item) for item in config["exam_actions"]]
    diagnoses = [str(item) for item in config.get("diagnoses") or sorted(set(session.answers))]
    while len(session.diagnoses) < len(session.answers):
        raw_patient = patients[len(session.diagnoses)]
        console.out(f"\nPatient {len(session.diagnoses) + 1}: {raw_patient.get('complaint', '')}".rstrip())
        clues = raw_patient.get("clues", {})
        while True:
            for idx, action in enumerate(actions, start=1):
                console.out(f"  {idx}) {action}")
            raw = console.ask("Run an exam, or d to diagnose:").lower()
            if raw == "d":
                break
            index = _index(raw, len(actions))
            if index is None:
                console.out("Invalid choice.")
                continue
            session.examine(actions[index])
            console.out(f"{actions[index]}: {clues.get(actions[index], 'Nothing remarkable.')}")
        index = console.choose("Your diagnosis:", diagnoses)
        answer = session.answers[len(session.diagnoses)]
        correct = session.diagnose(diagnoses[index])
        console.out("Correct diagnosis!" if correct else f"Incorrect. It was {answer}.")


def play_treatment_planner(session: TreatmentPlannerSession, config: dict[str, Any], console: Console) -> None:
    cases = config["cases"]
    while session.current_case is not None:
        case = session.current_case
        condition = cases[len(session.planned)].get("condition", "")
        console.out(f"\nCase {len(session.planned) + 1}/{len(session.cases)}: {condition}".rstrip())
        treatments = list(case.treatments)
        while True:
            console.out(f"Plan: {' -> '.join(session.plan) or '(empty)'}")
            for idx, treatment in enumerate(treatments, start=1):
                console.out(f"  {idx}) {treatment} ({case.treatments[treatment]})")
            raw = console.ask("Add or remove a treatment, or p to submit the plan:").lower()
            if raw == "p":
                break
            index = _index(raw, len(treatments))
            if index is None:
                console.out("Invalid choice.")
            elif treatments[index] in session.plan:
                session.remove(treatments[index])
            else:
                session.add(treatments[index])
        session.submit_plan()


# --- information technology ---------------------------------------------------


def play_algorithm_builder(session: AlgorithmBuilderSession, config: dict[str, Any], console: Console) -> None:
    palette = [str(item) for item in config.get("blocks") or sorted({b for s in session.solutions for b in s})]
    problems = config["problems"]
    while len(session.programs) < len(session.solutions):
        number = len(session.programs)
        console.out(f"\nProblem {number + 1}/{len(session.solutions)}: {problems[number].get('prompt', '')}".rstrip())
        while True:
            console.out(f"Program: {' -> '.join(session.blocks) or '(empty)'}")
            for idx, block in enumerate(palette, start=1):
                console.out(f"  {idx}) {block}")
            raw = console.ask("Add a block, u to undo, or r to run:").lower()
            if raw == "r":
                break
            if raw == "u":
                session.remove_block(len(session.blocks) - 1)
                continue
            index = _index(raw, len(palette))
            if index is None:
                console.out("Invalid choice.")
            else:
                session.add_block(palette[index])
        program = session.run()
        passed = program is not None and program.blocks == program.solution
        console.out("All tests passed!" if passed else "Tests failed.")


def play_bug_hunt(session: BugHuntSession, config: dict[str, Any], console: Console) -> None:
    samples = config["samples"]
    while len(session.hunted) < len(session.samples):
        number = len(session.hunted)
        code = [str(line) for line in samples[number].get("code", [])]
        line_count = len(code) or max(session.samples[number], default=0)
        console.out(f"\nSample {number + 1}/{len(session.samples)}:")
        while True:
            for line_no in range(1, line_count + 1):
                mark = "!" if line_no in session.flagged else " "
                text = code[line_no - 1] if code else ""
                console.out(f"{mark}{line_no:>3} | {text}")
            raw = console.ask("Flag or unflag a line, or n for the next sample:").lower()
            if raw == "n":
                break
            if raw.isdigit() and 1 <= int(raw) <= line_count:
                session.flag(int(raw))
            else:
                console.out("Invalid choice.")
        hunted = session.submit_sample()
        if hunted is not None:
            console.out(f"Found {len(hunted.flagged & hunted.bugs)}/{len(hunted.bugs)} bugs.")


def play_system_design(session: SystemDesignSession, config: dict[str, Any], console: Console) -> None:
    catalog = list(session.catalog)
    while True:
        console.out("\nArchitecture:")
        for idx, component in enumerate(session.placed, start=1):
            links = ", ".join(str(target + 1) for target in component.connections) or "-"
            console.out(f"  {idx}) {component.type} -> {links}")
        speed, cost, reliability = system_design_metrics(session)
        console.out(f"Speed {speed}, cost {cost}, reliability {reliability}")
        console.out("Components:")
        for idx, component_id in enumerate(catalog, start=1):
            component_type, price = session.catalog[component_id]
            console.out(f"  {idx}) {component_id} ({component_type}, cost {price})")
        raw = console.ask("a <component> to add, c <from> <to> to connect, s to deploy:").lower()
        parts = raw.split()
        if len(parts) == 2 and parts[0] == "a":
            index = _index(parts[1], len(catalog))
            if index is not None:
                session.place(catalog[index])
                continue
        elif len(parts) == 3 and parts[0] == "c":
            source = _index(parts[1], len(session.placed))
            target = _index(parts[2], len(session.placed))
            if source is not None and target is not None:
                session.connect(source, target)
                continue
        console.out("Invalid choice.")


# --- law ----------------------------------------------------------------------


def play_courtroom_arguments(session: CourtroomArgumentsSession, config: dict[str, Any], console: Console) -> None:
    cases = config["cases"]
    everything = sorted({case.precedent for case in session.cases})
    while session.current_case is not None:
        case = session.current_case
        raw_case = cases[len(session.presented)]
        console.out(f"\nCase {len(session.presented) + 1}/{len(session.cases)}: {raw_case.get('prompt', '')}".rstrip())
        precedents = [str(item) for item in raw_case.get("precedents") or everything]
        index = console.choose("Cite a precedent:", [_label(config, item) for item in precedents])
        session.cite(precedents[index])
        points = sorted(case.positions)
        console.out("Argument points:")
        for index in console.pick_many("Order your points", [_label(config, item) for item in points]):
            session.add_point(points[index])
        closings = list(case.persuasion)
        index = console.choose("Closing statement:", [_label(config, item) for item in closings])
        session.choose_closing(closings[index])
        presented = session.present()
        if presented is not None:
            console.out("Precedent accepted." if presented.precedent_correct else "Precedent rejected by the judge.")


def play_cross_examination(session: CrossExaminationSession, config: dict[str, Any], console: Console) -> None:
    witnesses = config["witnesses"]
    while session.current_witness is not None:
        witness = session.current_witness
        raw_witness = witnesses[len(session.examined)]
        texts = {int(item["id"]): str(item.get("text", "")) for item in raw_witness.get("statements", [])}
        console.out(f"\nWitness {len(session.examined) + 1}: {raw_witness.get('name', '')}".rstrip())
        while session.statement_index < len(witness.statements):
            statement_id = witness.statements[session.statement_index]
            console.out(f"Statement {statement_id}: {texts.get(statement_id, '')}".rstrip())
            index = console.choose("Your question:", [f"[{kind}] {text}" for kind, text, _ in CROSS_EXAM_QUESTIONS])
            kind, _, effectiveness = CROSS_EXAM_QUESTIONS[index]
            session.ask(kind, effectiveness)
            console.out(f"Witness credibility: {session.credibility}")
        while True:
            raw = console.ask("Name two contradicting statements (e.g. 3 4), or n to finish:").lower()
            if raw == "n":
                break
            parts = raw.split()
            if len(parts) != 2 or not all(part.isdigit() for part in parts):
                console.out("Invalid choice.")
                continue
            exposed = session.pair(int(parts[0]), int(parts[1]))
            console.out("Contradiction exposed!" if exposed else "Those statements are consistent.")
        session.complete_witness()


def play_evidence_detective(session: EvidenceDetectiveSession, config: dict[str, Any], console: Console) -> None:
    while len(session.sorted_cases) < len(session.cases):
        case = session.cases[len(session.sorted_cases)]
        console.out(f"\nCase {len(session.sorted_cases) + 1}/{len(session.cases)}")
        for evidence_id in case:
            while True:
                raw = console.ask(f"{_label(config, evidence_id)}: a) admissible or i) inadmissible?").lower()
                if raw in ("a", "i"):
                    break
                console.out("Invalid choice.")
            correct = session.sort(evidence_id, raw == "a")
            console.out("Sustained." if correct else "Overruled.")
        session.submit_case()


# --- media --------------------------------------------------------------------


def play_fact_check(session: FactCheckSession, config: dict[str, Any], console: Console) -> None:
    claims = config["claims"]
    while len(session.verdicts) < len(session.claims):
        raw_claim = claims[len(session.verdicts)]
        console.out(f"\nClaim {len(session.verdicts) + 1}/{len(session.claims)}: {raw_claim.get('text', '')}".rstrip())
        while True:
            raw = console.ask("t) true, f) false, v) needs verification, i) inspect source:").lower()
            if raw == "i":
                session.inspect_source()
                console.out(f"Source: {raw_claim.get('source', 'unknown')}")
                continue
            if raw in VERDICT_KEYS:
                break
            console.out("Invalid choice.")
        console.out("Correct." if session.judge(VERDICT_KEYS[raw]) else "Incorrect.")


def play_interview_master(session: InterviewMasterSession, config: dict[str, Any], console: Console) -> None:
    interviews = config["interviews"]
    while session.current_interviewee is not None:
        interviewee = session.current_interviewee
        raw_interview = interviews[len(session.interviews)]
        questions = raw_interview.get("questions", {})
        console.out(f"\nInterview {len(session.interviews) + 1}: {raw_interview.get('guest', '')}".rstrip())
        while True:
            console.out(f"Rapport {session.rapport}, key facts {session.facts}/{interviewee.key_facts_needed}")
            available = session.available_questions()
            if not available:
                break
            for idx, question_id in enumerate(available, start=1):
                console.out(f"  {idx}) {questions[question_id].get('text', question_id)}")
            raw = console.ask("Ask a question, or n to wrap up:").lower()
            if raw == "n":
                break
            index = _index(raw, len(available))
            if index is None:
                console.out("Invalid choice.")
                continue
            console.out("That's a key fact!" if session.ask(available[index]) else "Noted.")
        session.complete_interview()


def play_story_crafter(session: StoryCrafterSession, config: dict[str, Any], console: Console) -> None:
    headlines = list(session.headlines)
    facts = list(session.fact_categories)
    quotes = sorted(session.quote_ids)
    sections = list(ARTICLE_SECTIONS)
    while True:
        headline = _label(config, session.headline) if session.headline is not None else "(none)"
        console.out(f"\nHeadline: {headline}")
        for section in sections:
            placed = [_label(config, item) for item in session.facts[section] + session.quotes[section]]
            console.out(f"{section}: {'; '.join(placed) or '-'}")
        raw = console.ask("h) headline, f) place a fact, q) place a quote, s) publish:").lower()
        if raw == "h":
            index = console.choose("Headline:", [_label(config, item) for item in headlines])
            session.choose_headline(headlines[index])
        elif raw == "f":
            index = console.choose("Fact:", [_label(config, item) for item in facts])
            section = console.choose("Section:", sections)
            session.place_fact(facts[index], sections[section])
        elif raw == "q" and quotes:
            index = console.choose("Quote:", [_label(config, item) for item in quotes])
            section = console.choose("Section:", sections)
            session.place_quote(quotes[index], sections[section])
        else:
            console.out("Invalid choice.")


PLAYERS: dict[str, Callable[[Any, dict[str, Any], Console], None]] = {
    "cooking": play_cooking,
    "order_taking": play_order_taking,
    "plate_presentation": play_plate_presentation,
    "emergency_room": play_emergency_room,
    "symptom_detective": play_symptom_detective,
    "treatment_planner": play_treatment_planner,
    "algorithm_builder": play_algorithm_builder,
    "bug_hunt": play_bug_hunt,
    "system_design": play_system_design,
    "courtroom_arguments": play_courtroom_arguments,
    "cross_examination": play_cross_examination,
    "evidence_detective": play_evidence_detective,
    "fact_check": play_fact_check,
    "interview_master": play_interview_master,
    "story_crafter": play_story_crafter,
}


def play_round(machine: ChallengeMachine, input_fn: InputFn, print_fn: PrintFn) -> ChallengeResult | None:
    """Start the machine, play one session, and return its result.

    Returns ``None`` when the player leaves mid-session; the machine is then
    closed and nothing is scored.
    """
    definition = machine.definition
    session = machine.start()
    console = Console(machine, input_fn, print_fn)
    try:
        PLAYERS[definition.archetype](session, definition.config, console)
    except AbandonPlay:
        machine.exit()
        return None
    except SubmitPlay:
        pass
    try:
        return machine.submit()
    except InvalidTransition:
        print_fn("Time's up!")
        return machine.result
