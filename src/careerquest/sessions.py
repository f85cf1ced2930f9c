"""In-memory play-session shapes, one per challenge archetype.

A session is created from a challenge's configuration blob when play starts,
collects the player's interactions, and is handed to the archetype's scoring
function when play ends. Sessions are never persisted.

Interaction methods never raise for out-of-range play (an extra round, an
unknown id); they ignore the input instead, so a session is always scorable.
Configuration problems raise ``ValueError`` from ``from_config``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _require_list(config: dict[str, Any], key: str) -> list[Any]:
    value = config.get(key)
    if not isinstance(value, list) or not value:
        raise ValueError(f"Config key '{key}' must be a non-empty list.")
    return value


def _require_mapping(config: dict[str, Any], key: str) -> dict[str, Any]:
    value = config.get(key)
    if not isinstance(value, dict) or not value:
        raise ValueError(f"Config key '{key}' must be a non-empty object.")
    return value


# --- culinary -----------------------------------------------------------------


@dataclass(frozen=True)
class Dish:
    name: str
    cook_time: int
    ideal_temp: float


@dataclass(frozen=True)
class CookedDish:
    target_time: int
    ideal_temp: float
    elapsed: int
    temperature: float


@dataclass
class CookingSession:
    """Cook each configured dish by stopping at the right time and temperature."""

    dishes: list[Dish]
    cooked: list[CookedDish] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> CookingSession:
        dishes = [
            Dish(name=str(raw["name"]), cook_time=int(raw["cook_time"]), ideal_temp=float(raw["ideal_temp"]))
            for raw in _require_list(config, "dishes")
        ]
        return cls(dishes=dishes)

    @property
    def current_dish(self) -> Dish | None:
        if len(self.cooked) >= len(self.dishes):
            return None
        return self.dishes[len(self.cooked)]

    def stop_cooking(self, elapsed: int, temperature: float) -> CookedDish | None:
        dish = self.current_dish
        if dish is None:
            return None
        result = CookedDish(dish.cook_time, dish.ideal_temp, max(0, int(elapsed)), float(temperature))
        self.cooked.append(result)
        return result


ORDER_POINTS = {"easy": 20, "medium": 30, "hard": 40}


@dataclass(frozen=True)
class Order:
    items: frozenset[str]
    requests: frozenset[str]
    difficulty: str


@dataclass(frozen=True)
class RecalledOrder:
    difficulty: str
    correct: bool


@dataclass
class OrderTakingSession:
    """Memorize a customer's order, then recall items and special requests."""

    orders: list[Order]
    recalled: list[RecalledOrder] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> OrderTakingSession:
        orders: list[Order] = []
        for raw in _require_list(config, "orders"):
            difficulty = str(raw.get("difficulty", "easy"))
            if difficulty not in ORDER_POINTS:
                raise ValueError(f"Unknown order difficulty '{difficulty}'.")
            orders.append(
                Order(
                    items=frozenset(str(item) for item in raw.get("items", [])),
                    requests=frozenset(str(item) for item in raw.get("requests", [])),
                    difficulty=difficulty,
                )
            )
        return cls(orders=orders)

    def recall(self, items: list[str], requests: list[str]) -> bool | None:
        if len(self.recalled) >= len(self.orders):
            return None
        order = self.orders[len(self.recalled)]
        correct = set(items) == order.items and set(requests) == order.requests
        self.recalled.append(RecalledOrder(order.difficulty, correct))
        return correct


PLATE_CATEGORIES = ("protein", "vegetable", "starch", "garnish")
PLATE_CAPACITY = 6


@dataclass
class PlatePresentationSession:
    """Pick up to six components for a balanced plate."""

    catalog: dict[str, str]
    selected: list[str] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> PlatePresentationSession:
        catalog = {str(key): str(value) for key, value in _require_mapping(config, "items").items()}
        unknown = sorted(set(catalog.values()) - set(PLATE_CATEGORIES))
        if unknown:
            raise ValueError(f"Unknown plate categories: {', '.join(unknown)}")
        return cls(catalog=catalog)

    def toggle(self, item_id: str) -> None:
        if item_id in self.selected:
            self.selected.remove(item_id)
        elif item_id in self.catalog and len(self.selected) < PLATE_CAPACITY:
            self.selected.append(item_id)

    def selected_categories(self) -> list[str]:
        return [self.catalog[item_id] for item_id in self.selected]


# --- health -------------------------------------------------------------------

SEVERITIES = ("critical", "urgent", "stable")
BED_TYPES = ("trauma", "exam", "triage")
WAITING_ROOM_CAPACITY = 5
DEFAULT_BEDS = ({"id": "b1", "type": "trauma"}, {"id": "b2", "type": "exam"}, {"id": "b3", "type": "triage"})
DEFAULT_PATIENTS = (
    {"id": "p1", "severity": "critical"},
    {"id": "p2", "severity": "urgent"},
    {"id": "p3", "severity": "stable"},
)


def _severity(raw: Any) -> str:
    severity = str(raw)
    if severity not in SEVERITIES:
        raise ValueError(f"Unknown patient severity '{severity}'.")
    return severity


@dataclass
class EmergencyRoomSession:
    """Route waiting patients to free beds before the shift clock runs out.

    ``occupied`` maps a bed id to the severity of the patient lying in it.
    Walk-ins from ``arrivals`` join the waiting room one at a time.
    """

    beds: dict[str, str]
    waiting: dict[str, str]
    arrivals: list[str] = field(default_factory=list)
    occupied: dict[str, str] = field(default_factory=dict)
    placements: list[tuple[str, str]] = field(default_factory=list)
    discharges: int = 0
    admitted: int = 0

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> EmergencyRoomSession:
        beds: dict[str, str] = {}
        for raw in config.get("beds") or DEFAULT_BEDS:
            bed_type = str(raw["type"])
            if bed_type not in BED_TYPES:
                raise ValueError(f"Unknown bed type '{bed_type}'.")
            beds[str(raw["id"])] = bed_type
        patients = config.get("patients")
        if patients is None:
            patients = DEFAULT_PATIENTS
        waiting = {str(raw["id"]): _severity(raw["severity"]) for raw in patients}
        arrivals = [_severity(item) for item in config.get("arrivals", [])]
        return cls(beds=beds, waiting=waiting, arrivals=arrivals)

    def free_beds(self) -> list[str]:
        return [bed_id for bed_id in self.beds if bed_id not in self.occupied]

    def admit_arrival(self) -> str | None:
        """Move the next walk-in into the waiting room if there is space."""
        if not self.arrivals or len(self.waiting) >= WAITING_ROOM_CAPACITY:
            return None
        self.admitted += 1
        patient_id = f"walk-in-{self.admitted}"
        self.waiting[patient_id] = self.arrivals.pop(0)
        return patient_id

    def place(self, patient_id: str, bed_id: str) -> bool:
        if patient_id not in self.waiting or bed_id not in self.beds or bed_id in self.occupied:
            return False
        severity = self.waiting.pop(patient_id)
        self.occupied[bed_id] = severity
        self.placements.append((severity, self.beds[bed_id]))
        return True

    def discharge(self, bed_id: str) -> bool:
        if bed_id not in self.occupied:
            return False
        del self.occupied[bed_id]
        self.discharges += 1
        return True

    @property
    def shift_over(self) -> bool:
        return not self.waiting and not self.occupied and not self.arrivals


@dataclass(frozen=True)
class Diagnosis:
    correct: bool
    actions_used: int


@dataclass
class SymptomDetectiveSession:
    """Run exams on each patient, then commit to a diagnosis."""

    answers: list[str]
    exam_actions: frozenset[str]
    used_actions: list[str] = field(default_factory=list)
    diagnoses: list[Diagnosis] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> SymptomDetectiveSession:
        answers = [str(raw["diagnosis"]) for raw in _require_list(config, "patients")]
        actions = frozenset(str(item) for item in _require_list(config, "exam_actions"))
        return cls(answers=answers, exam_actions=actions)

    def examine(self, action_id: str) -> None:
        if action_id in self.exam_actions and action_id not in self.used_actions:
            self.used_actions.append(action_id)

    def diagnose(self, diagnosis_id: str) -> bool | None:
        if len(self.diagnoses) >= len(self.answers):
            return None
        correct = diagnosis_id == self.answers[len(self.diagnoses)]
        self.diagnoses.append(Diagnosis(correct=correct, actions_used=len(self.used_actions)))
        self.used_actions = []
        return correct


TREATMENT_TYPES = ("medication", "therapy", "lifestyle")


@dataclass(frozen=True)
class TreatmentCase:
    treatments: dict[str, str]
    required: tuple[str, ...]


@dataclass(frozen=True)
class PlannedCase:
    steps: tuple[tuple[str, str], ...]
    required: tuple[str, ...]


@dataclass
class TreatmentPlannerSession:
    """Sequence treatments into a plan for each case."""

    cases: list[TreatmentCase]
    plan: list[str] = field(default_factory=list)
    planned: list[PlannedCase] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> TreatmentPlannerSession:
        cases: list[TreatmentCase] = []
        for raw in _require_list(config, "cases"):
            treatments = {str(key): str(value) for key, value in raw.get("treatments", {}).items()}
            unknown = sorted(set(treatments.values()) - set(TREATMENT_TYPES))
            if unknown:
                raise ValueError(f"Unknown treatment types: {', '.join(unknown)}")
            required = tuple(str(item) for item in raw.get("required", []))
            missing = [item for item in required if item not in treatments]
            if missing:
                raise ValueError(f"Required treatments not offered: {', '.join(missing)}")
            cases.append(TreatmentCase(treatments=treatments, required=required))
        return cls(cases=cases)

    @property
    def current_case(self) -> TreatmentCase | None:
        if len(self.planned) >= len(self.cases):
            return None
        return self.cases[len(self.planned)]

    def add(self, treatment_id: str) -> None:
        case = self.current_case
        if case is not None and treatment_id in case.treatments and treatment_id not in self.plan:
            self.plan.append(treatment_id)

    def remove(self, treatment_id: str) -> None:
        if treatment_id in self.plan:
            self.plan.remove(treatment_id)

    def submit_plan(self) -> PlannedCase | None:
        case = self.current_case
        if case is None:
            return None
        steps = tuple((item, case.treatments[item]) for item in self.plan)
        result = PlannedCase(steps=steps, required=case.required)
        self.planned.append(result)
        self.plan = []
        return result


# --- information technology ---------------------------------------------------

MAX_PROGRAM_BLOCKS = 10


@dataclass(frozen=True)
class BuiltProgram:
    blocks: tuple[str, ...]
    solution: tuple[str, ...]


@dataclass
class AlgorithmBuilderSession:
    """Assemble code blocks into an algorithm for each problem."""

    solutions: list[tuple[str, ...]]
    blocks: list[str] = field(default_factory=list)
    programs: list[BuiltProgram] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> AlgorithmBuilderSession:
        solutions = [tuple(str(item) for item in raw["solution"]) for raw in _require_list(config, "problems")]
        if any(not solution for solution in solutions):
            raise ValueError("Every problem needs a non-empty solution.")
        return cls(solutions=solutions)

    def add_block(self, block_id: str) -> None:
        if len(self.blocks) < MAX_PROGRAM_BLOCKS:
            self.blocks.append(block_id)

    def remove_block(self, index: int) -> None:
        if 0 <= index < len(self.blocks):
            del self.blocks[index]

    def run(self) -> BuiltProgram | None:
        if len(self.programs) >= len(self.solutions):
            return None
        program = BuiltProgram(blocks=tuple(self.blocks), solution=self.solutions[len(self.programs)])
        self.programs.append(program)
        self.blocks = []
        return program


@dataclass(frozen=True)
class HuntedSample:
    flagged: frozenset[int]
    bugs: frozenset[int]


@dataclass
class BugHuntSession:
    """Flag the buggy lines in each code sample."""

    samples: list[frozenset[int]]
    flagged: set[int] = field(default_factory=set)
    hunted: list[HuntedSample] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> BugHuntSession:
        samples = [frozenset(int(line) for line in raw["bug_lines"]) for raw in _require_list(config, "samples")]
        return cls(samples=samples)

    def flag(self, line_id: int) -> None:
        self.flagged.symmetric_difference_update({line_id})

    def submit_sample(self) -> HuntedSample | None:
        if len(self.hunted) >= len(self.samples):
            return None
        result = HuntedSample(flagged=frozenset(self.flagged), bugs=self.samples[len(self.hunted)])
        self.hunted.append(result)
        self.flagged = set()
        return result


COMPONENT_TYPES = ("frontend", "backend", "database", "cache", "loadbalancer", "api")


@dataclass
class PlacedComponent:
    type: str
    cost: int
    connections: list[int] = field(default_factory=list)


@dataclass
class SystemDesignSession:
    """Place architecture components, wire them up, and run simulated traffic."""

    catalog: dict[str, tuple[str, int]]
    traffic: int
    placed: list[PlacedComponent] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> SystemDesignSession:
        catalog: dict[str, tuple[str, int]] = {}
        for key, raw in _require_mapping(config, "components").items():
            component_type = str(raw["type"])
            if component_type not in COMPONENT_TYPES:
                raise ValueError(f"Unknown component type '{component_type}'.")
            catalog[str(key)] = (component_type, int(raw.get("cost", 0)))
        return cls(catalog=catalog, traffic=int(config.get("traffic", 100)))

    def place(self, component_id: str) -> int | None:
        if component_id not in self.catalog:
            return None
        component_type, cost = self.catalog[component_id]
        self.placed.append(PlacedComponent(type=component_type, cost=cost))
        return len(self.placed) - 1

    def connect(self, source: int, target: int) -> None:
        if source == target:
            return
        if 0 <= source < len(self.placed) and 0 <= target < len(self.placed):
            self.placed[source].connections.append(target)


# --- law ----------------------------------------------------------------------


@dataclass(frozen=True)
class CourtCase:
    precedent: str
    positions: dict[str, int]
    persuasion: dict[str, int]


@dataclass(frozen=True)
class PresentedCase:
    precedent_correct: bool
    positions: tuple[int, ...]
    total_points: int
    effectiveness: int | None


@dataclass
class CourtroomArgumentsSession:
    """Cite a precedent, order the argument, and pick a closing style."""

    cases: list[CourtCase]
    precedent: str | None = None
    ordered: list[str] = field(default_factory=list)
    persuasion: str | None = None
    presented: list[PresentedCase] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> CourtroomArgumentsSession:
        cases = [
            CourtCase(
                precedent=str(raw["precedent"]),
                positions={str(key): int(value) for key, value in raw["points"].items()},
                persuasion={str(key): int(value) for key, value in raw["persuasion"].items()},
            )
            for raw in _require_list(config, "cases")
        ]
        return cls(cases=cases)

    @property
    def current_case(self) -> CourtCase | None:
        if len(self.presented) >= len(self.cases):
            return None
        return self.cases[len(self.presented)]

    def cite(self, precedent_id: str) -> None:
        self.precedent = precedent_id

    def add_point(self, point_id: str) -> None:
        case = self.current_case
        if case is not None and point_id in case.positions and point_id not in self.ordered:
            self.ordered.append(point_id)

    def remove_point(self, index: int) -> None:
        if 0 <= index < len(self.ordered):
            del self.ordered[index]

    def choose_closing(self, option_id: str) -> None:
        self.persuasion = option_id

    def present(self) -> PresentedCase | None:
        case = self.current_case
        if case is None:
            return None
        result = PresentedCase(
            precedent_correct=self.precedent == case.precedent,
            positions=tuple(case.positions[item] for item in self.ordered),
            total_points=len(case.positions),
            effectiveness=case.persuasion.get(self.persuasion) if self.persuasion is not None else None,
        )
        self.presented.append(result)
        self.precedent = None
        self.ordered = []
        self.persuasion = None
        return result


QUESTION_KINDS = ("clarifying", "challenging", "leading")


@dataclass(frozen=True)
class Witness:
    statements: tuple[int, ...]
    contradictions: frozenset[int]
    pairs: frozenset[frozenset[int]]


@dataclass(frozen=True)
class ExaminedWitness:
    found: int
    total: int
    effectiveness: tuple[int, ...]
    credibility: int


@dataclass
class CrossExaminationSession:
    """Question each witness, then pair up contradicting statements."""

    witnesses: list[Witness]
    statement_index: int = 0
    credibility: int = 100
    questions: list[int] = field(default_factory=list)
    found: set[frozenset[int]] = field(default_factory=set)
    examined: list[ExaminedWitness] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> CrossExaminationSession:
        witnesses: list[Witness] = []
        for raw in _require_list(config, "witnesses"):
            statements = raw.get("statements", [])
            pairs = frozenset(frozenset(int(item) for item in pair) for pair in raw.get("pairs", []))
            if any(len(pair) != 2 for pair in pairs):
                raise ValueError("Contradiction pairs must name two distinct statements.")
            witnesses.append(
                Witness(
                    statements=tuple(int(item["id"]) for item in statements),
                    contradictions=frozenset(int(item["id"]) for item in statements if item.get("contradiction")),
                    pairs=pairs,
                )
            )
        return cls(witnesses=witnesses)

    @property
    def current_witness(self) -> Witness | None:
        if len(self.examined) >= len(self.witnesses):
            return None
        return self.witnesses[len(self.examined)]

    def ask(self, kind: str, effectiveness: int) -> None:
        """Ask a question about the current statement and move to the next one."""
        witness = self.current_witness
        if witness is None or kind not in QUESTION_KINDS or self.statement_index >= len(witness.statements):
            return
        statement_id = witness.statements[self.statement_index]
        if kind == "challenging" and statement_id in witness.contradictions:
            drop = 15
        elif effectiveness > 70:
            drop = 10
        else:
            drop = 5
        self.credibility = max(0, self.credibility - drop)
        self.questions.append(int(effectiveness))
        self.statement_index += 1

    def pair(self, first: int, second: int) -> bool:
        witness = self.current_witness
        candidate = frozenset((first, second))
        if witness is None or candidate not in witness.pairs:
            return False
        self.found.add(candidate)
        return True

    def complete_witness(self) -> ExaminedWitness | None:
        witness = self.current_witness
        if witness is None:
            return None
        result = ExaminedWitness(
            found=len(self.found),
            total=len(witness.pairs),
            effectiveness=tuple(self.questions),
            credibility=self.credibility,
        )
        self.examined.append(result)
        self.statement_index = 0
        self.credibility = 100
        self.questions = []
        self.found = set()
        return result


@dataclass(frozen=True)
class SortedCase:
    correct: int
    incorrect: int
    evidence_count: int


@dataclass
class EvidenceDetectiveSession:
    """Sort each case's evidence into admissible and inadmissible piles."""

    cases: list[dict[str, bool]]
    piles: dict[str, bool] = field(default_factory=dict)
    sorted_cases: list[SortedCase] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> EvidenceDetectiveSession:
        cases = [
            {str(key): bool(value) for key, value in raw["evidence"].items()} for raw in _require_list(config, "cases")
        ]
        return cls(cases=cases)

    def sort(self, evidence_id: str, admissible: bool) -> bool | None:
        if len(self.sorted_cases) >= len(self.cases):
            return None
        case = self.cases[len(self.sorted_cases)]
        if evidence_id not in case or evidence_id in self.piles:
            return None
        self.piles[evidence_id] = admissible
        return case[evidence_id] == admissible

    def submit_case(self) -> SortedCase | None:
        if len(self.sorted_cases) >= len(self.cases):
            return None
        case = self.cases[len(self.sorted_cases)]
        correct = sum(1 for key, value in self.piles.items() if case[key] == value)
        result = SortedCase(correct=correct, incorrect=len(self.piles) - correct, evidence_count=len(case))
        self.sorted_cases.append(result)
        self.piles = {}
        return result


# --- media --------------------------------------------------------------------

VERDICTS = ("true", "false", "verify")


@dataclass(frozen=True)
class Claim:
    is_true: bool
    needs_verification: bool


@dataclass(frozen=True)
class Verdict:
    correct: bool
    used_source: bool


@dataclass
class FactCheckSession:
    """Judge a feed of claims as true, false, or needing verification."""

    claims: list[Claim]
    source_shown: bool = False
    verdicts: list[Verdict] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> FactCheckSession:
        claims = [
            Claim(is_true=bool(raw["true"]), needs_verification=bool(raw.get("needs_verification", False)))
            for raw in _require_list(config, "claims")
        ]
        return cls(claims=claims)

    def inspect_source(self) -> None:
        self.source_shown = True

    def judge(self, verdict: str) -> bool | None:
        if verdict not in VERDICTS or len(self.verdicts) >= len(self.claims):
            return None
        claim = self.claims[len(self.verdicts)]
        if verdict == "verify":
            # Asking for verification is never wrong.
            correct = True
        elif claim.needs_verification:
            correct = False
        else:
            correct = (verdict == "true") == claim.is_true
        self.verdicts.append(Verdict(correct=correct, used_source=self.source_shown))
        self.source_shown = False
        return correct


@dataclass(frozen=True)
class InterviewQuestion:
    kind: str
    reveals_fact: bool
    opens: tuple[str, ...]
    rapport: int


@dataclass(frozen=True)
class Interviewee:
    key_facts_needed: int
    questions: dict[str, InterviewQuestion]


@dataclass(frozen=True)
class Interview:
    facts: int
    facts_needed: int
    follow_ups: int
    rapport: int


INITIAL_RAPPORT = 70


@dataclass
class InterviewMasterSession:
    """Interview each guest, unlocking follow-ups and collecting key facts."""

    interviewees: list[Interviewee]
    asked: list[str] = field(default_factory=list)
    unlocked: set[str] = field(default_factory=set)
    facts: int = 0
    rapport: int = INITIAL_RAPPORT
    interviews: list[Interview] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> InterviewMasterSession:
        interviewees: list[Interviewee] = []
        for raw in _require_list(config, "interviews"):
            questions = {
                str(key): InterviewQuestion(
                    kind=str(item.get("type", "opening")),
                    reveals_fact=bool(item.get("reveals_fact", False)),
                    opens=tuple(str(value) for value in item.get("opens", [])),
                    rapport=int(item.get("rapport", 0)),
                )
                for key, item in raw.get("questions", {}).items()
            }
            interviewees.append(Interviewee(key_facts_needed=int(raw.get("key_facts_needed", 0)), questions=questions))
        return cls(interviewees=interviewees)

    @property
    def current_interviewee(self) -> Interviewee | None:
        if len(self.interviews) >= len(self.interviewees):
            return None
        return self.interviewees[len(self.interviews)]

    def available_questions(self) -> list[str]:
        interviewee = self.current_interviewee
        if interviewee is None:
            return []
        return [
            key
            for key, question in interviewee.questions.items()
            if key not in self.asked and (question.kind == "opening" or key in self.unlocked)
        ]

    def ask(self, question_id: str) -> bool:
        interviewee = self.current_interviewee
        if interviewee is None or question_id not in self.available_questions():
            return False
        question = interviewee.questions[question_id]
        self.asked.append(question_id)
        self.rapport = max(0, min(100, self.rapport + question.rapport))
        self.unlocked.update(question.opens)
        if question.reveals_fact:
            self.facts += 1
        return question.reveals_fact

    def complete_interview(self) -> Interview | None:
        interviewee = self.current_interviewee
        if interviewee is None:
            return None
        follow_ups = sum(1 for key in self.asked if interviewee.questions[key].kind == "follow-up")
        result = Interview(
            facts=self.facts,
            facts_needed=interviewee.key_facts_needed,
            follow_ups=follow_ups,
            rapport=self.rapport,
        )
        self.interviews.append(result)
        self.asked = []
        self.unlocked = set()
        self.facts = 0
        self.rapport = INITIAL_RAPPORT
        return result


ARTICLE_SECTIONS = ("lede", "body", "conclusion")


@dataclass
class StoryCrafterSession:
    """Build an article from a headline, placed facts, and quotes."""

    headlines: dict[str, int]
    fact_categories: dict[str, str]
    quote_ids: frozenset[str]
    headline: str | None = None
    facts: dict[str, list[str]] = field(default_factory=lambda: {section: [] for section in ARTICLE_SECTIONS})
    quotes: dict[str, list[str]] = field(default_factory=lambda: {section: [] for section in ARTICLE_SECTIONS})

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> StoryCrafterSession:
        headlines = {str(key): int(value) for key, value in _require_mapping(config, "headlines").items()}
        fact_categories = {str(key): str(value) for key, value in _require_mapping(config, "facts").items()}
        unknown = sorted(set(fact_categories.values()) - set(ARTICLE_SECTIONS))
        if unknown:
            raise ValueError(f"Unknown fact categories: {', '.join(unknown)}")
        quote_ids = frozenset(str(item) for item in config.get("quotes", []))
        return cls(headlines=headlines, fact_categories=fact_categories, quote_ids=quote_ids)

    def choose_headline(self, headline_id: str) -> None:
        if headline_id in self.headlines:
            self.headline = headline_id

    def place_fact(self, fact_id: str, section: str) -> None:
        if fact_id in self.fact_categories and section in ARTICLE_SECTIONS:
            self.remove_fact(fact_id)
            self.facts[section].append(fact_id)

    def remove_fact(self, fact_id: str) -> None:
        for items in self.facts.values():
            if fact_id in items:
                items.remove(fact_id)

    def place_quote(self, quote_id: str, section: str) -> None:
        if quote_id in self.quote_ids and section in ARTICLE_SECTIONS:
            self.remove_quote(quote_id)
            self.quotes[section].append(quote_id)

    def remove_quote(self, quote_id: str) -> None:
        for items in self.quotes.values():
            if quote_id in items:
                items.remove(quote_id)


PlaySession = (
    CookingSession
    | OrderTakingSession
    | PlatePresentationSession
    | EmergencyRoomSession
    | SymptomDetectiveSession
    | TreatmentPlannerSession
    | AlgorithmBuilderSession
    | BugHuntSession
    | SystemDesignSession
    | CourtroomArgumentsSession
    | CrossExaminationSession
    | EvidenceDetectiveSession
    | FactCheckSession
    | InterviewMasterSession
    | StoryCrafterSession
)
