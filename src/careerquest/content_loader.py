"""Load declarative career content from bundled JSON resources."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

from .models import MAX_SCORE, Career, ChallengeDefinition
from .scoring import validate_config

CONTENT_PACKAGE = "careerquest.content.careers"


def _challenge_from_dict(career_id: str, raw: dict[str, Any]) -> ChallengeDefinition:
    """Build a challenge definition from raw JSON content."""
    challenge_id = str(raw["id"])
    archetype = str(raw.get("archetype", "")).strip()
    config = raw.get("config", {})
    if not isinstance(config, dict):
        raise ValueError(f"Challenge '{challenge_id}' config must be an object.")
    try:
        validate_config(archetype, config)
    except ValueError as exc:
        raise ValueError(f"Challenge '{challenge_id}': {exc}") from exc

    time_limit = config.get("time_limit", 180)
    if not isinstance(time_limit, int) or time_limit <= 0:
        raise ValueError(f"Challenge '{challenge_id}' has invalid time_limit: {time_limit!r}")

    return ChallengeDefinition(
        id=challenge_id,
        career_id=career_id,
        title=str(raw["title"]),
        description=str(raw.get("description", "")),
        order=int(raw.get("order", 0)),
        max_score=int(raw.get("max_score", MAX_SCORE)),
        archetype=archetype,
        config=config,
    )


def _career_from_dict(raw: dict[str, Any]) -> Career:
    """Build a career from raw JSON content."""
    career_id = str(raw["id"])
    challenges = [_challenge_from_dict(career_id, item) for item in raw.get("challenges", [])]
    challenges.sort(key=lambda item: (item.order, item.id))
    return Career(
        id=career_id,
        title=str(raw["title"]),
        description=str(raw.get("description", "")),
        order=int(raw.get("order", 0)),
        challenges=challenges,
    )


def load_careers() -> dict[str, Career]:
    """Load bundled careers."""
    raws = [
        json.loads(entry.read_text(encoding="utf-8-sig"))
        for entry in sorted(resources.files(CONTENT_PACKAGE).iterdir(), key=lambda item: item.name)
        if entry.name.endswith(".json")
    ]
    return _build_careers(raws)


def load_careers_from_dir(path: Path) -> dict[str, Career]:
    """Load careers from directory for tests/tools."""
    raws = [json.loads(file_path.read_text(encoding="utf-8-sig")) for file_path in sorted(path.glob("*.json"))]
    return _build_careers(raws)


def _build_careers(raws: list[dict[str, Any]]) -> dict[str, Career]:
    """Build and validate a career map ordered by career order."""
    careers: dict[str, Career] = {}
    for raw in raws:
        career = _career_from_dict(raw)
        if career.id in careers:
            raise ValueError(f"Duplicate career id: {career.id}")
        careers[career.id] = career
    _validate_unique_challenge_ids(careers)
    ordered = sorted(careers.values(), key=lambda item: (item.order, item.id))
    return {career.id: career for career in ordered}


def _validate_unique_challenge_ids(careers: dict[str, Career]) -> None:
    """Validate that challenge IDs are globally unique across all careers."""
    seen: dict[str, str] = {}
    for career in careers.values():
        for challenge in career.challenges:
            previous = seen.get(challenge.id)
            if previous is not None:
                raise ValueError(f"Duplicate challenge id: {challenge.id} (in {previous} and {career.id})")
            seen[challenge.id] = career.id
