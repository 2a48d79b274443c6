"""Schema validators for raw feed payloads."""

from __future__ import annotations

from typing import Any, List

from ...models.game import RawGame
from ...models.team import ExternalTeamRecord


def _team_errors(label: str, team: Any) -> List[str]:
    if isinstance(team, ExternalTeamRecord):
        return []
    if team is None:
        return [f"missing {label}"]
    if not isinstance(team, dict):
        return [f"{label} must be an object"]
    if not (team.get("display_name") or team.get("name") or team.get("abbreviation")):
        return [f"{label} has no name or abbreviation"]
    return []


def validate_raw_game(row: Any) -> List[str]:
    """Problems with a single raw game record (empty when usable)."""
    if isinstance(row, RawGame):
        return []
    if not isinstance(row, dict):
        return ["record must be an object"]

    errors: List[str] = []
    if not row.get("external_id"):
        errors.append("missing external_id")
    if not (row.get("external_source") or row.get("source")):
        errors.append("missing external_source")
    errors.extend(_team_errors("home_team_external", row.get("home_team_external")))
    errors.extend(_team_errors("away_team_external", row.get("away_team_external")))
    return errors


def validate_raw_games_payload(payload: Any) -> List[str]:
    if not isinstance(payload, list):
        return ["raw games payload must be a list"]

    errors: List[str] = []
    for idx, row in enumerate(payload):
        for problem in validate_raw_game(row):
            errors.append(f"games[{idx}] {problem}")
    return errors
