"""Game models for tournament ingestion.

``RawGame`` is what the external feed hands us; ``TournamentGame`` is the
persisted row.  Dates are always timezone-aware (naive values are taken to
be UTC).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Dict, Optional

import pytz

from .team import ExternalTeamRecord

HOME = "home"
AWAY = "away"
SLOTS = (HOME, AWAY)

GAME_STATUSES = ("scheduled", "in_progress", "completed", "postponed", "cancelled")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime) as aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class RawGame:
    """A game record as produced by the external event feed."""

    external_id: str
    external_source: str
    home_team_external: ExternalTeamRecord
    away_team_external: ExternalTeamRecord
    round: str = ""
    date: Optional[datetime] = None
    status: str = "scheduled"
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    region: Optional[str] = None
    seed_home: Optional[int] = None
    seed_away: Optional[int] = None
    venue: Optional[str] = None

    @property
    def matchup(self) -> str:
        return f"{self.home_team_external.label} vs {self.away_team_external.label}"

    def to_dict(self) -> dict:
        return {
            "external_id": self.external_id,
            "external_source": self.external_source,
            "date": _format_datetime(self.date),
            "status": self.status,
            "home_team_external": self.home_team_external.to_dict(),
            "away_team_external": self.away_team_external.to_dict(),
            "home_score": self.home_score,
            "away_score": self.away_score,
            "round": self.round,
            "region": self.region,
            "seed_home": self.seed_home,
            "seed_away": self.seed_away,
            "venue": self.venue,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RawGame":
        """Build from a feed record.

        Raises:
            KeyError/TypeError: if the home or away team record is missing.
        """
        home = data["home_team_external"]
        away = data["away_team_external"]
        if not isinstance(home, ExternalTeamRecord):
            home = ExternalTeamRecord.from_dict(home)
        if not isinstance(away, ExternalTeamRecord):
            away = ExternalTeamRecord.from_dict(away)
        external_id = data.get("external_id", "")
        return cls(
            external_id=str(external_id) if external_id is not None else "",
            external_source=data.get("external_source", data.get("source", "")) or "",
            home_team_external=home,
            away_team_external=away,
            round=data.get("round") or "",
            date=parse_datetime(data.get("date")),
            status=data.get("status") or "scheduled",
            home_score=_optional_int(data.get("home_score")),
            away_score=_optional_int(data.get("away_score")),
            region=data.get("region") or None,
            seed_home=_optional_int(data.get("seed_home")),
            seed_away=_optional_int(data.get("seed_away")),
            venue=data.get("venue") or None,
        )


@dataclass
class TournamentGame:
    """A persisted tournament game, including its advancement pointers."""

    id: str
    tournament_id: str
    round: str
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    region: Optional[str] = None
    seed_home: Optional[int] = None
    seed_away: Optional[int] = None
    date: Optional[datetime] = None
    status: str = "scheduled"
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    external_id: Optional[str] = None
    external_source: Optional[str] = None
    venue: Optional[str] = None
    is_placeholder: bool = False
    next_game_id: Optional[str] = None
    winner_advances_to_slot: Optional[str] = None
    loser_next_game_id: Optional[str] = None
    loser_advances_to_slot: Optional[str] = None

    @property
    def natural_key(self):
        if self.external_id and self.external_source:
            return (self.external_id, self.external_source)
        return None

    def team_for_slot(self, slot: str) -> Optional[str]:
        return self.home_team_id if slot == HOME else self.away_team_id

    def seed_for_slot(self, slot: str) -> Optional[int]:
        return self.seed_home if slot == HOME else self.seed_away

    def with_changes(self, **changes) -> "TournamentGame":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["date"] = _format_datetime(self.date)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TournamentGame":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {k: v for k, v in data.items() if k in known}
        kwargs["id"] = str(data["id"])
        kwargs["date"] = parse_datetime(data.get("date"))
        kwargs["is_placeholder"] = bool(data.get("is_placeholder", False))
        for key in ("seed_home", "seed_away", "home_score", "away_score"):
            kwargs[key] = _optional_int(data.get(key))
        return cls(**kwargs)


@dataclass
class Tournament:
    """Tournament header row (``type`` is ncaa, conference or mte)."""

    id: str
    name: str = ""
    type: str = "ncaa"
    year: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    start_date: Optional[str] = None  # YYYY-MM-DD
    end_date: Optional[str] = None
    status: str = "upcoming"
    location: Optional[str] = None
    external_source: Optional[str] = None

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Tournament":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            type=data.get("type", "ncaa"),
            year=_optional_int(data.get("year")),
            metadata=dict(data.get("metadata") or {}),
            start_date=data.get("start_date") or None,
            end_date=data.get("end_date") or None,
            status=data.get("status") or "upcoming",
            location=data.get("location") or None,
            external_source=data.get("external_source") or None,
        )


@dataclass
class UserPick:
    """A user's predicted winner for one game (read-only input)."""

    game_id: str
    winner_team_id: str
    picked_at: Optional[datetime] = None
