"""Team models: external feed records, canonical catalog teams, match results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class ExternalTeamRecord:
    """A team as described by the external event feed."""

    external_id: str
    display_name: str
    abbreviation: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.abbreviation or self.external_id

    def to_dict(self) -> dict:
        return {
            "external_id": self.external_id,
            "display_name": self.display_name,
            "abbreviation": self.abbreviation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExternalTeamRecord":
        """Accepts both our own keys and the feed's ``id``/``name`` keys."""
        external_id = data.get("external_id", data.get("id", ""))
        return cls(
            external_id=str(external_id) if external_id is not None else "",
            display_name=data.get("display_name", data.get("name", "")) or "",
            abbreviation=data.get("abbreviation", "") or "",
        )


@dataclass
class CanonicalTeam:
    """Authoritative team record owned by the team catalog."""

    id: str
    name: str
    short_name: str = ""
    abbreviation: str = ""
    external_ids: Dict[str, str] = field(default_factory=dict)

    def external_id_for(self, source: str) -> Optional[str]:
        return self.external_ids.get(source)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "abbreviation": self.abbreviation,
            "external_ids": dict(self.external_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CanonicalTeam":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            short_name=data.get("short_name") or "",
            abbreviation=data.get("abbreviation") or "",
            external_ids=dict(data.get("external_ids") or {}),
        )


@dataclass
class MatchResult:
    """Result of matching one external team against the catalog."""

    team_id: str
    confidence: float  # 0.0 to 1.0
    team_name: str = ""

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "confidence": round(self.confidence, 4),
            "team_name": self.team_name,
        }
