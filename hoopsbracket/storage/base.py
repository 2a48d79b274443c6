"""Collaborator contracts for the team catalog, game store, tournaments and picks.

The importer, resolver and propagator only talk to these protocols; the
in-memory and Supabase implementations live next door.  Implementations
raise ``PersistenceError`` when a single write fails.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..models.game import Tournament, TournamentGame
from ..models.team import CanonicalTeam


class TeamCatalog(Protocol):
    def list_teams(self) -> List[CanonicalTeam]:
        ...

    def set_external_id(self, team_id: str, source: str, external_id: str) -> None:
        ...


class GameStore(Protocol):
    def find_by_external_id(self, external_id: str, external_source: str) -> Optional[TournamentGame]:
        ...

    def create_game(self, game: TournamentGame) -> TournamentGame:
        ...

    def update_game(self, game_id: str, changes: Dict[str, Any]) -> None:
        ...

    def list_tournament_games(self, tournament_id: str) -> List[TournamentGame]:
        ...


class TournamentStore(Protocol):
    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        ...

    def find_tournament(
        self,
        tournament_type: str,
        year: int,
        conference_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Optional[Tournament]:
        ...

    def create_tournament(self, tournament: Tournament) -> Tournament:
        ...


class PickStore(Protocol):
    def get_picks(self, user_id: str, tournament_id: str) -> Dict[str, str]:
        ...
