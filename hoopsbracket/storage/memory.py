"""In-memory collaborator implementations.

Used by the test-suite and by the CLI's ``--fixture`` mode, where a JSON file
stands in for the hosted database.  Objects are copied on the way in and out
so callers can never mutate stored state behind the store's back.
"""

from __future__ import annotations

import copy
import json
import uuid
from dataclasses import fields
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..bracket.assembler import sort_games_by_date
from ..exceptions import PersistenceError
from ..models.game import Tournament, TournamentGame
from ..models.team import CanonicalTeam

_GAME_FIELDS = {f.name for f in fields(TournamentGame)}


class InMemoryTeamCatalog:
    """Team catalog backed by a dict of ``CanonicalTeam``."""

    def __init__(self, teams: Iterable[CanonicalTeam] = ()):
        self._teams: Dict[str, CanonicalTeam] = {t.id: copy.deepcopy(t) for t in teams}
        self.writes = 0

    def list_teams(self) -> List[CanonicalTeam]:
        return [copy.deepcopy(t) for t in self._teams.values()]

    def get(self, team_id: str) -> Optional[CanonicalTeam]:
        team = self._teams.get(team_id)
        return copy.deepcopy(team) if team else None

    def set_external_id(self, team_id: str, source: str, external_id: str) -> None:
        team = self._teams.get(team_id)
        if team is None:
            raise PersistenceError(f"Unknown team id: {team_id}")
        team.external_ids[source] = external_id
        self.writes += 1


class InMemoryGameStore:
    """Game store with a unique ``(external_id, external_source)`` index."""

    def __init__(self, games: Iterable[TournamentGame] = ()):
        self._games: Dict[str, TournamentGame] = {}
        self._by_key: Dict[Tuple[str, str], str] = {}
        self.writes = 0
        for game in games:
            self._put(copy.deepcopy(game))

    def _put(self, game: TournamentGame) -> None:
        key = game.natural_key
        if key is not None:
            existing = self._by_key.get(key)
            if existing is not None and existing != game.id:
                raise PersistenceError(f"Duplicate natural key {key}")
            self._by_key[key] = game.id
        self._games[game.id] = game

    def __len__(self) -> int:
        return len(self._games)

    def get(self, game_id: str) -> Optional[TournamentGame]:
        game = self._games.get(game_id)
        return copy.deepcopy(game) if game else None

    def find_by_external_id(self, external_id: str, external_source: str) -> Optional[TournamentGame]:
        game_id = self._by_key.get((external_id, external_source))
        return self.get(game_id) if game_id else None

    def create_game(self, game: TournamentGame) -> TournamentGame:
        stored = copy.deepcopy(game)
        if not stored.id:
            stored.id = str(uuid.uuid4())
        if stored.id in self._games:
            raise PersistenceError(f"Game already exists: {stored.id}")
        self._put(stored)
        self.writes += 1
        return copy.deepcopy(stored)

    def update_game(self, game_id: str, changes: Dict[str, Any]) -> None:
        game = self._games.get(game_id)
        if game is None:
            raise PersistenceError(f"Unknown game id: {game_id}")
        unknown = set(changes) - _GAME_FIELDS
        if unknown:
            raise PersistenceError(f"Unknown game fields: {sorted(unknown)}")
        old_key = game.natural_key
        updated = game.with_changes(**changes)
        if old_key is not None and old_key != updated.natural_key:
            del self._by_key[old_key]
        self._put(updated)
        self.writes += 1

    def all_games(self) -> List[TournamentGame]:
        return [copy.deepcopy(g) for g in self._games.values()]

    def list_tournament_games(self, tournament_id: str) -> List[TournamentGame]:
        games = [copy.deepcopy(g) for g in self._games.values() if g.tournament_id == tournament_id]
        return sort_games_by_date(games)


class InMemoryTournamentStore:
    def __init__(self, tournaments: Iterable[Tournament] = ()):
        self._tournaments = {t.id: copy.deepcopy(t) for t in tournaments}

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        tournament = self._tournaments.get(tournament_id)
        return copy.deepcopy(tournament) if tournament else None

    def find_tournament(
        self,
        tournament_type: str,
        year: int,
        conference_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Optional[Tournament]:
        """First tournament of this type and year, narrowed by conference id or name substring."""
        for t in self._tournaments.values():
            if t.type != tournament_type or t.year != year:
                continue
            if conference_id is not None and str(t.metadata.get("conference_id")) != str(conference_id):
                continue
            if name is not None and name.lower() not in t.name.lower():
                continue
            return copy.deepcopy(t)
        return None

    def create_tournament(self, tournament: Tournament) -> Tournament:
        stored = copy.deepcopy(tournament)
        if not stored.id:
            stored.id = str(uuid.uuid4())
        if stored.id in self._tournaments:
            raise PersistenceError(f"Tournament already exists: {stored.id}")
        self._tournaments[stored.id] = stored
        return copy.deepcopy(stored)

    def list_tournaments(self) -> List[Tournament]:
        return [copy.deepcopy(t) for t in self._tournaments.values()]


class InMemoryPickStore:
    """Picks keyed by ``(user_id, tournament_id)``."""

    def __init__(self, picks: Optional[Dict[Tuple[str, str], Dict[str, str]]] = None):
        self._picks = dict(picks or {})

    def get_picks(self, user_id: str, tournament_id: str) -> Dict[str, str]:
        return dict(self._picks.get((user_id, tournament_id), {}))


class FixtureStores:
    """All four in-memory stores loaded from a single JSON fixture file.

    Fixture layout::

        {
          "tournaments": [{"id": "t1", "type": "ncaa", ...}],
          "teams": [{"id": "duke", "name": "Duke", ...}],
          "games": [{"id": "g1", "tournament_id": "t1", ...}],
          "picks": [{"user_id": "u1", "tournament_id": "t1",
                     "picks": {"g1": "duke"}}]
        }
    """

    def __init__(self, data: Dict[str, Any]):
        self.tournaments = InMemoryTournamentStore(
            Tournament.from_dict(t) for t in data.get("tournaments", [])
        )
        self.teams = InMemoryTeamCatalog(CanonicalTeam.from_dict(t) for t in data.get("teams", []))
        self.games = InMemoryGameStore(TournamentGame.from_dict(g) for g in data.get("games", []))
        self.picks = InMemoryPickStore(
            {
                (row["user_id"], row["tournament_id"]): dict(row.get("picks", {}))
                for row in data.get("picks", [])
            }
        )
        self._pick_rows = list(data.get("picks", []))

    @classmethod
    def load(cls, path: str) -> "FixtureStores":
        with open(path, "r") as f:
            return cls(json.load(f))

    def save(self, path: str) -> str:
        payload = {
            "tournaments": [t.to_dict() for t in self.tournaments.list_tournaments()],
            "teams": [t.to_dict() for t in self.teams.list_teams()],
            "games": [g.to_dict() for g in self.games.all_games()],
            "picks": self._pick_rows,
        }
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)
        return path
