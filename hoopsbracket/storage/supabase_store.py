"""Supabase (hosted Postgres) implementations of the collaborator contracts.

Table layout follows the application schema:

  teams           id, name, short_name, abbreviation, external_ids (jsonb)
  games           id, tournament_id, tournament_round, tournament_metadata (jsonb),
                  home_team_id, away_team_id, game_date, status, home_score,
                  away_score, venue, external_id, external_source
  tournaments     id, name, type, year, metadata (jsonb), start_date, end_date,
                  status, location, external_source
  bracket_picks   user_id, tournament_id, picks (jsonb: {game_id: {winner_team_id, picked_at}})

Region, seeds, placeholder flag and advancement pointers live in
``games.tournament_metadata``.  Every PostgREST failure is re-raised as
``PersistenceError`` so the importer can record it per game.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..config import AppConfig
from ..exceptions import PersistenceError
from ..models.game import Tournament, TournamentGame, parse_datetime
from ..models.team import CanonicalTeam

logger = logging.getLogger(__name__)

# TournamentGame field -> tournament_metadata key
_METADATA_FIELDS = {
    "region": "region",
    "seed_home": "seed_home",
    "seed_away": "seed_away",
    "is_placeholder": "is_placeholder",
    "next_game_id": "next_game_id",
    "winner_advances_to_slot": "winner_advances_to",
    "loser_next_game_id": "loser_next_game_id",
    "loser_advances_to_slot": "loser_advances_to",
}

# TournamentGame field -> games column
_COLUMN_FIELDS = {
    "tournament_id": "tournament_id",
    "round": "tournament_round",
    "home_team_id": "home_team_id",
    "away_team_id": "away_team_id",
    "date": "game_date",
    "status": "status",
    "home_score": "home_score",
    "away_score": "away_score",
    "venue": "venue",
    "external_id": "external_id",
    "external_source": "external_source",
}

_GAME_COLUMNS = "id, " + ", ".join(list(_COLUMN_FIELDS.values()) + ["tournament_metadata"])


def create_supabase_client(config: AppConfig) -> Client:
    """Create a Supabase client from configuration."""
    if not config.supabase_url or not config.supabase_key:
        raise PersistenceError("SUPABASE_URL and SUPABASE_KEY must be set")
    key_snippet = f"{config.supabase_key[:5]}...{config.supabase_key[-5:]}"
    logger.debug("Creating Supabase client for %s (key %s)", config.supabase_url, key_snippet)
    return create_client(config.supabase_url, config.supabase_key)


def _execute(query, action: str):
    try:
        return query.execute()
    except APIError as e:
        logger.debug("Full APIError details: %s", e)
        raise PersistenceError(f"Failed to {action}: {e.message}") from e


def row_to_game(row: Dict[str, Any]) -> TournamentGame:
    metadata = row.get("tournament_metadata") or {}
    data: Dict[str, Any] = {"id": row["id"]}
    for field_name, column in _COLUMN_FIELDS.items():
        data[field_name] = row.get(column)
    for field_name, key in _METADATA_FIELDS.items():
        data[field_name] = metadata.get(key)
    data["round"] = data["round"] or ""
    data["status"] = data["status"] or "scheduled"
    data["date"] = parse_datetime(data["date"])
    return TournamentGame.from_dict(data)


def _split_changes(changes: Dict[str, Any]):
    columns: Dict[str, Any] = {}
    metadata: Dict[str, Any] = {}
    for field_name, value in changes.items():
        if field_name in _COLUMN_FIELDS:
            if isinstance(value, datetime):
                value = value.isoformat()
            columns[_COLUMN_FIELDS[field_name]] = value
        elif field_name in _METADATA_FIELDS:
            metadata[_METADATA_FIELDS[field_name]] = value
        elif field_name != "id":
            raise PersistenceError(f"Unknown game field: {field_name}")
    return columns, metadata


class SupabaseTeamCatalog:
    def __init__(self, client: Client):
        self.client = client

    def list_teams(self) -> List[CanonicalTeam]:
        response = _execute(
            self.client.table("teams").select("id, name, short_name, abbreviation, external_ids"),
            "fetch teams",
        )
        return [CanonicalTeam.from_dict(row) for row in response.data or []]

    def set_external_id(self, team_id: str, source: str, external_id: str) -> None:
        response = _execute(
            self.client.table("teams").select("external_ids").eq("id", team_id).limit(1),
            "fetch team external ids",
        )
        if not response.data:
            raise PersistenceError(f"Unknown team id: {team_id}")
        external_ids = dict(response.data[0].get("external_ids") or {})
        external_ids[source] = external_id
        _execute(
            self.client.table("teams").update({"external_ids": external_ids}).eq("id", team_id),
            "save external team id",
        )


class SupabaseGameStore:
    def __init__(self, client: Client):
        self.client = client

    def find_by_external_id(self, external_id: str, external_source: str) -> Optional[TournamentGame]:
        response = _execute(
            self.client.table("games")
            .select(_GAME_COLUMNS)
            .eq("external_id", external_id)
            .eq("external_source", external_source)
            .limit(1),
            "look up game",
        )
        return row_to_game(response.data[0]) if response.data else None

    def create_game(self, game: TournamentGame) -> TournamentGame:
        columns, metadata = _split_changes(game.to_dict())
        columns["tournament_metadata"] = {k: v for k, v in metadata.items() if v is not None}
        if game.id:
            columns["id"] = game.id
        response = _execute(
            self.client.table("games").insert(columns), "create game"
        )
        if not response.data:
            raise PersistenceError("Failed to create game: empty response")
        return row_to_game(response.data[0])

    def update_game(self, game_id: str, changes: Dict[str, Any]) -> None:
        columns, metadata = _split_changes(changes)
        if metadata:
            response = _execute(
                self.client.table("games").select("tournament_metadata").eq("id", game_id).limit(1),
                "fetch game metadata",
            )
            if not response.data:
                raise PersistenceError(f"Unknown game id: {game_id}")
            merged = dict(response.data[0].get("tournament_metadata") or {})
            merged.update(metadata)
            columns["tournament_metadata"] = {k: v for k, v in merged.items() if v is not None}
        columns["updated_at"] = datetime.now(timezone.utc).isoformat()
        _execute(self.client.table("games").update(columns).eq("id", game_id), "update game")

    def list_tournament_games(self, tournament_id: str) -> List[TournamentGame]:
        response = _execute(
            self.client.table("games")
            .select(_GAME_COLUMNS)
            .eq("tournament_id", tournament_id)
            .order("game_date"),
            "fetch tournament games",
        )
        return [row_to_game(row) for row in response.data or []]


_TOURNAMENT_COLUMNS = "id, name, type, year, metadata, start_date, end_date, status, location, external_source"


class SupabaseTournamentStore:
    def __init__(self, client: Client):
        self.client = client

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        response = _execute(
            self.client.table("tournaments").select(_TOURNAMENT_COLUMNS).eq("id", tournament_id).limit(1),
            "fetch tournament",
        )
        return Tournament.from_dict(response.data[0]) if response.data else None

    def find_tournament(
        self,
        tournament_type: str,
        year: int,
        conference_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Optional[Tournament]:
        query = (
            self.client.table("tournaments")
            .select(_TOURNAMENT_COLUMNS)
            .eq("type", tournament_type)
            .eq("year", year)
        )
        if conference_id is not None:
            query = query.eq("metadata->>conference_id", str(conference_id))
        if name is not None:
            query = query.ilike("name", f"%{name}%")
        response = _execute(query.limit(1), "find tournament")
        return Tournament.from_dict(response.data[0]) if response.data else None

    def create_tournament(self, tournament: Tournament) -> Tournament:
        row = tournament.to_dict()
        if not row["id"]:
            del row["id"]
        response = _execute(self.client.table("tournaments").insert(row), "create tournament")
        if not response.data:
            raise PersistenceError("Failed to create tournament: empty response")
        return Tournament.from_dict(response.data[0])


class SupabasePickStore:
    def __init__(self, client: Client):
        self.client = client

    def get_picks(self, user_id: str, tournament_id: str) -> Dict[str, str]:
        response = _execute(
            self.client.table("bracket_picks")
            .select("picks")
            .eq("user_id", user_id)
            .eq("tournament_id", tournament_id)
            .limit(1),
            "fetch bracket picks",
        )
        if not response.data:
            return {}
        picks = response.data[0].get("picks") or {}
        out: Dict[str, str] = {}
        for game_id, pick in picks.items():
            winner = pick.get("winner_team_id") if isinstance(pick, dict) else pick
            if winner:
                out[game_id] = winner
        return out


class SupabaseStores:
    """The four Supabase stores sharing one client (mirrors ``FixtureStores``)."""

    def __init__(self, client: Client):
        self.client = client
        self.teams = SupabaseTeamCatalog(client)
        self.games = SupabaseGameStore(client)
        self.tournaments = SupabaseTournamentStore(client)
        self.picks = SupabasePickStore(client)

    @classmethod
    def from_config(cls, config: AppConfig) -> "SupabaseStores":
        return cls(create_supabase_client(config))
