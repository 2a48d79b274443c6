"""Tests for the Supabase stores against a recording fake client."""

from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from hoopsbracket.config import AppConfig
from hoopsbracket.exceptions import PersistenceError
from hoopsbracket.models.game import Tournament, TournamentGame
from hoopsbracket.storage.supabase_store import (
    SupabaseGameStore,
    SupabasePickStore,
    SupabaseTeamCatalog,
    SupabaseTournamentStore,
    create_supabase_client,
    row_to_game,
)


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.ops = []

    def __getattr__(self, name):
        if name not in ("select", "eq", "ilike", "limit", "order", "insert", "update"):
            raise AttributeError(name)

        def op(*args):
            self.ops.append((name,) + args)
            return self

        return op

    def execute(self):
        self.client.executed.append(self)
        pending = self.client.responses.get(self.table) or [[]]
        data = pending.pop(0)
        if isinstance(data, Exception):
            raise data
        return SimpleNamespace(data=data)


class FakeClient:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)

    def ops(self, kind):
        return [op for q in self.executed for op in q.ops if op[0] == kind]


GAME_ROW = {
    "id": "g1",
    "tournament_id": "t1",
    "tournament_round": "round_of_64",
    "home_team_id": "duke",
    "away_team_id": "msm",
    "game_date": "2025-03-21T16:15:00+00:00",
    "status": "completed",
    "home_score": 93,
    "away_score": 49,
    "venue": "Lenovo Center",
    "external_id": "401",
    "external_source": "espn",
    "tournament_metadata": {
        "region": "East",
        "seed_home": 1,
        "seed_away": 16,
        "next_game_id": "g9",
        "winner_advances_to": "home",
    },
}


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


class TestRowMapping:
    def test_row_to_game(self):
        game = row_to_game(GAME_ROW)
        assert game.round == "round_of_64"
        assert (game.region, game.seed_home, game.seed_away) == ("East", 1, 16)
        assert (game.next_game_id, game.winner_advances_to_slot) == ("g9", "home")
        assert game.loser_next_game_id is None
        assert game.date.year == 2025
        assert not game.is_placeholder

    def test_sparse_row(self):
        game = row_to_game({"id": "g2", "tournament_id": "t1"})
        assert (game.round, game.status) == ("", "scheduled")
        assert game.date is None


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class TestGameStore:
    def test_find_by_external_id(self):
        client = FakeClient({"games": [[GAME_ROW]]})
        game = SupabaseGameStore(client).find_by_external_id("401", "espn")
        assert game.id == "g1"
        assert ("eq", "external_id", "401") in client.ops("eq")
        assert ("eq", "external_source", "espn") in client.ops("eq")

    def test_find_missing_returns_none(self):
        assert SupabaseGameStore(FakeClient()).find_by_external_id("x", "espn") is None

    def test_create_splits_metadata(self):
        client = FakeClient({"games": [[GAME_ROW]]})
        game = TournamentGame(
            "", "t1", "round_of_64", "duke", "msm", region="East", seed_home=1, seed_away=16,
            external_id="401", external_source="espn",
        )
        created = SupabaseGameStore(client).create_game(game)
        (_, row), = client.ops("insert")
        assert created.id == "g1"
        assert "id" not in row
        assert row["tournament_round"] == "round_of_64"
        assert row["tournament_metadata"] == {
            "region": "East",
            "seed_home": 1,
            "seed_away": 16,
            "is_placeholder": False,
        }

    def test_update_merges_metadata(self):
        client = FakeClient({"games": [[{"tournament_metadata": {"region": "East", "seed_home": 1}}], [{}]]})
        SupabaseGameStore(client).update_game("g1", {"home_score": 70, "next_game_id": "g9", "winner_advances_to_slot": "away"})
        (_, columns), = client.ops("update")
        assert columns["home_score"] == 70
        assert columns["tournament_metadata"] == {
            "region": "East",
            "seed_home": 1,
            "next_game_id": "g9",
            "winner_advances_to": "away",
        }
        assert "updated_at" in columns

    def test_update_columns_only_skips_metadata_read(self):
        client = FakeClient()
        SupabaseGameStore(client).update_game("g1", {"status": "completed"})
        assert len(client.executed) == 1
        (_, columns), = client.ops("update")
        assert "tournament_metadata" not in columns

    def test_update_unknown_field(self):
        with pytest.raises(PersistenceError):
            SupabaseGameStore(FakeClient()).update_game("g1", {"winner": "duke"})

    def test_api_error_wrapped(self):
        client = FakeClient({"games": [APIError({"message": "duplicate key value", "code": "23505"})]})
        with pytest.raises(PersistenceError, match="duplicate key value"):
            SupabaseGameStore(client).create_game(TournamentGame("", "t1", "finals"))

    def test_list_orders_by_date(self):
        client = FakeClient({"games": [[GAME_ROW]]})
        games = SupabaseGameStore(client).list_tournament_games("t1")
        assert [g.id for g in games] == ["g1"]
        assert client.ops("order") == [("order", "game_date")]


class TestTeamCatalog:
    def test_list_teams(self):
        client = FakeClient({"teams": [[{"id": "duke", "name": "Duke", "external_ids": {"espn": "150"}}]]})
        teams = SupabaseTeamCatalog(client).list_teams()
        assert teams[0].external_id_for("espn") == "150"

    def test_set_external_id_merges(self):
        client = FakeClient({"teams": [[{"external_ids": {"ncaa": "193"}}], [{}]]})
        SupabaseTeamCatalog(client).set_external_id("duke", "espn", "150")
        (_, payload), = client.ops("update")
        assert payload == {"external_ids": {"ncaa": "193", "espn": "150"}}

    def test_set_external_id_unknown_team(self):
        with pytest.raises(PersistenceError):
            SupabaseTeamCatalog(FakeClient()).set_external_id("nope", "espn", "1")


class TestTournamentsAndPicks:
    def test_get_tournament(self):
        client = FakeClient({"tournaments": [[{"id": "t1", "name": "Big East", "type": "conference", "year": 2025}]]})
        tournament = SupabaseTournamentStore(client).get_tournament("t1")
        assert (tournament.type, tournament.year) == ("conference", 2025)

    def test_find_conference_tournament(self):
        client = FakeClient({"tournaments": [[{"id": "acc", "name": "2025 ACC Tournament", "type": "conference", "year": 2025}]]})
        tournament = SupabaseTournamentStore(client).find_tournament("conference", 2025, conference_id="2")
        assert tournament.id == "acc"
        assert ("eq", "metadata->>conference_id", "2") in client.ops("eq")
        assert client.ops("ilike") == []

    def test_find_mte_by_name(self):
        client = FakeClient()
        assert SupabaseTournamentStore(client).find_tournament("mte", 2024, name="Maui") is None
        assert client.ops("ilike") == [("ilike", "name", "%Maui%")]

    def test_create_tournament_omits_empty_id(self):
        client = FakeClient({"tournaments": [[{"id": "new", "name": "2025 NCAA Tournament", "type": "ncaa", "year": 2025}]]})
        created = SupabaseTournamentStore(client).create_tournament(
            Tournament("", "2025 NCAA Tournament", "ncaa", 2025, status="in_progress")
        )
        (_, row), = client.ops("insert")
        assert created.id == "new"
        assert "id" not in row
        assert row["status"] == "in_progress"

    def test_get_picks_extracts_winners(self):
        picks = {"g1": {"winner_team_id": "duke", "picked_at": "2025-03-18T12:00:00Z"}, "g2": {"winner_team_id": None}}
        client = FakeClient({"bracket_picks": [[{"picks": picks}]]})
        assert SupabasePickStore(client).get_picks("u1", "t1") == {"g1": "duke"}

    def test_no_picks_row(self):
        assert SupabasePickStore(FakeClient()).get_picks("u1", "t1") == {}


def test_client_requires_credentials():
    with pytest.raises(PersistenceError):
        create_supabase_client(AppConfig(supabase_url="https://example.supabase.co"))
