"""Tests for the in-memory stores and JSON fixture round trip."""

import json

import pytest

from hoopsbracket.exceptions import PersistenceError
from hoopsbracket.models.game import Tournament, TournamentGame
from hoopsbracket.models.team import CanonicalTeam
from hoopsbracket.storage.memory import (
    FixtureStores,
    InMemoryGameStore,
    InMemoryPickStore,
    InMemoryTeamCatalog,
    InMemoryTournamentStore,
)


def _game(game_id="", external_id="e1", **kwargs):
    return TournamentGame(game_id, "t1", "round_of_64", external_id=external_id, external_source="espn", **kwargs)


# ---------------------------------------------------------------------------
# Team catalog
# ---------------------------------------------------------------------------


class TestTeamCatalog:
    def test_set_external_id(self):
        catalog = InMemoryTeamCatalog([CanonicalTeam("duke", "Duke")])
        catalog.set_external_id("duke", "espn", "150")
        assert catalog.get("duke").external_ids == {"espn": "150"}
        assert catalog.writes == 1

    def test_unknown_team_raises(self):
        catalog = InMemoryTeamCatalog()
        with pytest.raises(PersistenceError):
            catalog.set_external_id("nope", "espn", "1")

    def test_returned_teams_are_copies(self):
        catalog = InMemoryTeamCatalog([CanonicalTeam("duke", "Duke")])
        catalog.list_teams()[0].external_ids["espn"] = "x"
        assert catalog.get("duke").external_ids == {}


# ---------------------------------------------------------------------------
# Game store
# ---------------------------------------------------------------------------


class TestGameStore:
    def test_create_assigns_id(self):
        store = InMemoryGameStore()
        created = store.create_game(_game())
        assert created.id
        assert store.find_by_external_id("e1", "espn").id == created.id

    def test_duplicate_natural_key_rejected(self):
        store = InMemoryGameStore()
        store.create_game(_game("g1"))
        with pytest.raises(PersistenceError):
            store.create_game(_game("g2"))
        assert len(store) == 1

    def test_duplicate_id_rejected(self):
        store = InMemoryGameStore([_game("g1")])
        with pytest.raises(PersistenceError):
            store.create_game(_game("g1", external_id="e2"))

    def test_same_external_id_other_source_allowed(self):
        store = InMemoryGameStore([_game("g1")])
        store.create_game(TournamentGame("g2", "t1", "round_of_64", external_id="e1", external_source="ncaa"))
        assert len(store) == 2

    def test_update_game(self):
        store = InMemoryGameStore([_game("g1")])
        store.update_game("g1", {"home_score": 70, "status": "completed"})
        game = store.get("g1")
        assert (game.home_score, game.status) == (70, "completed")

    def test_update_rekeys_natural_key(self):
        store = InMemoryGameStore([_game("g1")])
        store.update_game("g1", {"external_id": "e9"})
        assert store.find_by_external_id("e1", "espn") is None
        assert store.find_by_external_id("e9", "espn").id == "g1"

    def test_update_unknown_field_rejected(self):
        store = InMemoryGameStore([_game("g1")])
        with pytest.raises(PersistenceError):
            store.update_game("g1", {"winner": "duke"})

    def test_update_unknown_game_rejected(self):
        with pytest.raises(PersistenceError):
            InMemoryGameStore().update_game("nope", {"status": "completed"})

    def test_list_tournament_games_filters(self):
        store = InMemoryGameStore([_game("g1"), TournamentGame("g2", "t2", "round_of_64")])
        assert [g.id for g in store.list_tournament_games("t1")] == ["g1"]


class TestTournamentStore:
    def test_create_assigns_id(self):
        store = InMemoryTournamentStore()
        created = store.create_tournament(Tournament("", "2025 NCAA Tournament", "ncaa", 2025))
        assert created.id
        assert store.get_tournament(created.id).name == "2025 NCAA Tournament"

    def test_duplicate_id_rejected(self):
        store = InMemoryTournamentStore([Tournament("t1")])
        with pytest.raises(PersistenceError):
            store.create_tournament(Tournament("t1"))

    def test_find_by_type_year_and_conference(self):
        store = InMemoryTournamentStore(
            [
                Tournament("acc", "2025 ACC Tournament", "conference", 2025, metadata={"conference_id": "2"}),
                Tournament("acc24", "2024 ACC Tournament", "conference", 2024, metadata={"conference_id": "2"}),
                Tournament("maui", "Maui Invitational", "mte", 2024),
            ]
        )
        assert store.find_tournament("conference", 2025, conference_id="2").id == "acc"
        assert store.find_tournament("conference", 2025, conference_id="4") is None
        assert store.find_tournament("mte", 2024, name="MAUI").id == "maui"
        assert store.find_tournament("ncaa", 2025) is None


class TestPickStore:
    def test_missing_user_returns_empty(self):
        store = InMemoryPickStore({("u1", "t1"): {"g1": "duke"}})
        assert store.get_picks("u1", "t1") == {"g1": "duke"}
        assert store.get_picks("u2", "t1") == {}


# ---------------------------------------------------------------------------
# Fixture files
# ---------------------------------------------------------------------------


class TestFixtureStores:
    def test_load_and_save(self, tmp_path):
        path = tmp_path / "fixture.json"
        path.write_text(
            json.dumps(
                {
                    "tournaments": [{"id": "t1", "name": "Test", "type": "conference"}],
                    "teams": [{"id": "duke", "name": "Duke"}],
                    "games": [{"id": "g1", "tournament_id": "t1", "round": "finals", "date": "2025-03-15T20:00:00+00:00"}],
                    "picks": [{"user_id": "u1", "tournament_id": "t1", "picks": {"g1": "duke"}}],
                }
            )
        )
        stores = FixtureStores.load(str(path))
        assert stores.tournaments.get_tournament("t1").type == "conference"
        assert stores.picks.get_picks("u1", "t1") == {"g1": "duke"}

        stores.teams.set_external_id("duke", "espn", "150")
        stores.games.update_game("g1", {"home_score": 80})
        stores.tournaments.create_tournament(Tournament("t2", "2025 NCAA Tournament", "ncaa", 2025))
        stores.save(str(path))

        reloaded = json.loads(path.read_text())
        assert reloaded["teams"][0]["external_ids"] == {"espn": "150"}
        assert reloaded["games"][0]["home_score"] == 80
        assert reloaded["games"][0]["date"] == "2025-03-15T20:00:00+00:00"
        assert reloaded["picks"][0]["picks"] == {"g1": "duke"}
        assert [t["id"] for t in reloaded["tournaments"]] == ["t1", "t2"]
        assert reloaded["tournaments"][1]["status"] == "upcoming"

    def test_empty_fixture(self):
        stores = FixtureStores({})
        assert stores.teams.list_teams() == []
        assert stores.tournaments.get_tournament("t1") is None
