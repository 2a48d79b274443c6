"""Tests for advancement pointer linking and graph checks."""

from datetime import datetime, timedelta, timezone

from hoopsbracket.bracket.progression import (
    find_advancement_cycles,
    link_progression,
    validate_advancement_graph,
)
from hoopsbracket.bracket.propagation import propagate
from hoopsbracket.models.game import TournamentGame

BASE = datetime(2025, 3, 20, tzinfo=timezone.utc)


def _g(game_id, round_key, region=None, day=0, **kwargs):
    return TournamentGame(game_id, "t1", round_key, region=region, date=BASE + timedelta(days=day), **kwargs)


def _region(name, day=0):
    prefix = name[0].lower()
    return [
        _g(f"{prefix}64a", "round_of_64", name, day, home_team_id=f"{prefix}1", away_team_id=f"{prefix}2"),
        _g(f"{prefix}64b", "round_of_64", name, day, home_team_id=f"{prefix}3", away_team_id=f"{prefix}4"),
        _g(f"{prefix}64c", "round_of_64", name, day, home_team_id=f"{prefix}5", away_team_id=f"{prefix}6"),
        _g(f"{prefix}64d", "round_of_64", name, day, home_team_id=f"{prefix}7", away_team_id=f"{prefix}8"),
        _g(f"{prefix}32a", "round_of_32", name, day + 2, is_placeholder=True),
        _g(f"{prefix}32b", "round_of_32", name, day + 2, is_placeholder=True),
        _g(f"{prefix}16", "sweet_16", name, day + 4, is_placeholder=True),
    ]


def _by_id(games):
    return {g.id: g for g in games}


# ---------------------------------------------------------------------------
# link_progression
# ---------------------------------------------------------------------------


class TestLinkProgression:
    def test_regional_rounds_halve(self):
        linked = _by_id(link_progression(_region("East"), "ncaa"))
        assert (linked["e64a"].next_game_id, linked["e64a"].winner_advances_to_slot) == ("e32a", "home")
        assert (linked["e64b"].next_game_id, linked["e64b"].winner_advances_to_slot) == ("e32a", "away")
        assert (linked["e64c"].next_game_id, linked["e64c"].winner_advances_to_slot) == ("e32b", "home")
        assert (linked["e64d"].next_game_id, linked["e64d"].winner_advances_to_slot) == ("e32b", "away")
        assert linked["e32b"].next_game_id == "e16"
        assert linked["e16"].next_game_id is None

    def test_regional_finals_feed_national_round(self):
        games = _region("East") + _region("West") + [_g("ff", "final_four", None, 8, is_placeholder=True)]
        linked = _by_id(link_progression(games, "ncaa"))
        assert (linked["e16"].next_game_id, linked["e16"].winner_advances_to_slot) == ("ff", "home")
        assert (linked["w16"].next_game_id, linked["w16"].winner_advances_to_slot) == ("ff", "away")

    def test_first_four_is_not_linked(self):
        games = _region("East") + [_g("ff1", "first_four", "East", -2)]
        linked = _by_id(link_progression(games, "ncaa"))
        assert linked["ff1"].next_game_id is None

    def test_consolation_gets_semifinal_losers(self):
        games = [
            _g("s1", "semifinals", home_team_id="a", away_team_id="b"),
            _g("s2", "semifinals", home_team_id="c", away_team_id="d"),
            _g("f", "championship", day=1, is_placeholder=True),
            _g("c", "consolation", day=1, is_placeholder=True),
        ]
        linked = _by_id(link_progression(games, "conference"))
        assert (linked["s1"].loser_next_game_id, linked["s1"].loser_advances_to_slot) == ("c", "home")
        assert (linked["s2"].loser_next_game_id, linked["s2"].loser_advances_to_slot) == ("c", "away")
        assert linked["s1"].next_game_id == "f"

        shown = _by_id(propagate(list(linked.values()), {"s1": "a", "s2": "d"}))
        assert (shown["c"].home_team_id, shown["c"].away_team_id) == ("b", "c")

    def test_existing_pointers_kept(self):
        games = _region("East")
        games[0] = games[0].with_changes(next_game_id="e32b", winner_advances_to_slot="away")
        linked = _by_id(link_progression(games, "ncaa"))
        assert (linked["e64a"].next_game_id, linked["e64a"].winner_advances_to_slot) == ("e32b", "away")

    def test_unpairable_round_left_alone(self):
        games = [
            _g("a", "round_of_64", "East"),
            _g("b", "round_of_64", "East"),
            _g("c", "round_of_64", "East"),
            _g("d", "round_of_32", "East", 2),
        ]
        linked = link_progression(games, "ncaa")
        assert all(g.next_game_id is None for g in linked)

    def test_inputs_not_mutated(self):
        games = _region("East")
        link_progression(games, "ncaa")
        assert all(g.next_game_id is None for g in games)

    def test_linked_bracket_validates(self):
        games = _region("East") + _region("West") + [_g("ff", "final_four", None, 8, is_placeholder=True)]
        assert validate_advancement_graph(link_progression(games, "ncaa")) == []


# ---------------------------------------------------------------------------
# Graph checks
# ---------------------------------------------------------------------------


class TestCycles:
    def test_acyclic(self):
        games = [_g("a", "r", next_game_id="b", winner_advances_to_slot="home"), _g("b", "r")]
        assert find_advancement_cycles(games) == []

    def test_two_cycle(self):
        games = [
            _g("a", "r", next_game_id="b", winner_advances_to_slot="home"),
            _g("b", "r", next_game_id="a", winner_advances_to_slot="home"),
        ]
        assert find_advancement_cycles(games) == [["a", "b", "a"]]

    def test_self_loop_via_loser_pointer(self):
        games = [_g("a", "r", loser_next_game_id="a", loser_advances_to_slot="away")]
        assert find_advancement_cycles(games) == [["a", "a"]]

    def test_dangling_pointer_is_not_a_cycle(self):
        games = [_g("a", "r", next_game_id="missing", winner_advances_to_slot="home")]
        assert find_advancement_cycles(games) == []


class TestValidateGraph:
    def test_reports_problems(self):
        games = [
            _g("a", "r", next_game_id="missing", winner_advances_to_slot="home"),
            _g("b", "r", next_game_id="a"),
            _g("c", "r", loser_next_game_id="a", loser_advances_to_slot="left"),
        ]
        errors = validate_advancement_graph(games)
        assert "game a: winner advances to unknown game missing" in errors
        assert "game b: winner pointer has no slot" in errors
        assert "game c: invalid loser slot 'left'" in errors

    def test_reports_cycles(self):
        games = [
            _g("a", "r", next_game_id="b", winner_advances_to_slot="home"),
            _g("b", "r", next_game_id="a", winner_advances_to_slot="away"),
        ]
        assert validate_advancement_graph(games) == ["advancement cycle: a -> b -> a"]
