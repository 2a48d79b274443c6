"""Tests for the shared round-order table."""

import pytest

from hoopsbracket.bracket.rounds import DEFAULT_ROUND_ORDER, UNKNOWN_RANK, RoundOrder


class TestRank:
    def test_total_order(self):
        order = ["first_four", "round_of_64", "round_of_32", "sweet_16", "elite_8", "final_four", "semifinals", "championship"]
        ranks = [DEFAULT_ROUND_ORDER.rank(r) for r in order]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == len(ranks)

    def test_shared_positions(self):
        assert DEFAULT_ROUND_ORDER.rank("consolation") == DEFAULT_ROUND_ORDER.rank("final_four")
        assert DEFAULT_ROUND_ORDER.rank("finals") == DEFAULT_ROUND_ORDER.rank("championship")

    @pytest.mark.parametrize("label", ["exhibition", "", None])
    def test_unknown_ranks_last(self, label):
        assert DEFAULT_ROUND_ORDER.rank(label) == UNKNOWN_RANK
        assert not DEFAULT_ROUND_ORDER.is_known(label)

    def test_custom_table(self):
        pools = RoundOrder({"pool_play": 1, "quarterfinals": 2, "semifinals": 3, "finals": 4})
        assert pools.rank("pool_play") < pools.rank("quarterfinals")
        assert pools.rank("round_of_64") == UNKNOWN_RANK


class TestSide:
    @pytest.mark.parametrize(
        "round_key,side",
        [
            ("round_of_64", "left"),
            ("consolation", "left"),
            ("final_four", "left"),
            ("semifinals", "center"),
            ("championship", "right"),
            ("finals", "right"),
            ("mystery", "unknown"),
        ],
    )
    def test_side(self, round_key, side):
        assert DEFAULT_ROUND_ORDER.side(round_key) == side


class TestCanonical:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("1st Round", "round_of_64"),
            ("First Round", "round_of_64"),
            ("2nd Round", "round_of_32"),
            ("Sweet 16", "sweet_16"),
            ("Elite Eight", "elite_8"),
            ("Final Four", "final_four"),
            ("National Semifinal", "final_four"),
            ("First Four", "first_four"),
            ("Semifinals", "semifinals"),
            ("Third Place", "consolation"),
            ("National Championship", "championship"),
            ("Final", "finals"),
            ("round_of_32", "round_of_32"),
            ("Quarterfinals", "quarterfinals"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_canonical(self, label, expected):
        assert DEFAULT_ROUND_ORDER.canonical(label) == expected

    def test_display_name(self):
        assert DEFAULT_ROUND_ORDER.display_name("sweet_16") == "Sweet 16"
        assert DEFAULT_ROUND_ORDER.display_name("quarterfinals") == "Quarterfinals"
