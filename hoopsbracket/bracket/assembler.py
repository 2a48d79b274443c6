"""Group a tournament's games into ordered bracket rounds."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.bracket import Bracket, BracketRound
from ..models.game import TournamentGame
from .rounds import DEFAULT_ROUND_ORDER, RoundOrder

NCAA_REGIONS = ("East", "West", "South", "Midwest")


def _date_key(game: TournamentGame) -> Tuple[int, float]:
    # Missing dates sort after dated games; sorted() keeps input order on ties.
    if isinstance(game.date, datetime):
        return (0, game.date.timestamp())
    return (1, 0.0)


def sort_games_by_date(games: Sequence[TournamentGame]) -> List[TournamentGame]:
    return sorted(games, key=_date_key)


def _region_order(seen: Sequence[str]) -> List[str]:
    standard = [r for r in NCAA_REGIONS if r in seen]
    others = [r for r in seen if r not in NCAA_REGIONS]
    return standard + others


def assemble(
    games: Sequence[TournamentGame],
    tournament_type: str = "ncaa",
    round_order: RoundOrder = DEFAULT_ROUND_ORDER,
) -> Bracket:
    """
    Build the bracket view of a tournament's games.

    Args:
        games: all games of one tournament, in any order
        tournament_type: "ncaa" sub-groups each round by region
        round_order: shared round table

    Returns:
        Bracket whose rounds are ordered by round rank (then region) and whose
        games are ordered by date.  Nothing is dropped or validated here: a
        round of odd size is returned as-is and ``BracketRound.pairs()``
        reports it as unpairable.
    """
    by_region = tournament_type == "ncaa"

    groups: Dict[Tuple[str, Optional[str]], List[TournamentGame]] = {}
    first_seen: List[Tuple[str, Optional[str]]] = []
    seen_regions: List[str] = []
    for game in games:
        region = game.region if by_region else None
        key = (game.round or "unknown", region)
        if key not in groups:
            groups[key] = []
            first_seen.append(key)
        groups[key].append(game)
        if by_region and region and region not in seen_regions:
            seen_regions.append(region)

    regions = _region_order(seen_regions)
    region_rank = {region: idx for idx, region in enumerate(regions)}

    def group_key(item: Tuple[int, Tuple[str, Optional[str]]]):
        idx, (round_key, region) = item
        return (
            round_order.rank(round_key),
            region_rank.get(region, len(region_rank)) if region is not None else len(region_rank) + 1,
            idx,
        )

    ordered = sorted(enumerate(first_seen), key=group_key)
    rounds = [
        BracketRound(round=round_key, region=region, games=sort_games_by_date(groups[(round_key, region)]))
        for _, (round_key, region) in ordered
    ]
    return Bracket(rounds=rounds, regions=regions)
