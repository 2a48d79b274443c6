"""Derived bracket structures.  Recomputed on every read, never persisted."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .game import TournamentGame


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@dataclass
class BracketRound:
    """Games of one round (and region, for NCAA brackets) in display order."""

    round: str
    region: Optional[str] = None
    games: List[TournamentGame] = field(default_factory=list)

    @property
    def is_pairable(self) -> bool:
        """True when games can be paired two-by-two into a next round."""
        return _is_power_of_two(len(self.games)) and len(self.games) > 1

    def pairs(self) -> List[Tuple[TournamentGame, TournamentGame]]:
        """Adjacent game pairs feeding one next-round game each.

        Empty for rounds whose size breaks pairing; the renderer then simply
        draws no connectors for the round.
        """
        if not self.is_pairable:
            return []
        return [(self.games[i], self.games[i + 1]) for i in range(0, len(self.games), 2)]

    def to_dict(self) -> dict:
        return {
            "round": self.round,
            "region": self.region,
            "games": [g.to_dict() for g in self.games],
        }


@dataclass
class Bracket:
    """Ordered rounds plus the named regions present."""

    rounds: List[BracketRound] = field(default_factory=list)
    regions: List[str] = field(default_factory=list)

    @property
    def n_games(self) -> int:
        return sum(len(r.games) for r in self.rounds)

    def rounds_for_region(self, region: Optional[str]) -> List[BracketRound]:
        return [r for r in self.rounds if r.region == region]

    def to_dict(self) -> dict:
        return {
            "regions": list(self.regions),
            "rounds": [r.to_dict() for r in self.rounds],
        }


@dataclass(frozen=True)
class AdvancementEntry:
    """A team moved into a future game's slot by a user's pick."""

    target_game_id: str
    slot: str  # "home" | "away"
    team_id: Optional[str]
    seed: Optional[int] = None
