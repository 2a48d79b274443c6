"""Shared round-order table.

One ``RoundOrder`` instance is injected into the assembler, the propagator
and the progression linker so a new bracket format only needs a new table.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping, Optional

UNKNOWN_RANK = 99

DEFAULT_RANKS: Dict[str, int] = {
    "first_four": 1,
    "round_of_64": 2,
    "round_of_32": 3,
    "sweet_16": 4,
    "elite_8": 5,
    "final_four": 6,
    "consolation": 6,  # left of center
    "semifinals": 7,  # center
    "championship": 8,  # right of center
    "finals": 8,
}

DEFAULT_DISPLAY_NAMES: Dict[str, str] = {
    "first_four": "First Four",
    "round_of_64": "Round of 64",
    "round_of_32": "Round of 32",
    "sweet_16": "Sweet 16",
    "elite_8": "Elite 8",
    "final_four": "Final Four",
    "consolation": "Consolation",
    "semifinals": "Semifinals",
    "championship": "Championship",
    "finals": "Finals",
}

# Feed headline fragments -> round key, checked in order.
_LABEL_PATTERNS = (
    (re.compile(r"first four|play[- ]?in"), "first_four"),
    (re.compile(r"\b1st round\b|first round|round of 64"), "round_of_64"),
    (re.compile(r"\b2nd round\b|second round|round of 32"), "round_of_32"),
    (re.compile(r"sweet 16|sweet sixteen|regional semifinal"), "sweet_16"),
    (re.compile(r"elite 8|elite eight|regional final"), "elite_8"),
    (re.compile(r"final four|national semifinal"), "final_four"),
    (re.compile(r"consolation|third place|3rd place"), "consolation"),
    (re.compile(r"semifinal"), "semifinals"),
    (re.compile(r"national championship|championship"), "championship"),
    (re.compile(r"\bfinals?\b"), "finals"),
)


def _slugify(label: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", label.lower()).strip("_")


class RoundOrder:
    """Total order over round labels; unknown labels rank last."""

    def __init__(
        self,
        ranks: Optional[Mapping[str, int]] = None,
        display_names: Optional[Mapping[str, str]] = None,
        center_round: str = "semifinals",
    ):
        self.ranks = dict(DEFAULT_RANKS if ranks is None else ranks)
        self.display_names = dict(DEFAULT_DISPLAY_NAMES if display_names is None else display_names)
        self.center_round = center_round

    def rank(self, round_key: Optional[str]) -> int:
        if not round_key:
            return UNKNOWN_RANK
        return self.ranks.get(round_key, UNKNOWN_RANK)

    def is_known(self, round_key: Optional[str]) -> bool:
        return self.rank(round_key) != UNKNOWN_RANK

    def display_name(self, round_key: str) -> str:
        if round_key in self.display_names:
            return self.display_names[round_key]
        return round_key.replace("_", " ").title()

    def side(self, round_key: str) -> str:
        """Column placement for bracket layouts that converge on a final.

        Consolation and earlier rounds sit left of center, semifinals in the
        center, championship/finals to the right.
        """
        rank = self.rank(round_key)
        center = self.rank(self.center_round)
        if rank == UNKNOWN_RANK:
            return "unknown"
        if rank < center:
            return "left"
        if rank == center:
            return "center"
        return "right"

    def canonical(self, label: Optional[str]) -> str:
        """Map a feed round label ("1st Round", "Sweet 16") to a round key.

        Known keys pass through unchanged; unrecognized labels are slugified
        so they still group consistently (and sort last).
        """
        if not label:
            return ""
        slug = _slugify(label)
        if slug in self.ranks:
            return slug
        text = label.lower()
        for pattern, key in _LABEL_PATTERNS:
            if pattern.search(text) and key in self.ranks:
                return key
        return slug


DEFAULT_ROUND_ORDER = RoundOrder()
