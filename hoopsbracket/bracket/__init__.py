"""Bracket construction: round ordering, grouping, pick propagation."""

from .assembler import NCAA_REGIONS, assemble
from .progression import find_advancement_cycles, link_progression, validate_advancement_graph
from .propagation import build_advancements, propagate, round_columns
from .rounds import DEFAULT_ROUND_ORDER, UNKNOWN_RANK, RoundOrder

__all__ = [
    "DEFAULT_ROUND_ORDER",
    "NCAA_REGIONS",
    "RoundOrder",
    "UNKNOWN_RANK",
    "assemble",
    "build_advancements",
    "find_advancement_cycles",
    "link_progression",
    "propagate",
    "round_columns",
    "validate_advancement_graph",
]
