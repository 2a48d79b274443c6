"""Team matching and game ingestion."""

from .normalize import levenshtein, match_score, normalize, similarity
from .team_resolver import TeamResolver

__all__ = [
    "TeamResolver",
    "levenshtein",
    "match_score",
    "normalize",
    "similarity",
]
