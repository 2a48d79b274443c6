"""Data model for tournament ingestion and bracket construction."""

from .bracket import AdvancementEntry, Bracket, BracketRound
from .game import AWAY, HOME, RawGame, Tournament, TournamentGame, UserPick, parse_datetime
from .team import CanonicalTeam, ExternalTeamRecord, MatchResult

__all__ = [
    "AWAY",
    "AdvancementEntry",
    "Bracket",
    "BracketRound",
    "CanonicalTeam",
    "ExternalTeamRecord",
    "HOME",
    "MatchResult",
    "RawGame",
    "Tournament",
    "TournamentGame",
    "UserPick",
    "parse_datetime",
]
