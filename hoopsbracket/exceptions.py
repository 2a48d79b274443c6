"""Error taxonomy for tournament ingestion and bracket construction.

Only ``FatalInputError`` (and its subclasses) ever escapes
``GameImporter.import_games``.  Unmatched teams and malformed bracket
metadata are reported as data, not raised.
"""


class HoopsBracketError(Exception):
    """Base class for all package errors."""


class FatalInputError(ValueError, HoopsBracketError):
    """Raised when an import cannot start at all (bad payload shape)."""


class TournamentNotFoundError(FatalInputError):
    """Raised when the target tournament id does not exist."""

    def __init__(self, tournament_id: str):
        super().__init__(f"Tournament not found: {tournament_id}")
        self.tournament_id = tournament_id


class PersistenceError(HoopsBracketError):
    """Raised by store implementations when a single write fails."""


class FeedError(HoopsBracketError):
    """Raised when the external event feed cannot be fetched."""
