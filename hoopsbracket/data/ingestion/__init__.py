"""Game import workflows for external feeds."""

from .game_importer import GameImporter, ImportOptions, ImportResult
from .validators import validate_raw_game, validate_raw_games_payload

__all__ = [
    "GameImporter",
    "ImportOptions",
    "ImportResult",
    "validate_raw_game",
    "validate_raw_games_payload",
]
