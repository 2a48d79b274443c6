"""Collaborator contracts and store implementations."""

from .base import GameStore, PickStore, TeamCatalog, TournamentStore
from .memory import (
    FixtureStores,
    InMemoryGameStore,
    InMemoryPickStore,
    InMemoryTeamCatalog,
    InMemoryTournamentStore,
)

__all__ = [
    "FixtureStores",
    "GameStore",
    "InMemoryGameStore",
    "InMemoryPickStore",
    "InMemoryTeamCatalog",
    "InMemoryTournamentStore",
    "PickStore",
    "TeamCatalog",
    "TournamentStore",
]
