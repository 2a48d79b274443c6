"""External event feeds."""

from .espn_feed import ESPN_API_BASE, ESPN_SOURCE, EspnScoreboardFeed

__all__ = [
    "ESPN_API_BASE",
    "ESPN_SOURCE",
    "EspnScoreboardFeed",
]
