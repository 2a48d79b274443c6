"""
ESPN scoreboard feed for men's college basketball tournament games.

ESPN's (unofficial) scoreboard API conventions:
  - tournament games are postseason events (``season.type == 3``)
  - tournament competitions have ``type.abbreviation == "TRNMNT"``
  - ``groups=50`` filters to the NCAA tournament
  - seeds are in ``competitors[].curatedRank.current`` (99 means unranked)
  - region and round are in the event note headline, e.g.
    "Men's Basketball Championship - West Region - 1st Round"
"""

from __future__ import annotations

import logging
import os
import re
from datetime import date
from typing import Dict, List, Optional, Union

import requests

from ...exceptions import FeedError
from ...models.game import RawGame, parse_datetime
from ...models.team import ExternalTeamRecord

logger = logging.getLogger(__name__)

ESPN_API_BASE = "https://site.api.espn.com/apis/site/v2/sports/basketball/mens-college-basketball"
ESPN_SOURCE = "espn"
NCAA_TOURNAMENT_GROUP = "50"
POSTSEASON = 3
UNRANKED = 99

_REGION_RE = re.compile(r"\b(East|West|South|Midwest) Region\b", re.IGNORECASE)

DateLike = Union[date, str]


def _format_date(value: DateLike) -> str:
    if isinstance(value, date):
        return value.strftime("%Y%m%d")
    return str(value).replace("-", "")


def _event_headline(notes: Optional[List[Dict]]) -> Optional[str]:
    for note in notes or []:
        if note.get("type") == "event" and note.get("headline"):
            return note["headline"]
    return None


def parse_region(headline: Optional[str]) -> Optional[str]:
    if not headline:
        return None
    match = _REGION_RE.search(headline)
    return match.group(1).title() if match else None


def parse_round_label(headline: Optional[str]) -> str:
    """Last " - " segment of the headline ("1st Round", "Final Four")."""
    if not headline:
        return ""
    return headline.split(" - ")[-1].strip()


def _seed(competitor: Dict) -> Optional[int]:
    current = (competitor.get("curatedRank") or {}).get("current")
    if not current or current == UNRANKED:
        return None
    return int(current)


def _score(competitor: Dict) -> Optional[int]:
    try:
        return int(competitor.get("score"))
    except (TypeError, ValueError):
        return None


def _team(competitor: Dict) -> ExternalTeamRecord:
    team = competitor.get("team") or {}
    return ExternalTeamRecord(
        external_id=str(team.get("id", "")),
        display_name=team.get("displayName") or team.get("name") or "",
        abbreviation=team.get("abbreviation") or "",
    )


def _normalize_event_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


class EspnScoreboardFeed:
    """Fetches scoreboard JSON from ESPN and converts events to RawGames."""

    def __init__(self, session: Optional[requests.Session] = None, base_url: Optional[str] = None, timeout: int = 30):
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
            }
        )
        self.base_url = (base_url or os.getenv("ESPN_SCOREBOARD_URL") or ESPN_API_BASE).rstrip("/")
        self.timeout = timeout

    def fetch_scoreboard(
        self,
        start_date: DateLike,
        end_date: DateLike,
        groups: Optional[str] = None,
        limit: int = 300,
    ) -> Dict:
        params = {
            "dates": f"{_format_date(start_date)}-{_format_date(end_date)}",
            "limit": str(limit),
        }
        if groups:
            params["groups"] = groups

        url = f"{self.base_url}/scoreboard"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise FeedError(f"ESPN scoreboard request failed: {e}") from e

    def parse_event(self, event: Dict, competition: Dict) -> RawGame:
        """Convert one competition of an event to a RawGame.

        Raises:
            ValueError: the competition has no home or away competitor
        """
        competitors = competition.get("competitors") or []
        home = next((c for c in competitors if c.get("homeAway") == "home"), None)
        away = next((c for c in competitors if c.get("homeAway") == "away"), None)
        if home is None or away is None:
            raise ValueError(f"Invalid competition data: missing home or away team for event {event.get('id')}")

        headline = _event_headline(competition.get("notes")) or _event_headline(event.get("notes"))
        status_type = (competition.get("status") or {}).get("type") or {}
        completed = bool(status_type.get("completed"))
        if completed:
            status = "completed"
        elif status_type.get("state") == "pre":
            status = "scheduled"
        else:
            status = "in_progress"

        return RawGame(
            external_id=str(competition.get("id") or event.get("id") or ""),
            external_source=ESPN_SOURCE,
            home_team_external=_team(home),
            away_team_external=_team(away),
            round=parse_round_label(headline),
            date=parse_datetime(competition.get("date") or event.get("date")),
            status=status,
            home_score=_score(home) if completed else None,
            away_score=_score(away) if completed else None,
            region=parse_region(headline),
            seed_home=_seed(home),
            seed_away=_seed(away),
            venue=(competition.get("venue") or {}).get("fullName"),
        )

    def _convert(self, event: Dict, competitions: List[Dict]) -> List[RawGame]:
        games: List[RawGame] = []
        for competition in competitions:
            try:
                games.append(self.parse_event(event, competition))
            except (ValueError, TypeError, KeyError) as e:
                logger.warning("Failed to convert event %s: %s", event.get("id"), e)
        return games

    def _tournament_competitions(self, event: Dict) -> List[Dict]:
        if (event.get("season") or {}).get("type") != POSTSEASON:
            return []
        return [
            c
            for c in event.get("competitions") or []
            if (c.get("type") or {}).get("abbreviation") == "TRNMNT"
        ]

    def fetch_ncaa_tournament_games(self, year: int) -> List[RawGame]:
        """NCAA tournament games, March 15 to April 10 of ``year``."""
        data = self.fetch_scoreboard(f"{year}0315", f"{year}0410", groups=NCAA_TOURNAMENT_GROUP)
        games: List[RawGame] = []
        for event in data.get("events") or []:
            games.extend(self._convert(event, self._tournament_competitions(event)))
        logger.info("ESPN returned %d NCAA tournament games for %d", len(games), year)
        return games

    def fetch_conference_tournament_games(
        self,
        start_date: DateLike,
        end_date: DateLike,
        conference_id: Optional[str] = None,
    ) -> List[RawGame]:
        """Postseason tournament games whose notes mark a conference tournament.

        ``conference_id`` is the ESPN group id and narrows the scoreboard to
        that conference.
        """
        data = self.fetch_scoreboard(start_date, end_date, groups=conference_id, limit=100)
        games: List[RawGame] = []
        for event in data.get("events") or []:
            competitions = [
                c
                for c in self._tournament_competitions(event)
                if any("conference tournament" in (n.get("headline") or "").lower() for n in c.get("notes") or [])
            ]
            games.extend(self._convert(event, competitions))
        return games

    def fetch_games(
        self,
        start_date: DateLike,
        end_date: DateLike,
        event_name: Optional[str] = None,
    ) -> List[RawGame]:
        """Tournament games in a date window, optionally filtered by event name.

        With ``event_name`` (multi-team events) every competition of an event
        whose name or headline contains it is taken; without it only
        postseason ``TRNMNT`` competitions are.
        """
        data = self.fetch_scoreboard(start_date, end_date, limit=100)
        wanted = _normalize_event_name(event_name) if event_name else None
        games: List[RawGame] = []
        for event in data.get("events") or []:
            if wanted is None:
                games.extend(self._convert(event, self._tournament_competitions(event)))
                continue
            competitions = event.get("competitions") or []
            labels = [event.get("name") or ""] + [
                _event_headline(c.get("notes")) or "" for c in competitions
            ]
            if any(wanted in _normalize_event_name(label) for label in labels):
                games.extend(self._convert(event, competitions))
        return games
