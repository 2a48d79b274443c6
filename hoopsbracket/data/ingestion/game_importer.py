"""
Idempotent import of external feed games into a tournament.

Each raw game is reconciled on its own: both teams are resolved against the
catalog, the round label is canonicalized, and the game is created or updated
by its ``(external_id, external_source)`` key.  A bad record (unmatched team,
failed write) is reported in the ``ImportResult`` and never stops the batch.
Only an unknown tournament or a malformed payload aborts the whole call.

The ``import_ncaa``/``import_conference``/``import_mte`` entry points find
the target tournament (or create it) before fetching from the feed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ...bracket.assembler import NCAA_REGIONS
from ...bracket.progression import link_progression
from ...bracket.rounds import DEFAULT_ROUND_ORDER, RoundOrder
from ...exceptions import FatalInputError, TournamentNotFoundError
from ...models.game import RawGame, Tournament, TournamentGame
from ..scrapers.espn_feed import ESPN_SOURCE
from ..team_resolver import DEFAULT_MATCH_THRESHOLD, TeamResolver
from .validators import validate_raw_game

logger = logging.getLogger(__name__)

_LINK_FIELDS = ("next_game_id", "winner_advances_to_slot", "loser_next_game_id", "loser_advances_to_slot")


@dataclass
class ImportOptions:
    update_existing: bool = True
    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    dry_run: bool = False


@dataclass
class ImportResult:
    games_created: int = 0
    games_updated: int = 0
    games_skipped: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    unmatched_teams: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "games_created": self.games_created,
            "games_updated": self.games_updated,
            "games_skipped": self.games_skipped,
            "errors": list(self.errors),
            "unmatched_teams": list(self.unmatched_teams),
        }


class GameImporter:
    """
    Reconciles RawGame batches with the game store.

    Args:
        team_catalog: TeamCatalog collaborator used by the resolvers
        game_store: GameStore collaborator (natural-key lookup, create, update)
        tournament_store: TournamentStore used to check the target tournament
        round_order: shared round table used to canonicalize round labels
    """

    def __init__(
        self,
        team_catalog,
        game_store,
        tournament_store,
        round_order: RoundOrder = DEFAULT_ROUND_ORDER,
    ):
        self.team_catalog = team_catalog
        self.game_store = game_store
        self.tournament_store = tournament_store
        self.round_order = round_order

    def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.tournament_store.get_tournament(tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    def find_or_create_tournament(
        self,
        tournament_type: str,
        year: int,
        name: Optional[str] = None,
        conference_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        location: Optional[str] = None,
        dry_run: bool = False,
    ) -> Tournament:
        """
        Look up a tournament and create it when missing.

        NCAA tournaments are found by year, conference tournaments by year and
        ``conference_id``, multi-team events by year and ``name``.  For a
        conference tournament ``name`` is the conference's display name.

        A dry run never creates: the returned tournament is unsaved and has
        an empty id.
        """
        if tournament_type == "ncaa":
            existing = self.tournament_store.find_tournament("ncaa", year)
        elif tournament_type == "conference":
            if not conference_id:
                raise FatalInputError("conference_id is required for a conference tournament")
            existing = self.tournament_store.find_tournament("conference", year, conference_id=conference_id)
        elif tournament_type == "mte":
            if not name:
                raise FatalInputError("name is required for a multi-team event")
            existing = self.tournament_store.find_tournament("mte", year, name=name)
        else:
            raise FatalInputError(f"Unknown tournament type: {tournament_type}")
        if existing is not None:
            return existing

        tournament = _new_tournament(tournament_type, year, name, conference_id, start_date, end_date, location)
        if dry_run:
            logger.info("Dry run: would create tournament %s", tournament.name)
            return tournament
        created = self.tournament_store.create_tournament(tournament)
        logger.info("Created tournament %s (%s)", created.name, created.id)
        return created

    def import_games(
        self,
        tournament_id: str,
        raw_games: Sequence[Any],
        options: Optional[ImportOptions] = None,
    ) -> ImportResult:
        """
        Import a batch of raw games into a tournament.

        Rows missing ``external_id`` or ``external_source`` are reported in
        ``errors`` and not created: without the key a re-run could never find
        them again.

        Args:
            tournament_id: target tournament
            raw_games: list of RawGame (or feed dicts in RawGame shape)
            options: update/threshold/dry-run settings

        Returns:
            ImportResult with per-outcome counts, errors and unmatched teams.

        Raises:
            TournamentNotFoundError: tournament_id does not exist
            FatalInputError: raw_games is not a list of records
        """
        return self.import_into(self.get_tournament(tournament_id), raw_games, options)

    def import_into(
        self,
        tournament: Tournament,
        raw_games: Sequence[Any],
        options: Optional[ImportOptions] = None,
    ) -> ImportResult:
        """Like ``import_games`` for an already looked-up tournament.

        An unsaved tournament (empty id) is only accepted for a dry run.
        """
        options = options or ImportOptions()
        if not tournament.id and not options.dry_run:
            raise FatalInputError(f"Tournament {tournament.name!r} has not been saved")
        if not isinstance(raw_games, (list, tuple)):
            raise FatalInputError(f"raw_games must be a list, got {type(raw_games).__name__}")
        bad = [idx for idx, row in enumerate(raw_games) if not isinstance(row, (RawGame, dict))]
        if bad:
            raise FatalInputError(f"raw_games entries must be objects; bad indexes: {bad}")

        result = ImportResult()
        resolvers: Dict[str, TeamResolver] = {}
        # Keys created in this call; a dry run never writes them to the store.
        created_keys: Set[Tuple[str, str]] = set()

        for row in raw_games:
            problems = validate_raw_game(row)
            if problems:
                logger.warning("Skipping malformed raw game: %s", "; ".join(problems))
                result.errors.append({"raw": _raw_dict(row), "reason": "; ".join(problems)})
                continue
            raw = row if isinstance(row, RawGame) else RawGame.from_dict(row)

            try:
                self._import_one(tournament.id, raw, options, resolvers, created_keys, result)
            except Exception as e:
                logger.warning("Failed to import game %s (%s): %s", raw.external_id, raw.matchup, e)
                result.errors.append({"raw": raw.to_dict(), "reason": str(e)})

        logger.info(
            "Import into %s%s: %d created, %d updated, %d skipped, %d errors, %d unmatched teams",
            tournament.id or tournament.name,
            " (dry run)" if options.dry_run else "",
            result.games_created,
            result.games_updated,
            result.games_skipped,
            len(result.errors),
            len(result.unmatched_teams),
        )
        return result

    def _resolver_for(self, source: str, options: ImportOptions, resolvers: Dict[str, TeamResolver]) -> TeamResolver:
        if source not in resolvers:
            resolvers[source] = TeamResolver(
                self.team_catalog,
                source,
                threshold=options.match_threshold,
                dry_run=options.dry_run,
            )
        return resolvers[source]

    def _import_one(
        self,
        tournament_id: str,
        raw: RawGame,
        options: ImportOptions,
        resolvers: Dict[str, TeamResolver],
        created_keys: Set[Tuple[str, str]],
        result: ImportResult,
    ) -> None:
        resolver = self._resolver_for(raw.external_source, options, resolvers)
        home = resolver.resolve(raw.home_team_external)
        away = resolver.resolve(raw.away_team_external)

        for external, match in ((raw.home_team_external, home), (raw.away_team_external, away)):
            if match is None:
                result.unmatched_teams.append({"external": external.to_dict(), "context": raw.matchup})
        if home is None or away is None:
            logger.warning("Unmatched team in %s (%s); skipping", raw.external_id, raw.matchup)
            result.games_skipped += 1
            return

        round_key = self.round_order.canonical(raw.round)
        key = (raw.external_id, raw.external_source)
        existing = self.game_store.find_by_external_id(*key)

        if existing is not None or key in created_keys:
            if not options.update_existing:
                result.games_skipped += 1
                return
            if existing is not None and not options.dry_run:
                changes = {
                    "tournament_id": tournament_id,
                    "home_score": raw.home_score,
                    "away_score": raw.away_score,
                    "status": raw.status,
                    "round": round_key or existing.round,
                    "region": raw.region if raw.region is not None else existing.region,
                    "seed_home": raw.seed_home if raw.seed_home is not None else existing.seed_home,
                    "seed_away": raw.seed_away if raw.seed_away is not None else existing.seed_away,
                    "date": raw.date or existing.date,
                    "venue": raw.venue or existing.venue,
                }
                self.game_store.update_game(existing.id, changes)
            result.games_updated += 1
            return

        game = TournamentGame(
            id="",
            tournament_id=tournament_id,
            round=round_key,
            home_team_id=home.team_id,
            away_team_id=away.team_id,
            region=raw.region,
            seed_home=raw.seed_home,
            seed_away=raw.seed_away,
            date=raw.date,
            status=raw.status,
            home_score=raw.home_score,
            away_score=raw.away_score,
            external_id=raw.external_id,
            external_source=raw.external_source,
            venue=raw.venue,
        )
        if not options.dry_run:
            self.game_store.create_game(game)
        created_keys.add(key)
        result.games_created += 1

    def import_from_feed(
        self,
        tournament_id: str,
        feed,
        options: Optional[ImportOptions] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        event_name: Optional[str] = None,
    ) -> ImportResult:
        """Fetch a tournament's games from a feed and import them (see ``fetch_into``)."""
        return self.fetch_into(self.get_tournament(tournament_id), feed, options, start_date, end_date, event_name)

    def fetch_into(
        self,
        tournament: Tournament,
        feed,
        options: Optional[ImportOptions] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        event_name: Optional[str] = None,
    ) -> ImportResult:
        """
        Fetch games for ``tournament`` and import them.

        The feed query follows the tournament type: NCAA tournaments use the
        feed's NCAA window for the tournament year, conference tournaments
        the conference filter (``metadata["conference_id"]``), multi-team
        events the event name (``event_name`` or the tournament name).  All
        but NCAA imports need ``start_date`` and ``end_date``.
        """
        if tournament.type == "ncaa":
            year = tournament.year or (start_date.year if start_date else None)
            if year is None:
                raise FatalInputError(f"Tournament {tournament.id or tournament.name} has no year")
            raw_games = feed.fetch_ncaa_tournament_games(year)
        else:
            if start_date is None or end_date is None:
                raise FatalInputError("start_date and end_date are required for non-NCAA imports")
            if tournament.type == "conference":
                raw_games = feed.fetch_conference_tournament_games(
                    start_date, end_date, conference_id=tournament.metadata.get("conference_id")
                )
            elif tournament.type == "mte":
                raw_games = feed.fetch_games(start_date, end_date, event_name=event_name or tournament.name)
            else:
                raw_games = feed.fetch_games(start_date, end_date, event_name=event_name)
        logger.info("Fetched %d games for %s", len(raw_games), tournament.id or tournament.name)
        return self.import_into(tournament, raw_games, options)

    def import_ncaa(self, feed, year: int, options: Optional[ImportOptions] = None) -> ImportResult:
        """Find or create the NCAA tournament for ``year`` and import its games."""
        options = options or ImportOptions()
        tournament = self.find_or_create_tournament("ncaa", year, dry_run=options.dry_run)
        return self.fetch_into(tournament, feed, options)

    def import_conference(
        self,
        feed,
        conference_id: str,
        conference_name: str,
        year: int,
        start_date: date,
        end_date: date,
        options: Optional[ImportOptions] = None,
    ) -> ImportResult:
        options = options or ImportOptions()
        tournament = self.find_or_create_tournament(
            "conference",
            year,
            name=conference_name,
            conference_id=conference_id,
            start_date=start_date,
            end_date=end_date,
            dry_run=options.dry_run,
        )
        return self.fetch_into(tournament, feed, options, start_date, end_date)

    def import_mte(
        self,
        feed,
        event_name: str,
        year: int,
        start_date: date,
        end_date: date,
        location: Optional[str] = None,
        options: Optional[ImportOptions] = None,
    ) -> ImportResult:
        options = options or ImportOptions()
        tournament = self.find_or_create_tournament(
            "mte",
            year,
            name=event_name,
            start_date=start_date,
            end_date=end_date,
            location=location,
            dry_run=options.dry_run,
        )
        return self.fetch_into(tournament, feed, options, start_date, end_date, event_name=event_name)

    def link_tournament(self, tournament_id: str, dry_run: bool = False) -> int:
        """Fill in missing advancement pointers for a tournament's games.

        Returns the number of games whose pointers changed.
        """
        tournament = self.get_tournament(tournament_id)
        games = self.game_store.list_tournament_games(tournament_id)
        linked = link_progression(games, tournament.type, self.round_order)

        updated = 0
        for before, after in zip(games, linked):
            changes = {
                name: getattr(after, name)
                for name in _LINK_FIELDS
                if getattr(after, name) != getattr(before, name)
            }
            if not changes:
                continue
            if not dry_run:
                self.game_store.update_game(before.id, changes)
            updated += 1
        logger.info("Linked %d games in %s%s", updated, tournament_id, " (dry run)" if dry_run else "")
        return updated


def _raw_dict(row: Any) -> Any:
    if isinstance(row, RawGame):
        return row.to_dict()
    return row


def _new_tournament(
    tournament_type: str,
    year: int,
    name: Optional[str],
    conference_id: Optional[str],
    start_date: Optional[date],
    end_date: Optional[date],
    location: Optional[str],
) -> Tournament:
    if tournament_type == "ncaa":
        return Tournament(
            id="",
            name=f"{year} NCAA Tournament",
            type="ncaa",
            year=year,
            start_date=f"{year}-03-15",
            end_date=f"{year}-04-10",
            status="in_progress",
            metadata={"regions": list(NCAA_REGIONS), "total_teams": 68},
            external_source=ESPN_SOURCE,
        )
    if start_date is None or end_date is None:
        raise FatalInputError("start_date and end_date are required to create a tournament")
    if tournament_type == "conference":
        conference_name = name or conference_id
        metadata = {"conference_id": conference_id, "conference_name": conference_name}
        name = f"{year} {conference_name} Tournament"
    else:
        metadata = {"format": "single_elimination"}
    return Tournament(
        id="",
        name=name or "",
        type=tournament_type,
        year=year,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        status="upcoming",
        location=location,
        metadata=metadata,
        external_source=ESPN_SOURCE,
    )
