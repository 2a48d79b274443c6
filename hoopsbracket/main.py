"""Command-line interface for tournament ingestion and bracket views."""

import argparse
import json
import sys
from datetime import datetime

from .bracket.assembler import assemble
from .bracket.progression import validate_advancement_graph
from .bracket.propagation import propagate
from .bracket.rounds import DEFAULT_ROUND_ORDER
from .config import AppConfig, configure_logging
from .data.ingestion.game_importer import GameImporter, ImportOptions
from .data.ingestion.validators import validate_raw_games_payload
from .data.scrapers.espn_feed import ESPN_SOURCE, EspnScoreboardFeed
from .data.team_resolver import TeamResolver
from .exceptions import FatalInputError, HoopsBracketError
from .models.game import RawGame
from .models.team import ExternalTeamRecord
from .storage.memory import FixtureStores
from .storage.supabase_store import SupabaseStores


def open_stores(args, config: AppConfig):
    """Fixture-file stores when ``--fixture`` is given, Supabase otherwise."""
    if args.fixture:
        return FixtureStores.load(args.fixture)
    return SupabaseStores.from_config(config)


def _load_json(path: str):
    with open(path, "r") as f:
        return json.load(f)


def _write_output(payload, output=None) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output:
        with open(output, "w") as f:
            f.write(text)
        print(f"✓ Wrote {output}")
    else:
        print(text)


def _parse_date(value):
    return datetime.strptime(value, "%Y-%m-%d").date() if value else None


def _import_tournament(importer: GameImporter, args):
    """The tournament named by ``-t``, or the one found or created from the other flags."""
    if args.tournament:
        return importer.get_tournament(args.tournament)
    if args.ncaa:
        return importer.find_or_create_tournament("ncaa", args.ncaa, dry_run=args.dry_run)

    start, end = _parse_date(args.start_date), _parse_date(args.end_date)
    year = args.year or (start.year if start else None)
    if year is None:
        raise FatalInputError("--year or --start-date is required to find a tournament")
    if args.conference:
        return importer.find_or_create_tournament(
            "conference",
            year,
            name=args.conference_name,
            conference_id=args.conference,
            start_date=start,
            end_date=end,
            dry_run=args.dry_run,
        )
    return importer.find_or_create_tournament(
        "mte",
        year,
        name=args.mte,
        start_date=start,
        end_date=end,
        location=args.location,
        dry_run=args.dry_run,
    )


def import_games(args, config: AppConfig):
    """Import raw games from a JSON file or the ESPN scoreboard."""
    stores = open_stores(args, config)
    importer = GameImporter(stores.teams, stores.games, stores.tournaments)
    options = ImportOptions(
        update_existing=not args.no_update,
        match_threshold=args.threshold if args.threshold is not None else config.match_threshold,
        dry_run=args.dry_run,
    )
    tournament = _import_tournament(importer, args)

    if args.input:
        payload = _load_json(args.input)
        problems = validate_raw_games_payload(payload)
        if problems:
            print(f"Warning: {len(problems)} problem(s) in {args.input}")
            for problem in problems[:10]:
                print(f"  - {problem}")
        result = importer.import_into(tournament, payload, options)
    else:
        feed = EspnScoreboardFeed(base_url=config.espn_scoreboard_url)
        result = importer.fetch_into(
            tournament,
            feed,
            options,
            start_date=_parse_date(args.start_date),
            end_date=_parse_date(args.end_date),
            event_name=args.event_name,
        )

    summary = result.to_dict()
    summary["tournament_id"] = tournament.id or None
    if args.link and tournament.id:
        summary["games_linked"] = importer.link_tournament(tournament.id, dry_run=args.dry_run)
    if args.fixture and not args.dry_run:
        stores.save(args.fixture)

    _write_output(summary, args.output)
    return 0 if result.success else 2


def show_bracket(args, config: AppConfig):
    """Assemble a tournament's bracket, optionally with a user's picks applied."""
    stores = open_stores(args, config)
    tournament = stores.tournaments.get_tournament(args.tournament)
    if tournament is None:
        print(f"Error: tournament not found: {args.tournament}")
        return 1

    games = stores.games.list_tournament_games(args.tournament)
    picks = {}
    if args.picks:
        picks = _load_json(args.picks)
    elif args.user:
        picks = stores.picks.get_picks(args.user, args.tournament)
    if picks:
        games = propagate(games, picks)
    bracket = assemble(games, tournament.type)

    payload = bracket.to_dict()
    for rnd, row in zip(bracket.rounds, payload["rounds"]):
        row["display_name"] = DEFAULT_ROUND_ORDER.display_name(rnd.round)
        row["side"] = DEFAULT_ROUND_ORDER.side(rnd.round)
        row["pairable"] = rnd.is_pairable
    payload["tournament_id"] = tournament.id
    payload["picks_applied"] = len(picks)
    _write_output(payload, args.output)
    return 0


def suggest_teams(args, config: AppConfig):
    """Print catalog candidates for teams the importer could not match."""
    stores = open_stores(args, config)
    # Read-only: suggestions never write external ids back.
    resolver = TeamResolver(stores.teams, args.source, dry_run=True)

    if args.team:
        externals = [ExternalTeamRecord(external_id="", display_name=args.team)]
    else:
        externals = []
        seen = set()
        for row in _load_json(args.input):
            raw = RawGame.from_dict(row)
            for ext in (raw.home_team_external, raw.away_team_external):
                key = ext.external_id or ext.display_name
                if key in seen or resolver.resolve(ext, threshold=args.threshold) is not None:
                    continue
                seen.add(key)
                externals.append(ext)

    suggestions = resolver.suggest_batch(externals, top_n=args.top)
    if args.output:
        _write_output(suggestions, args.output)
        return 0
    for row in suggestions:
        print(f"\n{row['external']['display_name'] or row['external']['external_id']}:")
        for s in row["suggestions"]:
            print(f"   - {s['team_name']} ({s['team_id']}) {s['confidence']:.1%}")
    return 0


def validate_bracket(args, config: AppConfig):
    """Check a tournament's advancement pointers for dangling links and cycles."""
    stores = open_stores(args, config)
    games = stores.games.list_tournament_games(args.tournament)
    errors = validate_advancement_graph(games)
    if not errors:
        print(f"✓ {len(games)} games, advancement graph OK")
        return 0
    print(f"Found {len(errors)} problem(s):")
    for error in errors:
        print(f"  - {error}")
    return 1


def main(argv=None):
    config = AppConfig.from_env()

    parser = argparse.ArgumentParser(
        description="Tournament ingestion and bracket tools"
    )
    parser.add_argument("--fixture", default=None, help="JSON fixture file used instead of Supabase")
    parser.add_argument("--log-level", default=None, help="Logging level (default: HOOPSBRACKET_LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    import_parser = subparsers.add_parser("import", help="Import tournament games from a feed")
    target = import_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--tournament", "-t", default=None, help="Tournament id")
    target.add_argument("--ncaa", type=int, default=None, metavar="YEAR", help="Find or create the NCAA tournament for YEAR")
    target.add_argument("--conference", default=None, metavar="ID", help="Find or create the tournament for this ESPN conference id")
    target.add_argument("--mte", default=None, metavar="NAME", help="Find or create the multi-team event with this name")
    import_parser.add_argument("--conference-name", default=None, help="Conference display name for a new conference tournament")
    import_parser.add_argument("--year", type=int, default=None, help="Season year for --conference/--mte (default: start date year)")
    import_parser.add_argument("--location", default=None, help="Location of a new multi-team event")
    import_parser.add_argument("--input", "-i", default=None, help="Raw games JSON file (default: ESPN scoreboard)")
    import_parser.add_argument("--start-date", default=None, help="Window start YYYY-MM-DD (non-NCAA)")
    import_parser.add_argument("--end-date", default=None, help="Window end YYYY-MM-DD (non-NCAA)")
    import_parser.add_argument("--event-name", default=None, help="Only events whose name contains this")
    import_parser.add_argument("--threshold", type=float, default=None, help="Team match threshold (default: 0.75)")
    import_parser.add_argument("--no-update", action="store_true", help="Skip games that already exist")
    import_parser.add_argument("--dry-run", action="store_true", help="Count changes without writing")
    import_parser.add_argument("--link", action="store_true", help="Fill in advancement pointers after import")
    import_parser.add_argument("--output", "-o", default=None, help="Write the import result JSON here")

    bracket_parser = subparsers.add_parser("bracket", help="Assemble a tournament bracket")
    bracket_parser.add_argument("--tournament", "-t", required=True, help="Tournament id")
    bracket_parser.add_argument("--user", "-u", default=None, help="Apply this user's stored picks")
    bracket_parser.add_argument("--picks", default=None, help="Picks JSON file {game_id: winner_team_id}")
    bracket_parser.add_argument("--output", "-o", default=None, help="Write the bracket JSON here")

    suggest_parser = subparsers.add_parser("suggest", help="Suggest catalog matches for unmatched teams")
    group = suggest_parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--team", default=None, help="A single team display name")
    group.add_argument("--input", "-i", default=None, help="Raw games JSON file; suggests for unmatched teams")
    suggest_parser.add_argument("--source", default=ESPN_SOURCE, help="External source key")
    suggest_parser.add_argument("--threshold", type=float, default=None, help="Match threshold for --input")
    suggest_parser.add_argument("--top", type=int, default=3, help="Candidates per team")
    suggest_parser.add_argument("--output", "-o", default=None, help="Write suggestions JSON here")

    validate_parser = subparsers.add_parser("validate", help="Check a tournament's advancement graph")
    validate_parser.add_argument("--tournament", "-t", required=True, help="Tournament id")

    args = parser.parse_args(argv)
    configure_logging(args.log_level or config.log_level)

    commands = {
        "import": import_games,
        "bracket": show_bracket,
        "suggest": suggest_teams,
        "validate": validate_bracket,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return handler(args, config)
    except HoopsBracketError as exc:
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
