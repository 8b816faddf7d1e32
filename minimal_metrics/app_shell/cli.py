import argparse
import json
import logging
import sys

from minimal_metrics.adapters.sqlite.migrator import SQLiteMigrator
from minimal_metrics.api.deps import Settings, get_rules, get_settings
from minimal_metrics.app_shell.context import AppContext

logger = logging.getLogger("cli")


def get_context(settings: Settings) -> AppContext:
    try:
        rules = get_rules(settings)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Cannot load rules: %s", e)
        sys.exit(1)
    return AppContext.create(settings.db_path, rules)


def handle_init_db(settings: Settings) -> None:
    applied = SQLiteMigrator(settings.db_path).run_migrations()
    print(f"Database initialised at {settings.db_path} ({len(applied)} migrations applied).")


def handle_aggregate(ctx: AppContext) -> None:
    result = ctx.aggregation_service.run_hourly_cycle()
    print(
        f"Aggregated {result.hours_written} hours across {result.days_written} days; "
        f"purged {result.events_purged} raw events."
    )


def handle_cleanup(ctx: AppContext) -> None:
    result = ctx.aggregation_service.run_retention_sweep()
    print(
        f"Removed {result.hourly_deleted} hourly and {result.daily_deleted} daily rows "
        f"older than {result.cutoff_hour}."
    )


def handle_stats(ctx: AppContext, args: argparse.Namespace) -> None:
    overview = ctx.stats_service.overview(args.period, compare=args.compare)
    print(json.dumps(overview, indent=2))


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Minimal Metrics CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create or migrate the database")
    subparsers.add_parser("aggregate", help="Run one hourly aggregation cycle now")
    subparsers.add_parser("cleanup", help="Apply aggregate retention now")

    stats_parser = subparsers.add_parser("stats", help="Print an overview")
    stats_parser.add_argument("--period", default="7d", help="1h, 24h, 7d, 30d or 90d")
    stats_parser.add_argument("--compare", action="store_true", help="Include period change")

    args = parser.parse_args(argv)
    settings = get_settings()

    if args.command == "init-db":
        handle_init_db(settings)
        return

    ctx = get_context(settings)
    try:
        if args.command == "aggregate":
            handle_aggregate(ctx)
        elif args.command == "cleanup":
            handle_cleanup(ctx)
        elif args.command == "stats":
            handle_stats(ctx, args)
    finally:
        ctx.close()


if __name__ == "__main__":
    main()
