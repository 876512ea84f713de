import argparse
import logging
import os
import sys
from pathlib import Path

from linkdrip.adapters.periodic_runner import PeriodicRunner
from linkdrip.adapters.sqlite.migrator import SQLiteMigrator
from linkdrip.app_shell.context import ServiceContext
from linkdrip.components.crawler import JOB_TYPES, StartCrawlInput, run_start_crawl
from linkdrip.components.validation import ValidateBatchInput, run_validate_batch
from linkdrip.rules.loader import load_rules

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger("cli")

DATA_DIR = os.environ.get("LINKDRIP_DATA_DIR", "./data")
DB_PATH = str(Path(DATA_DIR) / "linkdrip.db")
RULES_PATH = os.environ.get("LINKDRIP_RULES_PATH", "rules.yaml")
MIGRATIONS_DIR = "migrations"


def get_context() -> ServiceContext:
    if not Path(RULES_PATH).exists():
        logger.error("Rules file %s not found.", RULES_PATH)
        sys.exit(1)

    rules = load_rules(Path(RULES_PATH))
    return ServiceContext.from_env(DB_PATH, rules)


def handle_migrate(args: argparse.Namespace) -> None:
    Path(DATA_DIR).mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(DB_PATH, MIGRATIONS_DIR).run_migrations()
    print(f"Applied {len(applied)} migration(s).")


def handle_crawl(ctx: ServiceContext, args: argparse.Namespace) -> None:
    result = run_start_crawl(
        StartCrawlInput(job_type=args.job_type, start_urls=tuple(args.urls), background=False),
        ctx.crawler,
    )
    if not result.success or result.job is None:
        for error in result.errors:
            logger.error("%s: %s", error.code, error.message)
        sys.exit(1)

    job = result.job
    print(f"Job {job.id} {job.status}: {job.results.get('discovered', 0)} discovered.")
    if job.error:
        print(f"Error: {job.error}")


def handle_enrich(ctx: ServiceContext, args: argparse.Namespace) -> None:
    result = ctx.crawler.enrich_with_metrics()
    print(f"Enriched {result.updated} of {result.processed} opportunities ({result.failed} failed).")


def handle_validate(ctx: ServiceContext, args: argparse.Namespace) -> None:
    output = run_validate_batch(ValidateBatchInput(), ctx.validator)
    if output.result is None:
        sys.exit(1)
    r = output.result
    print(
        f"Validated {r.processed}: {r.passing} passing ({r.premium} premium), {r.failed} failed."
    )


def handle_analyze(ctx: ServiceContext, args: argparse.Namespace) -> None:
    result = ctx.analyzer.process_all_websites()
    print(f"Analyzed {result.analyzed} websites ({result.failed} failed).")


def handle_match(ctx: ServiceContext, args: argparse.Namespace) -> None:
    print(f"Created {ctx.matcher.process_new_opportunities()} new matches.")


def handle_drips(ctx: ServiceContext, args: argparse.Namespace) -> None:
    print(f"Assigned {ctx.matcher.assign_daily_opportunities()} drips.")


def handle_discover(ctx: ServiceContext, args: argparse.Namespace) -> None:
    result = ctx.discovery.run_pipeline()
    for key, value in result.stats.to_dict().items():
        print(f"{key}: {value}")


def handle_refresh(ctx: ServiceContext, args: argparse.Namespace) -> None:
    result = ctx.crawler.refresh_opportunities()
    print(f"Checked {result.checked}: {result.refreshed} refreshed, {result.expired} expired.")


def handle_cleanup(ctx: ServiceContext, args: argparse.Namespace) -> None:
    result = ctx.maintenance.clean_stalled_jobs()
    print(f"Found {result.found} stalled jobs: {result.cleaned} cleaned, {result.failed} failed.")


def build_runner(ctx: ServiceContext) -> PeriodicRunner:
    """Periodic discovery, maintenance and refresh, on the intervals in rules."""
    schedule = ctx.rules.scheduler
    runner = PeriodicRunner()
    runner.add_task(
        "discovery",
        schedule.discovery_interval_hours * 3600,
        ctx.discovery.run_pipeline,
        run_immediately=True,
    )
    runner.add_task(
        "maintenance",
        schedule.maintenance_interval_minutes * 60,
        ctx.maintenance.clean_stalled_jobs,
        run_immediately=True,
    )
    runner.add_task(
        "refresh",
        schedule.refresh_interval_hours * 3600,
        ctx.crawler.refresh_opportunities,
    )
    return runner


def handle_serve_scheduler(ctx: ServiceContext, args: argparse.Namespace) -> None:
    runner = build_runner(ctx)
    runner.start()
    print("Scheduler running. Press Ctrl+C to stop.")
    try:
        while runner.is_running:
            runner.wait(60)
    except KeyboardInterrupt:
        pass
    finally:
        runner.stop()


HANDLERS = {
    "crawl": handle_crawl,
    "enrich": handle_enrich,
    "validate": handle_validate,
    "analyze": handle_analyze,
    "match": handle_match,
    "drips": handle_drips,
    "discover": handle_discover,
    "refresh": handle_refresh,
    "cleanup-jobs": handle_cleanup,
    "serve-scheduler": handle_serve_scheduler,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="LinkDrip CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply database migrations")

    crawl_parser = subparsers.add_parser("crawl", help="Run a discovery crawl inline")
    crawl_parser.add_argument("job_type", choices=JOB_TYPES, help="Source type to look for")
    crawl_parser.add_argument("urls", nargs="+", help="Start URLs")

    subparsers.add_parser("enrich", help="Attach domain metrics to discovered opportunities")
    subparsers.add_parser("validate", help="Validate the next batch of opportunities")
    subparsers.add_parser("analyze", help="Profile all active websites")
    subparsers.add_parser("match", help="Record pending matches for new opportunities")
    subparsers.add_parser("drips", help="Assign today's drips to every user")
    subparsers.add_parser("discover", help="Run the full discovery pipeline once")
    subparsers.add_parser("refresh", help="Re-check stale opportunities")
    subparsers.add_parser("cleanup-jobs", help="Fail stalled crawl jobs")
    subparsers.add_parser("serve-scheduler", help="Run discovery and maintenance periodically")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.command == "migrate":
        handle_migrate(args)
        return

    ctx = get_context()
    HANDLERS[args.command](ctx, args)


if __name__ == "__main__":
    main()
