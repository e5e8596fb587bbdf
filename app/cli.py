"""
Command line entry point for operational tasks.

    matchmaking check-popular-users [--dry-run]
    matchmaking create-tables
    matchmaking seed-demo [--users N] [--seed S]
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from app.core.config import get_settings
from app.core.database import AsyncSessionLocal, create_tables, engine
from app.core.exceptions import ConflictError
from app.core.logging import configure_logging, get_logger

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matchmaking",
        description="Operational commands for the matchmaking backend."
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    check = subcommands.add_parser(
        "check-popular-users",
        help="Alert the admin about users past the like threshold who were never reported."
    )
    check.add_argument(
        "--dry-run",
        action="store_true",
        help="List popular users without sending notifications.",
    )

    subcommands.add_parser("create-tables", help="Create database tables if missing.")

    seed = subcommands.add_parser("seed-demo", help="Fill an empty database with demo users and preferences.")
    seed.add_argument("--users", type=int, default=100, help="Random users to create (default: 100).")
    seed.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data.")

    return parser


async def _check_popular_users(dry_run: bool) -> int:
    # Imported here so create-tables does not pull in the service stack.
    from app.services.scheduler import run_popularity_scan

    threshold = get_settings().POPULARITY_THRESHOLD
    print(f"Checking for popular users with {threshold}+ likes...")

    outcomes = await run_popularity_scan(dry_run=dry_run)
    failed = 0

    for outcome in outcomes:
        print(f"Found user ID {outcome.event.user_id} with {outcome.event.like_count} likes")
        if outcome.delivered is None:
            print("  [DRY RUN] Skipping notification")
        elif outcome.delivered:
            print("  Notification dispatched")
        else:
            failed += 1
            print("  Notification failed, will retry on next scan")

    if not outcomes:
        print(f"No users found with {threshold}+ likes who haven't been notified")
    else:
        print(f"Processed {len(outcomes)} popular user(s)")

    return 1 if failed else 0


async def _seed_demo(user_count: int, seed: Optional[int]) -> int:
    from app.services.seeder import DEMO_EMAIL, DEMO_PASSWORD, DemoSeeder

    async with AsyncSessionLocal() as session:
        try:
            summary = await DemoSeeder(session, seed=seed).run(user_count=user_count)
        except ConflictError:
            print(f"Demo data already present ({DEMO_EMAIL} exists)")
            return 1

    print(f"Created {summary.users} users with {summary.photos} photos")
    print(f"Created {summary.likes} likes and {summary.dislikes} dislikes")
    print(f"Popular user IDs: {', '.join(str(i) for i in summary.popular_user_ids)}")
    print(f"Log in as {DEMO_EMAIL} / {DEMO_PASSWORD}")
    return 0


async def _run(args: argparse.Namespace) -> int:
    try:
        if args.command == "check-popular-users":
            return await _check_popular_users(args.dry_run)
        if args.command == "create-tables":
            await create_tables()
            print("Database tables created")
            return 0
        if args.command == "seed-demo":
            return await _seed_demo(args.users, args.seed)
        return 2
    finally:
        await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    args = _build_parser().parse_args(argv)
    logger.info("CLI command started", command=args.command)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
