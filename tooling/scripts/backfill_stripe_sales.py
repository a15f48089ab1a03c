#!/usr/bin/env python3
"""Import historical Stripe payment intents and checkout sessions into the sales ledger."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill band sales from Stripe")
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Look-back window in days (default: STRIPE_BACKFILL_DAYS).",
    )
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit with status 1 when any record fails to reconcile.",
    )
    return parser.parse_args()


async def _run(days: int | None) -> dict[str, int]:
    repo_root = Path(__file__).resolve().parents[2]
    api_src = repo_root / "apps" / "api" / "src"
    if str(api_src) not in sys.path:
        sys.path.insert(0, str(api_src))

    from belako_api.core.logging import configure_script_logging  # type: ignore import-position
    from belako_api.db.session import async_session, engine  # type: ignore import-position
    from belako_api.jobs import run_stripe_sales_backfill  # type: ignore import-position

    configure_script_logging()
    try:
        return await run_stripe_sales_backfill(session_factory=async_session, days=days)
    finally:
        await engine.dispose()


def main() -> int:
    args = parse_args()
    try:
        summary = asyncio.run(_run(args.days))
    except RuntimeError as exc:
        logger.error("Stripe backfill aborted", error=str(exc))
        return 1

    print(json.dumps(summary, indent=2))
    if summary["failed"] and args.fail_on_error:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
