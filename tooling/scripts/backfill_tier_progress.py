#!/usr/bin/env python3
"""Create missing tier progress rows for registered fans."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill tier progress for existing users")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many rows would be created without writing them.",
    )
    return parser.parse_args()


async def _run(dry_run: bool) -> dict[str, int]:
    repo_root = Path(__file__).resolve().parents[2]
    api_src = repo_root / "apps" / "api" / "src"
    if str(api_src) not in sys.path:
        sys.path.insert(0, str(api_src))

    from belako_api.core.logging import configure_script_logging  # type: ignore import-position
    from belako_api.db.session import async_session, engine  # type: ignore import-position
    from belako_api.jobs import run_tier_progress_backfill  # type: ignore import-position

    configure_script_logging()
    try:
        return await run_tier_progress_backfill(session_factory=async_session, dry_run=dry_run)
    finally:
        await engine.dispose()


def main() -> int:
    args = parse_args()
    summary = asyncio.run(_run(args.dry_run))
    print(json.dumps({"dryRun": args.dry_run, **summary}, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
