#!/usr/bin/env python3
"""
Offline Team Export Script for Hackathon Registration
Reads every team from the configured database -> writes the admin CSV to disk
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from hackreg.core.config import get_settings
from hackreg.core.database import AsyncSessionLocal, close_db
from hackreg.services.export_service import EXPORT_FILENAME, export_all_teams_as_csv
from hackreg.services.team_service import TeamService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def export_to_file(output: Path) -> int:
    """Write all teams to ``output``; returns the number of teams exported."""
    settings = get_settings()
    try:
        async with AsyncSessionLocal() as session:
            teams = await TeamService(session, settings).list_all_teams()
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(export_all_teams_as_csv(teams), encoding="utf-8")
    finally:
        await close_db()
    return len(teams)


def main() -> int:
    parser = argparse.ArgumentParser(description="Export registered teams to CSV")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path(EXPORT_FILENAME),
        help=f"Destination file (default: {EXPORT_FILENAME})",
    )
    args = parser.parse_args()

    try:
        count = asyncio.run(export_to_file(args.output))
    except (OSError, SQLAlchemyError) as e:
        logger.error(f"Export failed: {e}")
        return 1

    logger.info(f"Exported {count} team(s) to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
