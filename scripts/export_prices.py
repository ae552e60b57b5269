#!/usr/bin/env python3
"""
Dump every stored price observation to a JSON file, newest date first.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vegtracker.db.price_store import PriceStore
from vegtracker.db.session import AsyncSessionLocal, init_db
from vegtracker.logging_config import setup_logging

logger = logging.getLogger(__name__)


async def export_prices(output: str = "prices_dump.json") -> int:
    """Write all prices to ``output`` and return how many were written."""
    await init_db()

    async with AsyncSessionLocal() as db:
        observations = await PriceStore(db).list_newest_first()

    rows = [observation.to_dict() for observation in observations]
    Path(output).write_text(json.dumps(rows, indent=2), encoding="utf-8")

    logger.info(f"Exported {len(rows)} price records to {output}")
    return len(rows)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Export stored vegetable prices to JSON")
    parser.add_argument(
        "--output",
        default="prices_dump.json",
        help="Destination file (default: prices_dump.json)",
    )

    args = parser.parse_args()

    setup_logging()
    count = asyncio.run(export_prices(output=args.output))
    print(f"Exported {count} records to {args.output}")
