"""Import validated roof colors from CSV into the record store.

Steps:
  1. Read the CSV (one row per building, columns named like ValidatedBuildingCreate fields)
  2. Insert each row through the store; duplicates and malformed rows are skipped
  3. Print verification stats

Usage:
  python scripts/import_validations.py \
    --csv exports/validations.csv \
    --db sqlite+aiosqlite:///./validations.db
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import pandas as pd

# Add project root for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from roof_api.db.database import create_tables, make_engine, make_session_factory
from roof_api.exceptions import ConstraintViolation, DuplicateKey
from roof_api.services import building_store

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def row_to_record(row: dict) -> dict:
    """Drop empty cells, unwrap numpy scalars, decode JSON columns."""
    record = {
        k: v.item() if hasattr(v, "item") else v
        for k, v in row.items()
        if not pd.isna(v)
    }
    tags = record.get("original_osm_tags")
    if isinstance(tags, str):
        record["original_osm_tags"] = json.loads(tags)
    if "osm_id" in record:
        record["osm_id"] = int(record["osm_id"])
    return record


async def import_validations(csv_path: str, database_url: str) -> dict:
    engine = make_engine(database_url)
    session_factory = make_session_factory(engine)

    await create_tables(engine)
    logger.info("Database tables ready")

    df = pd.read_csv(csv_path)
    logger.info("Loaded %d rows from %s", len(df), csv_path)

    stats = {"inserted": 0, "duplicates": 0, "invalid": 0}
    async with session_factory() as session:
        for i, row in enumerate(df.to_dict(orient="records")):
            try:
                await building_store.insert(session, row_to_record(row))
                stats["inserted"] += 1
            except DuplicateKey as e:
                logger.info("Row %d: osm_id %d already validated, skipping", i, e.osm_id)
                stats["duplicates"] += 1
            except ConstraintViolation as e:
                logger.warning("Row %d rejected: %s", i, e)
                stats["invalid"] += 1

        summary = await building_store.statistics(session)

    logger.info("=== Import Complete ===")
    logger.info("Inserted:   %d", stats["inserted"])
    logger.info("Duplicates: %d", stats["duplicates"])
    logger.info("Invalid:    %d", stats["invalid"])
    logger.info("Total in store: %d (%d pending upload)", summary.total_validated, summary.pending_upload)

    await engine.dispose()
    return stats


def main():
    parser = argparse.ArgumentParser(description="Import validated roof colors from CSV")
    parser.add_argument("--csv", required=True)
    parser.add_argument("--db", default="sqlite+aiosqlite:///./validations.db")
    args = parser.parse_args()

    asyncio.run(import_validations(args.csv, args.db))


if __name__ == "__main__":
    main()
