#!/usr/bin/env python3
"""Script to dump mirrored projects to CSV and JSON."""

import logging
import sys
import os
import csv
import json
from dataclasses import asdict
from datetime import datetime

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from project_mirror.infrastructure.database import COLUMNS, SQLiteProjectStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def dump_to_csv(rows, output_file: str):
    """Write project rows to CSV."""
    with open(output_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=COLUMNS)
        writer.writeheader()
        writer.writerows(rows)

    logger.info(f"Dumped {len(rows)} projects to {output_file}")


def dump_to_json(rows, output_file: str):
    """Write project rows to JSON."""
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(rows, f, indent=2, ensure_ascii=False)

    logger.info(f"Dumped {len(rows)} projects to {output_file}")


def main():
    """Dump database to CSV and JSON."""
    try:
        output_dir = os.getenv("OUTPUT_DIR", "artifacts")
        os.makedirs(output_dir, exist_ok=True)

        with SQLiteProjectStore.open_or_create() as store:
            rows = [asdict(record) for record in store.list_projects()]

        if not rows:
            logger.warning("No data to dump")
            return 0

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        csv_file = os.path.join(output_dir, f"projects_{timestamp}.csv")
        json_file = os.path.join(output_dir, f"projects_{timestamp}.json")

        dump_to_csv(rows, csv_file)
        dump_to_json(rows, json_file)

        logger.info(f"Database dump completed. Files: {csv_file}, {json_file}")
        return 0
    except Exception as e:
        logger.error(f"Database dump failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
