#!/usr/bin/env python3
"""Script to create the SQLite mirror database and its schema."""

import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from project_mirror.infrastructure.database import SQLiteProjectStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Initialize database schema."""
    try:
        with SQLiteProjectStore.open_or_create() as store:
            logger.info(f"Database schema ready at {store.db_path}")
        return 0
    except Exception as e:
        logger.error(f"Failed to setup database schema: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
