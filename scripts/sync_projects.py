#!/usr/bin/env python3
"""Script to mirror the GitLab projects listing into the local database."""

import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from project_mirror.infrastructure.gitlab_client import GitLabProjectsClient
from project_mirror.infrastructure.database import SQLiteProjectStore
from project_mirror.application.sync_service import SyncService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Fetch all GitLab projects and store them in the database."""
    try:
        # Token comes from ~/.gitlab_pat
        gitlab_client = GitLabProjectsClient()

        with SQLiteProjectStore.open_or_create() as store:
            max_retries = int(os.getenv("SYNC_MAX_RETRIES", SyncService.MAX_RETRIES))
            service = SyncService(gitlab_client, store, max_retries=max_retries)
            service.sync_projects()

            final_count = store.get_project_count()
            logger.info(f"Sync completed. Total projects in database: {final_count}")
        return 0

    except Exception as e:
        logger.error(f"Sync failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
