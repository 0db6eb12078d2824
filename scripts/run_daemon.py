#!/usr/bin/env python3
"""Script to keep the local mirror in sync by re-running the sync periodically."""

import logging
import signal
import sys
import os
import threading

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
    """Run syncs every SYNC_INTERVAL_SECONDS until interrupted."""
    stop_event = threading.Event()

    def request_stop(signum, frame):
        logger.info(f"Received signal {signum}, stopping after the current page...")
        stop_event.set()

    signal.signal(signal.SIGINT, request_stop)
    signal.signal(signal.SIGTERM, request_stop)

    try:
        interval = float(os.getenv("SYNC_INTERVAL_SECONDS", "900"))
        gitlab_client = GitLabProjectsClient()

        with SQLiteProjectStore.open_or_create() as store:
            max_retries = int(os.getenv("SYNC_MAX_RETRIES", SyncService.MAX_RETRIES))
            service = SyncService(gitlab_client, store, max_retries=max_retries)
            logger.info(f"Starting daemon with a {interval}s interval")
            service.run_forever(interval, stop_event)
        return 0

    except Exception as e:
        logger.error(f"Daemon failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
