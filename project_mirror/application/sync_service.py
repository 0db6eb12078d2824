"""Application service that mirrors GitLab projects into the local store."""

import logging
import threading
import time
from typing import Optional

from project_mirror.domain.errors import (
    AuthError,
    ConfigError,
    FetchCancelled,
    MirrorError,
    TransportError,
)
from project_mirror.domain.project import to_mirror_record
from project_mirror.infrastructure.database import SQLiteProjectStore
from project_mirror.infrastructure.gitlab_client import GitLabProjectsClient

logger = logging.getLogger(__name__)


class SyncService:
    """Service for fetching the GitLab project listing and storing it locally."""

    MAX_RETRIES = 3
    RETRY_DELAY_SECONDS = 1

    def __init__(
        self,
        gitlab_client: GitLabProjectsClient,
        project_store: SQLiteProjectStore,
        max_retries: int = MAX_RETRIES,
        retry_delay_seconds: float = RETRY_DELAY_SECONDS,
    ):
        """
        Initialize sync service.

        Args:
            gitlab_client: GitLab API client
            project_store: Store the projects are written to
            max_retries: How many times a transport failure is retried
            retry_delay_seconds: Base delay for exponential backoff
        """
        self.gitlab_client = gitlab_client
        self.project_store = project_store
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds

    def _fetch_with_retries(self, stop_event: Optional[threading.Event] = None):
        for attempt in range(self.max_retries + 1):
            try:
                return self.gitlab_client.fetch_all_projects(stop_event=stop_event)
            except TransportError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.retry_delay_seconds * (2 ** attempt)
                logger.warning(
                    f"Fetch failed (attempt {attempt + 1}/{self.max_retries + 1}): {e}. "
                    f"Retrying in {delay}s..."
                )
                if stop_event is None:
                    time.sleep(delay)
                elif stop_event.wait(delay):
                    raise FetchCancelled("Fetch cancelled during retry backoff") from e

    def sync_projects(self, stop_event: Optional[threading.Event] = None) -> int:
        """
        Mirror all projects into the store.

        The store is only written once the whole listing has been fetched.

        Returns:
            Number of projects written
        """
        logger.info("Starting project sync")

        projects = self._fetch_with_retries(stop_event)
        records = [to_mirror_record(project) for project in projects]
        self.project_store.upsert_projects(records)

        logger.info(f"Sync completed. Projects fetched: {len(records)}")
        return len(records)

    def run_forever(self, interval_seconds: float, stop_event: threading.Event) -> int:
        """
        Sync repeatedly until ``stop_event`` is set.

        Failed runs are logged and retried on the next interval, except for
        credential problems which end the loop.

        Returns:
            Number of successful sync runs
        """
        completed = 0
        while not stop_event.is_set():
            try:
                self.sync_projects(stop_event=stop_event)
                completed += 1
            except (AuthError, ConfigError):
                raise
            except MirrorError as e:
                if stop_event.is_set():
                    break
                logger.error(f"Sync run failed: {e}")

            stop_event.wait(interval_seconds)

        logger.info(f"Daemon stopped after {completed} successful runs")
        return completed
