"""GitLab REST API client that walks the projects listing with keyset pagination."""

import logging
import os
import threading
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import requests

from project_mirror.domain.errors import (
    AuthError,
    DecodeError,
    FetchCancelled,
    ProtocolError,
    TransportError,
)
from project_mirror.domain.project import PaginationCursor, RemoteProject
from project_mirror.infrastructure.credentials import load_personal_access_token

logger = logging.getLogger(__name__)


def parse_next_cursor(response: requests.Response) -> Optional[PaginationCursor]:
    """
    Extract the cursor for the next page from the ``Link`` header.

    Returns:
        The cursor, or None when there is no ``next`` relation

    Raises:
        ProtocolError: If the ``next`` link carries no usable ``id_after``
    """
    # rel may hold several space-separated relation types, e.g. "next last"
    next_link = next(
        (link for link in response.links.values() if "next" in link.get("rel", "").split()),
        None,
    )
    if not next_link or not next_link.get("url"):
        return None

    url = next_link["url"]
    values = parse_qs(urlparse(url).query).get("id_after")
    if not values:
        raise ProtocolError(f"Next link has no id_after parameter: {url}")
    if len(values) > 1:
        raise ProtocolError(f"Next link has several id_after parameters: {url}")

    id_after = values[0]
    # isdecimal() rejects signs, whitespace and non-ASCII digit forms that int() accepts
    if not (id_after.isascii() and id_after.isdecimal()):
        raise ProtocolError(f"Malformed id_after value in next link: {id_after!r}")

    return PaginationCursor(id_after=int(id_after))


class GitLabProjectsClient:
    """Client for the GitLab projects listing."""

    DEFAULT_URL = "https://gitlab.com"
    PROJECTS_PATH = "/api/v4/projects"
    PER_PAGE = 100
    DEFAULT_TIMEOUT_SECONDS = 30

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize GitLab client.

        Args:
            token: GitLab personal access token. If None, reads ~/.gitlab_pat.
            base_url: GitLab instance URL. If None, uses GITLAB_URL env var.
            timeout: Per-request timeout in seconds. If None, uses GITLAB_TIMEOUT_SECONDS.
        """
        if token is None:
            token = load_personal_access_token("gitlab")
        if base_url is None:
            base_url = os.getenv("GITLAB_URL", self.DEFAULT_URL)
        if timeout is None:
            timeout = float(os.getenv("GITLAB_TIMEOUT_SECONDS", self.DEFAULT_TIMEOUT_SECONDS))

        self.token = token
        self.endpoint = base_url.rstrip("/") + self.PROJECTS_PATH
        self.timeout = timeout
        self.headers = {"PRIVATE-TOKEN": self.token}

    def _build_params(self, cursor: Optional[PaginationCursor]) -> Dict[str, str]:
        params = {
            "pagination": "keyset",
            "order_by": "id",
            "sort": "asc",
            "per_page": str(self.PER_PAGE),
            "membership": "true",
        }
        if cursor is not None:
            params["id_after"] = str(cursor.id_after)
        return params

    def _get(self, params: Dict[str, str]) -> requests.Response:
        try:
            response = requests.get(
                self.endpoint,
                params=params,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {self.endpoint} failed: {e}")
            raise TransportError(f"Request to {self.endpoint} failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(
                f"GitLab rejected the access token (HTTP {response.status_code})"
            )
        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"Unexpected HTTP {response.status_code} from {self.endpoint}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _decode_projects(response: requests.Response) -> List[RemoteProject]:
        try:
            body: Any = response.json()
        except ValueError as e:
            raise DecodeError(f"Response body is not valid JSON: {e}") from e

        if not isinstance(body, list):
            raise DecodeError(f"Expected a JSON array, got {type(body).__name__}")

        return [RemoteProject.from_api(node) for node in body]

    def fetch_page(
        self, cursor: Optional[PaginationCursor] = None
    ) -> Tuple[List[RemoteProject], Optional[PaginationCursor]]:
        """
        Fetch one page of projects.

        Args:
            cursor: Position to resume after. None requests the first page.

        Returns:
            Tuple of (projects on this page, cursor for the next page or None)

        Raises:
            AuthError: If the token is rejected
            TransportError: If the request fails or returns an unexpected status
            DecodeError: If the body is not a list of projects
            ProtocolError: If the Link header is malformed
        """
        logger.info(f"Requesting projects from {self.endpoint} (cursor: {cursor})")

        response = self._get(self._build_params(cursor))
        next_cursor = parse_next_cursor(response)
        projects = self._decode_projects(response)

        return projects, next_cursor

    def fetch_all_projects(
        self, stop_event: Optional[threading.Event] = None
    ) -> List[RemoteProject]:
        """
        Fetch every project the token's user is a member of, by ascending id.

        Pages are requested one after another. Any failure aborts the whole
        fetch, so callers never see a partial listing.

        Args:
            stop_event: When set, the fetch stops before requesting the next page

        Raises:
            FetchCancelled: If ``stop_event`` was set between pages
            ProtocolError: If the next cursor does not move forward
        """
        projects: List[RemoteProject] = []
        cursor: Optional[PaginationCursor] = None

        while True:
            if stop_event is not None and stop_event.is_set():
                raise FetchCancelled(f"Fetch cancelled after {len(projects)} projects")

            page, next_cursor = self.fetch_page(cursor)
            projects.extend(page)
            logger.info(f"Fetched {len(page)} projects ({len(projects)} total)")

            if next_cursor is None:
                break
            if cursor is not None and next_cursor.id_after <= cursor.id_after:
                raise ProtocolError(
                    f"Pagination cursor did not advance: {cursor.id_after} -> {next_cursor.id_after}"
                )
            cursor = next_cursor

        return projects
