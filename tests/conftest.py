"""Shared test fixtures."""

import json

import pytest
import requests

from project_mirror.infrastructure.database import SQLiteProjectStore

ENDPOINT = "https://gitlab.example.com/api/v4/projects"


def _project_payload(project_id, **overrides):
    payload = {
        "id": project_id,
        "description": f"Project number {project_id}",
        "name": f"project-{project_id}",
        "name_with_namespace": f"Acme / project-{project_id}",
        "path": f"project-{project_id}",
        "path_with_namespace": f"acme/project-{project_id}",
        "created_at": "2023-04-01T10:00:00.000Z",
        "default_branch": "main",
        "tag_list": ["python"],
        "topics": ["python", "tooling"],
        "ssh_url_to_repo": f"git@gitlab.example.com:acme/project-{project_id}.git",
        "http_url_to_repo": f"https://gitlab.example.com/acme/project-{project_id}.git",
        "web_url": f"https://gitlab.example.com/acme/project-{project_id}",
        "avatar_url": None,
        "star_count": 3,
        "last_activity_at": "2024-01-15T08:30:00.000Z",
        "readme_url": None,
        "namespace": {
            "id": 7,
            "name": "Acme",
            "path": "acme",
            "kind": "group",
            "full_path": "acme",
            "parent_id": None,
            "avatar_url": "https://gitlab.example.com/uploads/acme.png",
            "web_url": "https://gitlab.example.com/groups/acme",
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def project_payload():
    """Factory for one element of the /projects response."""
    return _project_payload


@pytest.fixture
def make_response():
    """Factory for real requests.Response objects, so Link parsing runs for real."""

    def _make(body, status_code=200, next_id_after=None, link=None):
        response = requests.Response()
        response.status_code = status_code
        response.url = ENDPOINT
        response._content = json.dumps(body).encode("utf-8") if not isinstance(body, bytes) else body
        response.headers["Content-Type"] = "application/json"
        if next_id_after is not None:
            link = (
                f'<{ENDPOINT}?id_after={next_id_after}&membership=true&order_by=id'
                f'&pagination=keyset&per_page=100&sort=asc>; rel="next"'
            )
        if link is not None:
            response.headers["Link"] = link
        return response

    return _make


@pytest.fixture
def make_pages(project_payload, make_response):
    """Build consecutive pages of the given sizes, ids starting at 1."""

    def _make(*sizes):
        responses = []
        next_id = 1
        for index, size in enumerate(sizes):
            body = [project_payload(next_id + offset) for offset in range(size)]
            next_id += size
            is_last = index == len(sizes) - 1
            responses.append(
                make_response(body, next_id_after=None if is_last else next_id - 1)
            )
        return responses

    return _make


@pytest.fixture
def store(tmp_path):
    """A schema-initialized store backed by a temporary file."""
    project_store = SQLiteProjectStore.open_or_create(str(tmp_path / "projects.db"))
    yield project_store
    project_store.close()
