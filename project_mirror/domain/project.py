"""Domain entities for GitLab projects and their mirrored rows."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from project_mirror.domain.errors import DecodeError


def _require(payload: Dict[str, Any], key: str, kind: type, optional: bool = False) -> Any:
    """Read ``key`` from an API object and check its type."""
    if key not in payload:
        # GitLab omits some optional fields, e.g. default_branch for guest members
        if optional:
            return None
        raise DecodeError(f"Missing field '{key}'")

    value = payload[key]
    if value is None and optional:
        return None

    # bool is a subclass of int, GitLab never sends booleans for ids or counts
    if kind is int and isinstance(value, bool):
        raise DecodeError(f"Field '{key}' must be an integer, got bool")
    if not isinstance(value, kind):
        raise DecodeError(
            f"Field '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _require_strings(payload: Dict[str, Any], key: str) -> Tuple[str, ...]:
    values = _require(payload, key, list)
    if not all(isinstance(value, str) for value in values):
        raise DecodeError(f"Field '{key}' must be a list of strings")
    return tuple(values)


@dataclass(frozen=True)
class Namespace:
    """Namespace (user or group) a project lives in."""

    id: int
    name: str
    path: str
    kind: str
    full_path: str
    parent_id: Optional[int]
    avatar_url: Optional[str]
    web_url: str

    @classmethod
    def from_api(cls, payload: Any) -> "Namespace":
        if not isinstance(payload, dict):
            raise DecodeError("Field 'namespace' must be an object")

        return cls(
            id=_require(payload, "id", int),
            name=_require(payload, "name", str),
            path=_require(payload, "path", str),
            kind=_require(payload, "kind", str),
            full_path=_require(payload, "full_path", str),
            parent_id=_require(payload, "parent_id", int, optional=True),
            avatar_url=_require(payload, "avatar_url", str, optional=True),
            web_url=_require(payload, "web_url", str),
        )


@dataclass(frozen=True)
class RemoteProject:
    """A project as returned by the GitLab ``/projects`` endpoint."""

    id: int
    description: Optional[str]
    name: str
    name_with_namespace: str
    path: str
    path_with_namespace: str
    created_at: str
    default_branch: Optional[str]
    tag_list: Tuple[str, ...]
    topics: Tuple[str, ...]
    ssh_url_to_repo: str
    http_url_to_repo: str
    web_url: str
    avatar_url: Optional[str]
    star_count: int
    last_activity_at: str
    namespace: Namespace

    @classmethod
    def from_api(cls, payload: Any) -> "RemoteProject":
        """
        Build a project from one element of the API response.

        Unknown keys are ignored.

        Raises:
            DecodeError: If a field is missing or has the wrong type
        """
        if not isinstance(payload, dict):
            raise DecodeError(
                f"Project entry must be an object, got {type(payload).__name__}"
            )

        return cls(
            id=_require(payload, "id", int),
            description=_require(payload, "description", str, optional=True),
            name=_require(payload, "name", str),
            name_with_namespace=_require(payload, "name_with_namespace", str),
            path=_require(payload, "path", str),
            path_with_namespace=_require(payload, "path_with_namespace", str),
            created_at=_require(payload, "created_at", str),
            default_branch=_require(payload, "default_branch", str, optional=True),
            tag_list=_require_strings(payload, "tag_list"),
            topics=_require_strings(payload, "topics"),
            ssh_url_to_repo=_require(payload, "ssh_url_to_repo", str),
            http_url_to_repo=_require(payload, "http_url_to_repo", str),
            web_url=_require(payload, "web_url", str),
            avatar_url=_require(payload, "avatar_url", str, optional=True),
            star_count=_require(payload, "star_count", int),
            last_activity_at=_require(payload, "last_activity_at", str),
            namespace=Namespace.from_api(_require(payload, "namespace", dict)),
        )


@dataclass(frozen=True)
class MirrorRecord:
    """Row stored in the local ``projects`` table."""

    id: int
    description: Optional[str]
    name: str
    name_with_namespace: str
    path: str
    path_with_namespace: str
    created_at: str
    ssh_url_to_repo: str
    http_url_to_repo: str
    web_url: str
    avatar_url: Optional[str]
    last_activity_at: str
    parent_avatar_url: Optional[str]


@dataclass(frozen=True)
class PaginationCursor:
    """Keyset position: the next page starts after ``id_after``."""

    id_after: int


# MirrorRecord field -> how to read it from a RemoteProject.
# tag_list, topics, star_count, default_branch and the namespace identity
# are not mirrored.
MIRROR_FIELDS = {
    "id": lambda p: p.id,
    "description": lambda p: p.description,
    "name": lambda p: p.name,
    "name_with_namespace": lambda p: p.name_with_namespace,
    "path": lambda p: p.path,
    "path_with_namespace": lambda p: p.path_with_namespace,
    "created_at": lambda p: p.created_at,
    "ssh_url_to_repo": lambda p: p.ssh_url_to_repo,
    "http_url_to_repo": lambda p: p.http_url_to_repo,
    "web_url": lambda p: p.web_url,
    "avatar_url": lambda p: p.avatar_url,
    "last_activity_at": lambda p: p.last_activity_at,
    "parent_avatar_url": lambda p: p.namespace.avatar_url,
}


def to_mirror_record(project: RemoteProject) -> MirrorRecord:
    """Project a remote project onto the stored row shape."""
    return MirrorRecord(**{field: read(project) for field, read in MIRROR_FIELDS.items()})
