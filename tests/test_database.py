"""Tests for the SQLite project store."""

import dataclasses
import sqlite3

import pytest

from project_mirror.domain.errors import StorageError
from project_mirror.domain.project import MirrorRecord
from project_mirror.infrastructure.database import SQLiteProjectStore


def make_record(project_id, **overrides):
    values = dict(
        id=project_id,
        description=None,
        name=f"project-{project_id}",
        name_with_namespace=f"Acme / project-{project_id}",
        path=f"project-{project_id}",
        path_with_namespace=f"acme/project-{project_id}",
        created_at="2023-04-01T10:00:00.000Z",
        ssh_url_to_repo=f"git@gitlab.example.com:acme/project-{project_id}.git",
        http_url_to_repo=f"https://gitlab.example.com/acme/project-{project_id}.git",
        web_url=f"https://gitlab.example.com/acme/project-{project_id}",
        avatar_url=None,
        last_activity_at="2024-01-15T08:30:00.000Z",
        parent_avatar_url="https://gitlab.example.com/uploads/acme.png",
    )
    values.update(overrides)
    return MirrorRecord(**values)


def test_open_or_create_creates_file_and_schema(tmp_path):
    db_path = tmp_path / "nested" / "mirror.db"

    with SQLiteProjectStore.open_or_create(str(db_path)) as store:
        assert store.get_project_count() == 0

    assert db_path.exists()
    columns = [row[1] for row in sqlite3.connect(db_path).execute("PRAGMA table_info(projects)")]
    assert columns == [f.name for f in dataclasses.fields(MirrorRecord)]


def test_open_or_create_is_repeatable(tmp_path):
    db_path = str(tmp_path / "mirror.db")

    with SQLiteProjectStore.open_or_create(db_path) as store:
        store.upsert_projects([make_record(1)])

    with SQLiteProjectStore.open_or_create(db_path) as store:
        assert store.get_project_count() == 1


def test_open_or_create_on_directory_fails(tmp_path):
    with pytest.raises(StorageError):
        SQLiteProjectStore.open_or_create(str(tmp_path))


def test_db_path_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("MIRROR_DB_PATH", str(tmp_path / "env.db"))

    assert SQLiteProjectStore().db_path == str(tmp_path / "env.db")


def test_list_returns_rows_by_ascending_id(store):
    store.upsert_projects([make_record(30), make_record(10), make_record(20)])

    assert [record.id for record in store.list_projects()] == [10, 20, 30]


def test_upsert_round_trips_nullable_fields(store):
    record = make_record(1, description="A tool", avatar_url="https://img/1.png", parent_avatar_url=None)

    store.upsert_projects([record])

    assert store.list_projects() == [record]


def test_upsert_is_idempotent(store):
    records = [make_record(1), make_record(2)]

    store.upsert_projects(records)
    first_listing = store.list_projects()
    store.upsert_projects(records)

    assert store.list_projects() == first_listing
    assert store.get_project_count() == 2


def test_upsert_replaces_existing_row(store):
    store.upsert_projects([make_record(1, description="old")])

    store.upsert_projects([make_record(1, name="renamed")])

    assert store.get_project_count() == 1
    [record] = store.list_projects()
    assert record.name == "renamed"
    # whole row replaced, not merged
    assert record.description is None


def test_upsert_empty_is_noop(store):
    store.upsert_projects([])

    assert store.get_project_count() == 0


def test_upsert_batch_is_all_or_nothing(store):
    store.upsert_projects([make_record(1)])

    with pytest.raises(StorageError):
        store.upsert_projects([make_record(2), make_record(3, name=None)])

    assert [record.id for record in store.list_projects()] == [1]


def test_closed_store_raises(tmp_path):
    store = SQLiteProjectStore.open_or_create(str(tmp_path / "mirror.db"))
    store.close()
    store.close()

    with pytest.raises(StorageError, match="not connected"):
        store.get_project_count()
