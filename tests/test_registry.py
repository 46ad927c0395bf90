from __future__ import annotations

import logging
from pathlib import Path

import pytest

from userapi.common.errors import StorageUnavailableError, UnsupportedBackendError
from userapi.storage import (
    BackendKind,
    MongoStorage,
    MySQLStorage,
    PostgresStorage,
    SqlitePureStorage,
    SqliteStorage,
    StorageConfig,
    build_storage,
    open_storage,
    parse_kind,
    supported_kinds,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("relational-file", BackendKind.RELATIONAL_FILE),
        ("relational-file-pure", BackendKind.RELATIONAL_FILE_PURE),
        ("relational-networked-mysql-like", BackendKind.MYSQL),
        ("relational-networked-postgres-like", BackendKind.POSTGRES),
        ("document-store", BackendKind.DOCUMENT),
        ("sqlite", BackendKind.RELATIONAL_FILE),
        ("SQLite-Pure", BackendKind.RELATIONAL_FILE_PURE),
        ("mysql", BackendKind.MYSQL),
        ("postgresql", BackendKind.POSTGRES),
        (" mongodb ", BackendKind.DOCUMENT),
    ],
)
def test_parse_kind_accepts_kinds_and_aliases(name: str, expected: BackendKind) -> None:
    assert parse_kind(name) is expected


@pytest.mark.parametrize("name", ["oracle", "", "sqlite3"])
def test_unknown_kind_is_unsupported(name: str) -> None:
    with pytest.raises(UnsupportedBackendError) as excinfo:
        build_storage(StorageConfig(type=name))

    for kind in supported_kinds():
        assert kind in excinfo.value.message


@pytest.mark.parametrize(
    ("kind", "cls"),
    [
        ("relational-file", SqliteStorage),
        ("relational-file-pure", SqlitePureStorage),
        ("relational-networked-mysql-like", MySQLStorage),
        ("relational-networked-postgres-like", PostgresStorage),
        ("document-store", MongoStorage),
    ],
)
def test_build_storage_picks_adapter(kind: str, cls: type) -> None:
    storage = build_storage(StorageConfig(type=kind))

    assert type(storage) is cls
    assert storage.kind.value == kind


def test_networked_relational_urls() -> None:
    config = StorageConfig(type="mysql", host="db", user="u", password="p", db_name="users")

    mysql_url = MySQLStorage(config)._url()
    pg_url = PostgresStorage(config)._url()

    assert mysql_url.render_as_string(hide_password=False) == "mysql+pymysql://u:p@db:3306/users?charset=utf8mb4"
    assert pg_url.render_as_string(hide_password=False) == "postgresql+psycopg://u:p@db:5432/users"


def test_explicit_port_wins_over_default() -> None:
    config = StorageConfig(type="postgres", host="db", port=6543, db_name="users")

    assert PostgresStorage(config)._url().port == 6543


def _broken_sqlite(tmp_path: Path) -> StorageConfig:
    return StorageConfig(type="relational-file", file_path=str(tmp_path / "missing" / "users.db"))


def test_connect_failure_is_fatal_without_fallback(tmp_path: Path) -> None:
    with pytest.raises(StorageUnavailableError):
        open_storage(_broken_sqlite(tmp_path))


def test_fallback_only_when_configured(tmp_path: Path, caplog) -> None:
    fallback = StorageConfig(type="sqlite-pure", file_path=str(tmp_path / "fallback.db"))

    with caplog.at_level(logging.WARNING, logger="userapi.storage.registry"):
        storage = open_storage(_broken_sqlite(tmp_path), fallback=fallback)

    try:
        assert storage.kind is BackendKind.RELATIONAL_FILE_PURE
        assert "falling back to relational-file-pure" in caplog.text
    finally:
        storage.close()


def test_healthy_primary_ignores_fallback(tmp_path: Path) -> None:
    primary = StorageConfig(type="relational-file", file_path=str(tmp_path / "primary.db"))
    fallback = StorageConfig(type="relational-file-pure", file_path=str(tmp_path / "fallback.db"))

    storage = open_storage(primary, fallback=fallback)

    try:
        assert storage.kind is BackendKind.RELATIONAL_FILE
        assert not (tmp_path / "fallback.db").exists()
    finally:
        storage.close()


def test_unsupported_primary_never_falls_back(tmp_path: Path) -> None:
    fallback = StorageConfig(type="relational-file", file_path=str(tmp_path / "fallback.db"))

    with pytest.raises(UnsupportedBackendError):
        open_storage(StorageConfig(type="cassandra"), fallback=fallback)


def test_unsupported_fallback_fails_at_startup(tmp_path: Path) -> None:
    primary = StorageConfig(type="relational-file", file_path=str(tmp_path / "primary.db"))

    with pytest.raises(UnsupportedBackendError):
        open_storage(primary, fallback=StorageConfig(type="cassandra"))
