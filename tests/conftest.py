from __future__ import annotations

from pathlib import Path
from typing import Iterator

import mongomock
import pytest

from userapi.common.context import Context
from userapi.storage import MongoStorage, StorageConfig, UserStorage, build_storage

BACKENDS = ["relational-file", "relational-file-pure", "document-store"]


def make_storage(kind: str, tmp_path: Path) -> UserStorage:
    if kind == "document-store":
        client = mongomock.MongoClient()
        config = StorageConfig(type=kind, db_name="userapi_test")
        return MongoStorage(config, client_factory=lambda **_: client)
    return build_storage(StorageConfig(type=kind, file_path=str(tmp_path / "users.db")))


@pytest.fixture(params=BACKENDS)
def backend(request) -> str:
    return request.param


@pytest.fixture()
def storage(backend: str, tmp_path: Path) -> Iterator[UserStorage]:
    store = make_storage(backend, tmp_path)
    store.connect()
    yield store
    store.close()


@pytest.fixture()
def ctx() -> Context:
    return Context.background()
