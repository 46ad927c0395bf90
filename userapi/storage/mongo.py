# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""文档型适配器（MongoDB）

文档以应用层的 id 字段为键，而不是 Mongo 自带的 _id：
- id 由 counters 集合的自增序列分配，删除后不会复用
- 查询/更新/删除都显式按 id 过滤
- 时间只保存到毫秒
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

import pymongo
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from userapi.common.context import Context
from userapi.common.errors import (
    CanceledError,
    ConstraintViolationError,
    StorageError,
    StorageUnavailableError,
)
from userapi.domain.schemas import User, UserPayload
from userapi.storage.base import BackendKind, StorageConfig, UserStorage, user_not_found

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
COUNTERS_COLLECTION = "counters"
_PROJECTION = {"_id": 0}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entity(doc: Mapping[str, Any]) -> User:
    return User(
        id=int(doc["id"]),
        name=doc["name"],
        email=doc["email"],
        created_at=_as_utc(doc["created_at"]),
        updated_at=_as_utc(doc["updated_at"]),
        deleted_at=_as_utc(doc.get("deleted_at")),
    )


class MongoStorage(UserStorage):
    kind = BackendKind.DOCUMENT
    timestamp_resolution = timedelta(milliseconds=1)
    default_port = 27017

    def __init__(self, config: StorageConfig, client_factory: Callable[..., Any] = MongoClient) -> None:
        super().__init__(config)
        self._client_factory = client_factory
        self._client: Optional[Any] = None
        self._users: Optional[Collection] = None
        self._counters: Optional[Collection] = None

    def _client_options(self) -> Dict[str, Any]:
        cfg = self._config
        options: Dict[str, Any] = {
            "host": cfg.host,
            "port": cfg.port or self.default_port,
            "serverSelectionTimeoutMS": int(cfg.connect_timeout * 1000),
            "tz_aware": True,
        }
        if cfg.user:
            options["username"] = cfg.user
            options["password"] = cfg.password
        return options

    def connect(self) -> None:
        if self._client is not None:
            return

        client = self._client_factory(**self._client_options())
        try:
            db = client[self._config.db_name]
            users = db[USERS_COLLECTION]
            # 建索引同时验证连通性
            users.create_index([("id", ASCENDING)], unique=True)
            users.create_index([("email", ASCENDING)], unique=True)
        except PyMongoError as e:
            client.close()
            raise StorageUnavailableError(
                message=f"failed to connect to {self.kind.value} storage",
                detail=str(e),
            ) from e

        self._client = client
        self._users = users
        self._counters = db[COUNTERS_COLLECTION]
        logger.info("connected %s storage", self.kind.value)

    def close(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._users = None
        self._counters = None

    @contextmanager
    def _guard(self, ctx: Context) -> Iterator[Collection]:
        ctx.raise_if_cancelled()
        if self._users is None:
            raise StorageUnavailableError(message=f"{self.kind.value} storage is not connected")

        try:
            with pymongo.timeout(ctx.remaining()):
                yield self._users
        except DuplicateKeyError as e:
            raise ConstraintViolationError(message="constraint violation", detail=str(e)) from e
        except PyMongoError as e:
            if e.timeout or ctx.cancelled:
                raise CanceledError(detail=str(e)) from e
            if isinstance(e, ConnectionFailure):
                raise StorageUnavailableError(detail=str(e)) from e
            raise StorageError(detail=str(e)) from e

    def _next_id(self) -> int:
        doc = self._counters.find_one_and_update(
            {"_id": USERS_COLLECTION},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])

    def create_user(self, ctx: Context, payload: UserPayload) -> User:
        now = self._now()
        with self._guard(ctx) as users:
            doc = {
                "id": self._next_id(),
                "name": payload.name,
                "email": payload.email,
                "created_at": now,
                "updated_at": now,
                "deleted_at": None,
            }
            ctx.raise_if_cancelled()
            users.insert_one(doc)
        return _to_entity(doc)

    def get_user_by_id(self, ctx: Context, user_id: int) -> User:
        with self._guard(ctx) as users:
            doc = users.find_one({"id": user_id}, _PROJECTION)
        if doc is None:
            raise user_not_found(user_id)
        return _to_entity(doc)

    def get_all_users(self, ctx: Context) -> List[User]:
        with self._guard(ctx) as users:
            docs = list(users.find({}, _PROJECTION).sort("id", ASCENDING))
        return [_to_entity(doc) for doc in docs]

    def update_user(self, ctx: Context, user_id: int, payload: UserPayload) -> User:
        with self._guard(ctx) as users:
            current = users.find_one({"id": user_id}, _PROJECTION)
            if current is None:
                raise user_not_found(user_id)
            changes = {
                "name": payload.name,
                "email": payload.email,
                "updated_at": self._next_updated_at(_as_utc(current["updated_at"])),
            }
            ctx.raise_if_cancelled()
            result = users.update_one({"id": user_id}, {"$set": changes})
            if result.matched_count == 0:
                raise user_not_found(user_id)
        return _to_entity({**current, **changes})

    def delete_user(self, ctx: Context, user_id: int) -> None:
        with self._guard(ctx) as users:
            ctx.raise_if_cancelled()
            result = users.delete_one({"id": user_id})
        if result.deleted_count == 0:
            raise user_not_found(user_id)
