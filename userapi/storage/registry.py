# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple, Type

from userapi.common.errors import StorageUnavailableError, UnsupportedBackendError
from userapi.storage.base import BackendKind, StorageConfig, UserStorage
from userapi.storage.mongo import MongoStorage
from userapi.storage.sql import MySQLStorage, PostgresStorage, SqlitePureStorage, SqliteStorage

logger = logging.getLogger(__name__)


_BACKENDS: Dict[BackendKind, Type[UserStorage]] = {
    BackendKind.RELATIONAL_FILE: SqliteStorage,
    BackendKind.RELATIONAL_FILE_PURE: SqlitePureStorage,
    BackendKind.MYSQL: MySQLStorage,
    BackendKind.POSTGRES: PostgresStorage,
    BackendKind.DOCUMENT: MongoStorage,
}

# 历史上的短名称
_ALIASES: Dict[str, BackendKind] = {
    "sqlite": BackendKind.RELATIONAL_FILE,
    "sqlite-pure": BackendKind.RELATIONAL_FILE_PURE,
    "mysql": BackendKind.MYSQL,
    "postgres": BackendKind.POSTGRES,
    "postgresql": BackendKind.POSTGRES,
    "mongodb": BackendKind.DOCUMENT,
    "mongo": BackendKind.DOCUMENT,
}


def supported_kinds() -> Tuple[str, ...]:
    return tuple(kind.value for kind in _BACKENDS)


def parse_kind(value: str) -> BackendKind:
    name = (value or "").strip().lower()
    try:
        return BackendKind(name)
    except ValueError:
        pass
    if name in _ALIASES:
        return _ALIASES[name]
    raise UnsupportedBackendError(
        message=f"unsupported database type: {value!r}; supported types: {', '.join(supported_kinds())}",
        detail={"type": value},
    )


def build_storage(config: StorageConfig) -> UserStorage:
    """按配置构造适配器（不连接）"""
    kind = parse_kind(config.type)
    return _BACKENDS[kind](config)


def open_storage(config: StorageConfig, *, fallback: Optional[StorageConfig] = None) -> UserStorage:
    """构造并连接适配器

    连接失败直接抛出；只有显式配置了 fallback 时，才在主存储不可用时改用备用存储。
    """
    storage = build_storage(config)
    if fallback is not None:
        # 备用类型写错同样要在启动时暴露
        parse_kind(fallback.type)

    try:
        storage.connect()
        return storage
    except StorageUnavailableError as e:
        if fallback is None:
            raise
        logger.warning(
            "storage %s unavailable (%s); falling back to %s as configured",
            storage.kind.value,
            e.detail or e.message,
            parse_kind(fallback.type).value,
        )

    secondary = build_storage(fallback)
    secondary.connect()
    return secondary
