# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""可插拔的用户存储：统一契约 + 各引擎适配器 + 选择器"""

from __future__ import annotations

from userapi.storage.base import BackendKind, StorageConfig, UserStorage
from userapi.storage.mongo import MongoStorage
from userapi.storage.registry import build_storage, open_storage, parse_kind, supported_kinds
from userapi.storage.sql import (
    MySQLStorage,
    PostgresStorage,
    SqlAlchemyStorage,
    SqlitePureStorage,
    SqliteStorage,
)

__all__ = [
    "BackendKind",
    "StorageConfig",
    "UserStorage",
    "SqlAlchemyStorage",
    "SqliteStorage",
    "SqlitePureStorage",
    "MySQLStorage",
    "PostgresStorage",
    "MongoStorage",
    "build_storage",
    "open_storage",
    "parse_kind",
    "supported_kinds",
]
