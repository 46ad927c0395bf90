# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from userapi.common.context import Context
from userapi.common.errors import NotFoundError
from userapi.domain.schemas import User, UserPayload


def user_not_found(user_id: int) -> NotFoundError:
    return NotFoundError(code="USER_NOT_FOUND", message="User not found", detail={"id": user_id})


class BackendKind(str, Enum):
    RELATIONAL_FILE = "relational-file"
    RELATIONAL_FILE_PURE = "relational-file-pure"
    MYSQL = "relational-networked-mysql-like"
    POSTGRES = "relational-networked-postgres-like"
    DOCUMENT = "document-store"


@dataclass(frozen=True)
class StorageConfig:
    """存储连接参数；哪些字段生效取决于 type"""

    type: str
    host: str = "localhost"
    port: Optional[int] = None
    user: str = ""
    password: str = ""
    db_name: str = "userapi"
    file_path: str = "user_api.db"
    connect_timeout: float = 5.0


class UserStorage(ABC):
    """统一的用户存储契约，每种引擎一个实现

    所有实现必须把引擎原生异常翻译为 userapi.common.errors 中的类型：
    NotFoundError / ConstraintViolationError / StorageUnavailableError / CanceledError / StorageError
    """

    kind: BackendKind
    # 引擎能保存的时间精度
    timestamp_resolution: timedelta = timedelta(microseconds=1)

    def __init__(self, config: StorageConfig) -> None:
        self._config = config

    @property
    def config(self) -> StorageConfig:
        return self._config

    @abstractmethod
    def connect(self) -> None:
        """建立连接并确保表/集合存在；重复调用无副作用"""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def create_user(self, ctx: Context, payload: UserPayload) -> User:
        raise NotImplementedError

    @abstractmethod
    def get_user_by_id(self, ctx: Context, user_id: int) -> User:
        raise NotImplementedError

    @abstractmethod
    def get_all_users(self, ctx: Context) -> List[User]:
        raise NotImplementedError

    @abstractmethod
    def update_user(self, ctx: Context, user_id: int, payload: UserPayload) -> User:
        raise NotImplementedError

    @abstractmethod
    def delete_user(self, ctx: Context, user_id: int) -> None:
        raise NotImplementedError

    # ---------- timestamps ----------

    def _now(self) -> datetime:
        now = datetime.now(timezone.utc)
        step = self.timestamp_resolution
        if step > timedelta(microseconds=1):
            micros = step // timedelta(microseconds=1)
            now = now.replace(microsecond=now.microsecond - now.microsecond % micros)
        return now

    def _next_updated_at(self, previous: datetime) -> datetime:
        """updated_at 严格递增"""
        now = self._now()
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=timezone.utc)
        if now <= previous:
            now = previous + self.timestamp_resolution
        return now
