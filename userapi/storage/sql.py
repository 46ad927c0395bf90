# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""关系型适配器（SQLAlchemy ORM）

四种引擎共用同一套映射与 CRUD，只在连接串和连接池参数上有区别。
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from userapi.common.context import Context
from userapi.common.errors import (
    ConstraintViolationError,
    StorageError,
    StorageUnavailableError,
)
from userapi.domain.models import UserRow
from userapi.domain.schemas import User, UserPayload
from userapi.infra.db import Base, build_engine, build_session_factory
from userapi.storage.base import BackendKind, StorageConfig, UserStorage, user_not_found

logger = logging.getLogger(__name__)


class SqlAlchemyStorage(UserStorage):
    def __init__(self, config: StorageConfig) -> None:
        super().__init__(config)
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker] = None

    @abstractmethod
    def _url(self) -> URL:
        raise NotImplementedError

    def _engine_options(self) -> Dict[str, Any]:
        return {}

    def connect(self) -> None:
        if self._engine is not None:
            return

        engine: Optional[Engine] = None
        try:
            engine = build_engine(self._url(), **self._engine_options())
            Base.metadata.create_all(bind=engine)
        except (SQLAlchemyError, ImportError) as e:
            if engine is not None:
                engine.dispose()
            raise StorageUnavailableError(
                message=f"failed to connect to {self.kind.value} storage",
                detail=str(e),
            ) from e

        self._engine = engine
        self._sessions = build_session_factory(engine)
        logger.info("connected %s storage", self.kind.value)

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessions = None

    @contextmanager
    def _session(self, ctx: Context) -> Iterator[Session]:
        ctx.raise_if_cancelled()
        if self._sessions is None:
            raise StorageUnavailableError(message=f"{self.kind.value} storage is not connected")

        session = self._sessions()
        try:
            yield session
        except IntegrityError as e:
            session.rollback()
            raise ConstraintViolationError(message="constraint violation", detail=str(e.orig)) from e
        except (OperationalError, InterfaceError) as e:
            session.rollback()
            raise StorageUnavailableError(detail=str(e.orig)) from e
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(detail=str(e)) from e
        finally:
            session.close()

    @staticmethod
    def _commit(ctx: Context, session: Session) -> None:
        # 提交前最后一次检查取消，已取消的请求不落库
        ctx.raise_if_cancelled()
        session.commit()

    def create_user(self, ctx: Context, payload: UserPayload) -> User:
        now = self._now()
        row = UserRow(name=payload.name, email=payload.email, created_at=now, updated_at=now)
        with self._session(ctx) as session:
            session.add(row)
            self._commit(ctx, session)
            return row.to_entity()

    def get_user_by_id(self, ctx: Context, user_id: int) -> User:
        with self._session(ctx) as session:
            row = session.get(UserRow, user_id)
            if row is None:
                raise user_not_found(user_id)
            return row.to_entity()

    def get_all_users(self, ctx: Context) -> List[User]:
        with self._session(ctx) as session:
            rows = session.scalars(select(UserRow).order_by(UserRow.id)).all()
            return [row.to_entity() for row in rows]

    def update_user(self, ctx: Context, user_id: int, payload: UserPayload) -> User:
        with self._session(ctx) as session:
            row = session.get(UserRow, user_id)
            if row is None:
                raise user_not_found(user_id)
            row.name = payload.name
            row.email = payload.email
            row.updated_at = self._next_updated_at(row.updated_at)
            self._commit(ctx, session)
            return row.to_entity()

    def delete_user(self, ctx: Context, user_id: int) -> None:
        with self._session(ctx) as session:
            result = session.execute(delete(UserRow).where(UserRow.id == user_id))
            if result.rowcount == 0:
                raise user_not_found(user_id)
            self._commit(ctx, session)


class SqliteStorage(SqlAlchemyStorage):
    kind = BackendKind.RELATIONAL_FILE

    def _in_memory(self) -> bool:
        return self._config.file_path in ("", ":memory:")

    def _url(self) -> URL:
        database = None if self._in_memory() else self._config.file_path
        return URL.create("sqlite+pysqlite", database=database)

    def _engine_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "connect_args": {"check_same_thread": False, "timeout": self._config.connect_timeout},
        }
        if self._in_memory():
            # 内存库只能共享同一个连接
            options["poolclass"] = StaticPool
        return options


class SqlitePureStorage(SqliteStorage):
    """不带连接池的 SQLite：每次会话单独打开/关闭文件连接，连接句柄从不跨线程共享"""

    kind = BackendKind.RELATIONAL_FILE_PURE

    def _engine_options(self) -> Dict[str, Any]:
        options = super()._engine_options()
        if not self._in_memory():
            options["poolclass"] = NullPool
        return options


class MySQLStorage(SqlAlchemyStorage):
    kind = BackendKind.MYSQL
    default_port = 3306

    def _url(self) -> URL:
        cfg = self._config
        return URL.create(
            "mysql+pymysql",
            username=cfg.user or None,
            password=cfg.password or None,
            host=cfg.host,
            port=cfg.port or self.default_port,
            database=cfg.db_name,
            query={"charset": "utf8mb4"},
        )

    def _engine_options(self) -> Dict[str, Any]:
        return {
            "pool_recycle": 3600,
            "connect_args": {"connect_timeout": max(1, int(self._config.connect_timeout))},
        }


class PostgresStorage(SqlAlchemyStorage):
    kind = BackendKind.POSTGRES
    default_port = 5432

    def _url(self) -> URL:
        cfg = self._config
        return URL.create(
            "postgresql+psycopg",
            username=cfg.user or None,
            password=cfg.password or None,
            host=cfg.host,
            port=cfg.port or self.default_port,
            database=cfg.db_name,
        )

    def _engine_options(self) -> Dict[str, Any]:
        return {"connect_args": {"connect_timeout": max(1, int(self._config.connect_timeout))}}
