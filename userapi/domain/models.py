# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from userapi.domain import schemas
from userapi.infra.db import Base, UTCDateTime


class UserRow(Base):
    __tablename__ = "users"
    # 不复用已删除的 id
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    name: Mapped[str] = mapped_column(String(schemas.NAME_MAX_LENGTH), nullable=False)
    email: Mapped[str] = mapped_column(String(schemas.EMAIL_MAX_LENGTH), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, default=None, index=True)

    def to_entity(self) -> schemas.User:
        return schemas.User.model_validate(self)
