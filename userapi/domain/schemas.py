# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 100


def _check_email(v: str) -> str:
    """只校验格式，原样保存调用方提交的地址"""
    try:
        validate_email(v, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"value is not a valid email address: {e}") from e
    return v


Email = Annotated[str, Field(max_length=EMAIL_MAX_LENGTH), AfterValidator(_check_email)]


class UserPayload(BaseModel):
    """创建/更新用户的请求体；id 与时间戳由存储层维护，传了也忽略"""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=2, max_length=NAME_MAX_LENGTH)
    email: Email


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., ge=0)
    name: str
    email: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
