# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from userapi.common.context import Context
from userapi.common.errors import MalformedRequestError, ValidationFailedError

T = TypeVar("T", bound=BaseModel)


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


class Request:
    """框架层请求：已经读完的 body + 路由解析出的路径参数 + 调用上下文"""

    def __init__(
        self,
        *,
        method: str = "GET",
        path: str = "/",
        path_params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
        ctx: Optional[Context] = None,
    ) -> None:
        self.method = method.upper()
        self.path = path
        self.path_params: Dict[str, str] = dict(path_params or {})
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = body
        self.ctx = ctx or Context.background()

    def param(self, name: str) -> Optional[str]:
        return self.path_params.get(name)

    def json(self) -> Any:
        try:
            return json.loads(self.body or b"")
        except (ValueError, UnicodeDecodeError) as e:
            raise MalformedRequestError(code="INVALID_PAYLOAD", message="Invalid request payload") from e

    def parse_body(self, model: Type[T]) -> T:
        """body -> pydantic 模型；JSON 不合法为 MalformedRequest，字段不合法为 ValidationFailed"""
        data = self.json()
        if not isinstance(data, dict):
            raise MalformedRequestError(code="INVALID_PAYLOAD", message="Invalid request payload")
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ValidationFailedError(
                message=f"Validation failed: {_describe_errors(e)}",
                detail=e.errors(include_url=False, include_context=False),
            ) from e
