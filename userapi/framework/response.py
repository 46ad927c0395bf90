# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class Response:
    """可链式调用的响应构造器，绑定一个请求

    用法：res.set_status(201).write_success("created", user)

    每个请求只应调用一次 write_success / write_error；重复调用以最后一次为准，
    由 handler 作者自行保证。
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.headers: Dict[str, str] = {}
        self._payload: Optional[Dict[str, Any]] = None

    @property
    def written(self) -> bool:
        return self._payload is not None

    def set_status(self, code: int) -> "Response":
        self.status_code = code
        return self

    def set_header(self, name: str, value: str) -> "Response":
        self.headers[name] = value
        return self

    def write_json(self, payload: Dict[str, Any]) -> None:
        self._payload = payload

    def write_success(self, message: str, data: Any = None) -> None:
        self.write_json({"message": message, "data": data})

    def write_error(self, code: int, message: str) -> None:
        self.set_status(code).write_json({"error": message})

    @property
    def payload(self) -> Optional[Dict[str, Any]]:
        return self._payload

    def render(self) -> JSONResponse:
        if self._payload is None:
            logger.warning("handler finished without writing a response")
            self.write_error(500, "Internal server error")
        return JSONResponse(
            status_code=self.status_code,
            content=jsonable_encoder(self._payload),
            headers=self.headers or None,
        )
