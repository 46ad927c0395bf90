# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""中间件

- TraceIdMiddleware：ASGI 层，给每个请求分配 trace_id
- recover / request_logger：框架层中间件（handler -> handler 的变换），
  通过 App.use() 按注册顺序包裹路由，先注册的在最外层
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from userapi.common.context import new_trace_id, set_trace_id
from userapi.common.errors import AppError
from userapi.framework.request import Request
from userapi.framework.response import Response
from userapi.framework.types import Handler

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class TraceIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: StarletteRequest, call_next: Callable) -> StarletteResponse:
        trace_id = request.headers.get("X-Request-Id") or new_trace_id()
        set_trace_id(trace_id)
        response: StarletteResponse = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response


def recover(next_handler: Handler) -> Handler:
    """兜底：内层任何未处理的异常都转成一次标准错误响应

    必须第一个注册，才能覆盖其余所有中间件。
    """

    def handler(req: Request, res: Response) -> None:
        try:
            next_handler(req, res)
        except AppError as exc:
            if exc.status_code >= 500:
                logger.warning("%s %s failed: %s (%s)", req.method, req.path, exc.message, exc.code)
                res.write_error(exc.status_code, INTERNAL_ERROR_MESSAGE)
            else:
                res.write_error(exc.status_code, exc.message)
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error while serving %s %s", req.method, req.path)
            res.write_error(500, INTERNAL_ERROR_MESSAGE)

    return handler


def request_logger(next_handler: Handler) -> Handler:
    def handler(req: Request, res: Response) -> None:
        start = time.perf_counter()
        logger.info("Started %s %s", req.method, req.path)
        try:
            next_handler(req, res)
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info("Failed %s %s in %.2fms", req.method, req.path, elapsed_ms)
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("Completed %s %s %s in %.2fms", req.method, req.path, res.status_code, elapsed_ms)

    return handler
