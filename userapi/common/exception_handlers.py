# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""ASGI 层兜底：框架之外的异常（未知路由、方法不允许等）也输出 {"error": ...}"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from userapi.common.errors import AppError

logger = logging.getLogger(__name__)


def _err(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # noqa: ARG001
    return _err(exc.status_code, str(exc.detail))


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:  # noqa: ARG001
    if exc.status_code >= 500:
        logger.error("Storage/app error: %s (%s)", exc.message, exc.code)
        return _err(exc.status_code, "Internal server error")
    return _err(exc.status_code, exc.message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: ARG001
    logger.exception("Unhandled error")
    return _err(500, "Internal server error")


def install_exception_handlers(api: FastAPI) -> None:
    api.add_exception_handler(StarletteHTTPException, http_error_handler)
    api.add_exception_handler(AppError, app_error_handler)
    api.add_exception_handler(Exception, unhandled_error_handler)
