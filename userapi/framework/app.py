# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""路由 + 中间件管道

- App.use() 追加全局中间件；先注册的中间件在最外层（最先进入、最后退出）
- 每条路由在注册时捕获当前的中间件列表，之后再 use() 的中间件不会回溯生效
- 应用开始启动（lifespan）后中间件列表与路由表冻结，请求期间只读
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence

import uvicorn
from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request as StarletteRequest
from starlette.responses import JSONResponse

from userapi.common.context import Context, get_trace_id
from userapi.framework.request import Request
from userapi.framework.response import Response
from userapi.framework.types import Handler, Middleware
from userapi.storage.base import UserStorage

logger = logging.getLogger(__name__)


def compose(middlewares: Sequence[Middleware], handler: Handler) -> Handler:
    """middlewares[0] 成为最外层"""
    wrapped = handler
    for middleware in reversed(middlewares):
        wrapped = middleware(wrapped)
    return wrapped


class App:
    def __init__(
        self,
        storage: UserStorage,
        *,
        title: str = "userapi",
        version: str = "1.0.0",
        request_timeout: Optional[float] = None,
    ) -> None:
        self._storage = storage
        self._request_timeout = request_timeout
        self._middlewares: List[Middleware] = []
        self._frozen = False
        self.asgi = FastAPI(title=title, version=version, lifespan=self._lifespan)

    @property
    def storage(self) -> UserStorage:
        return self._storage

    @property
    def frozen(self) -> bool:
        return self._frozen

    def use(self, middleware: Middleware) -> "App":
        self._ensure_mutable()
        self._middlewares.append(middleware)
        return self

    def route(self, prefix: str) -> "Router":
        return Router(self, prefix)

    def freeze(self) -> None:
        self._frozen = True

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("routes and middlewares are frozen once the app has started")

    def register(self, path: str, method: str, handler: Handler) -> None:
        self._ensure_mutable()
        wrapped = compose(tuple(self._middlewares), handler)
        method = method.upper()

        async def endpoint(request: StarletteRequest) -> JSONResponse:
            body = await request.body()
            req = Request(
                method=request.method,
                path=request.url.path,
                path_params=request.path_params,
                headers=request.headers,
                body=body,
                ctx=Context(self._request_timeout, trace_id=get_trace_id()),
            )
            res = Response()
            try:
                # 同步 handler 放到线程池，每个请求一个 worker
                await run_in_threadpool(wrapped, req, res)
            finally:
                req.ctx.cancel()
            return res.render()

        self.asgi.router.add_route(path, endpoint, methods=[method], name=f"{method} {path}")
        logger.debug("registered %s %s with %d middlewares", method, path, len(self._middlewares))

    @asynccontextmanager
    async def _lifespan(self, _api: FastAPI) -> AsyncIterator[None]:
        self.freeze()
        await run_in_threadpool(self._storage.connect)
        logger.info("storage ready: %s", self._storage.kind.value)
        try:
            yield
        finally:
            await run_in_threadpool(self._storage.close)
            logger.info("storage closed: %s", self._storage.kind.value)

    def listen(self, host: str = "0.0.0.0", port: int = 8080) -> None:
        logger.info("Server running on %s:%s", host, port)
        uvicorn.run(self.asgi, host=host, port=port, log_config=None)


class Router:
    """同一前缀下的一组路由，方法可链式调用"""

    def __init__(self, app: App, prefix: str) -> None:
        self._app = app
        self._prefix = prefix.rstrip("/")

    def _add(self, method: str, path: str, handler: Handler) -> "Router":
        self._app.register(self._prefix + path, method, handler)
        return self

    def get(self, path: str, handler: Handler) -> "Router":
        return self._add("GET", path, handler)

    def post(self, path: str, handler: Handler) -> "Router":
        return self._add("POST", path, handler)

    def put(self, path: str, handler: Handler) -> "Router":
        return self._add("PUT", path, handler)

    def delete(self, path: str, handler: Handler) -> "Router":
        return self._add("DELETE", path, handler)
