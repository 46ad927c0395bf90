# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import logging
import sys
from typing import Optional

from userapi.api.users import register_user_routes
from userapi.common.errors import AppError
from userapi.common.exception_handlers import install_exception_handlers
from userapi.common.logging import setup_logging
from userapi.common.middlewares import TraceIdMiddleware, recover, request_logger
from userapi.framework import App
from userapi.infra.config import Settings, settings
from userapi.storage import UserStorage, build_storage, open_storage

logger = logging.getLogger(__name__)


def create_app(storage: Optional[UserStorage] = None, cfg: Optional[Settings] = None) -> App:
    cfg = cfg or settings
    if storage is None:
        storage = build_storage(cfg.storage_config())

    app = App(storage, title="userapi", version="1.0.0", request_timeout=cfg.REQUEST_TIMEOUT_SECONDS)

    # ---------- middlewares / handlers ----------

    app.asgi.add_middleware(TraceIdMiddleware)
    install_exception_handlers(app.asgi)

    # recover 必须第一个注册，才能兜住内层所有中间件
    app.use(recover)
    app.use(request_logger)

    @app.asgi.get("/health")
    def health_check() -> dict:
        return {"status": "ok", "storage": app.storage.kind.value}

    # 用户
    register_user_routes(app)

    return app


def main() -> int:
    setup_logging(settings.LOG_LEVEL)
    try:
        storage = open_storage(settings.storage_config(), fallback=settings.fallback_storage_config())
    except AppError as e:
        logger.error("Failed to initialize storage: %s (%s)", e.message, e.detail or e.code)
        return 1

    app = create_app(storage)
    try:
        app.listen(settings.LISTEN_HOST, settings.LISTEN_PORT)
    finally:
        storage.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
