# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from userapi.common.logging import setup_logging
from userapi.infra.config import settings
from userapi.storage import open_storage


def init_db() -> None:
    setup_logging(settings.LOG_LEVEL)
    print(f"Creating schema for {settings.DB_TYPE}...")
    storage = open_storage(settings.storage_config())
    storage.close()
    print("Done.")


if __name__ == "__main__":
    init_db()
