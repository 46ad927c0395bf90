# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(eq=False)
class AppError(Exception):
    """异常统一"""
    code: str
    message: str
    status_code: int = 400
    detail: Optional[Any] = None

    def __str__(self) -> str:
        return self.message


class ValidationFailedError(AppError):
    def __init__(self, code: str = "VALIDATION_FAILED", message: str = "validation failed", detail: Any = None) -> None:
        super().__init__(code=code, message=message, status_code=400, detail=detail)


class MalformedRequestError(AppError):
    def __init__(self, code: str = "MALFORMED_REQUEST", message: str = "malformed request", detail: Any = None) -> None:
        super().__init__(code=code, message=message, status_code=400, detail=detail)


class NotFoundError(AppError):
    def __init__(self, code: str = "NOT_FOUND", message: str = "not found", detail: Any = None) -> None:
        super().__init__(code=code, message=message, status_code=404, detail=detail)


class UnsupportedBackendError(AppError):
    """配置了未知的存储类型，启动阶段直接失败"""

    def __init__(self, code: str = "UNSUPPORTED_BACKEND", message: str = "unsupported backend", detail: Any = None) -> None:
        super().__init__(code=code, message=message, status_code=500, detail=detail)


# ---------- storage ----------

class StorageError(AppError):
    """存储层通用错误，对外统一表现为 500"""

    def __init__(self, code: str = "STORAGE_ERROR", message: str = "storage error", detail: Any = None) -> None:
        super().__init__(code=code, message=message, status_code=500, detail=detail)


class ConstraintViolationError(StorageError):
    def __init__(self, code: str = "CONSTRAINT_VIOLATION", message: str = "constraint violation", detail: Any = None) -> None:
        super().__init__(code=code, message=message, detail=detail)


class StorageUnavailableError(StorageError):
    def __init__(self, code: str = "STORAGE_UNAVAILABLE", message: str = "storage unavailable", detail: Any = None) -> None:
        super().__init__(code=code, message=message, detail=detail)


class CanceledError(StorageError):
    # TODO: 取消目前统一按 500 返回，后续改为客户端可见的独立状态码（499/504）
    def __init__(self, code: str = "CANCELED", message: str = "operation canceled", detail: Any = None) -> None:
        super().__init__(code=code, message=message, detail=detail)
