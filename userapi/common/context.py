# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""请求上下文

- trace_id 存在 ContextVar 中，日志 filter 和响应头都从这里取
- Context 由传输层创建，一路传到存储层：携带取消信号与截止时间，
  存储适配器在访问引擎前后调用 raise_if_cancelled()
"""

from __future__ import annotations

import threading
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from userapi.common.errors import CanceledError


_trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="-")


def new_trace_id() -> str:
    return uuid.uuid4().hex


def set_trace_id(trace_id: str) -> None:
    _trace_id_ctx.set(trace_id or "-")


def get_trace_id() -> str:
    return _trace_id_ctx.get() or "-"


class Context:
    def __init__(self, timeout: Optional[float] = None, *, trace_id: Optional[str] = None) -> None:
        self._cancelled = threading.Event()
        self._deadline: Optional[float] = None
        if timeout is not None:
            self._deadline = time.monotonic() + timeout
        self.trace_id = trace_id or get_trace_id()

    @classmethod
    def background(cls) -> "Context":
        """脚本/测试使用：永不超时的上下文"""
        return cls()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() or self.expired

    def remaining(self) -> Optional[float]:
        """距离截止时间还剩多少秒；没有截止时间时返回 None"""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise CanceledError(message="request canceled")
        if self.expired:
            raise CanceledError(code="DEADLINE_EXCEEDED", message="request deadline exceeded")
