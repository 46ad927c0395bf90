# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""通用基础设施（错误/日志/trace/上下文/中间件）

约定：
- 存储层把各引擎的原生异常统一翻译成 AppError 子类，调用方不感知具体引擎
- trace_id 通过 middleware 注入，并写入日志，便于线上排障
"""

from __future__ import annotations
