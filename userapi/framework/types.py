# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from typing import Callable

from userapi.framework.request import Request
from userapi.framework.response import Response

# 终端 handler：读 Request，通过 Response 写出一次结果
Handler = Callable[[Request, Response], None]

# 中间件：handler -> 包裹后的 handler
Middleware = Callable[[Handler], Handler]
