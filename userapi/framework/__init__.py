# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""请求分发框架：路由注册、中间件管道、响应构造器"""

from __future__ import annotations

from userapi.framework.app import App, Router, compose
from userapi.framework.request import Request
from userapi.framework.response import Response
from userapi.framework.types import Handler, Middleware

__all__ = ["App", "Router", "compose", "Request", "Response", "Handler", "Middleware"]
