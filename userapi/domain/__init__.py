# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

"""
领域层：

- models: ORM 实体（关系型适配器使用）
- schemas: Pydantic 实体/请求模型（所有适配器共用）
"""
from . import schemas, models  # noqa: F401

__all__ = ["models", "schemas"]
