# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

import logging

from userapi.common.errors import AppError, MalformedRequestError, StorageError
from userapi.domain.schemas import UserPayload
from userapi.framework import App, Handler, Request, Response
from userapi.storage.base import UserStorage

logger = logging.getLogger(__name__)

_MAX_USER_ID = 2**63 - 1


def _user_id(req: Request) -> int:
    raw = req.param("id") or ""
    # 只接受纯 ASCII 十进制数字：int() 还会放过 "+5"、"1_0" 和全角数字
    if not (raw.isascii() and raw.isdigit()):
        raise MalformedRequestError(code="INVALID_USER_ID", message="Invalid user ID")
    value = int(raw)
    if value > _MAX_USER_ID:
        raise MalformedRequestError(code="INVALID_USER_ID", message="Invalid user ID")
    return value


def _fail(res: Response, exc: AppError, storage_message: str) -> None:
    """存储错误只回通用文案，具体原因写服务端日志"""
    if isinstance(exc, StorageError):
        logger.warning("%s: %s (%s) %s", storage_message, exc.message, exc.code, exc.detail or "")
        res.write_error(500, storage_message)
        return
    res.write_error(exc.status_code, exc.message)


def list_users(storage: UserStorage) -> Handler:
    def handler(req: Request, res: Response) -> None:
        try:
            users = storage.get_all_users(req.ctx)
        except AppError as exc:
            _fail(res, exc, "Failed to fetch users")
            return
        res.write_success("Users fetched successfully", users)

    return handler


def get_user(storage: UserStorage) -> Handler:
    def handler(req: Request, res: Response) -> None:
        try:
            user = storage.get_user_by_id(req.ctx, _user_id(req))
        except AppError as exc:
            _fail(res, exc, "Failed to fetch user")
            return
        res.write_success("User fetched successfully", user)

    return handler


def create_user(storage: UserStorage) -> Handler:
    def handler(req: Request, res: Response) -> None:
        try:
            # 先校验，校验不过不会触达存储
            payload = req.parse_body(UserPayload)
            user = storage.create_user(req.ctx, payload)
        except AppError as exc:
            _fail(res, exc, "Failed to create user")
            return
        res.set_status(201).write_success("User created successfully", user)

    return handler


def update_user(storage: UserStorage) -> Handler:
    def handler(req: Request, res: Response) -> None:
        try:
            user_id = _user_id(req)
            payload = req.parse_body(UserPayload)
            user = storage.update_user(req.ctx, user_id, payload)
        except AppError as exc:
            _fail(res, exc, "Failed to update user")
            return
        res.write_success("User updated successfully", user)

    return handler


def delete_user(storage: UserStorage) -> Handler:
    def handler(req: Request, res: Response) -> None:
        try:
            storage.delete_user(req.ctx, _user_id(req))
        except AppError as exc:
            _fail(res, exc, "Failed to delete user")
            return
        res.write_success("User deleted successfully", None)

    return handler


def register_user_routes(app: App) -> None:
    storage = app.storage
    (
        app.route("/users")
        .get("/", list_users(storage))
        .get("/{id}", get_user(storage))
        .post("/", create_user(storage))
        .put("/{id}", update_user(storage))
        .delete("/{id}", delete_user(storage))
    )
