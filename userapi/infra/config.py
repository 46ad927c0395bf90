# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description:

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from userapi.storage.base import StorageConfig


class Settings(BaseSettings):
    """全局配置，从 .env / 环境变量读取"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 运行环境
    ENV: str = Field("dev", description="运行环境: dev / prod")

    # 存储
    DB_TYPE: str = Field(
        "relational-file",
        description=(
            "存储类型: relational-file / relational-file-pure / relational-networked-mysql-like / "
            "relational-networked-postgres-like / document-store（也接受 sqlite / mysql / postgres / mongodb）"
        ),
        validation_alias=AliasChoices("DB_TYPE", "db_type"),
    )
    DB_HOST: str = Field(
        "localhost",
        description="数据库 host（网络型存储使用）",
        validation_alias=AliasChoices("DB_HOST", "db_host"),
    )
    DB_PORT: Optional[int] = Field(
        None,
        description="数据库端口，不填时按存储类型取默认端口",
        validation_alias=AliasChoices("DB_PORT", "db_port"),
    )
    DB_USER: str = Field(
        "",
        description="数据库用户名",
        validation_alias=AliasChoices("DB_USER", "db_user"),
    )
    DB_PASSWORD: str = Field(
        "",
        description="数据库密码",
        validation_alias=AliasChoices("DB_PASSWORD", "db_password"),
    )
    DB_NAME: str = Field(
        "userapi",
        description="数据库名",
        validation_alias=AliasChoices("DB_NAME", "db_name"),
    )
    DB_FILE_PATH: str = Field(
        "user_api.db",
        description="SQLite 文件路径（文件型存储使用）",
        validation_alias=AliasChoices("DB_FILE_PATH", "db_file_path"),
    )
    DB_CONNECT_TIMEOUT_SECONDS: float = Field(
        5.0,
        description="建立连接的超时时间（秒）",
        validation_alias=AliasChoices("DB_CONNECT_TIMEOUT_SECONDS", "db_connect_timeout_seconds"),
    )
    DB_FALLBACK_TYPE: Optional[str] = Field(
        None,
        description="主存储连接失败时显式启用的备用存储类型；不配置则直接启动失败",
        validation_alias=AliasChoices("DB_FALLBACK_TYPE", "db_fallback_type"),
    )

    # HTTP
    LISTEN_HOST: str = Field(
        "0.0.0.0",
        description="监听地址",
        validation_alias=AliasChoices("LISTEN_HOST", "listen_host"),
    )
    LISTEN_PORT: int = Field(
        8080,
        description="监听端口",
        validation_alias=AliasChoices("LISTEN_PORT", "listen_port"),
    )
    REQUEST_TIMEOUT_SECONDS: Optional[float] = Field(
        30.0,
        description="单个请求的截止时间（秒），超时后存储调用返回 Canceled",
        validation_alias=AliasChoices("REQUEST_TIMEOUT_SECONDS", "request_timeout_seconds"),
    )

    # 日志
    LOG_LEVEL: str = Field(
        "INFO",
        description="日志级别",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )

    def storage_config(self, db_type: Optional[str] = None) -> StorageConfig:
        return StorageConfig(
            type=db_type or self.DB_TYPE,
            host=self.DB_HOST,
            port=self.DB_PORT,
            user=self.DB_USER,
            password=self.DB_PASSWORD,
            db_name=self.DB_NAME,
            file_path=self.DB_FILE_PATH,
            connect_timeout=self.DB_CONNECT_TIMEOUT_SECONDS,
        )

    def fallback_storage_config(self) -> Optional[StorageConfig]:
        if not self.DB_FALLBACK_TYPE:
            return None
        return self.storage_config(self.DB_FALLBACK_TYPE)


settings = Settings()
