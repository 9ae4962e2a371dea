"""structlog ベースのロガー設定"""

from __future__ import annotations

import logging
import sys

import structlog

from .project_config import DEFAULT_CLIENT_NAME, DEFAULT_CLIENT_VERSION

LOGGER_NAME = "k1s0_experiment"


def _render_processors(format: str) -> list[structlog.types.Processor]:
    if format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def _configure_stdlib_logger(level: int) -> None:
    # ルートロガーには触れず、ライブラリ配下のロガーだけを設定する
    std_logger = logging.getLogger(LOGGER_NAME)
    std_logger.setLevel(level)
    std_logger.propagate = False
    if not std_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        std_logger.addHandler(handler)


def new_logger(
    level: str = "INFO",
    format: str = "json",
    client_name: str = DEFAULT_CLIENT_NAME,
    client_version: str = DEFAULT_CLIENT_VERSION,
) -> structlog.stdlib.BoundLogger:
    """クライアント識別情報を束縛した structlog ロガーを返す。

    Args:
        level: ログレベル ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        format: 出力形式 ("json" or "text")
        client_name: 全ログに付与するクライアント名
        client_version: 全ログに付与するクライアントバージョン
    """
    _configure_stdlib_logger(getattr(logging, level.upper(), logging.INFO))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_render_processors(format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.stdlib.get_logger(LOGGER_NAME).bind(
        client_name=client_name, client_version=client_version
    )
