"""structlog ベースのロガー設定"""

from __future__ import annotations

import logging
import sys

import structlog


def new_logger(level: str = "INFO", format: str = "json") -> structlog.stdlib.BoundLogger:
    """structlog を設定し、tierflag 用のロガーを返す。

    ライブラリ内の各モジュールは structlog.stdlib.get_logger(__name__) で取得するため、
    ここでの設定がそのまま適用される。出力元モジュール（tierflag.evaluator、
    tierflag.environment など）を区別できるよう add_logger_name で "logger" キーを付与する。

    Args:
        level: ログレベル ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        format: 出力形式 ("json" or "text")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if format == "json":
        processors += [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.stdlib.get_logger("tierflag")
