"""Logging configuration with structlog integration.

提供两种日志记录方式：
1. loguru: 用于一般调试日志
2. structlog: 用于关键业务事件的结构化日志
"""

import sys
from typing import Any

import structlog
from loguru import logger

from src.core.config import settings


def setup_logging() -> None:
    """Configure application logging with structlog and loguru."""
    # 配置 structlog
    _configure_structlog()

    # 配置 loguru
    _configure_loguru()

    logger.info(f"Logging configured with level: {settings.LOG_LEVEL}")


def _configure_structlog() -> None:
    """配置 structlog 处理器链。"""
    # 根据环境选择渲染器
    if settings.ENVIRONMENT == "local":
        # 本地开发使用人类可读格式
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        # 生产环境使用 JSON 格式
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _get_log_level_number(settings.LOG_LEVEL)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _configure_loguru() -> None:
    """配置 loguru。"""
    # Remove default handler
    logger.remove()

    # Add console handler with appropriate level
    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    # Add file handler for production
    if settings.ENVIRONMENT != "local":
        logger.add(
            "logs/parkwait_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="30 days",
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )


def _get_log_level_number(level: str) -> int:
    """将日志级别字符串转换为数字。"""
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# ============================================================================
# 业务事件日志记录器
# ============================================================================


def get_business_logger() -> structlog.BoundLogger:
    """获取业务事件日志记录器。

    Usage:
        from src.core.infrastructure.logging import get_business_logger

        log = get_business_logger()
        log.info("refresh_scheduled", interval_sec=300)
    """
    return structlog.get_logger("business")


class BusinessEvents:
    """业务事件日志助手类。

    提供统一的业务事件日志记录接口，确保事件格式一致。

    Usage:
        from src.core.infrastructure.logging import BusinessEvents

        BusinessEvents.catalog_loaded(loaded_from="remote", entry_count=12)
    """

    _log = structlog.get_logger("business.events")

    @classmethod
    def catalog_loaded(
        cls,
        loaded_from: str,
        entry_count: int,
        **extra: Any,
    ) -> None:
        """记录 catalog 加载事件。"""
        cls._log.info(
            "catalog_loaded",
            event_type="catalog",
            loaded_from=loaded_from,
            entry_count=entry_count,
            **extra,
        )

    @classmethod
    def catalog_fetch_failed(
        cls,
        error: str,
        error_type: str,
        **extra: Any,
    ) -> None:
        """记录 catalog 远程获取失败事件。"""
        cls._log.warning(
            "catalog_fetch_failed",
            event_type="catalog_error",
            error=error,
            error_type=error_type,
            **extra,
        )

    @classmethod
    def status_fetch_failed(
        cls,
        attraction_id: str,
        error: str,
        error_type: str,
        **extra: Any,
    ) -> None:
        """记录单个 attraction 状态获取失败事件。"""
        cls._log.warning(
            "status_fetch_failed",
            event_type="status_error",
            attraction_id=attraction_id,
            error=error,
            error_type=error_type,
            **extra,
        )

    @classmethod
    def refresh_completed(
        cls,
        total: int,
        succeeded: int,
        failed: int,
        healthy: bool,
        duration_ms: int,
        **extra: Any,
    ) -> None:
        """记录刷新周期完成事件。"""
        level = "info" if healthy else "warning"
        getattr(cls._log, level)(
            "refresh_completed",
            event_type="refresh",
            total=total,
            succeeded=succeeded,
            failed=failed,
            healthy=healthy,
            duration_ms=duration_ms,
            **extra,
        )

    @classmethod
    def refresh_skipped(
        cls,
        reason: str,
        **extra: Any,
    ) -> None:
        """记录刷新被跳过事件（已有刷新在进行中）。"""
        cls._log.info(
            "refresh_skipped",
            event_type="refresh",
            reason=reason,
            **extra,
        )

    @classmethod
    def favorite_toggled(
        cls,
        attraction_id: str,
        is_favorite: bool,
        **extra: Any,
    ) -> None:
        """记录收藏切换事件。"""
        cls._log.info(
            "favorite_toggled",
            event_type="favorite",
            attraction_id=attraction_id,
            is_favorite=is_favorite,
            **extra,
        )

    @classmethod
    def feature_degraded(
        cls,
        feature: str,
        reason: str,
        **extra: Any,
    ) -> None:
        """记录功能降级事件。"""
        cls._log.warning(
            "feature_degraded",
            event_type="degradation",
            feature=feature,
            reason=reason,
            **extra,
        )
