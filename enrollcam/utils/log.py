"""日志配置"""

import logging

from typing import Union

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)


def get_logger(name):
    """获取日志记录器"""
    logger = logging.getLogger(name)
    return logger


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Reset the root log level (CLI entry point only)."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logging.getLogger().setLevel(level)
