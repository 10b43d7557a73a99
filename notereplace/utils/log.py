import sys

from loguru import logger

from ..model.setting import Settings


def configure_logging(settings: Settings) -> None:
    """按配置重新设置 loguru 输出"""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", encoding="utf-8")
