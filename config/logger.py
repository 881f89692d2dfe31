import os
import sys

from loguru import logger


def configure_logger() -> None:
    """
    loguru 기본 핸들러를 교체해 stdout 한 곳으로 로그를 모읍니다.
    LOG_LEVEL 환경변수로 레벨을 조정합니다 (기본 INFO).
    """
    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        colorize=os.getenv("LOG_COLORIZE", "true").lower() == "true",
    )
