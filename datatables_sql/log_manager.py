# datatables_sql/log_manager.py
import os
import sys
from typing import Optional

from loguru import logger

# guards against reconfiguring the same process (e.g. reload workers)
_CONFIGURED_PID: Optional[int] = None

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str = "INFO", serialize: bool = False, force: bool = False) -> None:
    global _CONFIGURED_PID

    logger.enable("datatables_sql")
    pid = os.getpid()
    if _CONFIGURED_PID == pid and not force:
        return

    logger.remove()
    logger.configure(extra={"component": "-"})
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=LOG_FORMAT,
        serialize=serialize,
        backtrace=False,
        diagnose=False,
    )
    _CONFIGURED_PID = pid


def get_logger(name: str):
    return logger.bind(component=name)
