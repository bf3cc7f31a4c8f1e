import sys
from pathlib import Path

import loguru

DEFAULT_LOG_FILE = Path.home() / ".git-sense" / "git-sense.log"

CONSOLE_FORMAT = "<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {process} | {name}:{function}:{line} - {message}"


def setup_logger(log_level="WARNING", log_file=DEFAULT_LOG_FILE):
    """
    (Re)configures the shared loguru logger.

    Console output stays quiet unless `log_level` is lowered (``-v`` sets DEBUG);
    the file under ~/.git-sense always records DEBUG. Tracebacks in the file
    never include local variable values, since those may hold tokens.
    """
    loguru.logger.remove()

    loguru.logger.add(sys.stderr, level=log_level, format=CONSOLE_FORMAT, colorize=True)
    loguru.logger.add(
        str(log_file),
        level="DEBUG",
        format=FILE_FORMAT,
        rotation="10 MB",
        retention="7 days",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )

    return loguru.logger


logger = setup_logger()
