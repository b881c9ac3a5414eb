import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TextIO

from prodbooster.util.dirs import DEFAULT_HOME

APP_LOGGER_NAME = "prodbooster"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LazyDirFileHandler(TimedRotatingFileHandler):
    """Daily rotating file handler that creates the log directory on first write."""

    def _open(self) -> TextIO:
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


def setup_mode(*, is_debug: bool) -> None:
    level = logging.DEBUG if is_debug else logging.INFO
    logging.getLogger(APP_LOGGER_NAME).setLevel(level)


def setup_logger(
    name: str,
    *,
    is_stream: bool = True,
    is_file: bool = True,
    log_dir: str = DEFAULT_HOME,
) -> logging.Logger:
    logger = logging.getLogger(name)
    # every module calls this at import time; attach handlers only once
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    # the root logger may print to stderr, which would scribble over curses
    logger.propagate = False

    if is_stream or not is_file:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.DEBUG)
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(stream_handler)

    if is_file:
        # nothing touches the disk until the first record is emitted
        time_rotate_file_handler = LazyDirFileHandler(
            (Path(log_dir) / f"{name.lower()}.log").as_posix(),
            when="MIDNIGHT",
            interval=1,
            backupCount=7,
            encoding="utf-8",
            delay=True,
        )
        time_rotate_file_handler.setLevel(logging.DEBUG)
        time_rotate_file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(time_rotate_file_handler)

    return logger
