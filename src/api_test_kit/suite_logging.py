"""
Suite logging for API test runs
Logs to a daily-rolling file and to the test runner's output
"""
import logging
import sys
import threading
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import List, Optional, TextIO, Union

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "log.txt"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_level(level: Union[int, str]) -> int:
    """Map a level name or number to a logging level, defaulting to ERROR."""
    if isinstance(level, int):
        return level
    return _LEVELS.get(str(level).upper(), logging.ERROR)


class RunnerOutputHandler(logging.StreamHandler):
    """Stream handler bound to sys.stdout at emit time.

    pytest swaps sys.stdout for every test it captures; resolving the
    stream lazily keeps records attached to the test that produced them.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        logging.Handler.__init__(self)
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    @stream.setter
    def stream(self, value: Optional[TextIO]) -> None:
        self._stream = value


class SuiteLogger:
    """Process-wide dual sink shared by every fixture of a run.

    Each initialize() call is one acquisition and each flush_and_close()
    releases one; handlers are created on the first acquisition and closed
    with the last, so fixtures running side by side can share the sink.
    """

    def __init__(self, name: str = "api_test_kit.suite"):
        self._logger = logging.getLogger(name)
        self._logger.propagate = False
        self._lock = threading.RLock()
        self._handlers: List[logging.Handler] = []
        self._acquisitions = 0
        self.log_file: Optional[Path] = None

    @property
    def initialized(self) -> bool:
        return bool(self._handlers)

    def initialize(self, log_dir: Union[str, Path], minimum_level: Union[int, str] = "ERROR",
                   stream: Optional[TextIO] = None) -> None:
        """Attach the file and output handlers (once) and count an acquisition."""
        with self._lock:
            if self._handlers:
                self._acquisitions += 1
                return

            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            self.log_file = log_path / LOG_FILE_NAME

            level = resolve_level(minimum_level)
            formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

            file_handler = TimedRotatingFileHandler(
                self.log_file, when="midnight", encoding="utf-8", delay=True
            )
            output_handler = RunnerOutputHandler(stream)

            for handler in (file_handler, output_handler):
                handler.setLevel(level)
                handler.setFormatter(formatter)
                self._logger.addHandler(handler)
                self._handlers.append(handler)

            self._logger.setLevel(level)
            # count only once the handlers are attached
            self._acquisitions += 1

    def log(self, level: Union[int, str], message: str, error: Optional[BaseException] = None) -> None:
        """Write one record to both sinks. Handler errors go to logging's
        own error reporting, never to the caller."""
        exc_info = None
        if error is not None:
            exc_info = (type(error), error, error.__traceback__)
        try:
            self._logger.log(resolve_level(level), message, exc_info=exc_info)
        except Exception as e:
            logger.warning(f"Suite log record dropped: {e}")

    def debug(self, message: str) -> None:
        self.log(logging.DEBUG, message)

    def info(self, message: str) -> None:
        self.log(logging.INFO, message)

    def warning(self, message: str, error: Optional[BaseException] = None) -> None:
        self.log(logging.WARNING, message, error)

    def error(self, message: str, error: Optional[BaseException] = None) -> None:
        self.log(logging.ERROR, message, error)

    def flush(self) -> None:
        with self._lock:
            for handler in self._handlers:
                handler.flush()

    def flush_and_close(self) -> None:
        """Flush buffered records and release one acquisition."""
        with self._lock:
            self.flush()
            if self._acquisitions > 0:
                self._acquisitions -= 1
            if self._acquisitions == 0:
                self._close_handlers()

    def _close_handlers(self) -> None:
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers = []
