import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from esquent.settings import settings as api_settings

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

# Keyword arguments understood by logging.Logger.log; everything else is context
_LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel", "extra")

_configured = False


def setup_global_logging(level: str = "INFO") -> None:
    """Configure the root logger once in a standardized format.

    Args:
        level: Log level name (e.g., "DEBUG", "INFO")
    """
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=_LEVELS.get(level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> "Logger":
    """Return a module/class logger. Ensures global logging is configured.

    Args:
        name: Logger name, usually __name__
    """
    return Logger(name or __name__)


def render_context(msg: str, context: Dict[str, Any]) -> str:
    """Append `key=value` pairs to a log message: "Search index=posts size=10"."""
    if not context:
        return msg
    pairs = " ".join(f"{key.rstrip('_')}={value}" for key, value in context.items())
    return f"{msg} {pairs}"


def _split_kwargs(kwargs: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    options = {k: kwargs.pop(k) for k in _LOGGING_KWARGS if k in kwargs}
    return options, kwargs


class Logger:
    """Thin wrapper over standard logging for search and sync calls.

    - Configures global logging from `settings.LOG_LEVEL` on first use.
    - Keyword arguments other than the ones `logging` understands are
      rendered as `key=value` context after the message, so calls read
      `logger.message("Search", index=index, size=size)`.
    - `.message()` logs at whatever level LOG_LEVEL names.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        if not _configured:
            setup_global_logging(api_settings.LOG_LEVEL)
        self._logger = logging.getLogger(name or __name__)

    @property
    def name(self) -> str:
        return self._logger.name

    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        options, context = _split_kwargs(kwargs)
        if args:
            # format here so a "%" inside context values is never interpolated
            if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
                args = args[0]
            msg = msg % args
        self._logger.log(level, render_context(msg, context), **options)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.CRITICAL, msg, *args, **kwargs)

    def message(self, msg: str, *args: Any, **kwargs: Any) -> None:
        level = (api_settings.LOG_LEVEL or "").upper()
        # unset means INFO
        self.log(_LEVELS.get(level, logging.INFO), msg, *args, **kwargs)
