from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
import re
from logging import Logger


debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
loglevel = logging.INFO if not debug_mode else logging.DEBUG

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}
_LEVEL_PREFIX: dict[int, str] = {
    logging.ERROR: "⛔ ",
    logging.CRITICAL: "⛔ ",
    logging.WARNING: "⚠️ ",
}

# Gemini keys and bearer tokens that end up in request logs
_SECRET_PATTERNS = [
    re.compile(r"AIza[0-9A-Za-z_\-]{35}"),
    re.compile(r"(?i)(bearer\s+)[0-9A-Za-z._\-]{8,}"),
]


def mask_secret(secret: str | None, visible: int = 4) -> str:
    """Mask a credential for log output, keeping only the last characters.

    Args:
        secret (str | None): The credential to mask.
        visible (int): Number of trailing characters to keep.

    Returns:
        str: "***abcd" style string, or "NOT SET" if the secret is empty.
    """
    if not secret:
        return "NOT SET"
    return "***" + secret[-visible:]


class SecretMaskingFilter(logging.Filter):
    """Masks embedding API keys and bearer tokens before a record reaches any handler."""

    def filter(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # broken format strings from third party loggers are dropped
            return False
        masked = message
        for pattern in _SECRET_PATTERNS:
            masked = pattern.sub(lambda m: (m.group(1) if m.groups() else "") + mask_secret(m.group(0)), masked)
        if masked != message:
            record.msg = masked
            record.args = ()
        return True


class DeepenFormatter(logging.Formatter):
    """Formatter with timestamps in a configurable timezone, a level marker and optional color.

    Colors are applied only when ``colored`` is set and the record carries a
    ``color`` attribute, which :class:`ColorLogger` sets from its ``color=`` keyword.
    """

    def __init__(self, tz_name, *args, colored: bool = False, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)
        self.colored = colored

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        # work on a copy so every handler sees the untouched record
        record = logging.makeLogRecord(record.__dict__)
        record.msg = _LEVEL_PREFIX.get(record.levelno, "") + record.getMessage()
        record.args = ()
        line = super().format(record)

        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "", "") if self.colored else ""
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger:
    """Thin wrapper around :class:`logging.Logger` that adds an optional
    ``color=`` keyword argument to all log methods.

    Usage::

        logger.info("plain message")
        logger.info("highlighted", color="cyan")

    Colors are only applied in the console handler; the file handler always
    writes plain text.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _emit(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        # stacklevel points the record at the caller, not this wrapper
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.ERROR, msg, args, color, kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self._emit(logging.CRITICAL, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._emit(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        """Delegate all other Logger attributes (e.g. setLevel, handlers) transparently."""
        return getattr(self._logger, name)


def setup_logging(log_to_file: bool | None = None) -> ColorLogger:
    """Configure root logging and return the application logger.

    The file handler is only attached when ROOT_DIR is set (or log_to_file is
    forced), so the service also runs from read-only containers.

    Args:
        log_to_file (bool | None): Force the file handler on or off. None means
                                   "only if ROOT_DIR is set".

    Returns:
        ColorLogger: The wrapped "deepen" logger.
    """
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    root_dir = os.getenv("ROOT_DIR")
    if log_to_file is None:
        log_to_file = bool(root_dir)

    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "colored",
            "filters": ["mask_secrets"],
            "level": loglevel,
            "stream": "ext://sys.stdout",
        },
    }
    if log_to_file:
        log_dir = os.path.join(root_dir or os.getcwd(), "logs")
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "plain",
            "filters": ["mask_secrets"],
            "level": loglevel,
            "filename": os.path.join(log_dir, "app.log"),
            "encoding": "utf-8",
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "mask_secrets": {"()": SecretMaskingFilter},
        },
        "formatters": {
            "plain": {
                "()": DeepenFormatter,
                "format": "%(asctime)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "tz_name": tz_name,
            },
            "colored": {
                "()": DeepenFormatter,
                "format": "%(asctime)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "tz_name": tz_name,
                "colored": True,
            },
        },
        "handlers": handlers,
        "root": {
            "handlers": list(handlers.keys()),
            "level": loglevel,
        },
    })

    # request logs carry full URLs, keep them out unless debugging
    for noisy in ("httpx", "httpcore", "pymongo"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger("deepen"))
