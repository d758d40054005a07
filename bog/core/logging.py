from __future__ import annotations
import logging, time, functools, os, json

LOG_LEVEL = os.getenv("BOG_LOG_LEVEL", "WARNING").upper()


def _env_json_lines() -> bool:
    return os.getenv("BOG_LOG_JSON", "0") == "1"


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover simple json
        payload = {
            "ts": int(record.created * 1000),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        return json.dumps(payload, ensure_ascii=False)


def _make_formatter(json_lines: bool) -> logging.Formatter:
    if json_lines:
        return _JsonFormatter()
    return logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')


# stderr; stdout belongs to command output
_handler = logging.StreamHandler()
_handler.setFormatter(_make_formatter(_env_json_lines()))

logger = logging.getLogger("bog")
if not logger.handlers:
    logger.addHandler(_handler)
logger.setLevel(LOG_LEVEL)


def configure(level: str | int | None = None, json_lines: bool | None = None) -> None:
    """Adjust the shared logger after import (CLI -v / --log-json).

    Arguments left as None are taken from BOG_LOG_LEVEL and BOG_LOG_JSON
    again, so settings loaded from a .env file after import still apply.
    """
    if level is None:
        level = os.getenv("BOG_LOG_LEVEL", "WARNING")
    if json_lines is None:
        json_lines = _env_json_lines()
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    _handler.setFormatter(_make_formatter(json_lines))


def timed(name: str | None = None):
    def deco(func):
        label = name or func.__name__
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                dur = (time.perf_counter() - start) * 1000
                logger.debug("timing ms=%.1f step=%s", dur, label)
        return wrapper
    return deco
