from __future__ import annotations
import json
import logging
from logging import LogRecord
import os

_EXTRA_KEYS = (
    "event",
    "rpm",
    "rpd",
    "wait_sec",
    "retry_after",
    "user_id",
    "skill_id",
    "recommendation_id",
    "model",
    "users",
    "generated",
    "failed",
    "elapsed",
)

# chatty at INFO; the governor and the jobs log what matters
_QUIET_LOGGERS = ("apscheduler.executors", "urllib3", "google.auth")


class JSONFormatter(logging.Formatter):
    def format(self, record: LogRecord) -> str:
        base = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        # several callers may queue on the governor at once
        if record.threadName != "MainThread":
            base["thread"] = record.threadName
        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                base[key] = getattr(record, key)
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


def setup_logging(level: str | None = None) -> None:
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    h = logging.StreamHandler()
    h.setLevel(level)
    h.setFormatter(JSONFormatter())
    root.addHandler(h)

    if root.level > logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
