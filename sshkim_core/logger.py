import logging, json, sys, time, os

from sshkim_core.constants import ENV_LOG_LEVEL
from sshkim_core.utils import canonical_json


def _default_level():
    name = os.getenv(ENV_LOG_LEVEL, "INFO").upper()
    return getattr(logging, name, logging.INFO)


def get_logger(name="sshkim", level=None, to_file=None):
    """Unified structured logger for all SSH Kim components."""
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else _default_level())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt=json.dumps({
                "ts": "%(asctime)s",
                "level": "%(levelname)s",
                "name": "%(name)s",
                "msg": "%(message)s"
            }),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime  # Use UTC timestamps
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            # Ensure the directory exists before writing
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


_events = get_logger("sshkim.events")


def log_event(event: str, payload: dict | None = None) -> None:
    """Default observability hook: one log line per keystore event.

    Events are named ``<operation>.start``, ``<operation>.ok`` and
    ``<operation>.error``. Payloads carry ids, counts and paths, never key
    material.
    """
    level = logging.ERROR if event.endswith(".error") else logging.DEBUG if event.endswith(".start") else logging.INFO
    _events.log(level, "%s %s", event, canonical_json(payload or {}))
