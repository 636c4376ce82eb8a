from __future__ import annotations

import logging
import sys
from typing import Any

from config.settings import get_settings


_INITIALIZED: bool = False

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(message)s "
    "step=%(step)s status=%(status)s page_id=%(page_id)s "
    "duration_ms=%(duration_ms)s error=%(error)s run_id=%(run_id)s"
)


class SafeExtraFormatter(logging.Formatter):
    """Formatter that tolerates missing extra fields by injecting defaults."""

    DEFAULTS: dict[str, Any] = {
        "step": "-",
        "status": "-",
        "page_id": "-",
        "duration_ms": "-",
        "error": "-",
        "run_id": "-",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        for key, value in self.DEFAULTS.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return super().format(record)


def init_logging(level: str | None = None) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Progress lines go to stdout next to the run summary
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(SafeExtraFormatter(fmt=LOG_FORMAT))
        root_logger.addHandler(handler)

    _INITIALIZED = True


def log_step(step: str, status: str, duration_ms: int, run_id: str = "-", error: str | None = None) -> None:
    """One line per finished pipeline step; failures log at ERROR."""
    extra = {"step": step, "status": status, "duration_ms": duration_ms, "run_id": run_id}
    if error:
        extra["error"] = error
        logging.error(f"Step {step} failed", extra=extra)
    else:
        logging.info(f"Step {step} finished", extra=extra)
