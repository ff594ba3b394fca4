from __future__ import annotations

import logging
import sys

from cosmic_notes.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# attributes every LogRecord carries; anything else arrived through `extra=`
_RECORD_ATTRS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Appends `extra={...}` context (note_id, tag_name, ...) as sorted key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if not context:
            return line
        return line + " | " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))


def setup_logging() -> None:
    """Configure the root logger once; later calls keep the existing handlers."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(LOG_FORMAT))
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        handlers=[handler],
    )

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)
    # supabase's httpx transport logs every PostgREST request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
