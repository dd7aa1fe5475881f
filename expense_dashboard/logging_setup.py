"""Logging configuration shared by the dashboard, scripts and exporters.

Modules log through ``logging.getLogger(__name__)``; this module only
decides where records go and how they look.  Two formats are supported:
plain text for local use and newline-delimited JSON for log shippers.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from . import config

# Extra attributes copied into JSON records when present.
EXTRA_FIELDS = ("export_kind", "export_filename", "rows", "expense_id", "error_type")


class JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Handler:
    """Install a single stream handler on the root logger.

    Calling this more than once replaces the previous handler, which
    matters under Streamlit where the script is re-executed on every
    interaction.
    """
    handler = logging.StreamHandler()
    if (fmt or config.LOG_FORMAT) == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    logging.basicConfig(handlers=[handler], level=(level or config.LOG_LEVEL), force=True)
    return handler
