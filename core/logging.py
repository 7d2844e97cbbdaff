"""
Structured JSON logging for hosts embedding the engine.

The engine only emits records through module loggers; a host process opts in
to JSON output with setup_logging(). Re-running setup_logging replaces the
handler it installed earlier and leaves any other handlers on the root
logger alone.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "asset-projections"
LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class ProjectionJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping each record with its creation time, level and service"""

    def __init__(self, *args: Any, service: str = SERVICE_NAME, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service


class _ProjectionHandler(logging.StreamHandler):
    """Marker type so setup_logging can find the handler it installed."""


def setup_logging(
    level: str = "INFO",
    *,
    service: str = SERVICE_NAME,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """
    Send root-logger output to `stream` (stdout by default) as JSON lines.

    Returns the installed handler.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for existing in [h for h in root.handlers if isinstance(h, _ProjectionHandler)]:
        root.removeHandler(existing)

    handler = _ProjectionHandler(stream or sys.stdout)
    handler.setFormatter(ProjectionJsonFormatter(LOG_FORMAT, service=service))
    root.addHandler(handler)
    return handler
