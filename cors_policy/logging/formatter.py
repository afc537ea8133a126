"""JSON log formatter emitting ECS aligned field names."""

from __future__ import annotations

import logging
import os
import traceback
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import jsonlogger

SERVICE_NAME = os.getenv("SERVICE_NAME", "cors-policy")

FIELD_MAP = {
    "http_request_method": "http.request.method",
    "url_path": "url.path",
    "http_status_code": "http.response.status_code",
    "event_dataset": "event.dataset",
    "event_action": "event.action",
    "error_stack": "error.stack",
    "error_type": "error.type",
    "error_message": "error.message",
    "cors_origin": "cors.origin",
    "cors_reason": "cors.reason",
    "cors_request_method": "cors.request.method",
    "cors_request_headers": "cors.request.headers",
}


class ECSJsonFormatter(jsonlogger.JsonFormatter):
    """Render log records as ECS flavoured JSON documents."""

    def __init__(self, *args: Any, service_name: str = SERVICE_NAME, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(
        self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault(
            "@timestamp",
            datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        )
        log_record.setdefault("log.level", record.levelname)
        log_record.setdefault("log.logger", record.name)
        log_record.setdefault("message", record.getMessage())
        log_record["service.name"] = self.service_name

        for attr, ecs_name in FIELD_MAP.items():
            value = log_record.pop(attr, getattr(record, attr, None))
            if value is not None:
                log_record[ecs_name] = value

        log_record.setdefault("event.dataset", f"{self.service_name}.app")

        if record.exc_info and "error.stack" not in log_record:
            log_record["error.stack"] = "".join(
                traceback.format_exception(*record.exc_info)
            ).strip()

        for key in [key for key, value in log_record.items() if value is None]:
            log_record.pop(key)
