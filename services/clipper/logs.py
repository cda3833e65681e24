from __future__ import annotations

import json
import logging
import os
from typing import Any

LOGGER_NAME = "clipper"


class JsonEventAdapter(logging.LoggerAdapter):
    """Writes one JSON object per line with the bound fields (``request_id``) on each."""

    def event(self, level: int, message: str, **fields: Any) -> None:
        payload = {"message": message, **self.extra, **fields}
        self.logger.log(level, json.dumps(payload, default=str))


def bind(logger: logging.Logger, **fields: Any) -> JsonEventAdapter:
    return JsonEventAdapter(logger, fields)


def configure_logging(level: str | None = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers = [handler]
    return logger
