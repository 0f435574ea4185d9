import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from structlog.types import Processor

SERVICE_NAME = "quiz-proctor"


def _service_tagger(app_env: str) -> Processor:
    def add_service_fields(
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("env", app_env)
        return event_dict

    return add_service_fields


def configure_logging(log_level: str = "INFO", *, app_env: str = "dev") -> None:
    """JSON lines on stdout; every event carries its ``quizproctor.*`` logger name."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _service_tagger(app_env),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
