"""
Logging configuration for the booking core.
JSON lines in staging/production, plain lines elsewhere.
"""
import logging
import sys
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from core.config import Settings, get_settings


# Identifiers services pass through `extra=`; grouped under "booking" in JSON output
BOOKING_KEYS = ("restaurant_id", "reservation_id", "review_id", "user_id", "actor_id")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping app/environment and grouping booking identifiers."""

    def __init__(self, *args: Any, app_name: str = "", environment: str = "", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.app_name = app_name
        self.environment = environment

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = self.formatTime(record, self.datefmt)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['app_name'] = self.app_name
        log_record['environment'] = self.environment

        booking = {key: log_record.pop(key) for key in BOOKING_KEYS if key in log_record}
        if booking:
            log_record['booking'] = booking


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Install a single stdout handler on the root logger."""
    settings = settings or get_settings()
    use_json = settings.app_env in ["production", "staging"]

    if use_json:
        formatter: logging.Formatter = CustomJsonFormatter(
            fmt='%(timestamp)s %(level)s %(name)s %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            app_name=settings.app_name,
            environment=settings.app_env,
        )
    else:
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )
