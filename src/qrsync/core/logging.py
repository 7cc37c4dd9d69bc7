import logging
import logging.config

from qrsync.core.request_context import get_request_id, get_update_id

_ALLOWED_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

# httpx logs full request URLs at INFO, and Bot API URLs embed the bot token.
_QUIET_LOGGERS = ("httpx", "httpcore")


class CorrelationFilter(logging.Filter):
    """Inject request and Telegram update identifiers into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = get_request_id()
        update_id = get_update_id()
        record.request_id = request_id if request_id else "-"
        record.update_id = update_id if update_id is not None else "-"
        return True


def configure_logging(level: str) -> None:
    """Configure process-wide logging for the webhook service."""
    normalized_level = level.upper()
    if normalized_level not in _ALLOWED_LEVELS:
        allowed = ", ".join(sorted(_ALLOWED_LEVELS))
        raise ValueError(f"Invalid LOG_LEVEL '{level}'. Expected one of: {allowed}")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": (
                        "%(asctime)s %(levelname)s %(name)s "
                        "[request_id=%(request_id)s update_id=%(update_id)s]: %(message)s"
                    ),
                }
            },
            "filters": {
                "correlation": {"()": "qrsync.core.logging.CorrelationFilter"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                    "filters": ["correlation"],
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            "root": {
                "level": normalized_level,
                "handlers": ["console"],
            },
        }
    )
