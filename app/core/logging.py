# app/core/logging.py
import logging
import sys

from pythonjsonlogger import jsonlogger

from app.core.config import Settings
from app.core.redaction import mask_email, mask_phone

# extra= keys that may carry client contact data or the tracking capability
_MASKERS = {
    "client_email": mask_email,
    "client_phone": mask_phone,
    "email": mask_email,
    "phone": mask_phone,
    "tracking_secret": lambda _v: "REDACTED",
    "pin": lambda _v: "REDACTED",
}


class ContactRedactionFilter(logging.Filter):
    """
    Last line of defence: whatever a call site passed in `extra`, contact
    fields leave the process masked.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, mask in _MASKERS.items():
            value = record.__dict__.get(key)
            if isinstance(value, str) and "***" not in value and "REDACTED" not in value:
                record.__dict__[key] = mask(value)
        return True


def configure_logging(settings: Settings) -> None:
    """
    One JSON line per record on stdout, for the API process, the cron
    sweep and the seed script alike.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
            static_fields={"app": settings.app_name, "env": settings.environment},
        )
    )
    handler.addFilter(ContactRedactionFilter())
    root.addHandler(handler)

    for name in ("uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).setLevel(level)
    # SQL echo would print client rows verbatim
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
