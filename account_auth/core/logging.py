import logging
import os
from typing import Optional


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging defaults for the service. Falls back to ``LOG_LEVEL``."""
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Keep SMTP transport chatter out of INFO logs.
    logging.getLogger("smtplib").setLevel(logging.WARNING)
