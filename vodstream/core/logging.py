import logging
import os

# SDK loggers that are chatty at INFO (request lines, retries, credential lookups).
_NOISY_LOGGERS = ("stripe", "botocore", "boto3", "urllib3", "passlib")


def configure_logging() -> None:
    """Configure application logging; LOG_LEVEL sets the vodstream level."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if level != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
