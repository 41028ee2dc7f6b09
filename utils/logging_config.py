"""
Centralized Logging Configuration

Sets up the root logger for the shop API:
- Level from LOG_LEVEL, daily rotation kept for LOG_RETENTION_DAYS
- Uvicorn loggers routed through the same handlers
- Masking of credentials and customer PII (LOG_MASK_SECRETS)

Order numbers (ORD-<ms>-<RANDOM>) and PayPal ids must stay readable in
the log, they are needed to reconcile payments.
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config

LOG_FORMAT = '%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Loggers that are too chatty at INFO
QUIET_LOGGERS = ["sqlalchemy.engine", "aiosqlite", "aiohttp.access", "httpx"]


class SecretMaskingFilter(logging.Filter):
    """
    Replaces credentials and customer data in log records with [REDACTED_*].

    Masks:
    - PayPal client secret, OAuth bearer/basic credentials, e-mail API keys
    - The admin API token (header or key/value form)
    - Customer e-mail addresses and phone numbers
    - Street, house number and postal code of address snapshots
    - IBANs (bank transfer notes in customer messages)
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # Credentials
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{16,})', re.IGNORECASE),
         r'\1[REDACTED_API_KEY]'),
        (re.compile(r'(client[_-]?secret["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{16,})', re.IGNORECASE),
         r'\1[REDACTED_CLIENT_SECRET]'),
        (re.compile(r'((?:access[_-]?)?token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-.:]{16,})', re.IGNORECASE),
         r'\1[REDACTED_TOKEN]'),
        (re.compile(r'(X-Admin-Token["\']?\s*[:=]\s*["\']?)([^\s"\',}]+)', re.IGNORECASE),
         r'\1[REDACTED_TOKEN]'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-.]+)'), r'\1[REDACTED_BEARER_TOKEN]'),
        (re.compile(r'(Basic\s+)([A-Za-z0-9+/=]{16,})'), r'\1[REDACTED_BASIC_AUTH]'),
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]'),

        # Address snapshot fields (JSON or key=value)
        (re.compile(r'("?(?:street|house_number|postal_code|phone)"?\s*[:=]\s*)("[^"]*"|[^\s,}]+)', re.IGNORECASE),
         r'\1"[REDACTED_ADDRESS]"'),

        # IBAN
        (re.compile(r'\b[A-Z]{2}\d{2}(?:\s?[A-Z0-9]{4}){3,7}(?:\s?[A-Z0-9]{1,3})?\b'), '[REDACTED_IBAN]'),

        # E-mail addresses
        (re.compile(r'\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b'), '[REDACTED_EMAIL]'),

        # Phone numbers in international form (+49 30 1234567, +49-151-12345678)
        (re.compile(r'\+\d{2,3}[\s\-/]?\(?\d{2,5}\)?[\s\-/]?\d{3,10}'), '[REDACTED_PHONE]'),
    ]

    @classmethod
    def mask(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        # Format first so secrets passed as %-args are masked too
        record.msg = self.mask(record.getMessage())
        record.args = None
        return True


def _build_handlers(log_dir: Path, log_level: int, retention_days: int, mask_secrets: bool) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / "shop.log",
        when="midnight",
        interval=1,
        backupCount=retention_days,
        encoding="utf-8"
    )
    console_handler = logging.StreamHandler()

    handlers = [file_handler, console_handler]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        if mask_secrets:
            handler.addFilter(SecretMaskingFilter())
    return handlers


def setup_logging(log_dir: str | Path = "logs"):
    """
    Initialize logging. Call once at startup (run.py), before the app is imported.

    Args:
        log_dir: Directory for shop.log and its rotated copies
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(exist_ok=True)

    log_level_str = getattr(config, "LOG_LEVEL", "INFO")
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    retention_days = getattr(config, "LOG_RETENTION_DAYS", 7)
    mask_secrets = getattr(config, "LOG_MASK_SECRETS", True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in _build_handlers(log_dir, log_level, retention_days, mask_secrets):
        root_logger.addHandler(handler)

    # uvicorn runs with log_config=None, let its records reach our handlers
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging initialized: Level={log_level_str}, Retention={retention_days} days, "
                 f"Masking={'ENABLED' if mask_secrets else 'DISABLED'}")
