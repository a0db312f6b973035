"""
Secure logging utilities.

Provides logging filters and formatters that automatically mask
plaintext secrets, ciphertext and key material before a record is written.
"""

import logging
import re
from typing import Any, Optional

from ..core.config import LoggingSettings, get_settings


# Patterns for sensitive data that should be masked
SENSITIVE_PATTERNS = [
    # Encrypted property values
    (r'(enc\{)[^}]*(\})', r'\1****\2'),

    # Passwords and passphrases
    (r'(password["\']?\s*[:=]\s*["\']?)[^\s"\',]+', r'\1****'),
    (r'(passphrase["\']?\s*[:=]\s*["\']?)[^\s"\',]+', r'\1****'),
    (r'(passwd["\']?\s*[:=]\s*["\']?)[^\s"\',]+', r'\1****'),
    (r'(secret["\']?\s*[:=]\s*["\']?)[^\s"\',]+', r'\1****'),

    # API keys and tokens
    (r'(api[_-]?key["\']?\s*[:=]\s*["\']?)[A-Za-z0-9_\-]+', r'\1****'),
    (r'(token["\']?\s*[:=]\s*["\']?)[A-Za-z0-9_\-\.]+', r'\1****'),

    # Connection strings with passwords
    (r'(://[^:/\s]+:)[^@\s]+(@)', r'\1****\2'),

    # Raw bytes reprs (derived key material)
    (r"b'(?:\\x[0-9a-f]{2}|[^'\\]){16,}'", r"b'****'"),

    # Private keys
    (r'(-----BEGIN[^-]+PRIVATE KEY-----)[^-]+(-----END)', r'\1\n****\n\2'),
]

# Compile patterns for efficiency
COMPILED_PATTERNS = [(re.compile(pattern, re.IGNORECASE), repl) for pattern, repl in SENSITIVE_PATTERNS]

SENSITIVE_KEYS = {
    'password', 'passphrase', 'passwd', 'secret', 'token', 'key',
    'api_key', 'apikey', 'private_key', 'client_secret', 'credential',
}


def mask_sensitive_string(text: str) -> str:
    """
    Mask sensitive data in a string.

    Args:
        text: Text to sanitize

    Returns:
        Text with sensitive data masked
    """
    if not text:
        return text

    result = text
    for pattern, replacement in COMPILED_PATTERNS:
        result = pattern.sub(replacement, result)

    return result


def mask_dict_values(data: dict[str, Any], depth: int = 0, max_depth: int = 10) -> dict[str, Any]:
    """
    Recursively mask sensitive values in a dictionary.

    Args:
        data: Dictionary to sanitize
        depth: Current recursion depth
        max_depth: Maximum recursion depth

    Returns:
        Sanitized dictionary
    """
    if depth >= max_depth:
        return data

    result = {}
    for key, value in data.items():
        key_lower = str(key).lower()

        if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
            result[key] = "****"
        elif isinstance(value, dict):
            result[key] = mask_dict_values(value, depth + 1, max_depth)
        elif isinstance(value, list):
            result[key] = [
                mask_dict_values(v, depth + 1, max_depth) if isinstance(v, dict)
                else mask_sensitive_string(v) if isinstance(v, str)
                else v
                for v in value
            ]
        elif isinstance(value, str):
            result[key] = mask_sensitive_string(value)
        elif isinstance(value, (bytes, bytearray)):
            result[key] = "****"
        else:
            result[key] = value

    return result


class SensitiveDataFilter(logging.Filter):
    """
    Logging filter that masks sensitive data in log messages.

    Attached to every flowprint logger so that a careless format argument
    cannot put a plaintext secret or key bytes into a log file.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter and modify the log record to mask sensitive data."""
        if isinstance(record.msg, str):
            record.msg = mask_sensitive_string(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = mask_dict_values(record.args)
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    mask_sensitive_string(arg) if isinstance(arg, str)
                    else mask_dict_values(arg) if isinstance(arg, dict)
                    else "****" if isinstance(arg, (bytes, bytearray))
                    else arg
                    for arg in record.args
                )

        return True


class SecureFormatter(logging.Formatter):
    """
    Logging formatter that masks sensitive data.

    Extends the standard formatter to sanitize output.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with sensitive data masked."""
        formatted = super().format(record)
        return mask_sensitive_string(formatted)


def setup_secure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    log_file: str | None = None,
) -> logging.Logger:
    """
    Set up secure logging for the package.

    Args:
        level: Logging level
        format_string: Custom format string
        log_file: Optional file to write logs to

    Returns:
        Configured logger
    """
    logger = logging.getLogger("flowprint")
    logger.setLevel(level)

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = SecureFormatter(format_string)
    sensitive_filter = SensitiveDataFilter()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(sensitive_filter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(sensitive_filter)
        logger.addHandler(file_handler)

    return logger


def get_secure_logger(name: str) -> logging.Logger:
    """
    Get a logger with secure filtering enabled.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger with sensitive data filter
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, SensitiveDataFilter) for f in logger.filters):
        logger.addFilter(SensitiveDataFilter())

    return logger


def configure_logging(logging_settings: Optional[LoggingSettings] = None) -> logging.Logger:
    """
    Set up secure logging from the logging settings group.

    Args:
        logging_settings: Logging settings (loaded settings if omitted)

    Returns:
        Configured package logger
    """
    if logging_settings is None:
        logging_settings = get_settings().logging

    return setup_secure_logging(logging_settings.level, log_file=logging_settings.file)
