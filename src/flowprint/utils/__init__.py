"""Utility modules for flowprint."""

from .secure_logging import configure_logging, get_secure_logger, setup_secure_logging

# drift imports the masking package, which itself logs through this package.
# Use: from flowprint.utils.drift import compare_fingerprints, render_drift

__all__ = ["configure_logging", "get_secure_logger", "setup_secure_logging"]
