"""Core module containing the fingerprint factory, configuration, errors and data models."""

from .config import Settings, get_settings
from .errors import (
    CanonicalizationInvariantError,
    DecryptionError,
    FingerprintError,
    KeyDerivationError,
    ParseError,
)
from .models import AttributeValue, ConfigurationNode, DerivedKey, ValueTag

# FingerprintFactory is imported lazily to avoid circular imports
# Use: from flowprint.core.factory import FingerprintFactory

_FACTORY_EXPORTS = {"FingerprintFactory", "create_fingerprint", "fingerprints_match"}


def __getattr__(name: str):
    """Lazy import for the factory to avoid circular imports."""
    if name in _FACTORY_EXPORTS:
        from . import factory
        return getattr(factory, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "AttributeValue",
    "CanonicalizationInvariantError",
    "ConfigurationNode",
    "DecryptionError",
    "DerivedKey",
    "FingerprintError",
    "FingerprintFactory",
    "KeyDerivationError",
    "ParseError",
    "Settings",
    "ValueTag",
    "create_fingerprint",
    "fingerprints_match",
    "get_settings",
]
