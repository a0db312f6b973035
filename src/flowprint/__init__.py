"""Deterministic, secret-safe fingerprints of flow definitions."""

__version__ = "1.0.0"

from .core import (
    AttributeValue,
    CanonicalizationInvariantError,
    ConfigurationNode,
    DecryptionError,
    FingerprintError,
    KeyDerivationError,
    ParseError,
    Settings,
    ValueTag,
    get_settings,
)
from .core.factory import FingerprintFactory, create_fingerprint, fingerprints_match
from .canonical import PropertyDecryptor
from .masking import MASKED_VALUE_PATTERN, is_masked
from .utils import configure_logging

__all__ = [
    "AttributeValue",
    "CanonicalizationInvariantError",
    "ConfigurationNode",
    "DecryptionError",
    "FingerprintError",
    "FingerprintFactory",
    "KeyDerivationError",
    "MASKED_VALUE_PATTERN",
    "ParseError",
    "PropertyDecryptor",
    "Settings",
    "ValueTag",
    "__version__",
    "configure_logging",
    "create_fingerprint",
    "fingerprints_match",
    "get_settings",
    "is_masked",
]
