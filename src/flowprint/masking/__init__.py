"""Sensitive value masking: cached key derivation and keyed one-way digests."""

from .encoder import MASKED_VALUE_PATTERN, SensitiveValueEncoder, is_masked
from .key_cache import KeyDerivationCache, get_key_derivation_cache, reset_key_derivation_cache

__all__ = [
    "KeyDerivationCache",
    "MASKED_VALUE_PATTERN",
    "SensitiveValueEncoder",
    "get_key_derivation_cache",
    "is_masked",
    "reset_key_derivation_cache",
]
