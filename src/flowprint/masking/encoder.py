"""
One-way masking of sensitive values.
"""

import base64
import hashlib
import hmac
import re
from typing import Optional

from .key_cache import KeyDerivationCache, get_key_derivation_cache

MASKED_PREFIX = "[MASKED]"
MASKED_VALUE_PATTERN = re.compile(r"\[MASKED\] \([\w/+=]+\)")


def is_masked(text: str) -> bool:
    """Check whether a string is exactly one masked value."""
    return bool(text) and MASKED_VALUE_PATTERN.fullmatch(text) is not None


class SensitiveValueEncoder:
    """
    Masks plaintext with HMAC-SHA256 keyed by the cached derived key.

    The slow part (key derivation) happens once in the cache; each call to
    mask() is a single HMAC.
    """

    def __init__(self, key_cache: Optional[KeyDerivationCache] = None):
        """
        Initialize encoder.

        Args:
            key_cache: Cache providing the derived key (process-wide cache if omitted)
        """
        self.key_cache = key_cache or get_key_derivation_cache()

    def mask(self, plaintext: str) -> str:
        """
        Mask a sensitive value.

        Args:
            plaintext: Value to mask

        Returns:
            "[MASKED] (<base64 digest>)"

        Raises:
            KeyDerivationError: If the masking key cannot be derived
        """
        key = self.key_cache.get_derived_key()
        digest = hmac.new(key.material, plaintext.encode("utf-8"), hashlib.sha256).digest()
        return f"{MASKED_PREFIX} ({base64.b64encode(digest).decode('ascii')})"
