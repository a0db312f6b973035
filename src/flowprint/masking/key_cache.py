"""
Process-wide cache for the derived masking key.

Deriving the key with Argon2id is deliberately slow (around a second with
the default parameters) so that the masking key resists brute force. The
cost is paid exactly once per process: the first caller derives the key
under a lock, every racing caller blocks on that lock, and all later callers
get the cached key back without touching Argon2 again.
"""

import threading
import time
from typing import Optional

from argon2.exceptions import Argon2Error
from argon2.low_level import Type, hash_secret_raw

from ..core.config import MaskingSettings, get_settings
from ..core.errors import KeyDerivationError
from ..core.models import DerivedKey
from ..utils.secure_logging import get_secure_logger

logger = get_secure_logger(__name__)

MIN_PASSPHRASE_LENGTH = 12
MIN_SALT_LENGTH = 8


class KeyDerivationCache:
    """
    Derives the masking key once and serves it for the cache's lifetime.

    A failed derivation is recorded and re-raised on every later call; the
    cache never retries.
    """

    def __init__(self, settings: MaskingSettings):
        """
        Initialize cache.

        Args:
            settings: Passphrase, salt and Argon2 parameters
        """
        self.settings = settings
        self._lock = threading.Lock()
        self._key: Optional[DerivedKey] = None
        self._failure: Optional[KeyDerivationError] = None
        self.derivation_count = 0

    @property
    def is_ready(self) -> bool:
        """Whether a derived key is cached."""
        return self._key is not None

    def get_derived_key(self) -> DerivedKey:
        """
        Get the derived key, deriving it on first use.

        Returns:
            The cached derived key

        Raises:
            KeyDerivationError: If the secret material is missing or invalid,
                or if an earlier derivation on this cache failed
        """
        key = self._key
        if key is not None:
            return key

        with self._lock:
            if self._key is not None:
                return self._key
            if self._failure is not None:
                raise self._failure

            try:
                self._key = self._derive()
            except KeyDerivationError as exc:
                self._failure = exc
                raise
            return self._key

    def warm(self) -> None:
        """Derive the key now instead of on the first fingerprint."""
        self.get_derived_key()

    def _derive(self) -> DerivedKey:
        passphrase, salt = self._load_secret_material()

        started = time.perf_counter()
        try:
            material = hash_secret_raw(
                secret=passphrase,
                salt=salt,
                time_cost=self.settings.time_cost,
                memory_cost=self.settings.memory_cost_kib,
                parallelism=self.settings.parallelism,
                hash_len=self.settings.key_length,
                type=Type.ID,
            )
        except Argon2Error as exc:
            logger.error("Masking key derivation failed: %s", type(exc).__name__)
            raise KeyDerivationError(f"Argon2 key derivation failed: {exc}") from exc

        self.derivation_count += 1
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Derived masking key with Argon2id (t=%d, m=%d KiB, p=%d) in %.0f ms",
            self.settings.time_cost,
            self.settings.memory_cost_kib,
            self.settings.parallelism,
            elapsed_ms,
        )
        return DerivedKey(material)

    def _load_secret_material(self) -> tuple[bytes, bytes]:
        passphrase = self.settings.passphrase.get_secret_value()
        if not passphrase:
            raise KeyDerivationError(
                "Masking passphrase not configured. Set FLOWPRINT_MASKING__PASSPHRASE."
            )
        if len(passphrase) < MIN_PASSPHRASE_LENGTH:
            raise KeyDerivationError(
                f"Masking passphrase must be at least {MIN_PASSPHRASE_LENGTH} characters"
            )

        salt = self.settings.salt.encode("utf-8")
        if len(salt) < MIN_SALT_LENGTH:
            raise KeyDerivationError(f"Key derivation salt must be at least {MIN_SALT_LENGTH} bytes")

        return passphrase.encode("utf-8"), salt


_default_cache: Optional[KeyDerivationCache] = None
_default_cache_lock = threading.Lock()


def get_key_derivation_cache(settings: Optional[MaskingSettings] = None) -> KeyDerivationCache:
    """
    Get the process-wide key derivation cache.

    Args:
        settings: Masking settings used only when the cache is first created;
            defaults to the loaded application settings

    Returns:
        The shared cache
    """
    global _default_cache

    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = KeyDerivationCache(settings or get_settings().masking)
        return _default_cache


def reset_key_derivation_cache() -> None:
    """
    Drop the process-wide cache so the next caller builds a new one.

    Intended for tests; in production the cache lives as long as the process.
    """
    global _default_cache

    with _default_cache_lock:
        _default_cache = None
