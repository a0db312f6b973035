"""
Fingerprint generation orchestrator.

Coordinates parsing, canonicalization and digest assembly.
"""

import hashlib
import hmac
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from ..canonical import Canonicalizer, PropertyDecryptor
from ..masking import KeyDerivationCache, SensitiveValueEncoder, get_key_derivation_cache
from ..parsers import DocumentParser, FlowDocumentParser
from ..utils.secure_logging import get_secure_logger
from .config import Settings, get_settings
from .models import ConfigurationNode

logger = get_secure_logger(__name__)


class FingerprintFactory:
    """
    Creates fingerprints of flow documents.

    Coordinates:
    - Parsing raw bytes into a configuration tree
    - Canonicalizing the tree (masking and decryption included)
    - Producing the canonical text or a fixed-size digest of it

    Instances hold no per-call state and can be shared between threads.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        decryptor: Optional[PropertyDecryptor] = None,
        parser: Optional[DocumentParser] = None,
        encoder: Optional[SensitiveValueEncoder] = None,
        key_cache: Optional[KeyDerivationCache] = None,
    ):
        """
        Initialize fingerprint factory.

        Args:
            settings: Configuration (loaded settings if omitted)
            decryptor: Decryptor for encrypted values
            parser: Document parser (YAML flow parser if omitted)
            encoder: Masking encoder (built on key_cache if omitted)
            key_cache: Key derivation cache (process-wide cache if omitted)
        """
        self.settings = settings or get_settings()
        self.parser = parser or FlowDocumentParser(self.settings.parser)
        if encoder is None:
            encoder = SensitiveValueEncoder(key_cache or get_key_derivation_cache(self.settings.masking))
        self.encoder = encoder
        self.canonicalizer = Canonicalizer(encoder, decryptor, self.settings.canonical)

    def create_fingerprint(self, raw_document: bytes) -> str:
        """
        Create the fingerprint of a raw flow document.

        Args:
            raw_document: Document bytes

        Returns:
            Canonical text, or its hex digest in digest mode

        Raises:
            ParseError: If the document is malformed
            DecryptionError: If an encrypted value cannot be decrypted
            KeyDerivationError: If the masking key cannot be derived
            CanonicalizationInvariantError: If the tree has an unsupported shape
        """
        started = time.perf_counter()
        root = self.parser.parse(raw_document)
        fingerprint = self._finish(self.canonicalizer.canonicalize(root))
        logger.debug(
            "Created fingerprint for '%s' in %.3f ms",
            root.name,
            (time.perf_counter() - started) * 1000,
        )
        return fingerprint

    def create_fingerprint_from_tree(self, root: ConfigurationNode) -> str:
        """
        Create the fingerprint of an already parsed tree.

        Args:
            root: Root node

        Returns:
            Canonical text, or its hex digest in digest mode
        """
        return self._finish(self.canonicalizer.canonicalize(root))

    def create_fingerprints(
        self,
        documents: Iterable[bytes],
        max_workers: Optional[int] = None,
    ) -> list[str]:
        """
        Fingerprint many documents concurrently.

        Workers share the key cache, so the masking key is derived at most
        once and only if some document holds a masked value. Results keep
        the input order; the first failure is raised.

        Args:
            documents: Raw documents
            max_workers: Thread count (settings value if omitted)

        Returns:
            One fingerprint per document
        """
        documents = list(documents)
        if not documents:
            return []

        workers = max_workers or self.settings.output.max_workers
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.create_fingerprint, documents))

    def _finish(self, stream: bytes) -> str:
        if self.settings.output.mode == "digest":
            return hashlib.new(self.settings.output.digest_algorithm, stream).hexdigest()
        return stream.decode("utf-8")


def fingerprints_match(first: str, second: str) -> bool:
    """Compare two fingerprints in constant time."""
    return hmac.compare_digest(first.encode("utf-8"), second.encode("utf-8"))


def create_fingerprint(raw_document: bytes, decryptor: Optional[PropertyDecryptor] = None) -> str:
    """
    Create a fingerprint with the default settings and process-wide key cache.

    Args:
        raw_document: Document bytes
        decryptor: Decryptor for encrypted values

    Returns:
        Fingerprint string
    """
    return FingerprintFactory(decryptor=decryptor).create_fingerprint(raw_document)
