"""
Contract for the reversible encryption service.

Only decryption is consumed here; the service that encrypts values at rest
lives outside this package.
"""

from abc import ABC, abstractmethod

from ..core.errors import DecryptionError


class PropertyDecryptor(ABC):
    """
    Abstract base class for decryptors of encrypted attribute values.

    Implementations must raise DecryptionError for a wrong key or
    corrupted ciphertext.
    """

    @abstractmethod
    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a ciphertext value.

        Args:
            ciphertext: Encrypted value as it appears in the document

        Returns:
            Plaintext value
        """
        pass


class UnavailableDecryptor(PropertyDecryptor):
    """Decryptor used when no encryption service is configured."""

    def decrypt(self, ciphertext: str) -> str:
        raise DecryptionError("Document contains encrypted values but no decryptor is configured")
