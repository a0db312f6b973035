"""
Exceptions raised by the fingerprint pipeline.

Every failure reaches the caller. A fingerprint is either complete and
correct or not produced at all.
"""


class FingerprintError(Exception):
    """Base class for all fingerprint pipeline failures."""


class ParseError(FingerprintError):
    """The input document is malformed and cannot be turned into a tree."""


class DecryptionError(FingerprintError):
    """An encrypted value could not be decrypted (wrong key or corrupted ciphertext)."""


class KeyDerivationError(FingerprintError):
    """
    The masking key could not be derived.

    This is fatal for the cache that raised it: no masked fingerprint can be
    produced until the secret material is fixed and the process restarted.
    """


class CanonicalizationInvariantError(FingerprintError):
    """The tree contains a node or value shape that has no canonical form."""
