"""Canonical serialization of configuration trees."""

from .canonicalizer import Canonicalizer
from .decryptor import PropertyDecryptor, UnavailableDecryptor

__all__ = [
    "Canonicalizer",
    "PropertyDecryptor",
    "UnavailableDecryptor",
]
