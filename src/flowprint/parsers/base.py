"""
Base parser class for flow documents.
"""

from abc import ABC, abstractmethod

from ..core.models import ConfigurationNode


class DocumentParser(ABC):
    """
    Abstract base class for flow document parsers.

    Subclasses turn raw document bytes into a ConfigurationNode tree and
    report malformed input as ParseError, never as a partial tree.
    """

    format_name: str = "base"

    @abstractmethod
    def parse(self, raw_document: bytes) -> ConfigurationNode:
        """
        Parse a raw document.

        Args:
            raw_document: Document bytes

        Returns:
            Root node of the document tree
        """
        pass
