"""Flow document parsers."""

from .base import DocumentParser
from .yaml_parser import FlowDocumentParser

__all__ = [
    "DocumentParser",
    "FlowDocumentParser",
]
