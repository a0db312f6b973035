"""
YAML flow document parser.

Document layout::

    flow:                         # single top-level key, the root node
      name: ingest                # scalar -> attribute
      tags: [a, b]                # list of scalars -> attribute
      database:                   # mapping -> child node "database"
        password: !sensitive hunter2hunter2
        token: enc{9f8e...}       # ciphertext, encrypted and sensitive
      processor:                  # list of mappings -> one child per item
        - id: p1
        - id: p2

JSON documents are accepted as well since JSON is a subset of YAML.
"""

import re
from typing import Any, NamedTuple, Optional

import yaml

from ..core.config import ParserSettings
from ..core.errors import ParseError
from ..core.models import AttributeValue, ConfigurationNode, ValueTag
from ..utils.secure_logging import get_secure_logger
from .base import DocumentParser

logger = get_secure_logger(__name__)

_ENCRYPTED_VALUE_RE = re.compile(r"^enc\{(.*)\}$", re.DOTALL)


class _Tagged(NamedTuple):
    value: Any
    tag: ValueTag


class _FlowLoader(yaml.SafeLoader):
    """Safe loader that understands the !sensitive and !encrypted tags."""


def _construct_sensitive(loader: _FlowLoader, node: yaml.Node) -> _Tagged:
    if isinstance(node, yaml.ScalarNode):
        # Resolve the implicit type so "!sensitive 42" stays an integer
        implicit_tag = loader.resolve(yaml.ScalarNode, node.value, (node.style is None, False))
        typed = yaml.ScalarNode(implicit_tag, node.value, node.start_mark, node.end_mark, style=node.style)
        return _Tagged(loader.construct_object(typed, deep=True), ValueTag.SENSITIVE)
    if isinstance(node, yaml.SequenceNode):
        return _Tagged(loader.construct_sequence(node, deep=True), ValueTag.SENSITIVE)
    raise yaml.constructor.ConstructorError(
        None, None, "!sensitive can only tag a scalar or a list of scalars", node.start_mark
    )


def _construct_encrypted(loader: _FlowLoader, node: yaml.Node) -> _Tagged:
    if not isinstance(node, yaml.ScalarNode):
        raise yaml.constructor.ConstructorError(
            None, None, "!encrypted can only tag a text value", node.start_mark
        )
    return _Tagged(loader.construct_scalar(node), ValueTag.ENCRYPTED)


_FlowLoader.add_constructor("!sensitive", _construct_sensitive)
_FlowLoader.add_constructor("!encrypted", _construct_encrypted)


def _describe_yaml_error(exc: yaml.YAMLError) -> str:
    """Describe a YAML error by problem and position only, never by source text."""
    if isinstance(exc, yaml.MarkedYAMLError):
        problem = exc.problem or exc.context or "invalid syntax"
        mark = exc.problem_mark or exc.context_mark
        if mark is not None:
            return f"{problem} at line {mark.line + 1}, column {mark.column + 1}"
        return problem
    if isinstance(exc, yaml.reader.ReaderError):
        return f"unacceptable character at position {exc.position}"
    return type(exc).__name__


class FlowDocumentParser(DocumentParser):
    """Parses YAML or JSON flow documents into configuration trees."""

    format_name = "yaml"

    def __init__(self, settings: Optional[ParserSettings] = None):
        """
        Initialize parser.

        Args:
            settings: Parser settings (sensitive attribute names)
        """
        self.settings = settings or ParserSettings()
        self._sensitive_names = {name.lower() for name in self.settings.sensitive_attributes}

    def parse(self, raw_document: bytes | str) -> ConfigurationNode:
        """
        Parse a flow document.

        Args:
            raw_document: UTF-8 document bytes (or already decoded text)

        Returns:
            Root node

        Raises:
            ParseError: If the document is malformed
        """
        if isinstance(raw_document, (bytes, bytearray)):
            try:
                text = bytes(raw_document).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(f"Document is not valid UTF-8: {exc.reason} at byte {exc.start}") from exc
        else:
            text = raw_document

        try:
            data = yaml.load(text, Loader=_FlowLoader)
        except yaml.YAMLError as exc:
            raise ParseError(f"Malformed flow document: {_describe_yaml_error(exc)}") from exc
        except RecursionError as exc:
            raise ParseError("Flow document is nested too deeply") from exc
        except ValueError as exc:
            # Timestamp-shaped scalars such as 2024-13-45 fail in the constructor
            raise ParseError("Malformed flow document: invalid scalar value") from exc

        if data is None:
            raise ParseError("Flow document is empty")
        if not isinstance(data, dict):
            raise ParseError(f"Flow document root must be a mapping, got {type(data).__name__}")
        if len(data) != 1:
            raise ParseError(f"Flow document must have exactly one root node, found {len(data)}")

        root_name, body = next(iter(data.items()))
        try:
            root = self._build_node(root_name, body, path=str(root_name))
        except RecursionError as exc:
            raise ParseError("Flow document is nested too deeply") from exc
        logger.debug("Parsed flow document with root '%s'", root.name)
        return root

    def _build_node(self, name: Any, body: Any, path: str) -> ConfigurationNode:
        if not isinstance(name, str) or not name:
            raise ParseError(f"Node names must be non-empty strings (at {path})")

        node = ConfigurationNode(name)
        if body is None:
            return node
        if not isinstance(body, dict):
            raise ParseError(f"Node '{path}' must be a mapping, got {type(body).__name__}")

        for key, value in body.items():
            if not isinstance(key, str) or not key:
                raise ParseError(f"Keys must be non-empty strings (at {path})")
            child_path = f"{path}.{key}"

            if isinstance(value, dict):
                node.add_child(self._build_node(key, value, child_path))
            elif isinstance(value, list) and value and all(isinstance(item, dict) for item in value):
                for index, item in enumerate(value):
                    node.add_child(self._build_node(key, item, f"{child_path}[{index}]"))
            else:
                node.attributes[key] = self._build_attribute(key, value, child_path)

        return node

    def _build_attribute(self, name: str, value: Any, path: str) -> AttributeValue:
        tag: Optional[ValueTag] = None
        if isinstance(value, _Tagged):
            value, tag = value.value, value.tag

        if isinstance(value, list):
            for item in value:
                if isinstance(item, (dict, list)):
                    raise ParseError(f"Lists at '{path}' must hold only scalars or only mappings")
                if isinstance(item, _Tagged):
                    raise ParseError(f"Tags must apply to the whole value at '{path}'")

        attribute = AttributeValue.plain(value)
        if tag is not None:
            attribute = attribute.with_tag(tag)

        if not attribute.is_encrypted and isinstance(value, str):
            match = _ENCRYPTED_VALUE_RE.match(value)
            if match:
                attribute = AttributeValue.encrypted(match.group(1), sensitive=True)

        if name.lower() in self._sensitive_names:
            attribute = attribute.with_tag(ValueTag.SENSITIVE)

        return attribute
