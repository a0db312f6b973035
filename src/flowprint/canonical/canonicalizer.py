"""
Canonical serialization of configuration trees.

Ordering rule:
- attributes are written sorted by name (code point order)
- children are written sorted by (node name, canonical bytes of the child)

Framing: every name and value is a netstring (``<byte length>:<text>,``)
behind a one-character marker, one node marker or attribute per line,
indented two spaces per level. Length prefixes make the stream
unambiguous; the indentation only makes it readable.

Markers:
    ``(`` node open, ``)`` node close, ``@`` attribute name,
    ``s`` string, ``i`` integer, ``f`` float, ``b`` boolean, ``t`` date/time,
    ``l`` list of scalars, ``m<x>`` masked value whose plaintext had type ``x``.
"""

import datetime
import math
from typing import Any, Optional

from ..core.config import CanonicalSettings
from ..core.errors import CanonicalizationInvariantError, DecryptionError, FingerprintError
from ..core.models import AttributeValue, ConfigurationNode
from ..masking.encoder import SensitiveValueEncoder
from ..utils.secure_logging import get_secure_logger
from .decryptor import PropertyDecryptor, UnavailableDecryptor

logger = get_secure_logger(__name__)

INDENT = b"  "


def _netstring(payload: bytes) -> bytes:
    return str(len(payload)).encode("ascii") + b":" + payload + b","


def _token(marker: str, payload: bytes) -> bytes:
    return marker.encode("ascii") + _netstring(payload)


def _utf8(text: str, where: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise CanonicalizationInvariantError(f"{where} is not encodable as UTF-8 (lone surrogate)") from exc


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list)) and len(value) == 0)


class Canonicalizer:
    """
    Turns a ConfigurationNode tree into a deterministic byte stream.

    Sensitive values are replaced by their masked form, encrypted values
    are decrypted first. Any failure aborts the whole call.
    """

    def __init__(
        self,
        encoder: SensitiveValueEncoder,
        decryptor: Optional[PropertyDecryptor] = None,
        settings: Optional[CanonicalSettings] = None,
    ):
        """
        Initialize canonicalizer.

        Args:
            encoder: Masking encoder for sensitive values
            decryptor: Decryptor for encrypted values
            settings: Canonicalization settings
        """
        self.encoder = encoder
        self.decryptor = decryptor or UnavailableDecryptor()
        self.settings = settings or CanonicalSettings()

    def canonicalize(self, root: ConfigurationNode) -> bytes:
        """
        Serialize a tree to its canonical byte stream.

        Args:
            root: Root node of the tree

        Returns:
            Canonical bytes

        Raises:
            DecryptionError: If an encrypted value cannot be decrypted
            CanonicalizationInvariantError: If the tree has an unsupported shape
        """
        try:
            stream = self._encode_node(root, 0)
        except RecursionError as exc:
            raise CanonicalizationInvariantError("Configuration tree is nested too deeply") from exc
        logger.debug("Canonicalized '%s' into %d bytes", root.name, len(stream))
        return stream

    def _encode_node(self, node: ConfigurationNode, depth: int) -> bytes:
        if not isinstance(node, ConfigurationNode):
            raise CanonicalizationInvariantError(f"Expected a configuration node, got {type(node).__name__}")
        if not isinstance(node.name, str) or not node.name:
            raise CanonicalizationInvariantError("Node name must be a non-empty string")

        indent = INDENT * depth
        parts = [indent + _token("(", _utf8(node.name, "Node name")) + b"\n"]

        attributes = self._effective_attributes(node)
        for name in sorted(attributes):
            label = _token("@", _utf8(name, f"Attribute name on '{node.name}'"))
            value = self._encode_attribute(node.name, name, attributes[name])
            parts.append(indent + INDENT + label + value + b"\n")

        encoded_children = [(child.name, self._encode_node(child, depth + 1)) for child in node.children]
        encoded_children.sort()
        parts.extend(encoded for _, encoded in encoded_children)

        parts.append(indent + b")\n")
        return b"".join(parts)

    def _effective_attributes(self, node: ConfigurationNode) -> dict[str, AttributeValue]:
        """Apply the default-value policy: None, "" and [] mean absent, absent takes the declared default."""
        attributes: dict[str, AttributeValue] = {}
        for name, attr in node.attributes.items():
            if not isinstance(name, str) or not name:
                raise CanonicalizationInvariantError(f"Attribute names on '{node.name}' must be non-empty strings")
            if not isinstance(attr, AttributeValue):
                raise CanonicalizationInvariantError(
                    f"Attribute '{node.name}.{name}' is {type(attr).__name__}, expected AttributeValue"
                )
            if not _is_absent(attr.value):
                attributes[name] = attr

        for name, default in self.settings.defaults.get(node.name, {}).items():
            if name not in attributes and not _is_absent(default):
                attributes[name] = AttributeValue.plain(default)

        return attributes

    def _encode_attribute(self, node_name: str, name: str, attr: AttributeValue) -> bytes:
        if attr.is_encrypted:
            plaintext = _utf8(self._decrypt(node_name, name, attr.value), f"Decrypted value of '{node_name}.{name}'")
            if attr.is_sensitive or self.settings.mask_decrypted_values:
                return self._masked("s", plaintext)
            return _token("s", plaintext)

        marker, payload = self._plain_parts(node_name, name, attr.value)
        if attr.is_sensitive:
            return self._masked(marker, payload)
        return _token(marker, payload)

    def _masked(self, marker: str, payload: bytes) -> bytes:
        masked = self.encoder.mask(payload.decode("utf-8"))
        return _token("m" + marker, masked.encode("utf-8"))

    def _decrypt(self, node_name: str, name: str, ciphertext: Any) -> str:
        if not isinstance(ciphertext, str):
            raise CanonicalizationInvariantError(
                f"Encrypted attribute '{node_name}.{name}' must hold text, got {type(ciphertext).__name__}"
            )

        try:
            plaintext = self.decryptor.decrypt(ciphertext)
        except FingerprintError:
            raise
        except Exception as exc:
            raise DecryptionError(f"Failed to decrypt '{node_name}.{name}': {type(exc).__name__}") from exc

        if not isinstance(plaintext, str):
            raise DecryptionError(f"Decryptor returned {type(plaintext).__name__} for '{node_name}.{name}'")
        return plaintext

    def _plain_parts(self, node_name: str, name: str, value: Any) -> tuple[str, bytes]:
        if isinstance(value, list):
            items = [self._scalar_token(node_name, name, item) for item in value]
            return "l", b"".join(items)
        return self._scalar_parts(node_name, name, value)

    def _scalar_token(self, node_name: str, name: str, value: Any) -> bytes:
        marker, payload = self._scalar_parts(node_name, name, value)
        return _token(marker, payload)

    def _scalar_parts(self, node_name: str, name: str, value: Any) -> tuple[str, bytes]:
        if isinstance(value, str):
            return "s", _utf8(value, f"Value of '{node_name}.{name}'")
        if isinstance(value, bool):
            return "b", b"true" if value else b"false"
        if isinstance(value, int):
            return "i", str(value).encode("ascii")
        if isinstance(value, float):
            if not math.isfinite(value) and not self.settings.allow_non_finite_floats:
                raise CanonicalizationInvariantError(f"Attribute '{node_name}.{name}' holds a non-finite number")
            if value == 0.0:
                value = 0.0
            return "f", repr(value).encode("ascii")
        if isinstance(value, (datetime.datetime, datetime.date)):
            return "t", value.isoformat().encode("ascii")
        if value is None:
            return "s", b""

        raise CanonicalizationInvariantError(
            f"Attribute '{node_name}.{name}' has unsupported value type {type(value).__name__}"
        )
