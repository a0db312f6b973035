"""
Data models for flowprint.

This module defines the configuration tree handed to the canonicalizer,
the tagged attribute values it contains, and the derived masking key.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ValueTag(str, Enum):
    """
    Orthogonal tags carried by an attribute value.

    - SENSITIVE: the value must be masked before it reaches the fingerprint
    - ENCRYPTED: the value is ciphertext and must be decrypted first
    """

    SENSITIVE = "sensitive"
    ENCRYPTED = "encrypted"


@dataclass(frozen=True)
class AttributeValue:
    """
    A raw attribute value plus its tags.

    A value may be neither sensitive nor encrypted, either one, or both.
    """

    value: Any
    tags: frozenset[ValueTag] = frozenset()

    @classmethod
    def plain(cls, value: Any) -> "AttributeValue":
        """Create an untagged value."""
        return cls(value)

    @classmethod
    def sensitive(cls, value: Any) -> "AttributeValue":
        """Create a value that must be masked."""
        return cls(value, frozenset({ValueTag.SENSITIVE}))

    @classmethod
    def encrypted(cls, ciphertext: str, sensitive: bool = False) -> "AttributeValue":
        """Create a ciphertext value, optionally also sensitive."""
        tags = {ValueTag.ENCRYPTED}
        if sensitive:
            tags.add(ValueTag.SENSITIVE)
        return cls(ciphertext, frozenset(tags))

    @property
    def is_sensitive(self) -> bool:
        return ValueTag.SENSITIVE in self.tags

    @property
    def is_encrypted(self) -> bool:
        return ValueTag.ENCRYPTED in self.tags

    def with_tag(self, tag: ValueTag) -> "AttributeValue":
        """Return a copy carrying an additional tag."""
        return AttributeValue(self.value, self.tags | {tag})

    def __repr__(self) -> str:
        # Never render sensitive or encrypted payloads
        if self.tags:
            names = ",".join(sorted(t.value for t in self.tags))
            return f"AttributeValue(<{names}>)"
        return f"AttributeValue({self.value!r})"


@dataclass
class ConfigurationNode:
    """
    A named node of a flow definition.

    Children keep the order the parser produced them in; the canonicalizer
    never relies on that order.
    """

    name: str
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    children: list["ConfigurationNode"] = field(default_factory=list)

    def add_child(self, child: "ConfigurationNode") -> "ConfigurationNode":
        """Append a child node and return it."""
        self.children.append(child)
        return child

    def set(self, name: str, value: Any) -> None:
        """Set an attribute, wrapping plain values as untagged."""
        if not isinstance(value, AttributeValue):
            value = AttributeValue.plain(value)
        self.attributes[name] = value

    def get(self, name: str) -> Optional[AttributeValue]:
        """Get an attribute value, if present."""
        return self.attributes.get(name)

    def find_children(self, name: str) -> list["ConfigurationNode"]:
        """Get all direct children with the given name."""
        return [child for child in self.children if child.name == name]

    def walk(self):
        """Iterate over this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


class DerivedKey:
    """
    Opaque masking key produced by the key derivation cache.

    Immutable once created. The key bytes are never shown by repr or str.
    """

    __slots__ = ("_material",)

    def __init__(self, material: bytes):
        if not material:
            raise ValueError("Derived key material must not be empty")
        object.__setattr__(self, "_material", bytes(material))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("DerivedKey is immutable")

    @property
    def material(self) -> bytes:
        return self._material

    def __len__(self) -> int:
        return len(self._material)

    def __repr__(self) -> str:
        return f"DerivedKey(<{len(self._material)} bytes>)"

    __str__ = __repr__

    def __reduce__(self):
        raise TypeError("DerivedKey cannot be serialized")
