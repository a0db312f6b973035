"""Tests for the YAML flow document parser."""

import datetime

import pytest

from flowprint.core.config import ParserSettings
from flowprint.core.errors import ParseError
from flowprint.core.models import ValueTag
from flowprint.parsers import FlowDocumentParser


class TestFlowDocumentParser:
    """Test FlowDocumentParser class."""

    def test_tree_structure(self, parser: FlowDocumentParser, initial_flow: bytes):
        root = parser.parse(initial_flow)

        assert root.name == "flowController"
        assert root.get("maxTimerDrivenThreadCount").value == 10
        assert root.get("encodingVersion").value == "1.4"

        (group,) = root.find_children("rootGroup")
        processors = group.find_children("processor")
        assert [p.get("id").value for p in processors] == ["proc-1", "proc-2"]
        assert group.find_children("connection")[0].get("sourceId").value == "proc-1"
        assert group.find_children("position")[0].get("x").value == 0.0

    def test_sensitive_attribute_names(self, parser: FlowDocumentParser, initial_flow: bytes):
        root = parser.parse(initial_flow)
        properties = next(node for node in root.walk() if node.get("password") is not None)

        assert properties.get("password").is_sensitive
        assert not properties.get("password").is_encrypted
        assert not properties.get("Database User").is_sensitive

    def test_sensitive_names_case_insensitive(self):
        parser = FlowDocumentParser(ParserSettings(sensitive_attributes=["Password"]))
        root = parser.parse(b"db:\n  PASSWORD: x\n  user: y\n")

        assert root.get("PASSWORD").is_sensitive
        assert not root.get("user").is_sensitive

    def test_sensitive_tag(self, parser: FlowDocumentParser):
        root = parser.parse(b"db:\n  note: !sensitive hello\n  pin: !sensitive 1234\n  quoted: !sensitive '1234'\n")

        assert root.get("note").tags == frozenset({ValueTag.SENSITIVE})
        assert root.get("note").value == "hello"
        assert root.get("pin").value == 1234
        assert root.get("quoted").value == "1234"

    def test_sensitive_tag_on_list(self, parser: FlowDocumentParser):
        root = parser.parse(b"db:\n  hosts: !sensitive [a, b]\n")

        assert root.get("hosts").is_sensitive
        assert root.get("hosts").value == ["a", "b"]

    def test_encrypted_tag(self, parser: FlowDocumentParser):
        root = parser.parse(b"db:\n  url: !encrypted abcdef\n")

        assert root.get("url").tags == frozenset({ValueTag.ENCRYPTED})
        assert root.get("url").value == "abcdef"

    def test_enc_wrapper(self, parser: FlowDocumentParser):
        root = parser.parse(b"db:\n  secretValue: enc{0a1b2c3d}\n")

        attr = root.get("secretValue")
        assert attr.is_encrypted
        assert attr.is_sensitive
        assert attr.value == "0a1b2c3d"

    def test_sensitive_tag_with_enc_wrapper(self, parser: FlowDocumentParser):
        root = parser.parse(b"db:\n  other: !sensitive enc{0a1b}\n")

        assert root.get("other").tags == frozenset({ValueTag.SENSITIVE, ValueTag.ENCRYPTED})
        assert root.get("other").value == "0a1b"

    def test_encrypted_tag_on_sensitive_name(self, parser: FlowDocumentParser):
        root = parser.parse(b"db:\n  password: !encrypted drowssap\n")

        assert root.get("password").tags == frozenset({ValueTag.SENSITIVE, ValueTag.ENCRYPTED})
        assert root.get("password").value == "drowssap"

    def test_json_document(self, parser: FlowDocumentParser):
        root = parser.parse(b'{"flow": {"name": "x", "step": [{"id": 1}, {"id": 2}], "on": true}}')

        assert root.name == "flow"
        assert len(root.find_children("step")) == 2
        assert root.get("on").value is True

    def test_empty_node(self, parser: FlowDocumentParser):
        root = parser.parse(b"flow:\n  settings: {}\n  comment:\n")

        (settings,) = root.find_children("settings")
        assert settings.attributes == {}
        assert settings.children == []
        assert root.get("comment").value is None

    def test_empty_root(self, parser: FlowDocumentParser):
        root = parser.parse(b"flow:\n")

        assert root.name == "flow"
        assert root.attributes == {}

    def test_dates(self, parser: FlowDocumentParser):
        root = parser.parse(b"flow:\n  created: 2024-01-31\n")

        assert root.get("created").value == datetime.date(2024, 1, 31)

    def test_accepts_text(self, parser: FlowDocumentParser):
        assert parser.parse("flow:\n  name: x\n").get("name").value == "x"

    def test_attribute_repr_hides_secrets(self, parser: FlowDocumentParser):
        root = parser.parse(b"db:\n  password: originalPlaintextPassword\n")

        assert "originalPlaintextPassword" not in repr(root)


class TestParseErrors:
    """Test malformed input handling."""

    @pytest.mark.parametrize(
        "document",
        [
            b"flow: [unclosed",
            b"",
            b"# only a comment\n",
            b"- a\n- b\n",
            b"just text",
            b"one: {}\ntwo: {}\n",
            b"flow:\n  mixed: [{a: 1}, b]\n",
            b"flow:\n  nested: [[a]]\n",
            b"flow:\n  1: x\n",
            b"flow: 5\n",
            b"flow:\n  x: !sensitive {a: 1}\n",
            b"flow:\n  x: !encrypted [a]\n",
            b"flow:\n  x: [!sensitive a, b]\n",
            b"flow:\n  x: !!python/object:os.system ls\n",
        ],
    )
    def test_malformed(self, parser: FlowDocumentParser, document: bytes):
        with pytest.raises(ParseError):
            parser.parse(document)

    def test_invalid_utf8(self, parser: FlowDocumentParser):
        with pytest.raises(ParseError, match="UTF-8"):
            parser.parse(b"flow:\n  name: \xff\xfe\n")

    def test_yaml_error_is_chained(self, parser: FlowDocumentParser):
        with pytest.raises(ParseError) as exc_info:
            parser.parse(b"flow: [unclosed")

        assert exc_info.value.__cause__ is not None

    def test_error_message_omits_source_text(self, parser: FlowDocumentParser):
        with pytest.raises(ParseError) as exc_info:
            parser.parse(b'db:\n  password: "originalPlaintextPassword\n')

        assert "originalPlaintextPassword" not in str(exc_info.value)
        assert "line" in str(exc_info.value)

    def test_deep_nesting(self, parser: FlowDocumentParser):
        depth = 3000
        document = b"flow: " + b"{a: " * depth + b"1" + b"}" * depth + b"\n"

        with pytest.raises(ParseError, match="nested too deeply"):
            parser.parse(document)

    def test_invalid_date(self, parser: FlowDocumentParser):
        with pytest.raises(ParseError, match="invalid scalar value"):
            parser.parse(b"flow:\n  created: 2024-13-45\n")

    def test_escaped_lone_surrogate_passes_through(self, parser: FlowDocumentParser):
        root = parser.parse(b'flow:\n  name: "\\ud800"\n')

        assert root.get("name").value == "\ud800"
