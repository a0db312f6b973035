"""Tests for secure logging."""

import logging
from pathlib import Path

import pytest

from flowprint.core.config import LoggingSettings
from flowprint.utils.secure_logging import (
    SecureFormatter,
    SensitiveDataFilter,
    configure_logging,
    get_secure_logger,
    mask_dict_values,
    mask_sensitive_string,
)


class TestMaskSensitiveString:
    """Test string masking."""

    def test_password_assignment(self):
        assert mask_sensitive_string("password=hunter2") == "password=****"
        assert mask_sensitive_string('passphrase: "correcthorse"') == 'passphrase: "****"'

    def test_encrypted_value(self):
        assert mask_sensitive_string("value enc{0a1b2c3d} seen") == "value enc{****} seen"

    def test_connection_string(self):
        assert mask_sensitive_string("jdbc://reader:s3cr3t@db/flows") == "jdbc://reader:****@db/flows"

    def test_bytes_repr(self):
        assert mask_sensitive_string("key=" + repr(b"\x01" * 32)) == "key=b'****'"

    def test_plain_text_untouched(self):
        assert mask_sensitive_string("Created fingerprint for 'flow'") == "Created fingerprint for 'flow'"
        assert mask_sensitive_string("") == ""


class TestMaskDictValues:
    """Test dictionary masking."""

    def test_sensitive_keys(self):
        result = mask_dict_values({"password": "x", "nested": {"api_key": "y", "name": "z"}, "raw": b"k"})

        assert result == {"password": "****", "nested": {"api_key": "****", "name": "z"}, "raw": "****"}


class TestSensitiveDataFilter:
    """Test SensitiveDataFilter class."""

    def test_masks_args(self):
        record = logging.LogRecord(
            "flowprint", logging.INFO, __file__, 1, "Loaded %s with %s", ("password=hunter2", b"\x00" * 32), None
        )

        assert SensitiveDataFilter().filter(record)
        assert record.getMessage() == "Loaded password=**** with ****"

    def test_formatter_masks_output(self):
        record = logging.LogRecord("flowprint", logging.INFO, __file__, 1, "token=%s", ("abc.def",), None)

        assert SecureFormatter("%(message)s").format(record) == "token=****"

    def test_get_secure_logger_adds_filter_once(self):
        logger = get_secure_logger("flowprint.tests.logging")
        get_secure_logger("flowprint.tests.logging")

        assert sum(isinstance(f, SensitiveDataFilter) for f in logger.filters) == 1


@pytest.fixture
def package_logger():
    """Restore the package logger after a test configures it."""
    logger = logging.getLogger("flowprint")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestConfigureLogging:
    """Test configure_logging."""

    def test_level_and_file(self, tmp_path: Path, package_logger: logging.Logger):
        log_file = tmp_path / "flowprint.log"

        logger = configure_logging(LoggingSettings(level="DEBUG", file=str(log_file)))
        get_secure_logger("flowprint.tests.configure").debug("Loaded password=%s", "hunter2")
        for handler in logger.handlers:
            handler.flush()

        assert logger is package_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        content = log_file.read_text()
        assert "Loaded password=****" in content
        assert "hunter2" not in content

    def test_loaded_settings(self, monkeypatch, package_logger: logging.Logger):
        monkeypatch.setenv("FLOWPRINT_LOGGING__LEVEL", "WARNING")

        logger = configure_logging()

        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
