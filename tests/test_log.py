"""Tests for logging setup and host inventory helpers."""

import logging
import pytest

from iocsweep.inventory import human_bytes, log_environment
from iocsweep.log import (
    TRACE,
    ConsoleFormatter,
    UTCFileFormatter,
    log_file_path,
    parse_level,
    setup_logging,
)


class TestParseLevel:
    @pytest.mark.parametrize("name,expected", [
        ("trace", TRACE),
        ("DEBUG", logging.DEBUG),
        (" info ", logging.INFO),
        (logging.WARNING, logging.WARNING),
    ])
    def test_levels(self, name, expected):
        assert parse_level(name) == expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            parse_level("verbose")


class TestFormatters:
    def _record(self, level=logging.WARNING, msg="hello"):
        return logging.LogRecord("iocsweep", level, __file__, 1, msg, None, None)

    def test_console_plain(self):
        assert ConsoleFormatter(color=False).format(self._record()) == "[WARNING] hello"

    def test_trace_level_name(self):
        assert ConsoleFormatter(color=False).format(self._record(TRACE)) == "[TRACE] hello"

    def test_file_format_is_utc(self):
        record = self._record()
        record.created = 0
        assert UTCFileFormatter().format(record) == "[1970-01-01T00:00:00Z] WARNING hello"


class TestSetupLogging:
    def test_log_file_name(self, tmp_path):
        assert log_file_path(tmp_path, "host1") == tmp_path / "iocsweep_host1.log"

    def test_writes_log_file(self, tmp_path):
        logger = setup_logging("debug", tmp_path, color=False)
        logger.warning("something found")
        for handler in logger.handlers:
            handler.flush()
        (log_file,) = tmp_path.glob("iocsweep_*.log")
        assert "WARNING something found" in log_file.read_text()

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        setup_logging("info", tmp_path, log_file=False)
        logger = setup_logging("trace", tmp_path, log_file=False)
        assert len(logger.handlers) == 1
        assert logger.level == TRACE


class TestInventory:
    @pytest.mark.parametrize("size,expected", [
        (512, "512 B"),
        (1536, "1.5 KB"),
        (3 * 1024 ** 3, "3.0 GB"),
    ])
    def test_human_bytes(self, size, expected):
        assert human_bytes(size) == expected

    def test_log_environment(self, caplog):
        caplog.set_level(logging.INFO, logger="iocsweep")
        log_environment()
        assert "Operating system information OS:" in caplog.text
        assert "Memory information TOTAL:" in caplog.text
