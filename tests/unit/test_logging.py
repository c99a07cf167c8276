"""Unit tests for logging configuration."""

import logging

import orjson

from labqc.core.logging import ConsoleFormatter, JSONFormatter, LoggerMixin, get_logger


def _record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("labqc.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        """Test the standard fields are present."""
        data = orjson.loads(JSONFormatter().format(_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "labqc.test"
        assert data["message"] == "hello"
        assert "extra" not in data

    def test_extra_fields(self):
        """Test fields passed through extra= are kept."""
        data = orjson.loads(JSONFormatter().format(_record(formula_id="f1", hits=3)))
        assert data["extra"] == {"formula_id": "f1", "hits": 3}

    def test_non_serializable_extra(self):
        """Test unknown types fall back to str()."""
        data = orjson.loads(JSONFormatter().format(_record(kind=object)))
        assert data["extra"]["kind"] == str(object)


class TestConsoleFormatter:
    """Tests for ConsoleFormatter."""

    def test_colors_level_and_restores_it(self):
        """Test the level name is colored only in the output."""
        record = _record(level=logging.WARNING)
        output = ConsoleFormatter("%(levelname)s %(message)s").format(record)
        assert output == "\033[33mWARNING\033[0m hello"
        assert record.levelname == "WARNING"


class TestLoggers:
    """Tests for logger helpers."""

    def test_get_logger(self):
        """Test loggers are named by module."""
        assert get_logger("labqc.formula").name == "labqc.formula"

    def test_logger_mixin(self):
        """Test the mixin names the logger after the class."""

        class Worker(LoggerMixin):
            pass

        assert Worker().logger.name == f"{__name__}.Worker"
