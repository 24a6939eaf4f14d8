"""Tests for tree_mirror.utils.logging module."""

import json
import logging

from tree_mirror.utils.logging import JsonFormatter, get_logger


class TestJsonFormatter:

    def test_basic_fields(self):
        record = logging.LogRecord("tree_mirror.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        data = json.loads(JsonFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "tree_mirror.test"
        assert data["message"] == "hello world"
        assert "timestamp" in data

    def test_extra_fields_included(self):
        record = logging.LogRecord("tree_mirror.test", logging.DEBUG, __file__, 1, "changed", (), None)
        record.node_path = "sub/b.txt"
        record.payload = object()
        data = json.loads(JsonFormatter().format(record))
        assert data["node_path"] == "sub/b.txt"
        assert data["payload"].startswith("<object")


class TestGetLogger:

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "mirror.log"
        logger = get_logger("tree_mirror.test_file", json_output=True, log_file=log_file, console=False)
        try:
            logger.info("written", extra={"node_path": "a.txt"})
            for handler in logger.handlers:
                handler.flush()

            line = json.loads(log_file.read_text().splitlines()[0])
            assert line["message"] == "written"
            assert line["node_path"] == "a.txt"
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def test_no_duplicate_handlers(self):
        logger = get_logger("tree_mirror.test_dupes")
        try:
            assert get_logger("tree_mirror.test_dupes") is logger
            assert len(logger.handlers) == 1
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
