"""Test suite for log record processing and request context."""

import json
import sys
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest

from lendly_api.monitoring.logger import configure_logger
from lendly_api.monitoring.logger import get_formatted_stacktrace
from lendly_api.monitoring.logger import process_log_record
from lendly_api.monitoring.request_context import RequestContextMiddleware


def _exception_info():
    try:
        raise ValueError("boom")
    except ValueError:
        return sys.exc_info()


class TestProcessLogRecord:
    """Tests for process_log_record."""

    def test_extra_serialized_to_json(self):
        record = {"extra": {"request_id": "abc", "status": 400}, "exception": None}

        processed = process_log_record(record)

        assert json.loads(processed["extra"]) == {"request_id": "abc", "status": 400}
        assert processed["stacktrace"] == ""

    def test_empty_extra_left_alone(self):
        record = {"extra": {}, "exception": None}

        assert process_log_record(record)["extra"] == {}

    def test_non_serializable_extra_uses_str(self):
        record = {"extra": {"obj": object()}, "exception": None}

        assert "object object" in json.loads(process_log_record(record)["extra"])["obj"]

    def test_exception_adds_single_line_stacktrace(self):
        record = {"extra": {}, "exception": _exception_info()}

        stacktrace = process_log_record(record)["stacktrace"]

        assert "ValueError: boom" in stacktrace
        assert "\n" not in stacktrace
        assert "\r" in stacktrace


class TestGetFormattedStacktrace:
    """Tests for get_formatted_stacktrace."""

    def test_keeps_newlines_when_asked(self):
        stacktrace = get_formatted_stacktrace(_exception_info(), replace_newline_character_with_carriage_return=False)

        assert stacktrace.startswith("Traceback")
        assert "\n" in stacktrace


class TestConfigureLogger:
    """Tests for configure_logger."""

    @patch("lendly_api.monitoring.logger.logger")
    def test_single_stdout_sink(self, mock_logger):
        configure_logger("debug")

        mock_logger.remove.assert_called_once_with()
        mock_logger.add.assert_called_once()
        kwargs = mock_logger.add.call_args.kwargs
        assert kwargs["sink"] is sys.stdout
        assert kwargs["level"] == "DEBUG"
        assert kwargs["filter"] is process_log_record


class TestRequestContextMiddleware:
    """Tests for client IP extraction and request context."""

    @pytest.mark.parametrize(
        "headers,client,expected",
        [
            ({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}, "10.0.0.1", "203.0.113.7"),
            ({"X-Real-IP": "198.51.100.4"}, "10.0.0.1", "198.51.100.4"),
            ({}, "10.0.0.1", "10.0.0.1"),
            ({}, None, "unknown"),
        ],
        ids=["forwarded_for", "real_ip", "direct", "no_client"],
    )
    def test_client_ip(self, headers, client, expected):
        request = MagicMock()
        request.headers = headers
        request.client = MagicMock(host=client) if client else None

        assert RequestContextMiddleware._get_client_ip(request) == expected
