"""Tests for structured logging helpers."""

import json
import logging

import pytest

from keyword_discovery.core.logging import (
    SLOW_OPERATION_THRESHOLD_MS,
    CustomJsonFormatter,
    DataForSEOLogger,
    DiscoveryLogger,
    SearchConsoleLogger,
    _preview,
)


class TestCustomJsonFormatter:
    """JSON output carries level, logger name and extra fields."""

    def test_formats_extra_fields(self) -> None:
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        record = logging.LogRecord(
            name="keyword_discovery",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Discovery phase started",
            args=(),
            exc_info=None,
        )
        record.phase = "collection"

        payload = json.loads(formatter.format(record))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "keyword_discovery"
        assert payload["message"] == "Discovery phase started"
        assert payload["phase"] == "collection"
        assert "timestamp" in payload


class TestPreview:
    def test_short_list_unchanged(self) -> None:
        assert _preview(["a", "b"]) == "['a', 'b']"

    def test_long_list_truncated(self) -> None:
        result = _preview([str(i) for i in range(25)])

        assert "(25 total)" in result
        assert "'10'" not in result


class TestIntegrationLoggers:
    """API call logging levels."""

    def test_client_errors_log_at_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="dataforseo"):
            DataForSEOLogger().api_call_error(
                "/v3/x", 12.0, 400, "bad", "ClientError"
            )

        assert caplog.records[-1].levelno == logging.WARNING
        assert caplog.records[-1].status_code == 400

    def test_server_errors_log_at_error(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="search_console"):
            SearchConsoleLogger().api_call_error(
                "/webmasters/v3/sites", 12.0, 503, "down", "ServerError"
            )

        assert caplog.records[-1].levelno == logging.ERROR

    def test_request_body_truncates_keyword_lists(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        payload = [{"keywords": [f"kw {i}" for i in range(50)], "limit": 10}]

        with caplog.at_level(logging.DEBUG, logger="dataforseo"):
            DataForSEOLogger().request_body("/v3/x", payload)

        logged = caplog.records[-1].tasks[0]["keywords"]
        assert "(50 total)" in logged
        # the original payload is left alone
        assert len(payload[0]["keywords"]) == 50

    def test_property_detection_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="search_console"):
            SearchConsoleLogger().property_detected("example.com", None, 4)

        assert caplog.records[-1].matched is False
        assert caplog.records[-1].available_properties == 4


class TestDiscoveryLogger:
    def test_slow_phase_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="keyword_discovery"):
            DiscoveryLogger().phase_complete(
                "enrichment", "run1", SLOW_OPERATION_THRESHOLD_MS + 500, 10
            )

        levels = [r.levelno for r in caplog.records]
        assert logging.INFO in levels
        assert logging.WARNING in levels

    def test_fast_phase_does_not_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="keyword_discovery"):
            DiscoveryLogger().phase_complete("scoring", "run1", 5.0, 10)

        assert all(r.levelno == logging.INFO for r in caplog.records)

    def test_item_failure_logs_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="keyword_discovery"):
            DiscoveryLogger().item_failure(
                "collection", "rival.com", "DataForSEOError", "boom"
            )

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.item == "rival.com"
        assert record.error_type == "DataForSEOError"
