"""Structured logging configuration.

All logs go to stdout. Uses JSON format (python-json-logger) by default and a
plain text format for local development.

ERROR LOGGING REQUIREMENTS:
- Log all outbound API calls with endpoint, method, timing
- Log request/response bodies at DEBUG level (truncate large values)
- Log and handle: timeouts, rate limits (429), auth failures (401/403)
- Include retry attempt number in logs
- Never log API credentials or access tokens
- Log circuit breaker state changes
- Log pipeline phase transitions at INFO level, per-item failures at WARNING
"""

import logging
import sys
from datetime import UTC, datetime
from typing import Any

from pythonjsonlogger import jsonlogger

from keyword_discovery.core.config import get_settings

# Threshold for logging slow operations (in milliseconds)
SLOW_OPERATION_THRESHOLD_MS = 1000


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined]
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging() -> None:
    """Configure application logging.

    Uses JSON format when ``log_format`` is ``json``, text format otherwise.
    """
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    formatter: logging.Formatter
    if settings.log_format == "json":
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


def _preview(items: list[str], limit: int = 10) -> str:
    """Short preview of a long list for DEBUG logs."""
    if len(items) > limit:
        return f"{items[:limit]}... ({len(items)} total)"
    return str(items)


class IntegrationLogger:
    """Event logging for one outbound API integration.

    Subclasses set ``service`` (the label used in messages) and
    ``logger_name``. Every record carries ``service`` as an extra field and
    durations are rounded to two decimals. Credentials never reach these
    methods.
    """

    service = "Integration"
    logger_name = "integration"

    def __init__(self) -> None:
        self.logger = get_logger(self.logger_name)

    def _emit(self, level: int, message: str, **fields: Any) -> None:
        if "duration_ms" in fields:
            fields["duration_ms"] = round(fields["duration_ms"], 2)
        self.logger.log(level, message, extra={"service": self.service, **fields})

    def api_call_start(
        self,
        endpoint: str,
        method: str = "POST",
        retry_attempt: int = 0,
        request_id: str | None = None,
    ) -> None:
        self._emit(
            logging.DEBUG,
            f"{self.service} -> {method} {endpoint}",
            endpoint=endpoint,
            method=method,
            retry_attempt=retry_attempt,
            request_id=request_id,
        )

    def api_call_success(
        self,
        endpoint: str,
        duration_ms: float,
        method: str = "POST",
        request_id: str | None = None,
    ) -> None:
        self._emit(
            logging.DEBUG,
            f"{self.service} <- {method} {endpoint} ok",
            endpoint=endpoint,
            method=method,
            duration_ms=duration_ms,
            request_id=request_id,
            success=True,
        )

    def api_call_error(
        self,
        endpoint: str,
        duration_ms: float,
        status_code: int | None,
        error: str,
        error_type: str,
        method: str = "POST",
        retry_attempt: int = 0,
        request_id: str | None = None,
    ) -> None:
        """4xx responses are the caller's problem and log at WARNING."""
        client_side = status_code is not None and 400 <= status_code < 500
        self._emit(
            logging.WARNING if client_side else logging.ERROR,
            f"{self.service} <- {method} {endpoint} failed: {error_type}",
            endpoint=endpoint,
            method=method,
            duration_ms=duration_ms,
            status_code=status_code,
            error=error,
            error_type=error_type,
            retry_attempt=retry_attempt,
            request_id=request_id,
            success=False,
        )

    def timeout(self, endpoint: str, timeout_seconds: float) -> None:
        self._emit(
            logging.WARNING,
            f"{self.service} request to {endpoint} timed out",
            endpoint=endpoint,
            timeout_seconds=timeout_seconds,
        )

    def rate_limit(
        self,
        endpoint: str,
        retry_after: float | None = None,
        request_id: str | None = None,
    ) -> None:
        self._emit(
            logging.WARNING,
            f"{self.service} rate limited on {endpoint}",
            endpoint=endpoint,
            retry_after_seconds=retry_after,
            request_id=request_id,
        )

    def auth_failure(self, status_code: int) -> None:
        self._emit(
            logging.WARNING,
            f"{self.service} rejected credentials ({status_code})",
            status_code=status_code,
        )

    def circuit_state_change(
        self, previous_state: str, new_state: str, failure_count: int
    ) -> None:
        self._emit(
            logging.WARNING,
            f"{self.service} circuit {previous_state} -> {new_state}",
            previous_state=previous_state,
            new_state=new_state,
            failure_count=failure_count,
        )

    def circuit_open(self, failure_count: int, recovery_timeout: float) -> None:
        self._emit(
            logging.ERROR,
            f"{self.service} circuit open, calls suspended",
            failure_count=failure_count,
            recovery_timeout_seconds=recovery_timeout,
        )

    def circuit_recovery_attempt(self) -> None:
        self._emit(logging.INFO, f"{self.service} circuit half-open, probing")

    def circuit_closed(self) -> None:
        self._emit(logging.INFO, f"{self.service} circuit closed, calls resumed")

    def graceful_fallback(self, operation: str, reason: str) -> None:
        """The caller continues without this service."""
        self._emit(
            logging.INFO,
            f"{self.service} skipped for {operation}",
            operation=operation,
            reason=reason,
        )


class DataForSEOLogger(IntegrationLogger):
    """Adds payload previews and per-call cost to the shared API events."""

    service = "DataForSEO"
    logger_name = "dataforseo"

    def request_body(self, endpoint: str, payload: list[dict[str, Any]]) -> None:
        """Keyword lists inside tasks are shortened with ``_preview``."""
        tasks = []
        for task in payload:
            keywords = task.get("keywords")
            if isinstance(keywords, list):
                task = {**task, "keywords": _preview(keywords)}
            tasks.append(task)
        self._emit(
            logging.DEBUG,
            f"DataForSEO request body for {endpoint}",
            endpoint=endpoint,
            tasks=tasks,
            task_count=len(payload),
        )

    def response_body(
        self,
        endpoint: str,
        items_count: int,
        duration_ms: float,
        cost: float | None = None,
    ) -> None:
        self._emit(
            logging.DEBUG,
            f"DataForSEO returned {items_count} items from {endpoint}",
            endpoint=endpoint,
            items_count=items_count,
            duration_ms=duration_ms,
            cost=cost,
        )

    def cost_usage(self, cost: float, endpoint: str | None = None) -> None:
        self._emit(logging.INFO, "DataForSEO call cost", cost=cost, endpoint=endpoint)

    def operation_complete(
        self,
        operation: str,
        duration_ms: float,
        success: bool,
        results_count: int = 0,
        cost: float | None = None,
    ) -> None:
        self._emit(
            logging.INFO if success else logging.WARNING,
            f"DataForSEO {operation} {'succeeded' if success else 'failed'}",
            operation=operation,
            duration_ms=duration_ms,
            success=success,
            results_count=results_count,
            cost=cost,
        )


class SearchConsoleLogger(IntegrationLogger):
    service = "Search Console"
    logger_name = "search_console"

    def query_start(
        self, property_id: str, start_date: str, end_date: str, row_limit: int
    ) -> None:
        self._emit(
            logging.INFO,
            f"Querying search analytics for {property_id}",
            property_id=property_id,
            start_date=start_date,
            end_date=end_date,
            row_limit=row_limit,
        )

    def query_complete(
        self,
        property_id: str,
        duration_ms: float,
        success: bool,
        rows_count: int = 0,
    ) -> None:
        self._emit(
            logging.INFO if success else logging.WARNING,
            f"Search analytics query {'returned' if success else 'failed'}",
            property_id=property_id,
            duration_ms=duration_ms,
            success=success,
            rows_count=rows_count,
        )

    def property_detected(
        self, domain: str, property_id: str | None, candidates: int
    ) -> None:
        self._emit(
            logging.INFO,
            f"Property for {domain}: {property_id or 'none'}",
            domain=domain,
            property_id=property_id,
            available_properties=candidates,
            matched=property_id is not None,
        )


class DiscoveryLogger:
    """Logger for keyword discovery pipeline phases."""

    def __init__(self) -> None:
        self.logger = get_logger("keyword_discovery")

    def phase_start(self, phase: str, run_id: str, input_count: int) -> None:
        self.logger.info(
            f"Discovery phase started: {phase}",
            extra={"phase": phase, "run_id": run_id, "input_count": input_count},
        )

    def phase_complete(
        self,
        phase: str,
        run_id: str,
        duration_ms: float,
        output_count: int,
        failure_count: int = 0,
    ) -> None:
        self.logger.info(
            f"Discovery phase complete: {phase}",
            extra={
                "phase": phase,
                "run_id": run_id,
                "duration_ms": round(duration_ms, 2),
                "output_count": output_count,
                "failure_count": failure_count,
            },
        )
        if duration_ms > SLOW_OPERATION_THRESHOLD_MS:
            self.logger.warning(
                f"Slow discovery phase: {phase}",
                extra={
                    "phase": phase,
                    "run_id": run_id,
                    "duration_ms": round(duration_ms, 2),
                    "threshold_ms": SLOW_OPERATION_THRESHOLD_MS,
                },
            )

    def item_failure(
        self, phase: str, item: str, error_type: str, message: str
    ) -> None:
        self.logger.warning(
            f"Discovery item failed in {phase}",
            extra={
                "phase": phase,
                "item": item,
                "error_type": error_type,
                "error": message,
            },
        )

    def source_unavailable(self, source: str, reason: str) -> None:
        self.logger.warning(
            "Discovery source unavailable",
            extra={"source": source, "reason": reason},
        )

    def run_cancelled(self, run_id: str, next_phase: str) -> None:
        self.logger.info(
            "Discovery run cancelled",
            extra={"run_id": run_id, "next_phase": next_phase},
        )

    def run_complete(
        self, run_id: str, duration_ms: float, stats: dict[str, Any]
    ) -> None:
        self.logger.info(
            "Discovery run complete",
            extra={"run_id": run_id, "duration_ms": round(duration_ms, 2), **stats},
        )


# Singleton loggers
dataforseo_logger = DataForSEOLogger()
search_console_logger = SearchConsoleLogger()
discovery_logger = DiscoveryLogger()
