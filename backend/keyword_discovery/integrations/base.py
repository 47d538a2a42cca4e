"""Shared async JSON transport for the keyword discovery API clients.

Each client subclasses ``BaseAPIClient`` and supplies its base URL, auth
headers, error family and integration logger. The transport owns:
- the lazily created ``httpx.AsyncClient``
- circuit breaker checks before every request
- retries with exponential backoff for 5xx responses, timeouts and
  transport errors
- ``Retry-After`` on 429 (honored up to ``MAX_RETRY_AFTER`` seconds)
- immediate failure on 401/403 and other 4xx responses

ERROR LOGGING REQUIREMENTS:
- Log all outbound API calls with endpoint, method, timing
- Log and handle: timeouts, rate limits (429), auth failures (401/403)
- Include retry attempt number in logs
- Never log credentials
- Log circuit breaker state changes
"""

import asyncio
import time
import uuid
from dataclasses import dataclass
from typing import Any, ClassVar

import httpx

from keyword_discovery.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from keyword_discovery.core.logging import IntegrationLogger, get_logger

logger = get_logger(__name__)

# Longest Retry-After we are willing to sleep through before giving up
MAX_RETRY_AFTER = 60.0


class APIError(Exception):
    """Base exception for errors raised by an API client."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: Any = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.request_id = request_id


class APITimeoutError(APIError):
    """Raised when every attempt timed out."""


class APIRateLimitError(APIError):
    """Raised when rate limited (429) and the wait is too long or exhausted."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code=429, request_id=request_id)
        self.retry_after = retry_after


class APIAuthError(APIError):
    """Raised when credentials are rejected (401/403)."""


class APICircuitOpenError(APIError):
    """Raised when the circuit breaker refuses the request."""


@dataclass(frozen=True)
class ErrorFamily:
    """The concrete exception classes a client raises."""

    base: type[APIError]
    timeout: type[APITimeoutError]
    rate_limit: type[APIRateLimitError]
    auth: type[APIAuthError]
    circuit_open: type[APICircuitOpenError]


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form is not used by these APIs
        return None


class BaseAPIClient:
    """Retrying, circuit-broken JSON client over ``httpx.AsyncClient``."""

    service_name: ClassVar[str] = "API"
    base_url: ClassVar[str] = ""
    errors: ClassVar[ErrorFamily]

    def __init__(
        self,
        *,
        name: str,
        timeout: float,
        max_retries: int,
        retry_delay: float,
        circuit_config: CircuitBreakerConfig,
        event_logger: IntegrationLogger,
        available: bool,
    ) -> None:
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._log = event_logger
        self._available = available
        self._circuit_breaker = CircuitBreaker(
            circuit_config, name=name, event_logger=event_logger
        )
        # created lazily so unconfigured clients never open a connection pool
        self._client: httpx.AsyncClient | None = None

    @property
    def available(self) -> bool:
        """Whether credentials are configured."""
        return self._available

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    @property
    def not_configured_message(self) -> str:
        return f"{self.service_name} not configured"

    def _auth_headers(self) -> dict[str, str]:
        return {}

    def _log_request(self, endpoint: str, payload: Any) -> None:
        """Hook for request body logging; no-op by default."""

    def _log_response(self, endpoint: str, response_data: dict[str, Any]) -> None:
        """Hook for response/cost logging; no-op by default."""

    def _client_error_message(self, body: Any) -> str:
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if body.get("status_message"):
                return str(body["status_message"])
            if body.get("raw"):
                return str(body["raw"])
        return str(body) if body else "Client error"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    **self._auth_headers(),
                },
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info(f"{self.service_name} client closed")

    def _backoff(self, attempt: int) -> float:
        return self._retry_delay * (2**attempt)

    async def _retry_or_give_up(
        self, attempt: int, request_id: str, reason: str
    ) -> bool:
        """Sleep before the next attempt; False when attempts are exhausted."""
        if attempt >= self._max_retries - 1:
            return False
        delay = self._backoff(attempt)
        logger.warning(
            f"{self.service_name} request attempt {attempt + 1} failed, "
            f"retrying in {delay}s",
            extra={
                "attempt": attempt + 1,
                "max_retries": self._max_retries,
                "delay_seconds": delay,
                "reason": reason,
                "request_id": request_id,
            },
        )
        await asyncio.sleep(delay)
        return True

    async def _make_request(
        self,
        endpoint: str,
        payload: Any = None,
        method: str = "POST",
    ) -> tuple[dict[str, Any], str]:
        """Send one JSON request, retrying where it is safe to.

        Returns:
            Tuple of (response_data, request_id)

        Raises:
            The client's error family: base (not configured, 4xx, exhausted
            5xx or transport errors), timeout, rate_limit, auth, circuit_open
        """
        errors = self.errors
        request_id = str(uuid.uuid4())[:8]

        if not self._available:
            raise errors.base(self.not_configured_message, request_id=request_id)

        if not await self._circuit_breaker.can_execute():
            self._log.graceful_fallback(endpoint, "Circuit breaker open")
            raise errors.circuit_open("Circuit breaker is open", request_id=request_id)

        client = await self._get_client()
        last_error: APIError | None = None

        for attempt in range(self._max_retries):
            attempt_start = time.monotonic()
            self._log.api_call_start(
                endpoint, method=method, retry_attempt=attempt, request_id=request_id
            )
            self._log_request(endpoint, payload)

            try:
                if payload is None:
                    response = await client.request(method, endpoint)
                else:
                    response = await client.request(method, endpoint, json=payload)
            except httpx.TimeoutException:
                duration_ms = (time.monotonic() - attempt_start) * 1000
                self._log.timeout(endpoint, self._timeout)
                self._log.api_call_error(
                    endpoint,
                    duration_ms,
                    None,
                    "Request timed out",
                    "TimeoutError",
                    method=method,
                    retry_attempt=attempt,
                    request_id=request_id,
                )
                await self._circuit_breaker.record_failure()
                last_error = errors.timeout(
                    f"Request timed out after {self._timeout}s", request_id=request_id
                )
                if await self._retry_or_give_up(attempt, request_id, "timeout"):
                    continue
                break
            except httpx.RequestError as e:
                duration_ms = (time.monotonic() - attempt_start) * 1000
                self._log.api_call_error(
                    endpoint,
                    duration_ms,
                    None,
                    str(e),
                    type(e).__name__,
                    method=method,
                    retry_attempt=attempt,
                    request_id=request_id,
                )
                await self._circuit_breaker.record_failure()
                last_error = errors.base(f"Request failed: {e}", request_id=request_id)
                if await self._retry_or_give_up(attempt, request_id, type(e).__name__):
                    continue
                break

            duration_ms = (time.monotonic() - attempt_start) * 1000
            status = response.status_code

            if status == 429:
                retry_after = _parse_retry_after(response.headers.get("retry-after"))
                self._log.rate_limit(
                    endpoint, retry_after=retry_after, request_id=request_id
                )
                await self._circuit_breaker.record_failure()
                if (
                    attempt < self._max_retries - 1
                    and retry_after
                    and retry_after <= MAX_RETRY_AFTER
                ):
                    await asyncio.sleep(retry_after)
                    continue
                raise errors.rate_limit(
                    "Rate limit exceeded",
                    retry_after=retry_after,
                    request_id=request_id,
                )

            if status in (401, 403):
                self._log.auth_failure(status)
                self._log.api_call_error(
                    endpoint,
                    duration_ms,
                    status,
                    "Authentication failed",
                    "AuthError",
                    method=method,
                    retry_attempt=attempt,
                    request_id=request_id,
                )
                await self._circuit_breaker.record_failure()
                raise errors.auth(
                    f"Authentication failed ({status})",
                    status_code=status,
                    request_id=request_id,
                )

            if status >= 500:
                message = f"Server error ({status})"
                self._log.api_call_error(
                    endpoint,
                    duration_ms,
                    status,
                    message,
                    "ServerError",
                    method=method,
                    retry_attempt=attempt,
                    request_id=request_id,
                )
                await self._circuit_breaker.record_failure()
                last_error = errors.base(
                    message, status_code=status, request_id=request_id
                )
                if await self._retry_or_give_up(attempt, request_id, message):
                    continue
                break

            if status >= 400:
                body = None
                if response.content:
                    try:
                        body = response.json()
                    except (ValueError, TypeError):
                        # Non-JSON response (e.g., HTML error page)
                        body = {"raw": response.text[:500]}
                message = self._client_error_message(body)
                self._log.api_call_error(
                    endpoint,
                    duration_ms,
                    status,
                    message,
                    "ClientError",
                    method=method,
                    retry_attempt=attempt,
                    request_id=request_id,
                )
                raise errors.base(
                    f"Client error ({status}): {message}",
                    status_code=status,
                    response_body=body,
                    request_id=request_id,
                )

            try:
                response_data = response.json() if response.content else {}
            except (ValueError, TypeError):
                message = "Invalid JSON in response"
                self._log.api_call_error(
                    endpoint,
                    duration_ms,
                    status,
                    message,
                    "DecodeError",
                    method=method,
                    retry_attempt=attempt,
                    request_id=request_id,
                )
                await self._circuit_breaker.record_failure()
                raise errors.base(
                    f"{message} ({status})",
                    status_code=status,
                    response_body={"raw": response.text[:500]},
                    request_id=request_id,
                )
            self._log.api_call_success(
                endpoint, duration_ms, method=method, request_id=request_id
            )
            self._log_response(endpoint, response_data)
            await self._circuit_breaker.record_success()
            return response_data, request_id

        raise last_error or errors.base(
            "Request failed after all retries", request_id=request_id
        )
