"""Core utilities and configuration."""

from keyword_discovery.core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from keyword_discovery.core.config import Settings, get_settings
from keyword_discovery.core.logging import (
    dataforseo_logger,
    discovery_logger,
    get_logger,
    search_console_logger,
    setup_logging,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "dataforseo_logger",
    "discovery_logger",
    "get_logger",
    "search_console_logger",
    "setup_logging",
    # Circuit breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
]
