# infrastructure/resilience/circuit_breaker.py
from enum import Enum
from datetime import datetime, timedelta, timezone
from typing import Callable, Any, Optional, Dict
import asyncio
from dataclasses import dataclass

from domain.models.errors import ProviderUnavailable, ValidationFailure
from shared.logging import log_circuit_breaker_event

class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

@dataclass
class CircuitBreakerConfig:
    failure_threshold: int = 3
    recovery_timeout: timedelta = timedelta(minutes=2)
    success_threshold: int = 1
    timeout_seconds: float = 60.0

class CircuitBreakerRegistry:
    """Per-provider circuit breakers, created on first use"""

    def __init__(self, default_config: Optional[CircuitBreakerConfig] = None):
        self.default_config = default_config or CircuitBreakerConfig()
        self.breakers: Dict[str, 'CircuitBreaker'] = {}

    def get_breaker(self, provider: str, config: Optional[CircuitBreakerConfig] = None) -> 'CircuitBreaker':
        if provider not in self.breakers:
            self.breakers[provider] = CircuitBreaker(provider, config or self.default_config)
        return self.breakers[provider]

    def get_all_status(self) -> Dict[str, Dict[str, Any]]:
        return {name: breaker.get_status() for name, breaker in self.breakers.items()}

class CircuitBreaker:
    def __init__(self, provider: str, config: CircuitBreakerConfig):
        self.provider = provider
        self.config = config
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time: Optional[datetime] = None
        self.success_count = 0

    async def call(self, func: Callable, *args, timeout_seconds: Optional[float] = None, **kwargs) -> Any:
        if self.state == CircuitState.OPEN:
            if self._should_attempt_reset():
                self._transition(CircuitState.HALF_OPEN, "half_open")
                self.success_count = 0
            else:
                raise CircuitOpenError(self.provider, "circuit breaker is open")

        timeout = timeout_seconds if timeout_seconds is not None else self.config.timeout_seconds
        try:
            result = await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
        except asyncio.TimeoutError:
            self._on_failure()
            raise ProviderUnavailable(self.provider, f"call timed out after {timeout}s")
        except ValidationFailure:
            # Bad caller input says nothing about provider health
            raise
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def _should_attempt_reset(self) -> bool:
        if not self.last_failure_time:
            return False
        return datetime.now(timezone.utc) - self.last_failure_time > self.config.recovery_timeout

    def _transition(self, state: CircuitState, event_type: str):
        self.state = state
        log_circuit_breaker_event(self.provider, event_type, state.value, self.failure_count)

    def _on_success(self):
        if self.state == CircuitState.HALF_OPEN:
            self.success_count += 1
            if self.success_count >= self.config.success_threshold:
                self.failure_count = 0
                self._transition(CircuitState.CLOSED, "closed")
        elif self.state == CircuitState.CLOSED and self.failure_count > 0:
            self.failure_count = 0

    def _on_failure(self):
        self.failure_count += 1
        self.last_failure_time = datetime.now(timezone.utc)

        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.config.failure_threshold:
            if self.state != CircuitState.OPEN:
                self._transition(CircuitState.OPEN, "opened")

    def get_status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "last_failure_time": self.last_failure_time.isoformat() if self.last_failure_time else None,
            "success_count": self.success_count
        }

    def force_open(self):
        """Manually open circuit breaker for testing or emergency"""
        self.last_failure_time = datetime.now(timezone.utc)
        self._transition(CircuitState.OPEN, "forced_open")

    def force_close(self):
        """Manually close circuit breaker for testing or recovery"""
        self.failure_count = 0
        self.success_count = 0
        self._transition(CircuitState.CLOSED, "forced_close")

class CircuitOpenError(ProviderUnavailable):
    pass
