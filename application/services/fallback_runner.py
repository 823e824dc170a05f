# application/services/fallback_runner.py
import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from domain.models.errors import AllProvidersExhausted, ProviderFailure, ProviderUnavailable, ValidationFailure
from domain.ports.ai_provider import AIProvider
from infrastructure.resilience.circuit_breaker import CircuitBreakerRegistry
from shared.logging import logger, log_provider_attempt

T = TypeVar("T")

@dataclass(frozen=True)
class FallbackOutcome(Generic[T]):
    """Winning provider, its value, and the failures that preceded it"""
    provider: AIProvider
    value: T
    failures: Tuple[ProviderFailure, ...]

class FallbackRunner:
    """Invoke candidates one at a time until the first success"""

    def __init__(self, breakers: CircuitBreakerRegistry):
        self.breakers = breakers

    async def run(self,
                  candidates: Sequence[AIProvider],
                  operation: str,
                  invoke: Callable[[AIProvider], Awaitable[T]],
                  request_id: str = "-",
                  timeout_seconds: Optional[float] = None) -> FallbackOutcome[T]:
        failures: List[ProviderFailure] = []

        for attempt, provider in enumerate(candidates, start=1):
            breaker = self.breakers.get_breaker(provider.name)
            start_time = time.monotonic()

            try:
                value = await breaker.call(invoke, provider, timeout_seconds=timeout_seconds)
            except asyncio.CancelledError:
                logger.info("Provider call cancelled, aborting fallback",
                            provider=provider.name, operation=operation, request_id=request_id)
                raise
            except ValidationFailure:
                # Every candidate would reject the same input
                logger.warning("Request rejected before reaching a provider",
                               provider=provider.name, operation=operation, request_id=request_id)
                raise
            except Exception as e:
                reason = e.reason if isinstance(e, ProviderUnavailable) else (str(e) or type(e).__name__)
                failures.append(ProviderFailure(
                    provider=provider.name,
                    operation=operation,
                    reason=reason,
                    error_type=type(e).__name__,
                ))
                log_provider_attempt(
                    provider=provider.name,
                    operation=operation,
                    request_id=request_id,
                    execution_time_ms=int((time.monotonic() - start_time) * 1000),
                    success=False,
                    attempt=attempt,
                    error_message=reason
                )
                continue

            log_provider_attempt(
                provider=provider.name,
                operation=operation,
                request_id=request_id,
                execution_time_ms=int((time.monotonic() - start_time) * 1000),
                success=True,
                attempt=attempt
            )
            return FallbackOutcome(provider=provider, value=value, failures=tuple(failures))

        logger.error("All providers exhausted", operation=operation, request_id=request_id,
                     attempts=len(failures))
        raise AllProvidersExhausted(operation, failures)
