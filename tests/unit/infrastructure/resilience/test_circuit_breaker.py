# tests/unit/infrastructure/resilience/test_circuit_breaker.py
import pytest
import asyncio
from datetime import datetime, timedelta, timezone

from domain.models.errors import ProviderUnavailable, ValidationFailure
from infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitBreakerConfig,
    CircuitState,
    CircuitOpenError
)

@pytest.fixture
def circuit_config():
    """Default circuit breaker configuration for testing"""
    return CircuitBreakerConfig(
        failure_threshold=3,
        recovery_timeout=timedelta(seconds=5),
        success_threshold=2,
        timeout_seconds=1.0
    )

class TestCircuitBreaker:
    """Test circuit breaker functionality"""

    def test_circuit_breaker_initialization(self, circuit_config):
        """Test circuit breaker initialization"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        assert breaker.provider == "anthropic"
        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert breaker.success_count == 0

    @pytest.mark.asyncio
    async def test_successful_call(self, circuit_config):
        """Test successful function call through circuit breaker"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        async def success_func():
            return "success"

        result = await breaker.call(success_func)

        assert result == "success"
        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_arguments_are_forwarded(self, circuit_config):
        """Test positional and keyword arguments reach the wrapped function"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        async def echo(value, suffix=""):
            return f"{value}{suffix}"

        assert await breaker.call(echo, "prd", suffix="!") == "prd!"

    @pytest.mark.asyncio
    async def test_failure_tracking(self, circuit_config):
        """Test failure tracking and circuit opening"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        async def failing_func():
            raise ProviderUnavailable("anthropic", "API error 500")

        # Should accumulate failures without opening initially
        for i in range(circuit_config.failure_threshold - 1):
            with pytest.raises(ProviderUnavailable):
                await breaker.call(failing_func)
            assert breaker.state == CircuitState.CLOSED
            assert breaker.failure_count == i + 1

        # Final failure should open the circuit
        with pytest.raises(ProviderUnavailable):
            await breaker.call(failing_func)

        assert breaker.state == CircuitState.OPEN
        assert breaker.failure_count == circuit_config.failure_threshold

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, circuit_config):
        """Test a success in closed state clears earlier failures"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        async def failing_func():
            raise ValueError("boom")

        async def success_func():
            return "ok"

        with pytest.raises(ValueError):
            await breaker.call(failing_func)
        assert breaker.failure_count == 1

        await breaker.call(success_func)
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_circuit_open_behavior(self, circuit_config):
        """Test behavior when circuit is open"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        # Force circuit open
        breaker.state = CircuitState.OPEN
        breaker.last_failure_time = datetime.now(timezone.utc)

        called = False

        async def any_func():
            nonlocal called
            called = True
            return "should not execute"

        # Calls should be rejected immediately
        with pytest.raises(CircuitOpenError) as exc_info:
            await breaker.call(any_func)

        assert not called
        assert isinstance(exc_info.value, ProviderUnavailable)
        assert exc_info.value.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_circuit_recovery(self, circuit_config):
        """Test circuit recovery from open to half-open to closed"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        # Force circuit open with old failure time
        breaker.state = CircuitState.OPEN
        breaker.last_failure_time = (datetime.now(timezone.utc)
                                     - circuit_config.recovery_timeout - timedelta(seconds=1))

        async def success_func():
            return "success"

        # Should transition to half-open and succeed
        result = await breaker.call(success_func)
        assert result == "success"
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.success_count == 1

        # Additional successes should close the circuit
        for i in range(circuit_config.success_threshold - 1):
            await breaker.call(success_func)

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_timeout_handling(self):
        """Test function timeout handling"""
        config = CircuitBreakerConfig(timeout_seconds=0.1)  # Very short timeout
        breaker = CircuitBreaker("anthropic", config)

        async def slow_func():
            await asyncio.sleep(0.2)  # Longer than timeout
            return "should timeout"

        with pytest.raises(ProviderUnavailable) as exc_info:
            await breaker.call(slow_func)

        assert "timed out" in exc_info.value.reason
        assert breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_per_call_timeout_overrides_config(self):
        """Test the timeout passed to call() wins over the configured one"""
        config = CircuitBreakerConfig(timeout_seconds=5.0)
        breaker = CircuitBreaker("gemini", config)

        async def slow_func():
            await asyncio.sleep(0.2)

        with pytest.raises(ProviderUnavailable):
            await breaker.call(slow_func, timeout_seconds=0.05)

    @pytest.mark.asyncio
    async def test_half_open_failure(self, circuit_config):
        """Test failure in half-open state"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        # Set to half-open state
        breaker.state = CircuitState.HALF_OPEN
        breaker.success_count = 1

        async def failing_func():
            raise Exception("Half-open failure")

        with pytest.raises(Exception):
            await breaker.call(failing_func)

        # Should transition back to open
        assert breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_cancellation_is_not_counted_as_failure(self, circuit_config):
        """Test a cancelled call propagates without touching the counters"""
        breaker = CircuitBreaker("anthropic", circuit_config)
        started = asyncio.Event()

        async def hanging_func():
            started.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(breaker.call(hanging_func))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert breaker.failure_count == 0
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_validation_failure_is_not_counted(self, circuit_config):
        """Test rejected caller input never opens the circuit"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        async def bad_input():
            raise ValidationFailure("Cannot read mockup file /nonexistent/mock.png")

        for _ in range(circuit_config.failure_threshold + 2):
            with pytest.raises(ValidationFailure):
                await breaker.call(bad_input)

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    def test_status_reporting(self, circuit_config):
        """Test circuit breaker status reporting"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        status = breaker.get_status()

        assert status["state"] == CircuitState.CLOSED.value
        assert status["failure_count"] == 0
        assert status["success_count"] == 0
        assert status["last_failure_time"] is None

    def test_manual_circuit_control(self, circuit_config):
        """Test manual circuit breaker control"""
        breaker = CircuitBreaker("anthropic", circuit_config)

        # Test force open
        breaker.force_open()
        assert breaker.state == CircuitState.OPEN
        assert breaker.last_failure_time is not None

        # Test force close
        breaker.force_close()
        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert breaker.success_count == 0

class TestCircuitBreakerRegistry:
    """Test circuit breaker registry functionality"""

    def test_registry_breaker_creation(self, circuit_config):
        """Test circuit breaker creation through registry"""
        registry = CircuitBreakerRegistry()

        breaker1 = registry.get_breaker("anthropic", circuit_config)
        breaker2 = registry.get_breaker("openai", circuit_config)

        assert breaker1.provider == "anthropic"
        assert breaker2.provider == "openai"
        assert breaker1 is not breaker2

    def test_registry_breaker_reuse(self, circuit_config):
        """Test that registry reuses existing breakers"""
        registry = CircuitBreakerRegistry()

        breaker1 = registry.get_breaker("anthropic", circuit_config)
        breaker2 = registry.get_breaker("anthropic")

        assert breaker1 is breaker2
        assert breaker2.config is circuit_config

    def test_registry_default_config(self, circuit_config):
        """Test breakers created without a config use the registry default"""
        registry = CircuitBreakerRegistry(circuit_config)

        assert registry.get_breaker("gemini").config is circuit_config

    def test_registry_status_collection(self, circuit_config):
        """Test collecting status from all registered breakers"""
        registry = CircuitBreakerRegistry()

        registry.get_breaker("anthropic", circuit_config)
        registry.get_breaker("openai", circuit_config)

        all_status = registry.get_all_status()

        assert "anthropic" in all_status
        assert "openai" in all_status
        assert all_status["anthropic"]["state"] == CircuitState.CLOSED.value
        assert all_status["openai"]["state"] == CircuitState.CLOSED.value

class TestCircuitBreakerIntegration:
    """Integration tests for circuit breaker with realistic scenarios"""

    @pytest.mark.asyncio
    async def test_realistic_failure_recovery_cycle(self):
        """Test a realistic failure and recovery cycle"""
        config = CircuitBreakerConfig(
            failure_threshold=2,
            recovery_timeout=timedelta(milliseconds=100),
            success_threshold=2,
            timeout_seconds=0.1
        )

        breaker = CircuitBreaker("openai", config)

        call_count = 0

        async def unreliable_func():
            nonlocal call_count
            call_count += 1

            # Fail first 2 calls, then succeed
            if call_count <= 2:
                raise Exception(f"Failure {call_count}")
            return f"Success {call_count}"

        # First two calls should fail and open circuit
        with pytest.raises(Exception):
            await breaker.call(unreliable_func)

        with pytest.raises(Exception):
            await breaker.call(unreliable_func)

        assert breaker.state == CircuitState.OPEN

        # Immediate calls should be rejected
        with pytest.raises(CircuitOpenError):
            await breaker.call(unreliable_func)

        # Wait for recovery timeout
        await asyncio.sleep(0.2)

        # Should transition to half-open and succeed
        result = await breaker.call(unreliable_func)
        assert result == "Success 3"
        assert breaker.state == CircuitState.HALF_OPEN

        # Another success should close the circuit
        result = await breaker.call(unreliable_func)
        assert result == "Success 4"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_concurrent_calls(self, circuit_config):
        """Test circuit breaker with concurrent calls"""
        breaker = CircuitBreaker("concurrent_test", circuit_config)

        async def concurrent_func(call_id):
            await asyncio.sleep(0.01)  # Small delay
            return f"Result {call_id}"

        # Execute multiple concurrent calls
        tasks = [breaker.call(concurrent_func, i) for i in range(5)]
        results = await asyncio.gather(*tasks)

        assert len(results) == 5
        assert all("Result" in result for result in results)
        assert breaker.state == CircuitState.CLOSED
