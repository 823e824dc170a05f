import structlog
import logging
import sys
from typing import Any, Dict, Optional

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Get logger instance
logger = structlog.get_logger()

# Configure standard library logging
logging.basicConfig(
    format="%(message)s",
    stream=sys.stdout,
    level=logging.INFO,
)

def setup_logging(level: str = "INFO", json_logs: bool = True):
    """Setup logging configuration"""
    log_level = getattr(logging, level.upper())
    logging.getLogger().setLevel(log_level)

    if not json_logs:
        # Use human-readable format for development
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.dev.ConsoleRenderer()
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

def log_provider_attempt(
    provider: str,
    operation: str,
    request_id: str,
    execution_time_ms: int,
    success: bool,
    attempt: int,
    error_message: Optional[str] = None
):
    """Log a single provider invocation inside the fallback loop"""
    extra_data = {
        "provider": provider,
        "operation": operation,
        "request_id": request_id,
        "execution_time_ms": execution_time_ms,
        "attempt": attempt,
        "success": success
    }

    if error_message:
        extra_data["error_message"] = error_message
        logger.warning("Provider attempt failed", **extra_data)
    else:
        logger.info("Provider attempt succeeded", **extra_data)

def log_generation_completed(
    request_id: str,
    provider: str,
    model: str,
    confidence_score: float,
    section_count: int,
    failed_attempts: int,
    tokens_used: Optional[int] = None,
    cost: Optional[float] = None
):
    """Log the assembled generation result"""
    logger.info("Generation completed",
               request_id=request_id,
               provider=provider,
               model=model,
               confidence_score=confidence_score,
               section_count=section_count,
               failed_attempts=failed_attempts,
               tokens_used=tokens_used,
               cost=cost)

def log_parse_degraded(
    provider: str,
    analysis: str,
    reason: str,
    additional_context: Optional[Dict[str, Any]] = None
):
    """Log a structured-output parse that fell back to the default analysis"""
    extra_data = {
        "provider": provider,
        "analysis": analysis,
        "reason": reason
    }

    if additional_context:
        extra_data.update(additional_context)

    logger.warning("Parse degraded", **extra_data)

def log_circuit_breaker_event(
    provider: str,
    event_type: str,
    state: str,
    failure_count: int,
    additional_context: Optional[Dict[str, Any]] = None
):
    """Log circuit breaker state changes"""
    extra_data = {
        "provider": provider,
        "event_type": event_type,
        "circuit_state": state,
        "failure_count": failure_count
    }

    if additional_context:
        extra_data.update(additional_context)

    logger.info("Circuit breaker event", **extra_data)
