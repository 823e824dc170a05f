# main.py
import os
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import httpx
from fastapi import FastAPI, Depends

# Internal imports
from application.orchestrators.generation_orchestrator import GenerationOrchestrator
from application.services.fallback_runner import FallbackRunner
from application.services.mockup_aggregator import MockupAnalysisAggregator
from infrastructure.providers.factory import build_provider_registry
from infrastructure.resilience.circuit_breaker import CircuitBreakerRegistry, CircuitBreakerConfig
from infrastructure.web.generation_api import router as generation_router, get_orchestrator
from shared.config import Settings
from shared.logging import logger, setup_logging

__version__ = "1.0.0"

# Global application state
app_state = {}

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""

    settings = Settings.from_env()
    setup_logging(level=settings.log_level, json_logs=settings.json_logs)

    # Startup
    logger.info("Starting PRD Generation Engine", version=__version__)

    try:
        http_client = httpx.AsyncClient()
        app_state["http_client"] = http_client

        registry = build_provider_registry(settings, http_client)
        app_state["provider_registry"] = registry

        circuit_breaker_registry = CircuitBreakerRegistry(CircuitBreakerConfig(
            failure_threshold=settings.circuit_failure_threshold,
            recovery_timeout=timedelta(seconds=settings.circuit_recovery_seconds),
            success_threshold=settings.circuit_success_threshold,
            timeout_seconds=settings.generation_timeout_seconds,
        ))
        app_state["circuit_breaker_registry"] = circuit_breaker_registry

        runner = FallbackRunner(circuit_breaker_registry)
        aggregator = MockupAnalysisAggregator(registry, runner, settings)
        app_state["orchestrator"] = GenerationOrchestrator(registry, runner, aggregator, settings)

        logger.info("Application initialized successfully",
                    providers=[provider.name for provider in registry.candidates()])

    except Exception as e:
        logger.error("Failed to initialize application", error=str(e))
        if "http_client" in app_state:
            await app_state["http_client"].aclose()
        raise

    yield

    # Shutdown
    logger.info("Shutting down PRD Generation Engine")

    if "http_client" in app_state:
        await app_state["http_client"].aclose()
    app_state.clear()

# Create FastAPI app
app = FastAPI(
    title="PRD Generation Engine",
    description="Multi-provider PRD generation with fallback and response normalization",
    version=__version__,
    lifespan=lifespan
)

# Dependency injection
async def get_app_orchestrator() -> GenerationOrchestrator:
    return app_state["orchestrator"]

async def get_circuit_breaker_registry() -> CircuitBreakerRegistry:
    return app_state["circuit_breaker_registry"]

app.dependency_overrides[get_orchestrator] = get_app_orchestrator

@app.get("/health")
async def health_check(
    circuit_breaker_registry: CircuitBreakerRegistry = Depends(get_circuit_breaker_registry)
):
    """System health check"""

    circuit_status = circuit_breaker_registry.get_all_status()

    # Check for any open circuit breakers
    open_circuits = [name for name, status in circuit_status.items()
                     if status["state"] == "open"]

    return {
        "status": "healthy" if not open_circuits else "degraded",
        "providers_registered": len(app_state["provider_registry"]),
        "circuit_breakers": circuit_status,
        "open_circuits": open_circuits,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "service": "PRD Generation Engine",
        "description": "Provider orchestration and response normalization for PRD generation",
        "features": [
            "Priority-ordered provider selection",
            "Sequential provider fallback",
            "Per-provider circuit breakers",
            "Normalized sections, confidence and cost",
            "Mockup vision analysis"
        ],
        "endpoints": {
            "generate": "POST /prd/generate",
            "analyze_requirements": "POST /prd/analyze",
            "analyze_mockups": "POST /prd/mockups/analyze",
            "providers": "GET /prd/providers",
            "health_check": "GET /health"
        }
    }

app.include_router(generation_router)

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true"
    )
