# tests/conftest.py
import asyncio
from typing import List, Optional, Tuple

import pytest

from application.services.fallback_runner import FallbackRunner
from application.services.provider_registry import ProviderRegistry
from domain.models.errors import ProviderUnavailable
from domain.models.mockup_source import MockupSource
from domain.ports.ai_provider import ProviderResponse
from infrastructure.providers.parsing import TextResponseParser
from infrastructure.providers.pricing import OPENAI_PRICING
from infrastructure.resilience.circuit_breaker import CircuitBreakerRegistry
from shared.config import Settings

PRD_TEXT = """# Executive Summary
A checkout flow for returning customers.

## Problem Statement
Checkout takes too many steps.

## Functional Requirements
- Saved payment methods
"""

VISION_JSON = """```json
{
  "uiElements": [{"type": "button", "label": "Pay", "bounds": {"x": 1, "y": 2, "width": 30, "height": 10}, "confidence": 0.9}],
  "layout": {"screenType": "form", "hierarchyLevels": 2, "layoutType": "vertical", "componentGroups": []},
  "extractedText": [{"content": "Checkout", "category": "heading", "bounds": {"x": 0, "y": 0, "width": 100, "height": 20}}],
  "inferredFlows": [{"name": "Pay", "steps": ["Enter card", "Confirm"], "confidence": 0.8}],
  "businessLogic": [{"feature": "Payments", "description": "Card payments", "confidence": 0.7, "requiredComponents": ["button"]}],
  "overallConfidence": 0.8
}
```"""


def _text(payload):
    return payload["text"]


def _tokens(payload):
    return payload.get("tokens")


class FakeProvider:
    """In-memory provider recording every call it receives"""

    def __init__(self, name: str, priority: int, text: str = PRD_TEXT,
                 tokens: Optional[int] = 1000, error: Optional[BaseException] = None,
                 supports_vision: bool = True, vision_text: str = VISION_JSON,
                 available: bool = True, delay: float = 0.0, model: str = "gpt-4o"):
        self.name = name
        self.priority = priority
        self.model = model
        self.supports_vision = supports_vision
        self.text = text
        self.tokens = tokens
        self.error = error
        self.vision_text = vision_text
        self.available = available
        self.delay = delay
        self.parser = TextResponseParser(name, _text, _tokens)
        self.cost_calculator = OPENAI_PRICING
        self.calls: List[Tuple[str, str]] = []
        self.sources: List[MockupSource] = []

    async def is_available(self) -> bool:
        if isinstance(self.available, Exception):
            raise self.available
        return self.available

    async def _respond(self, model: str, text: str) -> ProviderResponse:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ProviderResponse(provider=self.name, model=model,
                                payload={"text": text, "tokens": self.tokens})

    async def generate(self, model: str, prompt: str, max_tokens: int) -> ProviderResponse:
        self.calls.append(("generate", prompt))
        return await self._respond(model, self.text)

    async def analyze_mockup(self, model: str, prompt: str, source: MockupSource,
                             max_tokens: int) -> ProviderResponse:
        self.calls.append(("analyze_mockup", prompt))
        self.sources.append(source)
        return await self._respond(model, self.vision_text)


def failing(name: str, priority: int, reason: str = "API error 503", **kwargs) -> FakeProvider:
    return FakeProvider(name, priority, error=ProviderUnavailable(name, reason), **kwargs)


@pytest.fixture
def settings():
    """Settings with short timeouts for testing"""
    return Settings(
        generation_timeout_seconds=1.0,
        vision_timeout_seconds=1.0,
        probe_timeout_seconds=0.2,
    )


@pytest.fixture
def make_registry():
    """Build a frozen registry from fake providers"""
    def _make(*providers, probe_timeout_seconds: float = 0.2) -> ProviderRegistry:
        registry = ProviderRegistry(probe_timeout_seconds=probe_timeout_seconds)
        for provider in providers:
            registry.register(provider)
        registry.freeze()
        return registry
    return _make


@pytest.fixture
def runner():
    return FallbackRunner(CircuitBreakerRegistry())


@pytest.fixture
def fake_provider():
    """Factory for in-memory providers"""
    return FakeProvider


@pytest.fixture
def failing_provider():
    """Factory for providers whose every call raises ProviderUnavailable"""
    return failing
