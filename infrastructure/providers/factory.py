# infrastructure/providers/factory.py
from typing import Dict, Type

import httpx

from application.services.provider_registry import ProviderRegistry
from infrastructure.providers.anthropic_provider import AnthropicProvider
from infrastructure.providers.gemini_provider import GeminiProvider
from infrastructure.providers.openai_provider import OpenAIProvider
from shared.config import Settings
from shared.logging import logger

PROVIDER_CLASSES: Dict[str, Type] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
}

def build_provider_registry(settings: Settings, http_client: httpx.AsyncClient) -> ProviderRegistry:
    """Register every provider whose API key is configured, then freeze the registry"""
    registry = ProviderRegistry(probe_timeout_seconds=settings.probe_timeout_seconds)

    for name, credentials in settings.provider_credentials().items():
        if not credentials.configured:
            logger.info("Provider not configured, skipping", provider=name)
            continue

        provider_class = PROVIDER_CLASSES[name]
        registry.register(provider_class(
            api_key=credentials.api_key,
            http_client=http_client,
            model=credentials.model,
            priority=credentials.priority,
            timeout_seconds=settings.generation_timeout_seconds,
            vision_timeout_seconds=settings.vision_timeout_seconds,
            probe_timeout_seconds=settings.probe_timeout_seconds,
        ))

    registry.freeze()
    if not len(registry):
        logger.warning("No AI providers configured; every request will fail with AllProvidersExhausted")
    return registry
