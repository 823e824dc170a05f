# application/services/provider_registry.py
import asyncio
from typing import Dict, List, Optional

from domain.models.errors import RegistryFrozen
from domain.ports.ai_provider import (
    AIProvider,
    MOCKUP_ANALYSIS,
    REQUIREMENTS_ANALYSIS,
    TEXT_GENERATION,
    ProviderStatus,
)
from shared.logging import logger

class ProviderRegistry:
    """Providers registered at startup, read-only afterwards.

    Selection order is ascending ``priority``; equal priorities keep their
    registration order.
    """

    def __init__(self, probe_timeout_seconds: float = 10.0):
        self.probe_timeout_seconds = probe_timeout_seconds
        self._providers: Dict[str, AIProvider] = {}
        self._frozen = False

    def register(self, provider: AIProvider) -> None:
        if self._frozen:
            raise RegistryFrozen(f"Cannot register {provider.name}: registry is read-only")
        if provider.name in self._providers:
            raise ValueError(f"Provider already registered: {provider.name}")

        self._providers[provider.name] = provider
        logger.info("Provider registered", provider=provider.name, priority=provider.priority,
                    model=provider.model)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[AIProvider]:
        return self._providers.get(name)

    def __len__(self) -> int:
        return len(self._providers)

    def candidates(self, preferred: Optional[str] = None, vision_only: bool = False) -> List[AIProvider]:
        """Ordered candidate list for one request. Performs no I/O."""
        # sorted() is stable, so registration order breaks priority ties
        ordered = sorted(self._providers.values(), key=lambda provider: provider.priority)
        if vision_only:
            ordered = [provider for provider in ordered if provider.supports_vision]

        if preferred:
            match = next((provider for provider in ordered if provider.name == preferred), None)
            if match is None:
                logger.warning("Preferred provider not registered, using default order",
                               preferred_provider=preferred)
            else:
                ordered.remove(match)
                ordered.insert(0, match)

        return ordered

    async def _probe(self, provider: AIProvider) -> bool:
        try:
            return bool(await asyncio.wait_for(provider.is_available(), timeout=self.probe_timeout_seconds))
        except asyncio.TimeoutError:
            logger.warning("Availability probe timed out", provider=provider.name)
            return False
        except Exception as e:
            logger.warning("Availability probe failed", provider=provider.name, error=str(e))
            return False

    async def list_available_providers(self) -> List[ProviderStatus]:
        providers = self.candidates()
        availability = await asyncio.gather(*(self._probe(provider) for provider in providers))

        statuses = []
        for provider, is_available in zip(providers, availability):
            capabilities = [TEXT_GENERATION, REQUIREMENTS_ANALYSIS]
            if provider.supports_vision:
                capabilities.append(MOCKUP_ANALYSIS)
            statuses.append(ProviderStatus(
                name=provider.name,
                priority=provider.priority,
                is_available=is_available,
                capabilities=capabilities,
            ))
        return statuses
