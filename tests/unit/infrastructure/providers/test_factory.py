# tests/unit/infrastructure/providers/test_factory.py
import httpx
import pytest

from domain.models.errors import RegistryFrozen
from infrastructure.providers.anthropic_provider import AnthropicProvider
from infrastructure.providers.factory import build_provider_registry
from shared.config import ProviderCredentials, Settings

@pytest.fixture
def clear_provider_env(monkeypatch):
    for name in ("ANTHROPIC", "OPENAI", "GEMINI"):
        for suffix in ("API_KEY", "MODEL", "PRIORITY"):
            monkeypatch.delenv(f"{name}_{suffix}", raising=False)
    return monkeypatch

class TestSettings:
    """Test environment-driven configuration"""

    def test_defaults(self, clear_provider_env):
        settings = Settings.from_env()

        assert settings.anthropic.priority == 1
        assert settings.openai.priority == 2
        assert settings.gemini.priority == 3
        assert settings.generation_timeout_seconds == 60.0
        assert settings.vision_timeout_seconds == 120.0
        assert settings.probe_timeout_seconds == 10.0
        assert not any(c.configured for c in settings.provider_credentials().values())

    def test_overrides(self, clear_provider_env):
        clear_provider_env.setenv("OPENAI_API_KEY", "sk-test")
        clear_provider_env.setenv("OPENAI_MODEL", "gpt-4o-mini")
        clear_provider_env.setenv("OPENAI_PRIORITY", "0")
        clear_provider_env.setenv("ANALYZE_MOCKUPS_BEFORE_GENERATION", "false")

        settings = Settings.from_env()

        assert settings.openai == ProviderCredentials(api_key="sk-test", model="gpt-4o-mini", priority=0)
        assert settings.analyze_mockups_before_generation is False

class TestProviderFactory:
    """Test registry construction from settings"""

    @pytest.mark.asyncio
    async def test_only_configured_providers_registered(self):
        settings = Settings(
            anthropic=ProviderCredentials(api_key="sk-ant", model="claude-3-5-sonnet-20241022", priority=1),
            gemini=ProviderCredentials(api_key="g-key", model="gemini-2.0-flash", priority=0),
        )

        async with httpx.AsyncClient() as client:
            registry = build_provider_registry(settings, client)

        assert [p.name for p in registry.candidates()] == ["gemini", "anthropic"]
        assert isinstance(registry.get("anthropic"), AnthropicProvider)
        assert registry.get("openai") is None

    @pytest.mark.asyncio
    async def test_registry_frozen_after_build(self):
        async with httpx.AsyncClient() as client:
            registry = build_provider_registry(Settings(), client)

            assert len(registry) == 0
            with pytest.raises(RegistryFrozen):
                registry.register(AnthropicProvider("sk-ant", client))
