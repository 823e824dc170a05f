# tests/unit/application/services/test_provider_registry.py
import asyncio

import pytest

from application.services.provider_registry import ProviderRegistry
from domain.models.errors import RegistryFrozen
from domain.ports.ai_provider import MOCKUP_ANALYSIS, REQUIREMENTS_ANALYSIS, TEXT_GENERATION

class TestCandidateOrdering:
    """Test priority ordering and preferred-provider override"""

    def test_ascending_priority(self, make_registry, fake_provider):
        """Test lower priority numbers come first regardless of registration order"""
        registry = make_registry(
            fake_provider("gemini", 3),
            fake_provider("anthropic", 1),
            fake_provider("openai", 2),
        )

        assert [p.name for p in registry.candidates()] == ["anthropic", "openai", "gemini"]

    def test_ties_keep_registration_order(self, make_registry, fake_provider):
        registry = make_registry(
            fake_provider("b", 1),
            fake_provider("a", 1),
            fake_provider("c", 0),
        )

        assert [p.name for p in registry.candidates()] == ["c", "b", "a"]

    def test_preferred_provider_first(self, make_registry, fake_provider):
        """Test a resolvable preferred provider leads, others keep priority order"""
        registry = make_registry(
            fake_provider("anthropic", 1),
            fake_provider("openai", 2),
            fake_provider("gemini", 3),
        )

        assert [p.name for p in registry.candidates(preferred="gemini")] == ["gemini", "anthropic", "openai"]

    def test_unknown_preferred_provider_ignored(self, make_registry, fake_provider):
        registry = make_registry(fake_provider("anthropic", 1), fake_provider("openai", 2))

        assert [p.name for p in registry.candidates(preferred="mistral")] == ["anthropic", "openai"]

    def test_vision_only_filters(self, make_registry, fake_provider):
        registry = make_registry(
            fake_provider("anthropic", 1, supports_vision=False),
            fake_provider("openai", 2),
        )

        assert [p.name for p in registry.candidates(vision_only=True)] == ["openai"]

    def test_empty_registry(self, make_registry):
        assert make_registry().candidates() == []

class TestRegistration:
    """Test the startup registration phase"""

    def test_register_after_freeze_rejected(self, make_registry, fake_provider):
        registry = make_registry(fake_provider("anthropic", 1))

        assert registry.frozen
        with pytest.raises(RegistryFrozen):
            registry.register(fake_provider("openai", 2))

    def test_duplicate_name_rejected(self, fake_provider):
        registry = ProviderRegistry()
        registry.register(fake_provider("anthropic", 1))

        with pytest.raises(ValueError):
            registry.register(fake_provider("anthropic", 5))

    def test_lookup(self, make_registry, fake_provider):
        registry = make_registry(fake_provider("anthropic", 1))

        assert registry.get("anthropic").name == "anthropic"
        assert registry.get("openai") is None
        assert len(registry) == 1

class TestAvailabilityReport:
    """Test list_available_providers probing"""

    @pytest.mark.asyncio
    async def test_reports_each_provider(self, make_registry, fake_provider):
        registry = make_registry(
            fake_provider("anthropic", 1),
            fake_provider("openai", 2, available=False),
            fake_provider("gemini", 3, supports_vision=False),
        )

        statuses = await registry.list_available_providers()

        assert [s.to_dict() for s in statuses] == [
            {"name": "anthropic", "priority": 1, "is_available": True,
             "capabilities": [TEXT_GENERATION, REQUIREMENTS_ANALYSIS, MOCKUP_ANALYSIS]},
            {"name": "openai", "priority": 2, "is_available": False,
             "capabilities": [TEXT_GENERATION, REQUIREMENTS_ANALYSIS, MOCKUP_ANALYSIS]},
            {"name": "gemini", "priority": 3, "is_available": True,
             "capabilities": [TEXT_GENERATION, REQUIREMENTS_ANALYSIS]},
        ]

    @pytest.mark.asyncio
    async def test_probe_errors_report_unavailable(self, make_registry, fake_provider):
        registry = make_registry(fake_provider("anthropic", 1, available=RuntimeError("dns failure")))

        statuses = await registry.list_available_providers()

        assert statuses[0].is_available is False

    @pytest.mark.asyncio
    async def test_slow_probe_times_out(self, make_registry, fake_provider):
        """Test a hanging probe reports unavailable after the probe timeout"""
        slow = fake_provider("anthropic", 1)

        async def hang():
            await asyncio.sleep(5)
            return True

        slow.is_available = hang
        registry = make_registry(slow, probe_timeout_seconds=0.05)

        statuses = await registry.list_available_providers()

        assert statuses[0].is_available is False

    @pytest.mark.asyncio
    async def test_unavailable_providers_stay_candidates(self, make_registry, fake_provider):
        """Test probing never removes providers from selection"""
        registry = make_registry(fake_provider("anthropic", 1, available=False))

        await registry.list_available_providers()

        assert [p.name for p in registry.candidates()] == ["anthropic"]
