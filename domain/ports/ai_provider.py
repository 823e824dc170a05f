# domain/ports/ai_provider.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from domain.models.generation_result import GeneratedSection, RequirementsAnalysis
from domain.models.mockup_analysis import MockupAnalysisResult
from domain.models.mockup_source import MockupSource

# Capability names reported by providers
TEXT_GENERATION = "text_generation"
REQUIREMENTS_ANALYSIS = "requirements_analysis"
MOCKUP_ANALYSIS = "mockup_analysis"


@dataclass(frozen=True)
class ProviderResponse:
    """Raw decoded payload returned by one provider call"""
    provider: str
    model: str
    payload: Dict[str, Any]


@dataclass(frozen=True)
class ProviderStatus:
    name: str
    priority: int
    is_available: bool
    capabilities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "priority": self.priority,
            "is_available": self.is_available,
            "capabilities": list(self.capabilities),
        }


class ResponseParser(Protocol):
    """Converts a provider's raw payload into canonical structures"""

    def extract_text(self, response: ProviderResponse) -> str: ...

    def total_tokens(self, response: ProviderResponse) -> Optional[int]: ...

    def parse_generation(self, response: ProviderResponse) -> Tuple[str, List[GeneratedSection], float]: ...

    def parse_requirements(self, response: ProviderResponse) -> RequirementsAnalysis: ...

    def parse_mockup(self, response: ProviderResponse, source: MockupSource) -> MockupAnalysisResult: ...


class CostCalculator(Protocol):

    def cost(self, tokens_used: Optional[int], model: str) -> Optional[float]: ...


@runtime_checkable
class AIProvider(Protocol):
    """Capability contract every backing AI service adapter satisfies.

    Lower ``priority`` values are tried first. ``generate`` and
    ``analyze_mockup`` raise ``ProviderUnavailable`` on any failure.
    """
    name: str
    priority: int
    model: str
    supports_vision: bool
    parser: ResponseParser
    cost_calculator: CostCalculator

    async def is_available(self) -> bool: ...

    async def generate(self, model: str, prompt: str, max_tokens: int) -> ProviderResponse: ...

    async def analyze_mockup(self, model: str, prompt: str, source: MockupSource,
                             max_tokens: int) -> ProviderResponse: ...


class ObjectStoreResolver(Protocol):
    """Turns an ``s3://`` reference into a URL a provider can fetch"""

    async def resolve(self, location: str) -> str: ...
