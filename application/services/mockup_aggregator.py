# application/services/mockup_aggregator.py
from dataclasses import replace
from typing import List, Optional, Sequence

from application.services.fallback_runner import FallbackRunner
from application.services.prompt_builder import build_mockup_prompt
from application.services.provider_registry import ProviderRegistry
from domain.models.errors import UnresolvableMockupSource
from domain.models.mockup_analysis import (
    ConsolidatedMockupAnalysis,
    MockupAnalysisContext,
    MockupAnalysisResult,
)
from domain.models.mockup_source import MockupSource, MockupType
from domain.ports.ai_provider import MOCKUP_ANALYSIS, AIProvider, ObjectStoreResolver
from infrastructure.providers.http import inline_file_source
from shared.config import Settings
from shared.logging import logger

class MockupAnalysisAggregator:
    """Sequential vision analysis over the mockups of one request"""

    def __init__(self,
                 registry: ProviderRegistry,
                 runner: FallbackRunner,
                 settings: Settings,
                 resolver: Optional[ObjectStoreResolver] = None):
        self.registry = registry
        self.runner = runner
        self.settings = settings
        self.resolver = resolver

    async def _fetchable(self, source: MockupSource) -> MockupSource:
        """Turn a source into one a vision provider can consume directly.

        Runs before any provider is called, so a bad reference is reported
        against the request and never counted against a provider's circuit.
        """
        if source.type == MockupType.FILE_PATH:
            return inline_file_source(source)
        if source.type != MockupType.S3:
            return source
        if self.resolver is None:
            raise UnresolvableMockupSource(
                f"No object store resolver configured for {source.location}"
            )

        try:
            url = await self.resolver.resolve(source.location)
            return MockupSource(type=MockupType.URL, location=url, metadata=source.metadata)
        except UnresolvableMockupSource:
            raise
        except Exception as e:
            logger.warning("Object store resolution failed", location=source.location, error=str(e))
            raise UnresolvableMockupSource(f"Could not resolve {source.location}: {e}") from e

    async def analyze(self,
                      sources: Sequence[MockupSource],
                      context: MockupAnalysisContext,
                      preferred_provider: Optional[str] = None,
                      request_id: str = "-") -> List[MockupAnalysisResult]:
        """Analyse each source in order; a source that exhausts every provider fails the batch"""
        results: List[MockupAnalysisResult] = []
        candidates = self.registry.candidates(preferred=preferred_provider, vision_only=True)

        logger.info("Analyzing mockups", request_id=request_id, mockup_count=len(sources),
                    candidates=[provider.name for provider in candidates])

        for index, source in enumerate(sources):
            fetchable = await self._fetchable(source)
            # Each mockup sees the analyses of the ones before it
            step_context = replace(
                context,
                existing_analyses=tuple(context.existing_analyses) + tuple(results),
            )
            prompt = build_mockup_prompt(step_context, source)

            async def invoke(provider: AIProvider) -> MockupAnalysisResult:
                response = await provider.analyze_mockup(
                    provider.model, prompt, fetchable, self.settings.vision_max_tokens
                )
                return provider.parser.parse_mockup(response, source)

            outcome = await self.runner.run(
                candidates,
                MOCKUP_ANALYSIS,
                invoke,
                request_id=request_id,
                timeout_seconds=self.settings.vision_timeout_seconds,
            )
            logger.info("Mockup analyzed", request_id=request_id, index=index,
                        provider=outcome.provider.name, confidence=outcome.value.confidence,
                        failed_attempts=len(outcome.failures))
            results.append(outcome.value)

        return results

    @staticmethod
    def consolidate(results: Sequence[MockupAnalysisResult],
                    total_mockups: Optional[int] = None) -> ConsolidatedMockupAnalysis:
        ui_elements = sorted({element.type.value for result in results for element in result.ui_elements})
        average = sum(result.confidence for result in results) / len(results) if results else 0.0

        return ConsolidatedMockupAnalysis(
            total_mockups=total_mockups if total_mockups is not None else len(results),
            analyzed_mockups=len(results),
            ui_elements=ui_elements,
            user_flows=[flow for result in results for flow in result.inferred_user_flows],
            business_logic_inferences=[
                inference for result in results for inference in result.business_logic_inferences
            ],
            extracted_text=[text.text for result in results for text in result.extracted_text],
            average_confidence=average,
        )
