# application/orchestrators/generation_orchestrator.py
import time
from typing import List, Optional, Sequence, Tuple

from application.services.fallback_runner import FallbackRunner
from application.services.mockup_aggregator import MockupAnalysisAggregator
from application.services.prompt_builder import (
    build_analysis_prompt,
    build_generation_prompt,
    summarize_mockups,
)
from application.services.provider_registry import ProviderRegistry
from domain.models.errors import AllProvidersExhausted, ProviderFailure, ValidationFailure
from domain.models.generation_request import GenerationRequest
from domain.models.generation_result import GenerationResult, RequirementsAnalysis
from domain.models.mockup_analysis import MockupAnalysisContext, MockupAnalysisResult
from domain.models.mockup_source import MockupSource
from domain.ports.ai_provider import (
    REQUIREMENTS_ANALYSIS,
    TEXT_GENERATION,
    AIProvider,
    ProviderResponse,
    ProviderStatus,
)
from shared.config import Settings
from shared.logging import logger, log_generation_completed

class GenerationOrchestrator:
    """Entry point for generation, requirements analysis and mockup analysis.

    Every operation walks the registry's candidate list through the fallback
    runner, so callers only ever see a complete canonical result or an
    ``AllProvidersExhausted`` carrying one failure per attempted provider.
    """

    def __init__(self,
                 registry: ProviderRegistry,
                 runner: FallbackRunner,
                 aggregator: MockupAnalysisAggregator,
                 settings: Settings):
        self.registry = registry
        self.runner = runner
        self.aggregator = aggregator
        self.settings = settings

    async def _fold_mockups(self, request: GenerationRequest
                            ) -> Tuple[Optional[str], Tuple[MockupAnalysisResult, ...], List[ProviderFailure]]:
        if not request.mockup_sources or not self.settings.analyze_mockups_before_generation:
            return None, (), []

        context = MockupAnalysisContext(
            request_title=request.title,
            request_description=request.description,
        )
        try:
            analyses = await self.aggregator.analyze(
                request.mockup_sources,
                context,
                preferred_provider=request.preferred_provider,
                request_id=request.request_id,
            )
        except AllProvidersExhausted as e:
            # Generation still proceeds from the text description alone
            logger.warning("Mockup analysis exhausted, generating without it",
                           request_id=request.request_id, failures=len(e.failures))
            return None, (), list(e.failures)

        consolidated = self.aggregator.consolidate(analyses, total_mockups=len(request.mockup_sources))
        return summarize_mockups(consolidated), tuple(analyses), []

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        start_time = time.monotonic()
        logger.info("Generation started", request_id=request.request_id,
                    priority=request.priority.value, mockup_count=len(request.mockup_sources),
                    preferred_provider=request.preferred_provider)

        mockup_summary, analyses, mockup_failures = await self._fold_mockups(request)
        prompt = build_generation_prompt(request, mockup_summary)
        candidates = self.registry.candidates(preferred=request.preferred_provider)

        async def invoke(provider: AIProvider) -> ProviderResponse:
            return await provider.generate(provider.model, prompt, self.settings.generation_max_tokens)

        outcome = await self.runner.run(
            candidates,
            TEXT_GENERATION,
            invoke,
            request_id=request.request_id,
            timeout_seconds=self.settings.generation_timeout_seconds,
        )

        provider = outcome.provider
        response = outcome.value
        content, sections, confidence = provider.parser.parse_generation(response)
        tokens_used = provider.parser.total_tokens(response)
        cost = provider.cost_calculator.cost(tokens_used, response.model)

        result = GenerationResult(
            content=content,
            sections=tuple(sections),
            confidence=confidence,
            provider=provider.name,
            model=response.model,
            processing_time_ms=int((time.monotonic() - start_time) * 1000),
            cost=cost,
            tokens_used=tokens_used,
            failed_attempts=tuple(mockup_failures) + outcome.failures,
            mockup_analyses=analyses,
        )

        log_generation_completed(
            request_id=request.request_id,
            provider=result.provider,
            model=result.model,
            confidence_score=result.confidence,
            section_count=len(result.sections),
            failed_attempts=len(result.failed_attempts),
            tokens_used=tokens_used,
            cost=cost
        )
        return result

    async def analyze_requirements(self, text: str,
                                   preferred_provider: Optional[str] = None,
                                   request_id: str = "-") -> RequirementsAnalysis:
        if not text or not text.strip():
            raise ValidationFailure("requirements text must not be blank")

        prompt = build_analysis_prompt(text)
        candidates = self.registry.candidates(preferred=preferred_provider)

        async def invoke(provider: AIProvider) -> ProviderResponse:
            return await provider.generate(provider.model, prompt, self.settings.analysis_max_tokens)

        outcome = await self.runner.run(
            candidates,
            REQUIREMENTS_ANALYSIS,
            invoke,
            request_id=request_id,
            timeout_seconds=self.settings.generation_timeout_seconds,
        )
        analysis = outcome.provider.parser.parse_requirements(outcome.value)

        logger.info("Requirements analyzed", request_id=request_id, provider=outcome.provider.name,
                    confidence=analysis.confidence, degraded=analysis.is_fallback,
                    failed_attempts=len(outcome.failures))
        return analysis

    async def analyze_mockups(self, sources: Sequence[MockupSource],
                              context: MockupAnalysisContext,
                              preferred_provider: Optional[str] = None,
                              request_id: str = "-") -> List[MockupAnalysisResult]:
        return await self.aggregator.analyze(sources, context,
                                             preferred_provider=preferred_provider,
                                             request_id=request_id)

    async def list_available_providers(self) -> List[ProviderStatus]:
        return await self.registry.list_available_providers()
