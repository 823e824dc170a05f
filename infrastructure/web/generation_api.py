# infrastructure/web/generation_api.py
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from application.orchestrators.generation_orchestrator import GenerationOrchestrator
from application.services.mockup_aggregator import MockupAnalysisAggregator
from domain.models.errors import (
    AllProvidersExhausted,
    DomainError,
    UnresolvableMockupSource,
    ValidationFailure,
)
from domain.models.generation_request import GenerationOptions, GenerationRequest, Priority
from domain.models.generation_result import GenerationResult
from domain.models.mockup_analysis import MockupAnalysisContext, MockupAnalysisResult
from domain.models.mockup_source import MockupSource, MockupType
from shared.logging import logger

router = APIRouter(prefix="/prd", tags=["prd-generation"])

# Wired by the application through dependency_overrides
async def get_orchestrator() -> GenerationOrchestrator:
    raise RuntimeError("GenerationOrchestrator has not been configured")

# Request/Response models
class MockupSourceModel(BaseModel):
    type: MockupType
    location: str = Field(..., min_length=1)
    metadata: Optional[Dict[str, Any]] = None

    def to_domain(self) -> MockupSource:
        return MockupSource.from_dict(self.model_dump())

class GenerationOptionsModel(BaseModel):
    include_test_cases: bool = True
    include_api_spec: bool = True
    include_technical_details: bool = True
    max_sections: Optional[int] = Field(default=None, ge=1)
    target_audience: Optional[str] = None
    custom_prompt: Optional[str] = None

class GenerateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=20000)
    priority: Priority = Field(default=Priority.MEDIUM)
    mockup_sources: List[MockupSourceModel] = Field(default_factory=list)
    options: GenerationOptionsModel = Field(default_factory=GenerationOptionsModel)
    preferred_provider: Optional[str] = None

class SectionResponse(BaseModel):
    title: str
    content: str
    order: int
    section_type: str

class ProviderFailureResponse(BaseModel):
    provider: str
    operation: str
    reason: str
    error_type: str

class GenerateResponse(BaseModel):
    request_id: str
    content: str
    sections: List[SectionResponse]
    confidence: float
    provider: str
    model: str
    tokens_used: Optional[int] = None
    cost: Optional[float] = None
    processing_time_ms: int
    failed_attempts: List[ProviderFailureResponse] = []
    mockup_analyses: List[Dict[str, Any]] = []
    sla_hours: int
    max_retries: int

class AnalyzeRequirementsRequest(BaseModel):
    text: str = Field(..., min_length=1)
    preferred_provider: Optional[str] = None

class AnalyzeRequirementsResponse(BaseModel):
    confidence: float
    clarifications_needed: List[str]
    assumptions: List[str]
    gaps: List[str]
    degraded: bool

class AnalyzeMockupsRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    mockup_sources: List[MockupSourceModel] = Field(..., min_length=1)
    preferred_provider: Optional[str] = None

class AnalyzeMockupsResponse(BaseModel):
    analyses: List[Dict[str, Any]]
    consolidated: Dict[str, Any]

def mockup_analysis_to_dict(result: MockupAnalysisResult) -> Dict[str, Any]:
    data = asdict(result)
    # Inline image data is never echoed back
    data["source"] = {"type": result.source.type.value, "reference": result.source.describe()}
    data["analyzed_at"] = result.analyzed_at.isoformat()
    return data

def _generate_response(request: GenerationRequest, result: GenerationResult) -> GenerateResponse:
    return GenerateResponse(
        request_id=request.request_id,
        content=result.content,
        sections=[
            SectionResponse(title=s.title, content=s.content, order=s.order,
                            section_type=s.section_type.value)
            for s in result.sections
        ],
        confidence=result.confidence,
        provider=result.provider,
        model=result.model,
        tokens_used=result.tokens_used,
        cost=result.cost,
        processing_time_ms=result.processing_time_ms,
        failed_attempts=[ProviderFailureResponse(**f.to_dict()) for f in result.failed_attempts],
        mockup_analyses=[mockup_analysis_to_dict(a) for a in result.mockup_analyses],
        sla_hours=request.priority.sla_hours,
        max_retries=request.priority.max_retries,
    )

def _http_error(error: DomainError) -> HTTPException:
    if isinstance(error, (ValidationFailure, UnresolvableMockupSource)):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, AllProvidersExhausted):
        return HTTPException(status_code=502, detail={
            "message": str(error),
            "operation": error.operation,
            "failures": [f.to_dict() for f in error.failures],
        })
    return HTTPException(status_code=500, detail=str(error))

@router.post("/generate", response_model=GenerateResponse)
async def generate_prd(
    body: GenerateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
):
    """Generate a PRD, falling back across providers"""

    try:
        request = GenerationRequest(
            title=body.title,
            description=body.description,
            priority=body.priority,
            mockup_sources=[source.to_domain() for source in body.mockup_sources],
            options=GenerationOptions(**body.options.model_dump()),
            preferred_provider=body.preferred_provider,
        )
        result = await orchestrator.generate(request)
        return _generate_response(request, result)

    except DomainError as e:
        logger.error("PRD generation failed", error=str(e), error_type=type(e).__name__)
        raise _http_error(e) from e
    except Exception as e:
        logger.error("Unexpected PRD generation error", error=str(e))
        raise HTTPException(status_code=500, detail=f"Failed to generate PRD: {str(e)}")

@router.post("/analyze", response_model=AnalyzeRequirementsResponse)
async def analyze_requirements(
    body: AnalyzeRequirementsRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
):
    """Assess requirements completeness"""

    try:
        analysis = await orchestrator.analyze_requirements(
            body.text, preferred_provider=body.preferred_provider
        )
        return AnalyzeRequirementsResponse(
            confidence=analysis.confidence,
            clarifications_needed=analysis.clarifications_needed,
            assumptions=analysis.assumptions,
            gaps=analysis.gaps,
            degraded=analysis.is_fallback,
        )

    except DomainError as e:
        logger.error("Requirements analysis failed", error=str(e), error_type=type(e).__name__)
        raise _http_error(e) from e
    except Exception as e:
        logger.error("Unexpected requirements analysis error", error=str(e))
        raise HTTPException(status_code=500, detail=f"Failed to analyze requirements: {str(e)}")

@router.post("/mockups/analyze", response_model=AnalyzeMockupsResponse)
async def analyze_mockups(
    body: AnalyzeMockupsRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
):
    """Analyse mockups sequentially and return per-mockup and consolidated findings"""

    try:
        sources = [source.to_domain() for source in body.mockup_sources]
        context = MockupAnalysisContext(request_title=body.title, request_description=body.description)
        analyses = await orchestrator.analyze_mockups(
            sources, context, preferred_provider=body.preferred_provider
        )
        consolidated = MockupAnalysisAggregator.consolidate(analyses, total_mockups=len(sources))
        return AnalyzeMockupsResponse(
            analyses=[mockup_analysis_to_dict(a) for a in analyses],
            consolidated=asdict(consolidated),
        )

    except DomainError as e:
        logger.error("Mockup analysis failed", error=str(e), error_type=type(e).__name__)
        raise _http_error(e) from e
    except Exception as e:
        logger.error("Unexpected mockup analysis error", error=str(e))
        raise HTTPException(status_code=500, detail=f"Failed to analyze mockups: {str(e)}")

@router.get("/providers")
async def list_providers(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
):
    """Registered providers in selection order with live availability"""

    statuses = await orchestrator.list_available_providers()
    return {"providers": [status.to_dict() for status in statuses]}
