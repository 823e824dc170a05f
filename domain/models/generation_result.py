# domain/models/generation_result.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from domain.models.errors import ProviderFailure
from domain.models.mockup_analysis import MockupAnalysisResult


class SectionType(str, Enum):
    EXECUTIVE_SUMMARY = "executive_summary"
    OVERVIEW = "overview"
    PROBLEM_STATEMENT = "problem_statement"
    USER_STORIES = "user_stories"
    FUNCTIONAL_REQUIREMENTS = "functional_requirements"
    NON_FUNCTIONAL_REQUIREMENTS = "non_functional_requirements"
    TECHNICAL_REQUIREMENTS = "technical_requirements"
    ACCEPTANCE_CRITERIA = "acceptance_criteria"
    TIMELINE = "timeline"
    RISKS = "risks"
    APPENDIX = "appendix"


@dataclass(frozen=True)
class GeneratedSection:
    """A titled block of generated content in document order"""
    title: str
    content: str
    order: int
    section_type: SectionType


@dataclass(frozen=True)
class GenerationResult:
    """Canonical output of a successful generation, whichever provider served it"""
    content: str
    sections: Tuple[GeneratedSection, ...]
    confidence: float
    provider: str
    model: str
    processing_time_ms: int
    cost: Optional[float] = None
    tokens_used: Optional[int] = None
    failed_attempts: Tuple[ProviderFailure, ...] = ()
    mockup_analyses: Tuple[MockupAnalysisResult, ...] = ()


FALLBACK_CLARIFICATION = "Unable to parse analysis - please provide more details"
FALLBACK_GAP = "Analysis parsing failed"


@dataclass(frozen=True)
class RequirementsAnalysis:
    """Completeness assessment of free-text requirements"""
    confidence: float
    clarifications_needed: List[str] = field(default_factory=list)
    assumptions: List[str] = field(default_factory=list)
    gaps: List[str] = field(default_factory=list)

    @classmethod
    def fallback(cls) -> "RequirementsAnalysis":
        """Deterministic analysis used when structured output cannot be decoded"""
        return cls(
            confidence=0.5,
            clarifications_needed=[FALLBACK_CLARIFICATION],
            assumptions=[],
            gaps=[FALLBACK_GAP],
        )

    @property
    def is_fallback(self) -> bool:
        return self.gaps == [FALLBACK_GAP] and self.clarifications_needed == [FALLBACK_CLARIFICATION]
