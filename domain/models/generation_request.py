# domain/models/generation_request.py
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from domain.models.errors import ValidationFailure
from domain.models.mockup_source import MockupSource


class Priority(str, Enum):
    """Request urgency. Unrelated to provider selection priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @property
    def sla_hours(self) -> int:
        return _PRIORITY_SLA_HOURS[self]

    @property
    def max_retries(self) -> int:
        """Whole-pipeline retries the caller may attempt"""
        return _PRIORITY_MAX_RETRIES[self]

    @property
    def requires_immediate_processing(self) -> bool:
        return self is Priority.CRITICAL

    # str comparisons would order alphabetically
    def __lt__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank >= other.rank


_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2, Priority.CRITICAL: 3}
_PRIORITY_SLA_HOURS = {Priority.LOW: 72, Priority.MEDIUM: 24, Priority.HIGH: 8, Priority.CRITICAL: 2}
_PRIORITY_MAX_RETRIES = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3, Priority.CRITICAL: 5}


@dataclass(frozen=True)
class GenerationOptions:
    """Immutable switches shaping the generated document"""
    include_test_cases: bool = True
    include_api_spec: bool = True
    include_technical_details: bool = True
    max_sections: Optional[int] = None
    target_audience: Optional[str] = None
    custom_prompt: Optional[str] = None

    def __post_init__(self):
        if self.max_sections is not None and self.max_sections < 1:
            raise ValidationFailure("max_sections must be at least 1")


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable input for one document generation"""
    title: str
    description: str
    priority: Priority = Priority.MEDIUM
    mockup_sources: Tuple[MockupSource, ...] = ()
    options: GenerationOptions = field(default_factory=GenerationOptions)
    preferred_provider: Optional[str] = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValidationFailure("title must not be blank")
        if not self.description or not self.description.strip():
            raise ValidationFailure("description must not be blank")
        try:
            object.__setattr__(self, "priority", Priority(self.priority))
        except ValueError:
            raise ValidationFailure(f"Unknown priority: {self.priority!r}")
        # Lists handed in by callers are frozen into a tuple
        object.__setattr__(self, "mockup_sources", tuple(self.mockup_sources))
