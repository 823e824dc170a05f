# infrastructure/providers/parsing.py
"""
Provider-agnostic normalization of free-text model output.

Vendors differ only in where the text and the token usage live inside their
payloads; everything after that (section extraction, the confidence heuristic,
embedded-JSON decoding) is shared so results are comparable across providers.
"""
import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from domain.models.generation_result import GeneratedSection, RequirementsAnalysis, SectionType
from domain.models.mockup_analysis import (
    BusinessLogicInference,
    ColorScheme,
    ComponentGroup,
    ElementBounds,
    ExtractedText,
    LayoutStructure,
    LayoutType,
    MockupAnalysisResult,
    ScreenType,
    TextCategory,
    UIElement,
    UIElementType,
    UserFlow,
)
from domain.models.mockup_source import MockupSource
from domain.ports.ai_provider import ProviderResponse
from shared.logging import log_parse_degraded

_HEADER = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
_FENCE = re.compile(r"^\s*(```|~~~)")

# Ordered: the first matching keyword wins
_SECTION_KEYWORDS: Tuple[Tuple[Tuple[str, ...], SectionType], ...] = (
    (("executive", "summary"), SectionType.EXECUTIVE_SUMMARY),
    (("overview", "introduction", "background"), SectionType.OVERVIEW),
    (("problem",), SectionType.PROBLEM_STATEMENT),
    (("user stor", "stories", "persona"), SectionType.USER_STORIES),
    (("non-functional", "nonfunctional", "non functional", "performance"),
     SectionType.NON_FUNCTIONAL_REQUIREMENTS),
    (("technical", "architecture", "api spec"), SectionType.TECHNICAL_REQUIREMENTS),
    (("functional", "requirement"), SectionType.FUNCTIONAL_REQUIREMENTS),
    (("acceptance", "criteria", "test case"), SectionType.ACCEPTANCE_CRITERIA),
    (("timeline", "schedule", "milestone"), SectionType.TIMELINE),
    (("risk",), SectionType.RISKS),
    (("appendix", "addendum"), SectionType.APPENDIX),
)

BASE_CONFIDENCE = 0.7
CONFIDENCE_PER_HEADER = 0.02
MAX_HEADER_BONUS = 0.1

# Bounded search window for embedded JSON
MAX_JSON_SEARCH_CHARS = 100_000

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_OBJECT_START = re.compile(r"\{")


def _header_lines(content: str) -> List[Tuple[int, int, str]]:
    """(line index, level, title) for every ATX header outside fenced code"""
    headers = []
    in_fence = False
    for index, line in enumerate(content.splitlines()):
        if _FENCE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = _HEADER.match(line)
        if match:
            headers.append((index, len(match.group(1)), match.group(2).strip()))
    return headers


def infer_section_type(title: str) -> SectionType:
    lowered = title.lower()
    for keywords, section_type in _SECTION_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return section_type
    return SectionType.APPENDIX


def extract_sections(content: str) -> List[GeneratedSection]:
    """Split markdown into sections.

    A header's body runs until the next header of equal or higher level, so a
    subsection is both its own section and part of its parent's body.
    """
    if not content:
        return []

    lines = content.splitlines()
    headers = _header_lines(content)
    sections = []

    for position, (line_index, level, title) in enumerate(headers):
        end = len(lines)
        for next_index, next_level, _ in headers[position + 1:]:
            if next_level <= level:
                end = next_index
                break

        body = "\n".join(lines[line_index + 1:end]).strip()
        sections.append(GeneratedSection(
            title=title,
            content=body,
            order=position,
            section_type=infer_section_type(title),
        ))

    return sections


def calculate_confidence(content: str) -> float:
    """Heuristic quality estimate from response shape, clamped to [0, 1]"""
    content = content or ""
    confidence = BASE_CONFIDENCE

    if len(content) > 1000:
        confidence += 0.1
    if len(content) > 2000:
        confidence += 0.1

    header_count = len(_header_lines(content))
    confidence += min(MAX_HEADER_BONUS, header_count * CONFIDENCE_PER_HEADER)

    return max(0.0, min(1.0, confidence))


def _balanced_end(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def extract_json_object(text: str) -> Optional[str]:
    """Locate an embedded JSON object in free text.

    Known heuristic, not a JSON parser: a fenced ```json block wins, otherwise
    the object opened by the first ``{`` within the search window is returned
    if its braces balance. Unrelated brace pairs in prose before the payload
    will be picked up instead and fail decoding downstream.
    """
    if not text:
        return None

    window = text[:MAX_JSON_SEARCH_CHARS]

    fenced = _FENCED_JSON.search(window)
    if fenced:
        return fenced.group(1)

    start = _OBJECT_START.search(window)
    if not start:
        return None

    end = _balanced_end(window, start.start())
    if end is None:
        return None
    return window[start.start():end]


def _normalize_confidence(value: Optional[Union[int, float]], percent_scale: bool = False) -> float:
    """Map a reported confidence into [0, 1].

    Values above 1 are read as percentages. With ``percent_scale`` (the prompt
    asked for 0-100) integers are always percentages, so ``1`` means 0.01
    while ``1.0`` and other fractions are taken as already normalized.
    """
    if value is None:
        return 0.0
    if value > 1.0 or (percent_scale and isinstance(value, int)):
        value = value / 100.0
    return max(0.0, min(1.0, float(value)))


class RequirementsAnalysisPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # int and float kept apart so the 0-100 scale can be told from fractions
    confidence: Union[int, float]
    clarifications_needed: List[str] = Field(alias="clarificationsNeeded")
    assumptions: List[str]
    gaps: List[str]


class BoundsPayload(BaseModel):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class UIElementPayload(BaseModel):
    type: str
    label: Optional[str] = None
    bounds: BoundsPayload = Field(default_factory=BoundsPayload)
    confidence: float = 0.0


class ComponentGroupPayload(BaseModel):
    name: str
    components: List[str] = Field(default_factory=list)
    purpose: Optional[str] = None

    @field_validator("components", mode="before")
    @classmethod
    def _component_labels(cls, value: Any) -> List[str]:
        # Models answer with either plain strings or {type, label} objects
        if not isinstance(value, list):
            return []
        labels = []
        for item in value:
            if isinstance(item, str):
                labels.append(item)
            elif isinstance(item, dict):
                labels.append(item.get("label") or item.get("type") or "unknown")
        return labels


class LayoutPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    screen_type: str = Field(default="other", alias="screenType")
    hierarchy_levels: int = Field(default=0, alias="hierarchyLevels")
    layout_type: str = Field(default="mixed", alias="layoutType")
    component_groups: List[ComponentGroupPayload] = Field(default_factory=list, alias="componentGroups")


class TextPayload(BaseModel):
    content: str
    category: str = "other"
    bounds: BoundsPayload = Field(default_factory=BoundsPayload)


class ColorSchemePayload(BaseModel):
    primary: List[str] = Field(default_factory=list)
    accent: List[str] = Field(default_factory=list)
    text: List[str] = Field(default_factory=list)
    background: List[str] = Field(default_factory=list)


class FlowPayload(BaseModel):
    name: str
    steps: List[str] = Field(default_factory=list)
    confidence: Optional[float] = None


class BusinessLogicPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    feature: str
    description: str
    confidence: Optional[float] = None
    required_components: List[str] = Field(default_factory=list, alias="requiredComponents")

    @field_validator("required_components", mode="before")
    @classmethod
    def _default_components(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []


class VisionAnalysisPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ui_elements: List[UIElementPayload] = Field(default_factory=list, alias="uiElements")
    layout: LayoutPayload
    extracted_text: List[TextPayload] = Field(default_factory=list, alias="extractedText")
    color_scheme: Optional[ColorSchemePayload] = Field(default=None, alias="colorScheme")
    inferred_flows: List[FlowPayload] = Field(default_factory=list, alias="inferredFlows")
    business_logic: List[BusinessLogicPayload] = Field(default_factory=list, alias="businessLogic")
    overall_confidence: float = Field(alias="overallConfidence")


def _decode(text: str, model: type) -> Tuple[Optional[BaseModel], str]:
    raw = extract_json_object(text)
    if raw is None:
        return None, "no JSON object found"
    try:
        data = json.loads(raw)
        return model.model_validate(data), ""
    except (ValueError, ValidationError) as e:
        return None, str(e)


def parse_requirements_analysis(text: str, provider: str = "unknown") -> RequirementsAnalysis:
    """Decode embedded requirements JSON, degrading to the fallback analysis"""
    payload, reason = _decode(text, RequirementsAnalysisPayload)
    if payload is None:
        log_parse_degraded(provider, "requirements_analysis", reason)
        return RequirementsAnalysis.fallback()

    return RequirementsAnalysis(
        confidence=_normalize_confidence(payload.confidence, percent_scale=True),
        clarifications_needed=list(payload.clarifications_needed),
        assumptions=list(payload.assumptions),
        gaps=list(payload.gaps),
    )


def _bounds(payload: BoundsPayload) -> ElementBounds:
    return ElementBounds(x=payload.x, y=payload.y, width=payload.width, height=payload.height)


def parse_mockup_analysis(text: str, source: MockupSource, provider: str = "unknown") -> MockupAnalysisResult:
    """Decode embedded vision JSON, degrading to an empty zero-confidence analysis"""
    payload, reason = _decode(text, VisionAnalysisPayload)
    if payload is None:
        log_parse_degraded(provider, "mockup_analysis", reason,
                           {"mockup": source.describe()})
        return MockupAnalysisResult.empty(source, provider=provider)

    layout = LayoutStructure(
        screen_type=ScreenType.parse(payload.layout.screen_type),
        hierarchy_levels=payload.layout.hierarchy_levels,
        primary_layout=LayoutType.parse(payload.layout.layout_type),
        component_groups=[
            ComponentGroup(name=group.name, components=list(group.components), purpose=group.purpose)
            for group in payload.layout.component_groups
        ],
    )

    color_scheme = None
    if payload.color_scheme is not None:
        color_scheme = ColorScheme(
            primary_colors=list(payload.color_scheme.primary),
            accent_colors=list(payload.color_scheme.accent),
            text_colors=list(payload.color_scheme.text),
            background_colors=list(payload.color_scheme.background),
        )

    return MockupAnalysisResult(
        source=source,
        ui_elements=[
            UIElement(
                type=UIElementType.parse(element.type),
                label=element.label,
                bounds=_bounds(element.bounds),
                confidence=_normalize_confidence(element.confidence),
            )
            for element in payload.ui_elements
        ],
        layout_structure=layout,
        extracted_text=[
            ExtractedText(text=item.content, category=TextCategory.parse(item.category), bounds=_bounds(item.bounds))
            for item in payload.extracted_text
        ],
        inferred_user_flows=[
            UserFlow(flow_name=flow.name, steps=list(flow.steps), confidence=_normalize_confidence(flow.confidence))
            for flow in payload.inferred_flows
        ],
        business_logic_inferences=[
            BusinessLogicInference(
                feature=logic.feature,
                description=logic.description,
                confidence=_normalize_confidence(logic.confidence),
                required_components=list(logic.required_components),
            )
            for logic in payload.business_logic
        ],
        confidence=_normalize_confidence(payload.overall_confidence),
        color_scheme=color_scheme,
        provider=provider,
    )


class TextResponseParser:
    """Response parser assembled from a vendor's text and usage extractors"""

    def __init__(self, provider: str,
                 text_extractor: Callable[[Dict[str, Any]], str],
                 usage_extractor: Callable[[Dict[str, Any]], Optional[int]]):
        self.provider = provider
        self._text_extractor = text_extractor
        self._usage_extractor = usage_extractor

    def extract_text(self, response: ProviderResponse) -> str:
        try:
            text = self._text_extractor(response.payload) or ""
        except (KeyError, IndexError, TypeError, AttributeError):
            return ""
        # Downstream parsing only ever sees text
        return text if isinstance(text, str) else ""

    def total_tokens(self, response: ProviderResponse) -> Optional[int]:
        try:
            tokens = self._usage_extractor(response.payload)
        except (KeyError, IndexError, TypeError, AttributeError, ValueError):
            return None
        return int(tokens) if tokens is not None else None

    def parse_generation(self, response: ProviderResponse) -> Tuple[str, List[GeneratedSection], float]:
        content = self.extract_text(response)
        return content, extract_sections(content), calculate_confidence(content)

    def parse_requirements(self, response: ProviderResponse) -> RequirementsAnalysis:
        return parse_requirements_analysis(self.extract_text(response), self.provider)

    def parse_mockup(self, response: ProviderResponse, source: MockupSource) -> MockupAnalysisResult:
        return parse_mockup_analysis(self.extract_text(response), source, self.provider)
