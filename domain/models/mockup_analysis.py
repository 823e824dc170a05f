# domain/models/mockup_analysis.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from domain.models.mockup_source import MockupSource


class UIElementType(str, Enum):
    BUTTON = "button"
    TEXT_FIELD = "textField"
    LABEL = "label"
    IMAGE = "image"
    ICON = "icon"
    NAVIGATION_BAR = "navigationBar"
    TAB_BAR = "tabBar"
    TABLE_VIEW = "tableView"
    COLLECTION_VIEW = "collectionView"
    CARD = "card"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO_BUTTON = "radioButton"
    SLIDER = "slider"
    TOGGLE = "toggle"
    SEARCH_BAR = "searchBar"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "UIElementType":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class ScreenType(str, Enum):
    LOGIN = "login"
    DASHBOARD = "dashboard"
    FORM = "form"
    LIST = "list"
    DETAIL = "detail"
    SETTINGS = "settings"
    PROFILE = "profile"
    SEARCH = "search"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ScreenType":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class LayoutType(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    GRID = "grid"
    STACK = "stack"
    CARD = "card"
    MIXED = "mixed"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LayoutType":
        try:
            return cls(value)
        except ValueError:
            return cls.MIXED


class TextCategory(str, Enum):
    HEADING = "heading"
    SUBHEADING = "subheading"
    BODY = "body"
    LABEL = "label"
    BUTTON = "button"
    PLACEHOLDER = "placeholder"
    ERROR = "error"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TextCategory":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class ElementBounds:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class UIElement:
    type: UIElementType
    label: Optional[str]
    bounds: ElementBounds
    confidence: float


@dataclass(frozen=True)
class ComponentGroup:
    name: str
    components: List[str]
    purpose: Optional[str] = None


@dataclass(frozen=True)
class LayoutStructure:
    screen_type: ScreenType
    hierarchy_levels: int
    primary_layout: LayoutType
    component_groups: List[ComponentGroup] = field(default_factory=list)

    @classmethod
    def unknown(cls) -> "LayoutStructure":
        return cls(screen_type=ScreenType.OTHER, hierarchy_levels=0, primary_layout=LayoutType.MIXED)


@dataclass(frozen=True)
class ExtractedText:
    text: str
    category: TextCategory
    bounds: ElementBounds


@dataclass(frozen=True)
class ColorScheme:
    primary_colors: List[str]
    accent_colors: List[str]
    text_colors: List[str]
    background_colors: List[str]


@dataclass(frozen=True)
class UserFlow:
    flow_name: str
    steps: List[str]
    confidence: float


@dataclass(frozen=True)
class BusinessLogicInference:
    feature: str
    description: str
    confidence: float
    required_components: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MockupAnalysisResult:
    """Immutable vision analysis of one mockup"""
    source: MockupSource
    ui_elements: List[UIElement]
    layout_structure: LayoutStructure
    extracted_text: List[ExtractedText]
    inferred_user_flows: List[UserFlow]
    business_logic_inferences: List[BusinessLogicInference]
    confidence: float
    color_scheme: Optional[ColorScheme] = None
    provider: Optional[str] = None
    analyzed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def empty(cls, source: MockupSource, provider: Optional[str] = None) -> "MockupAnalysisResult":
        """Zero-confidence analysis used when vision output cannot be decoded"""
        return cls(
            source=source,
            ui_elements=[],
            layout_structure=LayoutStructure.unknown(),
            extracted_text=[],
            inferred_user_flows=[],
            business_logic_inferences=[],
            confidence=0.0,
            provider=provider,
        )


@dataclass(frozen=True)
class MockupAnalysisContext:
    """Request context handed to the vision prompt"""
    request_title: str
    request_description: str
    existing_analyses: Tuple[MockupAnalysisResult, ...] = ()


@dataclass(frozen=True)
class ConsolidatedMockupAnalysis:
    """Merged view over every analysed mockup of one request"""
    total_mockups: int
    analyzed_mockups: int
    ui_elements: List[str]
    user_flows: List[UserFlow]
    business_logic_inferences: List[BusinessLogicInference]
    extracted_text: List[str]
    average_confidence: float
