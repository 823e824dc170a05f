# application/services/prompt_builder.py
"""Deterministic prompt construction.

The same inputs always produce the same prompt, whichever provider ends up
serving it.
"""
import json
from typing import List, Optional

from domain.models.generation_request import GenerationRequest
from domain.models.mockup_analysis import ConsolidatedMockupAnalysis, MockupAnalysisContext
from domain.models.mockup_source import MockupSource, MockupType

REQUIRED_SECTIONS = [
    ("Executive Summary", "Brief overview of the feature"),
    ("Problem Statement", "Clear definition of what we're solving"),
    ("User Stories", "Who will use this and how"),
    ("Functional Requirements", "What the system must do"),
    ("Non-Functional Requirements", "Performance, scalability, security"),
    ("Technical Requirements", "Implementation considerations"),
    ("Acceptance Criteria", "Definition of done"),
    ("Timeline", "Development phases and milestones"),
    ("Risks", "Potential challenges and mitigation strategies"),
]

VISION_SCHEMA = {
    "uiElements": [{"type": "button|textField|label|...", "label": "text",
                    "bounds": {"x": 0, "y": 0, "width": 0, "height": 0}, "confidence": 0.9}],
    "layout": {"screenType": "login|dashboard|form|...", "hierarchyLevels": 2,
               "layoutType": "vertical|horizontal|grid|...",
               "componentGroups": [{"name": "group", "components": ["elem1"], "purpose": "description"}]},
    "extractedText": [{"content": "text", "category": "heading|label|button|...",
                       "bounds": {"x": 0, "y": 0, "width": 0, "height": 0}}],
    "colorScheme": {"primary": ["#hex"], "accent": ["#hex"], "text": ["#hex"], "background": ["#hex"]},
    "inferredFlows": [{"name": "flow", "steps": ["step1", "step2"], "confidence": 0.8}],
    "businessLogic": [{"feature": "name", "description": "desc", "confidence": 0.8,
                       "requiredComponents": ["comp1"]}],
    "overallConfidence": 0.85,
}

# Bounds how much of a consolidated analysis is echoed back into the generation prompt
MAX_SUMMARY_ITEMS = 10


def summarize_mockups(consolidated: ConsolidatedMockupAnalysis) -> str:
    """Plain-text digest of consolidated mockup findings"""
    lines = [
        f"Analyzed {consolidated.analyzed_mockups} of {consolidated.total_mockups} mockups "
        f"(average confidence {consolidated.average_confidence:.2f})",
    ]
    if consolidated.ui_elements:
        lines.append("UI elements: " + ", ".join(consolidated.ui_elements[:MAX_SUMMARY_ITEMS]))
    for flow in consolidated.user_flows[:MAX_SUMMARY_ITEMS]:
        lines.append(f"User flow '{flow.flow_name}': " + " -> ".join(flow.steps))
    for inference in consolidated.business_logic_inferences[:MAX_SUMMARY_ITEMS]:
        lines.append(f"Feature '{inference.feature}': {inference.description}")
    if consolidated.extracted_text:
        quoted = ", ".join(f'"{text}"' for text in consolidated.extracted_text[:MAX_SUMMARY_ITEMS])
        lines.append(f"Visible text: {quoted}")
    return "\n".join(lines)


def build_generation_prompt(request: GenerationRequest, mockup_summary: Optional[str] = None) -> str:
    options = request.options
    parts: List[str] = [
        "<task>Generate Product Requirements Document</task>",
        "",
        "<input>",
        f"Title: {request.title}",
        f"Description: {request.description}",
        f"Priority: {request.priority.value}",
    ]

    if request.mockup_sources:
        parts.append(f"Mockups: {len(request.mockup_sources)} sources provided")

    parts.extend([
        "Options:",
        f"- Include Test Cases: {str(options.include_test_cases).lower()}",
        f"- Include API Spec: {str(options.include_api_spec).lower()}",
        f"- Include Technical Details: {str(options.include_technical_details).lower()}",
    ])
    if options.target_audience:
        parts.append(f"- Target Audience: {options.target_audience}")
    parts.append("</input>")

    if mockup_summary:
        parts.extend(["", "<mockup_analysis>", mockup_summary, "</mockup_analysis>"])

    parts.extend([
        "",
        "<instruction>",
        "Create a comprehensive PRD that includes the following sections:",
        "",
    ])
    parts.extend(f"- {title}: {purpose}" for title, purpose in REQUIRED_SECTIONS)
    parts.extend([
        "",
        "Use clear markdown formatting with one '#' or '##' header per section. "
        "Each section should be detailed and actionable.",
        "Only use information explicitly provided in the input. Do not invent facts.",
    ])
    if options.max_sections is not None:
        parts.append(f"Produce at most {options.max_sections} top-level sections.")
    if options.custom_prompt:
        parts.extend(["", "Additional Requirements:", options.custom_prompt])
    parts.append("</instruction>")

    return "\n".join(parts)


def build_analysis_prompt(text: str) -> str:
    return "\n".join([
        "<task>Analyze Requirements Completeness</task>",
        "",
        f"<input>{text}</input>",
        "",
        "<instruction>",
        "Analyze the completeness and clarity of the provided requirements.",
        "Ask clarification questions only for decisions that cannot be inferred "
        "and would significantly change the architecture.",
        "",
        "Provide your analysis in this JSON format:",
        "{",
        '    "confidence": <0-100>,',
        '    "clarificationsNeeded": [<array of specific questions>],',
        '    "assumptions": [<array of assumptions being made>],',
        '    "gaps": [<array of identified gaps>]',
        "}",
        "</instruction>",
    ])


def _source_reference(source: MockupSource) -> str:
    if source.type == MockupType.BASE64:
        return "attached inline image"
    return source.describe()


def build_mockup_prompt(context: MockupAnalysisContext, source: MockupSource) -> str:
    parts = [
        f'Analyze this UI mockup image for a PRD titled "{context.request_title}".',
        "",
        f"Project Description: {context.request_description}",
        "",
        f"Image: {_source_reference(source)}",
    ]

    if context.existing_analyses:
        seen = sorted({element.type.value
                       for analysis in context.existing_analyses
                       for element in analysis.ui_elements})
        parts.append("")
        parts.append(f"{len(context.existing_analyses)} related mockups were already analyzed.")
        if seen:
            parts.append("Elements seen so far: " + ", ".join(seen))

    parts.extend([
        "",
        "Please provide a comprehensive analysis including:",
        "1. UI Elements: interactive components with approximate positions and labels.",
        "2. Layout Structure: layout type, screen type and component hierarchy.",
        "3. Extracted Text: all visible text with its category.",
        "4. Color Scheme: primary, accent, text and background colors.",
        "5. User Flows: possible interaction flows based on the arrangement.",
        "6. Business Logic: features implied by the elements present.",
        "",
        "Provide your analysis in a structured JSON format matching this schema:",
        json.dumps(VISION_SCHEMA, indent=2),
    ])
    return "\n".join(parts)
