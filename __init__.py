"""
PRD Generation Engine - Provider Orchestration & Response Normalization

Turns free-text product descriptions and optional UI mockups into structured
Product Requirements Documents by orchestrating interchangeable AI providers.

Features:
- Priority-ordered provider selection with a preferred-provider override
- Sequential first-success fallback guarded by per-provider circuit breakers
- Normalization of vendor responses into sections, confidence and cost
- Sequential mockup vision analysis folded into the generation prompt
"""

__version__ = "1.0.0"
__author__ = "PRD Engine Team"
