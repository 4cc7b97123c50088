"""Project analyzer - combines the context builder and the model.

Renders the prompt for a context, calls the model with the
response schema, and validates the reply into an AIAnalysis.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from .context import AnalysisContext
from .errors import AIResponseInvalid
from .model import GeminiClient
from .prompts import (
    KEY_FEATURE_COUNT,
    RESPONSE_FIELDS,
    RESPONSE_SCHEMA,
    SUGGESTION_COUNT,
    build_prompt,
)

logger = logging.getLogger(__name__)

_LIST_LENGTHS = {
    "keyFeatures": KEY_FEATURE_COUNT,
    "suggestions": SUGGESTION_COUNT,
}


@dataclass(frozen=True)
class AIAnalysis:
    """A validated deployment analysis."""

    summary: str
    key_features: tuple[str, ...]
    target_audience: str
    tech_stack_rating: str
    suggestions: tuple[str, ...]
    project_type: str
    github_actions_workflow: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "keyFeatures": list(self.key_features),
            "targetAudience": self.target_audience,
            "techStackRating": self.tech_stack_rating,
            "suggestions": list(self.suggestions),
            "projectType": self.project_type,
            "githubActionsWorkflow": self.github_actions_workflow,
        }

    @classmethod
    def from_dict(cls, data: Any) -> AIAnalysis:
        """Strictly validate a decoded response. Never fills in defaults."""
        if not isinstance(data, dict):
            raise AIResponseInvalid(f"Expected a JSON object, got {type(data).__name__}")

        missing = [f for f in RESPONSE_FIELDS if f not in data]
        if missing:
            raise AIResponseInvalid(f"Response is missing fields: {', '.join(missing)}")

        for name in RESPONSE_FIELDS:
            value = data[name]
            if name in _LIST_LENGTHS:
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise AIResponseInvalid(f"Field {name} must be a list of strings")
                if len(value) != _LIST_LENGTHS[name]:
                    raise AIResponseInvalid(
                        f"Field {name} must have {_LIST_LENGTHS[name]} items, got {len(value)}"
                    )
            elif not isinstance(value, str):
                raise AIResponseInvalid(f"Field {name} must be a string")

        return cls(
            summary=data["summary"],
            key_features=tuple(data["keyFeatures"]),
            target_audience=data["targetAudience"],
            tech_stack_rating=data["techStackRating"],
            suggestions=tuple(data["suggestions"]),
            project_type=data["projectType"],
            github_actions_workflow=data["githubActionsWorkflow"],
        )


def parse_analysis(text: str) -> AIAnalysis:
    """Parse raw model text into an AIAnalysis or raise AIResponseInvalid."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        raise AIResponseInvalid(f"Model returned invalid JSON: {str(text)[:200]}")
    return AIAnalysis.from_dict(data)


class ProjectAnalyzer:
    """Generates a deployment analysis for an AnalysisContext."""

    def __init__(self, client: GeminiClient):
        self.client = client

    def invoke(self, context: AnalysisContext) -> AIAnalysis:
        """One attempt: prompt, call, parse. No retry, no caching."""
        start = time.time()
        prompt = build_prompt(context)
        logger.debug("Prompt for %s: %d chars", context.display_name, len(prompt))

        text = self.client.generate_json(prompt, RESPONSE_SCHEMA)
        analysis = parse_analysis(text)

        logger.debug(
            "Analysis for %s done in %.1fs (%s)",
            context.display_name, time.time() - start, analysis.project_type,
        )
        return analysis
