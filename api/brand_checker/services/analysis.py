"""Brand analysis orchestration.

Flow:
1. Build the user-content payload for the request kind
2. Dispatch through the configured ``ModelInvoker``
3. Parse the first text block as JSON
4. Validate it against the analysis result contract

Any failure after request validation is reported with ``fallback_result``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from ..models.exceptions import BrandCheckerException, ResultParseException
from ..models.schemas import AnalysisRequest, AnalysisResult, ContentKind, Issue, Severity, Verdict
from .guardrails import ANALYSIS_RESULT_CONTRACT, validate_contract
from .model_invoker import ModelInvoker, UserContent
from .prompts import IMAGE_INSTRUCTION, TEXT_CONTENT_FRAME

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "An error occurred during analysis. Please try again."
FALLBACK_QUOTE = "Something went wrong on my end. Check the server logs and try again."


def build_user_content(request: AnalysisRequest) -> UserContent:
    if request.kind == ContentKind.TEXT:
        return TEXT_CONTENT_FRAME.format(content=request.content)
    return [
        {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": request.media_type,
                "data": request.content,
            },
        },
        {"type": "text", "text": IMAGE_INSTRUCTION},
    ]


def parse_result(text: str) -> Dict[str, Any]:
    """Parse model text into a JSON object.

    Prose or markdown fences around the object are tolerated; anything
    that is not a JSON object is rejected.
    """
    start = text.find("{")
    end = text.rfind("}")
    candidate = text[start:end + 1] if start != -1 and end > start else text
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResultParseException(f"Model returned invalid JSON: {e.msg}")
    if not isinstance(parsed, dict):
        raise ResultParseException("Model returned JSON that is not an object")
    return parsed


def validate_result(payload: Dict[str, Any]) -> AnalysisResult:
    validate_contract(ANALYSIS_RESULT_CONTRACT, payload)
    return AnalysisResult.model_validate(payload)


def error_message(exc: Exception) -> str:
    if isinstance(exc, BrandCheckerException):
        return exc.message
    return str(exc) or type(exc).__name__


def fallback_result(exc: Exception) -> AnalysisResult:
    """The fixed result shape reported when analysis fails server side."""
    return AnalysisResult(
        verdict=Verdict.NEEDS_WORK,
        summary=FALLBACK_SUMMARY,
        win_quote=FALLBACK_QUOTE,
        issues=[
            Issue(
                name="Server error",
                severity=Severity.WARN,
                category="Setup",
                excerpt="",
                fix=error_message(exc),
            )
        ],
        passes=[],
    )


class AnalysisService:
    """Runs one analysis through the injected invoker."""

    def __init__(self, invoker: ModelInvoker):
        self.invoker = invoker

    @property
    def mode(self) -> str:
        return self.invoker.mode

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        user_content = build_user_content(request)
        text = await self.invoker.invoke(user_content)
        result = validate_result(parse_result(text))
        logger.info(
            f"Analysis complete: {result.verdict.value}",
            extra={
                "mode": self.mode,
                "content_kind": request.kind.value,
                "verdict": result.verdict.value,
                "issues_count": len(result.issues),
                "passes_count": len(result.passes),
            },
        )
        return result
