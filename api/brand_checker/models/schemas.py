"""Pydantic models for API request and response schemas.

Covers the analyze request as received on the wire, the validated
internal request, the analysis result contract, the brand kit data and
the health payload.
"""

from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import InvalidRequestException

DEFAULT_IMAGE_MEDIA_TYPE = "image/png"


class ContentKind(str, Enum):
    """Kinds of content accepted by the analyze endpoint."""
    TEXT = "text"
    IMAGE = "image"


class Verdict(str, Enum):
    """Overall brand verdict."""
    ON_BRAND = "on_brand"
    NEEDS_WORK = "needs_work"
    OFF_BRAND = "off_brand"


class Severity(str, Enum):
    FAIL = "fail"
    WARN = "warn"


class AnalyzeRequest(BaseModel):
    """Analyze request body as sent by the client.

    Fields are optional here so that missing values reach
    ``to_analysis_request`` and are answered with a 400, not a 422.
    """

    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = Field(
        None,
        description="Content kind: 'text' or 'image'",
        examples=["text"],
    )
    content: Optional[str] = Field(
        None,
        description="Raw text, or base64-encoded image data",
        examples=["Your team can ship faster with clear steps."],
    )
    mimeType: Optional[str] = Field(
        None,
        description="Image media type, defaults to image/png",
        examples=["image/png"],
    )

    def to_analysis_request(self) -> "AnalysisRequest":
        if not self.type or not self.content:
            raise InvalidRequestException("Missing required fields: type and content.")
        try:
            kind = ContentKind(self.type)
        except ValueError:
            raise InvalidRequestException('type must be "text" or "image".')
        return AnalysisRequest(
            kind=kind,
            content=self.content,
            media_type=self.mimeType or DEFAULT_IMAGE_MEDIA_TYPE,
        )


class AnalysisRequest(BaseModel):
    """Validated analyze request."""

    model_config = ConfigDict(frozen=True)

    kind: ContentKind
    content: str
    media_type: str = DEFAULT_IMAGE_MEDIA_TYPE


class Issue(BaseModel):
    """A brand violation found in the submitted content."""

    model_config = ConfigDict(extra="forbid")

    name: str
    severity: Severity
    category: str
    excerpt: str
    fix: str


class Pass(BaseModel):
    """A brand check the content clearly passed."""

    model_config = ConfigDict(extra="forbid")

    name: str
    msg: str
    category: str


class AnalysisResult(BaseModel):
    """The only body shape returned by the analyze endpoint on 200 and 500."""

    model_config = ConfigDict(extra="forbid")

    verdict: Verdict
    summary: str
    win_quote: str
    issues: List[Issue]
    passes: List[Pass]


class WritingRule(BaseModel):
    """Annotated rule entry as returned by the AirOps API."""

    model_config = ConfigDict(extra="ignore")

    text: str


RuleEntry = Union[str, WritingRule]


def normalize_rules(entries: Optional[List[Any]]) -> List[str]:
    """Flatten plain-string and ``{"text": ...}`` rule entries into strings.

    Entries without usable text are dropped.
    """
    rules: List[str] = []
    for entry in entries or []:
        if isinstance(entry, WritingRule):
            text = entry.text
        elif isinstance(entry, dict):
            text = entry.get("text")
        else:
            text = entry
        if isinstance(text, str) and text.strip():
            rules.append(text.strip())
    return rules


class BrandKit(BaseModel):
    """Brand guideline data rendered into the system prompt."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    brand_name: str = ""
    brand_url: str = ""
    brand_about: str = ""
    writing_persona: str = ""
    writing_tone: str = ""
    writing_rules: List[str] = Field(default_factory=list)

    @field_validator("brand_name", "brand_url", "brand_about", "writing_persona", "writing_tone", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("writing_rules", mode="before")
    @classmethod
    def _normalize_rules(cls, v):
        if v is not None and not isinstance(v, (list, tuple)):
            raise ValueError("writing_rules must be a list")
        return normalize_rules(v)


class HealthResponse(BaseModel):
    status: str = "ok"
    model: str
    brand_kit_mode: str
