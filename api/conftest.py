"""Pytest configuration and fixtures for the brand checker API."""

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import httpx
import pytest
from fastapi.testclient import TestClient

# Add the api directory to Python path
api_dir = Path(__file__).parent
sys.path.insert(0, str(api_dir))

from brand_checker.core.config import Settings
from brand_checker.main import create_app


ON_BRAND_RESULT = {
    "verdict": "on_brand",
    "summary": "Clear, direct copy that addresses the reader.",
    "win_quote": "Short, second person, no fluff. I have nothing to peck at.",
    "issues": [],
    "passes": [
        {"name": "Second person", "msg": "Speaks to the reader as 'your team'.", "category": "Voice"},
        {"name": "No em dashes", "msg": "Sentence holds together without dramatic pauses.", "category": "Copy"},
    ],
}

OFF_BRAND_RESULT = {
    "verdict": "off_brand",
    "summary": "Cliché opener, a forbidden verb, an em dash and a hollow affirmation.",
    "win_quote": "Three strikes before the first full stop. Cut the scene-setting and say the thing.",
    "issues": [
        {
            "name": "Em dash",
            "severity": "fail",
            "category": "Copy",
            "excerpt": "AI—absolutely",
            "fix": "Use a period instead of the em dash.",
        },
        {
            "name": "Forbidden verb: leverage",
            "severity": "fail",
            "category": "Copy",
            "excerpt": "we leverage AI",
            "fix": "Use a specific verb such as 'use' or 'apply'.",
        },
        {
            "name": "Hollow affirmation",
            "severity": "warn",
            "category": "Voice",
            "excerpt": "absolutely!",
            "fix": "Drop the affirmation and state the point.",
        },
        {
            "name": "Scene-setting opener",
            "severity": "fail",
            "category": "Copy",
            "excerpt": "In today's world",
            "fix": "Open with the point directly.",
        },
    ],
    "passes": [],
}


def message_response(text: str | None, leading_blocks: List[Dict[str, Any]] | None = None) -> Dict[str, Any]:
    """Anthropic Messages API response body carrying ``text``."""
    content = list(leading_blocks or [])
    if text is not None:
        content.append({"type": "text", "text": text})
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "model": "claude-opus-4-6",
        "content": content,
        "stop_reason": "end_turn",
        "usage": {"input_tokens": 1200, "output_tokens": 300},
    }


class OutboundStub:
    """Routes outbound httpx requests to the model or brand kit handler."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.model_handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json=message_response(json.dumps(ON_BRAND_RESULT)))
        )
        self.brand_kit_handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(404, json={"error": "Not found"})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/v1/messages"):
            return self.model_handler(request)
        return self.brand_kit_handler(request)

    def reply_text(self, text: str | None, status_code: int = 200):
        self.model_handler = lambda request: httpx.Response(status_code, json=message_response(text))

    def reply_result(self, result: Dict[str, Any]):
        self.reply_text(json.dumps(result))

    def model_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/v1/messages")]

    def brand_kit_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if "/brand_kits/" in r.url.path]


def make_settings(**overrides) -> Settings:
    """Settings independent of the developer's environment."""
    values = {
        "service_env": "test",
        "log_level": "DEBUG",
        "log_format": "text",
        "anthropic_api_key": "test-key",
        "anthropic_model": "claude-opus-4-6",
        "anthropic_base_url": "https://api.anthropic.com",
        "anthropic_timeout": 90.0,
        "airops_mcp_token": None,
        "airops_mcp_url": "https://app.airops.com/mcp",
        "airops_brand_kit_id": "26564",
        "airops_api_key": None,
        "airops_api_base": "https://app.airops.com/public_api/v1",
        "cors_allow_origins": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def outbound() -> OutboundStub:
    return OutboundStub()


@pytest.fixture
def http_client(outbound) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(outbound))


@pytest.fixture
def client(settings, http_client) -> Generator[TestClient, None, None]:
    """Create a test client for an app in embedded mode."""
    with TestClient(create_app(settings, http_client)) as test_client:
        yield test_client


@pytest.fixture
def on_brand_result() -> Dict[str, Any]:
    return json.loads(json.dumps(ON_BRAND_RESULT))


@pytest.fixture
def off_brand_result() -> Dict[str, Any]:
    return json.loads(json.dumps(OFF_BRAND_RESULT))
