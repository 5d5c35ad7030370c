"""Unit tests for the Anthropic Messages API client."""

import json

import httpx
import pytest

from brand_checker.models.exceptions import EmptyResponseException, ModelCallException, ModelTimeoutException
from brand_checker.services.anthropic import AnthropicClient, _headers, extract_text
from conftest import make_settings, message_response

PAYLOAD = {"model": "claude-opus-4-6", "max_tokens": 16, "messages": [{"role": "user", "content": "hi"}]}


def _client(handler, **overrides) -> AnthropicClient:
    return AnthropicClient(
        make_settings(**overrides),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestHeaders:

    def test_standard_headers(self):
        headers = _headers(make_settings(anthropic_api_key="sk-test"))
        assert headers["x-api-key"] == "sk-test"
        assert headers["anthropic-version"] == "2023-06-01"
        assert headers["Content-Type"] == "application/json"
        assert "anthropic-beta" not in headers

    def test_beta_header(self):
        headers = _headers(make_settings(), betas=["a-beta", "b-beta"])
        assert headers["anthropic-beta"] == "a-beta,b-beta"


class TestExtractText:
    """Test cases for picking the authoritative text block."""

    def test_first_text_block_wins(self):
        response = message_response("second", leading_blocks=[
            {"type": "mcp_tool_use", "id": "t1", "name": "get_brand_kit", "input": {"id": "26564"}},
            {"type": "mcp_tool_result", "tool_use_id": "t1", "content": [{"type": "text", "text": "{}"}]},
            {"type": "text", "text": "first"},
        ])
        assert extract_text(response) == "first"

    def test_no_text_block(self):
        response = message_response(None, leading_blocks=[{"type": "mcp_tool_use", "id": "t1"}])
        with pytest.raises(EmptyResponseException, match="No text in response"):
            extract_text(response)

    def test_empty_first_text_block(self):
        response = {"content": [{"type": "text", "text": ""}, {"type": "text", "text": "{\"late\": 1}"}]}
        with pytest.raises(EmptyResponseException):
            extract_text(response)

    def test_empty_content(self):
        with pytest.raises(EmptyResponseException):
            extract_text({"content": []})
        with pytest.raises(EmptyResponseException):
            extract_text({})


class TestCreateMessage:
    """Test cases for the HTTP call."""

    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json=message_response("ok"))

        result = await _client(handler).create_message(PAYLOAD, betas=["mcp-client-2025-11-20"])

        assert extract_text(result) == "ok"
        request = seen["request"]
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["anthropic-beta"] == "mcp-client-2025-11-20"
        assert json.loads(request.content) == PAYLOAD

    @pytest.mark.asyncio
    async def test_api_error_message_surfaces(self):
        def handler(request):
            return httpx.Response(429, json={"type": "error", "error": {"type": "rate_limit_error", "message": "Slow down"}})

        with pytest.raises(ModelCallException, match="Anthropic API error 429: Slow down") as exc_info:
            await _client(handler).create_message(PAYLOAD)
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_api_error_without_body(self):
        with pytest.raises(ModelCallException, match="Anthropic API error 502"):
            await _client(lambda request: httpx.Response(502, text="bad gateway")).create_message(PAYLOAD)

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ModelTimeoutException, match="timed out after 90s"):
            await _client(handler).create_message(PAYLOAD)

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ModelCallException, match="Anthropic API request failed"):
            await _client(handler).create_message(PAYLOAD)

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=message_response("ok"))

        with pytest.raises(ModelCallException, match="ANTHROPIC_API_KEY is not configured"):
            await _client(handler, anthropic_api_key=None).create_message(PAYLOAD)
        assert calls == []

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        with pytest.raises(ModelCallException, match="non-JSON body"):
            await _client(lambda request: httpx.Response(200, text="oops")).create_message(PAYLOAD)
