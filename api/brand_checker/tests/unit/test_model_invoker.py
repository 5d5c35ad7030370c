"""Unit tests for the embedded and delegated model invokers."""

import json

import httpx
import pytest

from brand_checker.core.config import DELEGATED_MODE, EMBEDDED_MODE
from brand_checker.models.schemas import BrandKit
from brand_checker.services.anthropic import AnthropicClient
from brand_checker.services.brand_kit import PromptCell
from brand_checker.services.guardrails import ANALYSIS_RESULT_CONTRACT, load_contract
from brand_checker.services.model_invoker import DelegatedInvoker, EmbeddedInvoker, ModelInvoker, build_invoker
from conftest import OutboundStub, make_settings


def _anthropic(outbound, **overrides) -> AnthropicClient:
    return AnthropicClient(
        make_settings(**overrides),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(outbound)),
    )


class TestBuildInvoker:

    def test_embedded_without_mcp_token(self):
        invoker = build_invoker(make_settings(), PromptCell())
        assert isinstance(invoker, EmbeddedInvoker)
        assert invoker.mode == EMBEDDED_MODE

    def test_delegated_with_mcp_token(self):
        invoker = build_invoker(make_settings(airops_mcp_token="mcp-token"), PromptCell())
        assert isinstance(invoker, DelegatedInvoker)
        assert invoker.mode == DELEGATED_MODE

    def test_base_invoker_is_abstract(self):
        with pytest.raises(TypeError):
            ModelInvoker(_anthropic(OutboundStub()))

    def test_betas_per_mode(self):
        assert EmbeddedInvoker.betas == ()
        assert DelegatedInvoker.betas == ("mcp-client-2025-11-20",)


class TestEmbeddedInvoker:
    """Test cases for the schema-constrained call."""

    def test_payload(self):
        cell = PromptCell()
        invoker = EmbeddedInvoker(_anthropic(OutboundStub()), cell)

        payload = invoker.build_payload("Check this")

        assert payload["model"] == "claude-opus-4-6"
        assert payload["max_tokens"] == 2048
        assert payload["system"] == [
            {"type": "text", "text": cell.prompt, "cache_control": {"type": "ephemeral"}}
        ]
        assert payload["messages"] == [{"role": "user", "content": "Check this"}]
        assert payload["output_config"]["format"] == {
            "type": "json_schema",
            "schema": load_contract(ANALYSIS_RESULT_CONTRACT),
        }
        assert "tools" not in payload
        assert "mcp_servers" not in payload

    def test_payload_follows_cell_replacement(self):
        cell = PromptCell()
        invoker = EmbeddedInvoker(_anthropic(OutboundStub()), cell)
        cell.replace(BrandKit(brand_about="Replaced about.", writing_rules=["Only rule."]))

        prompt = invoker.build_payload("x")["system"][0]["text"]
        assert "Replaced about." in prompt
        assert "1. Only rule." in prompt

    @pytest.mark.asyncio
    async def test_invoke_returns_text(self):
        outbound = OutboundStub()
        outbound.reply_text('{"verdict": "on_brand"}')
        invoker = EmbeddedInvoker(_anthropic(outbound), PromptCell())

        text = await invoker.invoke("Check this")

        assert text == '{"verdict": "on_brand"}'
        request = outbound.model_requests()[0]
        assert "anthropic-beta" not in request.headers


class TestDelegatedInvoker:
    """Test cases for the MCP-backed call."""

    def test_payload(self):
        invoker = DelegatedInvoker(_anthropic(OutboundStub(), airops_mcp_token="mcp-token", airops_brand_kit_id="777"))

        payload = invoker.build_payload("Check this")

        assert payload["max_tokens"] == 4096
        assert "call get_brand_kit with id=777" in payload["system"]
        assert "output_config" not in payload
        assert payload["mcp_servers"] == [{
            "type": "url",
            "url": "https://app.airops.com/mcp",
            "name": "airops",
            "authorization_token": "mcp-token",
        }]
        toolset = payload["tools"][0]
        assert toolset["type"] == "mcp_toolset"
        assert toolset["default_config"] == {"enabled": False}
        assert toolset["configs"] == {"get_brand_kit": {"enabled": True}}

    @pytest.mark.asyncio
    async def test_invoke_sends_beta_header(self):
        outbound = OutboundStub()
        outbound.reply_text("{}")
        invoker = DelegatedInvoker(_anthropic(outbound, airops_mcp_token="mcp-token"))

        await invoker.invoke("Check this")

        request = outbound.model_requests()[0]
        assert request.headers["anthropic-beta"] == "mcp-client-2025-11-20"
        assert json.loads(request.content)["mcp_servers"][0]["name"] == "airops"
