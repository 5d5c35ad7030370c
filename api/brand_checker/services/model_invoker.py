"""The two ways of asking the model for a brand verdict.

``EmbeddedInvoker`` sends the cached brand prompt and constrains the output
to the result contract. ``DelegatedInvoker`` lets the model load the brand
kit itself through the AirOps MCP server and relies on prompt instructions
for the output shape. One of them is chosen at startup by ``build_invoker``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from ..core.config import DELEGATED_MODE, EMBEDDED_MODE, Settings
from .anthropic import MCP_CLIENT_BETA, AnthropicClient, extract_text
from .brand_kit import PromptCell
from .guardrails import ANALYSIS_RESULT_CONTRACT, load_contract
from .prompts import build_delegated_system_prompt

UserContent = Union[str, List[Dict[str, Any]]]

MCP_SERVER_NAME = "airops"
BRAND_KIT_TOOL = "get_brand_kit"


class ModelInvoker(ABC):
    """Sends user content to the model and returns the raw result text."""

    mode: str = ""
    betas: Tuple[str, ...] = ()

    def __init__(self, client: AnthropicClient):
        self.client = client

    @property
    def settings(self) -> Settings:
        return self.client.settings

    @abstractmethod
    def build_payload(self, user_content: UserContent) -> Dict[str, Any]:
        pass

    async def invoke(self, user_content: UserContent) -> str:
        response = await self.client.create_message(self.build_payload(user_content), betas=list(self.betas) or None)
        return extract_text(response)


class EmbeddedInvoker(ModelInvoker):
    mode = EMBEDDED_MODE

    def __init__(self, client: AnthropicClient, cell: PromptCell):
        super().__init__(client)
        self.cell = cell
        self.output_schema = load_contract(ANALYSIS_RESULT_CONTRACT)

    def build_payload(self, user_content: UserContent) -> Dict[str, Any]:
        # One read of the cell per request
        prompt = self.cell.snapshot().prompt
        return {
            "model": self.settings.anthropic_model,
            "max_tokens": self.settings.embedded_max_tokens,
            "system": [{"type": "text", "text": prompt, "cache_control": {"type": "ephemeral"}}],
            "messages": [{"role": "user", "content": user_content}],
            "output_config": {
                "format": {"type": "json_schema", "schema": self.output_schema},
            },
        }


class DelegatedInvoker(ModelInvoker):
    mode = DELEGATED_MODE
    betas = (MCP_CLIENT_BETA,)

    def __init__(self, client: AnthropicClient):
        super().__init__(client)
        self.system_prompt = build_delegated_system_prompt(self.settings.airops_brand_kit_id)

    def build_payload(self, user_content: UserContent) -> Dict[str, Any]:
        return {
            "model": self.settings.anthropic_model,
            "max_tokens": self.settings.delegated_max_tokens,
            "system": self.system_prompt,
            "messages": [{"role": "user", "content": user_content}],
            "mcp_servers": [{
                "type": "url",
                "url": self.settings.airops_mcp_url,
                "name": MCP_SERVER_NAME,
                "authorization_token": self.settings.airops_mcp_token,
            }],
            "tools": [{
                "type": "mcp_toolset",
                "mcp_server_name": MCP_SERVER_NAME,
                "default_config": {"enabled": False},
                "configs": {BRAND_KIT_TOOL: {"enabled": True}},
            }],
        }


def build_invoker(settings: Settings, cell: PromptCell, http_client: Optional[httpx.AsyncClient] = None) -> ModelInvoker:
    client = AnthropicClient(settings, http_client=http_client)
    if settings.operating_mode == DELEGATED_MODE:
        return DelegatedInvoker(client)
    return EmbeddedInvoker(client, cell)
