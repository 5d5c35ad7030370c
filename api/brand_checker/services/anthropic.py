"""Anthropic Messages API integration."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from ..core.config import Settings
from ..core.structured_logging import log_external_call
from ..models.exceptions import EmptyResponseException, ModelCallException, ModelTimeoutException

logger = logging.getLogger(__name__)

MCP_CLIENT_BETA = "mcp-client-2025-11-20"


def _headers(settings: Settings, betas: Optional[List[str]] = None) -> Dict[str, str]:
    """Build standard Anthropic headers."""
    headers = {
        "x-api-key": settings.anthropic_api_key or "",
        "anthropic-version": settings.anthropic_version,
        "Content-Type": "application/json",
    }
    if betas:
        headers["anthropic-beta"] = ",".join(betas)
    return headers


def extract_text(response: Dict[str, Any]) -> str:
    """Return the first text block of a Messages API response.

    Tool-use and tool-result blocks that precede it in delegated mode are skipped.
    """
    for block in response.get("content") or []:
        if isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if not text:
                break
            return text
    raise EmptyResponseException()


def _error_message(response: httpx.Response) -> str:
    try:
        error = response.json().get("error") or {}
        detail = error.get("message")
    except (ValueError, AttributeError):
        detail = None
    if detail:
        return f"Anthropic API error {response.status_code}: {detail}"
    return f"Anthropic API error {response.status_code}"


class AnthropicClient:
    """Thin async client for ``POST /v1/messages``.

    When no ``http_client`` is injected, each call opens its own
    ``httpx.AsyncClient`` bounded by ``settings.anthropic_timeout``.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http_client = http_client

    @property
    def url(self) -> str:
        return f"{self.settings.anthropic_base_url.rstrip('/')}/v1/messages"

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.settings.anthropic_timeout) as client:
            yield client

    async def create_message(self, payload: Dict[str, Any], betas: Optional[List[str]] = None) -> Dict[str, Any]:
        model = payload.get("model", self.settings.anthropic_model)
        if not self.settings.anthropic_api_key:
            raise ModelCallException("ANTHROPIC_API_KEY is not configured", model=model)

        log_external_call(logger, "Anthropic", "messages.create", model=model, betas=betas or [])
        started = time.monotonic()
        async with self._client() as client:
            try:
                response = await client.post(
                    self.url,
                    headers=_headers(self.settings, betas),
                    json=payload,
                    timeout=self.settings.anthropic_timeout,
                )
            except httpx.TimeoutException:
                raise ModelTimeoutException(self.settings.anthropic_timeout, model=model)
            except httpx.HTTPError as e:
                raise ModelCallException(f"Anthropic API request failed: {e}", model=model)

        latency_ms = int((time.monotonic() - started) * 1000)
        if response.status_code != 200:
            raise ModelCallException(_error_message(response), status_code=response.status_code, model=model)

        try:
            result = response.json()
        except ValueError:
            result = None
        if not isinstance(result, dict):
            raise ModelCallException("Anthropic API returned a non-JSON body", status_code=response.status_code, model=model)

        usage = result.get("usage") or {}
        logger.info(
            f"Anthropic call successful using {model}",
            extra={
                "model": model,
                "latency_ms": latency_ms,
                "input_tokens": usage.get("input_tokens"),
                "output_tokens": usage.get("output_tokens"),
                "stop_reason": result.get("stop_reason"),
            },
        )
        return result
