from __future__ import annotations

import os
from dataclasses import dataclass


def getenv(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, default)
    return v


EMBEDDED_MODE = "embedded"
DELEGATED_MODE = "delegated"


@dataclass
class Settings:
    # Service
    service_name: str = getenv("SERVICE_NAME", "brand-checker") or "brand-checker"
    service_env: str = getenv("SERVICE_ENV", "dev") or "dev"
    log_level: str = getenv("LOG_LEVEL", "INFO") or "INFO"
    log_format: str = getenv("LOG_FORMAT", "json") or "json"
    host: str = getenv("HOST", "0.0.0.0") or "0.0.0.0"
    port: int = int(getenv("PORT", "3001") or "3001")

    # Anthropic Messages API
    anthropic_api_key: str | None = getenv("ANTHROPIC_API_KEY")
    anthropic_model: str = getenv("ANTHROPIC_MODEL", "claude-opus-4-6") or "claude-opus-4-6"
    anthropic_base_url: str = getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com") or "https://api.anthropic.com"
    anthropic_version: str = getenv("ANTHROPIC_VERSION", "2023-06-01") or "2023-06-01"
    # Delegated mode runs a tool call before answering, so keep this generous
    anthropic_timeout: float = float(getenv("ANTHROPIC_TIMEOUT", "90") or "90")
    embedded_max_tokens: int = int(getenv("EMBEDDED_MAX_TOKENS", "2048") or "2048")
    delegated_max_tokens: int = int(getenv("DELEGATED_MAX_TOKENS", "4096") or "4096")

    # AirOps brand kit
    airops_mcp_token: str | None = getenv("AIROPS_MCP_TOKEN")
    airops_mcp_url: str = getenv("AIROPS_MCP_URL", "https://app.airops.com/mcp") or "https://app.airops.com/mcp"
    airops_brand_kit_id: str = getenv("AIROPS_BRAND_KIT_ID", "26564") or "26564"
    airops_api_key: str | None = getenv("AIROPS_API_KEY")
    airops_api_base: str = getenv("AIROPS_API_BASE", "https://app.airops.com/public_api/v1") or "https://app.airops.com/public_api/v1"
    airops_fetch_timeout: float = float(getenv("AIROPS_FETCH_TIMEOUT", "10") or "10")

    # HTTP surface
    cors_allow_origins: str | None = getenv("CORS_ALLOW_ORIGINS")
    max_request_size: int = int(getenv("MAX_REQUEST_SIZE", "52428800") or "52428800")  # 50MB, base64 images

    @property
    def operating_mode(self) -> str:
        """Delegated when an MCP token is present, embedded otherwise."""
        return DELEGATED_MODE if self.airops_mcp_token else EMBEDDED_MODE

    @property
    def brand_kit_mode(self) -> str:
        return "live" if self.operating_mode == DELEGATED_MODE else "static"

    @property
    def is_production(self) -> bool:
        return self.service_env in ["prod", "production"]

    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in (self.cors_allow_origins or "").split(",") if o.strip()]
        return origins or ["*"]


settings = Settings()
