from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_UPSTREAM_URL = "https://integrate.api.nvidia.com/v1/chat/completions"
DEFAULT_MODEL = "meta/llama3-70b-instruct"


@dataclass(frozen=True)
class RelayConfig:
    api_key: str
    upstream_url: str
    model: str
    timeout_seconds: float
    cors_origin: str
    log_level: str
    host: str
    port: int

    @classmethod
    def from_env(cls) -> RelayConfig:
        return cls(
            api_key=os.environ.get("NVIDIA_API_KEY", ""),
            upstream_url=os.environ.get("UPSTREAM_URL", DEFAULT_UPSTREAM_URL),
            model=os.environ.get("UPSTREAM_MODEL", DEFAULT_MODEL),
            timeout_seconds=float(os.environ.get("UPSTREAM_TIMEOUT_SECONDS", "120") or 120),
            cors_origin=os.environ.get("CORS_ORIGIN", "http://localhost:5173"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "8000")),
        )
