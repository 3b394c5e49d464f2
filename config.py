"""Status panel configuration via Pydantic."""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger("status_panel.config")

_DEFAULT_API_BASE_URL = "https://simple-rag-production-bb72.up.railway.app"
_DEFAULT_WS_URL = "wss://simple-rag-production-bb72.up.railway.app"
_DEFAULT_STATUS_ENDPOINT = "/api/admin/status"


class PanelConfig(BaseModel):
    """Configuration for the status panel."""

    # Status service
    api_base_url: str = Field(
        default=_DEFAULT_API_BASE_URL,
        description="Base URL of the status API",
    )
    status_endpoint: str = Field(
        default=_DEFAULT_STATUS_ENDPOINT,
        description="Path of the status endpoint; also the call log key",
    )
    ws_url: str = Field(
        default=_DEFAULT_WS_URL,
        description="Streaming transport URL (shown in debug mode only)",
    )
    environment: Literal["development", "production"] = Field(
        default="production",
        description="Deployment environment (display only)",
    )

    # Polling
    poll_interval: float = Field(
        default=30.0,
        gt=0,
        le=3600,
        description="Seconds between status polls",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="HTTP request timeout in seconds",
    )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def environment_label(self) -> str:
        """Return ``Development`` or ``Production`` for display."""
        return "Development" if self.is_development else "Production"

    @property
    def status_url(self) -> str:
        return f"{self.api_base_url}{self.status_endpoint}"

    @model_validator(mode="after")
    def resolve_defaults(self) -> PanelConfig:
        """Normalise URLs and apply env var overrides.

        Environment variables (only applied while the field is still at its default):
            STATUS_PANEL_API_URL        → api_base_url
            STATUS_PANEL_WS_URL         → ws_url
            STATUS_PANEL_ENV            → environment
            STATUS_PANEL_ENDPOINT       → status_endpoint
            STATUS_PANEL_POLL_INTERVAL  → poll_interval
            STATUS_PANEL_TIMEOUT        → request_timeout
        """
        if self.api_base_url == _DEFAULT_API_BASE_URL:
            env_url = os.environ.get("STATUS_PANEL_API_URL", "")
            if env_url:
                object.__setattr__(self, "api_base_url", env_url)

        if self.ws_url == _DEFAULT_WS_URL:
            env_ws = os.environ.get("STATUS_PANEL_WS_URL", "")
            if env_ws:
                object.__setattr__(self, "ws_url", env_ws)

        if self.status_endpoint == _DEFAULT_STATUS_ENDPOINT:
            env_endpoint = os.environ.get("STATUS_PANEL_ENDPOINT", "")
            if env_endpoint:
                object.__setattr__(self, "status_endpoint", env_endpoint)

        if self.environment == "production":
            env_name = os.environ.get("STATUS_PANEL_ENV", "").strip().lower()
            if env_name in ("dev", "development"):
                object.__setattr__(self, "environment", "development")

        # Numeric overrides; malformed or out-of-range values are ignored
        if self.poll_interval == 30.0:
            env_poll = os.environ.get("STATUS_PANEL_POLL_INTERVAL")
            if env_poll is not None:
                with contextlib.suppress(ValueError):
                    value = float(env_poll)
                    if 0 < value <= 3600:
                        object.__setattr__(self, "poll_interval", value)

        if self.request_timeout == 10.0:
            env_timeout = os.environ.get("STATUS_PANEL_TIMEOUT")
            if env_timeout is not None:
                with contextlib.suppress(ValueError):
                    value = float(env_timeout)
                    if 0 < value <= 300:
                        object.__setattr__(self, "request_timeout", value)

        object.__setattr__(self, "api_base_url", self.api_base_url.rstrip("/"))
        object.__setattr__(self, "ws_url", self.ws_url.rstrip("/"))
        if not self.status_endpoint.startswith("/"):
            object.__setattr__(self, "status_endpoint", f"/{self.status_endpoint}")

        return self


def load_config_file(path: Path | None) -> dict[str, Any]:
    """Load a JSON config file and return its contents as a dict.

    Returns an empty dict if the file is missing, unreadable, or invalid.
    """
    if path is None:
        return {}
    try:
        data = json.loads(path.read_text())
        if not isinstance(data, dict):
            return {}
        return data
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        logger.debug("Ignoring unreadable config file %s", path)
        return {}
