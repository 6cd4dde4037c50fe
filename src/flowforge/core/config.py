"""Client configuration.

Values come from constructor arguments, or from the environment via
ClientConfig.from_env():

    FLOWFORGE_API_BASE          REST base URL
    FLOWFORGE_WS_URL            Push channel URL
    FLOWFORGE_RECONNECT_DELAY   Seconds between push reconnect attempts
    FLOWFORGE_REQUEST_TIMEOUT   Total timeout for one REST request
    FLOWFORGE_NOTIFICATION_TTL  Seconds a notification stays visible
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

DEFAULT_API_BASE = "http://localhost:3000/api"
DEFAULT_WS_URL = "ws://localhost:3000/ws"
DEFAULT_MODEL = "kimi-k2-instruct-0905"


@dataclass
class ClientConfig:
    """Configuration for the FlowForge client."""

    api_base: str = DEFAULT_API_BASE
    ws_url: str = DEFAULT_WS_URL

    # Push channel
    reconnect_delay: float = 3.0

    # REST timeouts (seconds)
    request_timeout: float = 30.0

    # Seconds before a notification auto-dismisses
    notification_ttl: float = 3.0

    default_model: str = DEFAULT_MODEL

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """Build a config from FLOWFORGE_* environment variables.

        Keyword overrides that are not None win over the environment.
        """
        env = os.environ
        values: dict[str, Any] = {
            "api_base": env.get("FLOWFORGE_API_BASE", DEFAULT_API_BASE),
            "ws_url": env.get("FLOWFORGE_WS_URL", DEFAULT_WS_URL),
            "reconnect_delay": float(env.get("FLOWFORGE_RECONNECT_DELAY", "3.0")),
            "request_timeout": float(env.get("FLOWFORGE_REQUEST_TIMEOUT", "30.0")),
            "notification_ttl": float(env.get("FLOWFORGE_NOTIFICATION_TTL", "3.0")),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["api_base"] = values["api_base"].rstrip("/")
        return cls(**values)
