"""
Client runtime settings and constants.
"""
from __future__ import annotations

import logging
import os
from typing import FrozenSet, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

from .assets import AssetCategory


def parse_log_level(name: str) -> int:
    """Map a level name such as ``debug`` to its ``logging`` constant."""
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level {name!r}")
    return level


class Settings:
    """
    Manages client settings: the scene service endpoints, timeouts and the
    operational constants used by the drop-to-render sequence.
    """

    # --- Class Variables (Constants and Static Defaults) ---
    DEFAULT_ENDPOINT: str = "http://localhost:7000"
    """GraphQL endpoint of the scene service."""

    SUBSCRIPTION_PATH: str = "/ws"
    """Path of the WebSocket endpoint serving subscriptions."""

    USER_AGENT: str = "PySceneEdit/0.1"
    """HTTP User-Agent header passed by the client."""

    RENDER_BATCHES: int = 8
    """Batch count sent with every render request."""

    LOG_LEVEL: int = logging.INFO
    """Default logging level for the console client."""

    ENV_PREFIX: str = "PYSCENEDIT_"

    # --- Instance Variables (Configurable per session) ---
    def __init__(self, endpoint: Optional[str] = None):
        self.endpoint: str = endpoint or self.DEFAULT_ENDPOINT
        """GraphQL endpoint queries and mutations are POSTed to."""

        self.subscription_url: str = self._derive_subscription_url(self.endpoint)
        """WebSocket URL used for subscriptions."""

        self.http_timeout: float = 30.0  # seconds
        """Timeout for individual GraphQL HTTP requests."""

        self.render_batches: int = self.RENDER_BATCHES
        """Batch count for the render mutation. Not derived from the dropped asset."""

        self.viewport_accepts: FrozenSet[AssetCategory] = frozenset({AssetCategory.MESH})
        """Asset categories the viewport accepts. Must agree with the palette."""

        self.render_after_create: bool = False
        """Wait for create to succeed before dispatching render."""

        self.log_level: int = self.LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``PYSCENEDIT_*`` environment variables."""
        env = os.environ if environ is None else environ
        p = cls.ENV_PREFIX
        settings = cls(env.get(p + "ENDPOINT"))
        if env.get(p + "SUBSCRIPTION_URL"):
            settings.subscription_url = env[p + "SUBSCRIPTION_URL"]
        if env.get(p + "HTTP_TIMEOUT"):
            settings.http_timeout = float(env[p + "HTTP_TIMEOUT"])
        if env.get(p + "RENDER_BATCHES"):
            settings.render_batches = int(env[p + "RENDER_BATCHES"])
        if env.get(p + "VIEWPORT_ACCEPTS"):
            settings.viewport_accepts = frozenset(
                AssetCategory(c.strip()) for c in env[p + "VIEWPORT_ACCEPTS"].split(",") if c.strip()
            )
        if env.get(p + "RENDER_AFTER_CREATE"):
            settings.render_after_create = env[p + "RENDER_AFTER_CREATE"].lower() in ("1", "true", "yes")
        if env.get(p + "LOG_LEVEL"):
            settings.log_level = parse_log_level(env[p + "LOG_LEVEL"])
        return settings

    def set_endpoint(self, endpoint: str) -> None:
        """Point the client at another service, deriving its WebSocket URL."""
        self.endpoint = endpoint
        self.subscription_url = self._derive_subscription_url(endpoint)

    def _derive_subscription_url(self, endpoint: str) -> str:
        parts = urlsplit(endpoint)
        scheme = "wss" if parts.scheme == "https" else "ws"
        path = parts.path.rstrip("/") + self.SUBSCRIPTION_PATH
        return urlunsplit((scheme, parts.netloc, path, "", ""))

    def __repr__(self) -> str:
        return f"<Settings endpoint={self.endpoint} ws={self.subscription_url}>"
