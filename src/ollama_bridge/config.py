"""Configuration: frozen Config with base URL resolution from the environment."""

from __future__ import annotations

from dataclasses import dataclass
import os
from urllib.parse import urlparse

from dotenv import load_dotenv

from ollama_bridge.errors import ConfigurationError

load_dotenv()

DEFAULT_BASE_URL = "http://localhost:11434"
BASE_URL_ENV_VAR = "OLLAMA_HOST"


@dataclass(frozen=True)
class Config:
    """Immutable configuration for an Ollama adapter.

    An explicit ``base_url`` is the supported way to choose the server and
    always wins. ``OLLAMA_HOST`` is only a convenience default consulted when
    ``base_url`` is omitted, falling back to the default local endpoint.

    Example:
        config = Config(base_url="http://gpu-box:11434")
        # or: Config() with OLLAMA_HOST=gpu-box:11434 in the environment
    """

    #: Auto-resolved from ``OLLAMA_HOST`` when *None*.
    base_url: str | None = None
    #: Read/write/pool timeout. Local generations can be slow.
    timeout_s: float = 300.0
    connect_timeout_s: float = 10.0

    def __post_init__(self) -> None:
        """Resolve and normalize the base URL, then validate timeouts."""
        raw = self.base_url
        if raw is None:
            raw = os.environ.get(BASE_URL_ENV_VAR) or DEFAULT_BASE_URL
        object.__setattr__(self, "base_url", _normalize_base_url(raw))

        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="This bounds how long a single read from the server may take.",
            )
        if self.connect_timeout_s <= 0:
            raise ConfigurationError(
                f"connect_timeout_s must be > 0, got {self.connect_timeout_s}",
                hint="This bounds how long establishing a connection may take.",
            )

    @property
    def resolved_base_url(self) -> str:
        """Return the normalized base URL (never None after init)."""
        assert self.base_url is not None  # set in __post_init__
        return self.base_url


def _normalize_base_url(raw: str) -> str:
    """Return *raw* as an http(s) URL without a trailing slash."""
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigurationError(
            "base_url must be a non-empty string",
            hint=f"Pass Config(base_url=...) or set {BASE_URL_ENV_VAR}.",
        )
    url = raw.strip()
    # OLLAMA_HOST is commonly written as host[:port] without a scheme.
    if "://" not in url:
        url = f"http://{url}"

    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigurationError(
            f"Invalid Ollama base URL: {raw!r}",
            hint="Use a URL such as 'http://localhost:11434'.",
        )
    return url.rstrip("/")
