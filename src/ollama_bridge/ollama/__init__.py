"""Ollama backend: wire models, schema conversion, NDJSON streaming."""

from .adapter import OllamaAdapter
from .decoder import NDJSONDecoder, iter_ndjson
from .stream import ChatStream, drain

__all__ = [
    "ChatStream",
    "NDJSONDecoder",
    "OllamaAdapter",
    "drain",
    "iter_ndjson",
]
