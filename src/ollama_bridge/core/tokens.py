"""Heuristic token estimation for servers that report no token counts.

Pure and deterministic; no tokenizer or network access. Four independent
strategies are provided:

- ``estimate_tokens``: word-based, the default used by ``count_tokens``.
- ``estimate_tokens_simple``: characters / 4.
- ``estimate_tokens_for_code``: splits on code delimiters and identifier
  boundaries, weighting operators and string literals.
- ``estimate_tokens_mixed``: routes fenced and inline code spans to the code
  estimator and everything else to the word-based one.

Every strategy returns 0 for the empty string and at least 1 for any other
input, including whitespace-only text.
"""

from __future__ import annotations

import math
import re

__all__ = [
    "estimate_tokens",
    "estimate_tokens_for_code",
    "estimate_tokens_mixed",
    "estimate_tokens_simple",
]

SHORT_WORD_MAX = 6
MEDIUM_WORD_MAX = 12
MEDIUM_WORD_TOKENS = 1.5
CHARS_PER_TOKEN = 4
PUNCTUATION_WEIGHT = 0.5
SPECIAL_CHAR_WEIGHT = 0.3
SHORT_IDENTIFIER_MAX = 8
STRING_LITERAL_WEIGHT = 2

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"""[.,!?;:'"()\[\]{}]""")
_SPECIAL_RE = re.compile(r"[0-9@#$%^&*+=<>/\\|`~]")

_CODE_DELIMITER_RE = re.compile(r"[\s(){}\[\];,.]+")
_IDENTIFIER_SPLIT_RE = re.compile(r"[_-]|(?=[A-Z])")
_OPERATOR_RE = re.compile(r"[=+\-*/%<>&|!~^]")
_STRING_LITERAL_RE = re.compile(r"""["'`][^"'`]*["'`]""")

_CODE_SPAN_RE = re.compile(r"(```[\s\S]*?```|`[^`]+`)")
_FENCE_OPEN_RE = re.compile(r"^```\w*\n?")
_FENCE_CLOSE_RE = re.compile(r"```$")


def _floor(text: str, raw: float) -> int:
    """Round *raw* up, keeping non-empty input at one token or more."""
    if not text:
        return 0
    return max(1, math.ceil(raw))


def _word_tokens(text: str) -> float:
    count = 0.0
    for word in _WHITESPACE_RE.split(text):
        if not word:
            continue
        if len(word) <= SHORT_WORD_MAX:
            count += 1
        elif len(word) <= MEDIUM_WORD_MAX:
            count += MEDIUM_WORD_TOKENS
        else:
            count += math.ceil(len(word) / CHARS_PER_TOKEN)
        # Punctuation is often merged into neighbouring tokens.
        count += len(_PUNCTUATION_RE.findall(word)) * PUNCTUATION_WEIGHT

    count += len(_SPECIAL_RE.findall(text)) * SPECIAL_CHAR_WEIGHT
    return count


def _code_tokens(code: str) -> float:
    count = 0.0
    for token in _CODE_DELIMITER_RE.split(code):
        if not token:
            continue
        if len(token) <= SHORT_IDENTIFIER_MAX:
            count += 1
        else:
            # camelCase / snake_case / kebab-case identifiers split into pieces
            pieces = [p for p in _IDENTIFIER_SPLIT_RE.split(token) if p]
            count += max(len(pieces), 1)

    count += len(_OPERATOR_RE.findall(code))
    count += len(_STRING_LITERAL_RE.findall(code)) * STRING_LITERAL_WEIGHT
    return count


def estimate_tokens(text: str) -> int:
    """Estimate tokens with the word-based heuristic.

    Words of up to 6 characters count as one token, up to 12 as one and a
    half, longer words as ``ceil(len / 4)``. Punctuation inside a word adds
    half a token per character, and digits/symbols anywhere add 0.3 each.
    The sum is rounded up once.

    Example:
        >>> estimate_tokens("Hello, world!")
        3
    """
    return _floor(text, _word_tokens(text))


def estimate_tokens_simple(text: str) -> int:
    """Estimate tokens as one per four characters."""
    return _floor(text, len(text) / CHARS_PER_TOKEN)


def estimate_tokens_for_code(code: str) -> int:
    """Estimate tokens for source code."""
    return _floor(code, _code_tokens(code))


def estimate_tokens_mixed(content: str) -> int:
    """Estimate tokens for prose interleaved with markdown code spans.

    Fenced blocks (with an optional language tag) and inline backtick spans
    go to the code estimator; the text between them goes to the word-based
    estimator. Per-span estimates are rounded up individually and summed.
    """
    total = 0
    for segment in _CODE_SPAN_RE.split(content):
        if not segment:
            continue
        if segment.startswith("```"):
            code = _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", segment))
            total += math.ceil(_code_tokens(code))
        elif segment.startswith("`") and segment.endswith("`") and len(segment) > 1:
            total += math.ceil(_code_tokens(segment[1:-1]))
        else:
            total += math.ceil(_word_tokens(segment))
    return _floor(content, total)
