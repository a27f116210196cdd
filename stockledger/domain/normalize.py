"""Canonical forms for free-text product names and categories."""

from __future__ import annotations

import re
from collections.abc import Iterable

# Packaging-size suffixes that operators append inconsistently ("COCA 100S").
DEFAULT_NOISE_TOKENS: frozenset[str] = frozenset({"100", "100s", "20", "20s", "25", "25s"})

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def normalize(text: str | None, noise_tokens: Iterable[str] = DEFAULT_NOISE_TOKENS) -> str:
    """
    Canonicalize a product name for comparison.

    Lower-cases, removes punctuation and symbols, drops standalone noise
    tokens and collapses whitespace. ``normalize(normalize(x)) == normalize(x)``.

    Args:
        text: Raw product name; None is treated as empty.
        noise_tokens: Lower-case tokens to remove.

    Returns:
        The normalized name, possibly empty.
    """
    if not text:
        return ""
    noise = noise_tokens if isinstance(noise_tokens, (set, frozenset)) else frozenset(noise_tokens)
    stripped = _PUNCTUATION_RE.sub("", text.lower())
    return " ".join(token for token in stripped.split() if token not in noise)


def normalize_category(text: str | None) -> str:
    """Lower-case, trim and collapse whitespace. Punctuation is significant."""
    if not text:
        return ""
    return " ".join(text.lower().split())
