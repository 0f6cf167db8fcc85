# src/search/normalize.py
"""
Light text normalization + suffix stemming for advocate matching.

Used for client-side filtering of already-loaded rows, by the in-memory
backend, and to turn user text into FTS5 tokens. The stemmer only targets
plural/singular variants ("disorders" -> "disorder", "therapies" ->
"therapy"); irregular words may be over- or under-stemmed.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Mapping
from typing import Any

_PUNCT_RE = re.compile(r"[()\[\],.:;'\"`]")
_SLASH_RE = re.compile(r"[/\\]")
_DASH_RE = re.compile(r"[-_]")
_WS_RE = re.compile(r"\s+")


def _strip_diacritics(s: str) -> str:
    decomposed = unicodedata.normalize("NFD", s)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(raw: str | None) -> str:
    """
    Lowercase, fold diacritics, expand '&', and replace punctuation with spaces.

    normalize_text(normalize_text(x)) == normalize_text(x).
    """
    if not raw:
        return ""
    s = _strip_diacritics(str(raw).lower())
    s = s.replace("&", " and ")
    s = _SLASH_RE.sub(" ", s)
    s = _PUNCT_RE.sub(" ", s)
    s = _DASH_RE.sub(" ", s)
    return _WS_RE.sub(" ", s).strip()


def stem_word(word: str) -> str:
    if len(word) <= 3:
        return word
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith("sses"):
        return word[:-2]  # classes -> class
    if word.endswith("es") and len(word) > 4:
        return word[:-2]  # boxes -> box
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def stem_words(text: str) -> str:
    """Stem each space-separated word of an already normalized string."""
    return " ".join(stem_word(w) for w in text.split(" "))


def tokenize(raw: str | None) -> list[str]:
    """Normalized, non-empty word tokens of raw user text."""
    norm = normalize_text(raw)
    return [tok for tok in norm.split(" ") if tok]


def text_matches(term_norm: str, term_stem: str, candidate: Any) -> bool:
    norm = normalize_text(candidate if isinstance(candidate, str) else str(candidate or ""))
    # Fast path: exact normalized substring
    if term_norm in norm:
        return True
    return term_stem in stem_words(norm)


def _matcher_for(raw_term: str) -> tuple[str, str]:
    term_norm = normalize_text(raw_term)
    return term_norm, stem_words(term_norm)


def advocate_matches(advocate: Mapping[str, Any], raw_term: str) -> bool:
    term_norm, term_stem = _matcher_for(raw_term)
    if not term_norm:
        return True
    return _advocate_matches(advocate, term_norm, term_stem)


def _advocate_matches(advocate: Mapping[str, Any], term_norm: str, term_stem: str) -> bool:
    for field in ("firstName", "lastName", "city", "degree"):
        if text_matches(term_norm, term_stem, advocate.get(field)):
            return True
    if any(text_matches(term_norm, term_stem, s) for s in advocate.get("specialties") or []):
        return True
    return term_norm in str(advocate.get("yearsOfExperience", ""))


def filter_advocates(
    advocates: Iterable[Mapping[str, Any]],
    raw_term: str | None,
) -> list[Mapping[str, Any]]:
    """
    Return the advocates matching raw_term on any text field or on years.

    A blank term returns every advocate unchanged.
    """
    rows = list(advocates)
    trimmed = (raw_term or "").strip()
    if not trimmed:
        return rows

    term_norm, term_stem = _matcher_for(trimmed)
    if not term_norm:
        return rows
    return [a for a in rows if _advocate_matches(a, term_norm, term_stem)]


__all__ = [
    "normalize_text",
    "stem_word",
    "stem_words",
    "tokenize",
    "text_matches",
    "advocate_matches",
    "filter_advocates",
]
