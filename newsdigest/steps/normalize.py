"""
Content normalization: turn an article body into a short canonical lead and
a stable fingerprint for exact-duplicate detection. The full body, stripped of
markup, is kept alongside for display and synthesis.
"""

import hashlib
import re

from ..core.models import NormalizedFragment, RawArticle

# All articles without usable content share this fingerprint, which makes them
# exact duplicates of each other.
EMPTY_FINGERPRINT = "empty"

MIN_SENTENCE_CHARS = 10

_TAG_RE = re.compile(r"<[^>]*>")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_WS_RE = re.compile(r"\s+")


def strip_markup(text: str) -> str:
    return _TAG_RE.sub(" ", text or "")


def clean_body(text: str) -> str:
    return _WS_RE.sub(" ", strip_markup(text)).strip()


def extract_lead(text: str, max_sentences: int = 2) -> str:
    """First ``max_sentences`` sentence-like units of ``text``, joined with ". "."""
    if max_sentences <= 0:
        raise ValueError("max_sentences must be a positive integer")
    if not text:
        return ""

    units = []
    for raw in _SENTENCE_SPLIT_RE.split(strip_markup(text)):
        unit = _WS_RE.sub(" ", raw).strip()
        # shorter units are stray punctuation fragments
        if len(unit) > MIN_SENTENCE_CHARS:
            units.append(unit)
        if len(units) == max_sentences:
            break

    if not units:
        return ""
    return ". ".join(units) + "."


def content_fingerprint(canonical_text: str) -> str:
    if not canonical_text:
        return EMPTY_FINGERPRINT
    return hashlib.sha256(canonical_text.encode("utf-8")).hexdigest()


def normalize_article(article: RawArticle, max_sentences: int = 2) -> NormalizedFragment:
    canonical = extract_lead(article.body or "", max_sentences=max_sentences)
    return NormalizedFragment(
        article=article,
        canonical_text=canonical,
        content_fingerprint=content_fingerprint(canonical),
        body=clean_body(article.body),
    )
