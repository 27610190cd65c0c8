"""Search term extraction from note bodies and note titles."""

from __future__ import annotations

import re

KEYWORD_LIMIT = 20

CJK_CHARS = "ぁ-んァ-ヶ一-龠々"

INLINE_CODE_PATTERN = re.compile(r"`[^`]*`")
IMAGE_PATTERN = re.compile(r"!\[[^\]]*\]\([^)]+\)")
LINK_PATTERN = re.compile(r"\[[^\]]*\]\([^)]+\)")
TERM_PATTERN = re.compile(rf"[a-z0-9]{{3,}}|[{CJK_CHARS}]{{2,}}")
NAME_SEPARATOR_PATTERN = re.compile(rf"[^a-z0-9{CJK_CHARS}]+")
EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")

STOP_WORDS = frozenset(
    {
        "the",
        "and",
        "for",
        "are",
        "this",
        "that",
        "with",
        "from",
        "have",
        "has",
        "you",
        "your",
        "about",
        "into",
        "also",
        "using",
        "when",
        "where",
        "what",
        "http",
        "https",
    }
)


def _strip_markup(markdown: str) -> str:
    text = INLINE_CODE_PATTERN.sub(" ", markdown)
    text = IMAGE_PATTERN.sub(" ", text)
    return LINK_PATTERN.sub(" ", text)


def extract_keywords(markdown: str | None) -> list[str]:
    """Return up to :data:`KEYWORD_LIMIT` unique lowercase terms from *markdown*.

    Inline code, images and markdown links are blanked out first so link
    targets never become terms. Terms keep first-seen order.
    """

    text = _strip_markup(markdown or "").lower()
    terms: list[str] = []
    seen: set[str] = set()
    for match in TERM_PATTERN.finditer(text):
        word = match.group(0)
        if word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        terms.append(word)
        if len(terms) >= KEYWORD_LIMIT:
            break
    return terms


def tokenize_name(name: str | None) -> list[str]:
    """Split a note file name into lowercase title tokens."""

    stem = EXTENSION_PATTERN.sub("", name or "").lower()
    tokens: list[str] = []
    for token in NAME_SEPARATOR_PATTERN.split(stem):
        if len(token) >= 2 and token not in tokens:
            tokens.append(token)
    return tokens


def merge_terms(body_terms: list[str], title_terms: list[str]) -> list[str]:
    """Append title tokens that are not already body terms."""

    merged = list(body_terms)
    for token in title_terms:
        if token not in merged:
            merged.append(token)
    return merged
