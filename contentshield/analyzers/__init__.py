"""
Sibling assessments: originality, copyright risk, SEO / E-E-A-T, and the
AI disclosure statement.

These are local, deterministic, regex-driven analyzers. Each exposes one
coroutine with the same shape the pipeline expects, so a hosted service
can replace any of them without touching the pipeline.
"""

from __future__ import annotations

import re

# Stock phrasing that turns up verbatim across machine-written and
# templated web copy. Used by both the originality and SEO checks.
STOCK_PHRASES: tuple[str, ...] = (
    "in today's fast-paced world",
    "in today's digital age",
    "it is important to note that",
    "it's important to note that",
    "plays a crucial role",
    "a testament to",
    "delve into",
    "navigate the complexities",
    "unlock the power of",
    "unlock the potential",
    "in the ever-evolving",
    "ever-changing landscape",
    "embark on a journey",
    "a game changer",
    "whether you're a beginner or",
    "look no further",
    "at the end of the day",
    "in conclusion",
    "lorem ipsum",
)


def find_phrases(text: str, phrases: tuple[str, ...]) -> list[dict]:
    """Locate every occurrence of each phrase (case-insensitive)."""
    hits = []
    for phrase in phrases:
        for m in re.finditer(re.escape(phrase), text, flags=re.IGNORECASE):
            hits.append({
                "text": m.group(0),
                "start_index": m.start(),
                "end_index": m.end(),
            })
    hits.sort(key=lambda h: h["start_index"])
    return hits


def words(text: str) -> list[str]:
    return re.findall(r"[A-Za-z0-9']+", text.lower())


QUOTE_RE = re.compile(r"[\"“]([^\"”]{20,})[\"”]")


def quoted_passages(text: str, min_words: int) -> list[dict]:
    """Quoted spans of at least ``min_words`` words."""
    passages = []
    for m in QUOTE_RE.finditer(text):
        count = len(words(m.group(1)))
        if count >= min_words:
            passages.append({
                "text": m.group(1).strip(),
                "start_index": m.start(),
                "end_index": m.end(),
                "word_count": count,
            })
    return passages
