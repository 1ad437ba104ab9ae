"""
Originality check.

Score starts at 100 and loses points for:
  - stock phrases shared with templated web copy (4 each, capped at 20)
  - long quoted passages, treated as reused external text
    (1 per quoted word, capped at 40)
  - internal duplication: repeated 6-word shingles (3 each, capped at 30)

Below 80 the text is reported as plagiarised.
"""

from __future__ import annotations

from collections import Counter

from contentshield.analyzers import STOCK_PHRASES, find_phrases, quoted_passages, words
from contentshield.models import Originality

PLAGIARISM_THRESHOLD = 80
SHINGLE_SIZE = 6


def _repeated_shingles(tokens: list[str]) -> list[str]:
    shingles = Counter(
        " ".join(tokens[i:i + SHINGLE_SIZE])
        for i in range(len(tokens) - SHINGLE_SIZE + 1)
    )
    return [s for s, n in shingles.items() if n > 1]


async def check_originality(text: str) -> Originality:
    stock = find_phrases(text, STOCK_PHRASES)
    quotes = quoted_passages(text, min_words=15)
    repeats = _repeated_shingles(words(text))

    penalty = 0
    penalty += min(20, 4 * len(stock))
    penalty += min(40, sum(q["word_count"] for q in quotes))
    penalty += min(30, 3 * len(repeats))
    score = float(max(0, min(100, 100 - penalty)))

    sources = []
    if stock:
        sources.append({
            "source": "common web boilerplate",
            "similarity": min(100, 4 * len(stock)),
            "matched_phrases": len(stock),
        })
    for q in quotes:
        sources.append({
            "source": "quoted external text",
            "similarity": 100,
            "excerpt": q["text"][:120],
        })
    if repeats:
        sources.append({
            "source": "repeated passages within the submission",
            "similarity": min(100, 3 * len(repeats)),
            "matched_phrases": len(repeats),
        })

    highlights = [
        {**h, "reason": "Stock phrase common in templated content"} for h in stock
    ] + [
        {
            "text": q["text"],
            "start_index": q["start_index"],
            "end_index": q["end_index"],
            "reason": "Quoted passage from an external source",
        }
        for q in quotes
    ]

    return Originality(
        originality_score=score,
        is_plagiarized=score < PLAGIARISM_THRESHOLD,
        matched_sources=tuple(sources),
        highlighted_matches=tuple(sorted(highlights, key=lambda h: h["start_index"])),
    )
