"""
SEO / E-E-A-T assessment.

Starts at 5 and drops one point per concern, floored at 1:
  - thin content (under 300 words)
  - no first-hand experience signals
  - no sources or verifiable specifics
  - two or more stock phrases
  - keyword stuffing (one content word above 4% of the text)
"""

from __future__ import annotations

import re
from collections import Counter

from contentshield.analyzers import STOCK_PHRASES, find_phrases, words
from contentshield.models import SEOAssessment

THIN_CONTENT_WORDS = 300
STUFFING_RATIO = 0.04
STUFFING_MIN_COUNT = 5

_EXPERIENCE = re.compile(
    r"\b(?:I|we|my|our|in my experience|I've|we've|I tested|we tested|hands-on)\b",
    re.IGNORECASE,
)
_SOURCES = re.compile(
    r"https?://|\baccording to\b|\bsource:|\bcited\b|\bstudy\b.*\b(?:19|20)\d{2}\b|\d+(?:\.\d+)?%",
    re.IGNORECASE,
)
_STOPWORDS = frozenset(
    "a an and are as at be but by for from has have in is it its of on or that the "
    "this to was were will with you your they their them can not".split()
)


def _stuffed_keyword(tokens: list[str]):
    content = [t for t in tokens if t not in _STOPWORDS and len(t) > 2]
    if not content:
        return None
    word, count = Counter(content).most_common(1)[0]
    if count >= STUFFING_MIN_COUNT and count / len(tokens) > STUFFING_RATIO:
        return word
    return None


async def assess_seo_risk(text: str) -> SEOAssessment:
    tokens = words(text)
    violations: list[str] = []
    risks: list[str] = []
    recs: list[str] = []

    if len(tokens) < THIN_CONTENT_WORDS:
        risks.append(f"Thin content: {len(tokens)} words")
        recs.append("Expand the piece with substantive, original detail.")

    if not _EXPERIENCE.search(text):
        violations.append("Experience: no first-hand experience signals")
        recs.append("Add first-hand observations, tests or examples.")

    if not _SOURCES.search(text):
        violations.append("Trustworthiness: no sources or verifiable specifics")
        recs.append("Cite authoritative sources and concrete data.")

    stock = find_phrases(text, STOCK_PHRASES)
    if len(stock) >= 2:
        risks.append(f"Generic phrasing: {len(stock)} stock phrases")
        recs.append("Replace generic filler phrases with specific language.")

    stuffed = _stuffed_keyword(tokens)
    if stuffed:
        risks.append(f"Keyword stuffing: '{stuffed}'")
        recs.append(f"Reduce repetition of '{stuffed}' and use natural variants.")

    concerns = len(violations) + len(risks)
    return SEOAssessment(
        score=max(1, 5 - concerns),
        eeat_violations=tuple(violations),
        recommendations=tuple(recs),
        risk_factors=tuple(risks),
    )
