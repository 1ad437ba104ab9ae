"""
Copyright risk check.

high:   explicit copyright notices, song-lyric structure, or a quoted
        passage of 40+ words
medium: trademark symbols, permission/attribution lines, or quoted
        passages of 15-39 words
low:    none of the above
"""

from __future__ import annotations

import re

from contentshield.analyzers import quoted_passages
from contentshield.models import CopyrightRisk

_HIGH_MARKERS = {
    "copyright_notice": re.compile(
        r"(?:©|\(c\)|\bcopyright\b)\s*(?:\d{4}|by\b)|\ball rights reserved\b",
        re.IGNORECASE,
    ),
    "song_lyrics": re.compile(
        r"\[(?:chorus|verse(?:\s*\d+)?|bridge|hook|outro|intro)\]",
        re.IGNORECASE,
    ),
}

_MEDIUM_MARKERS = {
    "trademark": re.compile(r"[™®]"),
    "reprinted_material": re.compile(
        r"\b(?:reprinted|reproduced|used)\s+with\s+permission\b|\bexcerpted\s+from\b",
        re.IGNORECASE,
    ),
}

_RECOMMENDATIONS = {
    "copyright_notice": "Remove or license material carrying a copyright notice.",
    "song_lyrics": "Song lyrics are almost always licensed; replace them with a short description.",
    "long_quote": "Shorten long quotations and add attribution to stay within fair use.",
    "trademark": "Check trademark usage guidelines for the marked brand names.",
    "reprinted_material": "Confirm the reprint permission covers this publication.",
    "short_quote": "Attribute quoted passages to their original source.",
}


async def assess_copyright_risk(text: str) -> CopyrightRisk:
    detected: list[dict] = []

    for kind, pattern in _HIGH_MARKERS.items():
        for m in pattern.finditer(text):
            detected.append({"type": kind, "text": m.group(0), "severity": "high"})
    for kind, pattern in _MEDIUM_MARKERS.items():
        for m in pattern.finditer(text):
            detected.append({"type": kind, "text": m.group(0), "severity": "medium"})
    for q in quoted_passages(text, min_words=15):
        long_quote = q["word_count"] >= 40
        detected.append({
            "type": "long_quote" if long_quote else "short_quote",
            "text": q["text"][:120],
            "severity": "high" if long_quote else "medium",
        })

    severities = {d["severity"] for d in detected}
    if "high" in severities:
        level = "high"
    elif "medium" in severities:
        level = "medium"
    else:
        level = "low"

    seen: dict[str, None] = {}
    for d in detected:
        seen.setdefault(d["type"])

    return CopyrightRisk(
        risk_level=level,
        detected_content=tuple(detected),
        recommendations=tuple(_RECOMMENDATIONS[t] for t in seen),
    )
