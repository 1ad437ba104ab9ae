"""
AI disclosure statement generator.

Picks a disclosure tier from the consensus probability and phrases it for
the content type.
"""

from __future__ import annotations

CONTENT_TYPES = ("general", "blog", "academic", "marketing", "social", "news")

_TIERS = (
    (80, "generated"),
    (50, "assisted"),
    (20, "edited"),
)

_TEMPLATES = {
    "generated": "This {noun} was substantially generated with AI tools and reviewed by {reviewer}.",
    "assisted": "This {noun} was written with the assistance of AI tools and edited by {reviewer}.",
    "edited": "AI tools may have been used to edit or refine parts of this {noun}.",
    "none": "This {noun} was written by {reviewer}; no AI disclosure is required.",
}

_STYLE = {
    "general": ("content", "a human editor"),
    "blog": ("post", "the author"),
    "academic": ("work", "the author(s)"),
    "marketing": ("material", "our team"),
    "social": ("post", "the author"),
    "news": ("article", "our editorial staff"),
}


def disclosure_tier(ai_probability: float) -> str:
    for floor, tier in _TIERS:
        if ai_probability >= floor:
            return tier
    return "none"


async def generate_disclosure(
    content: str,
    ai_probability: float,
    content_type: str = "general",
) -> str:
    noun, reviewer = _STYLE.get(content_type, _STYLE["general"])
    statement = _TEMPLATES[disclosure_tier(ai_probability)].format(
        noun=noun, reviewer=reviewer,
    )
    if content_type == "academic" and ai_probability >= 20:
        statement += " Use of AI tools is disclosed in line with institutional policy."
    return statement
