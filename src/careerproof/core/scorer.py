from __future__ import annotations

import math
import re

from careerproof.types import EvidenceInput, EvidenceType

BASE_SCORES: dict[EvidenceType, int] = {
    "project": 40,
    "credential": 35,
    "achievement": 30,
}

DATES_BONUS = 15
LINK_BONUS = 10
PUBLIC_REPO_BONUS = 20

# Ordered: tags are emitted in this order, first hit per tag wins.
SKILL_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("machine learning", "ML"),
    ("machine-learning", "ML"),
    ("team lead", "leadership"),
    ("teamlead", "leadership"),
    ("leadership", "leadership"),
    ("react", "React"),
    ("typescript", "TypeScript"),
    ("node.js", "Node.js"),
    ("python", "Python"),
    ("full-stack", "Full-stack"),
    ("full stack", "Full-stack"),
)

_DATE_PATTERN = re.compile(
    r"20\d{2}|jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec|\d{1,2}/\d{1,2}/\d{2,4}",
    re.IGNORECASE,
)


def clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def score_evidence(evidence: EvidenceInput) -> int:
    score = BASE_SCORES[evidence.type]

    if evidence.has_dates:
        score += DATES_BONUS
    if evidence.links:
        score += LINK_BONUS
    if evidence.has_public_repo:
        score += PUBLIC_REPO_BONUS

    return clamp(score)


def extract_skill_tags(text: str | None) -> list[str]:
    if not text:
        return []

    lower = text.lower()
    tags: list[str] = []
    for keyword, tag in SKILL_KEYWORDS:
        if keyword in lower and tag not in tags:
            tags.append(tag)
    return tags


def infer_has_dates(text: str | None) -> bool:
    return bool(text) and _DATE_PATTERN.search(text) is not None
