from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TypeVar

from careerproof.core.scorer import round_half_up
from careerproof.types import RubricScores, RubricWeights

T = TypeVar("T")

SEED_DELIMITER = "-"
_UINT32 = 2**32

_TECHNICAL = re.compile(r"\b(algorithm|approach|solution|implement)\b", re.IGNORECASE)
_COMPLEXITY = re.compile(r"\b(O\(|time|space|complexity)\b", re.IGNORECASE)
_SEQUENCING = re.compile(r"first|then|finally|step", re.IGNORECASE)
_SENTENCE_TERMINATORS = re.compile(r"[.!?]+")


def _correctness(text: str) -> int:
    length = len(text)
    score = 50
    if length >= 200:
        score += 25
    elif length >= 100:
        score += 15
    elif length >= 50:
        score += 5
    if _TECHNICAL.search(text):
        score += 15
    if _COMPLEXITY.search(text):
        score += 10
    return min(100, score)


def _clarity(text: str) -> int:
    score = 50
    segments = [part for part in _SENTENCE_TERMINATORS.split(text) if part]
    if len(segments) >= 3:
        score += 25
    elif len(segments) >= 1:
        score += 10
    if _SEQUENCING.search(text):
        score += 15
    return min(100, score)


def _completeness(text: str) -> int:
    length = len(text)
    score = 50
    if length >= 150:
        score += 30
    elif length >= 80:
        score += 20
    elif length >= 40:
        score += 10
    return min(100, score)


def score_solution(solution: str, weights: RubricWeights | None = None) -> RubricScores:
    """Score a free-text interview solution on a fixed rubric.

    Weights are integers expected to sum to 100; the total is their weighted
    average, rounded half-up and capped at 100.
    """
    weights = weights or RubricWeights()
    text = solution.strip()

    correctness = _correctness(text)
    clarity = _clarity(text)
    completeness = _completeness(text)

    weighted = (
        correctness * weights.correctness
        + clarity * weights.clarity
        + completeness * weights.completeness
    )
    total = min(100, round_half_up(weighted / 100))

    return RubricScores(
        correctness=correctness,
        clarity=clarity,
        completeness=completeness,
        total=total,
    )


def _utf16_units(value: str) -> list[int]:
    encoded = value.encode("utf-16-le")
    return [int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2)]


def template_seed(role_type: str, difficulty: str, company: str, date_string: str) -> int:
    """Unsigned 32-bit seed for the daily problem of a (date, role, difficulty, company) tuple."""
    key = SEED_DELIMITER.join([date_string, role_type, difficulty, company])
    h = 0
    for unit in _utf16_units(key):
        h = (h * 31 + unit) % _UINT32
    return h


def select_template(candidates: Sequence[T], seed: int) -> T:
    if not candidates:
        raise ValueError("no candidate templates to choose from")
    return candidates[seed % len(candidates)]
