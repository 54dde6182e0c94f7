from __future__ import annotations

import re

from careerproof.types import CVEvidenceItem, CVItem, CVSection, CVStructure

MAX_BULLETS = 3
MAX_SKILLS = 15
DEFAULT_ROLE = "Professional"

_SENTENCE_BREAK = re.compile(r"\n|\.(?=\s)")

SECTION_TITLES = {
    "experience": "Experience",
    "projects": "Projects",
    "education": "Education & Credentials",
    "skills": "Skills",
}


def derive_bullets(description: str | None) -> list[str]:
    if not description:
        return []

    bullets: list[str] = []
    for chunk in _SENTENCE_BREAK.split(description):
        sentence = chunk.strip()
        if not sentence:
            continue
        bullets.append(sentence if sentence.endswith(".") else f"{sentence}.")
        if len(bullets) == MAX_BULLETS:
            break
    return bullets


def summarize_skills(evidence: list[CVEvidenceItem]) -> list[str]:
    seen: dict[str, None] = {}
    for item in evidence:
        for tag in item.skill_tags:
            if tag:
                seen.setdefault(tag, None)
    return list(seen)[:MAX_SKILLS]


def structure_cv(
    target_role: str,
    target_company: str | None,
    evidence: list[CVEvidenceItem],
) -> CVStructure:
    """Build a sectioned CV outline. Same role, company and evidence give the same outline."""
    role = target_role.strip() or DEFAULT_ROLE
    company = (target_company or "").strip() or None

    buckets: dict[str, list[CVItem]] = {"experience": [], "projects": [], "education": []}
    ranked = sorted(evidence, key=lambda item: item.credibility_score or 0, reverse=True)
    for item in ranked:
        entry = CVItem(
            title=item.title,
            subtitle=item.type,
            bullets=derive_bullets(item.description) or [item.title],
            score=item.credibility_score or 0,
        )
        if item.type == "credential":
            buckets["education"].append(entry)
        elif item.type == "project":
            buckets["projects"].append(entry)
        else:
            buckets["experience"].append(entry)

    skills_summary = summarize_skills(evidence)

    sections = [
        CVSection(type=kind, title=SECTION_TITLES[kind], items=items)
        for kind, items in buckets.items()
        if items
    ]
    if skills_summary:
        sections.append(
            CVSection(
                type="skills",
                title=SECTION_TITLES["skills"],
                items=[CVItem(title="", bullets=skills_summary)],
            )
        )

    return CVStructure(
        role=role,
        company=company,
        headline=f"{role} at {company}" if company else role,
        sections=sections,
        skills_summary=skills_summary,
    )
