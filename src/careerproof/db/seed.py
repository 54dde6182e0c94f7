from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from careerproof.db.models import CareerPhaseRow, InterviewPrepProblem, Objective

DEFAULT_RUBRIC: dict[str, int] = {"correctness": 40, "clarity": 30, "completeness": 30}

CAREER_PHASES: list[dict[str, str]] = [
    {
        "slug": "education",
        "name": "Education",
        "description": "University, bootcamps, training. Building your foundation.",
    },
    {
        "slug": "early_career",
        "name": "Early Career",
        "description": "Your first 1-3 years. Proving you can do the work.",
    },
    {
        "slug": "mid_career",
        "name": "Mid Career",
        "description": "Years 3-7+. Deepening expertise, building a reputation.",
    },
    {
        "slug": "leadership",
        "name": "Leadership",
        "description": "Managing teams, shaping strategy.",
    },
    {
        "slug": "executive",
        "name": "Executive",
        "description": "C-suite, board-level, organizational transformation.",
    },
    {
        "slug": "legacy",
        "name": "Legacy",
        "description": "Advisory, mentoring, succession, giving back.",
    },
]

PHASE_OBJECTIVES: dict[str, list[dict[str, object]]] = {
    "early_career": [
        {
            "text": "Build portfolio evidence that demonstrates full-stack competence",
            "priority": 1,
            "category": "evidence",
        },
        {
            "text": "Close your system design gap for senior frontend roles",
            "priority": 2,
            "category": "skills",
        },
    ],
}

PROBLEM_TEMPLATES: list[dict[str, str]] = [
    {
        "role_type": "software_engineer",
        "difficulty": "easy",
        "template_text": (
            "Implement a function that reverses a string. Explain your approach "
            "and its time and space complexity."
        ),
    },
    {
        "role_type": "software_engineer",
        "difficulty": "medium",
        "template_text": (
            "Design a rate limiter that allows at most N requests per user per minute. "
            "Describe the data structures you would use and how you handle bursts."
        ),
    },
    {
        "role_type": "frontend",
        "difficulty": "medium",
        "template_text": (
            "Build a debounced search input component that queries an API as the user types. "
            "Explain how you avoid stale results and unnecessary requests."
        ),
    },
    {
        "role_type": "backend",
        "difficulty": "medium",
        "template_text": (
            "Design an API for a todo list with priorities. Cover the endpoints, the data model "
            "and how clients fetch items ordered by priority."
        ),
    },
]


def seed_career_phases(session: Session) -> int:
    inserted = 0
    for phase in CAREER_PHASES:
        existing = session.scalar(select(CareerPhaseRow).where(CareerPhaseRow.slug == phase["slug"]))
        if existing:
            continue
        session.add(CareerPhaseRow(**phase))
        inserted += 1
    session.flush()

    for slug, objectives in PHASE_OBJECTIVES.items():
        row = session.scalar(select(CareerPhaseRow).where(CareerPhaseRow.slug == slug))
        if row is None:
            continue
        has_objectives = session.scalar(select(Objective.id).where(Objective.phase_id == row.id).limit(1))
        if has_objectives:
            continue
        for objective in objectives:
            session.add(
                Objective(
                    phase_id=row.id,
                    objective_text=str(objective["text"]),
                    priority=int(objective["priority"]),
                    category=str(objective["category"]),
                )
            )

    session.commit()
    return inserted


def seed_problem_templates(session: Session) -> int:
    inserted = 0
    for template in PROBLEM_TEMPLATES:
        existing = session.scalar(
            select(InterviewPrepProblem).where(
                InterviewPrepProblem.role_type == template["role_type"],
                InterviewPrepProblem.template_text == template["template_text"],
            )
        )
        if existing:
            continue
        session.add(InterviewPrepProblem(**template, rubric_json=dict(DEFAULT_RUBRIC)))
        inserted += 1

    session.commit()
    return inserted
