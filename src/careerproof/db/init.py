from __future__ import annotations

from careerproof.config import get_settings
from careerproof.db.base import Base
from careerproof.db.session import SessionLocal, engine
from careerproof.db import models  # noqa: F401
from careerproof.db.seed import seed_career_phases, seed_problem_templates


def ensure_data_directories() -> None:
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, int]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as session:
        phases = seed_career_phases(session)
        templates = seed_problem_templates(session)
    return {"seeded_phases": phases, "seeded_templates": templates}
