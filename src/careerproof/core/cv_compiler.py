from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from careerproof.config import Settings, get_settings
from careerproof.core.career import CareerService
from careerproof.core.cv_structure import structure_cv
from careerproof.db.repositories import Repository
from careerproof.errors import InputValidationError
from careerproof.llm.router import LLMRouter
from careerproof.types import CVEvidenceItem, CVGenerationResult

logger = logging.getLogger(__name__)


class CVCompiler:
    def __init__(self, session: Session, *, settings: Settings | None = None, llm: LLMRouter | None = None):
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.llm = llm or LLMRouter(self.settings)
        self.career = CareerService(session, settings=self.settings, llm=self.llm)

    def generate(
        self,
        email: str,
        target_role: str,
        target_company: str | None = None,
        *,
        tailor: bool = True,
    ) -> CVGenerationResult:
        if not target_role.strip():
            raise InputValidationError("target role is required")
        user = self.career.require_user(email)

        evidence = [
            CVEvidenceItem(
                id=row.id,
                type=row.type,
                title=row.title,
                description=row.description,
                credibility_score=row.credibility_score,
                skill_tags=list(row.skill_tags_json or []),
            )
            for row in self.repo.list_evidence(user.id)
        ]
        structure = structure_cv(target_role, target_company, evidence)

        summary: str | None = None
        bullets: dict[str, list[str]] = {}
        if tailor:
            tailored = self.llm.tailor_cv(structure)
            summary, bullets = tailored.summary, tailored.bullets

        generation = self.repo.save_cv_generation(user.id, structure.role, structure.company, structure)
        logger.info(
            "CV generated id=%s user_id=%s evidence=%s tailored=%s",
            generation.id,
            user.id,
            len(evidence),
            tailor,
        )
        return CVGenerationResult(
            generation_id=generation.id,
            structure=structure,
            tailored_summary=summary,
            tailored_bullets=bullets,
        )
