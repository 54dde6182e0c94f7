from __future__ import annotations

import logging
import secrets
from datetime import UTC, date, datetime

from pydantic import ValidationError
from sqlalchemy.orm import Session

from careerproof.config import Settings, get_settings
from careerproof.core.career import CareerService
from careerproof.core.interview_prep import score_solution, select_template, template_seed
from careerproof.core.scorer import extract_skill_tags, round_half_up, score_evidence
from careerproof.db.repositories import Repository
from careerproof.errors import InputValidationError, NotFoundError, StateError
from careerproof.llm.router import LLMRouter
from careerproof.types import (
    CreatedEvidence,
    Difficulty,
    EvidenceInput,
    InterviewResult,
    InterviewStart,
    RubricScores,
    RubricWeights,
)

logger = logging.getLogger(__name__)


class InterviewCoach:
    """Daily interview problems, rubric scoring and conversion of results into evidence."""

    def __init__(self, session: Session, *, settings: Settings | None = None, llm: LLMRouter | None = None):
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.llm = llm or LLMRouter(self.settings)
        self.career = CareerService(session, settings=self.settings, llm=self.llm)

    def start_session(
        self,
        email: str,
        role_type: str,
        difficulty: Difficulty,
        company: str | None = None,
        *,
        today: date | None = None,
    ) -> InterviewStart:
        role_type = role_type.strip()
        if not role_type:
            raise InputValidationError("role type is required")
        company = (company or "").strip() or None
        user = self.career.require_user(email)

        templates = self.repo.list_problem_templates(role_type, limit=self.settings.interview_template_pool_size)
        candidates = [item for item in templates if item.difficulty == difficulty] or templates
        if not candidates:
            raise InputValidationError(f"No problem templates found for role '{role_type}'")

        date_string = (today or datetime.now(UTC).date()).isoformat()
        template = select_template(candidates, template_seed(role_type, difficulty, company or "", date_string))
        logger.info(
            "Interview template selected user_id=%s role=%s difficulty=%s template_id=%s date=%s",
            user.id,
            role_type,
            difficulty,
            template.id,
            date_string,
        )

        problem_statement = self.llm.write_problem_statement(
            template_text=template.template_text,
            role_type=role_type,
            difficulty=difficulty,
            company=company,
        )
        session_row = self.repo.create_interview_session(
            user_id=user.id,
            role_type=role_type,
            company=company,
            difficulty=difficulty,
            template=template,
            problem_statement=problem_statement,
        )
        return InterviewStart(
            session_id=session_row.id,
            problem_statement=problem_statement,
            role_type=role_type,
            difficulty=difficulty,
            company=company,
        )

    def submit_solution(self, session_id: int, solution: str) -> InterviewResult:
        if not solution.strip():
            raise InputValidationError("solution is required")

        session_row = self.repo.get_interview_session(session_id)
        if session_row is None:
            raise NotFoundError(f"interview session {session_id} not found")
        if session_row.status != "awaiting_submission":
            raise StateError(f"interview session {session_id} was already submitted")

        weights = RubricWeights.model_validate(session_row.rubric_json or self.settings.default_rubric_weights)
        scores = score_solution(solution, weights)
        feedback = self.llm.write_feedback(
            problem_statement=session_row.problem_statement,
            solution=solution,
            scores=scores,
        )

        self.repo.mark_session_scored(session_id, solution, scores, feedback)
        logger.info("Interview session scored id=%s total=%s", session_id, scores.total)
        return InterviewResult(session_id=session_id, scores=scores, feedback=feedback)

    def log_evidence(self, session_id: int) -> CreatedEvidence:
        session_row = self.repo.get_interview_session(session_id)
        if session_row is None:
            raise NotFoundError(f"interview session {session_id} not found")
        if session_row.status != "scored":
            raise StateError(f"interview session {session_id} has not been scored yet")

        try:
            total = RubricScores.model_validate(session_row.scores_json or {}).total
        except ValidationError:
            total = 0

        title = f"Interview prep: {session_row.role_type} ({session_row.difficulty})"
        if session_row.company:
            title += f" @ {session_row.company}"
        description = session_row.problem_statement[:200]
        if session_row.solution_text:
            description += f"\n\nSolution: {session_row.solution_text[:300]}..."
        description += f"\n\nScore: {total}/100"

        tags = extract_skill_tags(f"{session_row.role_type} {session_row.difficulty} {description}")
        base = score_evidence(EvidenceInput(type="achievement", title=title, description=description, has_dates=True))

        evidence = self.repo.create_evidence(
            user_id=session_row.user_id,
            evidence_type="achievement",
            title=title,
            description=description,
            credibility_score=round_half_up((base + total) / 2),
            skill_tags=tags,
            share_token=secrets.token_hex(16),
        )
        logger.info("Interview session id=%s logged as evidence id=%s", session_id, evidence.id)
        return CreatedEvidence(id=evidence.id, title=evidence.title)
