from __future__ import annotations

import logging
import secrets

from sqlalchemy.orm import Session

from careerproof.config import Settings, get_settings
from careerproof.core.classifier import classify_career_phase
from careerproof.core.scorer import extract_skill_tags, infer_has_dates, score_evidence
from careerproof.db.models import Evidence, Objective, User
from careerproof.db.repositories import Repository
from careerproof.errors import InputValidationError, NotFoundError, StateError
from careerproof.llm.router import LLMRouter
from careerproof.types import (
    ClassificationInput,
    EvidenceInput,
    EvidenceSubmission,
    EvidenceType,
    ObjectiveSummary,
    OnboardingResult,
    SharedEvidence,
    VaultItem,
)

logger = logging.getLogger(__name__)

EVIDENCE_TOKEN_PREFIX = "ev_"


class CareerService:
    """Onboarding, GitHub linking and the evidence vault for a single user."""

    def __init__(self, session: Session, *, settings: Settings | None = None, llm: LLMRouter | None = None):
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.llm = llm or LLMRouter(self.settings)

    def require_user(self, email: str) -> User:
        user = self.repo.get_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found. Complete onboarding first.")
        return user

    def classify_and_register(
        self, email: str, data: ClassificationInput, *, with_greeting: bool = False
    ) -> OnboardingResult:
        email = email.strip()
        if not email:
            raise InputValidationError("email is required")

        phase = classify_career_phase(data)
        phase_row = self.repo.get_phase(phase)
        if phase_row is None:
            raise StateError(f"career phase '{phase}' is not seeded; run `careerproof init`")

        user = self.repo.upsert_user_phase(email, phase)
        objectives = self.repo.list_objectives(phase_row.id, limit=2)
        logger.info("Classified user_id=%s phase=%s", user.id, phase)

        return OnboardingResult(
            user_id=user.id,
            phase=phase,
            phase_id=phase_row.id,
            phase_name=phase_row.name,
            phase_description=phase_row.description,
            objectives=[objective_summary(item) for item in objectives],
            greeting=self.llm.write_greeting(phase_row.name) if with_greeting else None,
        )

    def link_github(self, email: str, access_token: str) -> int:
        token = access_token.strip()
        if not token:
            raise InputValidationError("access token is required")
        user = self.require_user(email)
        self.repo.upsert_github_integration(user.id, token)
        logger.info("GitHub linked user_id=%s", user.id)
        return user.id

    def submit_evidence(
        self,
        email: str,
        *,
        evidence_type: EvidenceType,
        title: str,
        description: str | None = None,
        links: list[str] | None = None,
        has_public_repo: bool = False,
        with_acknowledgment: bool = False,
    ) -> EvidenceSubmission:
        title = title.strip()
        if not title:
            raise InputValidationError("title is required")
        user = self.require_user(email)

        evidence_input = EvidenceInput(
            type=evidence_type,
            title=title,
            description=description,
            links=links or [],
            has_public_repo=has_public_repo,
            has_dates=infer_has_dates(description),
        )
        score = score_evidence(evidence_input)
        skill_tags = extract_skill_tags(description)

        evidence = self.repo.create_evidence(
            user_id=user.id,
            evidence_type=evidence_type,
            title=title,
            description=description,
            credibility_score=score,
            skill_tags=skill_tags,
            share_token=f"{EVIDENCE_TOKEN_PREFIX}{secrets.token_hex(16)}",
        )
        logger.info("Evidence submitted id=%s user_id=%s score=%s", evidence.id, user.id, score)

        acknowledgment = None
        if with_acknowledgment:
            acknowledgment = self.llm.write_acknowledgment(title=title, score=score, skill_tags=skill_tags)
        return EvidenceSubmission(
            evidence_id=evidence.id,
            score=score,
            skill_tags=skill_tags,
            acknowledgment=acknowledgment,
        )

    def list_vault(self, email: str) -> list[VaultItem]:
        user = self.require_user(email)
        return [vault_item(item) for item in self.repo.list_evidence(user.id)]

    def set_shareable(self, evidence_id: int, is_shareable: bool) -> bool:
        evidence = self.repo.set_evidence_shareable(evidence_id, is_shareable)
        if evidence is None:
            raise NotFoundError(f"evidence {evidence_id} not found")
        return evidence.is_shareable

    def get_shared(self, share_token: str) -> SharedEvidence:
        evidence = self.repo.get_shared_evidence(share_token)
        if evidence is None:
            raise NotFoundError("Evidence not found or not shareable")
        return shared_evidence(evidence)


def objective_summary(objective: Objective) -> ObjectiveSummary:
    return ObjectiveSummary(
        id=objective.id,
        objective_text=objective.objective_text,
        priority=objective.priority,
        category=objective.category,
    )


def shared_evidence(evidence: Evidence) -> SharedEvidence:
    return SharedEvidence(
        id=evidence.id,
        type=evidence.type,
        title=evidence.title,
        description=evidence.description,
        credibility_score=evidence.credibility_score,
        skill_tags=list(evidence.skill_tags_json or []),
    )

def vault_item(evidence: Evidence) -> VaultItem:
    return VaultItem(
        id=evidence.id,
        type=evidence.type,
        title=evidence.title,
        description=evidence.description,
        credibility_score=evidence.credibility_score,
        skill_tags=list(evidence.skill_tags_json or []),
        is_shareable=evidence.is_shareable,
        share_token=evidence.share_token,
        submitted_at=evidence.submitted_at,
        created_at=evidence.created_at,
    )
