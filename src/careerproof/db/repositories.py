from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from careerproof.db.models import (
    CareerPhaseRow,
    Conversation,
    ConversationMessage,
    CVGeneration,
    Evidence,
    EvidenceCompilerDraft,
    GitHubIntegration,
    InterviewPrepProblem,
    InterviewPrepSession,
    Objective,
    User,
)
from careerproof.errors import ConflictError, NotFoundError, StateError
from careerproof.types import CVStructure, EvidenceDraft, RubricScores, RubricWeights

logger = logging.getLogger(__name__)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def _commit(self, what: str) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("Unique constraint violated while saving %s: %s", what, exc.orig)
            raise ConflictError(f"{what} already exists") from exc

    # users and onboarding

    def get_user_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email))

    def upsert_user_phase(self, email: str, career_phase: str) -> User:
        user = self.get_user_by_email(email)
        if user:
            user.career_phase = career_phase
        else:
            user = User(email=email, career_phase=career_phase)
            self.session.add(user)
        self._commit("user")
        self.session.refresh(user)
        return user

    def get_phase(self, slug: str) -> CareerPhaseRow | None:
        return self.session.scalar(select(CareerPhaseRow).where(CareerPhaseRow.slug == slug))

    def list_objectives(self, phase_id: int, limit: int = 2) -> list[Objective]:
        statement = (
            select(Objective)
            .where(Objective.phase_id == phase_id)
            .order_by(Objective.priority.asc(), Objective.id.asc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    # github

    def upsert_github_integration(self, user_id: int, access_token: str) -> GitHubIntegration:
        existing = self.get_github_integration(user_id)
        if existing:
            existing.access_token = access_token
            obj = existing
        else:
            obj = GitHubIntegration(user_id=user_id, access_token=access_token)
            self.session.add(obj)
        self._commit("github integration")
        self.session.refresh(obj)
        return obj

    def get_github_integration(self, user_id: int) -> GitHubIntegration | None:
        return self.session.scalar(select(GitHubIntegration).where(GitHubIntegration.user_id == user_id))

    # evidence

    def create_evidence(
        self,
        user_id: int,
        evidence_type: str,
        title: str,
        description: str | None,
        credibility_score: int,
        skill_tags: list[str],
        share_token: str,
    ) -> Evidence:
        evidence = Evidence(
            user_id=user_id,
            type=evidence_type,
            title=title,
            description=description,
            credibility_score=credibility_score,
            skill_tags_json=list(skill_tags),
            share_token=share_token,
        )
        self.session.add(evidence)
        self._commit("evidence share token")
        self.session.refresh(evidence)
        return evidence

    def get_evidence(self, evidence_id: int) -> Evidence | None:
        return self.session.get(Evidence, evidence_id)

    def list_evidence(self, user_id: int) -> list[Evidence]:
        statement = (
            select(Evidence)
            .where(Evidence.user_id == user_id)
            .order_by(Evidence.created_at.asc(), Evidence.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def set_evidence_shareable(self, evidence_id: int, is_shareable: bool) -> Evidence | None:
        evidence = self.get_evidence(evidence_id)
        if not evidence:
            return None
        evidence.is_shareable = is_shareable
        self.session.commit()
        self.session.refresh(evidence)
        return evidence

    def get_shared_evidence(self, share_token: str) -> Evidence | None:
        return self.session.scalar(
            select(Evidence).where(Evidence.share_token == share_token, Evidence.is_shareable.is_(True))
        )

    # evidence compiler drafts

    def create_draft(self, run_id: str, user_id: int, draft: EvidenceDraft) -> EvidenceCompilerDraft:
        row = EvidenceCompilerDraft(run_id=run_id, user_id=user_id, draft_json=draft.to_json_payload())
        self.session.add(row)
        self._commit("draft run id")
        self.session.refresh(row)
        return row

    def get_draft(self, run_id: str) -> EvidenceCompilerDraft | None:
        return self.session.scalar(select(EvidenceCompilerDraft).where(EvidenceCompilerDraft.run_id == run_id))

    @staticmethod
    def load_draft_payload(row: EvidenceCompilerDraft) -> EvidenceDraft:
        try:
            return EvidenceDraft.model_validate(row.draft_json or {})
        except ValidationError as exc:
            raise StateError(f"draft {row.run_id} is corrupt") from exc

    # cv

    def save_cv_generation(
        self, user_id: int, target_role: str, target_company: str | None, structure: CVStructure
    ) -> CVGeneration:
        row = CVGeneration(
            user_id=user_id,
            target_role=target_role,
            target_company=target_company,
            structure_json=structure.to_wire(),
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    # interview prep

    def list_problem_templates(self, role_type: str, limit: int = 10) -> list[InterviewPrepProblem]:
        statement = (
            select(InterviewPrepProblem)
            .where(InterviewPrepProblem.role_type == role_type)
            .order_by(InterviewPrepProblem.id.asc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    def create_interview_session(
        self,
        user_id: int,
        role_type: str,
        company: str | None,
        difficulty: str,
        template: InterviewPrepProblem,
        problem_statement: str,
    ) -> InterviewPrepSession:
        session_row = InterviewPrepSession(
            user_id=user_id,
            role_type=role_type,
            company=company,
            difficulty=difficulty,
            problem_template_id=template.id,
            problem_statement=problem_statement,
            rubric_json=RubricWeights.model_validate(template.rubric_json or {}).model_dump(),
            status="awaiting_submission",
        )
        self.session.add(session_row)
        self.session.commit()
        self.session.refresh(session_row)
        return session_row

    def get_interview_session(self, session_id: int) -> InterviewPrepSession | None:
        return self.session.get(InterviewPrepSession, session_id)

    def mark_session_scored(
        self,
        session_id: int,
        solution_text: str,
        scores: RubricScores,
        feedback_text: str,
    ) -> InterviewPrepSession:
        """Move a session to ``scored`` exactly once.

        The status check lives in the UPDATE itself so two concurrent
        submissions cannot both win.
        """
        values: dict[str, Any] = {
            "status": "scored",
            "solution_text": solution_text,
            "scores_json": scores.model_dump(),
            "feedback_text": feedback_text,
        }
        result = self.session.execute(
            update(InterviewPrepSession)
            .where(
                InterviewPrepSession.id == session_id,
                InterviewPrepSession.status == "awaiting_submission",
            )
            .values(**values)
        )
        if result.rowcount != 1:
            self.session.rollback()
            raise StateError(f"interview session {session_id} was already submitted")
        self.session.commit()

        row = self.session.get(InterviewPrepSession, session_id, populate_existing=True)
        if row is None:
            raise NotFoundError(f"interview session {session_id} not found")
        return row

    # advisor conversations

    def get_user(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def create_conversation(self, user_id: int, phase_id: int | None) -> Conversation:
        conversation = Conversation(user_id=user_id, phase_id=phase_id)
        self.session.add(conversation)
        self._commit("conversation")
        self.session.refresh(conversation)
        return conversation

    def get_conversation(self, conversation_id: int) -> Conversation | None:
        return self.session.get(Conversation, conversation_id)

    def latest_conversation(self, user_id: int) -> Conversation | None:
        statement = (
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.created_at.desc(), Conversation.id.desc())
            .limit(1)
        )
        return self.session.scalar(statement)

    def add_conversation_message(self, conversation_id: int, role: str, content: str) -> ConversationMessage:
        message = ConversationMessage(conversation_id=conversation_id, role=role, content=content)
        self.session.add(message)
        self._commit("conversation message")
        self.session.refresh(message)
        return message

    def list_conversation_messages(self, conversation_id: int, limit: int | None = None) -> list[ConversationMessage]:
        """Messages in insertion order; with ``limit``, only the most recent ones."""
        statement = (
            select(ConversationMessage)
            .where(ConversationMessage.conversation_id == conversation_id)
            .order_by(ConversationMessage.id.desc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        return list(reversed(self.session.scalars(statement).all()))
