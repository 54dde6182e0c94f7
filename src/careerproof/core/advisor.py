from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from careerproof.config import Settings, get_settings
from careerproof.core.career import CareerService, objective_summary, shared_evidence
from careerproof.db.models import CareerPhaseRow, ConversationMessage, User
from careerproof.db.repositories import Repository
from careerproof.errors import InputValidationError, NotFoundError, StateError
from careerproof.llm.router import LLMRouter
from careerproof.types import (
    AdvisorContext,
    AdvisorReply,
    ChatMessage,
    ConversationMessageView,
    ConversationStart,
    LatestConversation,
    ObjectiveSummary,
)

logger = logging.getLogger(__name__)

UNKNOWN_PHASE = "Unknown"


class CareerAdvisor:
    """Advisor conversations grounded in the user's phase, objectives and evidence vault.

    Every reply is generated against a fresh snapshot of that context, so newly
    approved evidence shows up mid-conversation. The user's turn is stored
    before the model is called and survives a failed reply.
    """

    def __init__(self, session: Session, *, settings: Settings | None = None, llm: LLMRouter | None = None):
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.llm = llm or LLMRouter(self.settings)
        self.career = CareerService(session, settings=self.settings, llm=self.llm)

    def start(self, email: str) -> ConversationStart:
        user = self.career.require_user(email)
        phase_row = self._phase_of(user)
        conversation = self.repo.create_conversation(user.id, phase_row.id if phase_row else None)
        logger.info("Advisor conversation started id=%s user_id=%s", conversation.id, user.id)
        return ConversationStart(
            conversation_id=conversation.id,
            phase_name=phase_row.name if phase_row else UNKNOWN_PHASE,
            objectives=self._objectives(phase_row),
        )

    def latest(self, email: str) -> LatestConversation:
        user = self.career.require_user(email)
        conversation = self.repo.latest_conversation(user.id)
        return LatestConversation(conversation_id=conversation.id if conversation else None)

    def history(self, conversation_id: int) -> list[ConversationMessageView]:
        if self.repo.get_conversation(conversation_id) is None:
            raise NotFoundError("Conversation not found")
        return [message_view(row) for row in self.repo.list_conversation_messages(conversation_id)]

    def send_message(self, conversation_id: int, content: str) -> AdvisorReply:
        content = content.strip()
        if not content:
            raise InputValidationError("message content is required")

        conversation = self.repo.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        user = self.repo.get_user(conversation.user_id)
        if user is None:
            raise StateError(f"conversation {conversation_id} has no owner")

        self.repo.add_conversation_message(conversation.id, "user", content)
        history = [
            ChatMessage(role=row.role, content=row.content)
            for row in self.repo.list_conversation_messages(conversation.id, limit=self.settings.advisor_history_limit)
        ]

        reply_text = self.llm.advise(self.context_for(user), history)
        reply = self.repo.add_conversation_message(conversation.id, "assistant", reply_text)
        logger.info("Advisor replied conversation_id=%s turns=%s", conversation.id, len(history) + 1)
        return AdvisorReply(conversation_id=conversation.id, message=message_view(reply))

    def context_for(self, user: User) -> AdvisorContext:
        phase_row = self._phase_of(user)
        return AdvisorContext(
            phase_name=phase_row.name if phase_row else UNKNOWN_PHASE,
            phase_description=phase_row.description if phase_row else None,
            objectives=self._objectives(phase_row),
            evidence=[shared_evidence(item) for item in self.repo.list_evidence(user.id)],
        )

    def _phase_of(self, user: User) -> CareerPhaseRow | None:
        if not user.career_phase:
            return None
        return self.repo.get_phase(user.career_phase)

    def _objectives(self, phase_row: CareerPhaseRow | None) -> list[ObjectiveSummary]:
        if phase_row is None:
            return []
        rows = self.repo.list_objectives(phase_row.id, limit=self.settings.advisor_objective_limit)
        return [objective_summary(row) for row in rows]


def message_view(row: ConversationMessage) -> ConversationMessageView:
    return ConversationMessageView(id=row.id, role=row.role, content=row.content, created_at=row.created_at)
