from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from careerproof.api.deps import get_db, get_github_factory, get_llm_router
from careerproof.api.schemas import (
    ApproveRequest,
    ApproveResponse,
    ClassifyRequest,
    CompilerStartRequest,
    ConversationMessageRequest,
    ConversationStartRequest,
    CVGenerateRequest,
    EvidenceSubmitRequest,
    GitHubLinkRequest,
    GitHubLinkResponse,
    InterviewLogRequest,
    InterviewLogResponse,
    InterviewStartRequest,
    InterviewSubmitRequest,
    ShareToggleRequest,
    ShareToggleResponse,
)
from careerproof.core.advisor import CareerAdvisor
from careerproof.core.career import CareerService
from careerproof.core.cv_compiler import CVCompiler
from careerproof.core.events import NDJSON_MEDIA_TYPE, ProgressChannel, stream_from_producer
from careerproof.core.interview_sessions import InterviewCoach
from careerproof.core.orchestrator import EvidenceCompiler, GitHubFactory
from careerproof.db.session import SessionLocal
from careerproof.llm.router import LLMRouter
from careerproof.types import (
    AdvisorReply,
    ClassificationInput,
    ConversationMessageView,
    ConversationStart,
    CVGenerationResult,
    EvidenceSubmission,
    InterviewResult,
    InterviewStart,
    LatestConversation,
    OnboardingResult,
    SharedEvidence,
    VaultItem,
)

router = APIRouter(prefix="/api", tags=["api"])


@router.post("/onboarding/classify", response_model=OnboardingResult)
def classify(
    payload: ClassifyRequest,
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> OnboardingResult:
    data = ClassificationInput(
        years_experience=payload.years_experience,
        degree_type=payload.degree_type,
        internship_count=payload.internship_count,
    )
    return CareerService(db, llm=llm).classify_and_register(payload.email, data, with_greeting=payload.greeting)


@router.post("/integrations/github", response_model=GitHubLinkResponse)
def link_github(payload: GitHubLinkRequest, db: Session = Depends(get_db)) -> GitHubLinkResponse:
    user_id = CareerService(db).link_github(payload.email, payload.access_token)
    return GitHubLinkResponse(user_id=user_id)


@router.post("/evidence/submit", response_model=EvidenceSubmission)
def submit_evidence(
    payload: EvidenceSubmitRequest,
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> EvidenceSubmission:
    return CareerService(db, llm=llm).submit_evidence(
        payload.email,
        evidence_type=payload.type,
        title=payload.title,
        description=payload.description,
        links=payload.links,
        has_public_repo=payload.has_public_repo,
        with_acknowledgment=payload.acknowledgment,
    )


@router.get("/evidence/vault", response_model=list[VaultItem])
def evidence_vault(email: str = Query(..., min_length=3), db: Session = Depends(get_db)) -> list[VaultItem]:
    return CareerService(db).list_vault(email)


@router.patch("/evidence/{evidence_id}/share", response_model=ShareToggleResponse)
def toggle_share(
    evidence_id: int,
    payload: ShareToggleRequest,
    db: Session = Depends(get_db),
) -> ShareToggleResponse:
    return ShareToggleResponse(is_shareable=CareerService(db).set_shareable(evidence_id, payload.is_shareable))


@router.get("/evidence/shared/{share_token}", response_model=SharedEvidence)
def shared_evidence(share_token: str, db: Session = Depends(get_db)) -> SharedEvidence:
    return CareerService(db).get_shared(share_token)


@router.post("/workflows/evidence-compiler/start")
async def start_evidence_compiler(
    payload: CompilerStartRequest,
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
    github_factory: GitHubFactory = Depends(get_github_factory),
) -> StreamingResponse:
    target = EvidenceCompiler(db, github_factory=github_factory, llm=llm).prepare(payload.email)

    async def produce(channel: ProgressChannel) -> None:
        # The request session closes once the response starts; the run owns its own.
        with SessionLocal() as session:
            compiler = EvidenceCompiler(session, github_factory=github_factory, llm=llm)
            await compiler.compile(target, channel)

    return StreamingResponse(stream_from_producer(produce), media_type=NDJSON_MEDIA_TYPE)


@router.get("/workflows/evidence-compiler/draft")
def get_evidence_draft(
    run_id: str = Query(..., alias="runId", min_length=1),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return EvidenceCompiler(db).get_draft(run_id).to_wire()


@router.post("/workflows/evidence-compiler/approve", response_model=ApproveResponse)
def approve_evidence_draft(payload: ApproveRequest, db: Session = Depends(get_db)) -> ApproveResponse:
    created = EvidenceCompiler(db).approve(payload.run_id, payload.selected)
    return ApproveResponse(created=created)


@router.post("/workflows/cv-compiler/generate", response_model=CVGenerationResult)
def generate_cv(
    payload: CVGenerateRequest,
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> CVGenerationResult:
    return CVCompiler(db, llm=llm).generate(
        payload.email,
        payload.target_role,
        payload.target_company,
        tailor=payload.tailor,
    )


@router.post("/workflows/interview-prep/start", response_model=InterviewStart)
def start_interview(
    payload: InterviewStartRequest,
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> InterviewStart:
    return InterviewCoach(db, llm=llm).start_session(
        payload.email,
        payload.role_type,
        payload.difficulty,
        payload.company,
    )


@router.post("/workflows/interview-prep/submit", response_model=InterviewResult)
def submit_interview(
    payload: InterviewSubmitRequest,
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> InterviewResult:
    return InterviewCoach(db, llm=llm).submit_solution(payload.session_id, payload.solution)


@router.post("/workflows/interview-prep/log-evidence", response_model=InterviewLogResponse)
def log_interview_evidence(payload: InterviewLogRequest, db: Session = Depends(get_db)) -> InterviewLogResponse:
    return InterviewLogResponse(created=InterviewCoach(db).log_evidence(payload.session_id))


@router.post("/conversations/start", response_model=ConversationStart)
def start_conversation(payload: ConversationStartRequest, db: Session = Depends(get_db)) -> ConversationStart:
    return CareerAdvisor(db).start(payload.email)


@router.get("/conversations/latest", response_model=LatestConversation)
def latest_conversation(email: str = Query(..., min_length=3), db: Session = Depends(get_db)) -> LatestConversation:
    return CareerAdvisor(db).latest(email)


@router.get("/conversations/{conversation_id}/history", response_model=list[ConversationMessageView])
def conversation_history(conversation_id: int, db: Session = Depends(get_db)) -> list[ConversationMessageView]:
    return CareerAdvisor(db).history(conversation_id)


@router.post("/conversations/{conversation_id}/message", response_model=AdvisorReply)
def send_conversation_message(
    conversation_id: int,
    payload: ConversationMessageRequest,
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> AdvisorReply:
    return CareerAdvisor(db, llm=llm).send_message(conversation_id, payload.content)
