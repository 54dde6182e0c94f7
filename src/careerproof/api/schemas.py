from __future__ import annotations

from pydantic import BaseModel, Field

from careerproof.types import CamelModel, CreatedEvidence, Difficulty, EvidenceType, SelectedRepo


class ClassifyRequest(CamelModel):
    email: str = Field(min_length=3)
    years_experience: float = Field(ge=0)
    degree_type: str = ""
    internship_count: int = Field(default=0, ge=0)
    greeting: bool = False


class GitHubLinkRequest(CamelModel):
    email: str = Field(min_length=3)
    access_token: str = Field(min_length=1)


class GitHubLinkResponse(CamelModel):
    user_id: int
    linked: bool = True


class EvidenceSubmitRequest(CamelModel):
    email: str = Field(min_length=3)
    type: EvidenceType
    title: str = Field(min_length=1)
    description: str | None = None
    links: list[str] = Field(default_factory=list)
    has_public_repo: bool = False
    acknowledgment: bool = False


class ShareToggleRequest(CamelModel):
    is_shareable: bool


class ShareToggleResponse(CamelModel):
    is_shareable: bool


class CompilerStartRequest(BaseModel):
    email: str = Field(min_length=3)


class ApproveRequest(CamelModel):
    run_id: str = Field(min_length=1)
    selected: list[SelectedRepo] = Field(default_factory=list)


class ApproveResponse(BaseModel):
    created: list[CreatedEvidence]


class CVGenerateRequest(CamelModel):
    email: str = Field(min_length=3)
    target_role: str = Field(min_length=1)
    target_company: str | None = None
    tailor: bool = True


class InterviewStartRequest(CamelModel):
    email: str = Field(min_length=3)
    role_type: str = Field(min_length=1)
    company: str | None = None
    difficulty: Difficulty


class InterviewSubmitRequest(CamelModel):
    session_id: int
    solution: str = Field(min_length=1)


class InterviewLogRequest(CamelModel):
    session_id: int


class InterviewLogResponse(BaseModel):
    created: CreatedEvidence


class ConversationStartRequest(BaseModel):
    email: str = Field(min_length=3)


class ConversationMessageRequest(BaseModel):
    content: str = Field(min_length=1)
