from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CareerPhase = Literal["education", "early_career", "mid_career", "leadership", "executive", "legacy"]
EvidenceType = Literal["project", "credential", "achievement"]
Difficulty = Literal["easy", "medium", "hard"]
SessionStatus = Literal["awaiting_submission", "scored"]
SectionType = Literal["experience", "projects", "education", "skills"]
ProviderName = Literal["openai", "local"]
ChatRole = Literal["system", "user", "assistant"]


class CamelModel(BaseModel):
    """Wire models: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class ClassificationInput(BaseModel):
    years_experience: float = Field(ge=0)
    degree_type: str = ""
    internship_count: int = Field(default=0, ge=0)


class EvidenceInput(BaseModel):
    type: EvidenceType
    title: str
    description: str | None = None
    links: list[str] = Field(default_factory=list)
    has_public_repo: bool = False
    has_dates: bool = False


class RepoMetadata(BaseModel):
    """Raw repository payload from the GitHub API plus inferred signals."""

    model_config = ConfigDict(extra="ignore")

    name: str
    full_name: str | None = None
    stargazers_count: int = 0
    language: str | None = None
    languages: dict[str, int] | None = None
    fork: bool = False
    default_branch: str | None = None
    commit_count: int = 0
    contents: list[str] = Field(default_factory=list)
    readme: str = ""


class RepoAnalysis(CamelModel):
    name: str
    stars: int
    languages: list[str] = Field(default_factory=list)
    is_fork: bool
    commit_count: int
    has_tests: bool
    is_deployed: bool
    credibility_base_score: int = Field(ge=0, le=100)


class DraftRepo(BaseModel):
    name: str
    analysis: RepoAnalysis
    narrative: str


class EvidenceDraft(BaseModel):
    """Schema of ``evidence_compiler_drafts.draft_json``."""

    repos: list[DraftRepo] = Field(default_factory=list)

    def to_json_payload(self) -> dict[str, Any]:
        return {
            "repos": [
                {"name": repo.name, "analysis": repo.analysis.to_wire(), "narrative": repo.narrative}
                for repo in self.repos
            ]
        }


class DraftView(CamelModel):
    run_id: str
    user_id: int
    repos: list[DraftRepo]

    def to_wire(self) -> dict[str, Any]:
        return {
            "runId": self.run_id,
            "userId": self.user_id,
            "repos": EvidenceDraft(repos=self.repos).to_json_payload()["repos"],
        }


class SelectedRepo(CamelModel):
    name: str
    narrative: str
    credibility_base_score: float = Field(ge=0, le=100, allow_inf_nan=False)
    languages: list[str] = Field(default_factory=list)


class CreatedEvidence(BaseModel):
    id: int
    title: str


class ProgressEvent(BaseModel):
    type: Literal["progress"] = "progress"
    message: str
    step: int
    total: int


class CompleteEvent(CamelModel):
    type: Literal["complete"] = "complete"
    run_id: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


ProgressRecord = Annotated[ProgressEvent | CompleteEvent | ErrorEvent, Field(discriminator="type")]


class CVEvidenceItem(BaseModel):
    id: int
    type: str
    title: str
    description: str | None = None
    credibility_score: int | None = None
    skill_tags: list[str] = Field(default_factory=list)


class CVItem(BaseModel):
    title: str
    subtitle: str | None = None
    bullets: list[str] = Field(default_factory=list)
    score: int | None = None


class CVSection(BaseModel):
    type: SectionType
    title: str
    items: list[CVItem] = Field(default_factory=list)


class CVStructure(CamelModel):
    role: str
    company: str | None = None
    headline: str
    sections: list[CVSection] = Field(default_factory=list)
    skills_summary: list[str] = Field(default_factory=list)


class TailoredCV(BaseModel):
    summary: str = ""
    bullets: dict[str, list[str]] = Field(default_factory=dict)


class RubricWeights(BaseModel):
    model_config = ConfigDict(extra="ignore")

    correctness: int = 40
    clarity: int = 30
    completeness: int = 30


class RubricScores(BaseModel):
    correctness: int
    clarity: int
    completeness: int
    total: int


class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class ObjectiveSummary(CamelModel):
    id: int
    objective_text: str
    priority: int
    category: str = ""


class OnboardingResult(CamelModel):
    user_id: int
    phase: CareerPhase
    phase_id: int
    phase_name: str
    phase_description: str
    objectives: list[ObjectiveSummary] = Field(default_factory=list)
    greeting: str | None = None


class EvidenceSubmission(CamelModel):
    evidence_id: int
    score: int
    skill_tags: list[str] = Field(default_factory=list)
    acknowledgment: str | None = None


class SharedEvidence(CamelModel):
    id: int
    type: str
    title: str
    description: str | None = None
    credibility_score: int | None = None
    skill_tags: list[str] = Field(default_factory=list)


class VaultItem(SharedEvidence):
    is_shareable: bool
    share_token: str
    submitted_at: datetime
    created_at: datetime


class CVGenerationResult(CamelModel):
    generation_id: int
    structure: CVStructure
    tailored_summary: str | None = None
    tailored_bullets: dict[str, list[str]] = Field(default_factory=dict)


class InterviewStart(CamelModel):
    session_id: int
    problem_statement: str
    role_type: str
    difficulty: Difficulty
    company: str | None = None


class InterviewResult(CamelModel):
    session_id: int
    scores: RubricScores
    feedback: str


class AdvisorContext(BaseModel):
    """What the advisor is told about the user before every reply."""

    phase_name: str = "Unknown"
    phase_description: str | None = None
    objectives: list[ObjectiveSummary] = Field(default_factory=list)
    evidence: list[SharedEvidence] = Field(default_factory=list)


class ConversationStart(CamelModel):
    conversation_id: int
    phase_name: str
    objectives: list[ObjectiveSummary] = Field(default_factory=list)


class LatestConversation(CamelModel):
    conversation_id: int | None = None


class ConversationMessageView(CamelModel):
    id: int
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime


class AdvisorReply(CamelModel):
    conversation_id: int
    message: ConversationMessageView
