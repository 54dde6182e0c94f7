from types import SimpleNamespace

import pytest

from careerproof.config import Settings
from careerproof.errors import UpstreamError
from careerproof.llm.router import LLMRouter, parse_json_object
from careerproof.types import (
    AdvisorContext,
    ChatMessage,
    CVStructure,
    ObjectiveSummary,
    RepoAnalysis,
    RubricScores,
    SharedEvidence,
)

from conftest import FakeTextGenerator


def _analysis() -> RepoAnalysis:
    return RepoAnalysis(
        name="alice/app",
        stars=12,
        languages=["TypeScript", "CSS"],
        is_fork=False,
        commit_count=40,
        has_tests=True,
        is_deployed=False,
        credibility_base_score=75,
    )


def test_narrative_prompt_carries_the_analysis() -> None:
    generator = FakeTextGenerator("  Built a dashboard.  ")
    narrative = LLMRouter(generator=generator).write_narrative(_analysis())

    assert narrative == "Built a dashboard."
    prompt = generator.prompts[0]
    for fragment in ["Repo: alice/app", "Stars: 12", "Languages: TypeScript, CSS", "Score: 75/100", "Has tests: true"]:
        assert fragment in prompt


def test_generator_failure_becomes_upstream_error() -> None:
    router = LLMRouter(generator=FakeTextGenerator(error=TimeoutError("read timed out")))
    with pytest.raises(UpstreamError, match="read timed out"):
        router.write_narrative(_analysis())


def test_blank_generation_is_an_error() -> None:
    router = LLMRouter(generator=FakeTextGenerator("   "))
    with pytest.raises(UpstreamError):
        router.write_feedback(
            problem_statement="p",
            solution="s",
            scores=RubricScores(correctness=50, clarity=50, completeness=50, total=50),
        )


def test_no_configured_provider_is_an_error() -> None:
    router = LLMRouter(settings=Settings(openai_api_key="", local_llm_enabled=False))
    with pytest.raises(UpstreamError, match="no text-generation provider"):
        router.generate_text("hello", task="narrative")


def test_greeting_and_acknowledgment_fall_back_to_fixed_text() -> None:
    router = LLMRouter(generator=FakeTextGenerator(error=UpstreamError("down")))
    assert "Early Career" in router.write_greeting("Early Career")
    assert "42/100" in router.write_acknowledgment(title="Portfolio", score=42, skill_tags=[])


def test_problem_statement_prompt_mentions_company_only_when_given() -> None:
    generator = FakeTextGenerator("Design a thing.")
    router = LLMRouter(generator=generator)
    router.write_problem_statement(template_text="T", role_type="backend", difficulty="medium", company="Acme")
    router.write_problem_statement(template_text="T", role_type="backend", difficulty="medium", company=None)

    assert "medium backend role at Acme." in generator.prompts[0]
    assert "medium backend role." in generator.prompts[1]


def test_tailor_cv_parses_json_reply() -> None:
    reply = '```json\n{"summary": "Backend engineer", "bullets": {"API": ["Built it."]}}\n```'
    tailored = LLMRouter(generator=FakeTextGenerator(reply)).tailor_cv(CVStructure(role="Dev", headline="Dev"))
    assert tailored.summary == "Backend engineer"
    assert tailored.bullets == {"API": ["Built it."]}


@pytest.mark.parametrize("reply", ["no json here", '{"summary": 3, "bullets": "nope"}'])
def test_tailor_cv_rejects_unusable_replies(reply: str) -> None:
    with pytest.raises(UpstreamError):
        LLMRouter(generator=FakeTextGenerator(reply)).tailor_cv(CVStructure(role="Dev", headline="Dev"))


def test_parse_json_object_reads_fenced_or_bare_replies() -> None:
    fenced = 'Here you go:\n```json\n{"summary": "Engineer", "bullets": {"API": ["x"]}}\n```'
    assert parse_json_object(fenced) == {"summary": "Engineer", "bullets": {"API": ["x"]}}
    assert parse_json_object(' {"summary": "Engineer"} ') == {"summary": "Engineer"}
    assert parse_json_object("not json") == {}
    assert parse_json_object("[1, 2]") == {}


class _StubProvider:
    def __init__(self, name: str, *, reply: str = "", error: Exception | None = None):
        self.config = SimpleNamespace(name=name)
        self.reply = reply
        self.error = error
        self.tasks: list[str] = []

    def complete(self, messages, *, task: str = "default") -> str:
        self.tasks.append(task)
        if self.error is not None:
            raise self.error
        return self.reply


def test_router_falls_through_to_the_next_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    router = LLMRouter(settings=Settings(openai_api_key="", local_llm_enabled=False))
    first = _StubProvider("openai", error=UpstreamError("openai:gpt-5-mini returned no content"))
    second = _StubProvider("local", reply="Backup answer.")
    monkeypatch.setattr(router.pool, "ordered", lambda preferred: [first, second])

    assert router.generate_text("hello", task="narrative") == "Backup answer."
    assert first.tasks == ["narrative"]
    assert second.tasks == ["narrative"]


def test_advise_puts_the_grounding_context_first() -> None:
    generator = FakeTextGenerator("Ship the dashboard.")
    context = AdvisorContext(
        phase_name="Early Career",
        phase_description="Building foundational skills",
        objectives=[ObjectiveSummary(id=1, objective_text="Build portfolio evidence", priority=1)],
        evidence=[
            SharedEvidence(id=7, type="project", title="alice/app", credibility_score=63, skill_tags=["React"]),
            SharedEvidence(id=8, type="credential", title="AWS", credibility_score=None),
        ],
    )
    history = [ChatMessage(role="user", content="What next?")]

    assert LLMRouter(generator=generator).advise(context, history) == "Ship the dashboard."
    system, user = generator.calls[0]
    assert system.role == "system"
    assert "- Career phase: Early Career" in system.content
    assert "- [1] Build portfolio evidence" in system.content
    assert "- alice/app (project): score 63/100, skills: React" in system.content
    assert "- AWS (credential): score -/100" in system.content
    assert user == history[0]


def test_advisor_prompt_without_evidence_says_so() -> None:
    generator = FakeTextGenerator("Start small.")
    LLMRouter(generator=generator).advise(AdvisorContext(), [ChatMessage(role="user", content="Hi")])
    system = generator.calls[0][0].content
    assert "- Career phase: Unknown" in system
    assert "No evidence yet." in system
    assert "None yet." in system
