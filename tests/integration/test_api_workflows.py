from __future__ import annotations

from fastapi.testclient import TestClient

from careerproof.api.app import create_app
from careerproof.api.deps import get_github_factory, get_llm_router
from careerproof.core.events import parse_ndjson
from careerproof.llm.router import LLMRouter
from careerproof.types import CompleteEvent, ErrorEvent

from conftest import FakeGitHubClient, FakeTextGenerator, make_repo

EMAIL = "dev@example.com"


def _client(github: FakeGitHubClient | None = None, reply: str = "A concise narrative.") -> TestClient:
    app = create_app()
    app.dependency_overrides[get_llm_router] = lambda: LLMRouter(generator=FakeTextGenerator(reply))
    app.dependency_overrides[get_github_factory] = lambda: (lambda token: github or FakeGitHubClient([]))
    return TestClient(app)


def _onboard(client: TestClient, *, link: bool = True) -> None:
    resp = client.post(
        "/api/onboarding/classify",
        json={"email": EMAIL, "yearsExperience": 1, "degreeType": "BSc", "internshipCount": 1},
    )
    assert resp.status_code == 200
    if link:
        resp = client.post("/api/integrations/github", json={"email": EMAIL, "accessToken": "gho_test"})
        assert resp.status_code == 200


def test_onboarding_response_shape() -> None:
    client = _client()
    resp = client.post("/api/onboarding/classify", json={"email": EMAIL, "yearsExperience": 3})
    assert resp.status_code == 200
    body = resp.json()
    assert body["phase"] == "mid_career"
    assert body["phaseName"] == "Mid Career"
    assert body["objectives"] == []
    assert "phase_name" not in body

    early = client.post("/api/onboarding/classify", json={"email": "new@example.com", "yearsExperience": 0}).json()
    assert early["phaseId"] > 0
    assert set(early["objectives"][0]) == {"id", "objectiveText", "priority", "category"}


def test_compiler_stream_draft_and_approve_over_http() -> None:
    github = FakeGitHubClient(
        [make_repo("alice/react-app", language="TypeScript"), make_repo("alice/fork", fork=True)]
    )
    client = _client(github)
    _onboard(client)

    resp = client.post("/api/workflows/evidence-compiler/start", json={"email": EMAIL})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/x-ndjson")
    records = parse_ndjson(resp.iter_bytes())
    assert [record.type for record in records] == ["progress", "progress", "progress", "complete"]
    assert isinstance(records[-1], CompleteEvent)
    run_id = records[-1].run_id

    draft = client.get("/api/workflows/evidence-compiler/draft", params={"runId": run_id})
    assert draft.status_code == 200
    body = draft.json()
    assert body["runId"] == run_id
    repo = body["repos"][0]
    assert repo["name"] == "alice/react-app"
    assert repo["narrative"] == "A concise narrative."
    assert set(repo["analysis"]) >= {"isFork", "commitCount", "hasTests", "isDeployed", "credibilityBaseScore"}

    approve = client.post(
        "/api/workflows/evidence-compiler/approve",
        json={
            "runId": run_id,
            "selected": [
                {
                    "name": repo["name"],
                    "narrative": repo["narrative"],
                    "credibilityBaseScore": repo["analysis"]["credibilityBaseScore"],
                    "languages": repo["analysis"]["languages"],
                }
            ],
        },
    )
    assert approve.status_code == 200
    created = approve.json()["created"]
    assert [item["title"] for item in created] == ["alice/react-app"]

    vault = client.get("/api/evidence/vault", params={"email": EMAIL}).json()
    assert vault[0]["title"] == "alice/react-app"
    assert vault[0]["skillTags"] == ["React", "TypeScript"]


def test_start_rejects_unknown_user_and_unlinked_github_before_streaming() -> None:
    client = _client()
    missing = client.post("/api/workflows/evidence-compiler/start", json={"email": EMAIL})
    assert missing.status_code == 404
    assert missing.json() == {"error": "User not found. Complete onboarding first."}

    _onboard(client, link=False)
    unlinked = client.post("/api/workflows/evidence-compiler/start", json={"email": EMAIL})
    assert unlinked.status_code == 400
    assert "GitHub not connected" in unlinked.json()["error"]


def test_empty_repository_list_streams_one_error_record() -> None:
    client = _client(FakeGitHubClient([make_repo("alice/fork", fork=True)]))
    _onboard(client)

    resp = client.post("/api/workflows/evidence-compiler/start", json={"email": EMAIL})
    assert resp.status_code == 200
    assert parse_ndjson(resp.iter_bytes()) == [ErrorEvent(message="No owned repos found.")]


def test_draft_and_approve_for_unknown_run_are_404() -> None:
    client = _client()
    assert client.get("/api/workflows/evidence-compiler/draft", params={"runId": "nope"}).status_code == 404
    resp = client.post("/api/workflows/evidence-compiler/approve", json={"runId": "nope", "selected": []})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Draft not found"}


def test_approve_rejects_out_of_range_scores_with_422() -> None:
    client = _client()
    body = (
        '{"runId": "run-1", "selected": [{"name": "alice/app", "narrative": "n", '
        '"credibilityBaseScore": 1e400, "languages": []}]}'
    )
    overflow = client.post(
        "/api/workflows/evidence-compiler/approve",
        content=body,
        headers={"content-type": "application/json"},
    )
    assert overflow.status_code == 422
    assert overflow.json()["error"] == "Invalid request"
    assert any("credibilityBaseScore" in error["loc"] for error in overflow.json()["detail"])

    too_high = client.post(
        "/api/workflows/evidence-compiler/approve",
        json={"runId": "run-1", "selected": [{"name": "alice/app", "narrative": "n", "credibilityBaseScore": 1000}]},
    )
    assert too_high.status_code == 422


def test_evidence_submit_share_and_public_lookup() -> None:
    client = _client()
    _onboard(client, link=False)

    submit = client.post(
        "/api/evidence/submit",
        json={"email": EMAIL, "type": "achievement", "title": "Hackathon winner", "description": "Won in May 2024"},
    )
    assert submit.status_code == 200
    body = submit.json()
    assert body["score"] == 45
    evidence_id = body["evidenceId"]
    assert body["skillTags"] == []
    assert "evidence_id" not in body

    token = client.get("/api/evidence/vault", params={"email": EMAIL}).json()[0]["shareToken"]
    assert client.get(f"/api/evidence/shared/{token}").status_code == 404

    toggle = client.patch(f"/api/evidence/{evidence_id}/share", json={"isShareable": True})
    assert toggle.json() == {"isShareable": True}

    shared = client.get(f"/api/evidence/shared/{token}")
    assert shared.status_code == 200
    assert shared.json()["credibilityScore"] == 45


def test_invalid_evidence_type_is_a_validation_error() -> None:
    client = _client()
    resp = client.post("/api/evidence/submit", json={"email": EMAIL, "type": "hobby", "title": "x"})
    assert resp.status_code == 422


def test_interview_flow_over_http() -> None:
    client = _client(reply="Explain your design.")
    _onboard(client, link=False)

    started = client.post(
        "/api/workflows/interview-prep/start",
        json={"email": EMAIL, "roleType": "backend", "difficulty": "medium"},
    )
    assert started.status_code == 200
    session_id = started.json()["sessionId"]
    assert started.json()["problemStatement"] == "Explain your design."

    payload = {"sessionId": session_id, "solution": "First I design the endpoints, then the storage."}
    submitted = client.post("/api/workflows/interview-prep/submit", json=payload)
    assert submitted.status_code == 200
    assert 0 <= submitted.json()["scores"]["total"] <= 100

    again = client.post("/api/workflows/interview-prep/submit", json=payload)
    assert again.status_code == 409

    logged = client.post("/api/workflows/interview-prep/log-evidence", json={"sessionId": session_id})
    assert logged.status_code == 200
    assert logged.json()["created"]["title"] == "Interview prep: backend (medium)"


def test_cv_generation_over_http() -> None:
    client = _client(reply='{"summary": "Engineer.", "bullets": {}}')
    _onboard(client, link=False)
    client.post("/api/evidence/submit", json={"email": EMAIL, "type": "project", "title": "Site"})

    resp = client.post("/api/workflows/cv-compiler/generate", json={"email": EMAIL, "targetRole": "Frontend"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["structure"]["headline"] == "Frontend"
    assert body["tailoredSummary"] == "Engineer."


def test_upstream_failure_maps_to_502() -> None:
    client = _client(reply="not json")
    _onboard(client, link=False)
    resp = client.post("/api/workflows/cv-compiler/generate", json={"email": EMAIL, "targetRole": "Frontend"})
    assert resp.status_code == 502
    assert "error" in resp.json()


def test_advisor_conversation_over_http() -> None:
    client = _client(reply="Keep shipping.")
    missing = client.post("/api/conversations/start", json={"email": EMAIL})
    assert missing.status_code == 404
    assert missing.json() == {"error": "User not found. Complete onboarding first."}

    _onboard(client, link=False)
    assert client.get("/api/conversations/latest", params={"email": EMAIL}).json() == {"conversationId": None}

    started = client.post("/api/conversations/start", json={"email": EMAIL}).json()
    conversation_id = started["conversationId"]
    assert started["phaseName"] == "Early Career"
    assert started["objectives"][0]["objectiveText"]

    reply = client.post(f"/api/conversations/{conversation_id}/message", json={"content": "What next?"})
    assert reply.status_code == 200
    assert reply.json()["message"]["content"] == "Keep shipping."

    history = client.get(f"/api/conversations/{conversation_id}/history").json()
    assert [(item["role"], item["content"]) for item in history] == [
        ("user", "What next?"),
        ("assistant", "Keep shipping."),
    ]
    assert "createdAt" in history[0]
    assert client.get("/api/conversations/latest", params={"email": EMAIL}).json() == {
        "conversationId": conversation_id
    }
    assert client.get("/api/conversations/999/history").status_code == 404


def test_health() -> None:
    assert _client().get("/health").json() == {"status": "ok"}
