from __future__ import annotations

import asyncio
import json
from typing import Any, NoReturn

import typer
import uvicorn

from careerproof.api.app import create_app
from careerproof.config import get_settings
from careerproof.core.advisor import CareerAdvisor
from careerproof.core.career import CareerService
from careerproof.core.cv_compiler import CVCompiler
from careerproof.core.events import ProgressChannel, iter_ndjson_records
from careerproof.core.interview_sessions import InterviewCoach
from careerproof.core.orchestrator import EvidenceCompiler
from careerproof.db.init import init_database
from careerproof.db.session import SessionLocal
from careerproof.errors import CareerProofError
from careerproof.logging_config import configure_logging
from careerproof.types import ClassificationInput, SelectedRepo

app = typer.Typer(help="CareerProof CLI")
user_app = typer.Typer(help="Onboarding and career phase")
github_app = typer.Typer(help="GitHub account linking")
evidence_app = typer.Typer(help="Evidence vault")
compile_app = typer.Typer(help="Compile evidence from GitHub repositories")
cv_app = typer.Typer(help="CV generation")
interview_app = typer.Typer(help="Interview prep sessions")
advisor_app = typer.Typer(help="Career advisor conversations")

app.add_typer(user_app, name="user")
app.add_typer(github_app, name="github")
app.add_typer(evidence_app, name="evidence")
app.add_typer(compile_app, name="compile")
app.add_typer(cv_app, name="cv")
app.add_typer(interview_app, name="interview")
app.add_typer(advisor_app, name="advisor")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _abort(exc: CareerProofError) -> NoReturn:
    typer.echo(json.dumps({"error": exc.message, "status": exc.status_code}), err=True)
    raise typer.Exit(code=1)


@app.command("init")
def init_cmd() -> None:
    """Initialize database, directories, and seed records."""
    configure_logging()
    result = init_database()
    _echo({"ok": True, **result})


@user_app.command("classify")
def user_classify(
    email: str = typer.Option(..., "--email"),
    years: float = typer.Option(..., "--years", min=0),
    degree: str = typer.Option("", "--degree"),
    internships: int = typer.Option(0, "--internships", min=0),
    greeting: bool = typer.Option(False, "--greeting"),
) -> None:
    configure_logging()
    ensure_initialized()
    data = ClassificationInput(years_experience=years, degree_type=degree, internship_count=internships)
    with SessionLocal() as db:
        try:
            result = CareerService(db).classify_and_register(email, data, with_greeting=greeting)
        except CareerProofError as exc:
            _abort(exc)
        _echo(result.to_wire())


@github_app.command("link")
def github_link(
    email: str = typer.Option(..., "--email"),
    token: str = typer.Option(..., "--token", envvar="GITHUB_TOKEN"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            user_id = CareerService(db).link_github(email, token)
        except CareerProofError as exc:
            _abort(exc)
        _echo({"user_id": user_id, "linked": True})


@evidence_app.command("submit")
def evidence_submit(
    email: str = typer.Option(..., "--email"),
    evidence_type: str = typer.Option(..., "--type", help="project, credential or achievement"),
    title: str = typer.Option(..., "--title"),
    description: str | None = typer.Option(None, "--description"),
    link: list[str] = typer.Option([], "--link"),
    public_repo: bool = typer.Option(False, "--public-repo"),
    acknowledgment: bool = typer.Option(False, "--acknowledgment"),
) -> None:
    configure_logging()
    ensure_initialized()
    if evidence_type not in {"project", "credential", "achievement"}:
        raise typer.BadParameter("must be project, credential or achievement", param_hint="--type")
    with SessionLocal() as db:
        try:
            result = CareerService(db).submit_evidence(
                email,
                evidence_type=evidence_type,  # type: ignore[arg-type]
                title=title,
                description=description,
                links=list(link),
                has_public_repo=public_repo,
                with_acknowledgment=acknowledgment,
            )
        except CareerProofError as exc:
            _abort(exc)
        _echo(result.to_wire())


@evidence_app.command("vault")
def evidence_vault(email: str = typer.Option(..., "--email")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            items = CareerService(db).list_vault(email)
        except CareerProofError as exc:
            _abort(exc)
        _echo([item.to_wire() for item in items])


@evidence_app.command("share")
def evidence_share(
    evidence_id: int = typer.Option(..., "--id"),
    off: bool = typer.Option(False, "--off", help="Make the evidence private again"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            is_shareable = CareerService(db).set_shareable(evidence_id, not off)
        except CareerProofError as exc:
            _abort(exc)
        _echo({"id": evidence_id, "isShareable": is_shareable})


@compile_app.command("start")
def compile_start(email: str = typer.Option(..., "--email")) -> None:
    """Compile a draft from the user's GitHub repositories, printing progress as it arrives."""
    configure_logging()
    ensure_initialized()

    async def _run(compiler: EvidenceCompiler) -> str | None:
        target = compiler.prepare(email)
        channel = ProgressChannel()
        task = asyncio.create_task(compiler.compile(target, channel))
        async for record in iter_ndjson_records(channel.stream()):
            typer.echo(json.dumps(record.model_dump(by_alias=True, mode="json")))
        return await task

    with SessionLocal() as db:
        try:
            run_id = asyncio.run(_run(EvidenceCompiler(db)))
        except CareerProofError as exc:
            _abort(exc)
    if run_id is None:
        raise typer.Exit(code=1)


@compile_app.command("draft")
def compile_draft(run_id: str = typer.Option(..., "--run-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            view = EvidenceCompiler(db).get_draft(run_id)
        except CareerProofError as exc:
            _abort(exc)
        _echo(view.to_wire())


@compile_app.command("approve")
def compile_approve(
    run_id: str = typer.Option(..., "--run-id"),
    repo: list[str] = typer.Option([], "--repo", help="Repository to approve; repeat. Defaults to all."),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        compiler = EvidenceCompiler(db)
        try:
            view = compiler.get_draft(run_id)
            wanted = set(repo)
            selected = [
                SelectedRepo(
                    name=item.name,
                    narrative=item.narrative,
                    credibility_base_score=item.analysis.credibility_base_score,
                    languages=item.analysis.languages,
                )
                for item in view.repos
                if not wanted or item.name in wanted
            ]
            created = compiler.approve(run_id, selected)
        except CareerProofError as exc:
            _abort(exc)
        _echo({"created": [item.model_dump() for item in created]})


@cv_app.command("generate")
def cv_generate(
    email: str = typer.Option(..., "--email"),
    role: str = typer.Option(..., "--role"),
    company: str | None = typer.Option(None, "--company"),
    tailor: bool = typer.Option(True, "--tailor/--no-tailor"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            result = CVCompiler(db).generate(email, role, company, tailor=tailor)
        except CareerProofError as exc:
            _abort(exc)
        _echo(result.to_wire())


@interview_app.command("start")
def interview_start(
    email: str = typer.Option(..., "--email"),
    role: str = typer.Option(..., "--role"),
    difficulty: str = typer.Option("medium", "--difficulty"),
    company: str | None = typer.Option(None, "--company"),
) -> None:
    configure_logging()
    ensure_initialized()
    if difficulty not in {"easy", "medium", "hard"}:
        raise typer.BadParameter("must be easy, medium or hard", param_hint="--difficulty")
    with SessionLocal() as db:
        try:
            result = InterviewCoach(db).start_session(email, role, difficulty, company)  # type: ignore[arg-type]
        except CareerProofError as exc:
            _abort(exc)
        _echo(result.to_wire())


@interview_app.command("submit")
def interview_submit(
    session_id: int = typer.Option(..., "--session-id"),
    solution: str = typer.Option(..., "--solution"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            result = InterviewCoach(db).submit_solution(session_id, solution)
        except CareerProofError as exc:
            _abort(exc)
        _echo(result.to_wire())


@interview_app.command("log-evidence")
def interview_log_evidence(session_id: int = typer.Option(..., "--session-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            created = InterviewCoach(db).log_evidence(session_id)
        except CareerProofError as exc:
            _abort(exc)
        _echo({"created": created.model_dump()})


@advisor_app.command("start")
def advisor_start(email: str = typer.Option(..., "--email")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            result = CareerAdvisor(db).start(email)
        except CareerProofError as exc:
            _abort(exc)
        _echo(result.to_wire())


@advisor_app.command("latest")
def advisor_latest(email: str = typer.Option(..., "--email")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            result = CareerAdvisor(db).latest(email)
        except CareerProofError as exc:
            _abort(exc)
        _echo(result.to_wire())


@advisor_app.command("history")
def advisor_history(conversation_id: int = typer.Option(..., "--conversation-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            messages = CareerAdvisor(db).history(conversation_id)
        except CareerProofError as exc:
            _abort(exc)
        _echo([message.to_wire() for message in messages])


@advisor_app.command("say")
def advisor_say(
    conversation_id: int = typer.Option(..., "--conversation-id"),
    message: str = typer.Option(..., "--message"),
) -> None:
    """Send one message and print the advisor's reply."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            reply = CareerAdvisor(db).send_message(conversation_id, message)
        except CareerProofError as exc:
            _abort(exc)
        typer.echo(reply.message.content)

@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
