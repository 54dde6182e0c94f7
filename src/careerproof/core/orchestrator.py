from __future__ import annotations

import asyncio
import logging
import secrets
import uuid
from collections.abc import Callable
from dataclasses import dataclass

import requests
from pydantic import ValidationError
from sqlalchemy.orm import Session

from careerproof.config import Settings, get_settings
from careerproof.core.events import ProgressChannel
from careerproof.core.github_client import GitHubClient
from careerproof.core.repo_analyzer import analyze_repo
from careerproof.core.scorer import clamp, extract_skill_tags, round_half_up, score_evidence
from careerproof.db.repositories import Repository
from careerproof.errors import (
    CareerProofError,
    ChannelClosedError,
    InputValidationError,
    NotFoundError,
    UpstreamError,
)
from careerproof.llm.router import LLMRouter
from careerproof.types import (
    CompleteEvent,
    CreatedEvidence,
    DraftRepo,
    DraftView,
    ErrorEvent,
    EvidenceDraft,
    EvidenceInput,
    ProgressEvent,
    RepoMetadata,
    SelectedRepo,
)

logger = logging.getLogger(__name__)

NO_REPOS_MESSAGE = "No owned repos found."
GITHUB_PROFILE_URL = "https://github.com/{name}"

# Failures of optional per-repo enrichment; they degrade the analysis instead of aborting the run.
_ENRICHMENT_ERRORS = (requests.RequestException, UpstreamError, ValueError)

GitHubFactory = Callable[[str], GitHubClient]


@dataclass(frozen=True, slots=True)
class CompilationTarget:
    user_id: int
    access_token: str


class EvidenceCompiler:
    """Turns a user's GitHub repositories into a reviewable evidence draft.

    ``prepare`` validates the request before any stream is opened. ``compile``
    then reports progress over a ``ProgressChannel`` and persists one draft per
    successful run. ``approve`` commits selected draft items as evidence.
    """

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        github_factory: GitHubFactory | None = None,
        llm: LLMRouter | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.github_factory = github_factory or (lambda token: GitHubClient(token, settings=self.settings))
        self.llm = llm or LLMRouter(self.settings)

    def prepare(self, email: str) -> CompilationTarget:
        user = self.repo.get_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found. Complete onboarding first.")

        integration = self.repo.get_github_integration(user.id)
        if integration is None or not integration.access_token:
            raise InputValidationError("GitHub not connected. Connect GitHub first.")

        return CompilationTarget(user_id=user.id, access_token=integration.access_token)

    async def compile(self, target: CompilationTarget, channel: ProgressChannel) -> str | None:
        """Run one compilation. Returns the run id, or None if no draft was saved."""
        logger.info("Evidence compilation started user_id=%s", target.user_id)
        try:
            return await self._compile(target, channel)
        except ChannelClosedError:
            logger.info("Evidence compilation abandoned, consumer disconnected user_id=%s", target.user_id)
            return None
        except Exception as exc:
            if isinstance(exc, CareerProofError):
                logger.warning("Evidence compilation failed user_id=%s: %s", target.user_id, exc.message)
                message = exc.message
            else:
                logger.exception("Evidence compilation crashed user_id=%s", target.user_id)
                message = str(exc) or "Unknown error"
            try:
                await channel.send(ErrorEvent(message=message))
            except ChannelClosedError:
                logger.info("Could not report failure, consumer already gone user_id=%s", target.user_id)
            return None
        finally:
            await channel.close()

    async def _compile(self, target: CompilationTarget, channel: ProgressChannel) -> str | None:
        client = self.github_factory(target.access_token)

        logger.info("Fetching repositories user_id=%s", target.user_id)
        listing = await asyncio.to_thread(client.list_repositories, self.settings.github_repo_page_size)
        repos = self._select_repositories(listing)
        if not repos:
            logger.info("No owned repositories user_id=%s", target.user_id)
            await channel.send(ErrorEvent(message=NO_REPOS_MESSAGE))
            return None

        count = len(repos)
        total = 2 * count + 1
        results: list[DraftRepo] = []
        for index, meta in enumerate(repos):
            display_name = meta.full_name or meta.name
            logger.info("Analyzing repository %s (%s/%s)", display_name, index + 1, count)
            await channel.send(
                ProgressEvent(
                    message=f"Analyzing {display_name} ({index + 1}/{count})...",
                    step=2 * index + 1,
                    total=total,
                )
            )

            meta.commit_count = await asyncio.to_thread(self._count_commits, client, display_name)
            if self.settings.compiler_fetch_repo_contents:
                meta.contents, meta.readme = await asyncio.to_thread(self._fetch_contents, client, display_name)
            analysis = analyze_repo(meta)

            logger.info("Writing narrative for %s", analysis.name)
            await channel.send(
                ProgressEvent(
                    message=f"Writing narrative for {analysis.name}...",
                    step=2 * index + 2,
                    total=total,
                )
            )
            narrative = await asyncio.to_thread(self.llm.write_narrative, analysis)
            results.append(DraftRepo(name=analysis.name, analysis=analysis, narrative=narrative))

        await channel.send(ProgressEvent(message="Saving draft...", step=total, total=total))
        run_id = str(uuid.uuid4())
        self.repo.create_draft(run_id, target.user_id, EvidenceDraft(repos=results))
        logger.info("Draft persisted run_id=%s repos=%s", run_id, len(results))

        try:
            await channel.send(CompleteEvent(run_id=run_id))
        except ChannelClosedError:
            logger.warning("Consumer left before completion was reported, draft run_id=%s is saved", run_id)
        return run_id

    def _select_repositories(self, listing: list[dict]) -> list[RepoMetadata]:
        owned = [item for item in listing if isinstance(item, dict) and not item.get("fork")]
        try:
            return [RepoMetadata.model_validate(item) for item in owned[: self.settings.compiler_max_repos]]
        except ValidationError as exc:
            raise UpstreamError("GitHub API returned a malformed repository") from exc

    @staticmethod
    def _count_commits(client: GitHubClient, full_name: str) -> int:
        try:
            return client.count_commits(full_name)
        except _ENRICHMENT_ERRORS as exc:
            logger.warning("Commit count failed for %s, using 0: %s", full_name, exc)
            return 0

    @staticmethod
    def _fetch_contents(client: GitHubClient, full_name: str) -> tuple[list[str], str]:
        try:
            contents = client.list_root_paths(full_name)
        except _ENRICHMENT_ERRORS as exc:
            logger.warning("Contents listing failed for %s: %s", full_name, exc)
            contents = []
        try:
            readme = client.get_readme(full_name)
        except _ENRICHMENT_ERRORS as exc:
            logger.warning("README fetch failed for %s: %s", full_name, exc)
            readme = ""
        return contents, readme

    def get_draft(self, run_id: str) -> DraftView:
        row = self.repo.get_draft(run_id)
        if row is None:
            raise NotFoundError("Draft not found")
        payload = self.repo.load_draft_payload(row)
        return DraftView(run_id=row.run_id, user_id=row.user_id, repos=payload.repos)

    def approve(self, run_id: str, selected: list[SelectedRepo]) -> list[CreatedEvidence]:
        row = self.repo.get_draft(run_id)
        if row is None:
            raise NotFoundError("Draft not found")

        draft_names = {item.name for item in self.repo.load_draft_payload(row).repos}
        unknown = [item.name for item in selected if item.name not in draft_names]
        if unknown:
            raise InputValidationError(f"Selected repos are not part of draft {run_id}: {', '.join(unknown)}")

        created: list[CreatedEvidence] = []
        for item in selected:
            combined = f"{item.name} {item.narrative} {' '.join(item.languages)}"
            fresh = score_evidence(
                EvidenceInput(
                    type="project",
                    title=item.name,
                    description=item.narrative,
                    links=[GITHUB_PROFILE_URL.format(name=item.name)],
                    has_public_repo=True,
                )
            )
            evidence = self.repo.create_evidence(
                user_id=row.user_id,
                evidence_type="project",
                title=item.name,
                description=item.narrative,
                credibility_score=clamp(round_half_up((fresh + item.credibility_base_score) / 2)),
                skill_tags=extract_skill_tags(combined),
                share_token=secrets.token_hex(16),
            )
            created.append(CreatedEvidence(id=evidence.id, title=evidence.title))

        logger.info("Approved draft run_id=%s created=%s", run_id, len(created))
        return created
