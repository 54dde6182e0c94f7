from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session

from careerproof.config import get_settings
from careerproof.core.github_client import GitHubClient
from careerproof.core.orchestrator import GitHubFactory
from careerproof.db.session import get_db_session
from careerproof.llm.router import LLMRouter


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_llm_router() -> LLMRouter:
    return LLMRouter(get_settings())


def get_github_factory() -> GitHubFactory:
    settings = get_settings()
    return lambda token: GitHubClient(token, settings=settings)
