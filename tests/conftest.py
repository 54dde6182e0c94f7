from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="careerproof-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'test.db'}"
os.environ["DATA_DIR"] = str(_TEST_DIR)
os.environ["APP_ENV"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOCAL_LLM_ENABLED"] = "false"

import pytest  # noqa: E402

from careerproof.db.base import Base  # noqa: E402
from careerproof.db.seed import seed_career_phases, seed_problem_templates  # noqa: E402
from careerproof.db.session import SessionLocal, engine  # noqa: E402
from careerproof.llm.router import LLMRouter  # noqa: E402
from careerproof.types import ChatMessage  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed_career_phases(session)
        seed_problem_templates(session)
    yield


class FakeTextGenerator:
    """Records prompts and answers with a canned reply."""

    def __init__(self, reply: str | None = "A concise narrative.", *, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []
        self.calls: list[list[ChatMessage]] = []

    def complete(self, messages: Sequence[ChatMessage]) -> str:
        self.calls.append(list(messages))
        self.prompts.append(messages[-1].content)
        if self.error is not None:
            raise self.error
        return self.reply or ""


class FakeGitHubClient:
    def __init__(
        self,
        repos: list[dict],
        *,
        commit_counts: dict[str, int] | None = None,
        count_error: Exception | None = None,
        contents: list[str] | None = None,
        readme: str = "",
    ):
        self.repos = repos
        self.commit_counts = commit_counts or {}
        self.count_error = count_error
        self.contents = contents or []
        self.readme = readme
        self.counted: list[str] = []

    def list_repositories(self, limit: int | None = None) -> list[dict]:
        return list(self.repos[: limit or len(self.repos)])

    def count_commits(self, full_name: str) -> int:
        self.counted.append(full_name)
        if self.count_error is not None:
            raise self.count_error
        return self.commit_counts.get(full_name, 1)

    def list_root_paths(self, full_name: str) -> list[str]:
        return list(self.contents)

    def get_readme(self, full_name: str) -> str:
        return self.readme


def make_repo(full_name: str, **overrides) -> dict:
    payload = {
        "name": full_name.split("/")[-1],
        "full_name": full_name,
        "stargazers_count": 0,
        "language": "Python",
        "fork": False,
        "default_branch": "main",
        "html_url": f"https://github.com/{full_name}",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def text_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def llm(text_generator: FakeTextGenerator) -> LLMRouter:
    return LLMRouter(generator=text_generator)
