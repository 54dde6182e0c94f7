from __future__ import annotations

from careerproof.types import RepoAnalysis, RepoMetadata

TEST_PATH_MARKERS = ("test", "tests", "__tests__", "spec", "specs", ".test.", ".spec.")
DEPLOY_MARKERS = ("vercel.app", "netlify.app", "heroku", "railway", "deployed", "github.io", "production")

BASE_SCORE = 20


def detect_languages(repo: RepoMetadata) -> list[str]:
    if repo.language:
        return [repo.language]
    if repo.languages:
        # sorted() is stable, so equal byte counts keep upstream order
        return sorted(repo.languages, key=lambda lang: repo.languages[lang], reverse=True)
    return []


def infer_has_tests(contents: list[str]) -> bool:
    return any(marker in path.lower() for path in contents for marker in TEST_PATH_MARKERS)


def infer_is_deployed(readme: str) -> bool:
    lower = readme.lower()
    return any(marker in lower for marker in DEPLOY_MARKERS)


def _stars_points(stars: int) -> int:
    if stars >= 100:
        return 25
    if stars >= 10:
        return 15
    if stars >= 1:
        return 5
    return 0


def _commit_points(commit_count: int) -> int:
    if commit_count >= 50:
        return 15
    if commit_count >= 10:
        return 10
    return 0


def analyze_repo(repo: RepoMetadata) -> RepoAnalysis:
    """Normalize GitHub repository metadata into a scored analysis.

    The commit count is supplied by the caller; this function does no I/O.
    """
    languages = detect_languages(repo)
    has_tests = infer_has_tests(repo.contents)
    is_deployed = infer_is_deployed(repo.readme)

    score = BASE_SCORE + _stars_points(repo.stargazers_count)
    if languages:
        score += 10
    if not repo.fork:
        score += 10
    score += _commit_points(repo.commit_count)
    if has_tests:
        score += 10
    if is_deployed:
        score += 10

    return RepoAnalysis(
        name=repo.full_name or repo.name,
        stars=repo.stargazers_count,
        languages=languages,
        is_fork=repo.fork,
        commit_count=repo.commit_count,
        has_tests=has_tests,
        is_deployed=is_deployed,
        credibility_base_score=min(100, score),
    )
