from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from careerproof.config import Settings, get_settings
from careerproof.errors import UpstreamError
from careerproof.llm.prompts import (
    CV_TAILOR_PROMPT,
    EVIDENCE_ACK_PROMPT,
    ONBOARDING_GREETING_PROMPT,
    PROBLEM_STATEMENT_PROMPT,
    REPO_NARRATIVE_PROMPT,
    SOLUTION_FEEDBACK_PROMPT,
    render_advisor_prompt,
)
from careerproof.llm.providers import ProviderPool, require_text
from careerproof.types import AdvisorContext, ChatMessage, CVStructure, RepoAnalysis, RubricScores, TailoredCV

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def complete(self, messages: Sequence[ChatMessage]) -> str: ...


class LLMRouter:
    """Task-level text generation on top of the provider pool.

    Narratives, problem statements, feedback, CV tailoring and advisor replies raise
    ``UpstreamError`` when no provider answers. Greetings and
    acknowledgments fall back to fixed text.
    """

    def __init__(self, settings: Settings | None = None, generator: TextGenerator | None = None):
        self.settings = settings or get_settings()
        self.pool = ProviderPool(self.settings)
        self.generator = generator

    def complete(self, messages: Sequence[ChatMessage], *, task: str = "default") -> str:
        if self.generator is not None:
            try:
                text = self.generator.complete(messages)
            except UpstreamError:
                raise
            except Exception as exc:
                raise UpstreamError(f"text generation failed: {exc}") from exc
            return require_text(text, source="generator", task=task)

        providers = self.pool.ordered(self._provider_name_for(task))
        if not providers:
            raise UpstreamError("no text-generation provider is configured")

        last_error: Exception | None = None
        for provider in providers:
            try:
                return provider.complete(messages, task=task)
            except Exception as exc:
                last_error = exc
                logger.warning("LLM text call failed provider=%s task=%s error=%s", provider.config.name, task, exc)
        raise UpstreamError(f"text generation failed: {last_error}")

    def generate_text(self, prompt: str, *, task: str = "default") -> str:
        return self.complete([ChatMessage(role="user", content=prompt)], task=task)

    def write_narrative(self, analysis: RepoAnalysis) -> str:
        prompt = REPO_NARRATIVE_PROMPT.format(
            name=analysis.name,
            stars=analysis.stars,
            languages=", ".join(analysis.languages) or "-",
            score=analysis.credibility_base_score,
            has_tests=str(analysis.has_tests).lower(),
            is_deployed=str(analysis.is_deployed).lower(),
        )
        return self.generate_text(prompt, task="narrative").strip()

    def write_problem_statement(
        self, *, template_text: str, role_type: str, difficulty: str, company: str | None
    ) -> str:
        prompt = PROBLEM_STATEMENT_PROMPT.format(
            difficulty=difficulty,
            role_type=role_type,
            company_clause=f" at {company}" if company else "",
            template_text=template_text,
        )
        return self.generate_text(prompt, task="coach").strip()

    def write_feedback(self, *, problem_statement: str, solution: str, scores: RubricScores) -> str:
        prompt = SOLUTION_FEEDBACK_PROMPT.format(
            problem_statement=problem_statement,
            solution=solution,
            correctness=scores.correctness,
            clarity=scores.clarity,
            completeness=scores.completeness,
            total=scores.total,
        )
        return self.generate_text(prompt, task="coach").strip()

    def tailor_cv(self, structure: CVStructure) -> TailoredCV:
        prompt = CV_TAILOR_PROMPT.format(
            role=structure.role,
            company_clause=f" at {structure.company}" if structure.company else "",
            structure_json=json.dumps(structure.to_wire(), indent=2, ensure_ascii=True),
        )
        data = parse_json_object(self.generate_text(prompt, task="writer"))
        if not data:
            raise UpstreamError("CV tailoring returned no usable JSON")
        try:
            return TailoredCV.model_validate(data)
        except ValidationError as exc:
            raise UpstreamError("CV tailoring returned an invalid payload") from exc

    def write_greeting(self, phase_name: str) -> str:
        prompt = ONBOARDING_GREETING_PROMPT.format(phase_name=phase_name)
        try:
            return self.generate_text(prompt, task="coach").strip()
        except UpstreamError as exc:
            logger.info("Greeting generation unavailable, using fallback: %s", exc.message)
            return heuristic_greeting(phase_name)

    def write_acknowledgment(self, *, title: str, score: int, skill_tags: list[str]) -> str:
        prompt = EVIDENCE_ACK_PROMPT.format(
            title=title,
            score=score,
            tags_clause=f" and skill tags: {', '.join(skill_tags)}" if skill_tags else "",
        )
        try:
            return self.generate_text(prompt, task="coach").strip()
        except UpstreamError as exc:
            logger.info("Acknowledgment generation unavailable, using fallback: %s", exc.message)
            return heuristic_acknowledgment(title=title, score=score)

    def advise(self, context: AdvisorContext, history: Sequence[ChatMessage]) -> str:
        """Reply to the last user turn of ``history`` as the career advisor."""
        messages = [ChatMessage(role="system", content=render_advisor_prompt(context)), *history]
        return self.complete(messages, task="advisor")

    def _provider_name_for(self, task: str) -> str:
        return {
            "narrative": self.settings.llm_router_narrative_provider,
            "coach": self.settings.llm_router_coach_provider,
            "writer": self.settings.llm_router_writer_provider,
            "advisor": self.settings.llm_router_advisor_provider,
        }.get(task, self.settings.llm_router_default)


_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def parse_json_object(content: str) -> dict[str, Any]:
    """First JSON object in a model reply, fenced or bare; {} when there is none."""
    match = _FENCED_JSON.search(content)
    candidate = match.group(1) if match else content.strip()
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError:
        logger.warning("Model reply is not valid JSON")
        return {}
    return value if isinstance(value, dict) else {}


def heuristic_greeting(phase_name: str) -> str:
    return (
        f"Welcome! You're in the {phase_name} phase. "
        "Your first objectives are ready, so start by adding evidence of the work you've done."
    )


def heuristic_acknowledgment(*, title: str, score: int) -> str:
    return f'Nice work adding "{title}". It scored {score}/100 and is now part of your evidence vault.'
