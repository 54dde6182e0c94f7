from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import openai
from openai import OpenAI

from careerproof.config import Settings
from careerproof.errors import UpstreamError
from careerproof.types import ChatMessage, ProviderName

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    name: ProviderName
    base_url: str
    api_key: str
    timeout_sec: int
    default_model: str
    task_models: Mapping[str, str] = field(default_factory=dict)

    def model_for(self, task: str) -> str:
        return self.task_models.get(task) or self.default_model


class LLMProvider:
    """One OpenAI-compatible endpoint.

    Calls go to the Responses API first. Servers that answer 404 there (most
    local runtimes) are switched to chat completions for the rest of the
    provider's life.
    """

    def __init__(self, config: ProviderConfig, client: OpenAI | None = None):
        self.config = config
        self.client = client or OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
        )
        self.responses_supported = True

    def complete(self, messages: Sequence[ChatMessage], *, task: str = "default") -> str:
        model = self.config.model_for(task)
        payload = [message.model_dump() for message in messages]

        if self.responses_supported:
            try:
                text = self._via_responses(model, payload)
            except openai.NotFoundError as exc:
                logger.warning(
                    "Responses API unavailable for provider=%s base_url=%s; switching to chat.completions (%s)",
                    self.config.name,
                    self.config.base_url,
                    exc,
                )
                self.responses_supported = False
                text = self._via_chat(model, payload)
        else:
            text = self._via_chat(model, payload)

        return require_text(text, source=f"{self.config.name}:{model}", task=task)

    def _via_responses(self, model: str, payload: list[dict[str, str]]) -> str:
        response = self.client.responses.create(model=model, input=payload)
        return getattr(response, "output_text", None) or ""

    def _via_chat(self, model: str, payload: list[dict[str, str]]) -> str:
        response = self.client.chat.completions.create(model=model, messages=payload)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


def require_text(text: str | None, *, source: str, task: str) -> str:
    text = (text or "").strip()
    if not text:
        raise UpstreamError(f"{source} returned no content for task '{task}'")
    return text


class ProviderPool:
    """Lazily built providers, one per configured endpoint."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._providers: dict[str, LLMProvider] = {}

    def is_configured(self, name: str) -> bool:
        if name == "openai":
            return bool(self.settings.openai_api_key)
        if name == "local":
            return self.settings.local_llm_enabled
        return False

    def get(self, name: ProviderName) -> LLMProvider:
        if name not in self._providers:
            self._providers[name] = LLMProvider(self._config(name))
        return self._providers[name]

    def ordered(self, preferred: str) -> list[LLMProvider]:
        """Configured providers, the preferred one first."""
        names: list[ProviderName] = ["local", "openai"] if preferred == "local" else ["openai", "local"]
        return [self.get(name) for name in names if self.is_configured(name)]

    def _config(self, name: ProviderName) -> ProviderConfig:
        s = self.settings
        if name == "local":
            return ProviderConfig(
                name="local",
                base_url=s.local_llm_base_url,
                api_key=s.local_llm_api_key,
                timeout_sec=s.local_llm_timeout_sec,
                default_model=s.local_llm_model,
            )
        return ProviderConfig(
            name="openai",
            base_url=s.openai_base_url,
            api_key=s.openai_api_key,
            timeout_sec=s.openai_timeout_sec,
            default_model=s.openai_model_default,
            task_models={
                "narrative": s.openai_model_narrative,
                "coach": s.openai_model_coach,
                "writer": s.openai_model_writer,
                "advisor": s.openai_model_advisor,
            },
        )
