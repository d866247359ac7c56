"""Site generation orchestrator: provider fallback chain + normalization + publish."""

import logging
import uuid
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from sitegen.config import Settings
from sitegen.core.errors import AllProvidersFailed, ArtifactTooShort, ProviderFailure
from sitegen.core.normalizer import has_min_length, normalize_code
from sitegen.core.publisher import ArtifactPublisher
from sitegen.models.schemas import CodeArtifact, GenerationRequest, ProviderDescriptor
from sitegen.prompts.site import build_user_prompt
from sitegen.prompts.system import SYSTEM_PROMPT
from sitegen.services.llm_service import LLMResponse, call_llm

logger = logging.getLogger(__name__)

DEFAULT_PROVIDERS = (
    ProviderDescriptor("gpt-4o", 16384),
    ProviderDescriptor("gpt-4-turbo", 4096),
    ProviderDescriptor("gpt-4", 4096),
)
MANUAL_PROVIDER_MAX_TOKENS = 16384


@dataclass
class GenerationResult:
    """Outcome of one successful generation."""

    code: str
    conversation_id: str
    provider: str
    artifact: CodeArtifact
    attempts: list[str] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    publish: Future | None = None


def _vendor_for(model: str) -> str:
    return "anthropic" if model.startswith("claude") else "openai"


def build_provider_chain(settings: Settings) -> list[ProviderDescriptor]:
    """Ordered providers: the manually configured model first, then the defaults.

    The Anthropic model is appended last when an Anthropic key is configured.
    """
    chain: list[ProviderDescriptor] = []
    if settings.manual_model:
        chain.append(ProviderDescriptor(
            settings.manual_model, MANUAL_PROVIDER_MAX_TOKENS,
            _vendor_for(settings.manual_model),
        ))
    chain.extend(p for p in DEFAULT_PROVIDERS if p.name != settings.manual_model)
    if settings.has_anthropic and settings.anthropic_model != settings.manual_model:
        chain.append(ProviderDescriptor(
            settings.anthropic_model, settings.anthropic_max_tokens, "anthropic",
        ))
    return chain


class SiteGenerator:
    """Drives the provider chain until one yields a usable site.

    Providers are tried one at a time, never in parallel. Any failure
    (SDK error, timeout, empty text, too-short artifact) moves on to the
    next provider. Persistence is handed to the publisher and does not
    block the result.
    """

    def __init__(
        self,
        settings: Settings,
        providers: list[ProviderDescriptor] | None = None,
        call_provider: Callable[..., LLMResponse] | None = None,
        publisher: ArtifactPublisher | None = None,
    ):
        self.settings = settings
        self.providers = list(providers) if providers is not None else build_provider_chain(settings)
        self.call_provider = call_provider or call_llm
        self.publisher = publisher

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate a site for a request.

        Returns:
            GenerationResult with the normalized site and usage stats.

        Raises:
            ValueError: If the request has neither prompt nor profile.
            AllProvidersFailed: If every provider failed.
        """
        if not request.prompt.strip() and request.profile is None:
            raise ValueError("Generation request needs a prompt or a profile")

        conversation_id = request.conversation_id or uuid.uuid4().hex
        user_prompt = build_user_prompt(request.prompt, request.profile)
        temperature = self.settings.generation_temperature

        attempts: list[str] = []
        last_error: Exception | None = None

        for provider in self.providers:
            attempts.append(provider.name)
            logger.info(
                "Trying %s with %d tokens", provider.name, provider.max_output_tokens,
            )
            try:
                response = self.call_provider(
                    provider, SYSTEM_PROMPT, user_prompt, temperature, self.settings,
                    dry_run_path=self._dry_run_path(conversation_id, provider),
                )
                if self.settings.dry_run:
                    return self._result(conversation_id, provider, response, response.text, attempts)

                if not response.text or not response.text.strip():
                    raise ProviderFailure(provider.name, "empty response")

                code = normalize_code(response.text)
                minimum = self.settings.min_artifact_length
                if not has_min_length(code, minimum):
                    raise ArtifactTooShort(provider.name, len(code), minimum)

            except Exception as e:
                last_error = e
                logger.warning("Provider %s failed: %s", provider.name, e)
                continue

            result = self._result(conversation_id, provider, response, code, attempts)
            if self.publisher is not None:
                result.publish = self.publisher.submit(
                    conversation_id, code, request.profile,
                    model=response.model,
                    description=request.prompt[:500] or None,
                )
            logger.info(
                "Generated site for %s via %s (%d chars, $%.4f)",
                conversation_id, provider.name, len(code), result.cost_usd,
            )
            return result

        logger.error("All providers failed for %s: %s", conversation_id, last_error)
        raise AllProvidersFailed(attempts, last_error)

    def _dry_run_path(self, conversation_id: str, provider: ProviderDescriptor) -> Path | None:
        if not self.settings.dry_run:
            return None
        return Path(self.settings.logs_dir) / "dry_run" / f"{conversation_id}_{provider.name}.json"

    @staticmethod
    def _result(
        conversation_id: str,
        provider: ProviderDescriptor,
        response: LLMResponse,
        code: str,
        attempts: list[str],
    ) -> GenerationResult:
        return GenerationResult(
            code=code,
            conversation_id=conversation_id,
            provider=provider.name,
            artifact=CodeArtifact(raw=response.text, normalized=code, final=code),
            attempts=list(attempts),
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            cost_usd=response.cost_usd,
        )
