"""Uniform provider call over the OpenAI and Anthropic SDKs, with dry-run support."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from sitegen.models.schemas import ProviderDescriptor

logger = logging.getLogger(__name__)

# Pricing per million tokens (input, output)
MODEL_PRICING = {
    "gpt-4o": (2.5, 10.0),
    "gpt-4-turbo": (10.0, 30.0),
    "gpt-4": (30.0, 60.0),
    "claude-sonnet-4-20250514": (3.0, 15.0),
}
DEFAULT_PRICING = (3.0, 15.0)

DRY_RUN_TEXT = "[DRY RUN - no API call made]"


@dataclass
class LLMResponse:
    """Raw text returned by one provider call, with usage."""

    text: str
    input_tokens: int
    output_tokens: int
    cost_usd: float
    model: str


def calculate_cost(input_tokens: int, output_tokens: int, model: str = "") -> float:
    """Estimated cost in USD for one call."""
    input_price, output_price = MODEL_PRICING.get(model, DEFAULT_PRICING)
    input_cost = (input_tokens / 1_000_000) * input_price
    output_cost = (output_tokens / 1_000_000) * output_price
    return round(input_cost + output_cost, 6)


def call_llm(
    provider: ProviderDescriptor,
    system_prompt: str,
    user_message: str,
    temperature: float,
    settings,
    dry_run_path: Path | None = None,
) -> LLMResponse:
    """Call one provider with the shared request shape.

    Args:
        provider: Model name, output token budget and vendor.
        system_prompt: System-level instructions.
        user_message: User message content.
        temperature: Sampling temperature.
        settings: Application settings (API keys, timeout, retries, dry_run).
        dry_run_path: If settings.dry_run, write payload here instead of calling API.

    Returns:
        LLMResponse with text, token counts, and cost.

    Raises:
        ValueError: Unknown vendor.
        Any SDK error (timeouts, quota, auth) propagates to the caller.
    """
    if settings.dry_run:
        return _write_dry_run(provider, system_prompt, user_message, temperature, dry_run_path)

    if provider.vendor == "openai":
        response = _call_openai(provider, system_prompt, user_message, temperature, settings)
    elif provider.vendor == "anthropic":
        response = _call_anthropic(provider, system_prompt, user_message, temperature, settings)
    else:
        raise ValueError(f"Unknown provider vendor: {provider.vendor}")

    logger.info(
        "%s call: %d in / %d out tokens, $%.4f",
        provider.name, response.input_tokens, response.output_tokens, response.cost_usd,
    )
    return response


def _call_openai(
    provider: ProviderDescriptor,
    system_prompt: str,
    user_message: str,
    temperature: float,
    settings,
) -> LLMResponse:
    from openai import OpenAI

    client = OpenAI(
        api_key=settings.openai_api_key,
        max_retries=settings.max_retries,
        timeout=settings.provider_timeout_seconds,
    )
    completion = client.chat.completions.create(
        model=provider.name,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        temperature=temperature,
        max_tokens=provider.max_output_tokens,
        top_p=0.95,
    )

    text = ""
    if completion.choices:
        text = completion.choices[0].message.content or ""
    input_tokens = completion.usage.prompt_tokens if completion.usage else 0
    output_tokens = completion.usage.completion_tokens if completion.usage else 0

    return LLMResponse(
        text=text,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cost_usd=calculate_cost(input_tokens, output_tokens, provider.name),
        model=provider.name,
    )


def _call_anthropic(
    provider: ProviderDescriptor,
    system_prompt: str,
    user_message: str,
    temperature: float,
    settings,
) -> LLMResponse:
    from anthropic import Anthropic

    client = Anthropic(
        api_key=settings.anthropic_api_key,
        max_retries=settings.max_retries,
        timeout=settings.provider_timeout_seconds,
    )
    response = client.messages.create(
        model=provider.name,
        max_tokens=provider.max_output_tokens,
        temperature=temperature,
        system=system_prompt,
        messages=[{"role": "user", "content": user_message}],
    )

    text = ""
    for block in response.content:
        if block.type == "text":
            text += block.text

    input_tokens = response.usage.input_tokens
    output_tokens = response.usage.output_tokens

    return LLMResponse(
        text=text,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cost_usd=calculate_cost(input_tokens, output_tokens, provider.name),
        model=provider.name,
    )


def _write_dry_run(
    provider: ProviderDescriptor,
    system_prompt: str,
    user_message: str,
    temperature: float,
    output_path: Path | None,
) -> LLMResponse:
    """Write request payload as JSON without calling API."""
    payload = {
        "provider": provider.vendor,
        "model": provider.name,
        "max_tokens": provider.max_output_tokens,
        "temperature": temperature,
        "system": system_prompt,
        "messages": [{"role": "user", "content": user_message}],
        "dry_run": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
        )
        logger.info("Dry-run payload written: %s", output_path)

    return LLMResponse(
        text=DRY_RUN_TEXT,
        input_tokens=0,
        output_tokens=0,
        cost_usd=0.0,
        model=provider.name,
    )
