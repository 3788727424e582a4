"""Generation providers. One capability: prompt in, raw text out.

Two implementations:
  - MockProvider (pipeline.mock_provider): deterministic, offline.
  - OpenAIProvider: chat completion in JSON mode at a fixed low temperature.

Which one a process uses is decided once, from configuration: no
OPENAI_API_KEY means the mock provider and no network traffic. The chosen
provider is passed explicitly to the brief pipeline and the cache.

Providers return text only. Parsing and schema validation happen in
pipeline.brief_json.

Error handling:
  - 400-level errors (bad request, auth) are NOT retried — they won't fix themselves.
  - 429 (rate limit), 5xx, connection errors and timeouts ARE retried with
    exponential backoff.
  - All errors surface as LLMError with a clean, readable message.
"""

from __future__ import annotations

import logging
import socket
import threading
import time as _time
from abc import ABC, abstractmethod
from typing import Any, Optional

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

import config

logger = logging.getLogger(__name__)

OPENAI_PROVIDER_NAME = "openai"

JSON_ONLY_SYSTEM_PROMPT = (
    "You are a JSON-only response API. You never produce markdown, explanations, "
    "or any text outside of a single JSON object."
)

# ---------------------------------------------------------------------------
# Usage tracking
# ---------------------------------------------------------------------------

# Pricing per 1M tokens: { model_prefix: (input_$/1M, output_$/1M) }
# Matched longest-prefix-first, so "gpt-4o-mini" matches before "gpt-4o".
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "gpt-4o-mini":      (0.15,   0.60),
    "gpt-4o":           (2.50,  10.00),
    "gpt-4.1-mini":     (0.40,   1.60),
    "gpt-4.1-nano":     (0.10,   0.40),
    "gpt-4.1":          (2.00,   8.00),
}

_FALLBACK_PRICING = (2.50, 10.00)

_usage_lock = threading.Lock()
_usage_log: list[dict[str, Any]] = []


def _get_pricing(model: str) -> tuple[float, float]:
    best_match = ""
    for prefix in MODEL_PRICING:
        if model.startswith(prefix) and len(prefix) > len(best_match):
            best_match = prefix
    if best_match:
        return MODEL_PRICING[best_match]
    logger.warning("No pricing found for model '%s' — using fallback $%.2f/$%.2f per 1M", model, *_FALLBACK_PRICING)
    return _FALLBACK_PRICING


def _record_usage(provider: str, model: str, input_tokens: int, output_tokens: int):
    """Record a single call's token usage and estimated cost."""
    in_price, out_price = _get_pricing(model)
    cost = (input_tokens * in_price + output_tokens * out_price) / 1_000_000
    entry = {
        "provider": provider,
        "model": model,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "cost": cost,
        "timestamp": _time.time(),
    }
    with _usage_lock:
        _usage_log.append(entry)
    logger.info(
        "Token usage: %s/%s — in=%d out=%d cost=$%.4f",
        provider, model, input_tokens, output_tokens, cost,
    )


def reset_usage():
    with _usage_lock:
        _usage_log.clear()


def get_usage_summary() -> dict[str, Any]:
    """Return aggregated cost and token totals."""
    with _usage_lock:
        entries = list(_usage_log)
    total_input = sum(e["input_tokens"] for e in entries)
    total_output = sum(e["output_tokens"] for e in entries)
    return {
        "total_input_tokens": total_input,
        "total_output_tokens": total_output,
        "total_tokens": total_input + total_output,
        "total_cost": round(sum(e["cost"] for e in entries), 4),
        "calls": len(entries),
    }


# ---------------------------------------------------------------------------
# Error helpers
# ---------------------------------------------------------------------------

class LLMError(Exception):
    """Clean error from a provider call with a human-readable message."""

    def __init__(self, message: str, provider: str = "", model: str = "", cause: Exception | None = None):
        self.provider = provider
        self.model = model
        self.cause = cause
        super().__init__(message)


def _is_retryable(exc: BaseException) -> bool:
    """Return True if the error is transient and worth retrying."""
    from openai import (
        APIConnectionError,
        APITimeoutError,
        InternalServerError,
        RateLimitError,
    )

    if isinstance(exc, (RateLimitError, InternalServerError, APIConnectionError, APITimeoutError)):
        return True
    if isinstance(exc, (ConnectionError, TimeoutError, socket.timeout)):
        return True
    return False


def _extract_error_message(exc: Exception, provider: str, model: str) -> str:
    """Pull out a clean, human-readable error message from an API exception."""
    from openai import AuthenticationError, BadRequestError, NotFoundError, PermissionDeniedError

    msg = str(exc)
    if isinstance(exc, BadRequestError):
        body = getattr(exc, "body", None)
        if isinstance(body, dict):
            inner = body.get("error", {})
            if isinstance(inner, dict):
                msg = inner.get("message", msg)
        return f"[{provider}/{model}] Bad request: {msg}"
    if isinstance(exc, AuthenticationError):
        return f"[{provider}] Authentication failed — check your OPENAI_API_KEY."
    if isinstance(exc, NotFoundError):
        return f"[{provider}] Model '{model}' not found. Check OPENAI_MODEL in your .env."
    if isinstance(exc, PermissionDeniedError):
        return f"[{provider}] Permission denied — your API key may not have access to '{model}'."

    if len(msg) > 300:
        msg = msg[:300] + "..."
    return f"[{provider}/{model}] {msg}"


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

class GenerationProvider(ABC):
    """Sends a prompt to a text-generation backend and returns raw text."""

    name: str = "base"
    model: str = ""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, model={self.model!r})"


class OpenAIProvider(GenerationProvider):
    name = OPENAI_PROVIDER_NAME

    def __init__(
        self,
        api_key: str,
        model: str = config.OPENAI_MODEL,
        temperature: float = config.LLM_TEMPERATURE,
        max_tokens: int = config.LLM_MAX_TOKENS,
        timeout: float = config.LLM_TIMEOUT_SECONDS,
        client: Any = None,
    ):
        if not api_key and client is None:
            raise LLMError(
                "OPENAI_API_KEY is not set. Add it to your .env file.",
                provider=OPENAI_PROVIDER_NAME,
            )
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    def generate(self, prompt: str) -> str:
        """Call the chat completions API in JSON mode and return the message text.

        Retries on transient errors (rate limits, server errors).
        Raises LLMError immediately for bad requests or auth errors.
        """
        client = self._get_client()
        logger.info("LLM call: provider=%s, model=%s, temp=%.1f", self.name, self.model, self.temperature)
        start = _time.time()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": JSON_ONLY_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            clean_msg = _extract_error_message(exc, self.name, self.model)
            logger.error("LLM call failed: %s", clean_msg)
            if _is_retryable(exc):
                raise  # let tenacity retry
            raise LLMError(clean_msg, provider=self.name, model=self.model, cause=exc) from exc

        usage = getattr(response, "usage", None)
        if usage:
            _record_usage(
                self.name,
                self.model,
                getattr(usage, "prompt_tokens", 0) or 0,
                getattr(usage, "completion_tokens", 0) or 0,
            )

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        logger.info(
            "OpenAI [%s]: %d chars in %.1fs",
            self.model, len(content), _time.time() - start,
        )
        return content


# ---------------------------------------------------------------------------
# Selection (once per process)
# ---------------------------------------------------------------------------

_provider: Optional[GenerationProvider] = None
_provider_lock = threading.Lock()


def resolve_provider(settings: config.Settings) -> GenerationProvider:
    """Build the provider the settings call for."""
    if settings.live_provider:
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout_seconds,
        )
    from pipeline.mock_provider import MockProvider
    return MockProvider()


def get_provider() -> GenerationProvider:
    """Process-wide provider, resolved from config on first use."""
    global _provider
    with _provider_lock:
        if _provider is None:
            _provider = resolve_provider(config.get_settings())
            if _provider.name == OPENAI_PROVIDER_NAME:
                logger.info("Generation provider: %s/%s", _provider.name, _provider.model)
            else:
                logger.info("OPENAI_API_KEY not set, using %s provider", _provider.name)
        return _provider
