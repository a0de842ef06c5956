"""
LLM completion capability used by the analysis stages.

Supports Claude (Anthropic) and GPT-4o (OpenAI) with automatic fallback and
tenacity retry. Every provider failure surfaces as CapabilityError; a service
with no configured provider raises CapabilityUnavailableError.
"""

from typing import Protocol

import structlog
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from contract_intel.config import Settings
from contract_intel.exceptions import CapabilityError, CapabilityUnavailableError

logger = structlog.get_logger(__name__)


class CompletionCapability(Protocol):
    """What the analysis stages need from a text-completion backend."""

    @property
    def available(self) -> bool: ...

    async def complete(self, prompt: str, max_tokens: int | None = None) -> str: ...


class LLMService:
    """
    LLM service for contract analysis.

    Supports Claude Sonnet (primary) and GPT-4o (fallback).
    """

    def __init__(
        self,
        settings: Settings,
        anthropic_client: AsyncAnthropic | None = None,
        openai_client: AsyncOpenAI | None = None,
    ):
        self.settings = settings

        self._anthropic = anthropic_client
        self._openai = openai_client

        if not settings.ai_enabled and anthropic_client is None and openai_client is None:
            logger.warning("ai_disabled", reason="no API keys provided")

        if self._anthropic is None and settings.anthropic_api_key:
            self._anthropic = AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.llm_timeout,
                max_retries=0,
            )
        if self._openai is None and settings.openai_api_key:
            self._openai = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.llm_timeout,
                max_retries=0,
            )

        self.primary_provider = settings.primary_llm_provider
        self.primary_model = settings.primary_llm_model
        self.fallback_provider = settings.fallback_llm_provider
        self.fallback_model = settings.fallback_llm_model

    @property
    def available(self) -> bool:
        return self._anthropic is not None or self._openai is not None

    def health_check(self) -> dict[str, bool]:
        """Report which providers are configured."""
        return {
            "anthropic": self._anthropic is not None,
            "openai": self._openai is not None,
        }

    # =========================================================================
    # Core LLM Calls
    # =========================================================================

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.settings.llm_max_retries),
            wait=wait_exponential(
                multiplier=1,
                min=self.settings.llm_retry_min_wait,
                max=self.settings.llm_retry_max_wait,
            ),
            reraise=True,
        )

    async def _call_anthropic(
        self,
        model: str,
        system_prompt: str | None,
        user_prompt: str,
        max_tokens: int,
    ) -> str:
        """Call Anthropic Claude API."""
        kwargs = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": self.settings.llm_temperature,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        async for attempt in self._retrying():
            with attempt:
                response = await self._anthropic.messages.create(**kwargs)
        return response.content[0].text

    async def _call_openai(
        self,
        model: str,
        system_prompt: str | None,
        user_prompt: str,
        max_tokens: int,
    ) -> str:
        """Call OpenAI chat completions API."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        async for attempt in self._retrying():
            with attempt:
                response = await self._openai.chat.completions.create(
                    model=model,
                    max_tokens=max_tokens,
                    temperature=self.settings.llm_temperature,
                    messages=messages,
                )
        return response.choices[0].message.content or ""

    async def _call(
        self,
        provider: str,
        model: str,
        system_prompt: str | None,
        user_prompt: str,
        max_tokens: int,
    ) -> str | None:
        """Dispatch to a provider; None when that provider is not configured."""
        if provider == "anthropic" and self._anthropic is not None:
            return await self._call_anthropic(model, system_prompt, user_prompt, max_tokens)
        if provider == "openai" and self._openai is not None:
            return await self._call_openai(model, system_prompt, user_prompt, max_tokens)
        return None

    async def generate(
        self,
        system_prompt: str | None,
        user_prompt: str,
        max_tokens: int | None = None,
        use_fallback: bool = True,
    ) -> tuple[str, str]:
        """
        Generate LLM response with automatic fallback.

        Returns (response_text, model_used).
        """
        if not self.available:
            raise CapabilityUnavailableError(
                "AI service unavailable: set ANTHROPIC_API_KEY or OPENAI_API_KEY"
            )

        max_tokens = max_tokens or self.settings.llm_max_tokens
        primary_error: Exception | None = None

        # Try primary provider
        try:
            text = await self._call(
                self.primary_provider, self.primary_model,
                system_prompt, user_prompt, max_tokens,
            )
            if text is not None:
                return text, self.primary_model
        except Exception as e:
            logger.warning(
                "primary_llm_failed",
                provider=self.primary_provider,
                error=str(e),
            )
            if not use_fallback:
                raise CapabilityError(f"{self.primary_provider} request failed: {e}") from e
            primary_error = e

        # Try fallback provider
        try:
            text = await self._call(
                self.fallback_provider, self.fallback_model,
                system_prompt, user_prompt, max_tokens,
            )
        except Exception as e:
            logger.error(
                "fallback_llm_failed",
                provider=self.fallback_provider,
                error=str(e),
            )
            raise CapabilityError(f"{self.fallback_provider} request failed: {e}") from e

        if text is None:
            if primary_error is not None:
                raise CapabilityError(
                    f"{self.primary_provider} request failed: {primary_error}"
                ) from primary_error
            raise CapabilityError("No LLM provider could serve the request")
        return text, self.fallback_model

    async def complete(self, prompt: str, max_tokens: int | None = None) -> str:
        """Single-prompt completion, the contract the analysis stages rely on."""
        text, model = await self.generate(None, prompt, max_tokens)
        logger.debug("completion_received", model=model, chars=len(text))
        return text
