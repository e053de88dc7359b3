"""LLM Client for Groq API integration."""
import asyncio
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence
import groq
from groq import AsyncGroq
import logging

from config import GROQ_API_KEY, GROQ_MODEL, LLM_TIMEOUT_SECONDS, LLM_TEMPERATURE, LLM_MAX_TOKENS
from models.conversation import ChatTurn, USER
from services.errors import (
    UpstreamError,
    UpstreamAuthError,
    UpstreamQuotaError,
    UpstreamNetworkError,
    UpstreamUnknownError,
)

logger = logging.getLogger(__name__)

SERVICE = "groq"
MIN_API_KEY_LENGTH = 20


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


class LLMClient:
    """Async client for chat completions on the Groq API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = GROQ_MODEL,
        timeout: float = LLM_TIMEOUT_SECONDS,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS
    ):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            model: Chat model name
            timeout: Per-request timeout in seconds; expiry counts as a network error
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        # No SDK retries: a failed call goes straight to the canned fallback
        self.client = AsyncGroq(api_key=self.api_key, timeout=timeout, max_retries=0)
        logger.info(f"LLMClient initialized with model {model}")

    @staticmethod
    def is_configured(api_key: Optional[str]) -> bool:
        """Whether ``api_key`` looks usable (present and not obviously truncated)."""
        return bool(api_key) and len(api_key.strip()) >= MIN_API_KEY_LENGTH

    @staticmethod
    def build_messages(
        system_prompt: str,
        history: Sequence[ChatTurn],
        message: str
    ) -> List[dict]:
        """
        Build the chat-completions message list.

        Args:
            system_prompt: Rendered system prompt
            history: Normalized prior turns (starts with a user turn or is empty)
            message: Current user message

        Returns:
            Messages in API order: system, history, current message
        """
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(turn.to_message() for turn in history)
        messages.append({"role": USER, "content": message})
        return messages

    async def generate(
        self,
        system_prompt: str,
        history: Sequence[ChatTurn],
        message: str
    ) -> LLMResponse:
        """
        Generate the assistant reply.

        Returns:
            LLMResponse with text, token counts, and latency

        Raises:
            UpstreamAuthError: Invalid or unauthorized API key
            UpstreamQuotaError: Rate limit or quota exhausted on the provider
            UpstreamNetworkError: Timeout or connection failure
            UpstreamUnknownError: Anything else
        """
        start_time = time.time()
        messages = self.build_messages(system_prompt, history, message)

        try:
            logger.debug(f"Generating response with model: {self.model}")

            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature
                ),
                timeout=self.timeout
            )

            latency_ms = int((time.time() - start_time) * 1000)
            text = response.choices[0].message.content or ""
            usage = response.usage
            tokens_input = getattr(usage, "prompt_tokens", 0) or 0
            tokens_output = getattr(usage, "completion_tokens", 0) or 0

            logger.info(
                f"Generated response: model={self.model}, "
                f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
                f"latency={latency_ms}ms"
            )

            return LLMResponse(
                text=text,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                latency_ms=latency_ms,
                model_used=self.model
            )

        except Exception as e:
            error = self.classify_error(e)
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"Model call failed: code={error.code}, model={self.model}, "
                f"latency={latency_ms}ms, error={type(e).__name__}: {e}",
                exc_info=True
            )
            raise error from e

    @staticmethod
    def classify_error(exc: BaseException) -> UpstreamError:
        """Map an SDK or transport exception onto the upstream error taxonomy."""
        if isinstance(exc, UpstreamError):
            return exc
        status_code = getattr(exc, "status_code", None)

        if isinstance(exc, (groq.AuthenticationError, groq.PermissionDeniedError)):
            return UpstreamAuthError("Model authentication failed", SERVICE, status_code)
        if isinstance(exc, groq.RateLimitError):
            return UpstreamQuotaError("Model quota exceeded", SERVICE, status_code)
        if isinstance(exc, (groq.APIConnectionError, asyncio.TimeoutError)):
            return UpstreamNetworkError("Model unreachable or timed out", SERVICE, status_code)
        return UpstreamUnknownError("Unexpected model failure", SERVICE, status_code)

    async def close(self) -> None:
        await self.client.close()
