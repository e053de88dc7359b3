"""
Chat request pipeline for the sales assistant.

One call to ``ChatOrchestrator.handle`` walks a request through:
validate -> rate check -> fetch knowledge -> build prompt -> normalize
history -> call model, ending in a model reply or a canned fallback.
Validation and rate-limit rejections are raised; every upstream failure is
turned into a fallback outcome so callers never see a raw exception.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

from config import MAX_MESSAGE_LENGTH, HISTORY_LIMIT
from models.business import TUXTLA
from services.chat_logger import ChatEventLogger
from services.errors import RateLimitError, UpstreamError, ValidationError
from services.fallback_responder import FallbackResponder
from services.history_normalizer import normalize_history, parse_history, truncate_history
from services.intent_classifier import IntentClassifier
from services.knowledge_provider import KnowledgeProvider
from services.llm_client import LLMClient
from services.prompt_builder import build_system_prompt
from services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Terminal states
RESPONDED = "responded"
FALLBACK_RESPONDED = "fallback_responded"
RATE_LIMITED = "rate_limited"
REJECTED = "rejected"


@dataclass
class ChatOutcome:
    """Terminal result of a chat request that passed validation and rate limiting."""
    response: str
    intents: List[str]
    quick_replies: List[str] = field(default_factory=list)
    fallback: bool = False
    error: Optional[str] = None
    remaining: Optional[int] = None
    state: str = RESPONDED


class ChatOrchestrator:
    """Composes the chat components for one request at a time."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        knowledge_provider: Optional[KnowledgeProvider],
        llm_client: Optional[LLMClient],
        classifier: Optional[IntentClassifier] = None,
        fallback_responder: Optional[FallbackResponder] = None,
        event_logger: Optional[ChatEventLogger] = None,
        max_message_length: int = MAX_MESSAGE_LENGTH,
        history_limit: int = HISTORY_LIMIT
    ):
        """
        Args:
            rate_limiter: Shared per-client limiter
            knowledge_provider: CMS client; None behaves like an unconfigured CMS
            llm_client: Model client; None puts the assistant in fallback mode
            classifier: Intent classifier
            fallback_responder: Canned replies
            event_logger: Outcome sink; None disables event logging
            max_message_length: Longest accepted message, in characters
            history_limit: Most recent turns forwarded to the model
        """
        self.rate_limiter = rate_limiter
        self.knowledge_provider = knowledge_provider
        self.llm_client = llm_client
        self.classifier = classifier or IntentClassifier()
        self.fallback_responder = fallback_responder or FallbackResponder(self.classifier)
        self.event_logger = event_logger
        self.max_message_length = max_message_length
        self.history_limit = history_limit

    @property
    def model_configured(self) -> bool:
        return self.llm_client is not None

    def validate(self, message: Any, history: Any) -> str:
        """
        Check the raw request fields.

        Returns:
            The message with surrounding whitespace removed

        Raises:
            ValidationError: With reason missing_message, invalid_message,
                empty_message, message_too_long or invalid_history
        """
        if message is None:
            raise ValidationError(
                "missing_message",
                'El campo "message" es requerido.',
                "Por favor escribe un mensaje válido."
            )
        if not isinstance(message, str):
            raise ValidationError(
                "invalid_message",
                'El campo "message" debe ser texto.',
                "Por favor escribe un mensaje válido."
            )
        if not message.strip():
            raise ValidationError(
                "empty_message",
                "Por favor escribe un mensaje para poder ayudarte. 😊",
                f"Si prefieres, llámanos al {TUXTLA.phone}. 📞"
            )
        if len(message) > self.max_message_length:
            raise ValidationError(
                "message_too_long",
                f"El mensaje es demasiado largo (máximo {self.max_message_length} caracteres).",
                f"Por favor escribe un mensaje más corto o llama al {TUXTLA.phone}."
            )
        if not isinstance(history, list):
            raise ValidationError(
                "invalid_history",
                'El campo "history" debe ser un array.'
            )
        return message.strip()

    async def handle(self, message: Any, history: Any, client_key: str) -> ChatOutcome:
        """
        Run one chat request through the pipeline.

        Args:
            message: Raw ``message`` field from the request body
            history: Raw ``history`` field from the request body; an absent
                field arrives as an empty list, an explicit null is rejected
            client_key: Rate-limit key (client IP)

        Returns:
            ChatOutcome in state responded or fallback_responded

        Raises:
            ValidationError: Malformed input
            RateLimitError: Client exceeded its window
        """
        start_time = time.time()

        try:
            text = self.validate(message, history)
        except ValidationError as e:
            self._record(client_key, REJECTED, message, 0, [], start_time, error_code=e.reason)
            raise

        intents = self.classifier.classify(text)
        sentiment = self.classifier.detect_sentiment(text)

        decision = self.rate_limiter.check(client_key)
        if not decision.allowed:
            self._record(client_key, RATE_LIMITED, text, 0, intents, start_time, sentiment)
            raise RateLimitError(decision.retry_after, self.rate_limiter.limit, intents)

        turns = normalize_history(truncate_history(parse_history(history), self.history_limit))
        quick_replies = self.classifier.quick_replies(intents)

        if self.llm_client is None:
            logger.warning("Chat model not configured, answering in fallback mode")
            outcome = self._fallback(text, intents, quick_replies, decision.remaining, error=None)
            self._record(client_key, outcome.state, text, len(turns), intents, start_time, sentiment)
            return outcome

        knowledge = None
        if self.knowledge_provider is not None:
            knowledge = await self.knowledge_provider.fetch_knowledge()
        system_prompt = build_system_prompt(knowledge)

        try:
            llm_response = await self.llm_client.generate(system_prompt, turns, text)
        except UpstreamError as e:
            outcome = self._fallback(text, intents, quick_replies, decision.remaining, error=e.code)
            self._record(client_key, outcome.state, text, len(turns), intents, start_time, sentiment, e.code)
            return outcome
        except Exception as e:
            logger.error(f"Unexpected error calling chat model: {e}", exc_info=True)
            outcome = self._fallback(text, intents, quick_replies, decision.remaining, error="unknown_error")
            self._record(client_key, outcome.state, text, len(turns), intents, start_time, sentiment, "unknown_error")
            return outcome

        if not llm_response.text.strip():
            logger.warning("Chat model returned an empty reply")
            outcome = self._fallback(text, intents, quick_replies, decision.remaining, error="unknown_error")
            self._record(client_key, outcome.state, text, len(turns), intents, start_time, sentiment, "unknown_error")
            return outcome

        self._record(
            client_key, RESPONDED, text, len(turns), intents, start_time, sentiment,
            tokens_input=llm_response.tokens_input,
            tokens_output=llm_response.tokens_output
        )
        return ChatOutcome(
            response=llm_response.text,
            intents=intents,
            quick_replies=quick_replies,
            remaining=decision.remaining,
            state=RESPONDED
        )

    def _fallback(
        self,
        text: str,
        intents: List[str],
        quick_replies: List[str],
        remaining: int,
        error: Optional[str]
    ) -> ChatOutcome:
        return ChatOutcome(
            response=self.fallback_responder.respond(text),
            intents=intents,
            quick_replies=quick_replies,
            fallback=True,
            error=error,
            remaining=remaining,
            state=FALLBACK_RESPONDED
        )

    def _record(
        self,
        client_key: str,
        outcome: str,
        message: Any,
        history_length: int,
        intents: List[str],
        start_time: float,
        sentiment: Optional[str] = None,
        error_code: Optional[str] = None,
        tokens_input: Optional[int] = None,
        tokens_output: Optional[int] = None
    ) -> None:
        if self.event_logger is None:
            return
        self.event_logger.log_chat_event(
            client_key=client_key,
            outcome=outcome,
            message_length=len(message) if isinstance(message, str) else 0,
            history_length=history_length,
            intents=intents,
            latency_ms=int((time.time() - start_time) * 1000),
            sentiment=sentiment,
            error_code=error_code,
            tokens_input=tokens_input,
            tokens_output=tokens_output
        )
