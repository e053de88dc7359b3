"""Unit tests for ChatOrchestrator."""
import sys
sys.path.insert(0, 'backend')

import asyncio
import pytest
from unittest.mock import AsyncMock, Mock

from models.knowledge import KnowledgeSnapshot, Plan, PlanCatalog
from services.chat_orchestrator import ChatOrchestrator, FALLBACK_RESPONDED, RESPONDED
from services.errors import (
    RateLimitError,
    UpstreamAuthError,
    UpstreamNetworkError,
    UpstreamQuotaError,
    ValidationError,
)
from services.llm_client import LLMResponse
from services.rate_limiter import RateLimiter

TUXTLA_PHONE = "961 618 92 00"
TAPACHULA_PHONE = "962 625 58 10"


def llm_reply(text="¡Claro! El plan Libre 3 cuesta $299 al mes."):
    return LLMResponse(text=text, tokens_input=900, tokens_output=40, latency_ms=300, model_used="llama-3.1-8b-instant")


@pytest.fixture
def knowledge_provider():
    provider = Mock()
    provider.fetch_knowledge = AsyncMock(return_value=KnowledgeSnapshot(
        personal=PlanCatalog(libre=[Plan(title="Libre 3", price=299.0, data_allowance="3 GB")])
    ))
    return provider


@pytest.fixture
def llm_client():
    client = Mock()
    client.generate = AsyncMock(return_value=llm_reply())
    return client


@pytest.fixture
def event_logger():
    return Mock()


@pytest.fixture
def orchestrator(knowledge_provider, llm_client, event_logger):
    return ChatOrchestrator(
        rate_limiter=RateLimiter(limit=20, window_seconds=60),
        knowledge_provider=knowledge_provider,
        llm_client=llm_client,
        event_logger=event_logger
    )


def handle(orchestrator, message, history=None, client_key="10.0.0.1"):
    history = history if history is not None else []
    return asyncio.run(orchestrator.handle(message, history, client_key))


class TestValidation:
    """Rejected input never reaches the limiter or the model."""

    @pytest.mark.parametrize("message,reason", [
        (None, "missing_message"),
        (42, "invalid_message"),
        (["hola"], "invalid_message"),
        ("", "empty_message"),
        ("   \n\t", "empty_message"),
        ("a" * 501, "message_too_long"),
    ])
    def test_invalid_message(self, orchestrator, llm_client, message, reason):
        with pytest.raises(ValidationError) as exc_info:
            handle(orchestrator, message)

        assert exc_info.value.reason == reason
        assert exc_info.value.fallback
        llm_client.generate.assert_not_called()

    def test_max_length_accepted(self, orchestrator):
        outcome = handle(orchestrator, "a" * 500)
        assert outcome.state == RESPONDED

    @pytest.mark.parametrize("history", ["not a list", None, {"role": "user"}])
    def test_invalid_history(self, orchestrator, history):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(orchestrator.handle("Hola", history, "10.0.0.1"))
        assert exc_info.value.reason == "invalid_history"

    def test_rejection_does_not_count_against_limit(self, knowledge_provider, llm_client):
        orchestrator = ChatOrchestrator(RateLimiter(limit=1), knowledge_provider, llm_client)
        with pytest.raises(ValidationError):
            handle(orchestrator, "")

        assert handle(orchestrator, "Hola").state == RESPONDED

    def test_rejection_logged(self, orchestrator, event_logger):
        with pytest.raises(ValidationError):
            handle(orchestrator, "")

        kwargs = event_logger.log_chat_event.call_args[1]
        assert kwargs["outcome"] == "rejected"
        assert kwargs["error_code"] == "empty_message"


class TestHappyPath:
    """Model replies."""

    def test_model_reply_returned(self, orchestrator):
        outcome = handle(orchestrator, "¿Cuánto cuesta el plan Libre 3?")

        assert outcome.state == RESPONDED
        assert outcome.response == "¡Claro! El plan Libre 3 cuesta $299 al mes."
        assert outcome.intents == ["purchase"]
        assert outcome.fallback is False
        assert outcome.error is None
        assert outcome.quick_replies == ["Ver planes móviles", "Ver internet casa", "Hablar con asesor"]
        assert outcome.remaining == 19

    def test_prompt_carries_knowledge(self, orchestrator, llm_client):
        handle(orchestrator, "Planes")

        system_prompt, history, message = llm_client.generate.call_args[0]
        assert "Libre 3: $299/mes" in system_prompt
        assert message == "Planes"

    def test_message_is_trimmed(self, orchestrator, llm_client):
        handle(orchestrator, "  Hola  ")
        assert llm_client.generate.call_args[0][2] == "Hola"

    def test_history_normalized_and_truncated(self, orchestrator, llm_client):
        history = [{"role": "bot", "content": "¡Bienvenido!"}]
        for i in range(12):
            history.append({"role": "user", "content": f"pregunta {i}"})
            history.append({"role": "bot", "content": f"respuesta {i}"})

        handle(orchestrator, "Gracias", history=history)

        turns = llm_client.generate.call_args[0][1]
        assert len(turns) == 10
        assert turns[0].role == "user"
        assert turns[0].text == "pregunta 7"
        assert turns[-1].text == "respuesta 11"

    def test_only_assistant_history_sent_empty(self, orchestrator, llm_client):
        handle(orchestrator, "Hola", history=[{"role": "bot", "content": "¡Bienvenido!"}])
        assert llm_client.generate.call_args[0][1] == []

    def test_missing_knowledge_still_calls_model(self, orchestrator, knowledge_provider, llm_client):
        knowledge_provider.fetch_knowledge.return_value = None

        outcome = handle(orchestrator, "Planes")

        assert outcome.state == RESPONDED
        assert "No disponibles en este momento" in llm_client.generate.call_args[0][0]

    def test_success_logged_with_tokens(self, orchestrator, event_logger):
        handle(orchestrator, "Hola")

        kwargs = event_logger.log_chat_event.call_args[1]
        assert kwargs["outcome"] == "responded"
        assert kwargs["tokens_input"] == 900
        assert kwargs["tokens_output"] == 40
        assert kwargs["client_key"] == "10.0.0.1"


class TestFallback:
    """Upstream failures degrade to canned replies."""

    @pytest.mark.parametrize("error,code", [
        (UpstreamAuthError("bad key", "groq", 401), "auth_error"),
        (UpstreamQuotaError("quota", "groq", 429), "quota_exceeded"),
        (UpstreamNetworkError("timeout", "groq"), "network_error"),
    ])
    def test_upstream_error(self, orchestrator, llm_client, error, code):
        llm_client.generate.side_effect = error

        outcome = handle(orchestrator, "Quiero un plan")

        assert outcome.state == FALLBACK_RESPONDED
        assert outcome.fallback is True
        assert outcome.error == code
        assert TUXTLA_PHONE in outcome.response
        assert TAPACHULA_PHONE in outcome.response
        assert outcome.intents == ["purchase"]

    def test_unexpected_exception(self, orchestrator, llm_client):
        llm_client.generate.side_effect = RuntimeError("boom")

        outcome = handle(orchestrator, "Hola")

        assert outcome.fallback is True
        assert outcome.error == "unknown_error"
        assert "boom" not in outcome.response

    def test_empty_model_reply(self, orchestrator, llm_client):
        llm_client.generate.return_value = llm_reply(text="   ")

        outcome = handle(orchestrator, "Hola")

        assert outcome.fallback is True
        assert outcome.error == "unknown_error"

    def test_model_not_configured(self, knowledge_provider):
        orchestrator = ChatOrchestrator(RateLimiter(), knowledge_provider, llm_client=None)

        outcome = handle(orchestrator, "¿Dónde están?")

        assert orchestrator.model_configured is False
        assert outcome.fallback is True
        assert outcome.error is None
        assert "Sucursales" in outcome.response
        knowledge_provider.fetch_knowledge.assert_not_called()

    def test_fallback_logged(self, orchestrator, llm_client, event_logger):
        llm_client.generate.side_effect = UpstreamNetworkError("timeout", "groq")

        handle(orchestrator, "Hola")

        kwargs = event_logger.log_chat_event.call_args[1]
        assert kwargs["outcome"] == "fallback_responded"
        assert kwargs["error_code"] == "network_error"


class TestRateLimiting:
    """Per-client limits."""

    def test_twenty_first_request_rejected(self, orchestrator, llm_client):
        for _ in range(20):
            handle(orchestrator, "Hola")

        with pytest.raises(RateLimitError) as exc_info:
            handle(orchestrator, "Hola")

        assert exc_info.value.limit == 20
        assert 1 <= exc_info.value.retry_after <= 60
        assert llm_client.generate.call_count == 20

    def test_other_clients_unaffected(self, orchestrator):
        for _ in range(20):
            handle(orchestrator, "Hola", client_key="1.1.1.1")

        assert handle(orchestrator, "Hola", client_key="2.2.2.2").state == RESPONDED

    def test_rate_limit_error_carries_intents(self, knowledge_provider, llm_client):
        orchestrator = ChatOrchestrator(RateLimiter(limit=1), knowledge_provider, llm_client)
        handle(orchestrator, "Quiero un plan")

        with pytest.raises(RateLimitError) as exc_info:
            handle(orchestrator, "Quiero un plan")

        assert exc_info.value.intents == ["purchase"]

    def test_rate_limited_logged(self, knowledge_provider, llm_client, event_logger):
        orchestrator = ChatOrchestrator(RateLimiter(limit=1), knowledge_provider, llm_client, event_logger=event_logger)
        handle(orchestrator, "Hola")

        with pytest.raises(RateLimitError):
            handle(orchestrator, "Hola")

        assert event_logger.log_chat_event.call_args[1]["outcome"] == "rate_limited"
