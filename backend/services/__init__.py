"""Services for the Línea Digital sales assistant API."""
from .errors import (
    ValidationError,
    RateLimitError,
    ConfigurationError,
    UpstreamError,
    UpstreamAuthError,
    UpstreamQuotaError,
    UpstreamNetworkError,
    UpstreamUnknownError,
)
from .intent_classifier import IntentClassifier
from .rate_limiter import RateLimiter, RateDecision, RateRecord
from .knowledge_provider import KnowledgeProvider
from .prompt_builder import build_system_prompt, contextual_greeting
from .history_normalizer import normalize_history, truncate_history, parse_history
from .fallback_responder import FallbackResponder
from .llm_client import LLMClient, LLMResponse
from .chat_logger import ChatEventLogger
from .chat_orchestrator import ChatOrchestrator, ChatOutcome
from .email_service import EmailService, ContactMessage
from .newsletter_service import NewsletterService, SubscribeResult, is_valid_email

__all__ = [
    'ValidationError', 'RateLimitError', 'ConfigurationError', 'UpstreamError',
    'UpstreamAuthError', 'UpstreamQuotaError', 'UpstreamNetworkError', 'UpstreamUnknownError',
    'IntentClassifier', 'RateLimiter', 'RateDecision', 'RateRecord', 'KnowledgeProvider',
    'build_system_prompt', 'contextual_greeting', 'normalize_history', 'truncate_history',
    'parse_history', 'FallbackResponder', 'LLMClient', 'LLMResponse', 'ChatEventLogger',
    'ChatOrchestrator', 'ChatOutcome', 'EmailService', 'ContactMessage', 'NewsletterService',
    'SubscribeResult', 'is_valid_email',
]
