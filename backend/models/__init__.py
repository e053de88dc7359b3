"""Data models for the Línea Digital sales assistant API."""
from .conversation import ChatTurn, USER, ASSISTANT
from .knowledge import Promotion, Plan, PlanCatalog, KnowledgeSnapshot
from .business import Branch, FAQ, BRANCHES, FAQS
from .api import (
    ChatRequest,
    ChatResponse,
    ChatHealth,
    ContactRequest,
    SubscribeRequest,
    SubscribeResponse,
)

__all__ = [
    "ChatTurn",
    "USER",
    "ASSISTANT",
    "Promotion",
    "Plan",
    "PlanCatalog",
    "KnowledgeSnapshot",
    "Branch",
    "FAQ",
    "BRANCHES",
    "FAQS",
    "ChatRequest",
    "ChatResponse",
    "ChatHealth",
    "ContactRequest",
    "SubscribeRequest",
    "SubscribeResponse",
]
