"""Request and response schemas for the HTTP API."""
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """POST /chat body. Types are checked by the orchestrator so that bad input maps to 400."""
    model_config = ConfigDict(extra="ignore")

    message: Any = None
    history: Any = Field(default_factory=list)


class ChatResponse(BaseModel):
    """POST /chat result."""
    model_config = ConfigDict(populate_by_name=True)

    response: str
    intent: List[str] = Field(default_factory=list)
    quick_replies: List[str] = Field(default_factory=list, alias="quickReplies")
    fallback: Optional[bool] = None
    error: Optional[str] = None


class ChatHealth(BaseModel):
    """GET /chat result."""
    model_config = ConfigDict(populate_by_name=True)

    status: str
    service: str
    model_configured: bool = Field(alias="modelConfigured")
    timestamp: str


class ContactRequest(BaseModel):
    """POST /email/send body. Non-string values are reported as missing fields."""
    model_config = ConfigDict(extra="ignore")

    name: Any = None
    email: Any = None
    message: Any = None
    phone: Any = None
    subject: Any = None


class SubscribeRequest(BaseModel):
    """POST /email/subscribe body."""
    model_config = ConfigDict(extra="ignore")

    email: Any = None


class SubscribeResponse(BaseModel):
    """POST /email/subscribe result."""
    success: bool
    message: str
    status: Optional[str] = None  # new | updated | exists
