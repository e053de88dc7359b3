"""Main entry point for the Línea Digital sales assistant API."""
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import (
    PORT,
    CORS_ORIGINS,
    GROQ_API_KEY,
    RATE_LIMIT,
    RATE_WINDOW_SECONDS,
    RATE_LIMIT_MAX_KEYS,
    CHAT_EVENT_LOG,
    LOG_FORMAT,
    LOG_LEVEL,
)
from logger import setup_logging
from models.api import ChatRequest, ChatResponse, ChatHealth, ContactRequest, SubscribeRequest, SubscribeResponse
from models.business import ASSISTANT_NAME, TUXTLA
from services.chat_logger import ChatEventLogger
from services.chat_orchestrator import ChatOrchestrator
from services.email_service import ContactMessage, EmailService
from services.errors import DEFAULT_FALLBACK, ConfigurationError, RateLimitError, UpstreamError, ValidationError
from services.intent_classifier import IntentClassifier
from services.knowledge_provider import KnowledgeProvider, PLAN_CONTENT_TYPES
from services.llm_client import LLMClient
from services.newsletter_service import NewsletterService, is_valid_email
from services.prompt_builder import contextual_greeting
from services.rate_limiter import RateLimiter

if LOG_FORMAT == "json":
    setup_logging(LOG_LEVEL)

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Línea Digital API",
    description="Sales assistant, contact form and newsletter backend for Línea Digital",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services (will be done on startup)
chat_orchestrator: ChatOrchestrator = None
knowledge_provider: KnowledgeProvider = None
llm_client: Optional[LLMClient] = None
email_service: EmailService = None
newsletter_service: NewsletterService = None
chat_event_logger: ChatEventLogger = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global chat_orchestrator, knowledge_provider, llm_client
    global email_service, newsletter_service, chat_event_logger

    logger.info("Initializing Línea Digital API services...")

    try:
        knowledge_provider = KnowledgeProvider()

        if LLMClient.is_configured(GROQ_API_KEY):
            llm_client = LLMClient()
        else:
            logger.error("GROQ_API_KEY missing or invalid; chat will answer in fallback mode")

        chat_event_logger = ChatEventLogger(CHAT_EVENT_LOG)

        chat_orchestrator = ChatOrchestrator(
            rate_limiter=RateLimiter(RATE_LIMIT, RATE_WINDOW_SECONDS, RATE_LIMIT_MAX_KEYS),
            knowledge_provider=knowledge_provider,
            llm_client=llm_client,
            event_logger=chat_event_logger
        )
        logger.info("Initialized ChatOrchestrator")

        email_service = EmailService()
        newsletter_service = NewsletterService()

        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Release HTTP clients and the event log."""
    for service in (knowledge_provider, llm_client, newsletter_service):
        if service is not None:
            await service.close()
    if chat_event_logger is not None:
        chat_event_logger.close()


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": exc.reason, "message": exc.message, "fallback": exc.fallback}
    )


@app.exception_handler(RateLimitError)
async def rate_limit_error_handler(request: Request, exc: RateLimitError):
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limited",
            "message": "Demasiadas peticiones. Por favor espera un momento.",
            "fallback": f"Para atención inmediata llama al {TUXTLA.phone} 📞",
            "intent": exc.intents,
            "retryAfter": exc.retry_after
        },
        headers={
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0"
        }
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Unparseable or non-object bodies are client errors (400), never 422."""
    logger.warning(f"Malformed request body on {request.url.path}")
    path = request.url.path

    if path == "/email/subscribe":
        content = {"success": False, "message": "Por favor ingresa un correo válido."}
    elif path == "/email/send":
        content = {"error": "Faltan campos obligatorios.", "missing": list(ContactMessage.REQUIRED_FIELDS)}
    else:
        content = {"error": "invalid_json", "message": "JSON inválido.", "fallback": DEFAULT_FALLBACK}

    return JSONResponse(status_code=400, content=content)


def get_client_ip(request: Request) -> str:
    """Real client IP behind a proxy/CDN, falling back to the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Línea Digital API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "linea-digital-api",
        "version": "1.0.0"
    }


@app.post("/chat")
async def chat_endpoint(payload: ChatRequest, request: Request):
    """
    Answer a visitor message with the sales assistant.

    Returns 200 with the model reply or a canned fallback, 401 when the model
    credential is rejected, 400 for malformed input and 429 when the client
    exceeds its request window.
    """
    client_ip = get_client_ip(request)
    outcome = await chat_orchestrator.handle(payload.message, payload.history, client_ip)

    body = ChatResponse(
        response=outcome.response,
        intent=outcome.intents,
        quick_replies=outcome.quick_replies,
        fallback=True if outcome.fallback else None,
        error=outcome.error
    )
    status_code = 401 if outcome.error == "auth_error" else 200

    headers = {"X-RateLimit-Limit": str(chat_orchestrator.rate_limiter.limit)}
    if outcome.remaining is not None:
        headers["X-RateLimit-Remaining"] = str(outcome.remaining)
    if outcome.fallback:
        headers["X-Fallback-Mode"] = "true"

    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers
    )


@app.get("/chat")
async def chat_health():
    """Chat service status."""
    body = ChatHealth(
        status="ok",
        service="chatbot-api",
        model_configured=chat_orchestrator is not None and chat_orchestrator.model_configured,
        timestamp=datetime.now(timezone.utc).isoformat()
    )
    return body.model_dump(by_alias=True)


@app.get("/chat/welcome")
async def chat_welcome():
    """Opening bubble for the chat widget."""
    return {
        "response": (
            f"{contextual_greeting()} Soy **{ASSISTANT_NAME}**, tu asesora digital. "
            "¿En qué te puedo ayudar hoy?"
        ),
        "quickReplies": IntentClassifier().quick_replies([])
    }


def _optional_text(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


@app.post("/email/send")
async def send_email(payload: ContactRequest):
    """Forward a contact-form lead to the sales inbox."""
    missing = ContactMessage.missing_fields(payload.name, payload.email, payload.message)
    if missing:
        return JSONResponse(
            status_code=400,
            content={"error": "Faltan campos obligatorios.", "missing": missing}
        )

    contact = ContactMessage(
        name=payload.name.strip(),
        email=payload.email.strip(),
        message=payload.message.strip(),
        phone=_optional_text(payload.phone),
        subject=_optional_text(payload.subject)
    )

    try:
        await email_service.send_contact_email(contact)
    except ConfigurationError:
        logger.error("Contact email rejected: SMTP not configured")
        return JSONResponse(
            status_code=500,
            content={"error": "Error de configuración del servidor.", "details": "not_configured"}
        )
    except UpstreamError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Error interno al enviar el correo.", "details": e.code}
        )

    return {"message": "Mensaje enviado exitosamente."}


@app.post("/email/subscribe", response_model=SubscribeResponse)
async def subscribe(payload: SubscribeRequest):
    """Add a visitor to the newsletter list."""
    if not is_valid_email(payload.email):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Por favor ingresa un correo válido."}
        )

    try:
        result = await newsletter_service.subscribe(payload.email)
    except ConfigurationError:
        logger.error("Subscription rejected: Brevo not configured")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Servicio de suscripción no disponible."}
        )
    except UpstreamError as e:
        logger.error(f"Subscription failed: {e.code}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Hubo un problema al registrarte. Intenta de nuevo."}
        )

    return SubscribeResponse(success=result.success, message=result.message, status=result.status)


@app.get("/content/promos")
async def get_promotions():
    """Active promotions from the CMS."""
    promotions = await knowledge_provider.get_active_promotions()
    return [asdict(promo) for promo in promotions]


@app.get("/content/planes/{slug}")
async def get_plans(slug: str):
    """Plans of one category from the CMS, cheapest first."""
    if slug not in PLAN_CONTENT_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown plan category: {slug}")
    plans = await knowledge_provider.get_plans(slug)
    return [asdict(plan) for plan in plans]


@app.get("/content/knowledge")
async def get_knowledge():
    """Everything the assistant knows from the CMS; null when the CMS is unavailable."""
    snapshot = await knowledge_provider.fetch_knowledge()
    return snapshot.to_dict() if snapshot is not None else None


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Línea Digital API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
