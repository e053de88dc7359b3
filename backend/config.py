"""Configuration management for the Línea Digital sales assistant API."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Chat model (Groq)
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "20"))
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "500"))

# Headless CMS (Contentful Delivery API)
CONTENTFUL_SPACE_ID = os.getenv("CONTENTFUL_SPACE_ID")
CONTENTFUL_ACCESS_TOKEN = os.getenv("CONTENTFUL_ACCESS_TOKEN")
CONTENTFUL_ENVIRONMENT = os.getenv("CONTENTFUL_ENVIRONMENT", "master")
CONTENTFUL_TIMEOUT_SECONDS = float(os.getenv("CONTENTFUL_TIMEOUT_SECONDS", "10"))

# SMTP (contact form)
EMAIL_HOST = os.getenv("EMAIL_HOST")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASS = os.getenv("EMAIL_PASS")
EMAIL_SECURE = os.getenv("EMAIL_SECURE", "false").lower() == "true"
EMAIL_FROM = os.getenv("EMAIL_FROM") or EMAIL_USER
EMAIL_TO = os.getenv("EMAIL_TO")

# Brevo (newsletter)
BREVO_API_KEY = os.getenv("BREVO_API_KEY")
BREVO_LIST_ID = int(os.getenv("BREVO_LIST_ID", "0") or 0)

# Rate limiting (fixed window per client IP)
RATE_LIMIT = int(os.getenv("RATE_LIMIT", "20"))
RATE_WINDOW_SECONDS = float(os.getenv("RATE_WINDOW_SECONDS", "60"))
RATE_LIMIT_MAX_KEYS = int(os.getenv("RATE_LIMIT_MAX_KEYS", "10000"))

# Chat request limits
MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", "500"))
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "10"))

# Chat event log (JSON Lines); empty string disables the file
CHAT_EVENT_LOG = os.getenv("CHAT_EVENT_LOG", "logs/chat_events.jsonl")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:4321,http://localhost:3000"
).split(",")

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
