"""Newsletter subscription through the Brevo contacts API."""
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from config import BREVO_API_KEY, BREVO_LIST_ID
from services.errors import ConfigurationError, UpstreamAuthError, UpstreamNetworkError, UpstreamUnknownError

logger = logging.getLogger(__name__)

SERVICE = "brevo"
BREVO_BASE_URL = "https://api.brevo.com/v3"
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Subscription statuses
NEW = "new"
UPDATED = "updated"
EXISTS = "exists"


def is_valid_email(email: Optional[str]) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email.strip()))


@dataclass
class SubscribeResult:
    """Outcome of a subscription; an existing contact still counts as success."""
    success: bool
    message: str
    status: str


class NewsletterService:
    """Adds visitors to the marketing list; repeat subscriptions are idempotent."""

    def __init__(
        self,
        api_key: Optional[str] = BREVO_API_KEY,
        list_id: Optional[int] = BREVO_LIST_ID,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Args:
            api_key: Brevo API key
            list_id: Numeric ID of the newsletter list
            timeout: Request timeout in seconds
            client: Pre-built HTTP client (tests inject a mock transport)
        """
        self.list_id = list_id
        self.configured = bool(api_key and list_id)
        self._client: Optional[httpx.AsyncClient] = None

        if not self.configured:
            logger.warning("Newsletter disabled: missing BREVO_API_KEY or BREVO_LIST_ID")
            return

        self._client = client or httpx.AsyncClient(
            base_url=BREVO_BASE_URL,
            timeout=timeout,
            headers={"api-key": api_key, "accept": "application/json"}
        )

    async def subscribe(self, email: str) -> SubscribeResult:
        """
        Add ``email`` to the newsletter list.

        A new contact yields status ``new``. If Brevo reports the contact
        already exists, the contact is attached to the list (``updated``);
        should that update fail too, the visitor is told they are already
        registered (``exists``).

        Raises:
            ConfigurationError: Brevo credentials are missing
            UpstreamAuthError: Brevo rejected the API key
            UpstreamNetworkError: Brevo unreachable
            UpstreamUnknownError: Any other Brevo error
        """
        if not self.configured:
            raise ConfigurationError("Newsletter service not configured")

        email = email.strip()
        payload = {"email": email, "listIds": [self.list_id], "updateEnabled": False}

        try:
            response = await self._client.post("/contacts", json=payload)
        except httpx.RequestError as e:
            logger.error(f"Network error creating Brevo contact: {e}")
            raise UpstreamNetworkError("Brevo unreachable", SERVICE) from e

        if response.status_code in (200, 201, 204):
            logger.info("New newsletter contact created")
            return SubscribeResult(True, "¡Bienvenido al Círculo VIP!", NEW)

        if response.status_code == 400 and self._is_duplicate(response):
            return await self._attach_existing(email)

        if response.status_code == 401:
            logger.error("Brevo rejected the API key")
            raise UpstreamAuthError("Brevo authentication failed", SERVICE, 401)

        logger.error(f"Brevo error creating contact: HTTP {response.status_code} {response.text}")
        raise UpstreamUnknownError("Brevo contact creation failed", SERVICE, response.status_code)

    async def _attach_existing(self, email: str) -> SubscribeResult:
        try:
            response = await self._client.put(
                f"/contacts/{quote(email, safe='')}",
                json={"listIds": [self.list_id]}
            )
        except httpx.RequestError as e:
            logger.warning(f"Could not update existing Brevo contact: {e}")
            return SubscribeResult(True, "¡Ya estás registrado!", EXISTS)

        if response.status_code in (200, 204):
            logger.info("Existing newsletter contact added to list")
            return SubscribeResult(True, "¡Ya eres parte de la comunidad!", UPDATED)

        logger.warning(f"Brevo contact update returned HTTP {response.status_code}")
        return SubscribeResult(True, "¡Ya estás registrado!", EXISTS)

    @staticmethod
    def _is_duplicate(response: httpx.Response) -> bool:
        # Brevo answers 400 {"code": "duplicate_parameter"} for existing contacts
        try:
            body = response.json()
        except ValueError:
            return True
        if isinstance(body, dict) and body.get("code"):
            return body["code"] == "duplicate_parameter"
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
