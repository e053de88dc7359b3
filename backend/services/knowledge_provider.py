"""Live pricing and promotion data from the Contentful Delivery API."""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from config import (
    CONTENTFUL_SPACE_ID,
    CONTENTFUL_ACCESS_TOKEN,
    CONTENTFUL_ENVIRONMENT,
    CONTENTFUL_TIMEOUT_SECONDS,
)
from models.knowledge import KnowledgeSnapshot, Plan, PlanCatalog, Promotion

logger = logging.getLogger(__name__)

CONTENTFUL_BASE_URL = "https://cdn.contentful.com"
PROMOTION_CONTENT_TYPE = "promocion"

# URL slug -> Contentful content type
PLAN_CONTENT_TYPES: Dict[str, str] = {
    "libre": "planesTelcelLibre",
    "ultra": "planesTelcelUltra",
    "internet": "planesInternetLibre",
    "casa-libre": "internetEnTuCasaLibre",
    "empresa": "planesTelcelEmpresa",
    "empresa-ultra": "planesTelcelUltraEmpresa",
    "internet-empresa": "planesInternetEmpresa",
    "internet-empresa-casa": "internetEnTuEmpresa",
}


class KnowledgeProvider:
    """
    Read-only client for the CMS entries the assistant quotes from.

    Nothing here raises: a missing configuration or a failing request yields
    empty lists (per category) or None (aggregate), and the prompt builder
    renders placeholders instead.
    """

    def __init__(
        self,
        space_id: Optional[str] = CONTENTFUL_SPACE_ID,
        access_token: Optional[str] = CONTENTFUL_ACCESS_TOKEN,
        environment: str = CONTENTFUL_ENVIRONMENT,
        timeout: float = CONTENTFUL_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Args:
            space_id: Contentful space ID
            access_token: Delivery API access token
            environment: Contentful environment name
            timeout: Request timeout in seconds
            client: Pre-built HTTP client (tests inject a mock transport)
        """
        self.space_id = space_id
        self.environment = environment
        self.enabled = bool(space_id and access_token)
        self._client: Optional[httpx.AsyncClient] = None

        if not self.enabled:
            logger.warning("Contentful disabled: missing CONTENTFUL_SPACE_ID or CONTENTFUL_ACCESS_TOKEN")
            return

        self._client = client or httpx.AsyncClient(
            base_url=CONTENTFUL_BASE_URL,
            timeout=timeout,
            headers={"Authorization": f"Bearer {access_token}"}
        )
        logger.info(f"KnowledgeProvider initialized for space {space_id}/{environment}")

    async def get_active_promotions(self) -> List[Promotion]:
        """Promotions flagged active in the CMS."""
        items = await self._fetch_entries(PROMOTION_CONTENT_TYPE, {"fields.activa": "true"})
        return [Promotion.from_fields(fields) for fields in items]

    async def get_plans(self, slug: str) -> List[Plan]:
        """
        Plans of one category, cheapest first.

        Raises:
            KeyError: If ``slug`` is not a known plan category
        """
        content_type = PLAN_CONTENT_TYPES[slug]
        items = await self._fetch_entries(content_type, {"order": "fields.precio"})
        return [Plan.from_fields(fields) for fields in items]

    async def fetch_knowledge(self) -> Optional[KnowledgeSnapshot]:
        """
        Fetch every category concurrently and assemble a snapshot.

        Returns:
            KnowledgeSnapshot, or None when the CMS is disabled or the fetch fails
        """
        if not self.enabled:
            logger.debug("Skipping knowledge fetch: Contentful disabled")
            return None

        try:
            (
                promotions,
                libre,
                ultra,
                internet,
                home_internet,
                business_libre,
                business_ultra,
                business_internet,
                business_home_internet,
            ) = await asyncio.gather(
                self.get_active_promotions(),
                self.get_plans("libre"),
                self.get_plans("ultra"),
                self.get_plans("internet"),
                self.get_plans("casa-libre"),
                self.get_plans("empresa"),
                self.get_plans("empresa-ultra"),
                self.get_plans("internet-empresa"),
                self.get_plans("internet-empresa-casa"),
            )
        except Exception as e:
            logger.error(f"Error fetching chatbot knowledge: {e}", exc_info=True)
            return None

        snapshot = KnowledgeSnapshot(
            promotions=promotions,
            personal=PlanCatalog(
                libre=libre,
                ultra=ultra,
                internet=internet,
                home_internet=home_internet,
            ),
            business=PlanCatalog(
                libre=business_libre,
                ultra=business_ultra,
                internet=business_internet,
                home_internet=business_home_internet,
            ),
        )
        logger.info(
            f"Fetched knowledge: {len(promotions)} promotions, "
            f"{len(libre) + len(ultra) + len(internet) + len(home_internet)} personal plans, "
            f"{len(business_libre) + len(business_ultra) + len(business_internet) + len(business_home_internet)} business plans"
        )
        return snapshot

    async def _fetch_entries(self, content_type: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """Return the ``fields`` of every entry of ``content_type``; empty on any failure."""
        if not self.enabled:
            return []

        url = f"/spaces/{self.space_id}/environments/{self.environment}/entries"
        query = {"content_type": content_type, **params}

        try:
            response = await self._client.get(url, params=query)
        except httpx.TimeoutException:
            logger.error(f"Timeout fetching {content_type} from Contentful")
            return []
        except httpx.RequestError as e:
            logger.error(f"Network error fetching {content_type}: {e}")
            return []

        if response.status_code == 401:
            logger.error("Contentful rejected the access token")
            return []
        if response.status_code != 200:
            logger.error(f"Error fetching {content_type}: HTTP {response.status_code}")
            return []

        try:
            payload = response.json()
        except ValueError:
            logger.error(f"Malformed JSON from Contentful for {content_type}")
            return []

        items = payload.get("items", []) if isinstance(payload, dict) else []
        return [
            item.get("fields") or {}
            for item in items
            if isinstance(item, dict)
        ]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
