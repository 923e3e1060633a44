"""Dashboard API client - the source of opportunities and keyword searches."""

from typing import Any, Optional, Union

import httpx

from config.settings import settings
from leadscope.errors import ApiClientError
from leadscope.log import get_logger
from leadscope.models import KeywordSearch, Opportunity

logger = get_logger(__name__)


class ApiClient:
    """
    Thin async client for the lead-generation backend.

    Only the two listing endpoints the search and analytics code need.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        token = token if token is not None else settings.api_token

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def list_opportunities(
        self,
        limit: int = 100,
        offset: int = 0,
        status: Optional[str] = None,
        source: Optional[str] = None,
        keyword_search_id: Optional[str] = None,
    ) -> Union[dict, list]:
        """
        GET /api/v1/opportunities.

        Returns the raw payload: either {"items": [...], ...} or a bare list.
        Use normalize_opportunities() to get models.
        """
        params: dict[str, Any] = {"limit": limit}
        if offset:
            params["offset"] = offset
        if status:
            params["status"] = status
        if source:
            params["source"] = source
        if keyword_search_id:
            params["keyword_search_id"] = keyword_search_id

        return await self._get("/api/v1/opportunities", params)

    async def list_keyword_searches(self, enabled: Optional[bool] = None) -> list:
        """GET /api/v1/keyword-searches."""
        params = {"enabled": str(enabled).lower()} if enabled is not None else None
        return await self._get("/api/v1/keyword-searches", params)

    async def fetch_all_opportunities(
        self,
        page_size: int = 100,
        max_pages: Optional[int] = None,
    ) -> list[Opportunity]:
        """
        Page through every opportunity the user has.

        Wrapped payloads continue only while `has_more` is truthy. Bare
        lists carry no such flag, so paging stops on a short page or one
        that repeats ids already seen. Either way at most `max_pages`
        requests are made.
        """
        max_pages = max_pages or settings.fetch_max_pages
        opportunities: list[Opportunity] = []
        seen: set[str] = set()
        offset = 0
        for _ in range(max_pages):
            payload = await self.list_opportunities(limit=page_size, offset=offset)
            raw = normalize_opportunities(payload)
            page = [o for o in raw if o.id not in seen]
            seen.update(o.id for o in page)
            opportunities.extend(page)

            if isinstance(payload, dict):
                more = bool(payload.get("has_more"))
            else:
                more = len(raw) >= page_size
            if not page or not more:
                break
            offset += len(raw)
        else:
            logger.warning("Stopped paging opportunities after %d pages", max_pages)

        logger.debug("Fetched %d opportunities", len(opportunities))
        return opportunities

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        try:
            response = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise ApiClientError(0, {"detail": f"Request to {path} failed: {e}"}) from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {"detail": response.text or response.reason_phrase}
            raise ApiClientError(response.status_code, body)

        try:
            return response.json()
        except ValueError as e:
            raise ApiClientError(response.status_code, {"detail": "Invalid JSON response"}) from e

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()


def _items(payload: Any) -> list:
    # The listing endpoint has shipped both shapes
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return payload.get("items") or []
    return []


def normalize_opportunities(payload: Any) -> list[Opportunity]:
    """Accept {"items": [...]} or a bare list, return models."""
    return [Opportunity.model_validate(item) for item in _items(payload)]


def normalize_keyword_searches(payload: Any) -> list[KeywordSearch]:
    return [KeywordSearch.model_validate(item) for item in _items(payload)]
