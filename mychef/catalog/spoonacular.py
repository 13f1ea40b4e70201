"""Spoonacular recipe catalog client (async, aiohttp).

Two endpoints are used:
- /recipes/complexSearch for resolver rungs (with addRecipeInformation=true so
  summaries carry time, servings and diets)
- /recipes/{id}/information?includeNutrition=true for detail screens

Every failure of a single call (transport error, non-2xx status, unreadable
body) surfaces as CatalogError so the relaxation resolver can advance.
Zero matches is an empty CatalogResponse.
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from mychef.catalog.base import RecipeCatalog
from mychef.engine.errors import CatalogError
from mychef.models.models import CatalogResponse, Recipe, RecipeDetail
from mychef.utils.config import config
from mychef.utils.logger import logger

SEARCH_PATH = "/recipes/complexSearch"
INFORMATION_PATH = "/recipes/{recipe_id}/information"

STATUS_MESSAGES = {
    401: "invalid or missing API key",
    402: "daily quota exceeded",
    404: "not found",
    429: "rate limited",
}


class SpoonacularClient(RecipeCatalog):
    """Thin async client over the Spoonacular REST API."""

    name = "Spoonacular"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Spoonacular API key. Defaults to SPOONACULAR_API_KEY.
            base_url: API root. Defaults to SPOONACULAR_BASE_URL.
            timeout: Total seconds per request. Defaults to CATALOG_TIMEOUT_SECONDS.
            session: Shared aiohttp session. When omitted, each call opens its own.

        Raises:
            ValueError: If no API key is configured.
        """
        api_key = api_key or config.SPOONACULAR_API_KEY
        if not api_key:
            raise ValueError("SPOONACULAR_API_KEY is required")

        self.api_key = api_key
        self.base_url = (base_url or config.SPOONACULAR_BASE_URL).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.CATALOG_TIMEOUT_SECONDS)
        self._session = session

    async def _get_json(self, path: str, params: Dict[str, str]) -> Any:
        url = f"{self.base_url}{path}"
        query = {**params, "apiKey": self.api_key}

        async def _request(session: aiohttp.ClientSession) -> Any:
            async with session.get(url, params=query, timeout=self.timeout) as response:
                if response.status >= 400:
                    body = await response.text()
                    reason = STATUS_MESSAGES.get(response.status, body[:200] or "unexpected status")
                    raise CatalogError(reason, status=response.status)
                return await response.json(content_type=None)

        try:
            if self._session is not None:
                return await _request(self._session)
            async with aiohttp.ClientSession() as session:
                return await _request(session)
        except CatalogError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise CatalogError(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            # json decode errors
            raise CatalogError(f"unreadable response body: {e}") from e

    async def search(self, params: Dict[str, str]) -> CatalogResponse:
        query = {**params, "addRecipeInformation": "true"}
        logger.debug(f"complexSearch params: {query}")
        data = await self._get_json(SEARCH_PATH, query)
        if not isinstance(data, dict):
            raise CatalogError("unexpected search payload")

        recipes: List[Recipe] = []
        for item in data.get("results") or []:
            try:
                recipes.append(Recipe.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed recipe in search results: {e.error_count()} error(s)")

        return CatalogResponse(
            results=recipes,
            offset=data.get("offset") or 0,
            number=data.get("number") or len(recipes),
            total_results=data.get("totalResults") or len(recipes),
        )

    async def get_recipe_information(self, recipe_id: int) -> RecipeDetail:
        data = await self._get_json(INFORMATION_PATH.format(recipe_id=recipe_id), {"includeNutrition": "true"})
        if not isinstance(data, dict):
            raise CatalogError("unexpected recipe payload")
        try:
            return RecipeDetail.from_payload(data)
        except ValidationError as e:
            raise CatalogError(f"malformed recipe {recipe_id}: {e.error_count()} error(s)") from e
