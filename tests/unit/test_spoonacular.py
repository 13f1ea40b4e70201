"""Unit tests for the Spoonacular catalog client (aiohttp session faked)."""

import json
from unittest.mock import patch

import aiohttp
import pytest

from mychef.catalog.spoonacular import SpoonacularClient
from mychef.engine.errors import CatalogError
from mychef.utils.config import config


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(self, status=200, payload=None, body=""):
        self.status = status
        self.payload = payload
        self.body = body

    async def json(self, content_type=None):
        if self.payload is None:
            return json.loads(self.body)
        return self.payload

    async def text(self):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records GET requests and returns a canned response or raises."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if self.error is not None:
            raise self.error
        return self.response


SEARCH_PAYLOAD = {
    "results": [
        {
            "id": 716429,
            "title": "Pasta with Garlic, Scallions, Cauliflower & Breadcrumbs",
            "image": "https://img.spoonacular.com/recipes/716429-312x231.jpg",
            "readyInMinutes": 45,
            "servings": 2,
            "healthScore": 19.0,
            "diets": ["dairy free"],
            "dishTypes": ["lunch", "main course"],
            "cuisines": [],
            "sourceUrl": "https://example.com/pasta",
        },
        {"id": 1, "image": "missing title"},
    ],
    "offset": 0,
    "number": 2,
    "totalResults": 86,
}

DETAIL_PAYLOAD = {
    "id": 42,
    "title": "Quick Tomato Soup",
    "readyInMinutes": 20,
    "servings": 2,
    "extendedIngredients": [
        {"original": "4 tomatoes", "name": "tomato"},
        {"name": "salt"},
    ],
    "analyzedInstructions": [{"steps": [{"step": "Chop."}, {"step": "Simmer."}]}],
    "nutrition": {"nutrients": [{"name": "Calories", "amount": 180.5, "unit": "kcal"}]},
}


def make_client(session):
    return SpoonacularClient(api_key="test-key", base_url="https://api.example.com/", session=session)


class TestSpoonacularSearch:
    """Test complexSearch calls."""

    @pytest.mark.asyncio
    async def test_search_sends_key_and_parses_results(self):
        """Test the request carries apiKey/addRecipeInformation and results are parsed."""
        session = FakeSession(FakeResponse(payload=SEARCH_PAYLOAD))
        response = await make_client(session).search({"query": "pasta", "number": "2"})

        url, params = session.calls[0]
        assert url == "https://api.example.com/recipes/complexSearch"
        assert params["apiKey"] == "test-key"
        assert params["addRecipeInformation"] == "true"
        assert params["query"] == "pasta"

        assert response.total_results == 86
        assert len(response.results) == 1
        recipe = response.results[0]
        assert recipe.id == 716429
        assert recipe.ready_in_minutes == 45
        assert recipe.dish_types == ["lunch", "main course"]

    @pytest.mark.asyncio
    async def test_zero_matches_is_empty_not_error(self):
        """Test an empty result list is a normal response."""
        session = FakeSession(FakeResponse(payload={"results": [], "totalResults": 0}))
        response = await make_client(session).search({"query": "unobtainium"})

        assert response.results == []
        assert response.total_results == 0

    @pytest.mark.asyncio
    async def test_http_error_raises_catalog_error(self):
        """Test non-2xx statuses become CatalogError with the status."""
        session = FakeSession(FakeResponse(status=402, body='{"message": "quota"}'))

        with pytest.raises(CatalogError) as exc_info:
            await make_client(session).search({"query": "pasta"})
        assert exc_info.value.status == 402
        assert "quota" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_raises_catalog_error(self):
        """Test connection failures become CatalogError."""
        session = FakeSession(error=aiohttp.ClientConnectionError("connection refused"))

        with pytest.raises(CatalogError) as exc_info:
            await make_client(session).search({"query": "pasta"})
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_unreadable_body_raises_catalog_error(self):
        """Test a non-JSON body becomes CatalogError."""
        session = FakeSession(FakeResponse(body="<html>oops</html>"))

        with pytest.raises(CatalogError):
            await make_client(session).search({"query": "pasta"})

    @pytest.mark.asyncio
    async def test_non_object_payload_raises_catalog_error(self):
        """Test a JSON list where an object is expected is rejected."""
        session = FakeSession(FakeResponse(payload=[1, 2, 3]))

        with pytest.raises(CatalogError):
            await make_client(session).search({"query": "pasta"})


class TestSpoonacularDetails:
    """Test recipe information lookup."""

    @pytest.mark.asyncio
    async def test_get_recipe_information(self):
        """Test the detail payload is flattened into RecipeDetail."""
        session = FakeSession(FakeResponse(payload=DETAIL_PAYLOAD))
        detail = await make_client(session).get_recipe_information(42)

        url, params = session.calls[0]
        assert url == "https://api.example.com/recipes/42/information"
        assert params["includeNutrition"] == "true"
        assert detail.ingredients == ["4 tomatoes", "salt"]
        assert detail.instructions == ["Chop.", "Simmer."]
        assert detail.calories == 180.5
        assert detail.difficulty == "Easy"

    @pytest.mark.asyncio
    async def test_not_found(self):
        """Test a 404 lookup raises CatalogError."""
        session = FakeSession(FakeResponse(status=404, body=""))

        with pytest.raises(CatalogError) as exc_info:
            await make_client(session).get_recipe_information(999)
        assert exc_info.value.status == 404


class TestSpoonacularInit:
    """Test client construction."""

    def test_requires_api_key(self):
        """Test a missing key raises ValueError."""
        with patch.object(config, "SPOONACULAR_API_KEY", ""):
            with pytest.raises(ValueError, match="SPOONACULAR_API_KEY"):
                SpoonacularClient()

    def test_defaults_from_config(self):
        """Test base URL and timeout come from config."""
        with patch.object(config, "SPOONACULAR_API_KEY", "env-key"):
            client = SpoonacularClient()

        assert client.api_key == "env-key"
        assert client.base_url == config.SPOONACULAR_BASE_URL.rstrip("/")
        assert client.timeout.total == config.CATALOG_TIMEOUT_SECONDS
