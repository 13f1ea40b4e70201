"""Unit tests for Pydantic models validation."""

import pytest
from pydantic import ValidationError

from mychef.analysis.analyzer import merge_preferences
from mychef.engine.mapper import map_intent
from mychef.models.models import (
    CatalogResponse,
    Intent,
    Recipe,
    RecipeDetail,
    SearchParams,
    SessionResult,
    SortOrder,
    UserPreferences,
)


class TestIntent:
    """Test Intent validation and coercion."""

    def test_defaults(self):
        """Test an empty intent is valid with empty tiers."""
        intent = Intent()
        assert intent.query == ""
        assert intent.allergies == []
        assert intent.cuisine.requested is None
        assert intent.confidence == 1.0

    def test_camel_case_payload(self):
        """Test camelCase keys from analysis payloads populate fields."""
        intent = Intent.model_validate(
            {
                "query": "noodles",
                "primaryIngredients": ["rice noodles"],
                "excludeIngredients": ["cilantro"],
                "maxCookingTimeMinutes": "quick",
                "nutritionTargets": {"maxCalories": 500},
                "servingSize": 4,
            }
        )

        assert intent.primary_ingredients == ["rice noodles"]
        assert intent.exclude_ingredients == ["cilantro"]
        assert intent.max_cooking_time == "quick"
        assert intent.nutrition_targets.max_calories == 500
        assert intent.serving_size == 4

    def test_cuisine_string_and_blank_values(self):
        """Test a bare cuisine string and blank optional strings are normalized."""
        intent = Intent(cuisine="Thai", meal_type="  ", skill_level="")
        assert intent.cuisine.requested == "Thai"
        assert intent.cuisine.alternatives == []
        assert intent.meal_type is None
        assert intent.skill_level is None

    def test_term_lists_are_cleaned(self):
        """Test comma strings, None and non-string items are handled."""
        intent = Intent(allergies="peanut, soy", diets=None, goals=["Weight Loss", 5, ""])
        assert intent.allergies == ["peanut", "soy"]
        assert intent.diets == []
        assert intent.goals == ["Weight Loss"]

    def test_confidence_range(self):
        """Test confidence outside 0-1 is rejected."""
        with pytest.raises(ValidationError):
            Intent(confidence=1.5)

    def test_intent_is_immutable(self):
        """Test intents cannot be mutated after creation."""
        intent = Intent(query="soup")
        with pytest.raises(ValidationError):
            intent.query = "stew"

    def test_fingerprint(self):
        """Test equal intents share a fingerprint and different ones do not."""
        assert Intent(query="soup", allergies=["egg"]).fingerprint() == Intent(
            allergies=["egg"], query="soup"
        ).fingerprint()
        assert Intent(query="soup").fingerprint() != Intent(query="stew").fingerprint()

    def test_derived_intents_leave_the_original_unchanged(self):
        """Test preference merging and mapping never touch the source intent lists."""
        intent = Intent(query="pasta", allergies=["peanut"], diets=["vegan"])
        before = intent.fingerprint()

        merged = merge_preferences(intent, UserPreferences(selected_allergies=["egg"], selected_diets=["keto"]))
        params = map_intent(intent)

        assert merged.allergies == ["peanut", "egg"]
        assert intent.allergies == ["peanut"]
        assert intent.diets == ["vegan"]
        assert params.allergies is not intent.allergies
        assert intent.fingerprint() == before


class TestSearchParams:
    """Test the canonical catalog query."""

    def test_to_query_formats_values(self):
        """Test flattening into catalog parameters."""
        params = SearchParams(
            query="pasta",
            include_ingredients=["pasta", "tomato"],
            cuisine=["Italian"],
            meal_type="main course",
            max_ready_time=30,
            max_calories=400.0,
            min_protein=12.5,
            allergies=["peanut"],
            intolerances=["dairy"],
            diets=["vegetarian"],
            exclude_ingredients=["olives"],
            skill_level="beginner",
            sort=SortOrder.HEALTHINESS,
            offset=20,
            count=10,
        )

        assert params.to_query() == {
            "query": "pasta",
            "cuisine": "Italian",
            "diet": "vegetarian",
            "intolerances": "peanut,dairy",
            "excludeIngredients": "olives",
            "includeIngredients": "pasta,tomato",
            "type": "main course",
            "maxReadyTime": "30",
            "maxCalories": "400",
            "minProtein": "12.5",
            "sort": "healthiness",
            "offset": "20",
            "number": "10",
        }

    def test_low_tier_is_part_of_cache_identity_only(self):
        """Test skill level changes the cache key but not the catalog query."""
        plain = SearchParams(query="soup")
        skilled = SearchParams(query="soup", skill_level="beginner")

        assert plain.cache_key() != skilled.cache_key()
        assert plain.to_query() == skilled.to_query()

    def test_safety_terms(self):
        """Test allergies and intolerances merge without duplicates into one filter."""
        params = SearchParams(allergies=["peanut", "egg"], intolerances=["egg", "dairy"])

        assert params.safety_terms == ["peanut", "egg", "dairy"]
        assert params.to_query()["intolerances"] == "peanut,egg,dairy"

    def test_model_copy_leaves_source_params_unchanged(self):
        """Test a relaxed copy does not alter the params it came from."""
        params = SearchParams(query="soup", cuisine=["Thai"], allergies=["peanut"])
        key = params.cache_key()

        relaxed = params.model_copy(update={"cuisine": []})

        assert relaxed.cuisine == []
        assert params.cuisine == ["Thai"]
        assert params.cache_key() == key

    def test_constraints(self):
        """Test constraint names cover only set filters."""
        params = SearchParams(query="soup", allergies=["egg"], sort=SortOrder.RANDOM)
        assert params.constraints() == {"query", "allergies"}

    def test_count_bounds(self):
        """Test the page size must be between 1 and 100."""
        with pytest.raises(ValidationError):
            SearchParams(count=0)


class TestRecipeModels:
    """Test catalog result models."""

    def test_recipe_from_catalog_payload(self):
        """Test camelCase catalog keys are read and unknown keys ignored."""
        recipe = Recipe.model_validate(
            {"id": 1, "title": "Soup", "readyInMinutes": 25, "sourceUrl": "https://x", "spoonacularScore": 80}
        )
        assert recipe.ready_in_minutes == 25
        assert recipe.source_url == "https://x"

    def test_recipe_requires_title(self):
        """Test a recipe without a title is invalid."""
        with pytest.raises(ValidationError):
            Recipe.model_validate({"id": 1})

    def test_recipe_detail_fallback_instructions(self):
        """Test plain-text instructions are split when no analyzed steps exist."""
        detail = RecipeDetail.from_payload(
            {"id": 2, "title": "Stew", "readyInMinutes": 90, "instructions": "Brown the meat.\nSimmer for an hour."}
        )
        assert detail.instructions == ["Brown the meat.", "Simmer for an hour."]
        assert detail.calories is None
        assert detail.difficulty == "Hard"

    def test_catalog_response_aliases(self):
        """Test totalResults maps to total_results."""
        response = CatalogResponse.model_validate({"results": [], "totalResults": 12})
        assert response.total_results == 12


class TestSessionResult:
    """Test result messaging helpers."""

    @pytest.mark.parametrize(
        "strategy,variation,mode",
        [
            ("full", None, "initial"),
            ("no-nutrition", None, "initial"),
            ("full", "similar", "new"),
            ("no-cuisine", None, "fallback"),
            ("absolute-fallback", "surprise", "fallback"),
        ],
    )
    def test_search_mode(self, strategy, variation, mode):
        """Test relaxed rungs are reported as fallback results."""
        assert SessionResult(strategy_used=strategy, variation=variation).search_mode == mode
