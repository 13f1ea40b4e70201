"""Data models and schemas for the recipe resolution engine.

Defines Pydantic models for the tiered intent, the canonical catalog query,
catalog results, cache entries and per-session regeneration state.
All models use Pydantic v2 for strict validation at external boundaries.
"""

import hashlib
import json
from enum import Enum
from typing import Any, Dict, List, Optional, Annotated, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _clean_terms(value: Any) -> List[str]:
    """Normalize a loosely typed term list: None, comma string or list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _loose_number(value: Any) -> Any:
    """Keep numbers and strings (word hints) for later coercion, drop anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        return value
    return None


class SortOrder(str, Enum):
    """Catalog sort hints understood by Spoonacular complexSearch."""

    POPULARITY = "popularity"
    HEALTHINESS = "healthiness"
    TIME = "time"
    META_SCORE = "meta-score"
    RANDOM = "random"


# ============================================================================
# Intent (upstream analysis output)
# ============================================================================


class CuisinePreference(BaseModel):
    """Requested cuisine plus ordered alternatives for the "different" variation."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    requested: Optional[str] = None
    alternatives: Annotated[List[str], Field(default_factory=list)]

    @field_validator("requested", mode="before")
    @classmethod
    def blank_requested_is_none(cls, v: Any) -> Optional[str]:
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("alternatives", mode="before")
    @classmethod
    def clean_alternatives(cls, v: Any) -> List[str]:
        return _clean_terms(v)


class NutritionTargets(BaseModel):
    """Exact nutrition bounds. Only set when the user gave a number."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )

    max_calories: Optional[Union[float, str]] = None
    min_protein: Optional[Union[float, str]] = None
    max_carbs: Optional[Union[float, str]] = None

    @field_validator("max_calories", "min_protein", "max_carbs", mode="before")
    @classmethod
    def drop_non_scalar(cls, v: Any) -> Any:
        return _loose_number(v)


class Intent(BaseModel):
    """Tiered description of what the user wants.

    Produced once per request by upstream analysis and never mutated.
    Filters are grouped into priority tiers:
    - safety: allergies, intolerances (never relaxed)
    - high: diets, exclude_ingredients
    - medium: preferred_cuisines, goals
    - low: skill_level, serving_size

    Accepts both camelCase payload keys and snake_case field names.

    `frozen` blocks assignment only. List fields are never mutated in place;
    derive a changed intent with `model_copy(update=...)` so `fingerprint()`
    stays tied to the value the session recorded.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )

    query: str = ""
    primary_ingredients: Annotated[List[str], Field(default_factory=list)]
    supporting_ingredients: Annotated[List[str], Field(default_factory=list)]
    cuisine: Annotated[CuisinePreference, Field(default_factory=CuisinePreference)]
    meal_type: Optional[str] = None
    max_cooking_time: Annotated[
        Optional[Union[int, float, str]],
        Field(alias="maxCookingTimeMinutes", description="Minutes, or a word hint such as 'quick'"),
    ] = None
    nutrition_targets: Annotated[NutritionTargets, Field(default_factory=NutritionTargets)]

    # Safety tier
    allergies: Annotated[List[str], Field(default_factory=list)]
    intolerances: Annotated[List[str], Field(default_factory=list)]
    # High tier
    diets: Annotated[List[str], Field(default_factory=list)]
    exclude_ingredients: Annotated[List[str], Field(default_factory=list)]
    # Medium tier
    preferred_cuisines: Annotated[List[str], Field(default_factory=list)]
    goals: Annotated[List[str], Field(default_factory=list)]
    # Low tier
    skill_level: Optional[str] = None
    serving_size: Annotated[Optional[int], Field(ge=1, le=100)] = None

    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 1.0
    explanation: Optional[str] = None

    @field_validator(
        "primary_ingredients",
        "supporting_ingredients",
        "allergies",
        "intolerances",
        "diets",
        "exclude_ingredients",
        "preferred_cuisines",
        "goals",
        mode="before",
    )
    @classmethod
    def coerce_term_list(cls, v: Any) -> List[str]:
        return _clean_terms(v)

    @field_validator("query", mode="before")
    @classmethod
    def coerce_query(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("cuisine", mode="before")
    @classmethod
    def coerce_cuisine(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, str):
            return {"requested": v}
        return v

    @field_validator("nutrition_targets", mode="before")
    @classmethod
    def coerce_nutrition(cls, v: Any) -> Any:
        return v if v is not None else {}

    @field_validator("max_cooking_time", mode="before")
    @classmethod
    def coerce_cooking_time(cls, v: Any) -> Any:
        return _loose_number(v)

    @field_validator("meal_type", "skill_level", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Optional[str]:
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    def fingerprint(self) -> str:
        """Stable hash of the intent's logical content."""
        canonical = json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


# ============================================================================
# Canonical catalog query
# ============================================================================

# Fields that narrow the catalog result space. Sort and pagination are hints, not constraints.
CONSTRAINT_FIELDS = (
    "query",
    "include_ingredients",
    "cuisine",
    "meal_type",
    "max_ready_time",
    "max_calories",
    "min_protein",
    "max_carbs",
    "allergies",
    "intolerances",
    "diets",
    "exclude_ingredients",
)


def _format_number(value: float) -> str:
    """Render 30.0 as "30" and 12.5 as "12.5"."""
    return str(int(value)) if float(value).is_integer() else str(value)


class SearchParams(BaseModel):
    """Canonical, catalog-facing query derived from an Intent.

    Immutable: every relaxation rung and variation produces a new value via
    `model_copy(update=...)`, which keeps the dropped fields traceable.
    Rungs share unchanged list fields with the params they were derived from,
    so those lists are read-only.
    """

    model_config = ConfigDict(frozen=True)

    query: Optional[str] = None
    include_ingredients: Annotated[List[str], Field(default_factory=list)]
    cuisine: Annotated[List[str], Field(default_factory=list)]
    meal_type: Optional[str] = None
    max_ready_time: Optional[int] = None
    max_calories: Optional[float] = None
    min_protein: Optional[float] = None
    max_carbs: Optional[float] = None

    # Safety tier
    allergies: Annotated[List[str], Field(default_factory=list)]
    intolerances: Annotated[List[str], Field(default_factory=list)]
    # High tier
    diets: Annotated[List[str], Field(default_factory=list)]
    exclude_ingredients: Annotated[List[str], Field(default_factory=list)]
    # Low tier: part of cache identity, never sent to the catalog
    skill_level: Optional[str] = None
    serving_size: Optional[int] = None

    sort: SortOrder = SortOrder.POPULARITY
    offset: Annotated[int, Field(ge=0)] = 0
    count: Annotated[int, Field(ge=1, le=100)] = 20

    @property
    def safety_tier(self) -> tuple:
        return (tuple(self.allergies), tuple(self.intolerances))

    @property
    def safety_terms(self) -> List[str]:
        """Allergy and intolerance terms in declaration order, without duplicates."""
        return list(dict.fromkeys(self.allergies + self.intolerances))

    def constraints(self) -> frozenset:
        """Names of the constraint fields that are currently set."""
        return frozenset(name for name in CONSTRAINT_FIELDS if getattr(self, name) not in (None, "", []))

    def cache_key(self) -> str:
        """Canonical serialization. Independent of field insertion order."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))

    def to_query(self) -> Dict[str, str]:
        """Flatten into Spoonacular complexSearch query parameters.

        Allergies and intolerances both travel in `intolerances`.
        """
        params: Dict[str, str] = {}
        if self.query:
            params["query"] = self.query
        if self.cuisine:
            params["cuisine"] = ",".join(self.cuisine)
        if self.diets:
            params["diet"] = ",".join(self.diets)
        if self.safety_terms:
            params["intolerances"] = ",".join(self.safety_terms)
        if self.exclude_ingredients:
            params["excludeIngredients"] = ",".join(self.exclude_ingredients)
        if self.include_ingredients:
            params["includeIngredients"] = ",".join(self.include_ingredients)
        if self.meal_type:
            params["type"] = self.meal_type
        if self.max_ready_time is not None:
            params["maxReadyTime"] = str(self.max_ready_time)
        if self.max_calories is not None:
            params["maxCalories"] = _format_number(self.max_calories)
        if self.min_protein is not None:
            params["minProtein"] = _format_number(self.min_protein)
        if self.max_carbs is not None:
            params["maxCarbs"] = _format_number(self.max_carbs)
        params["sort"] = self.sort.value
        params["offset"] = str(self.offset)
        params["number"] = str(self.count)
        return params


# ============================================================================
# Catalog results
# ============================================================================


class Recipe(BaseModel):
    """Recipe summary as returned by complexSearch with addRecipeInformation=true.

    Only id and title are required; everything else depends on what the catalog returned.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Annotated[int, Field(description="Recipe ID from Spoonacular API")]
    title: Annotated[str, Field(min_length=1, description="Recipe name or title")]
    image: Optional[str] = None
    ready_in_minutes: Annotated[Optional[int], Field(ge=0)] = None
    servings: Annotated[Optional[int], Field(ge=0)] = None
    summary: Optional[str] = None
    source_url: Optional[str] = None
    health_score: Optional[float] = None
    diets: Annotated[List[str], Field(default_factory=list)]
    dish_types: Annotated[List[str], Field(default_factory=list)]
    cuisines: Annotated[List[str], Field(default_factory=list)]


class RecipeDetail(Recipe):
    """Full recipe from /recipes/{id}/information.

    Used by the detail screens, not by the resolver.
    """

    ingredients: Annotated[List[str], Field(default_factory=list)]
    instructions: Annotated[List[str], Field(default_factory=list)]
    nutrients: Annotated[Dict[str, float], Field(default_factory=dict)]

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "RecipeDetail":
        """Build from the raw information payload (extendedIngredients, analyzedInstructions, nutrition)."""
        ingredients = [
            item.get("original") or item.get("name", "")
            for item in data.get("extendedIngredients") or []
            if isinstance(item, dict)
        ]
        instructions: List[str] = []
        analyzed = data.get("analyzedInstructions") or []
        if analyzed and isinstance(analyzed[0], dict):
            instructions = [step.get("step", "") for step in analyzed[0].get("steps") or []]
        if not instructions and data.get("instructions"):
            instructions = [line.strip() for line in str(data["instructions"]).splitlines() if line.strip()]
        nutrients = {
            n["name"].lower(): float(n["amount"])
            for n in (data.get("nutrition") or {}).get("nutrients") or []
            if isinstance(n, dict) and "name" in n and "amount" in n
        }
        return cls.model_validate(
            {
                **data,
                "ingredients": [i for i in ingredients if i],
                "instructions": [s for s in instructions if s],
                "nutrients": nutrients,
            }
        )

    @property
    def calories(self) -> Optional[float]:
        return self.nutrients.get("calories")

    @property
    def difficulty(self) -> str:
        """Rough difficulty from total time, ingredient count and step count."""
        minutes = self.ready_in_minutes or 0
        ingredient_count = len(self.ingredients)
        step_count = len(self.instructions)
        if minutes <= 20 and ingredient_count <= 8 and step_count <= 5:
            return "Easy"
        if minutes <= 45 and ingredient_count <= 15 and step_count <= 10:
            return "Medium"
        return "Hard"


class CatalogResponse(BaseModel):
    """One page of complexSearch results. An empty list means zero matches, not an error."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    results: Annotated[List[Recipe], Field(default_factory=list)]
    offset: int = 0
    number: int = 0
    total_results: int = 0


class CacheEntry(BaseModel):
    """Cached resolution outcome. Read-only once written."""

    model_config = ConfigDict(frozen=True)

    key: str
    results: List[Recipe]
    strategy_used: str
    stored_at: float


class ResolveResult(BaseModel):
    """Outcome of a relaxation run, tagged with the rung that produced it."""

    results: Annotated[List[Recipe], Field(default_factory=list)]
    strategy_used: str
    attempts: Annotated[List[str], Field(default_factory=list, description="Rung names tried, in order")]
    total_results: int = 0
    from_cache: bool = False

    @property
    def is_relaxed(self) -> bool:
        return self.strategy_used != "full"


# ============================================================================
# Session state and upstream request
# ============================================================================


class RegenerationState(BaseModel):
    """Per-session regeneration counter. Incremented only on a successful regenerate."""

    count: Annotated[int, Field(ge=0)] = 0
    last_intent_fingerprint: Optional[str] = None


class UserPreferences(BaseModel):
    """Stored user preferences forwarded to intent analysis."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    selected_diets: Annotated[List[str], Field(default_factory=list)]
    selected_allergies: Annotated[List[str], Field(default_factory=list)]
    selected_cuisines: Annotated[List[str], Field(default_factory=list)]
    skill_level: str = "Intermediate"
    selected_goals: Annotated[List[str], Field(default_factory=list)]
    avoid_ingredients: Annotated[List[str], Field(default_factory=list)]
    serving_size: Annotated[int, Field(ge=1, le=100)] = 2
    nutritional_goals: Optional[NutritionTargets] = None
    max_cooking_time: Annotated[Optional[int], Field(ge=1)] = None

    @field_validator(
        "selected_diets",
        "selected_allergies",
        "selected_cuisines",
        "selected_goals",
        "avoid_ingredients",
        mode="before",
    )
    @classmethod
    def coerce_term_list(cls, v: Any) -> List[str]:
        return _clean_terms(v)


class AnalysisRequest(BaseModel):
    """Input to the intent analyzer: free text, optional images and preferences."""

    model_config = ConfigDict(str_strip_whitespace=True)

    search_text: str = ""
    images: Annotated[
        List[Union[str, bytes]],
        Field(default_factory=list, description="Image URLs, data URIs, base64 strings or raw bytes"),
    ]
    preferences: Annotated[UserPreferences, Field(default_factory=UserPreferences)]


class SessionResult(BaseModel):
    """What a results screen receives for one search or regeneration."""

    results: Annotated[List[Recipe], Field(default_factory=list)]
    strategy_used: str
    variation: Optional[str] = None
    from_cache: bool = False
    deduplicated: bool = False

    @property
    def search_mode(self) -> str:
        """"initial"/"new" for near-exact matches, "fallback" when constraints were relaxed."""
        if self.strategy_used in ("full", "no-nutrition"):
            return "new" if self.variation else "initial"
        return "fallback"
