"""Constraint mapper: tiered Intent -> canonical SearchParams.

Pure functions of their inputs plus the static vocabulary tables.

Mapping rules:
- Only the top 2 primary ingredients become hard `includeIngredients` filters.
  Further primary and all supporting ingredients ride along as query-text hints.
- Diet and allergy/intolerance names are normalized to catalog vocabulary.
- Filter lists are de-duplicated and sorted so equivalent intents share a cache key.
- Numeric targets pass through only when numeric; word hints become fixed ceilings.
"""

from typing import Iterable, List, Optional

from mychef.engine import vocabulary
from mychef.models.models import Intent, SearchParams, SortOrder
from mychef.utils.config import config

MAX_INCLUDED_INGREDIENTS = 2

HEALTH_GOALS = {"weight loss", "balanced diet"}
QUICK_GOALS = {"quick meals", "quick meal", "quick"}


def _canonical(terms: Iterable[str]) -> List[str]:
    return sorted({term for term in terms if term})


def _unique(terms: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(term for term in terms if term))


def _build_query(intent: Intent, hint_ingredients: List[str]) -> Optional[str]:
    """Free-text query plus ingredient hints the text does not already mention."""
    text = " ".join(intent.query.split())
    present = set(text.lower().split())
    hints = [name for name in hint_ingredients if not set(name.split()) <= present]
    query = " ".join([text] + hints).strip()
    return query or None


def _choose_sort(intent: Intent, force_random: bool) -> SortOrder:
    """Sort precedence: random request > health goal > quick goal/hint > cuisine > popularity."""
    if force_random:
        return SortOrder.RANDOM
    goals = {goal.lower() for goal in intent.goals}
    if goals & HEALTH_GOALS:
        return SortOrder.HEALTHINESS
    if goals & QUICK_GOALS or vocabulary.is_quick_hint(intent.max_cooking_time):
        return SortOrder.TIME
    if intent.cuisine.requested:
        return SortOrder.META_SCORE
    return SortOrder.POPULARITY


def map_intent(
    intent: Intent,
    offset: int = 0,
    force_random: bool = False,
    count: Optional[int] = None,
) -> SearchParams:
    """Build the canonical catalog query for an intent.

    Args:
        intent: Tiered intent from upstream analysis.
        offset: Pagination offset.
        force_random: Explicit randomization request; overrides every other sort rule.
        count: Page size (defaults to PAGE_SIZE).

    Returns:
        Immutable SearchParams.
    """
    primary = _unique(vocabulary.simplify_ingredient(name) for name in intent.primary_ingredients)
    supporting = _unique(vocabulary.simplify_ingredient(name) for name in intent.supporting_ingredients)
    included = primary[:MAX_INCLUDED_INGREDIENTS]
    hints = _unique(name for name in primary[MAX_INCLUDED_INGREDIENTS:] + supporting if name not in included)

    if intent.cuisine.requested:
        cuisine = [vocabulary.match_cuisine(intent.cuisine.requested)]
    else:
        cuisine = _canonical(vocabulary.match_cuisine(name) for name in intent.preferred_cuisines)

    targets = intent.nutrition_targets

    return SearchParams(
        query=_build_query(intent, hints),
        include_ingredients=_canonical(included),
        cuisine=cuisine,
        meal_type=intent.meal_type.lower() if intent.meal_type else None,
        max_ready_time=vocabulary.coerce_minutes(intent.max_cooking_time),
        max_calories=vocabulary.coerce_number(targets.max_calories),
        min_protein=vocabulary.coerce_number(targets.min_protein),
        max_carbs=vocabulary.coerce_number(targets.max_carbs),
        allergies=_canonical(vocabulary.normalize_intolerance(name) for name in intent.allergies),
        intolerances=_canonical(vocabulary.normalize_intolerance(name) for name in intent.intolerances),
        diets=_canonical(vocabulary.normalize_diet(name) for name in intent.diets),
        exclude_ingredients=_canonical(name.lower() for name in intent.exclude_ingredients),
        skill_level=intent.skill_level.lower() if intent.skill_level else None,
        serving_size=intent.serving_size,
        sort=_choose_sort(intent, force_random),
        offset=max(offset, 0),
        count=count or config.PAGE_SIZE,
    )


def map_category(category: str, count: Optional[int] = None) -> SearchParams:
    """Build params for category browsing. Unknown categories become a text query."""
    preset = vocabulary.CATEGORY_PARAMS.get(vocabulary.category_key(category), {"query": category.strip().lower()})
    return SearchParams(sort=SortOrder.POPULARITY, count=count or config.PAGE_SIZE, **preset)
