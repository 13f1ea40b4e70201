"""Variation selector for regeneration, plus shown-id deduplication.

Variation changes what is searched for; the relaxation ladder then decides
how strict the search is. Four transforms rotate on the regeneration count:

0. similar   next page of the same result space
1. related   same cuisine/diet, no ingredient or time filters, popularity
2. different first alternative cuisine, one-word query, relevance sort
3. surprise  safety tier plus diet/exclude only, random sort
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from mychef.engine import vocabulary
from mychef.models.models import Intent, Recipe, RegenerationState, SearchParams, SortOrder
from mychef.utils.config import config

ROTATION = ("similar", "related", "different", "surprise")


@dataclass(frozen=True)
class ParamsTransform:
    name: str
    apply: Callable[[SearchParams], SearchParams]


def _similar(round_number: int) -> Callable[[SearchParams], SearchParams]:
    # Each full rotation moves one page further into the same results.
    def apply(params: SearchParams) -> SearchParams:
        return params.model_copy(update={"offset": params.offset + params.count * (round_number + 1)})

    return apply


def _related(params: SearchParams) -> SearchParams:
    return params.model_copy(
        update={
            "include_ingredients": [],
            "max_ready_time": None,
            "sort": SortOrder.POPULARITY,
            "offset": 0,
        }
    )


def _different(alternatives: List[str]) -> Callable[[SearchParams], SearchParams]:
    def apply(params: SearchParams) -> SearchParams:
        words = (params.query or "").split()
        return params.model_copy(
            update={
                "cuisine": [vocabulary.match_cuisine(alternatives[0])] if alternatives else [],
                "query": words[0] if words else None,
                "sort": SortOrder.META_SCORE,
                "offset": 0,
            }
        )

    return apply


def _surprise(params: SearchParams) -> SearchParams:
    return SearchParams(
        allergies=params.allergies,
        intolerances=params.intolerances,
        diets=params.diets,
        exclude_ingredients=params.exclude_ingredients,
        sort=SortOrder.RANDOM,
        offset=0,
        count=params.count,
    )


def next_strategy(regen_state: RegenerationState, intent: Intent) -> ParamsTransform:
    """Pick the transform for the next regeneration.

    Args:
        regen_state: Current regeneration state (count before this regeneration).
        intent: Intent the params were mapped from; supplies cuisine alternatives.

    Returns:
        Named transform over SearchParams.
    """
    name = ROTATION[regen_state.count % len(ROTATION)]
    if name == "similar":
        return ParamsTransform(name, _similar(regen_state.count // len(ROTATION)))
    if name == "related":
        return ParamsTransform(name, _related)
    if name == "different":
        return ParamsTransform(name, _different(intent.cuisine.alternatives))
    return ParamsTransform(name, _surprise)


def filter_duplicates(
    results: List[Recipe],
    shown_ids: Iterable[int],
    min_results: Optional[int] = None,
    min_remaining: Optional[int] = None,
) -> List[Recipe]:
    """Remove already shown recipes when there is room to do so.

    Filtering only applies when more than `min_results` came back, and is
    skipped entirely when fewer than `min_remaining` would be left.
    """
    min_results = config.DEDUP_MIN_RESULTS if min_results is None else min_results
    min_remaining = config.DEDUP_MIN_REMAINING if min_remaining is None else min_remaining

    shown = set(shown_ids)
    if not shown or len(results) <= min_results:
        return list(results)

    fresh = [recipe for recipe in results if recipe.id not in shown]
    if len(fresh) < min_remaining:
        return list(results)
    return fresh


def should_reanalyze(regen_state: RegenerationState, every: Optional[int] = None) -> bool:
    """True when the upcoming regeneration should re-run intent analysis."""
    every = every or config.REANALYZE_EVERY
    return (regen_state.count + 1) % every == 0
