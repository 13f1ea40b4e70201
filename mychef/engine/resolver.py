"""Relaxation resolver: ordered, progressively broader catalog searches.

Each rung is a pure transformation of the previous rung's params that only
drops (or shortens) constraints. The resolver stops at the first rung whose
call returns at least one recipe and tags the result with that rung's name.

Ladder:
1. full              all constraints as mapped
2. no-nutrition      drop nutrition targets
3. no-cuisine        drop cuisine
4. no-time           drop cooking-time ceiling
5. broad             keep safety + high tier, query cut to two words, popularity, first page
6. no-query-random   drop the query, random sort
7. safety-only       drop diets and excluded ingredients, popularity
8. absolute-fallback random sort over the safety tier alone

The safety tier (allergies, intolerances) is carried by every rung,
including the absolute fallback, so allergenic recipes are never served.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from mychef.catalog.base import RecipeCatalog
from mychef.engine.errors import CatalogError, CatalogUnavailable
from mychef.models.models import ResolveResult, SearchParams, SortOrder
from mychef.utils.config import config
from mychef.utils.logger import logger


@dataclass(frozen=True)
class SearchStrategy:
    """One rung of the relaxation ladder."""

    name: str
    description: str
    relax: Callable[[SearchParams], SearchParams]


def _full(params: SearchParams) -> SearchParams:
    return params


def _no_nutrition(params: SearchParams) -> SearchParams:
    return params.model_copy(update={"max_calories": None, "min_protein": None, "max_carbs": None})


def _no_cuisine(params: SearchParams) -> SearchParams:
    return params.model_copy(update={"cuisine": []})


def _no_time(params: SearchParams) -> SearchParams:
    return params.model_copy(update={"max_ready_time": None})


def _broad(params: SearchParams) -> SearchParams:
    short_query = " ".join((params.query or "").split()[:2]) or None
    return params.model_copy(
        update={
            "query": short_query,
            "include_ingredients": [],
            "cuisine": [],
            "meal_type": None,
            "max_ready_time": None,
            "max_calories": None,
            "min_protein": None,
            "max_carbs": None,
            "skill_level": None,
            "serving_size": None,
            "sort": SortOrder.POPULARITY,
            "offset": 0,
        }
    )


def _no_query_random(params: SearchParams) -> SearchParams:
    return params.model_copy(update={"query": None, "sort": SortOrder.RANDOM})


def _safety_only(params: SearchParams) -> SearchParams:
    return params.model_copy(update={"diets": [], "exclude_ingredients": [], "sort": SortOrder.POPULARITY})


def _absolute_fallback(params: SearchParams) -> SearchParams:
    return params.model_copy(update={"sort": SortOrder.RANDOM})


LADDER: Sequence[SearchStrategy] = (
    SearchStrategy("full", "All constraints as mapped", _full),
    SearchStrategy("no-nutrition", "Drop nutrition targets", _no_nutrition),
    SearchStrategy("no-cuisine", "Drop cuisine filter", _no_cuisine),
    SearchStrategy("no-time", "Drop cooking-time ceiling", _no_time),
    SearchStrategy("broad", "Safety and high tier only, two-word query", _broad),
    SearchStrategy("no-query-random", "Drop the text query, random sort", _no_query_random),
    SearchStrategy("safety-only", "Allergies and intolerances only", _safety_only),
    SearchStrategy("absolute-fallback", "Random recipes within the safety tier", _absolute_fallback),
)


class RelaxationResolver:
    """Runs the relaxation ladder against a recipe catalog."""

    def __init__(
        self,
        catalog: RecipeCatalog,
        strategies: Sequence[SearchStrategy] = LADDER,
        timeout: Optional[float] = None,
    ) -> None:
        if not strategies:
            raise ValueError("At least one search strategy is required")
        self.catalog = catalog
        self.strategies = tuple(strategies)
        self.timeout = timeout if timeout is not None else config.CATALOG_TIMEOUT_SECONDS

    def plan(self, params: SearchParams) -> List[SearchParams]:
        """Params for every rung, in order, without calling the catalog."""
        rungs: List[SearchParams] = []
        current = params
        for strategy in self.strategies:
            current = strategy.relax(current)
            if current.safety_tier != params.safety_tier:
                raise ValueError(f"Strategy '{strategy.name}' dropped the safety tier")
            rungs.append(current)
        return rungs

    async def resolve(self, params: SearchParams) -> ResolveResult:
        """Return results from the first rung that yields at least one recipe.

        Args:
            params: Fully mapped params (rung 1).

        Returns:
            ResolveResult tagged with the successful rung. If every rung answered
            with zero matches, an empty result tagged with the last rung.

        Raises:
            CatalogUnavailable: If every rung's catalog call failed.
        """
        attempts: List[str] = []
        failures = 0
        last_error: Optional[Exception] = None

        for strategy, rung_params in zip(self.strategies, self.plan(params)):
            attempts.append(strategy.name)
            try:
                response = await asyncio.wait_for(self.catalog.search(rung_params.to_query()), timeout=self.timeout)
            except (CatalogError, asyncio.TimeoutError) as e:
                failures += 1
                last_error = e
                logger.warning(f"Catalog call failed on rung '{strategy.name}': {e}", extra={"strategy": strategy.name})
                continue

            if response.results:
                logger.info(
                    f"✓ Resolved {len(response.results)} recipes after {len(attempts)} attempt(s)",
                    extra={"strategy": strategy.name},
                )
                return ResolveResult(
                    results=response.results,
                    strategy_used=strategy.name,
                    attempts=attempts,
                    total_results=response.total_results,
                )

            logger.debug(f"No results on rung '{strategy.name}', relaxing", extra={"strategy": strategy.name})

        if failures == len(attempts):
            logger.error(f"All {failures} catalog calls failed")
            raise CatalogUnavailable(attempts, last_error)

        logger.warning(f"Relaxation ladder exhausted with no results ({failures} failed calls)")
        return ResolveResult(results=[], strategy_used=attempts[-1], attempts=attempts)
