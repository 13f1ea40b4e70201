"""Search session: one results screen's worth of state.

Owns the result cache, the shown-id set and the regeneration counter for a
single caller, and drives analysis -> mapping -> cache -> relaxation -> dedup.
Nothing here is process-wide; two sessions never share dedup or regeneration
state.
"""

import asyncio
from typing import Optional, Set
from uuid import uuid4

from mychef.analysis.analyzer import IntentAnalyzer
from mychef.catalog.base import RecipeCatalog
from mychef.engine.cache import ResultCache
from mychef.engine.errors import CatalogError
from mychef.engine.mapper import map_category, map_intent
from mychef.engine.resolver import RelaxationResolver
from mychef.engine.variation import filter_duplicates, next_strategy, should_reanalyze
from mychef.models.models import (
    AnalysisRequest,
    Intent,
    RecipeDetail,
    RegenerationState,
    ResolveResult,
    SearchParams,
    SessionResult,
    SortOrder,
)
from mychef.utils.config import config
from mychef.utils.logger import bind_context


class SearchSession:
    """Single-caller search flow with caching, relaxation and regeneration."""

    def __init__(
        self,
        catalog: RecipeCatalog,
        analyzer: Optional[IntentAnalyzer] = None,
        cache: Optional[ResultCache] = None,
        resolver: Optional[RelaxationResolver] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.catalog = catalog
        self.analyzer = analyzer
        self.cache = cache if cache is not None else ResultCache()
        self.resolver = resolver if resolver is not None else RelaxationResolver(catalog)
        self.session_id = session_id or uuid4().hex[:8]
        self.log = bind_context(session_id=self.session_id)

        self.intent: Optional[Intent] = None
        self.request: Optional[AnalysisRequest] = None
        self.regen_state = RegenerationState()
        self.shown_ids: Set[int] = set()

    async def _analyze(self, request: AnalysisRequest) -> Intent:
        if self.analyzer is None:
            raise ValueError("An IntentAnalyzer is required to search from a raw request")
        return await self.analyzer.analyze(request)

    async def _resolve(self, params: SearchParams) -> ResolveResult:
        """Cache lookup, then the relaxation ladder.

        Random-sorted params bypass the cache in both directions. Only
        non-empty results are stored, and only after resolution completes,
        so a cancelled resolution leaves the cache untouched.
        """
        cacheable = params.sort != SortOrder.RANDOM
        if cacheable:
            entry = self.cache.get(params)
            if entry is not None:
                self.log.info(
                    f"✓ Cache hit ({len(entry.results)} recipes)",
                    extra={"strategy": entry.strategy_used},
                )
                return ResolveResult(results=entry.results, strategy_used=entry.strategy_used, from_cache=True)

        result = await self.resolver.resolve(params)
        if cacheable and result.results:
            self.cache.put(params, result.results, result.strategy_used)
        return result

    def _reset_if_new_intent(self, intent: Intent) -> None:
        fingerprint = intent.fingerprint()
        if fingerprint != self.regen_state.last_intent_fingerprint:
            if self.regen_state.last_intent_fingerprint is not None:
                self.log.debug("New intent, resetting regeneration state")
            self.regen_state = RegenerationState(last_intent_fingerprint=fingerprint)
            self.shown_ids = set()

    async def search(
        self,
        intent: Optional[Intent] = None,
        request: Optional[AnalysisRequest] = None,
        force_random: bool = False,
    ) -> SessionResult:
        """Initial search for an intent, or for a request analyzed first.

        Args:
            intent: Already analyzed intent. Takes precedence over `request`.
            request: Raw request to analyze when no intent is given. Kept for
                periodic re-analysis during regeneration.
            force_random: Ask the catalog for a random ordering.

        Raises:
            ValueError: If neither intent nor request is given, or a request
                is given without an analyzer.
            CatalogUnavailable: If every catalog call failed.
        """
        if intent is None:
            if request is None:
                raise ValueError("search() needs an intent or a request")
            intent = await self._analyze(request)

        self._reset_if_new_intent(intent)
        self.intent = intent
        self.request = request

        params = map_intent(intent, force_random=force_random)
        result = await self._resolve(params)
        self.shown_ids.update(recipe.id for recipe in result.results)

        self.log.info(
            f"Search returned {len(result.results)} recipes",
            extra={"strategy": result.strategy_used},
        )
        return SessionResult(
            results=result.results,
            strategy_used=result.strategy_used,
            from_cache=result.from_cache,
        )

    async def regenerate(self) -> SessionResult:
        """Fresh results for the current intent using the next variation.

        Re-runs analysis every REANALYZE_EVERY regenerations when the original
        request and an analyzer are available. The counter and the shown-id
        set only change after a successful resolution.

        Raises:
            RuntimeError: If called before search().
            CatalogUnavailable: If every catalog call failed.
        """
        if self.intent is None:
            raise RuntimeError("regenerate() called before search()")

        intent = self.intent
        if should_reanalyze(self.regen_state) and self.request is not None and self.analyzer is not None:
            self.log.info("Re-analyzing request for regeneration")
            try:
                intent = await asyncio.wait_for(self._analyze(self.request), timeout=config.ANALYSIS_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                self.log.warning("Re-analysis timed out, keeping previous intent")

        transform = next_strategy(self.regen_state, intent)
        params = transform.apply(map_intent(intent))
        result = await self._resolve(params)

        results = filter_duplicates(result.results, self.shown_ids)
        deduplicated = len(results) < len(result.results)

        self.intent = intent
        self.regen_state.count += 1
        self.regen_state.last_intent_fingerprint = intent.fingerprint()
        self.shown_ids.update(recipe.id for recipe in results)

        self.log.info(
            f"Regeneration #{self.regen_state.count} ({transform.name}) returned {len(results)} recipes",
            extra={"strategy": result.strategy_used},
        )
        return SessionResult(
            results=results,
            strategy_used=result.strategy_used,
            variation=transform.name,
            from_cache=result.from_cache,
            deduplicated=deduplicated,
        )

    async def browse(self, category: str) -> SessionResult:
        """Category browsing (meat, vegan, desserts, ...). Does not touch regeneration state."""
        result = await self._resolve(map_category(category))
        return SessionResult(results=result.results, strategy_used=result.strategy_used, from_cache=result.from_cache)

    async def details(self, recipe_id: int) -> RecipeDetail:
        """Full recipe detail for a result id.

        Raises:
            CatalogError: If the lookup fails.
        """
        try:
            return await asyncio.wait_for(
                self.catalog.get_recipe_information(recipe_id), timeout=config.CATALOG_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError as e:
            raise CatalogError("recipe lookup timed out") from e
