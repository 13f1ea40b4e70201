"""Unit tests for the TTL result cache."""

from fakes import make_recipes
from mychef.engine.cache import ResultCache
from mychef.models.models import SearchParams, SortOrder


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestResultCache:
    """Test get/put semantics and TTL expiry."""

    def test_miss_then_hit(self):
        """Test an entry is returned after put with its strategy tag."""
        cache = ResultCache(ttl_seconds=60, clock=FakeClock())
        params = SearchParams(query="soup", allergies=["peanut"])

        assert cache.get(params) is None
        cache.put(params, make_recipes([1, 2]), "no-cuisine")

        entry = cache.get(params)
        assert entry is not None
        assert [r.id for r in entry.results] == [1, 2]
        assert entry.strategy_used == "no-cuisine"

    def test_key_is_field_order_independent(self):
        """Test equal params built with different keyword order share an entry."""
        cache = ResultCache(ttl_seconds=60, clock=FakeClock())
        cache.put(SearchParams(query="soup", diets=["vegan"], sort=SortOrder.TIME), make_recipes([1]), "full")

        assert cache.get(SearchParams(sort=SortOrder.TIME, diets=["vegan"], query="soup")) is not None

    def test_different_params_miss(self):
        """Test pagination changes the key."""
        cache = ResultCache(ttl_seconds=60, clock=FakeClock())
        cache.put(SearchParams(query="soup"), make_recipes([1]), "full")

        assert cache.get(SearchParams(query="soup", offset=20)) is None

    def test_expired_entry_is_removed_on_read(self):
        """Test entries at or past the TTL are misses and evicted lazily."""
        clock = FakeClock()
        cache = ResultCache(ttl_seconds=1800, clock=clock)
        params = SearchParams(query="soup")
        cache.put(params, make_recipes([1]), "full")

        clock.now += 1799
        assert cache.get(params) is not None
        assert len(cache) == 1

        clock.now += 1
        assert cache.get(params) is None
        assert len(cache) == 0

    def test_default_ttl_is_thirty_minutes(self):
        """Test the TTL defaults to CACHE_TTL_MINUTES."""
        assert ResultCache().ttl_seconds == 30 * 60

    def test_custom_store(self):
        """Test any mutable mapping can back the cache."""
        store = {}
        cache = ResultCache(ttl_seconds=60, store=store, clock=FakeClock())
        params = SearchParams(query="soup")
        cache.put(params, make_recipes([1]), "full")

        assert params.cache_key() in store
        cache.clear()
        assert store == {}

    def test_entries_are_immutable_copies(self):
        """Test mutating the caller's list does not change the cached entry."""
        cache = ResultCache(ttl_seconds=60, clock=FakeClock())
        params = SearchParams(query="soup")
        recipes = make_recipes([1, 2])
        cache.put(params, recipes, "full")
        recipes.append(make_recipes([3])[0])

        assert len(cache.get(params).results) == 2
