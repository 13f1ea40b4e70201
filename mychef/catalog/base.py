from abc import ABC, abstractmethod
from typing import Dict

from mychef.models.models import CatalogResponse, RecipeDetail


class RecipeCatalog(ABC):
    name: str = "Unknown"

    @abstractmethod
    async def search(self, params: Dict[str, str]) -> CatalogResponse:
        """
        Run one catalog search with a flat parameter map.
        Zero matches is an empty CatalogResponse, never an exception.
        Raises CatalogError when the call itself fails.
        """
        pass

    @abstractmethod
    async def get_recipe_information(self, recipe_id: int) -> RecipeDetail:
        """
        Fetch full recipe detail (ingredients, steps, nutrition) for one id.
        """
        pass
