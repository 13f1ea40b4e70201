"""Static vocabulary tables for mapping user terms onto the catalog's controlled vocabulary.

Tables:
- INGREDIENT_SIMPLIFICATIONS: specific dish/ingredient names -> broad catalog ingredient
- DIET_ALIASES: colloquial diet names -> Spoonacular diet values
- INTOLERANCE_ALIASES: allergy/intolerance names -> Spoonacular intolerance values
- TIME_HINTS: word hints -> fixed minute ceilings
- CATEGORY_PARAMS: browse categories -> partial search parameters

Lookups are case-insensitive. Unmapped terms pass through lower-cased.
"""

import math
import re
from typing import Any, Dict, Optional

# Cuisines Spoonacular accepts in the `cuisine` filter
SUPPORTED_CUISINES = (
    "African",
    "American",
    "British",
    "Cajun",
    "Caribbean",
    "Chinese",
    "Eastern European",
    "European",
    "French",
    "German",
    "Greek",
    "Indian",
    "Irish",
    "Italian",
    "Japanese",
    "Jewish",
    "Korean",
    "Latin American",
    "Mediterranean",
    "Mexican",
    "Middle Eastern",
    "Nordic",
    "Southern",
    "Spanish",
    "Thai",
    "Vietnamese",
)

INGREDIENT_SIMPLIFICATIONS: Dict[str, str] = {
    # Rice dishes
    "jollof rice": "rice",
    "fried rice": "rice",
    "basmati rice": "rice",
    "jasmine rice": "rice",
    "brown rice": "rice",
    "risotto rice": "rice",
    "arborio rice": "rice",
    "sushi rice": "rice",
    # Poultry
    "chicken breast": "chicken",
    "chicken thighs": "chicken",
    "chicken thigh": "chicken",
    "chicken wings": "chicken",
    "chicken drumsticks": "chicken",
    "rotisserie chicken": "chicken",
    "turkey breast": "turkey",
    # Meat
    "ground beef": "beef",
    "minced beef": "beef",
    "beef steak": "beef",
    "sirloin steak": "beef",
    "pork chops": "pork",
    "pork belly": "pork",
    "pork loin": "pork",
    "lamb chops": "lamb",
    # Fish & seafood
    "catfish": "fish",
    "tilapia": "fish",
    "cod fillet": "cod",
    "salmon fillet": "salmon",
    "smoked salmon": "salmon",
    "tuna steak": "tuna",
    "king prawns": "shrimp",
    "prawns": "shrimp",
    # Pasta & noodles
    "spaghetti": "pasta",
    "penne": "pasta",
    "fusilli": "pasta",
    "linguine": "pasta",
    "tagliatelle": "pasta",
    "rice noodles": "noodles",
    "egg noodles": "noodles",
    "ramen noodles": "noodles",
    "udon": "noodles",
    # Produce
    "cherry tomatoes": "tomato",
    "plum tomatoes": "tomato",
    "tomatoes": "tomato",
    "bell pepper": "pepper",
    "bell peppers": "pepper",
    "scotch bonnet": "chili pepper",
    "habanero": "chili pepper",
    "jalapeno": "chili pepper",
    "red onion": "onion",
    "spring onions": "green onion",
    "scallions": "green onion",
    "sweet potatoes": "sweet potato",
    "plantains": "plantain",
    "baby spinach": "spinach",
    # Dairy
    "cheddar cheese": "cheddar",
    "parmesan cheese": "parmesan",
    "mozzarella cheese": "mozzarella",
    "greek yogurt": "yogurt",
}

DIET_ALIASES: Dict[str, str] = {
    "vegetarian": "vegetarian",
    "veggie": "vegetarian",
    "lacto vegetarian": "lacto vegetarian",
    "ovo vegetarian": "ovo vegetarian",
    "vegan": "vegan",
    "plant based": "vegan",
    "plant-based": "vegan",
    "keto": "ketogenic",
    "ketogenic": "ketogenic",
    "lowcarb": "ketogenic",
    "low carb": "ketogenic",
    "low-carb": "ketogenic",
    "paleo": "paleo",
    "paleolithic": "paleo",
    "primal": "primal",
    "highprotein": "primal",
    "high protein": "primal",
    "high-protein": "primal",
    "glutenfree": "gluten free",
    "gluten free": "gluten free",
    "gluten-free": "gluten free",
    "dairyfree": "dairy free",
    "dairy free": "dairy free",
    "dairy-free": "dairy free",
    "pescatarian": "pescetarian",
    "pescetarian": "pescetarian",
    "whole30": "whole30",
    "whole 30": "whole30",
    "low fodmap": "low fodmap",
}

INTOLERANCE_ALIASES: Dict[str, str] = {
    "peanut": "peanut",
    "peanuts": "peanut",
    "treenut": "tree nut",
    "treenuts": "tree nut",
    "tree nut": "tree nut",
    "tree nuts": "tree nut",
    "nuts": "tree nut",
    "egg": "egg",
    "eggs": "egg",
    "soy": "soy",
    "soya": "soy",
    "shellfish": "shellfish",
    "seafood": "seafood",
    "fish": "seafood",
    "wheat": "wheat",
    "gluten": "gluten",
    "lactose": "dairy",
    "milk": "dairy",
    "dairy": "dairy",
    "sesame": "sesame",
    "sulfite": "sulfite",
    "sulfites": "sulfite",
    "grain": "grain",
    "corn": "grain",
}

TIME_HINTS: Dict[str, int] = {
    "quick": 30,
    "fast": 30,
    "moderate": 60,
    "medium": 60,
    "elaborate": 120,
    "slow": 120,
}

CATEGORY_PARAMS: Dict[str, Dict[str, Any]] = {
    "meat": {"meal_type": "main course", "query": "meat"},
    "vegetarian": {"diets": ["vegetarian"], "meal_type": "main course"},
    "vegan": {"diets": ["vegan"], "meal_type": "main course"},
    "desserts": {"meal_type": "dessert"},
    "quickmeals": {"max_ready_time": 30, "meal_type": "main course"},
    "breakfast": {"meal_type": "breakfast"},
    "seafood": {"meal_type": "main course", "query": "seafood"},
    "pasta": {"meal_type": "main course", "query": "pasta"},
    "salads": {"meal_type": "salad"},
    "soups": {"meal_type": "soup"},
}

_NUMBER_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:min(?:ute)?s?|kcal|cal(?:ories)?|g)?\s*$", re.IGNORECASE)


def _key(term: str) -> str:
    return " ".join(term.lower().split())


def simplify_ingredient(name: str) -> str:
    """Collapse a specific ingredient or dish name to the broad catalog term."""
    key = _key(name)
    return INGREDIENT_SIMPLIFICATIONS.get(key, key)


def normalize_diet(name: str) -> str:
    key = _key(name)
    return DIET_ALIASES.get(key, DIET_ALIASES.get(key.replace(" ", ""), key))


def normalize_intolerance(name: str) -> str:
    key = _key(name)
    return INTOLERANCE_ALIASES.get(key, INTOLERANCE_ALIASES.get(key.replace(" ", ""), key))


def match_cuisine(name: Optional[str]) -> Optional[str]:
    """Return the catalog spelling of a cuisine, or the cleaned input if unsupported."""
    if not name:
        return None
    key = _key(name)
    for cuisine in SUPPORTED_CUISINES:
        if cuisine.lower() == key:
            return cuisine
    return name.strip()


def coerce_number(value: Any) -> Optional[float]:
    """Return a finite, non-negative float for numbers and numeric strings ("400", "25g"), else None."""
    if isinstance(value, bool) or value is None:
        return None
    number: Optional[float] = None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            match = _NUMBER_PATTERN.match(value)
            if match:
                number = float(match.group(1))
    except OverflowError:
        return None
    if number is None or not math.isfinite(number) or number < 0:
        return None
    return number


def coerce_minutes(value: Any) -> Optional[int]:
    """Translate a cooking-time hint into whole minutes.

    Numbers pass through, word hints use TIME_HINTS, anything else is None.
    """
    number = coerce_number(value)
    if number is not None:
        # coerce_number only returns finite values
        return int(round(number)) if number > 0 else None
    if isinstance(value, str):
        return TIME_HINTS.get(_key(value))
    return None


def is_quick_hint(value: Any) -> bool:
    return isinstance(value, str) and TIME_HINTS.get(_key(value)) == TIME_HINTS["quick"]


def category_key(category: str) -> str:
    return re.sub(r"[\s_-]+", "", category.lower())
