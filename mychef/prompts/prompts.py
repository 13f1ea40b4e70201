"""Prompts for intent analysis.

The system prompt pins the model to the catalog's cuisine vocabulary and to a
single JSON object shaped like the Intent model. The user prompt carries the
free-text request plus the stored preferences that matter for filtering.
"""

import json
from typing import Sequence

from mychef.models.models import AnalysisRequest


def _get_nutrition_section() -> str:
    """Rules for nutrition targets: exact numbers only, vague terms become query words."""
    return """
## Nutrition Targets (READ CAREFULLY)

DEFAULT: leave "nutritionTargets" as an EMPTY OBJECT {}.
Only set a value when the user gives an EXACT NUMBER with a unit:
- "under 300 calories" → {"maxCalories": 300}
- "at least 25g protein" → {"minProtein": 25}
- "less than 40g carbs" → {"maxCarbs": 40}
- "300-400 calories" → {"maxCalories": 400}

Do NOT set targets for vague terms ("low sugar", "high protein", "healthy",
"light", "filling", "help me lose weight"). Put descriptive words in "query" instead:
- "high protein" → query: "chicken fish beef"
- "healthy" → query: "nutritious balanced meals"
- "gain weight" → query: "hearty filling meals"
"""


def _get_examples_section() -> str:
    return """
## Examples

Input: "Italian pasta under 400 calories"
Output: {"query": "Italian pasta", "primaryIngredients": ["pasta"], "cuisine": {"requested": "Italian", "alternatives": ["Mediterranean", "French"]}, "nutritionTargets": {"maxCalories": 400}, "confidence": 0.9, "explanation": "Italian pasta with calorie limit"}

Input: "quick spicy Thai noodles, I'm allergic to peanuts"
Output: {"query": "spicy noodles", "primaryIngredients": ["rice noodles"], "cuisine": {"requested": "Thai", "alternatives": ["Vietnamese", "Chinese"]}, "maxCookingTimeMinutes": "quick", "allergies": ["peanut"], "confidence": 0.85, "explanation": "Spicy Thai noodle dishes without peanuts"}

Input: "healthy chicken dinner"
Output: {"query": "chicken dinner", "primaryIngredients": ["chicken"], "mealType": "main course", "nutritionTargets": {}, "confidence": 0.8, "explanation": "Chicken-based dinner recipes"}
"""


def get_system_prompt(supported_cuisines: Sequence[str]) -> str:
    """Generate the analysis system prompt.

    Args:
        supported_cuisines: Cuisine names the catalog understands.

    Returns:
        str: System instruction for the analysis model.
    """
    return f"""You are a recipe search assistant. You turn a user's request (text and optional food photos)
into ONE structured search intent for a recipe catalog.

## Output Rules (CRITICAL)

1. Respond with ONLY one valid JSON object. No markdown, no backticks, no text before or after.
2. Cuisines are LIMITED to: {", ".join(supported_cuisines)}
3. If the user asks for an unsupported cuisine (e.g. Nigerian, Ghanaian), use "African" and focus on
   the ingredients they mentioned.
4. Prioritize INGREDIENTS over cuisine. Keep "query" short, descriptive and free of constraints.
5. List at most 2 "primaryIngredients" (the heart of the dish). Anything else goes in "supportingIngredients".
6. For photos, identify the visible ingredients and use them as ingredients.
7. "cuisine.alternatives" lists 1-3 related cuisines, most similar first.
8. "maxCookingTimeMinutes" is a number of minutes, or one of "quick", "moderate", "elaborate".
9. Copy every allergy and intolerance the user states. Never drop one.
{_get_nutrition_section()}
## Response Format

{{
  "query": "simple descriptive terms",
  "primaryIngredients": [],
  "supportingIngredients": [],
  "cuisine": {{"requested": null, "alternatives": []}},
  "mealType": "main course|breakfast|dessert|salad|soup|snack|side dish|appetizer|drink",
  "maxCookingTimeMinutes": null,
  "nutritionTargets": {{}},
  "allergies": [],
  "intolerances": [],
  "diets": [],
  "excludeIngredients": [],
  "confidence": 0.8,
  "explanation": "brief explanation"
}}
{_get_examples_section()}"""


def build_user_prompt(request: AnalysisRequest, image_count: int = 0) -> str:
    """Build the user prompt from the search text and stored preferences.

    Args:
        request: Analysis request (text, images, preferences).
        image_count: Number of images actually attached to the call.

    Returns:
        str: User message for the analysis model.
    """
    prefs = request.preferences
    lines = ["Analyze this recipe request and return the search intent as JSON.", ""]

    if request.search_text:
        lines.append(f"User query: {json.dumps(request.search_text)}")
    if image_count:
        lines.append(f"Attached food photos: {image_count}. Identify the ingredients visible in them.")

    if prefs.selected_diets:
        lines.append(f"Dietary preferences: {', '.join(prefs.selected_diets)}")
    if prefs.selected_allergies:
        lines.append(f"Allergies: {', '.join(prefs.selected_allergies)}")
    if prefs.avoid_ingredients:
        lines.append(f"Avoid: {', '.join(prefs.avoid_ingredients)}")
    if prefs.selected_cuisines:
        lines.append(f"Favourite cuisines: {', '.join(prefs.selected_cuisines)}")
    if prefs.selected_goals:
        lines.append(f"Goals: {', '.join(prefs.selected_goals)}")
    if prefs.max_cooking_time:
        lines.append(f"Usual cooking time limit: {prefs.max_cooking_time} minutes")
    lines.append(f"Skill level: {prefs.skill_level}")
    lines.append(f"Serving size: {prefs.serving_size}")

    lines.append("")
    lines.append("IMPORTANT: Return ONLY valid JSON with no additional text.")
    return "\n".join(lines)
