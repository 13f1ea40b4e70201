"""Intent analysis with the Gemini API.

Turns a free-text request, up to MAX_IMAGES food photos and the user's stored
preferences into a tiered Intent.

Pipeline:
1. Resolve image sources (bytes, data URIs, base64, URLs) and validate them
2. Call Gemini with the system/user prompts (retries with exponential backoff)
3. Parse leniently: direct JSON, fenced code block, first {...} span
4. Coerce field by field so one bad field never discards the whole payload
5. Merge stored allergies, avoid-list and diets so the safety tier never
   depends on what the model returned

Anything unparsable degrades to fallback_intent() instead of failing.
"""

import asyncio
import base64
import json
import re
from typing import Any, Dict, List, Optional, Tuple, Union

import aiohttp
import filetype
from google import genai
from google.genai import types
from pydantic import ValidationError

from mychef.engine.errors import AnalysisParseFailure
from mychef.engine.vocabulary import SUPPORTED_CUISINES
from mychef.models.models import AnalysisRequest, Intent, UserPreferences
from mychef.prompts.prompts import build_user_prompt, get_system_prompt
from mychef.utils.config import config
from mychef.utils.logger import logger

FALLBACK_QUERY = "popular recipes"
FALLBACK_CONFIDENCE = 0.3
DEFAULT_CONFIDENCE = 0.5

TRANSIENT_KEYWORDS = ["timeout", "connection", "429", "500", "503", "502", "retryable", "unavailable"]

ALLOWED_IMAGE_TYPES = ("jpg", "jpeg", "png", "webp")

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_BRACED_SPAN = re.compile(r"\{.*\}", re.DOTALL)


# ============================================================================
# Error Handling Helpers
# ============================================================================


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


async def safe_execute_async(coro, operation_name: str, log_level: str = "warning", default_return=None):
    """Run an optional async operation, logging and returning `default_return` on failure.

    Used for steps that degrade gracefully (image fetching), never for catalog calls.
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        return default_return


def safe_execute_sync(func, operation_name: str, log_level: str = "warning", default_return=None):
    """Synchronous version of safe_execute_async."""
    try:
        return func()
    except Exception as e:
        _log_error(operation_name, e, log_level)
        return default_return


# ============================================================================
# Images
# ============================================================================


async def fetch_image_bytes(image_source: Union[str, bytes]) -> Optional[bytes]:
    """Get image bytes from raw bytes, a data URI, a plain base64 string or an http(s) URL.

    Returns:
        Image bytes, or None on any failure (logged as warning).
    """
    if isinstance(image_source, bytes):
        return image_source

    if not isinstance(image_source, str) or not image_source:
        return None

    if image_source.startswith("data:"):

        def _decode_data_url():
            _, encoded = image_source.split(",", 1)
            return base64.b64decode(encoded)

        return safe_execute_sync(_decode_data_url, "Decode data URL", default_return=None)

    if image_source.startswith(("http://", "https://")):

        async def _fetch_url():
            async with aiohttp.ClientSession() as session:
                async with session.get(image_source, timeout=aiohttp.ClientTimeout(total=10)) as response:
                    response.raise_for_status()
                    return await response.read()

        return await safe_execute_async(_fetch_url(), f"Fetch image from URL: {image_source}", default_return=None)

    return safe_execute_sync(
        lambda: base64.b64decode(image_source, validate=True), "Decode base64 image string", default_return=None
    )


def image_mime_type(image_bytes: bytes) -> Optional[str]:
    """MIME type from magic bytes when the format is supported, else None."""
    kind = filetype.guess(image_bytes)
    if kind is None or kind.extension not in ALLOWED_IMAGE_TYPES:
        logger.warning(f"Invalid image format: {kind.extension if kind else 'unknown'}. Only JPEG, PNG and WEBP supported.")
        return None
    return kind.mime


def validate_image_size(image_bytes: bytes) -> bool:
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > config.MAX_IMAGE_SIZE_MB:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {config.MAX_IMAGE_SIZE_MB}MB")
        return False
    return True


async def prepare_images(sources: List[Union[str, bytes]], limit: Optional[int] = None) -> List[Tuple[bytes, str]]:
    """Resolve and validate at most `limit` images, dropping any that fail.

    Returns:
        List of (image_bytes, mime_type) in input order.
    """
    limit = config.MAX_IMAGES if limit is None else limit
    if len(sources) > limit:
        logger.info(f"Only the first {limit} of {len(sources)} images will be analyzed")

    prepared: List[Tuple[bytes, str]] = []
    for idx, source in enumerate(sources[:limit]):
        image_bytes = await fetch_image_bytes(source)
        if not image_bytes:
            logger.warning(f"Image {idx + 1}: could not be read, skipping")
            continue
        mime_type = image_mime_type(image_bytes)
        if mime_type is None or not validate_image_size(image_bytes):
            continue
        prepared.append((image_bytes, mime_type))
    return prepared


# ============================================================================
# Response parsing and coercion
# ============================================================================


def parse_analysis_response(response_text: str) -> Dict[str, Any]:
    """Extract one JSON object from model output.

    Tries, in order: the whole text, a fenced code block, the first {...} span.

    Raises:
        AnalysisParseFailure: If none of the strategies yields a JSON object.
    """
    text = (response_text or "").strip()
    candidates = [text]
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        candidates.append(fenced.group(1).strip())
    braced = _BRACED_SPAN.search(text)
    if braced:
        candidates.append(braced.group())

    for candidate in candidates:
        parsed = safe_execute_sync(lambda: json.loads(candidate), "JSON parse attempt", log_level="debug")
        if isinstance(parsed, dict):
            return parsed

    raise AnalysisParseFailure(text)


def _rename_upstream_keys(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Map the flat analysis shape (naturalLanguageQuery, cuisines, ...) onto Intent keys."""
    data = dict(payload)

    if "query" not in data and "naturalLanguageQuery" in data:
        data["query"] = data.pop("naturalLanguageQuery")
    if "primaryIngredients" not in data and "ingredients" in data:
        data["primaryIngredients"] = data.pop("ingredients")
    if "nutritionTargets" not in data and "nutritionalTargets" in data:
        data["nutritionTargets"] = data.pop("nutritionalTargets")
    if "maxCookingTimeMinutes" not in data and "maxCookingTime" in data:
        data["maxCookingTimeMinutes"] = data.pop("maxCookingTime")

    cuisines = data.pop("cuisines", None)
    if "cuisine" not in data and isinstance(cuisines, list):
        names = [c for c in cuisines if isinstance(c, str) and c.strip()]
        data["cuisine"] = {"requested": names[0] if names else None, "alternatives": names[1:]}

    return data


def coerce_intent(payload: Dict[str, Any]) -> Intent:
    """Build an Intent from an untrusted payload, one field at a time.

    Each field is validated on its own; a field that fails is replaced by its
    default and the rest of the payload is kept.
    """
    data = _rename_upstream_keys(payload)
    accepted: Dict[str, Any] = {}
    for key, value in data.items():
        try:
            Intent.model_validate({key: value})
        except ValidationError as e:
            logger.debug(f"Dropping invalid intent field '{key}': {e.errors()[0]['msg']}")
            continue
        accepted[key] = value

    if "confidence" not in accepted:
        accepted["confidence"] = DEFAULT_CONFIDENCE

    intent = Intent.model_validate(accepted)
    if not intent.query and not intent.primary_ingredients:
        intent = intent.model_copy(update={"query": FALLBACK_QUERY})
    return intent


def _union(first: List[str], second: List[str]) -> List[str]:
    seen = {term.lower() for term in first}
    return first + [term for term in second if term.lower() not in seen]


def merge_preferences(intent: Intent, preferences: Optional[UserPreferences]) -> Intent:
    """Fold stored preferences into an analyzed intent.

    Allergies, avoid-list and diets are unioned in unconditionally. Medium and
    low tier values only fill gaps the analysis left empty.
    """
    if preferences is None:
        return intent

    update: Dict[str, Any] = {
        "allergies": _union(intent.allergies, preferences.selected_allergies),
        "exclude_ingredients": _union(intent.exclude_ingredients, preferences.avoid_ingredients),
        "diets": _union(intent.diets, preferences.selected_diets),
    }
    if not intent.preferred_cuisines:
        update["preferred_cuisines"] = list(preferences.selected_cuisines)
    if not intent.goals:
        update["goals"] = list(preferences.selected_goals)
    if intent.skill_level is None:
        update["skill_level"] = preferences.skill_level
    if intent.serving_size is None:
        update["serving_size"] = preferences.serving_size
    if intent.max_cooking_time is None and preferences.max_cooking_time:
        update["max_cooking_time"] = preferences.max_cooking_time
    targets = intent.nutrition_targets
    if preferences.nutritional_goals and not (targets.max_calories or targets.min_protein or targets.max_carbs):
        update["nutrition_targets"] = preferences.nutritional_goals

    return intent.model_copy(update=update)


def fallback_intent(preferences: Optional[UserPreferences] = None) -> Intent:
    """Low-confidence generic intent used when analysis output is unusable."""
    intent = Intent(
        query=FALLBACK_QUERY,
        confidence=FALLBACK_CONFIDENCE,
        explanation="Using fallback recommendations due to parsing error",
    )
    return merge_preferences(intent, preferences)


def _is_transient(error: Exception) -> bool:
    if isinstance(error, asyncio.TimeoutError):
        return True
    error_str = str(error).lower()
    return any(keyword in error_str for keyword in TRANSIENT_KEYWORDS)


# ============================================================================
# Analyzer
# ============================================================================


class IntentAnalyzer:
    """Gemini-backed request analysis producing a tiered Intent."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[genai.Client] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            api_key: Gemini API key. Defaults to GEMINI_API_KEY.
            model: Model name. Defaults to ANALYSIS_MODEL.
            client: Preconfigured genai client (tests inject a fake).
            max_retries: Attempts per analysis. Defaults to MAX_RETRIES.
            timeout: Seconds per model call. Defaults to ANALYSIS_TIMEOUT_SECONDS.

        Raises:
            ValueError: If no client is given and no API key is configured.
        """
        if client is None:
            api_key = api_key or config.GEMINI_API_KEY
            if not api_key:
                raise ValueError("GEMINI_API_KEY is required")
            client = genai.Client(api_key=api_key)

        self.client = client
        self.model = model or config.ANALYSIS_MODEL
        self.max_retries = max_retries or config.MAX_RETRIES
        self.timeout = timeout or config.ANALYSIS_TIMEOUT_SECONDS
        self.system_prompt = get_system_prompt(SUPPORTED_CUISINES)

    async def _generate(self, contents: List[Any]) -> str:
        """Single model call (no retries)."""
        response = await asyncio.wait_for(
            asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=self.system_prompt,
                    temperature=config.TEMPERATURE,
                    max_output_tokens=config.MAX_OUTPUT_TOKENS,
                    response_mime_type="application/json",
                ),
            ),
            timeout=self.timeout,
        )
        return response.text or ""

    async def _generate_with_retries(self, contents: List[Any]) -> Optional[str]:
        """Call the model with exponential backoff (1s, 2s, 4s ...).

        Transient errors (timeouts, connection problems, 429/5xx) are retried;
        anything else fails immediately.

        Returns:
            Response text, or None when every attempt failed.
        """
        delay_seconds = 1
        for attempt in range(1, self.max_retries + 1):
            try:
                return await self._generate(contents)
            except Exception as e:
                if _is_transient(e) and attempt < self.max_retries:
                    logger.debug(
                        f"Transient error detected, retrying (attempt {attempt + 1}/{self.max_retries}) "
                        f"after {delay_seconds}s: {e}"
                    )
                    await asyncio.sleep(delay_seconds)
                    delay_seconds *= 2
                    continue
                logger.warning(f"Intent analysis failed after {attempt} attempt(s): {e}")
                return None
        return None

    async def analyze(self, request: AnalysisRequest) -> Intent:
        """Analyze one request.

        Never raises for bad model output: unparsable or failed analysis yields
        fallback_intent() merged with the request's preferences.
        """
        images = await prepare_images(request.images)
        contents: List[Any] = [build_user_prompt(request, image_count=len(images))]
        contents.extend(types.Part.from_bytes(data=data, mime_type=mime) for data, mime in images)

        logger.info(f"Analyzing request ({len(request.search_text)} chars, {len(images)} image(s))")
        response_text = await self._generate_with_retries(contents)
        if response_text is None:
            return fallback_intent(request.preferences)

        try:
            payload = parse_analysis_response(response_text)
        except AnalysisParseFailure as e:
            logger.warning(f"{e}; using fallback intent")
            return fallback_intent(request.preferences)

        intent = merge_preferences(coerce_intent(payload), request.preferences)
        logger.info(f"✓ Intent ready (confidence {intent.confidence:.2f}): {intent.query!r}")
        return intent
