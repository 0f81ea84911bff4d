# app/services/categorization_service.py
"""
Food-group categorisation (meat, seafood, dairy, ...) for catalog foods.

Layered pipeline:
  1. Definitive keyword lists (word-boundary matches) -> confidence 0.99, `regex`.
  2. Hugging Face zero-shot classification (BART MNLI), checked against
     validation overrides; accepted when confidence > 0.75.
  3. Priority-ordered pattern fallback, then nutrition heuristics, then `other`.

Steps 1 and 3 run without an API key; step 2 is skipped when no key is set.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Pattern, Tuple

import httpx

from app.config.settings import settings
from app.models.ai import CategoryResult, FoodToCategorize

logger = logging.getLogger(__name__)

AI_ACCEPT_THRESHOLD = 0.75
AI_MIN_CONFIDENCE = 0.6

DEFINITIVE_SEAFOOD = [
    "salmon", "tuna", "cod", "trout", "bass", "mackerel", "sardines", "anchovies",
    "halibut", "flounder", "sole", "snapper", "mahi", "tilapia", "catfish", "herring",
    "sea trout", "rainbow trout", "brook trout", "sea bass", "shrimp", "crab",
    "lobster", "scallops", "mussels", "oysters", "clams", "prawns", "fish",
]
DEFINITIVE_MEAT = [
    "chicken", "beef", "pork", "lamb", "turkey", "duck", "goose", "venison", "elk",
    "bacon", "ham", "sausage", "ground beef", "steak", "roast", "chops", "ribs",
    "chicken breast", "chicken thigh", "ground turkey", "pork chop", "meat",
    "eggs", "egg", "whole eggs", "egg whites", "egg yolk", "organic eggs",
]
DEFINITIVE_PLANT_PROTEINS = [
    "tofu", "tempeh", "seitan", "nutritional yeast", "beans", "lentils",
    "chickpeas", "black beans", "kidney beans", "pinto beans", "navy beans",
    "lima beans", "garbanzo beans", "protein powder", "hemp protein",
    "pea protein", "soy protein", "plant protein", "vegan protein",
]
DEFINITIVE_DAIRY = [
    "milk", "cheese", "yogurt", "kefir", "cottage cheese", "cream cheese",
    "greek yogurt", "sour cream", "butter", "dairy", "cheddar", "mozzarella",
    "parmesan", "swiss cheese", "goat cheese", "feta", "ricotta", "brie",
    "camembert", "blue cheese", "provolone", "monterey jack", "cream",
    "heavy cream", "half and half", "buttermilk", "whey protein",
]
DEFINITIVE_NUTS_FATS = [
    "almonds", "walnuts", "pecans", "cashews", "pistachios", "hazelnuts",
    "macadamia nuts", "macadamias", "brazil nuts", "pine nuts", "sunflower seeds",
    "pumpkin seeds", "chia seeds", "flax seeds", "sesame seeds", "hemp seeds",
    "avocado", "coconut", "coconut oil", "olive oil", "avocado oil", "nuts", "seeds",
]

# Checked in order; the first group with a matching term wins.
DEFINITIVE_GROUPS: List[Tuple[str, List[str], str]] = [
    ("seafood", DEFINITIVE_SEAFOOD, "seafood"),
    ("meat", DEFINITIVE_MEAT, "meat/animal protein"),
    ("plant-proteins", DEFINITIVE_PLANT_PROTEINS, "plant protein"),
    ("dairy", DEFINITIVE_DAIRY, "dairy product"),
    ("healthy-fats", DEFINITIVE_NUTS_FATS, "healthy fats"),
]

LABEL_MAP: Dict[str, str] = {
    "meat chicken beef pork lamb turkey eggs": "meat",
    "fish seafood salmon tuna sardines anchovies": "seafood",
    "plant protein tofu beans lentils vegan": "plant-proteins",
    "nuts seeds almonds walnuts healthy fats": "healthy-fats",
    "vegetables greens broccoli spinach produce": "vegetables",
    "fruits berries apple banana": "fruits",
    "grains bread rice pasta carbohydrates": "healthy-carbs",
    "dairy milk cheese yogurt": "dairy",
    "processed snacks supplements other": "other",
}
CANDIDATE_LABELS = list(LABEL_MAP)

_SEAFOOD_WORDS = r"fish|salmon|tuna|cod|trout|sardines|anchovies|seafood|shrimp|crab|lobster|scallops|mussels"
_ANIMAL_PROTEIN_PATTERNS = [
    re.compile(r"\b(fish|salmon|tuna|cod|trout|sardines|anchovies|seafood)\b", re.I),
    re.compile(r"\b(chicken|beef|pork|lamb|turkey|meat|bacon|ham)\b", re.I),
    re.compile(r"\b(shrimp|crab|lobster|scallops|mussels)\b", re.I),
]
_NUTS_FATS_PATTERNS = [
    re.compile(r"\b(almonds|walnuts|cashews|pistachios|nuts|seeds)\b", re.I),
    re.compile(r"\b(avocado|olive oil|coconut oil)\b", re.I),
]

FALLBACK_PATTERNS: List[Tuple[str, List[Pattern], float]] = [
    ("seafood", [
        re.compile(r"\b(fish|salmon|tuna|cod|trout|sardines|anchovies|seafood|bass|mackerel)\b", re.I),
        re.compile(r"\b(shrimp|crab|lobster|scallops|mussels|oysters|clams|prawns)\b", re.I),
        re.compile(r"\b(halibut|flounder|sole|snapper|mahi|tilapia|catfish|herring)\b", re.I),
    ], 0.85),
    ("meat", [
        re.compile(r"\b(chicken|beef|pork|lamb|turkey|meat|bacon|ham|sausage)\b", re.I),
        re.compile(r"\b(eggs|egg|whole eggs|egg whites|egg yolk|organic eggs)\b", re.I),
        re.compile(r"\b(duck|goose|venison|elk|ground beef|steak|roast|chops|ribs)\b", re.I),
    ], 0.85),
    ("healthy-fats", [
        re.compile(r"\b(almonds|walnuts|cashews|pistachios|pecans|hazelnuts)\b", re.I),
        re.compile(r"\b(nuts|seeds|avocado|olive oil|coconut oil)\b", re.I),
        re.compile(r"\b(sunflower seeds|pumpkin seeds|chia seeds|flax seeds)\b", re.I),
    ], 0.85),
    ("plant-proteins", [
        re.compile(r"\b(tofu|tempeh|seitan|nutritional yeast)\b", re.I),
        re.compile(r"\b(beans|lentils|chickpeas|protein powder)\b", re.I),
        re.compile(r"\b(black beans|kidney beans|pinto beans)\b", re.I),
    ], 0.8),
    ("vegetables", [
        re.compile(r"\b(vegetable|broccoli|spinach|kale|lettuce|cabbage)\b", re.I),
        re.compile(r"\b(carrot|pepper|onion|tomato|cucumber|celery)\b", re.I),
    ], 0.75),
    ("fruits", [
        re.compile(r"\b(fruit|apple|banana|orange|berry|grape|melon)\b", re.I),
        re.compile(r"\b(strawberry|blueberry|raspberry|blackberry)\b", re.I),
    ], 0.75),
    ("healthy-carbs", [
        re.compile(r"\b(rice|bread|pasta|oats|quinoa|barley)\b", re.I),
        re.compile(r"\b(potato|sweet potato|grain|cereal)\b", re.I),
    ], 0.7),
    ("dairy", [
        re.compile(r"\b(milk|cheese|yogurt|dairy|cream|butter)\b", re.I),
        re.compile(r"\b(cottage cheese|greek yogurt|cheddar|mozzarella)\b", re.I),
        re.compile(r"\b(kefir|feta|ricotta|brie|camembert|parmesan)\b", re.I),
        re.compile(r"\b(buttermilk|sour cream|cream cheese|whey)\b", re.I),
    ], 0.7),
]


def _full_text(food: FoodToCategorize) -> str:
    return f"{food.name} {food.description or ''}".lower()


def _word_re(term: str) -> Pattern:
    return re.compile(rf"\b{re.escape(term)}\b", re.I)


def _nutrition(food: FoodToCategorize, key: str) -> float:
    info = food.nutritional_info or {}
    try:
        return float(info.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def definitive_category(food: FoodToCategorize) -> Optional[CategoryResult]:
    text = _full_text(food)
    for category, terms, label in DEFINITIVE_GROUPS:
        for term in terms:
            if not _word_re(term).search(text):
                continue
            if term == "meat" and re.search(r"coconut.*meat|meat.*coconut", text):
                continue
            if term == "cheese" and re.search(r"cheese substitute|nutritional yeast", text):
                continue
            if term == "cream" and re.search(r"creamy.*fruit|fruit.*creamy|avocado", text):
                continue
            return CategoryResult(
                category=category,
                confidence=0.99,
                method="regex",
                reasoning=f'DEFINITIVE: "{term}" detected - {label}',
            )
    return None


def validate_ai_result(result: CategoryResult, food: FoodToCategorize) -> CategoryResult:
    """Override impossible AI answers (animal protein as plant protein, nuts as meat)."""
    text = _full_text(food)
    if result.category == "plant-proteins":
        for pattern in _ANIMAL_PROTEIN_PATTERNS:
            if pattern.search(text):
                is_seafood = re.search(rf"\b({_SEAFOOD_WORDS})\b", text, re.I) is not None
                return CategoryResult(
                    category="seafood" if is_seafood else "meat",
                    confidence=0.95,
                    method="ai",
                    reasoning="Validation override: animal protein classified as plant protein",
                )
    if result.category in ("meat", "seafood"):
        for pattern in _NUTS_FATS_PATTERNS:
            if pattern.search(text):
                return CategoryResult(
                    category="healthy-fats",
                    confidence=0.95,
                    method="ai",
                    reasoning="Validation override: nuts/fats classified as meat",
                )
    return result


def fallback_category(food: FoodToCategorize) -> CategoryResult:
    text = _full_text(food)
    for category, patterns, confidence in FALLBACK_PATTERNS:
        for pattern in patterns:
            if pattern.search(text):
                return CategoryResult(
                    category=category,
                    confidence=confidence,
                    method="regex",
                    reasoning=f"Pattern match: {pattern.pattern}",
                )

    if food.nutritional_info:
        protein = _nutrition(food, "protein")
        carbs = _nutrition(food, "carbs")
        fat = _nutrition(food, "fat")
        if fat > 10 and fat > protein and fat > carbs:
            return CategoryResult(
                category="healthy-fats",
                confidence=0.6,
                method="fallback",
                reasoning="High fat content suggests healthy fats",
            )
        if protein > 15 and protein > carbs and protein > fat:
            return CategoryResult(
                category="plant-proteins",
                confidence=0.5,
                method="fallback",
                reasoning="High protein content, defaulting to plant proteins",
            )

    return CategoryResult(
        category="other",
        confidence=0.3,
        method="fallback",
        reasoning="No clear indicators found - categorized as other",
    )


def build_food_description(food: FoodToCategorize) -> str:
    parts = [food.name]
    if food.description:
        parts.append(food.description)
    if food.nutritional_info:
        hints = []
        if _nutrition(food, "protein") > 10:
            hints.append("high protein")
        if _nutrition(food, "carbs") > 15:
            hints.append("high carbohydrate")
        if _nutrition(food, "fat") > 10:
            hints.append("high fat")
        if _nutrition(food, "fiber") > 3:
            hints.append("high fiber")
        if hints:
            parts.append(f"This food is {', '.join(hints)}")
    return ". ".join(parts)


class CategorizationService:

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.huggingface_api_key
        self.endpoint = f"{settings.huggingface_base_url}/{settings.categorization_model}"
        self.timeout = settings.http_timeout_seconds
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _classify(self, food: FoodToCategorize) -> CategoryResult:
        payload = {
            "inputs": build_food_description(food),
            "parameters": {"candidate_labels": CANDIDATE_LABELS},
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(
                self.endpoint,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
            )
            resp.raise_for_status()
            data = resp.json()

        # some deployments wrap the single result in a list
        if isinstance(data, list) and data:
            data = data[0]
        labels = data.get("labels") if isinstance(data, dict) else None
        scores = data.get("scores") if isinstance(data, dict) else None
        if not labels or not scores:
            logger.warning("Invalid zero-shot result for %r, using fallback", food.name)
            return fallback_category(food)

        confidence = float(scores[0])
        if confidence < AI_MIN_CONFIDENCE:
            logger.info("Low confidence (%.2f) for %r, using fallback", confidence, food.name)
            return fallback_category(food)

        return CategoryResult(
            category=LABEL_MAP.get(labels[0], "other"),
            confidence=confidence,
            method="ai",
            reasoning=f'AI classified as "{labels[0]}" with {confidence * 100:.1f}% confidence',
        )

    async def categorize_food(self, food: FoodToCategorize) -> CategoryResult:
        definitive = definitive_category(food)
        if definitive is not None:
            return definitive

        if self.is_available():
            try:
                result = validate_ai_result(await self._classify(food), food)
                if result.confidence > AI_ACCEPT_THRESHOLD:
                    return result
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("AI categorization failed for %r, using fallback: %s", food.name, exc)

        return fallback_category(food)

    async def categorize_foods(self, foods: List[FoodToCategorize]) -> Dict[str, CategoryResult]:
        logger.info("Starting categorization of %d foods", len(foods))
        results: Dict[str, CategoryResult] = {}
        for i, food in enumerate(foods):
            try:
                results[food.id] = await self.categorize_food(food)
            except Exception as exc:
                logger.exception("Failed to categorize %r: %s", food.name, exc)
                results[food.id] = CategoryResult(
                    category="other",
                    confidence=0.3,
                    method="fallback",
                    reasoning="Categorization failed, using fallback",
                )
            if i % 5 == 0 or i == len(foods) - 1:
                logger.info("Categorization progress: %d/%d", i + 1, len(foods))
        return results

    @staticmethod
    def categorization_stats(results: Dict[str, CategoryResult]) -> Dict[str, Any]:
        counts = {"ai": 0, "regex": 0, "fallback": 0}
        total_confidence = 0.0
        for result in results.values():
            counts[result.method] += 1
            total_confidence += result.confidence
        return {
            "aiCount": counts["ai"],
            "regexCount": counts["regex"],
            "fallbackCount": counts["fallback"],
            "averageConfidence": total_confidence / len(results) if results else 0,
        }
