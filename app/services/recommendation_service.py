# app/services/recommendation_service.py
"""
Colour (blue / yellow / red) recommendations for catalog foods, tailored to a
client's health profile.

Two layers:
- Hard safety rules (intolerances and allergies found in the profile text or
  quick toggles) mark matching foods red with confidence 0.99.
- Everything else goes to an instruction-tuned model on Hugging Face inference;
  its JSON reply is parsed and filtered to well-formed entries for known foods.

Behaviour on edge cases:
- Each food gets at most one hard-rule recommendation (the first rule that hits).
- Hallucinated food ids in the model reply are dropped.
"""
from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from app.config.settings import settings
from app.models.ai import FoodRecommendation, QuickToggles, RecommendationResponse
from app.models.food import Food
from app.services.errors import (
    ExternalServiceError,
    ServiceUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MIN_PROFILE_LENGTH = 10
HARD_RULE_CONFIDENCE = 0.99

DAIRY_KEYWORDS = ["milk", "cheese", "yogurt", "dairy", "cream", "butter", "whey"]
GLUTEN_KEYWORDS = ["wheat", "bread", "pasta", "gluten", "barley", "rye"]

# (profile triggers == food keywords, reason)
ALLERGY_RULES = [
    (["peanut", "peanuts"], "Peanut allergy noted"),
    (["tree nut", "almond", "walnut", "cashew"], "Tree nut allergy noted"),
    (["shellfish", "shrimp", "crab", "lobster"], "Shellfish allergy noted"),
    (["soy", "tofu", "tempeh"], "Soy allergy noted"),
]

TOGGLE_LABELS = [
    ("diabetes", "Type 2 diabetes"),
    ("weight_loss", "weight loss goal"),
    ("heart_health", "heart health focus"),
    ("inflammation", "inflammation concerns"),
    ("dairy_free", "dairy-free diet"),
    ("gluten_free", "gluten-free diet"),
]

_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\"recommendations\"[\s\S]*\}")


def _food_text(food: Food) -> str:
    return f"{food.name} {food.description or ''}".lower()


def apply_hard_rules(
    client_profile: str,
    foods: Sequence[Food],
    toggles: Optional[QuickToggles] = None,
) -> List[FoodRecommendation]:
    profile = (client_profile or "").lower()
    toggles = toggles or QuickToggles()

    rules = []
    if "dairy" in profile or "lactose" in profile or toggles.dairy_free:
        rules.append(
            (DAIRY_KEYWORDS, "Dairy intolerance/restriction noted - avoid to prevent digestive issues")
        )
    if "gluten" in profile or "celiac" in profile or toggles.gluten_free:
        rules.append((GLUTEN_KEYWORDS, "Gluten intolerance/celiac noted - strict avoidance required"))
    for keywords, reason in ALLERGY_RULES:
        if any(k in profile for k in keywords):
            rules.append((keywords, reason))

    results: List[FoodRecommendation] = []
    for food in foods:
        text = _food_text(food)
        for keywords, reason in rules:
            if any(k in text for k in keywords):
                results.append(
                    FoodRecommendation(
                        food_id=food.id,
                        food_name=food.name,
                        category="red",
                        reasoning=reason,
                        confidence=HARD_RULE_CONFIDENCE,
                        method="hard-rule",
                    )
                )
                break
    return results


def build_prompt(
    client_profile: str, foods: Sequence[Food], toggles: Optional[QuickToggles] = None
) -> str:
    quick_context = ""
    if toggles:
        conditions = [label for attr, label in TOGGLE_LABELS if getattr(toggles, attr)]
        if conditions:
            quick_context = f"\nKey Focus Areas: {', '.join(conditions)}"

    lines = []
    for food in foods:
        parts = []
        info = food.nutritional_info
        if info:
            if info.calories:
                parts.append(f"{info.calories:g}cal")
            if info.protein:
                parts.append(f"{info.protein:g}g protein")
            if info.carbs:
                parts.append(f"{info.carbs:g}g carbs")
            if info.fat:
                parts.append(f"{info.fat:g}g fat")
            if info.fiber:
                parts.append(f"{info.fiber:g}g fiber")
        nutrition = f" ({', '.join(parts)})" if parts else ""
        lines.append(f"- {food.id}: {food.name}{nutrition}")
    foods_list = "\n".join(lines)

    return f"""You are a clinical nutrition expert helping a health coach create a personalized nutrition plan.

CLIENT PROFILE:
{client_profile}{quick_context}

TASK:
Categorize each food below as BLUE, YELLOW, or RED based on the client's health profile:

- BLUE (Therapeutic/Approved): Foods that directly support the client's health goals and conditions. These offer specific therapeutic benefits and should be emphasized.

- YELLOW (Healthful/Neutral): Nutritious foods that can be included in moderation as part of a balanced diet. Neither particularly beneficial nor harmful for this specific client.

- RED (Occasional/Avoid): Foods that may hinder goals, worsen conditions, or should be limited. Not forbidden, but best consumed occasionally or in small amounts.

FOODS TO CATEGORIZE:
{foods_list}

IMPORTANT GUIDELINES:
- Focus on blood sugar regulation for diabetes/prediabetes
- Emphasize anti-inflammatory foods for inflammation/autoimmune conditions
- Consider caloric density and satiety for weight management
- Prioritize heart-healthy foods for cardiovascular concerns
- Consider digestive impact for gut health issues
- Be conservative: if unsure, categorize as YELLOW rather than BLUE

Return ONLY valid JSON in this exact format (no additional text):
{{
  "recommendations": [
    {{
      "foodId": "food-id-here",
      "category": "blue",
      "reasoning": "Brief 1-2 sentence explanation in coach-friendly language",
      "confidence": 0.85
    }}
  ]
}}"""


def parse_ai_response(result: Any, foods: Sequence[Food]) -> List[FoodRecommendation]:
    """
    Extract recommendations from a text-generation reply.

    Raises:
        ExternalServiceError: no generated text, no JSON block, or a malformed block.
    """
    if isinstance(result, list):
        generated = result[0].get("generated_text") if result and isinstance(result[0], dict) else None
    elif isinstance(result, dict):
        generated = result.get("generated_text")
    else:
        generated = None
    if not generated:
        raise ExternalServiceError("AI service returned no recommendations")

    match = _JSON_BLOCK_RE.search(generated)
    if not match:
        logger.warning("No JSON block in AI reply: %s", generated[:300])
        raise ExternalServiceError("Could not parse AI recommendations")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        logger.warning("Malformed JSON in AI reply: %s", exc)
        raise ExternalServiceError("Could not parse AI recommendations") from exc

    recs = parsed.get("recommendations") if isinstance(parsed, dict) else None
    if not isinstance(recs, list):
        raise ExternalServiceError("Could not parse AI recommendations")

    names = {f.id: f.name for f in foods}
    out: List[FoodRecommendation] = []
    for rec in recs:
        if not isinstance(rec, dict):
            continue
        food_id = rec.get("foodId")
        confidence = rec.get("confidence")
        if (
            food_id not in names
            or rec.get("category") not in ("blue", "yellow", "red")
            or not rec.get("reasoning")
            or isinstance(confidence, bool)
            or not isinstance(confidence, (int, float))
        ):
            continue
        out.append(
            FoodRecommendation(
                food_id=food_id,
                food_name=names[food_id],
                category=rec["category"],
                reasoning=str(rec["reasoning"]),
                confidence=float(confidence),
                method="ai",
            )
        )
    return out


class RecommendationService:

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.huggingface_api_key
        self.endpoint = f"{settings.huggingface_base_url}/{settings.recommendation_model}"
        # generation over a few hundred foods is slow
        self.timeout = max(settings.http_timeout_seconds, 60.0)
        self._transport = transport
        if not self.api_key:
            logger.warning(
                "RecommendationService: HUGGINGFACE_API_KEY not set. AI recommendations disabled."
            )

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _ai_recommendations(
        self, client_profile: str, foods: Sequence[Food], toggles: Optional[QuickToggles]
    ) -> List[FoodRecommendation]:
        payload = {
            "inputs": build_prompt(client_profile, foods, toggles),
            "parameters": {
                "max_new_tokens": 8000,
                "temperature": 0.2,
                "return_full_text": False,
                "top_p": 0.9,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.endpoint,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=payload,
                )
        except httpx.HTTPError as exc:
            logger.exception("AI recommendation request failed: %s", exc)
            raise ExternalServiceError("Failed to generate AI recommendations") from exc

        if resp.status_code >= 400:
            logger.warning("AI recommendation API error %s: %s", resp.status_code, resp.text[:300])
            raise ExternalServiceError("Failed to generate AI recommendations")
        return parse_ai_response(resp.json(), foods)

    async def generate_recommendations(
        self,
        client_profile: str,
        foods: Sequence[Food],
        toggles: Optional[QuickToggles] = None,
    ) -> RecommendationResponse:
        started = time.monotonic()
        if not client_profile or len(client_profile.strip()) < MIN_PROFILE_LENGTH:
            raise ValidationError(
                "Client profile is required and must be at least 10 characters"
            )
        if not self.is_available():
            raise ServiceUnavailableError(
                "AI recommendation service is not configured. Please contact support."
            )
        if not foods:
            raise ValidationError("No foods found to analyze")

        hard = apply_hard_rules(client_profile, foods, toggles)
        covered = {r.food_id for r in hard}
        remaining = [f for f in foods if f.id not in covered]

        ai: List[FoodRecommendation] = []
        if remaining:
            ai = await self._ai_recommendations(client_profile, remaining, toggles)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Recommendations: foods=%d hard_rules=%d ai=%d in %dms",
            len(foods),
            len(hard),
            len(ai),
            elapsed_ms,
        )
        return RecommendationResponse(
            recommendations=hard + ai,
            processing_time=elapsed_ms,
            foods_processed=len(foods),
            hard_rules_applied=len(hard),
            ai_processed=len(ai),
        )
