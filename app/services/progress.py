# app/services/progress.py
"""
Progress calculator for a plan's ingredient list.

Counting rules come from a colour policy map rather than branches on colour
names. With the default policy blue and yellow entries are trackable and red
entries are awareness-only. Unselected entries and entries without a colour are
ignored entirely.

All functions here are pure: same input, same output, no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.models.progress import ColorBreakdown, ProgressMetrics

AWARENESS_INFO = "For awareness only - enjoy occasionally"


@dataclass(frozen=True)
class CategoryPolicy:
    trackable: bool
    info: Optional[str] = None


DEFAULT_COLOR_POLICY: Dict[str, CategoryPolicy] = {
    "blue": CategoryPolicy(trackable=True),
    "yellow": CategoryPolicy(trackable=True),
    "red": CategoryPolicy(trackable=False, info=AWARENESS_INFO),
}

COLOR_MESSAGES = {
    "blue": "Great choice! Add this to your regular rotation.",
    "yellow": "Perfect for balanced nutrition in proper portions.",
    "red": "Enjoy occasionally and in moderation. No tracking needed.",
}
DEFAULT_COLOR_MESSAGE = "Follow your coach's guidance for this ingredient."


def _field(entry: Any, name: str, alias: str) -> Any:
    # entries arrive as IngredientEntry models or raw stored dicts (camelCase)
    if isinstance(entry, Mapping):
        return entry.get(alias, entry.get(name))
    return getattr(entry, name, None)


def _color(entry: Any) -> Optional[str]:
    return _field(entry, "color_code", "colorCode")


def _is_selected(entry: Any) -> bool:
    return _field(entry, "is_selected", "isSelected") is True


def _is_checked(entry: Any) -> bool:
    return _field(entry, "client_checked", "clientChecked") is True


def is_trackable_ingredient(
    color_code: Optional[str],
    policy: Mapping[str, CategoryPolicy] = DEFAULT_COLOR_POLICY,
) -> bool:
    rule = policy.get(color_code) if color_code else None
    return bool(rule and rule.trackable)


def _round_percentage(completed: int, trackable: int) -> int:
    if trackable <= 0:
        return 0
    # integer round-half-up of 100 * completed / trackable
    return (200 * completed + trackable) // (2 * trackable)


def calculate_progress(
    ingredients: Iterable[Any],
    policy: Mapping[str, CategoryPolicy] = DEFAULT_COLOR_POLICY,
) -> ProgressMetrics:
    """
    Compute completion metrics for `ingredients` under `policy`.

    Trackable colours contribute to ``completed / trackable``; awareness-only
    colours are only counted. Entries with a colour missing from the policy are
    ignored like null-colour entries.
    """
    totals: Dict[str, int] = {color: 0 for color in policy}
    completed: Dict[str, int] = {
        color: 0 for color, rule in policy.items() if rule.trackable
    }

    for entry in ingredients or ():
        color = _color(entry)
        if not color or color not in policy or not _is_selected(entry):
            continue
        totals[color] += 1
        if policy[color].trackable and _is_checked(entry):
            completed[color] += 1

    breakdown: Dict[str, ColorBreakdown] = {}
    for color, rule in policy.items():
        if rule.trackable:
            breakdown[color] = ColorBreakdown(total=totals[color], completed=completed[color])
        else:
            breakdown[color] = ColorBreakdown(total=totals[color], info=rule.info)

    trackable_count = sum(totals[c] for c, rule in policy.items() if rule.trackable)
    completed_count = sum(completed.values())

    return ProgressMetrics(
        trackable_count=trackable_count,
        completed_count=completed_count,
        percentage=_round_percentage(completed_count, trackable_count),
        breakdown=breakdown,
    )


def get_progress_summary(metrics: ProgressMetrics) -> str:
    trackable = metrics.trackable_count
    if trackable == 0:
        return "No nutrition goals set yet"
    if metrics.completed_count == 0:
        return f"0 of {trackable} nutrition goals started"
    if metrics.percentage == 100:
        return f"All {trackable} nutrition goals completed! 🎉"
    return (
        f"{metrics.completed_count} of {trackable} nutrition goals completed "
        f"({metrics.percentage}%)"
    )


def get_awareness_summary(
    metrics: ProgressMetrics,
    policy: Mapping[str, CategoryPolicy] = DEFAULT_COLOR_POLICY,
) -> str:
    count = sum(
        part.total
        for color, part in metrics.breakdown.items()
        if color in policy and not policy[color].trackable
    )
    return f"{count} awareness-only item{'' if count == 1 else 's'}"


def get_trackable_ingredients(
    ingredients: Iterable[Any],
    policy: Mapping[str, CategoryPolicy] = DEFAULT_COLOR_POLICY,
) -> List[Any]:
    return [i for i in ingredients if is_trackable_ingredient(_color(i), policy)]


def get_awareness_only_ingredients(
    ingredients: Iterable[Any],
    policy: Mapping[str, CategoryPolicy] = DEFAULT_COLOR_POLICY,
) -> List[Any]:
    out = []
    for i in ingredients:
        rule = policy.get(_color(i) or "")
        if rule is not None and not rule.trackable:
            out.append(i)
    return out


def get_color_message(color_code: Optional[str]) -> str:
    return COLOR_MESSAGES.get(color_code or "", DEFAULT_COLOR_MESSAGE)


def progress_report(
    ingredients: Iterable[Any],
    policy: Mapping[str, CategoryPolicy] = DEFAULT_COLOR_POLICY,
) -> Dict[str, Any]:
    """Metrics plus rendered summaries, in API shape."""
    metrics = calculate_progress(ingredients, policy)
    return {
        **metrics.to_api(),
        "summary": get_progress_summary(metrics),
        "awarenessSummary": get_awareness_summary(metrics, policy),
    }
