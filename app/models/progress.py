"""Progress metrics returned by the progress calculator."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ColorBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    completed: Optional[int] = None
    info: Optional[str] = None


class ProgressMetrics(BaseModel):
    """
    Completion figures for one ingredient list.

    `breakdown` is keyed by colour. Trackable colours report `completed`;
    awareness-only colours report `info` instead.
    """

    model_config = ConfigDict(frozen=True)

    trackable_count: int
    completed_count: int
    percentage: int
    breakdown: Dict[str, ColorBreakdown]

    @property
    def red(self) -> ColorBreakdown:
        return self.breakdown.get("red", ColorBreakdown())

    def to_api(self) -> Dict[str, Any]:
        return {
            "trackableCount": self.trackable_count,
            "completedCount": self.completed_count,
            "percentage": self.percentage,
            "breakdown": {
                color: part.model_dump(exclude_none=True)
                for color, part in self.breakdown.items()
            },
        }
