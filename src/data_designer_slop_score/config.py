from __future__ import annotations

from typing import Literal

from pydantic import Field

from data_designer.config.column_configs import SingleColumnConfig


class SlopScoreColumnConfig(SingleColumnConfig):
    """Score article columns for AI-writing fingerprints with the layered heuristic engine.

    Produces a 0-100 AI-likelihood score (higher = more machine-like), a grade
    (Minimal, Low, Moderate, High), and optionally suggested fixes and the
    per-layer breakdown.

    Attributes:
        target_columns: Columns whose text content will be joined and scored.
        max_score: Highest slop score (0-100) still counted as ``is_valid=True``.
            Defaults to 50, the upper edge of the "Low" grade.
        include_fixes: Include suggested improvement types for strongly flagged layers.
        include_breakdown: Include every layer's score, max, details, and summary.
    """

    target_columns: list[str]
    max_score: int = Field(default=50, ge=0, le=100, description="Highest slop score for is_valid=True")
    include_fixes: bool = Field(default=True, description="Include suggested improvement types in output")
    include_breakdown: bool = Field(default=False, description="Include the per-layer breakdown in output")
    column_type: Literal["slop-score"] = "slop-score"

    @staticmethod
    def get_column_emoji() -> str:
        return "\U0001f916"

    @property
    def required_columns(self) -> list[str]:
        return self.target_columns

    @property
    def side_effect_columns(self) -> list[str]:
        return []
