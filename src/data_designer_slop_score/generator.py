from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from data_designer.engine.column_generators.generators.base import ColumnGeneratorFullColumn

from data_designer_slop_score.config import SlopScoreColumnConfig
from data_designer_slop_score.core import analyze, describe_layer, suggest_fixes

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)


def score_row(values: list[object], config: SlopScoreColumnConfig) -> dict:
    text = "\n\n".join(str(v) for v in values if v is not None)
    result = analyze(text)
    output: dict = {
        "is_valid": result.score <= config.max_score,
        "slop_score": result.score,
        "slop_grade": result.grade,
    }
    if config.include_fixes:
        output["slop_fixes"] = [fix.improvement_type for fix in suggest_fixes(result.breakdown)]
    if config.include_breakdown:
        output["slop_breakdown"] = {
            name: {**layer.to_payload(), "summary": describe_layer(name, layer.details)}
            for name, layer in result.breakdown.items()
        }
    return output


class SlopScoreColumnGenerator(ColumnGeneratorFullColumn[SlopScoreColumnConfig]):
    """Column generator that scores article text for AI-writing fingerprints."""

    def generate(self, data: pd.DataFrame) -> pd.DataFrame:
        logger.info(f"\U0001f916 Scoring column {self.config.name!r} for AI-writing fingerprints")
        logger.info(f"   target columns: {self.config.target_columns}")
        logger.info(f"   max_score: {self.config.max_score}")

        results = [
            score_row(list(row.values), self.config)
            for _, row in data[self.config.target_columns].iterrows()
        ]

        data = data.copy()
        data[self.config.name] = results
        return data
