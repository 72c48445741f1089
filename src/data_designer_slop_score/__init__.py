# SPDX-License-Identifier: Apache-2.0
"""AI-writing fingerprint scorer and rewrite dispatcher, with a NeMo Data Designer plugin.

Adds a ``slop-score`` column type that scores article text with nine heuristic
layers plus a confidence cross-check. Rewrites are delegated to a caller-supplied
text generator; nothing here calls a model directly.

Usage::

    from data_designer_slop_score import analyze, dispatch_improvement

    result = analyze(article_markdown)
    result.score, result.grade, result.breakdown["vocabulary_patterns"].details

    builder.add_column(SlopScoreColumnConfig(
        name="slop_check",
        target_columns=["article"],
        max_score=50,
    ))
"""

from data_designer_slop_score.config import SlopScoreColumnConfig
from data_designer_slop_score.core import (
    AnalyzedText,
    Hyperparameters,
    LayerResult,
    SlopScore,
    analyze,
    suggest_fixes,
)
from data_designer_slop_score.improvements import (
    ArticleDraft,
    GenerationError,
    GenerationSettings,
    ImprovementResult,
    ImprovementType,
    UnknownImprovementType,
    dispatch_batch,
    dispatch_improvement,
)

__all__ = [
    "SlopScoreColumnConfig",
    "analyze",
    "suggest_fixes",
    "AnalyzedText",
    "Hyperparameters",
    "LayerResult",
    "SlopScore",
    "dispatch_improvement",
    "dispatch_batch",
    "ArticleDraft",
    "GenerationError",
    "GenerationSettings",
    "ImprovementResult",
    "ImprovementType",
    "UnknownImprovementType",
]
