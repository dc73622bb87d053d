"""
Scoring-layer configuration: score range, display precision, report sheets,
and the evaluator trust-weighting policy.

Thresholds for the weighting cascade are grouped in :class:`WeightPolicy`
so that the policy can be tuned or overridden from a JSON file without
touching the calculator.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from ..ingest.config import SCORE_MAX, SCORE_MIN

# ---------------------------------------------------------------------------
# Precision and rendering
# ---------------------------------------------------------------------------

# Rounding is applied only when a value is rendered into a report.
DISPLAY_PRECISION: int = 2
WEIGHT_PRECISION: int = 3

NOT_AVAILABLE = "N/A"

# ---------------------------------------------------------------------------
# Report sheets
# ---------------------------------------------------------------------------

EVALUATOR_ANALYTICS_SHEET = "PaEvaluatorAnalytics"
FINAL_SCORES_SHEET = "PaFinalScores"
ALL_RESPONSES_SHEET = "PaReportAllResponses"

OVERALL_COLUMN = "overallWeightedMedian"

ANALYTICS_COLUMNS: list[str] = [
    "evaluatorId", "evaluatorName", "totalScoredAssessments", "avgScoreGiven",
    "stdDevScoresGiven", "distinctScoresUsed", "rangeOfScoresUsed",
    "percentMaxScore", "percentMinScore", "percentMidScores",
    "avgIntraPeerSd", "avgAbsDevFromGroupMedian", "totalComments",
    "percentScoresWithComment", "avgCommentLength", "calculatedWeight",
    "weightAdjustments",
]


# ---------------------------------------------------------------------------
# Weighting policy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WeightPolicy:
    """
    Thresholds and deltas of the trust-weight rule cascade.

    Percentages are on a 0–100 scale.  Penalties are stored as positive
    magnitudes and subtracted; bonuses are added.
    """

    base_weight: float = 1.0
    min_scores: int = 5
    insufficient_data_weight: float = 0.4
    participation_floor: float = 0.4
    # Rules guarded by a sample-size condition need at least this many scores.
    min_scores_for_spread_rules: int = 10

    # Score-level bias (mean given)
    warm_bias_threshold: float = 3.2
    warm_bias_penalty: float = 0.15
    severe_warm_bias_threshold: float = 3.5
    severe_warm_bias_penalty: float = 0.25
    cold_bias_threshold: float = 2.3
    cold_bias_penalty: float = 0.15
    severe_cold_bias_threshold: float = 2.0
    severe_cold_bias_penalty: float = 0.25

    # Extremity
    max_score_pct_threshold: float = 70.0
    max_score_pct_penalty: float = 0.10
    very_high_max_score_pct_threshold: float = 90.0
    very_high_max_score_pct_penalty: float = 0.15
    low_min_score_pct_threshold: float = 10.0
    low_min_score_pct_penalty: float = 0.10

    # Range restriction
    single_value_penalty: float = 0.30
    two_values_penalty: float = 0.20
    low_sd_threshold: float = 0.50
    low_sd_penalty: float = 0.10

    # Rubber-stamping and consensus
    intra_peer_sd_threshold: float = 0.25
    intra_peer_sd_penalty: float = 0.15
    consensus_deviation_threshold: float = 0.70
    consensus_deviation_penalty: float = 0.15

    # Comment engagement
    comment_coverage_threshold: float = 30.0
    comment_coverage_bonus: float = 0.05
    high_comment_coverage_threshold: float = 50.0
    high_comment_coverage_bonus: float = 0.05

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            expected = (int,) if f.type == "int" else (int, float)
            if isinstance(value, bool) or not isinstance(value, expected):
                kind = "an integer" if f.type == "int" else "a number"
                raise ValueError(f"{f.name} must be {kind}, got {value!r}")
        for name in ("insufficient_data_weight", "participation_floor", "base_weight"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.min_scores < 1:
            raise ValueError(f"min_scores must be >= 1, got {self.min_scores}")

    @classmethod
    def from_dict(cls, overrides: dict) -> "WeightPolicy":
        """
        Build a policy from the defaults plus ``overrides``.

        Raises:
            ValueError: An override key is not a policy field.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown weight policy keys: {', '.join(unknown)}")
        return cls(**overrides)

    @classmethod
    def from_json(cls, path: Path) -> "WeightPolicy":
        """
        Load policy overrides from a JSON object file.

        Raises:
            FileNotFoundError: ``path`` does not exist.
            ValueError: The file is not a JSON object or names unknown keys.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Weight policy not found: {path}")
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Weight policy must be a JSON object: {path}")
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_WEIGHT_POLICY = WeightPolicy()
