"""
Risk Classification Engine Configuration

The weight table and thresholds are passed explicitly to the engine at
construction. The defaults are illustrative constants chosen for demo
plausibility; they are tunable and are not a validated legal-risk model.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from dotenv import load_dotenv

from shared.models import RiskFactor


def _default_ai_weights() -> dict[RiskFactor, float]:
    return {
        RiskFactor.AUTOMATED_DECISION_MAKING: 0.25,
        RiskFactor.PROFILING: 0.20,
        RiskFactor.SPECIAL_CATEGORY_DATA: 0.30,  # biometric/HR/surveillance contexts
        RiskFactor.LARGE_SCALE: 0.15,
        RiskFactor.INNOVATIVE_TECHNOLOGY: 0.10,
        RiskFactor.NO_HUMAN_OVERSIGHT: 0.15,
    }


def _default_dsfa_weights() -> dict[RiskFactor, float]:
    return {
        RiskFactor.AUTOMATED_DECISION_MAKING: 0.25,
        RiskFactor.PROFILING: 0.20,
        RiskFactor.SPECIAL_CATEGORY_DATA: 0.30,
        RiskFactor.LARGE_SCALE: 0.15,
        RiskFactor.INNOVATIVE_TECHNOLOGY: 0.10,
    }


@dataclass(frozen=True)
class EngineConfig:
    """Weights and thresholds for the Risk Classification Engine."""

    # Weight tables; iteration order is the evaluation order. Stored read-only.
    ai_weights: Mapping[RiskFactor, float] = field(default_factory=_default_ai_weights)
    dsfa_weights: Mapping[RiskFactor, float] = field(default_factory=_default_dsfa_weights)

    # EU AI Act scale (inclusive lower bounds)
    ai_high_threshold: float = 0.70
    ai_limited_threshold: float = 0.30

    # DSFA scale (inclusive lower bounds)
    dsfa_high_threshold: float = 0.80
    dsfa_medium_threshold: float = 0.50
    dsfa_assessment_threshold: float = 0.50
    dsfa_prior_consultation_threshold: float = 0.90

    # More affected persons than this counts as large-scale processing
    large_scale_threshold: int = 10_000

    # Reported scores are rounded; levels are decided on the unrounded sum
    score_precision: int = 6

    def __post_init__(self):
        for name, weights in (("ai_weights", self.ai_weights), ("dsfa_weights", self.dsfa_weights)):
            for factor, weight in weights.items():
                if not isinstance(factor, RiskFactor):
                    raise ValueError(f"{name}: unknown risk factor {factor!r}")
                if weight < 0:
                    raise ValueError(f"{name}: weight for {factor.value} must be >= 0, got {weight}")
        if RiskFactor.NO_HUMAN_OVERSIGHT in self.dsfa_weights:
            raise ValueError("dsfa_weights: human oversight is not a DSFA factor")
        if not 0.0 <= self.ai_limited_threshold <= self.ai_high_threshold <= 1.0:
            raise ValueError("AI thresholds must satisfy 0 <= limited <= high <= 1")
        if not 0.0 <= self.dsfa_medium_threshold <= self.dsfa_high_threshold <= 1.0:
            raise ValueError("DSFA thresholds must satisfy 0 <= medium <= high <= 1")
        if self.large_scale_threshold < 0:
            raise ValueError("large_scale_threshold must be >= 0")

        # Copy, then freeze; the engine may be shared between callers
        object.__setattr__(self, "ai_weights", MappingProxyType(dict(self.ai_weights)))
        object.__setattr__(self, "dsfa_weights", MappingProxyType(dict(self.dsfa_weights)))

    def weights_for(self, ai_system: bool) -> Mapping[RiskFactor, float]:
        """Return the weight table for AI systems or processing activities."""
        return self.ai_weights if ai_system else self.dsfa_weights

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load configuration overrides from environment variables."""
        load_dotenv()
        return cls(
            large_scale_threshold=int(os.getenv("DTN_LARGE_SCALE_THRESHOLD", "10000")),
        )
