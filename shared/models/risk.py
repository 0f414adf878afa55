"""
Pydantic Models for Risk Classification

This module defines the input and output of the Risk Classification Engine.
Two kinds of subject are assessed:

  - AI_SYSTEM: classified on the EU AI Act scale
  - DATA_PROCESSING_ACTIVITY: classified on the GDPR DSFA scale
    (Datenschutz-Folgenabschätzung, Art. 35 GDPR)

RISK LEVELS (EU AI Act):

  - UNACCEPTABLE: Article 5 prohibited practices - system cannot be operated
  - HIGH: CE marking and conformity assessment required
  - LIMITED: transparency obligations only
  - MINIMAL: no specific regulatory obligations

RISK LEVELS (DSFA):

  - HIGH / MEDIUM / LOW

Both models are immutable. A result is produced once per input and is never
mutated afterwards.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SubjectKind(str, Enum):
    """What is being assessed."""

    DATA_PROCESSING_ACTIVITY = "data_processing_activity"
    AI_SYSTEM = "ai_system"


class AIRiskLevel(str, Enum):
    """
    EU AI Act risk levels.

    UNACCEPTABLE is reserved for the prohibited-practice veto and is never
    reached through score accumulation.
    """

    MINIMAL = "minimal"
    LIMITED = "limited"
    HIGH = "high"
    UNACCEPTABLE = "unacceptable"

    @property
    def rank(self) -> int:
        return _AI_ORDER.index(self)


class DSFARiskLevel(str, Enum):
    """GDPR data protection impact assessment risk levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _DSFA_ORDER.index(self)


_AI_ORDER = (
    AIRiskLevel.MINIMAL,
    AIRiskLevel.LIMITED,
    AIRiskLevel.HIGH,
    AIRiskLevel.UNACCEPTABLE,
)
_DSFA_ORDER = (DSFARiskLevel.LOW, DSFARiskLevel.MEDIUM, DSFARiskLevel.HIGH)

RiskLevel = Union[AIRiskLevel, DSFARiskLevel]


def level_scale(subject_kind: SubjectKind) -> type:
    """Return the risk level enum used for a subject kind."""
    if subject_kind == SubjectKind.AI_SYSTEM:
        return AIRiskLevel
    return DSFARiskLevel


class RiskFactor(str, Enum):
    """
    Weighted risk factors, in fixed evaluation order.

    NO_HUMAN_OVERSIGHT only applies to AI systems.
    """

    AUTOMATED_DECISION_MAKING = "automated_decision_making"
    PROFILING = "profiling"
    SPECIAL_CATEGORY_DATA = "special_category_data"
    LARGE_SCALE = "large_scale"
    INNOVATIVE_TECHNOLOGY = "innovative_technology"
    NO_HUMAN_OVERSIGHT = "no_human_oversight"

    @property
    def label(self) -> str:
        """Human-readable name reported in triggered_factors."""
        return FACTOR_LABELS[self]


FACTOR_LABELS = {
    RiskFactor.AUTOMATED_DECISION_MAKING: "automated decision-making",
    RiskFactor.PROFILING: "profiling",
    RiskFactor.SPECIAL_CATEGORY_DATA: "special-category data",
    RiskFactor.LARGE_SCALE: "large-scale processing",
    RiskFactor.INNOVATIVE_TECHNOLOGY: "innovative technology",
    RiskFactor.NO_HUMAN_OVERSIGHT: "no human oversight",
}

SOCIAL_SCORING_LABEL = "social scoring by public authority"


class RiskAssessmentInput(BaseModel):
    """
    Description of the subject being assessed.

    Built per request from caller-supplied fields. `affected_person_count`
    accepts any integer here; the engine rejects negative values with
    InvalidInputError so that callers see a single error type.
    """

    model_config = ConfigDict(frozen=True)

    subject_kind: SubjectKind = Field(
        description="Whether an AI system or a data processing activity is assessed."
    )
    subject_name: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Optional name of the system or activity. Not used for scoring.",
    )
    uses_automated_decision_making: bool = False
    uses_profiling: bool = False
    involves_special_category_data: bool = Field(
        default=False,
        description="Biometric, health, racial/ethnic origin and other Art. 9 GDPR data.",
    )
    is_large_scale: bool = False
    uses_innovative_technology: bool = False
    affected_person_count: int = Field(
        default=0,
        description="Number of persons affected by the processing or system.",
    )
    is_social_scoring_by_public_authority: bool = Field(
        default=False,
        description="Drives the prohibited-practice veto for AI systems.",
    )
    has_human_oversight: bool = True


class RiskAssessmentResult(BaseModel):
    """
    Outcome of a single classification.

    The risk level is always on the scale of the subject kind: AIRiskLevel
    for AI systems, DSFARiskLevel for data processing activities.
    """

    model_config = ConfigDict(frozen=True)

    subject_kind: SubjectKind
    risk_score: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel
    triggered_factors: Tuple[str, ...] = Field(
        default=(),
        description=(
            "Labels of the factors whose weight was added, in evaluation order. "
            "A prohibited practice lists the practice itself instead; it adds no weight."
        ),
    )
    required_measures: Tuple[str, ...] = ()
    assessment_required: bool = False

    prohibited_practice: bool = False
    ce_marking_required: bool = False
    conformity_assessment_required: bool = False
    transparency_obligations_required: bool = False
    prior_consultation_required: bool = Field(
        default=False,
        description="Prior consultation of the supervisory authority (Art. 36 GDPR).",
    )
    relevant_articles: Tuple[str, ...] = ()
    review_interval_months: int = Field(default=12, gt=0)
    risk_level_label_de: str = ""

    @field_validator("risk_level", mode="before")
    @classmethod
    def _coerce_level_to_scale(cls, value, info):
        # "high" exists on both scales; resolve it from the subject kind
        kind = info.data.get("subject_kind")
        if kind is None or isinstance(value, (AIRiskLevel, DSFARiskLevel)):
            return value
        return level_scale(SubjectKind(kind))(value)

    @model_validator(mode="after")
    def _check_level_matches_kind(self) -> "RiskAssessmentResult":
        if not isinstance(self.risk_level, level_scale(self.subject_kind)):
            raise ValueError(
                f"risk level {self.risk_level.value!r} is not on the "
                f"{self.subject_kind.value} scale"
            )
        return self

    def is_prohibited(self) -> bool:
        """Check if the subject is a prohibited practice."""
        return self.risk_level == AIRiskLevel.UNACCEPTABLE

    def to_summary(self) -> str:
        """One-line human readable summary."""
        factors = ", ".join(self.triggered_factors) or "none"
        return (
            f"{self.subject_kind.value}: {self.risk_level.value.upper()} "
            f"(score {self.risk_score:.2f}; factors: {factors}; "
            f"assessment required: {'yes' if self.assessment_required else 'no'})"
        )
