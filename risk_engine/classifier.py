"""
DTN Risk Classification Engine

Maps a RiskAssessmentInput to a RiskAssessmentResult by evaluating an
ordered set of boolean risk factors against fixed thresholds.

CLASSIFICATION LOGIC:

  AI systems (EU AI Act):
    1. Social scoring by a public authority -> UNACCEPTABLE (hard veto,
       score 1.0, no further factors evaluated)
    2. Otherwise accumulate factor weights, clamp to [0, 1]
    3. >= high threshold -> HIGH (CE marking, conformity assessment)
       >= limited threshold -> LIMITED (transparency obligations)
       otherwise -> MINIMAL

  Data processing activities (GDPR DSFA):
    1. Accumulate weights over the GDPR factors, clamp to [0, 1]
    2. Map to HIGH / MEDIUM / LOW
    3. A formal assessment is required above the assessment threshold, and
       always when special-category data is involved

The engine is a pure function of its input and configuration. It holds no
mutable state and can be shared between concurrent callers.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from risk_engine import measures
from risk_engine.config import EngineConfig
from risk_engine.errors import InvalidInputError
from shared.models import (
    SOCIAL_SCORING_LABEL,
    AIRiskLevel,
    DSFARiskLevel,
    RiskAssessmentInput,
    RiskAssessmentResult,
    RiskFactor,
    SubjectKind,
)

logger = logging.getLogger(__name__)

# Float sums this close below a threshold count as reaching it
_THRESHOLD_TOLERANCE = 1e-9


def _reaches(score: float, threshold: float) -> bool:
    return score >= threshold - _THRESHOLD_TOLERANCE


class RiskClassificationEngine:
    """
    Risk Classification Engine.

    Usage:
        engine = RiskClassificationEngine()
        result = engine.classify(RiskAssessmentInput(subject_kind="ai_system"))
        print(result.to_summary())
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def classify(
        self,
        assessment_input: Union[RiskAssessmentInput, Mapping[str, Any]],
    ) -> RiskAssessmentResult:
        """
        Classify a subject.

        Args:
            assessment_input: RiskAssessmentInput, or a mapping of its fields

        Returns:
            Immutable RiskAssessmentResult

        Raises:
            InvalidInputError: negative affected person count, unknown
                subject kind, or input that does not validate
        """
        data = self._validate(assessment_input)

        if data.subject_kind == SubjectKind.AI_SYSTEM:
            result = self._classify_ai_system(data)
        else:
            result = self._classify_processing_activity(data)

        logger.debug(
            f"Classified {data.subject_kind.value} {data.subject_name or '<unnamed>'}: "
            f"{result.risk_level.value} (score {result.risk_score})"
        )
        return result

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self, assessment_input: Any) -> RiskAssessmentInput:
        if isinstance(assessment_input, Mapping):
            try:
                assessment_input = RiskAssessmentInput.model_validate(dict(assessment_input))
            except ValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(part) for part in first.get("loc", ())) or None
                raise InvalidInputError(f"Invalid risk assessment input: {e}", field=field) from e

        if not isinstance(assessment_input, RiskAssessmentInput):
            raise InvalidInputError(
                f"Expected RiskAssessmentInput or mapping, got {type(assessment_input).__name__}"
            )

        # model_construct() bypasses validation, so check the invariants here
        kind = assessment_input.subject_kind
        if not isinstance(kind, SubjectKind):
            try:
                kind = SubjectKind(kind)
            except ValueError:
                raise InvalidInputError(
                    f"Unrecognized subject kind: {kind!r}", field="subject_kind"
                ) from None
            assessment_input = assessment_input.model_copy(update={"subject_kind": kind})

        count = assessment_input.affected_person_count
        if not isinstance(count, int) or isinstance(count, bool):
            raise InvalidInputError(
                f"affected_person_count must be an integer, got {count!r}",
                field="affected_person_count",
            )
        if count < 0:
            raise InvalidInputError(
                f"affected_person_count must be >= 0, got {count}",
                field="affected_person_count",
            )

        return assessment_input

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def _factor_fires(self, factor: RiskFactor, data: RiskAssessmentInput) -> bool:
        if factor == RiskFactor.AUTOMATED_DECISION_MAKING:
            return data.uses_automated_decision_making
        if factor == RiskFactor.PROFILING:
            return data.uses_profiling
        if factor == RiskFactor.SPECIAL_CATEGORY_DATA:
            return data.involves_special_category_data
        if factor == RiskFactor.LARGE_SCALE:
            return (
                data.is_large_scale
                or data.affected_person_count > self.config.large_scale_threshold
            )
        if factor == RiskFactor.INNOVATIVE_TECHNOLOGY:
            return data.uses_innovative_technology
        if factor == RiskFactor.NO_HUMAN_OVERSIGHT:
            return not data.has_human_oversight
        return False

    def _accumulate(
        self,
        data: RiskAssessmentInput,
        weights: Mapping[RiskFactor, float],
    ) -> tuple[float, list[RiskFactor]]:
        """Sum the weights of all firing factors, in evaluation order.

        The returned score is clamped but not rounded; thresholds are
        applied to it directly.
        """
        fired = [factor for factor in weights if self._factor_fires(factor, data)]
        score = math.fsum(weights[factor] for factor in fired)
        return min(max(score, 0.0), 1.0), fired

    def _report(self, score: float) -> float:
        return round(score, self.config.score_precision)

    # ------------------------------------------------------------------
    # AI systems
    # ------------------------------------------------------------------

    def _classify_ai_system(self, data: RiskAssessmentInput) -> RiskAssessmentResult:
        kind = SubjectKind.AI_SYSTEM

        if data.is_social_scoring_by_public_authority:
            logger.info(
                f"Prohibited practice detected for {data.subject_name or '<unnamed>'}: "
                "social scoring by public authority"
            )
            level = AIRiskLevel.UNACCEPTABLE
            return RiskAssessmentResult(
                subject_kind=kind,
                risk_score=1.0,
                risk_level=level,
                triggered_factors=(SOCIAL_SCORING_LABEL,),
                required_measures=measures.required_measures(kind, level),
                assessment_required=False,
                prohibited_practice=True,
                relevant_articles=measures.RELEVANT_ARTICLES[(kind, level)],
                review_interval_months=measures.REVIEW_INTERVAL_MONTHS[(kind, level)],
                risk_level_label_de=measures.LABELS_DE[(kind, level)],
            )

        score, fired = self._accumulate(data, self.config.ai_weights)

        if _reaches(score, self.config.ai_high_threshold):
            level = AIRiskLevel.HIGH
        elif _reaches(score, self.config.ai_limited_threshold):
            level = AIRiskLevel.LIMITED
        else:
            level = AIRiskLevel.MINIMAL

        high = level == AIRiskLevel.HIGH
        return RiskAssessmentResult(
            subject_kind=kind,
            risk_score=self._report(score),
            risk_level=level,
            triggered_factors=tuple(factor.label for factor in fired),
            required_measures=measures.required_measures(kind, level, fired),
            assessment_required=high,
            ce_marking_required=high,
            conformity_assessment_required=high,
            transparency_obligations_required=level in (AIRiskLevel.HIGH, AIRiskLevel.LIMITED),
            relevant_articles=measures.RELEVANT_ARTICLES[(kind, level)],
            review_interval_months=measures.REVIEW_INTERVAL_MONTHS[(kind, level)],
            risk_level_label_de=measures.LABELS_DE[(kind, level)],
        )

    # ------------------------------------------------------------------
    # Data processing activities (DSFA)
    # ------------------------------------------------------------------

    def _classify_processing_activity(self, data: RiskAssessmentInput) -> RiskAssessmentResult:
        kind = SubjectKind.DATA_PROCESSING_ACTIVITY
        score, fired = self._accumulate(data, self.config.dsfa_weights)

        if _reaches(score, self.config.dsfa_high_threshold):
            level = DSFARiskLevel.HIGH
        elif _reaches(score, self.config.dsfa_medium_threshold):
            level = DSFARiskLevel.MEDIUM
        else:
            level = DSFARiskLevel.LOW

        # Special-category data always forces a formal assessment
        assessment_required = (
            _reaches(score, self.config.dsfa_assessment_threshold)
            or data.involves_special_category_data
        )

        return RiskAssessmentResult(
            subject_kind=kind,
            risk_score=self._report(score),
            risk_level=level,
            triggered_factors=tuple(factor.label for factor in fired),
            required_measures=measures.required_measures(kind, level, fired),
            assessment_required=assessment_required,
            prior_consultation_required=_reaches(score, self.config.dsfa_prior_consultation_threshold),
            relevant_articles=measures.RELEVANT_ARTICLES[(kind, level)],
            review_interval_months=measures.REVIEW_INTERVAL_MONTHS[(kind, level)],
            risk_level_label_de=measures.LABELS_DE[(kind, level)],
        )


default_engine = RiskClassificationEngine()


def classify(
    assessment_input: Union[RiskAssessmentInput, Mapping[str, Any]],
) -> RiskAssessmentResult:
    """Classify with the default engine configuration."""
    return default_engine.classify(assessment_input)
