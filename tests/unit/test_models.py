"""
Unit tests for the shared risk models.

Tests cover:
- SubjectKind, AIRiskLevel, DSFARiskLevel, RiskFactor enums
- RiskAssessmentInput defaults and immutability
- RiskAssessmentResult level/scale consistency and helpers
"""

import os
import sys

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.models import (
    FACTOR_LABELS,
    SOCIAL_SCORING_LABEL,
    AIRiskLevel,
    DSFARiskLevel,
    RiskAssessmentInput,
    RiskAssessmentResult,
    RiskFactor,
    SubjectKind,
    level_scale,
)


class TestEnums:
    """Tests for the enumerations."""

    def test_subject_kind_values(self):
        assert SubjectKind.AI_SYSTEM.value == "ai_system"
        assert SubjectKind.DATA_PROCESSING_ACTIVITY.value == "data_processing_activity"

    def test_ai_levels_are_ordered(self):
        ranks = [level.rank for level in (
            AIRiskLevel.MINIMAL,
            AIRiskLevel.LIMITED,
            AIRiskLevel.HIGH,
            AIRiskLevel.UNACCEPTABLE,
        )]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == 4

    def test_dsfa_levels_are_ordered(self):
        assert DSFARiskLevel.LOW.rank < DSFARiskLevel.MEDIUM.rank < DSFARiskLevel.HIGH.rank

    def test_level_scale(self):
        assert level_scale(SubjectKind.AI_SYSTEM) is AIRiskLevel
        assert level_scale(SubjectKind.DATA_PROCESSING_ACTIVITY) is DSFARiskLevel

    def test_every_factor_has_a_label(self):
        assert set(FACTOR_LABELS) == set(RiskFactor)
        assert RiskFactor.LARGE_SCALE.label == "large-scale processing"


class TestRiskAssessmentInput:
    """Tests for RiskAssessmentInput."""

    def test_defaults(self):
        item = RiskAssessmentInput(subject_kind="ai_system")
        assert item.subject_kind == SubjectKind.AI_SYSTEM
        assert item.affected_person_count == 0
        assert item.has_human_oversight is True
        assert item.is_social_scoring_by_public_authority is False

    def test_subject_kind_required(self):
        with pytest.raises(ValidationError):
            RiskAssessmentInput()

    def test_unknown_subject_kind(self):
        with pytest.raises(ValidationError):
            RiskAssessmentInput(subject_kind="robot")

    def test_subject_name_max_length(self):
        with pytest.raises(ValidationError):
            RiskAssessmentInput(subject_kind="ai_system", subject_name="x" * 201)

    def test_immutable(self):
        item = RiskAssessmentInput(subject_kind="ai_system")
        with pytest.raises(ValidationError):
            item.uses_profiling = True

    def test_negative_count_left_to_engine(self):
        item = RiskAssessmentInput(subject_kind="ai_system", affected_person_count=-3)
        assert item.affected_person_count == -3


class TestRiskAssessmentResult:
    """Tests for RiskAssessmentResult."""

    def test_high_resolves_to_ai_scale(self):
        result = RiskAssessmentResult(
            subject_kind="ai_system", risk_score=0.8, risk_level="high"
        )
        assert isinstance(result.risk_level, AIRiskLevel)

    def test_high_resolves_to_dsfa_scale(self):
        result = RiskAssessmentResult(
            subject_kind="data_processing_activity", risk_score=0.8, risk_level="high"
        )
        assert isinstance(result.risk_level, DSFARiskLevel)

    def test_level_from_wrong_scale_rejected(self):
        with pytest.raises(ValidationError):
            RiskAssessmentResult(
                subject_kind="data_processing_activity", risk_score=0.1, risk_level="minimal"
            )
        with pytest.raises(ValidationError):
            RiskAssessmentResult(
                subject_kind="ai_system", risk_score=0.1, risk_level=DSFARiskLevel.LOW
            )

    def test_score_bounds(self):
        with pytest.raises(ValidationError):
            RiskAssessmentResult(subject_kind="ai_system", risk_score=1.2, risk_level="high")
        with pytest.raises(ValidationError):
            RiskAssessmentResult(subject_kind="ai_system", risk_score=-0.1, risk_level="minimal")

    def test_json_round_trip_keeps_scale(self):
        result = RiskAssessmentResult(
            subject_kind="data_processing_activity",
            risk_score=0.9,
            risk_level=DSFARiskLevel.HIGH,
            triggered_factors=("profiling",),
        )
        restored = RiskAssessmentResult.model_validate(result.model_dump(mode="json"))
        assert restored == result

    def test_is_prohibited(self):
        prohibited = RiskAssessmentResult(
            subject_kind="ai_system", risk_score=1.0, risk_level="unacceptable"
        )
        assert prohibited.is_prohibited()
        allowed = RiskAssessmentResult(
            subject_kind="ai_system", risk_score=1.0, risk_level="high"
        )
        assert not allowed.is_prohibited()

    def test_to_summary(self):
        result = RiskAssessmentResult(
            subject_kind="ai_system",
            risk_score=0.45,
            risk_level="limited",
            triggered_factors=("automated decision-making", "profiling"),
        )
        summary = result.to_summary()
        assert "LIMITED" in summary
        assert "0.45" in summary
        assert "profiling" in summary

    def test_triggered_factors_documents_prohibited_practice(self):
        description = RiskAssessmentResult.model_fields["triggered_factors"].description
        assert "prohibited practice" in description
        assert "no weight" in description

    def test_prohibited_summary_names_the_practice(self):
        result = RiskAssessmentResult(
            subject_kind="ai_system",
            risk_score=1.0,
            risk_level="unacceptable",
            triggered_factors=(SOCIAL_SCORING_LABEL,),
            prohibited_practice=True,
        )
        assert SOCIAL_SCORING_LABEL in result.to_summary()
        assert result.triggered_factors[0] not in FACTOR_LABELS.values()
