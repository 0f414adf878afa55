"""
DTN Compliance Shared Pydantic Models

This package contains the Pydantic models used across the DTN compliance
risk classification system:

  - risk.py: Risk assessment input, result, levels and factors
  - vvt.py: Record of processing activities (Art. 30 GDPR)

Usage:
    from shared.models import (
        RiskAssessmentInput,
        RiskAssessmentResult,
        SubjectKind,
        AIRiskLevel,
        DSFARiskLevel,
    )
"""

from .risk import (
    FACTOR_LABELS,
    SOCIAL_SCORING_LABEL,
    AIRiskLevel,
    DSFARiskLevel,
    RiskAssessmentInput,
    RiskAssessmentResult,
    RiskFactor,
    RiskLevel,
    SubjectKind,
    level_scale,
)
from .vvt import ProcessingActivity, VVTInput, VVTRecord

__all__ = [
    "FACTOR_LABELS",
    "SOCIAL_SCORING_LABEL",
    "AIRiskLevel",
    "DSFARiskLevel",
    "RiskAssessmentInput",
    "RiskAssessmentResult",
    "RiskFactor",
    "RiskLevel",
    "SubjectKind",
    "level_scale",
    "ProcessingActivity",
    "VVTInput",
    "VVTRecord",
]
