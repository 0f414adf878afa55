"""
API Request/Response Models

Pydantic models for the FastAPI endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from pydantic import BaseModel, Field

from shared.models import RiskAssessmentInput, RiskAssessmentResult, SubjectKind


class SubjectRequest(BaseModel):
    """Risk factors shared by the AI system and DSFA endpoints"""

    subject_kind: ClassVar[SubjectKind]

    subject_name: Optional[str] = Field(
        None,
        max_length=200,
        description="Name of the AI system or processing activity"
    )
    uses_automated_decision_making: bool = False
    uses_profiling: bool = False
    involves_special_category_data: bool = False
    is_large_scale: bool = False
    uses_innovative_technology: bool = False
    affected_person_count: int = Field(
        0,
        description="Number of affected persons (must not be negative)"
    )

    def to_input(self) -> RiskAssessmentInput:
        """Build the engine input for this endpoint's subject kind"""
        return RiskAssessmentInput(subject_kind=self.subject_kind, **self.model_dump())


class AIRiskRequest(SubjectRequest):
    """Request model for POST /api/v1/compliance/ai-risk/classify"""

    subject_kind: ClassVar[SubjectKind] = SubjectKind.AI_SYSTEM

    is_social_scoring_by_public_authority: bool = False
    has_human_oversight: bool = True


class DSFARequest(SubjectRequest):
    """Request model for POST /api/v1/compliance/dsfa/assess"""

    subject_kind: ClassVar[SubjectKind] = SubjectKind.DATA_PROCESSING_ACTIVITY


class AssessmentResponse(BaseModel):
    """Response model for classification and stored assessment endpoints"""

    assessment_id: str
    created_at: datetime
    result: RiskAssessmentResult


class FactorWeight(BaseModel):
    """A single risk factor and its weight"""

    id: str
    label: str
    weight: float


class FactorTableResponse(BaseModel):
    """Response model for GET /api/v1/risk/factors"""

    ai_system: list[FactorWeight]
    data_processing_activity: list[FactorWeight]
    thresholds: dict[str, float]
    large_scale_threshold: int


class AdviceResponse(BaseModel):
    """Response model for POST /api/v1/assessments/{assessment_id}/advice"""

    assessment_id: str
    model: str
    recommendations: list[str]


class ExportFormat(str, Enum):
    """Supported export formats"""
    JSON = "json"
    MARKDOWN = "markdown"


class ReportType(str, Enum):
    """Scope of the compliance report"""
    FULL = "full"
    GDPR = "gdpr"
    AI_ACT = "ai_act"


class LevelBreakdown(BaseModel):
    """Stored assessments of one subject kind, counted per risk level"""

    total: int = 0
    by_level: dict[str, int] = Field(default_factory=dict)
    assessments_required: int = 0


class AIActSummary(LevelBreakdown):
    """EU AI Act section of the compliance report"""

    prohibited_practices: int = 0
    ce_marking_required: int = 0
    transparency_obligations: int = 0


class GDPRSummary(LevelBreakdown):
    """GDPR DSFA section of the compliance report"""

    prior_consultations_required: int = 0


class ComplianceReportResponse(BaseModel):
    """Response model for GET /api/v1/compliance/report"""

    report_type: ReportType
    generated_at: datetime
    total_assessments: int
    gdpr: Optional[GDPRSummary] = None
    ai_act: Optional[AIActSummary] = None


class StatusResponse(BaseModel):
    """Response model for GET /api/v1/compliance/status"""

    service: str
    status: str
    version: str
    timestamp: datetime
    gdpr_features: dict[str, str]
    eu_ai_act_features: dict[str, str]
    local_ai_enabled: bool
