"""
Pydantic Models for the Record of Processing Activities

The record of processing activities (Verzeichnis von Verarbeitungstätigkeiten,
VVT, Art. 30 GDPR) is generated from a short company profile. Every generated
activity is classified on the DSFA scale by the Risk Classification Engine.

  - VVTInput: company profile supplied by the caller
  - ProcessingActivity: one entry of the record
  - VVTRecord: the generated record with summary counts
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .risk import DSFARiskLevel


class VVTInput(BaseModel):
    """Company profile used to derive the processing activities."""

    model_config = ConfigDict(frozen=True)

    company_name: str = Field(min_length=2, max_length=200)
    industry: str = Field(
        min_length=2,
        max_length=100,
        description="Industry or line of business, e.g. 'Software Development'.",
    )
    employee_count: int = Field(ge=1, le=50_000, description="Full-time equivalents.")
    data_categories: Tuple[str, ...] = Field(
        min_length=1,
        max_length=20,
        description="Categories of personal data processed by the company.",
    )

    has_customer_data: bool = True
    has_employee_data: bool = True
    uses_ai_processing: bool = False
    has_special_categories: bool = Field(
        default=False, description="Art. 9 GDPR special categories of personal data."
    )
    has_third_country_transfer: bool = False
    has_automated_decision_making: bool = False
    has_vulnerable_groups: bool = Field(
        default=False, description="Data of vulnerable persons such as minors."
    )
    has_systematic_monitoring: bool = False
    has_data_protection_officer: bool = False
    has_works_council: bool = False

    additional_info: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("company_name", "industry")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("data_categories")
    @classmethod
    def _categories_not_blank(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not category.strip() for category in value):
            raise ValueError("data categories must not be blank")
        return tuple(category.strip() for category in value)


class ProcessingActivity(BaseModel):
    """A single entry of the record of processing activities."""

    model_config = ConfigDict(frozen=True)

    name: str
    purpose: str
    data_subject_categories: Tuple[str, ...]
    data_categories: Tuple[str, ...]
    recipients: Tuple[str, ...] = ()
    third_country_transfer: bool = False
    retention_period: str
    legal_basis: str
    technical_measures: Tuple[str, ...] = ()
    organizational_measures: Tuple[str, ...] = ()

    risk_level: DSFARiskLevel
    risk_score: float = Field(ge=0.0, le=1.0)
    dsfa_required: bool = False
    triggered_factors: Tuple[str, ...] = ()
    comments: Optional[str] = None


class VVTRecord(BaseModel):
    """A generated record of processing activities."""

    model_config = ConfigDict(frozen=True)

    company_name: str
    industry: str
    generated_at: datetime = Field(default_factory=datetime.now)
    data_categories: Tuple[str, ...]
    processing_activities: Tuple[ProcessingActivity, ...]

    total_activities: int
    compliance_score: float = Field(
        ge=0.0,
        le=100.0,
        description="Completeness of the Art. 30 GDPR fields, in percent.",
    )
    dsfa_required_count: int
    high_risk_count: int
    third_country_transfer_count: int
    recommendations: Tuple[str, ...] = ()

    def get_activity(self, name: str) -> Optional[ProcessingActivity]:
        """Look up an activity by name."""
        for activity in self.processing_activities:
            if activity.name == name:
                return activity
        return None
