"""
DTN Compliance Web API Package

FastAPI-based web interface for the risk classification engine.

Usage:
    # Start the server
    uvicorn api.main:app --reload

    # Or via entry point
    dtn-api
"""

from api.main import app, assessment_store, engine
from api.assessment_store import AssessmentStore, StoredAssessment
from api.models import (
    AdviceResponse,
    AIRiskRequest,
    AssessmentResponse,
    DSFARequest,
    ExportFormat,
    FactorTableResponse,
    FactorWeight,
    SubjectRequest,
)

__all__ = [
    "app",
    "assessment_store",
    "engine",
    "AssessmentStore",
    "StoredAssessment",
    "AdviceResponse",
    "AIRiskRequest",
    "AssessmentResponse",
    "DSFARequest",
    "ExportFormat",
    "FactorTableResponse",
    "FactorWeight",
    "SubjectRequest",
]
