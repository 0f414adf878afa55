"""
DTN Compliance Test Configuration

Shared pytest fixtures and configuration for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


# =============================================================================
# Environment Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (exercises several layers)"
    )


@pytest.fixture(scope="session")
def project_root_path():
    """Return the project root path."""
    return project_root


# =============================================================================
# Fixtures: Engine
# =============================================================================

@pytest.fixture
def engine():
    """Engine with the default weight table."""
    from risk_engine import RiskClassificationEngine
    return RiskClassificationEngine()


@pytest.fixture
def ai_input():
    """Factory for AI system inputs; every factor off unless overridden."""
    from shared.models import RiskAssessmentInput, SubjectKind

    def make(**overrides):
        fields = {
            "subject_kind": SubjectKind.AI_SYSTEM,
            "uses_automated_decision_making": False,
            "uses_profiling": False,
            "involves_special_category_data": False,
            "is_large_scale": False,
            "uses_innovative_technology": False,
            "affected_person_count": 100,
            "is_social_scoring_by_public_authority": False,
            "has_human_oversight": True,
        }
        fields.update(overrides)
        return RiskAssessmentInput(**fields)

    return make


@pytest.fixture
def dsfa_input():
    """Factory for data processing activity inputs; every factor off unless overridden."""
    from shared.models import RiskAssessmentInput, SubjectKind

    def make(**overrides):
        fields = {
            "subject_kind": SubjectKind.DATA_PROCESSING_ACTIVITY,
            "uses_automated_decision_making": False,
            "uses_profiling": False,
            "involves_special_category_data": False,
            "is_large_scale": False,
            "uses_innovative_technology": False,
            "affected_person_count": 100,
        }
        fields.update(overrides)
        return RiskAssessmentInput(**fields)

    return make


# =============================================================================
# Fixtures: API
# =============================================================================

@pytest.fixture
def api_client():
    """Create FastAPI test client."""
    from fastapi.testclient import TestClient
    from api.main import app
    return TestClient(app)


# =============================================================================
# Fixtures: Test Data
# =============================================================================

@pytest.fixture
def sample_subjects():
    """Example subjects covering each outcome, as request payloads."""
    return {
        "prohibited": {
            "subject_kind": "ai_system",
            "subject_name": "Citizen Trust Score",
            "is_social_scoring_by_public_authority": True,
            "affected_person_count": 5_000_000,
        },
        "high_risk_hr": {
            "subject_kind": "ai_system",
            "subject_name": "Applicant Ranking",
            "uses_automated_decision_making": True,
            "involves_special_category_data": True,
            "is_large_scale": True,
            "has_human_oversight": False,
            "affected_person_count": 50_000,
        },
        "limited_chatbot": {
            "subject_kind": "ai_system",
            "subject_name": "Support Chatbot",
            "uses_automated_decision_making": True,
            "uses_profiling": True,
            "affected_person_count": 2_000,
        },
        "health_records": {
            "subject_kind": "data_processing_activity",
            "subject_name": "Patient Record Keeping",
            "involves_special_category_data": True,
            "affected_person_count": 800,
        },
    }


@pytest.fixture
def vvt_profile():
    """Factory for company profiles; a small retailer unless overridden."""

    def make(**overrides):
        fields = {
            "company_name": "Musterhandel GmbH",
            "industry": "Retail",
            "employee_count": 10,
            "data_categories": ["customer data", "employee data"],
        }
        fields.update(overrides)
        return fields

    return make
