"""
Unit Tests for the Record of Processing Activities Generator

Covers:
- Template selection by industry, size, technology and compliance flags
- DSFA classification of each activity through the engine
- Completeness score and recommendations
- VVTInput validation
"""

import os
import sys

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from risk_engine import EngineConfig, RiskClassificationEngine, VVTGenerator
from risk_engine.vvt import (
    activity_completeness,
    compliance_score,
    has_valid_legal_basis,
    is_software_industry,
)
from shared.models import DSFARiskLevel, ProcessingActivity, RiskFactor, VVTInput

EMPLOYEE_DATA = "Employee data management"
WEBSITE = "Website operation and online marketing"
IT_SECURITY = "IT security and system monitoring"
AI_PROCESSING = "AI-based data processing and machine learning"
CLOUD = "Cloud services and international data transfers"


@pytest.fixture
def generate(vvt_profile):
    """Generate a record from profile overrides with the default engine."""

    def run(**overrides):
        return VVTGenerator().generate(VVTInput(**vvt_profile(**overrides)))

    return run


def _names(record):
    return [activity.name for activity in record.processing_activities]


# =============================================================================
# Template selection
# =============================================================================

class TestTemplateSelection:
    """Tests for which activities end up in the record."""

    def test_small_retailer_gets_standard_activities(self, generate):
        record = generate()
        assert _names(record) == [EMPLOYEE_DATA, IT_SECURITY, WEBSITE]
        assert record.total_activities == 3
        assert record.company_name == "Musterhandel GmbH"
        assert record.data_categories == ("customer data", "employee data")

    def test_activities_sorted_and_unique(self, generate):
        record = generate(
            industry="Software Consulting",
            employee_count=300,
            uses_ai_processing=True,
            has_third_country_transfer=True,
            has_data_protection_officer=True,
            has_works_council=True,
        )
        names = _names(record)
        assert names == sorted(names)
        assert len(names) == len(set(names)) == record.total_activities == 12

    def test_no_employee_data(self, generate):
        assert EMPLOYEE_DATA not in _names(generate(has_employee_data=False))

    def test_software_industry(self, generate):
        names = _names(generate(industry="Software Development"))
        assert "Software development and code management" in names
        assert "Customer data and project management" in names

    def test_software_without_customer_data(self, generate):
        names = _names(generate(industry="Software Development", has_customer_data=False))
        assert "Customer data and project management" not in names

    @pytest.mark.parametrize("industry,expected", [
        ("Software Development", True),
        ("IT Services", True),
        ("it-consulting", True),
        ("Retail", False),
        ("Hospitality", False),
        ("Digital Marketing", False),
    ])
    def test_software_industry_matching(self, industry, expected):
        assert is_software_industry(industry) is expected

    @pytest.mark.parametrize("industry", ["Management Consulting", "Unternehmensberatung"])
    def test_consulting_industry(self, generate, industry):
        assert "Consulting and knowledge management" in _names(generate(industry=industry))

    @pytest.mark.parametrize("employees,compliance,erp", [
        (49, False, False),
        (50, True, False),
        (249, True, False),
        (250, True, True),
    ])
    def test_size_activities(self, generate, employees, compliance, erp):
        names = _names(generate(employee_count=employees))
        assert ("Compliance and audit management" in names) is compliance
        assert ("Enterprise resource planning (ERP)" in names) is erp

    def test_compliance_flags(self, generate):
        names = _names(generate(has_data_protection_officer=True, has_works_council=True))
        assert "Data protection officer activities" in names
        assert "Works council and co-determination" in names


# =============================================================================
# DSFA classification
# =============================================================================

class TestActivityClassification:
    """Tests for the engine verdict on each activity."""

    def test_standard_activities_are_low(self, generate):
        record = generate()
        assert all(a.risk_level == DSFARiskLevel.LOW for a in record.processing_activities)
        assert record.dsfa_required_count == 0
        assert record.high_risk_count == 0

    def test_website_profiling_is_reported(self, generate):
        website = generate().get_activity(WEBSITE)
        assert website.triggered_factors == ("profiling",)
        assert website.risk_score == pytest.approx(0.20)
        assert website.third_country_transfer is True

    def test_special_categories_require_dsfa_for_employee_data(self, generate):
        employee = generate(has_special_categories=True).get_activity(EMPLOYEE_DATA)
        assert employee.risk_level == DSFARiskLevel.LOW
        assert employee.dsfa_required is True
        assert "special-category data" in employee.triggered_factors

    def test_large_workforce_is_large_scale(self, generate):
        employee = generate(employee_count=20_000).get_activity(EMPLOYEE_DATA)
        assert "large-scale processing" in employee.triggered_factors

    def test_ai_processing_without_automated_decisions(self, generate):
        ai = generate(uses_ai_processing=True).get_activity(AI_PROCESSING)
        assert ai.triggered_factors == ("profiling", "innovative technology")
        assert ai.risk_level == DSFARiskLevel.LOW
        assert ai.dsfa_required is False

    def test_ai_processing_with_automated_decisions(self, generate):
        ai = generate(
            uses_ai_processing=True, has_automated_decision_making=True
        ).get_activity(AI_PROCESSING)
        assert ai.risk_score == pytest.approx(0.55)
        assert ai.risk_level == DSFARiskLevel.MEDIUM
        assert ai.dsfa_required is True

    def test_ai_processing_with_special_data_is_high(self, generate):
        record = generate(
            uses_ai_processing=True,
            has_automated_decision_making=True,
            has_special_categories=True,
        )
        assert record.get_activity(AI_PROCESSING).risk_level == DSFARiskLevel.HIGH
        assert record.high_risk_count == 1
        assert record.dsfa_required_count == 2

    @pytest.mark.parametrize("flag", ["has_systematic_monitoring", "has_vulnerable_groups"])
    def test_ai_processing_dsfa_forced(self, generate, flag):
        ai = generate(uses_ai_processing=True, **{flag: True}).get_activity(AI_PROCESSING)
        assert ai.risk_level == DSFARiskLevel.LOW
        assert ai.dsfa_required is True

    def test_systematic_monitoring_requires_dsfa_for_it_security(self, generate):
        it_security = generate(has_systematic_monitoring=True).get_activity(IT_SECURITY)
        assert it_security.risk_level == DSFARiskLevel.LOW
        assert it_security.dsfa_required is True

    def test_cloud_transfer_always_requires_dsfa(self, generate):
        record = generate(has_third_country_transfer=True)
        cloud = record.get_activity(CLOUD)
        assert cloud.dsfa_required is True
        assert cloud.third_country_transfer is True
        assert record.third_country_transfer_count == 2

    def test_custom_engine_is_used(self, vvt_profile):
        engine = RiskClassificationEngine(EngineConfig(dsfa_weights={RiskFactor.PROFILING: 0.9}))
        record = VVTGenerator(engine).generate(VVTInput(**vvt_profile()))
        website = record.get_activity(WEBSITE)
        assert website.risk_level == DSFARiskLevel.HIGH
        assert website.dsfa_required is True
        assert record.high_risk_count == 1


# =============================================================================
# Completeness score
# =============================================================================

def _activity(**overrides):
    fields = {
        "name": "Test activity",
        "purpose": "",
        "data_subject_categories": (),
        "data_categories": (),
        "retention_period": "",
        "legal_basis": "",
        "risk_level": DSFARiskLevel.LOW,
        "risk_score": 0.0,
    }
    fields.update(overrides)
    return ProcessingActivity(**fields)


class TestComplianceScore:
    """Tests for the Art. 30 completeness score."""

    def test_small_retailer_score(self, generate):
        # 98 + 100 (third-country transfer with SCC note) + 98
        assert generate().compliance_score == 98.7

    def test_empty_activity_scores_name_and_level(self):
        assert activity_completeness(_activity()) == 12

    def test_blank_entries_do_not_count(self):
        activity = _activity(data_categories=(" ",), technical_measures=("",))
        assert activity_completeness(activity) == 12

    def test_transfer_without_safeguard_note(self):
        with_note = _activity(third_country_transfer=True, comments="SCCs in place")
        without_note = _activity(third_country_transfer=True)
        assert activity_completeness(with_note) - activity_completeness(without_note) == 2

    def test_no_activities(self):
        assert compliance_score([]) == 0.0

    @pytest.mark.parametrize("legal_basis,expected", [
        ("Art. 6(1)(b) GDPR (contract)", True),
        ("§ 26 BDSG", True),
        ("Consent of the data subject", True),
        ("internal policy", False),
    ])
    def test_legal_basis(self, legal_basis, expected):
        assert has_valid_legal_basis(legal_basis) is expected


# =============================================================================
# Recommendations
# =============================================================================

class TestRecommendations:
    """Tests for the generated recommendations."""

    def test_small_retailer(self, generate):
        assert generate().recommendations == (
            "Verify adequacy decisions or standard contractual clauses for 1 third-country transfers",
            "Review the record of processing activities every 6 months",
            "Train staff on the documented processing activities",
        )

    def test_dpo_recommended_from_twenty_employees(self, generate):
        assert "Appoint a data protection officer (§ 38 BDSG)" in generate(employee_count=20).recommendations
        assert "Appoint a data protection officer (§ 38 BDSG)" not in generate(
            employee_count=20, has_data_protection_officer=True
        ).recommendations

    def test_ai_and_transfer_recommendations(self, generate):
        recommendations = generate(
            uses_ai_processing=True,
            has_automated_decision_making=True,
            has_third_country_transfer=True,
        ).recommendations
        assert "Classify every AI system under the EU AI Act" in recommendations
        assert "Perform a transfer impact assessment (TIA) for all third-country transfers" in recommendations
        assert (
            "Conduct a data protection impact assessment (DSFA) for 2 processing activities"
            in recommendations
        )

    def test_software_recommendation(self, generate):
        recommendations = generate(industry="IT Services").recommendations
        assert recommendations[-1] == "Integrate privacy by design into all development processes"

    def test_no_duplicates(self, generate):
        recommendations = generate(industry="Software", uses_ai_processing=True).recommendations
        assert len(recommendations) == len(set(recommendations))


# =============================================================================
# Input validation
# =============================================================================

class TestVVTInput:
    """Tests for VVTInput validation."""

    @pytest.mark.parametrize("overrides", [
        {"company_name": "A"},
        {"company_name": "   "},
        {"employee_count": 0},
        {"employee_count": 50_001},
        {"data_categories": []},
        {"data_categories": ["customer data", " "]},
        {"data_categories": [f"category {i}" for i in range(21)]},
        {"additional_info": "x" * 1001},
    ])
    def test_rejected(self, vvt_profile, overrides):
        with pytest.raises(ValidationError):
            VVTInput(**vvt_profile(**overrides))

    def test_defaults(self, vvt_profile):
        profile = VVTInput(**vvt_profile())
        assert profile.has_customer_data is True
        assert profile.has_employee_data is True
        assert profile.uses_ai_processing is False

    def test_values_are_stripped(self, vvt_profile):
        profile = VVTInput(**vvt_profile(company_name="  Beispiel AG ", data_categories=[" health "]))
        assert profile.company_name == "Beispiel AG"
        assert profile.data_categories == ("health",)

    def test_immutable(self, vvt_profile):
        profile = VVTInput(**vvt_profile())
        with pytest.raises(ValidationError):
            profile.employee_count = 500
