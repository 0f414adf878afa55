"""
Integration Tests: Assessment Flow

Runs representative subjects through every surface (engine, MCP tools,
HTTP API, export) and checks that they agree with each other.

Run with:
    pytest tests/integration/ -v
"""

import pytest

from mcp_server.server import classify_risk_impl, generate_vvt_impl, get_required_measures_impl
from risk_engine import RiskClassificationEngine
from shared.models import RiskAssessmentInput

pytestmark = pytest.mark.integration


# =============================================================================
# Expected outcomes
# =============================================================================

EXPECTED = {
    "prohibited": ("unacceptable", 1.0, False),
    "high_risk_hr": ("high", 0.85, True),
    "limited_chatbot": ("limited", 0.45, False),
    "health_records": ("low", 0.30, True),
}


@pytest.mark.parametrize("case", sorted(EXPECTED))
def test_surfaces_agree(case, api_client, sample_subjects):
    """Engine, MCP tool and HTTP endpoint produce the same result."""
    payload = sample_subjects[case]
    level, score, assessment_required = EXPECTED[case]

    engine_result = RiskClassificationEngine().classify(RiskAssessmentInput(**payload))
    tool_result = classify_risk_impl(payload)

    response = api_client.post("/api/v1/risk/classify", json=payload)
    assert response.status_code == 200
    api_result = response.json()["result"]

    assert engine_result.risk_level.value == level
    assert engine_result.risk_score == pytest.approx(score)
    assert engine_result.assessment_required is assessment_required

    assert tool_result == engine_result.model_dump(mode="json")
    assert api_result == tool_result


@pytest.mark.parametrize("case", sorted(EXPECTED))
def test_measures_match_lookup_tool(case, sample_subjects):
    """Measures in a result equal a direct lookup for its level and factors."""
    result = classify_risk_impl(sample_subjects[case])
    if result["prohibited_practice"]:
        factors = []
    else:
        engine = RiskClassificationEngine()
        weights = engine.config.weights_for(result["subject_kind"] == "ai_system")
        labels = set(result["triggered_factors"])
        factors = [factor.value for factor in weights if factor.label in labels]

    lookup = get_required_measures_impl(result["subject_kind"], result["risk_level"], factors)
    assert lookup["required_measures"] == result["required_measures"]
    assert lookup["relevant_articles"] == result["relevant_articles"]
    assert lookup["review_interval_months"] == result["review_interval_months"]


def test_classify_store_export_roundtrip(api_client, sample_subjects):
    """A stored assessment exports with its original input and result."""
    payload = dict(sample_subjects["high_risk_hr"])
    payload.pop("subject_kind")

    created = api_client.post("/api/v1/compliance/ai-risk/classify", json=payload)
    assert created.status_code == 200
    assessment_id = created.json()["assessment_id"]

    exported = api_client.get(f"/api/v1/assessments/{assessment_id}/export/json").json()
    assert exported["assessment_id"] == assessment_id
    assert exported["input"]["subject_name"] == "Applicant Ranking"
    assert exported["result"] == created.json()["result"]

    markdown = api_client.get(f"/api/v1/assessments/{assessment_id}/export/markdown").text
    assert "Hochrisiko-KI-System" in markdown
    assert "CE Marking Required" in markdown
    for measure in exported["result"]["required_measures"]:
        assert measure in markdown


def test_repeated_requests_are_deterministic(api_client, sample_subjects):
    """Classifying the same subject twice yields identical results."""
    payload = sample_subjects["limited_chatbot"]
    first = api_client.post("/api/v1/risk/classify", json=payload).json()
    second = api_client.post("/api/v1/risk/classify", json=payload).json()

    assert first["assessment_id"] != second["assessment_id"]
    assert first["result"] == second["result"]


def test_vvt_surfaces_agree(api_client, vvt_profile):
    """The VVT endpoint and MCP tool generate the same activities."""
    profile = vvt_profile(
        industry="IT Services",
        employee_count=120,
        uses_ai_processing=True,
        has_automated_decision_making=True,
        has_third_country_transfer=True,
    )
    http_record = api_client.post("/api/v1/compliance/vvt/generate", json=profile).json()
    tool_record = generate_vvt_impl(profile)

    def activities(record):
        return [
            (a["name"], a["risk_level"], a["risk_score"], a["dsfa_required"])
            for a in record["processing_activities"]
        ]

    assert activities(http_record) == activities(tool_record)
    assert http_record["compliance_score"] == tool_record["compliance_score"]
    assert http_record["recommendations"] == tool_record["recommendations"]


def test_vvt_activity_matches_direct_classification(vvt_profile):
    """An activity's DSFA verdict equals classifying its factors directly."""
    record = generate_vvt_impl(vvt_profile(uses_ai_processing=True, has_automated_decision_making=True))
    ai_activity = next(
        a for a in record["processing_activities"]
        if a["name"] == "AI-based data processing and machine learning"
    )
    direct = classify_risk_impl({
        "subject_kind": "data_processing_activity",
        "uses_automated_decision_making": True,
        "uses_profiling": True,
        "uses_innovative_technology": True,
    })
    assert ai_activity["risk_level"] == direct["risk_level"]
    assert ai_activity["risk_score"] == direct["risk_score"]
    assert ai_activity["triggered_factors"] == direct["triggered_factors"]
