"""
DTN Compliance FastAPI Application

API server for the GDPR / EU AI Act risk classification engine.
Provides endpoints for:
  - Classifying AI systems and data processing activities
  - Retrieving and exporting stored assessments
  - Inspecting the active factor weights
  - Generating a record of processing activities (VVT)
  - Compliance status and an aggregate report over stored assessments
  - Optional local-model suggestions for an assessment
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from openai import OpenAIError

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from api.assessment_store import AssessmentStore, StoredAssessment
from api.models import (
    AdviceResponse,
    AIRiskRequest,
    AssessmentResponse,
    ComplianceReportResponse,
    DSFARequest,
    ExportFormat,
    FactorTableResponse,
    FactorWeight,
    ReportType,
    StatusResponse,
)
from api.reporting import build_compliance_report
from risk_engine import EngineConfig, InvalidInputError, RiskClassificationEngine, VVTGenerator
from shared.models import RiskAssessmentInput, VVTInput, VVTRecord

# Configure logging
logging.basicConfig(
    level=os.environ.get("DTN_LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("dtn.api")

VERSION = "0.1.0"

engine = RiskClassificationEngine(EngineConfig.from_env())
vvt_generator = VVTGenerator(engine)
assessment_store = AssessmentStore(
    max_entries=int(os.environ.get("DTN_MAX_STORED_ASSESSMENTS", "1000"))
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("Starting DTN compliance API server")
    yield
    logger.info("Shutting down DTN compliance API server")


# Create FastAPI app
app = FastAPI(
    title="DTN Compliance API",
    description="GDPR DSFA and EU AI Act risk classification",
    version=VERSION,
    lifespan=lifespan,
)

# Configure CORS (configurable via environment)
cors_origins = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Classification
# ============================================================================

async def classify_and_store(assessment_input: RiskAssessmentInput) -> AssessmentResponse:
    """Classify synchronously, then hand the result to the store"""
    try:
        result = engine.classify(assessment_input)
    except InvalidInputError as e:
        logger.warning(f"Rejected invalid assessment input: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    stored = await assessment_store.save(assessment_input, result)
    return _to_response(stored)


def _to_response(stored: StoredAssessment) -> AssessmentResponse:
    return AssessmentResponse(
        assessment_id=stored.assessment_id,
        created_at=stored.created_at,
        result=stored.result,
    )


async def _get_stored(assessment_id: str) -> StoredAssessment:
    stored = await assessment_store.get(assessment_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Assessment {assessment_id} not found")
    return stored


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/")
async def root():
    """Service information"""
    return {
        "name": "DTN Compliance API",
        "version": VERSION,
        "docs": "/docs",
    }


@app.post("/api/v1/risk/classify", response_model=AssessmentResponse)
async def classify_risk(request: RiskAssessmentInput):
    """
    Classify an AI system or data processing activity.

    The subject kind is taken from the request body. Returns 400 when the
    input violates an invariant (e.g. a negative affected person count).
    """
    return await classify_and_store(request)


@app.post("/api/v1/compliance/ai-risk/classify", response_model=AssessmentResponse)
async def classify_ai_system(request: AIRiskRequest):
    """
    Classify an AI system on the EU AI Act scale.

    Social scoring by a public authority is a prohibited practice and is
    always classified as UNACCEPTABLE.
    """
    return await classify_and_store(request.to_input())


@app.post("/api/v1/compliance/dsfa/assess", response_model=AssessmentResponse)
async def assess_processing_activity(request: DSFARequest):
    """
    Assess a data processing activity on the DSFA scale.

    Processing of special-category data always requires a formal data
    protection impact assessment.
    """
    return await classify_and_store(request.to_input())


@app.get("/api/v1/risk/factors", response_model=FactorTableResponse)
async def get_factor_table():
    """Get the active factor weights and level thresholds"""
    config = engine.config

    def table(weights) -> list[FactorWeight]:
        return [
            FactorWeight(id=factor.value, label=factor.label, weight=weight)
            for factor, weight in weights.items()
        ]

    return FactorTableResponse(
        ai_system=table(config.ai_weights),
        data_processing_activity=table(config.dsfa_weights),
        thresholds={
            "ai_high": config.ai_high_threshold,
            "ai_limited": config.ai_limited_threshold,
            "dsfa_high": config.dsfa_high_threshold,
            "dsfa_medium": config.dsfa_medium_threshold,
            "dsfa_assessment_required": config.dsfa_assessment_threshold,
            "dsfa_prior_consultation": config.dsfa_prior_consultation_threshold,
        },
        large_scale_threshold=config.large_scale_threshold,
    )


@app.get("/api/v1/assessments/{assessment_id}", response_model=AssessmentResponse)
async def get_assessment(assessment_id: str):
    """Get a stored assessment"""
    return _to_response(await _get_stored(assessment_id))


@app.get("/api/v1/assessments/{assessment_id}/export/{format}")
async def export_assessment(assessment_id: str, format: ExportFormat):
    """
    Export a stored assessment in the specified format.

    Supported formats:
      - json: Full JSON export
      - markdown: Human-readable markdown report
    """
    stored = await _get_stored(assessment_id)
    report = _to_response(stored).model_dump(mode="json")
    report["input"] = stored.assessment_input.model_dump(mode="json")

    if format == ExportFormat.JSON:
        return JSONResponse(
            content=report,
            headers={
                "Content-Disposition": f'attachment; filename="dtn_assessment_{assessment_id[:8]}.json"'
            },
        )

    markdown = generate_markdown_report(report)
    return Response(
        content=markdown,
        media_type="text/markdown",
        headers={
            "Content-Disposition": f'attachment; filename="dtn_assessment_{assessment_id[:8]}.md"'
        },
    )


@app.post("/api/v1/assessments/{assessment_id}/advice", response_model=AdviceResponse)
async def get_advice(assessment_id: str):
    """
    Ask the local model runner for suggestions on a stored assessment.

    Returns 503 when the local model integration is disabled and 502 when
    the model runner fails.
    """
    # Import here so the API runs without the agents being configured
    from agents import AdvisorAgent, AgentConfig

    stored = await _get_stored(assessment_id)

    config = AgentConfig.from_env()
    if not config.enabled:
        raise HTTPException(status_code=503, detail="Local AI integration is disabled")

    agent = AdvisorAgent(config)
    try:
        report = await agent.run(stored.assessment_input)
    except (OpenAIError, ValueError) as e:
        logger.exception(f"Advisor failed for assessment {assessment_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Local model runner failed: {e}")

    return AdviceResponse(
        assessment_id=assessment_id,
        model=report.model,
        recommendations=report.recommendations,
    )


@app.post("/api/v1/compliance/vvt/generate", response_model=VVTRecord)
async def generate_vvt(request: VVTInput):
    """
    Generate a record of processing activities (Art. 30 GDPR).

    Every generated activity is classified on the DSFA scale. The record is
    returned but not stored.
    """
    return vvt_generator.generate(request)


@app.get("/api/v1/compliance/status", response_model=StatusResponse)
async def compliance_status():
    """Service status and supported compliance features"""
    from agents import AgentConfig

    return StatusResponse(
        service="DTN Compliance Engine",
        status="UP",
        version=VERSION,
        timestamp=datetime.now(),
        gdpr_features={
            "vvt_generation": "Art. 30 - record of processing activities",
            "dsfa_assessment": "Art. 35 - data protection impact assessment",
            "prior_consultation": "Art. 36 - supervisory authority consultation",
        },
        eu_ai_act_features={
            "risk_classification": "Risk level classification of AI systems",
            "prohibited_practices": "Art. 5 - prohibited practice check",
            "high_risk_obligations": "CE marking and conformity assessment",
        },
        local_ai_enabled=AgentConfig.from_env().enabled,
    )


@app.get("/api/v1/compliance/report", response_model=ComplianceReportResponse)
async def compliance_report(report_type: ReportType = ReportType.FULL):
    """
    Aggregate report over the stored assessments.

    report_type selects the sections: full, gdpr or ai_act.
    """
    return build_compliance_report(await assessment_store.list_all(), report_type)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "stored_assessments": await assessment_store.count(),
    }


# ============================================================================
# Report Generation Helpers
# ============================================================================

def generate_markdown_report(report: dict[str, Any]) -> str:
    """Generate a markdown report from an exported assessment dict"""
    lines = []
    result = report.get("result", {})
    subject = report.get("input", {})

    # Header
    lines.append("# DTN Risk Assessment")
    lines.append("")
    lines.append(f"**Assessment ID:** {report.get('assessment_id', 'N/A')}")
    lines.append(f"**Created:** {report.get('created_at', 'N/A')}")
    lines.append(f"**Subject:** {subject.get('subject_name') or 'N/A'}")
    lines.append(f"**Kind:** {result.get('subject_kind', 'N/A')}")
    lines.append("")

    # Classification
    lines.append("---")
    lines.append("## Classification")
    lines.append("")
    level = result.get("risk_level", "N/A")
    lines.append(f"### Level: **{level.upper()}** ({result.get('risk_level_label_de', '')})")
    lines.append("")
    lines.append(f"- **Risk Score:** {result.get('risk_score', 0):.2f}")
    lines.append(f"- **Formal Assessment Required:** {'Yes' if result.get('assessment_required') else 'No'}")
    lines.append(f"- **Review Interval:** {result.get('review_interval_months', 'N/A')} months")

    if result.get("prohibited_practice"):
        lines.append("")
        lines.append("⛔ **This system is a PROHIBITED practice under the EU AI Act.**")
    if result.get("ce_marking_required"):
        lines.append("- **CE Marking Required:** Yes")
    if result.get("conformity_assessment_required"):
        lines.append("- **Conformity Assessment Required:** Yes")
    if result.get("transparency_obligations_required"):
        lines.append("- **Transparency Obligations:** Yes")
    if result.get("prior_consultation_required"):
        lines.append("- **Prior Consultation of Supervisory Authority (Art. 36 GDPR):** Yes")
    lines.append("")

    # Factors
    factors = result.get("triggered_factors", [])
    lines.append("### Triggered Risk Factors")
    if factors:
        for factor in factors:
            lines.append(f"- {factor}")
    else:
        lines.append("- none")
    lines.append("")

    # Measures
    measures = result.get("required_measures", [])
    if measures:
        lines.append("---")
        lines.append("## Required Measures")
        lines.append("")
        for i, measure in enumerate(measures, start=1):
            lines.append(f"{i}. {measure}")
        lines.append("")

    # Articles
    articles = result.get("relevant_articles", [])
    if articles:
        lines.append("## Relevant Articles")
        lines.append("")
        for article in articles:
            lines.append(f"- {article}")
        lines.append("")

    # Footer
    lines.append("---")
    lines.append("*Generated by DTN Compliance - weights and thresholds are illustrative, not legal advice*")

    return "\n".join(lines)


# ============================================================================
# Entry Point
# ============================================================================

def main():
    """Run the API server"""
    import uvicorn

    host = os.environ.get("DTN_HOST", "0.0.0.0")
    port = int(os.environ.get("DTN_PORT", "8000"))

    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
