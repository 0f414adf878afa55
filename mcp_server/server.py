"""
DTN Compliance MCP Server

This is the Model Context Protocol server that exposes the Risk
Classification Engine to agents and MCP clients.

TOOLS:
  1. classify_risk - Classify an AI system or data processing activity
  2. get_required_measures - Remediation measures for a risk level
  3. get_factor_weights - Active factor weights and thresholds
  4. generate_vvt - Record of processing activities for a company profile

The server is a thin wrapper: each tool delegates to an `_impl` function
which in turn calls the engine. No state is kept between calls.

Usage:
    # Run as MCP server
    python -m mcp_server.server

    # Or import for testing
    from mcp_server.server import mcp
"""

import logging
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import ValidationError

from risk_engine import EngineConfig, InvalidInputError, RiskClassificationEngine, VVTGenerator
from risk_engine import measures
from shared.models import RiskFactor, SubjectKind, VVTInput, level_scale

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Create FastMCP server
mcp = FastMCP(
    name="dtn-compliance",
    instructions="DTN Compliance Server - EU AI Act and GDPR DSFA risk classification",
)

_engine: Optional[RiskClassificationEngine] = None


def get_engine() -> RiskClassificationEngine:
    """Get the engine instance used by the tools (created on first use)."""
    global _engine
    if _engine is None:
        config = EngineConfig.from_env()
        logger.info(
            f"Creating risk classification engine "
            f"(large-scale threshold: {config.large_scale_threshold})"
        )
        _engine = RiskClassificationEngine(config)
    return _engine


def _parse_kind(subject_kind: str) -> SubjectKind:
    try:
        return SubjectKind(subject_kind)
    except ValueError:
        raise InvalidInputError(
            f"Unrecognized subject kind: {subject_kind!r}", field="subject_kind"
        ) from None


# =============================================================================
# Tool 1: classify_risk
# =============================================================================

def classify_risk_impl(assessment: Dict[str, Any]) -> Dict[str, Any]:
    """
    Classify an AI system or a data processing activity.

    Args:
        assessment: Dictionary with the RiskAssessmentInput fields:
            - subject_kind: "ai_system" | "data_processing_activity"
            - uses_automated_decision_making: bool
            - uses_profiling: bool
            - involves_special_category_data: bool
            - is_large_scale: bool
            - uses_innovative_technology: bool
            - affected_person_count: int (>= 0)
            - is_social_scoring_by_public_authority: bool
            - has_human_oversight: bool

    Returns:
        The RiskAssessmentResult as a JSON-compatible dictionary

    Raises:
        InvalidInputError: if the assessment violates input invariants
    """
    result = get_engine().classify(assessment)
    return result.model_dump(mode="json")


@mcp.tool()
def classify_risk(assessment: Dict[str, Any]) -> Dict[str, Any]:
    """Classify an AI system or data processing activity by its risk factors."""
    return classify_risk_impl(assessment)


# =============================================================================
# Tool 2: get_required_measures
# =============================================================================

def get_required_measures_impl(
    subject_kind: str,
    risk_level: str,
    factors: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Look up remediation measures for a risk level.

    Args:
        subject_kind: "ai_system" | "data_processing_activity"
        risk_level: Level on the subject kind's scale
        factors: Optional risk factor ids (e.g. "profiling") whose
            measures are appended

    Returns:
        Dictionary with measures, relevant articles and review interval
    """
    kind = _parse_kind(subject_kind)
    try:
        level = level_scale(kind)(risk_level)
    except ValueError:
        raise InvalidInputError(
            f"Risk level {risk_level!r} is not on the {kind.value} scale", field="risk_level"
        ) from None
    try:
        parsed_factors = [RiskFactor(f) for f in factors or []]
    except ValueError as e:
        raise InvalidInputError(str(e), field="factors") from None

    return {
        "subject_kind": kind.value,
        "risk_level": level.value,
        "required_measures": list(measures.required_measures(kind, level, parsed_factors)),
        "relevant_articles": list(measures.RELEVANT_ARTICLES[(kind, level)]),
        "review_interval_months": measures.REVIEW_INTERVAL_MONTHS[(kind, level)],
    }


@mcp.tool()
def get_required_measures(
    subject_kind: str,
    risk_level: str,
    factors: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Get remediation measures for a subject kind and risk level."""
    return get_required_measures_impl(subject_kind, risk_level, factors)


# =============================================================================
# Tool 3: get_factor_weights
# =============================================================================

def get_factor_weights_impl(subject_kind: str) -> Dict[str, Any]:
    """
    Describe the active weight table and thresholds.

    Args:
        subject_kind: "ai_system" | "data_processing_activity"

    Returns:
        Dictionary with factors (id, label, weight) in evaluation order and
        the level thresholds
    """
    kind = _parse_kind(subject_kind)
    config = get_engine().config
    ai_system = kind == SubjectKind.AI_SYSTEM

    factors = [
        {"id": factor.value, "label": factor.label, "weight": weight}
        for factor, weight in config.weights_for(ai_system).items()
    ]

    if ai_system:
        thresholds = {
            "high": config.ai_high_threshold,
            "limited": config.ai_limited_threshold,
        }
    else:
        thresholds = {
            "high": config.dsfa_high_threshold,
            "medium": config.dsfa_medium_threshold,
            "assessment_required": config.dsfa_assessment_threshold,
            "prior_consultation": config.dsfa_prior_consultation_threshold,
        }

    return {
        "subject_kind": kind.value,
        "factors": factors,
        "thresholds": thresholds,
        "large_scale_threshold": config.large_scale_threshold,
    }


@mcp.tool()
def get_factor_weights(subject_kind: str) -> Dict[str, Any]:
    """Get the risk factor weights and level thresholds in use."""
    return get_factor_weights_impl(subject_kind)


# =============================================================================
# Tool 4: generate_vvt
# =============================================================================

def generate_vvt_impl(profile: Dict[str, Any]) -> Dict[str, Any]:
    """
    Generate a record of processing activities (Art. 30 GDPR).

    Args:
        profile: Dictionary with the VVTInput fields (company_name, industry,
            employee_count, data_categories and the optional flags)

    Returns:
        The VVTRecord as a JSON-compatible dictionary

    Raises:
        InvalidInputError: if the profile is incomplete or out of range
    """
    try:
        vvt_input = VVTInput.model_validate(profile)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise InvalidInputError(f"Invalid company profile: {error['msg']}", field=field) from None

    record = VVTGenerator(get_engine()).generate(vvt_input)
    return record.model_dump(mode="json")


@mcp.tool()
def generate_vvt(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Generate a record of processing activities for a company profile."""
    return generate_vvt_impl(profile)


def main():
    """Run the MCP server over stdio"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    mcp.run()


if __name__ == "__main__":
    main()
