"""
Compliance Report Aggregation

Summarises the stored assessments for GET /api/v1/compliance/report. Only
results already computed by the engine are counted; nothing is
re-classified here.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Iterable

from api.assessment_store import StoredAssessment
from api.models import AIActSummary, ComplianceReportResponse, GDPRSummary, ReportType
from shared.models import AIRiskLevel, DSFARiskLevel, SubjectKind

logger = logging.getLogger(__name__)


def _count_levels(results, levels) -> dict[str, int]:
    counts = Counter(result.risk_level.value for result in results)
    # Every level is listed, in ascending order, even when zero
    return {level.value: counts.get(level.value, 0) for level in levels}


def summarize_ai_act(results: list) -> AIActSummary:
    return AIActSummary(
        total=len(results),
        by_level=_count_levels(results, AIRiskLevel),
        assessments_required=sum(1 for r in results if r.assessment_required),
        prohibited_practices=sum(1 for r in results if r.prohibited_practice),
        ce_marking_required=sum(1 for r in results if r.ce_marking_required),
        transparency_obligations=sum(1 for r in results if r.transparency_obligations_required),
    )


def summarize_gdpr(results: list) -> GDPRSummary:
    return GDPRSummary(
        total=len(results),
        by_level=_count_levels(results, DSFARiskLevel),
        assessments_required=sum(1 for r in results if r.assessment_required),
        prior_consultations_required=sum(1 for r in results if r.prior_consultation_required),
    )


def build_compliance_report(
    assessments: Iterable[StoredAssessment],
    report_type: ReportType = ReportType.FULL,
) -> ComplianceReportResponse:
    """
    Aggregate stored assessments into a compliance report.

    A GDPR report leaves out the AI Act section and vice versa;
    total_assessments always counts the subjects in the included sections.
    """
    ai_results = []
    dsfa_results = []
    for stored in assessments:
        if stored.result.subject_kind == SubjectKind.AI_SYSTEM:
            ai_results.append(stored.result)
        else:
            dsfa_results.append(stored.result)

    include_gdpr = report_type in (ReportType.FULL, ReportType.GDPR)
    include_ai_act = report_type in (ReportType.FULL, ReportType.AI_ACT)

    total = (len(dsfa_results) if include_gdpr else 0) + (len(ai_results) if include_ai_act else 0)
    logger.info(f"Building {report_type.value} compliance report over {total} assessments")

    return ComplianceReportResponse(
        report_type=report_type,
        generated_at=datetime.now(),
        total_assessments=total,
        gdpr=summarize_gdpr(dsfa_results) if include_gdpr else None,
        ai_act=summarize_ai_act(ai_results) if include_ai_act else None,
    )
