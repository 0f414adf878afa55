"""
Record of Processing Activities Generator

Builds a VVT (Verzeichnis von Verarbeitungstätigkeiten, Art. 30 GDPR) from a
company profile. Activities come from fixed templates selected in five
groups:

  1. Standard: every company (employee data, website, IT security)
  2. Industry: software/IT and consulting
  3. Size: 50+ and 250+ employees
  4. Technology: AI processing, third-country cloud services
  5. Compliance: data protection officer, works council

Each activity is classified on the DSFA scale by the Risk Classification
Engine. A template may require a DSFA on top of the engine's verdict, e.g.
for systematic monitoring, which is listed in Art. 35(3)(c) GDPR but is not
a weighted factor.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from risk_engine.classifier import RiskClassificationEngine, default_engine
from shared.models import (
    DSFARiskLevel,
    ProcessingActivity,
    RiskAssessmentInput,
    SubjectKind,
    VVTInput,
    VVTRecord,
)

logger = logging.getLogger(__name__)

# Completeness points per activity (Art. 30(1) GDPR fields, then quality)
REQUIRED_FIELD_POINTS = 10
MEASURE_POINTS = 15
RECIPIENT_POINTS = 3
LEGAL_BASIS_POINTS = 3
TRANSFER_SAFEGUARD_POINTS = 2
RISK_LEVEL_POINTS = 2

LEGAL_BASIS_MARKERS = (
    "art. 6",
    "art. 9",
    "bdsg",
    "consent",
    "contract",
    "legal obligation",
    "legitimate interest",
)
TRANSFER_SAFEGUARD_MARKERS = ("scc", "adequacy")

DPO_EMPLOYEE_THRESHOLD = 20
COMPLIANCE_ACTIVITY_EMPLOYEES = 50
ERP_ACTIVITY_EMPLOYEES = 250


@dataclass(frozen=True)
class ActivityTemplate:
    """Descriptive fields of an activity plus the factors fed to the engine."""

    name: str
    purpose: str
    data_subject_categories: tuple[str, ...]
    data_categories: tuple[str, ...]
    recipients: tuple[str, ...]
    retention_period: str
    legal_basis: str
    technical_measures: tuple[str, ...]
    organizational_measures: tuple[str, ...]
    third_country_transfer: bool = False
    comments: Optional[str] = None
    factors: dict[str, Any] = field(default_factory=dict)
    force_dsfa: bool = False


# ============================================================================
# Templates
# ============================================================================

def standard_activities(profile: VVTInput) -> list[ActivityTemplate]:
    activities = []

    if profile.has_employee_data:
        activities.append(ActivityTemplate(
            name="Employee data management",
            purpose="HR administration, payroll, social security, employment contracts",
            data_subject_categories=("employees", "applicants", "interns", "trainees", "freelancers"),
            data_categories=("master data", "salary data", "working time records",
                             "application documents", "performance reviews", "training records"),
            recipients=("payroll accounting", "social security institutions", "tax office"),
            retention_period="10 years after the end of employment (tax retention)",
            legal_basis="Art. 6(1)(b), (c) GDPR (contract, legal obligation), § 26 BDSG",
            technical_measures=("AES-256 encryption", "role-based access control",
                                "automated backups", "audit logging"),
            organizational_measures=("data protection training", "authorisation concept",
                                     "incident response plan", "clean desk policy"),
            comments="Central HR processing under German employment law",
            factors={
                "involves_special_category_data": profile.has_special_categories,
                "affected_person_count": profile.employee_count,
            },
        ))

    activities.append(ActivityTemplate(
        name="Website operation and online marketing",
        purpose="Company presentation, lead generation, newsletter, search engine optimisation",
        data_subject_categories=("website visitors", "newsletter subscribers", "prospects"),
        data_categories=("IP address", "browser data", "e-mail address", "usage behaviour",
                         "cookie data", "contact form entries"),
        recipients=("hosting provider", "CDN provider", "analytics provider", "newsletter service"),
        retention_period="2 years for analytics data, until withdrawal for the newsletter, 6 months for log files",
        legal_basis="Art. 6(1)(a) GDPR (consent), Art. 6(1)(f) GDPR (legitimate interest)",
        technical_measures=("consent management", "IP anonymisation", "TLS encryption",
                            "opt-out mechanisms"),
        organizational_measures=("privacy policy", "cookie policy", "data processing agreements"),
        third_country_transfer=True,
        comments="Third-country transfer to analytics providers: check adequacy decision or SCCs",
        factors={"uses_profiling": True},
    ))

    activities.append(ActivityTemplate(
        name="IT security and system monitoring",
        purpose="System security, network monitoring, incident response",
        data_subject_categories=("employees", "system users", "administrators", "external service providers"),
        data_categories=("log data", "IP addresses", "access data", "system events", "security events"),
        recipients=("IT service provider", "security provider", "hosting provider"),
        retention_period="1 year for standard logs, 3 years for security incidents",
        legal_basis="Art. 6(1)(f) GDPR (legitimate interest in IT security)",
        technical_measures=("log encryption", "SIEM", "intrusion detection", "anomaly detection"),
        organizational_measures=("IT security policy", "incident response procedure",
                                 "access management", "regular security assessments"),
        comments="Baseline IT security required for every company",
        force_dsfa=profile.has_systematic_monitoring,
    ))

    return activities


def is_software_industry(industry: str) -> bool:
    """Software or IT, matching 'IT' only as a whole word."""
    lowered = industry.lower()
    return "software" in lowered or "it" in re.findall(r"[a-z]+", lowered)


def industry_activities(profile: VVTInput) -> list[ActivityTemplate]:
    activities = []
    industry = profile.industry.lower()

    if is_software_industry(profile.industry):
        if profile.has_customer_data:
            activities.append(ActivityTemplate(
                name="Customer data and project management",
                purpose="Customer care, project delivery, contract management, support, invoicing",
                data_subject_categories=("customers", "contact persons", "end users"),
                data_categories=("contact data", "contract data", "project data", "communication data",
                                 "payment data", "support tickets"),
                recipients=("CRM system", "project management tools", "payment provider", "support system"),
                retention_period="10 years after contract end (tax retention), 3 years for support data",
                legal_basis="Art. 6(1)(b) GDPR (contract), Art. 6(1)(f) GDPR (legitimate interest)",
                technical_measures=("end-to-end encryption", "database encryption", "multi-factor authentication"),
                organizational_measures=("customer data policy", "NDA management", "data retention policy"),
                third_country_transfer=profile.has_third_country_transfer,
                comments=(
                    "Check SCCs for third-country tools" if profile.has_third_country_transfer else None
                ),
            ))

        activities.append(ActivityTemplate(
            name="Software development and code management",
            purpose="Software development, version control, code review, deployment, testing",
            data_subject_categories=("developers", "code reviewers", "DevOps teams", "external developers"),
            data_categories=("developer profiles", "commits", "review comments", "build logs"),
            recipients=("Git hosting", "CI/CD systems", "code quality tools"),
            retention_period="7 years for code archives, 2 years for development metrics",
            legal_basis="Art. 6(1)(b) GDPR (employment contract), Art. 6(1)(f) GDPR (legitimate interest)",
            technical_measures=("access controls", "branch protection", "secure code scanning"),
            organizational_measures=("secure development lifecycle", "code review guidelines",
                                     "developer training"),
            third_country_transfer=True,
            comments="Git hosting in the USA: check standard contractual clauses (SCCs)",
        ))

    if "consulting" in industry or "beratung" in industry:
        activities.append(ActivityTemplate(
            name="Consulting and knowledge management",
            purpose="Client consulting, knowledge building, consulting reports",
            data_subject_categories=("clients", "consultants", "subject matter experts"),
            data_categories=("consulting documents", "analysis results", "expertise profiles",
                             "project documentation"),
            recipients=("knowledge management system", "document management", "collaboration tools"),
            retention_period="10 years for consulting records, 5 years for knowledge articles",
            legal_basis="Art. 6(1)(b) GDPR (contract), Art. 6(1)(f) GDPR (legitimate interest)",
            technical_measures=("document encryption", "access controls", "version control"),
            organizational_measures=("consulting guidelines", "confidentiality agreements"),
        ))

    return activities


def size_activities(profile: VVTInput) -> list[ActivityTemplate]:
    activities = []

    if profile.employee_count >= COMPLIANCE_ACTIVITY_EMPLOYEES:
        activities.append(ActivityTemplate(
            name="Compliance and audit management",
            purpose="GDPR compliance, internal audits, communication with authorities, compliance reporting",
            data_subject_categories=("employees", "customers", "data subjects", "auditors"),
            data_categories=("audit logs", "compliance reports", "data breaches", "training records"),
            recipients=("supervisory authorities", "external auditors", "lawyers", "certification bodies"),
            retention_period="3 years for audit logs, 10 years for compliance evidence",
            legal_basis="Art. 6(1)(c) GDPR (legal obligation), Art. 6(1)(f) GDPR (legitimate interest)",
            technical_measures=("tamper-proof logging", "audit trail", "automated compliance checks"),
            organizational_measures=("compliance framework", "audit procedures", "training programme"),
            comments="A data protection officer is mandatory from 20 employees (§ 38 BDSG)",
        ))

    if profile.employee_count >= ERP_ACTIVITY_EMPLOYEES:
        activities.append(ActivityTemplate(
            name="Enterprise resource planning (ERP)",
            purpose="Business planning, resource management, financial controlling, reporting",
            data_subject_categories=("employees", "customers", "suppliers"),
            data_categories=("financial data", "planning data", "performance KPIs"),
            recipients=("ERP system", "BI tools", "management dashboards"),
            retention_period="10 years for financial data, 7 years for planning data",
            legal_basis="Art. 6(1)(f) GDPR (legitimate interest)",
            technical_measures=("ERP access controls", "data warehouse security"),
            organizational_measures=("ERP governance", "data quality management"),
        ))

    return activities


def technology_activities(profile: VVTInput) -> list[ActivityTemplate]:
    activities = []

    if profile.uses_ai_processing:
        activities.append(ActivityTemplate(
            name="AI-based data processing and machine learning",
            purpose="Data analysis, predictive analytics, process automation, customer service AI",
            data_subject_categories=("customers", "users", "prospects", "website visitors"),
            data_categories=("usage data", "behavioural data", "preference data", "training datasets"),
            recipients=("local AI systems", "ML pipeline", "analytics platform"),
            retention_period="2 years for training data, 6 months for inference logs",
            legal_basis="Art. 6(1)(a) GDPR (consent), Art. 6(1)(f) GDPR (legitimate interest)",
            technical_measures=("local AI processing", "data minimisation", "pseudonymisation"),
            organizational_measures=("AI ethics guidelines", "bias monitoring", "human-in-the-loop oversight"),
            comments="EU AI Act applies: classify every AI system",
            factors={
                "uses_innovative_technology": True,
                "uses_profiling": True,
                "uses_automated_decision_making": profile.has_automated_decision_making,
                "involves_special_category_data": profile.has_special_categories,
            },
            force_dsfa=profile.has_systematic_monitoring or profile.has_vulnerable_groups,
        ))

    if profile.has_third_country_transfer:
        activities.append(ActivityTemplate(
            name="Cloud services and international data transfers",
            purpose="Cloud computing, global collaboration, international project delivery",
            data_subject_categories=("employees", "customers", "partners"),
            data_categories=("project documents", "collaboration data", "cloud storage content"),
            recipients=("US cloud provider", "international collaboration tools"),
            retention_period="Project duration plus 3 years, at most 7 years",
            legal_basis="Art. 6(1)(b) GDPR (contract), Art. 6(1)(f) GDPR (legitimate interest)",
            technical_measures=("standard contractual clauses (SCCs)", "encryption in transit and at rest"),
            organizational_measures=("transfer impact assessment", "regular SCC reviews", "vendor management"),
            third_country_transfer=True,
            comments="No adequacy decision relied upon: SCCs and supplementary safeguards required",
            force_dsfa=True,
        ))

    return activities


def compliance_activities(profile: VVTInput) -> list[ActivityTemplate]:
    activities = []

    if profile.has_data_protection_officer:
        activities.append(ActivityTemplate(
            name="Data protection officer activities",
            purpose="Data protection advice, compliance monitoring, contact with authorities, training",
            data_subject_categories=("all data subjects", "employees", "management"),
            data_categories=("data protection requests", "compliance status", "training material"),
            recipients=("supervisory authorities", "management", "employees"),
            retention_period="3 years for advisory records",
            legal_basis="Art. 6(1)(c) GDPR (legal obligation)",
            technical_measures=("secure communication channels", "encrypted documentation"),
            organizational_measures=("DPO mandate", "guarantees of independence"),
        ))

    if profile.has_works_council:
        activities.append(ActivityTemplate(
            name="Works council and co-determination",
            purpose="Co-determination in personnel matters, employee representation",
            data_subject_categories=("employees", "works council members"),
            data_categories=("personnel measures", "works council minutes", "employee complaints"),
            recipients=("works council", "labour court", "HR administration"),
            retention_period="4 years for works council records",
            legal_basis="§ 26 BDSG, BetrVG, Art. 6(1)(c) GDPR (legal obligation)",
            technical_measures=("separate processing", "restricted access", "encryption"),
            organizational_measures=("works agreements", "confidentiality rules"),
            comments="Separate processing required under the Works Constitution Act",
        ))

    return activities


TEMPLATE_GROUPS = (
    standard_activities,
    industry_activities,
    size_activities,
    technology_activities,
    compliance_activities,
)


# ============================================================================
# Scoring
# ============================================================================

def has_valid_legal_basis(legal_basis: str) -> bool:
    lowered = legal_basis.lower()
    return any(marker in lowered for marker in LEGAL_BASIS_MARKERS)


def _filled(values) -> bool:
    if isinstance(values, str):
        return bool(values.strip())
    return any(value.strip() for value in values or ())


def activity_completeness(activity: ProcessingActivity) -> int:
    """Points out of 100 for the Art. 30 GDPR fields and their quality."""
    points = 0

    for value in (
        activity.name,
        activity.purpose,
        activity.legal_basis,
        activity.data_categories,
        activity.retention_period,
        activity.data_subject_categories,
    ):
        if _filled(value):
            points += REQUIRED_FIELD_POINTS

    if _filled(activity.technical_measures):
        points += MEASURE_POINTS
    if _filled(activity.organizational_measures):
        points += MEASURE_POINTS

    if _filled(activity.recipients):
        points += RECIPIENT_POINTS
    if has_valid_legal_basis(activity.legal_basis):
        points += LEGAL_BASIS_POINTS
    comments = (activity.comments or "").lower()
    if activity.third_country_transfer and any(m in comments for m in TRANSFER_SAFEGUARD_MARKERS):
        points += TRANSFER_SAFEGUARD_POINTS
    if activity.risk_level is not None:
        points += RISK_LEVEL_POINTS

    return points


def compliance_score(activities: list[ProcessingActivity]) -> float:
    """Average completeness in percent, rounded to one decimal."""
    if not activities:
        return 0.0
    average = sum(activity_completeness(a) for a in activities) / len(activities)
    return round(average, 1)


# ============================================================================
# Generator
# ============================================================================

class VVTGenerator:
    """
    Generates a record of processing activities for a company profile.

    The generator is stateless apart from the engine it classifies with.
    """

    def __init__(self, engine: Optional[RiskClassificationEngine] = None):
        self.engine = engine or default_engine

    def generate(self, profile: VVTInput) -> VVTRecord:
        logger.info(
            f"Generating VVT for {profile.company_name} "
            f"({profile.industry}, {profile.employee_count} employees)"
        )

        activities: dict[str, ProcessingActivity] = {}
        for group in TEMPLATE_GROUPS:
            for template in group(profile):
                if template.name in activities:
                    continue
                activities[template.name] = self._build_activity(template)

        ordered = sorted(activities.values(), key=lambda a: a.name)
        record = VVTRecord(
            company_name=profile.company_name,
            industry=profile.industry,
            data_categories=profile.data_categories,
            processing_activities=tuple(ordered),
            total_activities=len(ordered),
            compliance_score=compliance_score(ordered),
            dsfa_required_count=sum(1 for a in ordered if a.dsfa_required),
            high_risk_count=sum(1 for a in ordered if a.risk_level == DSFARiskLevel.HIGH),
            third_country_transfer_count=sum(1 for a in ordered if a.third_country_transfer),
            recommendations=tuple(self._recommendations(ordered, profile)),
        )

        logger.info(
            f"VVT generated: {record.total_activities} activities, "
            f"{record.dsfa_required_count} requiring a DSFA, score {record.compliance_score}"
        )
        return record

    def _build_activity(self, template: ActivityTemplate) -> ProcessingActivity:
        result = self.engine.classify(RiskAssessmentInput(
            subject_kind=SubjectKind.DATA_PROCESSING_ACTIVITY,
            subject_name=template.name,
            **template.factors,
        ))
        return ProcessingActivity(
            name=template.name,
            purpose=template.purpose,
            data_subject_categories=template.data_subject_categories,
            data_categories=template.data_categories,
            recipients=template.recipients,
            third_country_transfer=template.third_country_transfer,
            retention_period=template.retention_period,
            legal_basis=template.legal_basis,
            technical_measures=template.technical_measures,
            organizational_measures=template.organizational_measures,
            risk_level=result.risk_level,
            risk_score=result.risk_score,
            dsfa_required=result.assessment_required or template.force_dsfa,
            triggered_factors=result.triggered_factors,
            comments=template.comments,
        )

    def _recommendations(self, activities: list[ProcessingActivity], profile: VVTInput) -> list[str]:
        recommendations = []

        transfers = sum(1 for a in activities if a.third_country_transfer)
        if transfers:
            recommendations.append(
                f"Verify adequacy decisions or standard contractual clauses for {transfers} third-country transfers"
            )
        dsfa_count = sum(1 for a in activities if a.dsfa_required)
        if dsfa_count:
            recommendations.append(
                f"Conduct a data protection impact assessment (DSFA) for {dsfa_count} processing activities"
            )
        high_risk = sum(1 for a in activities if a.risk_level == DSFARiskLevel.HIGH)
        if high_risk:
            recommendations.append(
                f"{high_risk} high-risk processing activities identified: implement additional safeguards"
            )

        if profile.employee_count >= DPO_EMPLOYEE_THRESHOLD and not profile.has_data_protection_officer:
            recommendations.append("Appoint a data protection officer (§ 38 BDSG)")
        if profile.uses_ai_processing:
            recommendations.append("Classify every AI system under the EU AI Act")
            recommendations.append("Prepare an impact assessment for automated decision-making")
        if profile.has_third_country_transfer:
            recommendations.append("Perform a transfer impact assessment (TIA) for all third-country transfers")

        recommendations.append("Review the record of processing activities every 6 months")
        recommendations.append("Train staff on the documented processing activities")

        if is_software_industry(profile.industry):
            recommendations.append("Integrate privacy by design into all development processes")

        return list(dict.fromkeys(recommendations))
