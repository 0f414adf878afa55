"""
Remediation lookup tables.

Everything here is keyed by (subject kind, risk level) or by risk factor and
returns fixed, ordered lists. No randomness and no external calls.
"""

from typing import Iterable

from shared.models import AIRiskLevel, DSFARiskLevel, RiskFactor, SubjectKind

AI = SubjectKind.AI_SYSTEM
DSFA = SubjectKind.DATA_PROCESSING_ACTIVITY

DPIA_MEASURE = "conduct a data protection impact assessment (Art. 35 GDPR)"

BASE_MEASURES = {
    (AI, AIRiskLevel.UNACCEPTABLE): (
        "system must not be operated",
        "redesign required",
    ),
    (AI, AIRiskLevel.HIGH): (
        "obtain CE marking before placing on the market",
        "complete a conformity assessment",
        "prepare technical documentation (Annex IV AI Act)",
        "implement a risk management system (Art. 9 AI Act)",
        "ensure human oversight (Art. 14 AI Act)",
        "establish post-market monitoring (Art. 72 AI Act)",
        "report serious incidents (Art. 73 AI Act)",
    ),
    (AI, AIRiskLevel.LIMITED): (
        "fulfil transparency obligations (Art. 50 AI Act)",
        "inform users that they are interacting with an AI system",
        "make automated decisions recognisable",
    ),
    (AI, AIRiskLevel.MINIMAL): (
        "consider voluntary codes of conduct",
    ),
    (DSFA, DSFARiskLevel.HIGH): (
        DPIA_MEASURE,
        "implement privacy by design and by default (Art. 25 GDPR)",
        "commission an external data protection audit",
        "set up continuous monitoring and incident response",
    ),
    (DSFA, DSFARiskLevel.MEDIUM): (
        DPIA_MEASURE,
        "implement privacy by design and by default (Art. 25 GDPR)",
        "review data minimisation before processing",
    ),
    (DSFA, DSFARiskLevel.LOW): (
        "record the activity in the register of processing activities (Art. 30 GDPR)",
    ),
}

FACTOR_MEASURES = {
    AI: {
        RiskFactor.AUTOMATED_DECISION_MAKING: (
            "provide human review of automated decisions",
        ),
        RiskFactor.PROFILING: (
            "monitor profiling outcomes for bias",
        ),
        RiskFactor.SPECIAL_CATEGORY_DATA: (
            "apply data governance for special-category data (Art. 10 AI Act)",
        ),
        RiskFactor.LARGE_SCALE: (
            "assess systemic impact of large-scale deployment",
        ),
        RiskFactor.INNOVATIVE_TECHNOLOGY: (
            "run a pilot phase with limited scope",
        ),
        RiskFactor.NO_HUMAN_OVERSIGHT: (
            "establish human oversight",
        ),
    },
    DSFA: {
        RiskFactor.AUTOMATED_DECISION_MAKING: (
            "guarantee human intervention in automated decisions (Art. 22 GDPR)",
        ),
        RiskFactor.PROFILING: (
            "inform data subjects about profiling and their right to object (Art. 21 GDPR)",
        ),
        RiskFactor.SPECIAL_CATEGORY_DATA: (
            "document an Art. 9 GDPR legal basis for special-category data",
            DPIA_MEASURE,
        ),
        RiskFactor.LARGE_SCALE: (
            "strengthen technical and organisational measures for large-scale processing",
        ),
        RiskFactor.INNOVATIVE_TECHNOLOGY: (
            "re-assess risks whenever the technology changes",
        ),
    },
}

RELEVANT_ARTICLES = {
    (AI, AIRiskLevel.UNACCEPTABLE): ("Art. 5 AI Act",),
    (AI, AIRiskLevel.HIGH): (
        "Art. 6 AI Act",
        "Art. 8-15 AI Act",
        "Art. 16-27 AI Act",
        "Art. 72 AI Act",
        "Annex III AI Act",
    ),
    (AI, AIRiskLevel.LIMITED): ("Art. 50 AI Act",),
    (AI, AIRiskLevel.MINIMAL): ("Art. 95 AI Act",),
    (DSFA, DSFARiskLevel.HIGH): ("Art. 35 GDPR", "Art. 36 GDPR"),
    (DSFA, DSFARiskLevel.MEDIUM): ("Art. 35 GDPR",),
    (DSFA, DSFARiskLevel.LOW): ("Art. 30 GDPR",),
}

REVIEW_INTERVAL_MONTHS = {
    (AI, AIRiskLevel.UNACCEPTABLE): 3,
    (AI, AIRiskLevel.HIGH): 6,
    (AI, AIRiskLevel.LIMITED): 12,
    (AI, AIRiskLevel.MINIMAL): 24,
    (DSFA, DSFARiskLevel.HIGH): 3,
    (DSFA, DSFARiskLevel.MEDIUM): 6,
    (DSFA, DSFARiskLevel.LOW): 12,
}

LABELS_DE = {
    (AI, AIRiskLevel.UNACCEPTABLE): "Unzulässiges Risiko",
    (AI, AIRiskLevel.HIGH): "Hochrisiko-KI-System",
    (AI, AIRiskLevel.LIMITED): "Begrenztes Risiko",
    (AI, AIRiskLevel.MINIMAL): "Minimales Risiko",
    (DSFA, DSFARiskLevel.HIGH): "Hohes Risiko",
    (DSFA, DSFARiskLevel.MEDIUM): "Mittleres Risiko",
    (DSFA, DSFARiskLevel.LOW): "Niedriges Risiko",
}


def required_measures(
    subject_kind: SubjectKind,
    risk_level,
    factors: Iterable[RiskFactor] = (),
) -> tuple[str, ...]:
    """Base measures for the level followed by per-factor measures, de-duplicated."""
    measures = list(BASE_MEASURES[(subject_kind, risk_level)])
    for factor in factors:
        for measure in FACTOR_MEASURES[subject_kind].get(factor, ()):
            if measure not in measures:
                measures.append(measure)
    return tuple(measures)
