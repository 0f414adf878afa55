"""
DTN Risk Classification Engine

Deterministic classification of AI systems (EU AI Act) and data processing
activities (GDPR DSFA) from a fixed set of weighted risk factors.

Usage:
    from risk_engine import classify, RiskClassificationEngine, EngineConfig

    result = classify({"subject_kind": "ai_system", "uses_profiling": True})
    print(result.risk_level, result.required_measures)
"""

from .classifier import RiskClassificationEngine, classify, default_engine
from .config import EngineConfig
from .errors import InvalidInputError
from .measures import required_measures
from .vvt import VVTGenerator

__all__ = [
    "EngineConfig",
    "InvalidInputError",
    "RiskClassificationEngine",
    "classify",
    "default_engine",
    "required_measures",
    "VVTGenerator",
]
