"""
DTN Compliance Advisor Agent

Adds local-model suggestions next to an engine classification.
"""

from .agent import AdvisorAgent, AdvisoryReport, parse_recommendations

__all__ = ["AdvisorAgent", "AdvisoryReport", "parse_recommendations"]
