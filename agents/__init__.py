"""
DTN Compliance Agents

This package contains the agents that work on top of the Risk
Classification Engine:

  - AdvisorAgent - Local-model suggestions next to a classification

Usage:
    from agents import AdvisorAgent

    agent = AdvisorAgent()
    report = await agent.run(assessment_input)
    print(report.recommendations)
"""

from .base import AgentConfig, AgentTrace, BaseAgent, MCPToolClient
from .advisor import AdvisorAgent, AdvisoryReport, parse_recommendations

__all__ = [
    # Base
    "AgentConfig",
    "AgentTrace",
    "BaseAgent",
    "MCPToolClient",
    # Advisor
    "AdvisorAgent",
    "AdvisoryReport",
    "parse_recommendations",
]
