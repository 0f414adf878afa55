"""
DTN Compliance MCP Server

This package provides the Model Context Protocol server that exposes the
Risk Classification Engine as tools.

The MCP server provides 3 tools:
  1. classify_risk - Classify an AI system or data processing activity
  2. get_required_measures - Remediation measures for a risk level
  3. get_factor_weights - Active factor weights and thresholds

Usage:
    # Run as MCP server
    python -m mcp_server.server

    # Or import for programmatic use
    from mcp_server import classify_risk, get_required_measures
"""

from .server import (
    classify_risk,
    get_factor_weights,
    get_required_measures,
    mcp,
)

__all__ = [
    "mcp",
    "classify_risk",
    "get_factor_weights",
    "get_required_measures",
]
