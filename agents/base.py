"""
DTN Compliance Base Agent Class

This module defines the base agent architecture for agents that sit on top
of the Risk Classification Engine.

ARCHITECTURE:
  - Agents talk to a local model runner through its OpenAI-compatible API
    (e.g. Ollama at http://localhost:11434/v1); nothing leaves the host
  - Each agent reaches the engine through MCP tools
  - Agents produce Pydantic models as outputs for type safety
  - Logging and tracing support for auditability

The engine's classification is authoritative. Agents may only add
free-form suggestions next to it.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Type variables for agent input/output
InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT", bound=BaseModel)


@dataclass
class AgentConfig:
    """Configuration for agents backed by the local model runner."""

    # Local model runner
    enabled: bool = False
    base_url: str = "http://localhost:11434/v1"
    api_key: str = "ollama"  # Ignored by Ollama but required by the client
    model: str = "llama2:7b"
    temperature: float = 0.1  # Low temperature for reproducible suggestions
    max_tokens: int = 1024
    timeout: float = 30.0

    # Retry settings
    max_retries: int = 2

    # Logging
    log_level: str = "INFO"
    trace_enabled: bool = True

    @classmethod
    def from_env(cls) -> AgentConfig:
        """Load configuration from environment variables."""
        return cls(
            enabled=os.getenv("DTN_LOCAL_AI_ENABLED", "false").lower() == "true",
            base_url=os.getenv("DTN_LOCAL_AI_BASE_URL", "http://localhost:11434/v1"),
            api_key=os.getenv("DTN_LOCAL_AI_API_KEY", "ollama"),
            model=os.getenv("DTN_LOCAL_AI_MODEL", "llama2:7b"),
            temperature=float(os.getenv("DTN_LOCAL_AI_TEMPERATURE", "0.1")),
            max_tokens=int(os.getenv("DTN_LOCAL_AI_MAX_TOKENS", "1024")),
            timeout=float(os.getenv("DTN_LOCAL_AI_TIMEOUT", "30")),
            max_retries=int(os.getenv("DTN_LOCAL_AI_MAX_RETRIES", "2")),
            log_level=os.getenv("DTN_LOG_LEVEL", "INFO"),
            trace_enabled=os.getenv("DTN_TRACE_ENABLED", "true").lower() == "true",
        )


@dataclass
class AgentTrace:
    """Trace record of a single agent run."""

    agent_name: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    input_summary: Optional[str] = None
    output_summary: Optional[str] = None
    mcp_calls: list[dict[str, Any]] = field(default_factory=list)
    llm_calls: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    def duration_ms(self) -> Optional[float]:
        """Get duration in milliseconds."""
        if self.completed_at is None:
            return None
        delta = self.completed_at - self.started_at
        return delta.total_seconds() * 1000


class MCPToolClient:
    """
    Client for calling MCP tools.

    Tools are called directly as functions; every call is logged for
    tracing.
    """

    def __init__(self):
        self._call_log: list[dict[str, Any]] = []

    def get_call_log(self) -> list[dict[str, Any]]:
        """Get log of all tool calls for tracing."""
        return self._call_log.copy()

    def clear_call_log(self) -> None:
        """Clear the call log."""
        self._call_log = []

    def classify_risk(self, assessment: dict[str, Any]) -> dict[str, Any]:
        """
        Classify an AI system or data processing activity.

        Args:
            assessment: RiskAssessmentInput fields

        Returns:
            RiskAssessmentResult as a dictionary
        """
        from mcp_server.server import classify_risk_impl

        self._call_log.append({
            "tool": "classify_risk",
            "timestamp": datetime.now().isoformat(),
            "input": {"assessment": assessment},
        })

        result = classify_risk_impl(assessment)

        self._call_log[-1]["output"] = {
            "risk_level": result["risk_level"],
            "risk_score": result["risk_score"],
        }
        return result


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """
    Base class for DTN compliance agents.

    Subclasses implement:
      - `name`: Agent identifier
      - `run()`: Main execution method
      - `_get_system_prompt()`: LLM system prompt for this agent

    The base class provides:
      - MCP tool access via `self.mcp`
      - Logging and tracing
      - Configuration via `self.config`
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        mcp_client: Optional[MCPToolClient] = None,
    ):
        """
        Initialize the agent.

        Args:
            config: Agent configuration (loaded from environment if not provided)
            mcp_client: MCP tool client (creates new if not provided)
        """
        self.config = config or AgentConfig.from_env()
        self.mcp = mcp_client or MCPToolClient()
        self._current_trace: Optional[AgentTrace] = None

        self.logger = logging.getLogger(f"dtn.agents.{self.name}")
        self.logger.setLevel(getattr(logging, self.config.log_level))

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent identifier (e.g., 'advisor')."""
        pass

    @abstractmethod
    async def run(self, input_data: InputT) -> OutputT:
        """
        Execute the agent's main function.

        Args:
            input_data: Input data for this agent

        Returns:
            Output model for this agent
        """
        pass

    @abstractmethod
    def _get_system_prompt(self) -> str:
        """Get the system prompt for this agent's LLM calls."""
        pass

    def _start_trace(self, input_summary: Optional[str] = None) -> AgentTrace:
        """Start a new trace for this agent execution."""
        self._current_trace = AgentTrace(
            agent_name=self.name,
            started_at=datetime.now(),
            input_summary=input_summary,
        )
        self.mcp.clear_call_log()
        self.logger.debug(f"Started trace for {self.name} agent")
        return self._current_trace

    def _complete_trace(
        self,
        output_summary: Optional[str] = None,
        error: Optional[str] = None
    ) -> AgentTrace:
        """Complete the current trace."""
        if self._current_trace is None:
            raise RuntimeError("No active trace to complete")

        self._current_trace.completed_at = datetime.now()
        self._current_trace.output_summary = output_summary
        self._current_trace.mcp_calls = self.mcp.get_call_log()
        self._current_trace.error = error

        duration = self._current_trace.duration_ms()
        self.logger.info(
            f"Completed {self.name} agent in {duration:.1f}ms "
            f"(MCP calls: {len(self._current_trace.mcp_calls)})"
        )

        return self._current_trace

    def get_last_trace(self) -> Optional[AgentTrace]:
        """Get the last execution trace."""
        return self._current_trace
