"""
DTN Compliance Advisor Agent

This agent asks a local model runner for additional remediation
suggestions on top of an engine classification.

FLOW:
  1. Classify the subject through the classify_risk MCP tool
  2. Prompt the local model with the level, factors and measures
  3. Parse bullet and numbered lines of the reply into suggestions

The engine's result is passed through unchanged; suggestions are kept in a
separate list and are never merged into required_measures.
"""

from __future__ import annotations

import re
from typing import List, Optional

from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from agents.base import AgentConfig, BaseAgent, MCPToolClient
from shared.models import RiskAssessmentInput, RiskAssessmentResult

_LIST_ITEM = re.compile(r"^(?:[-•*]|\d+[.)])\s*")
_MIN_LENGTH = 15
_MAX_LENGTH = 300


class AdvisoryReport(BaseModel):
    """Output of the Advisor Agent."""

    assessment: RiskAssessmentResult = Field(
        description="The engine's classification, unchanged."
    )
    recommendations: List[str] = Field(
        default_factory=list,
        description="Free-form suggestions from the local model.",
    )
    model: str = Field(description="Model that produced the suggestions.")


def parse_recommendations(text: str) -> List[str]:
    """Extract list items of reasonable length from a model reply."""
    recommendations = []
    for line in text.splitlines():
        line = line.strip()
        if not _LIST_ITEM.match(line):
            continue
        item = _LIST_ITEM.sub("", line, count=1).strip()
        if _MIN_LENGTH < len(item) < _MAX_LENGTH:
            recommendations.append(item)
    return recommendations


class AdvisorAgent(BaseAgent[RiskAssessmentInput, AdvisoryReport]):
    """
    Advisor Agent.

    Takes a RiskAssessmentInput, classifies it with the engine and adds
    3-5 suggestions from the local model runner.
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        mcp_client: Optional[MCPToolClient] = None,
    ):
        super().__init__(config, mcp_client)
        self._client = AsyncOpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
        )

    @property
    def name(self) -> str:
        return "advisor"

    def _get_system_prompt(self) -> str:
        return """You are a compliance advisor for the EU AI Act and the GDPR.

You receive the result of a deterministic risk classification. Do not change the
risk level or question the classification. Suggest concrete, practical steps that
complement the listed measures:

1. Name specific articles and obligations where they apply
2. Take German supervisory authority (BfDI) guidance into account
3. Prefer implementation steps over general advice

Answer with 3-5 suggestions, one per line, each starting with "- "."""

    async def run(self, input_data: RiskAssessmentInput) -> AdvisoryReport:
        """
        Classify the subject and collect suggestions.

        Args:
            input_data: Subject to assess

        Returns:
            AdvisoryReport with the unchanged assessment and suggestions
        """
        self._start_trace(
            input_summary=f"{input_data.subject_kind.value}: {input_data.subject_name or '<unnamed>'}"
        )

        try:
            raw = self.mcp.classify_risk(input_data.model_dump(mode="json"))
            assessment = RiskAssessmentResult.model_validate(raw)

            recommendations = await self._ask_model(input_data, assessment)

            self._complete_trace(
                output_summary=(
                    f"Level: {assessment.risk_level.value}, "
                    f"Suggestions: {len(recommendations)}"
                )
            )

            return AdvisoryReport(
                assessment=assessment,
                recommendations=recommendations,
                model=self.config.model,
            )

        except Exception as e:
            self._complete_trace(error=str(e))
            raise

    async def _ask_model(
        self,
        input_data: RiskAssessmentInput,
        assessment: RiskAssessmentResult,
    ) -> List[str]:
        """Prompt the local model and parse its suggestions."""

        factors = "\n".join(f"- {f}" for f in assessment.triggered_factors) or "- none"
        measures = "\n".join(f"- {m}" for m in assessment.required_measures)

        user_message = f"""Subject: {input_data.subject_name or 'unnamed'} ({assessment.subject_kind.value})
Risk level: {assessment.risk_level.value} ({assessment.risk_level_label_de})
Risk score: {assessment.risk_score:.2f}

Triggered risk factors:
{factors}

Required measures:
{measures}

Suggest additional steps."""

        response = await self._client.chat.completions.create(
            model=self.config.model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            messages=[
                {"role": "system", "content": self._get_system_prompt()},
                {"role": "user", "content": user_message},
            ],
        )

        if self._current_trace is not None and self.config.trace_enabled:
            self._current_trace.llm_calls.append({
                "model": self.config.model,
                "prompt_chars": len(user_message),
            })

        if not response.choices or not response.choices[0].message.content:
            raise ValueError("Local model returned an empty response")

        recommendations = parse_recommendations(response.choices[0].message.content)
        self.logger.debug(f"Parsed {len(recommendations)} suggestions from model reply")
        return recommendations
