"""
Assessment Store

In-memory persistence for computed assessments. The API hands every
result to the store after classification; the engine itself never
persists anything.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

from shared.models import RiskAssessmentInput, RiskAssessmentResult

logger = logging.getLogger(__name__)


@dataclass
class StoredAssessment:
    """A classification together with the input it was computed from"""

    assessment_id: str
    assessment_input: RiskAssessmentInput
    result: RiskAssessmentResult
    created_at: datetime = field(default_factory=datetime.now)


class AssessmentStore:
    """
    Stores assessments in memory (would use a database in production).

    Holds at most `max_entries` assessments; when full, the oldest half is
    dropped before a new one is added.
    """

    def __init__(self, max_entries: int = 1000):
        self.assessments: dict[str, StoredAssessment] = {}
        self.max_entries = max_entries
        self._lock = asyncio.Lock()

    async def save(
        self,
        assessment_input: RiskAssessmentInput,
        result: RiskAssessmentResult,
    ) -> StoredAssessment:
        """Store a computed result and return the stored record"""
        async with self._lock:
            if len(self.assessments) >= self.max_entries:
                self._cleanup_old_assessments()

            stored = StoredAssessment(
                assessment_id=str(uuid4()),
                assessment_input=assessment_input,
                result=result,
            )
            self.assessments[stored.assessment_id] = stored

            logger.info(
                f"Stored assessment {stored.assessment_id} "
                f"({result.subject_kind.value}, {result.risk_level.value})"
            )
            return stored

    async def get(self, assessment_id: str) -> Optional[StoredAssessment]:
        """Get an assessment by ID"""
        async with self._lock:
            return self.assessments.get(assessment_id)

    async def list_all(self) -> list[StoredAssessment]:
        """All stored assessments, oldest first"""
        async with self._lock:
            return sorted(self.assessments.values(), key=lambda a: a.created_at)

    async def count(self) -> int:
        async with self._lock:
            return len(self.assessments)

    def _cleanup_old_assessments(self):
        """Remove the oldest half of the stored assessments"""
        ordered = sorted(self.assessments.values(), key=lambda a: a.created_at)
        for stored in ordered[: max(1, len(ordered) // 2)]:
            del self.assessments[stored.assessment_id]
            logger.debug(f"Cleaned up old assessment {stored.assessment_id}")
