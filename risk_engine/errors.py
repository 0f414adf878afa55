"""Errors raised by the Risk Classification Engine."""

from typing import Optional


class InvalidInputError(ValueError):
    """
    Structural violation of RiskAssessmentInput invariants.

    Raised for a negative affected person count, an unrecognized subject
    kind, or input that cannot be validated at all. Retrying the same input
    cannot succeed.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field
