"""Derived risk report and dashboard statistics."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RiskAnalysis(BaseModel):
    """Presentation metrics for one record.

    Serialised with camelCase keys (``riskScore``, ``preventionScore`` ...)
    to match the dashboard's chart contract.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    risk_score: int
    probability: int
    severity: int
    # Clamped to [60, 95] but not rounded
    confidence: float
    prevention_score: int


class ScreeningStatistics(BaseModel):
    """Aggregate view over the cached records."""

    total: int
    verified: int
    average_risk: float
    high_risk: int
