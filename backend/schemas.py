from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional
import datetime as dt


class CamelModel(BaseModel):
    """snake_case attributes, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ─── Dataset Schemas ──────────────────────────────────────────────────────────

class DatasetResponse(CamelModel):
    id: str
    name: str
    created_at: dt.datetime
    transaction_count: Optional[int] = None


class UploadResponse(CamelModel):
    dataset_id: str
    name: str
    transaction_count: int


class TransactionRecord(CamelModel):
    """One parsed upload row, before it is persisted."""
    date: dt.date
    amount: float
    type: str
    category: str = ""


# ─── Analytics Schemas ────────────────────────────────────────────────────────

class WeeklyPoint(CamelModel):
    week_start: dt.date
    income: float
    expense: float
    net: float


class SummaryResponse(CamelModel):
    dataset_id: str
    total_income: float = 0.0
    total_expense: float = 0.0
    net_cashflow: float = 0.0
    avg_weekly_net: float = 0.0
    avg_weekly_expense: float = 0.0


class DriverPoint(CamelModel):
    category: str
    total: float


class RiskResponse(CamelModel):
    dataset_id: str
    risk_score: int = Field(0, ge=0, le=100)
    negative_weeks_ratio: float = Field(0.0, ge=0.0, le=1.0)
    weekly_net_volatility: float = 0.0
    reasons: list[str] = []
    top_expense_drivers: list[DriverPoint] = []


class ForecastPoint(CamelModel):
    week_start: dt.date
    projected_net: float


# ─── Grounding Payload ────────────────────────────────────────────────────────

class RiskFacts(CamelModel):
    risk_score: int
    negative_weeks_ratio: float
    weekly_net_volatility: float
    reasons: list[str]


class GroundingPayload(CamelModel):
    """Aggregates sent to the reasoning service. Holds no transaction rows."""

    dataset_id: str
    summary: SummaryResponse
    risk: RiskFacts
    top_expense_drivers: list[DriverPoint]
    forecast_weekly_net: list[ForecastPoint]


# ─── AI Insights ──────────────────────────────────────────────────────────────

class Recommendation(CamelModel):
    action: str
    impact: str
    effort: str
    timeframe: str

    class Config:
        extra = "forbid"
        populate_by_name = False


class AiInsights(CamelModel):
    executive_summary: str = Field(..., min_length=1)
    key_drivers: list[str]
    recommendations: list[Recommendation] = Field(..., min_length=3, max_length=5)
    confidence: float = Field(..., ge=0.0, le=1.0)
    notes: list[str]

    class Config:
        # replies must use the camelCase wire names
        extra = "forbid"
        populate_by_name = False
