import logging
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from config import settings
from database import get_db
from schemas import AiInsights, DriverPoint, ForecastPoint, RiskResponse, SummaryResponse, WeeklyPoint
from services.analytics import RISK_DRIVER_COUNT, compute_summary, score_risk, top_expense_drivers, weekly_series
from services.forecast import forecast_weekly_net
from services.insights import InsightService
from services.repository import DatasetRepository

logger = logging.getLogger("Cashflow.Analytics")

router = APIRouter()


def get_insight_service(request: Request) -> InsightService:
    return request.app.state.insight_service


def _transactions(dataset_id: str, db: Session):
    repo = DatasetRepository(db)
    repo.get_dataset(dataset_id)
    return repo.list_transactions(dataset_id)


@router.get("/datasets/{dataset_id}/summary", response_model=SummaryResponse)
def summary(dataset_id: str, db: Session = Depends(get_db)):
    return compute_summary(dataset_id, _transactions(dataset_id, db))


@router.get("/datasets/{dataset_id}/weekly", response_model=list[WeeklyPoint])
def weekly(dataset_id: str, db: Session = Depends(get_db)):
    return weekly_series(_transactions(dataset_id, db))


@router.get("/datasets/{dataset_id}/drivers", response_model=list[DriverPoint])
def drivers(
    dataset_id: str,
    limit: int = Query(settings.DEFAULT_DRIVER_LIMIT, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return top_expense_drivers(_transactions(dataset_id, db), limit)


@router.get("/datasets/{dataset_id}/risk", response_model=RiskResponse)
def risk(dataset_id: str, db: Session = Depends(get_db)):
    txns = _transactions(dataset_id, db)
    return score_risk(dataset_id, weekly_series(txns), top_expense_drivers(txns, RISK_DRIVER_COUNT))


@router.get("/datasets/{dataset_id}/forecast", response_model=list[ForecastPoint])
def forecast(
    dataset_id: str,
    horizon: int = Query(settings.DEFAULT_FORECAST_HORIZON, ge=1, le=52),
    db: Session = Depends(get_db),
):
    return forecast_weekly_net(weekly_series(_transactions(dataset_id, db)), horizon)


@router.post("/datasets/{dataset_id}/explain", response_model=AiInsights)
def explain(
    dataset_id: str,
    horizon: int = Query(settings.DEFAULT_FORECAST_HORIZON, ge=1, le=52),
    db: Session = Depends(get_db),
    service: InsightService = Depends(get_insight_service),
):
    """Narrative explanation grounded in the dataset's computed facts."""
    repo = DatasetRepository(db)
    repo.get_dataset(dataset_id)
    return service.explain(dataset_id, horizon, lambda: repo.list_transactions(dataset_id))
