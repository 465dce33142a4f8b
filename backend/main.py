import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from config import settings
from database import init_db
from errors import CashflowError
from routers import datasets, analytics
from services.insights import build_insight_service

# ─── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("Cashflow")

# ─── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Weekly cashflow analytics, risk scoring, forecasting and grounded AI insights",
)

# One rate limiter, reasoning client and insight cache for the whole process
app.state.insight_service = build_insight_service()

# ─── CORS ─────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Errors ───────────────────────────────────────────────────────────────────

def _error(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"status": status, "error": code, "message": message})


@app.exception_handler(CashflowError)
async def cashflow_error_handler(request: Request, exc: CashflowError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return _error(exc.status_code, exc.error_code, exc.message)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error(400, "bad_request", str(exc))

# ─── Routers ──────────────────────────────────────────────────────────────────

app.include_router(datasets.router, prefix=settings.API_PREFIX, tags=["Datasets"])
app.include_router(analytics.router, prefix=settings.API_PREFIX, tags=["Analytics"])

# ─── Events ───────────────────────────────────────────────────────────────────

@app.on_event("startup")
def startup():
    logger.info("💸 Cashflow Insights starting up...")
    init_db()
    logger.info("✅ Database initialized")


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": settings.PROJECT_NAME, "version": settings.VERSION}
