import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    PROJECT_NAME: str = "Cashflow Insights"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./cashflow.db")

    # OpenAI: plain OpenAI unless an Azure endpoint is configured
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    AZURE_OPENAI_API_KEY: str = os.getenv("AZURE_OPENAI_API_KEY", "")
    AZURE_OPENAI_ENDPOINT: str = os.getenv("AZURE_OPENAI_ENDPOINT", "")
    AZURE_OPENAI_API_VERSION: str = os.getenv("AZURE_OPENAI_API_VERSION", "2024-12-01-preview")
    AZURE_OPENAI_DEPLOYMENT: str = os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o")

    # Reasoning call bounds
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "700"))
    LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))
    LLM_MIN_INTERVAL_MS: int = int(os.getenv("LLM_MIN_INTERVAL_MS", "1000"))

    # Insight cache
    INSIGHT_CACHE_TTL_SECONDS: int = int(os.getenv("INSIGHT_CACHE_TTL_SECONDS", str(30 * 60)))
    INSIGHT_CACHE_MAX_ENTRIES: int = int(os.getenv("INSIGHT_CACHE_MAX_ENTRIES", "500"))

    # Analytics defaults
    DEFAULT_FORECAST_HORIZON: int = int(os.getenv("DEFAULT_FORECAST_HORIZON", "12"))
    DEFAULT_DRIVER_LIMIT: int = 5

    # File upload
    MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "10"))

    # CORS: set ALLOWED_ORIGINS env var as comma-separated URLs for production
    ALLOWED_ORIGINS: list = [
        x.strip()
        for x in os.getenv(
            "ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
        ).split(",")
    ]


settings = Settings()
