# backend/stockpulse/core/config.py
from __future__ import annotations
import os
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

# Resolves to <repo-root>/backend/.env when this file is at backend/stockpulse/core/config.py
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App meta
    APP_NAME: str = "StockPulse API"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"
    API_PREFIX: str = "/api"
    CORS_ORIGINS: List[str] = []
    LOG_LEVEL: str = "INFO"

    # --- Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    RELOAD: bool = False

    # --- Tickers
    DEFAULT_TICKERS: List[str] = ["AAPL", "MSFT", "GOOGL", "AMZN", "META"]
    TICKERS_CONFIG_PATH: str = "config.json"
    RESULT_CAP: int = 10

    # --- Rate limiting (per client IP, per calendar day)
    RATE_LIMIT_DAILY_QUOTA: int = 5

    # --- Market data (yfinance)
    MARKET_DATA_ATTEMPTS: int = 2
    MARKET_DATA_BACKOFF_SECONDS: float = 1.0
    MARKET_DATA_TIMEOUT_SECONDS: float = 8.0

    # --- News
    NEWS_PER_TICKER: int = 3
    NEWS_MIN_HEADLINES: int = 2
    NEWS_STAGGER_SECONDS: float = 0.2
    NEWS_TIMEOUT_SECONDS: float = 8.0
    NEWS_SCRAPE_ENABLED: bool = True
    NEWS_SCRAPE_URL: str = "https://finance.yahoo.com/topic/stock-market-news/"

    # --- Whole-request deadline for GET /stocks
    REQUEST_DEADLINE_SECONDS: float = 55.0

    # --- OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_SENTIMENT_MODEL: str = "gpt-4o-mini"
    SENTIMENT_TEMPERATURE: float = 0.7
    OPENAI_CHAT_MODEL: str = "gpt-4o-mini"
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"

    # --- Pinecone / RAG
    PINECONE_API_KEY: Optional[str] = None
    PINECONE_INDEX: Optional[str] = None
    CHAT_TOP_K: int = 50

    # --- SEC filings ingestion
    SEC_USER_AGENT: str = "StockPulse 1.0.0 (contact: admin@example.com)"
    SEC_REQUEST_SPACING_SECONDS: float = 0.2
    SEC_TIMEOUT_SECONDS: float = 10.0
    CHUNK_SIZE: int = 2000
    CHUNK_OVERLAP: int = 400
    INGEST_FRESHNESS_DAYS: int = 7
    INGEST_CONCURRENCY: int = 2

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v):
        if isinstance(v, list):
            return v
        raw = v or os.getenv("ALLOWED_ORIGINS", "")
        return [o.strip() for o in str(raw).split(",") if o.strip()]

    @field_validator("DEFAULT_TICKERS", mode="before")
    @classmethod
    def _parse_default_tickers(cls, v):
        if isinstance(v, list):
            return [t.strip().upper() for t in v if str(t).strip()]
        raw = str(v or "AAPL,MSFT,GOOGL,AMZN,META")
        return [t.strip().upper() for t in raw.split(",") if t.strip()]

    @field_validator("RELOAD", "NEWS_SCRAPE_ENABLED", mode="before")
    @classmethod
    def _parse_bool(cls, v):
        if isinstance(v, bool):
            return v
        return str(v).lower() in ("1", "true", "yes", "on")

    @field_validator("SENTIMENT_TEMPERATURE")
    @classmethod
    def _validate_temperature(cls, v):
        if not 0.0 <= v <= 2.0:
            raise ValueError("SENTIMENT_TEMPERATURE must be between 0.0 and 2.0")
        return v

    @field_validator("MARKET_DATA_ATTEMPTS", "RESULT_CAP", "RATE_LIMIT_DAILY_QUOTA", "INGEST_CONCURRENCY")
    @classmethod
    def _validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("CHUNK_OVERLAP")
    @classmethod
    def _validate_overlap(cls, v, info):
        size = info.data.get("CHUNK_SIZE", 2000)
        if v < 0 or v >= size:
            raise ValueError("CHUNK_OVERLAP must be >= 0 and smaller than CHUNK_SIZE")
        return v


settings = Settings()
