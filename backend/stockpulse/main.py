# backend/stockpulse/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.middleware.request_logger import RequestLoggerMiddleware
from stockpulse.routers import chat, ingest, stocks, tickers
from stockpulse.services.ingestor import DocumentIngestor
from stockpulse.services.pipeline import build_pipeline
from stockpulse.services.rag_chat import FilingChat
from stockpulse.services.rate_limiter import RateLimiter
from stockpulse.services.sec_filings import SecFilingClient
from stockpulse.services.ticker_store import TickerStore
from stockpulse.services.vector_store import get_vector_store

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the process-lifetime services and hang them on app.state"""
    # ========== STARTUP ==========
    log.info("Starting %s %s (%s)...", settings.APP_NAME, settings.APP_VERSION, settings.ENV)

    ticker_store = TickerStore()
    app.state.rate_limiter = RateLimiter(quota=settings.RATE_LIMIT_DAILY_QUOTA)
    app.state.pipeline = build_pipeline()
    app.state.ticker_store = ticker_store
    # vector store is resolved on first use so the API starts without Pinecone credentials
    app.state.ingestor = DocumentIngestor(SecFilingClient(), get_vector_store, ticker_store)
    app.state.chat = FilingChat(get_vector_store)

    if not settings.OPENAI_API_KEY:
        log.warning("OPENAI_API_KEY is not set; /stocks will return 500")
    if not (settings.PINECONE_API_KEY and settings.PINECONE_INDEX):
        log.warning("Pinecone is not configured; /chat and /ingest are unavailable")

    log.info("Application startup complete!")

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    log.info("Application shutdown complete!")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# CORS first, then request logging
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS or ["*"],
    allow_credentials=bool(settings.CORS_ORIGINS),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggerMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ========== ROUTERS ==========
app.include_router(stocks.router, prefix=settings.API_PREFIX)
app.include_router(chat.router, prefix=settings.API_PREFIX)
app.include_router(tickers.router, prefix=settings.API_PREFIX)
app.include_router(ingest.router, prefix=settings.API_PREFIX)


# ========== ROOT ENDPOINTS ==========
@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "api_endpoints": {
            "stocks": f"{settings.API_PREFIX}/stocks",
            "chat": f"{settings.API_PREFIX}/chat",
            "sync_tickers": f"{settings.API_PREFIX}/sync-tickers",
            "ingest": f"{settings.API_PREFIX}/ingest",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "llm": "configured" if settings.OPENAI_API_KEY else "missing",
        "vector_store": "configured" if (settings.PINECONE_API_KEY and settings.PINECONE_INDEX) else "missing",
        "default_tickers": settings.DEFAULT_TICKERS,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("stockpulse.main:app", host=settings.HOST, port=settings.PORT, reload=settings.RELOAD)
