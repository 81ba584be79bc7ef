# backend/stockpulse/api/deps.py
"""Request-scoped access to the long-lived services created in the app lifespan."""

from fastapi import Request

from stockpulse.services.ingestor import DocumentIngestor
from stockpulse.services.pipeline import StockSentimentPipeline
from stockpulse.services.rag_chat import FilingChat
from stockpulse.services.rate_limiter import RateLimiter
from stockpulse.services.ticker_store import TickerStore


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer, else 'unknown'."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_pipeline(request: Request) -> StockSentimentPipeline:
    return request.app.state.pipeline


def get_ticker_store(request: Request) -> TickerStore:
    return request.app.state.ticker_store


def get_ingestor(request: Request) -> DocumentIngestor:
    return request.app.state.ingestor


def get_chat(request: Request) -> FilingChat:
    return request.app.state.chat
