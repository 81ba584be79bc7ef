# backend/stockpulse/routers/stocks.py
from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from stockpulse.api.deps import client_key, get_pipeline, get_rate_limiter
from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.schemas.stocks import CollectedData, CollectIn, ErrorResponse, StocksResponse
from stockpulse.services.errors import StockPulseError
from stockpulse.services.pipeline import StockSentimentPipeline
from stockpulse.services.rate_limiter import RateLimiter
from stockpulse.utils.validators import parse_ticker_csv, unique_tickers, validate_range

log = get_logger(__name__)

router = APIRouter(tags=["stocks"])


def _error(status_code: int, message: str, remaining: Optional[int] = None) -> JSONResponse:
    body = ErrorResponse(error=message, remaining=remaining)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


@router.get(
    "/stocks",
    response_model=StocksResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_stocks(
    request: Request,
    tickers: Optional[str] = Query(None, description="Comma-separated symbols, e.g. AAPL,NFLX"),
    range_: Optional[str] = Query("1d", alias="range", description="1d | 5d | 1mo | 1y"),
    limiter: RateLimiter = Depends(get_rate_limiter),
    pipeline: StockSentimentPipeline = Depends(get_pipeline),
):
    """
    Sentiment ranking for the default tickers plus any requested ones.
    Consumes one unit of the caller's daily quota once the request is admitted.
    """
    key = client_key(request)

    if not settings.OPENAI_API_KEY:
        return _error(500, "OpenAI API key not configured", limiter.peek(key))

    try:
        range_value = validate_range(range_)
    except ValueError as e:
        return _error(400, str(e), limiter.peek(key))
    # requested tickers are all kept, even past RESULT_CAP
    custom = parse_ticker_csv(tickers)

    decision = limiter.admit(key)
    if not decision.allowed:
        log.info("rate limit exceeded for %s", key)
        return _error(429, "Daily limit reached. Please try again tomorrow.", 0)
    remaining = limiter.increment(key)

    try:
        data = await asyncio.wait_for(
            pipeline.analyze(custom, range_value),
            timeout=settings.REQUEST_DEADLINE_SECONDS,
        )
    except asyncio.TimeoutError:
        log.error("stocks request exceeded %.0fs deadline", settings.REQUEST_DEADLINE_SECONDS)
        return _error(500, "Request timed out", remaining)
    except StockPulseError as e:
        log.error("stocks request failed: %s", e)
        return _error(500, str(e), remaining)
    except Exception:
        log.exception("unexpected error in /stocks")
        return _error(500, "Internal server error", remaining)

    return StocksResponse(data=data, remaining=remaining)


@router.post(
    "/stocks",
    response_model=CollectedData,
    responses={400: {"model": ErrorResponse}},
)
async def collect_stocks(
    payload: CollectIn,
    pipeline: StockSentimentPipeline = Depends(get_pipeline),
):
    """Market data and headlines for the given tickers, without scoring."""
    try:
        range_value = validate_range(payload.range)
        tickers = unique_tickers(payload.tickers)
    except ValueError as e:
        return _error(400, str(e))
    return await pipeline.collect(tickers, range_value)
