# backend/stockpulse/routers/tickers.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from stockpulse.api.deps import get_ticker_store
from stockpulse.logger import get_logger
from stockpulse.schemas.tickers import SyncTickersIn, SyncTickersOut
from stockpulse.services.ticker_store import TickerStore

log = get_logger(__name__)

router = APIRouter(tags=["tickers"])

INVALID_FORMAT = "Invalid tickers format"


@router.post("/sync-tickers", response_model=SyncTickersOut)
async def sync_tickers(request: Request, store: TickerStore = Depends(get_ticker_store)):
    """Replace the custom ticker list used by document ingestion."""
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": INVALID_FORMAT})
    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={"error": INVALID_FORMAT})
    try:
        payload = SyncTickersIn.model_validate(body)
    except ValidationError as e:
        log.info("sync-tickers rejected: %s", e.errors()[:1])
        return JSONResponse(status_code=400, content={"error": INVALID_FORMAT})

    saved = store.save_custom_tickers(payload.custom_tickers)
    return SyncTickersOut(custom_tickers=saved)
