# backend/stockpulse/routers/ingest.py
from __future__ import annotations

import time
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from stockpulse.api.deps import get_ingestor
from stockpulse.logger import get_logger
from stockpulse.schemas.ingest import IngestResponse
from stockpulse.services.errors import StockPulseError
from stockpulse.services.ingestor import DocumentIngestor
from stockpulse.utils.validators import parse_ticker_csv

log = get_logger(__name__)

router = APIRouter(tags=["ingest"])


@router.get("/ingest", response_model=IngestResponse)
async def ingest(
    tickers: Optional[str] = Query(None, description="Extra comma-separated symbols to save before ingesting"),
    ingestor: DocumentIngestor = Depends(get_ingestor),
):
    request_id = uuid.uuid4().hex[:8]
    started = time.perf_counter()
    log.info("[%s] ingestion started", request_id)

    def _duration() -> str:
        return f"{int((time.perf_counter() - started) * 1000)}ms"

    try:
        custom = parse_ticker_csv(tickers)
        results = await ingestor.ingest(custom)
    except StockPulseError as e:
        log.error("[%s] ingestion failed: %s", request_id, e)
        return JSONResponse(status_code=500, content={"error": str(e), "requestId": request_id, "duration": _duration()})
    except Exception:
        log.exception("[%s] ingestion failed", request_id)
        return JSONResponse(
            status_code=500,
            content={"error": "Ingestion failed", "requestId": request_id, "duration": _duration()},
        )

    duration = _duration()
    log.info("[%s] ingestion completed in %s", request_id, duration)
    return IngestResponse(
        message="Ingestion completed",
        request_id=request_id,
        duration=duration,
        results=results,
    )
