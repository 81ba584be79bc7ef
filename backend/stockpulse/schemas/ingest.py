# backend/stockpulse/schemas/ingest.py
from __future__ import annotations

from typing import List, Literal

from stockpulse.schemas.stocks import CamelModel


class IngestOutcome(CamelModel):
    symbol: str
    status: Literal["fulfilled", "rejected"]
    result: str


class IngestResponse(CamelModel):
    message: str
    request_id: str
    duration: str
    results: List[IngestOutcome]
