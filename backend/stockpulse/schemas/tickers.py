# backend/stockpulse/schemas/tickers.py
from __future__ import annotations

from typing import List
from pydantic import StrictStr

from stockpulse.schemas.stocks import CamelModel


class SyncTickersIn(CamelModel):
    custom_tickers: List[StrictStr]


class SyncTickersOut(CamelModel):
    success: bool = True
    custom_tickers: List[str]
