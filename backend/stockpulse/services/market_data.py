# backend/stockpulse/services/market_data.py
from __future__ import annotations

import asyncio
from typing import Optional

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.schemas.stocks import ChartPoint, StockDetails, StockSnapshot
from stockpulse.services.yahoo_data import YahooClient
from stockpulse.utils.retry import with_retries

log = get_logger(__name__)


class MarketDataFetcher:
    """
    Quote + fundamentals + price series for one ticker.

    A ticker whose every attempt fails yields None so the rest of the request
    can carry on without it.
    """

    def __init__(
        self,
        client: Optional[YahooClient] = None,
        *,
        attempts: int = settings.MARKET_DATA_ATTEMPTS,
        backoff: float = settings.MARKET_DATA_BACKOFF_SECONDS,
        timeout: float = settings.MARKET_DATA_TIMEOUT_SECONDS,
    ):
        self.client = client or YahooClient()
        self.attempts = attempts
        self.backoff = backoff
        self.timeout = timeout

    async def _call(self, fn, *args):
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=self.timeout)

    async def _fetch_once(self, ticker: str, range_: str) -> StockSnapshot:
        quote, summary = await asyncio.gather(
            self._call(self.client.get_quote, ticker),
            self._call(self.client.get_summary, ticker),
        )
        try:
            points = await self._call(self.client.get_chart, ticker, range_)
        except Exception as e:
            log.warning("no chart data for %s (%s): %s", ticker, range_, e)
            points = []

        return StockSnapshot(
            price=quote["price"],
            change=quote.get("change") or 0.0,
            change_percent=quote.get("change_percent") or 0.0,
            chart_data=[ChartPoint(**p) for p in points if p.get("price") is not None],
            details=StockDetails(**summary),
        )

    async def fetch(self, ticker: str, range_: str = "1d") -> Optional[StockSnapshot]:
        try:
            snap = await with_retries(
                lambda: self._fetch_once(ticker, range_),
                attempts=self.attempts,
                base_delay=self.backoff,
                label=f"market data {ticker}",
            )
        except Exception as e:
            log.error("market data unavailable for %s: %s", ticker, e)
            return None
        log.info("market data %s range=%s price=%.2f points=%d", ticker, range_, snap.price, len(snap.chart_data))
        return snap
