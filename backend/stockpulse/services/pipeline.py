# backend/stockpulse/services/pipeline.py
"""
Ticker-sentiment pipeline.

Flow per request:
  1. market data for every ticker   } concurrently
  2. headline collection            }
  3. one batched LLM call (waits for all headlines)
  4. join scores with market data by ticker
  5. rank: requested tickers pinned, top others up to RESULT_CAP
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.schemas.stocks import CollectedData, StockSnapshot, TickerSentiment
from stockpulse.services.errors import MarketDataUnavailableError
from stockpulse.services.market_data import MarketDataFetcher
from stockpulse.services.news_collector import NewsCollector
from stockpulse.services.news_scraper import NewsScraper
from stockpulse.services.ranker import rank_results
from stockpulse.services.sentiment import SentimentAggregator, fold_sentiments
from stockpulse.services.yahoo_data import YahooClient
from stockpulse.utils.validators import unique_tickers

log = get_logger(__name__)


class StockSentimentPipeline:
    def __init__(
        self,
        market: MarketDataFetcher,
        news: NewsCollector,
        sentiment: SentimentAggregator,
        *,
        default_tickers: Sequence[str] = tuple(settings.DEFAULT_TICKERS),
        cap: int = settings.RESULT_CAP,
    ):
        self.market = market
        self.news = news
        self.sentiment = sentiment
        self.default_tickers = list(default_tickers)
        self.cap = cap

    def all_tickers(self, custom: Sequence[str]) -> List[str]:
        return unique_tickers(list(self.default_tickers) + list(custom))

    async def _snapshots(self, tickers: Sequence[str], range_: str) -> Dict[str, Optional[StockSnapshot]]:
        results = await asyncio.gather(*(self.market.fetch(t, range_) for t in tickers))
        return dict(zip(tickers, results))

    async def analyze(self, custom_tickers: Sequence[str], range_: str) -> List[TickerSentiment]:
        custom = unique_tickers(custom_tickers)
        tickers = self.all_tickers(custom)
        log.info("analyze tickers=%s range=%s", tickers, range_)

        snapshots, headlines = await asyncio.gather(
            self._snapshots(tickers, range_),
            self.news.collect(tickers),
        )
        if not any(s is not None for s in snapshots.values()):
            raise MarketDataUnavailableError("Market data unavailable for all tickers")

        scored = await self.sentiment.score(headlines)
        combined = fold_sentiments(scored, tickers, snapshots)
        return rank_results(combined, custom, cap=self.cap)

    async def collect(self, tickers: Sequence[str], range_: str) -> CollectedData:
        """Market data + headlines without scoring (no quota consumed)."""
        requested = unique_tickers(tickers)
        snapshots, headlines = await asyncio.gather(
            self._snapshots(requested, range_),
            self.news.collect(self.all_tickers(requested)),
        )
        return CollectedData(
            tickers=requested,
            articles=headlines,
            stock_data=[snapshots[t] for t in requested],
        )


def build_pipeline() -> StockSentimentPipeline:
    yahoo = YahooClient()
    scraper = (
        NewsScraper(settings.NEWS_SCRAPE_URL, timeout=settings.NEWS_TIMEOUT_SECONDS)
        if settings.NEWS_SCRAPE_ENABLED else None
    )
    return StockSentimentPipeline(
        market=MarketDataFetcher(yahoo),
        news=NewsCollector(search=yahoo, scraper=scraper),
        sentiment=SentimentAggregator(),
    )
