# backend/stockpulse/services/news_collector.py
"""
Headline collection per ticker.

  1. provider search (yfinance)     -> up to NEWS_PER_TICKER headlines
  2. scraped listing page (fallback) -> only for tickers below NEWS_MIN_HEADLINES
  3. placeholder                     -> "Market analysis for TICKER"

Source failures only ever mean fewer headlines; nothing here raises.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Dict, Iterable, List, Optional

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.schemas.stocks import Headline
from stockpulse.services.news_scraper import NewsScraper
from stockpulse.services.ticker_matching import AliasTickerMatcher, TickerMatcher
from stockpulse.services.yahoo_data import YahooClient
from stockpulse.utils.validators import unique_tickers

log = get_logger(__name__)


def quote_url(ticker: str) -> str:
    return f"https://finance.yahoo.com/quote/{ticker}"


def placeholder_headline(ticker: str) -> Headline:
    return Headline(
        ticker=ticker,
        headline=f"Market analysis for {ticker}",
        url=quote_url(ticker),
        placeholder=True,
    )


def dedupe_headlines(items: Iterable[Headline]) -> List[Headline]:
    """Drop exact-text repeats within a ticker, keeping the first."""
    seen = set()
    out: List[Headline] = []
    for h in items:
        key = (h.ticker, h.headline)
        if key in seen:
            continue
        seen.add(key)
        out.append(h)
    return out


class NewsCollector:
    def __init__(
        self,
        search: Optional[YahooClient] = None,
        scraper: Optional[NewsScraper] = None,
        matcher_factory: Callable[[List[str]], TickerMatcher] = AliasTickerMatcher,
        *,
        per_ticker: int = settings.NEWS_PER_TICKER,
        min_headlines: int = settings.NEWS_MIN_HEADLINES,
        stagger: float = settings.NEWS_STAGGER_SECONDS,
        timeout: float = settings.NEWS_TIMEOUT_SECONDS,
    ):
        self.search = search or YahooClient()
        self.scraper = scraper
        self.matcher_factory = matcher_factory
        self.per_ticker = per_ticker
        self.min_headlines = min_headlines
        self.stagger = stagger
        self.timeout = timeout

    async def _from_search(self, index: int, ticker: str) -> List[Headline]:
        if self.stagger:
            await asyncio.sleep(self.stagger * index)
        try:
            items = await asyncio.wait_for(
                asyncio.to_thread(self.search.search_news, ticker, self.per_ticker),
                timeout=self.timeout,
            )
        except Exception as e:
            log.warning("news search failed for %s: %s", ticker, e)
            return []
        out = []
        for item in (items or [])[: self.per_ticker]:
            title = (item.get("title") or "").strip()
            if title:
                out.append(Headline(ticker=ticker, headline=title, url=item.get("link") or quote_url(ticker)))
        return out

    async def _scrape(self) -> List[Dict[str, Optional[str]]]:
        if self.scraper is None:
            return []
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.scraper.fetch_candidates), timeout=self.timeout)
        except Exception as e:
            log.warning("headline scrape failed: %s", e)
            return []

    async def collect(self, tickers: Iterable[str]) -> List[Headline]:
        symbols = unique_tickers(tickers)
        found = await asyncio.gather(*(self._from_search(i, t) for i, t in enumerate(symbols)))
        by_ticker: Dict[str, List[Headline]] = {t: dedupe_headlines(items) for t, items in zip(symbols, found)}

        short = {t for t in symbols if len(by_ticker[t]) < self.min_headlines}
        if short:
            candidates = await self._scrape()
            if candidates:
                matcher = self.matcher_factory(symbols)
                for c in candidates:
                    title = (c.get("title") or "").strip()
                    ticker = matcher.match(title)
                    if ticker not in short or len(by_ticker[ticker]) >= self.per_ticker:
                        continue
                    by_ticker[ticker] = dedupe_headlines(
                        by_ticker[ticker] + [Headline(ticker=ticker, headline=title, url=c.get("link"))]
                    )

        out: List[Headline] = []
        for t in symbols:
            items = by_ticker[t]
            if not items:
                log.info("no headlines for %s, using placeholder", t)
                items = [placeholder_headline(t)]
            out.extend(items)
        log.info("collected %d headlines for %d tickers", len(out), len(symbols))
        return out
