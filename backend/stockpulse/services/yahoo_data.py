# backend/stockpulse/services/yahoo_data.py
"""
Thin blocking wrapper over yfinance.

Everything here is synchronous; the async services run these calls in worker
threads. Values the provider leaves out come back as None, never 0.
"""
from __future__ import annotations
from datetime import timezone
import math
from typing import Any, Dict, List, Optional

import yfinance as yf

# range -> (interval, include pre/post market)
RANGE_INTERVALS = {
    "1d": ("5m", True),
    "5d": ("15m", False),
    "1mo": ("1d", False),
    "1y": ("1d", False),
}

# StockDetails field -> yfinance .info key
SUMMARY_FIELDS = {
    "market_cap": "marketCap",
    "pe_ratio": "trailingPE",
    "forward_pe": "forwardPE",
    "dividend_yield": "dividendYield",
    "volume": "volume",
    "avg_volume": "averageVolume",
    "high52_week": "fiftyTwoWeekHigh",
    "low52_week": "fiftyTwoWeekLow",
    "beta": "beta",
    "price_to_book": "priceToBook",
    "earnings_growth": "earningsGrowth",
    "revenue_growth": "revenueGrowth",
    "profit_margin": "profitMargins",
}


def opt_float(v: Any) -> Optional[float]:
    """float(v), or None for missing / NaN / infinite / non-numeric values."""
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def _df_to_points(df) -> List[Dict[str, Any]]:
    if df is None or getattr(df, "empty", True) or "Close" not in df.columns:
        return []
    out: List[Dict[str, Any]] = []
    for ts, close in df["Close"].items():
        price = opt_float(close)
        if price is None:
            # gaps are dropped, never filled
            continue
        t = ts.to_pydatetime()
        t = t.replace(tzinfo=timezone.utc) if t.tzinfo is None else t.astimezone(timezone.utc)
        out.append({"timestamp": t.isoformat().replace("+00:00", "Z"), "price": price})
    return out


class YahooClient:
    """yfinance access used by the market-data fetcher and news collector."""

    def get_quote(self, ticker: str) -> Dict[str, float]:
        tk = yf.Ticker(ticker)
        fi = tk.fast_info
        price = opt_float(fi.get("lastPrice"))
        prev = opt_float(fi.get("previousClose"))
        if price is None:
            raise ValueError(f"no quote price for {ticker}")
        change = price - prev if prev is not None else 0.0
        change_pct = (change / prev * 100.0) if prev else 0.0
        return {"price": price, "change": change, "change_percent": change_pct}

    def get_summary(self, ticker: str) -> Dict[str, Optional[float]]:
        info = yf.Ticker(ticker).info or {}
        return {field: opt_float(info.get(key)) for field, key in SUMMARY_FIELDS.items()}

    def get_chart(self, ticker: str, range_: str) -> List[Dict[str, Any]]:
        interval, prepost = RANGE_INTERVALS.get(range_, ("1d", False))
        df = yf.Ticker(ticker).history(period=range_, interval=interval, prepost=prepost, auto_adjust=False)
        return _df_to_points(df)

    def search_news(self, ticker: str, count: int = 3) -> List[Dict[str, Optional[str]]]:
        results = yf.Search(ticker, max_results=1, news_count=count).news or []
        out = []
        for item in results[:count]:
            title = (item.get("title") or "").strip()
            if title:
                out.append({"title": title, "link": item.get("link")})
        return out
