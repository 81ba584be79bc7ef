# backend/stockpulse/services/ticker_matching.py
"""Assigns free-floating headlines (e.g. scraped ones) to a ticker."""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Protocol

# Aliases / company names for the default watch list.
TICKER_ALIASES: Dict[str, List[str]] = {
    "AAPL": ["Apple", "iPhone", "Tim Cook"],
    "MSFT": ["Microsoft", "Azure", "Satya Nadella"],
    "GOOGL": ["Alphabet", "Google", "YouTube", "GOOG"],
    "AMZN": ["Amazon", "AWS", "Andy Jassy"],
    "META": ["Meta Platforms", "Facebook", "Instagram", "WhatsApp", "Zuckerberg"],
}


class TickerMatcher(Protocol):
    def match(self, text: str) -> Optional[str]:
        ...


def _symbol_pattern(symbol: str) -> re.Pattern:
    # standalone uppercase symbol, optionally written as a cashtag
    return re.compile(r"(?<![A-Za-z0-9])\$?" + re.escape(symbol) + r"(?![A-Za-z0-9])")


class AliasTickerMatcher:
    """
    Symbol match first (case-sensitive, whole word), then alias substrings
    (case-insensitive). Tickers without an alias entry get symbol-only matching.
    """

    def __init__(self, tickers: Iterable[str], aliases: Optional[Dict[str, List[str]]] = None):
        table = TICKER_ALIASES if aliases is None else aliases
        self.tickers = [t.upper() for t in tickers]
        self._symbols = [(t, _symbol_pattern(t)) for t in self.tickers]
        self._aliases = [(t, [a.lower() for a in table.get(t, [])]) for t in self.tickers]

    def match(self, text: str) -> Optional[str]:
        if not text:
            return None
        for ticker, pattern in self._symbols:
            if pattern.search(text):
                return ticker
        lowered = text.lower()
        for ticker, aliases in self._aliases:
            if any(a in lowered for a in aliases):
                return ticker
        return None
