# backend/stockpulse/services/ticker_store.py
"""Custom ticker list persisted as {"customTickers": [...]} in a JSON file (last writer wins)."""
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Sequence, Union

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.utils.validators import unique_tickers

log = get_logger(__name__)


class TickerStore:
    def __init__(self, path: Union[str, Path, None] = None, default_tickers: Optional[Sequence[str]] = None):
        self.path = Path(path or settings.TICKERS_CONFIG_PATH)
        self.default_tickers = list(default_tickers if default_tickers is not None else settings.DEFAULT_TICKERS)

    def load_custom_tickers(self) -> List[str]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.warning("could not read %s: %s", self.path, e)
            return []
        raw = data.get("customTickers") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            return []
        return unique_tickers(t for t in raw if isinstance(t, str))

    def save_custom_tickers(self, tickers: Sequence[str]) -> List[str]:
        clean = unique_tickers(tickers)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"customTickers": clean}, f, indent=2)
        log.info("saved %d custom tickers to %s", len(clean), self.path)
        return clean

    def all_tickers(self) -> List[str]:
        return unique_tickers(self.default_tickers + self.load_custom_tickers())
