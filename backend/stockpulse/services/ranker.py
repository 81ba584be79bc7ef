# backend/stockpulse/services/ranker.py
from __future__ import annotations

from typing import Iterable, List, Sequence

from stockpulse.schemas.stocks import TickerSentiment


def _sort_key(item: TickerSentiment) -> float:
    # insufficient-data entries go after every scored entry
    return -item.mean_score if item.mean_score is not None else float("inf")


def sort_by_sentiment(items: Iterable[TickerSentiment]) -> List[TickerSentiment]:
    """Descending mean score; ties keep insertion order."""
    return sorted(items, key=_sort_key)


def rank_results(
    items: Sequence[TickerSentiment],
    explicit_tickers: Iterable[str],
    cap: int = 10,
) -> List[TickerSentiment]:
    """
    Explicit tickers first (always kept), then the best-scoring others until
    ``cap`` entries. Both groups stay in score order; they are not interleaved.
    """
    explicit = {t.upper() for t in explicit_tickers}
    ranked = sort_by_sentiment(items)
    pinned = [i for i in ranked if i.ticker in explicit]
    rest = [i for i in ranked if i.ticker not in explicit]
    slots = max(0, cap - len(pinned))
    return pinned + rest[:slots]
