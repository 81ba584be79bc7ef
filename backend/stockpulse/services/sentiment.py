# backend/stockpulse/services/sentiment.py
"""
Batched LLM sentiment scoring.

All real headlines go out in a single chat completion; the reply must be a
JSON object ``{"headlines": [{"stock", "headline", "sentimentScore"}, ...]}``.
A reply that cannot be parsed fails the request. Individual items that fail
validation are dropped and never re-asked.
"""
from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Optional, Protocol, Sequence

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.schemas.stocks import Headline, ScoredHeadline, StockSnapshot, TickerSentiment
from stockpulse.services.errors import LLMNotConfiguredError, NoHeadlinesError, SentimentDataError

log = get_logger(__name__)

PROMPT_HEADER = """Analyze these stock headlines and provide sentiment scores between -1.0 (most negative) and 1.0 (most positive). Return your analysis in a JSON object with a 'headlines' array.

Return ONLY a JSON object in this exact format:
{
  "headlines": [
    {
      "stock": "TICKER",
      "headline": "HEADLINE_TEXT",
      "sentimentScore": SCORE
    }
  ]
}

For each headline, copy the exact stock symbol and headline text, and add an appropriate sentiment score.

Headlines to analyze:
"""


class SentimentLLM(Protocol):
    async def complete(self, prompt: str) -> Optional[str]:
        ...


class OpenAISentimentLLM:
    """Chat completion in JSON mode via the official OpenAI SDK."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = settings.OPENAI_SENTIMENT_MODEL,
        temperature: float = settings.SENTIMENT_TEMPERATURE,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model
        self.temperature = temperature
        self._client = None

    def _get_client(self):
        if not self.api_key:
            raise LLMNotConfiguredError("OpenAI API key not configured")
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def complete(self, prompt: str) -> Optional[str]:
        client = self._get_client()
        resp = await client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
            response_format={"type": "json_object"},
        )
        if not resp.choices:
            return None
        return resp.choices[0].message.content


def build_prompt(headlines: Sequence[Headline]) -> str:
    lines = [f"{h.ticker}: {h.headline}" for h in headlines]
    return PROMPT_HEADER + "\n".join(lines)


def _valid_score(v: Any) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return False
    return not math.isnan(v) and -1.0 <= v <= 1.0


def parse_sentiment_payload(content: Optional[str]) -> List[Dict[str, Any]]:
    """Validate the LLM envelope and return the well-formed items only."""
    if not content:
        raise SentimentDataError("No content received from the sentiment model")
    try:
        parsed = json.loads(content)
    except (TypeError, ValueError) as e:
        log.error("sentiment reply is not JSON: %s | raw=%r", e, content[:500])
        raise SentimentDataError("Failed to parse sentiment data") from e

    items = parsed.get("headlines") if isinstance(parsed, dict) else None
    if not isinstance(items, list):
        log.error("sentiment reply has no 'headlines' array: %r", content[:500])
        raise SentimentDataError("Failed to parse sentiment data: invalid response format")

    kept = [
        i for i in items
        if isinstance(i, dict)
        and isinstance(i.get("stock"), str)
        and isinstance(i.get("headline"), str)
        and _valid_score(i.get("sentimentScore"))
    ]
    if len(kept) < len(items):
        log.warning("dropped %d malformed sentiment items", len(items) - len(kept))
    return kept


class SentimentAggregator:
    def __init__(self, llm: Optional[SentimentLLM] = None):
        self.llm = llm or OpenAISentimentLLM()

    async def score(self, headlines: Sequence[Headline]) -> List[ScoredHeadline]:
        real = [h for h in headlines if not h.placeholder]
        if not real:
            raise NoHeadlinesError("No headlines found")

        content = await self.llm.complete(build_prompt(real))
        items = parse_sentiment_payload(content)

        known = {h.ticker for h in real}
        urls = {(h.ticker, h.headline): h.url for h in real}
        scored: List[ScoredHeadline] = []
        for item in items:
            ticker = item["stock"].strip().upper()
            if ticker not in known:
                log.warning("sentiment item for unrequested ticker %r dropped", item["stock"])
                continue
            text = item["headline"]
            scored.append(ScoredHeadline(
                ticker=ticker,
                headline=text,
                url=urls.get((ticker, text)),
                sentiment_score=float(item["sentimentScore"]),
            ))

        if not scored:
            raise SentimentDataError("No valid sentiment data after filtering")
        log.info("scored %d of %d headlines", len(scored), len(real))
        return scored


def fold_sentiments(
    scored: Sequence[ScoredHeadline],
    tickers: Sequence[str],
    snapshots: Optional[Dict[str, Optional[StockSnapshot]]] = None,
) -> List[TickerSentiment]:
    """
    One entry per ticker, in ``tickers`` order. The mean is unweighted;
    a ticker with nothing scored gets mean_score=None / insufficient_data=True.
    """
    snapshots = snapshots or {}
    groups: Dict[str, List[ScoredHeadline]] = {t: [] for t in tickers}
    for s in scored:
        groups.setdefault(s.ticker, []).append(s)

    out: List[TickerSentiment] = []
    for ticker, articles in groups.items():
        mean = sum(a.sentiment_score for a in articles) / len(articles) if articles else None
        out.append(TickerSentiment(
            ticker=ticker,
            articles=articles,
            count=len(articles),
            mean_score=mean,
            insufficient_data=not articles,
            stock_data=snapshots.get(ticker),
        ))
    return out
