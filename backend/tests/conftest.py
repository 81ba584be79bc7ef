import json
import os
import re

import pytest

# settings are read at import time, so the environment goes first
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ["NEWS_SCRAPE_ENABLED"] = "false"
os.environ["NEWS_STAGGER_SECONDS"] = "0"
os.environ["MARKET_DATA_BACKOFF_SECONDS"] = "0"
os.environ["SEC_REQUEST_SPACING_SECONDS"] = "0"
os.environ.pop("PINECONE_API_KEY", None)
os.environ.pop("PINECONE_INDEX", None)

DEFAULTS = ["AAPL", "MSFT", "GOOGL", "AMZN", "META"]

_LINE = re.compile(r"^([A-Z0-9.\-^=]+): (.+)$")


class FakeYahoo:
    """Stands in for YahooClient: canned quotes, summaries, charts and news."""

    def __init__(self, prices=None, news=None, failing=(), summary=None):
        self.prices = prices or {}
        self.news = news or {}
        self.failing = set(failing)
        self.summary = summary or {}
        self.quote_calls = []
        self.news_calls = []

    def get_quote(self, ticker):
        self.quote_calls.append(ticker)
        if ticker in self.failing:
            raise RuntimeError(f"provider down for {ticker}")
        price = self.prices.get(ticker, 100.0)
        return {"price": price, "change": 1.0, "change_percent": 1.0}

    def get_summary(self, ticker):
        if ticker in self.failing:
            raise RuntimeError(f"provider down for {ticker}")
        return dict(self.summary)

    def get_chart(self, ticker, range_):
        return [
            {"timestamp": "2024-01-02T14:30:00Z", "price": 99.0},
            {"timestamp": "2024-01-02T14:35:00Z", "price": 100.0},
        ]

    def search_news(self, ticker, count=3):
        self.news_calls.append(ticker)
        titles = self.news.get(ticker, [f"{ticker} shares move on trading update"])
        return [{"title": t, "link": f"https://news.example.com/{ticker}/{i}"} for i, t in enumerate(titles[:count])]


class FakeScraper:
    def __init__(self, candidates=None, error=None):
        self.candidates = candidates or []
        self.error = error
        self.calls = 0

    def fetch_candidates(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.candidates)


class FakeLLM:
    """
    Scores every "TICKER: headline" line of the prompt with ``scores[ticker]``
    (default 0.1). ``content`` overrides the reply entirely.
    """

    def __init__(self, scores=None, content=None):
        self.scores = scores or {}
        self.content = content
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.content is not None:
            return self.content
        body = prompt.split("Headlines to analyze:", 1)[-1]
        items = []
        for line in body.splitlines():
            m = _LINE.match(line.strip())
            if m:
                ticker, text = m.groups()
                items.append({"stock": ticker, "headline": text, "sentimentScore": self.scores.get(ticker, 0.1)})
        return json.dumps({"headlines": items})


def make_pipeline(yahoo=None, llm=None, scraper=None, cap=10, defaults=DEFAULTS):
    from stockpulse.services.market_data import MarketDataFetcher
    from stockpulse.services.news_collector import NewsCollector
    from stockpulse.services.pipeline import StockSentimentPipeline
    from stockpulse.services.sentiment import SentimentAggregator

    yahoo = yahoo or FakeYahoo()
    return StockSentimentPipeline(
        market=MarketDataFetcher(yahoo, attempts=2, backoff=0, timeout=2),
        news=NewsCollector(search=yahoo, scraper=scraper, stagger=0, timeout=2),
        sentiment=SentimentAggregator(llm or FakeLLM()),
        default_tickers=defaults,
        cap=cap,
    )


@pytest.fixture
def fake_yahoo():
    return FakeYahoo()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def ticker_store(tmp_path):
    from stockpulse.services.ticker_store import TickerStore
    return TickerStore(tmp_path / "config.json", default_tickers=DEFAULTS)


@pytest.fixture
def client(fake_yahoo, fake_llm, ticker_store):
    # import AFTER env is set
    from fastapi.testclient import TestClient
    from stockpulse.main import app
    from stockpulse.services.rate_limiter import RateLimiter

    # IMPORTANT: use context manager so lifespan runs, then swap in the fakes
    with TestClient(app) as c:
        app.state.rate_limiter = RateLimiter(quota=5)
        app.state.pipeline = make_pipeline(fake_yahoo, fake_llm)
        app.state.ticker_store = ticker_store
        yield c
