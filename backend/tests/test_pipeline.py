import json
import threading

import pytest

from stockpulse.services.errors import MarketDataUnavailableError, SentimentDataError

from conftest import DEFAULTS, FakeLLM, FakeYahoo, make_pipeline


@pytest.mark.asyncio
async def test_analyze_includes_requested_ticker_even_when_ranked_last():
    yahoo = FakeYahoo(news={"NFLX": ["Netflix misses subscriber targets"]})
    llm = FakeLLM(scores={"AAPL": 0.9, "MSFT": 0.8, "GOOGL": 0.7, "AMZN": 0.6, "META": 0.5, "NFLX": -0.8})
    out = await make_pipeline(yahoo, llm).analyze(["AAPL", "nflx"], "1d")

    tickers = [t.ticker for t in out]
    assert set(tickers) == set(DEFAULTS) | {"NFLX"}
    # explicit tickers lead, then the others by score
    assert tickers[:2] == ["AAPL", "NFLX"]
    assert tickers[2:] == ["MSFT", "GOOGL", "AMZN", "META"]
    assert len(llm.prompts) == 1
    assert set(yahoo.quote_calls) == set(tickers)
    nflx = next(t for t in out if t.ticker == "NFLX")
    assert nflx.stock_data is not None
    assert nflx.articles[0].headline == "Netflix misses subscriber targets"


@pytest.mark.asyncio
async def test_failed_ticker_still_listed_without_data():
    yahoo = FakeYahoo(news={"ZZZZ": []}, failing={"ZZZZ"})
    out = await make_pipeline(yahoo, FakeLLM()).analyze(["ZZZZ"], "1d")
    z = next(t for t in out if t.ticker == "ZZZZ")
    assert z.stock_data is None
    assert z.mean_score is None
    assert z.insufficient_data is True


@pytest.mark.asyncio
async def test_all_market_data_failing_is_fatal():
    yahoo = FakeYahoo(failing=set(DEFAULTS))
    with pytest.raises(MarketDataUnavailableError):
        await make_pipeline(yahoo, FakeLLM()).analyze([], "1d")


@pytest.mark.asyncio
async def test_malformed_llm_reply_propagates():
    with pytest.raises(SentimentDataError):
        await make_pipeline(FakeYahoo(), FakeLLM(content="garbage")).analyze([], "1d")


@pytest.mark.asyncio
async def test_result_capped():
    extra = [f"T{i}" for i in range(8)]
    out = await make_pipeline(FakeYahoo(), FakeLLM(), cap=10).analyze(extra, "5d")
    assert len(out) == 10
    assert {t.ticker for t in out} >= set(extra)


@pytest.mark.asyncio
async def test_collect_aligns_stock_data_with_tickers():
    yahoo = FakeYahoo(failing={"BAD"})
    data = await make_pipeline(yahoo, FakeLLM()).collect(["nflx", "BAD"], "1mo")
    assert data.tickers == ["NFLX", "BAD"]
    assert data.stock_data[0] is not None
    assert data.stock_data[1] is None
    assert {h.ticker for h in data.articles} == set(DEFAULTS) | {"NFLX", "BAD"}
    body = json.loads(data.model_dump_json(by_alias=True))
    assert set(body) == {"tickers", "articles", "stockData"}


class BarrierYahoo(FakeYahoo):
    """get_quote only returns once every ticker's quote call is in flight at the same time."""

    def __init__(self, parties):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=1)
        self.news_done = []

    def get_quote(self, ticker):
        self.barrier.wait()
        return super().get_quote(ticker)

    def search_news(self, ticker, count=3):
        out = super().search_news(ticker, count)
        self.news_done.append(ticker)
        return out


class OrderCheckingLLM(FakeLLM):
    def __init__(self, yahoo):
        super().__init__()
        self.yahoo = yahoo
        self.news_seen_at_call = None

    async def complete(self, prompt):
        self.news_seen_at_call = list(self.yahoo.news_done)
        return await super().complete(prompt)


@pytest.mark.asyncio
async def test_market_fetches_run_concurrently_and_llm_waits_for_news():
    yahoo = BarrierYahoo(parties=2)
    llm = OrderCheckingLLM(yahoo)
    pipeline = make_pipeline(yahoo, llm, defaults=["AAPL"])
    pipeline.market.attempts = 1

    out = await pipeline.analyze(["NFLX"], "1d")

    # sequential fetches would break the barrier and leave no market data
    assert not yahoo.barrier.broken
    assert all(t.stock_data is not None for t in out)
    assert sorted(llm.news_seen_at_call) == ["AAPL", "NFLX"]
    assert len(llm.prompts) == 1
