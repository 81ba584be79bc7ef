import math

import pandas as pd
import pytest

from stockpulse.services.market_data import MarketDataFetcher
from stockpulse.services.yahoo_data import RANGE_INTERVALS, _df_to_points, opt_float

from conftest import FakeYahoo


class FlakyYahoo(FakeYahoo):
    def __init__(self, failures):
        super().__init__()
        self.failures = failures

    def get_quote(self, ticker):
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("temporary outage")
        return super().get_quote(ticker)


class NoChartYahoo(FakeYahoo):
    def get_chart(self, ticker, range_):
        raise RuntimeError("chart endpoint down")


def test_range_intervals():
    assert RANGE_INTERVALS["1d"] == ("5m", True)
    assert RANGE_INTERVALS["5d"] == ("15m", False)
    assert RANGE_INTERVALS["1mo"][0] == "1d"
    assert RANGE_INTERVALS["1y"][0] == "1d"


@pytest.mark.parametrize("raw", [None, float("nan"), math.inf, "n/a", True])
def test_opt_float_absent(raw):
    assert opt_float(raw) is None


def test_opt_float_keeps_zero():
    assert opt_float(0) == 0.0


def test_chart_gaps_dropped():
    idx = pd.to_datetime(["2024-01-02 14:30", "2024-01-02 14:35", "2024-01-02 14:40"], utc=True)
    df = pd.DataFrame({"Close": [10.0, float("nan"), 11.0]}, index=idx)
    points = _df_to_points(df)
    assert [p["price"] for p in points] == [10.0, 11.0]
    assert points[0]["timestamp"] == "2024-01-02T14:30:00Z"


@pytest.mark.asyncio
async def test_fetch_builds_snapshot():
    yahoo = FakeYahoo(prices={"AAPL": 190.5}, summary={"market_cap": 3e12, "beta": None})
    snap = await MarketDataFetcher(yahoo, attempts=2, backoff=0, timeout=2).fetch("AAPL", "1d")
    assert snap.price == 190.5
    assert len(snap.chart_data) == 2
    assert snap.details.market_cap == 3e12
    assert snap.details.beta is None
    assert snap.details.pe_ratio is None


@pytest.mark.asyncio
async def test_fetch_retries_transient_failure():
    yahoo = FlakyYahoo(failures=1)
    snap = await MarketDataFetcher(yahoo, attempts=2, backoff=0, timeout=2).fetch("MSFT", "5d")
    assert snap is not None


@pytest.mark.asyncio
async def test_fetch_returns_none_when_all_attempts_fail():
    yahoo = FakeYahoo(failing={"BAD"})
    snap = await MarketDataFetcher(yahoo, attempts=2, backoff=0, timeout=2).fetch("BAD", "1d")
    assert snap is None
    assert yahoo.quote_calls == ["BAD", "BAD"]


@pytest.mark.asyncio
async def test_chart_failure_degrades_to_empty_series():
    snap = await MarketDataFetcher(NoChartYahoo(), attempts=1, backoff=0, timeout=2).fetch("AAPL", "1y")
    assert snap is not None
    assert snap.chart_data == []
