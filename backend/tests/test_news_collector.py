import pytest

from stockpulse.services.news_collector import NewsCollector, dedupe_headlines, placeholder_headline
from stockpulse.services.news_scraper import extract_headlines
from stockpulse.schemas.stocks import Headline

from conftest import FakeScraper, FakeYahoo


def collector(yahoo, scraper=None, **kw):
    return NewsCollector(search=yahoo, scraper=scraper, stagger=0, timeout=2, **kw)


@pytest.mark.asyncio
async def test_search_headlines_per_ticker():
    yahoo = FakeYahoo(news={"AAPL": ["Apple beats on revenue", "Apple raises dividend", "Apple in talks", "extra"]})
    out = await collector(yahoo).collect(["aapl"])
    assert [h.headline for h in out] == ["Apple beats on revenue", "Apple raises dividend", "Apple in talks"]
    assert all(h.ticker == "AAPL" and not h.placeholder for h in out)


@pytest.mark.asyncio
async def test_placeholder_when_no_headlines():
    yahoo = FakeYahoo(news={"NFLX": []})
    out = await collector(yahoo).collect(["NFLX"])
    assert len(out) == 1
    assert out[0].headline == "Market analysis for NFLX"
    assert out[0].placeholder is True


@pytest.mark.asyncio
async def test_search_failure_degrades():
    class Broken(FakeYahoo):
        def search_news(self, ticker, count=3):
            raise RuntimeError("search down")

    out = await collector(Broken()).collect(["AAPL", "MSFT"])
    assert [h.ticker for h in out] == ["AAPL", "MSFT"]
    assert all(h.placeholder for h in out)


@pytest.mark.asyncio
async def test_scrape_fills_short_tickers_only():
    yahoo = FakeYahoo(news={"AAPL": ["Apple one", "Apple two"], "NFLX": []})
    scraper = FakeScraper([
        {"title": "Apple supplier warns on demand", "link": "https://x/1"},
        {"title": "NFLX subscriber growth tops forecasts", "link": "https://x/2"},
        {"title": "Unrelated macro story about rates", "link": "https://x/3"},
    ])
    out = await collector(yahoo, scraper).collect(["AAPL", "NFLX"])
    by = {}
    for h in out:
        by.setdefault(h.ticker, []).append(h.headline)
    assert by["AAPL"] == ["Apple one", "Apple two"]
    assert by["NFLX"] == ["NFLX subscriber growth tops forecasts"]
    assert scraper.calls == 1


@pytest.mark.asyncio
async def test_scrape_failure_degrades_to_placeholder():
    yahoo = FakeYahoo(news={"NFLX": []})
    out = await collector(yahoo, FakeScraper(error=RuntimeError("403"))).collect(["NFLX"])
    assert out[0].placeholder is True


def test_dedupe_within_ticker_only():
    items = [
        Headline(ticker="AAPL", headline="Same"),
        Headline(ticker="AAPL", headline="Same"),
        Headline(ticker="MSFT", headline="Same"),
    ]
    assert [(h.ticker, h.headline) for h in dedupe_headlines(items)] == [("AAPL", "Same"), ("MSFT", "Same")]


def test_placeholder_headline():
    h = placeholder_headline("TSLA")
    assert h.headline == "Market analysis for TSLA"
    assert h.placeholder


def test_extract_headlines_from_listing():
    html = """
    <html><body>
      <a href="/news/a.html"><h3>Apple shares climb after upbeat guidance</h3></a>
      <a href="/news/b.html">Short</a>
      <a href="https://other.example/c">Microsoft expands Azure data centers in Europe</a>
      <a href="/news/a2.html"><h3>Apple shares climb after upbeat guidance</h3></a>
      <script>var x = "<a href='/z'>Injected headline that is long enough</a>";</script>
    </body></html>
    """
    out = extract_headlines(html, base_url="https://finance.yahoo.com/topic/")
    assert out == [
        {"title": "Apple shares climb after upbeat guidance", "link": "https://finance.yahoo.com/news/a.html"},
        {"title": "Microsoft expands Azure data centers in Europe", "link": "https://other.example/c"},
    ]
