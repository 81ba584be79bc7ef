import pytest

from stockpulse.utils.validators import parse_ticker_csv, unique_tickers, validate_range


def test_normalizes_and_dedupes_csv():
    assert parse_ticker_csv(" aapl, nflx,,AAPL ") == ["AAPL", "NFLX"]


def test_empty_csv():
    assert parse_ticker_csv(None) == []
    assert parse_ticker_csv("") == []


def test_unique_keeps_first_seen_order():
    assert unique_tickers(["msft", "AAPL", "MSFT", " "]) == ["MSFT", "AAPL"]


def test_symbols_only_normalised():
    assert parse_ticker_csv("brk/b,bf.b, ^gspc") == ["BRK/B", "BF.B", "^GSPC"]


@pytest.mark.parametrize("r", ["1d", "5d", "1mo", "1y"])
def test_valid_ranges(r):
    assert validate_range(r) == r


def test_missing_range_defaults_to_1d():
    assert validate_range(None) == "1d"


def test_invalid_range():
    with pytest.raises(ValueError, match="Invalid range"):
        validate_range("2w")
