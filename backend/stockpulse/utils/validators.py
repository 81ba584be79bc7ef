import unicodedata
from typing import Iterable, List, Optional

VALID_TIME_RANGES = ("1d", "5d", "1mo", "1y")

def normalize_ticker(raw: str) -> str:
    s = unicodedata.normalize("NFKC", str(raw or ""))
    s = s.replace("\u00A0", " ").strip()         # remove NBSP, trim
    s = "".join(ch for ch in s if not ch.isspace())# remove ALL spaces
    return s.upper()

def unique_tickers(items: Iterable[str]) -> List[str]:
    """Normalize, drop blanks and de-duplicate while keeping first-seen order."""
    out: List[str] = []
    for raw in items:
        t = normalize_ticker(raw)
        if t and t not in out:
            out.append(t)
    return out

def parse_ticker_csv(raw: Optional[str]) -> List[str]:
    """'aapl, nflx,,AAPL' -> ['AAPL', 'NFLX']; symbols are otherwise passed through as given."""
    return unique_tickers((raw or "").split(","))

def validate_range(raw: Optional[str]) -> str:
    r = (raw or "1d").strip()
    if r not in VALID_TIME_RANGES:
        raise ValueError(f"Invalid range. Must be one of: {', '.join(VALID_TIME_RANGES)}")
    return r
