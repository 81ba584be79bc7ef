# backend/stockpulse/services/news_scraper.py
from __future__ import annotations

from typing import Dict, List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from stockpulse.logger import get_logger

log = get_logger(__name__)

USER_AGENT = {"User-Agent": "Mozilla/5.0 (compatible; StockPulse/1.0)"}

MIN_HEADLINE_CHARS = 20


def extract_headlines(html: str, base_url: str = "") -> List[Dict[str, Optional[str]]]:
    """Pull (headline, link) candidates out of a news listing page."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    seen = set()
    out: List[Dict[str, Optional[str]]] = []
    for a in soup.find_all("a", href=True):
        heading = a.find(["h2", "h3", "h4"])
        text = (heading or a).get_text(" ", strip=True)
        text = " ".join(text.split())
        if len(text) < MIN_HEADLINE_CHARS or text in seen:
            continue
        seen.add(text)
        out.append({"title": text, "link": urljoin(base_url, a["href"])})
    return out


class NewsScraper:
    """Fallback headline source: one HTML listing page shared by all tickers."""

    def __init__(self, url: str, timeout: float = 8.0):
        self.url = url
        self.timeout = timeout

    def fetch_candidates(self) -> List[Dict[str, Optional[str]]]:
        r = requests.get(self.url, headers=USER_AGENT, timeout=self.timeout)
        r.raise_for_status()
        items = extract_headlines(r.text, base_url=self.url)
        log.info("scraped %d headline candidates from %s", len(items), self.url)
        return items
