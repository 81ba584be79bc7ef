# backend/stockpulse/services/sec_filings.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, Optional

import requests
from bs4 import BeautifulSoup

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.services.errors import FilingError

log = get_logger(__name__)

COMPANY_TICKERS_URL = "https://www.sec.gov/files/company_tickers.json"
SUBMISSIONS_URL = "https://data.sec.gov/submissions/CIK{cik}.json"
ARCHIVE_URL = "https://www.sec.gov/Archives/edgar/data/{cik}/{accession}/{document}"


@dataclass
class CompanyInfo:
    cik: str  # zero-padded to 10 digits
    ticker: str
    title: str


@dataclass
class FilingRef:
    form: str
    accession_number: str
    primary_document: str
    url: str


def extract_text(html: str) -> str:
    """Visible body text of a filing, without scripts or styles."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style"]):
        tag.decompose()
    root = soup.body or soup
    lines = (line.strip() for line in root.get_text(separator="\n").splitlines())
    return "\n".join(line for line in lines if line)


class SecFilingClient:
    """
    SEC EDGAR access: ticker -> CIK, latest filing of a form type, document fetch.
    Calls are spaced out to stay under EDGAR's 10 requests/second limit.
    """

    def __init__(
        self,
        user_agent: str = settings.SEC_USER_AGENT,
        timeout: float = settings.SEC_TIMEOUT_SECONDS,
        spacing: float = settings.SEC_REQUEST_SPACING_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.spacing = spacing
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent, "Accept-Encoding": "gzip, deflate"})
        self._catalog: Optional[Dict[str, CompanyInfo]] = None

    def _get(self, url: str) -> requests.Response:
        if self.spacing:
            time.sleep(self.spacing)
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FilingError(f"SEC request failed for {url}: {e}") from e
        if r.status_code == 403:
            raise FilingError("SEC denied access (rate limit or missing User-Agent)")
        if r.status_code != 200:
            raise FilingError(f"SEC returned HTTP {r.status_code} for {url}")
        return r

    def _load_catalog(self) -> Dict[str, CompanyInfo]:
        if self._catalog is None:
            try:
                data = self._get(COMPANY_TICKERS_URL).json()
            except ValueError as e:
                raise FilingError(f"bad company catalog: {e}") from e
            catalog: Dict[str, CompanyInfo] = {}
            for v in data.values():
                ticker = str(v.get("ticker", "")).strip().upper()
                if ticker:
                    catalog[ticker] = CompanyInfo(
                        cik=str(v.get("cik_str", "")).zfill(10),
                        ticker=ticker,
                        title=str(v.get("title", "")).strip(),
                    )
            self._catalog = catalog
            log.info("loaded SEC company catalog (%d tickers)", len(catalog))
        return self._catalog

    def lookup_company(self, ticker: str) -> CompanyInfo:
        company = self._load_catalog().get(ticker.strip().upper())
        if company is None:
            raise FilingError(f"Company with ticker {ticker} not found")
        return company

    def latest_filing(self, cik: str, form: str = "10-K") -> FilingRef:
        url = SUBMISSIONS_URL.format(cik=cik.zfill(10))
        try:
            recent = self._get(url).json().get("filings", {}).get("recent", {})
        except ValueError as e:
            raise FilingError(f"bad submissions payload for CIK {cik}: {e}") from e
        forms = recent.get("form", []) or []
        for i, f in enumerate(forms):
            if f == form:
                accession = recent["accessionNumber"][i]
                document = recent["primaryDocument"][i]
                return FilingRef(
                    form=f,
                    accession_number=accession,
                    primary_document=document,
                    url=ARCHIVE_URL.format(cik=int(cik), accession=accession.replace("-", ""), document=document),
                )
        raise FilingError(f"No {form} filing found for CIK {cik}")

    def fetch_document(self, url: str) -> str:
        log.info("fetching filing document %s", url)
        return self._get(url).text

    def fetch_latest_text(self, ticker: str, form: str = "10-K") -> str:
        company = self.lookup_company(ticker)
        filing = self.latest_filing(company.cik, form=form)
        return extract_text(self.fetch_document(filing.url))
