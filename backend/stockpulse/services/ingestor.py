# backend/stockpulse/services/ingestor.py
"""
Filing ingestion: latest 10-K -> text -> chunks -> embeddings -> vector store.

Chunks carry {symbol, source, timestamp} metadata; the chat route filters on
``symbol`` and the freshness check reads ``timestamp``.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.services.sec_filings import SecFilingClient
from stockpulse.services.ticker_store import TickerStore
from stockpulse.utils.validators import unique_tickers

log = get_logger(__name__)

FILING_FORM = "10-K"

# matches inspected when looking for the newest stored chunk of a symbol
FRESHNESS_SAMPLE = 20


def _parse_ts(raw: Any) -> Optional[datetime]:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class DocumentIngestor:
    def __init__(
        self,
        filings: SecFilingClient,
        vector_store: Callable[[], Any],
        tickers: TickerStore,
        *,
        chunk_size: int = settings.CHUNK_SIZE,
        chunk_overlap: int = settings.CHUNK_OVERLAP,
        freshness_days: int = settings.INGEST_FRESHNESS_DAYS,
        concurrency: int = settings.INGEST_CONCURRENCY,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.filings = filings
        self._vector_store = vector_store
        self.tickers = tickers
        self.splitter = RecursiveCharacterTextSplitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        self.freshness = timedelta(days=freshness_days)
        self.concurrency = max(1, concurrency)
        self._now = now

    # ---------- tickers ----------
    def update_custom_tickers(self, tickers: Sequence[str]) -> List[str]:
        return self.tickers.save_custom_tickers(tickers)

    def get_all_tickers(self) -> List[str]:
        return self.tickers.all_tickers()

    # ---------- per company ----------
    def chunk_ids(self, symbol: str, count: int) -> List[str]:
        """Stable per-chunk ids, so re-ingesting a symbol overwrites its previous vectors."""
        return [f"{symbol}-{FILING_FORM}-{i}" for i in range(count)]

    def build_documents(self, symbol: str, text: str) -> List[Document]:
        stamp = self._now().isoformat()
        return [
            Document(page_content=chunk, metadata={"symbol": symbol, "source": FILING_FORM, "timestamp": stamp})
            for chunk in self.splitter.split_text(text)
        ]

    async def check_existing_document(self, symbol: str) -> bool:
        """True when the newest stored chunk for ``symbol`` is inside the freshness window."""
        store = self._vector_store()
        try:
            docs = await asyncio.to_thread(
                store.similarity_search, f"{symbol} annual report", k=FRESHNESS_SAMPLE, filter={"symbol": symbol}
            )
        except Exception as e:
            log.warning("freshness check failed for %s: %s", symbol, e)
            return False
        stamps = [ts for ts in (_parse_ts(d.metadata.get("timestamp")) for d in docs) if ts is not None]
        if not stamps:
            return False
        return self._now() - max(stamps) < self.freshness

    async def process_company(self, symbol: str) -> int:
        log.info("processing %s for %s", FILING_FORM, symbol)
        text = await asyncio.to_thread(self.filings.fetch_latest_text, symbol, FILING_FORM)
        log.info("extracted %d characters of text for %s", len(text), symbol)
        docs = self.build_documents(symbol, text)
        if not docs:
            log.warning("no text chunks for %s", symbol)
            return 0
        store = self._vector_store()
        await asyncio.to_thread(store.add_documents, docs, ids=self.chunk_ids(symbol, len(docs)))
        log.info("stored %d chunks for %s", len(docs), symbol)
        return len(docs)

    # ---------- batch ----------
    async def ingest(self, custom_tickers: Optional[Sequence[str]] = None) -> List[Dict[str, str]]:
        self._vector_store()  # fail the whole batch when the store is not configured
        if custom_tickers:
            self.update_custom_tickers(custom_tickers)
        symbols = unique_tickers(self.get_all_tickers())
        sem = asyncio.Semaphore(self.concurrency)

        async def _one(symbol: str) -> str:
            async with sem:
                if await self.check_existing_document(symbol):
                    return f"Skipped {symbol} (recently processed)"
                n = await self.process_company(symbol)
                return f"Processed {symbol} ({n} chunks)"

        results = await asyncio.gather(*(_one(s) for s in symbols), return_exceptions=True)
        out = []
        for symbol, res in zip(symbols, results):
            if isinstance(res, BaseException):
                log.error("ingest failed for %s: %s", symbol, res)
                out.append({"symbol": symbol, "status": "rejected", "result": str(res)})
            else:
                out.append({"symbol": symbol, "status": "fulfilled", "result": res})
        return out
