# backend/scripts/ingest_docs.py
"""
Ingest the latest 10-K for every configured ticker into the vector store.

    python backend/scripts/ingest_docs.py            # defaults + config.json
    python backend/scripts/ingest_docs.py NFLX TSLA  # save extra tickers first
"""
import asyncio
import sys
from pathlib import Path

# Make sure the 'stockpulse' package is importable (run from anywhere)
sys.path.append(str(Path(__file__).resolve().parents[1]))

from stockpulse.services.ingestor import DocumentIngestor
from stockpulse.services.sec_filings import SecFilingClient
from stockpulse.services.ticker_store import TickerStore
from stockpulse.services.vector_store import get_vector_store
from stockpulse.utils.validators import parse_ticker_csv


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    extra = parse_ticker_csv(",".join(argv))
    ingestor = DocumentIngestor(SecFilingClient(), get_vector_store, TickerStore())

    results = asyncio.run(ingestor.ingest(extra))

    print("== Results ==")
    failed = 0
    for r in results:
        mark = "ok " if r["status"] == "fulfilled" else "ERR"
        failed += r["status"] != "fulfilled"
        print(f"  [{mark}] {r['symbol']}: {r['result']}")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
