# backend/stockpulse/services/errors.py
"""Domain exceptions raised by services and translated to HTTP responses by routers."""


class StockPulseError(Exception):
    """Base class for errors the API reports to the caller."""


class LLMNotConfiguredError(StockPulseError):
    """OPENAI_API_KEY is missing."""


class NoHeadlinesError(StockPulseError):
    """Nothing to send to the LLM."""


class SentimentDataError(StockPulseError):
    """LLM response was empty, not JSON, or had no usable scores."""


class MarketDataUnavailableError(StockPulseError):
    """Market data failed for every requested ticker."""


class FilingError(StockPulseError):
    """SEC EDGAR lookup or download failed."""


class VectorStoreNotConfiguredError(StockPulseError):
    """PINECONE_API_KEY / PINECONE_INDEX are missing."""
