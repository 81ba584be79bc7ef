# backend/stockpulse/schemas/stocks.py
from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises with camelCase keys, accepts either form on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChartPoint(CamelModel):
    timestamp: str
    price: float


class StockDetails(CamelModel):
    # Every metric is optional: None means the provider did not return it.
    market_cap: Optional[float] = None
    pe_ratio: Optional[float] = None
    forward_pe: Optional[float] = Field(None, alias="forwardPE")
    dividend_yield: Optional[float] = None
    volume: Optional[float] = None
    avg_volume: Optional[float] = None
    high52_week: Optional[float] = Field(None, alias="high52Week")
    low52_week: Optional[float] = Field(None, alias="low52Week")
    beta: Optional[float] = None
    price_to_book: Optional[float] = None
    earnings_growth: Optional[float] = None
    revenue_growth: Optional[float] = None
    profit_margin: Optional[float] = None


class StockSnapshot(CamelModel):
    price: float
    change: float
    change_percent: float
    chart_data: List[ChartPoint] = Field(default_factory=list)
    details: StockDetails = Field(default_factory=StockDetails)


class Headline(CamelModel):
    ticker: str
    headline: str
    url: Optional[str] = None
    placeholder: bool = False


class ScoredHeadline(Headline):
    sentiment_score: float = Field(..., ge=-1.0, le=1.0)


class TickerSentiment(CamelModel):
    ticker: str
    articles: List[ScoredHeadline] = Field(default_factory=list)
    count: int = 0
    mean_score: Optional[float] = Field(None, description="null when there is not enough data to score")
    insufficient_data: bool = True
    stock_data: Optional[StockSnapshot] = None


class StocksResponse(CamelModel):
    data: List[TickerSentiment]
    remaining: int


class ErrorResponse(CamelModel):
    error: str
    remaining: Optional[int] = None


class CollectIn(CamelModel):
    tickers: List[str] = Field(default_factory=list)
    range: str = "1d"


class CollectedData(CamelModel):
    tickers: List[str]
    articles: List[Headline]
    stock_data: List[Optional[StockSnapshot]]
