from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, List, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

# Decimals are stored and computed exactly but leave the API as JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

InsightType = Literal["opportunity", "risk", "trend"]
Sentiment = Literal["bullish", "bearish", "neutral"]
Period = Literal["1d", "1w", "1m", "3m", "1y"]


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Records returned by the repository

class User(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Portfolio(CamelModel):
    id: int
    user_id: str
    name: str
    total_value: Money = Decimal("0")
    total_gain_loss: Money = Decimal("0")
    risk_score: Money = Decimal("0")
    version: int = 0
    created_at: Optional[datetime] = None


class Holding(CamelModel):
    id: int
    portfolio_id: int
    symbol: str
    name: str
    shares: Money
    avg_price: Money
    current_price: Money = Decimal("0")
    total_value: Money = Decimal("0")
    gain_loss: Money = Decimal("0")
    gain_loss_percent: Money = Decimal("0")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StockPrice(CamelModel):
    symbol: str
    price: Money
    change: Money
    change_percent: Money
    volume: int = 0
    timestamp: Optional[datetime] = None


class PortfolioSnapshot(CamelModel):
    id: int
    portfolio_id: int
    total_value: Money
    total_gain_loss: Money
    timestamp: datetime


class Insight(CamelModel):
    id: Optional[int] = None
    portfolio_id: Optional[int] = None
    type: InsightType
    title: str
    description: str
    confidence: float = Field(ge=0, le=1)
    created_at: Optional[datetime] = None


class NewsArticle(CamelModel):
    id: Optional[int] = None
    title: str
    summary: str
    sentiment: Sentiment
    relevant_symbols: List[str] = []
    source: str
    url: str
    published_at: datetime


# Request bodies

class HoldingCreate(CamelModel):
    symbol: str = Field(min_length=1, max_length=12)
    name: Optional[str] = Field(default=None, max_length=200)
    shares: Decimal = Field(gt=0, lt=Decimal("100000000"))
    avg_price: Decimal = Field(ge=0, lt=Decimal("10000000000"))

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("symbol must not be blank")
        return value

    @field_validator("shares")
    @classmethod
    def round_shares(cls, value: Decimal) -> Decimal:
        return value.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)

    @field_validator("avg_price")
    @classmethod
    def round_avg_price(cls, value: Decimal) -> Decimal:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# Market data

class StockQuote(CamelModel):
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    volume: int = 0
    previous_close: Optional[float] = None
    day_high: Optional[float] = None
    day_low: Optional[float] = None
    market_cap: Optional[float] = None
    timestamp: Optional[datetime] = None


class HistoricalPoint(CamelModel):
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int


class PerformancePoint(CamelModel):
    timestamp: datetime
    total_value: float
    total_gain_loss: float


class SearchResult(CamelModel):
    symbol: str
    name: str
    exchange: str


# Responses

class DeleteResponse(CamelModel):
    success: bool


class ErrorResponse(CamelModel):
    error: str
