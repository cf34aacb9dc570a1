from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, JSON, BigInteger, Text
from sqlalchemy.orm import relationship
from app.core.database import Base


def utc_now():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    portfolios = relationship("Portfolio", back_populates="user")


class Portfolio(Base):
    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    total_value = Column(Numeric(12, 2), nullable=False, default=0)
    total_gain_loss = Column(Numeric(12, 2), nullable=False, default=0)
    risk_score = Column(Numeric(3, 1), nullable=False, default=0)
    version = Column(Integer, nullable=False, default=0)  # bumped by every totals write
    created_at = Column(DateTime(timezone=True), default=utc_now)

    user = relationship("User", back_populates="portfolios")
    holdings = relationship("Holding", back_populates="portfolio")


class Holding(Base):
    __tablename__ = "holdings"

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id"), nullable=False, index=True)
    symbol = Column(String, nullable=False)
    name = Column(String, nullable=False)
    shares = Column(Numeric(12, 4), nullable=False)
    avg_price = Column(Numeric(12, 2), nullable=False)
    current_price = Column(Numeric(12, 2), nullable=False, default=0)
    total_value = Column(Numeric(12, 2), nullable=False, default=0)
    gain_loss = Column(Numeric(12, 2), nullable=False, default=0)
    gain_loss_percent = Column(Numeric(8, 4), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    portfolio = relationship("Portfolio", back_populates="holdings")


class StockPrice(Base):
    """Last quote seen per symbol. A cache, never read by the valuation pipeline."""
    __tablename__ = "stock_prices"

    id = Column(Integer, primary_key=True, index=True)
    symbol = Column(String, nullable=False, unique=True, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    change = Column(Numeric(12, 2), nullable=False)
    change_percent = Column(Numeric(8, 4), nullable=False)
    volume = Column(BigInteger, nullable=False, default=0)
    timestamp = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class AIInsight(Base):
    __tablename__ = "ai_insights"

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id"), nullable=False, index=True)
    type = Column(String, nullable=False)  # 'opportunity', 'risk', 'trend'
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    confidence = Column(Numeric(3, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class MarketNews(Base):
    __tablename__ = "market_news"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    summary = Column(Text, nullable=False)
    sentiment = Column(String, nullable=False)  # 'bullish', 'bearish', 'neutral'
    relevant_symbols = Column(JSON, nullable=False, default=list)
    source = Column(String, nullable=False)
    url = Column(String, nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=False, index=True)


class PortfolioHistory(Base):
    __tablename__ = "portfolio_history"

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id"), nullable=False, index=True)
    total_value = Column(Numeric(12, 2), nullable=False)
    total_gain_loss = Column(Numeric(12, 2), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utc_now, index=True)
