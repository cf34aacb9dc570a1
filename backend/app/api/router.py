from fastapi import APIRouter
from app.api.endpoints import health, holdings, insights, market, news, portfolios, users

api_router = APIRouter()
api_router.include_router(users.router, tags=["users"])
api_router.include_router(portfolios.router, tags=["portfolios"])
api_router.include_router(holdings.router, tags=["holdings"])
api_router.include_router(market.router, tags=["market"])
api_router.include_router(news.router, tags=["news"])
api_router.include_router(insights.router, tags=["insights"])
api_router.include_router(health.router)
