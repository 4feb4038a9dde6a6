"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import orders, summary, ad_spend, health

api_router = APIRouter()

api_router.include_router(
    orders.router,
    tags=["orders"]
)

api_router.include_router(
    summary.router,
    tags=["summary"]
)

api_router.include_router(
    ad_spend.router,
    prefix="/ad-spend",
    tags=["ad-spend"]
)

api_router.include_router(
    health.router,
    tags=["health"]
)
