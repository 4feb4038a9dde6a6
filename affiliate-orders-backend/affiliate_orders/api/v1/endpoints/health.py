"""
Health endpoint.
"""
import time
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from affiliate_orders.api.deps import get_db

router = APIRouter()

@router.get("/health", summary="Service and database health")
async def health_check(db: Session = Depends(get_db)):
    checks = {}
    status = "healthy"
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        checks["database"] = f"unhealthy: {e}"
        status = "degraded"
    return {
        "status": status,
        "service": "affiliate-orders",
        "version": "1.0.0",
        "timestamp": time.time(),
        "checks": checks,
    }
