"""
Dependencies for authentication, database sessions, and ownership checks.
"""
from typing import Generator, List, Optional, Type, TypeVar
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from affiliate_orders.database import SessionLocal
from affiliate_orders.models.db import AdSheet, PlatformAccount, User
from affiliate_orders.services.collection_service import CollectionService
from affiliate_orders.utils import get_logger

logger = get_logger(__name__)
security = HTTPBearer()

OwnedModel = TypeVar("OwnedModel", PlatformAccount, AdSheet)

def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped SQLAlchemy session; rolled back on error and always closed.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Request session rolled back", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the bearer API key to an active user.

    Raises:
        HTTPException: 401 when the key is unknown or the user is inactive
    """
    api_key = credentials.credentials
    user = (
        db.query(User)
        .filter(User.api_key == api_key, User.is_active.is_(True))
        .one_or_none()
    )
    if user is None:
        logger.warning("Rejected API key", api_key_prefix=api_key[:6] + "...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

def get_collection_service(db: Session = Depends(get_db)) -> CollectionService:
    return CollectionService(db)

def parse_account_ids(account_ids: Optional[str] = None) -> Optional[List[int]]:
    """Parse a comma separated id list (``"1,2, 3"``); junk entries are ignored."""
    if not account_ids:
        return None
    parsed = [int(part) for part in (p.strip() for p in account_ids.split(",")) if part.isdigit()]
    return parsed or None

def _require_owned(db: Session, model: Type[OwnedModel], object_id: int, user: User, label: str) -> OwnedModel:
    obj = db.query(model).filter(model.id == object_id, model.user_id == user.id).one_or_none()
    if obj is None:
        logger.warning(f"{label} access denied", user_id=user.id, object_id=object_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} {object_id} not found")
    return obj

def require_owned_account(db: Session, user: User, account_id: int) -> PlatformAccount:
    return _require_owned(db, PlatformAccount, account_id, user, "Platform account")

def require_owned_sheet(db: Session, user: User, sheet_id: int) -> AdSheet:
    return _require_owned(db, AdSheet, sheet_id, user, "Ad sheet")
