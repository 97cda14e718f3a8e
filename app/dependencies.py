# app/dependencies.py
"""FastAPI dependencies for the handles main.py puts on app.state at startup."""

from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader, APIKeyQuery
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.exceptions import UnauthorizedError
from app.services.event_service import EventService
from app.services.sui_client import SuiClient
from app.services.walrus_service import WalrusService

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
api_key_query = APIKeyQuery(name="api_key", auto_error=False)


def require_api_key(header_key: Optional[str] = Security(api_key_header),
                    query_key: Optional[str] = Security(api_key_query)):
    """No-op unless API_KEY is set; then X-API-Key (or ?api_key=) must match it."""
    if not settings.API_KEY:
        return
    if (header_key or query_key) != settings.API_KEY:
        raise UnauthorizedError("Unauthorized")


def get_sui_client(request: Request) -> SuiClient:
    return request.app.state.sui_client


def get_walrus_service(request: Request) -> WalrusService:
    return request.app.state.walrus


def get_event_service(db: Session = Depends(get_db),
                      chain: SuiClient = Depends(get_sui_client)) -> EventService:
    return EventService(db, chain)
