# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + Sui RPC + Walrus aggregator reachability.
"""

import time
from datetime import datetime

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.config import settings

router = APIRouter()

STARTED_AT = time.time()


def _probe(method: str, url: str, **kwargs) -> str:
    try:
        resp = requests.request(method, url, timeout=3, **kwargs)
        return "ok" if resp.status_code < 400 else f"http_{resp.status_code}"
    except requests.exceptions.ConnectionError:
        return "unreachable"
    except requests.exceptions.RequestException as e:
        return f"error: {str(e)}"


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status and uptime
    - Database connectivity
    - Sui RPC reachability (sui_getChainIdentifier)
    - Walrus aggregator reachability
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "uptime": round(time.time() - STARTED_AT, 1),
        "environment": settings.ENVIRONMENT,
        "network": settings.SUI_NETWORK,
        "database": "unknown",
        "sui_rpc": "unknown",
        "walrus": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    result["sui_rpc"] = _probe(
        "POST", settings.SUI_RPC_URL,
        json={"jsonrpc": "2.0", "id": 1, "method": "sui_getChainIdentifier", "params": []},
    )
    # Aggregator has no status route; any HTTP answer means it is up
    result["walrus"] = _probe("GET", settings.WALRUS_AGGREGATOR_URL)
    if result["walrus"].startswith("http_4"):
        result["walrus"] = "ok"

    if result["sui_rpc"] != "ok" or result["walrus"] != "ok":
        result["status"] = "degraded"
    return result
