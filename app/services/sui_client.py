# app/services/sui_client.py
"""
Sui JSON-RPC client. The only place that talks to the chain.

Every call is one POST to SUI_RPC_URL with a JSON-RPC 2.0 body.
No retry, caching or timeout: transport failures, HTTP errors and
JSON-RPC error members are all raised as ChainError.
"""

import itertools
from typing import Optional

import httpx

from app.config import settings
from app.exceptions import ChainError, ChainObjectNotFoundError
from app.utils.logger import get_logger

logger = get_logger(__name__)

OBJECT_OPTIONS = {"showContent": True, "showOwner": True, "showType": True}
TRANSACTION_OPTIONS = {
    "showEffects": True,
    "showEvents": True,
    "showInput": True,
    "showObjectChanges": True,
}

# Full nodes cap queryEvents pages at 50 entries
MAX_PAGE_SIZE = 50


class SuiClient:
    def __init__(self, rpc_url: str, package_id: str = "", registry_id: str = "",
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.rpc_url = rpc_url
        self.package_id = package_id
        self.registry_id = registry_id
        self._transport = transport
        self._ids = itertools.count(1)

    @property
    def event_types(self) -> dict:
        module = f"{self.package_id}::event"
        return {
            "EVENT_CREATED":   f"{module}::EventCreated",
            "EVENT_UPDATED":   f"{module}::EventUpdated",
            "EVENT_CANCELLED": f"{module}::EventCancelled",
            "SEATS_RESERVED":  f"{module}::SeatsReserved",
        }

    @property
    def event_struct_type(self) -> str:
        return f"{self.package_id}::event::Event"

    async def _call(self, method: str, params: list):
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                response = await client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Sui RPC {method} failed: {e}")
            raise ChainError(f"Sui RPC {method} failed: {e}") from e
        except ValueError as e:
            logger.error(f"Sui RPC {method} returned invalid JSON: {e}")
            raise ChainError(f"Sui RPC {method} returned invalid JSON") from e

        if body.get("error"):
            error = body["error"]
            logger.error(f"Sui RPC {method} error: {error}")
            raise ChainError(f"Sui RPC {method} error: {error.get('message', error)}")
        return body.get("result")

    async def get_object(self, object_id: str) -> dict:
        """Fetch one object with content, owner and type included."""
        return await self._call("sui_getObject", [object_id, OBJECT_OPTIONS])

    async def multi_get_objects(self, object_ids: list) -> list:
        return await self._call("sui_multiGetObjects", [object_ids, OBJECT_OPTIONS])

    async def query_events(self, event_type: str, cursor: Optional[dict] = None,
                           limit: int = MAX_PAGE_SIZE, descending: bool = True) -> dict:
        """
        One page of Move events of the given type.
        Returns {"data": [...], "nextCursor": {...} | None, "hasNextPage": bool}.
        """
        return await self._call(
            "suix_queryEvents",
            [{"MoveEventType": event_type}, cursor, limit, descending],
        )

    async def get_transaction(self, digest: str) -> dict:
        return await self._call("sui_getTransactionBlock", [digest, TRANSACTION_OPTIONS])

    async def get_owned_objects(self, owner: str, struct_type: Optional[str] = None) -> list:
        """Objects owned by an address, filtered to the contract's Event struct."""
        query = {
            "filter": {"StructType": struct_type or self.event_struct_type},
            "options": {"showContent": True, "showType": True},
        }
        result = await self._call("suix_getOwnedObjects", [owner, query, None, None])
        return result.get("data", []) if result else []

    async def get_chain_identifier(self) -> str:
        return await self._call("sui_getChainIdentifier", [])

    async def verify_contract_deployment(self) -> bool:
        """Startup diagnostic: is the event registry object reachable? Never raises."""
        if not self.registry_id:
            logger.warning("⚠️  EVENT_REGISTRY_ID not set, skipping contract check")
            return False
        try:
            registry = await self._call("sui_getObject", [self.registry_id, {"showContent": True}])
        except ChainError as e:
            logger.error(f"❌ Failed to verify contract: {e}")
            return False

        if registry and registry.get("data"):
            logger.info("✅ Contract verified on chain")
            return True
        logger.warning("⚠️  Event Registry not found")
        return False


def parse_event_content(object_response: dict) -> dict:
    """
    Extract the Move struct fields from a sui_getObject response.
    Raises ChainObjectNotFoundError when the node reports no such object,
    ChainError when the content is missing or not a Move object.
    """
    if not object_response or object_response.get("error") or not object_response.get("data"):
        error = (object_response or {}).get("error") or {}
        raise ChainObjectNotFoundError(f"Object not found on chain: {error.get('code', 'no data')}")

    content = object_response["data"].get("content")
    if not content:
        raise ChainError("Invalid event data structure")
    if content.get("dataType") != "moveObject":
        raise ChainError("Event is not a Move object")
    return content.get("fields") or {}


def create_sui_client() -> SuiClient:
    return SuiClient(settings.SUI_RPC_URL, settings.PACKAGE_ID, settings.EVENT_REGISTRY_ID)
