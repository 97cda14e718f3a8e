# app/services/event_service.py
"""
Event service: read queries over the local cache, and chain to cache sync.

The chain is the source of truth. Sync pulls an object over RPC and upserts
it (last write wins); total_seats, organizer and created_at are fixed by the
first insert. Batch syncs run sequentially and report per-item outcomes
instead of raising on the first failure.
"""

import math
import time
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import distinct, func, or_
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.exceptions import ChainError
from app.models.event import Event
from app.models.event_transaction import EventTransaction
from app.models.seat_reservation import SeatReservation
from app.schemas.event import EventStats, Pagination
from app.services.sui_client import MAX_PAGE_SIZE, SuiClient, parse_event_content
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Columns a re-sync may overwrite
MUTABLE_COLUMNS = (
    "name", "description", "venue", "date", "available_seats", "price_per_seat",
    "image_url", "is_active", "updated_at", "synced_at",
)


def now_ms() -> int:
    return int(time.time() * 1000)


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def coerce_event_fields(event_id: str, fields: dict) -> dict:
    """Map Move struct fields (u64s arrive as strings) onto an events row."""
    now = now_ms()
    try:
        return {
            "id": event_id,
            "name": fields["name"],
            "description": fields.get("description"),
            "venue": fields["venue"],
            "date": int(fields["date"]),
            "organizer": fields["organizer"],
            "total_seats": int(fields["total_seats"]),
            "available_seats": int(fields["available_seats"]),
            "price_per_seat": int(fields["price_per_seat"]),
            "image_url": fields.get("image_url"),
            "is_active": _to_bool(fields.get("is_active", True)),
            "created_at": int(fields.get("created_at") or now),
            "updated_at": int(fields.get("updated_at") or now),
            "synced_at": now,
        }
    except (KeyError, TypeError, ValueError) as e:
        raise ChainError(f"Malformed event fields for {event_id}: {e!r}") from e


@dataclass
class SyncFailure:
    key: str
    error: str


@dataclass
class SyncReport:
    """Outcome of a batch sync: what was written, what was already known, what failed."""
    synced: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    failed: list = field(default_factory=list)


class EventService:
    def __init__(self, db: Session, chain: SuiClient):
        self.db = db
        self.chain = chain

    # ── Reads ─────────────────────────────────────────────────────────────

    def list_events(self, page: int = 1, limit: int = 10, search: Optional[str] = None,
                    organizer: Optional[str] = None, is_active: Optional[bool] = None,
                    upcoming: bool = False):
        """One page of cached events, newest date first, plus pagination info."""
        q = self.db.query(Event)
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(Event.name.ilike(pattern), Event.venue.ilike(pattern)))
        if organizer:
            q = q.filter(Event.organizer == organizer)
        if is_active is not None:
            q = q.filter(Event.is_active == is_active)
        if upcoming:
            q = q.filter(Event.date > now_ms())

        total = q.count()
        rows = (
            q.order_by(Event.date.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        pagination = Pagination(page=page, limit=limit, total=total,
                                total_pages=math.ceil(total / limit))
        return rows, pagination

    def get_event(self, event_id: str) -> Optional[Event]:
        return self.db.get(Event, event_id)

    def get_events_by_organizer(self, organizer: str) -> list:
        return (
            self.db.query(Event)
            .filter(Event.organizer == organizer)
            .order_by(Event.created_at.desc())
            .all()
        )

    def get_upcoming_events(self, limit: int = 10) -> list:
        return (
            self.db.query(Event)
            .filter(Event.is_active.is_(True), Event.date > now_ms())
            .order_by(Event.date.asc())
            .limit(limit)
            .all()
        )

    def get_event_stats(self, event_id: str) -> EventStats:
        base = self.db.query(SeatReservation).filter(SeatReservation.event_id == event_id)
        tickets_sold = base.with_entities(func.coalesce(func.sum(SeatReservation.seat_count), 0)).scalar()
        revenue = base.with_entities(func.coalesce(func.sum(SeatReservation.total_price), 0)).scalar()
        buyers = base.with_entities(func.count(distinct(SeatReservation.buyer))).scalar()
        return EventStats(
            tickets_sold=int(tickets_sold or 0),
            total_revenue=int(revenue or 0),
            unique_buyers=int(buyers or 0),
        )

    # ── Writes ────────────────────────────────────────────────────────────

    def upsert_event(self, row: dict) -> Event:
        stmt = sqlite_insert(Event).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Event.id],
            set_={column: stmt.excluded[column] for column in MUTABLE_COLUMNS},
        )
        self.db.execute(stmt)
        self.db.commit()
        return self.db.get(Event, row["id"], populate_existing=True)

    def record_event_transaction(self, event_id: Optional[str], tx_digest: str, event_type: str,
                                 sender: str, timestamp: int, data: Optional[dict] = None,
                                 commit: bool = True) -> bool:
        """Append a chain event observation. Returns False when (digest, type) was already stored."""
        stmt = (
            sqlite_insert(EventTransaction)
            .values(event_id=event_id, tx_digest=tx_digest, event_type=event_type,
                    sender=sender, timestamp=timestamp, data=data or {})
            .on_conflict_do_nothing(index_elements=["tx_digest", "event_type"])
        )
        result = self.db.execute(stmt)
        if commit:
            self.db.commit()
        return result.rowcount == 1

    def record_seat_reservation(self, event_id: str, buyer: str, seat_count: int, total_price: int,
                                tx_digest: str, reserved_at: int, commit: bool = True) -> SeatReservation:
        reservation = SeatReservation(
            event_id=event_id, buyer=buyer, seat_count=seat_count, total_price=total_price,
            tx_digest=tx_digest, reserved_at=reserved_at,
        )
        self.db.add(reservation)
        if commit:
            self.db.commit()
        return reservation

    # ── Chain sync ────────────────────────────────────────────────────────

    async def sync_event_from_chain(self, event_id: str) -> Event:
        try:
            obj = await self.chain.get_object(event_id)
            row = coerce_event_fields(event_id, parse_event_content(obj))
            event = self.upsert_event(row)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to sync event {event_id} from chain: {e}")
            raise
        logger.info(f"Event synced from chain: {event_id}")
        return event

    async def _collect_chain_events(self, event_type: str, limit: int) -> list:
        """Most recent `limit` chain events of one type, following cursors across pages."""
        collected = []
        cursor = None
        while len(collected) < limit:
            page = await self.chain.query_events(
                event_type, cursor, min(MAX_PAGE_SIZE, limit - len(collected))
            ) or {}
            data = page.get("data") or []
            collected.extend(data)
            cursor = page.get("nextCursor")
            if not data or not cursor or not page.get("hasNextPage"):
                break
        return collected[:limit]

    def _record_chain_event(self, chain_event: dict, event_id: Optional[str], commit: bool = True) -> bool:
        return self.record_event_transaction(
            event_id=event_id,
            tx_digest=chain_event["id"]["txDigest"],
            event_type=chain_event["type"],
            sender=chain_event.get("sender", ""),
            timestamp=int(chain_event.get("timestampMs") or now_ms()),
            data=chain_event.get("parsedJson"),
            commit=commit,
        )

    async def sync_recent_events(self, limit: int = 50) -> SyncReport:
        """Sync every event referenced by the latest `limit` EventCreated notifications."""
        chain_events = await self._collect_chain_events(self.chain.event_types["EVENT_CREATED"], limit)

        report = SyncReport()
        for chain_event in chain_events:
            event_id = (chain_event.get("parsedJson") or {}).get("event_id")
            try:
                if not event_id:
                    raise ChainError("EventCreated payload has no event_id")
                self._record_chain_event(chain_event, event_id)
                report.synced.append(await self.sync_event_from_chain(event_id))
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to sync individual event {event_id}: {e}")
                report.failed.append(SyncFailure(key=event_id or "unknown", error=str(e)))

        logger.info(f"Synced {len(report.synced)} events from chain ({len(report.failed)} failed)")
        return report

    async def sync_seat_reservations(self, limit: int = 50) -> SyncReport:
        """
        Append a reservation row for each SeatsReserved notification not seen before.
        The (tx_digest, event_type) row gates the insert, so re-running never double counts.
        """
        chain_events = await self._collect_chain_events(self.chain.event_types["SEATS_RESERVED"], limit)

        report = SyncReport()
        for chain_event in reversed(chain_events):
            payload = chain_event.get("parsedJson") or {}
            tx_digest = (chain_event.get("id") or {}).get("txDigest", "unknown")
            try:
                event_id = payload["event_id"]
                if not self._record_chain_event(chain_event, event_id, commit=False):
                    report.skipped.append(tx_digest)
                    continue
                reservation = self.record_seat_reservation(
                    event_id=event_id,
                    buyer=payload["buyer"],
                    seat_count=int(payload["seat_count"]),
                    total_price=int(payload["total_price"]),
                    tx_digest=tx_digest,
                    reserved_at=int(chain_event.get("timestampMs") or now_ms()),
                    commit=False,
                )
                self.db.commit()
                report.synced.append(reservation)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to record reservation from {tx_digest}: {e}")
                report.failed.append(SyncFailure(key=tx_digest, error=str(e)))

        logger.info(
            f"Recorded {len(report.synced)} reservations "
            f"({len(report.skipped)} already known, {len(report.failed)} failed)"
        )
        return report

    async def sync_organizer_events(self, organizer: str) -> SyncReport:
        """Upsert every Event object the address owns, straight from the owned-objects listing."""
        objects = await self.chain.get_owned_objects(organizer)

        report = SyncReport()
        for obj in objects:
            object_id = (obj.get("data") or {}).get("objectId", "unknown")
            try:
                row = coerce_event_fields(object_id, parse_event_content(obj))
                report.synced.append(self.upsert_event(row))
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to sync owned object {object_id}: {e}")
                report.failed.append(SyncFailure(key=object_id, error=str(e)))

        logger.info(f"Synced {len(report.synced)} events owned by {organizer}")
        return report
