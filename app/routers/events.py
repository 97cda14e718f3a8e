# app/routers/events.py
"""
Event cache endpoints, all under /api/events.
Reads come from the local cache; a cache miss on GET /events/{id} and the
POST .../sync endpoints pull from the chain. Every response uses the
{"success", "data" | "error", "pagination"?} envelope.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile

from app.config import settings
from app.dependencies import get_event_service, get_walrus_service
from app.exceptions import InvalidImageError, NotFoundError, ValidationError
from app.schemas.event import EventOut, EventStatsOut, ImageUploadOut
from app.services.event_service import EventService, SyncReport
from app.services.walrus_service import WalrusService
from app.utils.logger import get_logger

router = APIRouter(prefix="/events")
logger = get_logger(__name__)

SUI_ID_PATTERN = r"^0x[a-fA-F0-9]{64}$"
ALLOWED_IMAGE_MIMES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

# Offsets past this overflow SQLite INTEGER once multiplied by limit
MAX_PAGE = 10**9

EventId = Annotated[str, Path(pattern=SUI_ID_PATTERN, description="Sui object ID (0x + 64 hex)")]
Address = Annotated[str, Path(pattern=SUI_ID_PATTERN, description="Sui address (0x + 64 hex)")]


def _event(event) -> dict:
    return EventOut.model_validate(event).model_dump()


def _events(events) -> list:
    return [_event(e) for e in events]


def _report(report: SyncReport, serialize=_event) -> dict:
    return {
        "synced": [serialize(item) for item in report.synced],
        "skipped": report.skipped,
        "failed": [{"key": f.key, "error": f.error} for f in report.failed],
    }


@router.get("", summary="List cached events (paginated, filterable)")
def list_events(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    organizer: Optional[str] = Query(None, pattern=SUI_ID_PATTERN),
    is_active: Optional[bool] = None,
    upcoming: bool = False,
    service: EventService = Depends(get_event_service),
):
    """`search` matches name or venue, case-insensitive. `upcoming` keeps only future dates."""
    if search is not None:
        search = search.strip()
        if not search:
            raise ValidationError("Search term must be between 1 and 100 characters")
    events, pagination = service.list_events(
        page=page, limit=limit, search=search,
        organizer=organizer, is_active=is_active, upcoming=upcoming,
    )
    return {"success": True, "data": _events(events), "pagination": pagination.model_dump(by_alias=True)}


@router.get("/upcoming", summary="Active events dated in the future, soonest first")
def upcoming_events(limit: int = Query(10, ge=1, le=100),
                    service: EventService = Depends(get_event_service)):
    events = service.get_upcoming_events(limit)
    return {"success": True, "data": _events(events), "count": len(events)}


@router.get("/search", summary="Free-text search on name and venue")
def search_events(
    q: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=100),
    service: EventService = Depends(get_event_service),
):
    if not q or not q.strip():
        raise ValidationError("Search query (q) is required")
    events, pagination = service.list_events(page=page, limit=limit, search=q.strip())
    return {
        "success": True,
        "query": q,
        "data": _events(events),
        "pagination": pagination.model_dump(by_alias=True),
    }


@router.post("/upload-image", summary="Upload an event image to Walrus")
async def upload_event_image(image: Optional[UploadFile] = File(None),
                             walrus: WalrusService = Depends(get_walrus_service)):
    """Multipart field `image`. JPG/PNG/GIF/WebP only, checked by MIME type and magic bytes."""
    if image is None:
        raise ValidationError("No file uploaded")
    if image.content_type not in ALLOWED_IMAGE_MIMES:
        raise ValidationError("Invalid file type. Only JPG, PNG, GIF, WebP allowed.")

    max_bytes = settings.MAX_IMAGE_SIZE_MB * 1024 * 1024
    data = await image.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise InvalidImageError(f"File too large (max: {settings.MAX_IMAGE_SIZE_MB}MB)")
    logger.info(f"Uploading image to Walrus: {image.filename} ({len(data)} bytes)")
    blob_id = await walrus.upload_image(data)
    body = ImageUploadOut(blob_id=blob_id, image_url=walrus.get_url(blob_id))
    return {"success": True, "data": body.model_dump(by_alias=True)}


@router.post("/sync-recent", summary="Sync the latest EventCreated events from chain")
async def sync_recent_events(limit: int = Query(50, ge=1, le=1000),
                             service: EventService = Depends(get_event_service)):
    logger.info(f"Syncing recent events from chain (limit={limit})")
    report = await service.sync_recent_events(limit)
    return {
        "success": True,
        "message": f"Synced {len(report.synced)} events",
        "data": _report(report),
    }


@router.post("/sync-reservations", summary="Record new SeatsReserved activity from chain")
async def sync_reservations(limit: int = Query(50, ge=1, le=1000),
                            service: EventService = Depends(get_event_service)):
    report = await service.sync_seat_reservations(limit)
    return {
        "success": True,
        "message": f"Recorded {len(report.synced)} reservations",
        "data": _report(report, serialize=lambda r: {
            "eventId": r.event_id, "buyer": r.buyer, "seatCount": r.seat_count,
            "totalPrice": r.total_price, "txDigest": r.tx_digest, "reservedAt": r.reserved_at,
        }),
    }


@router.get("/organizer/{address}", summary="Cached events created by an organizer")
def events_by_organizer(address: Address,
                        service: EventService = Depends(get_event_service)):
    events = service.get_events_by_organizer(address)
    return {"success": True, "data": _events(events), "count": len(events)}


@router.post("/organizer/{address}/sync", summary="Sync Event objects owned by an address")
async def sync_organizer(address: Address,
                         service: EventService = Depends(get_event_service)):
    report = await service.sync_organizer_events(address)
    return {
        "success": True,
        "message": f"Synced {len(report.synced)} events",
        "data": _report(report),
    }


@router.get("/{event_id}", summary="Get one event, syncing from chain on cache miss")
async def get_event(event_id: EventId,
                    service: EventService = Depends(get_event_service)):
    event = service.get_event(event_id)
    if event is None:
        logger.info(f"Event not in database, syncing from chain: {event_id}")
        event = await service.sync_event_from_chain(event_id)
    return {"success": True, "data": _event(event)}


@router.get("/{event_id}/stats", summary="Seat and sales statistics for a cached event")
def event_stats(event_id: EventId,
                service: EventService = Depends(get_event_service)):
    event = service.get_event(event_id)
    if event is None:
        raise NotFoundError("Event not found")

    stats = service.get_event_stats(event_id)
    sold = event.total_seats - event.available_seats
    sold_percentage = round(sold / event.total_seats * 100, 2) if event.total_seats > 0 else 0.0
    body = EventStatsOut(
        event_id=event_id,
        event_name=event.name,
        total_seats=event.total_seats,
        available_seats=event.available_seats,
        sold_seats=sold,
        sold_percentage=sold_percentage,
        **stats.model_dump(),
    )
    return {"success": True, "data": body.model_dump(by_alias=True)}


@router.post("/{event_id}/sync", summary="Re-sync one event from chain")
async def sync_event(event_id: EventId,
                     service: EventService = Depends(get_event_service)):
    logger.info(f"Manually syncing event from chain: {event_id}")
    event = await service.sync_event_from_chain(event_id)
    return {"success": True, "message": "Event synced successfully", "data": _event(event)}
