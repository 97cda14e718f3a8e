# app/schemas/event.py
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional


class EventOut(BaseModel):
    id: str
    name: str
    description: Optional[str]
    venue: str
    date: int
    organizer: str
    total_seats: int
    available_seats: int
    price_per_seat: int
    image_url: Optional[str]
    is_active: bool
    created_at: int
    updated_at: int
    synced_at: Optional[int]

    class Config:
        from_attributes = True


class CamelModel(BaseModel):
    """Serialised with camelCase keys (dump with by_alias=True)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class EventStats(CamelModel):
    tickets_sold: int
    total_revenue: int
    unique_buyers: int


class EventStatsOut(EventStats):
    event_id: str
    event_name: str
    total_seats: int
    available_seats: int
    sold_seats: int
    sold_percentage: float


class ImageUploadOut(CamelModel):
    blob_id: str
    image_url: str
