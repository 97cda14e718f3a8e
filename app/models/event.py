# app/models/event.py
"""
Cached on-chain Event objects.
Rows are created and overwritten only by chain sync (event_service.upsert_event).
Timestamps are epoch milliseconds, matching the chain.
"""

from sqlalchemy import Column, BigInteger, Boolean, Index, Integer, String, Text, text
from app.database import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(String(66), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    venue = Column(String(255), nullable=False)
    date = Column(BigInteger, nullable=False)
    organizer = Column(String(66), nullable=False)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    price_per_seat = Column(BigInteger, nullable=False)
    image_url = Column(Text)
    is_active = Column(Boolean, default=True, server_default=text("1"))
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)
    synced_at = Column(BigInteger, server_default=text("(CAST(strftime('%s', 'now') AS INTEGER) * 1000)"))

    __table_args__ = (
        Index("idx_events_date", "date", sqlite_where=text("is_active = 1")),
        Index("idx_events_organizer", "organizer"),
        Index("idx_events_active", "is_active"),
        Index("idx_events_name", "name", sqlite_where=text("is_active = 1")),
    )

    def __repr__(self):
        return f"<Event {self.id} name={self.name!r} active={self.is_active}>"
