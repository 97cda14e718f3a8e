# app/models/event_transaction.py
"""
Raw chain event log. One row per (tx_digest, event_type); re-inserting the
same pair is ignored. event_id is a soft reference to events.id.
"""

from sqlalchemy import Column, BigInteger, ForeignKey, Integer, JSON, String, UniqueConstraint, text
from app.database import Base


class EventTransaction(Base):
    __tablename__ = "event_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(66), ForeignKey("events.id"), index=True)
    tx_digest = Column(String(64), nullable=False)
    event_type = Column(String(255), nullable=False, index=True)
    sender = Column(String(66), nullable=False)
    timestamp = Column(BigInteger, nullable=False)
    data = Column(JSON)
    created_at = Column(BigInteger, server_default=text("(CAST(strftime('%s', 'now') AS INTEGER) * 1000)"))

    __table_args__ = (
        UniqueConstraint("tx_digest", "event_type", name="uq_tx_digest_event_type"),
    )

    def __repr__(self):
        return f"<EventTransaction {self.tx_digest} type={self.event_type}>"
