# app/models/seat_reservation.py
from sqlalchemy import Column, BigInteger, ForeignKey, Integer, String, text
from app.database import Base


class SeatReservation(Base):
    __tablename__ = "seat_reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(66), ForeignKey("events.id"), index=True)
    buyer = Column(String(66), nullable=False, index=True)
    seat_count = Column(Integer, nullable=False)
    total_price = Column(BigInteger, nullable=False)
    tx_digest = Column(String(64), nullable=False)
    reserved_at = Column(BigInteger, nullable=False)
    created_at = Column(BigInteger, server_default=text("(CAST(strftime('%s', 'now') AS INTEGER) * 1000)"))

    def __repr__(self):
        return f"<SeatReservation {self.id} event={self.event_id} seats={self.seat_count}>"
