# SuiStage — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.event import Event                          # noqa
from app.models.event_transaction import EventTransaction   # noqa
from app.models.seat_reservation import SeatReservation     # noqa
