# API Routers
from app.routers import guest, bookings, rooms, debug

__all__ = ['guest', 'bookings', 'rooms', 'debug']
