# Domain Models
from app.models.ontology import (
    Hotel, Room, Booking, Order, OrderItem, Promotion
)

__all__ = [
    'Hotel', 'Room', 'Booking', 'Order', 'OrderItem', 'Promotion'
]
