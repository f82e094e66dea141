"""
Domain events
Published on the in-process event bus by the room, booking and order workflows
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional, Dict, Any


class EventType(str, Enum):
    """Event types"""
    # Rooms
    ROOM_STATUS_CHANGED = "room.status_changed"

    # Stays
    GUEST_CHECKED_IN = "guest.checked_in"
    GUEST_CHECKED_OUT = "guest.checked_out"

    # Orders
    ORDER_CREATED = "order.created"


@dataclass
class BaseEventData:
    """Base event payload"""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dict"""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
        return result


@dataclass
class RoomStatusChangedData(BaseEventData):
    """Room declared status changed"""
    room_id: int = 0
    room_number: str = ""
    hotel_id: int = 0
    old_status: str = ""
    new_status: str = ""
    changed_by: Optional[int] = None
    reason: str = ""


@dataclass
class GuestCheckedInData(BaseEventData):
    """Guest checked in"""
    booking_id: int = 0
    hotel_id: int = 0
    guest_name: str = ""
    room_id: int = 0
    room_number: str = ""
    check_in_date: str = ""   # date as string
    check_out_date: str = ""  # date as string


@dataclass
class GuestCheckedOutData(BaseEventData):
    """Guest checked out"""
    booking_id: int = 0
    hotel_id: int = 0
    guest_name: str = ""
    room_id: int = 0
    room_number: str = ""
    pending_order_count: int = 0
    pending_order_total: float = 0.0


@dataclass
class OrderCreatedData(BaseEventData):
    """Guest order placed"""
    order_id: int = 0
    order_number: str = ""
    hotel_id: int = 0
    room_id: int = 0
    booking_id: Optional[int] = None
    total_amount: float = 0.0
    discount_amount: float = 0.0
    promotion_id: Optional[int] = None
