"""
Room service - declared room status
State machine: available → occupied → cleaning → available,
maintenance reachable from any state and exited back to available.
Status writes are compare-and-swap and publish room.status_changed.
"""
from typing import Callable, Dict, List, Optional
from dataclasses import dataclass
from datetime import datetime
import logging
from sqlalchemy.orm import Session
from app.models.ontology import Room, RoomStatus
from app.models.events import EventType, RoomStatusChangedData
from app.services.errors import NotFoundError, InvalidStateError, ConcurrentUpdateError
from app.services.event_bus import event_bus, Event
from app.services.hotel_clock import utc_now
from app.services.hotel_data import HotelDataAccess

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateTransition:
    """Allowed declared-status change"""
    from_state: RoomStatus
    to_state: RoomStatus
    trigger: str


ROOM_TRANSITIONS: List[StateTransition] = [
    StateTransition(RoomStatus.AVAILABLE, RoomStatus.OCCUPIED, "check_in"),
    StateTransition(RoomStatus.OCCUPIED, RoomStatus.CLEANING, "check_out"),
    StateTransition(RoomStatus.CLEANING, RoomStatus.AVAILABLE, "finish_cleaning"),
    StateTransition(RoomStatus.MAINTENANCE, RoomStatus.AVAILABLE, "end_maintenance"),
] + [
    StateTransition(state, RoomStatus.MAINTENANCE, "start_maintenance")
    for state in (RoomStatus.AVAILABLE, RoomStatus.OCCUPIED, RoomStatus.CLEANING)
]

_TRANSITION_MAP: Dict[RoomStatus, Dict[RoomStatus, StateTransition]] = {}
for _t in ROOM_TRANSITIONS:
    _TRANSITION_MAP.setdefault(_t.from_state, {})[_t.to_state] = _t


def find_transition(current: RoomStatus, target: RoomStatus) -> Optional[StateTransition]:
    return _TRANSITION_MAP.get(current, {}).get(target)


def can_transition(current: RoomStatus, target: RoomStatus) -> bool:
    return find_transition(current, target) is not None


class RoomService:
    """Room status changes"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None,
                 clock: Callable[[], datetime] = None):
        self.db = db
        self.data = HotelDataAccess(db)
        self._clock = clock or utc_now
        # injectable publisher for tests
        self._publish_event = event_publisher or event_bus.publish

    def update_room_status(self, room_id: int, new_status: RoomStatus,
                           expected_status: Optional[RoomStatus] = None,
                           changed_by: Optional[int] = None, reason: str = "",
                           force: bool = False) -> Room:
        """
        Change a room's declared status.

        expected_status pins the status the caller saw; if another writer got
        there first the update is rejected with ConcurrentUpdateError.
        force skips the state machine (corrections of a stale status).
        """
        room = self.data.get_room_by_id(room_id)
        if not room:
            raise NotFoundError("Room not found")

        current = room.status
        if expected_status is not None and current != expected_status:
            raise ConcurrentUpdateError(
                f"Room {room.room_number} is {current.value}, expected {expected_status.value}"
            )

        if current == new_status:
            return room

        if not force and not can_transition(current, new_status):
            raise InvalidStateError(
                f"Room {room.room_number} cannot change from {current.value} to {new_status.value}"
            )

        if not self.data.compare_and_set_room_status(room.id, current, new_status, now=self._clock()):
            self.db.rollback()
            raise ConcurrentUpdateError(
                f"Room {room.room_number} status changed concurrently"
            )
        self.db.commit()
        self.db.refresh(room)

        logger.info(
            f"Room {room.room_number} (hotel {room.hotel_id}) status {current.value} -> {new_status.value}"
            + (f" ({reason})" if reason else "")
        )
        self._publish_status_changed(room, current, new_status, changed_by, reason)
        return room

    def _publish_status_changed(self, room: Room, old_status: RoomStatus, new_status: RoomStatus,
                                changed_by: Optional[int], reason: str) -> None:
        self._publish_event(Event(
            event_type=EventType.ROOM_STATUS_CHANGED,
            timestamp=self._clock(),
            data=RoomStatusChangedData(
                room_id=room.id,
                room_number=room.room_number,
                hotel_id=room.hotel_id,
                old_status=old_status.value,
                new_status=new_status.value,
                changed_by=changed_by,
                reason=reason,
            ).to_dict(),
            source="room_service"
        ))
