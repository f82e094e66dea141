"""
Room-Booking Reconciler

Decides which booking (if any) really holds a room, independently of the
room's declared status, and reports where the two disagree. Read-only:
correcting a stale status is left to the calling workflow.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, List, Optional
import logging

from app.models.ontology import Room, RoomStatus, Booking
from app.services.hotel_clock import to_hotel_local, utc_now
from app.services.hotel_data import HotelDataAccess
from app.services.outcomes import ReasonCode

logger = logging.getLogger(__name__)


@dataclass
class ActiveBookingResolution:
    """Result of resolving the active booking of a room"""
    booking: Optional[Booking] = None
    candidates: List[Booking] = field(default_factory=list)
    room: Optional[Room] = None
    as_of_date: Optional[date] = None
    reason: Optional[ReasonCode] = None

    @property
    def conflict(self) -> bool:
        """More than one booking claims the room"""
        return len(self.candidates) > 1

    @property
    def found(self) -> bool:
        return self.booking is not None


@dataclass
class RoomStateDiagnosis:
    """Declared room status versus booking ledger"""
    room: Optional[Room]
    declared_status: Optional[RoomStatus]
    active_booking: Optional[Booking]
    active_candidates: List[Booking]
    all_bookings: List[Booking]
    inconsistent: bool
    issues: List[str]
    as_of_date: Optional[date]
    reason: Optional[ReasonCode] = None

    def to_dict(self) -> dict:
        """Stable, serializable view"""
        return {
            "room": _room_dict(self.room),
            "declared_status": self.declared_status.value if self.declared_status else None,
            "active_booking": _booking_dict(self.active_booking),
            "active_bookings": [_booking_dict(b) for b in self.active_candidates],
            "all_bookings": [_booking_dict(b) for b in self.all_bookings],
            "inconsistent": self.inconsistent,
            "issues": list(self.issues),
            "as_of_date": self.as_of_date.isoformat() if self.as_of_date else None,
            "reason": self.reason.value if self.reason else None,
        }


def _room_dict(room: Optional[Room]) -> Optional[dict]:
    if room is None:
        return None
    return {
        "id": room.id,
        "hotel_id": room.hotel_id,
        "room_number": room.room_number,
        "status": room.status.value if room.status else None,
    }


def _booking_dict(booking: Optional[Booking]) -> Optional[dict]:
    if booking is None:
        return None
    return {
        "id": booking.id,
        "room_id": booking.room_id,
        "guest_name": booking.guest_name,
        "check_in_date": booking.check_in_date.isoformat(),
        "check_out_date": booking.check_out_date.isoformat(),
        "status": booking.status.value,
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
    }


def pick_most_recent(candidates: List[Booking]) -> Optional[Booking]:
    """Tie-break: latest created_at, then highest id"""
    if not candidates:
        return None
    return max(candidates, key=lambda b: (b.created_at or datetime.min, b.id or 0))


class RoomBookingReconciler:
    """Resolves room → active booking and checks the declared status against it"""

    def __init__(self, data: HotelDataAccess, clock: Callable[[], datetime] = None):
        self.data = data
        self._clock = clock or utc_now

    def hotel_today(self, hotel_id: int) -> date:
        """Current calendar date in the hotel's timezone"""
        tz = self.data.get_hotel_timezone(hotel_id)
        return to_hotel_local(self._clock(), tz).local_date

    # ============== Resolution ==============

    def resolve_active_booking_candidates(self, room_id: int, as_of_date: date) -> ActiveBookingResolution:
        """All bookings holding the room on as_of_date, plus the tie-break winner"""
        candidates = self.data.list_active_bookings(room_id, as_of_date)
        booking = pick_most_recent(candidates)

        if len(candidates) > 1:
            logger.warning(
                f"Data integrity conflict: room {room_id} has {len(candidates)} active bookings "
                f"as of {as_of_date.isoformat()}; using booking {booking.id}. Candidates: "
                + "; ".join(
                    f"id={b.id} status={b.status.value} guest={b.guest_name!r} "
                    f"stay={b.check_in_date.isoformat()}..{b.check_out_date.isoformat()} "
                    f"created_at={b.created_at.isoformat() if b.created_at else None}"
                    for b in candidates
                )
            )

        return ActiveBookingResolution(
            booking=booking,
            candidates=candidates,
            as_of_date=as_of_date,
            reason=None if booking else ReasonCode.NO_ACTIVE_BOOKING,
        )

    def resolve_active_booking(self, room_id: int, as_of_date: date) -> Optional[Booking]:
        """The booking that holds the room on as_of_date, or None"""
        return self.resolve_active_booking_candidates(room_id, as_of_date).booking

    def resolve_active_booking_by_room_number(self, hotel_id: int, room_number: str,
                                              as_of_date: Optional[date] = None) -> ActiveBookingResolution:
        """Room lookup + active booking; reason=RoomNotFound for unknown rooms"""
        room = self.data.get_room(hotel_id, room_number)
        if room is None:
            return ActiveBookingResolution(reason=ReasonCode.ROOM_NOT_FOUND, as_of_date=as_of_date)

        if as_of_date is None:
            as_of_date = self.hotel_today(room.hotel_id)

        resolution = self.resolve_active_booking_candidates(room.id, as_of_date)
        resolution.room = room
        return resolution

    # ============== Diagnosis ==============

    def diagnose_room_state(self, room_id: int, as_of_date: Optional[date] = None) -> RoomStateDiagnosis:
        """
        Compare the declared status with the booking ledger.

        Inconsistent when:
        - declared occupied but no active booking
        - declared anything else but an active booking exists
        - more than one active booking
        """
        room = self.data.get_room_by_id(room_id)
        if room is None:
            return RoomStateDiagnosis(
                room=None, declared_status=None, active_booking=None,
                active_candidates=[], all_bookings=[], inconsistent=False,
                issues=[], as_of_date=as_of_date, reason=ReasonCode.ROOM_NOT_FOUND,
            )

        if as_of_date is None:
            as_of_date = self.hotel_today(room.hotel_id)

        resolution = self.resolve_active_booking_candidates(room.id, as_of_date)
        all_bookings = self.data.list_bookings(room.id)
        declared = room.status

        issues = []
        if declared == RoomStatus.OCCUPIED and resolution.booking is None:
            issues.append("Room is marked as occupied but has no active booking")
        if declared != RoomStatus.OCCUPIED and resolution.booking is not None:
            issues.append(
                f"Room is marked as {declared.value} but booking {resolution.booking.id} is active"
            )
        if resolution.conflict:
            issues.append(
                f"Room has {len(resolution.candidates)} active bookings: "
                + ", ".join(str(b.id) for b in resolution.candidates)
            )

        return RoomStateDiagnosis(
            room=room,
            declared_status=declared,
            active_booking=resolution.booking,
            active_candidates=resolution.candidates,
            all_bookings=all_bookings,
            inconsistent=bool(issues),
            issues=issues,
            as_of_date=as_of_date,
        )

    def diagnose_room_by_number(self, hotel_id: int, room_number: str,
                                as_of_date: Optional[date] = None) -> RoomStateDiagnosis:
        room = self.data.get_room(hotel_id, room_number)
        if room is None:
            return RoomStateDiagnosis(
                room=None, declared_status=None, active_booking=None,
                active_candidates=[], all_bookings=[], inconsistent=False,
                issues=[], as_of_date=as_of_date, reason=ReasonCode.ROOM_NOT_FOUND,
            )
        return self.diagnose_room_state(room.id, as_of_date)
