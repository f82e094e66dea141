"""
Order eligibility - may a guest order against this room right now?
Pure read over the booking ledger; never writes.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional
import logging

from app.models.ontology import Room, Booking
from app.services.outcomes import ReasonCode, REASON_MESSAGES
from app.services.reconciler import RoomBookingReconciler

logger = logging.getLogger(__name__)


@dataclass
class RoomOrderValidation:
    """Eligibility verdict; a failed check is data, not an exception"""
    valid: bool
    reason: Optional[ReasonCode] = None
    message: Optional[str] = None
    room: Optional[Room] = None
    booking: Optional[Booking] = None
    conflict: bool = False


def normalize_guest_name(name: Optional[str]) -> str:
    """Lower-case, trimmed, single-spaced"""
    return " ".join((name or "").split()).lower()


def guest_name_matches(candidate: str, booking_name: str) -> bool:
    return normalize_guest_name(candidate) == normalize_guest_name(booking_name)


class OrderEligibilityValidator:
    """Order eligibility on top of the reconciler"""

    def __init__(self, reconciler: RoomBookingReconciler):
        self.reconciler = reconciler

    def validate_room_for_order(self, room_number: Optional[str], hotel_id: Optional[int],
                                guest_name: Optional[str] = None,
                                as_of_date: Optional[date] = None) -> RoomOrderValidation:
        """
        1. room must exist
        2. room must have an active booking (the declared status is not consulted)
        3. when a guest name is supplied it must match the booking's guest
        """
        if not room_number or not str(room_number).strip() or hotel_id is None:
            return _fail(ReasonCode.INVALID_INPUT)

        resolution = self.reconciler.resolve_active_booking_by_room_number(
            hotel_id, str(room_number).strip(), as_of_date
        )
        if resolution.reason == ReasonCode.ROOM_NOT_FOUND:
            return _fail(ReasonCode.ROOM_NOT_FOUND)

        if resolution.booking is None:
            return _fail(ReasonCode.NO_ACTIVE_BOOKING, room=resolution.room)

        booking = resolution.booking
        if normalize_guest_name(guest_name) and not guest_name_matches(guest_name, booking.guest_name):
            logger.info(
                f"Guest name mismatch for room {room_number} (hotel {hotel_id}), booking {booking.id}"
            )
            return _fail(
                ReasonCode.GUEST_NAME_MISMATCH,
                room=resolution.room, booking=booking, conflict=resolution.conflict,
            )

        return RoomOrderValidation(
            valid=True,
            room=resolution.room,
            booking=booking,
            conflict=resolution.conflict,
        )


def _fail(reason: ReasonCode, room: Optional[Room] = None, booking: Optional[Booking] = None,
          conflict: bool = False) -> RoomOrderValidation:
    return RoomOrderValidation(
        valid=False,
        reason=reason,
        message=REASON_MESSAGES[reason],
        room=room,
        booking=booking,
        conflict=conflict,
    )
