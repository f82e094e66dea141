"""
Typed outcomes for the reconciliation and eligibility reads

Expected negative outcomes (bad input, unknown room, no booking, name
mismatch) are returned as data; only unexpected store errors propagate.
"""
from enum import Enum


class ReasonCode(str, Enum):
    """Why a room/order check did not pass"""
    INVALID_INPUT = "InvalidInput"
    ROOM_NOT_FOUND = "RoomNotFound"
    NO_ACTIVE_BOOKING = "NoActiveBooking"
    GUEST_NAME_MISMATCH = "GuestNameMismatch"


REASON_MESSAGES = {
    ReasonCode.INVALID_INPUT: "room_number and hotel_id are required",
    ReasonCode.ROOM_NOT_FOUND: "Room not found",
    ReasonCode.NO_ACTIVE_BOOKING: "Room is not currently checked in",
    ReasonCode.GUEST_NAME_MISMATCH: "Guest name does not match booking",
}
