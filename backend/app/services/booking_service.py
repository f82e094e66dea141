"""
Booking service - check-in and check-out workflows

Occupancy is decided by the reconciler, never by the room's declared
status. Status changes are compare-and-swap: of two concurrent checkouts
on the same booking exactly one wins, the other gets ConcurrentUpdateError.
"""
from typing import Callable, List, Optional
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
import logging
from sqlalchemy.orm import Session
from app.models.ontology import (
    Room, RoomStatus, Booking, BookingStatus, Order, PaymentStatus
)
from app.models.events import (
    EventType, GuestCheckedInData, GuestCheckedOutData, RoomStatusChangedData
)
from app.services.errors import NotFoundError, InvalidStateError, ConcurrentUpdateError
from app.services.event_bus import event_bus, Event
from app.services.hotel_clock import utc_now
from app.services.hotel_data import HotelDataAccess
from app.services.reconciler import RoomBookingReconciler, pick_most_recent

logger = logging.getLogger(__name__)


class NoActiveBookingError(InvalidStateError):
    """Nothing to check out; status_corrected tells whether a stale 'occupied' flag was reset"""

    def __init__(self, message: str, status_corrected: bool = False):
        super().__init__(message)
        self.status_corrected = status_corrected


@dataclass
class CheckOutResult:
    booking: Booking
    room: Room
    pending_orders: List[Order] = field(default_factory=list)
    room_status_updated: bool = True

    @property
    def pending_total(self) -> Decimal:
        return sum((o.total_amount or Decimal("0") for o in self.pending_orders), Decimal("0"))


@dataclass
class RoomDetails:
    room: Room
    booking: Optional[Booking]
    as_of_date: date
    overdue_bookings: List[Booking] = field(default_factory=list)
    inconsistent: bool = False

    @property
    def is_overdue(self) -> bool:
        return bool(self.overdue_bookings)


class BookingService:
    """Check-in / check-out"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None,
                 clock: Callable[[], datetime] = None):
        self.db = db
        self.data = HotelDataAccess(db)
        self._clock = clock or utc_now
        self.reconciler = RoomBookingReconciler(self.data, self._clock)
        # injectable publisher for tests
        self._publish_event = event_publisher or event_bus.publish

    def _get_room(self, hotel_id: int, room_number: str) -> Room:
        room = self.data.get_room(hotel_id, room_number)
        if not room:
            raise NotFoundError("Room not found")
        return room

    # ============== Check-in ==============

    def check_in(self, hotel_id: int, room_number: str, guest_name: str,
                 check_in_date: date, check_out_date: date,
                 guest_email: Optional[str] = None, guest_phone: Optional[str] = None,
                 guest_id: Optional[int] = None, special_requests: Optional[str] = None) -> Booking:
        """
        Check a guest into a room
        1. dates validated against the hotel-local today
        2. room must not be held by an active booking
        3. room must not be in cleaning or maintenance
        4. booking created as checked_in, room moved to occupied
        """
        if not guest_name or not guest_name.strip():
            raise ValueError("guest_name is required")

        today = self.reconciler.hotel_today(hotel_id)
        if check_in_date < today:
            raise ValueError("Check-in date cannot be in the past")
        if check_out_date <= check_in_date:
            raise ValueError("Check-out date must be after check-in date")

        room = self._get_room(hotel_id, room_number)

        existing = self.reconciler.resolve_active_booking(room.id, today)
        if existing:
            raise InvalidStateError(
                f"Room {room_number} is already occupied by booking {existing.id} "
                f"({existing.guest_name}, until {existing.check_out_date.isoformat()})"
            )

        if room.status in (RoomStatus.CLEANING, RoomStatus.MAINTENANCE):
            raise InvalidStateError(f"Room is {room.status.value} and cannot be checked in")

        old_status = room.status
        booking = Booking(
            hotel_id=hotel_id,
            room_id=room.id,
            guest_id=guest_id,
            guest_name=guest_name.strip(),
            guest_email=guest_email,
            guest_phone=guest_phone,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            status=BookingStatus.CHECKED_IN,
            total_amount=Decimal("0"),
            payment_status=PaymentStatus.PENDING,
            special_requests=special_requests,
        )
        self.db.add(booking)
        self.db.flush()

        # a stale 'occupied' flag without a booking is simply kept
        if old_status != RoomStatus.OCCUPIED:
            if not self.data.compare_and_set_room_status(
                    room.id, old_status, RoomStatus.OCCUPIED, now=self._clock()):
                self.db.rollback()
                raise ConcurrentUpdateError(f"Room {room_number} status changed concurrently")

        self.db.commit()
        self.db.refresh(booking)
        self.db.refresh(room)

        logger.info(f"Checked in booking {booking.id} ({booking.guest_name}) to room {room_number}, hotel {hotel_id}")

        self._publish_event(Event(
            event_type=EventType.GUEST_CHECKED_IN,
            timestamp=self._clock(),
            data=GuestCheckedInData(
                booking_id=booking.id,
                hotel_id=hotel_id,
                guest_name=booking.guest_name,
                room_id=room.id,
                room_number=room.room_number,
                check_in_date=check_in_date.isoformat(),
                check_out_date=check_out_date.isoformat(),
            ).to_dict(),
            source="booking_service"
        ))
        if old_status != RoomStatus.OCCUPIED:
            self._publish_room_status(room, old_status, RoomStatus.OCCUPIED, "check_in")
        return booking

    # ============== Check-out ==============

    def _find_booking_to_close(self, room: Room, today: date) -> Optional[Booking]:
        """Active booking, else the newest overdue checked-in stay"""
        booking = self.reconciler.resolve_active_booking(room.id, today)
        if booking:
            return booking
        overdue = [
            b for b in self.data.list_open_bookings(room.id)
            if b.status == BookingStatus.CHECKED_IN
        ]
        booking = pick_most_recent(overdue)
        if booking:
            logger.info(
                f"Room {room.room_number}: checking out overdue booking {booking.id} "
                f"(check-out date {booking.check_out_date.isoformat()})"
            )
        return booking

    def check_out(self, hotel_id: int, room_number: str,
                  changed_by: Optional[int] = None) -> CheckOutResult:
        """
        Check out the guest holding a room
        1. booking → checked_out (compare-and-swap)
        2. room → cleaning (a failure here is logged, not fatal)
        3. unpaid orders of the stay are returned for the folio
        A room declared occupied without any booking is corrected to available.
        """
        room = self._get_room(hotel_id, room_number)
        today = self.reconciler.hotel_today(hotel_id)
        booking = self._find_booking_to_close(room, today)

        if booking is None:
            if room.status != RoomStatus.OCCUPIED:
                raise NoActiveBookingError("Room is not occupied and has no active booking")
            if self.data.compare_and_set_room_status(
                    room.id, RoomStatus.OCCUPIED, RoomStatus.AVAILABLE, now=self._clock()):
                self.db.commit()
                logger.warning(
                    f"Room {room_number} (hotel {hotel_id}) was occupied without an active booking; "
                    f"status corrected to available"
                )
                self._publish_room_status(room, RoomStatus.OCCUPIED, RoomStatus.AVAILABLE,
                                          "stale occupied status", changed_by)
                raise NoActiveBookingError("Room status fixed: no active booking found",
                                           status_corrected=True)
            self.db.rollback()
            raise ConcurrentUpdateError(f"Room {room_number} status changed concurrently")

        if not self.data.compare_and_set_booking_status(
                booking.id, booking.status, BookingStatus.CHECKED_OUT, now=self._clock()):
            self.db.rollback()
            raise ConcurrentUpdateError(f"Booking {booking.id} was already checked out")

        old_room_status = room.status
        room_status_updated = True
        if old_room_status == RoomStatus.MAINTENANCE:
            room_status_updated = False
        elif old_room_status != RoomStatus.CLEANING:
            if not self.data.compare_and_set_room_status(
                    room.id, old_room_status, RoomStatus.CLEANING, now=self._clock()):
                room_status_updated = False
                logger.error(f"Room {room_number}: status not moved to cleaning after checkout of booking {booking.id}")

        pending_orders = self.data.list_pending_orders_for_stay(booking)
        self.db.commit()
        self.db.refresh(booking)
        self.db.refresh(room)

        result = CheckOutResult(
            booking=booking, room=room,
            pending_orders=pending_orders,
            room_status_updated=room_status_updated,
        )
        logger.info(
            f"Checked out booking {booking.id} from room {room_number}, hotel {hotel_id}; "
            f"{len(pending_orders)} pending orders totalling {result.pending_total}"
        )

        self._publish_event(Event(
            event_type=EventType.GUEST_CHECKED_OUT,
            timestamp=self._clock(),
            data=GuestCheckedOutData(
                booking_id=booking.id,
                hotel_id=hotel_id,
                guest_name=booking.guest_name,
                room_id=room.id,
                room_number=room.room_number,
                pending_order_count=len(pending_orders),
                pending_order_total=float(result.pending_total),
            ).to_dict(),
            source="booking_service"
        ))
        if room_status_updated and old_room_status != room.status:
            self._publish_room_status(room, old_room_status, room.status, "check_out", changed_by)
        return result

    # ============== Reads ==============

    def get_check_out_info(self, hotel_id: int, room_number: str):
        """(booking, pending orders) for the stay about to be checked out"""
        room = self._get_room(hotel_id, room_number)
        booking = self._find_booking_to_close(room, self.reconciler.hotel_today(hotel_id))
        if booking is None:
            raise NotFoundError("No active booking found for this room")
        return booking, self.data.list_pending_orders_for_stay(booking)

    def get_room_details(self, hotel_id: int, room_number: str) -> RoomDetails:
        """Room with its reconciled active booking and any overdue stays"""
        room = self._get_room(hotel_id, room_number)
        diagnosis = self.reconciler.diagnose_room_state(room.id)
        overdue = [
            b for b in self.data.list_open_bookings(room.id)
            if b.status == BookingStatus.CHECKED_IN and b.check_out_date < diagnosis.as_of_date
        ]
        return RoomDetails(
            room=room,
            booking=diagnosis.active_booking,
            as_of_date=diagnosis.as_of_date,
            overdue_bookings=overdue,
            inconsistent=diagnosis.inconsistent,
        )

    def _publish_room_status(self, room: Room, old_status: RoomStatus, new_status: RoomStatus,
                             reason: str, changed_by: Optional[int] = None) -> None:
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
            source="booking_service"
        ))
