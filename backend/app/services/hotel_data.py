"""
Hotel data access - the store collaborator used by the reconciliation,
eligibility and promotion services

Reads return ORM rows; status writes are compare-and-swap so that two
concurrent workflows on the same room cannot both win.
"""
from typing import List, Optional
from datetime import date, datetime
import logging
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from app.config import settings
from app.services.hotel_clock import local_day_start_utc, naive_utc, utc_now
from app.models.ontology import (
    Hotel, Room, RoomStatus, Booking, BookingStatus, ACTIVE_BOOKING_STATUSES,
    Order, PaymentStatus, Promotion
)

logger = logging.getLogger(__name__)


class HotelDataAccess:
    """Room directory, booking ledger, orders and promotions"""

    def __init__(self, db: Session):
        self.db = db

    # ============== Hotels ==============

    def get_hotel(self, hotel_id: int) -> Optional[Hotel]:
        return self.db.query(Hotel).filter(
            Hotel.id == hotel_id,
            Hotel.is_deleted == False
        ).first()

    def get_hotel_timezone(self, hotel_id: int) -> str:
        """Hotel timezone, or the configured default when unset"""
        hotel = self.get_hotel(hotel_id)
        if hotel and hotel.timezone:
            return hotel.timezone
        return settings.DEFAULT_HOTEL_TIMEZONE

    # ============== Room directory ==============

    def get_room(self, hotel_id: int, room_number: str) -> Optional[Room]:
        """Non-deleted room by hotel and number"""
        return self.db.query(Room).filter(
            Room.hotel_id == hotel_id,
            Room.room_number == room_number,
            Room.is_deleted == False
        ).first()

    def get_room_by_id(self, room_id: int) -> Optional[Room]:
        return self.db.query(Room).filter(
            Room.id == room_id,
            Room.is_deleted == False
        ).first()

    # ============== Booking ledger ==============

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.is_deleted == False
        ).first()

    def list_bookings(self, room_id: int) -> List[Booking]:
        """All non-deleted bookings of a room, newest first"""
        return self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.is_deleted == False
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    def list_active_bookings(self, room_id: int, as_of_date: date) -> List[Booking]:
        """
        Bookings that hold the room on as_of_date, newest first

        Active = not deleted, confirmed or checked in, check-out today or later.
        """
        return self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.is_deleted == False,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.check_out_date >= as_of_date
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    def list_open_bookings(self, room_id: int) -> List[Booking]:
        """Confirmed or checked-in bookings regardless of dates (includes overdue stays)"""
        return self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.is_deleted == False,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    # ============== Orders ==============

    def list_pending_orders(self, room_id: int, booking_id: Optional[int] = None) -> List[Order]:
        """Unpaid orders for a room (optionally for one booking), newest first"""
        query = self.db.query(Order).filter(
            Order.room_id == room_id,
            Order.payment_status == PaymentStatus.PENDING,
            Order.is_deleted == False
        )
        if booking_id is not None:
            query = query.filter(Order.booking_id == booking_id)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    def list_pending_orders_for_stay(self, booking: Booking) -> List[Order]:
        """
        Unpaid orders belonging to a stay: linked to the booking, or captured
        on the room without a booking since the stay began

        The stay begins at hotel-local midnight of the check-in date.
        """
        stay_start = local_day_start_utc(booking.check_in_date, self.get_hotel_timezone(booking.hotel_id))
        return self.db.query(Order).filter(
            Order.room_id == booking.room_id,
            Order.payment_status == PaymentStatus.PENDING,
            Order.is_deleted == False,
            or_(
                Order.booking_id == booking.id,
                and_(Order.booking_id.is_(None), Order.created_at >= stay_start)
            )
        ).order_by(Order.created_at.desc(), Order.id.desc()).all()

    def list_recent_orders(self, room_id: int, booking_id: Optional[int],
                           since: datetime) -> List[Order]:
        """Orders placed on a room for the same booking since `since`, newest first"""
        query = self.db.query(Order).filter(
            Order.room_id == room_id,
            Order.is_deleted == False,
            Order.created_at >= since
        )
        if booking_id is None:
            query = query.filter(Order.booking_id.is_(None))
        else:
            query = query.filter(Order.booking_id == booking_id)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.query(Order.id).filter(Order.order_number == order_number).first() is not None

    # ============== Promotions ==============

    def list_promotions(self, hotel_id: int, active_only: bool = True,
                        banner_only: bool = False) -> List[Promotion]:
        """Non-deleted promotions of a hotel, newest first"""
        query = self.db.query(Promotion).filter(
            Promotion.hotel_id == hotel_id,
            Promotion.is_deleted == False
        )
        if active_only:
            query = query.filter(Promotion.is_active == True)
        if banner_only:
            query = query.filter(
                Promotion.show_banner == True,
                Promotion.image_url.isnot(None)
            )
        return query.order_by(Promotion.created_at.desc(), Promotion.id.desc()).all()

    # ============== Conditional writes ==============

    def compare_and_set_room_status(self, room_id: int, expected: RoomStatus,
                                    new: RoomStatus, now: Optional[datetime] = None) -> bool:
        """UPDATE rooms SET status = new WHERE id = room_id AND status = expected"""
        updated = self.db.query(Room).filter(
            Room.id == room_id,
            Room.status == expected
        ).update(
            {"status": new, "updated_at": naive_utc(now or utc_now())},
            synchronize_session=False
        )
        if updated != 1:
            logger.warning(
                f"Room {room_id} status CAS {expected.value} -> {new.value} matched {updated} rows"
            )
            return False
        self._expire(Room, room_id)
        return True

    def compare_and_set_booking_status(self, booking_id: int, expected: BookingStatus,
                                       new: BookingStatus, now: Optional[datetime] = None) -> bool:
        """UPDATE bookings SET status = new WHERE id = booking_id AND status = expected"""
        updated = self.db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.status == expected
        ).update(
            {"status": new, "updated_at": naive_utc(now or utc_now())},
            synchronize_session=False
        )
        if updated != 1:
            logger.warning(
                f"Booking {booking_id} status CAS {expected.value} -> {new.value} matched {updated} rows"
            )
            return False
        self._expire(Booking, booking_id)
        return True

    def _expire(self, model, pk: int) -> None:
        """Make a cached instance reload after a bulk UPDATE"""
        instance = self.db.get(model, pk)
        if instance is not None:
            self.db.expire(instance)
