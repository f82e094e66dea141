"""
Tests for app/services/hotel_data.py
Covers: timezone fallback, compare-and-swap writes, pending order lookups
"""
from datetime import date, datetime, timezone
from decimal import Decimal

from app.models.ontology import (
    Hotel, Room, RoomStatus, Booking, BookingStatus, Order, PaymentStatus
)
from app.services.hotel_data import HotelDataAccess


def _booking(db, room, status=BookingStatus.CHECKED_IN):
    b = Booking(hotel_id=room.hotel_id, room_id=room.id, guest_name="Ruth Ng",
                check_in_date=date(2026, 6, 10), check_out_date=date(2026, 6, 14), status=status)
    db.add(b)
    db.flush()
    return b


def _order(db, room, number, booking=None, created_at=datetime(2026, 6, 11, 9, 0),
           payment_status=PaymentStatus.PENDING, is_deleted=False):
    o = Order(order_number=number, hotel_id=room.hotel_id, room_id=room.id,
              booking_id=booking.id if booking else None, total_amount=Decimal("10"),
              payment_status=payment_status, created_at=created_at, is_deleted=is_deleted)
    db.add(o)
    db.flush()
    return o


class TestHotelDataAccess:

    def test_timezone_fallback(self, db_session):
        hotel = Hotel(name="No Zone")
        db_session.add(hotel)
        db_session.flush()
        data = HotelDataAccess(db_session)
        assert data.get_hotel_timezone(hotel.id) == "America/Chicago"
        assert data.get_hotel_timezone(4242) == "America/Chicago"

    def test_room_cas(self, db_session, room):
        data = HotelDataAccess(db_session)
        assert data.compare_and_set_room_status(room.id, RoomStatus.AVAILABLE, RoomStatus.OCCUPIED)
        assert room.status == RoomStatus.OCCUPIED
        assert not data.compare_and_set_room_status(room.id, RoomStatus.AVAILABLE, RoomStatus.OCCUPIED)

    def test_booking_cas_exactly_one_winner(self, db_session, room):
        booking = _booking(db_session, room)
        data = HotelDataAccess(db_session)
        results = [
            data.compare_and_set_booking_status(booking.id, BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT)
            for _ in range(2)
        ]
        assert results == [True, False]
        assert booking.status == BookingStatus.CHECKED_OUT

    def test_pending_orders(self, db_session, room):
        booking = _booking(db_session, room)
        mine = _order(db_session, room, "A", booking)
        _order(db_session, room, "B", booking, payment_status=PaymentStatus.PAID)
        _order(db_session, room, "C", booking, is_deleted=True)
        loose = _order(db_session, room, "D")
        data = HotelDataAccess(db_session)

        assert {o.id for o in data.list_pending_orders(room.id)} == {mine.id, loose.id}
        assert [o.id for o in data.list_pending_orders(room.id, booking.id)] == [mine.id]

    def test_pending_orders_for_stay(self, db_session, room):
        booking = _booking(db_session, room)
        other = _booking(db_session, room, status=BookingStatus.CHECKED_OUT)
        mine = _order(db_session, room, "A", booking)
        # Chicago midnight on check-in day is 05:00 UTC
        loose = _order(db_session, room, "B", created_at=datetime(2026, 6, 10, 5, 0))
        _order(db_session, room, "C", created_at=datetime(2026, 6, 10, 4, 59))
        _order(db_session, room, "D", other)

        found = HotelDataAccess(db_session).list_pending_orders_for_stay(booking)
        assert {o.id for o in found} == {mine.id, loose.id}

    def test_pending_orders_for_stay_east_of_utc(self, db_session):
        hotel = Hotel(name="Harbour Tokyo", timezone="Asia/Tokyo")
        db_session.add(hotel)
        db_session.flush()
        room = Room(hotel_id=hotel.id, room_number="802", status=RoomStatus.OCCUPIED)
        db_session.add(room)
        db_session.flush()
        booking = Booking(hotel_id=hotel.id, room_id=room.id, guest_name="Aiko Sato",
                          check_in_date=date(2026, 6, 12), check_out_date=date(2026, 6, 14),
                          status=BookingStatus.CHECKED_IN)
        db_session.add(booking)
        db_session.flush()
        # 08:30 Tokyo on check-in day
        breakfast = _order(db_session, room, "T1", created_at=datetime(2026, 6, 11, 23, 30))
        # 23:30 Tokyo the evening before
        _order(db_session, room, "T2", created_at=datetime(2026, 6, 11, 14, 30))

        found = HotelDataAccess(db_session).list_pending_orders_for_stay(booking)
        assert [o.id for o in found] == [breakfast.id]

    def test_cas_stamps_given_time(self, db_session, room):
        data = HotelDataAccess(db_session)
        moment = datetime(2026, 6, 12, 17, 0, tzinfo=timezone.utc)
        assert data.compare_and_set_room_status(room.id, RoomStatus.AVAILABLE, RoomStatus.OCCUPIED, now=moment)
        assert room.updated_at == datetime(2026, 6, 12, 17, 0)

    def test_order_number_exists(self, db_session, room):
        _order(db_session, room, "ORD-X")
        data = HotelDataAccess(db_session)
        assert data.order_number_exists("ORD-X")
        assert not data.order_number_exists("ORD-Y")
