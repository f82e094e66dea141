"""
Demo data script
Creates: one hotel, two floors of rooms, a checked-in booking and a few promotions

Run from backend/:  python init_data.py
"""
import sys
sys.path.insert(0, '.')

from datetime import date, time, timedelta
from decimal import Decimal
from app.config import settings
from app.database import SessionLocal, init_db
from app.models.ontology import (
    Hotel, Room, RoomStatus, Booking, BookingStatus, PaymentStatus,
    Promotion, DiscountType
)
from app.services.hotel_clock import to_hotel_local, utc_now


def init_hotel(db):
    """Demo hotel"""
    hotel = db.query(Hotel).filter(Hotel.name == "Lakeside Demo Hotel").first()
    if not hotel:
        hotel = Hotel(name="Lakeside Demo Hotel", timezone=settings.DEFAULT_HOTEL_TIMEZONE)
        db.add(hotel)
        db.flush()
    return hotel


def init_rooms(db, hotel):
    """20 rooms: 2F(201-210), 3F(301-310)"""
    created = 0
    for floor in (2, 3):
        for i in range(1, 11):
            number = f"{floor}{i:02d}"
            existing = db.query(Room).filter(
                Room.hotel_id == hotel.id,
                Room.room_number == number
            ).first()
            if not existing:
                db.add(Room(hotel_id=hotel.id, room_number=number, floor=floor,
                            status=RoomStatus.AVAILABLE))
                created += 1
    db.commit()
    total = db.query(Room).filter(Room.hotel_id == hotel.id).count()
    print(f"Rooms initialised: {created} new, {total} total")


def init_bookings(db, hotel):
    """One in-house guest in 201"""
    room = db.query(Room).filter(Room.hotel_id == hotel.id, Room.room_number == "201").first()
    today = to_hotel_local(utc_now(), hotel.timezone).local_date
    existing = db.query(Booking).filter(
        Booking.room_id == room.id,
        Booking.status == BookingStatus.CHECKED_IN
    ).first()
    if existing:
        return
    db.add(Booking(
        hotel_id=hotel.id,
        room_id=room.id,
        guest_name="Jordan Smith",
        guest_email="jordan.smith@example.com",
        check_in_date=today - timedelta(days=1),
        check_out_date=today + timedelta(days=2),
        status=BookingStatus.CHECKED_IN,
        total_amount=Decimal("540.00"),
        payment_status=PaymentStatus.PENDING,
    ))
    room.status = RoomStatus.OCCUPIED
    db.commit()
    print("Booking initialised: Jordan Smith in room 201")


def init_promotions(db, hotel):
    """Happy hour (overnight), weekend breakfast, always-on banner"""
    promotions = [
        {
            'title': 'Late Night Bar',
            'description': '20% off drinks from 22:00 to 02:00 on Fridays and Saturdays',
            'image_url': '/images/promotions/late-night-bar.jpg',
            'start_time': time(22, 0), 'end_time': time(2, 0),
            'days_of_week': [5, 6],
            'discount_type': DiscountType.PERCENTAGE, 'discount_value': Decimal('20'),
            'max_discount_amount': Decimal('15.00'),
            'applies_to_all_products': False, 'applies_to_service_types': ['bar'],
        },
        {
            'title': 'Weekend Breakfast',
            'description': '$5 off room-service breakfast over $25',
            'image_url': '/images/promotions/breakfast.jpg',
            'start_time': time(6, 30), 'end_time': time(11, 0),
            'days_of_week': [0, 6],
            'discount_type': DiscountType.FIXED_AMOUNT, 'discount_value': Decimal('5.00'),
            'min_order_amount': Decimal('25.00'),
            'applies_to_all_products': False, 'applies_to_service_types': ['room_service'],
        },
        {
            'title': 'Welcome Dessert',
            'description': 'Complimentary dessert with any restaurant order',
            'image_url': '/images/promotions/dessert.jpg',
            'show_always': True,
            'discount_type': DiscountType.FREE_ITEM, 'discount_value': Decimal('0'),
            'applies_to_all_products': False, 'applies_to_service_types': ['restaurant'],
        },
    ]
    created = 0
    for data in promotions:
        existing = db.query(Promotion).filter(
            Promotion.hotel_id == hotel.id,
            Promotion.title == data['title']
        ).first()
        if not existing:
            db.add(Promotion(hotel_id=hotel.id, **data))
            created += 1
    db.commit()
    print(f"Promotions initialised: {created} new")


def main():
    print("=" * 50)
    print("Hotel Ops demo data")
    print("=" * 50)

    init_db()
    print("Tables created")

    db = SessionLocal()
    try:
        hotel = init_hotel(db)
        init_rooms(db, hotel)
        init_bookings(db, hotel)
        init_promotions(db, hotel)
        print("=" * 50)
        print(f"Done. Hotel id: {hotel.id}")
        print("=" * 50)
    finally:
        db.close()


if __name__ == '__main__':
    main()
