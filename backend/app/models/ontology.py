"""
Domain objects (ORM)
Hotel aggregate: Hotel → Room → Booking, plus guest Orders and Promotions

Room.status is a cached projection written by staff actions and the
check-in/check-out workflows. Occupancy decisions are always derived from
the booking ledger (see app/services/reconciler.py).
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Time, JSON,
    ForeignKey, Text, Enum as SQLEnum, Boolean, Numeric, Index
)
from sqlalchemy.orm import relationship
from app.database import Base


# ============== Enums ==============

class RoomStatus(str, Enum):
    """Declared room status"""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    """Booking lifecycle status"""
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


# Statuses that can hold a room
ACTIVE_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)


class OrderStatus(str, Enum):
    """Order fulfilment status"""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status (orders stay pending until settled on the folio)"""
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class DiscountType(str, Enum):
    """Promotion discount type"""
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_ITEM = "free_item"


# ============== Objects ==============

class Hotel(Base):
    """Hotel - owns rooms, bookings, orders and promotions"""
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    timezone = Column(String(64))                         # IANA zone, e.g. America/Chicago
    is_deleted = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    rooms = relationship("Room", back_populates="hotel")
    promotions = relationship("Promotion", back_populates="hotel")


class Room(Base):
    """Room"""
    __tablename__ = "rooms"
    __table_args__ = (
        Index("ix_rooms_hotel_number", "hotel_id", "room_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False)
    room_number = Column(String(10), nullable=False)
    floor = Column(Integer)
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.AVAILABLE, nullable=False)
    is_deleted = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="rooms")
    bookings = relationship("Booking", back_populates="room")


class Booking(Base):
    """
    Booking - a guest stay on a room
    Retained after checkout for folio/history until soft-deleted
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    guest_id = Column(Integer)                            # owned by the guest directory
    guest_name = Column(String(100), nullable=False)
    guest_email = Column(String(100))
    guest_phone = Column(String(30))
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False)
    total_amount = Column(Numeric(10, 2), default=0)
    payment_status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.PENDING)
    special_requests = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    is_deleted = Column(Boolean, default=False)

    room = relationship("Room", back_populates="bookings")
    orders = relationship("Order", back_populates="booking")


class Order(Base):
    """Guest service order (room service, restaurant, bar...)"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=False)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"))  # may be unresolved at capture time
    guest_name = Column(String(100))
    service_type = Column(String(50))
    status = Column(SQLEnum(OrderStatus), default=OrderStatus.PENDING, nullable=False)
    payment_status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    subtotal = Column(Numeric(10, 2), default=0)
    discount_amount = Column(Numeric(10, 2), default=0)
    total_amount = Column(Numeric(10, 2), default=0)
    promotion_id = Column(Integer, ForeignKey("promotions.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    is_deleted = Column(Boolean, default=False)

    booking = relationship("Booking", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    """Order line"""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    name = Column(String(100), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, default=1)
    total_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")


class Promotion(Base):
    """
    Promotion - edited by hotel staff, evaluated read-only by guest-facing code
    days_of_week uses 0=Sunday ... 6=Saturday
    """
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    image_url = Column(String(500))
    banner_duration_seconds = Column(Integer, default=5)
    is_active = Column(Boolean, default=True)
    show_banner = Column(Boolean, default=True)
    show_always = Column(Boolean, default=False)
    start_date = Column(Date)
    end_date = Column(Date)
    start_time = Column(Time)
    end_time = Column(Time)
    days_of_week = Column(JSON, default=list)
    discount_type = Column(SQLEnum(DiscountType), default=DiscountType.PERCENTAGE, nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False, default=0)
    min_order_amount = Column(Numeric(10, 2), default=0)
    max_discount_amount = Column(Numeric(10, 2))
    applies_to_all_products = Column(Boolean, default=True)
    applies_to_service_types = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    is_deleted = Column(Boolean, default=False)

    hotel = relationship("Hotel", back_populates="promotions")
