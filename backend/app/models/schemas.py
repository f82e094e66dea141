"""
Pydantic schemas
API request/response validation
"""
from datetime import datetime, date, time
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, ConfigDict
from app.models.ontology import (
    RoomStatus, BookingStatus, OrderStatus, PaymentStatus, DiscountType
)


# ============== Room Schemas ==============

class RoomResponse(BaseModel):
    id: int
    hotel_id: int
    room_number: str
    floor: Optional[int] = None
    status: RoomStatus
    model_config = ConfigDict(from_attributes=True)


class RoomStatusUpdate(BaseModel):
    status: RoomStatus
    expected_status: Optional[RoomStatus] = None
    changed_by: Optional[int] = None
    reason: str = ""
    force: bool = False


# ============== Booking Schemas ==============

class BookingResponse(BaseModel):
    id: int
    hotel_id: int
    room_id: int
    guest_name: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    check_in_date: date
    check_out_date: date
    status: BookingStatus
    total_amount: Decimal = Decimal("0")
    payment_status: PaymentStatus
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class CheckInRequest(BaseModel):
    hotel_id: int
    room_number: str = Field(..., min_length=1, max_length=10)
    guest_name: str = Field(..., min_length=1, max_length=100)
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = Field(None, max_length=30)
    guest_id: Optional[int] = None
    check_in_date: date
    check_out_date: date
    special_requests: Optional[str] = None

    @field_validator('check_out_date')
    @classmethod
    def validate_check_out_date(cls, v, info):
        check_in = info.data.get('check_in_date')
        if check_in and v <= check_in:
            raise ValueError('Check-out date must be after check-in date')
        return v


class CheckOutRequest(BaseModel):
    hotel_id: int
    room_number: str = Field(..., min_length=1, max_length=10)
    changed_by: Optional[int] = None


# ============== Order Schemas ==============

class OrderItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)


class OrderItemResponse(BaseModel):
    id: int
    name: str
    unit_price: Decimal
    quantity: int
    total_price: Decimal
    model_config = ConfigDict(from_attributes=True)


class GuestOrderCreate(BaseModel):
    hotel_id: int
    room_number: str = Field(..., min_length=1, max_length=10)
    guest_name: Optional[str] = None
    service_type: Optional[str] = None
    items: List[OrderItemCreate] = Field(..., min_length=1)
    allow_without_booking: bool = False
    require_guest_name_match: bool = False


class OrderResponse(BaseModel):
    id: int
    order_number: str
    hotel_id: int
    room_id: int
    booking_id: Optional[int] = None
    guest_name: Optional[str] = None
    service_type: Optional[str] = None
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    promotion_id: Optional[int] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemResponse] = []
    model_config = ConfigDict(from_attributes=True)


class GuestOrderResponse(BaseModel):
    order: OrderResponse
    duplicate: bool = False
    guest_name_mismatch: bool = False
    is_free_item: bool = False


class CheckOutResponse(BaseModel):
    message: str
    booking: BookingResponse
    room: RoomResponse
    pending_orders: List[OrderResponse] = []
    pending_total: Decimal = Decimal("0")
    room_status_updated: bool = True


class CheckOutInfoResponse(BaseModel):
    booking: BookingResponse
    pending_orders: List[OrderResponse] = []
    pending_total: Decimal = Decimal("0")


class RoomDetailsResponse(BaseModel):
    room: RoomResponse
    booking: Optional[BookingResponse] = None
    as_of_date: date
    is_occupied: bool
    is_overdue: bool = False
    overdue_bookings: List[BookingResponse] = []
    inconsistent: bool = False


# ============== Validation Schemas ==============

class RoomValidationResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    room: Optional[RoomResponse] = None
    booking: Optional[BookingResponse] = None
    conflict: bool = False


# ============== Promotion Schemas ==============

class PromotionResponse(BaseModel):
    id: int
    hotel_id: int
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    banner_duration_seconds: Optional[int] = None
    show_banner: bool = False
    show_always: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    days_of_week: Optional[List[int]] = None
    discount_type: DiscountType
    discount_value: Decimal
    min_order_amount: Optional[Decimal] = None
    max_discount_amount: Optional[Decimal] = None
    applies_to_all_products: bool = True
    applies_to_service_types: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ActivePromotionForDiscountResponse(BaseModel):
    promotion: Optional[PromotionResponse] = None


class CartItem(BaseModel):
    product_id: str
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    service_type: Optional[str] = None


class CalculateDiscountRequest(BaseModel):
    hotel_id: int
    items: List[CartItem] = Field(..., min_length=1)


class ServiceDiscountResponse(BaseModel):
    service_type: Optional[str] = None
    promotion_id: Optional[int] = None
    discount_type: Optional[DiscountType] = None
    subtotal: Decimal
    discount_amount: Decimal
    is_free_item: bool = False
    min_order_met: bool = True
    min_order_amount: Decimal = Decimal("0")
    product_ids: List[str] = []


class CalculateDiscountResponse(BaseModel):
    groups: List[ServiceDiscountResponse]
    total_original: Decimal
    total_discount: Decimal
    total_after_discount: Decimal
