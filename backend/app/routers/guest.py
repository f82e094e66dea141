"""
Guest-facing routes
Room validation before ordering, promotions and order placement
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import (
    RoomValidationResponse, RoomResponse, BookingResponse,
    PromotionResponse, ActivePromotionForDiscountResponse,
    CalculateDiscountRequest, CalculateDiscountResponse, ServiceDiscountResponse,
    GuestOrderCreate, GuestOrderResponse, OrderResponse
)
from app.services.errors import NotFoundError
from app.services.hotel_clock import get_clock
from app.services.hotel_data import HotelDataAccess
from app.services.order_service import OrderService
from app.services.order_validation import OrderEligibilityValidator
from app.services.outcomes import ReasonCode
from app.services.promotion_service import PromotionService, CartLine
from app.services.reconciler import RoomBookingReconciler

router = APIRouter(prefix="/guest", tags=["Guest"])


@router.get("/validate-room", response_model=RoomValidationResponse)
def validate_room(
    room_number: Optional[str] = Query(None),
    hotel_id: Optional[int] = Query(None),
    guest_name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """May an order be placed against this room right now"""
    validator = OrderEligibilityValidator(RoomBookingReconciler(HotelDataAccess(db), clock))
    result = validator.validate_room_for_order(room_number, hotel_id, guest_name)
    if result.reason == ReasonCode.INVALID_INPUT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return RoomValidationResponse(
        valid=result.valid,
        reason=result.reason.value if result.reason else None,
        message=result.message,
        room=RoomResponse.model_validate(result.room) if result.room else None,
        booking=BookingResponse.model_validate(result.booking) if result.booking else None,
        conflict=result.conflict,
    )


@router.get("/promotions/active", response_model=List[PromotionResponse])
def get_active_promotions(
    hotel_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """Banner carousel"""
    if hotel_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="hotel_id is required")
    return PromotionService(HotelDataAccess(db), clock).get_active_promotions(hotel_id)


@router.get("/promotions/active-for-discount", response_model=ActivePromotionForDiscountResponse)
def get_active_promotion_for_discount(
    hotel_id: Optional[int] = Query(None),
    service_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """The promotion that would price an order of this service type now"""
    if hotel_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="hotel_id is required")
    promotion = PromotionService(HotelDataAccess(db), clock).select_promotion_for_discount(hotel_id, service_type)
    return ActivePromotionForDiscountResponse(
        promotion=PromotionResponse.model_validate(promotion) if promotion else None
    )


@router.post("/promotions/calculate-discount", response_model=CalculateDiscountResponse)
def calculate_discount(
    data: CalculateDiscountRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """Cart discount, priced per service type"""
    lines = [
        CartLine(product_id=i.product_id, price=i.price, quantity=i.quantity, service_type=i.service_type)
        for i in data.items
    ]
    cart = PromotionService(HotelDataAccess(db), clock).calculate_cart_discount(data.hotel_id, lines)
    return CalculateDiscountResponse(
        groups=[
            ServiceDiscountResponse(
                service_type=g.service_type,
                promotion_id=g.discount.promotion_id,
                discount_type=g.discount.discount_type,
                subtotal=g.subtotal,
                discount_amount=g.discount.amount,
                is_free_item=g.discount.is_free_item,
                min_order_met=g.discount.min_order_met,
                min_order_amount=g.discount.min_order_amount,
                product_ids=g.product_ids,
            )
            for g in cart.groups
        ],
        total_original=cart.total_original,
        total_discount=cart.total_discount,
        total_after_discount=cart.total_after_discount,
    )


@router.post("/orders", response_model=GuestOrderResponse, status_code=status.HTTP_201_CREATED)
def create_guest_order(
    data: GuestOrderCreate,
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """Place an order; the room is re-validated at commit"""
    service = OrderService(db, clock=clock)
    try:
        placement = service.create_guest_order(
            hotel_id=data.hotel_id,
            room_number=data.room_number,
            items=data.items,
            guest_name=data.guest_name,
            service_type=data.service_type,
            allow_without_booking=data.allow_without_booking,
            require_guest_name_match=data.require_guest_name_match,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return GuestOrderResponse(
        order=OrderResponse.model_validate(placement.order),
        duplicate=placement.duplicate,
        guest_name_mismatch=placement.guest_name_mismatch,
        is_free_item=placement.discount.is_free_item,
    )
