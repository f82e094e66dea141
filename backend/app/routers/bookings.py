"""
Check-in / check-out routes
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import (
    CheckInRequest, CheckOutRequest, BookingResponse, RoomResponse, OrderResponse,
    CheckOutResponse, CheckOutInfoResponse
)
from app.services.booking_service import BookingService, NoActiveBookingError
from app.services.errors import NotFoundError, ConcurrentUpdateError
from app.services.hotel_clock import get_clock
from app.services.promotion_service import ZERO

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/check-in", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def check_in(
    data: CheckInRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """Check a guest into a room"""
    service = BookingService(db, clock=clock)
    try:
        return service.check_in(
            hotel_id=data.hotel_id,
            room_number=data.room_number,
            guest_name=data.guest_name,
            check_in_date=data.check_in_date,
            check_out_date=data.check_out_date,
            guest_email=data.guest_email,
            guest_phone=data.guest_phone,
            guest_id=data.guest_id,
            special_requests=data.special_requests,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/check-out", response_model=CheckOutResponse)
def check_out(
    data: CheckOutRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """Check out the guest holding a room"""
    service = BookingService(db, clock=clock)
    try:
        result = service.check_out(data.hotel_id, data.room_number, changed_by=data.changed_by)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except NoActiveBookingError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(e), "status_corrected": e.status_corrected}
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CheckOutResponse(
        message="Check-out successful",
        booking=BookingResponse.model_validate(result.booking),
        room=RoomResponse.model_validate(result.room),
        pending_orders=[OrderResponse.model_validate(o) for o in result.pending_orders],
        pending_total=result.pending_total,
        room_status_updated=result.room_status_updated,
    )


@router.get("/check-out-info", response_model=CheckOutInfoResponse)
def get_check_out_info(
    hotel_id: Optional[int] = Query(None),
    room_number: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """Booking and unpaid orders for the stay about to be checked out"""
    if hotel_id is None or not room_number:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="hotel_id and room_number are required")
    service = BookingService(db, clock=clock)
    try:
        booking, pending_orders = service.get_check_out_info(hotel_id, room_number)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CheckOutInfoResponse(
        booking=BookingResponse.model_validate(booking),
        pending_orders=[OrderResponse.model_validate(o) for o in pending_orders],
        pending_total=sum((o.total_amount or ZERO for o in pending_orders), ZERO),
    )
