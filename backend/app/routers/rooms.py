"""
Room routes
Details reconciled against the booking ledger, staff status override
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import RoomResponse, RoomStatusUpdate, RoomDetailsResponse, BookingResponse
from app.services.booking_service import BookingService
from app.services.errors import NotFoundError, ConcurrentUpdateError
from app.services.hotel_clock import get_clock
from app.services.room_service import RoomService

router = APIRouter(prefix="/rooms", tags=["Rooms"])


@router.get("/details", response_model=RoomDetailsResponse)
def get_room_details(
    hotel_id: Optional[int] = Query(None),
    room_number: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """Room with its active booking; occupancy comes from bookings, not the status flag"""
    if hotel_id is None or not room_number:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="hotel_id and room_number are required")
    service = BookingService(db, clock=clock)
    try:
        details = service.get_room_details(hotel_id, room_number)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return RoomDetailsResponse(
        room=RoomResponse.model_validate(details.room),
        booking=BookingResponse.model_validate(details.booking) if details.booking else None,
        as_of_date=details.as_of_date,
        is_occupied=details.booking is not None,
        is_overdue=details.is_overdue,
        overdue_bookings=[BookingResponse.model_validate(b) for b in details.overdue_bookings],
        inconsistent=details.inconsistent,
    )


@router.put("/{room_id}/status", response_model=RoomResponse)
def update_room_status(
    room_id: int,
    data: RoomStatusUpdate,
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """Change the declared status; expected_status guards against concurrent edits"""
    service = RoomService(db, clock=clock)
    try:
        return service.update_room_status(
            room_id, data.status,
            expected_status=data.expected_status,
            changed_by=data.changed_by,
            reason=data.reason,
            force=data.force,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
