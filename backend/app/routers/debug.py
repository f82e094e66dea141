"""
app/routers/debug.py

Debug API - operator diagnostics.

Endpoints:
- GET /debug/room-bookings - declared room status versus booking ledger
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.hotel_clock import get_clock
from app.services.hotel_data import HotelDataAccess
from app.services.outcomes import ReasonCode
from app.services.reconciler import RoomBookingReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/room-bookings")
def get_room_bookings(
    hotel_id: Optional[int] = Query(None),
    room_number: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
):
    """
    Room, every booking on it, the active one(s) and the detected issues.
    Read-only: nothing is corrected here.
    """
    if hotel_id is None or not room_number:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="hotel_id and room_number are required")

    reconciler = RoomBookingReconciler(HotelDataAccess(db), clock)
    diagnosis = reconciler.diagnose_room_by_number(hotel_id, room_number)
    if diagnosis.reason == ReasonCode.ROOM_NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")

    if diagnosis.inconsistent:
        logger.info(f"Room {room_number} (hotel {hotel_id}) diagnosis: {'; '.join(diagnosis.issues)}")
    return diagnosis.to_dict()
