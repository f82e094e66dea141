# Business Services
from app.services.hotel_data import HotelDataAccess
from app.services.reconciler import RoomBookingReconciler
from app.services.order_validation import OrderEligibilityValidator
from app.services.promotion_service import PromotionService
from app.services.room_service import RoomService
from app.services.booking_service import BookingService
from app.services.order_service import OrderService

__all__ = [
    'HotelDataAccess', 'RoomBookingReconciler', 'OrderEligibilityValidator',
    'PromotionService', 'RoomService', 'BookingService', 'OrderService'
]
