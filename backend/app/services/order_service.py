"""
Guest order placement

The room is re-validated immediately before the insert, inside the same
session, so a checkout that landed after the guest opened the menu is seen.
"""
from typing import Callable, List, Optional, Sequence, Tuple
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
import logging
import uuid
from sqlalchemy.orm import Session
from app.models.ontology import Order, OrderItem, OrderStatus, PaymentStatus
from app.models.events import EventType, OrderCreatedData
from app.services.errors import NotFoundError, InvalidStateError
from app.services.event_bus import event_bus, Event
from app.services.hotel_clock import naive_utc, utc_now
from app.services.hotel_data import HotelDataAccess
from app.services.order_validation import OrderEligibilityValidator, RoomOrderValidation
from app.services.outcomes import ReasonCode
from app.services.promotion_service import PromotionService, DiscountResult, to_money, ZERO
from app.services.reconciler import RoomBookingReconciler

logger = logging.getLogger(__name__)

# identical resubmissions inside this window return the existing order
DUPLICATE_WINDOW = timedelta(seconds=5)
ORDER_NUMBER_ATTEMPTS = 5


@dataclass
class OrderPlacement:
    order: Order
    validation: RoomOrderValidation
    discount: DiscountResult
    duplicate: bool = False

    @property
    def guest_name_mismatch(self) -> bool:
        return self.validation.reason == ReasonCode.GUEST_NAME_MISMATCH


def _fingerprint(lines: Sequence[Tuple[str, int]]) -> List[Tuple[str, int]]:
    return sorted((name.strip().lower(), int(quantity)) for name, quantity in lines)


class OrderService:
    """Guest orders"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None,
                 clock: Callable[[], datetime] = None):
        self.db = db
        self.data = HotelDataAccess(db)
        self._clock = clock or utc_now
        self.reconciler = RoomBookingReconciler(self.data, self._clock)
        self.validator = OrderEligibilityValidator(self.reconciler)
        self.promotions = PromotionService(self.data, self._clock)
        # injectable publisher for tests
        self._publish_event = event_publisher or event_bus.publish

    def create_guest_order(self, hotel_id: int, room_number: str, items: list,
                           guest_name: Optional[str] = None, service_type: Optional[str] = None,
                           allow_without_booking: bool = False,
                           require_guest_name_match: bool = False) -> OrderPlacement:
        """
        Place an order against a room.

        items: objects with name, unit_price and quantity.
        Without an active booking the order is refused unless
        allow_without_booking, in which case it is stored with no booking.
        A guest name that differs from the booking only logs a warning unless
        require_guest_name_match.
        """
        if not items:
            raise ValueError("Order must contain at least one item")
        for item in items:
            if item.quantity < 1:
                raise ValueError(f"Invalid quantity for {item.name}")
            if Decimal(str(item.unit_price)) < ZERO:
                raise ValueError(f"Invalid price for {item.name}")

        validation = self.validator.validate_room_for_order(room_number, hotel_id, guest_name)
        if validation.reason == ReasonCode.INVALID_INPUT:
            raise ValueError(validation.message)
        if validation.reason == ReasonCode.ROOM_NOT_FOUND:
            raise NotFoundError(validation.message)
        if validation.reason == ReasonCode.NO_ACTIVE_BOOKING and not allow_without_booking:
            raise InvalidStateError(validation.message)
        if validation.reason == ReasonCode.GUEST_NAME_MISMATCH:
            if require_guest_name_match:
                raise InvalidStateError(validation.message)
            logger.warning(
                f"Order for room {room_number} (hotel {hotel_id}) placed with guest name "
                f"{guest_name!r}, booking {validation.booking.id} is under {validation.booking.guest_name!r}"
            )

        room = validation.room
        booking = validation.booking
        now = naive_utc(self._clock())

        subtotal = sum((to_money(item.unit_price) * item.quantity for item in items), ZERO)
        discount = self.promotions.get_discount_for_order(hotel_id, subtotal, service_type)
        total = subtotal - discount.amount

        existing = self._find_duplicate(room.id, booking.id if booking else None, items, total, now)
        if existing:
            logger.warning(f"Duplicate order detected for room {room_number}, returning {existing.order_number}")
            return OrderPlacement(order=existing, validation=validation, discount=discount, duplicate=True)

        order = Order(
            order_number=self._generate_order_number(now),
            hotel_id=hotel_id,
            room_id=room.id,
            booking_id=booking.id if booking else None,
            guest_name=(guest_name or "").strip() or (booking.guest_name if booking else None),
            service_type=service_type,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            subtotal=subtotal,
            discount_amount=discount.amount,
            total_amount=total,
            promotion_id=discount.promotion_id if discount.min_order_met else None,
            created_at=now,
            updated_at=now,
        )
        for item in items:
            unit_price = to_money(item.unit_price)
            order.items.append(OrderItem(
                name=item.name,
                unit_price=unit_price,
                quantity=item.quantity,
                total_price=unit_price * item.quantity,
            ))
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)

        logger.info(
            f"Order {order.order_number} placed for room {room_number} (hotel {hotel_id}): "
            f"subtotal {subtotal}, discount {discount.amount}, total {total}"
        )

        self._publish_event(Event(
            event_type=EventType.ORDER_CREATED,
            timestamp=self._clock(),
            data=OrderCreatedData(
                order_id=order.id,
                order_number=order.order_number,
                hotel_id=hotel_id,
                room_id=room.id,
                booking_id=order.booking_id,
                total_amount=float(total),
                discount_amount=float(discount.amount),
                promotion_id=order.promotion_id,
            ).to_dict(),
            source="order_service"
        ))
        return OrderPlacement(order=order, validation=validation, discount=discount)

    def _find_duplicate(self, room_id: int, booking_id: Optional[int], items: list,
                        total: Decimal, now: datetime) -> Optional[Order]:
        wanted = _fingerprint([(item.name, item.quantity) for item in items])
        for recent in self.data.list_recent_orders(room_id, booking_id, now - DUPLICATE_WINDOW):
            seen = _fingerprint([(item.name, item.quantity) for item in recent.items])
            if seen == wanted and to_money(recent.total_amount) == to_money(total):
                return recent
        return None

    def _generate_order_number(self, now: datetime) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = f"ORD-{now.strftime('%Y%m%d')}-{uuid.uuid4().hex[:6].upper()}"
            if not self.data.order_number_exists(candidate):
                return candidate
        raise RuntimeError("Could not allocate a unique order number")
