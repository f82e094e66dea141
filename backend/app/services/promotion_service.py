"""
Promotion eligibility and discount computation

Liveness is the conjunction of independent predicates (active flag, date
range, time-of-day window, day-of-week set), always evaluated in the
hotel's civil time for an explicitly supplied instant. Service scoping is
a separate predicate used only by discount selection.

Two selections are deliberately kept apart:
- select_promotion_for_discount: one promotion for pricing an order
- get_active_promotions: banner carousel, no pricing semantics
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Callable, Dict, List, Optional, Union
import logging

from app.models.ontology import Promotion, DiscountType
from app.services.hotel_clock import HotelLocalTime, sunday_based_weekday, to_hotel_local, utc_now
from app.services.hotel_data import HotelDataAccess

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def to_money(value: Optional[Number]) -> Decimal:
    """Decimal rounded half-up to cents"""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ============== Predicates ==============

class WindowSegment(str, Enum):
    """Which part of a time-of-day window an instant falls in"""
    SAME_DAY = "same_day"      # window opened on the current local date
    CARRY_OVER = "carry_over"  # after-midnight tail of an overnight window


def is_within_date_range(promotion: Promotion, local_date: date) -> bool:
    if promotion.start_date and local_date < promotion.start_date:
        return False
    if promotion.end_date and local_date > promotion.end_date:
        return False
    return True


def is_scheduled_on(promotion: Promotion, schedule_date: date) -> bool:
    """Empty days_of_week means every day"""
    days = promotion.days_of_week or []
    if not days:
        return True
    return sunday_based_weekday(schedule_date) in {int(d) for d in days}


def time_window_segment(promotion: Promotion, local_time: time) -> Optional[WindowSegment]:
    """
    None when outside the window.

    Window is [start_time, end_time). end_time < start_time wraps past
    midnight; equal bounds cover the whole day; a missing bound means no
    time restriction.
    """
    start, end = promotion.start_time, promotion.end_time
    if start is None or end is None or start == end:
        return WindowSegment.SAME_DAY

    if start < end:
        return WindowSegment.SAME_DAY if start <= local_time < end else None

    # overnight, e.g. 22:00-02:00
    if local_time >= start:
        return WindowSegment.SAME_DAY
    if local_time < end:
        return WindowSegment.CARRY_OVER
    return None


def normalize_service_type(service_type: Optional[str]) -> Optional[str]:
    if service_type is None:
        return None
    normalized = service_type.strip().lower()
    return normalized or None


def applies_to_service_type(promotion: Promotion, service_type: Optional[str]) -> bool:
    """All-products promotions apply everywhere; scoped ones need a matching service type"""
    if promotion.applies_to_all_products:
        return True
    wanted = normalize_service_type(service_type)
    if wanted is None:
        return False
    scoped = {
        normalize_service_type(s) for s in (promotion.applies_to_service_types or [])
        if isinstance(s, str)
    }
    return wanted in scoped


def is_promotion_live_at(promotion: Promotion, local: HotelLocalTime) -> bool:
    """Liveness for an instant already converted to hotel-local time"""
    if not promotion.is_active:
        return False
    if not is_within_date_range(promotion, local.local_date):
        return False

    segment = time_window_segment(promotion, local.local_time)
    if segment is None:
        return False

    # the after-midnight tail belongs to the night the window opened
    schedule_date = local.local_date
    if segment == WindowSegment.CARRY_OVER:
        schedule_date = local.local_date - timedelta(days=1)
    return is_scheduled_on(promotion, schedule_date)


def is_promotion_live_now(promotion: Promotion, now: datetime, hotel_timezone: str) -> bool:
    """Is the promotion live at instant `now`, judged in the hotel's timezone"""
    return is_promotion_live_at(promotion, to_hotel_local(now, hotel_timezone))


def pick_most_recent(promotions: List[Promotion]) -> Optional[Promotion]:
    """Tie-break: latest created_at, then highest id"""
    if not promotions:
        return None
    return max(promotions, key=lambda p: (p.created_at or datetime.min, p.id or 0))


# ============== Discount ==============

@dataclass
class DiscountResult:
    """Discount for one subtotal; free_item promotions only raise a flag"""
    amount: Decimal = ZERO
    discount_type: Optional[DiscountType] = None
    promotion_id: Optional[int] = None
    is_free_item: bool = False
    min_order_met: bool = True
    min_order_amount: Decimal = ZERO


def compute_discount(promotion: Optional[Promotion], order_subtotal: Number) -> DiscountResult:
    """
    Monetary discount of a promotion on an order subtotal.

    Zero below min_order_amount. Never negative, never above the subtotal,
    never above max_discount_amount when that is set.
    """
    if promotion is None:
        return DiscountResult()

    subtotal = to_money(order_subtotal)
    if subtotal < ZERO:
        subtotal = ZERO
    min_order = to_money(promotion.min_order_amount)
    result = DiscountResult(
        discount_type=promotion.discount_type,
        promotion_id=promotion.id,
        min_order_amount=min_order,
    )

    if subtotal < min_order:
        result.min_order_met = False
        return result

    value = Decimal(str(promotion.discount_value or 0))
    if promotion.discount_type == DiscountType.FREE_ITEM:
        result.is_free_item = True
        return result
    elif promotion.discount_type == DiscountType.PERCENTAGE:
        amount = subtotal * value / Decimal(100)
    elif promotion.discount_type == DiscountType.FIXED_AMOUNT:
        amount = min(value, subtotal)
    else:
        logger.warning(f"Unknown discount type {promotion.discount_type} on promotion {promotion.id}")
        return result

    if promotion.max_discount_amount is not None:
        amount = min(amount, Decimal(str(promotion.max_discount_amount)))

    amount = min(max(amount, ZERO), subtotal)
    result.amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    return result


# ============== Cart ==============

@dataclass
class CartLine:
    product_id: str
    price: Decimal
    quantity: int = 1
    service_type: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price) * self.quantity


@dataclass
class ServiceDiscount:
    """Discount applied to the lines of one service type"""
    service_type: Optional[str]
    subtotal: Decimal
    discount: DiscountResult
    product_ids: List[str] = field(default_factory=list)


@dataclass
class CartDiscount:
    groups: List[ServiceDiscount]
    total_original: Decimal
    total_discount: Decimal

    @property
    def total_after_discount(self) -> Decimal:
        return self.total_original - self.total_discount


# ============== Service ==============

class PromotionService:
    """Promotion selection for a hotel at the injected clock's current instant"""

    def __init__(self, data: HotelDataAccess, clock: Callable[[], datetime] = None):
        self.data = data
        self._clock = clock or utc_now

    def _hotel_local_now(self, hotel_id: int) -> HotelLocalTime:
        return to_hotel_local(self._clock(), self.data.get_hotel_timezone(hotel_id))

    def select_promotion_for_discount(self, hotel_id: int,
                                      service_type: Optional[str] = None) -> Optional[Promotion]:
        """Newest live promotion applicable to the service type, or None"""
        return self._select_for_discount(hotel_id, service_type, self._hotel_local_now(hotel_id))

    def _select_for_discount(self, hotel_id: int, service_type: Optional[str],
                             local: HotelLocalTime) -> Optional[Promotion]:
        eligible = []
        for promotion in self.data.list_promotions(hotel_id, active_only=True):
            if not is_promotion_live_at(promotion, local):
                logger.debug(f"Promotion {promotion.id} skipped: not live at {local.local.isoformat()}")
                continue
            if not applies_to_service_type(promotion, service_type):
                logger.debug(f"Promotion {promotion.id} skipped: not applicable to service {service_type!r}")
                continue
            eligible.append(promotion)

        chosen = pick_most_recent(eligible)
        if len(eligible) > 1:
            logger.info(
                f"Hotel {hotel_id}: {len(eligible)} promotions eligible for {service_type!r}, "
                f"using most recent {chosen.id}"
            )
        return chosen

    def get_active_promotions(self, hotel_id: int) -> List[Promotion]:
        """Banner carousel: live (or show_always) banner promotions, newest first"""
        local = self._hotel_local_now(hotel_id)
        return [
            p for p in self.data.list_promotions(hotel_id, active_only=True, banner_only=True)
            if p.show_always or is_promotion_live_at(p, local)
        ]

    def get_discount_for_order(self, hotel_id: int, order_subtotal: Number,
                               service_type: Optional[str] = None) -> DiscountResult:
        promotion = self.select_promotion_for_discount(hotel_id, service_type)
        return compute_discount(promotion, order_subtotal)

    def calculate_cart_discount(self, hotel_id: int, lines: List[CartLine]) -> CartDiscount:
        """
        Discount per service type: each group's subtotal is priced against the
        promotion selected for that service type, minimum order included.
        """
        local = self._hotel_local_now(hotel_id)

        grouped: Dict[Optional[str], List[CartLine]] = {}
        for line in lines:
            grouped.setdefault(normalize_service_type(line.service_type), []).append(line)

        groups = []
        for service_type, group_lines in grouped.items():
            subtotal = sum((line.line_total for line in group_lines), ZERO)
            promotion = self._select_for_discount(hotel_id, service_type, local)
            discount = compute_discount(promotion, subtotal)
            if promotion is not None and not discount.min_order_met:
                logger.info(
                    f"Minimum order {discount.min_order_amount} not met for promotion {promotion.id} "
                    f"(service {service_type!r}, subtotal {subtotal})"
                )
            groups.append(ServiceDiscount(
                service_type=service_type,
                subtotal=subtotal,
                discount=discount,
                product_ids=[line.product_id for line in group_lines],
            ))

        total_original = sum((g.subtotal for g in groups), ZERO)
        total_discount = sum((g.discount.amount for g in groups), ZERO)
        return CartDiscount(groups=groups, total_original=total_original, total_discount=total_discount)
