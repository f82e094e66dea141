"""
Tests for app/services/promotion_service.py
Covers: liveness predicates (date range, time window incl. overnight, days of
        week), service scoping, compute_discount bounds, selection tie-break,
        banner list, cart discount
"""
import pytest
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from app.models.ontology import Hotel, Promotion, DiscountType
from app.services.hotel_clock import to_hotel_local
from app.services.hotel_data import HotelDataAccess
from app.services.promotion_service import (
    PromotionService, CartLine, WindowSegment, compute_discount, is_promotion_live_now,
    is_promotion_live_at, time_window_segment, applies_to_service_type, to_money
)

CHICAGO = "America/Chicago"


def _promo(**kwargs):
    """Unsaved promotion with explicit defaults"""
    values = dict(
        id=1, hotel_id=1, title="Promo", is_active=True, show_banner=True, show_always=False,
        start_date=None, end_date=None, start_time=None, end_time=None, days_of_week=[],
        discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"),
        min_order_amount=Decimal("0"), max_discount_amount=None,
        applies_to_all_products=True, applies_to_service_types=None,
        created_at=datetime(2026, 6, 1, 12, 0),
    )
    values.update(kwargs)
    return Promotion(**values)


def _save(db, hotel, **kwargs):
    kwargs.pop("id", None)
    p = _promo(hotel_id=hotel.id, **kwargs)
    p.id = None
    db.add(p)
    db.flush()
    return p


def _chicago(y, m, d, hh, mm=0):
    """Chicago wall clock in June (CDT, UTC-5) as a UTC instant"""
    return datetime(y, m, d, hh, mm, tzinfo=timezone.utc) + timedelta(hours=5)


# ── predicates ───────────────────────────────────────────────────────

class TestLiveness:

    def test_no_restrictions_is_live(self):
        assert is_promotion_live_now(_promo(), _chicago(2026, 6, 12, 12), CHICAGO)

    def test_inactive_is_never_live(self):
        assert not is_promotion_live_now(_promo(is_active=False), _chicago(2026, 6, 12, 12), CHICAGO)

    def test_date_range_inclusive(self):
        p = _promo(start_date=date(2026, 6, 10), end_date=date(2026, 6, 12))
        assert is_promotion_live_now(p, _chicago(2026, 6, 10, 0, 5), CHICAGO)
        assert is_promotion_live_now(p, _chicago(2026, 6, 12, 23, 55), CHICAGO)
        assert not is_promotion_live_now(p, _chicago(2026, 6, 13, 0, 5), CHICAGO)
        assert not is_promotion_live_now(p, _chicago(2026, 6, 9, 23, 55), CHICAGO)

    def test_date_range_uses_hotel_date(self):
        """02:00 UTC on the 13th is still the 12th in Chicago"""
        p = _promo(end_date=date(2026, 6, 12))
        instant = datetime(2026, 6, 13, 2, 0, tzinfo=timezone.utc)
        assert is_promotion_live_now(p, instant, CHICAGO)
        assert not is_promotion_live_now(p, instant, "Europe/Madrid")

    def test_same_day_window(self):
        p = _promo(start_time=time(9, 0), end_time=time(17, 0))
        assert is_promotion_live_now(p, _chicago(2026, 6, 12, 9, 0), CHICAGO)
        assert is_promotion_live_now(p, _chicago(2026, 6, 12, 16, 59), CHICAGO)
        assert not is_promotion_live_now(p, _chicago(2026, 6, 12, 17, 0), CHICAGO)
        assert not is_promotion_live_now(p, _chicago(2026, 6, 12, 8, 59), CHICAGO)

    def test_overnight_friday_window(self):
        """Friday 22:00-02:00 is live Saturday 01:00, not Saturday 03:00"""
        friday = 5
        p = _promo(start_time=time(22, 0), end_time=time(2, 0), days_of_week=[friday])
        assert is_promotion_live_now(p, _chicago(2026, 6, 12, 23, 0), CHICAGO)
        assert is_promotion_live_now(p, _chicago(2026, 6, 13, 1, 0), CHICAGO)
        assert not is_promotion_live_now(p, _chicago(2026, 6, 13, 3, 0), CHICAGO)
        assert not is_promotion_live_now(p, _chicago(2026, 6, 12, 21, 59), CHICAGO)

    def test_overnight_tail_belongs_to_previous_day(self):
        """Saturday 22:00-02:00 must not be live early Saturday morning"""
        saturday = 6
        p = _promo(start_time=time(22, 0), end_time=time(2, 0), days_of_week=[saturday])
        assert not is_promotion_live_now(p, _chicago(2026, 6, 13, 1, 0), CHICAGO)
        assert is_promotion_live_now(p, _chicago(2026, 6, 13, 22, 30), CHICAGO)
        assert is_promotion_live_now(p, _chicago(2026, 6, 14, 1, 30), CHICAGO)

    def test_days_of_week_sunday_is_zero(self):
        p = _promo(days_of_week=[0])
        assert is_promotion_live_now(p, _chicago(2026, 6, 14, 12), CHICAGO)
        assert not is_promotion_live_now(p, _chicago(2026, 6, 15, 12), CHICAGO)

    def test_empty_days_means_every_day(self):
        p = _promo(days_of_week=[])
        for offset in range(7):
            assert is_promotion_live_now(p, _chicago(2026, 6, 8 + offset, 12), CHICAGO)

    def test_equal_bounds_cover_whole_day(self):
        p = _promo(start_time=time(0, 0), end_time=time(0, 0))
        assert is_promotion_live_now(p, _chicago(2026, 6, 12, 3), CHICAGO)
        assert is_promotion_live_now(p, _chicago(2026, 6, 12, 23, 59), CHICAGO)

    def test_window_segments(self):
        p = _promo(start_time=time(22, 0), end_time=time(2, 0))
        assert time_window_segment(p, time(23, 0)) == WindowSegment.SAME_DAY
        assert time_window_segment(p, time(1, 0)) == WindowSegment.CARRY_OVER
        assert time_window_segment(p, time(2, 0)) is None

    def test_live_at_local_time(self):
        p = _promo(start_time=time(11, 0), end_time=time(13, 0))
        local = to_hotel_local(_chicago(2026, 6, 12, 12), CHICAGO)
        assert is_promotion_live_at(p, local)


class TestServiceScope:

    def test_all_products(self):
        assert applies_to_service_type(_promo(), None)
        assert applies_to_service_type(_promo(), "bar")

    def test_scoped(self):
        p = _promo(applies_to_all_products=False, applies_to_service_types=["Bar", "room_service"])
        assert applies_to_service_type(p, "bar")
        assert applies_to_service_type(p, " ROOM_SERVICE ")
        assert not applies_to_service_type(p, "spa")
        assert not applies_to_service_type(p, None)

    def test_scoped_with_empty_list(self):
        p = _promo(applies_to_all_products=False, applies_to_service_types=[])
        assert not applies_to_service_type(p, "bar")


# ── compute_discount ─────────────────────────────────────────────────

class TestComputeDiscount:

    def test_no_promotion(self):
        result = compute_discount(None, Decimal("50"))
        assert result.amount == Decimal("0")
        assert result.promotion_id is None

    def test_percentage(self):
        result = compute_discount(_promo(discount_value=Decimal("15")), Decimal("40.00"))
        assert result.amount == Decimal("6.00")

    def test_percentage_rounds_half_up(self):
        result = compute_discount(_promo(discount_value=Decimal("10")), Decimal("0.25"))
        assert result.amount == Decimal("0.03")

    def test_fixed_amount_capped_at_subtotal(self):
        p = _promo(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("10"))
        assert compute_discount(p, Decimal("25")).amount == Decimal("10.00")
        assert compute_discount(p, Decimal("7.50")).amount == Decimal("7.50")

    def test_max_discount_clamp(self):
        p = _promo(discount_value=Decimal("50"), max_discount_amount=Decimal("20"))
        assert compute_discount(p, Decimal("100")).amount == Decimal("20.00")
        assert compute_discount(p, Decimal("30")).amount == Decimal("15.00")

    def test_zero_max_discount_clamps_to_zero(self):
        p = _promo(discount_value=Decimal("50"), max_discount_amount=Decimal("0"))
        assert compute_discount(p, Decimal("100")).amount == Decimal("0.00")

    def test_min_order_not_met(self):
        p = _promo(discount_value=Decimal("10"), min_order_amount=Decimal("30"))
        result = compute_discount(p, Decimal("29.99"))
        assert result.amount == Decimal("0")
        assert not result.min_order_met
        assert compute_discount(p, Decimal("30")).amount == Decimal("3.00")

    def test_free_item_has_no_monetary_discount(self):
        p = _promo(discount_type=DiscountType.FREE_ITEM, discount_value=Decimal("0"))
        result = compute_discount(p, Decimal("80"))
        assert result.is_free_item
        assert result.amount == Decimal("0")

    def test_negative_subtotal(self):
        assert compute_discount(_promo(), Decimal("-5")).amount == Decimal("0")

    @pytest.mark.parametrize("promotion", [
        _promo(discount_value=Decimal("12.5")),
        _promo(discount_value=Decimal("40"), max_discount_amount=Decimal("9")),
        _promo(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("8"),
               min_order_amount=Decimal("20")),
    ])
    def test_bounded_and_monotonic(self, promotion):
        previous = Decimal("0")
        for cents in range(0, 10000, 37):
            subtotal = Decimal(cents) / 100
            amount = compute_discount(promotion, subtotal).amount
            assert Decimal("0") <= amount <= subtotal
            if promotion.max_discount_amount is not None:
                assert amount <= promotion.max_discount_amount
            assert amount >= previous
            previous = amount

    def test_to_money(self):
        assert to_money("1.005") == Decimal("1.01")
        assert to_money(None) == Decimal("0")


# ── service ──────────────────────────────────────────────────────────

@pytest.fixture
def service(db_session, clock):
    return PromotionService(HotelDataAccess(db_session), clock)


class TestSelectPromotionForDiscount:

    def test_none_when_no_promotions(self, service, hotel):
        assert service.select_promotion_for_discount(hotel.id) is None

    def test_newest_eligible_wins(self, db_session, service, hotel):
        _save(db_session, hotel, title="Old", created_at=datetime(2026, 5, 1, 9, 0))
        newest = _save(db_session, hotel, title="New", created_at=datetime(2026, 6, 1, 9, 0))
        assert service.select_promotion_for_discount(hotel.id).id == newest.id

    def test_same_created_at_highest_id(self, db_session, service, hotel):
        stamp = datetime(2026, 6, 1, 9, 0)
        _save(db_session, hotel, created_at=stamp)
        second = _save(db_session, hotel, created_at=stamp)
        assert service.select_promotion_for_discount(hotel.id).id == second.id

    def test_newest_not_live_is_skipped(self, db_session, service, hotel):
        live = _save(db_session, hotel, created_at=datetime(2026, 5, 1, 9, 0))
        _save(db_session, hotel, created_at=datetime(2026, 6, 1, 9, 0),
              start_time=time(18, 0), end_time=time(20, 0))
        assert service.select_promotion_for_discount(hotel.id).id == live.id

    def test_inactive_and_deleted_are_skipped(self, db_session, service, hotel):
        _save(db_session, hotel, is_active=False)
        _save(db_session, hotel, is_deleted=True)
        assert service.select_promotion_for_discount(hotel.id) is None

    def test_show_always_does_not_bypass_schedule(self, db_session, service, hotel):
        _save(db_session, hotel, show_always=True, start_time=time(18, 0), end_time=time(20, 0))
        assert service.select_promotion_for_discount(hotel.id) is None

    def test_service_scoping(self, db_session, service, hotel):
        bar = _save(db_session, hotel, applies_to_all_products=False, applies_to_service_types=["bar"],
                    created_at=datetime(2026, 6, 2, 9, 0))
        everything = _save(db_session, hotel, created_at=datetime(2026, 6, 1, 9, 0))
        assert service.select_promotion_for_discount(hotel.id, "bar").id == bar.id
        assert service.select_promotion_for_discount(hotel.id, "spa").id == everything.id
        assert service.select_promotion_for_discount(hotel.id).id == everything.id

    def test_other_hotel_ignored(self, db_session, service, hotel):
        other = Hotel(name="Other", timezone=CHICAGO)
        db_session.add(other)
        db_session.flush()
        _save(db_session, other)
        assert service.select_promotion_for_discount(hotel.id) is None

    def test_get_discount_for_order(self, db_session, service, hotel):
        _save(db_session, hotel, discount_value=Decimal("20"))
        result = service.get_discount_for_order(hotel.id, Decimal("35.00"))
        assert result.amount == Decimal("7.00")


class TestActivePromotions:

    def test_banner_requires_image_and_flag(self, db_session, service, hotel):
        shown = _save(db_session, hotel, image_url="/a.jpg")
        _save(db_session, hotel, image_url=None)
        _save(db_session, hotel, image_url="/b.jpg", show_banner=False)
        assert [p.id for p in service.get_active_promotions(hotel.id)] == [shown.id]

    def test_show_always_bypasses_schedule(self, db_session, service, hotel):
        always = _save(db_session, hotel, image_url="/a.jpg", show_always=True,
                       start_time=time(18, 0), end_time=time(20, 0))
        _save(db_session, hotel, image_url="/b.jpg", start_time=time(18, 0), end_time=time(20, 0))
        assert [p.id for p in service.get_active_promotions(hotel.id)] == [always.id]

    def test_newest_first(self, db_session, service, hotel):
        old = _save(db_session, hotel, image_url="/a.jpg", created_at=datetime(2026, 5, 1))
        new = _save(db_session, hotel, image_url="/b.jpg", created_at=datetime(2026, 6, 1))
        assert [p.id for p in service.get_active_promotions(hotel.id)] == [new.id, old.id]


class TestCartDiscount:

    def test_grouped_by_service_type(self, db_session, service, hotel):
        _save(db_session, hotel, applies_to_all_products=False, applies_to_service_types=["bar"],
              discount_value=Decimal("50"))
        cart = service.calculate_cart_discount(hotel.id, [
            CartLine(product_id="beer", price=Decimal("6.00"), quantity=2, service_type="bar"),
            CartLine(product_id="club", price=Decimal("14.00"), quantity=1, service_type="room_service"),
        ])
        groups = {g.service_type: g for g in cart.groups}
        assert groups["bar"].discount.amount == Decimal("6.00")
        assert groups["room_service"].discount.amount == Decimal("0")
        assert cart.total_original == Decimal("26.00")
        assert cart.total_discount == Decimal("6.00")
        assert cart.total_after_discount == Decimal("20.00")

    def test_min_order_per_group(self, db_session, service, hotel):
        _save(db_session, hotel, discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("5"),
              min_order_amount=Decimal("20"))
        cart = service.calculate_cart_discount(hotel.id, [
            CartLine(product_id="a", price=Decimal("15"), service_type="bar"),
            CartLine(product_id="b", price=Decimal("15"), service_type="spa"),
        ])
        assert cart.total_discount == Decimal("0")
        assert all(not g.discount.min_order_met for g in cart.groups)
