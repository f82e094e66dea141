"""
Event handlers
Subscribe to domain events and run follow-up work outside the publishing workflow
"""
from typing import Callable
import logging

from app.services.event_bus import event_bus, Event
from app.models.events import EventType
from app.database import SessionLocal

logger = logging.getLogger(__name__)


class EventHandlers:
    """
    Event handler collection

    db_session_factory is injectable for tests.
    """

    def __init__(self, db_session_factory: Callable = None):
        self._db_session_factory = db_session_factory or SessionLocal
        self._registered = False

    def _get_db(self):
        return self._db_session_factory()

    def handle_guest_checked_out(self, event: Event) -> None:
        """
        Unpaid orders left on the folio at checkout are reported so the front
        desk can settle them
        """
        data = event.data
        count = data.get('pending_order_count', 0)
        if not count:
            return
        logger.warning(
            f"Booking {data.get('booking_id')} ({data.get('guest_name')}) checked out of room "
            f"{data.get('room_number')} with {count} unpaid orders totalling "
            f"{data.get('pending_order_total', 0):.2f}"
        )

    def handle_room_status_changed(self, event: Event) -> None:
        """
        Re-diagnose a room after a manual status change and log any remaining
        disagreement with the booking ledger
        """
        from app.services.hotel_data import HotelDataAccess
        from app.services.reconciler import RoomBookingReconciler

        data = event.data
        room_id = data.get('room_id')
        if not room_id:
            logger.warning("Invalid room status event: missing room_id")
            return

        db = self._get_db()
        try:
            diagnosis = RoomBookingReconciler(HotelDataAccess(db)).diagnose_room_state(room_id)
            if diagnosis.inconsistent:
                logger.warning(
                    f"Room {data.get('room_number')} inconsistent after status change "
                    f"{data.get('old_status')} -> {data.get('new_status')}: " + "; ".join(diagnosis.issues)
                )
        except Exception as e:
            logger.error(f"Failed to diagnose room {room_id}: {e}", exc_info=True)
        finally:
            db.close()

    def register_handlers(self, event_bus_instance=None) -> None:
        """Register all handlers"""
        if self._registered:
            return

        bus = event_bus_instance or event_bus

        bus.subscribe(EventType.GUEST_CHECKED_OUT, self.handle_guest_checked_out)
        bus.subscribe(EventType.ROOM_STATUS_CHANGED, self.handle_room_status_changed)

        self._registered = True
        logger.info("Event handlers registered successfully")

    def unregister_handlers(self, event_bus_instance=None) -> None:
        """Unregister all handlers (tests)"""
        bus = event_bus_instance or event_bus

        bus.unsubscribe(EventType.GUEST_CHECKED_OUT, self.handle_guest_checked_out)
        bus.unsubscribe(EventType.ROOM_STATUS_CHANGED, self.handle_room_status_changed)

        self._registered = False
        logger.info("Event handlers unregistered")


event_handlers = EventHandlers()


def register_event_handlers():
    """Register all handlers (application startup)"""
    event_handlers.register_handlers()
