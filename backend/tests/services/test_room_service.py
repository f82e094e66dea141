"""
Tests for app/services/room_service.py
"""
import pytest

from app.models.ontology import RoomStatus
from app.models.events import EventType
from app.services.errors import NotFoundError, InvalidStateError, ConcurrentUpdateError
from app.services.room_service import RoomService, can_transition, find_transition


class TestTransitions:

    def test_housekeeping_cycle(self):
        assert can_transition(RoomStatus.AVAILABLE, RoomStatus.OCCUPIED)
        assert can_transition(RoomStatus.OCCUPIED, RoomStatus.CLEANING)
        assert can_transition(RoomStatus.CLEANING, RoomStatus.AVAILABLE)

    def test_maintenance_from_anywhere(self):
        for status in (RoomStatus.AVAILABLE, RoomStatus.OCCUPIED, RoomStatus.CLEANING):
            assert find_transition(status, RoomStatus.MAINTENANCE).trigger == "start_maintenance"
        assert can_transition(RoomStatus.MAINTENANCE, RoomStatus.AVAILABLE)

    def test_disallowed(self):
        assert not can_transition(RoomStatus.OCCUPIED, RoomStatus.AVAILABLE)
        assert not can_transition(RoomStatus.CLEANING, RoomStatus.OCCUPIED)
        assert not can_transition(RoomStatus.MAINTENANCE, RoomStatus.OCCUPIED)


class TestUpdateRoomStatus:

    @pytest.fixture
    def service(self, db_session, published_events, clock):
        return RoomService(db_session, event_publisher=published_events.append, clock=clock)

    def test_valid_change(self, service, room, published_events):
        updated = service.update_room_status(room.id, RoomStatus.MAINTENANCE, changed_by=3, reason="leak")
        assert updated.status == RoomStatus.MAINTENANCE
        assert published_events[0].event_type == EventType.ROOM_STATUS_CHANGED
        assert published_events[0].data["old_status"] == "available"
        assert published_events[0].data["changed_by"] == 3
        assert published_events[0].data["reason"] == "leak"

    def test_write_and_event_use_injected_clock(self, db_session, service, room, now, published_events):
        updated = service.update_room_status(room.id, RoomStatus.MAINTENANCE)
        assert updated.updated_at == now.replace(tzinfo=None)
        assert published_events[0].timestamp == now

    def test_invalid_change(self, service, room):
        with pytest.raises(InvalidStateError):
            service.update_room_status(room.id, RoomStatus.CLEANING)

    def test_force_skips_state_machine(self, db_session, service, room):
        room.status = RoomStatus.OCCUPIED
        db_session.commit()
        updated = service.update_room_status(room.id, RoomStatus.AVAILABLE, force=True)
        assert updated.status == RoomStatus.AVAILABLE

    def test_expected_status_mismatch(self, service, room, published_events):
        with pytest.raises(ConcurrentUpdateError):
            service.update_room_status(room.id, RoomStatus.MAINTENANCE,
                                       expected_status=RoomStatus.CLEANING)
        assert published_events == []

    def test_expected_status_match(self, service, room):
        updated = service.update_room_status(room.id, RoomStatus.OCCUPIED,
                                             expected_status=RoomStatus.AVAILABLE)
        assert updated.status == RoomStatus.OCCUPIED

    def test_same_status_is_noop(self, service, room, published_events):
        assert service.update_room_status(room.id, RoomStatus.AVAILABLE).status == RoomStatus.AVAILABLE
        assert published_events == []

    def test_unknown_room(self, service):
        with pytest.raises(NotFoundError):
            service.update_room_status(999, RoomStatus.AVAILABLE)

    def test_lost_race(self, db_session, service, room):
        from app.models.ontology import Room
        # another writer moves the room after it was loaded
        db_session.query(Room).filter(Room.id == room.id).update(
            {"status": RoomStatus.MAINTENANCE}, synchronize_session=False
        )
        with pytest.raises(ConcurrentUpdateError):
            service.update_room_status(room.id, RoomStatus.OCCUPIED)
