"""
Pytest configuration and shared fixtures
"""
import pytest
from datetime import date, datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.models import ontology  # noqa
from app.models.ontology import Hotel, Room, RoomStatus
from app.services.hotel_clock import get_clock
from app.main import app

# Friday 2026-06-12 12:00 in America/Chicago (CDT, UTC-5)
FIXED_NOW = datetime(2026, 6, 12, 17, 0, tzinfo=timezone.utc)
HOTEL_TODAY = date(2026, 6, 12)


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Database session"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def today():
    """Hotel-local date at `now`"""
    return HOTEL_TODAY


@pytest.fixture
def clock(now):
    """Clock callable frozen at `now`"""
    return lambda: now


@pytest.fixture
def published_events():
    """Collects events from services built with event_publisher=published_events.append"""
    return []


@pytest.fixture(scope="function")
def client(db_session, clock):
    """Test client on the in-memory session and the frozen clock"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============== Data Fixtures ==============

@pytest.fixture
def hotel(db_session):
    h = Hotel(name="Test Hotel", timezone="America/Chicago")
    db_session.add(h)
    db_session.commit()
    db_session.refresh(h)
    return h


@pytest.fixture
def room(db_session, hotel):
    """Room 101, declared available"""
    r = Room(hotel_id=hotel.id, room_number="101", floor=1, status=RoomStatus.AVAILABLE)
    db_session.add(r)
    db_session.commit()
    db_session.refresh(r)
    return r
