"""
Hotel Ops main application
Room/booking reconciliation, guest order eligibility and promotions
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import init_db
from app.routers import guest, bookings, rooms, debug


def setup_logging(level: str = "INFO"):
    """Configure root logging"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    setup_logging(settings.LOG_LEVEL)
    init_db()

    from app.services.event_handlers import register_event_handlers
    register_event_handlers()

    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Room/booking reconciliation, order eligibility and promotion engine",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(guest.router)
app.include_router(bookings.router)
app.include_router(rooms.router)
app.include_router(debug.router)


@app.get("/")
def root():
    return {"name": settings.APP_NAME, "version": "1.0.0"}


@app.get("/health")
def health_check():
    """Health check"""
    return {"status": "healthy"}
