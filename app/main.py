# app/main.py
"""
FastAPI application entry point.
Includes request timing, engine error mapping, global error handler, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.routers import health, parking_stats, slots, vehicles
from app.database import SessionLocal, create_tables
from app.config import settings
from app.exceptions import ParkingError, ValidationError
from app.services.parking_engine import parking_engine
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Parking Slot Engine API",
    description="Slot allocation, occupancy tracking and time-based billing.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow the dashboard to call the API) ───────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Engine Error Mapping ─────────────────────────────────────────────────────
@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    content = {"error": type(exc).__name__, "detail": exc.message}
    if isinstance(exc, ValidationError):
        content["fields"] = exc.fields
    return JSONResponse(status_code=exc.status_code, content=content)


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router,      prefix="/api/v1", tags=["Vehicles"])
app.include_router(slots.router,         prefix="/api/v1", tags=["Slots"])
app.include_router(parking_stats.router, prefix="/api/v1", tags=["Stats"])
app.include_router(health.router,        prefix="/api/v1", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
def startup():
    logger.info("Parking backend starting up...")
    create_tables()
    logger.info("Database tables ready")
    db = SessionLocal()
    try:
        added = parking_engine.initialize(db)
        summary = parking_engine.slot_summary(db)
    finally:
        db.close()
    logger.info(f"Slot pool: {summary.total} slots ({added} added), {summary.free} free")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("API docs at /docs")


@app.on_event("shutdown")
def shutdown():
    logger.info("Parking backend shutting down...")
