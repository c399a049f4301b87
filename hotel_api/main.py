import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .db import SessionLocal, create_schema, engine, get_db
from .errors import HotelError, Internal
from .limiter import limiter
from .models import User, UserRole
from .routers import admin, auth, bookings, contact, dashboard, rooms
from .security import hash_password
from .services.dates import utcnow

# --- Logging configuration ---
_level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# Align uvicorn loggers with our level
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(_level)
logger = logging.getLogger("hotel_api.startup")
logger.info("Starting %s (DEBUG=%s)", settings.APP_NAME, getattr(settings, "DEBUG", False))

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description=f"{settings.APP_NAME}: rooms, availability and reservations API for the hotel web app.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.front_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def startup_event():
    """Runs startup tasks: optional schema creation and a default admin."""
    logger.info("Running startup tasks...")
    if settings.CREATE_SCHEMA_ON_STARTUP:
        create_schema()

    def _ensure_default_admin():
        db = SessionLocal()
        try:
            if db.query(User).filter(User.role == UserRole.ADMIN.value).first():
                return
            user = db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
            if user:
                user.role = UserRole.ADMIN.value
            else:
                user = User(
                    name=settings.ADMIN_NAME,
                    email=settings.ADMIN_EMAIL,
                    password_hash=hash_password(settings.ADMIN_PASSWORD),
                    role=UserRole.ADMIN.value,
                )
                db.add(user)
            db.commit()
            logger.info("Default admin user ensured.")
        finally:
            db.close()

    _ensure_default_admin()
    logger.info("Startup tasks complete.")


@app.on_event("shutdown")
def shutdown_event():
    engine.dispose()
    logger.info("Database engine disposed.")


@app.exception_handler(HotelError)
async def hotel_error_handler(request: Request, exc: HotelError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    err = Internal()
    return JSONResponse(status_code=err.status_code, content={"error": err.detail})


# Add the limiter to the app state
app.state.limiter = limiter
# Add the exception handler for rate limit exceeded errors
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(bookings.router)
app.include_router(admin.router)
app.include_router(contact.router)
app.include_router(dashboard.router)


@app.get("/health")
@limiter.exempt
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return JSONResponse(status_code=503, content={"ok": False, "db": "down", "time": utcnow().isoformat()})
    return {"ok": True, "db": "up", "time": utcnow().isoformat()}
