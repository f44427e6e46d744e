"""Main FastAPI application"""
import logging
import logging.config
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.exceptions import HTTPException as StarletteHTTPException

# --- slowapi imports ---
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from config import get_settings
from models.responses import error_body
from routes import router as api_router
from services.errors import ExpenseError

settings = get_settings()

# --- Unified Logging Configuration with Rich ---
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            # RichHandler adds its own timestamp and colors
            "format": "%(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "default": {
            "class": "rich.logging.RichHandler",
            "formatter": "default",
            "level": "DEBUG",
            "rich_tracebacks": True,
            "show_time": True,
            "show_path": False,
            "log_time_format": "%Y-%m-%d %H:%M:%S",
            "markup": False,
        },
    },
    "loggers": {
        "uvicorn": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "uvicorn.error": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "uvicorn.access": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "": { # Root logger for our application
            "handlers": ["default"],
            "level": settings.log_level,
            "propagate": False,
        },
    },
}

logging.config.dictConfig(LOGGING_CONFIG)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
STARTED_AT = time.monotonic()

# Application state to hold the database client and collection
app_state = {}

# --- Rate Limiter Setup (in-memory storage) ---
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Connect to MongoDB. Failing to reach it stops the server.
    logger.info(f"Connecting to MongoDB at {settings.mongodb_uri}...")
    client = AsyncIOMotorClient(settings.mongodb_uri)
    try:
        await client.admin.command('ping')
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        client.close()
        raise
    app_state["db_client"] = client
    app_state["db"] = client[settings.db_name]
    app_state["expenses_collection"] = app_state["db"].get_collection(settings.collection_name)
    logger.info(f"Successfully connected to MongoDB database: {settings.db_name}")

    yield # Application runs here

    # Shutdown: Close MongoDB connection
    logger.info("Closing MongoDB connection...")
    app_state.pop("db_client").close()
    app_state.clear()
    logger.info("MongoDB connection closed.")


app = FastAPI(
    title="Expense Tracker API",
    description="API for recording, listing and summarizing personal expenses.",
    version=API_VERSION,
    lifespan=lifespan,
)

# --- Rate Limiter State and Handler ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Middleware (order matters) ---
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- API Routes ---
app.include_router(api_router, prefix="/api", tags=["expenses"])


# Make app state accessible via middleware
@app.middleware("http")
async def add_app_state_to_request(request: Request, call_next):
    """Adds the database connection to the request state."""
    request.state.db_client = app_state.get("db_client")
    request.state.expenses_collection = app_state.get("expenses_collection")
    response = await call_next(request)
    return response


# --- Error Handlers ---

@app.exception_handler(ExpenseError)
async def expense_error_handler(request: Request, exc: ExpenseError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message} ({exc.detail})")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    logger.warning(f"{request.method} {request.url.path} invalid input: {errors}")
    if request.method == "POST" and any(error.get("type") == "missing" for error in errors):
        message = "Title, amount, and category are required"
    else:
        message = "Invalid request data"
    return JSONResponse(status_code=400, content=error_body(message, errors))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(status_code=404, content=error_body("Route not found", path=request.url.path))
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=error_body("Something went wrong!", str(exc)))


# --- Service Routes ---

@app.get("/health")
@limiter.exempt
async def health():
    """Liveness payload with uptime and timestamp."""
    return {
        "status": "OK",
        "message": "Expense Tracker API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }


@app.get("/api")
async def api_info():
    return {
        "message": "Expense Tracker API",
        "version": API_VERSION,
        "endpoints": {
            "health": "/health",
            "api": "/api",
            "expenses": "/api/expenses",
            "stats": "/api/expenses/stats",
        },
    }


@app.get("/")
async def root():
    return {
        "message": "Welcome to Expense Tracker API",
        "docs": {
            "health": "/health",
            "apiInfo": "/api",
            "expenses": "/api/expenses",
            "stats": "/api/expenses/stats",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
    )
