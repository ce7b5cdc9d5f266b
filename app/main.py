"""
CampusFix API - Main FastAPI Application
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.database import close_db, init_db
from app.exceptions import CampusFixError, ValidationFailed
from app.routers import admin, events, issues, uploads

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting %s", settings.app_name)
    await init_db()

    yield

    # Shutdown
    logger.info("Shutting down %s", settings.app_name)
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Campus issue reporting and event management",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_issue_requests(request: Request, call_next):
    """Log traffic to the issues API"""
    response = await call_next(request)
    if request.url.path.startswith("/api/issues"):
        logger.info(
            "%s %s -> %d (user %s)",
            request.method,
            request.url.path,
            response.status_code,
            getattr(request.state, "user_id", None),
        )
    return response


@app.exception_handler(CampusFixError)
async def campusfix_error_handler(request: Request, exc: CampusFixError):
    """Render domain errors with their status code"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Collect every field error into a single 400 response"""
    errors = []
    for error in exc.errors():
        # Drop the leading "body"/"query"/"path" segment
        location = [str(part) for part in error.get("loc", ())[1:]]
        errors.append({"field": ".".join(location), "msg": error.get("msg", "Invalid value")})
    failure = ValidationFailed(errors)
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Hide unexpected failures behind a generic message"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "msg": "Server error"})


# Include routers
app.include_router(issues.router, prefix="/api/issues", tags=["Issues"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(uploads.router, prefix="/api/uploads", tags=["Uploads"])


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint"""
    return {"msg": f"{settings.app_name} is running"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
