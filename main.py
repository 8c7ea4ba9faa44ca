import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hackhub.config import CORS_ORIGINS
from hackhub.database import create_db_and_tables
from hackhub.errors import HackHubError
from hackhub.logging_config import configure_logging
from hackhub.routers import auth, judge, projects, showcase, submissions, tasks, teams

logger = logging.getLogger("hackhub.app")

# Slow request threshold (ms)
SLOW_THRESHOLD_MS = 1000


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    configure_logging()
    # Startup: Create database tables
    create_db_and_tables()
    logger.info("HackHub API started")
    yield


# Initialize FastAPI app
app = FastAPI(
    title="HackHub API",
    description="Teams, projects, tasks, judging and the public showcase for a hackathon",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    extra = {"method": request.method, "path": request.url.path, "status": response.status_code}
    if duration_ms > SLOW_THRESHOLD_MS:
        logger.warning("Slow request: %s %s %d (%.0fms)",
                       request.method, request.url.path, response.status_code, duration_ms, extra=extra)
    else:
        logger.debug("Request: %s %s %d (%.0fms)",
                     request.method, request.url.path, response.status_code, duration_ms, extra=extra)
    return response


@app.exception_handler(HackHubError)
async def hackhub_error_handler(request: Request, exc: HackHubError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include routers
app.include_router(auth.router)
app.include_router(teams.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(submissions.router)
app.include_router(judge.router)
app.include_router(showcase.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
