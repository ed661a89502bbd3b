import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from exam_portal.config import settings
from exam_portal.database import init_db
from exam_portal.errors import register_exception_handlers

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("exam_portal")

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    init_db()
    logger.info("🚀 %s is starting...", settings.app_name)
    logger.info("📚 Database: %s", settings.database_url)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.api_version,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


# Import and include routers
from exam_portal.routes import activities, auth, exam_papers, results, subjects, submissions, users  # noqa: E402

prefix = settings.api_prefix
app.include_router(auth.router, prefix=f"{prefix}/auth")
app.include_router(users.router, prefix=f"{prefix}/users")
app.include_router(subjects.router, prefix=f"{prefix}/subjects")
app.include_router(exam_papers.router, prefix=f"{prefix}/exam-papers")
app.include_router(submissions.router, prefix=f"{prefix}/submissions")
app.include_router(results.router, prefix=f"{prefix}/results")
app.include_router(activities.router, prefix=f"{prefix}/activities")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("exam_portal.main:app", host=settings.host, port=settings.port, reload=settings.debug)
