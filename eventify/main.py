from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from eventify.core.config import settings
from eventify.core.exceptions import EventifyError
from eventify.api import auth, backup, bookings, dashboard, users
from eventify.core.logger import setup_logging, logger
from eventify.services.user_service import UserService
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting Eventify Backend")
    await UserService().ensure_default_admin()
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

@app.exception_handler(EventifyError)
async def eventify_exception_handler(request: Request, exc: EventifyError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"🔥 UNHANDLED ERROR: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please try again."}
    )

# Include routers
app.include_router(auth.router, tags=["Auth"])
app.include_router(bookings.router, tags=["Bookings"])
app.include_router(dashboard.router, tags=["Dashboard"])
app.include_router(users.router, tags=["Users"])
app.include_router(backup.router, tags=["Backup"])

@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}

@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "backend": settings.STORE_BACKEND, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("eventify.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
