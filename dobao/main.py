from fastapi import FastAPI
from dobao.core.config import settings
from dobao.api import public, admin
from dobao.core.errors import register_error_handlers
from dobao.core.logger import setup_logging, logger
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} (storage: {settings.STORAGE_BACKEND})")
    if not settings.ADMIN_TOKEN:
        logger.warning("⚠️ ADMIN_TOKEN is not set, the admin API is closed")
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

register_error_handlers(app)

# Include routers
app.include_router(public.router, prefix=settings.API_V1_STR, tags=["Public"])
app.include_router(admin.router, prefix=f"{settings.API_V1_STR}/admin", tags=["Admin"])

@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}

@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("dobao.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
