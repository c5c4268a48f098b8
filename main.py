import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.api.v1.api import api_router
from app.core.config import settings
from app.core.exceptions import BaseAppException
from app.core.logging_config import setup_logging
from app.db.init_db import init_db
from app.middleware.logging import LoggingMiddleware
from app.utils.epoch import now_epoch

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_db()
    logger.info(f"🚀 {settings.APP_NAME} started ({settings.ENVIRONMENT})")
    yield
    logger.info(f"👋 {settings.APP_NAME} shutting down")

# Create FastAPI app
app_config = {
    "title": settings.APP_NAME,
    "description": "FIFO inventory valuation, costing and profitability for multi-tenant retail POS",
    "version": "1.0.0",
    "debug": settings.DEBUG,
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS
)
app.add_middleware(LoggingMiddleware)

@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    if exc.status_code >= 500:
        logger.warning(f"⚠️ {request.method} {request.url.path}: {exc.detail}")
    body = {"success": False, "message": exc.detail}
    if exc.retryable:
        body["retryable"] = True
    return JSONResponse(status_code=exc.status_code, content=body)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "message": message},
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {
        "message": f"📦 Welcome to the {settings.APP_NAME}!",
        "status": "active",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": now_epoch(),
        "environment": settings.ENVIRONMENT,
    }

def run_http():
    """Run HTTP server on port 9106"""
    import uvicorn
    print("🚀 Starting HTTP server on port 9106...")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=9106,
        reload=settings.DEBUG
    )

if __name__ == "__main__":
    run_http()
