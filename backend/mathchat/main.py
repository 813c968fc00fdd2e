# backend/mathchat/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from contextlib import asynccontextmanager

from mathchat.api.routes import health, solve
from mathchat.core.config import settings
from mathchat.core.exceptions import MathChatError, SolutionParseError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Client-Info", "Apikey"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"🚀 Starting {settings.APP_NAME} proxy (model: {settings.GEMINI_MODEL})")
    if not settings.GEMINI_API_KEY:
        logger.warning("⚠️ GEMINI_API_KEY is not set, solve requests will fail with 500")

    yield

    logger.info(f"🛑 Shutting down {settings.APP_NAME} proxy")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Relay that turns math problems into structured step-by-step solutions",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Middleware setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
)

app.include_router(solve.router, tags=["solve"])
app.include_router(health.router, tags=["health"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME}!",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "solve": "/functions/v1/solve-math",
    }


@app.exception_handler(MathChatError)
async def mathchat_exception_handler(request: Request, exc: MathChatError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Error in solve-math function: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"error": SolutionParseError().message},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("mathchat.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
