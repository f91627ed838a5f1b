import logging
import sys

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shorturl_app.config import settings
from shorturl_app.database.connection import engine, Base
from shorturl_app.exceptions import ShortenerError
from shorturl_app.api.v1 import urls, redirect

# Import models to ensure they're registered with Base
from shorturl_app.models import URL, Click  # noqa: F401

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("urllib3").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)
logger.info("✅ Database tables ready (%s)", engine.url.render_as_string(hide_password=True))

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortener with click analytics built with FastAPI",
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "HEAD", "PUT", "DELETE", "PATCH"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
)


@app.exception_handler(ShortenerError)
async def shortener_error_handler(request: Request, exc: ShortenerError):
    """Render every domain error as {"error": message} with its status code"""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a client error (400), not FastAPI's 422"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body"},
    )


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "endpoints": {
            "POST /api/shorten": "Create a short URL",
            "GET /url/{short_code}": "Redirect to original URL",
            "GET /api/stats/{short_code}": "Get URL statistics",
            "GET /api/clicks/{short_code}": "Get recent clicks",
            "GET /health": "Health check",
        },
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "ok", "message": "Short URL service is running"}


######## Include routers
app.include_router(urls.router)
# Catch-all /{short_code} must come last
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
