# main.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Optional
import logging

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError as PydanticValidationError

from metadata_extractor import __version__
from metadata_extractor.config import get_config
from metadata_extractor.detection import classify
from metadata_extractor.exceptions import (
    MetadataExtractorError,
    InvalidURLError,
    ValidationError,
    create_user_friendly_error,
)
from metadata_extractor.extractors import create_default_registry
from metadata_extractor.transform import to_legacy_shape
from metadata_extractor.utils.http_client import HTTPClientManager
from metadata_extractor.utils.validation import sanitize_url, validate_extraction_options

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the shared HTTP client on shutdown"""
    yield
    await HTTPClientManager.reset()
    logger.info("HTTP clients closed")


app = FastAPI(
    title="Metadata Extraction Service",
    description="Classify saved URLs and extract structured metadata",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize extractor registry and validate configuration
try:
    config = get_config()
    logger.info("Configuration loaded successfully")
    registry = create_default_registry(config)
    logger.info(f"Initialized extractors: {[e.name for e in registry.extractors]}")
except MetadataExtractorError as e:
    logger.error(f"Failed to initialize application: {e}")
    raise


class ExtractRequest(BaseModel):
    url: str
    use_cache: bool = True
    options: Optional[Dict] = {}

    def extraction_options(self) -> Dict:
        return validate_extraction_options({**(self.options or {}), "use_cache": self.use_cache})


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Dict] = {}
    user_message: str


# Exception handlers
@app.exception_handler(MetadataExtractorError)
async def metadata_extractor_error_handler(request: Request, exc: MetadataExtractorError):
    logger.warning(f"{exc.__class__.__name__}: {exc.message}", extra={"details": exc.details})

    status_code = 400
    if isinstance(exc, (InvalidURLError, ValidationError)):
        status_code = 422

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.__class__.__name__,
            "message": exc.message,
            "details": exc.details,
            "user_message": create_user_friendly_error(exc),
        },
    )


@app.exception_handler(PydanticValidationError)
async def validation_error_handler(request: Request, exc: PydanticValidationError):
    logger.warning(f"Validation error: {exc}")

    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(f"{field}: {error['msg']}")

    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Input validation failed",
            "details": {"validation_errors": errors},
            "user_message": f"📝 Invalid input: {'; '.join(errors)}",
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
            "details": {"error_type": exc.__class__.__name__},
            "user_message": "❌ An unexpected error occurred. Please try again later.",
        },
    )


@app.post("/extract", responses={
    422: {"model": ErrorResponse, "description": "Invalid URL"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
})
async def extract_metadata(request: ExtractRequest):
    """
    Extract metadata from a URL.

    Returns the ExtractorResult envelope: metadata, confidence and source
    (``api``, ``scraping``, or ``hybrid`` for cache hits).
    """
    url = sanitize_url(request.url)
    logger.info(f"Extracting metadata from: {url}")

    result = await registry.extract_with_cache(url, request.extraction_options())

    logger.info(f"Extracted {result.metadata.content_type.value} "
                f"(confidence {result.confidence:.2f}, {result.source.value})")
    return result.to_dict()


@app.post("/extract/legacy", responses={
    422: {"model": ErrorResponse, "description": "Invalid URL"},
})
async def extract_legacy(request: ExtractRequest):
    """Extract metadata and return it as a flat storage record."""
    url = sanitize_url(request.url)
    result = await registry.extract_with_cache(url, request.extraction_options())
    return {
        "content_type": result.metadata.content_type.value,
        "confidence": result.confidence,
        "metadata": to_legacy_shape(result.metadata),
    }


@app.get("/classify")
async def classify_url(url: str = Query(..., description="URL to classify")):
    """Classify a URL without fetching it."""
    return classify(url).to_dict()


@app.get("/cache/stats")
async def cache_stats():
    return registry.get_cache_stats()


@app.delete("/cache")
async def clear_cache(url: Optional[str] = None):
    """Clear one URL's cache entry, or the whole cache when no URL is given."""
    registry.clear_cache(url)
    return {"cleared": url or "all"}


@app.post("/cache/clean")
async def clean_cache():
    return {"removed": registry.clean_expired_cache()}


@app.get("/health")
async def health_check():
    """
    Health check endpoint with detailed system status.

    Reports which API capabilities are configured; scraping works without any.
    """
    try:
        config.validate()

        configured = [p for p in ("x", "reader", "github") if config.is_platform_configured(p)]

        health_status = {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "configuration": {
                "valid": True,
                "extractors": [e.name for e in registry.extractors],
                "configured_apis": configured,
            },
            "cache": registry.get_cache_stats(),
        }

        if not configured:
            health_status["status"] = "degraded"
            health_status["warnings"] = ["No API keys configured; extraction uses scraping only"]

        return health_status

    except MetadataExtractorError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": str(e),
                "user_message": create_user_friendly_error(e),
            },
        )
