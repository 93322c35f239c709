"""
FastAPI application for the IMEI relay service.

Provides endpoints for:
- Liveness checks
- Extracting device assignments from PDFs (or manual lists) and
  recording them in spreadsheets via the Apps Script webhook
"""

import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from . import __version__
from .config import get_settings
from .models import ErrorResponse, HealthResponse
from .routers import assign
from .services import get_dispatcher, get_extractor
from .services.exceptions import (
    DispatchTransportError,
    InvalidInputError,
    MalformedResponseError,
    RelayError,
    UpstreamExtractionError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Failed to process request."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting IMEI relay backend...")
    settings = get_settings()
    if settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    # Initialize services on startup
    get_extractor()
    get_dispatcher()
    if not settings.google_script_webhook_url:
        logger.warning("GOOGLE_SCRIPT_WEBHOOK_URL is not set; dispatches will fail")
    logger.info("Services initialized (model provider: %s)", settings.ai_provider)
    yield
    logger.info("Shutting down IMEI relay backend...")


# Create FastAPI application
app = FastAPI(
    title="IMEI Relay API",
    description="Extracts device assignments from PDFs and records them in spreadsheets",
    version=__version__,
    lifespan=lifespan,
)

# Any browser client may call the relay
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Root endpoint - liveness text."""
    return "IMEI relay backend is alive"


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", message="Service is healthy", version=__version__)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(assign.router)


# =============================================================================
# Exception Handlers
# =============================================================================


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    if get_settings().expose_error_details:
        message = str(exc) or GENERIC_ERROR_MESSAGE
    else:
        message = GENERIC_ERROR_MESSAGE
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies as client errors."""
    logger.warning("Rejected request body: %s", exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(message=f"Invalid request body: {exc.errors()}").model_dump(),
    )


@app.exception_handler(InvalidInputError)
async def invalid_input_error_handler(request: Request, exc: InvalidInputError):
    """Handle missing or malformed caller input."""
    logger.warning("Invalid input: %s", exc)
    # Client errors always explain themselves
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(message=str(exc)).model_dump(),
    )


@app.exception_handler(MalformedResponseError)
async def malformed_response_error_handler(request: Request, exc: MalformedResponseError):
    """Handle model answers that could not be turned into records."""
    logger.error("Malformed model response: %s | raw: %s", exc, exc.raw_text[:500])
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


@app.exception_handler(UpstreamExtractionError)
async def upstream_extraction_error_handler(request: Request, exc: UpstreamExtractionError):
    """Handle generative model failures."""
    logger.error("Extraction failed: %s", exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


@app.exception_handler(DispatchTransportError)
async def dispatch_transport_error_handler(request: Request, exc: DispatchTransportError):
    """Handle webhook transport failures that aborted the dispatch."""
    logger.error("Dispatch aborted: %s", exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    """Handle any other pipeline error."""
    logger.error("Pipeline error: %s", exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.exception("Unexpected error processing request")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
