"""CoverWise API - FastAPI entry point.

Thin HTTP layer over the extraction service: insurance parsing, treatment
cost lookup, EOB analysis and pre-visit guidance.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coverwise.api.routes import analysis, readouts
from coverwise.config.logging_config import get_logger, setup_logging
from coverwise.config.request_context import correlation_scope
from coverwise.config.settings import get_settings
from coverwise.models.enums import ErrorClass
from coverwise.reasoning.exceptions import GenerationError
from coverwise.reasoning.llm_gateway import shutdown_llm_gateway
from coverwise.services.extraction_service import AnalysisRefusedError, InvalidInputError
from coverwise.services.readout_service import ReadoutUnavailableError, shutdown_readout_service

settings = get_settings()
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)

_STATUS_BY_ERROR_CLASS = {
    ErrorClass.UNAUTHORIZED: 401,
    ErrorClass.RATE_LIMITED: 429,
    ErrorClass.NOT_FOUND: 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup checks; on shutdown drain readouts and close HTTP clients."""
    logger.info("Starting CoverWise API")
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set, analyses will fail with 401")
    if not settings.elevenlabs_api_key:
        logger.info("ELEVENLABS_API_KEY not set, voice readouts disabled")

    yield

    logger.info("Shutting down CoverWise API")
    await shutdown_readout_service()
    await shutdown_llm_gateway()


app = FastAPI(
    title="CoverWise API",
    description="AI-assisted insurance plan, treatment cost, EOB and pre-visit analysis",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-Requested-With", "X-Correlation-ID"],
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    cid = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    with correlation_scope(cid):
        response = await call_next(request)
    response.headers["X-Correlation-ID"] = cid
    return response


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    status_code = _STATUS_BY_ERROR_CLASS.get(exc.error_class, 502)
    logger.warning(
        "Analysis failed",
        path=request.url.path,
        error_class=exc.error_class.value,
        model=exc.failure.model,
        detail=str(exc),
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.user_message, "error_class": exc.error_class.value},
    )


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(AnalysisRefusedError)
async def refused_handler(request: Request, exc: AnalysisRefusedError):
    return JSONResponse(status_code=422, content={"error": exc.message, "error_class": "refused"})


@app.exception_handler(ReadoutUnavailableError)
async def readout_unavailable_handler(request: Request, exc: ReadoutUnavailableError):
    return JSONResponse(status_code=503, content={"error": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = str(uuid.uuid4())[:8]
    logger.error("Unhandled exception", error_id=error_id, error=str(exc), path=request.url.path, exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "error_id": error_id})


app.include_router(analysis.router, prefix="/api/v1")
app.include_router(readouts.router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "0.1.0",
        "platform": "coverwise",
        "components": {"gemini_configured": bool(settings.gemini_api_key)},
    }


@app.get("/")
async def root():
    return {
        "name": "CoverWise API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("coverwise.main:app", host="0.0.0.0", port=8000, reload=True)
