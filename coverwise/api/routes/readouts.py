"""Voice readout routes: fetch background audio or synthesize on demand."""
from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from coverwise.api.dependencies import get_readout
from coverwise.api.requests import ReadoutRequest
from coverwise.api.responses import ErrorResponse
from coverwise.config.logging_config import get_logger
from coverwise.services.readout_service import ReadoutService

logger = get_logger(__name__)

router = APIRouter(tags=["Readouts"])


@router.get(
    "/readouts/{correlation_id}",
    response_class=Response,
    responses={200: {"content": {"audio/mpeg": {}}}, 404: {"model": ErrorResponse}},
)
async def get_readout_audio(
    correlation_id: str,
    readout: ReadoutService = Depends(get_readout),
):
    """
    Audio spoken for the analysis sent with ``X-Correlation-ID``.

    404 until the background readout has finished, or when speech is off.
    """
    stored = readout.latest(correlation_id)
    if stored is None:
        return JSONResponse(status_code=404, content={"error": "No readout available for this request"})
    return Response(content=stored.audio, media_type=stored.media_type, headers=stored.headers())


@router.post(
    "/readout",
    response_class=Response,
    responses={200: {"content": {"audio/mpeg": {}}}, 503: {"model": ErrorResponse}},
)
async def read_aloud(
    request: ReadoutRequest,
    readout: ReadoutService = Depends(get_readout),
):
    """Synthesize the given text now and return the audio."""
    logger.info("API: On-demand readout", length=len(request.text))
    spoken = await readout.speak_now(request.text)
    return Response(content=spoken.audio, media_type=spoken.media_type, headers=spoken.headers())
