"""Gemini generateContent client with HTTP outcome classification."""
import time
from typing import Any

import httpx

from coverwise.config.logging_config import get_logger
from coverwise.config.request_context import get_correlation_id
from coverwise.models.enums import ErrorClass
from coverwise.models.generation import (
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
)

logger = get_logger(__name__)

_STATUS_CLASSES = {
    401: ErrorClass.UNAUTHORIZED,
    429: ErrorClass.RATE_LIMITED,
    # Model unusable for this credential, not a blanket auth failure
    403: ErrorClass.NOT_FOUND,
    404: ErrorClass.NOT_FOUND,
}


def classify_status(status_code: int) -> ErrorClass:
    """Map a non-2xx HTTP status to its error class."""
    return _STATUS_CLASSES.get(status_code, ErrorClass.OTHER)


def extract_candidate_text(data: Any) -> str:
    """Concatenate the text parts of the first candidate."""
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    texts = [
        part.get("text") for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    return "".join(texts).strip()


def _error_details(response: httpx.Response) -> str:
    """Best-effort diagnostic text from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.text.strip()


class GeminiClient:
    """
    Issues generateContent requests and classifies the outcome.

    Never raises for HTTP or transport problems; every result comes back
    as a GenerationOutcome. Holds no mutable state.
    """

    def __init__(self, http_client: httpx.AsyncClient, api_base: str):
        self._http_client = http_client
        self._api_base = api_base.rstrip("/")

    def endpoint_for(self, model: str) -> str:
        return f"{self._api_base}/models/{model}:generateContent"

    async def invoke(
        self,
        model: str,
        request: GenerationRequest,
        credential: str,
    ) -> GenerationOutcome:
        """
        Send ``request`` to ``model``.

        Args:
            model: Model id without the ``models/`` prefix
            request: Prepared generation payload
            credential: Gemini API key

        Returns:
            GenerationSuccess with the raw text, or a classified GenerationFailure
        """
        cid = get_correlation_id()
        logger.info("Generating with Gemini", model=model, correlation_id=cid)
        start_time = time.monotonic()

        try:
            response = await self._http_client.post(
                self.endpoint_for(model),
                params={"key": credential},
                json=request.to_payload(),
            )
        except httpx.RequestError as e:
            logger.error("Gemini request failed", model=model, error=str(e))
            return GenerationFailure(
                error_class=ErrorClass.OTHER,
                model=model,
                message=f"Request failed: {e}",
            )

        latency_ms = round((time.monotonic() - start_time) * 1000, 2)

        if not response.is_success:
            error_class = classify_status(response.status_code)
            details = _error_details(response)
            logger.warning(
                "Gemini returned an error",
                model=model,
                status=response.status_code,
                error_class=error_class.value,
                details=details[:300],
                latency_ms=latency_ms,
            )
            return GenerationFailure(
                error_class=error_class,
                model=model,
                http_status=response.status_code,
                message=details or None,
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        raw_text = extract_candidate_text(data)

        if not raw_text:
            logger.warning("Gemini returned no text", model=model, latency_ms=latency_ms)
            return GenerationFailure(
                error_class=ErrorClass.EMPTY_OUTPUT,
                model=model,
                http_status=response.status_code,
                message=f"No model output found from {model}.",
            )

        logger.debug("Gemini response received", model=model, length=len(raw_text), latency_ms=latency_ms)
        return GenerationSuccess(model=model, raw_text=raw_text)
