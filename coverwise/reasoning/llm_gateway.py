"""LLM Gateway - model selection, fallback policy, and result normalization."""
from typing import AsyncIterator, Dict, List, Optional, Tuple

import httpx

from coverwise.config.logging_config import get_logger
from coverwise.config.request_context import get_correlation_id
from coverwise.config.settings import Settings, get_settings
from coverwise.models.enums import CONTINUABLE_ERROR_CLASSES, ErrorClass, ExtractionTask
from coverwise.models.generation import GenerationFailure, GenerationRequest
from coverwise.models.results import NormalizedResult
from coverwise.reasoning.exceptions import GenerationError, MalformedJsonError
from coverwise.reasoning.gemini_client import GeminiClient
from coverwise.reasoning.model_catalog import ModelCache, ModelCatalogResolver
from coverwise.reasoning.normalizer import normalize

logger = get_logger(__name__)

# Hardcoded fallbacks tried after the preferred model and before discovery.
TASK_FALLBACK_MODELS: Dict[ExtractionTask, Tuple[str, ...]] = {
    ExtractionTask.PRE_VISIT_ANALYSIS: ("gemini-2.5-flash", "gemini-2.0-flash"),
}

# Single-shot models used when GEMINI_MODEL is not set.
TASK_DEFAULT_MODELS: Dict[ExtractionTask, str] = {
    ExtractionTask.PLAN_EXTRACTION: "gemini-1.5-flash",
    ExtractionTask.TREATMENT_COST_LOOKUP: "gemini-2.0-flash",
    ExtractionTask.EOB_DENIAL_EXTRACTION: "gemini-2.0-flash",
}

NO_USABLE_OUTPUT_MESSAGE = "No model produced usable output for this analysis."


class LLMGateway:
    """
    Central gateway for Gemini requests.

    Two paths:
    - resolve_with_fallback: walks an ordered candidate list (preferred
      model, task fallbacks, discovered models) until one yields parseable
      JSON. Only the pre-visit analysis uses it.
    - resolve_single: one configured model, first error propagates as-is.

    Continue-vs-abort policy for each error class lives here and nowhere else.
    """

    def __init__(
        self,
        gemini_client: GeminiClient,
        model_catalog: ModelCatalogResolver,
        credential: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.gemini_client = gemini_client
        self.model_catalog = model_catalog
        self._credential = credential
        self._http_client = http_client
        logger.info("LLM Gateway initialized", credential_configured=bool(credential))

    # ------------------------------------------------------------------
    # Candidate ordering
    # ------------------------------------------------------------------

    async def _iter_candidates(
        self,
        task: ExtractionTask,
        preferred_model: Optional[str],
    ) -> AsyncIterator[str]:
        """
        Yield candidate models in priority order without duplicates.

        Discovery runs only once the static candidates are used up; the
        combined order is the same as building the whole list up front.
        """
        seen = set()
        for model in (preferred_model, *TASK_FALLBACK_MODELS.get(task, ())):
            if model and model not in seen:
                seen.add(model)
                yield model

        discovered = await self.model_catalog.resolve_ranked_models(self._credential)
        for model in discovered:
            if model and model not in seen:
                seen.add(model)
                yield model

    async def candidate_models(
        self,
        task: ExtractionTask,
        preferred_model: Optional[str] = None,
    ) -> List[str]:
        """Full candidate order for ``task`` (performs discovery)."""
        return [model async for model in self._iter_candidates(task, preferred_model)]

    # ------------------------------------------------------------------
    # Resolution paths
    # ------------------------------------------------------------------

    def _require_credential(self) -> None:
        if not self._credential:
            raise GenerationError.of(
                ErrorClass.UNAUTHORIZED,
                message="Missing GEMINI_API_KEY in environment.",
                http_status=401,
            )

    async def resolve_with_fallback(
        self,
        task: ExtractionTask,
        request: GenerationRequest,
        preferred_model: Optional[str] = None,
    ) -> NormalizedResult:
        """
        Try candidates in order until one returns parseable JSON.

        Args:
            task: Task whose schema drives normalization
            request: Prepared payload, reused for every candidate
            preferred_model: Optional override tried first

        Returns:
            Normalized result from the first successful candidate

        Raises:
            GenerationError: On an abort-class failure, or when every
                candidate is exhausted
        """
        self._require_credential()
        cid = get_correlation_id()
        last_failure: Optional[GenerationFailure] = None
        saw_rate_limit = False
        attempts = 0

        async for model in self._iter_candidates(task, preferred_model):
            attempts += 1
            outcome = await self.gemini_client.invoke(model, request, self._credential)

            if isinstance(outcome, GenerationFailure):
                if outcome.error_class not in CONTINUABLE_ERROR_CLASSES:
                    logger.error(
                        "Model failed with a fatal error, aborting fallback",
                        correlation_id=cid,
                        task=task.value,
                        model=model,
                        error_class=outcome.error_class.value,
                        status=outcome.http_status,
                    )
                    raise GenerationError(outcome)
                if outcome.error_class == ErrorClass.RATE_LIMITED:
                    saw_rate_limit = True
                last_failure = outcome
                logger.warning(
                    "Model failed, trying next candidate",
                    correlation_id=cid,
                    task=task.value,
                    model=model,
                    error_class=outcome.error_class.value,
                    status=outcome.http_status,
                )
                continue

            try:
                result = normalize(task, outcome.raw_text)
            except MalformedJsonError as e:
                last_failure = GenerationFailure(
                    error_class=ErrorClass.MALFORMED_JSON,
                    model=model,
                    message=str(e),
                )
                logger.warning(
                    "Model output was not valid JSON, trying next candidate",
                    correlation_id=cid,
                    task=task.value,
                    model=model,
                )
                continue

            logger.info(
                "Model succeeded",
                correlation_id=cid,
                task=task.value,
                model=model,
                attempts=attempts,
            )
            return result

        logger.error(
            "All candidate models failed",
            correlation_id=cid,
            task=task.value,
            attempts=attempts,
            saw_rate_limit=saw_rate_limit,
        )
        if saw_rate_limit:
            raise GenerationError.of(
                ErrorClass.RATE_LIMITED,
                message="Gemini rate limit reached for available models.",
                http_status=429,
            )
        if last_failure is not None:
            raise GenerationError(last_failure)
        raise GenerationError.of(ErrorClass.OTHER, message=NO_USABLE_OUTPUT_MESSAGE)

    async def resolve_single(
        self,
        task: ExtractionTask,
        request: GenerationRequest,
        model: Optional[str] = None,
    ) -> NormalizedResult:
        """
        Call one model and normalize its answer; no fallback, no retry.

        Raises:
            GenerationError: The first failure, unchanged
        """
        self._require_credential()
        model = model or TASK_DEFAULT_MODELS.get(task, "gemini-2.0-flash")
        outcome = await self.gemini_client.invoke(model, request, self._credential)
        if isinstance(outcome, GenerationFailure):
            raise GenerationError(outcome)

        try:
            return normalize(task, outcome.raw_text)
        except MalformedJsonError as e:
            logger.error("Model output was not valid JSON", task=task.value, model=model)
            raise GenerationError.of(
                ErrorClass.MALFORMED_JSON,
                message=str(e),
                model=model,
            ) from e

    async def list_models(self) -> List[str]:
        """Ranked models available to the configured credential."""
        return await self.model_catalog.resolve_ranked_models(self._credential)

    async def aclose(self) -> None:
        """Close the owned HTTP client, if any."""
        if self._http_client is not None:
            await self._http_client.aclose()


def create_llm_gateway(settings: Optional[Settings] = None) -> LLMGateway:
    """Wire a gateway from settings with one shared HTTP client."""
    settings = settings or get_settings()
    http_client = httpx.AsyncClient(timeout=settings.gemini_http_timeout_seconds)
    return LLMGateway(
        gemini_client=GeminiClient(http_client, settings.gemini_api_base),
        model_catalog=ModelCatalogResolver(
            http_client,
            settings.gemini_api_base,
            cache=ModelCache(ttl_seconds=settings.model_cache_ttl_seconds),
        ),
        credential=settings.gemini_api_key,
        http_client=http_client,
    )


# Global instance
_llm_gateway: Optional[LLMGateway] = None


def get_llm_gateway() -> LLMGateway:
    """Get or create the global LLM Gateway instance."""
    global _llm_gateway
    if _llm_gateway is None:
        _llm_gateway = create_llm_gateway()
    return _llm_gateway


async def shutdown_llm_gateway() -> None:
    """Close and forget the global gateway."""
    global _llm_gateway
    if _llm_gateway is not None:
        await _llm_gateway.aclose()
        _llm_gateway = None
