"""Model Catalog Resolver - discover and rank generateContent-capable models."""
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Tuple

import httpx

from coverwise.config.logging_config import get_logger

logger = get_logger(__name__)

GENERATE_CONTENT_METHOD = "generateContent"
_MODEL_PREFIX = "models/"

# Family keyword -> rank, checked top to bottom; first match wins.
MODEL_RANK_TABLE: Tuple[Tuple[str, int], ...] = (
    ("2.5-flash", 0),
    ("2.0-flash", 1),
    ("flash-lite", 2),
    ("flash", 3),
    ("pro", 4),
)
UNRANKED = len(MODEL_RANK_TABLE)


def normalize_model_name(name: Any) -> str:
    """Strip the ``models/`` provider prefix."""
    if not name:
        return ""
    text = str(name)
    return text[len(_MODEL_PREFIX):] if text.startswith(_MODEL_PREFIX) else text


def rank_model(name: str) -> int:
    lowered = (name or "").lower()
    for keyword, rank in MODEL_RANK_TABLE:
        if keyword in lowered:
            return rank
    return UNRANKED


def rank_models(names: List[str]) -> List[str]:
    """Order model ids by family preference, then lexicographically."""
    return sorted(names, key=lambda name: (rank_model(name), name))


def _dedupe(names: List[str]) -> List[str]:
    seen = set()
    unique = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            unique.append(name)
    return unique


@dataclass
class ModelCache:
    """
    Single-slot memo of the last successful catalog fetch.

    A lookup hits only for the same credential, within the TTL, and with a
    non-empty list. Entries expire passively.
    """
    ttl_seconds: float = 300.0
    clock: Callable[[], float] = time.monotonic
    credential: Optional[str] = None
    fetched_at: float = 0.0
    models: List[str] = field(default_factory=list)

    def lookup(self, credential: str, now: float) -> Optional[List[str]]:
        if (
            self.credential == credential
            and now - self.fetched_at < self.ttl_seconds
            and self.models
        ):
            return list(self.models)
        return None

    def store(self, credential: str, now: float, models: List[str]) -> None:
        self.credential = credential
        self.fetched_at = now
        self.models = list(models)

    async def get_or_refresh(
        self,
        credential: str,
        fetch: Callable[[str], Awaitable[Optional[List[str]]]],
    ) -> List[str]:
        """
        Return cached models or call ``fetch``.

        ``fetch`` returns None on failure, which leaves the slot untouched.
        """
        now = self.clock()
        cached = self.lookup(credential, now)
        if cached is not None:
            logger.debug("Model catalog cache hit", count=len(cached))
            return cached

        fetched = await fetch(credential)
        if fetched is None:
            return []
        self.store(credential, now, fetched)
        return list(fetched)


class ModelCatalogResolver:
    """
    Resolves the ranked list of models usable for generateContent.

    Never raises: network, HTTP, and parse problems all yield an empty list.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_base: str,
        cache: Optional[ModelCache] = None,
    ):
        self._http_client = http_client
        self._api_base = api_base.rstrip("/")
        self.cache = cache or ModelCache()

    async def resolve_ranked_models(self, credential: str) -> List[str]:
        """Return ranked model ids for ``credential``; empty on any failure."""
        if not credential:
            return []
        return await self.cache.get_or_refresh(credential, self._fetch_models)

    async def _fetch_models(self, credential: str) -> Optional[List[str]]:
        url = f"{self._api_base}/models"
        try:
            response = await self._http_client.get(url, params={"key": credential})
            if not response.is_success:
                logger.warning("Model catalog request rejected", status=response.status_code)
                return None
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Model catalog fetch failed", error=str(e))
            return None

        entries = data.get("models") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            entries = []

        available = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            methods = entry.get("supportedGenerationMethods")
            if not isinstance(methods, list) or GENERATE_CONTENT_METHOD not in methods:
                continue
            available.append(normalize_model_name(entry.get("name")))

        ranked = rank_models(_dedupe(available))
        logger.info("Model catalog refreshed", count=len(ranked), top=ranked[:3])
        return ranked
