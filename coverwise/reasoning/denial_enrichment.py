"""Denial-code intelligence for extracted EOBs."""
import json
import re
from pathlib import Path
from typing import Dict, List, Optional

from coverwise.config.logging_config import get_logger
from coverwise.models.denial import DenialKnowledgeEntry
from coverwise.models.results import EOBAnalysis

logger = get_logger(__name__)

_DEFAULT_KB_PATH = Path(__file__).resolve().parent.parent / "data" / "denial_codes.json"
_WHITESPACE = re.compile(r"\s+")


def canonical_code(code: str) -> str:
    """Remove all whitespace and upper-case (" co-50 " -> "CO-50")."""
    return _WHITESPACE.sub("", code).upper()


class DenialKnowledgeBase:
    """
    Static lookup of claim adjustment reason codes.

    Unknown codes resolve to the designated default entry so the appeal
    guidance shown always matches the code displayed.
    """

    def __init__(self, entries: List[DenialKnowledgeEntry], default_code: str):
        self._entries: Dict[str, DenialKnowledgeEntry] = {}
        for entry in entries:
            self._entries.setdefault(canonical_code(entry.code), entry)
        key = canonical_code(default_code)
        if key not in self._entries:
            raise ValueError(f"Default denial code {default_code} is not in the knowledge base")
        self._default = self._entries[key]

    @classmethod
    def from_file(cls, path: Optional[Path] = None) -> "DenialKnowledgeBase":
        path = path or _DEFAULT_KB_PATH
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        entries = [DenialKnowledgeEntry.from_dict(item) for item in data["entries"]]
        logger.debug("Denial knowledge base loaded", path=str(path), entries=len(entries))
        return cls(entries, default_code=data["default_code"])

    @property
    def default_entry(self) -> DenialKnowledgeEntry:
        return self._default

    @property
    def entries(self) -> List[DenialKnowledgeEntry]:
        return list(self._entries.values())

    def lookup(self, code: str) -> Optional[DenialKnowledgeEntry]:
        return self._entries.get(canonical_code(code))

    def enrich(self, extracted_code: Optional[str]) -> Optional[DenialKnowledgeEntry]:
        """
        Resolve guidance for an extracted denial code.

        Returns None when no code was extracted, the matching entry when one
        exists, and the default entry otherwise.
        """
        if extracted_code is None or not extracted_code.strip():
            return None
        entry = self.lookup(extracted_code)
        if entry is None:
            logger.info(
                "Denial code not in knowledge base, using default",
                code=extracted_code,
                default=self._default.code,
            )
            return self._default
        return entry


def apply_denial_enrichment(
    analysis: EOBAnalysis,
    knowledge_base: Optional[DenialKnowledgeBase] = None,
) -> EOBAnalysis:
    """Attach denial intelligence; the code field is overwritten to match."""
    kb = knowledge_base or get_denial_knowledge_base()
    return analysis.with_intelligence(kb.enrich(analysis.denial_code))


# Global instance
_knowledge_base: Optional[DenialKnowledgeBase] = None


def get_denial_knowledge_base() -> DenialKnowledgeBase:
    """Get or load the packaged knowledge base."""
    global _knowledge_base
    if _knowledge_base is None:
        _knowledge_base = DenialKnowledgeBase.from_file()
    return _knowledge_base
