"""Reasoning and LLM integration module."""
from .prompt_loader import PromptLoader
from .prompt_builder import PromptBuilder
from .model_catalog import ModelCache, ModelCatalogResolver
from .gemini_client import GeminiClient
from .llm_gateway import LLMGateway
from .denial_enrichment import DenialKnowledgeBase, apply_denial_enrichment
from .exceptions import GenerationError, MalformedJsonError

__all__ = [
    "PromptLoader",
    "PromptBuilder",
    "ModelCache",
    "ModelCatalogResolver",
    "GeminiClient",
    "LLMGateway",
    "DenialKnowledgeBase",
    "apply_denial_enrichment",
    "GenerationError",
    "MalformedJsonError",
]
