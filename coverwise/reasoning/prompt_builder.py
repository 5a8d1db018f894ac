"""Prompt Builder - one GenerationRequest per extraction task."""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from coverwise.models.enums import ExtractionTask
from coverwise.models.generation import (
    ALLOWED_DOCUMENT_TYPES,
    GenerationRequest,
    TaskInputs,
)
from coverwise.reasoning.prompt_loader import PromptLoader, get_prompt_loader


@dataclass(frozen=True)
class TaskPromptSpec:
    """Template and input wiring for one task."""
    template: str
    accepts_document: bool
    variables: Callable[[TaskInputs], Dict[str, Any]]


def _plan_variables(inputs: TaskInputs) -> Dict[str, Any]:
    text = inputs.text.strip()
    return {"user_context": f"Extra context from user: {text}" if text else ""}


def _treatment_variables(inputs: TaskInputs) -> Dict[str, Any]:
    return {
        "query": inputs.text.strip(),
        # Serialized as JSON so the model sees the plan exactly as extracted
        "insurance": inputs.insurance_context if inputs.insurance_context is not None else "null",
    }


def _pre_visit_variables(inputs: TaskInputs) -> Dict[str, Any]:
    location = (
        f"Lat: {inputs.location.lat}, Lng: {inputs.location.lng}"
        if inputs.location is not None
        else "Unknown"
    )
    return {"query": inputs.text.strip(), "location": location}


TASK_PROMPTS: Dict[ExtractionTask, TaskPromptSpec] = {
    ExtractionTask.PLAN_EXTRACTION: TaskPromptSpec(
        template="insurance/plan_extraction.txt",
        accepts_document=True,
        variables=_plan_variables,
    ),
    ExtractionTask.TREATMENT_COST_LOOKUP: TaskPromptSpec(
        template="treatment/cost_lookup.txt",
        accepts_document=False,
        variables=_treatment_variables,
    ),
    ExtractionTask.EOB_DENIAL_EXTRACTION: TaskPromptSpec(
        template="eob/denial_extraction.txt",
        accepts_document=True,
        variables=lambda inputs: {},
    ),
    ExtractionTask.PRE_VISIT_ANALYSIS: TaskPromptSpec(
        template="previsit/analysis.txt",
        accepts_document=True,
        variables=_pre_visit_variables,
    ),
}


class PromptBuilder:
    """
    Builds the request payload for a task.

    Deterministic: the same task and inputs always yield an equal request.
    Templates pin the exact output schema and forbid non-JSON wrapping.
    """

    def __init__(self, loader: Optional[PromptLoader] = None):
        self._loader = loader or get_prompt_loader()
        self._check_templates()

    def _check_templates(self) -> None:
        """Fail fast when a task template is missing from the prompts directory."""
        available = {
            f"{folder}/{name}"
            for folder, names in self._loader.list_prompts().items()
            for name in names
        }
        missing = sorted(p.template for p in TASK_PROMPTS.values() if p.template not in available)
        if missing:
            raise FileNotFoundError(f"Prompt templates not found: {', '.join(missing)}")

    def build_request(self, task: ExtractionTask, inputs: TaskInputs) -> GenerationRequest:
        """
        Build the GenerationRequest for ``task``.

        Raises:
            ValueError: If the document's media type is unsupported, or a
                document is supplied to a text-only task
        """
        spec = TASK_PROMPTS[task]
        document = inputs.document
        if document is not None:
            if not spec.accepts_document:
                raise ValueError(f"Task {task.value} does not accept a document")
            if document.mime_type not in ALLOWED_DOCUMENT_TYPES:
                raise ValueError(f"Unsupported document type: {document.mime_type}")

        instructions = self._loader.load(spec.template, spec.variables(inputs))
        return GenerationRequest(instructions=instructions, document=document)
