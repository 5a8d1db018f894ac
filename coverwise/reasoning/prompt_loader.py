"""Load prompt templates from packaged .txt files with variable substitution."""
import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from coverwise.config.logging_config import get_logger

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")
_DEFAULT_PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


def _render_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, default=str)
    return str(value)


def substitute_variables(template: str, variables: Dict[str, Any]) -> str:
    """
    Replace ``{name}`` placeholders in a single pass.

    Unknown placeholders and literal JSON braces are left untouched, and
    substituted values are never re-scanned.
    """
    def _replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key in variables:
            return _render_value(variables[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, template)


class PromptLoader:
    """
    Load prompts from local .txt files.
    Supports {variable_name} substitution.
    """

    def __init__(self, prompts_dir: Optional[Path] = None):
        self.prompts_dir = prompts_dir or _DEFAULT_PROMPTS_DIR
        if not self.prompts_dir.exists():
            raise FileNotFoundError(f"Prompts directory not found: {self.prompts_dir}")

    @lru_cache(maxsize=100)
    def _load_raw_prompt(self, prompt_path: str) -> str:
        """Load raw prompt content from disk (cached)."""
        full_path = (self.prompts_dir / prompt_path).resolve()
        try:
            full_path.relative_to(self.prompts_dir.resolve())
        except ValueError:
            raise ValueError(f"Path traversal attempt blocked: {prompt_path}")
        if not full_path.exists():
            raise FileNotFoundError(f"Prompt file not found: {full_path}")

        content = full_path.read_text(encoding="utf-8")
        logger.debug("Loaded prompt from disk", prompt_path=prompt_path, length=len(content))
        return content

    def load(self, prompt_path: str, variables: Optional[Dict[str, Any]] = None) -> str:
        """Load a prompt and substitute variables."""
        raw = self._load_raw_prompt(prompt_path)
        if not variables:
            return raw

        missing = [name for name in self.get_prompt_variables(prompt_path) if name not in variables]
        if missing:
            logger.warning(
                "Unsubstituted variables in prompt",
                prompt_path=prompt_path,
                variables=missing,
            )
        return substitute_variables(raw, variables)

    def list_prompts(self) -> Dict[str, List[str]]:
        """List all available prompts organized by directory."""
        prompts: Dict[str, List[str]] = {}
        for path in sorted(self.prompts_dir.rglob("*.txt")):
            rel_path = path.relative_to(self.prompts_dir)
            prompts.setdefault(str(rel_path.parent), []).append(rel_path.name)
        return prompts

    def get_prompt_variables(self, prompt_path: str) -> List[str]:
        """Extract variable names from a prompt template."""
        return _PLACEHOLDER.findall(self._load_raw_prompt(prompt_path))


# Global instance
_prompt_loader: Optional[PromptLoader] = None


def get_prompt_loader() -> PromptLoader:
    """Get or create the global prompt loader instance."""
    global _prompt_loader
    if _prompt_loader is None:
        _prompt_loader = PromptLoader()
    return _prompt_loader
