"""Prompt templates and message composition.

Templates are loaded from .md files in the package's prompts/ directory, or
from a custom directory whose files take precedence, so prompts can be
tuned without code changes.
"""

from pathlib import Path
from typing import Dict, List, Optional

from logsleuth.llm.models import Message, Role

KEY_POINTS_TEMPLATE = "key_points"
SYSTEM_TEMPLATE = "kubernetes_expert"

KEY_POINTS_PREFIX = "Here are the key points from the log analysis:\n\n"


class PromptTemplateLoader:
    """Loader for prompt templates from files with caching and fallback support.

    Attributes:
        templates_dir: Path to the built-in templates directory
        custom_dir: Optional path to custom templates directory
        _cache: Cache of loaded templates
    """

    def __init__(self, custom_dir: Optional[str] = None):
        """Initialize the prompt template loader.

        Args:
            custom_dir: Optional path to custom templates directory.
                       If provided and template exists there, it's used instead of built-in.
        """
        package_dir = Path(__file__).parent.parent
        self.templates_dir = package_dir / "prompts"
        self.custom_dir = Path(custom_dir) if custom_dir else None
        self._cache: Dict[str, str] = {}

    def load_template(self, template_name: str) -> str:
        """Load a template from file.

        Searches for the template in this order:
        1. Custom directory (if configured)
        2. Built-in templates directory

        Args:
            template_name: Name of the template file (without .md extension)

        Returns:
            Template content as string

        Raises:
            FileNotFoundError: If template file is not found in any location
        """
        if template_name in self._cache:
            return self._cache[template_name]

        candidates = []
        if self.custom_dir:
            candidates.append(self.custom_dir / f"{template_name}.md")
        candidates.append(self.templates_dir / f"{template_name}.md")

        for path in candidates:
            if path.exists():
                content = path.read_text(encoding="utf-8")
                self._cache[template_name] = content
                return content

        raise FileNotFoundError(
            f"Template '{template_name}' not found in custom dir ({self.custom_dir}) "
            f"or built-in dir ({self.templates_dir})"
        )


def build_key_points_messages(log_text: str, loader: PromptTemplateLoader) -> List[Message]:
    """Compose the first request: key-point extraction over the log.

    The log is embedded verbatim inside a <context> block of a single user
    message; no system prompt is sent.
    """
    prompt = loader.load_template(KEY_POINTS_TEMPLATE)
    content = f"{prompt}\n<context>\n{log_text}\n</context>"
    return [Message(role=Role.USER, content=content)]


def build_analysis_messages(key_points: str, loader: PromptTemplateLoader) -> List[Message]:
    """Compose the analysis conversation seeded with the extracted key points."""
    return [
        Message(role=Role.SYSTEM, content=loader.load_template(SYSTEM_TEMPLATE)),
        Message(role=Role.USER, content=KEY_POINTS_PREFIX + key_points),
    ]
