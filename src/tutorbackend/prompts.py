import logging
from pathlib import Path
from typing import Any, Optional, Union

from .exceptions import TemplateLoadError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "templates" / "tutor_system_prompt.txt"


class PromptTemplate:
    """Static template with `{name}` placeholders.

    Only the placeholders passed to `format` are replaced; any other braces
    in the template (code samples, JSON) are left alone.
    """

    def __init__(self, template: str):
        self.template = template

    def format(self, **variables: Any) -> str:
        result = self.template
        for name, value in variables.items():
            result = result.replace("{" + name + "}", "" if value is None else str(value))
        return result


def load_template(path: Optional[Union[str, Path]] = None) -> PromptTemplate:
    """Read a UTF-8 template file. Called once at startup."""
    template_path = Path(path) if path else DEFAULT_TEMPLATE_PATH
    try:
        content = template_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateLoadError(f"Could not load prompt template {template_path}: {e}") from e

    logger.info(f"Loaded prompt template from {template_path}")
    return PromptTemplate(content)
