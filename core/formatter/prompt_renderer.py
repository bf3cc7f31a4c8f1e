from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from core.formatter.context import format_commits_for_context, format_prs_for_context
from utils.errors import FormatterError
from utils.format import format_date


class PromptRenderer:
    """Renders the report prompts from the Jinja2 templates shipped with git-sense."""

    def __init__(self, template_dir: Optional[str] = None):
        if template_dir is None:
            # Default template directory relative to this file
            template_dir = str(Path(__file__).parent / "templates")

        self.template_dir = template_dir
        try:
            self.env = Environment(
                loader=FileSystemLoader(self.template_dir),
                trim_blocks=True,
                lstrip_blocks=True,
                keep_trailing_newline=False,
                undefined=StrictUndefined,
            )
        except Exception as e:
            raise FormatterError(f"Failed to initialize Jinja2 environment: {e}") from e

        self.env.filters["commit_lines"] = format_commits_for_context
        self.env.filters["pr_lines"] = format_prs_for_context
        self.env.filters["date"] = format_date

    def render(self, template_name: str, **fields: Any) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(**fields)
        except TemplateError as e:
            raise FormatterError(f"Failed to render template {template_name}: {e}") from e
