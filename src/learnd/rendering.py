"""Jinja2 template loading for Learnd documents and views.

Export documents, report documents and the HTML dashboard all render from
the templates/ directory that ships inside the package.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from learnd.status import (
    get_health_status_label,
    get_health_status_styles,
    get_lifecycle_status_label,
    get_lifecycle_status_styles,
)

if TYPE_CHECKING:
    from jinja2 import Template

TEMPLATES_DIR = Path(__file__).parent / "templates"


def register_filters(env: Environment) -> Environment:
    """Expose the status label and style lookups as template filters."""
    env.filters["health_label"] = get_health_status_label
    env.filters["health_style"] = get_health_status_styles
    env.filters["lifecycle_label"] = get_lifecycle_status_label
    env.filters["lifecycle_style"] = get_lifecycle_status_styles
    return env


class TemplateLoader:
    """Loads and caches Jinja2 templates.

    Attributes:
        template_dir: Directory the templates are loaded from
        env: Jinja2 Environment with HTML autoescaping and status filters
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        self.template_dir = template_dir or TEMPLATES_DIR
        self.env = register_filters(
            Environment(
                loader=FileSystemLoader(str(self.template_dir)),
                autoescape=select_autoescape(["html"]),
                trim_blocks=True,
                lstrip_blocks=True,
                cache_size=50,
                auto_reload=False,
            )
        )

    def load_template(self, template_name: str) -> Template:
        """Load a template by name.

        Raises:
            jinja2.TemplateNotFound: If the template doesn't exist
        """
        return self.env.get_template(template_name)

    def render(self, template_name: str, **context: Any) -> str:
        return self.load_template(template_name).render(**context)


_loader: TemplateLoader | None = None


def get_template_loader() -> TemplateLoader:
    """Return the process-wide loader for the packaged templates."""
    global _loader
    if _loader is None:
        _loader = TemplateLoader()
    return _loader
