"""Page rendering service using Jinja2.

This module renders the HTML pages (survey form, thank-you view, admin login
and dashboard) from the package's ``templates`` directory. Templates are
rendered with StrictUndefined so a missing context variable fails loudly.
"""

from typing import Optional

from jinja2 import (
    Environment,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

from survey_service.logging_config import get_logger

logger = get_logger(__name__)


class TemplateRenderError(Exception):
    """Raised when template rendering fails."""
    pass


class TemplateRenderer:
    """Service for rendering HTML page templates."""

    def __init__(self, package: str = "survey_service", directory: str = "templates"):
        """Initialize Jinja2 environment with strict settings."""
        self.env = Environment(
            loader=PackageLoader(package, directory),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, context: dict) -> str:
        """Render a named template with context variables.

        Args:
            template_name: Template file name (e.g. "survey_form.html")
            context: Dictionary of variables for template

        Returns:
            Rendered HTML

        Raises:
            TemplateRenderError: If the template is invalid or variables are missing

        Example:
            >>> renderer = TemplateRenderer()
            >>> html = renderer.render("survey_thanks.html", {"title": "Survey"})
        """
        try:
            template = self.env.get_template(template_name)
            rendered = template.render(context)
            logger.debug(f"Rendered template {template_name}")
            return rendered
        except TemplateError as e:
            logger.error(f"Template rendering error in {template_name}: {e}")
            raise TemplateRenderError(f"Failed to render {template_name}: {e}")


# Global singleton instance
_renderer_instance: Optional[TemplateRenderer] = None


def get_template_renderer() -> TemplateRenderer:
    """Get global TemplateRenderer instance.

    Returns:
        Global TemplateRenderer instance
    """
    global _renderer_instance
    if _renderer_instance is None:
        _renderer_instance = TemplateRenderer()
    return _renderer_instance
