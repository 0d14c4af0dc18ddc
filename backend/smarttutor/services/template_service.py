# backend/smarttutor/services/template_service.py
"""
Template rendering service for SmartTutor.

Renders the Jinja2 email templates under ``smarttutor/templates`` with a
shared brand context.
"""

from datetime import date, datetime
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from ..core.config import settings
from ..core.constants import BRAND_NAME
from .base import BaseService

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


def format_date(value: Union[date, str], format_str: str = "%A, %B %d, %Y") -> str:
    """Format a date (or ISO date string) for display."""
    if isinstance(value, str):
        try:
            value = datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            return value
    return value.strftime(format_str)


class TemplateService(BaseService):
    """
    Centralized template rendering using Jinja2.

    Holds no database state; the session argument exists for BaseService
    compatibility only.
    """

    def __init__(self, db: Any = None, template_dir: Optional[Path] = None):
        super().__init__(db)

        self.env = Environment(
            loader=FileSystemLoader(template_dir or TEMPLATE_DIR),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["format_date"] = format_date

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": BRAND_NAME,
            "current_year": datetime.now().year,
            "frontend_url": settings.frontend_url,
        }

    @BaseService.measure_operation("render_template")
    def render_template(
        self, template_name: str, context: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Path to template relative to templates directory
            context: Dictionary of template variables
            **kwargs: Additional template variables

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound:
            self.logger.error(f"Template not found: {template_name}")
            raise

        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        full_context.update(kwargs)

        rendered = template.render(full_context)
        self.logger.debug(f"Successfully rendered template: {template_name}")
        return rendered
