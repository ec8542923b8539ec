"""Template rendering for new command modules."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import BaseLoader, Environment, PackageLoader, StrictUndefined

from .exceptions import TemplateNotFound, TemplateRenderError
from .models import VARIANT_LAYOUTS, CommandDescriptor, LanguageVariant

logger = logging.getLogger(__name__)

REQUIRED_VARIABLES = ("command_name", "function_name")


class TemplateRenderer:
    """Renders command module templates keyed by language variant."""

    def __init__(
        self,
        loader: BaseLoader | None = None,
        templates: Mapping[LanguageVariant, str] | None = None,
    ) -> None:
        """Initialize renderer.

        Args:
            loader: Jinja2 loader, defaults to the templates bundled with yocode
            templates: Template name per variant, defaults to the variant layouts
        """
        self.env = Environment(
            loader=loader or PackageLoader("yocode", "templates"),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        if templates is None:
            templates = {variant: layout.template_name for variant, layout in VARIANT_LAYOUTS.items()}
        self.templates = dict(templates)

    def render(self, language_variant: LanguageVariant, variables: Mapping[str, Any]) -> str:
        """Render the module template for a variant.

        Args:
            language_variant: Selects the template body
            variables: Must supply command_name and function_name

        Returns:
            Text of the new command module

        Raises:
            TemplateNotFound: If no template is registered for the variant
            TemplateRenderError: If substitution fails
        """
        template_name = self.templates.get(language_variant)
        if template_name is None:
            msg = f"No command template registered for variant '{language_variant.value}'"
            raise TemplateNotFound(msg, details={"variant": language_variant.value})

        missing = [name for name in REQUIRED_VARIABLES if name not in variables]
        if missing:
            msg = f"Missing template variables: {', '.join(missing)}"
            raise TemplateRenderError(msg, details={"missing": missing})

        try:
            template = self.env.get_template(template_name)
        except jinja2.TemplateNotFound as e:
            msg = f"Command template not found: {template_name}"
            raise TemplateNotFound(msg, details={"template": template_name}) from e
        except jinja2.TemplateSyntaxError as e:
            msg = f"Template {template_name} has a syntax error: {e}"
            raise TemplateRenderError(msg, details={"template": template_name}) from e

        context = {"language_variant": language_variant.value, **variables}
        try:
            content = template.render(**context)
        except jinja2.UndefinedError as e:
            msg = f"Failed to render {template_name}: {e}"
            raise TemplateRenderError(msg, details={"template": template_name}) from e

        logger.debug("rendered %s (%d chars)", template_name, len(content))
        return content

    def render_command(self, descriptor: CommandDescriptor) -> str:
        return self.render(
            descriptor.language_variant,
            {
                "command_name": descriptor.command_name,
                "function_name": descriptor.function_name,
            },
        )


def module_target(project_dir: Path, descriptor: CommandDescriptor) -> Path:
    """Absolute path of the module a descriptor renders to."""
    return Path(project_dir) / descriptor.module_path
