# menu_import/core/prompts/builder.py
"""
Prompt building utilities for menu import extraction.
Centralizes all prompt logic and Jinja2 template rendering.
"""

import json
from pathlib import Path
from typing import Any, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from pydantic import BaseModel

from menu_import.config import get_settings


def _as_json(models: Optional[Sequence[BaseModel]], exclude: Optional[set] = None) -> str:
    if not models:
        return ""
    data: List[Any] = [m.model_dump(by_alias=True, exclude=exclude) for m in models]
    return json.dumps(data, indent=2, ensure_ascii=False)


class PromptBuilder:
    """Builds prompts from Jinja2 templates with validation"""

    def __init__(self, templates_dir: Optional[Path] = None):
        """
        Initialize the prompt builder with template directory.

        Args:
            templates_dir: Path to Jinja2 templates. Defaults to config setting.
        """
        if templates_dir is None:
            settings = get_settings()
            templates_dir = settings.PROMPTS_DIR

        self.templates_dir = templates_dir
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            undefined=StrictUndefined,  # Fail if variable is missing
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, **variables) -> str:
        """
        Render a template with provided variables.

        Raises:
            jinja2.TemplateNotFound: If template doesn't exist
            jinja2.UndefinedError: If required variable is missing
        """
        template = self.env.get_template(template_name)
        return template.render(**variables)

    def system_prompt(self) -> str:
        """Fixed extraction instructions, security rules and output contract."""
        return self.render("system.j2")

    def extraction_prompt(
        self,
        menu_text: str,
        existing_categories: Optional[Sequence[BaseModel]] = None,
        existing_items: Optional[Sequence[BaseModel]] = None,
        vat_groups: Optional[Sequence[BaseModel]] = None,
    ) -> str:
        """
        Build the user prompt for one chunk.

        Args:
            menu_text: Sanitized menu text, embedded inside delimiter tags
            existing_categories: Categories the model may match against
            existing_items: Items the model may match against
            vat_groups: VAT groups the model may assign

        Returns:
            Formatted prompt string
        """
        return self.render(
            "extraction.j2",
            menu_text=menu_text,
            existing_categories_json=_as_json(existing_categories),
            existing_items_json=_as_json(existing_items),
            vat_groups_json=_as_json(vat_groups, exclude={"id"}),
        )


# Singleton instance for easy import
_builder_instance = None


def get_prompt_builder() -> PromptBuilder:
    """Get cached prompt builder instance"""
    global _builder_instance
    if _builder_instance is None:
        _builder_instance = PromptBuilder()
    return _builder_instance
