"""Idempotent import injection into the entry source."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .models import VARIANT_LAYOUTS, LanguageVariant
from .source import Found, find_anchor, insert_after_line, insert_at

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Entry source text after import injection."""

    text: str
    inserted: bool
    degraded: bool = False


def import_statement(
    language_variant: LanguageVariant,
    command_name: str,
    function_name: str,
) -> str:
    """Canonical import line of a command module for a variant."""
    if language_variant == LanguageVariant.TYPED:
        return f"import {{ {function_name} }} from './commands/{command_name}';"
    return f"const {{ {function_name} }} = require('./commands/{command_name}');"


def ensure_import(
    text: str,
    language_variant: LanguageVariant,
    command_name: str,
    function_name: str,
    anchor: str | None = None,
) -> ImportResult:
    """Make sure the entry source imports the command's handler.

    The statement goes on the line after the framework import anchor. If the
    anchor is missing it goes at the top of the file and the result is
    flagged as degraded.

    Args:
        text: Entry source text
        language_variant: Selects import or require syntax
        command_name: Command module name
        function_name: Handler exported by the module
        anchor: Framework import marker, defaults to the variant's

    Returns:
        The updated text and what happened
    """
    statement = import_statement(language_variant, command_name, function_name)
    if statement in text:
        logger.debug("import for %s already present", command_name)
        return ImportResult(text=text, inserted=False)

    if anchor is None:
        anchor = VARIANT_LAYOUTS[language_variant].import_anchor

    search = find_anchor(text, anchor)
    if isinstance(search, Found):
        return ImportResult(
            text=insert_after_line(text, search.offset, statement + "\n"),
            inserted=True,
        )

    logger.warning("import anchor %r not found, inserting import at top of file", anchor)
    return ImportResult(
        text=insert_at(text, 0, statement + "\n"),
        inserted=True,
        degraded=True,
    )
