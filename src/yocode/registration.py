"""Registration of a command inside the entry source's activation routine."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import MarkerConfig
from .exceptions import ActivationAnchorNotFound
from .models import CollectorState, CommandDescriptor
from .source import (
    CallSpan,
    Found,
    NotFound,
    find_anchor,
    insert_at,
    line_indent,
    line_start,
    scan_call_arguments,
)

logger = logging.getLogger(__name__)

BODY_INDENT = "    "


@dataclass(frozen=True)
class RegistrationResult:
    """Entry source text after registration, and which branch produced it."""

    text: str
    state: CollectorState


def registration_statement(descriptor: CommandDescriptor) -> str:
    return (
        f"const {descriptor.identifier} = vscode.commands.registerCommand("
        f"'{descriptor.command_id}', {descriptor.function_name});"
    )


def register_command(
    text: str,
    descriptor: CommandDescriptor,
    markers: MarkerConfig | None = None,
) -> RegistrationResult:
    """Declare the command's registration and add it to the collector call.

    If a ``context.subscriptions.push(...)`` call exists, the new handle is
    appended to its arguments and the declaration goes on the line above it.
    Otherwise both a declaration and a fresh single-argument collector call
    are inserted at the top of the activation routine's body.

    Repeated calls with the same descriptor register it again; callers guard
    against duplicates.

    Args:
        text: Entry source text
        descriptor: Command being added
        markers: Anchor markers, defaults to the built-in ones

    Returns:
        The updated text and the collector state reached

    Raises:
        ActivationAnchorNotFound: If no collector exists and the activation
            routine cannot be located, or the collector call is unterminated.
            The input text is not modified in either case.
    """
    markers = markers or MarkerConfig()

    collector = find_anchor(text, markers.collector)
    if isinstance(collector, Found):
        return RegistrationResult(
            text=_extend_collector(text, collector.offset, descriptor),
            state=CollectorState.EXTENDED,
        )

    activation = find_anchor(text, markers.activation)
    if isinstance(activation, NotFound):
        msg = f"Activation routine '{markers.activation}' not found in entry source"
        raise ActivationAnchorNotFound(msg, details={"marker": markers.activation})

    brace = text.find("{", activation.offset)
    if brace == -1:
        msg = "Activation routine has no body"
        raise ActivationAnchorNotFound(msg, details={"marker": markers.activation})

    block = (
        f"\n{BODY_INDENT}{registration_statement(descriptor)}"
        f"\n{BODY_INDENT}{markers.collector}{descriptor.identifier});\n\n"
    )
    logger.debug("no collector call, creating one for %s", descriptor.identifier)
    return RegistrationResult(
        text=insert_at(text, brace + 1, block),
        state=CollectorState.CREATED,
    )


def _extend_collector(text: str, marker_offset: int, descriptor: CommandDescriptor) -> str:
    open_paren = text.find("(", marker_offset)
    span = scan_call_arguments(text, open_paren)
    if span is None:
        msg = "Subscriptions collector call is not closed"
        raise ActivationAnchorNotFound(msg, details={"offset": marker_offset})

    start, end, replacement = _collector_edit(text, span, descriptor.identifier)
    text = text[:start] + replacement + text[end:]
    close_paren = span.close_paren + len(replacement) - (end - start)
    logger.debug("collector now holds %d handle(s)", len(span.arguments) + 1)

    # Blank lines only after the collector's own semicolon
    after = close_paren + 1
    while after < len(text) and text[after] in " \t":
        after += 1
    if text[after:after + 1] == ";":
        text = insert_at(text, after + 1, "\n\n")

    indent = line_indent(text, marker_offset)
    declaration = f"{indent}{registration_statement(descriptor)}\n"
    return insert_at(text, line_start(text, marker_offset), declaration)


def _collector_edit(text: str, span: CallSpan, identifier: str) -> tuple[int, int, str]:
    """Replacement adding ``identifier`` to the collector's arguments.

    Single-line argument lists are rewritten as ``( a, b, identifier )``.
    Multi-line lists and lists carrying comments keep their text; the
    identifier is spliced in after the last argument, on its own line when
    the arguments span several lines.
    """
    inner_start = span.open_paren + 1
    inner = text[inner_start:span.close_paren]
    if not inner.strip():
        return inner_start, span.close_paren, f" {identifier} "

    trailing_comma = text[span.code_end - 1] == ","
    has_comment = bool(text[span.code_end:span.close_paren].strip())
    if span.arguments and "\n" not in inner and not has_comment:
        trimmed = inner.strip()
        separator = " " if trailing_comma else ", "
        return inner_start, span.close_paren, f" {trimmed}{separator}{identifier} "

    if not span.arguments:
        return inner_start, inner_start, f" {identifier}"

    if "\n" in text[inner_start:span.code_end]:
        gap = "\n" + line_indent(text, span.code_end - 1)
    else:
        gap = " "
    if trailing_comma:
        insertion = f"{gap}{identifier},"
    else:
        insertion = f",{gap}{identifier}"
    return span.code_end, span.code_end, insertion
