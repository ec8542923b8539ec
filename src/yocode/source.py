"""Entry source model and anchor-based text primitives.

Structural edits are driven by marker substrings, not by parsing the host
language. Every search returns a tagged outcome so callers have to decide
what a missing anchor means.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import EntrySourceMalformed, EntrySourceMissing

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}
_QUOTES = {"'", '"', "`"}


@dataclass(frozen=True)
class Found:
    """Anchor located at ``offset`` (index of its first character)."""

    offset: int


@dataclass(frozen=True)
class NotFound:
    """Anchor absent from the searched text."""

    marker: str


AnchorSearch = Found | NotFound


@dataclass
class SourceText:
    """Mutable text of one entry source file."""

    path: Path
    text: str


@dataclass(frozen=True)
class CallSpan:
    """Location of a call's parenthesised argument list."""

    open_paren: int
    close_paren: int
    arguments: list[str] = field(default_factory=list)
    # just past the last non-comment, non-whitespace character inside the call
    code_end: int = 0


def load(path: Path) -> SourceText:
    """Read an entry source file.

    Raises:
        EntrySourceMissing: If the file does not exist
        EntrySourceMalformed: If the file is not valid UTF-8
    """
    path = Path(path)
    if not path.exists():
        msg = f"Extension file not found at {path}"
        raise EntrySourceMissing(msg, details={"path": str(path)})
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        msg = f"Extension file at {path} is not valid UTF-8: {e}"
        raise EntrySourceMalformed(msg, details={"path": str(path)}) from e
    return SourceText(path=path, text=text)


def find_anchor(text: str, marker: str, start: int = 0) -> AnchorSearch:
    """First occurrence of ``marker`` at or after ``start``."""
    offset = text.find(marker, start)
    if offset == -1:
        return NotFound(marker)
    return Found(offset)


def insert_at(text: str, offset: int, content: str) -> str:
    return text[:offset] + content + text[offset:]


def insert_after_line(text: str, offset: int, content: str) -> str:
    """Insert ``content`` right after the line terminator following ``offset``.

    On the last line without a terminator, one is added before ``content``.
    """
    newline = text.find("\n", offset)
    if newline == -1:
        return text + "\n" + content
    return insert_at(text, newline + 1, content)


def line_start(text: str, offset: int) -> int:
    """Offset of the first character of the line containing ``offset``."""
    return text.rfind("\n", 0, offset) + 1


def line_indent(text: str, offset: int) -> str:
    """Leading whitespace of the line containing ``offset``."""
    start = line_start(text, offset)
    end = start
    while end < len(text) and text[end] in " \t":
        end += 1
    return text[start:end]


def scan_call_arguments(text: str, open_paren: int) -> CallSpan | None:
    """Find the parenthesis closing the call opened at ``open_paren``.

    Tracks nesting of ``()``, ``[]`` and ``{}`` and skips string literals
    and comments, so commas and parentheses inside them are ignored.

    Args:
        text: Source text
        open_paren: Index of the opening ``(``

    Returns:
        The call span with its top-level arguments (trimmed, comments
        removed, empty ones dropped), or None if the call is never closed
    """
    if text[open_paren:open_paren + 1] != "(":
        msg = f"No '(' at offset {open_paren}"
        raise ValueError(msg)

    depth = 0
    arguments: list[str] = []
    current: list[str] = []
    code_end = open_paren + 1
    i = open_paren
    length = len(text)
    while i < length:
        ch = text[i]
        if ch in _QUOTES:
            end = _skip_string(text, i)
            current.append(text[i:end])
            i = code_end = end
            continue
        if text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline
            current.append(" ")
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = length if end == -1 else end + 2
            current.append(" ")
            continue
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth == 0:
                arguments.append("".join(current))
                return CallSpan(
                    open_paren=open_paren,
                    close_paren=i,
                    arguments=[a.strip() for a in arguments if a.strip()],
                    code_end=code_end,
                )
        elif ch == "," and depth == 1:
            arguments.append("".join(current))
            current = []
            code_end = i + 1
            i += 1
            continue
        if i > open_paren:
            current.append(ch)
            if not ch.isspace():
                code_end = i + 1
        i += 1
    return None


def _skip_string(text: str, start: int) -> int:
    """Index just past the string literal opening at ``start``."""
    quote = text[start]
    i = start + 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == quote:
            return i + 1
        i += 1
    return len(text)
