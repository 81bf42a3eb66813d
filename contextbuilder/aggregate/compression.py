"""Tree-sitter based source compression for aggregated files.

Function and method bodies are replaced with placeholders so the output keeps
signatures, docstrings and module structure while dropping implementation
detail. Python bodies become ``...`` (a leading docstring is kept);
TypeScript bodies become ``{ ... }``. Constructors, ``__init__`` and
capitalized TypeScript functions (components) keep their bodies; hook
callbacks inside them are still compressed. Comments can be stripped too.

Files in other languages, and files whose grammar cannot be loaded or parsed,
pass through unchanged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import PurePath

from .content import FileContent

logger = logging.getLogger(__name__)

LANGUAGE_BY_SUFFIX: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

PYTHON_PLACEHOLDER = b"..."
TS_PLACEHOLDER = b"{ ... }"
MISSING_PARSER_ERROR = "Tree-sitter parser package not found. Install tree-sitter-language-pack."

_HOOK_NAME = re.compile(r"^use(Callback|Memo|Effect)$")
_TS_FUNCTION_VALUES = {"arrow_function", "function_expression", "function"}
_PY_STRING_TYPES = {"string", "concatenated_string"}


@dataclass(frozen=True)
class _Edit:
    start: int
    end: int
    replacement: bytes


def language_for_compression(path: str) -> str | None:
    """Return the grammar name used to compress ``path``, or ``None``."""
    return LANGUAGE_BY_SUFFIX.get(PurePath(path).suffix.lower())


@lru_cache(maxsize=8)
def _load_parser(language_name: str):
    """Return ``(parser, error_message)`` for ``language_name``."""
    try:
        from tree_sitter_language_pack import get_parser
    except ModuleNotFoundError:
        logger.warning("%s", MISSING_PARSER_ERROR)
        return None, MISSING_PARSER_ERROR

    try:
        return get_parser(language_name), None
    except Exception as exc:
        message = f"Failed to load Tree-sitter parser for {language_name}: {exc}"
        logger.warning("%s", message)
        return None, message


def _text(source: bytes, node) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _line_start(source: bytes, pos: int) -> int:
    return source.rfind(b"\n", 0, pos) + 1


def _skip_blanks(source: bytes, pos: int) -> int:
    while pos < len(source) and source[pos] in b" \t":
        pos += 1
    return pos


def _comment_edit(source: bytes, start: int, end: int) -> _Edit:
    """Cut a comment, taking its whole line when nothing else is on it."""
    line_start = _line_start(source, start)
    before_blank = not source[line_start:start].strip()
    after = _skip_blanks(source, end)
    if after < len(source) and source[after : after + 1] == b"\r":
        after += 1
    after_blank = after >= len(source) or source[after : after + 1] == b"\n"
    if before_blank and after_blank:
        return _Edit(line_start, min(after + 1, len(source)), b"")
    if before_blank:
        return _Edit(start, _skip_blanks(source, end), b"")
    trimmed = start
    while trimmed > line_start and source[trimmed - 1 : trimmed] in (b" ", b"\t"):
        trimmed -= 1
    return _Edit(trimmed, end, b"")


def _strip_span(source: bytes, start: int, end: int) -> tuple[int, int]:
    """Shrink ``[start, end)`` so it starts and ends on non-whitespace."""
    chunk = source[start:end]
    start += len(chunk) - len(chunk.lstrip())
    end -= len(chunk) - len(chunk.rstrip())
    return start, max(start, end)


def _statements(block) -> list:
    return [child for child in block.named_children if child.type != "comment"]


def _is_docstring(node) -> bool:
    if node.type != "expression_statement" or not node.named_children:
        return False
    return node.named_children[0].type in _PY_STRING_TYPES


def _python_body_edit(source: bytes, node) -> _Edit | None:
    name = node.child_by_field_name("name")
    body = node.child_by_field_name("body")
    if name is None or body is None or _text(source, name) == "__init__":
        return None
    statements = _statements(body)
    if not statements:
        return None
    docstring = statements[0]
    indent = source[_line_start(source, docstring.start_byte) : docstring.start_byte]
    if _is_docstring(docstring) and not indent.strip():
        if len(statements) == 1:
            return None
        _start, end = _strip_span(source, docstring.end_byte, body.end_byte)
        return _Edit(docstring.end_byte, end, b"\n" + indent + PYTHON_PLACEHOLDER)
    start, end = _strip_span(source, body.start_byte, body.end_byte)
    return _Edit(start, end, PYTHON_PLACEHOLDER)


def _python_edits(source: bytes, root, remove_comments: bool) -> list[_Edit]:
    edits: list[_Edit] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "comment":
            if remove_comments:
                edits.append(_comment_edit(source, node.start_byte, node.end_byte))
            continue
        if node.type == "function_definition":
            edit = _python_body_edit(source, node)
            if edit is not None:
                edits.append(edit)
                continue
        stack.extend(reversed(node.children))
    return edits


def _is_component_name(name: str) -> bool:
    return name[:1].isupper()


def _ts_block(node):
    """Return ``node``'s body when it is a non-empty statement block."""
    body = node.child_by_field_name("body")
    if body is None or body.type != "statement_block" or body.named_child_count == 0:
        return None
    return body


def _ts_compressible_body(source: bytes, node):
    kind = node.type
    if kind in {"function_declaration", "generator_function_declaration"}:
        name = node.child_by_field_name("name")
        if name is not None and not _is_component_name(_text(source, name)):
            return _ts_block(node)
        return None
    if kind == "method_definition":
        name = node.child_by_field_name("name")
        if name is not None and _text(source, name) != "constructor":
            return _ts_block(node)
        return None
    if kind == "variable_declarator":
        name = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if (
            name is not None
            and name.type == "identifier"
            and not _is_component_name(_text(source, name))
            and value is not None
            and value.type in _TS_FUNCTION_VALUES
        ):
            return _ts_block(value)
    return None


def _ts_hook_bodies(source: bytes, node) -> list:
    function = node.child_by_field_name("function")
    arguments = node.child_by_field_name("arguments")
    if function is None or arguments is None or function.type != "identifier":
        return []
    if not _HOOK_NAME.match(_text(source, function)):
        return []
    bodies = []
    for argument in arguments.named_children:
        if argument.type != "arrow_function":
            continue
        body = _ts_block(argument)
        if body is not None:
            bodies.append(body)
    return bodies


def _typescript_edits(source: bytes, root, remove_comments: bool) -> list[_Edit]:
    edits: list[_Edit] = []
    elided: set[tuple[int, int]] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if (node.start_byte, node.end_byte) in elided and node.type == "statement_block":
            continue
        if node.type == "comment":
            if remove_comments:
                edits.append(_comment_edit(source, node.start_byte, node.end_byte))
            continue
        bodies = []
        if node.type == "call_expression":
            bodies = _ts_hook_bodies(source, node)
        else:
            body = _ts_compressible_body(source, node)
            if body is not None:
                bodies = [body]
        for body in bodies:
            elided.add((body.start_byte, body.end_byte))
            edits.append(_Edit(body.start_byte, body.end_byte, TS_PLACEHOLDER))
        stack.extend(reversed(node.children))
    return edits


def _apply_edits(source: bytes, edits: list[_Edit]) -> bytes:
    """Apply non-overlapping edits back to front; overlapping ones are dropped."""
    out = source
    floor = len(source)
    for edit in sorted(edits, key=lambda item: (item.start, item.end), reverse=True):
        if edit.start > edit.end or edit.end > floor:
            continue
        out = out[: edit.start] + edit.replacement + out[edit.end :]
        floor = edit.start
    return out


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of blank lines to a single blank line."""
    out: list[str] = []
    previous_blank = False
    for line in text.split("\n"):
        blank = not line.strip()
        if blank and previous_blank:
            continue
        out.append(line)
        previous_blank = blank
    return "\n".join(out)


def compress_source(path: str, text: str, *, remove_comments: bool = False) -> str:
    """Return ``text`` with function bodies elided for supported languages."""
    language_name = language_for_compression(path)
    if language_name is None:
        return text
    parser, _error = _load_parser(language_name)
    if parser is None:
        return text

    source = text.encode("utf-8")
    try:
        tree = parser.parse(source)
    except Exception as exc:
        logger.warning("Tree-sitter parse failed for %s: %s", path, exc)
        return text

    if language_name == "python":
        edits = _python_edits(source, tree.root_node, remove_comments)
    else:
        edits = _typescript_edits(source, tree.root_node, remove_comments)
    if not edits:
        return text
    compressed = _apply_edits(source, edits).decode("utf-8", errors="replace")
    return collapse_blank_lines(compressed)


def compress_contents(
    contents: Mapping[str, FileContent],
    *,
    remove_comments: bool = False,
) -> dict[str, FileContent]:
    """Compress every successfully read entry; failures pass through as-is."""
    out: dict[str, FileContent] = {}
    for path, result in contents.items():
        if result.ok and result.content:
            out[path] = FileContent(
                content=compress_source(path, result.content, remove_comments=remove_comments)
            )
        else:
            out[path] = result
    return out


__all__ = [
    "LANGUAGE_BY_SUFFIX",
    "collapse_blank_lines",
    "compress_contents",
    "compress_source",
    "language_for_compression",
]
