"""Output format encoders for aggregated context text.

Each encoder defines three primitives: a file block, a folder header/footer
pair and a full-tree wrapper, plus a trailing cleanup applied to the
assembled output. Paths handed to encoders are already relative to the
aggregation root and use forward slashes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

FORMAT_MARKDOWN = "markdown"
FORMAT_XML = "xml"
FORMAT_SENTINEL = "sentinel"
FORMAT_RAW = "raw"
OUTPUT_FORMATS: tuple[str, ...] = (FORMAT_MARKDOWN, FORMAT_XML, FORMAT_SENTINEL, FORMAT_RAW)
DEFAULT_FORMAT = FORMAT_MARKDOWN
DEFAULT_PREAMBLE_TAG = "preamble"
DEFAULT_QUERY_TAG = "query"

MARKDOWN_FENCE = "````"
RAW_FENCE = "```"
_BACKTICK_RUN = re.compile(r"`+")

_XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "'": "&apos;",
    '"': "&quot;",
}


def escape_xml(text: str) -> str:
    """Escape the five XML special characters."""
    return "".join(_XML_ESCAPES.get(ch, ch) for ch in text)


def escape_heading(text: str) -> str:
    """Make free text safe for a single-line markdown heading."""
    flattened = " ".join(text.splitlines())
    return escape_xml(flattened).replace("#", "&#35;")


def cdata(text: str) -> str:
    """Wrap ``text`` in CDATA, splitting any embedded ``]]>`` terminator."""
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def normalize_path(path: str) -> str:
    return path.replace("\\", "/")


def relative_display_path(root_path: str, path: str) -> str:
    """Return ``path`` relative to ``root_path`` with forward slashes.

    The root itself renders as ``"."``. Paths outside the root lose any
    leading slash so no absolute path reaches the output.
    """
    root = normalize_path(root_path)
    target = normalize_path(path)
    if root != "/":
        root = root.rstrip("/")
    if target == root or target.rstrip("/") == root:
        return "."
    prefix = root if root.endswith("/") else root + "/"
    if root and target.startswith(prefix):
        return target[len(prefix):]
    return target.lstrip("/")


def _with_trailing_newline(content: str) -> str:
    return content if content.endswith("\n") else content + "\n"


def _longest_backtick_run(text: str) -> int:
    return max((len(run) for run in _BACKTICK_RUN.findall(text)), default=0)


def code_fence(content: str, minimum: int) -> str:
    """Return a backtick fence longer than any backtick run inside ``content``."""
    return "`" * max(minimum, _longest_backtick_run(content) + 1)


def inline_code(text: str) -> str:
    """Wrap ``text`` in a markdown code span that survives embedded backticks."""
    delimiter = "`" * (_longest_backtick_run(text) + 1)
    if text.startswith("`") or text.endswith("`"):
        text = f" {text} "
    return f"{delimiter}{text}{delimiter}"


@dataclass(frozen=True)
class FileBlock:
    """Everything an encoder needs to render one file."""

    path: str
    name: str
    file_id: int
    language: str
    extension: str
    content: str
    depth: int = 1

    @property
    def format_tag(self) -> str:
        """Language tag with extension and ``text`` fallbacks."""
        return self.language or self.extension or "text"


class OutputEncoder:
    """Base encoder: flat output with no folder framing."""

    name = ""

    def file_block(self, block: FileBlock) -> str:
        raise NotImplementedError

    def folder_header(self, name: str, path: str, depth: int) -> str:
        return ""

    def folder_footer(self, depth: int) -> str:
        return ""

    def wrap_tree(self, tree_text: str) -> str:
        raise NotImplementedError

    def finalize(self, text: str) -> str:
        """Trim trailing blank lines down to a single newline."""
        if not text:
            return text
        return text.rstrip("\n") + "\n"


class MarkdownEncoder(OutputEncoder):
    name = FORMAT_MARKDOWN
    separator = "---\n\n"

    def file_block(self, block: FileBlock) -> str:
        fence = code_fence(block.content, len(MARKDOWN_FENCE))
        return (
            f"## File: {escape_heading(block.path)}\n"
            f"- Path: {inline_code(block.path)}\n"
            f"- ID: {block.file_id}\n"
            f"- Language: {block.language or 'text'}\n"
            "\n"
            f"{fence}{block.language}\n"
            f"{_with_trailing_newline(block.content)}"
            f"{fence}\n"
            "\n"
            f"{self.separator}"
        )

    def wrap_tree(self, tree_text: str) -> str:
        fence = code_fence(tree_text, len(MARKDOWN_FENCE))
        return f"# File Tree\n\n{fence}\n{_with_trailing_newline(tree_text)}{fence}\n"

    def finalize(self, text: str) -> str:
        """Drop the dangling ``---`` separator after the last file."""
        if text.endswith(self.separator):
            text = text[: -len(self.separator)]
        return super().finalize(text)


class XmlEncoder(OutputEncoder):
    name = FORMAT_XML

    @staticmethod
    def _indent(depth: int) -> str:
        return "  " * max(0, depth - 1)

    def file_block(self, block: FileBlock) -> str:
        indent = self._indent(block.depth)
        return (
            f'{indent}<file name="{escape_xml(block.name)}" path="{escape_xml(block.path)}" '
            f'format="{escape_xml(block.format_tag)}">\n'
            f"{indent}  <content>{cdata(block.content)}</content>\n"
            f"{indent}</file>\n"
        )

    def folder_header(self, name: str, path: str, depth: int) -> str:
        return f'{self._indent(depth)}<folder name="{escape_xml(name)}" path="{escape_xml(path)}">\n'

    def folder_footer(self, depth: int) -> str:
        return f"{self._indent(depth)}</folder>\n"

    def wrap_tree(self, tree_text: str) -> str:
        body = "\n" + _with_trailing_newline(tree_text)
        return f"<File_Tree>{cdata(body)}</File_Tree>\n"

    def finalize(self, text: str) -> str:
        """Guarantee a final newline without touching the rest."""
        if text and not text.endswith("\n"):
            return text + "\n"
        return text


class SentinelEncoder(OutputEncoder):
    name = FORMAT_SENTINEL

    def file_block(self, block: FileBlock) -> str:
        return (
            f"-----BEGIN FILE path={block.path} id={block.file_id} format={block.format_tag}-----\n"
            f"{_with_trailing_newline(block.content)}"
            "-----END FILE-----\n"
            "\n"
        )

    def wrap_tree(self, tree_text: str) -> str:
        return f"-----BEGIN FILE TREE-----\n{_with_trailing_newline(tree_text)}-----END FILE TREE-----\n"


class RawEncoder(OutputEncoder):
    name = FORMAT_RAW

    def file_block(self, block: FileBlock) -> str:
        fence = code_fence(block.content, len(RAW_FENCE))
        return (
            f"--- {block.path} ---\n"
            f"{fence}{block.language}\n"
            f"{_with_trailing_newline(block.content)}"
            f"{fence}\n"
            "\n"
        )

    def wrap_tree(self, tree_text: str) -> str:
        return f"File tree:\n{_with_trailing_newline(tree_text)}"


ENCODERS: dict[str, OutputEncoder] = {
    FORMAT_MARKDOWN: MarkdownEncoder(),
    FORMAT_XML: XmlEncoder(),
    FORMAT_SENTINEL: SentinelEncoder(),
    FORMAT_RAW: RawEncoder(),
}


def tagged_block(tag: str, body: str, default_tag: str) -> str:
    """Wrap ``body`` in ``<tag>`` lines; a blank tag falls back to ``default_tag``."""
    name = tag.strip() or default_tag
    content = body.strip("\n")
    return f"<{name}>\n{content}\n</{name}>\n"


def wrap_prompt(
    text: str,
    *,
    preamble: str = "",
    query: str = "",
    preamble_tag: str = DEFAULT_PREAMBLE_TAG,
    query_tag: str = DEFAULT_QUERY_TAG,
) -> str:
    """Put a tagged preamble before ``text`` and a tagged query after it.

    Blank preamble or query text adds nothing. Parts are separated by one
    blank line.
    """
    parts: list[str] = []
    if preamble.strip():
        parts.append(tagged_block(preamble_tag, preamble, DEFAULT_PREAMBLE_TAG))
    if text:
        parts.append(_with_trailing_newline(text))
    if query.strip():
        parts.append(tagged_block(query_tag, query, DEFAULT_QUERY_TAG))
    return "\n".join(parts)


def get_encoder(name: str) -> OutputEncoder:
    """Return the encoder registered for ``name``.

    Raises ``ValueError`` for unknown format names.
    """
    try:
        return ENCODERS[name]
    except KeyError:
        raise ValueError(f"unknown output format: {name!r}") from None


__all__ = [
    "FORMAT_MARKDOWN",
    "FORMAT_XML",
    "FORMAT_SENTINEL",
    "FORMAT_RAW",
    "OUTPUT_FORMATS",
    "DEFAULT_FORMAT",
    "DEFAULT_PREAMBLE_TAG",
    "DEFAULT_QUERY_TAG",
    "escape_xml",
    "escape_heading",
    "cdata",
    "code_fence",
    "inline_code",
    "relative_display_path",
    "FileBlock",
    "OutputEncoder",
    "MarkdownEncoder",
    "XmlEncoder",
    "SentinelEncoder",
    "RawEncoder",
    "ENCODERS",
    "get_encoder",
    "tagged_block",
    "wrap_prompt",
]
