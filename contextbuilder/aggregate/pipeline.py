"""Aggregation pipeline: selected files to one formatted text artifact.

``aggregate`` is a pure function of ``(tree, selection, settings)`` plus its
two collaborators (batch content retrieval and token counting). It walks only
relevant directories, i.e. those that directly or transitively contain a
selected file, fetches all file contents in one batch, then re-walks the same
order to emit encoder output.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace

from ..errors import TokenizerError
from ..tree_model import TreeNode, render_plain_tree, sorted_children
from .compression import compress_contents
from .content import BatchReader, FileContent, read_many
from .formats import (
    DEFAULT_FORMAT,
    DEFAULT_PREAMBLE_TAG,
    DEFAULT_QUERY_TAG,
    OUTPUT_FORMATS,
    FileBlock,
    OutputEncoder,
    get_encoder,
    relative_display_path,
    wrap_prompt,
)
from .languages import file_extension, language_for_path

logger = logging.getLogger(__name__)

EVENT_FILE = "file"
EVENT_ENTER = "enter"
EVENT_EXIT = "exit"
_CHILDREN = "children"

READ_ERROR_PREFIX = "// Error reading file: "


@dataclass(frozen=True)
class AggregationSettings:
    """Per-configuration output options.

    ``remove_comments`` only applies while ``compress`` is on. ``preamble``
    and ``query`` wrap the assembled text in ``<preamble_tag>`` and
    ``<query_tag>`` elements when non-blank.
    """

    format: str = DEFAULT_FORMAT
    prepend_tree: bool = False
    compress: bool = False
    remove_comments: bool = True
    preamble: str = ""
    query: str = ""
    preamble_tag: str = DEFAULT_PREAMBLE_TAG
    query_tag: str = DEFAULT_QUERY_TAG

    def normalized(self) -> "AggregationSettings":
        """Replace an unknown format with the default one."""
        if self.format in OUTPUT_FORMATS:
            return self
        return replace(self, format=DEFAULT_FORMAT)


@dataclass(frozen=True)
class AggregationResult:
    text: str = ""
    token_count: int = 0
    errors: tuple[str, ...] = ()
    failed_paths: tuple[str, ...] = ()
    file_count: int = 0
    generation: int = 0

    @property
    def error(self) -> str | None:
        """All non-fatal errors joined into one message, or ``None``."""
        return "\n".join(self.errors) if self.errors else None


@dataclass
class _BodyState:
    parts: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    next_id: int = 1


def relevant_directories(tree: TreeNode | None, selection: frozenset[str] | set[str]) -> frozenset[str]:
    """Return directory paths that directly or transitively contain a selected file.

    Computed bottom-up with an explicit post-order stack, each node visited once.
    """
    if tree is None or not tree.is_dir or not selection:
        return frozenset()
    relevant: set[str] = set()
    stack: list[tuple[TreeNode, bool]] = [(tree, False)]
    while stack:
        node, children_done = stack.pop()
        if not node.is_dir:
            continue
        if not children_done:
            stack.append((node, True))
            stack.extend((child, False) for child in node.children if child.is_dir)
            continue
        for child in node.children:
            if child.is_dir:
                if child.path in relevant:
                    relevant.add(node.path)
                    break
            elif child.path in selection:
                relevant.add(node.path)
                break
    return frozenset(relevant)


def iter_relevant(
    tree: TreeNode | None,
    selection: frozenset[str] | set[str],
    relevant: frozenset[str] | None = None,
) -> Iterator[tuple[str, TreeNode, int]]:
    """Yield ``(event, node, depth)`` for the relevance-restricted walk.

    Events are ``"file"`` for selected files and ``"enter"``/``"exit"`` around
    relevant directories. Siblings come files first, then by name. The root is
    the synthetic depth-1 level and produces no events of its own.
    """
    if tree is None:
        return
    if not tree.is_dir:
        if tree.path in selection:
            yield EVENT_FILE, tree, 1
        return
    if relevant is None:
        relevant = relevant_directories(tree, selection)
    if tree.path not in relevant:
        return

    stack: list[tuple[str, TreeNode, int]] = [(_CHILDREN, tree, 1)]
    while stack:
        kind, node, depth = stack.pop()
        if kind != _CHILDREN:
            yield kind, node, depth
            continue
        frames: list[tuple[str, TreeNode, int]] = []
        for child in sorted_children(node):
            if child.is_dir:
                if child.path in relevant:
                    frames.append((EVENT_ENTER, child, depth))
                    frames.append((_CHILDREN, child, depth + 1))
                    frames.append((EVENT_EXIT, child, depth))
            elif child.path in selection:
                frames.append((EVENT_FILE, child, depth))
        stack.extend(reversed(frames))


def collect_relevant_files(
    tree: TreeNode | None,
    selection: frozenset[str] | set[str],
    relevant: frozenset[str] | None = None,
) -> list[str]:
    """Return selected file paths reachable through relevant directories, in walk order.

    Selected paths that no longer exist in ``tree`` are silently excluded.
    """
    return [
        node.path
        for event, node, _depth in iter_relevant(tree, selection, relevant)
        if event == EVENT_FILE
    ]


def _display_path(tree: TreeNode, node: TreeNode) -> str:
    if node is tree:
        return node.name
    return relative_display_path(tree.path, node.path)


def _render_body(
    tree: TreeNode,
    selection: frozenset[str] | set[str],
    relevant: frozenset[str],
    contents: dict[str, FileContent],
    encoder: OutputEncoder,
) -> _BodyState:
    state = _BodyState()
    for event, node, depth in iter_relevant(tree, selection, relevant):
        if event == EVENT_ENTER:
            state.parts.append(encoder.folder_header(node.name, _display_path(tree, node), depth))
            continue
        if event == EVENT_EXIT:
            state.parts.append(encoder.folder_footer(depth))
            continue

        result = contents.get(node.path)
        if result is not None and result.ok:
            content = result.content or ""
        else:
            message = result.error if result is not None and result.error else "no content returned"
            content = f"{READ_ERROR_PREFIX}{message}"
            state.failed.append(node.path)
        state.parts.append(
            encoder.file_block(
                FileBlock(
                    path=_display_path(tree, node),
                    name=node.name,
                    file_id=state.next_id,
                    language=language_for_path(node.name),
                    extension=file_extension(node.name),
                    content=content,
                    depth=depth,
                )
            )
        )
        state.next_id += 1
    return state


def _default_count_tokens(text: str) -> int:
    from ..tokens import count_tokens

    return count_tokens(text)


def aggregate(
    tree: TreeNode | None,
    selection: frozenset[str] | set[str],
    settings: AggregationSettings | None = None,
    *,
    read_many: BatchReader = read_many,
    count_tokens: Callable[[str], int] | None = None,
    generation: int = 0,
) -> AggregationResult:
    """Build the aggregated text and its token count.

    Read failures become inline ``// Error reading file: ...`` markers and a
    tokenizer failure reports zero tokens plus a message in ``errors``; the
    text itself is always returned. With ``settings.compress`` each file is
    compressed after retrieval, and the preamble and query wrap the final
    text, so both count toward the token total.
    """
    active = (settings or AggregationSettings()).normalized()
    if tree is None:
        return AggregationResult(generation=generation)
    encoder = get_encoder(active.format)

    tree_text = encoder.wrap_tree(render_plain_tree(tree)) if active.prepend_tree else ""

    relevant = relevant_directories(tree, selection)
    file_paths = collect_relevant_files(tree, selection, relevant)
    contents = read_many(file_paths) if file_paths else {}
    if active.compress:
        contents = compress_contents(contents, remove_comments=active.remove_comments)
    body = _render_body(tree, selection, relevant, contents, encoder)
    body_text = "".join(body.parts)
    if body.failed:
        logger.warning("Aggregated %d file(s) with read errors", len(body.failed))

    if tree_text and body_text:
        text = tree_text.rstrip("\n") + "\n\n" + body_text
    else:
        text = tree_text or body_text
    text = wrap_prompt(
        encoder.finalize(text),
        preamble=active.preamble,
        query=active.query,
        preamble_tag=active.preamble_tag,
        query_tag=active.query_tag,
    )

    errors: list[str] = []
    token_count = 0
    if text:
        counter = count_tokens or _default_count_tokens
        try:
            token_count = counter(text)
        except TokenizerError as exc:
            logger.warning("Token count failed: %s", exc)
            errors.append(f"Token count failed: {exc}")
            token_count = 0

    logger.debug(
        "Aggregated %d file(s) as %s (%d chars, %d tokens)",
        len(file_paths),
        active.format,
        len(text),
        token_count,
    )
    return AggregationResult(
        text=text,
        token_count=token_count,
        errors=tuple(errors),
        failed_paths=tuple(body.failed),
        file_count=len(file_paths),
        generation=generation,
    )


__all__ = [
    "EVENT_FILE",
    "EVENT_ENTER",
    "EVENT_EXIT",
    "READ_ERROR_PREFIX",
    "AggregationSettings",
    "AggregationResult",
    "relevant_directories",
    "iter_relevant",
    "collect_relevant_files",
    "aggregate",
]
