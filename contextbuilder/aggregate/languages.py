"""File-extension to language-tag lookup for code fences and format attributes."""

from __future__ import annotations

from functools import lru_cache

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "py": "python",
    "pyi": "python",
    "rs": "rust",
    "go": "go",
    "java": "java",
    "kt": "kotlin",
    "cs": "csharp",
    "swift": "swift",
    "html": "html",
    "htm": "html",
    "css": "css",
    "scss": "scss",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "toml": "toml",
    "md": "markdown",
    "sh": "shell",
    "bash": "shell",
    "zsh": "shell",
    "ps1": "powershell",
    "xml": "xml",
    "sql": "sql",
    "rb": "ruby",
    "php": "php",
    "lua": "lua",
    "cpp": "cpp",
    "cxx": "cpp",
    "cc": "cpp",
    "hpp": "cpp",
    "hxx": "cpp",
    "c": "c",
    "h": "c",
}


def file_extension(path: str) -> str:
    """Return the lowercase extension of ``path`` without the dot."""
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name.lstrip("."):
        return ""
    return name.rsplit(".", 1)[-1].lower()


@lru_cache(maxsize=512)
def _pygments_alias(filename: str) -> str:
    """Return the first alias of the Pygments lexer registered for ``filename``."""
    from pygments.lexers import get_lexer_for_filename
    from pygments.util import ClassNotFound

    try:
        lexer = get_lexer_for_filename(filename)
    except ClassNotFound:
        return ""
    aliases = getattr(lexer, "aliases", None) or []
    return aliases[0] if aliases else ""


def language_for_path(path: str) -> str:
    """Return a syntax-hint tag for ``path``, or ``""`` when unknown.

    The table above wins; anything else is looked up in the Pygments lexer
    registry by filename.
    """
    extension = file_extension(path)
    if extension in LANGUAGE_BY_EXTENSION:
        return LANGUAGE_BY_EXTENSION[extension]
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if not name:
        return ""
    return _pygments_alias(name)


__all__ = ["LANGUAGE_BY_EXTENSION", "file_extension", "language_for_path"]
