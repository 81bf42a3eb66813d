"""System clipboard access through pyperclip."""

from __future__ import annotations

import logging

import pyperclip

logger = logging.getLogger(__name__)


def copy_text(text: str) -> str | None:
    """Place ``text`` on the system clipboard.

    Returns ``None`` on success or an error message when no clipboard
    mechanism is available or the copy fails.
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        logger.warning("Clipboard copy failed: %s", exc)
        return str(exc) or "clipboard unavailable"
    logger.info("Copied %d chars to clipboard", len(text))
    return None


__all__ = ["copy_text"]
