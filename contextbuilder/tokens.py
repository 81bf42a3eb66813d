"""Token counting with the ``cl100k_base`` tiktoken encoding."""

from __future__ import annotations

import logging
import threading

from .errors import TokenizerError

logger = logging.getLogger(__name__)

ENCODING_NAME = "cl100k_base"

_ENCODING_CACHE: dict[str, object] = {}
_ENCODING_LOCK = threading.Lock()


def get_encoding(name: str = ENCODING_NAME):
    """Load and cache one tiktoken encoding.

    The first call may download the BPE ranks; later calls reuse the cached
    encoder. Any failure surfaces as ``TokenizerError``.
    """
    with _ENCODING_LOCK:
        encoding = _ENCODING_CACHE.get(name)
        if encoding is not None:
            return encoding
        try:
            import tiktoken

            encoding = tiktoken.get_encoding(name)
        except Exception as exc:
            logger.error("Could not load tokenizer %s: %s", name, exc)
            raise TokenizerError(f"could not load {name} encoding: {exc}") from exc
        _ENCODING_CACHE[name] = encoding
        return encoding


def count_tokens(text: str, encoding_name: str = ENCODING_NAME) -> int:
    """Return the number of tokens in ``text``.

    Special-token markers are encoded as ordinary text, so arbitrary file
    content never trips tiktoken's disallowed-special check.
    """
    if not text:
        return 0
    encoding = get_encoding(encoding_name)
    try:
        return len(encoding.encode_ordinary(text))
    except Exception as exc:
        raise TokenizerError(f"could not encode text: {exc}") from exc


def clear_encoding_cache() -> None:
    with _ENCODING_LOCK:
        _ENCODING_CACHE.clear()


__all__ = ["ENCODING_NAME", "get_encoding", "count_tokens", "clear_encoding_cache"]
