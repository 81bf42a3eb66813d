"""Exception types raised by collaborators.

Core functions never raise these for ordinary control flow; the pipeline and
session convert them into error values attached to their results.
"""

from __future__ import annotations

from dataclasses import dataclass


class ContextBuilderError(Exception):
    """Base class for all contextbuilder errors."""


class TokenizerError(ContextBuilderError):
    """Tokenizer could not be loaded or failed to encode text."""


class ScanError(ContextBuilderError):
    """Scanner could not produce a tree for the requested root."""


class SettingsStoreError(ContextBuilderError):
    """Settings could not be read from or written to persistent storage."""


class MonitorError(ContextBuilderError):
    """File monitor could not be started or stopped."""


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one collaborator-backed session action.

    ``error`` carries a labeled message such as ``"Scan failed: ..."`` when
    ``ok`` is false.
    """

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> "OperationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, label: str, exc: BaseException | str) -> "OperationResult":
        return cls(ok=False, error=f"{label}: {exc}")


__all__ = [
    "ContextBuilderError",
    "TokenizerError",
    "ScanError",
    "SettingsStoreError",
    "MonitorError",
    "OperationResult",
]
