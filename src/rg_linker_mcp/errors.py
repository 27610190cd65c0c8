"""Failures reported by a "find similar notes" run."""

from __future__ import annotations


class LinkerError(RuntimeError):
    """Base class for conditions reported back to the user as a notice."""

    notice = "RG Linker: error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.notice)


class NoActiveNoteError(LinkerError):
    notice = "No active file."


class NoKeywordsError(LinkerError):
    notice = "No keywords extracted."


class RootPathUnresolvedError(LinkerError):
    notice = "RG Linker: cannot determine vault path."


class SearchProcessError(LinkerError):
    """Raised when the search tool fails without producing any output."""

    notice = "RG Linker: search tool failed."


class SearchTimeoutError(SearchProcessError):
    notice = "RG Linker: search tool timed out."


class NoCandidatesError(LinkerError):
    notice = "No similar notes found."
