"""Filesystem-backed note access used by the linker pipeline."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

from .errors import RootPathUnresolvedError
from .paths import Vault

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Note:
    """A note file inside a vault."""

    path: str
    absolute: Path

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lstrip(".")


class NoteHost(Protocol):
    """Operations the linker needs from whatever stores the notes."""

    def get_active_note(self) -> Note | None: ...

    async def read_note_content(self, note: Note) -> str: ...

    def resolve_note_by_path(self, path: str) -> Note | None: ...

    def get_root_path(self) -> str: ...

    async def process(self, note: Note, transform: Callable[[str], str]) -> str: ...


# Entries disappear once no task holds or awaits the lock.
_locks: weakref.WeakValueDictionary[Path, asyncio.Lock] = weakref.WeakValueDictionary()


def _lock_for(path: Path) -> asyncio.Lock:
    lock = _locks.get(path)
    if lock is None:
        lock = _locks[path] = asyncio.Lock()
    return lock


def _atomic_write(path: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class VaultNotes:
    """:class:`NoteHost` over a single vault directory.

    *active* is the absolute path of the note the caller is working on.
    """

    def __init__(self, vault: Vault, active: Path | None = None) -> None:
        self.vault = vault
        self._active = active

    def _note_for(self, absolute: Path) -> Note | None:
        try:
            relative = absolute.resolve(strict=False).relative_to(self.vault.root)
        except ValueError:
            return None
        if not relative.parts or not absolute.is_file():
            return None
        return Note(path=relative.as_posix(), absolute=absolute)

    def get_active_note(self) -> Note | None:
        if self._active is None:
            return None
        return self._note_for(self._active)

    async def read_note_content(self, note: Note) -> str:
        return await asyncio.to_thread(note.absolute.read_text, encoding="utf-8")

    def resolve_note_by_path(self, path: str) -> Note | None:
        return self._note_for(self.vault.root / path)

    def get_root_path(self) -> str:
        if not self.vault.root.is_dir():
            raise RootPathUnresolvedError(f"Vault root {self.vault.root} is not a directory")
        return str(self.vault.root)

    async def process(self, note: Note, transform: Callable[[str], str]) -> str:
        """Apply *transform* to the note content and persist the result atomically."""

        async with _lock_for(note.absolute):
            current = await self.read_note_content(note)
            updated = transform(current)
            if updated != current:
                await asyncio.to_thread(_atomic_write, note.absolute, updated)
                logger.debug("Wrote %s (%d chars)", note.path, len(updated))
            return updated
