"""Vault configuration and note path resolution."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .errors import NoActiveNoteError, RootPathUnresolvedError

NOTE_SUFFIX = ".md"


@dataclass(frozen=True)
class Vault:
    """A named vault root directory."""

    name: str
    root: Path


class VaultConfigurationError(ValueError):
    """Raised when vault configuration is invalid."""


def parse_vault_paths(raw: str) -> dict[str, Vault]:
    """Parse a comma separated list of vault paths into :class:`Vault` objects."""

    if not raw:
        raise VaultConfigurationError("VAULT_PATHS must be provided")

    vaults: dict[str, Vault] = {}
    for chunk in raw.split(","):
        candidate = chunk.strip()
        if not candidate:
            continue
        path = Path(candidate).expanduser()
        if not path.is_absolute():
            raise VaultConfigurationError(f"Vault path must be absolute: {candidate!r}")
        root = path.resolve(strict=False)
        name = root.name or root.stem
        if name in vaults:
            raise VaultConfigurationError(f"Duplicate vault name detected: {name}")
        vaults[name] = Vault(name=name, root=root)

    if not vaults:
        raise VaultConfigurationError("No valid vault paths provided")

    return vaults


def find_vault(path: Path, vaults: Mapping[str, Vault]) -> Vault:
    """Return the vault containing the absolute *path*."""

    resolved = path.resolve(strict=False)
    for vault in vaults.values():
        if resolved.is_relative_to(vault.root):
            return vault
    raise NoActiveNoteError(f"Path {resolved} is outside configured vaults")


def ensure_markdown_suffix(path: Path) -> Path:
    if path.suffix:
        return path
    return path.with_suffix(NOTE_SUFFIX)


def locate_note(path_str: str, vaults: Mapping[str, Vault]) -> tuple[Vault, Path]:
    """Resolve a caller supplied note path to its vault and absolute path.

    The path may be absolute, prefixed with a vault name, or bare when only
    one vault is configured.
    """

    raw_path = Path(path_str)
    if raw_path.is_absolute():
        vault = find_vault(raw_path, vaults)
        target = ensure_markdown_suffix(raw_path.resolve(strict=False))
        return vault, target

    if not raw_path.parts:
        raise NoActiveNoteError("Empty path provided")

    first = raw_path.parts[0]
    if first in vaults:
        vault = vaults[first]
        relative = Path(*raw_path.parts[1:]) if len(raw_path.parts) > 1 else Path()
    elif len(vaults) == 1:
        vault = next(iter(vaults.values()))
        relative = raw_path
    else:
        raise RootPathUnresolvedError(
            "Ambiguous path - prefix with vault name (e.g. 'VaultName/note.md')"
        )

    target = ensure_markdown_suffix(vault.root / relative)
    find_vault(target, vaults)
    return vault, target.resolve(strict=False)


def relative_note_path(path: str | Path, root: Path) -> str | None:
    """Return *path* relative to *root* in POSIX form, or ``None`` if outside.

    Both ``/`` and ``\\`` separators are accepted in *path*.
    """

    text = str(path)
    base = str(root)
    for separator in ("/", "\\"):
        prefix = base.rstrip(separator) + separator
        if text.startswith(prefix):
            relative = text[len(prefix) :].replace("\\", "/")
            return str(PurePosixPath(relative)) if relative else None
    return None
