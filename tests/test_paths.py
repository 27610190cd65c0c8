from pathlib import Path

import pytest

from rg_linker_mcp.errors import NoActiveNoteError, RootPathUnresolvedError
from rg_linker_mcp.paths import (
    VaultConfigurationError,
    find_vault,
    locate_note,
    parse_vault_paths,
    relative_note_path,
)


def test_parse_vault_paths(tmp_path):
    vault = tmp_path / "vault"
    vault.mkdir()
    mapping = parse_vault_paths(str(vault))
    assert len(mapping) == 1
    assert "vault" in mapping
    assert mapping["vault"].root == vault.resolve()


def test_parse_vault_paths_requires_absolute():
    with pytest.raises(VaultConfigurationError):
        parse_vault_paths("relative/path")


def test_locate_note_adds_suffix(tmp_path):
    vault = tmp_path / "vault"
    vault.mkdir()
    vaults = parse_vault_paths(str(vault))
    found, result = locate_note("note", vaults)
    assert found.name == "vault"
    assert result.suffix == ".md"
    assert result.parent == vault.resolve()


def test_locate_note_with_vault_prefix(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    vaults = parse_vault_paths(f"{first},{second}")
    found, result = locate_note("second/sub/note.md", vaults)
    assert found.name == "second"
    assert result == second.resolve() / "sub" / "note.md"


def test_locate_note_ambiguous_without_prefix(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    vaults = parse_vault_paths(f"{first},{second}")
    with pytest.raises(RootPathUnresolvedError):
        locate_note("note.md", vaults)


def test_find_vault_rejects_escape(tmp_path):
    vault = tmp_path / "vault"
    outside = tmp_path / "outside"
    vault.mkdir()
    outside.mkdir()
    vaults = parse_vault_paths(str(vault))
    with pytest.raises(NoActiveNoteError):
        find_vault(outside / "note.md", vaults)
    with pytest.raises(NoActiveNoteError):
        locate_note("../outside/note.md", vaults)


def test_relative_note_path_handles_both_separators():
    root = Path("/vault")
    assert relative_note_path("/vault/sub/a.md", root) == "sub/a.md"
    assert relative_note_path("/vault\\sub\\a.md", root) == "sub/a.md"
    assert relative_note_path("/elsewhere/a.md", root) is None
    assert relative_note_path("/vaulted/a.md", root) is None
