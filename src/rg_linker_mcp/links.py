"""Render the similar-notes block and merge it into note content."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

BLOCK_TITLE = "> Similar notes"
BLOCK_SEPARATOR = "\n\n"

_LINK_LINES = r"(?:- \[\[[^\]]+\]\]\n?)+"


@dataclass(frozen=True, slots=True)
class BlockFormat:
    """A recognizable link block layout written by some release."""

    version: str
    pattern: re.Pattern[str]


# Tried in order; the first format found in the note is replaced.
BLOCK_FORMATS: tuple[BlockFormat, ...] = (
    BlockFormat("links-v1", re.compile(r"(?:\n+|^)---\nLinks\n" + _LINK_LINES)),
    BlockFormat(
        "similar-rg-v2",
        re.compile(r"(?:\n+|^)> Similar notes \(rg(?:\s*:\s*[^)]+)?\)\n" + _LINK_LINES),
    ),
    BlockFormat(
        "similar-v3",
        re.compile(r"(?:\n+|^)> Similar notes(?:\s*\([^)]+\))?\n" + _LINK_LINES),
    ),
)


def render_block(targets: Iterable[str]) -> str:
    """Render note link *targets* (paths without extension) as a link block."""

    lines = [BLOCK_TITLE, *(f"- [[{target}]]" for target in targets)]
    return "\n".join(lines) + "\n"


def merge_block(
    content: str,
    block: str,
    insert_place: str = "bottom",
    formats: Sequence[BlockFormat] = BLOCK_FORMATS,
) -> str:
    """Replace an existing link block in *content* with *block*, or insert it.

    A block found at the very start is replaced in place; anywhere else it is
    re-attached after one blank line. Without an existing block, *block* goes
    before or after the content depending on *insert_place*.
    """

    for block_format in formats:
        match = block_format.pattern.search(content)
        if match is None:
            continue
        replacement = block if match.start() == 0 else BLOCK_SEPARATOR + block
        return content[: match.start()] + replacement + content[match.end() :]

    if not content.strip():
        return block
    if insert_place == "top":
        return block + "\n" + content.lstrip("\n")
    return content.rstrip("\n") + BLOCK_SEPARATOR + block
