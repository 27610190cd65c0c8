"""Build ripgrep argument lists for a term search."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

REGEX_META_PATTERN = re.compile(r"[-/\\^$*+?.()|\[\]{}]")
GLOB_META_PATTERN = re.compile(r"[\\*?\[\]]")
EDGE_SEPARATORS_PATTERN = re.compile(r"^[\\/]+|[\\/]+$")
LIST_SEPARATOR_PATTERN = re.compile(r"\r?\n|,")

BASE_ARGS: tuple[str, ...] = (
    "--json",
    "-n",
    "--no-heading",
    "--hidden",
    "--color",
    "never",
)

MEDIA_GLOBS: tuple[str, ...] = (
    "**/*.png",
    "**/*.jpg",
    "**/*.jpeg",
    "**/*.pdf",
    "**/*.webp",
)


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Everything needed to spawn one search process."""

    program: str
    args: tuple[str, ...]
    pattern: str

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


def escape_term(term: str) -> str:
    """Escape regex metacharacters in *term*."""

    return REGEX_META_PATTERN.sub(lambda match: "\\" + match.group(0), term)


def build_pattern(terms: Iterable[str]) -> str:
    """Join escaped *terms* into a single alternation."""

    return "|".join(escape_term(term) for term in terms)


def normalize_folder_path(folder: str) -> str:
    """Strip leading/trailing separators and use ``/`` throughout."""

    return EDGE_SEPARATORS_PATTERN.sub("", folder).replace("\\", "/")


def split_input_list(raw: str | Iterable[str] | None) -> list[str]:
    """Split comma or newline separated input, dropping blanks."""

    if not raw:
        return []
    chunks = LIST_SEPARATOR_PATTERN.split(raw) if isinstance(raw, str) else list(raw)
    return [chunk.strip() for chunk in chunks if chunk and chunk.strip()]


def parse_folder_list(raw: str | Iterable[str] | None) -> list[str]:
    folders = (normalize_folder_path(item) for item in split_input_list(raw))
    return [folder for folder in folders if folder]


def parse_pattern_list(raw: str | Iterable[str] | None) -> list[str]:
    return split_input_list(raw)


def _folder_globs(folder: str) -> list[str]:
    globs = [f"{folder}/**"]
    if "/" not in folder:
        globs.append(f"**/{folder}/**")
    return globs


def build_exclude_globs(
    ignore_folders: Sequence[str] = (), ignore_patterns: Sequence[str] = ()
) -> list[str]:
    """Expand ignore folders and patterns into de-duplicated ripgrep globs.

    A bare folder name is excluded at any depth, a multi-segment folder only at
    that location. Patterns containing glob metacharacters are used verbatim,
    anything else is treated like a folder.
    """

    excluded: dict[str, None] = {}

    def push(glob: str) -> None:
        sanitized = glob.lstrip("!").strip()
        if sanitized:
            excluded[sanitized.replace("\\", "/")] = None

    for raw_folder in ignore_folders:
        folder = normalize_folder_path(raw_folder)
        if folder:
            for glob in _folder_globs(folder):
                push(glob)

    for raw_pattern in ignore_patterns:
        pattern = raw_pattern.lstrip("!").strip()
        if not pattern:
            continue
        if GLOB_META_PATTERN.search(pattern):
            push(pattern)
            continue
        folder = normalize_folder_path(pattern)
        if folder:
            for glob in _folder_globs(folder):
                push(glob)

    return list(excluded)


def build_search_request(
    program: str,
    root: str,
    terms: Sequence[str],
    *,
    case_sensitive: bool = False,
    word_regexp: bool = False,
    ignore_folders: Sequence[str] = (),
    ignore_patterns: Sequence[str] = (),
) -> SearchRequest | None:
    """Describe the ripgrep invocation for *terms*, or ``None`` when there are none."""

    if not terms:
        return None

    pattern = build_pattern(terms)
    args: list[str] = list(BASE_ARGS)
    excluded = dict.fromkeys([*MEDIA_GLOBS, *build_exclude_globs(ignore_folders, ignore_patterns)])
    for glob in excluded:
        args.extend(("-g", f"!{glob}"))
    args.append("-s" if case_sensitive else "-i")
    if word_regexp:
        args.append("-w")
    args.extend((pattern, root))

    logger.debug("Built search request with %d terms and %d args", len(terms), len(args))
    return SearchRequest(program=program, args=tuple(args), pattern=pattern)
