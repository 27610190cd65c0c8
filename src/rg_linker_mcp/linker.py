"""The "find similar notes and insert links" command."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import NoActiveNoteError, NoCandidatesError, NoKeywordsError
from .keywords import extract_keywords, merge_terms, tokenize_name
from .links import merge_block, render_block
from .scoring import rank_candidates
from .search import run_ripgrep
from .settings import Settings
from .vault import NoteHost

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LinkResult:
    path: str
    links: list[str] = field(default_factory=list)
    used_fallback: bool = False

    @property
    def notice(self) -> str:
        return f"Inserted {len(self.links)} links."


async def find_and_insert_links(host: NoteHost, settings: Settings) -> LinkResult:
    """Search for notes similar to the active note and merge links to them into it."""

    note = host.get_active_note()
    if note is None:
        raise NoActiveNoteError()

    content = await host.read_note_content(note)
    body_terms = extract_keywords(content)
    title_terms = tokenize_name(note.basename)
    terms = merge_terms(body_terms, title_terms)
    if not terms:
        raise NoKeywordsError()
    logger.debug("Extracted %d terms from %s", len(terms), note.path)

    root = host.get_root_path()
    matches = await run_ripgrep(
        settings.rg_path,
        root,
        terms,
        case_sensitive=settings.case_sensitive,
        word_regexp=settings.word_regexp,
        ignore_patterns=settings.ignore_patterns,
        ignore_folders=settings.ignore_search_folders,
        timeout=settings.search_timeout,
    )

    ranking = await rank_candidates(host, matches, note.path, body_terms, title_terms, settings)
    if not ranking.candidates:
        raise NoCandidatesError()

    targets = [candidate.display_name for candidate in ranking.candidates]
    block = render_block(targets)
    await host.process(note, lambda data: merge_block(data, block, settings.insert_place))

    result = LinkResult(path=note.path, links=targets, used_fallback=ranking.used_fallback)
    if result.used_fallback:
        logger.info("No candidate met min_keyword_overlap for %s; used fallback list", note.path)
    logger.info("%s: %s", note.path, result.notice)
    return result
