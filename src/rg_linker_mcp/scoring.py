"""Re-score raw search hits against the source note's vocabulary."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from .keywords import extract_keywords, tokenize_name
from .paths import relative_note_path
from .search import SearchMatch
from .settings import Settings
from .vault import NoteHost

logger = logging.getLogger(__name__)

CANDIDATE_POOL_LIMIT = 60
RAW_HIT_CAP = 2


@dataclass(frozen=True, slots=True)
class Candidate:
    path: str
    display_name: str
    overlap_body: int
    overlap_title: int
    total_overlap: int
    similarity: float
    score: float


@dataclass(frozen=True, slots=True)
class Ranking:
    candidates: list[Candidate]
    used_fallback: bool


def count_hits(matches: Iterable[SearchMatch], root: str, source_path: str) -> Counter[str]:
    """Count matches per vault-relative path, leaving out the source note.

    Hits outside *root* keep their path as reported.
    """

    hits: Counter[str] = Counter()
    for match in matches:
        relative = relative_note_path(match.path, root) or match.path.replace("\\", "/")
        if relative == source_path:
            continue
        hits[relative] += 1
    return hits


def select_pool(hits: Counter[str], min_score: int) -> list[tuple[str, int]]:
    """Pick the paths worth re-reading, highest hit count first.

    Falls back to the unfiltered top of the ranking when nothing reaches
    *min_score*.
    """

    ranked = sorted(hits.items(), key=lambda item: item[1], reverse=True)
    pool = [item for item in ranked if item[1] >= min_score][:CANDIDATE_POOL_LIMIT]
    return pool or ranked[:CANDIDATE_POOL_LIMIT]


def score_candidate(
    path: str,
    body_terms: Iterable[str],
    title_terms: Iterable[str],
    source_body: set[str],
    source_title: set[str],
    raw_hits: int,
    title_weight: float,
) -> Candidate | None:
    """Compute overlap, similarity and score; ``None`` when nothing is shared."""

    body = list(dict.fromkeys(body_terms))
    title = list(dict.fromkeys(title_terms))
    overlap_body = sum(1 for term in body if term in source_body)
    overlap_title = sum(1 for term in title if term in source_title or term in source_body)
    total_overlap = overlap_body + overlap_title
    if total_overlap == 0:
        return None

    union = source_body | source_title | set(body) | set(title)
    # Clamped: a term in both body and title counts twice in total_overlap.
    similarity = min(1.0, total_overlap / (len(union) or 1))
    weighted = overlap_body + title_weight * overlap_title
    score = weighted * (1 + similarity) + min(RAW_HIT_CAP, raw_hits)

    display_name = path[: -len(".md")] if path.endswith(".md") else path
    return Candidate(
        path=path,
        display_name=display_name,
        overlap_body=overlap_body,
        overlap_title=overlap_title,
        total_overlap=total_overlap,
        similarity=similarity,
        score=score,
    )


def sort_key(candidate: Candidate) -> tuple[float, float, int, int, str]:
    return (
        -candidate.score,
        -candidate.similarity,
        -candidate.overlap_title,
        -candidate.overlap_body,
        candidate.display_name,
    )


def finalize(
    primary: list[Candidate], fallback: list[Candidate], max_links: int
) -> Ranking:
    chosen = primary or fallback
    ordered = sorted(chosen, key=sort_key)[:max_links]
    return Ranking(candidates=ordered, used_fallback=not primary and bool(fallback))


async def rank_candidates(
    host: NoteHost,
    matches: Iterable[SearchMatch],
    source_path: str,
    source_body: Iterable[str],
    source_title: Iterable[str],
    settings: Settings,
) -> Ranking:
    """Turn raw matches into at most ``settings.max_links`` ranked candidates."""

    root = host.get_root_path()
    hits = count_hits(matches, root, source_path)
    pool = select_pool(hits, settings.min_score)
    logger.debug("Scoring %d of %d hit paths", len(pool), len(hits))

    body_set = set(source_body)
    title_set = set(source_title)
    primary: list[Candidate] = []
    fallback: list[Candidate] = []
    for path, raw_hits in pool:
        if not path.endswith(".md"):
            continue
        note = host.resolve_note_by_path(path)
        if note is None:
            continue
        try:
            content = await host.read_note_content(note)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable note %s: %s", path, exc)
            continue

        candidate = score_candidate(
            note.path,
            extract_keywords(content),
            tokenize_name(note.basename),
            body_set,
            title_set,
            raw_hits,
            settings.title_weight,
        )
        if candidate is None:
            continue
        fallback.append(candidate)
        if candidate.total_overlap >= settings.min_keyword_overlap:
            primary.append(candidate)

    return finalize(primary, fallback, settings.max_links)
