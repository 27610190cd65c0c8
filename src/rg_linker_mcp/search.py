"""Run ripgrep and parse its ``--json`` output into matches."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from .errors import SearchProcessError, SearchTimeoutError
from .query import SearchRequest, build_search_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SearchMatch:
    path: str
    line_number: int


def _line_number(data: dict[str, Any]) -> int:
    submatches = data.get("submatches") or []
    if submatches and isinstance(submatches[0], dict):
        value = submatches[0].get("line_number")
        if value is not None:
            return int(value)
    value = data.get("line_number")
    return int(value) if value is not None else 0


def iter_matches(lines: Iterable[str]) -> Iterator[SearchMatch]:
    """Yield one :class:`SearchMatch` per ``"match"`` record in *lines*.

    Lines that are blank, not JSON, or missing the expected fields are skipped.
    """

    for line in lines:
        if not line.strip():
            continue
        try:
            record = json.loads(line)
            if record.get("type") != "match":
                continue
            data = record["data"]
            yield SearchMatch(path=data["path"]["text"], line_number=_line_number(data))
        except (ValueError, TypeError, KeyError, AttributeError):
            continue


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill *process* if it is still running and reap it."""

    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()


async def execute(request: SearchRequest, timeout: float | None = None) -> list[SearchMatch]:
    """Spawn the process described by *request* and collect its matches."""

    try:
        process = await asyncio.create_subprocess_exec(
            *request.argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise SearchProcessError(f"Cannot run {request.program!r}: {exc}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        await _terminate(process)
        raise SearchTimeoutError(
            f"{request.program!r} did not finish within {timeout} seconds"
        ) from exc
    except BaseException:
        await _terminate(process)
        raise

    output = stdout.decode("utf-8", errors="replace")
    if process.returncode:
        if not output:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise SearchProcessError(
                f"{request.program!r} exited with status {process.returncode}: {detail}"
            )
        logger.warning(
            "%s exited with status %s; using partial output",
            request.program,
            process.returncode,
        )

    matches = list(iter_matches(output.splitlines()))
    logger.debug("Search produced %d matches", len(matches))
    return matches


async def run_ripgrep(
    rg_path: str,
    root: str,
    terms: Sequence[str],
    *,
    case_sensitive: bool = False,
    word_regexp: bool = False,
    ignore_patterns: Sequence[str] = (),
    ignore_folders: Sequence[str] = (),
    timeout: float | None = None,
) -> list[SearchMatch]:
    """Search *root* for any of *terms*; an empty term list searches nothing."""

    request = build_search_request(
        rg_path,
        root,
        terms,
        case_sensitive=case_sensitive,
        word_regexp=word_regexp,
        ignore_folders=ignore_folders,
        ignore_patterns=ignore_patterns,
    )
    if request is None:
        return []
    return await execute(request, timeout=timeout)
