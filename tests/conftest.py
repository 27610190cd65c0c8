import json
import stat
from collections.abc import Iterable
from pathlib import Path

import pytest


def match_line(path: Path | str, line_number: int = 1, text: str = "hit") -> str:
    """A ripgrep ``--json`` match record for *path*."""

    return json.dumps(
        {
            "type": "match",
            "data": {
                "path": {"text": str(path)},
                "lines": {"text": f"{text}\n"},
                "line_number": line_number,
                "absolute_offset": 0,
                "submatches": [{"match": {"text": text}, "start": 0, "end": len(text)}],
            },
        }
    )


SUMMARY_LINE = json.dumps({"type": "summary", "data": {"elapsed_total": {"secs": 0}}})


@pytest.fixture
def make_tool(tmp_path):
    """Write an executable stand-in for ``rg`` that prints fixed output.

    The arguments it was called with are stored next to it with a ``.args`` suffix
    and its process id with a ``.pid`` suffix.
    """

    def _make(
        lines: Iterable[str] = (),
        *,
        exit_code: int = 0,
        sleep: float | None = None,
        name: str = "fake-rg",
    ) -> Path:
        script = tmp_path / "bin" / name
        script.parent.mkdir(parents=True, exist_ok=True)
        args_file = script.with_suffix(".args")
        pid_file = script.with_suffix(".pid")
        body = [
            "#!/bin/sh",
            f"printf '%s\\n' \"$@\" > '{args_file}'",
            f"echo $$ > '{pid_file}'",
        ]
        if sleep is not None:
            body.append(f"exec sleep {sleep}")
        output = list(lines)
        if output:
            body.append("cat <<'__RG_OUTPUT__'")
            body.extend(output)
            body.append("__RG_OUTPUT__")
        body.append(f"exit {exit_code}")
        script.write_text("\n".join(body) + "\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


def tool_args(tool: Path) -> list[str]:
    return tool.with_suffix(".args").read_text(encoding="utf-8").splitlines()
