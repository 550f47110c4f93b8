from __future__ import annotations

"""Small helpers for reading nested config and resolving file globs."""

from pathlib import Path
from typing import Dict, Iterable


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def expand_globs(patterns: Iterable[str], root: Path = Path(".")) -> list[Path]:
    """Resolve glob patterns (``**`` spans directories) to existing files.

    Plain paths are returned when they point at a file. Results are sorted
    and de-duplicated.
    """
    found: set[Path] = set()
    for pat in patterns:
        if any(ch in pat for ch in "*?["):
            found.update(p for p in root.glob(pat) if p.is_file())
        else:
            p = root / pat
            if p.is_file():
                found.add(p)
    return sorted(found)


def relative_target(src: Path, base: Path, dest: Path) -> Path:
    """Map `src` under `base` to the same relative location under `dest`."""
    try:
        rel = src.relative_to(base)
    except ValueError:
        rel = Path(src.name)
    return dest / rel
