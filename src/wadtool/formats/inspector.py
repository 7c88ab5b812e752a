"""Read-only WAD inspection utilities.

Public functions:
- inspect_wad(path) -> dict
- validate_wad(info) -> list[str]
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List

from .constants import WAD_DIRECTORY_SIZE
from .wad import read_directory, real_entries

__all__ = ["inspect_wad", "validate_wad"]


def inspect_wad(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    with p.open("rb") as src:
        entries = real_entries(read_directory(src))
    return {
        "file_size": p.stat().st_size,
        "directory_size": WAD_DIRECTORY_SIZE,
        "entry_count": len(entries),
        "entries": [
            {"index": i, **asdict(e), "end": e.end}
            for i, e in enumerate(entries)
        ],
    }


def validate_wad(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    file_size = info["file_size"]
    previous: Dict[str, Any] | None = None
    for e in info["entries"]:
        idx = e["index"]
        if e["offset"] < WAD_DIRECTORY_SIZE and e["length"]:
            issues.append(f"Entry {idx} starts inside the directory")
        if e["end"] > file_size:
            issues.append(f"Entry {idx} exceeds file size")
        if previous is not None:
            if e["offset"] < previous["offset"]:
                issues.append(f"Entry {idx} is out of offset order")
            elif e["offset"] < previous["end"]:
                issues.append(
                    f"Entry {idx} overlaps entry {previous['index']}"
                )
        previous = e
    return issues
