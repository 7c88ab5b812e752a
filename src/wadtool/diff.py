"""Structured WAD-vs-WAD diff.

Compares two archives entry by entry (length and CRC32 of the payload).
Directory offsets are deliberately ignored: a packed repack moves payloads
but must keep their bytes, which is what this diff checks.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Tuple
import zlib

from .formats.wad import DirectoryEntry, read_directory, real_entries
from .utils.io import copy_exactly

__all__ = ["payload_crcs", "diff_wads"]


class _Crc32Sink:
    def __init__(self) -> None:
        self.crc = 0
        self.size = 0

    def write(self, data: bytes) -> int:
        self.crc = zlib.crc32(data, self.crc)
        self.size += len(data)
        return len(data)


def payload_crcs(path: str | Path) -> List[Tuple[DirectoryEntry, int, int]]:
    """``(entry, bytes_read, crc32)`` for each real directory entry."""
    out: List[Tuple[DirectoryEntry, int, int]] = []
    with Path(path).open("rb") as src:
        entries = real_entries(read_directory(src))
        for entry in entries:
            src.seek(entry.offset)
            sink = _Crc32Sink()
            copy_exactly(src, sink, entry.length)  # type: ignore[arg-type]
            out.append((entry, sink.size, sink.crc & 0xFFFFFFFF))
    return out


def diff_wads(left: str | Path, right: str | Path) -> Dict[str, Any]:
    a = payload_crcs(left)
    b = payload_crcs(right)
    diffs: List[Dict[str, Any]] = []
    for i in range(max(len(a), len(b))):
        if i >= len(a):
            diffs.append({"index": i, "kind": "added", "length": b[i][1]})
            continue
        if i >= len(b):
            diffs.append({"index": i, "kind": "removed", "length": a[i][1]})
            continue
        (_, a_len, a_crc), (_, b_len, b_crc) = a[i], b[i]
        if a_len != b_len:
            diffs.append(
                {"index": i, "kind": "length", "left": a_len, "right": b_len}
            )
        elif a_crc != b_crc:
            diffs.append(
                {
                    "index": i,
                    "kind": "content",
                    "left": f"{a_crc:08x}",
                    "right": f"{b_crc:08x}",
                }
            )
    return {
        "entries": diffs,
        "summary": {
            "count": len(diffs),
            "left_entries": len(a),
            "right_entries": len(b),
        },
    }
