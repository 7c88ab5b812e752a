"""Collision container: cascading-offset section parser and rebuild.

The container is a contiguous chain of sections. Most sections start with a
few little-endian u32 header fields, one of which holds the distance from the
section start to a later section; the payload length is that distance minus
the header bytes already consumed. Payload lengths are never stored directly,
except where a count is multiplied by a fixed record stride.

``COLLISION_RULES`` is the single source of truth for the layout. The parser
is an interpreter over that table: for every rule it reads the header fields,
derives the payload length, and copies the payload to ``<name>.dat``.

Section 8 is the odd one out: its header holds eight sub-region offsets plus
the offset of section 9, in no particular order. The non-zero offsets are
sorted and consecutive offsets are subtracted; a zero offset means "absent"
and consumes no bytes.

Every section's raw header fields are recorded in the manifest, so
``rebuild_collision`` reproduces the source byte for byte.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple
import struct

from ..config.models import CollisionLayout
from ..logging import get_logger
from ..manifest import CollisionManifest, SectionRecord, now
from ..reporting import get_reporter, task
from ..utils.io import copy_exactly, ensure_dir, read_u32s
from .constants import (
    COLLISION_OFFSET_STRIDE,
    COLLISION_RECORD_STRIDE,
    COLLISION_SECTION_13_SIZE,
    COLLISION_SUBTABLE_FIELDS,
    COLLISION_SUBTABLE_SLOTS,
    COLLISION_VEC3_SIZE,
    COPY_TO_EOF,
)
from .errors import E_LENGTH_UNDERFLOW, E_SUBTABLE_ORDER, SectionLayoutError

__all__ = [
    "NEXT",
    "RECORDS",
    "COUNT",
    "DERIVED",
    "FIXED",
    "SUBTABLE",
    "TAIL",
    "SectionRule",
    "COLLISION_RULES",
    "SUBTABLE_FIELD_NAMES",
    "subtable_regions",
    "unpack_collision",
    "rebuild_collision",
]

# Payload length rule kinds
NEXT = "next"  # offset field - bias (bias defaults to header size)
RECORDS = "records"  # (offset field - bias) // stride * stride
COUNT = "count"  # count field * stride
DERIVED = "derived"  # computed from previously parsed values
FIXED = "fixed"  # constant size
SUBTABLE = "subtable"  # section 8 sorted sub-offsets
TAIL = "tail"  # everything up to end of file

Values = Dict[str, int]

SUBTABLE_FIELD_NAMES = tuple(
    f"sub_{i}_offset" for i in range(COLLISION_SUBTABLE_SLOTS)
) + ("reserved", "section_9_offset")
assert len(SUBTABLE_FIELD_NAMES) == COLLISION_SUBTABLE_FIELDS


@dataclass(frozen=True, slots=True)
class SectionRule:
    name: str
    fields: Tuple[str, ...] = ()
    kind: str = NEXT
    key: Optional[str] = None
    bias: Optional[int] = None
    stride: int = 0
    derive: Optional[Callable[[Values], int]] = None

    @property
    def header_size(self) -> int:
        return 4 * len(self.fields)

    @property
    def artifact_name(self) -> str:
        return f"{self.name}.bin" if self.kind == TAIL else f"{self.name}.dat"


def _section_2_length(values: Values) -> int:
    # Section 1's later_offset is measured from the start of section 1 and
    # points past section 2; peel off everything parsed since then.
    return (
        values["section_1.later_offset"]
        - 8
        - values["section_1.length"]
        - 8
        - values["section_2_offsets.length"]
    )


COLLISION_RULES: Tuple[SectionRule, ...] = (
    SectionRule("section_0", ("next_offset", "data_len"), NEXT, "next_offset"),
    SectionRule(
        "section_1",
        ("later_offset", "next_offset"),
        RECORDS,
        "next_offset",
        bias=4,
        stride=COLLISION_RECORD_STRIDE,
    ),
    SectionRule(
        "section_2_offsets",
        ("count", "later_offset"),
        COUNT,
        "count",
        stride=COLLISION_OFFSET_STRIDE,
    ),
    SectionRule("section_2", kind=DERIVED, derive=_section_2_length),
    SectionRule("section_3", ("next_offset",), NEXT, "next_offset"),
    SectionRule("section_5", ("next_offset",), NEXT, "next_offset"),
    SectionRule(
        "collision_types", ("next_offset", "count"), NEXT, "next_offset"
    ),
    SectionRule("section_7", ("next_offset",), NEXT, "next_offset"),
    SectionRule("vec3", kind=FIXED, stride=COLLISION_VEC3_SIZE),
    SectionRule("section_8", SUBTABLE_FIELD_NAMES, SUBTABLE),
    SectionRule("section_9", ("next_offset",), NEXT, "next_offset"),
    SectionRule("section_10", ("later_offset", "count"), NEXT, "later_offset"),
    SectionRule("section_11", ("later_offset", "count"), NEXT, "later_offset"),
    SectionRule("section_12", ("later_offset", "count"), NEXT, "later_offset"),
    SectionRule("section_13", kind=FIXED, stride=COLLISION_SECTION_13_SIZE),
    SectionRule("section_14", ("next_offset",), NEXT, "next_offset"),
    SectionRule("tail", kind=TAIL),
)


def _underflow(name: str, length: int, context: Values) -> SectionLayoutError:
    return SectionLayoutError(
        code=E_LENGTH_UNDERFLOW,
        message=f"Derived length for {name} is negative ({length})",
        context={"section": name, "length": length, **context},
    )


def _payload_length(rule: SectionRule, values: Values) -> int:
    """Payload length for every rule kind except SUBTABLE and TAIL."""
    if rule.kind == FIXED:
        return rule.stride
    if rule.kind == DERIVED:
        assert rule.derive is not None
        length = rule.derive(values)
        if length < 0:
            raise _underflow(rule.name, length, {})
        return length
    field = values[f"{rule.name}.{rule.key}"]
    if rule.kind == COUNT:
        return field * rule.stride
    bias = rule.header_size if rule.bias is None else rule.bias
    length = field - bias
    if length < 0:
        raise _underflow(rule.name, length, {"field": field, "bias": bias})
    if rule.kind == RECORDS:
        return length // rule.stride * rule.stride
    return length


def subtable_regions(
    fields: Tuple[int, ...], section9_bias: int = 0
) -> List[Tuple[str, int, int]]:
    """Split section 8 into ``(name, relative_offset, length)`` regions.

    Offsets are relative to the start of section 8. Zero slots are dropped
    before sorting so they never act as a boundary. Bytes between the header
    and the first sub-region come back as ``section_8_lead``.
    """
    header_size = 4 * COLLISION_SUBTABLE_FIELDS
    pairs = [
        (offset, f"section_8_{i}")
        for i, offset in enumerate(fields[:COLLISION_SUBTABLE_SLOTS])
        if offset != 0
    ]
    section_9 = fields[-1] + section9_bias
    pairs.append((section_9, "section_9"))
    # Ties sort section 9 last so an equal sub-offset becomes an empty region
    pairs.sort(key=lambda p: (p[0], p[1] == "section_9"))
    if pairs[-1][1] != "section_9":
        raise SectionLayoutError(
            code=E_SUBTABLE_ORDER,
            message="Section 8 sub-offset lies beyond the section 9 boundary",
            context={"offsets": list(fields), "section_9": section_9},
        )
    lead = pairs[0][0] - header_size
    if lead < 0:
        raise _underflow(
            "section_8_lead", lead, {"first_offset": pairs[0][0]}
        )
    regions: List[Tuple[str, int, int]] = []
    if lead:
        regions.append(("section_8_lead", header_size, lead))
    for (offset, name), (next_offset, _) in zip(pairs, pairs[1:]):
        regions.append((name, offset, next_offset - offset))
    return regions


class _SectionWriter:
    """Owns the source cursor for one parse; emits artifacts in order."""

    def __init__(self, src: BinaryIO, output_dir: Path):
        self.src = src
        self.output_dir = output_dir
        self.logger = get_logger()

    def emit(self, name: str, artifact: str, length: int) -> Tuple[Path, int]:
        start = self.src.tell()
        dst = self.output_dir / artifact
        with dst.open("wb") as out:
            copied = copy_exactly(self.src, out, length)
        if copied != length and length != COPY_TO_EOF:
            self.logger.warning(
                "Section %s truncated: wanted %d bytes at %d, read %d",
                name,
                length,
                start,
                copied,
            )
        return dst, copied


def unpack_collision(
    collision_file: Path,
    output_dir: Path,
    layout: CollisionLayout | None = None,
) -> CollisionManifest:
    layout = layout or CollisionLayout()
    collision_file = Path(collision_file)
    output_dir = ensure_dir(Path(output_dir))
    logger = get_logger()
    rep = get_reporter()
    manifest = CollisionManifest(
        timestamp=now(), source_size=collision_file.stat().st_size
    )
    values: Values = {}
    total_bytes = 0

    with task(
        "collision.sections", "Split collision sections", total=len(COLLISION_RULES)
    ) as stats:
        with collision_file.open("rb") as src:
            writer = _SectionWriter(src, output_dir)
            for rule in COLLISION_RULES:
                start = src.tell()
                fields = read_u32s(
                    src, len(rule.fields), rule.name, SectionLayoutError
                )
                for fname, value in zip(rule.fields, fields):
                    values[f"{rule.name}.{fname}"] = value

                if rule.kind == SUBTABLE:
                    manifest.sections.append(
                        SectionRecord(rule.name, start, list(fields))
                    )
                    for name, rel, length in subtable_regions(
                        fields, layout.section9_bias
                    ):
                        sub_start = src.tell()
                        if sub_start != start + rel:
                            logger.debug(
                                "%s expected at %d, cursor at %d",
                                name,
                                start + rel,
                                sub_start,
                            )
                        path, copied = writer.emit(name, f"{name}.dat", length)
                        manifest.sections.append(
                            SectionRecord(name, sub_start, [], copied, path)
                        )
                        total_bytes += copied
                    values[f"{rule.name}.length"] = src.tell() - start
                else:
                    length = (
                        COPY_TO_EOF
                        if rule.kind == TAIL
                        else _payload_length(rule, values)
                    )
                    path, copied = writer.emit(
                        rule.name, rule.artifact_name, length
                    )
                    values[f"{rule.name}.length"] = copied
                    manifest.sections.append(
                        SectionRecord(rule.name, start, list(fields), copied, path)
                    )
                    total_bytes += copied
                logger.debug(
                    "%s at %d: fields=%s length=%d",
                    rule.name,
                    start,
                    list(fields),
                    values[f"{rule.name}.length"],
                )
                rep.advance("collision.sections", current_item=rule.name)
        stats.update(sections=len(manifest.sections), bytes=total_bytes)
    rep.status(
        "Unpack summary: "
        + f"kind=collision source={collision_file.name} sections={len(manifest.sections)} bytes={total_bytes}"
    )
    return manifest


def rebuild_collision(manifest: CollisionManifest, output_file: Path) -> int:
    """Write header fields then payload for every section; returns size."""
    output_file = Path(output_file)
    rep = get_reporter()
    with task(
        "collision.rebuild", "Rebuild collision", total=len(manifest.sections)
    ) as stats:
        with output_file.open("wb") as out:
            for rec in manifest.sections:
                if rec.fields:
                    out.write(struct.pack(f"<{len(rec.fields)}I", *rec.fields))
                if rec.path is not None:
                    with Path(rec.path).open("rb") as src:
                        copy_exactly(src, out, COPY_TO_EOF)
                rep.advance("collision.rebuild", current_item=rec.name)
            written = out.tell()
        stats.update(sections=len(manifest.sections), bytes=written)
    if manifest.source_size and written != manifest.source_size:
        get_logger().warning(
            "Rebuilt collision is %d bytes, source was %d",
            written,
            manifest.source_size,
        )
    rep.status(
        "Rebuild summary: "
        + f"kind=collision output={output_file.name} sections={len(manifest.sections)} bytes={written}"
    )
    return written
