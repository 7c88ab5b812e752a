"""Bit-packed collision triangle codec and OBJ export.

Each 12-byte record holds three little-endian u32 plane words (x, y, z).
Every word packs one coordinate of all three vertices: a 14-bit base value
plus two signed deltas. X and Y use 9-bit deltas (bits 14..22 and 23..31);
Z keeps only 8 bits per delta (bits 16..23 and 24..31) and is decoded
unsigned. Decoded plane values are 16x the quantized value, which makes one
world unit 4096.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, TextIO, Tuple
import struct

from ..reporting import get_reporter, task
from .constants import FIXED_POINT_ONE, TRIANGLE_RECORD_SIZE

__all__ = [
    "Vec3",
    "Triangle",
    "decode_plane",
    "decode_triangle",
    "iter_triangles",
    "write_obj",
    "convert",
]

Vec3 = Tuple[int, int, int]

_BASE_MASK = 0x3FFF
_U32 = 0xFFFFFFFF


def _as_i32(value: int) -> int:
    value &= _U32
    return value - (1 << 32) if value & 0x80000000 else value


@dataclass(frozen=True, slots=True)
class Triangle:
    v1: Vec3
    v2: Vec3
    v3: Vec3

    @property
    def vertices(self) -> Tuple[Vec3, Vec3, Vec3]:
        return (self.v1, self.v2, self.v3)


def decode_plane(word: int, signed: bool = True) -> Tuple[int, int, int]:
    """Decode one plane word into the three vertices' values on that axis."""
    base = word & _BASE_MASK
    if signed:
        w = _as_i32(word)
        d2 = _as_i32(w << 9) >> 23
        d3 = w >> 23
    else:
        w = word & _U32
        d2 = ((w << 8) & _U32) >> 24
        d3 = w >> 24
    return base << 4, (d2 + base) * 16, (d3 + base) * 16


def decode_triangle(record: bytes) -> Triangle:
    x, y, z = struct.unpack("<III", record)
    xs = decode_plane(x)
    ys = decode_plane(y)
    zs = decode_plane(z, signed=False)
    return Triangle(
        (xs[0], ys[0], zs[0]),
        (xs[1], ys[1], zs[1]),
        (xs[2], ys[2], zs[2]),
    )


def iter_triangles(src: BinaryIO) -> Iterator[Triangle]:
    """Decode records until the first short read; there is no stored count."""
    while True:
        record = src.read(TRIANGLE_RECORD_SIZE)
        if len(record) < TRIANGLE_RECORD_SIZE:
            return
        yield decode_triangle(record)


def _coord(value: int) -> str:
    return repr(value / FIXED_POINT_ONE)


def write_obj(triangles: Iterable[Triangle], out: TextIO) -> int:
    """Write ``v x z -y`` lines for every vertex, then one face per triangle.

    Vertices are not shared; triangle ``i`` uses 1-based indices
    ``3i+1, 3i+2, 3i+3``. Returns the triangle count.
    """
    count = 0
    for tri in triangles:
        for x, y, z in tri.vertices:
            out.write(f"v {_coord(x)} {_coord(z)} {_coord(-y)}\n")
        count += 1
    for i in range(count):
        out.write(f"f {i * 3 + 1} {i * 3 + 2} {i * 3 + 3}\n")
    return count


def convert(source: Path, output: Path | None = None) -> Path:
    """Convert a triangle stream file to a sibling ``.obj`` file."""
    source = Path(source)
    output = Path(output) if output is not None else source.with_suffix(".obj")
    rep = get_reporter()
    with task("triangles.convert", f"Convert {source.name}") as stats:
        with source.open("rb") as src, output.open(
            "w", encoding="utf-8", newline="\n"
        ) as out:
            count = write_obj(iter_triangles(src), out)
        stats.update(triangles=count)
    rep.status(
        "Convert summary: "
        + f"source={source.name} output={output.name} triangles={count}"
    )
    return output

