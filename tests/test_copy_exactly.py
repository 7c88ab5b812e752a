import io

from wadtool.utils.io import copy_exactly, copy_region


def test_copy_exactly_stops_at_requested_length():
    src = io.BytesIO(bytes(range(100)))
    dst = io.BytesIO()
    copied = copy_exactly(src, dst, 40, chunk_size=7)
    assert copied == 40
    assert dst.getvalue() == bytes(range(40))
    # Cursor advanced by exactly the bytes transferred
    assert src.tell() == 40


def test_copy_exactly_truncates_silently_on_short_source():
    src = io.BytesIO(b"x" * 10)
    src.seek(4)
    dst = io.BytesIO()
    copied = copy_exactly(src, dst, 1000)
    assert copied == 6
    assert dst.getvalue() == b"x" * 6


def test_copy_exactly_zero_and_negative_lengths_copy_nothing():
    src = io.BytesIO(b"abc")
    dst = io.BytesIO()
    assert copy_exactly(src, dst, 0) == 0
    assert copy_exactly(src, dst, -5) == 0
    assert dst.getvalue() == b""
    assert src.tell() == 0


def test_copy_region_uses_its_own_handle(tmp_path):
    source = tmp_path / "blob.bin"
    source.write_bytes(bytes(range(64)))
    dst = tmp_path / "out.bin"
    assert copy_region(source, 60, 16, dst) == 4
    assert dst.read_bytes() == bytes(range(60, 64))
