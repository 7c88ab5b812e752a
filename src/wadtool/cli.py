"""Command line interface for wadtool."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import (
    MANIFEST_NAME,
    convert_triangles,
    inspect_wad,
    repack_collision,
    repack_level,
    repack_wad,
    unpack_collision,
    unpack_level,
    unpack_wad,
)
from .diff import diff_wads
from .formats.errors import WadToolError
from .formats.inspector import validate_wad
from .logging import configure_logging, get_logger, section, step
from .reporting import (
    REPORTERS,
    PlainReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)


def _wad_unpack_cmd(args: argparse.Namespace) -> int:
    unpack_wad(args.wad, args.output, args.output / MANIFEST_NAME)
    return 0


def _wad_repack_cmd(args: argparse.Namespace) -> int:
    repack_wad(args.manifest, args.output, preserve_offsets=args.preserve_offsets)
    return 0


def _level_unpack_cmd(args: argparse.Namespace) -> int:
    unpack_level(args.level, args.output, args.layout, args.output / MANIFEST_NAME)
    return 0


def _level_repack_cmd(args: argparse.Namespace) -> int:
    repack_level(args.manifest, args.output)
    return 0


def _collision_unpack_cmd(args: argparse.Namespace) -> int:
    unpack_collision(
        args.collision, args.output, args.layout, args.output / MANIFEST_NAME
    )
    return 0


def _collision_repack_cmd(args: argparse.Namespace) -> int:
    repack_collision(args.manifest, args.output)
    return 0


def _obj_cmd(args: argparse.Namespace) -> int:
    convert_triangles(args.triangles, args.output)
    return 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    step(f"inspecting {args.wad.name}")
    info = inspect_wad(args.wad)
    issues = validate_wad(info)
    rep = get_reporter()
    rep.status(
        "Inspect summary: "
        + f"file={args.wad.name} size={info['file_size']} entries={info['entry_count']} issues={len(issues)}"
    )
    for issue in issues:
        rep.warning(issue)
    if args.json:
        rep.flush()
        print(json.dumps({**info, "issues": issues}, indent=2, sort_keys=True))
    return 1 if issues else 0


def _diff_cmd(args: argparse.Namespace) -> int:
    step("diffing wad files")
    result = diff_wads(args.left, args.right)
    rep = get_reporter()
    summary = result["summary"]
    with section("Diff results"):
        rep.status(
            "Diff summary: "
            + f"count={summary['count']} left={args.left.name} right={args.right.name}"
        )
    rep.flush()
    print(json.dumps(result, indent=2, sort_keys=True))
    return 1 if summary["count"] else 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="wadtool", description="WAD archive and level container tool"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    wu = sub.add_parser("wad-unpack", help="Split a WAD into numbered files")
    wu.add_argument("wad", type=Path)
    wu.add_argument("output", type=Path)
    wu.set_defaults(func=_wad_unpack_cmd)

    wr = sub.add_parser("wad-repack", help="Rebuild a WAD from a manifest")
    wr.add_argument("manifest", type=Path)
    wr.add_argument("output", type=Path)
    wr.add_argument(
        "--preserve-offsets",
        action="store_true",
        help="Write payloads at their original offsets instead of packing them",
    )
    wr.set_defaults(func=_wad_repack_cmd)

    lu = sub.add_parser("level-unpack", help="Split a level container")
    lu.add_argument("level", type=Path)
    lu.add_argument("output", type=Path)
    lu.add_argument("--layout", type=Path, help="Layout config (JSON/YAML)")
    lu.set_defaults(func=_level_unpack_cmd)

    lr = sub.add_parser("level-repack", help="Rebuild a level container")
    lr.add_argument("manifest", type=Path)
    lr.add_argument("output", type=Path)
    lr.set_defaults(func=_level_repack_cmd)

    cu = sub.add_parser("collision-unpack", help="Split a collision container")
    cu.add_argument("collision", type=Path)
    cu.add_argument("output", type=Path)
    cu.add_argument("--layout", type=Path, help="Layout config (JSON/YAML)")
    cu.set_defaults(func=_collision_unpack_cmd)

    cr = sub.add_parser("collision-repack", help="Rebuild a collision container")
    cr.add_argument("manifest", type=Path)
    cr.add_argument("output", type=Path)
    cr.set_defaults(func=_collision_repack_cmd)

    o = sub.add_parser("obj", help="Convert a triangle stream to OBJ")
    o.add_argument("triangles", type=Path)
    o.add_argument("--output", type=Path)
    o.set_defaults(func=_obj_cmd)

    i = sub.add_parser("inspect", help="Inspect and validate a WAD")
    i.add_argument("wad", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON report")
    i.set_defaults(func=_inspect_cmd)

    d = sub.add_parser("diff", help="Compare the payloads of two WADs")
    d.add_argument("left", type=Path)
    d.add_argument("right", type=Path)
    d.set_defaults(func=_diff_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    requested = args.reporter
    # Rich progress only makes sense on a terminal
    if requested == "rich" and not sys.stderr.isatty():
        requested = "plain"
    set_reporter(REPORTERS.get(requested, PlainReporter)())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except WadToolError as e:
        get_logger().error(str(e))
        return 2
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
