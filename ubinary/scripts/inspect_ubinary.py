"""Command-line inspection of ubinary files.

Examples
--------
List the tags of a file::

    python -m ubinary.scripts.inspect_ubinary run.bin --list

Decode two tags and print the field summary::

    python -m ubinary.scripts.inspect_ubinary run.bin --tags settings,scan

Decode every *.bin file below a folder, keeping going past broken segments::

    python -m ubinary.scripts.inspect_ubinary data/ --pattern "\\.bin$" --recursive --lenient
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Sequence

from ubinary.errors import UbinaryError
from ubinary.ingest.assembler import UbinaryReaderConfig
from ubinary.ingest.discovery import list_files
from ubinary.ingest.reader import UbinaryReader
from ubinary.models.segments import DecodedFile
from ubinary.models.values import describe


def _print_tree(value: Any, indent: str = "  ", depth: int = 0, max_depth: int = 3) -> None:
    if not isinstance(value, dict):
        print(f"{indent * (depth + 1)}{describe(value)}")
        return
    for k, v in value.items():
        print(f"{indent * (depth + 1)}{k}: {describe(v)}")
        if isinstance(v, dict) and depth + 1 < max_depth:
            _print_tree(v, indent, depth + 1, max_depth)


def _summarize(res: DecodedFile, max_depth: int) -> None:
    if res.is_tagged:
        print(f"  tags: {', '.join(res.tags) if res.tags else '<none decoded>'}")
    for s in res.segments:
        label = s.tag if s.tag is not None else "<untagged>"
        print(f"  segment {label}: bytes {s.offset}..{s.end} ({s.n_bytes} bytes)")
    _print_tree(res.data, depth=0, max_depth=max_depth)
    for w in res.warnings:
        print(f"[warn] {w}")


def _split_csv(s: Optional[str]) -> Optional[List[str]]:
    if not s:
        return None
    return [t.strip() for t in s.split(",") if t.strip()]


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    import textwrap

    p = argparse.ArgumentParser(
        prog="python -m ubinary.scripts.inspect_ubinary",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Inspect ubinary files: list their tags or decode them and print a field summary.

            PATH may be a single file or a folder; folders are filtered with --pattern
            (regular expression on the relative path) and optionally walked with --recursive.
            """
        ),
    )
    p.add_argument("path", help="File or folder to inspect")
    p.add_argument("--list", action="store_true", help="Only list the tags of each file")
    p.add_argument("--tags", default=None, help="Comma-separated tags to decode (default: all)")
    p.add_argument("--by-tag", action="store_true", help="Key the result by tag instead of merging fields")
    p.add_argument("--lenient", action="store_true", help="Skip failing segments instead of aborting")
    p.add_argument("--pattern", default=None, help="Regular expression filter for folder mode")
    p.add_argument("--recursive", action="store_true", help="Descend into subfolders in folder mode")
    p.add_argument("--depth", type=int, default=3, help="Depth of nested clusters to print")

    ns = p.parse_args(list(argv) if argv is not None else None)

    cfg = UbinaryReaderConfig(layout="by_tag" if ns.by_tag else "merged", strict=not ns.lenient)
    reader = UbinaryReader(cfg)
    target = Path(ns.path).expanduser()

    if target.is_dir():
        files = list_files(target, pattern=ns.pattern, recursive=ns.recursive)
        print(f"[info] {len(files)} files in {target}")
    else:
        files = [target]

    n_failed = 0
    for f in files:
        print(f"{f}:")
        try:
            if ns.list:
                tags = reader.list_tags(f)
                if not tags:
                    print("  <no tags>")
                for t in tags:
                    print(f"  {t}")
                continue
            res = reader.read(f, tags=_split_csv(ns.tags))
        except (UbinaryError, FileNotFoundError) as e:
            n_failed += 1
            print(f"[warn] failed ({type(e).__name__}: {e})")
            continue
        _summarize(res, max_depth=ns.depth)

    return 1 if n_failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
