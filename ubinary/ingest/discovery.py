from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ubinary.ingest.assembler import UbinaryReaderConfig
from ubinary.ingest.reader import UbinaryReader
from ubinary.models.segments import DecodedFile


def list_files(
    root: str | Path = ".",
    pattern: Optional[str] = None,
    recursive: bool = False,
) -> List[Path]:
    """
    List the files of a folder, sorted by path.

    pattern is a regular expression searched (not anchored) in the path relative
    to root, using '/' separators. recursive descends into subfolders.
    """
    base = Path(root).expanduser().resolve()
    if not base.exists() or not base.is_dir():
        raise FileNotFoundError(f"Not a directory: {base}")

    rx = re.compile(pattern) if pattern else None
    it = base.rglob("*") if recursive else base.iterdir()
    out: List[Path] = []
    for p in it:
        if not p.is_file():
            continue
        if rx is not None and not rx.search(p.relative_to(base).as_posix()):
            continue
        out.append(p)
    return sorted(out)


def apply_to_files(
    fun: Optional[Callable[[Path], Any]] = None,
    root: str | Path = ".",
    pattern: Optional[str] = None,
    recursive: bool = False,
) -> List[Any]:
    """Apply fun to every file selected by list_files(); fun=None returns the paths."""
    files = list_files(root, pattern=pattern, recursive=recursive)
    if fun is None:
        return files
    return [fun(p) for p in files]


def decode_folder(
    root: str | Path = ".",
    pattern: Optional[str] = None,
    recursive: bool = False,
    config: Optional[UbinaryReaderConfig] = None,
) -> Dict[Path, DecodedFile]:
    """Decode every selected file of a folder, keyed by path."""
    reader = UbinaryReader(config)
    return {p: reader.read(p) for p in list_files(root, pattern=pattern, recursive=recursive)}
