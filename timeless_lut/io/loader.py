"""Locate and read the jewel data files of a data directory.

Every jewel ships as ``<Stem>.zip`` except Glorious Vanity, whose stream is
split into ``GloriousVanity.zip.part0``, ``.part1`` ... .  The parts are one
deflate stream cut into pieces, so they must be joined in part order before
inflating.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, List, Sequence

from ..formats import parse_jewel_type

LOG = logging.getLogger(__name__)

__all__ = ["DATA_SUFFIX", "jewel_source_paths", "read_jewel_bytes"]

DATA_SUFFIX = ".zip"
_PART_RE = re.compile(r"\.part(?P<index>\d+)$")


def _part_index(path: Path) -> int:
    match = _PART_RE.search(path.name)
    if match is None:  # pragma: no cover - filtered by the glob below
        raise ValueError(f"{path} is not a part file")
    return int(match.group("index"))


def jewel_source_paths(data_dir: Path, jewel_type: Any) -> List[Path]:
    """Return the file(s) holding ``jewel_type``'s stream, in read order.

    A single ``<Stem>.zip`` wins over part files.  An empty list means the
    jewel has no data in ``data_dir``.
    """

    member = parse_jewel_type(jewel_type)
    directory = Path(data_dir)
    single = directory / f"{member.value}{DATA_SUFFIX}"
    if single.is_file():
        return [single]

    parts = [
        path
        for path in directory.glob(f"{member.value}{DATA_SUFFIX}.part*")
        if path.is_file() and _PART_RE.search(path.name)
    ]
    parts.sort(key=_part_index)
    indices = [_part_index(path) for path in parts]
    if indices and indices != list(range(indices[0], indices[0] + len(indices))):
        LOG.warning("%s parts are not contiguous: %s", member.value, indices)
    return parts


def read_jewel_bytes(paths: Sequence[Path]) -> bytes:
    """Concatenate the files in ``paths`` byte for byte, in the given order."""

    chunks = []
    for path in paths:
        data = Path(path).read_bytes()
        LOG.debug("Read %d bytes from %s", len(data), path)
        chunks.append(data)
    return b"".join(chunks)
