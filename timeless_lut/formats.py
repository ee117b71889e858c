"""Static description of the timeless jewel lookup table formats.

The seed ranges, the Glorious Vanity node count and the record length pattern
table all come from the upstream data files and change whenever those files
are regenerated.  They live here as plain data so that a format revision is a
data edit: the decoders only ever receive the values through
:func:`resolve_format`.

Overrides can be supplied as JSON (see :func:`load_format_overrides`)::

    {"ElegantHubris": {"seed_min": 2000, "seed_max": 160000}}
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import LutFormatError, UnknownJewelType

LOG = logging.getLogger(__name__)

__all__ = [
    "JewelType",
    "DecodeAlgorithm",
    "JewelFormat",
    "FORMATS",
    "GLORIOUS_VANITY_NODE_COUNT",
    "RECORD_PATTERNS",
    "TOKEN_SEPARATOR",
    "parse_jewel_type",
    "resolve_format",
    "load_format_overrides",
]


class JewelType(str, enum.Enum):
    """Timeless jewel subtypes, valued by the stem of their data file."""

    LETHAL_PRIDE = "LethalPride"
    BRUTAL_RESTRAINT = "BrutalRestraint"
    GLORIOUS_VANITY = "GloriousVanity"
    ELEGANT_HUBRIS = "ElegantHubris"
    MILITANT_FAITH = "MilitantFaith"

    def __str__(self) -> str:
        return self.value


class DecodeAlgorithm(enum.Enum):
    """Tag selecting which decoder understands a jewel's buffer layout."""

    FLAT = "flat"
    HEADERED_VARIABLE = "headered_variable"


# Number of passive nodes covered by the headered Glorious Vanity table.  It is
# fixed by the data file and does not follow from the buffer size.
GLORIOUS_VANITY_NODE_COUNT = 1678

# Record length -> (stat count, roll count) for headered records.
RECORD_PATTERNS: Mapping[int, Tuple[int, int]] = {
    2: (1, 1),
    3: (1, 2),
    6: (3, 3),
    8: (4, 4),
}

TOKEN_SEPARATOR = "|"


@dataclass(frozen=True)
class JewelFormat:
    """Seed range and decode strategy for one jewel subtype."""

    jewel_type: JewelType
    seed_min: int
    seed_max: int
    algorithm: DecodeAlgorithm = DecodeAlgorithm.FLAT
    node_count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.seed_min < 0:
            raise LutFormatError(f"{self.jewel_type}: seed_min {self.seed_min} is negative")
        if self.seed_max < self.seed_min:
            raise LutFormatError(
                f"{self.jewel_type}: seed_max {self.seed_max} is below seed_min {self.seed_min}"
            )
        if self.node_count is not None and self.node_count <= 0:
            raise LutFormatError(
                f"{self.jewel_type}: node_count must be positive, got {self.node_count}"
            )
        if self.algorithm is DecodeAlgorithm.HEADERED_VARIABLE and self.node_count is None:
            raise LutFormatError(f"{self.jewel_type}: headered formats need a node_count")

    @property
    def seed_size(self) -> int:
        return self.seed_max - self.seed_min + 1

    @property
    def seed_range(self) -> Tuple[int, int]:
        return (self.seed_min, self.seed_max)

    def contains(self, seed: int) -> bool:
        return self.seed_min <= seed <= self.seed_max

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "jewel_type": self.jewel_type.value,
            "seed_min": self.seed_min,
            "seed_max": self.seed_max,
            "algorithm": self.algorithm.value,
        }
        if self.node_count is not None:
            data["node_count"] = self.node_count
        return data


FORMATS: Mapping[JewelType, JewelFormat] = {
    JewelType.LETHAL_PRIDE: JewelFormat(JewelType.LETHAL_PRIDE, 10000, 18000),
    JewelType.BRUTAL_RESTRAINT: JewelFormat(JewelType.BRUTAL_RESTRAINT, 500, 8000),
    JewelType.GLORIOUS_VANITY: JewelFormat(
        JewelType.GLORIOUS_VANITY,
        100,
        8000,
        DecodeAlgorithm.HEADERED_VARIABLE,
        GLORIOUS_VANITY_NODE_COUNT,
    ),
    JewelType.ELEGANT_HUBRIS: JewelFormat(JewelType.ELEGANT_HUBRIS, 2000, 160000),
    JewelType.MILITANT_FAITH: JewelFormat(JewelType.MILITANT_FAITH, 2000, 10000),
}


def parse_jewel_type(value: Any) -> JewelType:
    """Return the :class:`JewelType` named by ``value``.

    Accepts enum members, file stems (``"LethalPride"``) and member names
    (``"LETHAL_PRIDE"``, case insensitive).
    """

    if isinstance(value, JewelType):
        return value
    text = str(value).strip()
    for member in JewelType:
        if text == member.value or text.upper() == member.name:
            return member
    lowered = text.lower()
    for member in JewelType:
        if lowered == member.value.lower():
            return member
    raise UnknownJewelType(f"unknown jewel type: {value!r}")


def resolve_format(
    jewel_type: Any,
    formats: Optional[Mapping[JewelType, JewelFormat]] = None,
) -> JewelFormat:
    """Look up the seed range and algorithm for ``jewel_type``."""

    member = parse_jewel_type(jewel_type)
    table = FORMATS if formats is None else formats
    try:
        return table[member]
    except KeyError:
        raise UnknownJewelType(f"no format registered for {member.value}") from None


def _coerce_int(value: Any, field_name: str, jewel: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise LutFormatError(f"{jewel}: {field_name} must be an integer, got {value!r}")
    return value


def load_format_overrides(
    path: Path,
    base: Optional[Mapping[JewelType, JewelFormat]] = None,
) -> Dict[JewelType, JewelFormat]:
    """Merge the JSON overrides stored at ``path`` onto ``base`` (default :data:`FORMATS`).

    Only ``seed_min``, ``seed_max`` and ``node_count`` may be overridden; the
    algorithm of a jewel is part of its file layout and never changes.
    """

    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise LutFormatError(f"unable to read format overrides {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise LutFormatError(f"format overrides in {path} must be a JSON object")

    merged: Dict[JewelType, JewelFormat] = dict(FORMATS if base is None else base)
    for name, entry in payload.items():
        try:
            member = parse_jewel_type(name)
        except UnknownJewelType as exc:
            raise LutFormatError(str(exc)) from exc
        if not isinstance(entry, dict):
            raise LutFormatError(f"{name}: override must be an object")
        unknown = set(entry) - {"seed_min", "seed_max", "node_count"}
        if unknown:
            raise LutFormatError(f"{name}: unsupported override keys {sorted(unknown)}")
        changes = {key: _coerce_int(value, key, name) for key, value in entry.items()}
        current = merged[member]
        if "node_count" in changes and current.algorithm is DecodeAlgorithm.FLAT:
            raise LutFormatError(f"{name}: node_count only applies to headered formats")
        merged[member] = replace(current, **changes)
        LOG.info("Format override for %s: %s", member.value, changes)
    return merged
