"""Aggregate lookup table shared by every decoded jewel.

:class:`LutData` is owned by the caller.  Decoders never touch it; the only
write path is :meth:`LutData.insert_jewel`, which takes a lock so decodes
running on worker threads can publish their tables one at a time.

The JSON form keys every integer mapping by its decimal string::

    {
      "version": "1.0.0",
      "node_indices": {"26725": {"index": 0, "size": 6}},
      "modifiers": {"...": {"display_name": "...", "stat_descriptions": []}},
      "jewels": {
        "LethalPride": {
          "jewel_type": "LethalPride",
          "seed_range": [10000, 18000],
          "lookup_table": {"10000": {"0": "7"}}
        }
      }
    }
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .decoders.result import LookupTable
from .exceptions import DuplicateJewelError, LutFormatError
from .formats import JewelType, parse_jewel_type
from .metadata import LegionPassives, NodeIndexMapping
from .utils import write_json

LOG = logging.getLogger(__name__)

__all__ = ["LUT_VERSION", "NodeInfo", "NodeModifier", "JewelLut", "LutData"]

LUT_VERSION = "1.0.0"


@dataclass(frozen=True)
class NodeInfo:
    """Sequential index of a passive node inside the jewel tables."""

    index: int
    size: int

    def as_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "size": self.size}


@dataclass(frozen=True)
class NodeModifier:
    """Modifier catalogue entry carried verbatim from ``LegionPassives.lua``."""

    id: str
    display_name: str
    stat_descriptions: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "display_name": self.display_name,
            "stat_descriptions": list(self.stat_descriptions),
        }


@dataclass(frozen=True)
class JewelLut:
    """Decoded table of one jewel subtype."""

    jewel_type: JewelType
    seed_range: Tuple[int, int]
    lookup_table: Mapping[int, Mapping[int, str]]

    def token(self, seed: int, node_index: int) -> Optional[str]:
        nodes = self.lookup_table.get(seed)
        if nodes is None:
            return None
        return nodes.get(node_index)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "jewel_type": self.jewel_type.value,
            "seed_range": list(self.seed_range),
            "lookup_table": {
                str(seed): {str(node): token for node, token in sorted(nodes.items())}
                for seed, nodes in sorted(self.lookup_table.items())
            },
        }


def _freeze(table: LookupTable) -> Dict[int, Dict[int, str]]:
    return {int(seed): dict(nodes) for seed, nodes in table.items() if nodes}


@dataclass
class LutData:
    """Caller-owned aggregate keyed by jewel subtype."""

    version: str = LUT_VERSION
    node_indices: Dict[int, NodeInfo] = field(default_factory=dict)
    modifiers: Dict[str, NodeModifier] = field(default_factory=dict)
    jewels: Dict[JewelType, JewelLut] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def from_metadata(
        cls,
        node_mapping: Optional[NodeIndexMapping] = None,
        legion_passives: Optional[LegionPassives] = None,
    ) -> "LutData":
        lut = cls()
        if node_mapping is not None:
            lut.node_indices = {
                node_id: NodeInfo(info.index, info.size)
                for node_id, info in node_mapping.nodes.items()
            }
        if legion_passives is not None:
            lut.modifiers = {
                addition_id: NodeModifier(
                    addition.id,
                    addition.display_name,
                    tuple(addition.stat_descriptions),
                )
                for addition_id, addition in legion_passives.additions.items()
            }
        return lut

    def insert_jewel(
        self,
        jewel_type: Any,
        seed_range: Tuple[int, int],
        table: LookupTable,
        *,
        replace: bool = False,
    ) -> JewelLut:
        """Publish the decoded ``table`` of ``jewel_type``.

        An existing entry is only replaced when ``replace`` is true; otherwise
        :class:`DuplicateJewelError` is raised and the aggregate is unchanged.
        """

        member = parse_jewel_type(jewel_type)
        entry = JewelLut(member, (int(seed_range[0]), int(seed_range[1])), _freeze(table))
        with self._lock:
            if member in self.jewels:
                if not replace:
                    raise DuplicateJewelError(
                        f"{member.value} is already present; pass replace=True to overwrite it"
                    )
                LOG.info("Replacing lookup table for %s", member.value)
            self.jewels[member] = entry
        LOG.info(
            "Stored %s: %d seeds, %d entries",
            member.value,
            len(entry.lookup_table),
            sum(len(nodes) for nodes in entry.lookup_table.values()),
        )
        return entry

    def jewel(self, jewel_type: Any) -> Optional[JewelLut]:
        return self.jewels.get(parse_jewel_type(jewel_type))

    def __iter__(self) -> Iterator[JewelLut]:
        return iter(list(self.jewels.values()))

    def __len__(self) -> int:
        return len(self.jewels)

    def get_modifier(self, jewel_type: Any, seed: int, node_id: int) -> Optional[str]:
        """Return the modifier token a jewel seed places on passive ``node_id``."""

        entry = self.jewel(jewel_type)
        if entry is None:
            return None
        info = self.node_indices.get(node_id)
        if info is None:
            return None
        return entry.token(seed, info.index)

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            jewels = dict(self.jewels)
        return {
            "version": self.version,
            "node_indices": {
                str(node_id): info.as_dict() for node_id, info in sorted(self.node_indices.items())
            },
            "modifiers": {
                modifier_id: modifier.as_dict() for modifier_id, modifier in self.modifiers.items()
            },
            "jewels": {
                member.value: jewels[member].as_dict()
                for member in JewelType
                if member in jewels
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LutData":
        try:
            lut = cls(version=str(payload.get("version", LUT_VERSION)))
            for node_id, info in (payload.get("node_indices") or {}).items():
                lut.node_indices[int(node_id)] = NodeInfo(int(info["index"]), int(info["size"]))
            for modifier_id, modifier in (payload.get("modifiers") or {}).items():
                lut.modifiers[str(modifier_id)] = NodeModifier(
                    str(modifier_id),
                    str(modifier["display_name"]),
                    tuple(str(text) for text in modifier.get("stat_descriptions", [])),
                )
            for name, jewel in (payload.get("jewels") or {}).items():
                member = parse_jewel_type(jewel.get("jewel_type", name))
                seed_min, seed_max = jewel["seed_range"]
                table = _freeze({
                    seed: {int(node): str(token) for node, token in nodes.items()}
                    for seed, nodes in jewel.get("lookup_table", {}).items()
                })
                lut.jewels[member] = JewelLut(member, (int(seed_min), int(seed_max)), table)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise LutFormatError(f"malformed lookup table payload: {exc}") from exc
        return lut

    def save_json(self, path: Path, *, indent: Optional[int] = 2) -> Path:
        target = write_json(Path(path), self.to_dict(), indent=indent)
        LOG.info("Wrote lookup tables for %d jewels to %s", len(self.jewels), target)
        return target

    @classmethod
    def load_json(cls, path: Path) -> "LutData":
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except ValueError as exc:
            raise LutFormatError(f"{path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise LutFormatError(f"{path} does not hold a JSON object")
        return cls.from_dict(payload)
