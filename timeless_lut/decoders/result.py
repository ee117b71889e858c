"""Result containers shared by the lookup table decoders."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

LookupTable = Dict[int, Dict[int, str]]
"""``seed -> node_index -> modifier token``; absent keys mean "no modifier"."""


class AnomalyKind(str, enum.Enum):
    """Recoverable irregularities noticed while decoding."""

    SIZE_MISMATCH = "size_mismatch"
    RECORD_OVERRUN = "record_overrun"
    UNRECOGNIZED_RECORD_LENGTH = "unrecognized_record_length"


@dataclass(frozen=True)
class DecodeAnomaly:
    """A non-fatal problem the decoder worked around."""

    kind: AnomalyKind
    message: str
    detail: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "detail": dict(self.detail),
        }


@dataclass(frozen=True)
class DecodeResult:
    """Decoded table for one jewel buffer plus the anomalies met on the way."""

    table: LookupTable
    anomalies: List[DecodeAnomaly] = field(default_factory=list)

    @property
    def seed_count(self) -> int:
        return len(self.table)

    @property
    def entry_count(self) -> int:
        return sum(len(nodes) for nodes in self.table.values())

    def anomalies_of(self, kind: AnomalyKind) -> List[DecodeAnomaly]:
        return [anomaly for anomaly in self.anomalies if anomaly.kind is kind]

    def stats(self) -> Dict[str, Any]:
        counts: Dict[str, int] = {}
        for anomaly in self.anomalies:
            counts[anomaly.kind.value] = counts.get(anomaly.kind.value, 0) + 1
        return {
            "seeds": self.seed_count,
            "entries": self.entry_count,
            "anomalies": counts,
        }


__all__ = ["LookupTable", "AnomalyKind", "DecodeAnomaly", "DecodeResult"]
