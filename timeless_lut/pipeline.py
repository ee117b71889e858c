"""Decode orchestration: inflate, dispatch on format, publish into the aggregate."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from . import utils
from .decoders import DecodeResult, decode_flat, decode_headered, inflate
from .exceptions import LutError, LutFormatError
from .formats import DecodeAlgorithm, JewelFormat, JewelType, parse_jewel_type, resolve_format
from .io.loader import jewel_source_paths, read_jewel_bytes
from .lut import LutData
from .metadata import (
    LEGION_PASSIVES_FILE,
    NODE_INDEX_MAPPING_FILE,
    LegionPassives,
    NodeIndexMapping,
    load_legion_passives,
    load_node_index_mapping,
)

LOG = logging.getLogger(__name__)

__all__ = [
    "DecoderFn",
    "DECODERS",
    "select_decoder",
    "decode_buffer",
    "decode_jewel",
    "JewelStatus",
    "JewelOutcome",
    "BuildReport",
    "build_lut",
]

DecoderFn = Callable[[bytes, JewelFormat], DecodeResult]


def _run_flat(buffer: bytes, fmt: JewelFormat) -> DecodeResult:
    return decode_flat(buffer, fmt.seed_min, fmt.seed_max)


def _run_headered(buffer: bytes, fmt: JewelFormat) -> DecodeResult:
    if fmt.node_count is None:
        raise LutFormatError(f"{fmt.jewel_type.value}: headered formats need a node_count")
    return decode_headered(buffer, fmt.seed_min, fmt.seed_max, fmt.node_count)


DECODERS: Mapping[DecodeAlgorithm, DecoderFn] = {
    DecodeAlgorithm.FLAT: _run_flat,
    DecodeAlgorithm.HEADERED_VARIABLE: _run_headered,
}


def select_decoder(fmt: JewelFormat) -> DecoderFn:
    return DECODERS[fmt.algorithm]


def decode_buffer(
    jewel_type: Any,
    buffer: bytes,
    formats: Optional[Mapping[JewelType, JewelFormat]] = None,
) -> DecodeResult:
    """Decode an already inflated ``buffer`` of ``jewel_type``."""

    fmt = resolve_format(jewel_type, formats)
    LOG.debug(
        "Decoding %s: %d bytes, seeds %d..%d, %s",
        fmt.jewel_type.value,
        len(buffer),
        fmt.seed_min,
        fmt.seed_max,
        fmt.algorithm.value,
    )
    return select_decoder(fmt)(buffer, fmt)


def decode_jewel(
    jewel_type: Any,
    raw: bytes,
    formats: Optional[Mapping[JewelType, JewelFormat]] = None,
) -> DecodeResult:
    """Inflate the compressed stream ``raw`` and decode it as ``jewel_type``.

    For Glorious Vanity ``raw`` must already be the concatenation of every part.
    """

    fmt = resolve_format(jewel_type, formats)
    return decode_buffer(fmt.jewel_type, inflate(raw), formats)


class JewelStatus(str, enum.Enum):
    DECODED = "decoded"
    MISSING = "missing"
    FAILED = "failed"


@dataclass
class JewelOutcome:
    """What happened to one jewel subtype during :func:`build_lut`."""

    jewel_type: JewelType
    status: JewelStatus
    sources: List[Path] = field(default_factory=list)
    result: Optional[DecodeResult] = None
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "jewel_type": self.jewel_type.value,
            "status": self.status.value,
            "sources": [path.name for path in self.sources],
        }
        if self.result is not None:
            data.update(self.result.stats())
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class BuildReport:
    lut: LutData
    outcomes: List[JewelOutcome] = field(default_factory=list)
    metadata_errors: List[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def failed(self) -> List[JewelOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is JewelStatus.FAILED]

    @property
    def decoded(self) -> List[JewelOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is JewelStatus.DECODED]

    @property
    def ok(self) -> bool:
        return not self.failed

    def as_dict(self) -> Dict[str, Any]:
        return {
            "jewels": [outcome.as_dict() for outcome in self.outcomes],
            "metadata_errors": list(self.metadata_errors),
            "duration": round(self.duration, 3),
            "ok": self.ok,
        }


def _load_metadata(data_dir: Path, errors: List[str]) -> tuple[Optional[NodeIndexMapping], Optional[LegionPassives]]:
    node_mapping: Optional[NodeIndexMapping] = None
    passives: Optional[LegionPassives] = None
    mapping_path = data_dir / NODE_INDEX_MAPPING_FILE
    passives_path = data_dir / LEGION_PASSIVES_FILE
    if mapping_path.is_file():
        try:
            node_mapping = load_node_index_mapping(mapping_path)
        except LutError as exc:
            LOG.error("Unable to read %s: %s", mapping_path, exc)
            errors.append(str(exc))
    else:
        LOG.warning("%s not found in %s; node ids will not resolve", NODE_INDEX_MAPPING_FILE, data_dir)
    if passives_path.is_file():
        try:
            passives = load_legion_passives(passives_path)
        except LutError as exc:
            LOG.error("Unable to read %s: %s", passives_path, exc)
            errors.append(str(exc))
    return node_mapping, passives


def build_lut(
    data_dir: Path,
    *,
    jewel_types: Optional[Iterable[Any]] = None,
    jobs: int = 1,
    formats: Optional[Mapping[JewelType, JewelFormat]] = None,
    lut: Optional[LutData] = None,
    replace: bool = False,
) -> BuildReport:
    """Decode every requested jewel found in ``data_dir`` into ``lut``.

    Each jewel is decoded independently: a corrupt or missing file is recorded
    in its :class:`JewelOutcome` and the remaining jewels still complete.
    """

    directory = Path(data_dir)
    members = list(JewelType) if jewel_types is None else [parse_jewel_type(j) for j in jewel_types]
    members = list(dict.fromkeys(members))

    metadata_errors: List[str] = []
    node_mapping, passives = _load_metadata(directory, metadata_errors)
    if lut is None:
        lut = LutData.from_metadata(node_mapping, passives)
    else:
        seeded = LutData.from_metadata(node_mapping, passives)
        if seeded.node_indices and not lut.node_indices:
            lut.node_indices = seeded.node_indices
        if seeded.modifiers and not lut.modifiers:
            lut.modifiers = seeded.modifiers
    target = lut

    def worker(member: JewelType) -> JewelOutcome:
        paths = jewel_source_paths(directory, member)
        if not paths:
            LOG.warning("No data file for %s in %s, skipping", member.value, directory)
            return JewelOutcome(member, JewelStatus.MISSING)
        try:
            raw = read_jewel_bytes(paths)
            result = decode_jewel(member, raw, formats)
            fmt = resolve_format(member, formats)
            target.insert_jewel(member, fmt.seed_range, result.table, replace=replace)
        except (LutError, OSError) as exc:
            LOG.error("Decoding %s failed: %s", member.value, exc)
            return JewelOutcome(member, JewelStatus.FAILED, paths, error=str(exc))
        LOG.info(
            "Decoded %s from %d file(s): %d seeds, %d entries, %d anomalies",
            member.value,
            len(paths),
            result.seed_count,
            result.entry_count,
            len(result.anomalies),
        )
        return JewelOutcome(member, JewelStatus.DECODED, paths, result)

    outcomes, duration = utils.run_parallel(members, worker, jobs=jobs)
    return BuildReport(target, outcomes, metadata_errors, duration)
