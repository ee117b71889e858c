"""Decoder for the headered variable-length layout used by Glorious Vanity.

The buffer opens with a header of ``node_count * seed_size`` bytes laid out
node-major and seed-minor, exactly like the flat format.  Each header byte is
the length of a record in the data section that follows the header; ``0``
means the cell has no record.

Records are stored back to back in the order a seed-major, node-minor walk of
the header visits them, so the data section can only be consumed with a
single forward cursor::

    for seed_offset in range(seed_size):
        for node_index in range(node_count):
            length = header[node_index * seed_size + seed_offset]
            record = data[cursor : cursor + length]
            cursor += length

A record is split into a prefix of stat bytes and a suffix of roll bytes
according to :data:`~timeless_lut.formats.RECORD_PATTERNS`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from ..exceptions import HeaderTooSmall
from ..formats import GLORIOUS_VANITY_NODE_COUNT, RECORD_PATTERNS, TOKEN_SEPARATOR
from .result import AnomalyKind, DecodeAnomaly, DecodeResult, LookupTable

LOG = logging.getLogger(__name__)

__all__ = [
    "ReadCursor",
    "record_layout",
    "decode_record",
    "decode_headered",
]


@dataclass
class ReadCursor:
    """Forward-only reader over the data section of one decode call."""

    data: bytes
    position: int = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.position

    def fits(self, length: int) -> bool:
        return self.position + length <= len(self.data)

    def take(self, length: int) -> bytes:
        if not self.fits(length):
            raise IndexError(
                f"record of {length} bytes at {self.position} exceeds {len(self.data)} bytes"
            )
        start = self.position
        self.position += length
        return self.data[start : self.position]


def record_layout(
    length: int,
    patterns: Mapping[int, Tuple[int, int]] = RECORD_PATTERNS,
) -> Tuple[int, int, bool]:
    """Return ``(stat_count, roll_count, known)`` for a record of ``length`` bytes.

    Lengths missing from ``patterns`` fall back to an even split, or to a
    single stat followed by rolls for odd lengths.  The fallback has not been
    observed in released data files; ``known`` is ``False`` when it applies.
    """

    if length in patterns:
        stats, rolls = patterns[length]
        return stats, rolls, True
    if length % 2 == 0:
        return length // 2, length // 2, False
    return 1, length - 1, False


def decode_record(
    record: bytes,
    length: Optional[int] = None,
    patterns: Mapping[int, Tuple[int, int]] = RECORD_PATTERNS,
) -> str:
    """Format ``record`` as ``s<stat>...|r<roll>...`` (stats first, then rolls)."""

    size = len(record) if length is None else length
    if size <= 0:
        return ""
    body = record[:size]
    stats, _rolls, _known = record_layout(size, patterns)
    parts = [f"s{value}" for value in body[:stats]]
    parts.extend(f"r{value}" for value in body[stats:])
    return TOKEN_SEPARATOR.join(parts)


def decode_headered(
    buffer: bytes,
    seed_min: int,
    seed_max: int,
    node_count: int = GLORIOUS_VANITY_NODE_COUNT,
    *,
    patterns: Mapping[int, Tuple[int, int]] = RECORD_PATTERNS,
) -> DecodeResult:
    """Decode a headered buffer covering ``[seed_min, seed_max]`` and ``node_count`` nodes.

    Raises :class:`HeaderTooSmall` when a non-empty buffer cannot hold the
    header.  Records that would run past the data section end the current
    seed only; the rest of the buffer is still decoded.
    """

    seed_size = seed_max - seed_min + 1
    if seed_size <= 0:
        raise ValueError(f"empty seed range {seed_min}..{seed_max}")

    data = bytes(buffer)
    table: LookupTable = {}
    anomalies: List[DecodeAnomaly] = []
    if not data:
        return DecodeResult(table, anomalies)

    header_size = node_count * seed_size
    if len(data) < header_size:
        raise HeaderTooSmall(len(data), header_size)

    header = data[:header_size]
    cursor = ReadCursor(data[header_size:])
    unknown_lengths: Dict[int, int] = {}

    for seed_offset in range(seed_size):
        seed = seed_min + seed_offset
        lengths = header[seed_offset:header_size:seed_size]
        if lengths.count(0) == node_count:
            continue
        nodes: Dict[int, str] = {}
        for node_index, length in enumerate(lengths):
            if not length:
                continue
            if not cursor.fits(length):
                LOG.warning(
                    "Seed %d node %d: record of %d bytes at offset %d overruns "
                    "the %d byte data section; skipping the rest of the seed",
                    seed,
                    node_index,
                    length,
                    cursor.position,
                    len(cursor.data),
                )
                anomalies.append(
                    DecodeAnomaly(
                        AnomalyKind.RECORD_OVERRUN,
                        "record runs past the end of the data section",
                        {
                            "seed": seed,
                            "node_index": node_index,
                            "length": length,
                            "offset": cursor.position,
                            "remaining": cursor.remaining,
                        },
                    )
                )
                break
            record = cursor.take(length)
            if length not in patterns:
                unknown_lengths[length] = unknown_lengths.get(length, 0) + 1
                LOG.debug(
                    "Seed %d node %d: unrecognised record length %d, using fallback split",
                    seed,
                    node_index,
                    length,
                )
            token = decode_record(record, length, patterns)
            if token:
                nodes[node_index] = token
        if nodes:
            table[seed] = nodes

    for length, count in sorted(unknown_lengths.items()):
        stats, rolls, _known = record_layout(length, patterns)
        LOG.warning(
            "Decoded %d records of unrecognised length %d as %d stats + %d rolls",
            count,
            length,
            stats,
            rolls,
        )
        anomalies.append(
            DecodeAnomaly(
                AnomalyKind.UNRECOGNIZED_RECORD_LENGTH,
                "record length outside the known pattern table",
                {"length": length, "count": count, "stats": stats, "rolls": rolls},
            )
        )

    if cursor.remaining:
        LOG.debug("%d data bytes left unread after headered decode", cursor.remaining)
    LOG.debug(
        "Headered decode: %d nodes x %d seeds -> %d populated seeds",
        node_count,
        seed_size,
        len(table),
    )
    return DecodeResult(table, anomalies)
