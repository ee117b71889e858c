"""Decoder for the dense flat lookup table layout.

Four of the five jewels store one byte per ``(node, seed)`` cell, node-major
and seed-minor::

    buffer[node_index * seed_size + (seed - seed_min)] = modifier code

A code of ``0`` means the node is untouched for that seed and is never
materialised in the decoded table.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from .result import AnomalyKind, DecodeAnomaly, DecodeResult, LookupTable

LOG = logging.getLogger(__name__)

__all__ = ["decode_flat"]


def decode_flat(buffer: bytes, seed_min: int, seed_max: int) -> DecodeResult:
    """Decode a flat buffer covering the inclusive seed range ``[seed_min, seed_max]``."""

    seed_size = seed_max - seed_min + 1
    if seed_size <= 0:
        raise ValueError(f"empty seed range {seed_min}..{seed_max}")

    data = bytes(buffer)
    node_count, remainder = divmod(len(data), seed_size)
    anomalies: List[DecodeAnomaly] = []
    if remainder:
        LOG.warning(
            "Flat buffer of %d bytes is not a multiple of seed size %d; "
            "dropping %d trailing bytes",
            len(data),
            seed_size,
            remainder,
        )
        anomalies.append(
            DecodeAnomaly(
                AnomalyKind.SIZE_MISMATCH,
                "buffer length is not a multiple of the seed range size",
                {
                    "length": len(data),
                    "seed_size": seed_size,
                    "node_count": node_count,
                    "discarded": remainder,
                },
            )
        )

    table: LookupTable = {}
    if node_count == 0:
        return DecodeResult(table, anomalies)

    usable = node_count * seed_size
    for seed_offset in range(seed_size):
        # Every node's byte for this seed, in node order.
        column = data[seed_offset:usable:seed_size]
        if column.count(0) == node_count:
            continue
        nodes: Dict[int, str] = {}
        for node_index, code in enumerate(column):
            if code:
                nodes[node_index] = str(code)
        table[seed_min + seed_offset] = nodes

    LOG.debug(
        "Flat decode: %d nodes x %d seeds -> %d populated seeds",
        node_count,
        seed_size,
        len(table),
    )
    return DecodeResult(table, anomalies)
