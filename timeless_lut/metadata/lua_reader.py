"""Readers for the Lua metadata files shipped next to the jewel tables.

Two companion files accompany the binary tables:

``NodeIndexMapping.lua``
    Assigns the global ``nodeIDList``.  Integer keys are passive node ids
    mapping to ``{index = <node index>, size = <n>}``; the string keys
    ``size`` and ``sizeNotable`` hold the totals.
``LegionPassives.lua``
    Returns a table whose ``additions`` list describes the modifiers a jewel
    can add (``id``, display name ``dn`` and stat descriptions ``sd``).

Both are plain data chunks, so they are executed with :mod:`lupa` in a
runtime without Python builtins or ``eval`` exposed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import lupa
from lupa import LuaError, LuaRuntime

from ..exceptions import MetadataError

LOG = logging.getLogger(__name__)

__all__ = [
    "NODE_INDEX_MAPPING_FILE",
    "LEGION_PASSIVES_FILE",
    "NodeMappingInfo",
    "NodeIndexMapping",
    "PassiveAddition",
    "LegionPassives",
    "parse_node_index_mapping",
    "parse_legion_passives",
    "load_node_index_mapping",
    "load_legion_passives",
]

NODE_INDEX_MAPPING_FILE = "NodeIndexMapping.lua"
LEGION_PASSIVES_FILE = "LegionPassives.lua"


@dataclass(frozen=True)
class NodeMappingInfo:
    index: int
    size: int


@dataclass
class NodeIndexMapping:
    """Parsed ``nodeIDList``: external node id -> sequential node index."""

    size: int
    size_notable: int
    nodes: Dict[int, NodeMappingInfo] = field(default_factory=dict)

    def index_of(self, node_id: int) -> Optional[int]:
        info = self.nodes.get(node_id)
        return None if info is None else info.index


@dataclass(frozen=True)
class PassiveAddition:
    id: str
    display_name: str
    stat_descriptions: List[str] = field(default_factory=list)


@dataclass
class LegionPassives:
    additions: Dict[str, PassiveAddition] = field(default_factory=dict)


def _new_runtime() -> LuaRuntime:
    return LuaRuntime(
        unpack_returned_tuples=True,
        register_eval=False,
        register_builtins=False,
    )


def _is_table(value: Any) -> bool:
    return lupa.lua_type(value) == "table"


def _as_int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise MetadataError(f"{what} must be a number, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise MetadataError(f"{what} must be an integer, got {value!r}")


def _as_text(value: Any, what: str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    raise MetadataError(f"{what} must be a string, got {value!r}")


def _execute(source: str, chunk_name: str) -> tuple[LuaRuntime, Any]:
    runtime = _new_runtime()
    try:
        result = runtime.execute(source)
    except LuaError as exc:
        raise MetadataError(f"Lua error in {chunk_name}: {exc}") from exc
    return runtime, result


def parse_node_index_mapping(source: str, *, chunk_name: str = NODE_INDEX_MAPPING_FILE) -> NodeIndexMapping:
    """Interpret the text of ``NodeIndexMapping.lua``."""

    runtime, _ = _execute(source, chunk_name)
    node_list = runtime.globals()["nodeIDList"]
    if not _is_table(node_list):
        raise MetadataError(f"{chunk_name} does not define a nodeIDList table")

    size = node_list["size"]
    size_notable = node_list["sizeNotable"]
    if size is None:
        raise MetadataError(f"{chunk_name}: nodeIDList.size is missing")
    if size_notable is None:
        raise MetadataError(f"{chunk_name}: nodeIDList.sizeNotable is missing")
    mapping = NodeIndexMapping(
        size=_as_int(size, "nodeIDList.size"),
        size_notable=_as_int(size_notable, "nodeIDList.sizeNotable"),
    )

    for key, value in node_list.items():
        if isinstance(key, (str, bytes)):
            continue
        node_id = _as_int(key, "node id")
        if not _is_table(value):
            LOG.debug("Ignoring non-table entry for node %s in %s", node_id, chunk_name)
            continue
        index = value["index"]
        node_size = value["size"]
        if index is None or node_size is None:
            raise MetadataError(f"{chunk_name}: node {node_id} lacks index or size")
        mapping.nodes[node_id] = NodeMappingInfo(
            index=_as_int(index, f"node {node_id} index"),
            size=_as_int(node_size, f"node {node_id} size"),
        )

    LOG.info(
        "Read %d node mappings from %s (size=%d, notable=%d)",
        len(mapping.nodes),
        chunk_name,
        mapping.size,
        mapping.size_notable,
    )
    return mapping


def _ordered_values(table: Any) -> List[Any]:
    """Return the values of a Lua table sorted by key, integers first."""

    numeric: List[tuple[float, Any]] = []
    named: List[tuple[str, Any]] = []
    for key, value in table.items():
        if isinstance(key, (int, float)) and not isinstance(key, bool):
            numeric.append((key, value))
        else:
            named.append((str(key), value))
    numeric.sort(key=lambda item: item[0])
    named.sort(key=lambda item: item[0])
    return [value for _, value in numeric] + [value for _, value in named]


def parse_legion_passives(source: str, *, chunk_name: str = LEGION_PASSIVES_FILE) -> LegionPassives:
    """Interpret the text of ``LegionPassives.lua``."""

    _, data = _execute(source, chunk_name)
    if not _is_table(data):
        raise MetadataError(f"{chunk_name} does not return a table")
    additions_table = data["additions"]
    if not _is_table(additions_table):
        raise MetadataError(f"{chunk_name}: additions table is missing")

    passives = LegionPassives()
    for entry in _ordered_values(additions_table):
        if not _is_table(entry):
            continue
        raw_id = entry["id"]
        raw_name = entry["dn"]
        if raw_id is None:
            raise MetadataError(f"{chunk_name}: addition without id")
        if raw_name is None:
            raise MetadataError(f"{chunk_name}: addition {raw_id!r} lacks dn")
        addition_id = _as_text(raw_id, "addition id")
        descriptions: List[str] = []
        stat_table = entry["sd"]
        if _is_table(stat_table):
            descriptions = [
                _as_text(text, f"{addition_id} stat description")
                for text in _ordered_values(stat_table)
            ]
        passives.additions[addition_id] = PassiveAddition(
            id=addition_id,
            display_name=_as_text(raw_name, f"{addition_id} dn"),
            stat_descriptions=descriptions,
        )

    LOG.info("Read %d legion passive additions from %s", len(passives.additions), chunk_name)
    return passives


def _read_source(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise MetadataError(f"unable to read {path}: {exc}") from exc


def load_node_index_mapping(path: Path) -> NodeIndexMapping:
    return parse_node_index_mapping(_read_source(path), chunk_name=Path(path).name)


def load_legion_passives(path: Path) -> LegionPassives:
    return parse_legion_passives(_read_source(path), chunk_name=Path(path).name)
