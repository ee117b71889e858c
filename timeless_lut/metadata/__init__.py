"""Companion metadata readers (node index mapping and legion passives)."""

from .lua_reader import (
    LEGION_PASSIVES_FILE,
    NODE_INDEX_MAPPING_FILE,
    LegionPassives,
    NodeIndexMapping,
    NodeMappingInfo,
    PassiveAddition,
    load_legion_passives,
    load_node_index_mapping,
    parse_legion_passives,
    parse_node_index_mapping,
)

__all__ = [
    "LEGION_PASSIVES_FILE",
    "NODE_INDEX_MAPPING_FILE",
    "LegionPassives",
    "NodeIndexMapping",
    "NodeMappingInfo",
    "PassiveAddition",
    "load_legion_passives",
    "load_node_index_mapping",
    "parse_legion_passives",
    "parse_node_index_mapping",
]
