from pathlib import Path

import pytest

from timeless_lut.exceptions import MetadataError
from timeless_lut.metadata import (
    load_legion_passives,
    load_node_index_mapping,
    parse_legion_passives,
    parse_node_index_mapping,
)

from conftest import LEGION_PASSIVES_LUA, NODE_INDEX_MAPPING_LUA


def test_node_index_mapping() -> None:
    mapping = parse_node_index_mapping(NODE_INDEX_MAPPING_LUA)
    assert mapping.size == 4
    assert mapping.size_notable == 1
    assert set(mapping.nodes) == {26725, 36634, 33989, 4397}
    assert mapping.index_of(33989) == 2
    assert mapping.nodes[26725].size == 6
    assert mapping.index_of(1) is None


def test_legion_passives() -> None:
    passives = parse_legion_passives(LEGION_PASSIVES_LUA)
    assert list(passives.additions) == [
        "karui_attribute_strength",
        "vaal_small_fire_resistance",
        "templar_devotion_node",
    ]
    fire = passives.additions["vaal_small_fire_resistance"]
    assert fire.display_name == "Fire Resistance"
    assert fire.stat_descriptions == ["+2% to Fire Resistance", "1% increased Life"]
    assert passives.additions["templar_devotion_node"].stat_descriptions == []


@pytest.mark.parametrize(
    "source",
    [
        "nodeIDList = ",
        "local x = 1",
        'nodeIDList = { size = 3 }',
        'nodeIDList = { size = 3, sizeNotable = 1, [10] = { index = 0 } }',
        'nodeIDList = { size = "three", sizeNotable = 1 }',
    ],
)
def test_node_index_mapping_errors(source: str) -> None:
    with pytest.raises(MetadataError):
        parse_node_index_mapping(source)


@pytest.mark.parametrize(
    "source",
    [
        "return 5",
        "return { nodes = {} }",
        'return { additions = { { dn = "x" } } }',
        'return { additions = { { id = "x" } } }',
        "error('boom')",
    ],
)
def test_legion_passives_errors(source: str) -> None:
    with pytest.raises(MetadataError):
        parse_legion_passives(source)


def test_python_builtins_are_not_exposed() -> None:
    source = "nodeIDList = { size = (python == nil or (python.eval == nil and python.builtins == nil)) and 1 or 2, sizeNotable = 0 }"
    assert parse_node_index_mapping(source).size == 1


def test_load_from_files(metadata_dir: Path) -> None:
    mapping = load_node_index_mapping(metadata_dir / "NodeIndexMapping.lua")
    passives = load_legion_passives(metadata_dir / "LegionPassives.lua")
    assert len(mapping.nodes) == 4
    assert len(passives.additions) == 3
    with pytest.raises(MetadataError):
        load_node_index_mapping(metadata_dir / "Missing.lua")
