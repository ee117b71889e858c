"""Test configuration ensuring the project source tree is importable."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
TESTS = ROOT / "tests"

root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)
else:
    idx = sys.path.index(root_str)
    if idx != 0:
        sys.path.insert(0, sys.path.pop(idx))

if str(TESTS) in sys.path:
    sys.path.pop(sys.path.index(str(TESTS)))
sys.path.insert(1, str(TESTS))

from timeless_lut.formats import DecodeAlgorithm, FORMATS, JewelFormat, JewelType  # noqa: E402


NODE_INDEX_MAPPING_LUA = """\
-- generated
nodeIDList = { }
nodeIDList["size"] = 4
nodeIDList["sizeNotable"] = 1
nodeIDList[26725] = { index = 0, size = 6 }
nodeIDList[36634] = { index = 1, size = 6 }
nodeIDList[33989] = { index = 2, size = 2 }
nodeIDList[4397] = { index = 3, size = 1 }
"""

LEGION_PASSIVES_LUA = """\
return {
    ["additions"] = {
        [1] = {
            ["id"] = "karui_attribute_strength",
            ["dn"] = "+2 to Strength",
            ["sd"] = { [1] = "+2 to Strength" },
        },
        [2] = {
            ["id"] = "vaal_small_fire_resistance",
            ["dn"] = "Fire Resistance",
            ["sd"] = { [1] = "+2% to Fire Resistance", [2] = "1% increased Life" },
        },
        [3] = {
            ["id"] = "templar_devotion_node",
            ["dn"] = "Devotion",
        },
    },
}
"""


@pytest.fixture
def small_formats():
    """Full format table with Glorious Vanity shrunk to 4 seeds x 4 nodes."""

    formats = dict(FORMATS)
    formats[JewelType.GLORIOUS_VANITY] = JewelFormat(
        JewelType.GLORIOUS_VANITY,
        100,
        103,
        DecodeAlgorithm.HEADERED_VARIABLE,
        4,
    )
    return formats


@pytest.fixture
def metadata_dir(tmp_path: Path) -> Path:
    (tmp_path / "NodeIndexMapping.lua").write_text(NODE_INDEX_MAPPING_LUA, encoding="utf-8")
    (tmp_path / "LegionPassives.lua").write_text(LEGION_PASSIVES_LUA, encoding="utf-8")
    return tmp_path
