import pytest

from builders import flat_buffer
from timeless_lut.decoders.flat import decode_flat
from timeless_lut.decoders.result import AnomalyKind
from timeless_lut.formats import FORMATS, DecodeAlgorithm

FLAT_FORMATS = [fmt for fmt in FORMATS.values() if fmt.algorithm is DecodeAlgorithm.FLAT]


@pytest.mark.parametrize("fmt", FLAT_FORMATS, ids=lambda fmt: fmt.jewel_type.value)
def test_zero_buffer_decodes_to_empty_table(fmt) -> None:
    buffer = bytes(fmt.seed_size * 3)
    result = decode_flat(buffer, fmt.seed_min, fmt.seed_max)
    assert result.table == {}
    assert result.anomalies == []


def test_single_cell_round_trip() -> None:
    seed_min, seed_max = 10000, 18000
    seed_size = seed_max - seed_min + 1
    buffer = flat_buffer(seed_size, 4, {(2, 123): 7})
    result = decode_flat(buffer, seed_min, seed_max)
    assert result.table == {seed_min + 123: {2: "7"}}


def test_last_seed_of_inclusive_range() -> None:
    buffer = flat_buffer(8001, 1, {(0, 8000): 5})
    result = decode_flat(buffer, 10000, 18000)
    assert result.table == {18000: {0: "5"}}


def test_layout_is_node_major() -> None:
    # seeds 500..502, three nodes
    buffer = bytes([
        0, 1, 0,    # node 0
        9, 0, 0,    # node 1
        255, 2, 0,  # node 2
    ])
    result = decode_flat(buffer, 500, 502)
    assert result.table == {
        500: {1: "9", 2: "255"},
        501: {0: "1", 2: "2"},
    }
    assert 502 not in result.table
    assert list(result.table) == [500, 501]
    assert list(result.table[500]) == [1, 2]


def test_decode_is_deterministic() -> None:
    buffer = flat_buffer(11, 5, {(0, 0): 3, (4, 10): 200, (2, 5): 1})
    first = decode_flat(buffer, 2000, 2010)
    second = decode_flat(buffer, 2000, 2010)
    assert first.table == second.table
    assert first.table is not second.table


def test_empty_buffer() -> None:
    result = decode_flat(b"", 2000, 10000)
    assert result.table == {}
    assert result.anomalies == []


def test_size_mismatch_truncates_and_warns(caplog) -> None:
    seed_size = 4
    buffer = flat_buffer(seed_size, 2, {(1, 3): 6}) + b"\x05\x05\x05"
    with caplog.at_level("WARNING"):
        result = decode_flat(buffer, 0, 3)
    assert result.table == {3: {1: "6"}}
    mismatches = result.anomalies_of(AnomalyKind.SIZE_MISMATCH)
    assert len(mismatches) == 1
    assert mismatches[0].detail["discarded"] == 3
    assert mismatches[0].detail["node_count"] == 2
    assert "not a multiple" in caplog.text


def test_buffer_shorter_than_one_node() -> None:
    result = decode_flat(b"\x01\x02", 0, 3)
    assert result.table == {}
    assert [a.kind for a in result.anomalies] == [AnomalyKind.SIZE_MISMATCH]


def test_stats_counts() -> None:
    buffer = flat_buffer(3, 2, {(0, 0): 1, (1, 0): 2, (1, 2): 3})
    result = decode_flat(buffer, 0, 2)
    assert result.stats() == {"seeds": 2, "entries": 3, "anomalies": {}}


def test_rejects_inverted_range() -> None:
    with pytest.raises(ValueError):
        decode_flat(b"\x00", 5, 4)
