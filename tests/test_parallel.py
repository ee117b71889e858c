import time

import pytest

from timeless_lut import utils


def test_run_parallel_preserves_order():
    items = list(range(8))

    def worker(value: int) -> int:
        time.sleep(0.01 * (8 - value))
        return value * 2

    sequential_results, sequential = utils.run_parallel(items, worker, jobs=1)
    parallel_results, parallel = utils.run_parallel(items, worker, jobs=4)

    assert sequential_results == parallel_results == [value * 2 for value in items]
    assert sequential > 0
    assert parallel > 0


def test_run_parallel_empty_and_oversized_pool():
    assert utils.run_parallel([], lambda value: value) == ([], 0.0)

    results, duration = utils.run_parallel([1, 2], lambda value: value + 1, jobs=16)
    assert results == [2, 3]
    assert duration >= 0


def test_run_parallel_reraises_worker_errors():
    def worker(value: int) -> int:
        if value == 2:
            raise RuntimeError("boom")
        return value

    with pytest.raises(RuntimeError, match="boom"):
        utils.run_parallel([1, 2, 3], worker, jobs=3)


def test_write_json(tmp_path):
    path = utils.write_json(tmp_path / "nested" / "out.json", {"a": 1})
    assert path.read_text() == '{\n  "a": 1\n}'
