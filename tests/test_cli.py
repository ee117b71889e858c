import json
import logging
from pathlib import Path

import pytest

from builders import compress, flat_buffer
from timeless_lut import cli
from timeless_lut.formats import FORMATS, JewelType


@pytest.fixture
def data_dir(metadata_dir: Path) -> Path:
    br = FORMATS[JewelType.BRUTAL_RESTRAINT]
    (metadata_dir / "BrutalRestraint.zip").write_bytes(
        compress(flat_buffer(br.seed_size, 4, {(2, 10): 33}))
    )
    return metadata_dir


def _last_json(capsys) -> dict:
    return json.loads(capsys.readouterr().out)


def test_build_and_lookup(tmp_path: Path, data_dir: Path, capsys) -> None:
    output = tmp_path / "out" / "lut.json"
    code = cli.main(["build", str(data_dir), "-o", str(output), "--jewel", "BrutalRestraint"])
    assert code == 0
    summary = _last_json(capsys)
    assert summary["ok"] is True
    assert summary["jewels"] == [
        {
            "jewel_type": "BrutalRestraint",
            "status": "decoded",
            "sources": ["BrutalRestraint.zip"],
            "seeds": 1,
            "entries": 1,
            "anomalies": {},
        }
    ]
    stored = json.loads(output.read_text())
    assert stored["jewels"]["BrutalRestraint"]["lookup_table"] == {"510": {"2": "33"}}

    # node id 33989 maps to index 2
    code = cli.main([
        "lookup", str(output), "--jewel", "BrutalRestraint", "--seed", "510", "--node", "33989",
    ])
    assert code == 0
    assert _last_json(capsys)["token"] == "33"

    code = cli.main([
        "lookup", str(output), "--jewel", "BrutalRestraint", "--seed", "511", "--node", "33989",
    ])
    assert code == 1
    assert _last_json(capsys)["token"] is None


def test_build_fails_when_a_jewel_fails(tmp_path: Path, data_dir: Path, capsys) -> None:
    (data_dir / "MilitantFaith.zip").write_bytes(b"\x78\x9c\x00")
    code = cli.main(["build", str(data_dir), "-o", str(tmp_path / "lut.json"), "--jobs", "2"])
    assert code == 1
    summary = _last_json(capsys)
    statuses = {entry["jewel_type"]: entry["status"] for entry in summary["jewels"]}
    assert statuses["MilitantFaith"] == "failed"
    assert statuses["BrutalRestraint"] == "decoded"
    assert statuses["LethalPride"] == "missing"


def test_inspect(data_dir: Path, capsys) -> None:
    code = cli.main(["inspect", str(data_dir / "BrutalRestraint.zip"), "--jewel", "brutalrestraint"])
    assert code == 0
    summary = _last_json(capsys)
    assert summary["format"]["seed_min"] == 500
    assert summary["seeds"] == 1
    assert summary["anomaly_details"] == []


def test_formats_override_and_debug_log(tmp_path: Path, data_dir: Path, capsys) -> None:
    formats = tmp_path / "formats.json"
    formats.write_text(json.dumps({"BrutalRestraint": {"seed_min": 400, "seed_max": 7900}}))
    debug_log = tmp_path / "debug.log"
    package_level = logging.getLogger("timeless_lut").level
    code = cli.main([
        "--formats", str(formats),
        "--debug-log", str(debug_log),
        "inspect", str(data_dir / "BrutalRestraint.zip"), "--jewel", "BrutalRestraint",
    ])
    assert code == 0
    summary = _last_json(capsys)
    assert summary["format"]["seed_min"] == 400
    assert "Decoding BrutalRestraint" in debug_log.read_text(encoding="utf-8")
    assert logging.getLogger("timeless_lut").level == package_level


def test_bad_formats_file_exits_with_error(tmp_path: Path, data_dir: Path) -> None:
    formats = tmp_path / "formats.json"
    formats.write_text("{")
    code = cli.main([
        "--formats", str(formats),
        "inspect", str(data_dir / "BrutalRestraint.zip"), "--jewel", "BrutalRestraint",
    ])
    assert code == 1


def test_unknown_jewel_is_a_usage_error(data_dir: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["inspect", str(data_dir / "BrutalRestraint.zip"), "--jewel", "Nope"])
    assert excinfo.value.code == 2
