## tests/test_app.py

"""
End-to-end tests of the command line: generate to files and stdout, config
precedence, error exit codes, run log, and visualize.
"""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest
import yaml

from tspgen.app import main
from tspgen.utils.serialization import InstanceSerializer


def _load(path: Path):
    return InstanceSerializer().load(path)


def test_generate_to_file(tmp_path: Path):
    out = tmp_path / "inst.json"
    rc = main(["generate", "-n", "6", "-c", "2", "-s", "3", "-o", str(out)])
    assert rc == 0
    inst = _load(out)
    assert len(inst.cities) == 6
    assert len(inst.centroids) == 2
    assert inst.params.seed == 3


def test_generate_long_flags(tmp_path: Path):
    out = tmp_path / "inst.json"
    rc = main([
        "generate", "--nb-cities", "9", "--nb-centroids", "3", "--max", "100",
        "--std-dev", "2", "--seed", "1", "--assignment", "block", "--clamp", "--output", str(out),
    ])
    assert rc == 0
    params = _load(out).params
    assert (params.nb_cities, params.nb_centroids, params.max_width, params.std_dev) == (9, 3, 100.0, 2.0)
    assert params.assignment == "block"
    assert params.clamp is True


def test_generate_is_reproducible(tmp_path: Path):
    a, b = tmp_path / "a.json", tmp_path / "b.json"
    main(["generate", "-n", "15", "-c", "4", "-s", "77", "-o", str(a)])
    main(["generate", "-n", "15", "-c", "4", "-s", "77", "-o", str(b)])
    assert _load(a).cities == _load(b).cities
    assert _load(a).centroids == _load(b).centroids


def test_generate_to_stdout_with_defaults(capsys):
    rc = main(["generate", "-s", "1"])
    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert len(data["cities"]) == 10
    assert len(data["centroids"]) == 3
    assert data["params"]["max_width"] == 1000.0
    assert data["params"]["std_dev"] == 10.0


def test_generate_tsplib_to_stdout(capsys):
    rc = main(["generate", "-n", "4", "-c", "1", "-s", "1", "--format", "tsplib"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "NODE_COORD_SECTION" in out
    assert "DIMENSION : 4" in out


def test_generate_with_distances(capsys):
    main(["generate", "-n", "3", "-c", "1", "-s", "1", "--include-distances"])
    data = json.loads(capsys.readouterr().out)
    assert len(data["distances"]) == 3


def test_generate_without_centroids_fails(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["generate", "-n", "5", "-c", "0", "-s", "1"])
    assert exc.value.code == 2
    assert "FATAL" in capsys.readouterr().err


def test_generate_negative_std_dev_fails():
    with pytest.raises(SystemExit) as exc:
        main(["generate", "-d", "-1"])
    assert exc.value.code == 2


def test_config_file_and_flag_precedence(tmp_path: Path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(yaml.safe_dump({"generation": {"nb_cities": 7, "nb_centroids": 2, "seed": 9}}), encoding="utf-8")
    out = tmp_path / "inst.json"
    assert main(["--config", str(cfg), "generate", "-c", "1", "-o", str(out)]) == 0
    params = _load(out).params
    assert params.nb_cities == 7
    assert params.nb_centroids == 1
    assert params.seed == 9


def test_missing_config_file_fails(tmp_path: Path):
    with pytest.raises(SystemExit) as exc:
        main(["--config", str(tmp_path / "nope.yaml"), "generate"])
    assert exc.value.code == 2


def test_generate_summary_csv(tmp_path: Path):
    summary = tmp_path / "clusters.csv"
    rc = main(["generate", "-n", "10", "-c", "3", "-s", "2", "-o", str(tmp_path / "i.json"), "--summary", str(summary)])
    assert rc == 0
    df = pd.read_csv(summary)
    assert list(df["size"]) == [4, 3, 3]


def test_generate_writes_run_log(tmp_path: Path):
    logs = tmp_path / "logs"
    rc = main(["--log-dir", str(logs), "generate", "-n", "4", "-c", "2", "-s", "5", "-o", str(tmp_path / "i.geojson")])
    assert rc == 0
    summaries = list(logs.glob("*.summary.json"))
    assert len(summaries) == 1
    assert json.loads(summaries[0].read_text(encoding="utf-8"))["status"] == "completed"
    assert len(list(logs.glob("*.log.jsonl"))) == 1


def test_visualize_html(tmp_path: Path):
    inst_path = tmp_path / "inst.geojson"
    html_path = tmp_path / "map.html"
    main(["generate", "-n", "4", "-c", "2", "-s", "5", "-o", str(inst_path)])
    rc = main(["visualize", "-i", str(inst_path), "-s", "0 1 2 3", "--close-tour", "-o", str(html_path)])
    assert rc == 0
    html = html_path.read_text(encoding="utf-8")
    assert "L.polyline" in html
    assert "L.CRS.Simple" in html


def test_visualize_solution_file_and_png(tmp_path: Path):
    inst_path = tmp_path / "inst.json"
    solution = tmp_path / "solution.txt"
    solution.write_text("3 2 1 0\n", encoding="utf-8")
    png = tmp_path / "map.png"
    main(["generate", "-n", "4", "-c", "2", "-s", "5", "-o", str(inst_path)])
    assert main(["visualize", "-i", str(inst_path), "-s", str(solution), "-o", str(png)]) == 0
    assert png.read_bytes()[:4] == b"\x89PNG"


def test_visualize_to_stdout(tmp_path: Path, capsys):
    inst_path = tmp_path / "inst.json"
    main(["generate", "-n", "3", "-c", "1", "-s", "5", "-o", str(inst_path)])
    capsys.readouterr()
    assert main(["visualize", "-i", str(inst_path), "--hide-centroids"]) == 0
    assert "L.circleMarker" in capsys.readouterr().out


def test_visualize_bad_route_fails(tmp_path: Path):
    inst_path = tmp_path / "inst.json"
    main(["generate", "-n", "3", "-c", "1", "-s", "5", "-o", str(inst_path)])
    with pytest.raises(SystemExit) as exc:
        main(["visualize", "-i", str(inst_path), "-s", "0 1 7"])
    assert exc.value.code == 2


def test_visualize_missing_instance_fails(tmp_path: Path):
    with pytest.raises(SystemExit) as exc:
        main(["visualize", "-i", str(tmp_path / "missing.json")])
    assert exc.value.code == 2


def test_visualize_long_inline_route(tmp_path: Path):
    inst_path = tmp_path / "inst.json"
    html_path = tmp_path / "map.html"
    main(["generate", "-n", "120", "-c", "4", "-s", "3", "-o", str(inst_path)])
    route = " ".join(str(i) for i in range(120))
    assert len(route) > 255, "inline route must exceed the file name limit"
    assert main(["visualize", "-i", str(inst_path), "-s", route, "-o", str(html_path)]) == 0
    assert "L.polyline" in html_path.read_text(encoding="utf-8")


def test_config_exponent_literals_fail_cleanly(tmp_path: Path, capsys):
    # YAML 1.1 reads "1e3" (no dot) as a string
    cfg = tmp_path / "config.yaml"
    cfg.write_text("generation:\n  max_width: 1e3\n  std_dev: 1e1\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["--config", str(cfg), "generate", "-s", "1"])
    assert exc.value.code == 2
    assert "max_width" in capsys.readouterr().err


def test_no_clamp_overrides_config(tmp_path: Path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(yaml.safe_dump({"generation": {"clamp": True}}), encoding="utf-8")
    out = tmp_path / "inst.json"
    assert main(["--config", str(cfg), "generate", "-s", "1", "--no-clamp", "-o", str(out)]) == 0
    assert _load(out).params.clamp is False


def test_no_close_tour_overrides_config(tmp_path: Path, monkeypatch):
    import tspgen.app as app

    seen = {}

    def fake_render(instance, route, config=None, **options):
        seen["close_tour"] = config["visualization"]["close_tour"]
        return "<html></html>"

    monkeypatch.setattr(app, "render", fake_render)
    cfg = tmp_path / "config.yaml"
    cfg.write_text(yaml.safe_dump({"visualization": {"close_tour": True}}), encoding="utf-8")
    inst_path = tmp_path / "inst.json"
    main(["generate", "-n", "3", "-c", "1", "-s", "5", "-o", str(inst_path)])
    rc = main(["--config", str(cfg), "visualize", "-i", str(inst_path), "-s", "0 1 2", "--no-close-tour",
               "-o", str(tmp_path / "map.html")])
    assert rc == 0
    assert seen["close_tour"] is False
