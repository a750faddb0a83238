import json
import logging

import pytest

from starcalc.__main__ import main, parse_play


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"log": {
        "dir": str(tmp_path / "log"), "stdout": False,
    }}))
    yield str(path)

    logger = logging.getLogger("starcalc")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_parse_play():
    assert parse_play([]) == {"mods": 0}
    assert parse_play(["+HDDT", "95.5%", "300x", "2m"]) == {
        "mods": 8 | 64, "acc": 95.5, "combo": 300, "misses": 2,
    }
    with pytest.raises(ValueError):
        parse_play(["abc"])


def test_main(sample_path, config_path, capsys):
    assert main([sample_path, "+HR", "98%", "--config", config_path]) == 0
    out = capsys.readouterr().out.splitlines()

    assert out[0].startswith("Starcalc - Sample [Normal]")
    assert out[0].endswith("+HR (osu_2022)")
    assert out[-1].endswith(" pp")


def test_main_with_revision_and_chunks(sample_path, config_path, capsys):
    code = main([sample_path, "-r", "taiko_2022", "--chunks",
        "--config", config_path])
    assert code == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0].endswith("(taiko_2022)")
    rows = [line.split("\t") for line in out if "\t" in line]
    assert [float(t) for t, _ in rows][:3] == [0.0, 500.0, 1000.0]


def test_main_graph(sample_path, config_path, tmp_path):
    path = tmp_path / "graph.png"
    assert main([sample_path, "--graph", str(path),
        "--config", config_path]) == 0
    assert path.exists()


def test_main_errors(sample_path, config_path, tmp_path):
    assert main([sample_path, "what", "--config", config_path]) == 2
    assert main([sample_path, "-r", "osu_1999", "--config", config_path]) == 2
    assert main([str(tmp_path / "missing.osu"),
        "--config", config_path]) == 1


def test_main_stable_score(sample_path, config_path, capsys):
    args = [sample_path, "-r", "osu_2024", "98%", "--config", config_path]
    assert main(args) == 0
    lazer = capsys.readouterr().out.splitlines()

    assert main(args + ["--stable"]) == 0
    stable = capsys.readouterr().out.splitlines()

    assert lazer[0].endswith("(osu_2024)")
    # the sample has sliders, their heads only count on lazer
    assert lazer[-1] != stable[-1]
