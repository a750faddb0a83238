import pytest

from starcalc import osu_2019
from starcalc.graph import chunks, plot_strains, plot_time_format


def test_plot_time_format():
    assert plot_time_format(0) == "0:00"
    assert plot_time_format(61500) == "1:01"
    assert plot_time_format(600000.0) == "10:00"


def test_chunks(stream_map):
    # circles from 1000ms to 8050ms
    res = chunks(stream_map, "osu_2019", window_length=2000, step_size=1000)

    assert [c['time'] for c in res] == [1000.0 * i for i in range(9)]
    assert res[0]['attributes'] == osu_2019.stars(
        _between(stream_map, 0.0, 2000.0))
    assert all(c['stars'] > 0.0 for c in res[:-1])
    # only the last circle is left in the final window
    assert res[-1]['stars'] == 0.0
    assert res[-1]['attributes'] is not None


def _between(bmap, start, end):
    res = bmap.copy()
    res.hit_objects = [h for h in bmap.hit_objects
        if start <= h.start_time < end]
    return res


def test_chunks_with_empty_windows(make_map):
    bmap = make_map([(100.0, 100.0, 0.0), (200.0, 100.0, 100.0),
        (100.0, 100.0, 5000.0)])
    res = chunks(bmap, "osu_2019", window_length=1000, step_size=1000)

    assert len(res) == 6
    assert res[2]['attributes'] is None
    assert res[2]['stars'] == 0.0
    assert res[0]['stars'] > 0.0


def test_chunks_of_an_empty_map(make_map):
    assert chunks(make_map([]), "osu_2019") == []


def test_chunks_rejects_bad_windows(stream_map):
    with pytest.raises(ValueError):
        chunks(stream_map, "osu_2019", window_length=0)
    with pytest.raises(ValueError):
        chunks(stream_map, "osu_2019", step_size=-500)


def test_plot_strains(stream_map, tmp_path):
    path = str(tmp_path / "strains.png")
    assert plot_strains(stream_map, "osu_2022", path) == path
    with open(path, "rb") as f:
        assert f.read(8) == b"\x89PNG\r\n\x1a\n"
