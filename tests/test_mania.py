import pytest

from starcalc import mania_2018, mania_2022, mania_ppv1
from starcalc.attributes import (
    ManiaDifficultyAttributes, OsuDifficultyAttributes,
)
from starcalc.mania_ppv1 import round_half_up, star_value_of


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(3.4) == 3


def test_key_counts(mania_map):
    assert mania_2018.total_columns(mania_map) == 4
    assert mania_2022.total_columns(mania_map) == 4

    mania_map.cs = 4.5
    assert mania_2018.total_columns(mania_map) == 5
    assert mania_2022.total_columns(mania_map) == 4


def test_column_of():
    assert mania_2022.column_of(0.0, 4) == 0
    assert mania_2022.column_of(200.0, 4) == 1
    assert mania_2022.column_of(511.0, 4) == 3
    assert mania_2022.column_of(600.0, 4) == 3


def test_convert_columns(sample_map, stream_map):
    # circles only
    assert mania_2018.convert_columns(stream_map) == 7

    # mostly sliders and spinners, od above 4 adds a key
    bmap = sample_map.copy()
    bmap.hit_objects = sample_map.hit_objects[2:]
    assert mania_2018.convert_columns(bmap) == 5


def test_hit_window():
    assert mania_ppv1.hit_window(5.0, 0, 1.0) == 49
    assert mania_ppv1.hit_window(5.0, 16, 1.0) == 35
    assert mania_ppv1.hit_window(5.0, 2, 1.0) == 68
    assert mania_2022.hit_window(5.0, 16, 1.0) == 35


def test_convert_objects_counts_hold_ticks(mania_map):
    objects, max_combo = mania_2022.convert_objects(mania_map, 4, 1000)
    assert len(objects) == 64
    # 8 holds of 400ms
    assert max_combo == 64 + 8 * 4
    assert objects[3].end_time - objects[3].start_time == 400.0
    assert [o.column for o in objects[:4]] == [0, 1, 2, 3]


def test_2022_stars_attributes(mania_map):
    attrs = mania_2022.stars(mania_map, mods=16)
    assert attrs.stars > 0.0
    assert attrs.n_objects == 64
    assert attrs.max_combo == 96
    assert attrs.hit_window == mania_2022.hit_window(8.0, 16, 1.0)
    assert not attrs.is_convert


def test_converts(stream_map):
    for module in (mania_2018, mania_2022):
        attrs = module.stars(stream_map)
        assert attrs.is_convert
        assert attrs.stars > 0.0

    assert mania_ppv1.stars(stream_map).stars == 0.0


def test_2022_converts_sample(sample_map):
    assert mania_2022.total_columns(sample_map) == 7

    objects, max_combo = mania_2022.convert_objects(sample_map, 7, 1000)
    assert [o.column for o in objects] == [0, 2, 4, 3, 3, 1]
    # slider and spinner bodies add one combo per 100ms
    bodies = sum(int(sample_map.slider_duration(h) / 100.0)
        for h in sample_map.hit_objects if h.is_slider())
    assert max_combo == 6 + bodies + 10

    attrs = mania_2022.stars(sample_map)
    assert attrs.is_convert
    assert attrs.n_objects == 6
    assert attrs.max_combo == max_combo
    assert attrs.stars > 0.0
    assert mania_2022.pp(attributes=attrs).pp > 0.0


def test_star_value_of():
    assert star_value_of(2.5) == 2.5
    assert star_value_of(ManiaDifficultyAttributes(stars=3.0)) == 3.0
    assert star_value_of(OsuDifficultyAttributes(stars=3.0)) is None
    assert star_value_of(None) is None


def test_score_based_pp_needs_the_map(mania_map):
    for module in (mania_ppv1, mania_2018):
        with pytest.raises(ValueError):
            module.pp(attributes=3.0)

        res = module.pp(mania_map, attributes=3.0)
        assert res.stars == 3.0
        assert res.pp > 0.0


def test_lower_score_lowers_pp(mania_map):
    for module in (mania_ppv1, mania_2018):
        high = module.pp(mania_map, score=950000)
        low = module.pp(mania_map, score=650000)
        assert low.pp_strain < high.pp_strain
        assert low.pp < high.pp

    assert mania_ppv1.pp(mania_map, score=400000).pp_strain == 0.0


def test_2022_pp_follows_accuracy(mania_map):
    attrs = mania_2022.stars(mania_map)
    full = mania_2022.pp(attributes=attrs)
    lower = mania_2022.pp(attributes=attrs, acc=95.0)
    assert lower.pp < full.pp
    assert full.pp == pytest.approx(full.pp_difficulty * 8.0)

    # below 80% the accuracy factor is zero
    assert mania_2022.pp(attributes=attrs, acc=70.0).pp == 0.0
