import math

import pytest

from starcalc import taiko_2020, taiko_2022, taiko_ppv1
from starcalc.attributes import TaikoDifficultyAttributes
from starcalc.beatmap import MODE_TAIKO
from starcalc.convert import (
    TAIKO_DRUMROLL, TAIKO_HIT, TAIKO_SWELL, is_convert, is_rim_sound,
    taiko_objects,
)


def test_rim_sounds():
    assert not is_rim_sound(0)
    assert is_rim_sound(2)
    assert is_rim_sound(8)
    assert is_rim_sound(10)
    assert not is_rim_sound(4)


def test_convert_splits_short_sliders(sample_map):
    objects = taiko_objects(sample_map)
    assert is_convert(sample_map)

    hits = [o for o in objects if o.kind == TAIKO_HIT]
    swells = [o for o in objects if o.kind == TAIKO_SWELL]

    # 2 + 3 hits out of the two sliders, no drumrolls
    assert len(hits) == 8
    assert len(swells) == 1
    assert not [o for o in objects if o.kind == TAIKO_DRUMROLL]

    assert [o.start_time for o in hits[2:4]] == [1000.0, 1500.0]
    assert hits[4].start_time == 2500.0
    assert hits[5].start_time == pytest.approx(2678.5)

    assert hits[1].is_rim()
    assert hits[0].is_centre()
    assert hits[-1].is_rim()


def test_native_maps_convert_one_to_one(make_map):
    bmap = make_map([(0.0, 0.0, t) for t in (0.0, 100.0, 200.0)],
        mode=MODE_TAIKO)
    objects = taiko_objects(bmap)
    assert not is_convert(bmap)
    assert [o.start_time for o in objects] == [0.0, 100.0, 200.0]
    assert all(o.is_centre() for o in objects)


def test_rescale():
    assert taiko_2022.rescale(0.0) == 0.0
    assert taiko_2022.rescale(-1.0) == -1.0
    assert taiko_2022.rescale(8.0) == pytest.approx(10.43 * 0.6931471805599453)


def _rated(is_convert, colour, stamina):
    dm = taiko_2022.DIFFICULTY_MULTIPLIER
    attrs = TaikoDifficultyAttributes(is_convert=is_convert)
    taiko_2022.eval_ratings(attrs, colour / dm, 0.0, stamina / dm, 4.0)
    return attrs


def test_convert_penalty():
    native = _rated(False, 1.0, 9.0)
    expected = taiko_2022.rescale(4.0 * taiko_2022.DIFFICULTY_MULTIPLIER * 1.4)
    assert native.stars == pytest.approx(expected)
    assert native.stamina == pytest.approx(9.0)
    assert native.colour == pytest.approx(1.0)

    assert _rated(True, 3.0, 9.0).stars == pytest.approx(expected * 0.925)
    assert _rated(True, 1.0, 7.0).stars == pytest.approx(expected * 0.925)
    assert _rated(True, 1.0, 9.0).stars == \
        pytest.approx(expected * 0.925 * 0.8)


def test_lower_accuracy_lowers_pp(stream_map):
    for module in (taiko_ppv1, taiko_2022):
        attrs = module.stars(stream_map)
        full = module.pp(attributes=attrs)
        assert module.pp(attributes=attrs, acc=90.0).pp < full.pp
        assert full.difficulty == attrs


def test_hardrock_raises_the_hit_window_od():
    assert taiko_2022.od_with_mods(8.0, 16) == pytest.approx(10.0)
    assert taiko_2022.od_with_mods(5.0, 16) == pytest.approx(7.0)
    assert taiko_2022.od_with_mods(8.0, 2) == pytest.approx(4.0)


@pytest.mark.parametrize("stamina,penalised", [
    (7.0, False),
    (8.0, False),
    (8.0 + 1e-9, True),
    (9.0, True),
])
def test_convert_penalty_at_stamina_threshold(monkeypatch, stamina,
        penalised):
    monkeypatch.setattr(taiko_2022, "DIFFICULTY_MULTIPLIER", 1.0)
    attrs = TaikoDifficultyAttributes(is_convert=True)
    taiko_2022.eval_ratings(attrs, 1.5, 0.0, stamina, 4.0)

    expected = taiko_2022.rescale(4.0 * 1.4) * 0.925
    if penalised:
        expected *= 0.8
    assert attrs.stars == pytest.approx(expected)


def test_2020_first_object_after_section_boundary(make_map):
    bmap = make_map([(0.0, 0.0, t) for t in (1000.0, 1150.0, 1300.0,
        1450.0)], mode=MODE_TAIKO)

    attrs = taiko_2020.stars(bmap)
    assert attrs.stars > 0.0
    assert attrs.max_combo == 4
    assert taiko_2020.strains(bmap)["colour"]


@pytest.mark.parametrize("gap", [300.0, 3000.0, 30000.0])
def test_ppv1_slowest_clock_rate(make_map, gap):
    bmap = make_map([(0.0, 0.0, 1000.0 + i * gap) for i in range(4)],
        mode=MODE_TAIKO)

    attrs = taiko_ppv1.stars(bmap, clock_rate=0.01)
    res = taiko_ppv1.pp(attributes=attrs)
    assert attrs.stars > 0.0
    assert res.pp > 0.0
    assert not math.isnan(res.pp)


def test_2022_hit_window_ignores_clock_rate_override(stream_map):
    od = stream_map.od
    base = taiko_2022.stars(stream_map)
    assert taiko_2022.stars(stream_map, clock_rate=1.2).great_hit_window == \
        base.great_hit_window

    fast = taiko_2022.stars(stream_map, mods=64, clock_rate=1.2)
    assert fast.great_hit_window == \
        pytest.approx(taiko_2022.great_hit_window(od, 1.5))
