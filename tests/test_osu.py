import math

import pytest

from starcalc import (
    osu_2015, osu_2015_february, osu_2018, osu_2019, osu_2021_january,
    osu_2021_july, osu_2022, osu_2024,
)
from starcalc.attributes import OsuDifficultyAttributes
from starcalc.beatmap import OBJ_CIRCLE, OBJ_SPINNER, v2f
from starcalc.osu_object import (
    OsuObject, apply_stacking, convert_objects, max_combo,
)

# revisions whose aim and speed pp scale with the combo
COMBO_SCALED = [osu_2015, osu_2015_february, osu_2018, osu_2019,
    osu_2021_january, osu_2021_july, osu_2022]

REVISIONS = COMBO_SCALED + [osu_2024]


def test_sample_objects(sample_map):
    objects = convert_objects(sample_map)
    assert len(objects) == 6
    # sliders get a legacy tail, the second one a repeat too
    assert [len(h.nested) for h in objects] == [0, 0, 1, 2, 0, 0]
    assert max_combo(objects) == 9
    assert objects[2].end_pos().x == pytest.approx(320.0 + 140.0)


def test_hard_rock_flips_positions(sample_map):
    objects = convert_objects(sample_map, mods=16)
    assert objects[0].pos.y == 384.0 - 192.0
    assert objects[5].pos.y == 384.0 - 300.0


def test_passed_objects_truncate(sample_map):
    assert len(convert_objects(sample_map, take=2)) == 2


def test_stacking():
    objects = [OsuObject(v2f(100.0, 100.0), t, OBJ_CIRCLE)
        for t in (0.0, 100.0, 200.0)]
    objects.append(OsuObject(v2f(300.0, 100.0), 300.0, OBJ_CIRCLE))

    apply_stacking(objects, 0.7, 14, 600.0, 0.5)
    assert [h.stack_height for h in objects] == [2, 1, 0, 0]
    assert objects[0].stacked_pos().x == pytest.approx(100.0 - 6.4)
    assert objects[2].stacked_pos().x == objects[2].pos.x


@pytest.mark.parametrize("module", REVISIONS)
def test_sample_map_stars(module, sample_map):
    attrs = module.stars(sample_map)
    assert attrs.stars > 0.0
    assert (attrs.n_circles, attrs.n_sliders, attrs.n_spinners) == (3, 2, 1)
    assert attrs.max_combo == 9
    assert attrs.aim > 0.0
    assert attrs.speed > 0.0


@pytest.mark.parametrize("module", COMBO_SCALED)
def test_pp_accuracy_and_combo(module, stream_map):
    attrs = module.stars(stream_map)
    full = module.pp(attributes=attrs)
    assert module.pp(attributes=attrs, acc=95.0).pp < full.pp
    assert module.pp(attributes=attrs, combo=10).pp < full.pp
    assert full.stars == attrs.stars


def test_pp_from_a_star_value_is_rejected():
    with pytest.raises(ValueError):
        osu_2019.pp(attributes=5.0)


def test_hidden_and_flashlight_raise_pp(stream_map):
    full = osu_2022.pp(stream_map).pp
    assert osu_2022.pp(stream_map, mods=8).pp > full
    assert osu_2022.stars(stream_map, mods=1024).flashlight > 0.0


def test_slider_factor_without_sliders(stream_map):
    assert osu_2022.stars(stream_map).slider_factor == 1.0


def test_difficulty_attributes_default():
    attrs = OsuDifficultyAttributes()
    assert attrs.n_objects() == 0
    assert attrs.slider_factor == 1.0
    with pytest.raises(TypeError):
        OsuDifficultyAttributes(colour=1.0)


def test_spinners_add_strain_before_february_2015():
    prev = OsuObject(v2f(100.0, 100.0), 0.0, OBJ_CIRCLE)
    spinner = OsuObject(v2f(256.0, 192.0), 200.0, OBJ_SPINNER, 1000.0)

    old = osu_2015.DifficultyObject(spinner, prev, 1.0, 1.0, 32.0)
    feb = osu_2015_february.DifficultyObject(spinner, prev, 1.0, 1.0, 32.0)
    assert old.dist == pytest.approx((v2f(156.0, 92.0)).len())
    assert feb.dist == 0.0

    skill = osu_2015.Skill(osu_2015_february.DIFF_AIM, 1.0, 0.0)
    assert skill.strain_value_of(old) > 0.0
    feb_skill = osu_2015_february.Skill(osu_2015_february.DIFF_AIM, 1.0,
        0.0)
    assert feb_skill.strain_value_of(feb) == 0.0


def test_2015_pp_matches_february_formula(stream_map):
    # without spinners both calculations agree
    assert osu_2015.stars(stream_map) == osu_2015_february.stars(stream_map)
    assert osu_2015.pp(stream_map, acc=97.0) == \
        osu_2015_february.pp(stream_map, acc=97.0)


def test_2024_counts(sample_map, stream_map):
    # the second slider has a repeat, legacy tails are not large ticks
    assert osu_2024.stars(sample_map).n_large_ticks == 1

    attrs = osu_2024.stars(stream_map)
    assert attrs.n_large_ticks == 0
    assert attrs.aim_difficult_strain_count > 0.0
    assert attrs.speed_difficult_strain_count > 0.0
    assert attrs.speed_note_count > 0.0


def test_2024_slider_judgements(sample_map):
    attrs = osu_2024.stars(sample_map)
    full = osu_2024.pp(attributes=attrs)
    assert full.accuracy == 100.0

    dropped = osu_2024.pp(attributes=attrs, slider_end_hits=0)
    assert dropped.accuracy < 100.0
    assert dropped.pp < full.pp

    # stable scores never see slider judgements
    stable = osu_2024.pp(attributes=attrs, lazer=False)
    assert osu_2024.pp(attributes=attrs, lazer=False,
        slider_end_hits=0) == stable
    assert stable.pp != full.pp


def test_2024_combo_only_counts_with_sliders(stream_map):
    attrs = osu_2024.stars(stream_map)
    full = osu_2024.pp(attributes=attrs)
    assert osu_2024.pp(attributes=attrs, combo=10).pp == full.pp
    assert osu_2024.pp(attributes=attrs, misses=1).pp < full.pp


def test_2024_relax(stream_map):
    res = osu_2024.pp(stream_map, mods=128)
    assert res.pp_speed == 0.0
    assert res.pp_acc == 0.0
    assert res.pp_aim > 0.0


def test_2024_miss_penalty():
    # nothing to scale the misses by
    assert osu_2024.miss_penalty(1.0, 1.0) == 0.0
    assert osu_2024.miss_penalty(1.0, 0.2) == 0.0
    assert 0.0 < osu_2024.miss_penalty(2.0, 50.0) < \
        osu_2024.miss_penalty(1.0, 50.0) < 0.96


def test_2024_difficult_strain_count():
    assert osu_2024.difficult_strain_count([1.0, 2.0], 0.0) == 0.0
    # every object at the evenly spread top strain
    n = osu_2024.difficult_strain_count([1.0] * 10, 10.0)
    assert n == pytest.approx(10 * 1.1 / (1.0 + math.exp(-1.2)))
