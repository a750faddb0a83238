import math

import pytest

from starcalc import osu_2019, osu_2021_july
from starcalc.osu_object import circle_radius, convert_objects
from starcalc.strains import (
    lerp, logistic, norm, reverse_lerp, smoothstep, sorted_peaks,
    strain_decay, to_f32, weighted_sum,
)


def test_strain_decay():
    assert strain_decay(0.0, 0.15) == 1.0
    assert strain_decay(1000.0, 0.15) == pytest.approx(0.15)
    assert strain_decay(500.0, 0.3) == pytest.approx(math.sqrt(0.3))


def test_strain_decay_overflows_to_inf():
    assert strain_decay(-1e7, 0.3) == math.inf
    assert strain_decay(1e7, 0.3) == 0.0


def test_norm_stays_in_range():
    assert norm(1.1, 0.0, 0.0) == 0.0
    assert norm(1.5, 2.0, 0.0) == pytest.approx(2.0)
    assert norm(1.1, 1e300, 1e300) == \
        pytest.approx(1e300 * 2.0 ** (1.0 / 1.1))
    assert norm(2.0, math.inf, 1.0) == math.inf


def test_weighted_sum_sorts_descending():
    assert weighted_sum([1.0, 3.0, 2.0], 0.9) == \
        pytest.approx(3.0 + 2.0 * 0.9 + 1.0 * 0.81)
    assert weighted_sum([], 0.9) == 0.0


def test_weighted_sum_non_zero():
    assert weighted_sum([0.0, 2.0, 0.0, 1.0], 0.5, non_zero=True) == \
        pytest.approx(2.5)
    assert sorted_peaks([0.0, 2.0, -1.0], non_zero=True) == [2.0]


def test_numeric_helpers():
    assert lerp(2.0, 4.0, 0.25) == 2.5
    assert reverse_lerp(5.0, 0.0, 10.0) == 0.5
    assert reverse_lerp(20.0, 0.0, 10.0) == 1.0
    assert smoothstep(0.5, 0.0, 1.0) == pytest.approx(0.5)
    assert logistic(0.0, 0.0, 1.0) == pytest.approx(0.5)
    assert norm(2.0, 3.0, 4.0) == pytest.approx(5.0)
    assert to_f32(0.1) != 0.1
    assert to_f32(0.5) == 0.5


def test_fewer_than_two_objects_has_no_peaks(make_map):
    bmap = make_map([(100.0, 100.0, 0.0)])
    res = osu_2019.strains(bmap)
    assert res[osu_2019.AIM] == []
    assert osu_2019.stars(bmap).stars == 0.0


def test_section_rollover(make_map):
    bmap = make_map([
        (100.0, 100.0, 0.0),
        (200.0, 100.0, 100.0),
        (300.0, 100.0, 1500.0),
    ])
    res = osu_2019.strains(bmap)

    for skill in (osu_2019.AIM, osu_2019.SPEED):
        _, decay_base = osu_2019.SKILLS[skill]
        peaks = res[skill]
        assert len(peaks) == 4
        # the middle sections only hold the decayed strain
        assert peaks[2] / peaks[1] == \
            pytest.approx(strain_decay(400.0, decay_base))
        assert peaks[1] < peaks[0]


def test_two_object_chart(make_map):
    bmap = make_map([(100.0, 100.0, 0.0), (300.0, 100.0, 500.0)], cs=4.0)
    res = osu_2021_july.strains(bmap)

    radius = circle_radius(4.0)
    jump = 200.0 * osu_2021_july.NORMALIZED_RADIUS / radius
    aim_peak = osu_2021_july.SKILL_MULTIPLIER[osu_2021_july.AIM] * \
        math.pow(jump, 0.99) / 500.0
    speed_peak = osu_2021_july.SKILL_MULTIPLIER[osu_2021_july.SPEED] * \
        1.95 / 500.0

    assert res[osu_2021_july.AIM] == [pytest.approx(aim_peak)]
    assert res[osu_2021_july.SPEED] == [pytest.approx(speed_peak)]

    attrs = osu_2021_july.stars(bmap)
    aim = math.sqrt(aim_peak) * 0.0675
    speed = math.sqrt(speed_peak) * 0.0675
    assert attrs.aim == pytest.approx(aim)
    assert attrs.speed == pytest.approx(speed)
    assert attrs.stars == pytest.approx(aim + speed + abs(aim - speed) / 2.0)


def test_clock_rate_scales_deltas(make_map, stream_map):
    fast = osu_2021_july.stars(stream_map, clock_rate=1.5)

    scaled = make_map([
        (h.pos.x, h.pos.y, h.start_time / 1.5)
        for h in stream_map.hit_objects
    ])
    reference = osu_2021_july.stars(scaled)

    assert fast.aim == pytest.approx(reference.aim)
    assert fast.speed == pytest.approx(reference.speed)
    assert fast.stars > osu_2021_july.stars(stream_map).stars


def test_dt_mod_matches_clock_rate(stream_map):
    assert osu_2019.stars(stream_map, mods=64).stars == \
        pytest.approx(osu_2019.stars(stream_map, clock_rate=1.5).stars)


def test_weighted_sum_grows_with_peaks():
    peaks = [0.5, 2.0, 1.25, 0.0, 3.0, 0.75]
    values = [weighted_sum(peaks[:i], 0.9) for i in range(len(peaks) + 1)]
    assert values == sorted(values)


def _diff_objects(bmap, clock_rate):
    radius = circle_radius(bmap.cs)
    objects = convert_objects(bmap)
    return osu_2021_july.build(objects, clock_rate,
        osu_2021_july.NORMALIZED_RADIUS / radius, radius)


@pytest.mark.parametrize("clock_rate", [0.5, 1.0, 2.0, 4.0])
def test_deltas_scale_with_clock_rate(stream_map, clock_rate):
    diff_objects = _diff_objects(stream_map, clock_rate)
    assert len(diff_objects) == len(stream_map.hit_objects) - 1

    for h in diff_objects:
        assert h.delta == pytest.approx(150.0 / clock_rate)
        assert h.strain_time >= osu_2021_july.MIN_STRAIN_TIME


def test_coincident_objects_use_the_floor(make_map):
    bmap = make_map([(100.0, 100.0, 500.0), (300.0, 100.0, 500.0)])
    h, = _diff_objects(bmap, 1.0)
    assert h.delta == 0.0
    assert h.strain_time == osu_2021_july.MIN_STRAIN_TIME
    assert osu_2021_july.stars(bmap).stars > 0.0
