import pytest

from starcalc import fruits_2022, fruits_ppv1
from starcalc.fruits_2022 import (
    DROPLET, FRUIT, LegacyRandom, ObjectCount, PalpableObject, _Offsets,
    catch_width, convert_objects, hard_rock_x,
)


def test_legacy_random_is_deterministic():
    a = LegacyRandom(1337)
    b = LegacyRandom(1337)
    assert [a.next_uint() for _ in range(10)] == \
        [b.next_uint() for _ in range(10)]
    assert LegacyRandom(1).next_uint() != LegacyRandom(2).next_uint()


def test_legacy_random_ranges():
    rng = LegacyRandom(1337)
    for _ in range(500):
        assert 0 <= rng.next() <= 0x7FFFFFFF
        assert 0.0 <= rng.next_double() < 1.0
        assert -20 <= rng.next_int(-20, 20) < 20
        assert 5.0 <= rng.next_range(5.0, 6.0) < 6.0
        assert rng.next_bool() in (True, False)


def test_palpable_objects_are_clamped():
    assert PalpableObject(-10.0, 0.0, FRUIT).x == 0.0
    assert PalpableObject(600.0, 0.0, FRUIT).x == 512.0
    assert PalpableObject(100.0, 0.0, DROPLET).x == 100.0


def test_object_count_stops_at_take():
    count = ObjectCount(2)
    count.record(FRUIT)
    count.record_tiny_droplets(3)
    count.record(DROPLET)
    count.record(FRUIT)
    count.record_tiny_droplets(3)
    assert (count.fruits, count.droplets, count.tiny_droplets) == (1, 1, 3)


def test_hard_rock_offsets():
    rng = LegacyRandom(1337)
    state = _Offsets()

    # the first fruit is never moved
    assert hard_rock_x(100.0, 0.0, state, rng) == 100.0
    # small jumps are exaggerated
    assert hard_rock_x(150.0, 300.0, state, rng) == 200.0
    assert state.last_pos == 200.0
    # long pauses reset the offset state
    assert hard_rock_x(400.0, 2000.0, state, rng) == 400.0
    assert state.last_time == 2000.0


def test_hard_rock_random_offset_on_repeats():
    rng = LegacyRandom(1337)
    state = _Offsets()
    hard_rock_x(256.0, 0.0, state, rng)
    x = hard_rock_x(256.0, 100.0, state, rng)
    assert 236.0 <= x <= 276.0


def test_catch_width():
    assert catch_width(5.0) == pytest.approx(106.75 * 0.8)
    assert catch_width(4.0) > catch_width(6.0)


def test_convert_sample(sample_map):
    objects, count = convert_objects(sample_map, False, 1000)

    # heads, repeats and tails, the sliders are too short for ticks
    assert (count.fruits, count.droplets) == (8, 0)
    assert count.tiny_droplets == 9
    assert len(objects) == 8
    assert [o.start_time for o in objects][:3] == [0.0, 500.0, 1000.0]


def test_convert_counts_passed_objects(sample_map):
    _, count = convert_objects(sample_map, False, 3)
    assert count.fruits == 3
    assert count.tiny_droplets == 0


def test_stars_sets_object_counts(sample_map):
    attrs = fruits_2022.stars(sample_map)
    assert attrs.is_convert
    assert attrs.n_fruits == 8
    assert attrs.max_combo == 8
    assert attrs.ar == 9.0
    assert attrs.stars > 0.0


def test_hard_rock_is_harder(stream_map):
    for module in (fruits_ppv1, fruits_2022):
        assert module.stars(stream_map, mods=16).stars > \
            module.stars(stream_map).stars


def test_lower_accuracy_lowers_pp(sample_map):
    attrs = fruits_2022.stars(sample_map)
    full = fruits_2022.pp(attributes=attrs)
    assert fruits_2022.pp(attributes=attrs, acc=90.0).pp < full.pp
    assert full.stars == attrs.stars
