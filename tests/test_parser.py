import io

import pytest

from starcalc.beatmap import MODE_STD, MODE_MANIA
from starcalc.parser import parser


def test_metadata_and_difficulty(sample_map):
    assert sample_map.format_version == 14
    assert sample_map.mode == MODE_STD
    assert sample_map.title == "Sample"
    assert sample_map.artist == "Starcalc"
    assert sample_map.creator == "tester"
    assert sample_map.version == "Normal"
    assert sample_map.cs == 4.0
    assert sample_map.od == 8.0
    assert sample_map.ar == 9.0
    assert sample_map.hp == 5.0
    assert sample_map.slider_multiplier == 1.4
    assert sample_map.stack_leniency == 0.7


def test_hit_objects(sample_map):
    objs = sample_map.hit_objects
    assert len(objs) == 6
    assert [h.start_time for h in objs] == \
        [0.0, 500.0, 1000.0, 2500.0, 4000.0, 5500.0]

    assert objs[0].is_circle()
    assert objs[1].sound == 2
    assert objs[2].is_slider()
    assert objs[3].is_slider()
    assert objs[4].is_spinner()
    assert objs[4].end_time == 5000.0
    assert objs[5].is_circle()

    assert sample_map.n_circles() == 3
    assert sample_map.n_sliders() == 2
    assert sample_map.n_spinners() == 1


def test_slider_control_points_are_relative(sample_map):
    slider = sample_map.hit_objects[2].slider
    assert slider.spans == 1
    assert slider.pixel_len == 140.0
    assert slider.control_points[0].pos.x == 0.0
    assert slider.control_points[-1].pos.x == 128.0
    assert slider.control_points[-1].pos.y == 0.0

    assert sample_map.hit_objects[3].slider.spans == 2


def test_linear_slider_is_extended_to_pixel_length(sample_map):
    slider = sample_map.hit_objects[2].slider
    assert slider.path().dist() == pytest.approx(140.0)
    end = slider.path().position_at(1.0)
    assert end.x == pytest.approx(140.0)
    assert end.y == pytest.approx(0.0)


def test_timing_points(sample_map):
    assert len(sample_map.timing_points) == 1
    assert sample_map.timing_points[0].beat_len == 500.0
    assert len(sample_map.difficulty_points) == 2

    assert sample_map.beat_len_at(3000.0) == 500.0
    assert sample_map.slider_velocity_at(1000.0) == 1.0
    assert sample_map.slider_velocity_at(2500.0) == 2.0


def test_slider_duration(sample_map):
    # 140px at 1.4 * 100px per beat of 500ms
    assert sample_map.slider_duration(sample_map.hit_objects[2]) == \
        pytest.approx(500.0)


def test_ar_defaults_to_od():
    text = (
        "osu file format v5\n"
        "[Difficulty]\n"
        "OverallDifficulty:7\n"
        "CircleSize:4\n"
        "[HitObjects]\n"
        "64,192,0,1,0\n"
    )
    bmap = parser().map(io.StringIO(text))
    assert bmap.format_version == 5
    assert bmap.ar == 7.0


def test_mania_holds():
    text = (
        "osu file format v14\n"
        "[General]\n"
        "Mode: 3\n"
        "[Difficulty]\n"
        "CircleSize:4\n"
        "[HitObjects]\n"
        "64,192,100,128,0,600:0:0:0:0:\n"
        "192,192,200,1,0,0:0:0:0:\n"
    )
    bmap = parser().map(io.StringIO(text))
    assert bmap.mode == MODE_MANIA
    assert bmap.hit_objects[0].is_hold()
    assert bmap.hit_objects[0].end_time == 600.0
    assert bmap.n_sliders() == 1


def test_malformed_lines_are_skipped():
    text = (
        "osu file format v14\n"
        "[HitObjects]\n"
        "64,192\n"
        "64,192,0,1,0\n"
        "nope,192,10,1,0\n"
    )
    p = parser()
    bmap = p.map(io.StringIO(text))
    assert p.done
    assert len(bmap.hit_objects) == 1
    assert str(p) == "parsing successful"
