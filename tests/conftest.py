import os

import pytest

from starcalc.beatmap import (
    Beatmap, HitObject, TimingPoint, MODE_STD, MODE_MANIA, OBJ_CIRCLE,
    OBJ_HOLD, v2f,
)
from starcalc.parser import parse_file

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


def _build(mode=MODE_STD, objects=(), cs=4.0, od=8.0, ar=9.0, hp=5.0):
    bmap = Beatmap()
    bmap.mode = mode
    bmap.title = "synthetic"
    bmap.version = "test"
    bmap.cs = cs
    bmap.od = od
    bmap.ar = ar
    bmap.hp = hp
    bmap.timing_points = [TimingPoint(0.0, 500.0)]
    bmap.hit_objects = list(objects)
    return bmap


@pytest.fixture
def make_map():
    """builds a beatmap from (x, y, time) circles"""
    def make(circles, mode=MODE_STD, **kwargs):
        objects = [HitObject(v2f(x, y), t, OBJ_CIRCLE)
            for x, y, t in circles]
        return _build(mode, objects, **kwargs)
    return make


@pytest.fixture
def stream_map(make_map):
    """a back and forth jump pattern, 48 circles 150ms apart"""
    circles = []
    for i in range(48):
        x = 100.0 if i % 2 == 0 else 400.0
        y = 150.0 + (i % 3) * 40.0
        circles.append((x, y, 1000.0 + i * 150.0))
    return make_map(circles)


@pytest.fixture
def mania_map():
    """4 key chart with notes and overlapping holds"""
    objects = []
    for i in range(64):
        column = i % 4
        x = column * 128.0 + 64.0
        t = 1000.0 + i * 120.0
        if i % 8 == 3:
            objects.append(HitObject(v2f(x, 192.0), t, OBJ_HOLD,
                end_time=t + 400.0))
        else:
            objects.append(HitObject(v2f(x, 192.0), t, OBJ_CIRCLE))
    return _build(MODE_MANIA, objects, cs=4.0, od=8.0)


@pytest.fixture
def sample_path():
    return os.path.join(DATA_DIR, "sample.osu")


@pytest.fixture
def sample_map(sample_path):
    return parse_file(sample_path)
