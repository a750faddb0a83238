"""
osu!mania difficulty and pp as of 2022.

the strain skill now decays each column from its own last note and
scales the hold bonus by how close the nearest release is. standard maps
are converted with the same key count rule as 2018. pp no longer depends
on score: it's star rating times a score-weighted accuracy.
"""

import logging
import math

from . import mods as m
from .attributes import (
    ManiaDifficultyAttributes, ManiaPerformanceAttributes, difficulty_of,
)
from .beatmap import MODE_MANIA, MODE_STD
from .calculator import Difficulty, Performance
from .hitresults import mania_state
from .mania_2018 import convert_columns
from .strains import strain_decay, weighted_sum

logger = logging.getLogger(__name__)

SECTION_LEN = 400.0
STAR_SCALING_FACTOR = 0.018
DECAY_WEIGHT = 0.9

INDIVIDUAL_DECAY_BASE = 0.125
OVERALL_DECAY_BASE = 0.3
RELEASE_THRESHOLD = 24.0


class ManiaObject:
    """
    fields:
    start_time end_time: milliseconds
    column: key index
    """
    def __init__(self, start_time, end_time, column):
        self.start_time = start_time
        self.end_time = end_time
        self.column = column

    def __str__(self):
        return "column %d %g-%gms" % (self.column, self.start_time,
            self.end_time)

    def __repr__(self):
        return str(self)


def column_of(x, columns):
    x_divisor = 512.0 / columns
    return int(min(columns - 1, max(0.0, math.floor(x / x_divisor))))


def convert_objects(bmap, columns, take):
    """returns (mania objects, max combo) for the first take objects"""
    res = []
    max_combo = 0

    for h in bmap.hit_objects[:take]:
        column = column_of(h.pos.x, columns)
        max_combo += 1

        if h.is_slider():
            duration = bmap.slider_duration(h)
        elif h.is_hold() or h.is_spinner():
            duration = h.end_time - h.start_time
        else:
            res.append(ManiaObject(h.start_time, h.start_time, column))
            continue

        max_combo += int(duration / 100.0)
        res.append(ManiaObject(h.start_time, h.start_time + duration, column))

    return res, max_combo


class DifficultyObject:
    """
    fields:
    base: ManiaObject
    idx: index in the difficulty object list
    start_time end_time delta: clock adjusted
    """
    def __init__(self, base, last, clock_rate, idx):
        self.base = base
        self.idx = idx
        self.column = base.column
        self.start_time = base.start_time / clock_rate
        self.end_time = base.end_time / clock_rate
        self.delta = (base.start_time - last.start_time) / clock_rate

    def __str__(self):
        return "%d %s: delta=%g" % (self.idx, self.base, self.delta)

    def __repr__(self):
        return str(self)


def build(objects, clock_rate):
    return [
        DifficultyObject(objects[i], objects[i - 1], clock_rate, i - 1)
        for i in range(1, len(objects))
    ]


def _definitely_bigger(a, b, acceptable_difference=1.0):
    return a - b > acceptable_difference


class Strain:
    """
    strain skill sectioned in clock adjusted time, the strain itself is
    the sum of the column strain and the overall strain.

    fields:
    start_times end_times individual_strains: per column
    individual_strain overall_strain current_strain
    current_section_peak current_section_end
    strain_peaks: saved section peaks
    """
    def __init__(self, diff_objects, columns):
        self.diff_objects = diff_objects
        self.start_times = [0.0] * columns
        self.end_times = [0.0] * columns
        self.individual_strains = [0.0] * columns
        self.individual_strain = 0.0
        self.overall_strain = 1.0
        self.current_strain = 0.0
        self.current_section_peak = 0.0
        self.current_section_end = 0.0
        self.strain_peaks = []


    def process(self, obj):
        if obj.idx == 0:
            self.current_section_end = math.ceil(
                obj.start_time / SECTION_LEN) * SECTION_LEN

        while obj.start_time > self.current_section_end:
            self.strain_peaks.append(self.current_section_peak)
            self.current_section_peak = self.initial_strain(
                self.current_section_end, obj)
            self.current_section_end += SECTION_LEN

        self.current_strain = self.strain_value_at(obj)
        self.current_section_peak = max(self.current_strain,
            self.current_section_peak)


    def strain_value_at(self, obj):
        start_time = obj.start_time
        end_time = obj.end_time
        is_overlapping = False

        closest_end_time = abs(end_time - start_time)
        hold_factor = 1.0
        hold_addition = 0.0

        for i in range(len(self.end_times)):
            # a previous note or release overlaps the current note body
            is_overlapping |= \
                _definitely_bigger(self.end_times[i], start_time) and \
                _definitely_bigger(end_time, self.end_times[i])

            if _definitely_bigger(self.end_times[i], end_time):
                hold_factor = 1.25

            closest_end_time = min(closest_end_time,
                abs(end_time - self.end_times[i]))

            self.individual_strains[i] *= strain_decay(
                start_time - self.start_times[i], INDIVIDUAL_DECAY_BASE)

        # releasing near another release is as easy as releasing once
        if is_overlapping:
            hold_addition = 1.0 / (1.0 + math.exp(
                0.5 * (RELEASE_THRESHOLD - closest_end_time)))

        self.individual_strains[obj.column] += 2.0 * hold_factor
        self.individual_strain = self.individual_strains[obj.column]

        self.overall_strain = \
            self.overall_strain * strain_decay(obj.delta, OVERALL_DECAY_BASE) \
            + (1.0 + hold_addition) * hold_factor

        self.start_times[obj.column] = start_time
        self.end_times[obj.column] = end_time

        return self.individual_strain + self.overall_strain


    def initial_strain(self, time, obj):
        prev = self.diff_objects[obj.idx - 1]
        delta = time - prev.start_time
        return self.individual_strain * \
            strain_decay(delta, INDIVIDUAL_DECAY_BASE) + \
            self.overall_strain * strain_decay(delta, OVERALL_DECAY_BASE)


    def current_strain_peaks(self):
        return self.strain_peaks + [self.current_section_peak]


    def difficulty_value(self):
        return weighted_sum(self.current_strain_peaks(), DECAY_WEIGHT)


def _supported(bmap):
    if bmap.mode not in (MODE_STD, MODE_MANIA):
        logger.warning("can't convert %s to mania", bmap)
        return False
    return True


def total_columns(bmap):
    if bmap.mode != MODE_MANIA:
        return convert_columns(bmap)
    # ties go to the even key count
    return max(1, int(round(bmap.cs)))


def _strain(bmap, difficulty):
    """returns (strain, max combo, number of taken objects)"""
    columns = total_columns(bmap)
    objects, max_combo = convert_objects(bmap, columns,
        difficulty.get_passed_objects())

    diff_objects = build(objects, difficulty.get_clock_rate())
    strain = Strain(diff_objects, columns)
    for obj in diff_objects:
        strain.process(obj)

    return strain, max_combo, len(objects)


def hit_window(od, mods, clock_rate):
    window = 34.0 + 3.0 * min(10.0, max(0.0, 10.0 - od))

    if m.hr(mods):
        window /= 1.4
    elif m.ez(mods):
        window *= 1.4

    return math.ceil(math.floor(window * clock_rate) / clock_rate)


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of the strain skill"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN * difficulty.get_clock_rate(),
        "strain": []}

    if not _supported(bmap):
        return res

    strain, _, _ = _strain(bmap, difficulty)
    if strain.diff_objects:
        res["strain"] = strain.current_strain_peaks()
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see ManiaDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = ManiaDifficultyAttributes()

    if not _supported(bmap):
        return res

    clock_rate = difficulty.get_clock_rate()
    strain, max_combo, n_objects = _strain(bmap, difficulty)
    if not strain.diff_objects:
        return res

    res.stars = strain.difficulty_value() * STAR_SCALING_FACTOR
    res.hit_window = hit_window(bmap.od, mods, clock_rate)
    res.max_combo = max_combo
    res.n_objects = n_objects
    res.is_convert = bmap.mode != MODE_MANIA

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates mania pp. kwargs are Performance fields (n_geki for 320s,
    n300, n_katu for 200s, n100, n50, misses, acc, priority)
    """
    perf = Performance(**kwargs)
    attrs = difficulty_of(attributes, ManiaDifficultyAttributes)

    if attrs is None:
        if bmap is None:
            raise ValueError("missing bmap or attributes")
        attrs = stars(bmap, perf.mods, perf.passed_objects, perf.clock_rate)

    n_objects = attrs.n_objects
    if perf.passed_objects is not None:
        n_objects = min(n_objects, perf.passed_objects)

    state = mania_state(perf, n_objects)
    mods = perf.mods

    multiplier = 8.0
    if m.nf(mods):
        multiplier *= 0.75
    if m.ez(mods):
        multiplier *= 0.5

    difficulty_value = (
        math.pow(max(0.05, attrs.stars - 0.15), 2.2) *
        # from 80% accuracy, 1/20th of the pp per additional 1%
        max(0.0, 5.0 * state.custom_accuracy() - 4.0) *
        (1.0 + 0.1 * min(1.0, state.total_hits() / 1500.0))
    )

    return ManiaPerformanceAttributes(
        difficulty=attrs,
        pp=difficulty_value * multiplier,
        pp_difficulty=difficulty_value,
    )
