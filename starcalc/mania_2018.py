"""
osu!mania difficulty and pp as of 2018.

same strain skill as ppv1 but sectioned in clock adjusted time. standard
maps are accepted, their key count is guessed from the object types and
od the way the game did for converts.
"""

import logging
import math

from . import mods as m
from .attributes import ManiaDifficultyAttributes, ManiaPerformanceAttributes
from .beatmap import MODE_MANIA, MODE_STD
from .calculator import Difficulty, Performance
from .mania_ppv1 import round_half_up, star_value_of
from .strains import strain_decay, weighted_sum

logger = logging.getLogger(__name__)

SECTION_LEN = 400.0
STAR_SCALING_FACTOR = 0.018

INDIVIDUAL_DECAY_BASE = 0.125
OVERALL_DECAY_BASE = 0.3
DECAY_WEIGHT = 0.9


def convert_columns(bmap):
    """key count of a converted standard map"""
    rounded_cs = round_half_up(bmap.cs)
    rounded_od = round_half_up(bmap.od)

    n_objects = len(bmap.hit_objects)
    if n_objects == 0:
        return 7

    slider_or_spinner_ratio = (n_objects - bmap.n_circles()) / \
        float(n_objects)

    if slider_or_spinner_ratio < 0.2:
        return 7
    if slider_or_spinner_ratio < 0.3 or rounded_cs >= 5:
        return 6 + (rounded_od > 5)
    if slider_or_spinner_ratio > 0.6:
        return 4 + (rounded_od > 4)
    return min(7, max(4, rounded_od + 1))


def total_columns(bmap):
    if bmap.mode == MODE_MANIA:
        return max(1, round_half_up(bmap.cs))
    return convert_columns(bmap)


def end_time_of(bmap, h):
    if h.is_slider():
        return h.start_time + bmap.slider_duration(h)
    return h.end_time


class DifficultyObject:
    """
    fields:
    base: beatmap hit object
    column: key index from the x position
    start_time end_time delta: clock adjusted
    """
    def __init__(self, base, prev, end_time, columns, clock_rate):
        x_divisor = 512.0 / columns
        self.base = base
        self.column = int(min(columns - 1,
            max(0.0, math.floor(base.pos.x / x_divisor))))
        self.delta = (base.start_time - prev.start_time) / clock_rate
        self.start_time = base.start_time / clock_rate
        self.end_time = end_time / clock_rate

    def __str__(self):
        return "%s: column=%d delta=%g" % (self.base, self.column,
            self.delta)

    def __repr__(self):
        return str(self)


class Strain:
    """
    fields:
    hold_end_times individual_strains: per column
    individual_strain overall_strain: values after the last object
    prev_time: clock adjusted start time of the last object
    strain_peaks: saved section peaks
    """
    def __init__(self, columns):
        self.hold_end_times = [0.0] * columns
        self.individual_strains = [0.0] * columns
        self.individual_strain = 0.0
        self.overall_strain = 1.0
        self.prev_time = 0.0
        self.current_section_peak = 1.0
        self.strain_peaks = []


    def process(self, obj):
        hold_factor = 1.0
        hold_addition = 0.0

        for i, hold_end in enumerate(self.hold_end_times):
            if obj.start_time < hold_end and obj.end_time > hold_end:
                hold_addition = 1.0

            if obj.end_time == hold_end:
                hold_addition = 0.0

            if hold_end > obj.end_time:
                hold_factor = 1.25

            self.individual_strains[i] *= strain_decay(obj.delta,
                INDIVIDUAL_DECAY_BASE)

        self.hold_end_times[obj.column] = obj.end_time
        self.individual_strains[obj.column] += 2.0 * hold_factor
        self.individual_strain = self.individual_strains[obj.column]

        self.overall_strain = \
            self.overall_strain * strain_decay(obj.delta, OVERALL_DECAY_BASE) \
            + (1.0 + hold_addition) * hold_factor

        current = self.individual_strain + self.overall_strain
        self.current_section_peak = max(current, self.current_section_peak)
        self.prev_time = obj.start_time


    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)


    def start_new_section_from(self, offset):
        delta = offset - self.prev_time
        self.current_section_peak = \
            self.individual_strain * \
            strain_decay(delta, INDIVIDUAL_DECAY_BASE) + \
            self.overall_strain * strain_decay(delta, OVERALL_DECAY_BASE)


    def difficulty_value(self):
        return weighted_sum(self.strain_peaks, DECAY_WEIGHT)


def _supported(bmap):
    if bmap.mode not in (MODE_STD, MODE_MANIA):
        logger.warning("can't convert %s to mania", bmap)
        return False
    return True


def _strain(bmap, difficulty):
    clock_rate = difficulty.get_clock_rate()
    hit_objects = difficulty.take(bmap.hit_objects)
    columns = total_columns(bmap)
    strain = Strain(columns)

    diff_objects = [
        DifficultyObject(base, prev, end_time_of(bmap, base), columns,
            clock_rate)
        for prev, base in zip(hit_objects, hit_objects[1:])
    ]

    if not diff_objects:
        return strain

    # sections start at the first difficulty object
    first = diff_objects[0]
    current_section_end = math.ceil(
        first.start_time / SECTION_LEN) * SECTION_LEN
    strain.process(first)

    for obj in diff_objects[1:]:
        while obj.start_time > current_section_end:
            strain.save_current_peak()
            strain.start_new_section_from(current_section_end)
            current_section_end += SECTION_LEN

        strain.process(obj)

    strain.save_current_peak()
    return strain


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of the strain skill"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN * difficulty.get_clock_rate(),
        "strain": []}

    if _supported(bmap):
        res["strain"] = list(_strain(bmap, difficulty).strain_peaks)
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, only stars and is_convert are set"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = ManiaDifficultyAttributes()

    if not _supported(bmap):
        return res

    res.stars = _strain(bmap, difficulty).difficulty_value() * \
        STAR_SCALING_FACTOR
    res.is_convert = bmap.mode != MODE_MANIA

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates mania pp. kwargs are Performance fields (score).
    attributes can also be a bare star value, the beatmap is still
    needed for the od and object counts
    """
    perf = Performance(**kwargs)
    if bmap is None:
        raise ValueError("missing bmap")

    star_value = star_value_of(attributes)
    if star_value is None:
        star_value = stars(bmap, perf.mods, perf.passed_objects,
            perf.clock_rate).stars

    mods = perf.mods
    ez, nf, ht = m.ez(mods), m.nf(mods), m.ht(mods)

    if perf.score is None:
        scaled_score = 1000000.0
    else:
        scaled_score = perf.score / math.pow(0.5, ez + nf + ht)

    if perf.passed_objects is not None:
        n_objects = bmap.n_circles() + bmap.n_sliders()
        if perf.passed_objects > 0 and n_objects > 0:
            scaled_score /= perf.passed_objects / float(n_objects)

    od = 34.0 + 3.0 * min(10.0, max(0.0, 10.0 - bmap.od))
    clock_rate = Difficulty(mods, clock_rate=perf.clock_rate) \
        .get_clock_rate()

    multiplier = 0.8
    if nf:
        multiplier *= 0.9
    if ez:
        multiplier *= 0.5
        od *= 1.4

    hit_window = math.ceil(math.floor(od * clock_rate) / clock_rate)

    # strain ------------------------------------------------------
    strain = math.pow(5.0 * max(1.0, star_value / 0.2) - 4.0, 2.2) / 135.0
    strain *= 1.0 + 0.1 * min(1.0, len(bmap.hit_objects) / 1500.0)

    if scaled_score <= 500000.0:
        strain = 0.0
    elif scaled_score <= 600000.0:
        strain *= (scaled_score - 500000.0) / 100000.0 * 0.3
    elif scaled_score <= 700000.0:
        strain *= 0.3 + (scaled_score - 600000.0) / 100000.0 * 0.25
    elif scaled_score <= 800000.0:
        strain *= 0.55 + (scaled_score - 700000.0) / 100000.0 * 0.2
    elif scaled_score <= 900000.0:
        strain *= 0.75 + (scaled_score - 800000.0) / 100000.0 * 0.15
    else:
        strain *= 0.9 + (scaled_score - 900000.0) / 100000.0 * 0.1

    # accuracy ----------------------------------------------------
    acc_value = max(0.0, 0.2 - (hit_window - 34.0) * 0.006667) * strain * \
        math.pow(max(0.0, scaled_score - 960000.0) / 40000.0, 1.1)

    res = ManiaPerformanceAttributes(
        difficulty=ManiaDifficultyAttributes(stars=star_value))
    res.pp = math.pow(
        math.pow(strain, 1.1) + math.pow(acc_value, 1.1), 1.0 / 1.1
    ) * multiplier
    res.pp_strain = strain
    res.pp_acc = acc_value
    return res
