"""
osu!mania difficulty and pp, ppv1 era.

one strain skill that tracks a strain per column plus an overall strain,
with bonuses for holding notes. pp is mostly driven by score.
"""

import logging
import math

from . import mods as m
from .attributes import (
    ManiaDifficultyAttributes, ManiaPerformanceAttributes, difficulty_of,
)
from .beatmap import MODE_MANIA
from .calculator import Difficulty, Performance
from .strains import strain_decay, weighted_sum

logger = logging.getLogger(__name__)

SECTION_LEN = 400.0
STAR_SCALING_FACTOR = 0.018

INDIVIDUAL_DECAY_BASE = 0.125
OVERALL_DECAY_BASE = 0.3
DECAY_WEIGHT = 0.9


def round_half_up(x):
    return math.floor(x + 0.5)


class DifficultyObject:
    """
    fields:
    base: beatmap hit object
    column: key index from the x position
    delta: clock adjusted time since the previous object
    """
    def __init__(self, base, prev, cs, clock_rate):
        x_divisor = 512.0 / max(1.0, cs)
        self.base = base
        self.column = int(min(max(0.0, cs - 1.0),
            max(0.0, math.floor(base.pos.x / x_divisor))))
        self.delta = (base.start_time - prev.start_time) / clock_rate

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
    prev_time: start time of the last object, unscaled
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
        base = obj.base
        hold_factor = 1.0
        hold_addition = 0.0

        for i, hold_end in enumerate(self.hold_end_times):
            if base.start_time < hold_end and base.end_time > hold_end:
                hold_addition = 1.0

            # releasing several notes at once is as easy as releasing one
            if base.end_time == hold_end:
                hold_addition = 0.0

            if hold_end > base.end_time:
                hold_factor = 1.25

            self.individual_strains[i] *= strain_decay(obj.delta,
                INDIVIDUAL_DECAY_BASE)

        self.hold_end_times[obj.column] = base.end_time
        self.individual_strains[obj.column] += 2.0 * hold_factor
        self.individual_strain = self.individual_strains[obj.column]

        self.overall_strain = \
            self.overall_strain * strain_decay(obj.delta, OVERALL_DECAY_BASE) \
            + (1.0 + hold_addition) * hold_factor

        current = self.individual_strain + self.overall_strain
        self.current_section_peak = max(current, self.current_section_peak)
        self.prev_time = base.start_time


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
    if bmap.mode != MODE_MANIA:
        logger.warning("%s is not a mania map", bmap)
        return False
    return True


def _strain(bmap, difficulty):
    """returns (strain, section_len) or (None, section_len)"""
    clock_rate = difficulty.get_clock_rate()
    section_len = SECTION_LEN * clock_rate
    hit_objects = difficulty.take(bmap.hit_objects)

    if len(hit_objects) < 2:
        return None, section_len

    columns = max(1, round_half_up(bmap.cs))
    strain = Strain(columns)

    diff_objects = [
        DifficultyObject(base, prev, bmap.cs, clock_rate)
        for prev, base in zip(hit_objects, hit_objects[1:])
    ]

    # sections are in unscaled time, the first object gives no strain
    current_section_end = math.ceil(
        hit_objects[0].start_time / section_len) * section_len

    first = diff_objects[0]
    while first.base.start_time > current_section_end:
        current_section_end += section_len

    strain.process(first)

    for obj in diff_objects[1:]:
        while obj.base.start_time > current_section_end:
            strain.save_current_peak()
            strain.start_new_section_from(current_section_end)
            current_section_end += section_len

        strain.process(obj)

    strain.save_current_peak()
    return strain, section_len


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of the strain skill"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN * difficulty.get_clock_rate(),
        "strain": []}

    if not _supported(bmap):
        return res

    strain, _ = _strain(bmap, difficulty)
    if strain is not None:
        res["strain"] = list(strain.strain_peaks)
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, only stars are set"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = ManiaDifficultyAttributes()

    if not _supported(bmap):
        return res

    strain, _ = _strain(bmap, difficulty)
    if strain is not None:
        res.stars = strain.difficulty_value() * STAR_SCALING_FACTOR

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

def hit_window(od, mods, clock_rate):
    window = 34.0 + 3.0 * min(10.0, max(0.0, 10.0 - od))

    if m.ez(mods):
        window *= 1.4
    elif m.hr(mods):
        window /= 1.4

    return math.ceil(math.floor(window * clock_rate) / clock_rate)


def star_value_of(attributes):
    """stars out of mania attributes or a bare float, None otherwise"""
    if isinstance(attributes, (int, float)):
        return difficulty_of(attributes, float)
    attrs = difficulty_of(attributes, ManiaDifficultyAttributes)
    return attrs.stars if attrs is not None else None


def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates mania pp. kwargs are Performance fields (score acc).
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

    multiplier = 1.1
    if nf:
        multiplier *= 0.9
    if ez:
        multiplier *= 0.5

    clock_rate = Difficulty(mods, clock_rate=perf.clock_rate) \
        .get_clock_rate()
    window = hit_window(bmap.od, mods, clock_rate)

    total_hits = len(bmap.hit_objects)
    acc = perf.get_acc()
    if acc is None:
        acc = 1.0

    # strain ------------------------------------------------------
    strain = math.pow(5.0 * max(1.0, star_value / 0.0825) - 4.0, 3.0) / \
        110000.0
    strain *= 1.0 + 0.1 * min(1.0, total_hits / 1500.0)

    if scaled_score <= 500000.0:
        strain = 0.0
    elif scaled_score <= 600000.0:
        strain *= (scaled_score - 500000.0) / 100000.0 * 0.3
    elif scaled_score <= 700000.0:
        strain *= 0.3 + (scaled_score - 600000.0) / 100000.0 * 0.25
    elif scaled_score <= 800000.0:
        strain *= 0.65 + (scaled_score - 700000.0) / 100000.0 * 0.2
    elif scaled_score <= 900000.0:
        strain *= 0.85 + (scaled_score - 800000.0) / 100000.0 * 0.15
    else:
        strain *= 0.95 + (scaled_score - 900000.0) / 100000.0 * 0.1

    # accuracy ----------------------------------------------------
    acc_value = math.pow(150.0 / window * math.pow(acc, 16.0), 1.8) * 2.5
    acc_value *= min(1.15, math.pow(total_hits / 1500.0, 0.3))

    res = ManiaPerformanceAttributes(
        difficulty=ManiaDifficultyAttributes(stars=star_value))
    res.pp = math.pow(
        math.pow(strain, 1.1) + math.pow(acc_value, 1.1), 1.0 / 1.1
    ) * multiplier
    res.pp_strain = strain
    res.pp_acc = acc_value
    return res
