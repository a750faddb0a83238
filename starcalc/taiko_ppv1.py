"""
osu!taiko difficulty and pp, ppv1 era.

a single strain skill rewarding colour and rhythm changes between
consecutive circles. objects are taken from the beatmap as they are, so
standard maps keep their sliders and spinners. the section a skill
carries into is decayed from the previous delta rather than the previous
object time, which is how this revision behaved.
"""

import logging
import math

from . import mods as m
from .attributes import (
    TaikoDifficultyAttributes, TaikoPerformanceAttributes, difficulty_of,
)
from .beatmap import MODE_STD, MODE_TAIKO, difficulty_range
from .calculator import Difficulty, Performance
from .convert import is_convert, is_rim_sound
from .hitresults import taiko_state
from .strains import norm, strain_decay, weighted_sum

logger = logging.getLogger(__name__)

SECTION_LEN = 400.0
STAR_SCALING_FACTOR = 0.04125

RHYTHM_CHANGE_BASE_THRESHOLD = 0.2
RHYTHM_CHANGE_BASE = 2.0

SKILL_MULTIPLIER = 1.0
STRAIN_DECAY_BASE = 0.3
DECAY_WEIGHT = 0.9

COLOR_SWITCH_NONE = 0
COLOR_SWITCH_EVEN = 1
COLOR_SWITCH_ODD = 2


class DifficultyObject:
    """
    fields:
    base prev: beatmap hit objects
    delta: clock adjusted time since prev, no floor
    has_type_change: rim/centre differs from prev
    """
    def __init__(self, base, prev, clock_rate):
        self.base = base
        self.prev = prev
        self.delta = (base.start_time - prev.start_time) / clock_rate
        self.has_type_change = \
            is_rim_sound(prev.sound) != is_rim_sound(base.sound)

    def __str__(self):
        return "%s: delta=%g change=%s" % (self.base, self.delta,
            self.has_type_change)

    def __repr__(self):
        return str(self)


def build(hit_objects, clock_rate):
    return [
        DifficultyObject(hit_objects[i], hit_objects[i - 1], clock_rate)
        for i in range(1, len(hit_objects))
    ]


class Skill:
    """
    fields:
    current_strain current_section_peak: both start at 1
    same_color_count last_color_switch: colour pattern state
    prev_delta: delta of the last processed object
    strain_peaks: saved section peaks
    """
    def __init__(self):
        self.current_strain = 1.0
        self.current_section_peak = 1.0
        self.same_color_count = 1
        self.last_color_switch = COLOR_SWITCH_NONE
        self.prev_delta = None
        self.strain_peaks = []


    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)


    def start_new_section(self, boundary):
        self.current_section_peak = self.current_strain * strain_decay(
            boundary - self.prev_delta, STRAIN_DECAY_BASE)


    def process(self, obj):
        self.current_strain *= strain_decay(obj.delta, STRAIN_DECAY_BASE)
        self.current_strain += self.strain_value_of(obj) * SKILL_MULTIPLIER
        self.current_section_peak = max(self.current_strain,
            self.current_section_peak)
        self.prev_delta = obj.delta


    def strain_value_of(self, obj):
        addition = 1.0

        if obj.base.is_circle() and obj.prev.is_circle() and \
                obj.delta < 1000.0:
            if self.has_color_change(obj):
                addition += 0.75
            if self.has_rhythm_change(obj):
                addition += 1.0
        else:
            self.last_color_switch = COLOR_SWITCH_NONE
            self.same_color_count = 1

        addition_factor = 1.0
        if obj.delta < 50.0:
            addition_factor = 0.4 + 0.6 * obj.delta / 50.0

        return addition_factor * addition


    def has_rhythm_change(self, obj):
        if obj.delta == 0.0 or not self.prev_delta:
            return False

        ratio = max(self.prev_delta / obj.delta, obj.delta / self.prev_delta)
        if ratio >= 8.0:
            return False

        difference = math.log(ratio, RHYTHM_CHANGE_BASE) % 1.0
        return RHYTHM_CHANGE_BASE_THRESHOLD < difference < \
            1.0 - RHYTHM_CHANGE_BASE_THRESHOLD


    def has_color_change(self, obj):
        if not obj.has_type_change:
            self.same_color_count += 1
            return False

        old_color_switch = self.last_color_switch
        if self.same_color_count % 2 == 0:
            new_color_switch = COLOR_SWITCH_EVEN
        else:
            new_color_switch = COLOR_SWITCH_ODD

        self.last_color_switch = new_color_switch
        self.same_color_count = 1

        return old_color_switch != COLOR_SWITCH_NONE and \
            old_color_switch != new_color_switch


    def difficulty_value(self):
        return weighted_sum(self.strain_peaks, DECAY_WEIGHT)


def _supported(bmap):
    if bmap.mode not in (MODE_STD, MODE_TAIKO):
        logger.warning("taiko_ppv1 can't convert %s", bmap)
        return False
    return True


def _skill(bmap, difficulty):
    clock_rate = difficulty.get_clock_rate()
    hit_objects = difficulty.take(bmap.hit_objects)

    strain = Skill()
    if len(hit_objects) < 2:
        return hit_objects, strain

    section_len = SECTION_LEN * clock_rate
    current_section_end = math.ceil(
        hit_objects[0].start_time / section_len) * section_len

    diff_objects = build(hit_objects, clock_rate)

    # the first difficulty object only moves the section end
    h = diff_objects[0]
    while h.base.start_time > current_section_end:
        current_section_end += section_len

    strain.process(h)

    for h in diff_objects[1:]:
        while h.base.start_time > current_section_end:
            strain.save_current_peak()
            strain.start_new_section(current_section_end)
            current_section_end += section_len

        strain.process(h)

    strain.save_current_peak()
    return hit_objects, strain


def great_hit_window(od, clock_rate):
    return difficulty_range(od, 50.0, 35.0, 20.0) / clock_rate


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of the strain skill"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN, "strain": []}

    if not _supported(bmap):
        return res

    _, strain = _skill(bmap, difficulty)
    res["section_len"] = SECTION_LEN * difficulty.get_clock_rate()
    res["strain"] = strain.strain_peaks
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see TaikoDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = TaikoDifficultyAttributes()

    if not _supported(bmap):
        return res

    hit_objects, strain = _skill(bmap, difficulty)
    if len(hit_objects) < 2:
        return res

    res.great_hit_window = great_hit_window(min(10.0, bmap.od *
        _od_multiplier(mods)), difficulty.get_clock_rate())
    res.max_combo = sum(1 for h in hit_objects if h.is_circle())
    res.is_convert = is_convert(bmap)
    res.stars = strain.difficulty_value() * STAR_SCALING_FACTOR

    logger.debug("%s: %s", bmap, res)
    return res


def _od_multiplier(mods):
    res = 1.0
    if m.hr(mods):
        res *= 1.4
    if m.ez(mods):
        res *= 0.5
    return res


# -------------------------------------------------------------------------
# pp calculator

def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates taiko pp. kwargs are Performance fields (n300 n100
    misses combo acc)
    """
    perf = Performance(**kwargs)
    attrs = difficulty_of(attributes, TaikoDifficultyAttributes)

    if attrs is None:
        if bmap is None:
            raise ValueError("missing bmap or attributes")
        attrs = stars(bmap, perf.mods, perf.passed_objects, perf.clock_rate)

    n_results = attrs.max_combo
    if perf.passed_objects is not None:
        n_results = min(n_results, perf.passed_objects)

    state = taiko_state(perf, n_results, attrs.max_combo)
    res = TaikoPerformanceAttributes(difficulty=attrs)

    total_hits = float(state.total_hits())
    if total_hits == 0:
        return res

    acc = state.accuracy()
    mods = perf.mods

    multiplier = 1.1
    if m.nf(mods):
        multiplier *= 0.9
    if m.hd(mods):
        multiplier *= 1.1

    # strain ------------------------------------------------------
    strain = 5.0 * max(1.0, attrs.stars / 0.0075) - 4.0
    strain = strain * strain / 100000.0

    length_bonus = 1.0 + 0.1 * min(1.0, total_hits / 1500.0)
    strain *= length_bonus
    strain *= math.pow(0.985, state.misses)

    if m.hd(mods):
        strain *= 1.025

    if m.fl(mods):
        strain *= 1.05 * length_bonus

    strain *= acc

    # accuracy ----------------------------------------------------
    acc_value = 0.0
    if attrs.great_hit_window > 0.0:
        acc_value = (
            math.pow(150.0 / attrs.great_hit_window, 1.1) *
            math.pow(acc, 15.0) * 22.0 *
            min(1.15, math.pow(total_hits / 1500.0, 0.3))
        )

    res.pp = norm(1.1, strain, acc_value) * multiplier
    res.pp_difficulty = strain
    res.pp_acc = acc_value
    res.effective_miss_count = float(state.misses)
    return res
