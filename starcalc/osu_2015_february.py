"""
osu!standard difficulty and pp as of february 2015.

spacing is measured from the previous object's lazy slider end and slider
travel distance counts as its own aim term. sections are 400ms long
(scaled by the clock rate) and start counting at 0, the section the last
object falls into is never saved.
"""

import logging
import math

from . import mods as m
from .attributes import (
    OsuDifficultyAttributes, OsuPerformanceAttributes, difficulty_of,
)
from .beatmap import MODE_STD, map_attributes
from .calculator import Difficulty, Performance
from .curve import v2f
from .hitresults import osu_state_legacy
from .osu_object import (
    PLAYFIELD_WIDTH, convert_objects, circle_radius, end_cursor_pos,
    max_combo,
)
from .strains import strain_decay, weighted_sum

logger = logging.getLogger(__name__)

DIFF_SPEED = 0
DIFF_AIM = 1

DECAY_BASE = [ 0.3, 0.15 ] # strain decay per interval
WEIGHT_SCALING = [ 1400.0, 26.25 ] # balances speed and aim

DECAY_WEIGHT = 0.9
SECTION_LEN = 400.0
MIN_DELTA = 50.0

STAR_SCALING_FACTOR = 0.0675
EXTREME_SCALING_FACTOR = 0.5

NORMALIZED_RADIUS = 52.0
CIRCLESIZE_BUFF_THRESHOLD = 30.0

ALMOST_DIAMETER = 90.0
STREAM_SPACING = 110.0
SINGLE_SPACING = 125.0


class DifficultyObject:
    """
    fields:
    base: the OsuObject
    delta: clock adjusted time since the previous object, at least 50ms
    dist: normalized distance from the previous cursor position
    travel_dist: normalized lazy travel distance of the previous slider
    """
    def __init__(self, base, prev, clock_rate, scaling_factor, radius):
        self.base = base
        self.delta = max(MIN_DELTA,
            (base.start_time - prev.start_time) / clock_rate)

        if base.is_spinner():
            self.dist = 0.0
        else:
            prev_cursor = end_cursor_pos(prev, radius)
            self.dist = (base.pos - prev_cursor).len() * scaling_factor

        self.travel_dist = prev.lazy_travel_dist * scaling_factor

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def build(objects, clock_rate, scaling_factor, radius):
    """difficulty objects for every object after the first"""
    res = []
    for i in range(1, len(objects)):
        res.append(DifficultyObject(objects[i], objects[i - 1],
            clock_rate, scaling_factor, radius))
    return res


def d_spacing_weight(difftype, obj):
    if difftype == DIFF_AIM:
        value = math.pow(obj.dist, 0.99)
        if obj.travel_dist > 0.0:
            value += math.pow(obj.travel_dist, 0.99)
        return value

    distance = obj.dist + obj.travel_dist

    if distance > SINGLE_SPACING:
        return 2.5

    elif distance > STREAM_SPACING:
        return (
            1.6 + 0.9 * (distance - STREAM_SPACING) /
            (SINGLE_SPACING - STREAM_SPACING)
        )

    elif distance > ALMOST_DIAMETER:
        return (
            1.2 + 0.4 * (distance - ALMOST_DIAMETER) /
            (STREAM_SPACING - ALMOST_DIAMETER)
        )

    elif distance > ALMOST_DIAMETER / 2.0:
        return (
            0.95 + 0.25 * (distance - ALMOST_DIAMETER / 2.0) /
            (ALMOST_DIAMETER / 2.0)
        )

    return 0.95


class Skill:
    """
    speed or aim strain accumulator.

    fields:
    difftype: DIFF_SPEED or DIFF_AIM
    current_strain current_section_peak: strain state
    section_end: end of the current section in (unscaled) milliseconds
    strain_peaks: saved section peaks
    """
    def __init__(self, difftype, clock_rate, first_time):
        self.difftype = difftype
        self.section_len = SECTION_LEN * clock_rate
        self.section_end = self.section_len
        self.current_strain = 0.0
        self.current_section_peak = 0.0
        self.prev_time = first_time
        self.strain_peaks = []


    def strain_value_of(self, obj):
        if obj.base.is_spinner():
            return 0.0
        return d_spacing_weight(self.difftype, obj) / obj.delta


    def process(self, obj):
        while obj.base.start_time > self.section_end:
            self.save_current_peak()
            self.start_new_section(self.section_end)
            self.section_end += self.section_len

        t = self.difftype
        self.current_strain *= strain_decay(obj.delta, DECAY_BASE[t])
        self.current_strain += self.strain_value_of(obj) * WEIGHT_SCALING[t]
        self.current_section_peak = max(self.current_section_peak,
            self.current_strain)
        self.prev_time = obj.base.start_time


    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)


    def start_new_section(self, boundary):
        # decay the last object's strain until the boundary and use that
        # as the initial peak
        self.current_section_peak = self.current_strain * math.pow(
            DECAY_BASE[self.difftype],
            (boundary - self.prev_time) / 1000.0
        )


    def difficulty_value(self):
        return weighted_sum(self.strain_peaks, DECAY_WEIGHT)


def _setup(bmap, difficulty):
    attrs = map_attributes(bmap, difficulty.mods,
        difficulty.get_clock_rate())

    radius = circle_radius(attrs.cs)
    scaling_factor = NORMALIZED_RADIUS / radius

    # low cs buff (credits to osuElements)
    if radius < CIRCLESIZE_BUFF_THRESHOLD:
        scaling_factor *= (
            1.0 +
            min(CIRCLESIZE_BUFF_THRESHOLD - radius, 5.0) / 50.0
        )

    return attrs, radius, scaling_factor


def _objects(bmap, difficulty):
    objects = convert_objects(bmap, difficulty.mods,
        difficulty.get_passed_objects())

    # spinners sit in the middle of the playfield
    for h in objects:
        if h.is_spinner():
            h.pos = v2f(PLAYFIELD_WIDTH / 2, PLAYFIELD_WIDTH / 2)

    return objects


def _skills(bmap, difficulty):
    """(attrs, objects, speed, aim) with both skills run to completion"""
    attrs, radius, scaling_factor = _setup(bmap, difficulty)
    objects = _objects(bmap, difficulty)

    first_time = objects[0].start_time if objects else 0.0
    speed = Skill(DIFF_SPEED, attrs.clock_rate, first_time)
    aim = Skill(DIFF_AIM, attrs.clock_rate, first_time)

    for obj in build(objects, attrs.clock_rate, scaling_factor, radius):
        speed.process(obj)
        aim.process(obj)

    return attrs, objects, speed, aim


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)

    if bmap.mode != MODE_STD:
        logger.warning("osu_2015_february only supports osu!standard maps")
        return {"section_len": SECTION_LEN, "aim": [], "speed": []}

    attrs, _, speed, aim = _skills(bmap, difficulty)
    return {
        "section_len": SECTION_LEN * attrs.clock_rate,
        "aim": aim.strain_peaks,
        "speed": speed.strain_peaks,
    }


def count_objects(res, objects):
    res.n_circles = sum(1 for h in objects if h.is_circle())
    res.n_sliders = sum(1 for h in objects if h.is_slider())
    res.n_spinners = sum(1 for h in objects if h.is_spinner())
    res.max_combo = max_combo(objects)


def eval_ratings(res, mods, speed, aim):
    res.speed = math.sqrt(speed.difficulty_value()) * STAR_SCALING_FACTOR
    res.aim = math.sqrt(aim.difficulty_value()) * STAR_SCALING_FACTOR
    if m.td(mods):
        res.aim = math.pow(res.aim, 0.8)

    # 50% of the difference between aim and speed is added to star
    # rating to compensate aim only or speed only maps
    res.stars = res.aim + res.speed
    res.stars += abs(res.speed - res.aim) * EXTREME_SCALING_FACTOR


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """
    calculates difficulty attributes.

    spacing weights, decay and interval handling follow the first
    ppv2 difficulty calculator
    """
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = OsuDifficultyAttributes()

    if bmap.mode != MODE_STD:
        logger.warning("osu_2015_february only supports osu!standard maps")
        return res

    attrs, objects, speed, aim = _skills(bmap, difficulty)
    res.ar = attrs.ar
    res.od = attrs.od
    res.hp = attrs.hp

    if len(objects) < 2:
        return res

    count_objects(res, objects)
    eval_ratings(res, difficulty.mods, speed, aim)

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

def pp_base(stars):
    # base pp value for stars
    return (
        math.pow(5.0 * max(1.0, stars / 0.0675) - 4.0, 3.0) / 100000.0
    )


def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates ppv2. kwargs are Performance fields.

    either bmap or attributes (difficulty or performance attributes of
    this mode) must be given
    """
    perf = Performance(**kwargs)
    attrs = difficulty_of(attributes, OsuDifficultyAttributes)

    if attrs is None:
        if bmap is None:
            raise ValueError("missing bmap or attributes")
        attrs = stars(bmap, perf.mods, perf.passed_objects, perf.clock_rate)

    return performance(attrs, perf)


def performance(attrs, perf):
    """ppv2 of a play on a map with the given difficulty attributes"""
    mods = perf.mods
    n_objects = attrs.n_objects()
    if perf.passed_objects is not None:
        n_objects = min(n_objects, perf.passed_objects)

    max_combo_ = max(1, attrs.max_combo)
    state = osu_state_legacy(perf, n_objects, max_combo_)
    nmiss = state.misses
    total = state.total_hits()

    res = OsuPerformanceAttributes(difficulty=attrs)
    if total == 0:
        return res

    accuracy = state.accuracy()

    # scorev1 ignores sliders and spinners since they are free 300s
    real_acc = max(0.0, (
        (state.n300 - attrs.n_sliders - attrs.n_spinners) * 300.0 +
        state.n100 * 100.0 + state.n50 * 50.0
    ) / max(1.0, (total - attrs.n_sliders - attrs.n_spinners) * 300.0))

    # global values ------------------------------------------------
    nobjects_over_2k = total / 2000.0

    length_bonus = 0.95 + 0.4 * min(1.0, nobjects_over_2k)

    if total > 2000:
        length_bonus += math.log10(nobjects_over_2k) * 0.5

    miss_penality = math.pow(0.97, nmiss)
    combo_break = math.pow(state.combo, 0.8) / math.pow(max_combo_, 0.8)

    ar = attrs.ar
    od = attrs.od

    # ar bonus ----------------------------------------------------
    ar_bonus = 1.0

    if ar > 10.33:
        ar_bonus += 0.45 * (ar - 10.33)

    elif ar < 8.0:
        low_ar_bonus = 0.01 * (8.0 - ar)

        if m.hd(mods):
            low_ar_bonus *= 2.0

        ar_bonus += low_ar_bonus

    # aim pp ------------------------------------------------------
    aim = pp_base(attrs.aim)
    aim *= length_bonus
    aim *= miss_penality
    aim *= combo_break
    aim *= ar_bonus

    if m.hd(mods):
        aim *= 1.18

    if m.fl(mods):
        aim *= 1.45 * length_bonus

    acc_bonus = 0.5 + accuracy / 2.0
    od_bonus = 0.98 + (od * od) / 2500.0

    aim *= acc_bonus
    aim *= od_bonus

    # speed pp ----------------------------------------------------
    speed = pp_base(attrs.speed)
    speed *= length_bonus
    speed *= miss_penality
    speed *= combo_break
    speed *= acc_bonus
    speed *= od_bonus

    # acc pp ------------------------------------------------------
    acc = math.pow(1.52163, od) * math.pow(real_acc, 24.0) * 2.83

    # length bonus (not the same as speed/aim length bonus)
    acc *= min(1.15, math.pow(attrs.n_circles / 1000.0, 0.3))

    if m.hd(mods):
        acc *= 1.02

    if m.fl(mods):
        acc *= 1.02

    # total pp ----------------------------------------------------
    final_multiplier = 1.1

    if m.nf(mods):
        final_multiplier *= 0.90

    if m.so(mods):
        final_multiplier *= 0.95

    res.pp = (
        math.pow(
            math.pow(aim, 1.1) + math.pow(speed, 1.1) + math.pow(acc, 1.1),
            1.0 / 1.1
        ) * final_multiplier
    )
    res.pp_aim = aim
    res.pp_speed = speed
    res.pp_acc = acc
    res.effective_miss_count = float(nmiss)
    res.accuracy = accuracy * 100.0

    return res
