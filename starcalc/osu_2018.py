"""
osu!standard difficulty and pp as of 2018.

the slider travel distance is added to the jump distance before
scaling. stacking is ignored. the first section ends two section lengths
in, the second object only moves the section end and the section the last
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
from .hitresults import acc_calc, osu_state_legacy
from .osu_object import convert_objects, circle_radius, end_cursor_pos, \
    max_combo
from .strains import strain_decay, weighted_sum

logger = logging.getLogger(__name__)

SECTION_LEN = 400.0
DIFFICULTY_MULTIPLIER = 0.0675
NORMALIZED_RADIUS = 52.0
DECAY_WEIGHT = 0.9

MIN_STRAIN_TIME = 50.0

SINGLE_SPACING_THRESHOLD = 125.0
STREAM_SPACING_THRESHOLD = 110.0
ALMOST_DIAMETER = 90.0

AIM = "aim"
SPEED = "speed"

# (skill multiplier, strain decay base)
SKILLS = {
    AIM: (26.25, 0.15),
    SPEED: (1400.0, 0.3),
}


class DifficultyObject:
    """
    fields:
    base: the OsuObject
    dist: scaled jump plus travel distance
    delta: clock adjusted time since the previous object
    """
    def __init__(self, base, prev, clock_rate, scaling_factor, radius):
        self.base = base
        self.delta = (base.start_time - prev.start_time) / clock_rate

        prev_cursor = end_cursor_pos(prev, radius)
        self.dist = (
            prev.lazy_travel_dist + (base.pos - prev_cursor).len()
        ) * scaling_factor

    def strain_time(self):
        return max(self.delta, MIN_STRAIN_TIME)

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def build(objects, clock_rate, scaling_factor, radius):
    """difficulty objects for every object after the first"""
    return [
        DifficultyObject(objects[i], objects[i - 1], clock_rate,
            scaling_factor, radius)
        for i in range(1, len(objects))
    ]


def speed_spacing(distance):
    if distance > SINGLE_SPACING_THRESHOLD:
        return 2.5
    elif distance > STREAM_SPACING_THRESHOLD:
        return 1.6 + 0.9 * (distance - STREAM_SPACING_THRESHOLD) / \
            (SINGLE_SPACING_THRESHOLD - STREAM_SPACING_THRESHOLD)
    elif distance > ALMOST_DIAMETER:
        return 1.2 + 0.4 * (distance - ALMOST_DIAMETER) / \
            (STREAM_SPACING_THRESHOLD - ALMOST_DIAMETER)
    elif distance > ALMOST_DIAMETER / 2.0:
        return 0.95 + 0.25 * (distance - ALMOST_DIAMETER / 2.0) / \
            (ALMOST_DIAMETER / 2.0)
    return 0.95


class Skill:
    """
    fields:
    kind: AIM or SPEED
    current_strain current_section_peak: both start at 1
    prev_time: start time of the last processed object (not clock
               adjusted)
    strain_peaks: saved section peaks
    """
    def __init__(self, kind):
        self.kind = kind
        self.multiplier, self.decay_base = SKILLS[kind]
        self.current_strain = 1.0
        self.current_section_peak = 1.0
        self.prev_time = None
        self.strain_peaks = []


    def strain_value_of(self, obj):
        if self.kind == AIM:
            return math.pow(obj.dist, 0.99) / obj.strain_time()
        return speed_spacing(obj.dist) / obj.strain_time()


    def process(self, obj):
        self.current_strain *= strain_decay(obj.delta, self.decay_base)
        self.current_strain += self.strain_value_of(obj) * self.multiplier
        self.current_section_peak = max(self.current_section_peak,
            self.current_strain)
        self.prev_time = obj.base.start_time


    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)


    def start_new_section(self, boundary):
        self.current_section_peak = self.current_strain * strain_decay(
            boundary - self.prev_time, self.decay_base)


    def difficulty_value(self):
        return weighted_sum(self.strain_peaks, DECAY_WEIGHT)


def _setup(bmap, difficulty):
    attrs = map_attributes(bmap, difficulty.mods,
        difficulty.get_clock_rate())

    radius = circle_radius(attrs.cs)
    scaling_factor = NORMALIZED_RADIUS / radius

    if radius < 30.0:
        small_circle_bonus = min(30.0 - radius, 5.0) / 50.0
        scaling_factor *= 1.0 + small_circle_bonus

    return attrs, radius, scaling_factor


def _skills(bmap, difficulty):
    attrs, radius, scaling_factor = _setup(bmap, difficulty)
    objects = convert_objects(bmap, difficulty.mods,
        difficulty.get_passed_objects())

    aim = Skill(AIM)
    speed = Skill(SPEED)

    if len(objects) < 2:
        return attrs, objects, aim, speed

    section_len = SECTION_LEN * attrs.clock_rate
    diff_objects = build(objects, attrs.clock_rate, scaling_factor, radius)

    # the first object has no strain, the second one only moves the
    # section end
    current_section_end = 2.0 * section_len

    h = diff_objects[0]
    while h.base.start_time > current_section_end:
        current_section_end += section_len

    aim.process(h)
    speed.process(h)

    for h in diff_objects[1:]:
        while h.base.start_time > current_section_end:
            for skill in (aim, speed):
                skill.save_current_peak()
                skill.start_new_section(current_section_end)

            current_section_end += section_len

        aim.process(h)
        speed.process(h)

    return attrs, objects, aim, speed


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)

    if bmap.mode != MODE_STD:
        logger.warning("osu_2018 only supports osu!standard maps")
        return {"section_len": SECTION_LEN, AIM: [], SPEED: []}

    attrs, _, aim, speed = _skills(bmap, difficulty)
    return {
        "section_len": SECTION_LEN * attrs.clock_rate,
        AIM: aim.strain_peaks,
        SPEED: speed.strain_peaks,
    }


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see OsuDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = OsuDifficultyAttributes()

    if bmap.mode != MODE_STD:
        logger.warning("osu_2018 only supports osu!standard maps")
        return res

    attrs, objects, aim, speed = _skills(bmap, difficulty)
    res.ar = attrs.ar
    res.od = attrs.od
    res.hp = attrs.hp

    if len(objects) < 2:
        return res

    res.n_circles = sum(1 for h in objects if h.is_circle())
    res.n_sliders = sum(1 for h in objects if h.is_slider())
    res.n_spinners = sum(1 for h in objects if h.is_spinner())
    res.max_combo = max_combo(objects)

    res.aim = math.sqrt(aim.difficulty_value()) * DIFFICULTY_MULTIPLIER
    res.speed = math.sqrt(speed.difficulty_value()) * DIFFICULTY_MULTIPLIER
    res.stars = res.aim + res.speed + abs(res.aim - res.speed) / 2.0

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

    if combo is None, max_combo - misses is used.
    if an accuracy is given without hit counts, it's rounded to the
    closest 300s, 100s and 50s
    """
    perf = Performance(**kwargs)
    attrs = difficulty_of(attributes, OsuDifficultyAttributes)

    if attrs is None:
        if bmap is None:
            raise ValueError("missing bmap or attributes")
        attrs = stars(bmap, perf.mods, perf.passed_objects, perf.clock_rate)

    mods = perf.mods
    nobjects = attrs.n_objects()
    if perf.passed_objects is not None:
        nobjects = min(nobjects, perf.passed_objects)

    if attrs.max_combo <= 0:
        logger.warning("max_combo <= 0, changing to 1")
    max_combo_ = max(1, attrs.max_combo)

    state = osu_state_legacy(perf, nobjects, max_combo_)
    n300, n100, n50, nmiss = state.n300, state.n100, state.n50, \
        state.misses
    combo = state.combo

    res = OsuPerformanceAttributes(difficulty=attrs)
    if nobjects == 0:
        return res

    # accuracy ----------------------------------------------------
    accuracy = acc_calc(n300, n100, n50, nmiss)

    # scorev1 ignores sliders since they are free 300s
    # for whatever reason it also ignores spinners
    real_acc = max(0.0, acc_calc(
        n300 - attrs.n_sliders - attrs.n_spinners, n100, n50, nmiss
    ))

    # global values -----------------------------------------------
    nobjects_over_2k = nobjects / 2000.0

    length_bonus = 0.95 + 0.4 * min(1.0, nobjects_over_2k)

    if nobjects > 2000:
        length_bonus += math.log10(nobjects_over_2k) * 0.5

    miss_penality = math.pow(0.97, nmiss)
    combo_break = math.pow(combo, 0.8) / math.pow(max_combo_, 0.8)

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
        aim *= 1.02 + (11 - ar) / 50

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

    if m.hd(mods):
        speed *= 1.18

    # acc pp ------------------------------------------------------
    acc = math.pow(1.52163, od) * math.pow(real_acc, 24.0) * 2.83

    # length bonus (not the same as speed/aim length bonus)
    acc *= min(1.15, math.pow(attrs.n_circles / 1000.0, 0.3))

    if m.hd(mods):
        acc *= 1.02

    if m.fl(mods):
        acc *= 1.02

    # total pp ----------------------------------------------------
    final_multiplier = 1.12

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
