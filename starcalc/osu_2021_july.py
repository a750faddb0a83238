"""
osu!standard difficulty and pp as of july 2021.

object times are divided by the clock rate before anything else, so
sections are a fixed 400ms of clock adjusted time. the skills start from
zero strain. the pp formula estimates extra misses from the combo
(effective miss count).
"""

import logging
import math

from . import mods as m
from .attributes import (
    OsuDifficultyAttributes, OsuPerformanceAttributes, difficulty_of,
)
from .beatmap import MODE_STD, difficulty_range, map_attributes
from .calculator import Difficulty, Performance
from .hitresults import osu_state_legacy
from .osu_object import convert_objects, circle_radius, end_cursor_pos, \
    max_combo
from .strains import strain_decay, weighted_sum

logger = logging.getLogger(__name__)

SECTION_LEN = 400.0
DIFFICULTY_MULTIPLIER = 0.0675
NORMALIZED_RADIUS = 52.0
DECAY_WEIGHT = 0.9
MIN_STRAIN_TIME = 50.0

AIM = "aim"
SPEED = "speed"

SKILL_MULTIPLIER = {AIM: 26.25, SPEED: 1400.0}
STRAIN_DECAY_BASE = {AIM: 0.15, SPEED: 0.3}

AIM_ANGLE_BONUS_BEGIN = math.pi / 3.0
TIMING_THRESHOLD = 107.0

SINGLE_SPACING_THRESHOLD = 125.0
SPEED_ANGLE_BONUS_BEGIN = 5.0 * math.pi / 6.0
PI_OVER_4 = math.pi / 4.0
PI_OVER_2 = math.pi / 2.0
MIN_SPEED_BONUS = 75.0
MAX_SPEED_BONUS = 45.0
SPEED_BALANCING_FACTOR = 40.0


class DifficultyObject:
    """
    fields:
    base: the OsuObject
    start_time: clock adjusted start time
    delta strain_time: time since the previous object, strain_time is at
        least 50ms
    jump_dist travel_dist: scaled distances
    angle: radians or None
    prev_jump_dist prev_strain_time: values of the previous difficulty
        object, None for the first one
    """
    def __init__(self, base, last, last_last, prev_vals, clock_rate,
            scaling_factor, radius):
        self.base = base
        self.start_time = base.start_time / clock_rate
        self.delta = self.start_time - last.start_time / clock_rate
        self.strain_time = max(self.delta, MIN_STRAIN_TIME)
        self.jump_dist = 0.0
        self.travel_dist = 0.0
        self.angle = None

        self.prev_jump_dist, self.prev_strain_time = \
            prev_vals if prev_vals is not None else (None, None)

        if base.is_spinner() or last.is_spinner():
            return

        last_cursor = end_cursor_pos(last, radius)
        if last.is_slider():
            self.travel_dist = last.lazy_travel_dist * scaling_factor

        self.jump_dist = (
            (base.stacked_pos() - last_cursor) * scaling_factor
        ).len()

        if last_last is not None:
            v1 = end_cursor_pos(last_last, radius) - last.stacked_pos()
            v2 = base.stacked_pos() - last_cursor
            self.angle = abs(math.atan2(v1.x * v2.y - v1.y * v2.x,
                v1.dot(v2)))

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def build(objects, clock_rate, scaling_factor, radius):
    """difficulty objects for every object after the first"""
    res = []
    prev_vals = None

    for i in range(1, len(objects)):
        h = DifficultyObject(objects[i], objects[i - 1],
            objects[i - 2] if i > 1 else None, prev_vals, clock_rate,
            scaling_factor, radius)
        res.append(h)
        prev_vals = (h.jump_dist, h.strain_time)

    return res


def aim_strain_value_of(current):
    if current.base.is_spinner():
        return 0.0

    result = 0.0

    if current.prev_jump_dist is not None and current.angle is not None \
            and current.angle > AIM_ANGLE_BONUS_BEGIN:
        angle_bonus = math.sqrt(
            max(current.prev_jump_dist - 90.0, 0.0) *
            math.sin(current.angle - AIM_ANGLE_BONUS_BEGIN) ** 2 *
            max(current.jump_dist - 90.0, 0.0)
        )
        result = 1.5 * math.pow(max(0.0, angle_bonus), 0.99) / \
            max(TIMING_THRESHOLD, current.prev_strain_time)

    jump_dist_exp = math.pow(current.jump_dist, 0.99)
    travel_dist_exp = math.pow(current.travel_dist, 0.99)
    dist_exp = jump_dist_exp + travel_dist_exp + \
        math.sqrt(travel_dist_exp * jump_dist_exp)

    return max(
        result + dist_exp / max(current.strain_time, TIMING_THRESHOLD),
        dist_exp / current.strain_time
    )


def speed_strain_value_of(current):
    if current.base.is_spinner():
        return 0.0

    distance = min(SINGLE_SPACING_THRESHOLD,
        current.travel_dist + current.jump_dist)
    delta = max(MAX_SPEED_BONUS, current.delta)

    speed_bonus = 1.0
    if delta < MIN_SPEED_BONUS:
        speed_bonus += ((MIN_SPEED_BONUS - delta) /
            SPEED_BALANCING_FACTOR) ** 2

    angle_bonus = 1.0
    angle = current.angle

    if angle is not None and angle < SPEED_ANGLE_BONUS_BEGIN:
        angle_bonus = 1.0 + \
            math.sin(1.5 * (SPEED_ANGLE_BONUS_BEGIN - angle)) ** 2 / 3.57

        if angle < PI_OVER_2:
            angle_bonus = 1.28

            if distance < 90.0:
                fade = min((90.0 - distance) / 10.0, 1.0)
                if angle >= PI_OVER_4:
                    fade *= math.sin((PI_OVER_2 - angle) / PI_OVER_4)
                angle_bonus += (1.0 - angle_bonus) * fade

    return (
        (1.0 + (speed_bonus - 1.0) * 0.75) * angle_bonus *
        (0.95 + speed_bonus *
            (distance / SINGLE_SPACING_THRESHOLD) ** 3.5)
    ) / current.strain_time


class Skill:
    """
    fields:
    kind: AIM or SPEED
    current_strain current_section_peak: both start at 0
    prev_time: clock adjusted start time of the last processed object
    strain_peaks: saved section peaks
    """
    def __init__(self, kind):
        self.kind = kind
        self.current_strain = 0.0
        self.current_section_peak = 0.0
        self.prev_time = None
        self.strain_peaks = []


    def strain_value_of(self, obj):
        if self.kind == AIM:
            return aim_strain_value_of(obj)
        return speed_strain_value_of(obj)


    def process(self, obj):
        self.current_strain *= strain_decay(obj.delta,
            STRAIN_DECAY_BASE[self.kind])
        self.current_strain += self.strain_value_of(obj) * \
            SKILL_MULTIPLIER[self.kind]
        self.current_section_peak = max(self.current_section_peak,
            self.current_strain)
        self.prev_time = obj.start_time


    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)


    def start_new_section(self, boundary):
        if self.prev_time is None:
            return
        self.current_section_peak = self.current_strain * strain_decay(
            boundary - self.prev_time, STRAIN_DECAY_BASE[self.kind])


    def difficulty_value(self):
        return weighted_sum(self.strain_peaks, DECAY_WEIGHT)


def rounded_od(od, clock_rate):
    """overall difficulty from the floored great hit window"""
    hit_window = math.floor(difficulty_range(od, 80.0, 50.0, 20.0)) \
        / clock_rate
    return (80.0 - hit_window) / 6.0


def _skills(bmap, difficulty, attrs):
    radius = circle_radius(attrs.cs)
    scaling_factor = NORMALIZED_RADIUS / radius
    if radius < 30.0:
        scaling_factor *= 1.0 + min(30.0 - radius, 5.0) / 50.0

    objects = convert_objects(bmap, difficulty.mods,
        difficulty.get_passed_objects())

    aim = Skill(AIM)
    speed = Skill(SPEED)
    skills = (aim, speed)

    if len(objects) < 2:
        return objects, aim, speed

    diff_objects = build(objects, attrs.clock_rate, scaling_factor, radius)

    first_time = objects[0].start_time / attrs.clock_rate
    current_section_end = math.ceil(first_time / SECTION_LEN) * SECTION_LEN

    h = diff_objects[0]
    while h.start_time > current_section_end:
        current_section_end += SECTION_LEN

    for skill in skills:
        skill.process(h)

    for h in diff_objects[1:]:
        while h.start_time > current_section_end:
            for skill in skills:
                skill.save_current_peak()
                skill.start_new_section(current_section_end)

            current_section_end += SECTION_LEN

        for skill in skills:
            skill.process(h)

    for skill in skills:
        skill.save_current_peak()

    return objects, aim, speed


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)

    if bmap.mode != MODE_STD:
        logger.warning("osu_2021_july only supports osu!standard maps")
        return {"section_len": SECTION_LEN, AIM: [], SPEED: []}

    attrs = map_attributes(bmap, mods, difficulty.get_clock_rate())
    _, aim, speed = _skills(bmap, difficulty, attrs)

    # sections are clock adjusted, report them in map time
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
        logger.warning("osu_2021_july only supports osu!standard maps")
        return res

    attrs = map_attributes(bmap, mods, difficulty.get_clock_rate())
    base = map_attributes(bmap, mods, 1.0)
    res.ar = attrs.ar
    res.od = rounded_od(base.od, attrs.clock_rate)
    res.hp = attrs.hp

    objects, aim, speed = _skills(bmap, difficulty, attrs)
    if len(objects) < 2:
        return res

    # circle and spinner counts always cover the whole map
    res.n_circles = bmap.n_circles()
    res.n_sliders = sum(1 for h in objects if h.is_slider())
    res.n_spinners = bmap.n_spinners()
    res.max_combo = max_combo(objects)

    res.aim = math.sqrt(aim.difficulty_value()) * DIFFICULTY_MULTIPLIER
    res.speed = math.sqrt(speed.difficulty_value()) * DIFFICULTY_MULTIPLIER
    res.stars = res.aim + res.speed + abs(res.aim - res.speed) / 2.0

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

def pp_base(stars):
    return math.pow(5.0 * max(1.0, stars / 0.0675) - 4.0, 3.0) / 100000.0


def effective_miss_count(attrs, state):
    """
    misses plus the combo breaks a full combo threshold suggests,
    at most the total hits
    """
    combo_based = 0.0

    if attrs.n_sliders > 0:
        full_combo_threshold = attrs.max_combo - 0.1 * attrs.n_sliders
        if state.combo < full_combo_threshold:
            combo_based = full_combo_threshold / max(1, state.combo)

    combo_based = min(combo_based, float(state.total_hits()))
    return max(float(state.misses), math.floor(combo_based))


def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates pp. kwargs are Performance fields.

    either bmap or osu!standard attributes must be given
    """
    perf = Performance(**kwargs)
    attrs = difficulty_of(attributes, OsuDifficultyAttributes)

    if attrs is None:
        if bmap is None:
            raise ValueError("missing bmap or attributes")
        attrs = stars(bmap, perf.mods, perf.passed_objects, perf.clock_rate)

    mods = perf.mods
    n_objects = attrs.n_objects()
    if perf.passed_objects is not None:
        n_objects = min(n_objects, perf.passed_objects)

    state = osu_state_legacy(perf, n_objects, attrs.max_combo)
    total_hits = state.total_hits()

    res = OsuPerformanceAttributes(difficulty=attrs)
    if total_hits == 0:
        return res

    accuracy = state.accuracy()
    emc = effective_miss_count(attrs, state)

    multiplier = 1.12

    if m.nf(mods):
        multiplier *= max(0.9, 1.0 - 0.02 * emc)

    if m.so(mods):
        multiplier *= 1.0 - math.pow(attrs.n_spinners / total_hits, 0.85)

    aim = _aim_value(attrs, state, mods, accuracy, emc)
    speed = _speed_value(attrs, state, mods, accuracy, emc)
    acc = _acc_value(attrs, state, mods)

    res.pp = math.pow(
        math.pow(aim, 1.1) + math.pow(speed, 1.1) + math.pow(acc, 1.1),
        1.0 / 1.1
    ) * multiplier
    res.pp_aim = aim
    res.pp_speed = speed
    res.pp_acc = acc
    res.effective_miss_count = emc
    res.accuracy = accuracy * 100.0

    return res


def _length_bonus(total_hits):
    res = 0.95 + 0.4 * min(1.0, total_hits / 2000.0)
    if total_hits > 2000:
        res += math.log10(total_hits / 2000.0) * 0.5
    return res


def _combo_scaling(state, max_combo_):
    if max_combo_ <= 0:
        return 1.0
    return min(
        math.pow(state.combo, 0.8) / math.pow(max_combo_, 0.8), 1.0)


def _aim_value(attrs, state, mods, accuracy, emc):
    raw_aim = attrs.aim
    if m.td(mods):
        raw_aim = math.pow(raw_aim, 0.8)

    total_hits = state.total_hits()
    ar = attrs.ar
    length_bonus = _length_bonus(total_hits)

    res = pp_base(raw_aim)
    res *= length_bonus

    if emc > 0:
        res *= 0.97 * math.pow(
            1.0 - math.pow(emc / total_hits, 0.775), emc)

    res *= _combo_scaling(state, attrs.max_combo)

    ar_factor = 0.0
    if ar > 10.33:
        ar_factor += 0.3 * (ar - 10.33)
    elif ar < 8.0:
        ar_factor += 0.1 * (8.0 - ar)

    res *= 1.0 + ar_factor * length_bonus

    if m.hd(mods):
        res *= 1.0 + 0.04 * (12.0 - ar)

    if m.fl(mods):
        fl_bonus = 1.0 + 0.35 * min(1.0, total_hits / 200.0)
        if total_hits > 200:
            fl_bonus += 0.3 * min(1.0, (total_hits - 200) / 300.0)
        if total_hits > 500:
            fl_bonus += (total_hits - 500) / 1200.0
        res *= fl_bonus

    res *= accuracy
    res *= 0.98 + attrs.od * attrs.od / 2500.0

    return res


def _speed_value(attrs, state, mods, accuracy, emc):
    total_hits = state.total_hits()
    ar = attrs.ar
    od = attrs.od
    length_bonus = _length_bonus(total_hits)

    res = pp_base(attrs.speed)
    res *= length_bonus

    if emc > 0:
        res *= 0.97 * math.pow(
            1.0 - math.pow(emc / total_hits, 0.775),
            math.pow(emc, 0.875))

    res *= _combo_scaling(state, attrs.max_combo)

    ar_factor = 0.0
    if ar > 10.33:
        ar_factor += 0.3 * (ar - 10.33)

    res *= 1.0 + ar_factor * length_bonus

    if m.hd(mods):
        res *= 1.0 + 0.04 * (12.0 - ar)

    res *= (0.95 + od * od / 750.0) * \
        math.pow(accuracy, (14.5 - max(od, 8.0)) / 2.0)

    if state.n50 >= total_hits / 500.0:
        res *= math.pow(0.98, state.n50 - total_hits / 500.0)

    return res


def _acc_value(attrs, state, mods):
    n_circles = attrs.n_circles
    total_hits = state.total_hits()

    better_acc = 0.0
    if n_circles > 0:
        better_acc = (
            (state.n300 - (total_hits - n_circles)) * 6 +
            state.n100 * 2 + state.n50
        ) / (n_circles * 6.0)
    better_acc = max(0.0, better_acc)

    res = math.pow(1.52163, attrs.od) * math.pow(better_acc, 24.0) * 2.83
    res *= min(1.15, math.pow(n_circles / 1000.0, 0.3))

    if m.hd(mods):
        res *= 1.08

    if m.fl(mods):
        res *= 1.02

    return res
