"""
osu!standard difficulty and pp as of 2019.

aim and speed get angle bonuses, slider travel distance is combined with
the jump distance and speed is rewarded for short delta times. sections
are 400ms scaled by the clock rate, starting at the first object's time
rounded up to a section boundary.
"""

import logging
import math

from . import mods as m
from .attributes import (
    OsuDifficultyAttributes, OsuPerformanceAttributes, difficulty_of,
)
from .beatmap import MODE_STD, map_attributes
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

# (skill multiplier, strain decay base)
SKILLS = {
    AIM: (26.25, 0.15),
    SPEED: (1400.0, 0.3),
}

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
    delta: clock adjusted time since the previous object
    strain_time: delta, at least 50ms
    jump_dist: scaled distance from the previous cursor position
    travel_dist: scaled lazy travel distance of the previous slider
    angle: angle between the last three cursor positions in radians,
           None without a second previous object
    prev: the previous DifficultyObject or None
    """
    def __init__(self, base, last, last_last, prev, clock_rate,
            scaling_factor, radius):
        self.base = base
        self.prev = prev
        self.delta = (base.start_time - last.start_time) / clock_rate
        self.strain_time = max(self.delta, MIN_STRAIN_TIME)
        self.jump_dist = 0.0
        self.travel_dist = 0.0
        self.angle = None

        # no distances when a spinner is involved
        if base.is_spinner() or last.is_spinner():
            return

        if last.is_slider():
            end_cursor_pos(last, radius)
            self.travel_dist = last.lazy_travel_dist * scaling_factor

        last_cursor = end_cursor_pos(last, radius)
        self.jump_dist = (
            base.stacked_pos() * scaling_factor -
            last_cursor * scaling_factor
        ).len()

        if last_last is not None:
            last_last_cursor = end_cursor_pos(last_last, radius)

            v1 = last_last_cursor - last.stacked_pos()
            v2 = base.stacked_pos() - last_cursor

            dot = v1.dot(v2)
            det = v1.x * v2.y - v1.y * v2.x
            self.angle = abs(math.atan2(det, dot))

    def __str__(self):
        return "%s: delta=%g jump=%g travel=%g angle=%s" % (self.base,
            self.delta, self.jump_dist, self.travel_dist, self.angle)

    def __repr__(self):
        return str(self)


def build(objects, clock_rate, scaling_factor, radius):
    """difficulty objects for every object after the first"""
    res = []
    for i in range(1, len(objects)):
        last_last = objects[i - 2] if i > 1 else None
        prev = res[-1] if res else None
        res.append(DifficultyObject(objects[i], objects[i - 1], last_last,
            prev, clock_rate, scaling_factor, radius))
    return res


def apply_diminishing_exp(val):
    return math.pow(val, 0.99)


def aim_strain_value_of(current):
    if current.base.is_spinner():
        return 0.0

    result = 0.0
    prev = current.prev

    if prev is not None and current.angle is not None \
            and current.angle > AIM_ANGLE_BONUS_BEGIN:
        scale = 90.0
        angle_bonus = math.sqrt(
            max(prev.jump_dist - scale, 0.0) *
            math.pow(math.sin(current.angle - AIM_ANGLE_BONUS_BEGIN), 2.0) *
            max(current.jump_dist - scale, 0.0)
        )
        result = 1.5 * apply_diminishing_exp(max(0.0, angle_bonus)) / \
            max(TIMING_THRESHOLD, prev.strain_time)

    jump_dist_exp = apply_diminishing_exp(current.jump_dist)
    travel_dist_exp = apply_diminishing_exp(current.travel_dist)
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
        speed_bonus += math.pow(
            (MIN_SPEED_BONUS - delta) / SPEED_BALANCING_FACTOR, 2.0)

    angle_bonus = 1.0
    angle = current.angle

    if angle is not None and angle < SPEED_ANGLE_BONUS_BEGIN:
        angle_bonus = 1.0 + math.pow(
            math.sin(1.5 * (SPEED_ANGLE_BONUS_BEGIN - angle)), 2.0) / 3.57

        if angle < PI_OVER_2:
            angle_bonus = 1.28

            if distance < 90.0 and angle < PI_OVER_4:
                angle_bonus += (1.0 - angle_bonus) * \
                    min((90.0 - distance) / 10.0, 1.0)
            elif distance < 90.0:
                angle_bonus += (1.0 - angle_bonus) * \
                    min((90.0 - distance) / 10.0, 1.0) * \
                    math.sin((PI_OVER_2 - angle) / PI_OVER_4)

    return (
        (1.0 + (speed_bonus - 1.0) * 0.75) * angle_bonus *
        (0.95 + speed_bonus *
            math.pow(distance / SINGLE_SPACING_THRESHOLD, 3.5))
    ) / current.strain_time


class Skill:
    """
    fields:
    kind: AIM or SPEED
    current_strain current_section_peak: both start at 1
    prev_time: start time of the last processed object (not clock
               adjusted), None before the first one
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
            return aim_strain_value_of(obj)
        return speed_strain_value_of(obj)


    def process(self, obj):
        self.current_strain *= strain_decay(obj.delta, self.decay_base)
        self.current_strain += self.strain_value_of(obj) * self.multiplier
        self.current_section_peak = max(self.current_section_peak,
            self.current_strain)
        self.prev_time = obj.base.start_time


    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)


    def start_new_section(self, boundary):
        if self.prev_time is not None:
            self.current_section_peak = self.current_strain * strain_decay(
                boundary - self.prev_time, self.decay_base)


    def difficulty_value(self):
        return weighted_sum(self.strain_peaks, DECAY_WEIGHT)


def scaling_factor_of(radius):
    res = NORMALIZED_RADIUS / radius

    if radius < 30.0:
        small_circle_bonus = min(30.0 - radius, 5.0) / 50.0
        res *= 1.0 + small_circle_bonus

    return res


def _skills(bmap, difficulty, attrs):
    radius = circle_radius(attrs.cs)
    scaling_factor = scaling_factor_of(radius)

    objects = convert_objects(bmap, difficulty.mods,
        difficulty.get_passed_objects())

    aim = Skill(AIM)
    speed = Skill(SPEED)

    if len(objects) < 2:
        return objects, aim, speed

    section_len = SECTION_LEN * attrs.clock_rate
    diff_objects = build(objects, attrs.clock_rate, scaling_factor, radius)

    current_section_end = math.ceil(
        objects[0].start_time / section_len) * section_len

    # the second object only moves the section end
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

    aim.save_current_peak()
    speed.save_current_peak()

    return objects, aim, speed


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)

    if bmap.mode != MODE_STD:
        logger.warning("osu_2019 only supports osu!standard maps")
        return {"section_len": SECTION_LEN, AIM: [], SPEED: []}

    attrs = map_attributes(bmap, mods, difficulty.get_clock_rate())
    _, aim, speed = _skills(bmap, difficulty, attrs)
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
        logger.warning("osu_2019 only supports osu!standard maps")
        return res

    attrs = map_attributes(bmap, mods, difficulty.get_clock_rate())
    res.ar = attrs.ar
    res.od = attrs.od
    res.hp = attrs.hp

    objects, aim, speed = _skills(bmap, difficulty, attrs)
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
    return math.pow(5.0 * max(1.0, stars / 0.0675) - 4.0, 3.0) / 100000.0


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

    multiplier = 1.12

    if m.nf(mods):
        multiplier *= 0.90

    if m.so(mods):
        multiplier *= 0.95

    aim = _aim_value(attrs, state, mods, accuracy)
    speed = _speed_value(attrs, state, mods, accuracy)
    acc = _acc_value(attrs, state, mods)

    res.pp = math.pow(
        math.pow(aim, 1.1) + math.pow(speed, 1.1) + math.pow(acc, 1.1),
        1.0 / 1.1
    ) * multiplier
    res.pp_aim = aim
    res.pp_speed = speed
    res.pp_acc = acc
    res.effective_miss_count = float(state.misses)
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


def _aim_value(attrs, state, mods, accuracy):
    raw_aim = attrs.aim
    if m.td(mods):
        raw_aim = math.pow(raw_aim, 0.8)

    total_hits = state.total_hits()
    ar = attrs.ar

    res = pp_base(raw_aim)
    res *= _length_bonus(total_hits)
    res *= math.pow(0.97, state.misses)
    res *= _combo_scaling(state, attrs.max_combo)

    ar_factor = 1.0
    if ar > 10.33:
        ar_factor += 0.3 * (ar - 10.33)
    elif ar < 8.0:
        ar_factor += 0.01 * (8.0 - ar)

    res *= ar_factor

    if m.hd(mods):
        res *= 1.0 + 0.04 * (12.0 - ar)

    if m.fl(mods):
        fl_bonus = 1.0 + 0.35 * min(1.0, total_hits / 200.0)
        if total_hits > 200:
            fl_bonus += 0.3 * min(1.0, (total_hits - 200) / 300.0)
        if total_hits > 500:
            fl_bonus += (total_hits - 500) / 1200.0
        res *= fl_bonus

    res *= 0.5 + accuracy / 2.0
    res *= 0.98 + attrs.od * attrs.od / 2500.0

    return res


def _speed_value(attrs, state, mods, accuracy):
    ar = attrs.ar

    res = pp_base(attrs.speed)
    res *= _length_bonus(state.total_hits())
    res *= math.pow(0.97, state.misses)
    res *= _combo_scaling(state, attrs.max_combo)

    if ar > 10.33:
        res *= 1.0 + 0.3 * (ar - 10.33)

    if m.hd(mods):
        res *= 1.0 + 0.04 * (12.0 - ar)

    res *= 0.02 + accuracy
    res *= 0.96 + attrs.od * attrs.od / 1600.0

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
