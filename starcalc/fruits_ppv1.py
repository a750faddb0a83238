"""
osu!catch difficulty and pp, ppv1 era.

sliders are expanded into fruits and droplets by walking the path in tick
distance steps, tiny droplets are only counted. a single movement skill
follows a virtual player chasing the normalized fruit positions, with
bonuses for direction changes and edge dashes.

the expansion keeps the quirks of this calculator: objects are not
re-sorted after the expansion and repeat spans reuse the tick times of
the first span.
"""

import logging
import math

from . import mods as m
from .attributes import (
    CatchDifficultyAttributes, CatchPerformanceAttributes, difficulty_of,
)
from .beatmap import MODE_CATCH, MODE_STD, map_attributes
from .calculator import Difficulty, Performance
from .hitresults import catch_state_legacy
from .strains import weighted_sum

logger = logging.getLogger(__name__)

SECTION_LEN = 750.0
STAR_SCALING_FACTOR = 0.145

CATCHER_SIZE = 106.75
PLAYFIELD_WIDTH = 512.0

LEGACY_LAST_TICK_OFFSET = 36.0

ABSOLUTE_PLAYER_POSITIONING_ERROR = 16.0
NORMALIZED_HITOBJECT_RADIUS = 41.0
POSITION_EPSILON = \
    NORMALIZED_HITOBJECT_RADIUS - ABSOLUTE_PLAYER_POSITIONING_ERROR
DIRECTION_CHANGE_BONUS = 12.5

SKILL_MULTIPLIER = 850.0
STRAIN_DECAY_BASE = 0.2
DECAY_WEIGHT = 0.94


class CatchObject:
    """
    a fruit or droplet.

    fields:
    pos: x coordinate
    time: milliseconds
    hyper_dash: the catcher needs a hyper dash to reach the next object
    hyper_dist: distance left before a hyper dash would be needed
    """
    def __init__(self, pos, time):
        self.pos = pos
        self.time = time
        self.hyper_dash = False
        self.hyper_dist = 0.0

    def __str__(self):
        return "%g at %gms%s" % (self.pos, self.time,
            " (hyper)" if self.hyper_dash else "")

    def __repr__(self):
        return str(self)


def catch_width(cs):
    return CATCHER_SIZE * abs(1.0 - 0.7 * (cs - 5.0) / 5.0)


class HardRockOffset:
    """shifts fruits away from the previous fruit like hardrock does"""
    def __init__(self):
        self.last_pos = None
        self.last_time = 0.0

    def apply(self, pos, time):
        offset_pos = pos
        time_diff = time - self.last_time

        if self.last_pos is not None and time_diff <= 1000.0:
            pos_diff = offset_pos - self.last_pos
            if pos_diff != 0.0 and abs(pos_diff) < math.floor(time_diff / 3.0):
                if pos_diff > 0.0:
                    if offset_pos + pos_diff < PLAYFIELD_WIDTH:
                        offset_pos += pos_diff
                elif offset_pos + pos_diff > 0.0:
                    offset_pos += pos_diff

        self.last_pos = offset_pos
        self.last_time = time
        return offset_pos


# -------------------------------------------------------------------------
# slider expansion

def shrink_down(val):
    while val > 100.0:
        val /= 2.0
    return val


def count_iterations(start, step, end):
    count = 0
    while start < end:
        count += 1
        start += step
    return count


def tiny_droplet_count(start_time, time_between_ticks, duration, spans,
        ticks):
    """
    tiny droplets of a slider. the tail section counts from the legacy
    last tick, which is sometimes off by one
    """
    per_tick = 0
    if ticks and time_between_ticks > 80.0:
        time_between_tiny = shrink_down(time_between_ticks)
        # a little extra for floating point inaccuracies
        per_tick = count_iterations(time_between_tiny + 0.001,
            time_between_tiny, time_between_ticks)

    last = ticks[-1][1] if ticks else start_time

    since_last_tick = start_time + duration / spans - last
    span_last_section = 0
    if since_last_tick > 80.0:
        time_between_tiny = shrink_down(since_last_tick)
        span_last_section = count_iterations(time_between_tiny,
            time_between_tiny, since_last_tick)

    since_last_tick = start_time + duration / spans - \
        LEGACY_LAST_TICK_OFFSET - last
    last_section = 0
    if since_last_tick > 80.0:
        time_between_tiny = shrink_down(since_last_tick)
        last_section = count_iterations(time_between_tiny,
            time_between_tiny, since_last_tick)

    return per_tick * len(ticks) * spans + \
        span_last_section * max(0, spans - 1) + last_section


class _Counts:
    def __init__(self):
        self.fruits = 0
        self.droplets = 0
        self.tiny_droplets = 0


def _juice(bmap, h, counts):
    """fruits and droplets of a slider, in the order they are generated"""
    path = h.slider.path()
    spans = h.slider.spans
    pixel_len = path.dist()

    beat_len = bmap.beat_len_at(h.start_time)
    speed_mult = bmap.slider_velocity_at(h.start_time)

    tick_distance = 100.0 * bmap.slider_multiplier / bmap.tick_rate
    if bmap.format_version >= 8:
        tick_distance /= min(1000.0, max(10.0, 100.0 / speed_mult)) / 100.0

    duration = spans * beat_len * pixel_len / \
        (bmap.slider_multiplier * speed_mult) / 100.0

    def pos_at(d):
        return h.pos.x + path.point_at_distance(d).x

    time_add = 0.0
    if pixel_len > 0.0:
        time_add = duration * (tick_distance / (pixel_len * spans))

    ticks = []
    target = pixel_len - tick_distance / 8.0
    current_distance = tick_distance
    tick_idx = 1
    while current_distance < target:
        ticks.append((pos_at(current_distance),
            h.start_time + time_add * tick_idx))
        current_distance += tick_distance
        tick_idx += 1

    counts.tiny_droplets += tiny_droplet_count(h.start_time, time_add,
        duration, spans, ticks)

    res = [(h.pos.x, h.start_time)]
    res.extend(ticks)

    for repeat_id in range(1, spans):
        dist = (repeat_id % 2) * pixel_len
        time_offset = duration / spans * repeat_id
        res.append((pos_at(dist), h.start_time + time_offset))
        res.extend(reversed(ticks) if repeat_id % 2 == 1 else ticks)

    res.append((pos_at((spans % 2) * pixel_len), h.start_time + duration))

    counts.fruits += 1 + spans
    counts.droplets += len(res) - 1 - spans

    return [CatchObject(pos, time) for pos, time in res]


def catch_objects(bmap, hr, take):
    """
    fruits and droplets of the first take hit objects. spinners give
    nothing. returns (objects, counts)
    """
    counts = _Counts()
    offsets = HardRockOffset()
    res = []

    for h in bmap.hit_objects[:take]:
        if h.is_circle():
            pos = h.pos.x
            if hr:
                pos = offsets.apply(pos, h.start_time)
            res.append(CatchObject(pos, h.start_time))
            counts.fruits += 1

        elif h.is_slider():
            points = h.slider.control_points
            if points:
                offsets.last_pos = h.pos.x + points[-1].pos.x - points[0].pos.x
            offsets.last_time = h.start_time
            res.extend(_juice(bmap, h, counts))

    return res, counts


def init_hyper_dash(objects, half_catcher_width):
    last_direction = 0
    last_excess = half_catcher_width

    for current, next_obj in zip(objects, objects[1:]):
        direction = 1 if next_obj.pos > current.pos else -1
        time_to_next = next_obj.time - current.time - 1000.0 / 60.0 / 4.0
        distance_to_next = abs(next_obj.pos - current.pos)
        if last_direction == direction:
            distance_to_next -= last_excess
        else:
            distance_to_next -= half_catcher_width
        distance_to_hyper = time_to_next - distance_to_next

        if distance_to_hyper < 0.0:
            current.hyper_dash = True
            last_excess = half_catcher_width
        else:
            current.hyper_dist = distance_to_hyper
            last_excess = min(half_catcher_width,
                max(0.0, distance_to_hyper))

        last_direction = direction


# -------------------------------------------------------------------------
# difficulty

class DifficultyObject:
    """
    fields:
    base last: CatchObject
    normalized_pos last_normalized_pos: positions scaled to the catcher
    delta: clock adjusted time since last
    strain_time: delta floored to 25ms
    """
    def __init__(self, base, last, half_catcher_width, clock_rate):
        scaling_factor = NORMALIZED_HITOBJECT_RADIUS / half_catcher_width
        self.base = base
        self.last = last
        self.normalized_pos = base.pos * scaling_factor
        self.last_normalized_pos = last.pos * scaling_factor
        self.delta = (base.time - last.time) / clock_rate
        self.strain_time = max(25.0, self.delta)

    def __str__(self):
        return "%s: delta=%g" % (self.base, self.delta)

    def __repr__(self):
        return str(self)


class Movement:
    """
    fields:
    current_strain current_section_peak: both start at 1
    last_player_pos last_distance_moved: virtual player state
    prev_time: unscaled time of the last processed object
    strain_peaks: saved section peaks
    """
    def __init__(self):
        self.last_player_pos = None
        self.last_distance_moved = 0.0
        self.current_strain = 1.0
        self.current_section_peak = 1.0
        self.strain_peaks = []
        self.prev_time = None


    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)


    def start_new_section(self, boundary):
        self.current_section_peak = self.current_strain * \
            _decay(boundary - self.prev_time)


    def process(self, obj):
        self.current_strain *= _decay(obj.delta)
        self.current_strain += self.strain_value_of(obj) * SKILL_MULTIPLIER
        self.current_section_peak = max(self.current_strain,
            self.current_section_peak)
        self.prev_time = obj.base.time


    def strain_value_of(self, obj):
        last_player_pos = self.last_player_pos
        if last_player_pos is None:
            last_player_pos = obj.last_normalized_pos

        pos = min(obj.normalized_pos + POSITION_EPSILON,
            max(obj.normalized_pos - POSITION_EPSILON, last_player_pos))

        dist_moved = pos - last_player_pos
        dist_addition = math.pow(abs(dist_moved), 1.3) / 500.0
        sqrt_strain = math.sqrt(obj.strain_time)

        bonus = 0.0

        if abs(dist_moved) > 0.1:
            if abs(self.last_distance_moved) > 0.1 and \
                    math.copysign(1.0, dist_moved) != \
                    math.copysign(1.0, self.last_distance_moved):
                bonus_factor = min(ABSOLUTE_PLAYER_POSITIONING_ERROR,
                    abs(dist_moved)) / ABSOLUTE_PLAYER_POSITIONING_ERROR

                dist_addition += DIRECTION_CHANGE_BONUS / sqrt_strain * \
                    bonus_factor

                if obj.last.hyper_dist <= 10.0:
                    bonus = 0.3 * bonus_factor

            dist_addition += 7.5 * min(abs(dist_moved),
                NORMALIZED_HITOBJECT_RADIUS * 2.0) / \
                (NORMALIZED_HITOBJECT_RADIUS * 6.0) / sqrt_strain

        # edge dashes
        if obj.last.hyper_dist <= 10.0:
            if obj.last.hyper_dash:
                pos = obj.normalized_pos
            else:
                bonus += 1.0

            dist_addition *= 1.0 + bonus * \
                (10.0 - obj.last.hyper_dist) / 10.0

        self.last_player_pos = pos
        self.last_distance_moved = dist_moved

        return dist_addition / obj.strain_time


    def difficulty_value(self):
        return weighted_sum(self.strain_peaks, DECAY_WEIGHT)


def _decay(ms):
    return math.pow(STRAIN_DECAY_BASE, ms / 1000.0)


def _supported(bmap):
    if bmap.mode not in (MODE_STD, MODE_CATCH):
        logger.warning("fruits_ppv1 can't convert %s", bmap)
        return False
    return True


def _movement(bmap, difficulty, attrs):
    """runs the movement skill, returns (movement, counts) or None"""
    take = difficulty.get_passed_objects()
    if min(take, len(bmap.hit_objects)) < 2:
        return None

    objects, counts = catch_objects(bmap, m.hr(difficulty.mods), take)

    base_size = catch_width(attrs.cs) * 0.5
    half_catcher_width = base_size * 0.8
    init_hyper_dash(objects, base_size)

    movement = Movement()
    if len(objects) < 2:
        return movement, counts

    clock_rate = difficulty.get_clock_rate()
    section_len = SECTION_LEN * clock_rate
    current_section_end = math.ceil(
        bmap.hit_objects[0].start_time / section_len) * section_len

    diff_objects = [
        DifficultyObject(objects[i], objects[i - 1], half_catcher_width,
            clock_rate)
        for i in range(1, len(objects))
    ]

    # the first difficulty object only moves the section end
    h = diff_objects[0]
    while h.base.time > current_section_end:
        current_section_end += section_len

    movement.process(h)

    for h in diff_objects[1:]:
        while h.base.time > current_section_end:
            movement.save_current_peak()
            movement.start_new_section(current_section_end)
            current_section_end += section_len

        movement.process(h)

    movement.save_current_peak()
    return movement, counts


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of the movement skill"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN, "movement": []}

    if not _supported(bmap):
        return res

    attrs = map_attributes(bmap, mods, difficulty.get_clock_rate())
    computed = _movement(bmap, difficulty, attrs)
    if computed is None:
        return res

    res["section_len"] = SECTION_LEN * difficulty.get_clock_rate()
    res["movement"] = computed[0].strain_peaks
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see CatchDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = CatchDifficultyAttributes()

    if not _supported(bmap):
        return res

    attrs = map_attributes(bmap, mods, difficulty.get_clock_rate())
    computed = _movement(bmap, difficulty, attrs)
    if computed is None:
        return res

    movement, counts = computed
    res.stars = math.sqrt(movement.difficulty_value()) * STAR_SCALING_FACTOR
    res.ar = attrs.ar
    res.n_fruits = counts.fruits
    res.n_droplets = counts.droplets
    res.n_tiny_droplets = counts.tiny_droplets
    res.is_convert = bmap.mode != MODE_CATCH

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates catch pp. kwargs are Performance fields (fruits droplets
    tiny_droplets tiny_droplet_misses misses combo acc)
    """
    perf = Performance(**kwargs)
    attrs = difficulty_of(attributes, CatchDifficultyAttributes)

    if attrs is None:
        if bmap is None:
            raise ValueError("missing bmap or attributes")
        attrs = stars(bmap, perf.mods, perf.passed_objects, perf.clock_rate)

    state = catch_state_legacy(perf, attrs)
    mods = perf.mods
    max_combo = attrs.max_combo

    # relying heavily on aim
    res = math.pow(5.0 * max(1.0, attrs.stars / 0.0049) - 4.0, 2.0) / \
        100000.0

    combo_hits = state.combo_hits()
    if combo_hits == 0:
        combo_hits = max_combo

    # longer maps are worth more
    len_bonus = 0.95 + 0.4 * min(1.0, combo_hits / 3000.0)
    if combo_hits > 3000:
        len_bonus += math.log10(combo_hits / 3000.0) * 0.5
    res *= len_bonus

    res *= math.pow(0.97, state.misses)

    if state.combo is not None and max_combo > 0:
        res *= min(1.0, math.pow(state.combo / float(max_combo), 0.8))

    ar = attrs.ar
    ar_factor = 1.0
    if ar > 9.0:
        ar_factor += 0.1 * (ar - 9.0)
    elif ar < 8.0:
        ar_factor += 0.025 * (8.0 - ar)
    res *= ar_factor

    if m.hd(mods):
        res *= 1.05 + 0.075 * (10.0 - min(10.0, ar))

    if m.fl(mods):
        res *= 1.35 * len_bonus

    res *= math.pow(state.accuracy(), 5.5)

    if m.nf(mods):
        res *= 0.9

    return CatchPerformanceAttributes(difficulty=attrs, pp=res)
