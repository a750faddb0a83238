"""
osu!catch difficulty and pp as of 2022.

objects are converted the way the game does it: juice streams are built
from the slider events, tiny droplets are generated between them, and the
position offsets (hardrock, bananas, tiny droplets) come from the legacy
random generator so hardrock maps see the same fruit positions as in game.
"""

import logging
import math

from . import mods as m
from .attributes import (
    CatchDifficultyAttributes, CatchPerformanceAttributes, difficulty_of,
)
from .beatmap import (
    EVENT_HEAD, EVENT_LAST_TICK, EVENT_REPEAT, EVENT_TAIL, EVENT_TICK,
    MODE_CATCH, MODE_STD, map_attributes, slider_events_of,
)
from .calculator import Difficulty, Performance
from .hitresults import catch_state
from .strains import strain_decay, weighted_sum

logger = logging.getLogger(__name__)

PLAYFIELD_WIDTH = 512.0

CATCHER_BASE_SIZE = 106.75
ALLOWED_CATCH_RANGE = 0.8
BASE_DASH_SPEED = 1.0

LEGACY_LAST_TICK_OFFSET = 36.0
RNG_SEED = 1337

SECTION_LEN = 750.0
STAR_SCALING_FACTOR = 0.153
DECAY_WEIGHT = 0.94

FRUIT = "fruit"
DROPLET = "droplet"


class LegacyRandom:
    """the xorshift generator osu!stable used for catch offsets"""
    INT_TO_REAL = 1.0 / (0x7FFFFFFF + 1.0)

    def __init__(self, seed):
        self.x = seed & 0xFFFFFFFF
        self.y = 842502087
        self.z = 3579807591
        self.w = 273326509
        self.bit_buffer = 0
        self.bit_index = 32

    def next_uint(self):
        t = (self.x ^ (self.x << 11)) & 0xFFFFFFFF
        self.x, self.y, self.z = self.y, self.z, self.w
        self.w = (self.w ^ (self.w >> 19) ^ t ^ (t >> 8)) & 0xFFFFFFFF
        return self.w

    def next(self):
        return self.next_uint() & 0x7FFFFFFF

    def next_double(self):
        return self.INT_TO_REAL * self.next()

    def next_int(self, lower, upper):
        return int(lower + self.next_double() * (upper - lower))

    def next_range(self, lower, upper):
        return lower + self.next_double() * (upper - lower)

    def next_bool(self):
        if self.bit_index == 32:
            self.bit_buffer = self.next_uint()
            self.bit_index = 1
            return self.bit_buffer & 1 == 1

        self.bit_index += 1
        self.bit_buffer >>= 1
        return self.bit_buffer & 1 == 1


class PalpableObject:
    """
    a fruit or droplet the catcher has to catch.

    fields:
    x: position after offsets, clamped to the playfield
    start_time: milliseconds
    kind: FRUIT or DROPLET
    hyper_dash hyper_dist: filled in by init_hyper_dash
    """
    def __init__(self, x, start_time, kind):
        self.x = min(PLAYFIELD_WIDTH, max(0.0, x))
        self.start_time = start_time
        self.kind = kind
        self.hyper_dash = False
        self.hyper_dist = 0.0

    def __str__(self):
        return "%s %g at %gms" % (self.kind, self.x, self.start_time)

    def __repr__(self):
        return str(self)


class ObjectCount:
    """
    fruit, droplet and tiny droplet counts of the first take palpable
    objects
    """
    def __init__(self, take):
        self.take = take
        self.fruits = 0
        self.droplets = 0
        self.tiny_droplets = 0

    def record(self, kind):
        if self.take <= 0:
            return
        self.take -= 1
        if kind == FRUIT:
            self.fruits += 1
        else:
            self.droplets += 1

    def record_tiny_droplets(self, n):
        if self.take > 0:
            self.tiny_droplets += n


# -------------------------------------------------------------------------
# conversion

class _Offsets:
    """hardrock offset state shared by consecutive fruits"""
    def __init__(self):
        self.last_pos = None
        self.last_time = 0.0


def _apply_offset(pos, amount):
    if amount > 0.0:
        if pos + amount < PLAYFIELD_WIDTH:
            pos += amount
    elif pos + amount > 0.0:
        pos += amount
    return pos


def _apply_random_offset(pos, max_offset, rng):
    right = rng.next_bool()
    rand = min(20.0, rng.next_range(0.0, max(0.0, max_offset)))

    if right:
        if pos + rand <= PLAYFIELD_WIDTH:
            return pos + rand
        return pos - rand

    if pos - rand >= 0.0:
        return pos - rand
    return pos + rand


def hard_rock_x(x, start_time, state, rng):
    """position of a fruit with the hardrock offset applied"""
    # stable also resets when the last position is exactly zero
    if state.last_pos is None or state.last_pos == 0.0:
        state.last_pos = x
        state.last_time = start_time
        return x

    pos_diff = x - state.last_pos
    time_diff = int(start_time - state.last_time)

    if time_diff > 1000:
        state.last_pos = x
        state.last_time = start_time
        return x

    if pos_diff == 0.0:
        return _apply_random_offset(x, time_diff / 4.0, rng)

    if abs(pos_diff) < int(time_diff / 3.0):
        x = _apply_offset(x, pos_diff)

    state.last_pos = x
    state.last_time = start_time
    return x


def _bananas(h, rng):
    spacing = h.end_time - h.start_time
    while spacing > 100.0:
        spacing /= 2.0

    if spacing <= 0.0:
        return

    t = h.start_time
    while t <= h.end_time:
        rng.next_double()
        rng.next()
        rng.next()
        rng.next()
        t += spacing


def _juice_stream(bmap, h, rng, count):
    """palpable objects of a slider, tiny droplets are only counted"""
    res = []
    path = h.slider.path()
    last_event = None

    for e in slider_events_of(bmap, h, LEGACY_LAST_TICK_OFFSET):
        if last_event is not None:
            since_last_tick = float(int(e.time) - int(last_event.time))

            if since_last_tick > 80.0:
                time_between_tiny = since_last_tick
                while time_between_tiny > 100.0:
                    time_between_tiny /= 2.0

                n = 0
                t = time_between_tiny
                while t < since_last_tick:
                    rng.next_int(-20, 20)
                    n += 1
                    t += time_between_tiny

                count.record_tiny_droplets(n)

        # the legacy last tick produces nothing but still delimits the
        # tiny droplets
        last_event = e

        x = h.pos.x + path.position_at(e.path_progress).x

        if e.kind == EVENT_TICK:
            rng.next()
            res.append(PalpableObject(x, e.time, DROPLET))
            count.record(DROPLET)
        elif e.kind in (EVENT_HEAD, EVENT_REPEAT, EVENT_TAIL):
            res.append(PalpableObject(x, e.time, FRUIT))
            count.record(FRUIT)
        elif e.kind != EVENT_LAST_TICK:
            logger.warning("unexpected slider event %s", e)

    return res


def convert_objects(bmap, hr, take):
    """
    palpable objects in map order, nested objects in generation order.
    returns (objects, ObjectCount)
    """
    rng = LegacyRandom(RNG_SEED)
    state = _Offsets()
    count = ObjectCount(take)
    res = []

    for h in bmap.hit_objects:
        if h.is_circle():
            x = h.pos.x
            if hr:
                x = hard_rock_x(x, h.start_time, state, rng)
            res.append(PalpableObject(x, h.start_time, FRUIT))
            count.record(FRUIT)

        elif h.is_slider():
            # stable used the last control point rather than the path end
            # and the start time rather than the end time
            points = h.slider.control_points
            state.last_pos = h.pos.x + (points[-1].pos.x if points else 0.0)
            state.last_time = h.start_time
            res.extend(_juice_stream(bmap, h, rng, count))

        elif h.is_spinner():
            _bananas(h, rng)

    return res, count


def catch_width(cs):
    scale = 1.0 - 0.7 * (cs - 5.0) / 5.0
    return CATCHER_BASE_SIZE * abs(scale) * ALLOWED_CATCH_RANGE


def init_hyper_dash(objects, cs):
    # stable uses the full catcher width here
    half_catcher_width = catch_width(cs) / 2.0 / ALLOWED_CATCH_RANGE

    last_direction = 0
    last_excess = half_catcher_width

    for current, next_obj in zip(objects, objects[1:]):
        direction = 1 if next_obj.x > current.x else -1
        # a quarter frame of grace time
        time_to_next = next_obj.start_time - current.start_time - \
            1000.0 / 60.0 / 4.0
        distance_to_next = abs(next_obj.x - current.x)
        if last_direction == direction:
            distance_to_next -= last_excess
        else:
            distance_to_next -= half_catcher_width
        distance_to_hyper = time_to_next * BASE_DASH_SPEED - distance_to_next

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

NORMALIZED_HITOBJECT_RADIUS = 41.0
ABSOLUTE_PLAYER_POSITIONING_ERROR = 16.0
DIRECTION_CHANGE_BONUS = 21.0


class DifficultyObject:
    """
    fields:
    base last: PalpableObject
    idx: index in the difficulty object list
    start_time delta: clock adjusted
    strain_time: delta floored to 40ms
    normalized_pos last_normalized_pos: positions scaled to the catcher
    """
    def __init__(self, base, last, clock_rate, scaling_factor, idx):
        self.base = base
        self.last = last
        self.idx = idx
        self.start_time = base.start_time / clock_rate
        self.delta = (base.start_time - last.start_time) / clock_rate
        self.strain_time = max(40.0, self.delta)
        self.normalized_pos = base.x * scaling_factor
        self.last_normalized_pos = last.x * scaling_factor

    def __str__(self):
        return "%d %s: delta=%g" % (self.idx, self.base, self.delta)

    def __repr__(self):
        return str(self)


def build(objects, clock_rate, cs):
    half_catcher_width = catch_width(cs) * 0.5
    half_catcher_width *= 1.0 - max(0.0, cs - 5.5) * 0.0625
    scaling_factor = NORMALIZED_HITOBJECT_RADIUS / half_catcher_width

    return [
        DifficultyObject(objects[i], objects[i - 1], clock_rate,
            scaling_factor, i - 1)
        for i in range(1, len(objects))
    ]


class Movement:
    """
    strain skill sectioned in clock adjusted time.

    fields:
    catcher_speed_multiplier: the clock rate
    last_player_pos last_distance_moved last_strain_time: virtual player
    current_strain current_section_peak current_section_end
    strain_peaks: saved section peaks
    """
    skill_multiplier = 900.0
    decay_base = 0.2

    def __init__(self, diff_objects, clock_rate):
        self.diff_objects = diff_objects
        self.catcher_speed_multiplier = clock_rate
        self.last_player_pos = None
        self.last_distance_moved = 0.0
        self.last_strain_time = 0.0
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

        self.current_strain *= strain_decay(obj.delta, self.decay_base)
        self.current_strain += self.strain_value_of(obj) * \
            self.skill_multiplier
        self.current_section_peak = max(self.current_strain,
            self.current_section_peak)


    def initial_strain(self, time, obj):
        prev = self.diff_objects[obj.idx - 1] if obj.idx > 0 else None
        prev_time = prev.start_time if prev is not None else 0.0
        return self.current_strain * strain_decay(time - prev_time,
            self.decay_base)


    def strain_value_of(self, obj):
        if self.last_player_pos is None:
            self.last_player_pos = obj.last_normalized_pos

        epsilon = NORMALIZED_HITOBJECT_RADIUS - \
            ABSOLUTE_PLAYER_POSITIONING_ERROR
        player_pos = min(obj.normalized_pos + epsilon,
            max(obj.normalized_pos - epsilon, self.last_player_pos))

        distance_moved = player_pos - self.last_player_pos
        weighted_strain_time = obj.strain_time + 13.0 + \
            3.0 / self.catcher_speed_multiplier

        distance_addition = math.pow(abs(distance_moved), 1.3) / 510.0
        sqrt_strain = math.sqrt(weighted_strain_time)

        edge_dash_bonus = 0.0

        if abs(distance_moved) > 0.1:
            if abs(self.last_distance_moved) > 0.1 and \
                    math.copysign(1.0, distance_moved) != \
                    math.copysign(1.0, self.last_distance_moved):
                bonus_factor = min(50.0, abs(distance_moved)) / 50.0
                antiflow_factor = max(
                    min(70.0, abs(self.last_distance_moved)) / 70.0, 0.38)

                distance_addition += (
                    DIRECTION_CHANGE_BONUS /
                    math.sqrt(self.last_strain_time + 16.0) *
                    bonus_factor * antiflow_factor *
                    max(1.0 - math.pow(weighted_strain_time / 1000.0, 3.0),
                        0.0)
                )

            # base bonus for every movement, some weight for streams
            distance_addition += 12.5 * min(abs(distance_moved),
                NORMALIZED_HITOBJECT_RADIUS * 2.0) / \
                (NORMALIZED_HITOBJECT_RADIUS * 6.0) / sqrt_strain

        # edge dashes, easier at lower ms values
        if obj.last.hyper_dist <= 20.0:
            if not obj.last.hyper_dash:
                edge_dash_bonus += 5.7
            else:
                player_pos = obj.normalized_pos

            distance_addition *= 1.0 + edge_dash_bonus * \
                ((20.0 - obj.last.hyper_dist) / 20.0) * \
                math.pow(min(obj.strain_time * self.catcher_speed_multiplier,
                    265.0) / 265.0, 1.5)

        self.last_player_pos = player_pos
        self.last_distance_moved = distance_moved
        self.last_strain_time = obj.strain_time

        return distance_addition / weighted_strain_time


    def current_strain_peaks(self):
        return self.strain_peaks + [self.current_section_peak]


    def difficulty_value(self):
        return weighted_sum(self.current_strain_peaks(), DECAY_WEIGHT)


def _supported(bmap):
    if bmap.mode not in (MODE_STD, MODE_CATCH):
        logger.warning("can't convert %s to catch", bmap)
        return False
    return True


def _movement(bmap, difficulty, cs):
    """returns (movement, ObjectCount)"""
    objects, count = convert_objects(bmap, m.hr(difficulty.mods),
        difficulty.get_passed_objects())
    init_hyper_dash(objects, cs)

    clock_rate = difficulty.get_clock_rate()
    taken = difficulty.take(objects)
    diff_objects = build(taken, clock_rate, cs)

    movement = Movement(diff_objects, clock_rate)
    for obj in diff_objects:
        movement.process(obj)

    return movement, count


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of the movement skill"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN, "movement": []}

    if not _supported(bmap):
        return res

    attrs = map_attributes(bmap, mods, difficulty.get_clock_rate())
    movement, _ = _movement(bmap, difficulty, attrs.cs)

    res["section_len"] = SECTION_LEN * difficulty.get_clock_rate()
    if movement.diff_objects:
        res["movement"] = movement.current_strain_peaks()
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see CatchDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = CatchDifficultyAttributes()

    if not _supported(bmap):
        return res

    attrs = map_attributes(bmap, mods, difficulty.get_clock_rate())
    movement, count = _movement(bmap, difficulty, attrs.cs)
    if not movement.diff_objects:
        return res

    res.ar = attrs.ar
    res.is_convert = bmap.mode != MODE_CATCH
    res.n_fruits = count.fruits
    res.n_droplets = count.droplets
    res.n_tiny_droplets = count.tiny_droplets
    res.stars = math.sqrt(movement.difficulty_value()) * STAR_SCALING_FACTOR

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

    state = catch_state(perf, attrs)
    mods = perf.mods
    max_combo = attrs.max_combo

    # relying heavily on aim
    res = math.pow(5.0 * max(1.0, attrs.stars / 0.0049) - 4.0, 2.0) / \
        100000.0

    combo_hits = state.combo_hits()
    if combo_hits == 0:
        combo_hits = max_combo

    # longer maps are worth more
    len_bonus = 0.95 + 0.3 * min(1.0, combo_hits / 2500.0)
    if combo_hits > 2500:
        len_bonus += math.log10(combo_hits / 2500.0) * 0.475
    res *= len_bonus

    res *= math.pow(0.97, state.misses)

    if state.combo > 0 and max_combo > 0:
        res *= min(1.0, math.pow(state.combo, 0.8) /
            math.pow(max_combo, 0.8))

    ar = attrs.ar
    ar_factor = 1.0
    if ar > 9.0:
        ar_factor += 0.1 * (ar - 9.0)
        if ar > 10.0:
            ar_factor += 0.1 * (ar - 10.0)
    elif ar < 8.0:
        ar_factor += 0.025 * (8.0 - ar)
    res *= ar_factor

    if m.hd(mods):
        if ar <= 10.0:
            res *= 1.05 + 0.075 * (10.0 - ar)
        else:
            res *= 1.01 + 0.04 * (11.0 - min(11.0, ar))

    if m.fl(mods):
        res *= 1.35 * len_bonus

    res *= math.pow(state.accuracy(), 5.5)

    if m.nf(mods):
        res *= 0.9

    return CatchPerformanceAttributes(difficulty=attrs, pp=res)
