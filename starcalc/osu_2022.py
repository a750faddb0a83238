"""
osu!standard difficulty and pp as of the 2022 rework.

objects are stacked, slider cursor movement is approximated per nested
object and aim is rated by velocity with angle, velocity change and
slider bonuses. speed is scaled by rhythm complexity and flashlight by
how much of the recent history is hidden. every skill sections clock
adjusted time in 400ms chunks starting at the first difficulty object.

the star rating is derived from the base performance of the skills so it
lines up with the pp formula.
"""

import logging
import math

from . import mods as m
from .attributes import (
    OsuDifficultyAttributes, OsuPerformanceAttributes, difficulty_of,
)
from .beatmap import EVENT_REPEAT, MODE_STD, map_attributes
from .calculator import Difficulty, Performance
from .hitresults import osu_state
from .osu_object import (
    apply_stacking, circle_radius, convert_objects, max_combo,
)
from .strains import lerp, strain_decay, to_f32

logger = logging.getLogger(__name__)

SECTION_LEN = 400.0
DECAY_WEIGHT = 0.9

DIFFICULTY_MULTIPLIER = 0.0675
PERFORMANCE_BASE_MULTIPLIER = 1.14

# gamefield rounding of the object scale
BROKEN_GAMEFIELD_ROUNDING_ALLOWANCE = 1.00041

NORMALIZED_RADIUS = 50.0
MIN_DELTA_TIME = 25.0
MAXIMUM_SLIDER_RADIUS = NORMALIZED_RADIUS * 2.4
ASSUMED_SLIDER_RADIUS = NORMALIZED_RADIUS * 1.8

PREEMPT_MIN = 450.0
HD_FADE_IN_DURATION_MULTIPLIER = 0.4
HD_FADE_OUT_DURATION_MULTIPLIER = 0.3


class ScalingFactor:
    """
    fields:
    radius: object radius in osu!pixels
    scale: object scale (radius / 64)
    factor: distance normalization, small circle bonus included
    """
    def __init__(self, cs):
        self.scale = (
            (1.0 - 0.7 * (cs - 5.0) / 5.0) / 2.0 *
            BROKEN_GAMEFIELD_ROUNDING_ALLOWANCE
        )
        self.radius = circle_radius(cs, BROKEN_GAMEFIELD_ROUNDING_ALLOWANCE)

        factor = NORMALIZED_RADIUS / self.radius
        if self.radius < 30.0:
            factor *= 1.0 + min(30.0 - self.radius, 5.0) / 50.0
        self.factor = factor


# -------------------------------------------------------------------------
# difficulty objects

def compute_slider_cursor_pos(h, radius):
    """
    lazy cursor movement through every nested object of a slider.
    the cursor only moves once it leaves the assumed follow radius,
    repeats use a tighter radius and the tail may be cut short.
    fills in lazy_end_pos, lazy_travel_dist and lazy_travel_time
    """
    if not h.is_slider() or h.lazy_end_pos is not None:
        return

    if not h.nested:
        h.lazy_end_pos = h.stacked_pos()
        return

    h.lazy_travel_time = h.nested[-1].time - h.start_time

    end_time_min = h.lazy_travel_time / h.span_duration \
        if h.span_duration != 0.0 else 0.0
    if end_time_min % 2.0 >= 1.0:
        end_time_min = 1.0 - end_time_min % 1.0
    else:
        end_time_min %= 1.0

    # temporary until the last nested object is reached
    lazy_end = h.stacked_pos() + h.path_offset(end_time_min)

    curr_cursor = h.stacked_pos()
    scaling_factor = NORMALIZED_RADIUS / radius
    n_nested = len(h.nested)

    for i, nested in enumerate(h.nested):
        curr_movement = nested.pos - curr_cursor
        curr_movement_len = scaling_factor * curr_movement.len()

        required_movement = ASSUMED_SLIDER_RADIUS

        if i == n_nested - 1:
            # the player takes whichever is closer, lazy end or real end
            lazy_movement = lazy_end - curr_cursor
            if lazy_movement.len() < curr_movement.len():
                curr_movement = lazy_movement
            curr_movement_len = scaling_factor * curr_movement.len()

        elif nested.kind == EVENT_REPEAT:
            required_movement = NORMALIZED_RADIUS

        if curr_movement_len > required_movement:
            ratio = (curr_movement_len - required_movement) / \
                curr_movement_len
            curr_cursor = curr_cursor + curr_movement * ratio
            curr_movement_len *= ratio
            h.lazy_travel_dist += curr_movement_len

        if i == n_nested - 1:
            lazy_end = curr_cursor

    h.lazy_end_pos = lazy_end


def end_cursor_pos(h):
    if h.is_slider():
        return h.lazy_end_pos
    return h.stacked_pos()


class DifficultyObject:
    """
    fields:
    idx: index in the difficulty object list
    base: the OsuObject
    start_time delta: clock adjusted
    strain_time: delta, at least 25ms
    hit_window_great: doubled great window, clock adjusted
    radius: object radius in osu!pixels
    lazy_jump_dist: scaled distance from the last cursor position
    min_jump_dist min_jump_time: shortest movement when the last object
        is a slider
    travel_dist travel_time: lazy slider movement of this object
    angle: radians or None
    """
    def __init__(self, base, last, last_last, clock_rate, idx,
            scaling_factor, great_window):
        self.idx = idx
        self.base = base
        self.radius = scaling_factor.radius
        self.start_time = base.start_time / clock_rate
        self.delta = (base.start_time - last.start_time) / clock_rate
        self.strain_time = max(self.delta, MIN_DELTA_TIME)
        self.hit_window_great = 2.0 * great_window

        self.lazy_jump_dist = 0.0
        self.min_jump_dist = 0.0
        self.min_jump_time = 0.0
        self.travel_dist = 0.0
        self.travel_time = 0.0
        self.angle = None

        self._set_distances(last, last_last, clock_rate, scaling_factor)


    def _set_distances(self, last, last_last, clock_rate, scaling_factor):
        base = self.base

        if base.is_slider():
            # bonus for repeat sliders
            self.travel_dist = base.lazy_travel_dist * math.pow(
                1.0 + (base.spans - 1) / 2.5, 1.0 / 2.5)
            self.travel_time = max(base.lazy_travel_time / clock_rate,
                MIN_DELTA_TIME)

        if base.is_spinner() or last.is_spinner():
            return

        factor = scaling_factor.factor
        last_cursor = end_cursor_pos(last)

        self.lazy_jump_dist = (
            base.stacked_pos() * factor - last_cursor * factor
        ).len()
        self.min_jump_time = self.strain_time
        self.min_jump_dist = self.lazy_jump_dist

        if last.is_slider():
            last_travel_time = max(last.lazy_travel_time / clock_rate,
                MIN_DELTA_TIME)
            self.min_jump_time = max(self.strain_time - last_travel_time,
                MIN_DELTA_TIME)

            # either the slider is cut short (anti-flow) or followed to
            # its visual end (flow), whichever is shorter
            tail_jump_dist = (
                last.stacked_end_pos() - base.stacked_pos()
            ).len() * factor

            self.min_jump_dist = max(0.0, min(
                self.lazy_jump_dist -
                    (MAXIMUM_SLIDER_RADIUS - ASSUMED_SLIDER_RADIUS),
                tail_jump_dist - MAXIMUM_SLIDER_RADIUS
            ))

        if last_last is not None and not last_last.is_spinner():
            last_last_cursor = end_cursor_pos(last_last)

            v1 = last_last_cursor - last.stacked_pos()
            v2 = base.stacked_pos() - last_cursor

            dot = v1.dot(v2)
            det = v1.x * v2.y - v1.y * v2.x
            self.angle = abs(math.atan2(det, dot))


    def previous(self, backwards_idx, diff_objects):
        idx = self.idx - (backwards_idx + 1)
        if 0 <= idx < len(diff_objects):
            return diff_objects[idx]
        return None


    def next(self, forwards_idx, diff_objects):
        idx = self.idx + forwards_idx + 1
        if 0 <= idx < len(diff_objects):
            return diff_objects[idx]
        return None


    def opacity_at(self, time, hidden, time_preempt, time_fade_in):
        """object opacity (0-1) at a (not clock adjusted) time"""
        start_time = self.base.start_time
        if time > start_time:
            return 0.0

        fade_in_start_time = start_time - time_preempt
        fade_in = min(1.0, max(0.0,
            (time - fade_in_start_time) / time_fade_in))

        if not hidden:
            return fade_in

        fade_out_start_time = start_time - time_preempt + time_fade_in
        fade_out_duration = time_preempt * HD_FADE_OUT_DURATION_MULTIPLIER
        fade_out = min(1.0, max(0.0,
            (time - fade_out_start_time) / fade_out_duration))

        return min(fade_in, 1.0 - fade_out)


    def __str__(self):
        return "%d %s: delta=%g jump=%g travel=%g angle=%s" % (self.idx,
            self.base, self.delta, self.lazy_jump_dist, self.travel_dist,
            self.angle)

    def __repr__(self):
        return str(self)


def build(objects, clock_rate, scaling_factor, great_window):
    """difficulty objects for every object after the first"""
    for h in objects:
        compute_slider_cursor_pos(h, scaling_factor.radius)

    res = []
    for i in range(1, len(objects)):
        last_last = objects[i - 2] if i > 1 else None
        res.append(DifficultyObject(objects[i], objects[i - 1], last_last,
            clock_rate, i - 1, scaling_factor, great_window))

    return res


# -------------------------------------------------------------------------
# evaluators

WIDE_ANGLE_MULTIPLIER = 1.5
ACUTE_ANGLE_MULTIPLIER = 2.0
SLIDER_MULTIPLIER = 1.5
VELOCITY_CHANGE_MULTIPLIER = 0.75


def calc_wide_angle_bonus(angle):
    return math.sin(
        3.0 / 4.0 *
        (min(5.0 / 6.0 * math.pi, max(math.pi / 6.0, angle)) - math.pi / 6.0)
    ) ** 2


def calc_acute_angle_bonus(angle):
    return 1.0 - calc_wide_angle_bonus(angle)


def evaluate_aim(curr, diff_objects, with_sliders,
        acute_angle_multiplier=ACUTE_ANGLE_MULTIPLIER,
        slider_multiplier=SLIDER_MULTIPLIER):
    if curr.base.is_spinner() or curr.idx <= 1:
        return 0.0

    last = curr.previous(0, diff_objects)
    if last.base.is_spinner():
        return 0.0

    last_last = curr.previous(1, diff_objects)

    # velocity to the current object, extended through the last slider
    curr_velocity = curr.lazy_jump_dist / curr.strain_time

    if last.base.is_slider() and with_sliders:
        travel_velocity = last.travel_dist / last.travel_time
        movement_velocity = curr.min_jump_dist / curr.min_jump_time
        curr_velocity = max(curr_velocity,
            movement_velocity + travel_velocity)

    prev_velocity = last.lazy_jump_dist / last.strain_time

    if last_last.base.is_slider() and with_sliders:
        travel_velocity = last_last.travel_dist / last_last.travel_time
        movement_velocity = last.min_jump_dist / last.min_jump_time
        prev_velocity = max(prev_velocity,
            movement_velocity + travel_velocity)

    wide_angle_bonus = 0.0
    acute_angle_bonus = 0.0
    slider_bonus = 0.0
    velocity_change_bonus = 0.0

    aim_strain = curr_velocity

    # same rhythm
    if max(curr.strain_time, last.strain_time) < \
            1.25 * min(curr.strain_time, last.strain_time):
        if curr.angle is not None and last.angle is not None and \
                last_last.angle is not None:
            curr_angle = curr.angle
            last_angle = last.angle
            last_last_angle = last_last.angle

            angle_bonus = min(curr_velocity, prev_velocity)

            wide_angle_bonus = calc_wide_angle_bonus(curr_angle)
            acute_angle_bonus = calc_acute_angle_bonus(curr_angle)

            # only buff deltas exceeding 300 bpm 1/2
            if curr.strain_time > 100.0:
                acute_angle_bonus = 0.0
            else:
                acute_angle_bonus *= (
                    calc_acute_angle_bonus(last_angle) *
                    min(angle_bonus, 125.0 / curr.strain_time) *
                    math.sin(math.pi / 2.0 *
                        min(1.0, (100.0 - curr.strain_time) / 25.0)) ** 2 *
                    math.sin(math.pi / 2.0 *
                        (min(100.0, max(50.0, curr.lazy_jump_dist)) - 50.0)
                        / 50.0) ** 2
                )

            # repeated wide angles are penalized less the more acute the
            # last angle is
            wide_angle_bonus *= angle_bonus * (1.0 - min(wide_angle_bonus,
                calc_wide_angle_bonus(last_angle) ** 3))

            acute_angle_bonus *= 0.5 + 0.5 * (1.0 - min(acute_angle_bonus,
                calc_acute_angle_bonus(last_last_angle) ** 3))

    if max(prev_velocity, curr_velocity) != 0.0:
        # average velocity over the whole object
        prev_velocity = (last.lazy_jump_dist + last_last.travel_dist) / \
            last.strain_time
        curr_velocity = (curr.lazy_jump_dist + last.travel_dist) / \
            curr.strain_time

        velocity_diff = abs(prev_velocity - curr_velocity)

        dist_ratio = math.sin(math.pi / 2.0 * velocity_diff /
            max(prev_velocity, curr_velocity)) ** 2

        overlap_velocity_buff = min(
            125.0 / min(curr.strain_time, last.strain_time), velocity_diff)

        non_overlap_velocity_buff = velocity_diff * math.sin(
            math.pi / 2.0 *
            min(1.0, min(curr.lazy_jump_dist, last.lazy_jump_dist) / 100.0)
        ) ** 2

        velocity_change_bonus = max(overlap_velocity_buff,
            non_overlap_velocity_buff) * dist_ratio

        # penalize rhythm changes
        velocity_change_bonus *= (
            min(curr.strain_time, last.strain_time) /
            max(curr.strain_time, last.strain_time)
        ) ** 2

    if last.base.is_slider():
        slider_bonus = last.travel_dist / last.travel_time

    aim_strain += max(
        acute_angle_bonus * acute_angle_multiplier,
        wide_angle_bonus * WIDE_ANGLE_MULTIPLIER +
            velocity_change_bonus * VELOCITY_CHANGE_MULTIPLIER
    )

    if with_sliders:
        aim_strain += slider_bonus * slider_multiplier

    return aim_strain


SINGLE_SPACING_THRESHOLD = 125.0
MIN_SPEED_BONUS = 75.0
SPEED_BALANCING_FACTOR = 40.0


def evaluate_speed(curr, diff_objects):
    if curr.base.is_spinner():
        return 0.0

    prev = curr.previous(0, diff_objects)
    next_ = curr.next(0, diff_objects)

    strain_time = curr.strain_time
    doubletapness = 1.0

    # nerf doubletappable doubles
    if next_ is not None:
        curr_delta = max(1.0, curr.delta)
        next_delta = max(1.0, next_.delta)
        delta_diff = abs(next_delta - curr_delta)
        speed_ratio = curr_delta / max(curr_delta, delta_diff)
        window_ratio = min(1.0, curr_delta / curr.hit_window_great) ** 2
        doubletapness = math.pow(speed_ratio, 1.0 - window_ratio)

    # cap the delta to the od 300 window
    strain_time /= min(1.0, max(0.92,
        strain_time / curr.hit_window_great / 0.93))

    speed_bonus = 1.0
    if strain_time < MIN_SPEED_BONUS:
        speed_bonus += 0.75 * ((MIN_SPEED_BONUS - strain_time) /
            SPEED_BALANCING_FACTOR) ** 2

    travel_dist = prev.travel_dist if prev is not None else 0.0
    distance = min(SINGLE_SPACING_THRESHOLD,
        travel_dist + curr.min_jump_dist)

    return (
        (speed_bonus + speed_bonus *
            math.pow(distance / SINGLE_SPACING_THRESHOLD, 3.5)) *
        doubletapness / strain_time
    )


HISTORY_TIME_MAX = 5000.0
RHYTHM_MULTIPLIER = 0.75


def evaluate_rhythm(curr, diff_objects):
    """rhythm complexity multiplier, at least 1"""
    if curr.base.is_spinner():
        return 0.0

    prev_island_size = 0
    rhythm_complexity_sum = 0.0
    island_size = 1
    start_ratio = 0.0

    first_delta_switch = False

    historical_note_count = min(curr.idx, 32)

    rhythm_start = 0
    while rhythm_start < historical_note_count - 2 and \
            curr.start_time - curr.previous(rhythm_start,
                diff_objects).start_time < HISTORY_TIME_MAX:
        rhythm_start += 1

    for i in range(rhythm_start, 0, -1):
        curr_obj = curr.previous(i - 1, diff_objects)
        prev_obj = curr.previous(i, diff_objects)
        last_obj = curr.previous(i + 1, diff_objects)

        # 0 to 1 from the oldest note to now, limited by time or count
        curr_historical_decay = (HISTORY_TIME_MAX -
            (curr.start_time - curr_obj.start_time)) / HISTORY_TIME_MAX
        curr_historical_decay = min(
            (historical_note_count - i) / float(historical_note_count),
            curr_historical_decay)

        curr_delta = curr_obj.strain_time
        prev_delta = prev_obj.strain_time
        last_delta = last_obj.strain_time

        curr_ratio = 1.0 + 6.0 * min(0.5, math.sin(
            math.pi / (min(prev_delta, curr_delta) /
                max(prev_delta, curr_delta))) ** 2)

        window_penalty = min(1.0, max(0.0,
            abs(prev_delta - curr_delta) - curr_obj.hit_window_great * 0.6)
            / (curr_obj.hit_window_great * 0.6))

        effective_ratio = window_penalty * curr_ratio

        if first_delta_switch:
            if not (prev_delta > 1.25 * curr_delta or
                    prev_delta * 1.25 < curr_delta):
                # island is still progressing
                if island_size < 7:
                    island_size += 1

            else:
                # bpm change into a slider, easy acc window
                if curr_obj.base.is_slider():
                    effective_ratio *= 0.125

                # bpm change out of a slider
                if prev_obj.base.is_slider():
                    effective_ratio *= 0.25

                # repeated island size (triplet -> triplet)
                if prev_island_size == island_size:
                    effective_ratio *= 0.25

                # repeated island parity (2 -> 4, 3 -> 5)
                if prev_island_size % 2 == island_size % 2:
                    effective_ratio *= 0.5

                # 1/1 -> 1/2 -> 1/4, the previous increase was a note ago
                if last_delta > prev_delta + 10.0 and \
                        prev_delta > curr_delta + 10.0:
                    effective_ratio *= 0.125

                rhythm_complexity_sum += (
                    math.sqrt(effective_ratio * start_ratio) *
                    curr_historical_decay *
                    math.sqrt(4.0 + island_size) / 2.0 *
                    math.sqrt(4.0 + prev_island_size) / 2.0
                )

                start_ratio = effective_ratio
                prev_island_size = island_size

                # slowing down, stop counting
                if prev_delta * 1.25 < curr_delta:
                    first_delta_switch = False

                island_size = 1

        elif prev_delta > 1.25 * curr_delta:
            # speeding up, count the island until the speed changes
            first_delta_switch = True
            start_ratio = effective_ratio
            island_size = 1

    return math.sqrt(4.0 + rhythm_complexity_sum * RHYTHM_MULTIPLIER) / 2.0


MAX_OPACITY_BONUS = 0.4
HIDDEN_BONUS = 0.2
MIN_VELOCITY = 0.5
FL_SLIDER_MULTIPLIER = 1.3


def evaluate_flashlight(curr, diff_objects, hidden, time_preempt,
        time_fade_in):
    if curr.base.is_spinner():
        return 0.0

    radius = curr.radius
    scaling_factor = 52.0 / radius
    small_dist_nerf = 1.0
    cumulative_strain_time = 0.0

    result = 0.0
    last_obj = curr

    # iterating backwards in time from the current object
    for i in range(min(curr.idx, 10)):
        curr_obj = curr.previous(i, diff_objects)

        if not curr_obj.base.is_spinner():
            jump_dist = (
                curr.base.stacked_pos() - curr_obj.base.stacked_end_pos()
            ).len()

            cumulative_strain_time += last_obj.strain_time

            # nerf objects that can be seen within the flashlight radius
            if i == 0:
                small_dist_nerf = min(1.0, jump_dist / 75.0)

            # only the first object of a stack counts
            stack_nerf = min(1.0,
                (curr_obj.lazy_jump_dist / scaling_factor) / 25.0)

            opacity_bonus = 1.0 + MAX_OPACITY_BONUS * (
                1.0 - curr.opacity_at(curr_obj.base.start_time, hidden,
                    time_preempt, time_fade_in)
            )

            result += stack_nerf * opacity_bonus * scaling_factor * \
                jump_dist / cumulative_strain_time

        last_obj = curr_obj

    result = (small_dist_nerf * result) ** 2

    # no approach circles
    if hidden:
        result *= 1.0 + HIDDEN_BONUS

    slider_bonus = 0.0

    if curr.base.is_slider():
        pixel_travel_dist = curr.base.lazy_travel_dist / scaling_factor

        # longer and faster sliders need more memorisation
        slider_bonus = math.pow(max(0.0,
            pixel_travel_dist / curr.travel_time - MIN_VELOCITY), 0.5)
        slider_bonus *= pixel_travel_dist

        # repeats need less memorisation
        if curr.base.spans > 1:
            slider_bonus /= curr.base.spans

    result += slider_bonus * FL_SLIDER_MULTIPLIER

    return result


# -------------------------------------------------------------------------
# skills

class StrainSkill:
    """
    sectioned strain accumulator. the first difficulty object sets the
    first section end, every later one rolls the sections over before
    its strain is added.

    fields:
    diff_objects: every difficulty object, for lookbacks
    current_section_peak current_section_end: section state
    strain_peaks: saved section peaks
    """
    decay_base = 1.0
    skill_multiplier = 1.0

    def __init__(self, diff_objects):
        self.diff_objects = diff_objects
        self.current_strain = 0.0
        self.current_section_peak = 0.0
        self.current_section_end = 0.0
        self.strain_peaks = []


    def strain_value_at(self, curr):
        raise NotImplementedError


    def initial_strain(self, time, curr):
        prev = curr.previous(0, self.diff_objects)
        return self.current_strain * strain_decay(time - prev.start_time,
            self.decay_base)


    def process(self, curr):
        if curr.idx == 0:
            self.current_section_end = math.ceil(
                curr.start_time / SECTION_LEN) * SECTION_LEN

        while curr.start_time > self.current_section_end:
            self.save_current_peak()
            self.start_new_section(self.current_section_end, curr)
            self.current_section_end += SECTION_LEN

        self.current_section_peak = max(self.strain_value_at(curr),
            self.current_section_peak)


    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)


    def start_new_section(self, boundary, curr):
        self.current_section_peak = self.initial_strain(boundary, curr)


    def current_strain_peaks(self):
        return self.strain_peaks + [self.current_section_peak]


class OsuStrainSkill(StrainSkill):
    """
    the highest sections are scaled down before the weighted sum to
    dampen short difficulty spikes
    """
    reduced_section_count = 10
    reduced_strain_baseline = 0.75
    difficulty_multiplier = 1.06

    def difficulty_value(self):
        peaks = sorted((p for p in self.current_strain_peaks() if p > 0.0),
            reverse=True)

        n = min(len(peaks), self.reduced_section_count)
        for i in range(n):
            scale = math.log10(lerp(1.0, 10.0, min(1.0, max(0.0,
                i / float(self.reduced_section_count)))))
            peaks[i] *= lerp(self.reduced_strain_baseline, 1.0, scale)

        difficulty = 0.0
        weight = 1.0

        for strain in sorted(peaks, reverse=True):
            difficulty += strain * weight
            weight *= DECAY_WEIGHT

        return difficulty * self.difficulty_multiplier


class Aim(OsuStrainSkill):
    skill_multiplier = 23.55
    decay_base = 0.15

    def __init__(self, diff_objects, with_sliders):
        OsuStrainSkill.__init__(self, diff_objects)
        self.with_sliders = with_sliders

    def strain_value_at(self, curr):
        self.current_strain *= strain_decay(curr.delta, self.decay_base)
        self.current_strain += evaluate_aim(curr, self.diff_objects,
            self.with_sliders) * self.skill_multiplier
        return self.current_strain


class Speed(OsuStrainSkill):
    skill_multiplier = 1375.0
    decay_base = 0.3
    reduced_section_count = 5
    difficulty_multiplier = 1.04

    def __init__(self, diff_objects):
        OsuStrainSkill.__init__(self, diff_objects)
        self.current_rhythm = 0.0
        self.object_strains = []

    def initial_strain(self, time, curr):
        prev = curr.previous(0, self.diff_objects)
        return (self.current_strain * self.current_rhythm) * strain_decay(
            time - prev.start_time, self.decay_base)

    def strain_value_at(self, curr):
        self.current_strain *= strain_decay(curr.strain_time,
            self.decay_base)
        self.current_strain += evaluate_speed(curr, self.diff_objects) * \
            self.skill_multiplier

        self.current_rhythm = evaluate_rhythm(curr, self.diff_objects)

        total_strain = self.current_strain * self.current_rhythm
        self.object_strains.append(total_strain)

        return total_strain

    def relevant_note_count(self):
        """number of notes weighted by how close they are to the top"""
        if not self.object_strains:
            return 0.0

        max_strain = max(self.object_strains)
        if max_strain == 0.0:
            return 0.0

        return sum(
            1.0 / (1.0 + math.exp(-(strain / max_strain * 12.0 - 6.0)))
            for strain in self.object_strains
        )


class Flashlight(StrainSkill):
    skill_multiplier = 0.052
    decay_base = 0.15

    def __init__(self, diff_objects, hidden, time_preempt):
        StrainSkill.__init__(self, diff_objects)
        self.hidden = hidden
        self.time_preempt = time_preempt

        if hidden:
            self.time_fade_in = time_preempt * HD_FADE_IN_DURATION_MULTIPLIER
        else:
            self.time_fade_in = 400.0 * min(1.0, time_preempt / PREEMPT_MIN)

    def strain_value_at(self, curr):
        self.current_strain *= strain_decay(curr.delta, self.decay_base)
        self.current_strain += evaluate_flashlight(curr, self.diff_objects,
            self.hidden, self.time_preempt, self.time_fade_in) * \
            self.skill_multiplier
        return self.current_strain

    def difficulty_value(self):
        return sum(self.current_strain_peaks()) * \
            OsuStrainSkill.difficulty_multiplier


# -------------------------------------------------------------------------
# difficulty

class _Setup:
    def __init__(self, bmap, difficulty):
        clock_rate = difficulty.get_clock_rate(single_precision=True)
        self.mods = difficulty.mods
        self.clock_rate = clock_rate
        self.map_attrs = map_attributes(bmap, self.mods, clock_rate)
        self.scaling_factor = ScalingFactor(self.map_attrs.cs)
        self.time_preempt = to_f32(self.map_attrs.preempt * clock_rate)


def _objects(bmap, setup, take):
    objects = convert_objects(bmap, setup.mods, take)
    apply_stacking(objects, bmap.stack_leniency, bmap.format_version,
        setup.time_preempt, setup.scaling_factor.scale)
    return objects


def _skills(bmap, difficulty):
    setup = _Setup(bmap, difficulty)
    objects = _objects(bmap, setup, difficulty.get_passed_objects())

    diff_objects = build(objects, setup.clock_rate, setup.scaling_factor,
        setup.map_attrs.great_window)

    aim = Aim(diff_objects, True)
    aim_no_sliders = Aim(diff_objects, False)
    speed = Speed(diff_objects)
    flashlight = Flashlight(diff_objects, m.hd(setup.mods),
        setup.time_preempt)

    for h in diff_objects:
        aim.process(h)
        aim_no_sliders.process(h)
        speed.process(h)
        flashlight.process(h)

    return setup, objects, (aim, aim_no_sliders, speed, flashlight)


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN, "aim": [], "aim_no_sliders": [],
        "speed": [], "flashlight": []}

    if bmap.mode != MODE_STD:
        logger.warning("osu_2022 only supports osu!standard maps")
        return res

    setup, objects, skills = _skills(bmap, difficulty)
    if len(objects) < 2:
        return res

    aim, aim_no_sliders, speed, flashlight = skills
    res["section_len"] = SECTION_LEN * setup.clock_rate
    res["aim"] = aim.current_strain_peaks()
    res["aim_no_sliders"] = aim_no_sliders.current_strain_peaks()
    res["speed"] = speed.current_strain_peaks()
    res["flashlight"] = flashlight.current_strain_peaks()
    return res


def eval_ratings(attrs, mods, aim_value, aim_no_sliders_value, speed_value,
        speed_relevant_note_count, flashlight_value):
    """turns skill difficulty values into ratings and the star rating"""
    aim_rating = math.sqrt(aim_value) * DIFFICULTY_MULTIPLIER
    aim_rating_no_sliders = math.sqrt(aim_no_sliders_value) * \
        DIFFICULTY_MULTIPLIER
    speed_rating = math.sqrt(speed_value) * DIFFICULTY_MULTIPLIER
    flashlight_rating = math.sqrt(flashlight_value) * DIFFICULTY_MULTIPLIER

    slider_factor = 1.0
    if aim_rating > 0.0:
        slider_factor = aim_rating_no_sliders / aim_rating

    if m.td(mods):
        aim_rating = math.pow(aim_rating, 0.8)
        flashlight_rating = math.pow(flashlight_rating, 0.8)

    if m.rx(mods):
        aim_rating *= 0.9
        speed_rating = 0.0
        flashlight_rating *= 0.7

    base_aim_performance = math.pow(
        5.0 * max(1.0, aim_rating / 0.0675) - 4.0, 3.0) / 100000.0
    base_speed_performance = math.pow(
        5.0 * max(1.0, speed_rating / 0.0675) - 4.0, 3.0) / 100000.0

    base_flashlight_performance = 0.0
    if m.fl(mods):
        base_flashlight_performance = flashlight_rating ** 2 * 25.0

    base_performance = math.pow(
        math.pow(base_aim_performance, 1.1) +
        math.pow(base_speed_performance, 1.1) +
        math.pow(base_flashlight_performance, 1.1),
        1.0 / 1.1
    )

    stars = 0.0
    if base_performance > 0.00001:
        stars = (
            PERFORMANCE_BASE_MULTIPLIER ** (1.0 / 3.0) * 0.027 *
            ((100000.0 / math.pow(2.0, 1.0 / 1.1) * base_performance)
                ** (1.0 / 3.0) + 4.0)
        )

    attrs.aim = aim_rating
    attrs.speed = speed_rating
    attrs.flashlight = flashlight_rating
    attrs.slider_factor = slider_factor
    attrs.stars = stars
    attrs.speed_note_count = speed_relevant_note_count


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see OsuDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = OsuDifficultyAttributes()

    if bmap.mode != MODE_STD:
        logger.warning("osu_2022 only supports osu!standard maps")
        return res

    setup, objects, skills = _skills(bmap, difficulty)
    res.ar = setup.map_attrs.ar
    res.od = setup.map_attrs.od
    res.hp = setup.map_attrs.hp

    if len(objects) < 2:
        return res

    res.n_circles = sum(1 for h in objects if h.is_circle())
    res.n_sliders = sum(1 for h in objects if h.is_slider())
    res.n_spinners = sum(1 for h in objects if h.is_spinner())
    res.max_combo = max_combo(objects)

    aim, aim_no_sliders, speed, flashlight = skills
    eval_ratings(res, mods, aim.difficulty_value(),
        aim_no_sliders.difficulty_value(), speed.difficulty_value(),
        speed.relevant_note_count(), flashlight.difficulty_value())

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

def effective_miss_count(attrs, state):
    """misses plus slider breaks guessed from the combo"""
    combo_based = 0.0

    if attrs.n_sliders > 0:
        full_combo_threshold = attrs.max_combo - 0.1 * attrs.n_sliders
        if state.combo < full_combo_threshold:
            combo_based = full_combo_threshold / max(1.0, state.combo)

    # at most the number of possible breaks
    combo_based = min(combo_based,
        float(state.n100 + state.n50 + state.misses))

    return max(combo_based, float(state.misses))


def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates pp. kwargs are Performance fields, unknown hit counts
    are searched to match the accuracy.

    either bmap or osu!standard attributes must be given
    """
    perf = Performance(**kwargs)
    attrs = difficulty_of(attributes, OsuDifficultyAttributes)

    if attrs is None:
        if bmap is None:
            raise ValueError("missing bmap or attributes")
        attrs = stars(bmap, perf.mods, perf.passed_objects, perf.clock_rate)

    n_objects = attrs.n_objects()
    if perf.passed_objects is not None:
        n_objects = min(n_objects, perf.passed_objects)

    state = osu_state(perf, n_objects, attrs.max_combo)
    return _Performance(attrs, perf.mods, state).calculate()


class _Performance:
    def __init__(self, attrs, mods, state):
        self.attrs = attrs
        self.mods = mods
        self.state = state
        self.acc = state.accuracy()
        self.effective_miss_count = effective_miss_count(attrs, state)


    def total_hits(self):
        return float(self.state.total_hits())


    def calculate(self):
        attrs = self.attrs
        res = OsuPerformanceAttributes(difficulty=attrs)

        total_hits = self.total_hits()
        if total_hits == 0:
            return res

        multiplier = PERFORMANCE_BASE_MULTIPLIER

        if m.nf(self.mods):
            multiplier *= max(0.9, 1.0 - 0.02 * self.effective_miss_count)

        if m.so(self.mods):
            multiplier *= 1.0 - math.pow(attrs.n_spinners / total_hits,
                0.85)

        if m.rx(self.mods):
            # od 13.33 is where the great window becomes 0
            n100_mult = n50_mult = 1.0
            if attrs.od > 0.0:
                n100_mult = 1.0 - math.pow(attrs.od / 13.33, 1.8)
                n50_mult = 1.0 - math.pow(attrs.od / 13.33, 5.0)

            # n100_mult is added as is, not per 100
            self.effective_miss_count = min(total_hits,
                self.effective_miss_count + self.state.n100 + n100_mult +
                self.state.n50 * n50_mult)

        aim = self.aim_value()
        speed = self.speed_value()
        acc = self.acc_value()
        flashlight = self.flashlight_value()

        res.pp = math.pow(
            math.pow(aim, 1.1) + math.pow(speed, 1.1) +
            math.pow(acc, 1.1) + math.pow(flashlight, 1.1),
            1.0 / 1.1
        ) * multiplier
        res.pp_aim = aim
        res.pp_speed = speed
        res.pp_acc = acc
        res.pp_flashlight = flashlight
        res.effective_miss_count = self.effective_miss_count
        res.accuracy = self.acc * 100.0

        return res


    def length_bonus(self):
        total_hits = self.total_hits()
        res = 0.95 + 0.4 * min(1.0, total_hits / 2000.0)
        if total_hits > 2000.0:
            res += math.log10(total_hits / 2000.0) * 0.5
        return res


    def combo_scaling_factor(self):
        if self.attrs.max_combo == 0:
            return 1.0
        return min(1.0, math.pow(self.state.combo, 0.8) /
            math.pow(self.attrs.max_combo, 0.8))


    def miss_penalty(self, exponent):
        emc = self.effective_miss_count
        return 0.97 * math.pow(
            1.0 - math.pow(emc / self.total_hits(), 0.775), exponent)


    def aim_value(self):
        attrs = self.attrs
        state = self.state

        res = math.pow(5.0 * max(1.0, attrs.aim / 0.0675) - 4.0, 3.0) / \
            100000.0

        len_bonus = self.length_bonus()
        res *= len_bonus

        if self.effective_miss_count > 0.0:
            res *= self.miss_penalty(self.effective_miss_count)

        res *= self.combo_scaling_factor()

        ar_factor = 0.0
        if m.rx(self.mods):
            ar_factor = 0.0
        elif attrs.ar > 10.33:
            ar_factor = 0.3 * (attrs.ar - 10.33)
        elif attrs.ar < 8.0:
            ar_factor = 0.05 * (8.0 - attrs.ar)

        # longer maps with high ar
        res *= 1.0 + ar_factor * len_bonus

        if m.hd(self.mods):
            res *= 1.0 + 0.04 * (12.0 - attrs.ar)

        # assume 15% of the sliders are difficult
        estimate_diff_sliders = attrs.n_sliders * 0.15

        if attrs.n_sliders > 0:
            estimate_slider_ends_dropped = min(
                float(min(state.n100 + state.n50 + state.misses,
                    max(0, attrs.max_combo - state.combo))),
                estimate_diff_sliders)
            estimate_slider_ends_dropped = max(0.0,
                estimate_slider_ends_dropped)

            slider_nerf_factor = (
                (1.0 - attrs.slider_factor) *
                math.pow(1.0 - estimate_slider_ends_dropped /
                    estimate_diff_sliders, 3.0) +
                attrs.slider_factor
            )
            res *= slider_nerf_factor

        res *= self.acc
        res *= 0.98 + attrs.od ** 2 / 2500.0

        return res


    def speed_value(self):
        if m.rx(self.mods):
            return 0.0

        attrs = self.attrs
        state = self.state
        total_hits = self.total_hits()

        res = math.pow(5.0 * max(1.0, attrs.speed / 0.0675) - 4.0, 3.0) / \
            100000.0

        len_bonus = self.length_bonus()
        res *= len_bonus

        if self.effective_miss_count > 0.0:
            res *= self.miss_penalty(
                math.pow(self.effective_miss_count, 0.875))

        res *= self.combo_scaling_factor()

        ar_factor = 0.0
        if attrs.ar > 10.33:
            ar_factor = 0.3 * (attrs.ar - 10.33)

        res *= 1.0 + ar_factor * len_bonus

        if m.hd(self.mods):
            res *= 1.0 + 0.04 * (12.0 - attrs.ar)

        # accuracy on the speed relevant notes, worst case
        relevant_total_diff = total_hits - attrs.speed_note_count
        relevant_n300 = max(0.0, state.n300 - relevant_total_diff)
        relevant_n100 = max(0.0, state.n100 -
            max(0.0, relevant_total_diff - state.n300))
        relevant_n50 = max(0.0, state.n50 -
            max(0.0, relevant_total_diff - (state.n300 + state.n100)))

        relevant_acc = 0.0
        if attrs.speed_note_count != 0.0:
            relevant_acc = (
                relevant_n300 * 6.0 + relevant_n100 * 2.0 + relevant_n50
            ) / (attrs.speed_note_count * 6.0)

        res *= (0.95 + attrs.od * attrs.od / 750.0) * math.pow(
            (self.acc + relevant_acc) / 2.0,
            (14.5 - max(attrs.od, 8.0)) / 2.0)

        # punish doubletapping
        if state.n50 >= total_hits / 500.0:
            res *= math.pow(0.99, state.n50 - total_hits / 500.0)

        return res


    def acc_value(self):
        if m.rx(self.mods):
            return 0.0

        attrs = self.attrs
        state = self.state

        # only circles have their own hit window
        n_circles = attrs.n_circles

        better_acc = 0.0
        if n_circles > 0:
            sub = state.total_hits() - n_circles
            if state.n300 >= sub:
                better_acc = (
                    (state.n300 - sub) * 6 + state.n100 * 2 + state.n50
                ) / float(n_circles * 6)

        res = math.pow(1.52163, attrs.od) * math.pow(better_acc, 24.0) * 2.83

        # keeping accuracy up is harder for more circles
        res *= min(1.15, math.pow(n_circles / 1000.0, 0.3))

        if m.hd(self.mods):
            res *= 1.08

        if m.fl(self.mods):
            res *= 1.02

        return res


    def flashlight_value(self):
        if not m.fl(self.mods):
            return 0.0

        attrs = self.attrs
        total_hits = self.total_hits()

        res = attrs.flashlight ** 2 * 25.0

        if self.effective_miss_count > 0.0:
            res *= self.miss_penalty(
                math.pow(self.effective_miss_count, 0.875))

        res *= self.combo_scaling_factor()

        # shorter maps have more low combo (large radius) time
        length_factor = 0.7 + 0.1 * min(1.0, total_hits / 200.0)
        if total_hits > 200.0:
            length_factor += 0.2 * min(1.0, (total_hits - 200.0) / 200.0)
        res *= length_factor

        res *= 0.5 + self.acc / 2.0
        res *= 0.98 + attrs.od ** 2 / 2500.0

        return res
