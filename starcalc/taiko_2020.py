"""
osu!taiko difficulty and pp as of 2020.

colour, rhythm and one stamina skill per hand. stamina is penalized for
maps with little colour variance, the skills are combined both as a
norm of their ratings and section by section before the final rescale.
difficulty objects start at the third object, the section origin is the
first object rounded up to the clock adjusted section length.
"""

import logging
import math

from . import mods as m
from .attributes import (
    TaikoDifficultyAttributes, TaikoPerformanceAttributes, difficulty_of,
)
from .beatmap import difficulty_range
from .calculator import Difficulty, Performance
from .convert import is_convert, taiko_objects
from .hitresults import taiko_state
from .strains import norm, strain_decay, weighted_sum

logger = logging.getLogger(__name__)

SECTION_LEN = 400.0
DECAY_WEIGHT = 0.9

COLOUR_SKILL_MULTIPLIER = 0.01
RHYTHM_SKILL_MULTIPLIER = 0.014
STAMINA_SKILL_MULTIPLIER = 0.02

HIT_RIM = "rim"
HIT_CENTRE = "centre"

# (numerator, denominator, difficulty)
COMMON_RHYTHMS = [
    (1, 1, 0.0),
    (2, 1, 0.3),
    (1, 2, 0.5),
    (3, 1, 0.3),
    (1, 3, 0.35),
    (3, 2, 0.6),
    (2, 3, 0.4),
    (5, 4, 0.5),
    (4, 5, 0.7),
]


def rhythm_ratio(rhythm):
    return rhythm[0] / float(rhythm[1])


def rhythm_difficulty(rhythm):
    return rhythm[2]


def closest_rhythm(delta, last, last_last, clock_rate):
    prev_length = (last.start_time - last_last.start_time) / clock_rate
    ratio = delta / prev_length if prev_length != 0.0 else float("inf")
    return min(COMMON_RHYTHMS, key=lambda r: abs(rhythm_ratio(r) - ratio))


class DifficultyObject:
    """
    fields:
    base: the TaikoObject
    delta: clock adjusted time since the last object
    rhythm: closest COMMON_RHYTHMS entry
    hit_type: HIT_RIM, HIT_CENTRE or None for drumrolls and swells
    object_index: index of the base object in the object list
    stamina_cheese: part of a pattern that can be alternated with
        less fingers
    """
    def __init__(self, base, last, last_last, clock_rate, object_index):
        self.base = base
        self.last = last
        self.delta = (base.start_time - last.start_time) / clock_rate
        self.rhythm = closest_rhythm(self.delta, last, last_last, clock_rate)
        self.object_index = object_index
        self.stamina_cheese = False

        self.hit_type = None
        if base.is_hit():
            self.hit_type = HIT_RIM if base.is_rim() else HIT_CENTRE

    def __str__(self):
        return "%s: delta=%g rhythm=%d/%d" % (self.base, self.delta,
            self.rhythm[0], self.rhythm[1])

    def __repr__(self):
        return str(self)


def build(objects, clock_rate):
    """difficulty objects from the third object on"""
    res = [
        DifficultyObject(objects[i], objects[i - 1], objects[i - 2],
            clock_rate, i)
        for i in range(2, len(objects))
    ]
    StaminaCheeseDetector(res).find_cheese()
    return res


# -------------------------------------------------------------------------
# stamina cheese

ROLL_MIN_REPETITIONS = 12
TL_MIN_REPETITIONS = 16


class StaminaCheeseDetector:
    """
    marks rolls (repeating 3 or 4 note colour patterns) and tl taps
    (long runs of one colour on every other note)
    """
    def __init__(self, diff_objects):
        self.diff_objects = diff_objects

    def find_cheese(self):
        self.find_rolls(3)
        self.find_rolls(4)

        self.find_tl_tap(0, HIT_RIM)
        self.find_tl_tap(1, HIT_RIM)
        self.find_tl_tap(0, HIT_CENTRE)
        self.find_tl_tap(1, HIT_CENTRE)

    def find_rolls(self, pattern_length):
        history = []
        repetition_start = 0

        for i, obj in enumerate(self.diff_objects):
            history.append(obj)
            if len(history) > 2 * pattern_length:
                history.pop(0)

            if len(history) < 2 * pattern_length:
                continue

            if not self.contains_pattern_repeat(history, pattern_length):
                repetition_start = i - 2 * pattern_length
                continue

            if i - repetition_start < ROLL_MIN_REPETITIONS:
                continue

            self.mark_as_cheese(repetition_start, i)

    @staticmethod
    def contains_pattern_repeat(history, pattern_length):
        for j in range(pattern_length):
            if history[j].hit_type != history[j + pattern_length].hit_type:
                return False
        return True

    def find_tl_tap(self, parity, hit_type):
        tl_length = -2

        for i in range(parity, len(self.diff_objects), 2):
            if self.diff_objects[i].hit_type == hit_type:
                tl_length += 2
            else:
                tl_length = -2

            if tl_length < TL_MIN_REPETITIONS:
                continue

            self.mark_as_cheese(max(0, i - tl_length), i)

    def mark_as_cheese(self, start, end):
        for i in range(max(0, start), end + 1):
            self.diff_objects[i].stamina_cheese = True


# -------------------------------------------------------------------------
# skills

class Skill:
    """
    base strain skill.

    fields:
    current_strain current_section_peak: both start at 1
    prev_time: start time of the last processed object, not clock
               adjusted
    strain_peaks: saved section peaks
    """
    skill_multiplier = 1.0
    decay_base = 0.3

    def __init__(self):
        self.current_strain = 1.0
        self.current_section_peak = 1.0
        self.prev_time = None
        self.strain_peaks = []

    def strain_value_of(self, obj):
        raise NotImplementedError

    def process(self, obj):
        self.current_strain *= strain_decay(obj.delta, self.decay_base)
        self.current_strain += self.strain_value_of(obj) * \
            self.skill_multiplier
        self.current_section_peak = max(self.current_strain,
            self.current_section_peak)
        self.prev_time = obj.base.start_time

    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)

    def start_new_section(self, boundary):
        # the clock rate is not applied to the decay
        if self.prev_time is not None:
            self.current_section_peak = self.current_strain * strain_decay(
                boundary - self.prev_time, self.decay_base)

    def difficulty_value(self):
        return weighted_sum(self.strain_peaks, DECAY_WEIGHT)


MONO_HISTORY_MAX_LENGTH = 5
MOST_RECENT_COLOUR_PATTERNS = 2


class Colour(Skill):
    skill_multiplier = 1.0
    decay_base = 0.4

    def __init__(self):
        Skill.__init__(self)
        self.mono_history = []
        self.prev_hit_type = None
        self.current_mono_length = 0

    def strain_value_of(self, obj):
        if not (obj.last.is_hit() and obj.base.is_hit() and
                obj.delta < 1000.0):
            self.mono_history = []
            self.current_mono_length = 1 if obj.base.is_hit() else 0
            self.prev_hit_type = obj.hit_type
            return 0.0

        object_strain = 0.0

        if self.prev_hit_type is not None and \
                obj.hit_type != self.prev_hit_type:
            # colour changed
            object_strain = 1.0

            if len(self.mono_history) < 2:
                object_strain = 0.0

            # the last streak is the other colour, an even total means
            # the same hand starts again
            elif (self.mono_history[-1] + self.current_mono_length) % 2 == 0:
                object_strain = 0.0

            object_strain *= self.repetition_penalties()
            self.current_mono_length = 1

        else:
            self.current_mono_length += 1

        self.prev_hit_type = obj.hit_type
        return object_strain

    def repetition_penalties(self):
        penalty = 1.0
        self.mono_history.append(self.current_mono_length)

        n = MOST_RECENT_COLOUR_PATTERNS
        for start in range(len(self.mono_history) - n - 1, -1, -1):
            if not self.is_same_pattern(start, n):
                continue

            notes_since = sum(self.mono_history[start:])
            penalty *= repetition_penalty(notes_since)
            break

        if len(self.mono_history) > MONO_HISTORY_MAX_LENGTH:
            self.mono_history.pop(0)

        return penalty

    def is_same_pattern(self, start, n):
        count = len(self.mono_history)
        for i in range(n):
            if self.mono_history[start + i] != \
                    self.mono_history[count - n + i]:
                return False
        return True


def repetition_penalty(notes_since):
    return min(1.0, 0.032 * notes_since)


RHYTHM_HISTORY_MAX_LENGTH = 8
RHYTHM_STRAIN_DECAY = 0.96


class Rhythm(Skill):
    skill_multiplier = 10.0
    decay_base = 0.0

    def __init__(self):
        Skill.__init__(self)
        self.rhythm_history = []
        self.rhythm_strain = 0.0
        self.notes_since_rhythm_change = 0

    def strain_value_of(self, obj):
        # drumrolls and swells are exempt
        if not obj.base.is_hit():
            self.reset_rhythm_and_strain()
            return 0.0

        self.rhythm_strain *= RHYTHM_STRAIN_DECAY
        self.notes_since_rhythm_change += 1

        # rhythm did not change
        if rhythm_difficulty(obj.rhythm) == 0.0:
            return 0.0

        object_strain = rhythm_difficulty(obj.rhythm)
        object_strain *= self.repetition_penalties(obj)
        object_strain *= pattern_length_penalty(
            self.notes_since_rhythm_change)
        object_strain *= self.speed_penalty(obj.delta)

        self.notes_since_rhythm_change = 0
        self.rhythm_strain += object_strain
        return self.rhythm_strain

    def repetition_penalties(self, obj):
        penalty = 1.0

        self.rhythm_history.append(obj)
        if len(self.rhythm_history) > RHYTHM_HISTORY_MAX_LENGTH:
            self.rhythm_history.pop(0)

        for n in range(2, RHYTHM_HISTORY_MAX_LENGTH // 2 + 1):
            for start in range(len(self.rhythm_history) - n - 1, -1, -1):
                if not self.is_same_pattern(start, n):
                    continue

                notes_since = obj.object_index - \
                    self.rhythm_history[start].object_index
                penalty *= repetition_penalty(notes_since)
                break

        return penalty

    def is_same_pattern(self, start, n):
        count = len(self.rhythm_history)
        for i in range(n):
            if self.rhythm_history[start + i].rhythm != \
                    self.rhythm_history[count - n + i].rhythm:
                return False
        return True

    def speed_penalty(self, delta):
        if delta < 80.0:
            return 1.0
        if delta < 210.0:
            return max(0.0, 1.4 - 0.005 * delta)

        self.reset_rhythm_and_strain()
        return 0.0

    def reset_rhythm_and_strain(self):
        self.rhythm_strain = 0.0
        self.notes_since_rhythm_change = 0


def pattern_length_penalty(pattern_length):
    short_pattern_penalty = min(0.15 * pattern_length, 1.0)
    long_pattern_penalty = min(1.0, max(0.0, 2.5 - 0.15 * pattern_length))
    return min(short_pattern_penalty, long_pattern_penalty)


STAMINA_HISTORY_LENGTH = 2


class Stamina(Skill):
    """
    strain of one hand. hands alternate by object index, right hand on
    even indices
    """
    skill_multiplier = 1.0
    decay_base = 0.4

    def __init__(self, right_hand):
        Skill.__init__(self)
        self.hand = 0 if right_hand else 1
        self.note_pair_durations = []
        self.offhand_object_duration = float("inf")

    def strain_value_of(self, obj):
        if not obj.base.is_hit():
            return 0.0

        if obj.object_index % 2 != self.hand:
            self.offhand_object_duration = obj.delta
            return 0.0

        object_strain = 1.0

        if obj.object_index == 1:
            return 1.0

        note_pair_duration = obj.delta + self.offhand_object_duration
        self.note_pair_durations.append(note_pair_duration)
        if len(self.note_pair_durations) > STAMINA_HISTORY_LENGTH:
            self.note_pair_durations.pop(0)

        object_strain += speed_bonus(min(self.note_pair_durations))

        if obj.stamina_cheese:
            object_strain *= cheese_penalty(note_pair_duration)

        return object_strain


def cheese_penalty(note_pair_duration):
    if note_pair_duration > 125.0:
        return 1.0
    if note_pair_duration < 100.0:
        return 0.6
    return 0.6 + (note_pair_duration - 100.0) * 0.016


def speed_bonus(note_pair_duration):
    if note_pair_duration >= 200.0:
        return 0.0
    bonus = 200.0 - note_pair_duration
    return bonus * bonus / 100000.0


# -------------------------------------------------------------------------
# difficulty

def great_hit_window(od, clock_rate):
    return difficulty_range(od, 50.0, 35.0, 20.0) / clock_rate


def od_with_mods(od, mods):
    if m.hr(mods):
        od = min(10.0, od * 1.4)
    if m.ez(mods):
        od *= 0.5
    return od


def _skills(objects, clock_rate):
    colour = Colour()
    rhythm = Rhythm()
    stamina_right = Stamina(True)
    stamina_left = Stamina(False)
    skills = (colour, rhythm, stamina_right, stamina_left)

    if len(objects) < 2:
        return skills

    section_len = SECTION_LEN * clock_rate
    current_section_end = math.ceil(
        objects[0].start_time / section_len) * section_len

    for h in build(objects, clock_rate):
        while h.base.start_time > current_section_end:
            for skill in skills:
                skill.save_current_peak()
                skill.start_new_section(current_section_end)

            current_section_end += section_len

        for skill in skills:
            skill.process(h)

    for skill in skills:
        skill.save_current_peak()

    return skills


def simple_colour_penalty(stamina_difficulty, colour_difficulty):
    if colour_difficulty <= 0.0:
        return 0.79 - 0.25
    return 0.79 - math.atan(
        stamina_difficulty / colour_difficulty - 12.0) / math.pi / 2.0


def locally_combined_difficulty(colour, rhythm, stamina_right, stamina_left,
        stamina_penalty):
    peaks = []

    for i in range(len(colour.strain_peaks)):
        colour_peak = colour.strain_peaks[i] * COLOUR_SKILL_MULTIPLIER
        rhythm_peak = rhythm.strain_peaks[i] * RHYTHM_SKILL_MULTIPLIER
        stamina_peak = (
            stamina_right.strain_peaks[i] + stamina_left.strain_peaks[i]
        ) * STAMINA_SKILL_MULTIPLIER * stamina_penalty

        peaks.append(norm(2.0, colour_peak, rhythm_peak, stamina_peak))

    return weighted_sum(peaks, DECAY_WEIGHT)


def rescale(stars):
    if stars < 0.0:
        return stars
    return 10.43 * math.log(stars / 8.0 + 1.0)


def _objects(bmap, difficulty):
    objects = taiko_objects(bmap)
    if objects is None:
        return None
    return difficulty.take(objects)


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN, "colour": [], "rhythm": [],
        "stamina_right": [], "stamina_left": []}

    objects = _objects(bmap, difficulty)
    if objects is None:
        return res

    clock_rate = difficulty.get_clock_rate()
    colour, rhythm, stamina_right, stamina_left = _skills(objects,
        clock_rate)
    res["section_len"] = SECTION_LEN * clock_rate
    res["colour"] = colour.strain_peaks
    res["rhythm"] = rhythm.strain_peaks
    res["stamina_right"] = stamina_right.strain_peaks
    res["stamina_left"] = stamina_left.strain_peaks
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see TaikoDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = TaikoDifficultyAttributes()

    objects = _objects(bmap, difficulty)
    if objects is None or len(objects) < 2:
        return res

    clock_rate = difficulty.get_clock_rate()
    colour, rhythm, stamina_right, stamina_left = _skills(objects,
        clock_rate)

    colour_rating = colour.difficulty_value() * COLOUR_SKILL_MULTIPLIER
    rhythm_rating = rhythm.difficulty_value() * RHYTHM_SKILL_MULTIPLIER
    stamina_rating = (
        stamina_right.difficulty_value() + stamina_left.difficulty_value()
    ) * STAMINA_SKILL_MULTIPLIER

    stamina_penalty = simple_colour_penalty(stamina_rating, colour_rating)
    stamina_rating *= stamina_penalty

    combined_rating = locally_combined_difficulty(colour, rhythm,
        stamina_right, stamina_left, stamina_penalty)
    separated_rating = norm(1.5, colour_rating, rhythm_rating,
        stamina_rating)

    res.stars = rescale(1.4 * separated_rating + 0.5 * combined_rating)
    res.stamina = stamina_rating
    res.rhythm = rhythm_rating
    res.colour = colour_rating
    res.peak = combined_rating
    res.great_hit_window = great_hit_window(od_with_mods(bmap.od, mods),
        clock_rate)
    res.max_combo = sum(1 for h in objects if h.is_hit())
    res.is_convert = is_convert(bmap)

    logger.debug("%s: %s", bmap, res)
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

    strain = math.pow(5.0 * max(1.0, attrs.stars / 0.0075) - 4.0, 2.0) / \
        100000.0

    length_bonus = 1.0 + 0.1 * min(1.0, total_hits / 1500.0)
    strain *= length_bonus
    strain *= math.pow(0.985, state.misses)

    if m.hd(mods):
        strain *= 1.025

    if m.fl(mods):
        strain *= 1.05 * length_bonus

    strain *= acc

    acc_value = 0.0
    if attrs.great_hit_window > 0.0:
        acc_value = (
            math.pow(150.0 / attrs.great_hit_window, 1.1) *
            math.pow(acc, 15.0) * 22.0 *
            min(1.15, math.pow(total_hits / 1500.0, 0.3))
        )

    res.pp = math.pow(
        math.pow(strain, 1.1) + math.pow(acc_value, 1.1), 1.0 / 1.1
    ) * multiplier
    res.pp_difficulty = strain
    res.pp_acc = acc_value
    res.effective_miss_count = float(state.misses)
    return res
