"""
osu!taiko difficulty and pp as of 2024.

same colour encoding as the 2022 rework, every object now knows the mono
streak it belongs to. stamina counts the fingers available for a note and
a second, single colour stamina skill measures how mono the map is. pp
estimates the unstable rate from the hit windows and judgements.
"""

import logging
import math

from scipy import special

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

DIFFICULTY_MULTIPLIER = 0.084375
RHYTHM_SKILL_MULTIPLIER = 0.2 * DIFFICULTY_MULTIPLIER
COLOUR_SKILL_MULTIPLIER = 0.375 * DIFFICULTY_MULTIPLIER
STAMINA_SKILL_MULTIPLIER = 0.375 * DIFFICULTY_MULTIPLIER

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


def closest_rhythm(delta, last, last_last, clock_rate):
    prev_length = (last.start_time - last_last.start_time) / clock_rate
    ratio = delta / prev_length if prev_length != 0.0 else float("inf")
    return min(COMMON_RHYTHMS,
        key=lambda r: abs(r[0] / float(r[1]) - ratio))


# -------------------------------------------------------------------------
# difficulty objects

class Colour:
    """
    fields:
    mono_streak: arena index of the streak the object is part of
    alternating_mono_pattern repeating_hit_pattern: arena indices of the
        runs the object starts
    """
    def __init__(self):
        self.mono_streak = None
        self.alternating_mono_pattern = None
        self.repeating_hit_pattern = None


class DifficultyObject:
    """
    fields:
    base: the TaikoObject
    idx: index in the difficulty object list
    start_time delta: clock adjusted
    rhythm: closest COMMON_RHYTHMS entry
    hit_type: HIT_RIM, HIT_CENTRE or None
    mono_idx note_idx: index among the same colour objects and the hits
    colour: Colour
    """
    def __init__(self, base, last, last_last, clock_rate, idx, objects):
        self.base = base
        self.idx = idx
        self.start_time = base.start_time / clock_rate
        self.delta = (base.start_time - last.start_time) / clock_rate
        self.rhythm = closest_rhythm(self.delta, last, last_last, clock_rate)
        self.colour = Colour()
        self.mono_idx = 0
        self.note_idx = 0
        self.hit_type = None

        if base.is_hit():
            self.hit_type = HIT_RIM if base.is_rim() else HIT_CENTRE
            mono = objects.mono_list(self.hit_type)
            self.mono_idx = len(mono)
            mono.append(self)
            self.note_idx = len(objects.notes)
            objects.notes.append(self)

    def __str__(self):
        return "%d %s: delta=%g" % (self.idx, self.base, self.delta)

    def __repr__(self):
        return str(self)


class DifficultyObjects:
    """
    fields:
    objects centre rim notes: DifficultyObject lists
    """
    def __init__(self):
        self.objects = []
        self.centre = []
        self.rim = []
        self.notes = []

    def mono_list(self, hit_type):
        return self.rim if hit_type == HIT_RIM else self.centre

    def previous(self, obj, backwards_idx):
        return _at(self.objects, obj.idx - (backwards_idx + 1))

    def previous_mono(self, obj, backwards_idx):
        if obj.hit_type is None:
            return None
        return _at(self.mono_list(obj.hit_type),
            obj.mono_idx - (backwards_idx + 1))

    def previous_note(self, obj, backwards_idx):
        if obj.hit_type is None:
            return None
        return _at(self.notes, obj.note_idx - (backwards_idx + 1))

    def next_note(self, obj, forwards_idx):
        if obj.hit_type is None:
            return None
        return _at(self.notes, obj.note_idx + forwards_idx + 1)


def _at(lst, idx):
    if 0 <= idx < len(lst):
        return lst[idx]
    return None


def build(objects, clock_rate):
    """difficulty objects from the third object on, colours encoded"""
    res = DifficultyObjects()
    for i in range(2, len(objects)):
        res.objects.append(DifficultyObject(objects[i], objects[i - 1],
            objects[i - 2], clock_rate, i - 2, res))

    return res, ColourEncoding(res)


# -------------------------------------------------------------------------
# colour encoding

MAX_REPETITION_INTERVAL = 16


class MonoStreak:
    def __init__(self):
        self.hit_objects = []
        self.parent = None
        self.index = 0

    def hit_type(self):
        return self.hit_objects[0].hit_type

    def run_length(self):
        return len(self.hit_objects)

    def first_hit_object(self):
        return self.hit_objects[0]

    def last_hit_object(self):
        return self.hit_objects[-1]


class AlternatingMonoPattern:
    def __init__(self):
        self.mono_streaks = []
        self.parent = None
        self.index = 0


class RepeatingHitPatterns:
    def __init__(self, previous):
        self.alternating_mono_patterns = []
        self.previous = previous
        self.repetition_interval = MAX_REPETITION_INTERVAL + 1


class ColourEncoding:
    """
    arena of mono streaks, alternating mono patterns and repeating hit
    patterns. every run refers to its parent by index
    """
    def __init__(self, diff_objects):
        self.diff_objects = diff_objects
        self.mono_streaks = []
        self.alternating_mono_patterns = []
        self.repeating_hit_patterns = []

        self.encode_mono_streaks()
        self.encode_alternating_mono_patterns()
        self.encode_repeating_hit_patterns()
        self.assign()


    def encode_mono_streaks(self):
        current = None

        for obj in self.diff_objects.notes:
            prev = self.diff_objects.previous_note(obj, 0)

            if current is None or prev is None or \
                    obj.hit_type != prev.hit_type:
                current = MonoStreak()
                self.mono_streaks.append(current)

            current.hit_objects.append(obj)


    def encode_alternating_mono_patterns(self):
        current = None
        streaks = self.mono_streaks

        for i, streak in enumerate(streaks):
            if current is None or \
                    streak.run_length() != streaks[i - 1].run_length():
                current = AlternatingMonoPattern()
                self.alternating_mono_patterns.append(current)

            current.mono_streaks.append(i)


    def mono_length(self, pattern_idx):
        pattern = self.alternating_mono_patterns[pattern_idx]
        return self.mono_streaks[pattern.mono_streaks[0]].run_length()


    def is_repetition_of(self, a, b):
        pa = self.alternating_mono_patterns[a]
        pb = self.alternating_mono_patterns[b]
        return (
            self.mono_length(a) == self.mono_length(b) and
            len(pa.mono_streaks) == len(pb.mono_streaks) and
            self.mono_streaks[pa.mono_streaks[0]].hit_type() ==
                self.mono_streaks[pb.mono_streaks[0]].hit_type()
        )


    def encode_repeating_hit_patterns(self):
        n = len(self.alternating_mono_patterns)
        result = self.repeating_hit_patterns

        i = 0
        while i < n:
            previous = len(result) - 1 if result else None
            pattern = RepeatingHitPatterns(previous)

            is_coupled = i < n - 2 and self.is_repetition_of(i, i + 2)

            if not is_coupled:
                pattern.alternating_mono_patterns.append(i)
            else:
                while is_coupled:
                    pattern.alternating_mono_patterns.append(i)
                    i += 1
                    is_coupled = i < n - 2 and self.is_repetition_of(i, i + 2)

                pattern.alternating_mono_patterns.append(i)
                pattern.alternating_mono_patterns.append(i + 1)
                i += 1

            result.append(pattern)
            i += 1

        for pattern in result:
            pattern.repetition_interval = self.repetition_interval(pattern)


    def repetition_interval(self, pattern):
        other_idx = pattern.previous
        interval = 1

        while other_idx is not None and interval < MAX_REPETITION_INTERVAL:
            other = self.repeating_hit_patterns[other_idx]
            if self.is_hit_pattern_repetition(pattern, other):
                return min(interval, MAX_REPETITION_INTERVAL)

            other_idx = other.previous
            interval += 1

        return MAX_REPETITION_INTERVAL + 1


    def is_hit_pattern_repetition(self, a, b):
        if len(a.alternating_mono_patterns) != \
                len(b.alternating_mono_patterns):
            return False

        for i in range(min(len(a.alternating_mono_patterns), 2)):
            if self.mono_length(a.alternating_mono_patterns[i]) != \
                    self.mono_length(b.alternating_mono_patterns[i]):
                return False

        return True


    def first_of_pattern(self, pattern_idx):
        pattern = self.alternating_mono_patterns[pattern_idx]
        return self.mono_streaks[pattern.mono_streaks[0]].first_hit_object()


    def assign(self):
        for i, repeating in enumerate(self.repeating_hit_patterns):
            self.first_of_pattern(repeating.alternating_mono_patterns[0]) \
                .colour.repeating_hit_pattern = i

            for j, pattern_idx in enumerate(
                    repeating.alternating_mono_patterns):
                pattern = self.alternating_mono_patterns[pattern_idx]
                pattern.parent = i
                pattern.index = j
                self.first_of_pattern(pattern_idx).colour \
                    .alternating_mono_pattern = pattern_idx

                for k, streak_idx in enumerate(pattern.mono_streaks):
                    streak = self.mono_streaks[streak_idx]
                    streak.parent = pattern_idx
                    streak.index = k

                    for obj in streak.hit_objects:
                        obj.colour.mono_streak = streak_idx


    def streak_of(self, obj):
        if obj.colour.mono_streak is None:
            return None
        return self.mono_streaks[obj.colour.mono_streak]


    def previous_colour_change(self, obj):
        streak = self.streak_of(obj)
        if streak is None:
            return None
        return self.diff_objects.previous_note(streak.first_hit_object(), 0)


    def next_colour_change(self, obj):
        streak = self.streak_of(obj)
        if streak is None:
            return None
        return self.diff_objects.next_note(streak.last_hit_object(), 0)


# -------------------------------------------------------------------------
# evaluators

def sigmoid(val, center, width, middle, height):
    res = math.tanh(math.e * -(val - center) / width)
    return res * (height / 2.0) + middle


def evaluate_colour(obj, colours):
    colour = obj.colour
    res = 0.0

    streak = colours.streak_of(obj)
    if streak is not None and streak.first_hit_object() is obj:
        res += sigmoid(streak.index, 2.0, 2.0, 0.5, 1.0) * \
            _pattern_difficulty(colours, streak.parent) * 0.5

    if colour.alternating_mono_pattern is not None:
        res += _pattern_difficulty(colours, colour.alternating_mono_pattern)

    if colour.repeating_hit_pattern is not None:
        res += _repeating_difficulty(colours, colour.repeating_hit_pattern)

    return res


def _pattern_difficulty(colours, pattern_idx):
    pattern = colours.alternating_mono_patterns[pattern_idx]
    return sigmoid(pattern.index, 2.0, 2.0, 0.5, 1.0) * \
        _repeating_difficulty(colours, pattern.parent)


def _repeating_difficulty(colours, repeating_idx):
    repeating = colours.repeating_hit_patterns[repeating_idx]
    return 2.0 * (1.0 - sigmoid(repeating.repetition_interval,
        2.0, 2.0, 0.5, 1.0))


def stamina_speed_bonus(interval):
    # capped to avoid infinite values
    return 30.0 / max(interval, 1.0)


def available_fingers_for(obj, colours):
    """two fingers close to a colour change, four otherwise"""
    prev_change = colours.previous_colour_change(obj)
    if prev_change is not None and \
            obj.start_time - prev_change.start_time < 300.0:
        return 2

    next_change = colours.next_colour_change(obj)
    if next_change is not None and \
            next_change.start_time - obj.start_time < 300.0:
        return 2

    return 4


def evaluate_stamina(obj, diff_objects, colours):
    if not obj.base.is_hit():
        return 0.0

    # the previous note hit by the same finger
    key_prev = diff_objects.previous_mono(obj,
        available_fingers_for(obj, colours) - 1)
    if key_prev is None:
        return 0.0

    return 0.5 + stamina_speed_bonus(obj.start_time - key_prev.start_time)


# -------------------------------------------------------------------------
# skills

class StrainSkill:
    """
    strain skill sectioned in clock adjusted time, starting at the first
    difficulty object.

    fields:
    current_strain current_section_peak current_section_end
    strain_peaks: saved section peaks
    """
    skill_multiplier = 1.0
    decay_base = 1.0

    def __init__(self, diff_objects):
        self.diff_objects = diff_objects
        self.current_strain = 0.0
        self.current_section_peak = 0.0
        self.current_section_end = 0.0
        self.strain_peaks = []

    def strain_value_of(self, obj):
        raise NotImplementedError

    def strain_value_at(self, obj):
        self.current_strain *= strain_decay(obj.delta, self.decay_base)
        self.current_strain += self.strain_value_of(obj) * \
            self.skill_multiplier
        return self.current_strain

    def initial_strain(self, time, obj):
        prev = self.diff_objects.previous(obj, 0)
        prev_time = prev.start_time if prev is not None else 0.0
        return self.current_strain * strain_decay(time - prev_time,
            self.decay_base)

    def process(self, obj):
        if obj.idx == 0:
            self.current_section_end = math.ceil(
                obj.start_time / SECTION_LEN) * SECTION_LEN

        while obj.start_time > self.current_section_end:
            self.save_current_peak()
            self.start_new_section(self.current_section_end, obj)
            self.current_section_end += SECTION_LEN

        self.current_section_peak = max(self.strain_value_at(obj),
            self.current_section_peak)

    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)

    def start_new_section(self, boundary, obj):
        self.current_section_peak = self.initial_strain(boundary, obj)

    def current_strain_peaks(self):
        return self.strain_peaks + [self.current_section_peak]

    def difficulty_value(self):
        return weighted_sum(self.current_strain_peaks(), DECAY_WEIGHT)


class ColourSkill(StrainSkill):
    skill_multiplier = 0.12
    decay_base = 0.8

    def __init__(self, diff_objects, colours):
        StrainSkill.__init__(self, diff_objects)
        self.colours = colours

    def strain_value_of(self, obj):
        return evaluate_colour(obj, self.colours)


RHYTHM_HISTORY_MAX_LENGTH = 8
RHYTHM_STRAIN_DECAY = 0.96


class RhythmSkill(StrainSkill):
    skill_multiplier = 10.0
    decay_base = 0.0

    def __init__(self, diff_objects):
        StrainSkill.__init__(self, diff_objects)
        self.rhythm_history = []
        self.rhythm_strain = 0.0
        self.notes_since_rhythm_change = 0

    def strain_value_of(self, obj):
        if not obj.base.is_hit():
            self.reset_rhythm_and_strain()
            return 0.0

        self.rhythm_strain *= RHYTHM_STRAIN_DECAY
        self.notes_since_rhythm_change += 1

        if obj.rhythm[2] == 0.0:
            return 0.0

        object_strain = obj.rhythm[2]
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

                notes_since = obj.idx - self.rhythm_history[start].idx
                penalty *= min(1.0, 0.032 * notes_since)
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


class StaminaSkill(StrainSkill):
    """
    with single_colour set, the strain of an object is scaled down by its
    position in its mono streak and nothing is carried over between
    sections
    """
    skill_multiplier = 1.1
    decay_base = 0.4

    def __init__(self, diff_objects, colours, single_colour):
        StrainSkill.__init__(self, diff_objects)
        self.colours = colours
        self.single_colour = single_colour

    def strain_value_of(self, obj):
        return evaluate_stamina(obj, self.diff_objects, self.colours)

    def initial_strain(self, time, obj):
        if self.single_colour:
            return 0.0
        return StrainSkill.initial_strain(self, time, obj)

    def strain_value_at(self, obj):
        strain = StrainSkill.strain_value_at(self, obj)
        if not self.single_colour:
            return strain

        index = 0
        streak = self.colours.streak_of(obj)
        if streak is not None:
            for i, h in enumerate(streak.hit_objects):
                if h.idx == obj.idx:
                    index = i
                    break

        return strain / (1.0 + math.exp(-(index - 10) / 2.0))


# -------------------------------------------------------------------------
# difficulty

def great_hit_window(od, clock_rate):
    return difficulty_range(od, 50.0, 35.0, 20.0) / clock_rate


def ok_hit_window(od, clock_rate):
    return difficulty_range(od, 120.0, 80.0, 50.0) / clock_rate


def od_with_mods(od, mods):
    if m.hr(mods):
        od = min(10.0, od * 1.4)
    if m.ez(mods):
        od *= 0.5
    return od


def rescale(stars):
    if stars < 0.0:
        return stars
    return 10.43 * math.log(stars / 8.0 + 1.0)


def passed_counts(objects, take):
    """
    returns (n_objects, max_combo): objects up to the take-th hit and
    the hits among them
    """
    n_objects = 0
    max_combo = 0
    for h in objects:
        if max_combo >= take:
            break
        n_objects += 1
        if h.is_hit():
            max_combo += 1
    return n_objects, max_combo


class _Skills:
    def __init__(self, diff_objects, colours):
        self.rhythm = RhythmSkill(diff_objects)
        self.colour = ColourSkill(diff_objects, colours)
        self.stamina = StaminaSkill(diff_objects, colours, False)
        self.single_colour_stamina = StaminaSkill(diff_objects, colours,
            True)

    def all(self):
        return (self.rhythm, self.colour, self.stamina,
            self.single_colour_stamina)


def _skills(bmap, difficulty):
    """returns (objects, max_combo, skills) or None"""
    objects = taiko_objects(bmap)
    if objects is None:
        return None

    n_objects, max_combo = passed_counts(objects,
        difficulty.get_passed_objects())

    diff_objects, colours = build(objects, difficulty.get_clock_rate())
    skills = _Skills(diff_objects, colours)

    # the first two objects have no difficulty object
    for obj in diff_objects.objects[:max(0, n_objects - 2)]:
        for skill in skills.all():
            skill.process(obj)

    return objects[:n_objects], max_combo, skills


def combined_difficulty_value(rhythm, colour, stamina):
    peaks = []

    colour_peaks = colour.current_strain_peaks()
    rhythm_peaks = rhythm.current_strain_peaks()
    stamina_peaks = stamina.current_strain_peaks()

    for i in range(len(colour_peaks)):
        colour_peak = colour_peaks[i] * COLOUR_SKILL_MULTIPLIER
        rhythm_peak = rhythm_peaks[i] * RHYTHM_SKILL_MULTIPLIER
        stamina_peak = stamina_peaks[i] * STAMINA_SKILL_MULTIPLIER

        peak = norm(1.5, colour_peak, stamina_peak)
        peak = norm(2.0, peak, rhythm_peak)

        if peak > 0.0:
            peaks.append(peak)

    return weighted_sum(peaks, DECAY_WEIGHT)


def eval_ratings(attrs, skills):
    colour_rating = skills.colour.difficulty_value() * \
        COLOUR_SKILL_MULTIPLIER
    rhythm_rating = skills.rhythm.difficulty_value() * \
        RHYTHM_SKILL_MULTIPLIER
    stamina_rating = skills.stamina.difficulty_value() * \
        STAMINA_SKILL_MULTIPLIER
    mono_stamina_rating = skills.single_colour_stamina.difficulty_value() * \
        STAMINA_SKILL_MULTIPLIER

    mono_stamina_factor = 1.0
    if stamina_rating != 0.0:
        mono_stamina_factor = math.pow(mono_stamina_rating / stamina_rating,
            5.0)

    combined_rating = combined_difficulty_value(skills.rhythm,
        skills.colour, skills.stamina)
    star_rating = rescale(combined_rating * 1.4)

    if attrs.is_convert:
        star_rating *= 0.925

        if colour_rating < 2.0 and stamina_rating > 8.0:
            star_rating *= 0.8

    attrs.stamina = stamina_rating
    attrs.rhythm = rhythm_rating
    attrs.colour = colour_rating
    attrs.peak = combined_rating
    attrs.mono_stamina_factor = mono_stamina_factor
    attrs.stars = star_rating


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN, "colour": [], "rhythm": [],
        "stamina": [], "single_colour_stamina": []}

    computed = _skills(bmap, difficulty)
    if computed is None:
        return res

    objects, _, skills = computed
    if len(objects) < 3:
        return res

    res["section_len"] = SECTION_LEN * difficulty.get_clock_rate()
    res["colour"] = skills.colour.current_strain_peaks()
    res["rhythm"] = skills.rhythm.current_strain_peaks()
    res["stamina"] = skills.stamina.current_strain_peaks()
    res["single_colour_stamina"] = \
        skills.single_colour_stamina.current_strain_peaks()
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see TaikoDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = TaikoDifficultyAttributes()

    computed = _skills(bmap, difficulty)
    if computed is None:
        return res

    objects, max_combo, skills = computed
    if len(objects) < 2:
        return res

    od = od_with_mods(bmap.od, mods)
    clock_rate = difficulty.get_clock_rate()
    res.great_hit_window = great_hit_window(od, clock_rate)
    res.ok_hit_window = ok_hit_window(od, clock_rate)
    res.max_combo = max_combo
    res.is_convert = is_convert(bmap)

    eval_ratings(res, skills)

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

# 99% one-tailed critical value of the normal distribution
Z = 2.32634787404


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
    return _Performance(attrs, perf.mods, state).calculate()


class _Performance:
    def __init__(self, attrs, mods, state):
        self.attrs = attrs
        self.mods = mods
        self.state = state

    def total_hits(self):
        return float(self.state.total_hits())

    def total_successful_hits(self):
        return self.state.n300 + self.state.n100

    def calculate(self):
        attrs = self.attrs
        res = TaikoPerformanceAttributes(difficulty=attrs)

        if self.total_hits() == 0:
            return res

        total_successful_hits = self.total_successful_hits()
        estimated_unstable_rate = self.deviation_upper_bound(
            total_successful_hits)
        if estimated_unstable_rate is not None:
            estimated_unstable_rate *= 10.0

        # shorter maps are punished harder for misses
        effective_miss_count = 0.0
        if total_successful_hits > 0:
            effective_miss_count = max(1.0,
                1000.0 / total_successful_hits) * self.state.misses

        multiplier = 1.13
        if m.hd(self.mods) and not attrs.is_convert:
            multiplier *= 1.075
        if m.ez(self.mods):
            multiplier *= 0.95

        diff_value = self.difficulty_value(effective_miss_count,
            estimated_unstable_rate)
        acc_value = self.accuracy_value(estimated_unstable_rate)

        res.pp = math.pow(
            math.pow(diff_value, 1.1) + math.pow(acc_value, 1.1), 1.0 / 1.1
        ) * multiplier
        res.pp_difficulty = diff_value
        res.pp_acc = acc_value
        res.effective_miss_count = effective_miss_count
        res.estimated_unstable_rate = estimated_unstable_rate
        return res

    def difficulty_value(self, effective_miss_count, estimated_unstable_rate):
        if estimated_unstable_rate is None:
            return 0.0

        attrs = self.attrs

        exp_base = 5.0 * max(1.0, attrs.stars / 0.115) - 4.0
        res = math.pow(exp_base, 2.25) / 1150.0

        len_bonus = 1.0 + 0.1 * min(1.0, attrs.max_combo / 1500.0)
        res *= len_bonus
        res *= math.pow(0.986, effective_miss_count)

        if m.ez(self.mods):
            res *= 0.9
        if m.hd(self.mods):
            res *= 1.025
        if m.hr(self.mods):
            res *= 1.1
        if m.fl(self.mods):
            res *= max(1.0, 1.05 - min(1.0, attrs.mono_stamina_factor / 50.0)
                * len_bonus)

        # mono speed maps scale accuracy harder
        acc_scaling_exp = 2.0 + attrs.mono_stamina_factor
        acc_scaling_shift = 300.0 - 100.0 * attrs.mono_stamina_factor

        return res * math.pow(special.erf(acc_scaling_shift /
            (math.sqrt(2.0) * estimated_unstable_rate)), acc_scaling_exp)

    def accuracy_value(self, estimated_unstable_rate):
        if self.attrs.great_hit_window <= 0.0 or \
                estimated_unstable_rate is None:
            return 0.0

        res = math.pow(70.0 / estimated_unstable_rate, 1.1) * \
            math.pow(self.attrs.stars, 0.4) * 100.0

        len_bonus = min(1.15, math.pow(self.total_hits() / 1500.0, 0.3))

        if m.hd(self.mods) and m.fl(self.mods) and not self.attrs.is_convert:
            res *= max(1.0, 1.05 * len_bonus)

        return res

    def deviation_upper_bound(self, total_successful_hits):
        """
        upper bound of the tap deviation, 99% confident, assuming the
        mean hit error is 0. None without successful hits
        """
        if total_successful_hits == 0 or self.attrs.great_hit_window <= 0.0:
            return None

        h300 = self.attrs.great_hit_window
        h100 = self.attrs.ok_hit_window
        n = self.total_hits()

        def p_lower_bound(p):
            return (n * p + Z * Z / 2.0) / (n + Z * Z) - Z / (n + Z * Z) * \
                math.sqrt(n * p * (1.0 - p) + Z * Z / 4.0)

        # greats + goods over the good window
        p = total_successful_hits / n
        deviation_good_window = h100 / (math.sqrt(2.0) *
            special.erfinv(p_lower_bound(p)))

        if self.state.n300 == 0:
            return deviation_good_window

        p = self.state.n300 / n
        deviation_great_window = h300 / (math.sqrt(2.0) *
            special.erfinv(p_lower_bound(p)))

        return min(deviation_great_window, deviation_good_window)
