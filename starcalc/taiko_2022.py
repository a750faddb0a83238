"""
osu!taiko difficulty and pp as of the 2022 colour rework.

colour is encoded in three levels: mono streaks (runs of one colour),
alternating mono patterns (consecutive streaks of equal length) and
repeating hit patterns (groups of alternating patterns that repeat).
the encoding lives in an arena addressed by index, difficulty objects
only hold the indices of the runs they start.

colour, rhythm and stamina are combined section by section and rescaled
logarithmically. converts get a flat penalty and an extra one when
colour variance is low and stamina is high.
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

DIFFICULTY_MULTIPLIER = 1.35
FINAL_MULTIPLIER = 0.0625
RHYTHM_SKILL_MULTIPLIER = 0.2 * FINAL_MULTIPLIER
COLOUR_SKILL_MULTIPLIER = 0.375 * FINAL_MULTIPLIER
STAMINA_SKILL_MULTIPLIER = 0.375 * FINAL_MULTIPLIER

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
    arena indices of the colour runs an object starts, None when it
    doesn't start one
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
    mono_idx: index among the objects of the same colour
    note_idx: index among the hits
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
    every difficulty object plus the per colour and hits only views

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
        return _at(self.notes, obj.note_idx - (backwards_idx + 1))

    def __len__(self):
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)


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

    colours = ColourEncoding(res)
    return res, colours


# -------------------------------------------------------------------------
# colour encoding

MAX_REPETITION_INTERVAL = 16


class MonoStreak:
    """
    fields:
    hit_objects: consecutive hits of one colour
    parent: AlternatingMonoPattern index
    index: position in the parent
    """
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


class AlternatingMonoPattern:
    """
    fields:
    mono_streaks: MonoStreak indices, all of the same length
    parent: RepeatingHitPatterns index
    index: position in the parent
    """
    def __init__(self):
        self.mono_streaks = []
        self.parent = None
        self.index = 0


class RepeatingHitPatterns:
    """
    fields:
    alternating_mono_patterns: AlternatingMonoPattern indices
    previous: index of the previous RepeatingHitPatterns or None
    repetition_interval: patterns since the last repetition, capped
    """
    def __init__(self, previous):
        self.alternating_mono_patterns = []
        self.previous = previous
        self.repetition_interval = MAX_REPETITION_INTERVAL + 1


class ColourEncoding:
    """
    arena of the colour runs of a difficulty object list. filling it in
    assigns the run indices to the first object of every run
    """
    def __init__(self, diff_objects):
        self.mono_streaks = []
        self.alternating_mono_patterns = []
        self.repeating_hit_patterns = []

        self.encode_mono_streaks(diff_objects)
        self.encode_alternating_mono_patterns()
        self.encode_repeating_hit_patterns()
        self.assign()


    def encode_mono_streaks(self, diff_objects):
        current = None

        for obj in diff_objects.notes:
            prev = diff_objects.previous_note(obj, 0)

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


    def has_identical_mono_length(self, a, b):
        return self.mono_length(a) == self.mono_length(b)


    def is_repetition_of(self, a, b):
        pa = self.alternating_mono_patterns[a]
        pb = self.alternating_mono_patterns[b]
        return (
            self.has_identical_mono_length(a, b) and
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

                # the last two patterns of the group
                pattern.alternating_mono_patterns.append(i)
                pattern.alternating_mono_patterns.append(i + 1)
                i += 1

            result.append(pattern)
            i += 1

        for pattern in result:
            self.find_repetition_interval(pattern)


    def is_hit_pattern_repetition(self, a, b):
        if len(a.alternating_mono_patterns) != \
                len(b.alternating_mono_patterns):
            return False

        for i in range(min(len(a.alternating_mono_patterns), 2)):
            if not self.has_identical_mono_length(
                    a.alternating_mono_patterns[i],
                    b.alternating_mono_patterns[i]):
                return False

        return True


    def find_repetition_interval(self, pattern):
        if pattern.previous is None:
            pattern.repetition_interval = MAX_REPETITION_INTERVAL + 1
            return

        other = self.repeating_hit_patterns[pattern.previous]
        interval = 1

        while interval < MAX_REPETITION_INTERVAL:
            if self.is_hit_pattern_repetition(pattern, other):
                pattern.repetition_interval = min(interval,
                    MAX_REPETITION_INTERVAL)
                return

            if other.previous is None:
                break

            other = self.repeating_hit_patterns[other.previous]
            interval += 1

        pattern.repetition_interval = MAX_REPETITION_INTERVAL + 1


    def first_of_pattern(self, pattern_idx):
        pattern = self.alternating_mono_patterns[pattern_idx]
        return self.mono_streaks[pattern.mono_streaks[0]].first_hit_object()


    def assign(self):
        for i, repeating in enumerate(self.repeating_hit_patterns):
            first_pattern = repeating.alternating_mono_patterns[0]
            self.first_of_pattern(first_pattern).colour \
                .repeating_hit_pattern = i

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
                    streak.first_hit_object().colour.mono_streak = streak_idx


# -------------------------------------------------------------------------
# evaluators

def sigmoid(val, center, width, middle, height):
    res = math.tanh(math.e * -(val - center) / width)
    return res * (height / 2.0) + middle


def evaluate_colour(obj, colours):
    """
    sum of the difficulties of every colour run the object starts.
    streaks are scaled by their pattern, patterns by their repetition
    """
    colour = obj.colour
    res = 0.0

    if colour.mono_streak is not None:
        streak = colours.mono_streaks[colour.mono_streak]
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
    # 600bpm 1/4, 50ms key interval
    return 30.0 / max(interval, 50.0)


def evaluate_stamina(obj, diff_objects):
    if not obj.base.is_hit():
        return 0.0

    # the previous note hit with the same key
    key_prev = diff_objects.previous_mono(obj, 1)
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
    current_strain: decaying strain, starts at 0
    current_section_peak current_section_end: section state
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

    def process(self, obj):
        if obj.idx == 0:
            self.current_section_end = math.ceil(
                obj.start_time / SECTION_LEN) * SECTION_LEN

        while obj.start_time > self.current_section_end:
            self.save_current_peak()
            self.start_new_section(self.current_section_end, obj)
            self.current_section_end += SECTION_LEN

        self.current_strain *= strain_decay(obj.delta, self.decay_base)
        self.current_strain += self.strain_value_of(obj) * \
            self.skill_multiplier
        self.current_section_peak = max(self.current_strain,
            self.current_section_peak)

    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)

    def start_new_section(self, boundary, obj):
        prev = self.diff_objects.previous(obj, 0)
        self.current_section_peak = self.current_strain * strain_decay(
            boundary - prev.start_time, self.decay_base)

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

        # rhythm did not change
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
    skill_multiplier = 1.1
    decay_base = 0.4

    def strain_value_of(self, obj):
        return evaluate_stamina(obj, self.diff_objects)


class Peaks:
    """
    colour, rhythm and stamina processed together and combined section
    by section
    """
    def __init__(self, diff_objects, colours):
        self.colour = ColourSkill(diff_objects, colours)
        self.rhythm = RhythmSkill(diff_objects)
        self.stamina = StaminaSkill(diff_objects)

    def process(self, obj):
        self.colour.process(obj)
        self.rhythm.process(obj)
        self.stamina.process(obj)

    def colour_difficulty_value(self):
        return self.colour.difficulty_value() * COLOUR_SKILL_MULTIPLIER

    def rhythm_difficulty_value(self):
        return self.rhythm.difficulty_value() * RHYTHM_SKILL_MULTIPLIER

    def stamina_difficulty_value(self):
        return self.stamina.difficulty_value() * STAMINA_SKILL_MULTIPLIER

    def difficulty_value(self):
        peaks = []

        colour_peaks = self.colour.current_strain_peaks()
        rhythm_peaks = self.rhythm.current_strain_peaks()
        stamina_peaks = self.stamina.current_strain_peaks()

        for i in range(len(colour_peaks)):
            colour_peak = colour_peaks[i] * COLOUR_SKILL_MULTIPLIER
            rhythm_peak = rhythm_peaks[i] * RHYTHM_SKILL_MULTIPLIER
            stamina_peak = stamina_peaks[i] * STAMINA_SKILL_MULTIPLIER

            peak = norm(1.5, colour_peak, stamina_peak)
            peak = norm(2.0, peak, rhythm_peak)

            # sections without objects don't count
            if peak > 0.0:
                peaks.append(peak)

        return weighted_sum(peaks, DECAY_WEIGHT)


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


def _peaks(bmap, difficulty):
    """returns (objects, max_combo, peaks) or None when not convertible"""
    objects = taiko_objects(bmap)
    if objects is None:
        return None

    clock_rate = difficulty.get_clock_rate()
    n_objects, max_combo = passed_counts(objects,
        difficulty.get_passed_objects())

    # colours are encoded over the whole map
    diff_objects, colours = build(objects, clock_rate)
    peaks = Peaks(diff_objects, colours)

    # the first two objects have no difficulty object
    for obj in diff_objects.objects[:max(0, n_objects - 2)]:
        peaks.process(obj)

    return objects[:n_objects], max_combo, peaks


def eval_ratings(attrs, colour_value, rhythm_value, stamina_value,
        combined_value):
    colour_rating = colour_value * DIFFICULTY_MULTIPLIER
    rhythm_rating = rhythm_value * DIFFICULTY_MULTIPLIER
    stamina_rating = stamina_value * DIFFICULTY_MULTIPLIER
    combined_rating = combined_value * DIFFICULTY_MULTIPLIER

    star_rating = rescale(combined_rating * 1.4)

    # multiple input playstyles are not detected on converts
    if attrs.is_convert:
        star_rating *= 0.925

        # low colour variance and high stamina make it easier to abuse
        if colour_rating < 2.0 and stamina_rating > 8.0:
            star_rating *= 0.8

    attrs.stamina = stamina_rating
    attrs.rhythm = rhythm_rating
    attrs.colour = colour_rating
    attrs.peak = combined_rating
    attrs.stars = star_rating


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN, "colour": [], "rhythm": [],
        "stamina": []}

    computed = _peaks(bmap, difficulty)
    if computed is None:
        return res

    objects, _, peaks = computed
    if len(objects) < 3:
        return res

    res["section_len"] = SECTION_LEN * difficulty.get_clock_rate()
    res["colour"] = peaks.colour.current_strain_peaks()
    res["rhythm"] = peaks.rhythm.current_strain_peaks()
    res["stamina"] = peaks.stamina.current_strain_peaks()
    return res


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see TaikoDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = TaikoDifficultyAttributes()

    computed = _peaks(bmap, difficulty)
    if computed is None:
        return res

    objects, max_combo, peaks = computed
    if len(objects) < 2:
        return res

    # the window follows the mods, not a clock rate override
    res.great_hit_window = great_hit_window(od_with_mods(bmap.od, mods),
        m.clock_rate(mods))
    res.max_combo = max_combo
    res.is_convert = is_convert(bmap)

    eval_ratings(res, peaks.colour_difficulty_value(),
        peaks.rhythm_difficulty_value(), peaks.stamina_difficulty_value(),
        peaks.difficulty_value())

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

    total_successful_hits = state.n300 + state.n100
    effective_miss_count = 0.0
    if total_successful_hits > 0:
        effective_miss_count = max(1.0, 1000.0 / total_successful_hits) * \
            state.misses

    multiplier = 1.13
    if m.hd(mods):
        multiplier *= 1.075
    if m.ez(mods):
        multiplier *= 0.975

    # difficulty --------------------------------------------------
    diff_value = math.pow(5.0 * max(1.0, attrs.stars / 0.115) - 4.0, 2.25) \
        / 1150.0

    length_bonus = 1.0 + 0.1 * min(1.0, total_hits / 1500.0)
    diff_value *= length_bonus
    diff_value *= math.pow(0.986, effective_miss_count)

    if m.ez(mods):
        diff_value *= 0.985
    if m.hd(mods):
        diff_value *= 1.025
    if m.hr(mods):
        diff_value *= 1.05
    if m.fl(mods):
        diff_value *= 1.05 * length_bonus

    diff_value *= acc * acc

    # accuracy ----------------------------------------------------
    acc_value = 0.0
    if attrs.great_hit_window > 0.0:
        acc_value = (
            math.pow(60.0 / attrs.great_hit_window, 1.1) *
            math.pow(acc, 8.0) * math.pow(attrs.stars, 0.4) * 27.0
        )

        acc_length_bonus = min(1.15, math.pow(total_hits / 1500.0, 0.3))
        acc_value *= acc_length_bonus

        if m.hd(mods) and m.fl(mods):
            acc_value *= max(1.05, 1.075 * acc_length_bonus)

    res.pp = math.pow(
        math.pow(diff_value, 1.1) + math.pow(acc_value, 1.1), 1.0 / 1.1
    ) * multiplier
    res.pp_difficulty = diff_value
    res.pp_acc = acc_value
    res.effective_miss_count = effective_miss_count
    return res
