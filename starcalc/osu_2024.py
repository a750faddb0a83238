"""
osu!standard difficulty and pp as of the 2024 rework.

difficulty objects, aim and flashlight evaluators are those of 2022 with
new multipliers. speed adds its distance bonus instead of scaling by it.
the per skill multipliers are folded into the skill multipliers and both
aim and speed count how many objects come close to the top strain, which
replaces combo scaling in the miss penalty.

lazer scores count slider ends and large ticks towards accuracy, stable
scores (lazer=False) are judged like before with a guessed number of
dropped slider ends.
"""

import logging
import math

from . import mods as m
from . import osu_2022
from .attributes import (
    OsuDifficultyAttributes, OsuPerformanceAttributes, difficulty_of,
)
from .beatmap import EVENT_REPEAT, EVENT_TICK, MODE_STD
from .calculator import Difficulty, Performance
from .hitresults import ScoreOrigin, osu_state
from .osu_object import max_combo
from .strains import strain_decay

logger = logging.getLogger(__name__)

SECTION_LEN = osu_2022.SECTION_LEN
DIFFICULTY_MULTIPLIER = osu_2022.DIFFICULTY_MULTIPLIER
PERFORMANCE_BASE_MULTIPLIER = 1.15

ACUTE_ANGLE_MULTIPLIER = 1.95
SLIDER_MULTIPLIER = 1.35


# -------------------------------------------------------------------------
# evaluators

SINGLE_SPACING_THRESHOLD = 125.0
MIN_SPEED_BONUS = 75.0
SPEED_BALANCING_FACTOR = 40.0
DISTANCE_MULTIPLIER = 0.94


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

    speed_bonus = 0.0
    if strain_time < MIN_SPEED_BONUS:
        speed_bonus = 0.75 * ((MIN_SPEED_BONUS - strain_time) /
            SPEED_BALANCING_FACTOR) ** 2

    travel_dist = prev.travel_dist if prev is not None else 0.0
    distance = min(SINGLE_SPACING_THRESHOLD,
        travel_dist + curr.min_jump_dist)

    distance_bonus = math.pow(distance / SINGLE_SPACING_THRESHOLD, 3.95) * \
        DISTANCE_MULTIPLIER

    return (1.0 + speed_bonus + distance_bonus) * 1000.0 / strain_time * \
        doubletapness


# -------------------------------------------------------------------------
# skills

def difficult_strain_count(object_strains, difficulty):
    """
    objects weighted by how close their strain is to the strain every
    object would have if the difficulty was spread evenly
    """
    if difficulty == 0.0:
        return 0.0

    consistent_top_strain = difficulty / 10.0
    return sum(
        1.1 / (1.0 + math.exp(-10.0 * (s / consistent_top_strain - 0.88)))
        for s in object_strains
    )


class Aim(osu_2022.Aim):
    skill_multiplier = 25.18
    difficulty_multiplier = 1.0

    def __init__(self, diff_objects, with_sliders):
        osu_2022.Aim.__init__(self, diff_objects, with_sliders)
        self.object_strains = []

    def strain_value_at(self, curr):
        self.current_strain *= strain_decay(curr.delta, self.decay_base)
        self.current_strain += osu_2022.evaluate_aim(curr,
            self.diff_objects, self.with_sliders, ACUTE_ANGLE_MULTIPLIER,
            SLIDER_MULTIPLIER) * self.skill_multiplier
        self.object_strains.append(self.current_strain)
        return self.current_strain

    def difficult_strain_count(self):
        return difficult_strain_count(self.object_strains,
            self.difficulty_value())


class Speed(osu_2022.Speed):
    skill_multiplier = 1.430
    difficulty_multiplier = 1.0

    def strain_value_at(self, curr):
        self.current_strain *= strain_decay(curr.strain_time,
            self.decay_base)
        self.current_strain += evaluate_speed(curr, self.diff_objects) * \
            self.skill_multiplier

        self.current_rhythm = osu_2022.evaluate_rhythm(curr,
            self.diff_objects)

        total_strain = self.current_strain * self.current_rhythm
        self.object_strains.append(total_strain)

        return total_strain

    def difficult_strain_count(self):
        return difficult_strain_count(self.object_strains,
            self.difficulty_value())


class Flashlight(osu_2022.Flashlight):
    skill_multiplier = 0.05512

    def difficulty_value(self):
        return sum(self.current_strain_peaks())


# -------------------------------------------------------------------------
# difficulty

def _skills(bmap, difficulty):
    setup = osu_2022._Setup(bmap, difficulty)
    objects = osu_2022._objects(bmap, setup, difficulty.get_passed_objects())

    diff_objects = osu_2022.build(objects, setup.clock_rate,
        setup.scaling_factor, setup.map_attrs.great_window)

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


def n_large_ticks(objects):
    """slider ticks and repeats"""
    return sum(
        1 for h in objects for nested in h.nested
        if nested.kind in (EVENT_TICK, EVENT_REPEAT)
    )


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = {"section_len": SECTION_LEN, "aim": [], "aim_no_sliders": [],
        "speed": [], "flashlight": []}

    if bmap.mode != MODE_STD:
        logger.warning("osu_2024 only supports osu!standard maps")
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


def difficulty_to_performance(difficulty):
    return math.pow(5.0 * max(1.0, difficulty / 0.0675) - 4.0, 3.0) / \
        100000.0


def eval_ratings(attrs, mods, aim_value, aim_no_sliders_value, speed_value,
        flashlight_value):
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

    base_aim_performance = difficulty_to_performance(aim_rating)
    base_speed_performance = difficulty_to_performance(speed_rating)

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


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see OsuDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = OsuDifficultyAttributes()

    if bmap.mode != MODE_STD:
        logger.warning("osu_2024 only supports osu!standard maps")
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
    res.n_large_ticks = n_large_ticks(objects)
    res.max_combo = max_combo(objects)

    aim, aim_no_sliders, speed, flashlight = skills
    eval_ratings(res, mods, aim.difficulty_value(),
        aim_no_sliders.difficulty_value(), speed.difficulty_value(),
        flashlight.difficulty_value())

    res.speed_note_count = speed.relevant_note_count()
    res.aim_difficult_strain_count = aim.difficult_strain_count()
    res.speed_difficult_strain_count = speed.difficult_strain_count()

    logger.debug("%s: %s", bmap, res)
    return res


# -------------------------------------------------------------------------
# pp calculator

def score_origin(attrs, lazer):
    """slider judgements counted into the accuracy, None for stable"""
    if not lazer:
        return None
    return ScoreOrigin(attrs.n_large_ticks, attrs.n_sliders)


def effective_miss_count(attrs, state, classic):
    """misses plus slider breaks guessed from the combo"""
    res = float(state.misses)

    if attrs.n_sliders > 0:
        if classic:
            # dropped slider ends are unknown, guess 10% of the sliders
            full_combo_threshold = attrs.max_combo - 0.1 * attrs.n_sliders
        else:
            full_combo_threshold = float(attrs.max_combo -
                n_slider_ends_dropped(attrs, state))

        if state.combo < full_combo_threshold:
            res = full_combo_threshold / max(1.0, state.combo)

        if classic:
            res = min(res, float(state.n100 + state.n50 + state.misses))
        else:
            # tick misses break combo too
            res = min(res, float(n_large_tick_misses(attrs, state) +
                state.misses))

    res = max(res, float(state.misses))
    return min(res, float(state.total_hits()))


def n_slider_ends_dropped(attrs, state):
    return max(0, attrs.n_sliders - state.slider_end_hits)


def n_large_tick_misses(attrs, state):
    return max(0, attrs.n_large_ticks - state.large_tick_hits)


def miss_penalty(miss_count, diff_strain_count):
    scale = 4.0 * math.pow(math.log(max(1.0, diff_strain_count)), 0.94)
    if scale == 0.0:
        return 0.0
    return 0.96 / (miss_count / scale + 1.0)


def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates pp. kwargs are Performance fields, unknown hit counts
    are searched to match the accuracy. set lazer=False for scores set
    on stable.

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

    origin = score_origin(attrs, perf.lazer)
    state = osu_state(perf, n_objects, attrs.max_combo, origin)
    return _Performance(attrs, perf.mods, state, origin).calculate()


class _Performance:
    def __init__(self, attrs, mods, state, origin):
        self.attrs = attrs
        self.mods = mods
        self.state = state
        self.classic = origin is None
        self.acc = state.accuracy(origin)
        self.effective_miss_count = effective_miss_count(attrs, state,
            self.classic)


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
                n100_mult = max(0.0, 1.0 - math.pow(attrs.od / 13.33, 1.8))
                n50_mult = max(0.0, 1.0 - math.pow(attrs.od / 13.33, 5.0))

            self.effective_miss_count = min(total_hits,
                self.effective_miss_count + self.state.n100 * n100_mult +
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


    def aim_value(self):
        attrs = self.attrs
        state = self.state

        res = difficulty_to_performance(attrs.aim)

        len_bonus = self.length_bonus()
        res *= len_bonus

        if self.effective_miss_count > 0.0:
            res *= miss_penalty(self.effective_miss_count,
                attrs.aim_difficult_strain_count)

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
            if self.classic:
                # all missing combo counts as dropped difficult sliders
                dropped = min(
                    float(state.n100 + state.n50 + state.misses),
                    float(max(0, attrs.max_combo - state.combo)))
            else:
                # tick misses mean the slider was not followed either
                dropped = float(n_slider_ends_dropped(attrs, state) +
                    n_large_tick_misses(attrs, state))

            dropped = min(estimate_diff_sliders, max(0.0, dropped))

            slider_nerf_factor = (
                (1.0 - attrs.slider_factor) *
                math.pow(1.0 - dropped / estimate_diff_sliders, 3.0) +
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

        res = difficulty_to_performance(attrs.speed)

        len_bonus = self.length_bonus()
        res *= len_bonus

        if self.effective_miss_count > 0.0:
            res *= miss_penalty(self.effective_miss_count,
                attrs.speed_difficult_strain_count)

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
            (self.acc + relevant_acc) / 2.0, (14.5 - attrs.od) / 2.0)

        # punish doubletapping
        if state.n50 >= total_hits / 500.0:
            res *= math.pow(0.99, state.n50 - total_hits / 500.0)

        return res


    def acc_value(self):
        if m.rx(self.mods):
            return 0.0

        attrs = self.attrs
        state = self.state

        # slider heads have their own hit window on lazer
        n_with_acc = attrs.n_circles
        if not self.classic:
            n_with_acc += attrs.n_sliders

        better_acc = 0.0
        if n_with_acc > 0:
            better_acc = max(0.0, (
                (state.n300 - (state.total_hits() - n_with_acc)) * 6 +
                state.n100 * 2 + state.n50
            ) / float(n_with_acc * 6))

        res = math.pow(1.52163, attrs.od) * math.pow(better_acc, 24.0) * 2.83

        # keeping accuracy up is harder for more objects
        res *= min(1.15, math.pow(n_with_acc / 1000.0, 0.3))

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
        emc = self.effective_miss_count

        res = attrs.flashlight ** 2 * 25.0

        if emc > 0.0:
            res *= 0.97 * math.pow(
                1.0 - math.pow(emc / total_hits, 0.775),
                math.pow(emc, 0.875))

        res *= self.combo_scaling_factor()

        # shorter maps have more low combo (large radius) time
        length_factor = 0.7 + 0.1 * min(1.0, total_hits / 200.0)
        if total_hits > 200.0:
            length_factor += 0.2 * min(1.0, (total_hits - 200.0) / 200.0)
        res *= length_factor

        res *= 0.5 + self.acc / 2.0
        res *= 0.98 + attrs.od ** 2 / 2500.0

        return res
