"""
osu!standard difficulty and pp of the ppv2 releases around february
2015 (may 2014, july 2014 and april 2015 share this calculation).

the strain and pp formulas are those of osu_2015_february, but every
object is taken as it is: spinners keep their own position, their
distance from the previous cursor position is measured and they add
strain like any other object.
"""

import logging

from . import osu_2015_february as feb
from .attributes import OsuDifficultyAttributes, difficulty_of
from .beatmap import MODE_STD
from .calculator import Difficulty, Performance
from .osu_object import convert_objects, end_cursor_pos

logger = logging.getLogger(__name__)

SECTION_LEN = feb.SECTION_LEN


class DifficultyObject(feb.DifficultyObject):
    def __init__(self, base, prev, clock_rate, scaling_factor, radius):
        self.base = base
        self.delta = max(feb.MIN_DELTA,
            (base.start_time - prev.start_time) / clock_rate)

        prev_cursor = end_cursor_pos(prev, radius)
        self.dist = (base.pos - prev_cursor).len() * scaling_factor
        self.travel_dist = prev.lazy_travel_dist * scaling_factor


class Skill(feb.Skill):
    def strain_value_of(self, obj):
        return feb.d_spacing_weight(self.difftype, obj) / obj.delta


def _skills(bmap, difficulty):
    attrs, radius, scaling_factor = feb._setup(bmap, difficulty)
    objects = convert_objects(bmap, difficulty.mods,
        difficulty.get_passed_objects())

    first_time = objects[0].start_time if objects else 0.0
    speed = Skill(feb.DIFF_SPEED, attrs.clock_rate, first_time)
    aim = Skill(feb.DIFF_AIM, attrs.clock_rate, first_time)

    for i in range(1, len(objects)):
        obj = DifficultyObject(objects[i], objects[i - 1],
            attrs.clock_rate, scaling_factor, radius)
        speed.process(obj)
        aim.process(obj)

    return attrs, objects, speed, aim


def strains(bmap, mods=0, passed_objects=None, clock_rate=None):
    """section peaks of every skill, keyed by skill name"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)

    if bmap.mode != MODE_STD:
        logger.warning("osu_2015 only supports osu!standard maps")
        return {"section_len": SECTION_LEN, "aim": [], "speed": []}

    attrs, _, speed, aim = _skills(bmap, difficulty)
    return {
        "section_len": SECTION_LEN * attrs.clock_rate,
        "aim": aim.strain_peaks,
        "speed": speed.strain_peaks,
    }


def stars(bmap, mods=0, passed_objects=None, clock_rate=None):
    """calculates difficulty attributes, see OsuDifficultyAttributes"""
    difficulty = Difficulty(mods, passed_objects, clock_rate)
    res = OsuDifficultyAttributes()

    if bmap.mode != MODE_STD:
        logger.warning("osu_2015 only supports osu!standard maps")
        return res

    attrs, objects, speed, aim = _skills(bmap, difficulty)
    res.ar = attrs.ar
    res.od = attrs.od
    res.hp = attrs.hp

    if len(objects) < 2:
        return res

    feb.count_objects(res, objects)
    feb.eval_ratings(res, difficulty.mods, speed, aim)

    logger.debug("%s: %s", bmap, res)
    return res


def pp(bmap=None, attributes=None, **kwargs):
    """
    calculates ppv2. kwargs are Performance fields.

    either bmap or osu!standard attributes must be given
    """
    perf = Performance(**kwargs)
    attrs = difficulty_of(attributes, OsuDifficultyAttributes)

    if attrs is None:
        if bmap is None:
            raise ValueError("missing bmap or attributes")
        attrs = stars(bmap, perf.mods, perf.passed_objects, perf.clock_rate)

    return feb.performance(attrs, perf)
