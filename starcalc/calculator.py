"""
calculation settings.

Difficulty holds what every star calculation needs (mods, a passed
objects limit and an optional clock rate override). Performance adds the
play statistics for the pp formulas. both are plain structs, values are
checked when a calculation reads them.
"""

import sys

from . import mods as m
from .strains import to_f32

MIN_CLOCK_RATE = 0.01
MAX_CLOCK_RATE = 100.0

PRIORITY_BEST = "best"
PRIORITY_WORST = "worst"


class Difficulty:
    """
    fields:
    mods: mods bitmask
    passed_objects: only the first n objects are considered, None for all
    clock_rate: overrides the mods clock rate, clamped to 0.01-100
    """
    def __init__(self, mods=0, passed_objects=None, clock_rate=None):
        self.mods = mods
        self.passed_objects = passed_objects
        self.clock_rate = clock_rate

    def get_clock_rate(self, single_precision=False):
        if self.clock_rate is None:
            rate = m.clock_rate(self.mods)
        else:
            rate = min(MAX_CLOCK_RATE, max(MIN_CLOCK_RATE, float(self.clock_rate)))

        if single_precision:
            rate = to_f32(rate)

        return rate

    def get_passed_objects(self):
        if self.passed_objects is None:
            return sys.maxsize
        return max(0, int(self.passed_objects))

    def take(self, objects):
        """the passed objects prefix of a list"""
        if self.passed_objects is None:
            return list(objects)
        return list(objects)[:self.get_passed_objects()]

    def __str__(self):
        return "+%s passed=%s clock=%s" % (m.mods_str(self.mods),
            self.passed_objects, self.clock_rate)

    def __repr__(self):
        return str(self)


class Performance:
    """
    play statistics for the pp formulas. anything left as None is
    filled in by the formula (best case unless priority is "worst").

    fields:
    mods passed_objects clock_rate: as in Difficulty
    acc: accuracy in percent
    combo: max combo reached
    n300 n100 n50 misses: osu!standard and osu!taiko hit counts
    n_geki n_katu: osu!mania 320s and 200s
    fruits droplets tiny_droplets tiny_droplet_misses: osu!catch
    score: osu!mania score for the score based revisions
    large_tick_hits slider_end_hits: osu!standard slider judgements,
        only counted for lazer scores
    lazer: whether the score was set on lazer, osu_2024 only
    priority: "best" or "worst"
    """
    def __init__(self, mods=0, passed_objects=None, clock_rate=None,
            acc=None, combo=None, n300=None, n100=None, n50=None,
            misses=None, n_geki=None, n_katu=None, fruits=None,
            droplets=None, tiny_droplets=None, tiny_droplet_misses=None,
            score=None, priority=PRIORITY_BEST, large_tick_hits=None,
            slider_end_hits=None, lazer=True):
        self.mods = mods
        self.passed_objects = passed_objects
        self.clock_rate = clock_rate
        self.acc = acc
        self.combo = combo
        self.n300 = n300
        self.n100 = n100
        self.n50 = n50
        self.misses = misses
        self.n_geki = n_geki
        self.n_katu = n_katu
        self.fruits = fruits
        self.droplets = droplets
        self.tiny_droplets = tiny_droplets
        self.tiny_droplet_misses = tiny_droplet_misses
        self.score = score
        self.priority = priority
        self.large_tick_hits = large_tick_hits
        self.slider_end_hits = slider_end_hits
        self.lazer = lazer

    def difficulty(self):
        return Difficulty(self.mods, self.passed_objects, self.clock_rate)

    def get_acc(self):
        """accuracy as 0-1, None when not given"""
        if self.acc is None:
            return None
        return min(100.0, max(0.0, float(self.acc))) / 100.0

    def get_misses(self):
        return self.misses or 0

    def best_case(self):
        if self.priority not in (PRIORITY_BEST, PRIORITY_WORST):
            raise ValueError("unknown hit result priority %r" % (self.priority,))
        return self.priority == PRIORITY_BEST

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)
