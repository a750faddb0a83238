"""
hit result helpers for the pp formulas.

the pp formulas need full hit statistics. whatever the caller leaves out
(accuracy, combo, hit counts) is filled in here, either by rounding an
accuracy to the closest hit counts or by a best/worst case guess.
"""

import math


def acc_calc(n300, n100, n50, misses):
    """calculates osu!standard accuracy (0.0-1.0)"""
    h = n300 + n100 + n50 + misses

    if h <= 0:
        return 0.0

    return (n50 * 50.0 + n100 * 100.0 + n300 * 300.0) / (h * 300.0)


def acc_round(acc_percent, nobjects, misses):
    """
    rounds to the closest amount of 300s, 100s, 50s
    returns (n300, n100, n50)
    """

    misses = min(nobjects, misses)
    max300 = nobjects - misses
    maxacc = acc_calc(max300, 0, 0, misses) * 100.0
    acc_percent = max(0.0, min(maxacc, acc_percent))

    n50 = n300 = 0

    # just some black magic maths from wolfram alpha
    n100 = round(
        -3.0 *
        ((acc_percent * 0.01 - 1.0) * nobjects + misses) * 0.5
    )

    n100 = int(n100)

    if n100 > nobjects - misses:
        # acc lower than all 100s, use 50s
        n100 = 0
        n50 = round(
            -6.0 * (
                (acc_percent * 0.01 - 1.0) * nobjects
                + misses
            ) * 0.5
        )

        n50 = int(n50)
        n50 = min(max300, n50)

    else:
        n100 = min(max300, n100)

    n300 = nobjects - n100 - n50 - misses

    return (n300, n100, n50)


class ScoreOrigin:
    """
    slider judgements counted into the accuracy of lazer scores. a great
    slider end is worth half a 300, a large tick a tenth.

    fields:
    max_large_ticks max_slider_ends: judgement counts of the map
    """
    def __init__(self, max_large_ticks, max_slider_ends):
        self.max_large_ticks = max_large_ticks
        self.max_slider_ends = max_slider_ends

    def value(self, slider_end_hits, large_tick_hits):
        """slider accuracy in 50s"""
        return (3 * min(slider_end_hits, self.max_slider_ends) +
            0.6 * min(large_tick_hits, self.max_large_ticks))

    def max_value(self):
        return self.value(self.max_slider_ends, self.max_large_ticks)


class OsuState:
    """
    osu!standard play statistics.

    fields:
    combo n300 n100 n50 misses
    slider_end_hits large_tick_hits: only set for lazer scores
    """
    def __init__(self, combo=0, n300=0, n100=0, n50=0, misses=0,
            slider_end_hits=0, large_tick_hits=0):
        self.combo = combo
        self.n300 = n300
        self.n100 = n100
        self.n50 = n50
        self.misses = misses
        self.slider_end_hits = slider_end_hits
        self.large_tick_hits = large_tick_hits

    def total_hits(self):
        return self.n300 + self.n100 + self.n50 + self.misses

    def accuracy(self, origin=None):
        """accuracy, with the slider judgements when origin is given"""
        if origin is None:
            return acc_calc(self.n300, self.n100, self.n50, self.misses)

        total = 6 * self.total_hits() + origin.max_value()
        if total == 0:
            return 0.0

        return (6 * self.n300 + 2 * self.n100 + self.n50 + origin.value(
            self.slider_end_hits, self.large_tick_hits)) / float(total)

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def _combo(perf, max_combo, misses):
    max_possible = max(0, max_combo - misses)
    if perf.combo is None:
        return max_possible
    return min(perf.combo, max_possible)


def osu_state_legacy(perf, n_objects, max_combo):
    """
    fills in the statistics the way the older calculators did: an
    accuracy is rounded to the closest counts, missing 300s are whatever
    is left over
    """
    misses = min(n_objects, perf.get_misses())
    acc = perf.get_acc()

    if acc is not None and perf.n300 is None and perf.n100 is None \
            and perf.n50 is None:
        n300, n100, n50 = acc_round(acc * 100.0, n_objects, misses)
    else:
        n100 = perf.n100 or 0
        n50 = perf.n50 or 0
        if perf.n300 is None:
            n300 = max(0, n_objects - n100 - n50 - misses)
        else:
            n300 = perf.n300

    return OsuState(_combo(perf, max_combo, misses), n300, n100, n50,
        misses)


def _given_or_max(given, upper):
    if given is None:
        return upper
    return max(0, min(given, upper))


def osu_state(perf, n_objects, max_combo, origin=None):
    """
    fills in the statistics by searching the hit counts closest to the
    requested accuracy. when no accuracy is given, the remaining objects
    go to the best (or worst, depending on the priority) result.

    with an origin, missing slider judgements are assumed hit and count
    towards the accuracy
    """
    best = perf.best_case()
    misses = min(n_objects, perf.get_misses())
    n_remaining = n_objects - misses

    n300 = min(perf.n300 or 0, n_remaining)
    n100 = min(perf.n100 or 0, n_remaining)
    n50 = min(perf.n50 or 0, n_remaining)

    slider_end_hits = large_tick_hits = 0
    slider_value = max_slider_value = 0.0
    if origin is not None:
        slider_end_hits = _given_or_max(perf.slider_end_hits,
            origin.max_slider_ends)
        large_tick_hits = _given_or_max(perf.large_tick_hits,
            origin.max_large_ticks)
        slider_value = origin.value(slider_end_hits, large_tick_hits)
        max_slider_value = origin.max_value()

    def acc_of(new300, new100, new50):
        return OsuState(0, new300, new100, new50, misses, slider_end_hits,
            large_tick_hits).accuracy(origin)

    acc = perf.get_acc()
    given = (perf.n300 is not None, perf.n100 is not None,
        perf.n50 is not None)

    if acc is not None:
        # in 50s, with the slider judgements already taken out
        target_total = acc * (6 * n_objects + max_slider_value) - \
            slider_value

        if given == (True, True, True):
            remaining = max(0, n_objects - (n300 + n100 + n50 + misses))
            if best:
                n300 += remaining
            else:
                n50 += remaining

        elif given == (True, True, False):
            n50 = max(0, n_objects - (n300 + n100 + misses))

        elif given == (True, False, True):
            n100 = max(0, n_objects - (n300 + n50 + misses))

        elif given == (False, True, True):
            n300 = max(0, n_objects - (n100 + n50 + misses))

        elif given == (True, False, False):
            left = n_remaining - n300
            raw_n100 = target_total - (left + 6 * n300)
            best_dist = float("inf")
            for new100 in _candidates(raw_n100, left):
                new50 = left - new100
                dist = abs(acc - acc_of(n300, new100, new50))
                if dist < best_dist:
                    best_dist = dist
                    n100, n50 = new100, new50

        elif given == (False, True, False):
            left = n_remaining - n100
            raw_n300 = (target_total - (left + 2 * n100)) / 5.0
            best_dist = float("inf")
            for new300 in _candidates(raw_n300, left):
                new50 = left - new300
                dist = abs(acc - acc_of(new300, n100, new50))
                if dist < best_dist:
                    best_dist = dist
                    n300, n50 = new300, new50

        elif given == (False, False, True):
            left = n_remaining - n50
            raw_n300 = (target_total + 2 * misses + n50
                - 2 * n_objects) / 4.0
            best_dist = float("inf")
            for new300 in _candidates(raw_n300, left):
                new100 = left - new300
                dist = abs(acc - acc_of(new300, new100, n50))
                if dist < best_dist:
                    best_dist = dist
                    n300, n100 = new300, new100

        else:
            raw_n300 = (target_total - n_remaining) / 5.0
            best_dist = float("inf")
            for new300 in _candidates(raw_n300, n_remaining):
                raw_n100 = target_total - (n_remaining + 5 * new300)
                for new100 in _candidates(raw_n100,
                        n_remaining - new300):
                    new50 = n_remaining - new300 - new100
                    dist = abs(acc - acc_of(new300, new100, new50))
                    if dist < best_dist:
                        best_dist = dist
                        n300, n100, n50 = new300, new100, new50

            if best:
                # trade 50s for 100s by giving up 300s
                n = min(n300, n50 // 4)
                n300 -= n
                n100 += 5 * n
                n50 -= 4 * n
            else:
                # trade 100s for 50s by gaining 300s
                n = n100 // 5
                n300 += n
                n100 -= 5 * n
                n50 += 4 * n

    else:
        remaining = max(0, n_objects - (n300 + n100 + n50 + misses))
        if best:
            if perf.n300 is None:
                n300 = remaining
            elif perf.n100 is None:
                n100 = remaining
            elif perf.n50 is None:
                n50 = remaining
            else:
                n300 += remaining
        else:
            if perf.n50 is None:
                n50 = remaining
            elif perf.n100 is None:
                n100 = remaining
            elif perf.n300 is None:
                n300 = remaining
            else:
                n50 += remaining

    return OsuState(_combo(perf, max_combo, misses), n300, n100, n50,
        misses, slider_end_hits, large_tick_hits)


def _candidates(raw, upper):
    """floor and ceil of raw, both capped to 0-upper"""
    upper = max(0, upper)
    if raw != raw or raw == float("inf"):
        return [upper]
    lo = min(upper, max(0, int(math.floor(raw))))
    hi = min(upper, max(0, int(math.ceil(raw))))
    return range(lo, hi + 1)


# -------------------------------------------------------------------------
# osu!taiko

class TaikoState:
    """
    osu!taiko play statistics.

    fields:
    combo n300 n100 misses
    """
    def __init__(self, combo=0, n300=0, n100=0, misses=0):
        self.combo = combo
        self.n300 = n300
        self.n100 = n100
        self.misses = misses

    def total_hits(self):
        return self.n300 + self.n100 + self.misses

    def accuracy(self):
        total = self.total_hits()
        if total == 0:
            return 0.0
        return (2 * self.n300 + self.n100) / float(2 * total)

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def taiko_state(perf, n_results, max_combo):
    """fills in osu!taiko statistics, n_results is the number of hits"""
    best = perf.best_case()
    misses = min(n_results, perf.get_misses())
    n_remaining = n_results - misses

    n300 = min(perf.n300 or 0, n_remaining)
    n100 = min(perf.n100 or 0, n_remaining)

    acc = perf.get_acc()

    if acc is not None:
        if perf.n300 is not None and perf.n100 is not None:
            remaining = max(0, n_results - (n300 + n100 + misses))
            if best:
                n300 += remaining
            else:
                n100 += remaining

        elif perf.n300 is not None:
            n100 += max(0, n_results - (n300 + misses))

        elif perf.n100 is not None:
            n300 += max(0, n_results - (n100 + misses))

        else:
            target_total = acc * 2 * n_results
            raw_n300 = target_total - n_remaining
            best_dist = float("inf")
            for new300 in _candidates(raw_n300, n_remaining):
                new100 = n_remaining - new300
                state = TaikoState(0, new300, new100, misses)
                dist = abs(acc - state.accuracy())
                if dist < best_dist:
                    best_dist = dist
                    n300, n100 = new300, new100

    else:
        remaining = max(0, n_results - (n300 + n100 + misses))
        if best:
            if perf.n300 is None:
                n300 = remaining
            elif perf.n100 is None:
                n100 = remaining
            else:
                n300 += remaining
        else:
            if perf.n100 is None:
                n100 = remaining
            elif perf.n300 is None:
                n300 = remaining
            else:
                n100 += remaining

    return TaikoState(_combo(perf, max_combo, misses), n300, n100, misses)


# -------------------------------------------------------------------------
# osu!catch

class CatchState:
    """
    osu!catch play statistics.

    fields:
    combo fruits droplets tiny_droplets tiny_droplet_misses misses
    """
    def __init__(self, combo=0, fruits=0, droplets=0, tiny_droplets=0,
            tiny_droplet_misses=0, misses=0):
        self.combo = combo
        self.fruits = fruits
        self.droplets = droplets
        self.tiny_droplets = tiny_droplets
        self.tiny_droplet_misses = tiny_droplet_misses
        self.misses = misses

    def successful_hits(self):
        return self.fruits + self.droplets + self.tiny_droplets

    def total_hits(self):
        return self.successful_hits() + self.tiny_droplet_misses + \
            self.misses

    def combo_hits(self):
        return self.fruits + self.droplets + self.misses

    def accuracy(self):
        total = self.total_hits()
        if total == 0:
            return 1.0
        return min(1.0, max(0.0, self.successful_hits() / float(total)))

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def catch_state_legacy(perf, attrs):
    """
    fills in osu!catch statistics like the first catch calculator: an
    accuracy decides the tiny droplets, anything inconsistent with the
    map is topped up with fruits and droplets
    """
    max_combo = attrs.max_combo
    misses = perf.get_misses()
    acc = perf.get_acc()

    fruits = perf.fruits
    droplets = perf.droplets
    tiny_droplets = perf.tiny_droplets
    tiny_droplet_misses = perf.tiny_droplet_misses

    if acc is not None:
        if droplets is None:
            droplets = max(0, attrs.n_droplets - misses)
        if fruits is None:
            fruits = max(0, max_combo - misses - droplets)
        if tiny_droplets is None:
            tiny_droplets = max(0, int(round(acc *
                (max_combo + attrs.n_tiny_droplets))) - fruits - droplets)
        tiny_droplet_misses = max(0, attrs.n_tiny_droplets - tiny_droplets)

    consistent = (
        fruits is not None and droplets is not None and
        fruits + droplets + misses == max_combo and
        fruits >= attrs.n_fruits - misses and
        droplets >= attrs.n_droplets - misses and
        tiny_droplets is not None and tiny_droplet_misses is not None and
        tiny_droplets + tiny_droplet_misses == attrs.n_tiny_droplets
    )

    fruits = fruits or 0
    droplets = droplets or 0
    tiny_droplets = tiny_droplets or 0
    tiny_droplet_misses = tiny_droplet_misses or 0

    if not consistent:
        missing = max(0, max_combo - fruits - droplets - misses)
        missing_fruits = max(0, missing - max(0, attrs.n_droplets - droplets))

        fruits += missing_fruits
        droplets += max(0, missing - missing_fruits)
        tiny_droplets += max(0,
            attrs.n_tiny_droplets - tiny_droplets - tiny_droplet_misses)

    return CatchState(perf.combo, fruits, droplets, tiny_droplets,
        tiny_droplet_misses, misses)


def catch_state(perf, attrs):
    """fills in osu!catch statistics, best case for what is left out"""
    n_combo_objects = attrs.n_fruits + attrs.n_droplets
    misses = min(perf.get_misses(), n_combo_objects)
    combo = perf.combo
    if combo is None:
        combo = attrs.max_combo - misses

    if perf.fruits is not None and perf.droplets is not None:
        fruits, droplets = perf.fruits, perf.droplets
        n_remaining = max(0, n_combo_objects - (fruits + droplets + misses))
        new_droplets = min(n_remaining, max(0, attrs.n_droplets - droplets))
        droplets += new_droplets
        fruits += n_remaining - new_droplets

        fruits = min(fruits, max(0, n_combo_objects - (droplets + misses)))
        droplets = min(droplets, n_combo_objects - fruits - misses)

    elif perf.fruits is not None:
        droplets = max(0, attrs.n_droplets -
            max(0, misses - max(0, attrs.n_fruits - perf.fruits)))
        fruits = n_combo_objects - misses - droplets

    elif perf.droplets is not None:
        fruits = max(0, attrs.n_fruits -
            max(0, misses - max(0, attrs.n_droplets - perf.droplets)))
        droplets = n_combo_objects - misses - fruits

    else:
        droplets = max(0, attrs.n_droplets - misses)
        fruits = attrs.n_fruits - (misses - (attrs.n_droplets - droplets))

    state = CatchState(combo, fruits, droplets, 0, 0, misses)
    acc = perf.get_acc()
    n_tiny = attrs.n_tiny_droplets

    if perf.tiny_droplets is not None and \
            perf.tiny_droplet_misses is not None:
        given = perf.tiny_droplets + perf.tiny_droplet_misses
        if acc is not None and given != n_tiny:
            _closest_tiny_droplets(state, acc, attrs)
        elif acc is not None:
            state.tiny_droplets = perf.tiny_droplets
            state.tiny_droplet_misses = perf.tiny_droplet_misses
        else:
            state.tiny_droplets = perf.tiny_droplets + max(0, n_tiny - given)
            state.tiny_droplet_misses = perf.tiny_droplet_misses

    elif perf.tiny_droplets is not None:
        state.tiny_droplets = min(n_tiny, perf.tiny_droplets)
        state.tiny_droplet_misses = max(0, n_tiny - perf.tiny_droplets)

    elif perf.tiny_droplet_misses is not None:
        state.tiny_droplets = max(0, n_tiny - perf.tiny_droplet_misses)
        state.tiny_droplet_misses = min(n_tiny, perf.tiny_droplet_misses)

    elif acc is not None:
        _closest_tiny_droplets(state, acc, attrs)

    else:
        state.tiny_droplets = n_tiny

    return state


def _closest_tiny_droplets(state, acc, attrs):
    n_tiny = attrs.n_tiny_droplets
    raw = acc * (attrs.n_fruits + attrs.n_droplets + n_tiny) - \
        (state.fruits + state.droplets)

    best_dist = float("inf")
    for tiny in _candidates(raw, n_tiny):
        candidate = CatchState(0, state.fruits, state.droplets, tiny,
            n_tiny - tiny, state.misses)
        dist = abs(acc - candidate.accuracy())
        if dist < best_dist:
            best_dist = dist
            state.tiny_droplets = tiny
            state.tiny_droplet_misses = n_tiny - tiny


# -------------------------------------------------------------------------
# osu!mania

class ManiaState:
    """
    osu!mania play statistics.

    fields:
    n320 n300 n200 n100 n50 misses
    """
    def __init__(self, n320=0, n300=0, n200=0, n100=0, n50=0, misses=0):
        self.n320 = n320
        self.n300 = n300
        self.n200 = n200
        self.n100 = n100
        self.n50 = n50
        self.misses = misses

    def total_hits(self):
        return self.n320 + self.n300 + self.n200 + self.n100 + self.n50 + \
            self.misses

    def accuracy(self):
        return mania_acc(self.n320 + self.n300, self.n200, self.n100,
            self.n50, self.misses)

    def custom_accuracy(self):
        """score weighted accuracy, 320s are worth more than 300s"""
        total = self.total_hits()
        if total == 0:
            return 0.0
        return (self.n320 * 32 + self.n300 * 30 + self.n200 * 20 +
            self.n100 * 10 + self.n50 * 5) / float(total * 32)

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def mania_acc(n3x0, n200, n100, n50, misses):
    total = n3x0 + n200 + n100 + n50 + misses
    if total == 0:
        return 0.0
    return (6 * n3x0 + 4 * n200 + 2 * n100 + n50) / float(6 * total)


# accuracy weight of each judgement, 320s and 300s count the same
_MANIA_WEIGHTS = (("n3x0", 6), ("n200", 4), ("n100", 2), ("n50", 1))


def _closest_mania_counts(acc, fixed, unknown, remaining, lower, misses):
    """
    distributes remaining hits over the unknown judgements (ordered by
    weight) so the accuracy is as close as possible to acc. the first
    unknown judgement is tried at every count from lower on, the others
    at the floor and ceil of their ideal count, the last one takes what
    is left
    """
    best = None
    best_dist = float("inf")

    target = acc * 6 * (sum(fixed.values()) + remaining + misses)
    fixed_weight = sum(w * fixed.get(name, 0) for name, w in _MANIA_WEIGHTS)
    weights = dict(_MANIA_WEIGHTS)

    def search(i, left, needed, counts):
        nonlocal best, best_dist

        name = unknown[i]
        if i == len(unknown) - 1:
            counts = dict(counts, **{name: left})
            merged = dict(fixed, **counts)
            dist = abs(acc - mania_acc(merged.get("n3x0", 0),
                merged.get("n200", 0), merged.get("n100", 0),
                merged.get("n50", 0), misses))
            if dist < best_dist:
                best_dist = dist
                best = counts
            return

        if i == 0:
            values = range(min(left, lower), left + 1)
        else:
            w_last = weights[unknown[-1]]
            raw = (needed - w_last * left) / float(weights[name] - w_last)
            values = _candidates(raw, left)

        for v in values:
            search(i + 1, left - v, needed - weights[name] * v,
                dict(counts, **{name: v}))

    search(0, remaining, target - fixed_weight, {})
    return best


def mania_state(perf, n_objects):
    """
    fills in osu!mania statistics. n_geki is the number of 320s, n_katu
    the number of 200s
    """
    best = perf.best_case()
    misses = min(n_objects, perf.get_misses())
    n_remaining = n_objects - misses

    given = {
        "n320": perf.n_geki,
        "n300": perf.n300,
        "n200": perf.n_katu,
        "n100": perf.n100,
        "n50": perf.n50,
    }
    counts = dict((k, min(v or 0, n_remaining)) for k, v in given.items())
    acc = perf.get_acc()

    if acc is None:
        remaining = max(0, n_objects - sum(counts.values()) - misses)
        order = ["n320", "n300", "n200", "n100", "n50"]
        if not best:
            order.reverse()
        for key in order:
            if given[key] is None:
                counts[key] = remaining
                break
        else:
            counts[order[0]] += remaining
        return ManiaState(misses=misses, **counts)

    missing = [k for k, v in given.items() if v is None]

    if not missing:
        remaining = max(0, n_objects - sum(counts.values()) - misses)
        if best:
            counts["n320"] += remaining
        else:
            counts["n50"] += remaining
        return ManiaState(misses=misses, **counts)

    if len(missing) == 1:
        key = missing[0]
        counts[key] = max(0, n_objects - sum(counts.values()) - misses)
        return ManiaState(misses=misses, **counts)

    # 320s and 300s are solved for together
    both_3x0_missing = given["n320"] is None and given["n300"] is None
    fixed = {
        "n200": counts["n200"], "n100": counts["n100"], "n50": counts["n50"],
    }
    unknown = []
    lower = 0

    if given["n320"] is None or given["n300"] is None:
        unknown.append("n3x0")
        lower = counts["n320"] + counts["n300"]
    else:
        fixed["n3x0"] = counts["n320"] + counts["n300"]

    for key in ("n200", "n100", "n50"):
        if given[key] is None:
            unknown.append(key)
            del fixed[key]

    remaining = max(0, n_remaining - sum(fixed.values()))

    if len(unknown) == 1:
        solved = {unknown[0]: remaining}
    else:
        solved = _closest_mania_counts(acc, fixed, unknown, remaining,
            lower, misses)

    for key in ("n200", "n100", "n50"):
        if key in solved:
            counts[key] = solved[key]

    if "n3x0" in solved:
        n3x0 = solved["n3x0"]
        if both_3x0_missing:
            if best:
                counts["n320"], counts["n300"] = n3x0, 0
            else:
                counts["n320"], counts["n300"] = 0, n3x0
        elif given["n320"] is not None:
            counts["n300"] = n3x0 - counts["n320"]
        else:
            counts["n320"] = n3x0 - counts["n300"]

    # a pair of 200s is worth a 320 and a 100
    if best and given["n320"] is None and given["n200"] is None and \
            given["n100"] is None:
        n = counts["n200"] // 2
        counts["n320"] += n
        counts["n200"] -= 2 * n
        counts["n100"] += n

    return ManiaState(misses=misses, **counts)
