"""
difficulty and performance attribute records for every mode.

these are plain value objects. every field has a zero default so a
degenerate beatmap yields a well defined, all-zero result.
"""

import copy


class _Attributes:
    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            if not hasattr(self, key):
                raise TypeError("%s has no field %r" % (
                    type(self).__name__, key))
            setattr(self, key, value)

    def __eq__(self, other):
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not self == other

    def copy(self):
        return copy.deepcopy(self)

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self)


# -------------------------------------------------------------------------
# osu!standard

class OsuDifficultyAttributes(_Attributes):
    """
    fields:
    stars aim speed flashlight: ratings
    slider_factor: aim without sliders over aim, 1.0 when aim is 0
    speed_note_count: notes relevant to the speed rating
    aim_difficult_strain_count speed_difficult_strain_count: weighted
        number of objects close to the top strain, osu_2024 only
    ar od hp: values with mods applied
    n_circles n_sliders n_spinners max_combo: object counts
    n_large_ticks: slider ticks and repeats, osu_2024 only
    """
    def __init__(self, **kwargs):
        self.stars = 0.0
        self.aim = 0.0
        self.speed = 0.0
        self.flashlight = 0.0
        self.slider_factor = 1.0
        self.speed_note_count = 0.0
        self.aim_difficult_strain_count = 0.0
        self.speed_difficult_strain_count = 0.0
        self.ar = 0.0
        self.od = 0.0
        self.hp = 0.0
        self.n_circles = 0
        self.n_sliders = 0
        self.n_spinners = 0
        self.max_combo = 0
        self.n_large_ticks = 0
        _Attributes.__init__(self, **kwargs)

    def n_objects(self):
        return self.n_circles + self.n_sliders + self.n_spinners


class OsuPerformanceAttributes(_Attributes):
    def __init__(self, **kwargs):
        self.difficulty = OsuDifficultyAttributes()
        self.pp = 0.0
        self.pp_aim = 0.0
        self.pp_speed = 0.0
        self.pp_acc = 0.0
        self.pp_flashlight = 0.0
        self.effective_miss_count = 0.0
        self.accuracy = 0.0
        _Attributes.__init__(self, **kwargs)

    @property
    def stars(self):
        return self.difficulty.stars

    @property
    def max_combo(self):
        return self.difficulty.max_combo


# -------------------------------------------------------------------------
# osu!taiko

class TaikoDifficultyAttributes(_Attributes):
    def __init__(self, **kwargs):
        self.stars = 0.0
        self.stamina = 0.0
        self.rhythm = 0.0
        self.colour = 0.0
        self.peak = 0.0
        self.great_hit_window = 0.0
        self.ok_hit_window = 0.0
        self.mono_stamina_factor = 0.0
        self.max_combo = 0
        self.is_convert = False
        _Attributes.__init__(self, **kwargs)


class TaikoPerformanceAttributes(_Attributes):
    def __init__(self, **kwargs):
        self.difficulty = TaikoDifficultyAttributes()
        self.pp = 0.0
        self.pp_acc = 0.0
        self.pp_difficulty = 0.0
        self.effective_miss_count = 0.0
        self.estimated_unstable_rate = None
        _Attributes.__init__(self, **kwargs)

    @property
    def stars(self):
        return self.difficulty.stars

    @property
    def max_combo(self):
        return self.difficulty.max_combo


# -------------------------------------------------------------------------
# osu!catch

class CatchDifficultyAttributes(_Attributes):
    def __init__(self, **kwargs):
        self.stars = 0.0
        self.ar = 0.0
        self.n_fruits = 0
        self.n_droplets = 0
        self.n_tiny_droplets = 0
        self.is_convert = False
        _Attributes.__init__(self, **kwargs)

    @property
    def max_combo(self):
        return self.n_fruits + self.n_droplets


class CatchPerformanceAttributes(_Attributes):
    def __init__(self, **kwargs):
        self.difficulty = CatchDifficultyAttributes()
        self.pp = 0.0
        _Attributes.__init__(self, **kwargs)

    @property
    def stars(self):
        return self.difficulty.stars

    @property
    def max_combo(self):
        return self.difficulty.max_combo


# -------------------------------------------------------------------------
# osu!mania

class ManiaDifficultyAttributes(_Attributes):
    def __init__(self, **kwargs):
        self.stars = 0.0
        self.hit_window = 0.0
        self.max_combo = 0
        self.n_objects = 0
        self.is_convert = False
        _Attributes.__init__(self, **kwargs)


class ManiaPerformanceAttributes(_Attributes):
    def __init__(self, **kwargs):
        self.difficulty = ManiaDifficultyAttributes()
        self.pp = 0.0
        self.pp_difficulty = 0.0
        self.pp_acc = 0.0
        self.pp_strain = 0.0
        _Attributes.__init__(self, **kwargs)

    @property
    def stars(self):
        return self.difficulty.stars

    @property
    def max_combo(self):
        return self.difficulty.max_combo


_PERFORMANCE_TYPES = {
    OsuPerformanceAttributes: OsuDifficultyAttributes,
    TaikoPerformanceAttributes: TaikoDifficultyAttributes,
    CatchPerformanceAttributes: CatchDifficultyAttributes,
    ManiaPerformanceAttributes: ManiaDifficultyAttributes,
}


def difficulty_of(x, kind=None):
    """
    extracts the difficulty attributes out of a difficulty record, a
    performance record or a bare star value.

    if kind is a difficulty attributes class, anything of another mode
    yields None. bare floats are only accepted when kind is None or
    float.
    """
    if x is None:
        return None

    if isinstance(x, (int, float)) and not isinstance(x, bool):
        if kind is None or kind is float:
            return float(x)
        return None

    if type(x) in _PERFORMANCE_TYPES:
        x = x.difficulty

    if type(x) not in _PERFORMANCE_TYPES.values():
        return None

    if kind is not None and kind is not float and type(x) is not kind:
        return None

    if kind is float:
        return x.stars

    return x
