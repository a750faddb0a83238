"""
beatmap model shared by every mode and revision.

hit objects are kept the way the .osu file describes them, with slider
paths resolved lazily. timing and difficulty control points are kept in
two separate sorted lists.
"""

import bisect
import logging

from . import mods as m
from .curve import SliderPath, v2f

logger = logging.getLogger(__name__)

MODE_STD = 0
MODE_TAIKO = 1
MODE_CATCH = 2
MODE_MANIA = 3

MODE_NAMES = {
    MODE_STD: "osu",
    MODE_TAIKO: "taiko",
    MODE_CATCH: "catch",
    MODE_MANIA: "mania",
}

OBJ_CIRCLE = 1<<0
OBJ_SLIDER = 1<<1
OBJ_SPINNER = 1<<3
OBJ_HOLD = 1<<7

SOUND_NONE = 0
SOUND_NORMAL = 1<<0
SOUND_WHISTLE = 1<<1
SOUND_FINISH = 1<<2
SOUND_CLAP = 1<<3

DEFAULT_BEAT_LEN = 1000.0
DEFAULT_SLIDER_VELOCITY = 1.0

BASE_SCORING_DIST = 100.0

# slider events
EVENT_HEAD = "head"
EVENT_TICK = "tick"
EVENT_REPEAT = "repeat"
EVENT_LAST_TICK = "last_tick"
EVENT_TAIL = "tail"

MAX_SLIDER_LENGTH = 100000.0


class Slider:
    """
    slider data.

    fields:
    spans: number of times the path is travelled (repeats + 1)
    pixel_len: expected path length in osu!pixels
    control_points: list of PathControlPoint, relative to the head
    node_sounds: per-node hit sounds, may be empty
    """
    def __init__(self, spans=1, pixel_len=0.0, control_points=None,
            node_sounds=None):
        self.spans = spans
        self.pixel_len = pixel_len
        self.control_points = control_points or []
        self.node_sounds = node_sounds or []
        self._path = None

    @property
    def repeats(self):
        return self.spans - 1

    def path(self):
        if self._path is None:
            self._path = SliderPath(self.control_points, self.pixel_len)
        return self._path

    def __str__(self):
        return "spans=%d len=%s points=%s" % (
            self.spans, self.pixel_len, self.control_points)

    def __repr__(self):
        return str(self)


class HitObject:
    """
    a single hit object.

    fields:
    pos: v2f
    start_time: milliseconds
    objtype: one of the OBJ_* constants
    sound: hitsound bitmask (SOUND_*)
    slider: Slider or None
    end_time: for spinners and holds, otherwise start_time.
              slider end times depend on timing, see
              Beatmap.slider_duration
    """
    def __init__(self, pos=None, start_time=0.0, objtype=OBJ_CIRCLE,
            sound=SOUND_NONE, slider=None, end_time=None):
        self.pos = pos if pos is not None else v2f()
        self.start_time = start_time
        self.objtype = objtype
        self.sound = sound
        self.slider = slider
        self.end_time = start_time if end_time is None else end_time

    def is_circle(self):
        return self.objtype == OBJ_CIRCLE

    def is_slider(self):
        return self.objtype == OBJ_SLIDER

    def is_spinner(self):
        return self.objtype == OBJ_SPINNER

    def is_hold(self):
        return self.objtype == OBJ_HOLD

    def typestr(self):
        return {
            OBJ_CIRCLE: "circle",
            OBJ_SLIDER: "slider",
            OBJ_SPINNER: "spinner",
            OBJ_HOLD: "hold",
        }.get(self.objtype, "unknown")

    def __str__(self):
        return "%s at %gms %s" % (self.typestr(), self.start_time, self.pos)

    def __repr__(self):
        return str(self)


class TimingPoint:
    def __init__(self, time=0.0, beat_len=DEFAULT_BEAT_LEN):
        self.time = time
        self.beat_len = beat_len

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


class DifficultyPoint:
    def __init__(self, time=0.0, slider_velocity=DEFAULT_SLIDER_VELOCITY):
        self.time = time
        self.slider_velocity = slider_velocity

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


class Beatmap:
    """
    beatmap object.

    fields:
    mode: MODE_* constant
    format_version: .osu file format version
    title artist creator version: metadata (version is the diff name)
    cs od ar hp: base difficulty values
    slider_multiplier tick_rate stack_leniency
    hit_objects: list of HitObject sorted by start time
    timing_points difficulty_points: sorted control points
    is_convert: True when the map was authored for another mode
    """
    def __init__(self):
        self.reset()

    def reset(self):
        self.mode = MODE_STD
        self.format_version = 14
        self.title = self.title_unicode = ""
        self.artist = self.artist_unicode = ""
        self.creator = ""
        self.version = ""
        self.cs = self.od = self.hp = 5.0
        self.ar = 5.0
        self.slider_multiplier = 1.4
        self.tick_rate = 1.0
        self.stack_leniency = 0.7
        self.hit_objects = []
        self.timing_points = []
        self.difficulty_points = []
        self.is_convert = False

    def __str__(self):
        return "%s - %s [%s] (%s mode, %d objects)" % (
            self.artist, self.title, self.version,
            MODE_NAMES.get(self.mode, "?"), len(self.hit_objects))

    def __repr__(self):
        return str(self)

    def n_circles(self):
        return sum(1 for h in self.hit_objects if h.is_circle())

    def n_sliders(self):
        return sum(1 for h in self.hit_objects
            if h.is_slider() or h.is_hold())

    def n_spinners(self):
        return sum(1 for h in self.hit_objects if h.is_spinner())


    def timing_point_at(self, time):
        """
        the timing point in effect at the given time.
        before the first point the first point is used,
        None if there are no timing points at all
        """
        if not self.timing_points:
            return None
        times = [p.time for p in self.timing_points]
        i = bisect.bisect_right(times, time) - 1
        return self.timing_points[max(0, i)]


    def difficulty_point_at(self, time):
        """the difficulty point in effect at the given time or None"""
        times = [p.time for p in self.difficulty_points]
        i = bisect.bisect_right(times, time) - 1
        if i < 0:
            return None
        return self.difficulty_points[i]


    def beat_len_at(self, time):
        point = self.timing_point_at(time)
        return point.beat_len if point is not None else DEFAULT_BEAT_LEN


    def slider_velocity_at(self, time):
        point = self.difficulty_point_at(time)
        if point is None:
            return DEFAULT_SLIDER_VELOCITY
        return point.slider_velocity


    def slider_timing(self, h):
        """
        returns (velocity, tick_distance, span_duration) for a slider.
        velocity is in osu!pixels per millisecond
        """
        beat_len = self.beat_len_at(h.start_time)
        sv = self.slider_velocity_at(h.start_time)

        scoring_dist = BASE_SCORING_DIST * self.slider_multiplier * sv
        velocity = scoring_dist / beat_len

        tick_dist_multiplier = 1.0 / sv if self.format_version < 8 else 1.0
        tick_dist = scoring_dist / self.tick_rate * tick_dist_multiplier

        span_duration = h.slider.path().dist() / velocity
        return velocity, tick_dist, span_duration


    def slider_duration(self, h):
        _, _, span_duration = self.slider_timing(h)
        return span_duration * h.slider.spans


    def copy(self):
        res = Beatmap()
        res.__dict__.update(self.__dict__)
        res.hit_objects = list(self.hit_objects)
        res.timing_points = list(self.timing_points)
        res.difficulty_points = list(self.difficulty_points)
        return res


# -------------------------------------------------------------------------
# difficulty values

def difficulty_range(difficulty, min_value, mid_value, max_value):
    """
    maps a 0-10 difficulty value onto a range. min_value is the
    value at 0, mid_value at 5 and max_value at 10
    """
    if difficulty > 5.0:
        return mid_value + (max_value - mid_value) * (difficulty - 5.0) / 5.0
    if difficulty < 5.0:
        return mid_value - (mid_value - min_value) * (5.0 - difficulty) / 5.0
    return mid_value


AR0_MS = 1800.0
AR5_MS = 1200.0
AR10_MS = 450.0
AR_MS_STEP1 = (AR0_MS - AR5_MS) / 5.0
AR_MS_STEP2 = (AR5_MS - AR10_MS) / 5.0

OD0_MS = 80.0
OD10_MS = 20.0
OD_MS_STEP = (OD0_MS - OD10_MS) / 10.0


class MapAttributes:
    """
    difficulty values with mods applied.

    fields:
    ar od cs hp: adjusted values
    clock_rate: speed multiplier
    preempt: approach window in milliseconds (clock rate applied)
    great_window: osu!standard 300 window in milliseconds
                  (clock rate applied)
    """
    def __init__(self, ar, od, cs, hp, clock_rate, preempt, great_window):
        self.ar = ar
        self.od = od
        self.cs = cs
        self.hp = hp
        self.clock_rate = clock_rate
        self.preempt = preempt
        self.great_window = great_window

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def map_attributes(bmap, mods=0, clock_rate=None):
    """
    calculates ar, od, cs, hp with the given mods applied.
    values are capped to 0-10 before the clock rate is applied.
    """
    if clock_rate is None:
        clock_rate = m.clock_rate(mods)

    multiplier = 1.0
    if m.hr(mods):
        multiplier *= 1.4
    if m.ez(mods):
        multiplier *= 0.5

    ar = min(10.0, bmap.ar * multiplier)
    preempt = difficulty_range(ar, AR0_MS, AR5_MS, AR10_MS) / clock_rate
    if preempt > AR5_MS:
        ar = (AR0_MS - preempt) / AR_MS_STEP1
    else:
        ar = 5.0 + (AR5_MS - preempt) / AR_MS_STEP2

    od = min(10.0, bmap.od * multiplier)
    great_window = difficulty_range(od, OD0_MS, 50.0, OD10_MS) / clock_rate
    od = (OD0_MS - great_window) / OD_MS_STEP

    cs = bmap.cs
    if m.hr(mods):
        cs = min(10.0, cs * 1.3)
    if m.ez(mods):
        cs *= 0.5

    hp = min(10.0, bmap.hp * multiplier)

    return MapAttributes(ar, od, cs, hp, clock_rate, preempt, great_window)


# -------------------------------------------------------------------------
# slider events

class SliderEvent:
    def __init__(self, kind, time, path_progress, span_index=0,
            span_start_time=0.0):
        self.kind = kind
        self.time = time
        self.path_progress = path_progress
        self.span_index = span_index
        self.span_start_time = span_start_time

    def __str__(self):
        return "%s at %gms (%g)" % (self.kind, self.time, self.path_progress)

    def __repr__(self):
        return str(self)


def slider_events(start_time, span_duration, velocity, tick_distance,
        total_distance, span_count, legacy_last_tick_offset=None):
    """
    generates the nested events of a slider in time order: head, ticks,
    repeats, legacy last tick and tail
    """
    length = min(MAX_SLIDER_LENGTH, total_distance)
    tick_distance = min(length, max(0.0, tick_distance))

    min_dist_from_end = velocity * 10.0

    events = [SliderEvent(EVENT_HEAD, start_time, 0.0, 0, start_time)]

    if tick_distance != 0.0:
        for span in range(span_count):
            span_start_time = start_time + span * span_duration
            reversed_span = span % 2 == 1

            ticks = []
            d = tick_distance
            while d <= length:
                if d >= length - min_dist_from_end:
                    break

                path_progress = d / length
                time_progress = 1.0 - path_progress if reversed_span \
                    else path_progress

                ticks.append(SliderEvent(EVENT_TICK,
                    span_start_time + time_progress * span_duration,
                    path_progress, span, span_start_time))
                d += tick_distance

            if reversed_span:
                ticks.reverse()
            events.extend(ticks)

            if span < span_count - 1:
                events.append(SliderEvent(EVENT_REPEAT,
                    span_start_time + span_duration,
                    float((span + 1) % 2), span, span_start_time))

    total_duration = span_count * span_duration
    final_span_index = span_count - 1
    final_span_start_time = start_time + final_span_index * span_duration

    if legacy_last_tick_offset is not None:
        final_span_end_time = max(start_time + total_duration / 2.0,
            final_span_start_time + span_duration - legacy_last_tick_offset)

        if span_duration != 0.0:
            final_progress = (final_span_end_time - final_span_start_time) \
                / span_duration
        else:
            final_progress = 0.0

        if span_count % 2 == 0:
            final_progress = 1.0 - final_progress

        events.append(SliderEvent(EVENT_LAST_TICK, final_span_end_time,
            final_progress, final_span_index, final_span_start_time))

    events.append(SliderEvent(EVENT_TAIL, start_time + total_duration,
        float(span_count % 2), final_span_index, final_span_start_time))

    return events


def slider_events_of(bmap, h, legacy_last_tick_offset=None):
    """slider_events with the timing taken from the beatmap"""
    velocity, tick_dist, span_duration = bmap.slider_timing(h)
    return slider_events(h.start_time, span_duration, velocity, tick_dist,
        h.slider.path().dist(), h.slider.spans, legacy_last_tick_offset)
