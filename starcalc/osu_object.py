"""
osu!standard object preparation.

turns beatmap hit objects into positioned objects with their nested
slider objects (ticks, repeats and the legacy tail) resolved, applies the
hardrock vertical flip and, for the revisions that use it, stacking.
"""

import logging

from . import mods as m
from .beatmap import (
    OBJ_CIRCLE, OBJ_SLIDER, OBJ_SPINNER,
    EVENT_HEAD, EVENT_TAIL, EVENT_LAST_TICK,
    slider_events_of,
)
from .curve import v2f

logger = logging.getLogger(__name__)

PLAYFIELD_WIDTH = 512.0
PLAYFIELD_HEIGHT = 384.0

OBJECT_RADIUS = 64.0

# offset of the legacy slider tail before the real end, in milliseconds
LEGACY_LAST_TICK_OFFSET = 36.0

STACK_DISTANCE = 3.0


class NestedObject:
    """
    a slider tick, repeat or tail.

    fields:
    kind: EVENT_* constant
    time: milliseconds
    pos: v2f, stacking applied when the slider was stacked
    """
    def __init__(self, kind, time, pos):
        self.kind = kind
        self.time = time
        self.pos = pos

    def __str__(self):
        return "%s at %gms %s" % (self.kind, self.time, self.pos)

    def __repr__(self):
        return str(self)


class OsuObject:
    """
    a positioned osu!standard object.

    fields:
    pos: head position (hardrock flip applied, no stacking)
    start_time end_time: milliseconds
    kind: OBJ_CIRCLE, OBJ_SLIDER or OBJ_SPINNER
    stack_height: stacking level, 0 when stacking is not applied
    stack_offset: v2f added to every position by stacking
    path: SliderPath for sliders, None otherwise
    span_duration spans: slider timing
    nested: NestedObject list for sliders (ticks, repeats, legacy tail)
    lazy_end_pos lazy_travel_dist lazy_travel_time: lazy cursor state,
        filled in by the revisions that need it
    """
    def __init__(self, pos, start_time, kind, end_time=None):
        self.pos = pos
        self.start_time = start_time
        self.end_time = start_time if end_time is None else end_time
        self.kind = kind
        self.stack_height = 0
        self.stack_offset = v2f()
        self.path = None
        self.flip = False
        self.span_duration = 0.0
        self.spans = 1
        self.nested = []
        self.lazy_end_pos = None
        self.lazy_travel_dist = 0.0
        self.lazy_travel_time = 0.0


    def __str__(self):
        return "%s at %gms %s" % ({
            OBJ_CIRCLE: "circle",
            OBJ_SLIDER: "slider",
            OBJ_SPINNER: "spinner",
        }.get(self.kind, "?"), self.start_time, self.pos)


    def __repr__(self):
        return str(self)


    def is_circle(self):
        return self.kind == OBJ_CIRCLE

    def is_slider(self):
        return self.kind == OBJ_SLIDER

    def is_spinner(self):
        return self.kind == OBJ_SPINNER


    def stacked_pos(self):
        return self.pos + self.stack_offset


    def path_offset(self, progress):
        """head relative path position, hardrock flip applied"""
        if self.path is None:
            return v2f()
        p = self.path.position_at(progress)
        if self.flip:
            return v2f(p.x, -p.y)
        return p


    def end_pos(self):
        """position at the end of the last span, without stacking"""
        if self.path is None:
            return self.pos
        return self.pos + self.path_offset(float(self.spans % 2))


    def stacked_end_pos(self):
        return self.end_pos() + self.stack_offset


    def progress_at(self, time):
        """
        path progress (0-1) at a point in time, following the
        direction of the current span
        """
        if self.span_duration == 0.0:
            return 0.0
        progress = (time - self.start_time) / self.span_duration
        if progress % 2.0 >= 1.0:
            return 1.0 - progress % 1.0
        return progress % 1.0


def flip_y(pos):
    return v2f(pos.x, PLAYFIELD_HEIGHT - pos.y)


def circle_radius(cs, rounding_allowance=1.0):
    """object radius in osu!pixels for a (mods adjusted) circle size"""
    scale = (1.0 - 0.7 * (cs - 5.0) / 5.0) / 2.0 * rounding_allowance
    return OBJECT_RADIUS * scale


def convert_objects(bmap, mods=0, take=None,
        legacy_last_tick_offset=LEGACY_LAST_TICK_OFFSET):
    """
    positioned objects for the first take hit objects of an osu!standard
    beatmap. mania hold notes are not part of a standard beatmap and are
    skipped with a warning.
    """
    hr = m.hr(mods)
    hit_objects = bmap.hit_objects if take is None \
        else bmap.hit_objects[:take]

    objects = []

    for h in hit_objects:
        pos = flip_y(h.pos) if hr else h.pos

        if h.is_circle():
            objects.append(OsuObject(pos, h.start_time, OBJ_CIRCLE))

        elif h.is_spinner():
            objects.append(OsuObject(pos, h.start_time, OBJ_SPINNER,
                h.end_time))

        elif h.is_slider():
            objects.append(_convert_slider(bmap, h, pos, hr,
                legacy_last_tick_offset))

        else:
            logger.warning("skipping %s, not an osu!standard object", h)

    return objects


def _convert_slider(bmap, h, pos, hr, legacy_last_tick_offset):
    _, _, span_duration = bmap.slider_timing(h)
    spans = h.slider.spans

    obj = OsuObject(pos, h.start_time, OBJ_SLIDER,
        h.start_time + span_duration * spans)
    obj.path = h.slider.path()
    obj.flip = hr
    obj.span_duration = span_duration
    obj.spans = spans

    for e in slider_events_of(bmap, h, legacy_last_tick_offset):
        if e.kind in (EVENT_HEAD, EVENT_TAIL):
            continue

        # the legacy last tick stands in for the tail and sits on the
        # real end position
        if e.kind == EVENT_LAST_TICK:
            obj.nested.append(NestedObject(EVENT_TAIL, e.time,
                obj.end_pos()))
        else:
            obj.nested.append(NestedObject(e.kind, e.time,
                pos + obj.path_offset(e.path_progress)))

    return obj


def max_combo(objects):
    """one combo per circle and spinner, one per nested slider object"""
    res = 0
    for h in objects:
        if h.is_slider():
            res += 1 + len(h.nested)
        else:
            res += 1
    return res


# -------------------------------------------------------------------------
# stacking

def apply_stacking(objects, stack_leniency, format_version, preempt,
        radius_scale):
    """
    computes stack heights in place and moves every object (and its
    nested objects) by its stack offset.

    preempt is the approach window without the clock rate applied and
    radius_scale the object scale (radius / 64)
    """
    for h in objects:
        h.stack_height = 0

    if format_version >= 6:
        _stacking(objects, stack_leniency, preempt)
    else:
        _stacking_old(objects, stack_leniency, preempt)

    for h in objects:
        offset = h.stack_height * radius_scale * -6.4
        h.stack_offset = v2f(offset, offset)
        for nested in h.nested:
            nested.pos = nested.pos + h.stack_offset


def _stacking(objects, stack_leniency, preempt):
    end_idx = len(objects) - 1
    start_idx = 0
    stack_threshold = preempt * stack_leniency

    extended_end_idx = end_idx

    for i in range(end_idx, start_idx - 1, -1):
        stack_base_idx = i

        for n in range(stack_base_idx + 1, len(objects)):
            base = objects[stack_base_idx]
            if base.is_spinner():
                break

            obj_n = objects[n]
            if obj_n.is_spinner():
                continue

            if obj_n.start_time - base.end_time > stack_threshold:
                break

            if (base.pos - obj_n.pos).len() < STACK_DISTANCE or \
                    (base.is_slider() and
                    (base.end_pos() - obj_n.pos).len() < STACK_DISTANCE):
                stack_base_idx = n
                obj_n.stack_height = 0

        if stack_base_idx > extended_end_idx:
            extended_end_idx = stack_base_idx
            if extended_end_idx == len(objects) - 1:
                break

    extended_start_idx = start_idx

    for i in range(extended_end_idx, start_idx, -1):
        n = i
        obj_i = objects[i]

        if obj_i.stack_height != 0 or obj_i.is_spinner():
            continue

        if obj_i.is_circle():
            n -= 1
            while n >= 0:
                obj_n = objects[n]
                if obj_n.is_spinner():
                    n -= 1
                    continue

                if obj_i.start_time - obj_n.end_time > stack_threshold:
                    break

                if n < extended_start_idx:
                    obj_n.stack_height = 0
                    extended_start_idx = n

                # circles below the end of a slider stack downwards
                if obj_n.is_slider() and \
                        (obj_n.end_pos() - obj_i.pos).len() < STACK_DISTANCE:
                    offset = obj_i.stack_height - obj_n.stack_height + 1

                    for j in range(n + 1, i + 1):
                        obj_j = objects[j]
                        if (obj_n.end_pos() - obj_j.pos).len() \
                                < STACK_DISTANCE:
                            obj_j.stack_height -= offset

                    break

                if (obj_n.pos - obj_i.pos).len() < STACK_DISTANCE:
                    obj_n.stack_height = obj_i.stack_height + 1
                    obj_i = obj_n

                n -= 1

        elif obj_i.is_slider():
            n -= 1
            while n >= start_idx:
                obj_n = objects[n]
                if obj_n.is_spinner():
                    n -= 1
                    continue

                if obj_i.start_time - obj_n.start_time > stack_threshold:
                    break

                if (obj_n.end_pos() - obj_i.pos).len() < STACK_DISTANCE:
                    obj_n.stack_height = obj_i.stack_height + 1
                    obj_i = obj_n

                n -= 1


def _stacking_old(objects, stack_leniency, preempt):
    stack_threshold = preempt * stack_leniency

    for i, curr in enumerate(objects):
        if curr.stack_height != 0 and not curr.is_slider():
            continue

        start_time = curr.end_time
        slider_stack = 0

        for j in range(i + 1, len(objects)):
            if objects[j].start_time - stack_threshold > start_time:
                break

            pos2 = curr.end_pos()

            if (objects[j].pos - curr.pos).len() < STACK_DISTANCE:
                curr.stack_height += 1
                start_time = objects[j].start_time

            elif (objects[j].pos - pos2).len() < STACK_DISTANCE:
                slider_stack += 1
                objects[j].stack_height -= slider_stack
                start_time = objects[j].start_time


# -------------------------------------------------------------------------
# lazy slider cursor

def lazy_cursor_by_time(h, radius):
    """
    moves a lazy cursor along the slider, visiting the path position at
    every nested object's time. the cursor only follows once it leaves a
    circle three times the object radius. fills in lazy_end_pos and
    lazy_travel_dist (unscaled). does nothing for non-sliders or when
    already computed.
    """
    if not h.is_slider() or h.lazy_end_pos is not None:
        return

    follow_radius = radius * 3.0
    head = h.stacked_pos()
    cursor = head

    for nested in h.nested:
        progress = h.progress_at(nested.time)
        diff = head + h.path_offset(progress) - cursor
        dist = diff.len()

        if dist > follow_radius:
            diff = diff.normalize()
            dist -= follow_radius
            cursor = cursor + diff * dist
            h.lazy_travel_dist += dist

    h.lazy_end_pos = cursor


def end_cursor_pos(h, radius):
    """where the cursor rests after the object"""
    if h.is_slider():
        lazy_cursor_by_time(h, radius)
        return h.lazy_end_pos
    return h.stacked_pos()
