"""
osu!taiko object conversion.

native taiko maps map one to one: circles are hits, sliders drumrolls and
spinners swells. osu!standard maps are converted the way the game does
it, short enough sliders are split into a stream of hits that cycles
through the slider's node sounds.
"""

import logging

from .beatmap import MODE_STD, MODE_TAIKO, SOUND_CLAP, SOUND_WHISTLE

logger = logging.getLogger(__name__)

TAIKO_HIT = "hit"
TAIKO_DRUMROLL = "drumroll"
TAIKO_SWELL = "swell"

LEGACY_TAIKO_VELOCITY_MULTIPLIER = 1.4
OSU_BASE_SCORING_DIST = 100.0


class TaikoObject:
    """
    fields:
    start_time end_time: milliseconds
    kind: TAIKO_HIT, TAIKO_DRUMROLL or TAIKO_SWELL
    sound: hitsound bitmask, decides rim or centre for hits
    """
    def __init__(self, start_time, kind, sound, end_time=None):
        self.start_time = start_time
        self.end_time = start_time if end_time is None else end_time
        self.kind = kind
        self.sound = sound

    def is_hit(self):
        return self.kind == TAIKO_HIT

    def is_rim(self):
        return self.is_hit() and is_rim_sound(self.sound)

    def is_centre(self):
        return self.is_hit() and not is_rim_sound(self.sound)

    def __str__(self):
        kind = self.kind
        if self.is_hit():
            kind = "rim" if self.is_rim() else "centre"
        return "%s at %gms" % (kind, self.start_time)

    def __repr__(self):
        return str(self)


def is_rim_sound(sound):
    return sound & (SOUND_CLAP | SOUND_WHISTLE) != 0


def slider_to_hits(bmap, h):
    """
    returns (tick_spacing, duration, should_convert) for a standard
    slider played in taiko
    """
    spans = h.slider.spans
    dist = h.slider.path().dist() * spans * LEGACY_TAIKO_VELOCITY_MULTIPLIER

    timing_beat_len = bmap.beat_len_at(h.start_time)
    sv = bmap.slider_velocity_at(h.start_time)
    beat_len = timing_beat_len / sv

    slider_scoring_point_dist = (
        OSU_BASE_SCORING_DIST *
        (bmap.slider_multiplier * LEGACY_TAIKO_VELOCITY_MULTIPLIER) /
        bmap.tick_rate
    )
    taiko_velocity = slider_scoring_point_dist * bmap.tick_rate
    duration = float(int(dist / taiko_velocity * beat_len))

    osu_velocity = taiko_velocity * (1000.0 / beat_len)

    if bmap.format_version >= 8:
        beat_len = timing_beat_len

    tick_spacing = min(beat_len / bmap.tick_rate, duration / spans)

    should_convert = tick_spacing > 0.0 and \
        dist / osu_velocity * 1000.0 < 2.0 * beat_len

    return tick_spacing, duration, should_convert


def taiko_objects(bmap):
    """
    converts a beatmap to taiko objects.
    returns the object list or None when the mode can't be converted
    """
    if bmap.mode == MODE_TAIKO:
        return [_native(h) for h in bmap.hit_objects]

    if bmap.mode != MODE_STD:
        logger.warning("can't convert %s to taiko", bmap)
        return None

    res = []
    for h in bmap.hit_objects:
        if not h.is_slider():
            res.append(_native(h))
            continue

        tick_spacing, duration, should_convert = slider_to_hits(bmap, h)
        if not should_convert:
            res.append(TaikoObject(h.start_time, TAIKO_DRUMROLL, h.sound,
                h.start_time + duration))
            continue

        sounds = h.slider.node_sounds or [h.sound]
        i = 0
        t = h.start_time
        while t <= h.start_time + duration + tick_spacing / 8.0:
            res.append(TaikoObject(t, TAIKO_HIT, sounds[i]))
            i = (i + 1) % len(sounds)
            t += tick_spacing

    res.sort(key=lambda x: x.start_time)
    return res


def _native(h):
    if h.is_circle():
        return TaikoObject(h.start_time, TAIKO_HIT, h.sound)
    if h.is_spinner():
        return TaikoObject(h.start_time, TAIKO_SWELL, h.sound, h.end_time)
    return TaikoObject(h.start_time, TAIKO_DRUMROLL, h.sound, h.end_time)


def is_convert(bmap):
    return bmap.mode != MODE_TAIKO
