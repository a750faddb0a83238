"""
.osu beatmap parser.

reads every mode's hit objects, including slider control points, and
splits [TimingPoints] into timing and difficulty control points.
"""

import logging

from .beatmap import (
    Beatmap, HitObject, Slider, TimingPoint, DifficultyPoint,
    OBJ_CIRCLE, OBJ_SLIDER, OBJ_SPINNER, OBJ_HOLD,
)
from .curve import (
    v2f, PathControlPoint,
    PATH_LINEAR, PATH_PERFECT, PATH_BEZIER, PATH_CATMULL,
)

logger = logging.getLogger(__name__)

OSU_MAGIC = "file format v"

PATH_TYPES = {
    "L": PATH_LINEAR,
    "P": PATH_PERFECT,
    "B": PATH_BEZIER,
    "C": PATH_CATMULL,
}


class ParseError(SyntaxError):
    pass


class parser:
    """
    beatmap parser.

    fields:
    lastline lastpos: last line and token touched (strings)
    nline: last line number touched
    done: True if the parsing completed successfully
    """
    def __init__(self):
        self.lastline = ""
        self.lastpos = ""
        self.nline = 0
        self.done = False


    def __str__(self):
        """formats parser status if the parsing failed"""
        if self.done:
            return "parsing successful"

        return (
            "in line %d\n%s\n> %s\n" % (
                self.nline, self.lastline, self.lastpos
            )
        )


    def __repr__(self):
        return str(self)


    def setlastpos(self, v):
        # any token that can make the parser fail goes through here
        self.lastpos = v
        return v


    def property(self, line):
        # parses PropertyName:Value into a tuple
        s = line.split(":")
        if len(s) < 2:
            raise ParseError(
                "property must be a pair of ':'-separated values"
            )
        return (s[0].strip(), ":".join(s[1:]).strip())


    def metadata(self, b, line):
        p = self.property(line)
        if p[0] == "Title":
            b.title = p[1]
        elif p[0] == "TitleUnicode":
            b.title_unicode = p[1]
        elif p[0] == "Artist":
            b.artist = p[1]
        elif p[0] == "ArtistUnicode":
            b.artist_unicode = p[1]
        elif p[0] == "Creator":
            b.creator = p[1]
        elif p[0] == "Version":
            b.version = p[1]


    def general(self, b, line):
        p = self.property(line)
        if p[0] == "Mode":
            b.mode = int(self.setlastpos(p[1]))
        elif p[0] == "StackLeniency":
            b.stack_leniency = float(self.setlastpos(p[1]))


    def difficulty(self, b, line):
        p = self.property(line)
        if p[0] == "CircleSize":
            b.cs = float(self.setlastpos(p[1]))
        elif p[0] == "OverallDifficulty":
            b.od = float(self.setlastpos(p[1]))
        elif p[0] == "ApproachRate":
            b.ar = float(self.setlastpos(p[1]))
            self.has_ar = True
        elif p[0] == "HPDrainRate":
            b.hp = float(self.setlastpos(p[1]))
        elif p[0] == "SliderMultiplier":
            b.slider_multiplier = float(self.setlastpos(p[1]))
        elif p[0] == "SliderTickRate":
            b.tick_rate = float(self.setlastpos(p[1]))


    def timing(self, b, line):
        s = line.split(",")

        if len(s) < 2:
            raise ParseError(
                "timing point must have at least two fields"
            )

        time = float(self.setlastpos(s[0]))
        beat_len = float(self.setlastpos(s[1]))

        timing_change = True
        if len(s) >= 7:
            timing_change = self.setlastpos(s[6]).strip() != "0"

        if beat_len < 0:
            slider_velocity = 100.0 / -beat_len
        else:
            slider_velocity = 1.0

        if timing_change:
            beat_len = min(60000.0, max(6.0, beat_len))
            b.timing_points.append(TimingPoint(time, beat_len))

        slider_velocity = min(10.0, max(0.1, slider_velocity))
        b.difficulty_points.append(DifficultyPoint(time, slider_velocity))


    def path(self, pos, string):
        tokens = string.split("|")
        kind = PATH_TYPES.get(self.setlastpos(tokens[0]).strip())
        if kind is None:
            kind = PATH_BEZIER

        vertices = [v2f()]
        for token in tokens[1:]:
            xy = self.setlastpos(token).split(":")
            if len(xy) < 2:
                raise ParseError("control point must be x:y")
            vertices.append(v2f(float(xy[0]) - pos.x, float(xy[1]) - pos.y))

        if kind == PATH_PERFECT:
            if len(vertices) != 3:
                kind = PATH_BEZIER
            else:
                a, b, c = vertices
                det = (b.y - a.y) * (c.x - a.x) - (b.x - a.x) * (c.y - a.y)
                if abs(det) <= 1e-3:
                    kind = PATH_LINEAR

        points = [PathControlPoint(vertices[0], kind)]
        last_index = len(vertices) - 1

        for i in range(1, len(vertices)):
            # a repeated vertex starts a new implicit segment, except on
            # the last vertex
            if vertices[i] == vertices[i - 1] and i != last_index \
                    and kind != PATH_CATMULL:
                points[-1].kind = kind
                continue
            points.append(PathControlPoint(vertices[i]))

        return points


    def objects(self, b, line):
        s = line.split(",")

        if len(s) < 5:
            raise ParseError(
                "hitobject must have at least 5 fields"
            )

        pos = v2f(
            float(self.setlastpos(s[0])),
            float(self.setlastpos(s[1]))
        )
        time = float(self.setlastpos(s[2]))
        objtype = int(self.setlastpos(s[3]))
        sound = int(self.setlastpos(s[4]))

        if objtype & OBJ_CIRCLE != 0:
            h = HitObject(pos, time, OBJ_CIRCLE, sound)

        # x,y,time,type,sound,points,spans,length,edge_sounds,...
        elif objtype & OBJ_SLIDER != 0:
            if len(s) < 7:
                raise ParseError(
                    "slider must have at least 7 fields"
                )

            spans = max(1, int(self.setlastpos(s[6])))
            pixel_len = None
            if len(s) > 7:
                pixel_len = max(0.0, float(self.setlastpos(s[7])))
                if pixel_len == 0.0:
                    pixel_len = None

            node_sounds = []
            if len(s) > 8 and s[8]:
                node_sounds = [int(x) for x in self.setlastpos(s[8]).split("|")]

            slider = Slider(spans, pixel_len, self.path(pos, s[5]),
                node_sounds)
            h = HitObject(pos, time, OBJ_SLIDER, sound, slider)

        # x,y,time,type,sound,end_time,...
        elif objtype & OBJ_SPINNER != 0:
            end_time = time
            if len(s) > 5:
                end_time = max(time, float(self.setlastpos(s[5])))
            h = HitObject(pos, time, OBJ_SPINNER, sound, end_time=end_time)

        # x,y,time,type,sound,end_time:samples
        elif objtype & OBJ_HOLD != 0:
            end_time = time
            if len(s) > 5:
                end_time = max(time,
                    float(self.setlastpos(s[5].split(":")[0])))
            h = HitObject(pos, time, OBJ_HOLD, sound, end_time=end_time)

        else:
            raise ParseError("invalid hitobject type %d" % objtype)

        b.hit_objects.append(h)


    def map(self, osu_file, bmap=None):
        """
        reads a file object and parses it into a beatmap object
        which is then returned.

        if bmap is specified, it will be reused instead of building
        a new one
        """
        self.done = False
        self.has_ar = False
        self.nline = 0

        section = ""
        b = bmap
        if b is None:
            b = Beatmap()
        else:
            b.reset()

        for line in osu_file:
            self.nline += 1
            self.lastline = line

            # comments (according to lazer)
            if line.startswith(" ") or line.startswith("_"):
                continue

            line = line.strip()
            if line == "":
                continue

            # c++ style comments
            if line.startswith("//"):
                continue

            # [SectionName]
            if line.startswith("["):
                section = line[1:-1]
                continue

            try:
                if section == "Metadata":
                    self.metadata(b, line)
                elif section == "General":
                    self.general(b, line)
                elif section == "Difficulty":
                    self.difficulty(b, line)
                elif section == "TimingPoints":
                    self.timing(b, line)
                elif section == "HitObjects":
                    self.objects(b, line)
                else:
                    findres = line.find(OSU_MAGIC)
                    if findres >= 0:
                        b.format_version = int(
                            line[findres+len(OSU_MAGIC):]
                        )

            except (ValueError, SyntaxError) as e:
                logger.warning("%s\n%s", e, self)

        if not self.has_ar:
            b.ar = b.od

        # sorted by time, file order on ties
        b.hit_objects.sort(key=lambda h: h.start_time)
        b.timing_points.sort(key=lambda p: p.time)
        b.difficulty_points.sort(key=lambda p: p.time)

        logger.debug("parsed %s", b)

        self.done = True
        return b


def parse_file(path, encoding="utf-8"):
    """convenience wrapper around parser().map for a file path"""
    p = parser()
    with open(path, encoding=encoding) as f:
        return p.map(f)
