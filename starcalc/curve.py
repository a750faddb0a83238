"""
slider path geometry.

control points are turned into a flattened polyline (linear, perfect
circle, bezier or catmull segments) whose length is then trimmed or
extended to the length the beatmap expects.
"""

import math

BEZIER_TOLERANCE = 0.25
CATMULL_DETAIL = 50
CIRCULAR_ARC_TOLERANCE = 0.1

# float32 machine epsilon, the degenerate triangle check is done against it
ARC_EPSILON = 1.1920929e-07

PATH_LINEAR = "L"
PATH_PERFECT = "P"
PATH_BEZIER = "B"
PATH_CATMULL = "C"


class v2f:
    """2D vector with float values"""
    def __init__(self, x=0.0, y=0.0):
        self.x = x
        self.y = y

    def __add__(self, other):
        return v2f(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        return v2f(self.x - other.x, self.y - other.y)

    def __mul__(self, other):
        return v2f(self.x * other, self.y * other)

    def __truediv__(self, other):
        return v2f(self.x / other, self.y / other)

    def __eq__(self, other):
        return self.x == other.x and self.y == other.y

    def __hash__(self):
        return hash((self.x, self.y))

    def len(self):
        return math.sqrt(self.x * self.x + self.y * self.y)

    def len_squared(self):
        return self.x * self.x + self.y * self.y

    def dot(self, other):
        return self.x * other.x + self.y * other.y

    def normalize(self):
        length = self.len()
        if length == 0.0:
            return v2f()
        return v2f(self.x / length, self.y / length)

    def __str__(self):
        return str(self.__dict__)

    def __repr__(self):
        return str(self)


def distance_points(p1, p2):
    return (p1 - p2).len()


def angle_from_points(p1, p2):
    return math.atan2(p2.y - p1.y, p2.x - p1.x)


class PathControlPoint:
    """
    a slider control point, relative to the slider head.

    fields:
    pos: v2f
    kind: one of the PATH_* constants if a new segment starts here,
          otherwise None
    """
    def __init__(self, pos=None, kind=None):
        self.pos = pos if pos is not None else v2f()
        self.kind = kind

    def __str__(self):
        return "%s%s" % (self.kind or "", self.pos)

    def __repr__(self):
        return str(self)


class SliderPath:
    """
    flattened slider path.

    fields:
    path: list of v2f
    lengths: cumulative length at each path vertex
    """
    def __init__(self, control_points, expected_dist=None):
        self.path = self._calculate_path(control_points)
        self.lengths = self._calculate_length(control_points, expected_dist)


    def dist(self):
        return self.lengths[-1] if self.lengths else 0.0


    def position_at(self, progress):
        """position at progress (0-1) along the path"""
        d = min(1.0, max(0.0, progress)) * self.dist()
        return self.point_at_distance(d)


    def point_at_distance(self, d):
        d = min(self.dist(), max(0.0, d))
        return self._interpolate_vertices(self._idx_of_dist(d), d)


    def _idx_of_dist(self, d):
        # binary search, insertion index when d isn't an exact length
        lo, hi = 0, len(self.lengths)
        while lo < hi:
            mid = (lo + hi) // 2
            if self.lengths[mid] < d:
                lo = mid + 1
            else:
                hi = mid
        return lo


    def _interpolate_vertices(self, i, d):
        if not self.path:
            return v2f()

        if i <= 0:
            return self.path[0]
        if i >= len(self.path):
            return self.path[-1]

        p0 = self.path[i - 1]
        p1 = self.path[i]
        d0 = self.lengths[i - 1]
        d1 = self.lengths[i]

        # almost identical points
        if abs(d0 - d1) <= 2.220446049250313e-16:
            return p0

        w = (d - d0) / (d1 - d0)
        return p0 + (p1 - p0) * w


    # ---------------------------------------------------------------------
    # path flattening

    def _calculate_path(self, points):
        if not points:
            return []

        vertices = [p.pos for p in points]
        path = []
        start = 0

        for i in range(len(points)):
            if points[i].kind is None and i < len(points) - 1:
                continue

            # the current vertex ends the segment
            segment = vertices[start:i + 1]
            kind = points[start].kind or PATH_LINEAR
            self._calculate_subpath(path, segment, kind)

            # the next segment starts at the current vertex
            start = i

        deduped = []
        for p in path:
            if not deduped or deduped[-1] != p:
                deduped.append(p)

        return deduped


    def _calculate_length(self, points, expected):
        path = self.path
        calculated = 0.0
        lengths = [0.0]

        for i in range(1, len(path)):
            calculated += (path[i] - path[i - 1]).len()
            lengths.append(calculated)

        if expected is None or abs(expected - calculated) <= 2.220446049250313e-16:
            return lengths

        # stable doesn't extend sliders whose last two control points
        # are equal
        if (len(points) >= 2 and points[-1].pos == points[-2].pos
                and expected > calculated):
            lengths.append(calculated)
            return lengths

        # the last length is always incorrect
        lengths.pop()

        end_idx = len(path) - 1

        # trim segments past the expected distance
        if calculated > expected:
            while lengths and lengths[-1] >= expected:
                lengths.pop()
                path.pop()
                end_idx -= 1

        if end_idx <= 0:
            # expected distance is zero or negative
            return [0.0]

        # shorten or lengthen the last segment
        direction = (path[end_idx] - path[end_idx - 1]).normalize()
        path[end_idx] = path[end_idx - 1] + direction * (expected - lengths[-1])
        lengths.append(expected)

        return lengths


    def _calculate_subpath(self, path, sub_points, kind):
        if kind == PATH_BEZIER:
            approximate_bezier(path, sub_points)
        elif kind == PATH_CATMULL:
            approximate_catmull(path, sub_points)
        elif kind == PATH_PERFECT:
            if len(sub_points) == 3 and approximate_circular_arc(path, *sub_points):
                return
            approximate_bezier(path, sub_points)
        else:
            path.extend(sub_points)


# -------------------------------------------------------------------------
# approximations

def approximate_bezier(path, points):
    """adaptive subdivision until every piece is flat enough"""
    count = len(points)
    if count == 0:
        return

    to_flatten = [list(points)]

    while to_flatten:
        parent = to_flatten.pop()

        if _bezier_is_flat_enough(parent):
            _bezier_approximate(parent, path)
            continue

        left, right = _bezier_subdivide(parent)
        to_flatten.append(right)
        to_flatten.append(left)

    path.append(points[-1])


def _bezier_is_flat_enough(points):
    limit = BEZIER_TOLERANCE * BEZIER_TOLERANCE * 4.0
    for i in range(1, len(points) - 1):
        d = points[i - 1] - points[i] * 2.0 + points[i + 1]
        if d.len_squared() > limit:
            return False
    return True


def _bezier_subdivide(points):
    count = len(points)
    midpoints = list(points)
    left = [None] * count
    right = [None] * count

    for i in range(count - 1, 0, -1):
        left[count - i - 1] = midpoints[0]
        right[i] = midpoints[i]
        for j in range(i):
            midpoints[j] = (midpoints[j] + midpoints[j + 1]) / 2.0

    left[count - 1] = midpoints[0]
    right[0] = midpoints[0]

    return left, right


def _bezier_approximate(points, path):
    # de casteljau
    count = len(points)
    left, right = _bezier_subdivide(points)
    buf = left + right[1:]

    path.append(points[0])
    for i in range(1, count - 1):
        index = 2 * i
        path.append((buf[index - 1] + buf[index] * 2.0 + buf[index + 1]) * 0.25)


def approximate_catmull(path, points):
    n = len(points)
    if n == 1:
        return

    for i in range(n - 1):
        v1 = points[i - 1] if i > 0 else points[i]
        v2 = points[i]
        v3 = points[i + 1] if i < n - 1 else v2 * 2.0 - v1
        v4 = points[i + 2] if i < n - 2 else v3 * 2.0 - v2

        for c in range(CATMULL_DETAIL):
            path.append(_catmull_point(v1, v2, v3, v4, c / CATMULL_DETAIL))
            path.append(_catmull_point(v1, v2, v3, v4, (c + 1) / CATMULL_DETAIL))


def _catmull_point(v1, v2, v3, v4, t):
    t2 = t * t
    t3 = t2 * t

    return v2f(
        0.5 * (2.0 * v2.x + (-v1.x + v3.x) * t
            + (2.0 * v1.x - 5.0 * v2.x + 4.0 * v3.x - v4.x) * t2
            + (-v1.x + 3.0 * v2.x - 3.0 * v3.x + v4.x) * t3),
        0.5 * (2.0 * v2.y + (-v1.y + v3.y) * t
            + (2.0 * v1.y - 5.0 * v2.y + 4.0 * v3.y - v4.y) * t2
            + (-v1.y + 3.0 * v2.y - 3.0 * v3.y + v4.y) * t3),
    )


def approximate_circular_arc(path, a, b, c):
    """returns False for degenerate triangles"""
    if abs((b.y - a.y) * (c.x - a.x) - (b.x - a.x) * (c.y - a.y)) <= ARC_EPSILON:
        return False

    d = 2.0 * (a.x * (b - c).y + b.x * (c - a).y + c.x * (a - b).y)
    a_sq = a.len_squared()
    b_sq = b.len_squared()
    c_sq = c.len_squared()

    centre = v2f(
        (a_sq * (b - c).y + b_sq * (c - a).y + c_sq * (a - b).y) / d,
        (a_sq * (c - b).x + b_sq * (a - c).x + c_sq * (b - a).x) / d,
    )

    d_a = a - centre
    d_c = c - centre
    radius = d_a.len()

    theta_start = math.atan2(d_a.y, d_a.x)
    theta_end = math.atan2(d_c.y, d_c.x)
    while theta_end < theta_start:
        theta_end += 2.0 * math.pi

    direction = 1.0
    theta_range = theta_end - theta_start

    # draw on the side of AC where B lies
    ortho_a_to_c = v2f((c - a).y, -(c - a).x)
    if ortho_a_to_c.dot(b - a) < 0.0:
        direction = -direction
        theta_range = 2.0 * math.pi - theta_range

    if 2.0 * radius <= CIRCULAR_ARC_TOLERANCE:
        amount_points = 2
    else:
        divisor = 2.0 * math.acos(1.0 - CIRCULAR_ARC_TOLERANCE / radius)
        amount_points = max(2, int(math.ceil(theta_range / divisor)))

    for i in range(amount_points):
        fract = i / (amount_points - 1)
        theta = theta_start + direction * fract * theta_range
        path.append(centre + v2f(math.cos(theta), math.sin(theta)) * radius)

    return True
