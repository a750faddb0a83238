"""
numeric helpers shared by the strain skills.

these are pure functions: every revision keeps its own constants and
section bookkeeping and only borrows the arithmetic from here.
"""

import math

import numpy as np


def strain_decay(ms, base):
    """decay factor after ms milliseconds for the given decay base"""
    try:
        return base ** (ms / 1000.0)
    except OverflowError:
        # negative intervals grow past the float range
        return math.inf


def sorted_peaks(peaks, non_zero=False):
    """peaks sorted descending, optionally without non-positive values"""
    if non_zero:
        peaks = [p for p in peaks if p > 0.0]
    return sorted(peaks, reverse=True)


def weighted_sum(peaks, decay_weight, non_zero=False):
    """
    sum of peak[i] * decay_weight ** i over the peaks sorted
    descending
    """
    difficulty = 0.0
    weight = 1.0

    for strain in sorted_peaks(peaks, non_zero):
        difficulty += strain * weight
        weight *= decay_weight

    return difficulty


def lerp(start, end, amount):
    return start + (end - start) * amount


def reverse_lerp(x, start, end):
    return min(1.0, max(0.0, (x - start) / (end - start)))


def smoothstep(x, start, end):
    x = reverse_lerp(x, start, end)
    return x * x * (3.0 - 2.0 * x)


def smootherstep(x, start, end):
    x = reverse_lerp(x, start, end)
    return x * x * x * (x * (6.0 * x - 15.0) + 10.0)


def logistic(x, midpoint_offset, multiplier, max_value=1.0):
    return max_value / (1.0 + math.exp(multiplier * (midpoint_offset - x)))


def norm(p, *values):
    """
    p-norm of non-negative values, scaled by the largest one so the
    powers stay in the float range
    """
    hi = max(values)
    if hi <= 0.0 or math.isinf(hi):
        return hi
    return hi * sum((v / hi) ** p for v in values) ** (1.0 / p)


def to_f32(x):
    """rounds a float to single precision"""
    return float(np.float32(x))
