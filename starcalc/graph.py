"""
strain graphs.

chunks() computes the star rating over a moving window of the map, to
check difficulty spikes and dips. plot_strains() renders the section
peaks of every skill to a png.
"""

import logging

import numpy as np
import matplotlib as mpl
mpl.use('Agg') # for non gui
from matplotlib import ticker
import matplotlib.pyplot as plt

from . import registry
from .settings import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


def _window(bmap, start, end):
    res = bmap.copy()
    res.hit_objects = [h for h in bmap.hit_objects
        if start <= h.start_time < end]
    return res


def chunks(bmap, revision, mods=0, window_length=3000, step_size=500):
    """
    runs the revision's star calculation on windows of window_length ms
    every step_size ms.

    returns a list of dicts with the chunk start time, the stars and the
    full difficulty attributes:
    {'time': ms, 'stars': float, 'attributes': ...}
    """
    if window_length <= 0 or step_size <= 0:
        raise ValueError("window_length and step_size must be positive")

    module = registry.get(revision)
    results = []

    if not bmap.hit_objects:
        return results

    seek = 0.0
    last_time = bmap.hit_objects[-1].start_time

    while seek <= last_time:
        window = _window(bmap, seek, seek + window_length)
        attrs = module.stars(window, mods) if window.hit_objects else None

        results.append({
            'time': seek,
            'stars': attrs.stars if attrs is not None else 0.0,
            'attributes': attrs,
        })
        seek += step_size

    logger.debug("%s: %d chunks", bmap, len(results))
    return results


def plot_time_format(time, pos=None):
    s, mili = divmod(time, 1000)
    m, s = divmod(s, 60)
    return "%d:%02d" % (m, s)


def plot_strains(bmap, revision, filepath, mods=0, config=None):
    """
    plots the section peaks of every skill of the revision against map
    time and saves the figure to filepath
    """
    config = config or DEFAULT_CONFIG
    module = registry.get(revision)
    strains = module.strains(bmap, mods)
    section_len = strains.pop("section_len")

    fig = plt.figure(figsize=(6.3, 1.70))
    plt.rcParams['text.antialiased'] = True
    plt.style.use(config['graph']['style'])
    ax = fig.add_subplot(111)

    for name, peaks in strains.items():
        if not len(peaks):
            continue
        time_list = np.arange(len(peaks)) * section_len
        ax.plot(time_list, peaks, label=name, linewidth=2, antialiased=True)

    fig.gca().xaxis.set_major_formatter(
        ticker.FuncFormatter(plot_time_format))
    fig.gca().xaxis.grid(True)
    fig.gca().yaxis.grid(False)
    if any(len(p) for p in strains.values()):
        ax.legend(loc='best')
    ax.set_title(str(bmap), fontsize=8)
    fig.tight_layout()

    fig.savefig(filepath, dpi=config['graph']['dpi'])
    plt.close(fig)

    logger.info("saved strain graph to %s", filepath)
    return filepath
