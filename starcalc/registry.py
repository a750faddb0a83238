"""
revision lookup by name and by beatmap mode.
"""

import logging

from . import (
    fruits_2022, fruits_ppv1, mania_2018, mania_2022, mania_ppv1,
    osu_2015, osu_2015_february, osu_2018, osu_2019, osu_2021_january,
    osu_2021_july, osu_2022, osu_2024, taiko_2020, taiko_2022, taiko_2024,
    taiko_ppv1,
)
from .beatmap import MODE_CATCH, MODE_MANIA, MODE_STD, MODE_TAIKO
from .settings import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

# the 2014 and april 2015 releases share one calculation
REVISIONS = {
    "osu_2014_may": osu_2015,
    "osu_2014_july": osu_2015,
    "osu_2015_february": osu_2015_february,
    "osu_2015_april": osu_2015,
    "osu_2018": osu_2018,
    "osu_2019": osu_2019,
    "osu_2021_january": osu_2021_january,
    "osu_2021_july": osu_2021_july,
    "osu_2022": osu_2022,
    "osu_2024": osu_2024,
    "taiko_ppv1": taiko_ppv1,
    "taiko_2020": taiko_2020,
    "taiko_2022": taiko_2022,
    "taiko_2024": taiko_2024,
    "fruits_ppv1": fruits_ppv1,
    "fruits_2022": fruits_2022,
    "mania_ppv1": mania_ppv1,
    "mania_2018": mania_2018,
    "mania_2022": mania_2022,
}

MODE_KEYS = {
    MODE_STD: "osu",
    MODE_TAIKO: "taiko",
    MODE_CATCH: "catch",
    MODE_MANIA: "mania",
}


def get(name):
    try:
        return REVISIONS[name]
    except KeyError:
        raise KeyError("unknown revision %r, expected one of %s" % (
            name, ", ".join(sorted(REVISIONS))))


def default_revision(mode, config=None):
    config = config or DEFAULT_CONFIG
    key = MODE_KEYS.get(mode)
    if key is None:
        raise KeyError("no revision for mode %r" % mode)
    return config['revisions'][key]


def calculate(bmap, revision=None, config=None, **kwargs):
    """
    pp (with the difficulty attributes) of bmap. revision defaults to
    the configured revision for the beatmap mode, kwargs are Performance
    fields
    """
    if revision is None:
        revision = default_revision(bmap.mode, config)

    logger.debug("%s with %s", bmap, revision)
    return get(revision).pp(bmap, **kwargs)
