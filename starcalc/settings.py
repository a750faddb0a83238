"""
configuration: a json file merged over DEFAULT_CONFIG.
values are read with config['section']['key']
"""

import copy
import json
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "log": {
        "level": "INFO",
        "dir": "log",
        "file": "starcalc.log",
        "stdout": True,
    },
    "revisions": {
        "osu": "osu_2022",
        "taiko": "taiko_2024",
        "catch": "fruits_2022",
        "mania": "mania_2022",
    },
    "graph": {
        "window_length": 3000,
        "step_size": 500,
        "style": "ggplot",
        "dpi": 100,
    },
}


def merge(base, override):
    """nested dict merge, override wins"""
    res = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(res.get(key), dict):
            res[key] = merge(res[key], value)
        else:
            res[key] = value
    return res


def load_config(path=None):
    """DEFAULT_CONFIG with the json file at path merged over it"""
    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path, encoding="utf-8") as f:
        config = json.load(f)

    if not isinstance(config, dict):
        raise ValueError("%s: expected a json object" % path)

    logger.debug("loaded config from %s", path)
    return merge(DEFAULT_CONFIG, config)
