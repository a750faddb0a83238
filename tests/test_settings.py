import json
import logging

import pytest

from starcalc.log import set_logger
from starcalc.settings import DEFAULT_CONFIG, load_config, merge


def test_defaults_are_copied():
    config = load_config()
    assert config == DEFAULT_CONFIG
    config['log']['level'] = "DEBUG"
    assert DEFAULT_CONFIG['log']['level'] == "INFO"


def test_merge_is_nested():
    res = merge({"a": {"b": 1, "c": 2}, "d": 3}, {"a": {"b": 5}, "e": 6})
    assert res == {"a": {"b": 5, "c": 2}, "d": 3, "e": 6}


def test_load_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "revisions": {"osu": "osu_2019"},
        "graph": {"dpi": 50},
    }))

    config = load_config(str(path))
    assert config['revisions']['osu'] == "osu_2019"
    assert config['revisions']['mania'] == "mania_2022"
    assert config['graph']['dpi'] == 50
    assert config['graph']['step_size'] == 500


def test_load_config_rejects_non_objects(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_set_logger_writes_to_the_log_dir(tmp_path):
    config = merge(DEFAULT_CONFIG, {"log": {
        "dir": str(tmp_path / "logs"), "stdout": False, "level": "debug",
    }})
    logger = set_logger(config)
    try:
        assert logger.level == logging.DEBUG
        logging.getLogger("starcalc.test").info("hello")
        for handler in logger.handlers:
            handler.flush()
        text = (tmp_path / "logs" / "starcalc.log").read_text()
        assert "hello" in text
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
