import pytest

from starcalc import osu_2019, registry, taiko_ppv1
from starcalc.beatmap import MODE_CATCH, MODE_MANIA, MODE_STD, MODE_TAIKO
from starcalc.settings import DEFAULT_CONFIG, merge


def test_get():
    assert registry.get("osu_2019") is osu_2019
    with pytest.raises(KeyError) as e:
        registry.get("osu_1999")
    assert "osu_1999" in e.value.args[0]


def test_every_revision_has_the_calculator_functions():
    for module in registry.REVISIONS.values():
        assert callable(module.stars)
        assert callable(module.strains)
        assert callable(module.pp)


def test_default_revision():
    assert registry.default_revision(MODE_STD) == "osu_2022"
    assert registry.default_revision(MODE_TAIKO) == "taiko_2024"
    assert registry.default_revision(MODE_CATCH) == "fruits_2022"
    assert registry.default_revision(MODE_MANIA) == "mania_2022"

    config = merge(DEFAULT_CONFIG, {"revisions": {"taiko": "taiko_ppv1"}})
    assert registry.default_revision(MODE_TAIKO, config) == "taiko_ppv1"

    with pytest.raises(KeyError):
        registry.default_revision(7)


def test_calculate(stream_map):
    res = registry.calculate(stream_map, "osu_2019", acc=99.0)
    assert res == osu_2019.pp(stream_map, acc=99.0)

    config = merge(DEFAULT_CONFIG, {"revisions": {"osu": "osu_2019"}})
    assert registry.calculate(stream_map, config=config, acc=99.0) == res


def test_calculate_converts(stream_map):
    res = registry.calculate(stream_map, "taiko_ppv1")
    assert res.difficulty == taiko_ppv1.stars(stream_map)
    assert res.difficulty.is_convert
