import pytest

from starcalc import registry
from starcalc.beatmap import MODE_CATCH, MODE_MANIA, MODE_STD, MODE_TAIKO

ALL = sorted(registry.REVISIONS)

# revisions that only take native mania charts
MANIA_ONLY = ("mania_ppv1",)

# mania revisions whose pp is computed from the score
SCORE_BASED = ("mania_ppv1", "mania_2018")


def _native_mode(name):
    if name.startswith("mania"):
        return MODE_MANIA
    if name.startswith("taiko"):
        return MODE_TAIKO
    if name.startswith("fruits"):
        return MODE_CATCH
    return MODE_STD


def _unsupported_mode(name):
    if name.startswith("osu") or name.startswith("fruits"):
        return MODE_MANIA
    if name.startswith("taiko"):
        return MODE_CATCH
    return MODE_TAIKO


@pytest.fixture
def chart(stream_map, mania_map):
    def get(name):
        if name in MANIA_ONLY:
            return mania_map
        return stream_map
    return get


@pytest.mark.parametrize("name", ALL)
def test_single_object_has_zero_stars(name, make_map):
    module = registry.get(name)
    bmap = make_map([(64.0, 192.0, 1000.0)], mode=_native_mode(name))
    attrs = module.stars(bmap)
    assert attrs.stars == 0.0
    assert attrs.max_combo == 0
    assert all(v == 0 for k, v in vars(attrs).items() if k.startswith("n_"))


@pytest.mark.parametrize("name", ALL)
def test_empty_map_has_zero_stars(name, make_map):
    module = registry.get(name)
    bmap = make_map([], mode=_native_mode(name))
    assert module.stars(bmap).stars == 0.0


@pytest.mark.parametrize("name", ALL)
def test_stars_are_positive_and_repeatable(name, chart):
    module = registry.get(name)
    bmap = chart(name)

    first = module.stars(bmap)
    assert first.stars > 0.0
    assert module.stars(bmap) == first


@pytest.mark.parametrize("name", ALL)
def test_faster_clock_rate_is_harder(name, chart):
    module = registry.get(name)
    bmap = chart(name)
    assert module.stars(bmap, clock_rate=1.5).stars > \
        module.stars(bmap).stars


@pytest.mark.parametrize("name", ALL)
def test_passed_objects_limits_the_map(name, chart):
    module = registry.get(name)
    bmap = chart(name)
    assert module.stars(bmap, passed_objects=1).stars == 0.0
    assert module.stars(bmap, passed_objects=10).stars > 0.0


@pytest.mark.parametrize("name", ALL)
def test_strains(name, chart):
    module = registry.get(name)
    res = module.strains(chart(name))

    assert res["section_len"] > 0.0
    peaks = [v for k, v in res.items() if k != "section_len"]
    assert peaks
    assert any(len(p) > 0 for p in peaks)
    assert all(x >= 0.0 for p in peaks for x in p)


@pytest.mark.parametrize("name", ALL)
def test_unsupported_mode_gives_defaults(name, make_map):
    module = registry.get(name)
    bmap = make_map(
        [(64.0 + i * 10.0, 192.0, 1000.0 + i * 200.0) for i in range(10)],
        mode=_unsupported_mode(name))

    attrs = module.stars(bmap)
    assert attrs == type(attrs)()


@pytest.mark.parametrize("name", ALL)
def test_pp(name, chart):
    module = registry.get(name)
    bmap = chart(name)

    res = module.pp(bmap)
    assert res.pp > 0.0
    assert res.difficulty.stars > 0.0

    again = module.pp(bmap, attributes=module.stars(bmap))
    assert again.pp == pytest.approx(res.pp)


@pytest.mark.parametrize("name", ALL)
def test_pp_needs_a_map(name):
    with pytest.raises(ValueError):
        registry.get(name).pp()


@pytest.mark.parametrize("name", ALL)
def test_misses_lower_pp(name, chart):
    module = registry.get(name)
    bmap = chart(name)

    if name in SCORE_BASED:
        # misses only reach these through the score
        assert module.pp(bmap, score=800000).pp < module.pp(bmap).pp
        return

    assert module.pp(bmap, misses=5).pp < module.pp(bmap).pp
