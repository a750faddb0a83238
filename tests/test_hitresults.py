import pytest

from starcalc.attributes import CatchDifficultyAttributes
from starcalc.calculator import Difficulty, Performance
from starcalc.hitresults import (
    CatchState, ManiaState, OsuState, ScoreOrigin, acc_calc, acc_round,
    catch_state, mania_acc, mania_state, osu_state, osu_state_legacy,
    taiko_state,
)


def test_acc_calc():
    assert acc_calc(1, 0, 0, 0) == 1.0
    assert acc_calc(0, 0, 0, 0) == 0.0
    assert acc_calc(1, 1, 0, 0) == pytest.approx(400.0 / 600.0)


def test_acc_round():
    n300, n100, n50 = acc_round(95.0, 200, 0)
    assert (n300, n100, n50) == (185, 15, 0)
    assert acc_calc(n300, n100, n50, 0) == pytest.approx(0.95)


def test_acc_round_falls_back_to_50s():
    n300, n100, n50 = acc_round(20.0, 100, 0)
    assert n100 == 0
    assert n50 > 0
    assert n300 + n50 == 100


def test_performance_defaults():
    perf = Performance()
    assert perf.get_acc() is None
    assert perf.get_misses() == 0
    assert perf.best_case()
    assert Performance(acc=150.0).get_acc() == 1.0
    assert not Performance(priority="worst").best_case()

    with pytest.raises(ValueError):
        Performance(priority="average").best_case()


def test_difficulty_clock_rate_and_take():
    assert Difficulty(mods=64).get_clock_rate() == 1.5
    assert Difficulty(mods=256).get_clock_rate() == 0.75
    assert Difficulty(mods=64, clock_rate=1.2).get_clock_rate() == 1.2
    assert Difficulty(clock_rate=1000.0).get_clock_rate() == 100.0
    assert Difficulty(passed_objects=2).take([1, 2, 3]) == [1, 2]
    assert Difficulty().take([1, 2, 3]) == [1, 2, 3]


def test_osu_state_legacy_rounds_accuracy():
    state = osu_state_legacy(Performance(acc=95.0), 200, 200)
    assert (state.n300, state.n100, state.n50) == (185, 15, 0)
    assert state.combo == 200


def test_osu_state_fills_best_and_worst():
    state = osu_state(Performance(n100=3), 10, 10)
    assert (state.n300, state.n100, state.n50) == (7, 3, 0)

    state = osu_state(Performance(priority="worst"), 10, 10)
    assert (state.n300, state.n100, state.n50) == (0, 0, 10)


def test_osu_state_with_misses_caps_combo():
    state = osu_state(Performance(misses=2, combo=500), 10, 10)
    assert state.misses == 2
    assert state.combo == 8
    assert state.total_hits() == 10


def test_osu_state_searches_accuracy():
    state = osu_state(Performance(acc=90.0), 100, 100)
    assert state.total_hits() == 100
    assert state.accuracy() == pytest.approx(0.9, abs=0.005)


def test_osu_state_accuracy_with_slider_judgements():
    origin = ScoreOrigin(max_large_ticks=5, max_slider_ends=2)
    state = OsuState(0, 10, 0, 0, 0, slider_end_hits=1, large_tick_hits=0)
    assert state.accuracy(origin) == pytest.approx(63.0 / 69.0)
    assert state.accuracy() == 1.0

    # judgements past the map maximum are ignored
    state.large_tick_hits = 50
    assert state.accuracy(origin) == pytest.approx(66.0 / 69.0)


def test_osu_state_with_origin():
    origin = ScoreOrigin(max_large_ticks=10, max_slider_ends=20)

    state = osu_state(Performance(acc=95.0), 100, 100, origin)
    assert (state.slider_end_hits, state.large_tick_hits) == (20, 10)
    assert state.total_hits() == 100
    assert state.accuracy(origin) == pytest.approx(0.95, abs=0.005)

    state = osu_state(Performance(slider_end_hits=50, large_tick_hits=3),
        100, 100, origin)
    assert (state.slider_end_hits, state.large_tick_hits) == (20, 3)
    assert state.n300 == 100


def test_taiko_state():
    state = taiko_state(Performance(acc=95.0), 100, 100)
    assert (state.n300, state.n100, state.misses) == (90, 10, 0)
    assert state.accuracy() == pytest.approx(0.95)

    state = taiko_state(Performance(misses=4), 100, 100)
    assert (state.n300, state.n100, state.misses) == (96, 0, 4)


def test_catch_state_accuracy():
    assert CatchState().accuracy() == 1.0
    assert CatchState(0, 10, 5, 5, 5, 0).accuracy() == pytest.approx(0.8)


def _catch_attrs():
    return CatchDifficultyAttributes(n_fruits=10, n_droplets=5,
        n_tiny_droplets=20)


def test_catch_state_misses_take_droplets_first():
    state = catch_state(Performance(misses=2), _catch_attrs())
    assert (state.fruits, state.droplets, state.misses) == (10, 3, 2)
    assert state.combo == 13
    assert state.tiny_droplets == 20
    assert state.tiny_droplet_misses == 0


def test_catch_state_accuracy_picks_tiny_droplets():
    state = catch_state(Performance(acc=80.0), _catch_attrs())
    assert (state.fruits, state.droplets) == (10, 5)
    assert state.tiny_droplets == 13
    assert state.tiny_droplet_misses == 7
    assert state.accuracy() == pytest.approx(0.8)


def test_mania_accuracy():
    assert mania_acc(0, 0, 0, 0, 0) == 0.0
    assert ManiaState(n320=10).custom_accuracy() == 1.0
    assert ManiaState(n300=10).custom_accuracy() == pytest.approx(30.0 / 32.0)
    assert ManiaState(n300=5, n320=5).accuracy() == 1.0


def test_mania_state_without_accuracy():
    state = mania_state(Performance(), 100)
    assert state.n320 == 100

    state = mania_state(Performance(priority="worst"), 100)
    assert state.n50 == 100


def test_mania_state_single_missing_judgement():
    perf = Performance(acc=90.0, n_geki=50, n300=30, n_katu=10, n100=5)
    state = mania_state(perf, 100)
    assert state.n50 == 5
    assert state.total_hits() == 100


def test_mania_state_searches_accuracy():
    state = mania_state(Performance(acc=95.0, misses=1), 100)
    assert state.total_hits() == 100
    assert state.misses == 1
    assert state.accuracy() == pytest.approx(0.95, abs=0.005)
