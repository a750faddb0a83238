from starcalc import mods as m


def test_mods_str():
    assert m.mods_str(0) == "nomod"
    assert m.mods_str(m.MODS_HD | m.MODS_DT) == "HDDT"
    assert m.mods_str(m.MODS_NC | m.MODS_DT) == "NC"


def test_mods_from_str():
    assert m.mods_from_str("hddt") == m.MODS_HD | m.MODS_DT
    assert m.mods_from_str("NC") == m.MODS_NC | m.MODS_DT
    assert m.mods_from_str("HRxx") == m.MODS_HR
    assert m.mods_from_str("") == 0


def test_clock_rate():
    assert m.clock_rate(0) == 1.0
    assert m.clock_rate(m.MODS_DT) == 1.5
    assert m.clock_rate(m.MODS_NC | m.MODS_DT) == 1.5
    assert m.clock_rate(m.MODS_HT) == 0.75
