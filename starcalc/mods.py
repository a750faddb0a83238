"""
mods bitmask utils.

mods are passed around as the legacy osu! bitmask (an int).
"""

MODS_NOMOD = 0
MODS_NF = 1<<0
MODS_EZ = 1<<1
MODS_TD = MODS_TOUCH_DEVICE = 1<<2
MODS_HD = 1<<3
MODS_HR = 1<<4
MODS_DT = 1<<6
MODS_RX = 1<<7
MODS_HT = 1<<8
MODS_NC = 1<<9
MODS_FL = 1<<10
MODS_SO = 1<<12

MODS_SPEED_CHANGING = MODS_DT | MODS_HT | MODS_NC
MODS_MAP_CHANGING = MODS_HR | MODS_EZ | MODS_SPEED_CHANGING

# order matters for mods_str
_MOD_NAMES = [
    ("HD", MODS_HD),
    ("HT", MODS_HT),
    ("HR", MODS_HR),
    ("EZ", MODS_EZ),
    ("TD", MODS_TD),
    ("NC", MODS_NC),
    ("DT", MODS_DT),
    ("FL", MODS_FL),
    ("SO", MODS_SO),
    ("NF", MODS_NF),
    ("RX", MODS_RX),
]


def mods_str(mods):
    """
    gets string representation of mods, such as HDDT.
    returns "nomod" for nomod
    """
    if mods == 0:
        return "nomod"

    res = ""
    for name, bit in _MOD_NAMES:
        # NC implies DT, only print one of them
        if bit == MODS_DT and mods & MODS_NC != 0:
            continue
        if mods & bit != 0:
            res += name

    return res


def mods_from_str(string):
    """
    get mods bitmask from their string representation
    (touch device is TD). unknown characters are skipped
    """
    res = 0
    string = string.upper()

    while string != "":
        for name, bit in _MOD_NAMES:
            if string.startswith(name):
                res |= bit
                # NC is DT with a different sound
                if bit == MODS_NC:
                    res |= MODS_DT
                string = string[2:]
                break
        else:
            string = string[1:]

    return res


def has(mods, bit):
    return mods & bit != 0


def nf(mods): return has(mods, MODS_NF)
def ez(mods): return has(mods, MODS_EZ)
def td(mods): return has(mods, MODS_TD)
def hd(mods): return has(mods, MODS_HD)
def hr(mods): return has(mods, MODS_HR)
def dt(mods): return has(mods, MODS_DT | MODS_NC)
def rx(mods): return has(mods, MODS_RX)
def ht(mods): return has(mods, MODS_HT)
def fl(mods): return has(mods, MODS_FL)
def so(mods): return has(mods, MODS_SO)


def clock_rate(mods):
    """speed multiplier of the given mods. DT wins over HT"""
    if dt(mods):
        return 1.5
    if ht(mods):
        return 0.75
    return 1.0
