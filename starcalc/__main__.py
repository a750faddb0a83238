"""
command line interface.

usage: starcalc map.osu [+HDDT] [95%] [300x] [1m] [-r REVISION]
       [--score N] [--stable] [--graph out.png] [--chunks] [--config config.json]
"""

import sys
import logging
import argparse

from . import registry
from .graph import chunks, plot_strains
from .log import set_logger
from .mods import mods_from_str, mods_str
from .parser import parser
from .settings import load_config

logger = logging.getLogger("starcalc")


def parse_play(args):
    """
    mods, accuracy, combo and misses in the classic format:
    +HDDT 95% 300x 1m
    """
    res = {"mods": 0}

    for arg in args:
        if arg.startswith("+"):
            res["mods"] = mods_from_str(arg[1:])
        elif arg.endswith("%"):
            res["acc"] = float(arg[:-1])
        elif arg.endswith("x"):
            res["combo"] = int(arg[:-1])
        elif arg.endswith("m"):
            res["misses"] = int(arg[:-1])
        else:
            raise ValueError("unrecognized argument %r" % arg)

    return res


def build_arg_parser():
    arg_parser = argparse.ArgumentParser(prog="starcalc",
        description="star rating and pp for osu! beatmaps")
    arg_parser.add_argument("map", help=".osu file")
    arg_parser.add_argument("play", nargs="*",
        help="+MODS, accuracy (95%%), combo (300x), misses (1m)")
    arg_parser.add_argument("-r", "--revision",
        help="one of: %s" % ", ".join(sorted(registry.REVISIONS)))
    arg_parser.add_argument("--score", type=int,
        help="score, for the score based mania revisions")
    arg_parser.add_argument("--stable", action="store_true",
        help="the score was set on stable, for osu_2024")
    arg_parser.add_argument("--graph", metavar="PNG",
        help="save a strain graph to this file")
    arg_parser.add_argument("--chunks", action="store_true",
        help="print the star rating over a moving window")
    arg_parser.add_argument("--config", help="json config file")
    return arg_parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)

    config = load_config(args.config)
    set_logger(config)

    try:
        play = parse_play(args.play)
    except ValueError as e:
        logger.error("%s", e)
        return 2

    p = parser()
    try:
        with open(args.map, encoding="utf-8") as f:
            bmap = p.map(f)
    except OSError as e:
        logger.error("can't read %s: %s", args.map, e)
        return 1

    revision = args.revision
    if revision is None:
        revision = registry.default_revision(bmap.mode, config)

    try:
        module = registry.get(revision)
    except KeyError as e:
        logger.error("%s", e.args[0])
        return 2

    if args.score is not None:
        play["score"] = args.score

    if args.stable:
        play["lazer"] = False

    mods = play["mods"]
    print("%s +%s (%s)" % (bmap, mods_str(mods), revision))

    attrs = module.stars(bmap, mods)
    print(attrs)

    res = module.pp(bmap, attributes=attrs, **play)
    print("%g pp" % res.pp)

    if args.chunks:
        for chunk in chunks(bmap, revision, mods,
                config['graph']['window_length'],
                config['graph']['step_size']):
            print("%d\t%g" % (chunk['time'], chunk['stars']))

    if args.graph:
        plot_strains(bmap, revision, args.graph, mods, config)

    return 0


if __name__ == "__main__":
    sys.exit(main())
