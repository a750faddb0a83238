"""
star rating and pp calculation for osu! beatmaps, across game modes and
algorithm revisions. see starcalc.registry for the revision modules.
"""

__version__ = "1.0.0"
