# wsc/utils/signal.py

"""
Radio signal utility functions.
"""

import math
from typing import NamedTuple

from wsc.analysis.types import SignalQuality


class Color(NamedTuple):
    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"


NO_SIGNAL_COLOR   = Color(0xDE, 0x06, 0x1A)
BEST_SIGNAL_COLOR = Color(0x33, 0x99, 0x00)

WORST_DBM = -90.0   # maps to NO_SIGNAL_COLOR
BEST_DBM  = -30.0   # maps to BEST_SIGNAL_COLOR

MEASURED_POWER_1M = -30.0   # dBm received at one metre
NEAR_FIELD_DBM    = -25.0
NEAR_FIELD_DIST_M = 0.5

# (lower bound exclusive, tier, description), strongest first
QUALITY_TIERS = [
    (-50, SignalQuality.EXCELLENT, "Router is close; full speed, fine for 4K video and gaming."),
    (-60, SignalQuality.VERY_GOOD, "Stable connection, suitable for work and streaming."),
    (-67, SignalQuality.GOOD,      "Stable, although speed may be below the maximum."),
    (-70, SignalQuality.FAIR,      "Lag and dropped video frames are possible."),
    (-80, SignalQuality.POOR,      "Low speed and frequent drops; unsuitable for games."),
    (-90, SignalQuality.VERY_POOR, "The connection barely works."),
]
NO_SIGNAL_DESCRIPTION = "No usable signal."


def _lerp(a: Color, b: Color, t: float) -> Color:
    return Color(*(round(x + (y - x) * t) for x, y in zip(a, b)))


def color_for(dbm: float) -> Color:
    """
    Map signal strength to a colour between red (no signal) and green.

    Parameters
    ----------
    dbm
        Signal strength in dBm.

    Returns
    -------
    Color
        ``NO_SIGNAL_COLOR`` for readings outside (-100, 0) dBm, otherwise a
        linear blend clamped to the [-90, -30] dBm range.
    """
    if dbm <= -100 or dbm >= 0:
        return NO_SIGNAL_COLOR
    fraction = (dbm - WORST_DBM) / (BEST_DBM - WORST_DBM)
    fraction = min(max(fraction, 0.0), 1.0)
    return _lerp(NO_SIGNAL_COLOR, BEST_SIGNAL_COLOR, fraction)


def path_loss_exponent(frequency_mhz: int) -> float:
    # 5/6 GHz attenuates faster indoors
    return 3.8 if frequency_mhz > 4000 else 3.0


def distance_meters(dbm: float, frequency_mhz: int) -> float:
    """
    Estimate distance to the transmitter with the log-distance path-loss model.

    Parameters
    ----------
    dbm
        Received signal strength in dBm.
    frequency_mhz
        Channel centre frequency; selects the path-loss exponent.

    Returns
    -------
    float
        Estimated distance in metres. Readings at or above -25 dBm are in the
        near field and return a fixed 0.5 m.
    """
    if dbm >= NEAR_FIELD_DBM:
        return NEAR_FIELD_DIST_M
    n = path_loss_exponent(frequency_mhz)
    return math.pow(10.0, (MEASURED_POWER_1M - dbm) / (10.0 * n))


def quality_for(dbm: float) -> SignalQuality:
    """Bucket a reading into a SignalQuality tier."""
    if dbm >= 0:
        return SignalQuality.NO_SIGNAL
    for bound, tier, _ in QUALITY_TIERS:
        if dbm > bound:
            return tier
    return SignalQuality.NO_SIGNAL


def describe_quality(quality: SignalQuality) -> str:
    for _, tier, text in QUALITY_TIERS:
        if tier is quality:
            return text
    return NO_SIGNAL_DESCRIPTION
