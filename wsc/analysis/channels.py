"""
Channel mapping and least-congested channel recommendation.

Interference is accumulated in linear power space: each observed level is
converted with ``10 ** (dBm / 10)`` before being summed, so that a single
strong neighbour outweighs several faint ones.
"""

from __future__ import annotations
from typing import Dict, Iterable

from wsc.analysis.types import AccessPointObservation, Band, Recommendation, ScoringBand
from wsc.utils.log import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Band edges (MHz)
CH14_FREQ        = 2484
BAND_24_SPLIT    = 4000    # below: 2.4 GHz
BAND_6_START     = 5925    # 6 GHz band starts here
BAND_6_END       = 7125
UNII1_LOW        = 5170
UNII1_HIGH       = 5250

CANDIDATES_24    = (1, 6, 11)          # non-overlapping 20 MHz channels
CANDIDATES_UNII1 = (36, 40, 44, 48)
MAX_OVERLAP_24   = 2                   # channels apart that still interfere
# -----------------------------------------------------------------------------


def channel_of(frequency_mhz: int) -> int:
    """
    Convert a centre frequency to its Wi-Fi channel number.

    Parameters
    ----------
    frequency_mhz
        Frequency in MHz.

    Returns
    -------
    int
        Channel number, or 0 if the frequency is not on a known grid.
    """
    f = frequency_mhz
    if f == CH14_FREQ:
        return 14
    if 2412 <= f <= 2472:
        return (f - 2412) // 5 + 1
    if 5170 <= f <= 5825:
        return (f - 5170) // 5 + 34
    if 5945 <= f <= 7125:
        return (f - 5945) // 5 + 1
    return 0


def band_of(frequency_mhz: int) -> Band:
    if 0 < frequency_mhz < BAND_24_SPLIT:
        return Band.GHZ_2_4
    if BAND_24_SPLIT <= frequency_mhz < BAND_6_START:
        return Band.GHZ_5
    if BAND_6_START <= frequency_mhz <= BAND_6_END:
        return Band.GHZ_6
    return Band.UNKNOWN


def scoring_band_for(current_frequency_mhz: int) -> ScoringBand:
    """
    Pick the scoring mode for the band the device is currently on.

    Only 2.4 GHz and the UNII-1 part of 5 GHz are scored; 6 GHz and the upper
    5 GHz sub-bands are treated as uncongested.
    """
    if current_frequency_mhz <= CH14_FREQ:
        return ScoringBand.GHZ_2_4
    if UNII1_LOW <= current_frequency_mhz <= UNII1_HIGH:
        return ScoringBand.GHZ_5_UNII1
    return ScoringBand.UNSCORED


def _linear_power(level_dbm: float) -> float:
    return 10.0 ** (level_dbm / 10.0)


def score_24ghz(snapshot: Iterable[AccessPointObservation]) -> Dict[int, float]:
    """
    Score channels 1/6/11 by weighted interference from 2.4 GHz neighbours.

    A neighbour ``d`` channels away (d <= 2) contributes ``power / (d + 1)``.
    """
    scores = {c: 0.0 for c in CANDIDATES_24}
    for ap in snapshot:
        if ap.frequency_mhz >= BAND_24_SPLIT:
            continue
        channel = channel_of(ap.frequency_mhz)
        weight = _linear_power(ap.level_dbm)
        for candidate in CANDIDATES_24:
            distance = abs(candidate - channel)
            if distance <= MAX_OVERLAP_24:
                scores[candidate] += weight / (distance + 1)
    return scores


def score_unii1(snapshot: Iterable[AccessPointObservation]) -> Dict[int, float]:
    """
    Score channels 36/40/44/48 by co-channel power only.
    """
    scores = {c: 0.0 for c in CANDIDATES_UNII1}
    for ap in snapshot:
        if not UNII1_LOW <= ap.frequency_mhz <= UNII1_HIGH:
            continue
        channel = channel_of(ap.frequency_mhz)
        if channel in scores:
            scores[channel] += _linear_power(ap.level_dbm)
    return scores


def recommend_channel(
    band: ScoringBand,
    snapshot: Iterable[AccessPointObservation],
) -> Recommendation:
    """
    Recommend the least-congested channel for ``band``.

    Parameters
    ----------
    band
        Scoring mode, usually from :func:`scoring_band_for`.
    snapshot
        Access points seen in the latest scan.

    Returns
    -------
    Recommendation
        The minimum-score candidate; ties go to the first candidate in
        declared order. ``channel`` is None for UNSCORED bands.
    """
    band = ScoringBand(band)
    if band is ScoringBand.GHZ_2_4:
        scores = score_24ghz(snapshot)
    elif band is ScoringBand.GHZ_5_UNII1:
        scores = score_unii1(snapshot)
    else:
        return Recommendation(band=band, channel=None, scores={})

    # dicts keep candidate order, so min() returns the first minimum
    best = min(scores, key=scores.__getitem__)
    logger.debug("Channel scores for %s: %s -> %d", band.value, scores, best)
    return Recommendation(band=band, channel=best, scores=scores)


def recommend_for_frequency(
    current_frequency_mhz: int,
    snapshot: Iterable[AccessPointObservation],
) -> Recommendation:
    return recommend_channel(scoring_band_for(current_frequency_mhz), snapshot)


def strongest_first(snapshot: Iterable[AccessPointObservation]) -> list[AccessPointObservation]:
    """
    Scan listing order: strongest signal first, ties kept in scan order.
    """
    return sorted(snapshot, key=lambda obs: obs.level_dbm, reverse=True)
