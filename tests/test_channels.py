import pytest

from wsc.analysis.channels import (
    band_of,
    channel_of,
    recommend_channel,
    recommend_for_frequency,
    score_24ghz,
    score_unii1,
    scoring_band_for,
    strongest_first,
)
from wsc.analysis.types import AccessPointObservation, Band, ScoringBand


def ap(freq, level, ssid="net"):
    return AccessPointObservation(ssid, freq, level)


def test_24ghz_grid_steps_one_channel_per_5mhz():
    for i, freq in enumerate(range(2412, 2473, 5)):
        assert channel_of(freq) == i + 1
    assert channel_of(2472) == 13


def test_channel_14_and_off_grid():
    assert channel_of(2484) == 14
    assert channel_of(2485) == 0
    assert channel_of(2411) == 0


@pytest.mark.parametrize("freq, ch", [
    (5170, 34),
    (5180, 36),
    (5200, 40),
    (5240, 48),
    (5745, 149),
    (5825, 165),
])
def test_5ghz_channels(freq, ch):
    assert channel_of(freq) == ch


def test_6ghz_channels():
    assert channel_of(5945) == 1
    assert channel_of(5955) == 3
    assert channel_of(7115) == 235


@pytest.mark.parametrize("freq", [0, -5, 1000, 4000, 5900, 7130, 60000])
def test_unknown_frequencies_map_to_zero(freq):
    assert channel_of(freq) == 0


def test_band_of():
    assert band_of(2437) is Band.GHZ_2_4
    assert band_of(5180) is Band.GHZ_5
    assert band_of(5955) is Band.GHZ_6
    assert band_of(0) is Band.UNKNOWN
    assert band_of(8000) is Band.UNKNOWN


def test_scoring_band_for():
    assert scoring_band_for(2412) is ScoringBand.GHZ_2_4
    assert scoring_band_for(2484) is ScoringBand.GHZ_2_4
    assert scoring_band_for(5180) is ScoringBand.GHZ_5_UNII1
    assert scoring_band_for(5250) is ScoringBand.GHZ_5_UNII1
    assert scoring_band_for(5745) is ScoringBand.UNSCORED
    assert scoring_band_for(5975) is ScoringBand.UNSCORED


def test_strong_neighbour_on_channel_1_is_avoided():
    snapshot = [ap(2412, -40), ap(2437, -70), ap(2462, -70)]
    rec = recommend_channel(ScoringBand.GHZ_2_4, snapshot)
    assert rec.channel in (6, 11)
    # equal scores: first candidate in declared order wins
    assert rec.channel == 6


def test_empty_snapshot_defaults():
    assert recommend_channel(ScoringBand.GHZ_2_4, []).channel == 1
    assert recommend_channel(ScoringBand.GHZ_5_UNII1, []).channel == 36


def test_24ghz_overlap_weights_decay_with_channel_distance():
    # channel 3 at 0 dBm: power 1.0, two channels from 1, three from 6
    scores = score_24ghz([ap(2422, 0)])
    assert scores[1] == pytest.approx(1.0 / 3)
    assert scores[6] == pytest.approx(0.0)
    assert scores[11] == 0.0


def test_24ghz_scoring_ignores_5ghz_observations():
    scores = score_24ghz([ap(5180, -20)])
    assert all(v == 0.0 for v in scores.values())


def test_24ghz_sums_in_linear_space():
    # two -60 dBm APs equal one -57 dBm AP (roughly double power)
    two = score_24ghz([ap(2437, -60), ap(2437, -60)])[6]
    one = score_24ghz([ap(2437, -57)])[6]
    assert two == pytest.approx(one, rel=0.01)


def test_unii1_counts_only_exact_candidates():
    snapshot = [ap(5180, -50), ap(5200, -80), ap(5190, -30), ap(5745, -20)]
    scores = score_unii1(snapshot)
    assert scores[36] == pytest.approx(1e-5)
    assert scores[40] == pytest.approx(1e-8)
    assert scores[44] == 0.0
    assert scores[48] == 0.0
    assert recommend_channel(ScoringBand.GHZ_5_UNII1, snapshot).channel == 44


def test_scores_never_negative():
    snapshot = [ap(2412 + 5 * i, -95 + i) for i in range(13)]
    assert all(v >= 0 for v in score_24ghz(snapshot).values())


def test_unscored_band_reports_clean():
    rec = recommend_for_frequency(5975, [ap(5975, -30)])
    assert rec.band is ScoringBand.UNSCORED
    assert rec.channel is None
    assert rec.scores == {}


def test_recommend_for_frequency_selects_band():
    snapshot = [ap(5180, -40), ap(2412, -40)]
    assert recommend_for_frequency(5200, snapshot).channel == 40
    assert recommend_for_frequency(2437, snapshot).channel == 6


def test_duplicate_observations_each_contribute():
    single = score_24ghz([ap(2437, -60, "a")])[6]
    doubled = score_24ghz([ap(2437, -60, "a"), ap(2437, -60, "a")])[6]
    assert doubled == pytest.approx(2 * single)


def test_scan_listing_is_strongest_first_and_stable():
    a, b, c, d = ap(2412, -70, "a"), ap(5180, -40, "b"), ap(2437, -70, "c"), ap(2462, -90, "")
    listing = strongest_first([a, b, c, d])
    assert listing == [b, a, c, d]
    assert listing[-1].display_ssid == "<hidden>"
