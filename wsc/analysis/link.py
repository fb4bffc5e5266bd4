"""
Derived view of the current link for display.
"""

from wsc.analysis.channels import band_of, channel_of
from wsc.analysis.types import LinkSummary, SignalReading
from wsc.utils.signal import NO_SIGNAL_COLOR, color_for, distance_meters, quality_for

# platforms report this (or lower) when there is no association
RSSI_INVALID = -127


def is_connected(reading: SignalReading) -> bool:
    if not reading.connected:
        return False
    return RSSI_INVALID < reading.rssi < 0


def describe_link(reading: SignalReading) -> LinkSummary:
    """
    Build the metrics shown for one polling tick.

    A disconnected reading is reported with the no-signal colour and zero
    distance rather than running the signal models on a bogus RSSI.
    """
    connected = is_connected(reading)
    if not connected:
        return LinkSummary(
            connected=False,
            band=band_of(0),
            channel=0,
            color=NO_SIGNAL_COLOR.hex,
            distance_m=0.0,
            quality=quality_for(0),
            rssi=reading.rssi,
            link_speed_mbps=0,
        )
    return LinkSummary(
        connected=True,
        band=band_of(reading.frequency_mhz),
        channel=channel_of(reading.frequency_mhz),
        color=color_for(reading.rssi).hex,
        distance_m=distance_meters(reading.rssi, reading.frequency_mhz),
        quality=quality_for(reading.rssi),
        rssi=reading.rssi,
        link_speed_mbps=reading.link_speed_mbps,
    )
