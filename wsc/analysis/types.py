# wsc/analysis/types.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Band(str, Enum):
    """Wi-Fi band a frequency belongs to, for display."""
    GHZ_2_4 = "2.4 GHz"
    GHZ_5   = "5 GHz"
    GHZ_6   = "6 GHz"
    UNKNOWN = "unknown"


class ScoringBand(str, Enum):
    """Which candidate set the channel recommender scores."""
    GHZ_2_4     = "2.4"
    GHZ_5_UNII1 = "5-unii1"
    UNSCORED    = "unscored"


class ProbeStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ERROR     = "error"


class SignalQuality(str, Enum):
    """
    Human-readable signal tiers, strongest first.
    """
    EXCELLENT = "excellent"
    VERY_GOOD = "very good"
    GOOD      = "good"
    FAIR      = "fair"
    POOR      = "poor"
    VERY_POOR = "very poor"
    NO_SIGNAL = "no signal"


@dataclass(frozen=True)
class SignalReading:
    """
    One polling tick of the current link.

    Parameters
    ----------
    rssi : int
        Received signal strength in dBm.
    frequency_mhz : int
        Centre frequency of the associated channel.
    link_speed_mbps : int
        Negotiated PHY rate reported by the platform.
    connected : bool
        Association flag reported by the platform.
    """
    rssi: int
    frequency_mhz: int
    link_speed_mbps: int = 0
    connected: bool = True


@dataclass(frozen=True)
class AccessPointObservation:
    """
    Single access point seen in a scan.

    Parameters
    ----------
    ssid : str
        Network name; empty for hidden networks.
    frequency_mhz : int
        Centre frequency in MHz.
    level_dbm : int
        Received signal level in dBm.
    """
    ssid: str
    frequency_mhz: int
    level_dbm: int

    @property
    def display_ssid(self) -> str:
        return self.ssid or "<hidden>"


@dataclass(frozen=True)
class ProbeSample:
    """
    Throughput snapshot taken during a download run.

    Parameters
    ----------
    elapsed_s : float
        Seconds since the download started.
    throughput_mbps : float
        Average rate since start, in decimal megabits per second.
    """
    elapsed_s: float
    throughput_mbps: float


@dataclass
class LatencyResult:
    status: ProbeStatus
    average_ms: Optional[float]
    samples_ms: List[float] = field(default_factory=list)
    attempts: int = 0

    @property
    def available(self) -> bool:
        return self.average_ms is not None


@dataclass
class ThroughputResult:
    status: ProbeStatus
    final_mbps: float = 0.0
    samples: List[ProbeSample] = field(default_factory=list)
    total_bytes: int = 0
    elapsed_s: float = 0.0
    error: Optional[str] = None


@dataclass
class ProbeResult:
    """
    Outcome of one latency + throughput run.

    ``average_latency_ms`` is None when no connection attempt succeeded.
    """
    status: ProbeStatus
    average_latency_ms: Optional[float]
    final_throughput_mbps: float
    samples: List[ProbeSample] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class Recommendation:
    """
    Best channel for a band plus the scores it was chosen from.

    ``channel`` is None for bands that are not scored.
    """
    band: ScoringBand
    channel: Optional[int]
    scores: Dict[int, float] = field(default_factory=dict)


@dataclass
class LinkSummary:
    connected: bool
    band: Band
    channel: int
    color: str
    distance_m: float
    quality: SignalQuality
    rssi: int
    link_speed_mbps: int
