"""
Pydantic schemas to validate API input and shape API output.
"""

from typing import Optional
from pydantic import BaseModel, Field, AliasChoices


class ObservationIn(BaseModel):
    """
    One access point from a scan, as supplied by a client or snapshot file.
    """
    ssid: Optional[str] = ""
    frequency: int = Field(validation_alias=AliasChoices("frequency", "frequency_mhz", "freq"))
    level: int = Field(validation_alias=AliasChoices("level", "level_dbm", "rssi", "signal"))


class RecommendRequest(BaseModel):
    """
    Current operating frequency plus the latest scan snapshot.
    """
    frequency: int
    observations: list[ObservationIn] = []


class PortCheckRequest(BaseModel):
    host: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)


class SampleOut(BaseModel):
    elapsed_s: float
    throughput_mbps: float


class ProbeStatusOut(BaseModel):
    """
    Progress of the current (or last) speed test run.
    """
    active: bool
    phase: str
    status: Optional[str] = None
    average_latency_ms: Optional[float] = None
    final_throughput_mbps: Optional[float] = None
    samples: list[SampleOut] = []
    next_index: int = 0
    error: Optional[str] = None


class AccessPointOut(BaseModel):
    """
    One row of the scan listing shown next to a recommendation.
    """
    ssid: str
    frequency: int
    channel: int
    band: str
    level: int


class RecommendationOut(BaseModel):
    band: str
    channel: Optional[int]
    scores: dict[int, float]
    access_points: list[AccessPointOut] = []


class LinkSummaryOut(BaseModel):
    connected: bool
    band: str
    channel: int
    color: str
    distance_m: float
    quality: str
    quality_description: str
    rssi: int
    link_speed_mbps: int


class LatencyOut(BaseModel):
    host: str
    port: int
    available: bool
    average_ms: Optional[float]
    samples_ms: list[float]
