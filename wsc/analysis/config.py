# wsc/analysis/config.py

from dataclasses import dataclass

@dataclass
class ProbeConfig:
    """
    Endpoints, timeouts and budgets for the network probes.

    Attributes
    ----------
    latency_host
        Host used for TCP connect-time sampling.
    latency_port
        Port on ``latency_host``.
    latency_attempts
        Number of independent connect attempts averaged.
    latency_timeout_s
        Per-attempt connect timeout (s).
    throughput_url
        HTTP(S) endpoint serving a large payload.
    throughput_ceiling_s
        Hard wall-clock budget (s) for one download.
    sample_interval_s
        Minimum spacing (s) between emitted progress samples.
    chunk_size
        Bytes requested per read.
    connect_timeout_s
        Connect timeout (s) for the download request.
    read_timeout_s
        Read timeout (s) between chunks of the download.
    port_timeout_s
        Connect timeout (s) for the port reachability check.
    external_ip_url
        Plain-text IP echo service.
    external_ip_interval_s
        Minimum spacing (s) between external IP lookups.
    """
    latency_host:           str   = "149.255.155.105"
    latency_port:           int   = 8080
    latency_attempts:       int   = 3
    latency_timeout_s:      float = 2.0
    throughput_url:         str   = (
        "https://sp1.katv1.net.prod.hosts.ooklaserver.net:8080/download"
        "?nocache=8781b173&size=690000000"
    )
    throughput_ceiling_s:   float = 15.0
    sample_interval_s:      float = 0.3
    chunk_size:             int   = 32 * 1024
    connect_timeout_s:      float = 5.0
    read_timeout_s:         float = 10.0
    port_timeout_s:         float = 4.0
    external_ip_url:        str   = "https://api.ipify.org"
    external_ip_interval_s: float = 10.0

    @classmethod
    def default(cls):
        """Preset for a full measurement (default budgets)."""
        return cls()

    @classmethod
    def quick(cls):
        """Preset for a fast sanity check (one ping, short download)."""
        return cls(
            latency_attempts=1,
            throughput_ceiling_s=5.0,
            sample_interval_s=0.5,
        )
