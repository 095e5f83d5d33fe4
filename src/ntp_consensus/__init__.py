"""Accurate wall-clock time from a weighted consensus of NTP servers."""

__version__ = "1.0.0"

from ntp_consensus.consensus import TimeConsensusEngine
from ntp_consensus.errors import (
    FallbackFailed,
    NoReliableSource,
    SourceUnavailable,
    TimeSyncError,
)
from ntp_consensus.oracle import (
    compare_system_clock,
    get_accurate_time,
    get_consensus_time,
    get_single_source_time,
)

__all__ = [
    "get_accurate_time",
    "get_consensus_time",
    "get_single_source_time",
    "compare_system_clock",
    "TimeConsensusEngine",
    "TimeSyncError",
    "SourceUnavailable",
    "NoReliableSource",
    "FallbackFailed",
    "__version__",
]
