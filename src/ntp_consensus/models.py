"""Pydantic models for NTP consensus queries."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ConsensusMethod(str, Enum):
    """How the final offset was produced."""

    WEIGHTED_AVERAGE = "weighted_average"
    UNWEIGHTED_MEAN = "unweighted_mean"  # All weights collapsed to zero
    SINGLE_SOURCE = "single_source"  # Fallback server answered alone


class ClockStatus(str, Enum):
    """System clock status relative to trusted time."""

    OK = "ok"  # Delta < 100ms
    DRIFT = "drift"  # Delta 100-1000ms
    ERROR = "error"  # Delta > 1000ms


class NTPError(str, Enum):
    """NTP error types."""

    TIMEOUT = "timeout"
    DNS_ERROR = "dns_error"
    NETWORK_ERROR = "network_error"
    PARSE_ERROR = "parse_error"
    INVALID_RESPONSE = "invalid_response"


class NTPResponse(BaseModel):
    """Response from an NTP server."""

    model_config = ConfigDict(frozen=True)

    server: str = Field(description="NTP server hostname or IP")
    success: bool = Field(description="Whether the query was successful")
    offset_ns: int | None = Field(None, description="Clock offset (server - local) in nanoseconds")
    rtt_ns: int | None = Field(None, description="Round-trip time in nanoseconds", ge=0)
    stratum: int | None = Field(None, description="NTP stratum (quality indicator, 0-16)")
    version: int | None = Field(None, description="NTP protocol version of the reply")
    timestamp: float | None = Field(None, description="Server transmit time (Unix seconds)")
    reference_timestamp: float | None = Field(
        None, description="Time the server clock was last set (Unix seconds)"
    )
    error: str | None = Field(None, description="Error message if query failed")
    error_type: NTPError | None = Field(None, description="Type of error if query failed")

    @property
    def offset_ms(self) -> float | None:
        return None if self.offset_ns is None else self.offset_ns / 1_000_000

    @property
    def rtt_ms(self) -> float | None:
        return None if self.rtt_ns is None else self.rtt_ns / 1_000_000


class TimeSourceReading(BaseModel):
    """A successful answer from one time source, as used by the consensus."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(description="NTP server hostname")
    stratum: int = Field(description="NTP stratum", ge=0)
    rtt_ns: int = Field(description="Round-trip time in nanoseconds", ge=0)
    offset_ns: int = Field(description="Clock offset (server - local) in nanoseconds")

    @classmethod
    def from_response(cls, response: NTPResponse) -> "TimeSourceReading":
        """Build a reading from a successful transport response."""
        if not response.success:
            raise ValueError(f"cannot build a reading from failed query of {response.server}")
        return cls(
            address=response.server,
            stratum=response.stratum or 0,
            rtt_ns=response.rtt_ns or 0,
            offset_ns=response.offset_ns or 0,
        )

    @property
    def rtt_ms(self) -> float:
        return self.rtt_ns / 1_000_000


class SourceSample(BaseModel):
    """Diagnostic row for a single queried source."""

    server: str = Field(description="NTP server hostname")
    success: bool = Field(description="Whether the query succeeded")
    accepted: bool = Field(False, description="Whether the reading passed the acceptance filter")
    stratum: int | None = Field(None, description="NTP stratum (0-16)")
    rtt_ms: float | None = Field(None, description="Round-trip time in milliseconds")
    offset_ms: float | None = Field(None, description="Clock offset in milliseconds")
    error: str | None = Field(None, description="Error message if failed")


class TimeConsensus(BaseModel):
    """Result of time consensus calculation."""

    # Consensus time
    timestamp: float = Field(description="Corrected Unix timestamp (seconds)")
    iso8601_time: str = Field(description="RFC 3339 formatted corrected time")
    offset_ns: int = Field(description="Consensus offset applied to the local clock")

    # Consensus metadata
    sources_used: int = Field(description="Number of sources used in consensus")
    total_sources: int = Field(description="Total number of sources queried")
    consensus_method: ConsensusMethod = Field(description="Algorithm used for consensus")

    # Best-ranked source, for diagnostics only
    best_source: str = Field(description="Lowest (stratum, rtt) accepted source")
    best_stratum: int = Field(description="Stratum of the best source")
    best_rtt_ms: float = Field(description="Round-trip time of the best source")

    source_samples: list[SourceSample] = Field(description="Raw data from each source")
    warnings: list[str] = Field(default_factory=list, description="Warnings and issues")
    system_time: str = Field(description="Local clock time when the result was computed")


class TimeResponse(BaseModel):
    """Outcome of a full lookup, consensus or fallback."""

    iso8601_time: str = Field(description="Corrected time in RFC 3339 format")
    offset_ns: int = Field(description="Offset applied to the local clock")
    consensus_method: ConsensusMethod = Field(description="Algorithm used for the result")
    sources_used: int = Field(description="Number of sources behind the result")
    fallback_used: bool = Field(False, description="Whether the fallback server answered")
    warnings: list[str] = Field(default_factory=list, description="Warnings and issues")


class ClockComparison(BaseModel):
    """System clock compared against trusted time."""

    system_time: str = Field(description="Current system clock time (RFC 3339, UTC)")
    trusted_time: str = Field(description="NTP corrected time (RFC 3339, UTC)")
    delta_ms: float = Field(description="Difference in milliseconds (positive = system is ahead)")
    status: ClockStatus = Field(description="Clock status: ok, drift, or error")
