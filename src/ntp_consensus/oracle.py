"""Time lookup entry points: consensus, single source, and fallback."""

import asyncio
import logging
from datetime import UTC, datetime

from ntp_consensus.config import TimeConfig
from ntp_consensus.consensus import TimeConsensusEngine, acquire_responses
from ntp_consensus.errors import FallbackFailed, SourceUnavailable, TimeSyncError
from ntp_consensus.models import (
    ClockComparison,
    ClockStatus,
    ConsensusMethod,
    NTPError,
    NTPResponse,
    TimeConsensus,
    TimeResponse,
)
from ntp_consensus.ntp_client import NTPClient, TimeSourceClient
from ntp_consensus.timestamps import corrected_now, format_timestamp

logger = logging.getLogger(__name__)


async def query_source(
    server: str, client: TimeSourceClient, timeout: float | None = None
) -> NTPResponse:
    """Query one server exactly once.

    Args:
        server: Hostname or IP address
        client: Transport to use
        timeout: Optional deadline in seconds on top of the transport's own

    Raises:
        SourceUnavailable: If the query failed or overran ``timeout``
    """
    try:
        response = await asyncio.wait_for(client.query(server), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise SourceUnavailable(server, f"no answer within {timeout}s", NTPError.TIMEOUT) from e
    except Exception as e:
        logger.debug("Time source client raised for %s", server, exc_info=True)
        raise SourceUnavailable(
            server, str(e) or type(e).__name__, NTPError.NETWORK_ERROR
        ) from e

    if not response.success or response.offset_ns is None:
        raise SourceUnavailable(server, response.error or "no answer", response.error_type)
    return response


async def get_single_source_time(
    server: str, client: TimeSourceClient | None = None, tz_name: str | None = None
) -> str:
    """Get the corrected time from a single NTP server.

    Args:
        server: Hostname or IP address
        client: Transport to use; a default NTPClient otherwise
        tz_name: Optional IANA timezone for the result

    Returns:
        RFC 3339 timestamp

    Raises:
        SourceUnavailable: If the server could not be queried
    """
    response = await query_source(server, client or NTPClient())
    return format_timestamp(corrected_now(response.offset_ns or 0), tz_name)


async def get_consensus_time(
    config: TimeConfig,
    client: TimeSourceClient | None = None,
    tz_name: str | None = None,
) -> TimeConsensus:
    """Query every configured server and compute the weighted consensus.

    Raises:
        NoReliableSource: If no server produced an acceptable reading
    """
    client = client or NTPClient(timeout=config.ntp_timeout)
    engine = TimeConsensusEngine(max_stratum=config.max_stratum, max_rtt_ms=config.max_rtt_ms)

    responses = await acquire_responses(client, config.ntp_servers, timeout=config.ntp_timeout)
    return engine.compute_consensus(responses, tz_name=tz_name)


async def get_accurate_time(
    config: TimeConfig,
    client: TimeSourceClient | None = None,
    tz_name: str | None = None,
) -> TimeResponse:
    """Get the corrected time, degrading to the fallback server if needed.

    Returns:
        TimeResponse from the consensus or, failing that, the fallback server

    Raises:
        FallbackFailed: If the consensus and the fallback server both failed
    """
    client = client or NTPClient(timeout=config.ntp_timeout)

    try:
        consensus = await get_consensus_time(config, client, tz_name)
    except TimeSyncError as e:
        logger.warning("Accurate NTP failed, using fallback: %s", e)
    else:
        return TimeResponse(
            iso8601_time=consensus.iso8601_time,
            offset_ns=consensus.offset_ns,
            consensus_method=consensus.consensus_method,
            sources_used=consensus.sources_used,
            warnings=consensus.warnings,
        )

    try:
        response = await query_source(config.fallback_server, client, config.ntp_timeout)
    except SourceUnavailable as e:
        raise FallbackFailed(config.fallback_server, e) from e

    offset_ns = response.offset_ns or 0
    return TimeResponse(
        iso8601_time=format_timestamp(corrected_now(offset_ns), tz_name),
        offset_ns=offset_ns,
        consensus_method=ConsensusMethod.SINGLE_SOURCE,
        sources_used=1,
        fallback_used=True,
        warnings=[f"Consensus failed; time taken from {config.fallback_server} alone"],
    )


def compare_system_clock(offset_ns: int, now: datetime | None = None) -> ClockComparison:
    """Compare the system clock against trusted time.

    Args:
        offset_ns: Trusted offset (server - local) in nanoseconds
        now: System clock reading; defaults to the current time

    Returns:
        ClockComparison with the delta and its status
    """
    system_now = now if now is not None else datetime.now(UTC)
    trusted = corrected_now(offset_ns, system_now)
    delta_ms = -offset_ns / 1_000_000

    abs_delta = abs(delta_ms)
    if abs_delta < 100:
        status = ClockStatus.OK
    elif abs_delta < 1000:
        status = ClockStatus.DRIFT
    else:
        status = ClockStatus.ERROR

    return ClockComparison(
        system_time=format_timestamp(system_now),
        trusted_time=format_timestamp(trusted),
        delta_ms=delta_ms,
        status=status,
    )
