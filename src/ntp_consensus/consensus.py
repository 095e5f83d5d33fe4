"""Confidence-weighted consensus over several NTP servers."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from fractions import Fraction

from ntp_consensus.errors import NoReliableSource
from ntp_consensus.models import (
    ConsensusMethod,
    NTPError,
    NTPResponse,
    SourceSample,
    TimeConsensus,
    TimeSourceReading,
)
from ntp_consensus.ntp_client import TimeSourceClient
from ntp_consensus.timestamps import corrected_now, format_timestamp

logger = logging.getLogger(__name__)

NS_PER_MS = 1_000_000

WeightFunction = Callable[[TimeSourceReading], float]


async def acquire_responses(
    client: TimeSourceClient, servers: Sequence[str], timeout: float
) -> list[NTPResponse]:
    """Query every server concurrently, each under its own deadline.

    A server that fails, raises, or overruns ``timeout`` comes back as a
    failed response; it never aborts the other queries.

    Returns:
        One response per server, in roster order
    """

    async def _query(server: str) -> NTPResponse:
        try:
            return await asyncio.wait_for(client.query(server), timeout=timeout)
        except asyncio.TimeoutError:
            return NTPResponse(
                server=server,
                success=False,
                error=f"no answer within {timeout:.1f}s",
                error_type=NTPError.TIMEOUT,
            )
        except Exception as e:
            logger.debug("Time source client raised for %s", server, exc_info=True)
            return NTPResponse(
                server=server,
                success=False,
                error=str(e) or type(e).__name__,
                error_type=NTPError.NETWORK_ERROR,
            )

    responses = await asyncio.gather(*(_query(server) for server in servers))

    for response in responses:
        if not response.success:
            logger.warning("%s unavailable: %s", response.server, response.error)

    return list(responses)


def is_acceptable(
    reading: TimeSourceReading, max_stratum: int = 4, max_rtt_ms: float = 2000.0
) -> bool:
    """Acceptance envelope: ``1 <= stratum <= max_stratum`` and ``rtt < max_rtt_ms``."""
    return 1 <= reading.stratum <= max_stratum and reading.rtt_ns < max_rtt_ms * NS_PER_MS


def rank_readings(readings: Sequence[TimeSourceReading]) -> list[TimeSourceReading]:
    """Sort readings best first: lowest stratum, then lowest round-trip time."""
    return sorted(readings, key=lambda r: (r.stratum, r.rtt_ns))


def compute_weight(reading: TimeSourceReading) -> float:
    """Trust weight of a reading: ``(1 / stratum) * (1 / rtt_millis)``.

    The round-trip time is taken in whole milliseconds and floored at 1 so a
    sub-millisecond answer does not get infinite weight.
    """
    stratum_weight = 1.0 / reading.stratum
    rtt_millis = max(1, reading.rtt_ns // NS_PER_MS)
    return stratum_weight * (1.0 / rtt_millis)


def weighted_offset(
    readings: Sequence[TimeSourceReading], weight_fn: WeightFunction = compute_weight
) -> tuple[int, ConsensusMethod]:
    """Blend reading offsets into one offset in nanoseconds.

    Falls back to the plain arithmetic mean if the weights sum to zero.

    Raises:
        ValueError: If ``readings`` is empty
    """
    if not readings:
        raise ValueError("cannot compute an offset from zero readings")

    # Exact rational arithmetic: offsets can exceed float integer precision
    total_weight = Fraction(0)
    weighted_offset_ns = Fraction(0)
    for reading in readings:
        weight = Fraction(weight_fn(reading))
        total_weight += weight
        weighted_offset_ns += reading.offset_ns * weight

    if total_weight > 0:
        return round(weighted_offset_ns / total_weight), ConsensusMethod.WEIGHTED_AVERAGE

    # Integer mean, truncated toward zero
    total_offset = sum(r.offset_ns for r in readings)
    mean = abs(total_offset) // len(readings)
    return (mean if total_offset >= 0 else -mean), ConsensusMethod.UNWEIGHTED_MEAN


class TimeConsensusEngine:
    """Filters, ranks and weights NTP responses into a single corrected time."""

    def __init__(
        self,
        max_stratum: int = 4,
        max_rtt_ms: float = 2000.0,
        weight_fn: WeightFunction = compute_weight,
    ) -> None:
        self.max_stratum = max_stratum
        self.max_rtt_ms = max_rtt_ms
        self.weight_fn = weight_fn

    def compute_consensus(
        self,
        responses: Sequence[NTPResponse],
        now: datetime | None = None,
        tz_name: str | None = None,
    ) -> TimeConsensus:
        """Compute the consensus time from raw responses.

        Args:
            responses: One response per queried server, failures included
            now: Local clock reading to correct; defaults to the current time
            tz_name: Optional IANA timezone for the formatted result

        Returns:
            TimeConsensus with the corrected time and diagnostics

        Raises:
            NoReliableSource: If no response passes the acceptance filter
        """
        samples: list[SourceSample] = []
        accepted: list[TimeSourceReading] = []
        failed = 0
        rejected = 0

        for response in responses:
            if not response.success:
                failed += 1
                samples.append(
                    SourceSample(server=response.server, success=False, error=response.error)
                )
                continue

            reading = TimeSourceReading.from_response(response)
            ok = is_acceptable(reading, self.max_stratum, self.max_rtt_ms)
            if ok:
                accepted.append(reading)
            else:
                rejected += 1
                logger.debug(
                    "Rejected %s (stratum %d, rtt %.1fms)",
                    reading.address,
                    reading.stratum,
                    reading.rtt_ms,
                )

            samples.append(
                SourceSample(
                    server=response.server,
                    success=True,
                    accepted=ok,
                    stratum=response.stratum,
                    rtt_ms=response.rtt_ms,
                    offset_ms=response.offset_ms,
                )
            )

        if not accepted:
            raise NoReliableSource(total=len(responses), failed=failed, rejected=rejected)

        ranked = rank_readings(accepted)
        offset_ns, method = weighted_offset(ranked, self.weight_fn)

        warnings = []
        if failed:
            warnings.append(f"{failed} of {len(responses)} servers did not answer")
        if rejected:
            warnings.append(f"{rejected} servers rejected by stratum/rtt thresholds")
        if method == ConsensusMethod.UNWEIGHTED_MEAN:
            warnings.append("All weights were zero; used the unweighted mean offset")

        system_now = now if now is not None else datetime.now(UTC)
        corrected = corrected_now(offset_ns, system_now)

        best = ranked[0]
        logger.info(
            "Used %d servers, best: %s (stratum %d, rtt %.1fms)",
            len(ranked),
            best.address,
            best.stratum,
            best.rtt_ms,
        )

        return TimeConsensus(
            timestamp=corrected.timestamp(),
            iso8601_time=format_timestamp(corrected, tz_name),
            offset_ns=offset_ns,
            sources_used=len(ranked),
            total_sources=len(responses),
            consensus_method=method,
            best_source=best.address,
            best_stratum=best.stratum,
            best_rtt_ms=best.rtt_ms,
            source_samples=samples,
            warnings=warnings,
            system_time=format_timestamp(system_now),
        )
