"""Async NTP transport built on ntplib."""

import asyncio
import logging
import socket
from typing import Protocol

import ntplib

from ntp_consensus.models import NTPError, NTPResponse

logger = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000

# Leap indicator value meaning "clock unsynchronized"
LEAP_ALARM = 3


class TimeSourceClient(Protocol):
    """Anything that can ask one time source for its answer.

    Implementations return a failed ``NTPResponse`` instead of raising.
    """

    async def query(self, server: str) -> NTPResponse: ...


def validate_stats(stats: ntplib.NTPStats) -> str | None:
    """Check an NTP reply for protocol-level problems.

    Args:
        stats: Parsed reply from ntplib

    Returns:
        A reason string if the reply is unusable, otherwise None
    """
    if stats.leap == LEAP_ALARM:
        return "server clock is not synchronized (leap alarm)"
    if not 1 <= stats.stratum <= 15:
        return f"invalid stratum {stats.stratum}"
    if stats.version not in (3, 4):
        return f"unsupported NTP version {stats.version}"
    return None


class NTPClient:
    """Queries NTP servers without blocking the event loop."""

    def __init__(self, timeout: float = 2.0, version: int = 4, port: int | str = "ntp") -> None:
        self.timeout = timeout
        self.version = version
        self.port = port
        self._client = ntplib.NTPClient()

    async def query(self, server: str) -> NTPResponse:
        """Query a single NTP server once.

        Args:
            server: Hostname or IP address

        Returns:
            NTPResponse; ``success`` is False on any failure
        """
        try:
            stats = await asyncio.wait_for(
                asyncio.to_thread(
                    self._client.request,
                    server,
                    version=self.version,
                    port=self.port,
                    timeout=self.timeout,
                ),
                # Socket timeout fires first; this only bounds a stuck resolver
                timeout=self.timeout * 2,
            )
        except asyncio.TimeoutError:
            return self._failure(server, "timed out", NTPError.TIMEOUT)
        except socket.gaierror as e:
            return self._failure(server, f"DNS lookup failed: {e}", NTPError.DNS_ERROR)
        except ntplib.NTPException as e:
            # ntplib reports socket timeouts as "No response received"
            if "no response" in str(e).lower():
                return self._failure(server, str(e), NTPError.TIMEOUT)
            return self._failure(server, str(e), NTPError.PARSE_ERROR)
        except OSError as e:
            return self._failure(server, str(e), NTPError.NETWORK_ERROR)
        except ValueError as e:
            # Malformed hostnames fail IDNA encoding inside getaddrinfo
            return self._failure(server, f"invalid hostname: {e}", NTPError.DNS_ERROR)

        problem = validate_stats(stats)
        if problem:
            return self._failure(server, problem, NTPError.INVALID_RESPONSE)

        return NTPResponse(
            server=server,
            success=True,
            offset_ns=round(stats.offset * NS_PER_SECOND),
            rtt_ns=max(0, round(stats.delay * NS_PER_SECOND)),
            stratum=stats.stratum,
            version=stats.version,
            timestamp=stats.tx_time,
            reference_timestamp=stats.ref_time,
        )

    @staticmethod
    def _failure(server: str, error: str, error_type: NTPError) -> NTPResponse:
        logger.debug("NTP query to %s failed (%s): %s", server, error_type.value, error)
        return NTPResponse(server=server, success=False, error=error, error_type=error_type)
