"""Shared fixtures: a deterministic stand-in for the NTP transport."""

import asyncio

import pytest

from ntp_consensus.models import NTPError, NTPResponse

MS = 1_000_000


def ok(server: str, stratum: int, rtt_ms: float, offset_ms: float) -> NTPResponse:
    """Successful response with values given in milliseconds."""
    return NTPResponse(
        server=server,
        success=True,
        offset_ns=round(offset_ms * MS),
        rtt_ns=round(rtt_ms * MS),
        stratum=stratum,
        version=4,
        timestamp=1700000000.0,
        reference_timestamp=1699999990.0,
    )


def failed(server: str, error_type: NTPError = NTPError.TIMEOUT) -> NTPResponse:
    return NTPResponse(server=server, success=False, error="no answer", error_type=error_type)


class FakeTimeSourceClient:
    """Answers from a fixed table and records every query."""

    def __init__(self, answers: dict[str, NTPResponse] | None = None, hang: set[str] | None = None):
        self.answers = answers or {}
        self.hang = hang or set()
        self.calls: list[str] = []

    async def query(self, server: str) -> NTPResponse:
        self.calls.append(server)
        if server in self.hang:
            await asyncio.sleep(60)
        return self.answers.get(server, failed(server))


@pytest.fixture
def fake_client() -> FakeTimeSourceClient:
    return FakeTimeSourceClient()
