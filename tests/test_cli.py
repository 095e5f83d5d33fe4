"""Tests for the command-line entry point."""

from unittest.mock import AsyncMock, patch

import pytest

from ntp_consensus.cli import main
from ntp_consensus.config import DEFAULT_NTP_SERVERS
from ntp_consensus.errors import FallbackFailed, SourceUnavailable
from ntp_consensus.models import ConsensusMethod, TimeResponse
from ntp_consensus.timestamps import parse_timestamp

RESPONSE = TimeResponse(
    iso8601_time="2025-11-28T10:00:00Z",
    offset_ns=-500_000_000,
    consensus_method=ConsensusMethod.WEIGHTED_AVERAGE,
    sources_used=4,
)


def test_main_prints_only_timestamp(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that stdout carries exactly one line on success."""
    with patch("ntp_consensus.cli.get_accurate_time", new_callable=AsyncMock) as mock_get_time:
        mock_get_time.return_value = RESPONSE
        main([])

    out = capsys.readouterr().out
    assert out == "2025-11-28T10:00:00Z\n"
    parse_timestamp(out.strip())

    config = mock_get_time.call_args.args[0]
    assert config.ntp_servers == DEFAULT_NTP_SERVERS
    assert mock_get_time.call_args.kwargs["tz_name"] is None


def test_main_passes_overrides() -> None:
    with patch("ntp_consensus.cli.get_accurate_time", new_callable=AsyncMock) as mock_get_time:
        mock_get_time.return_value = RESPONSE
        main(
            [
                "-s",
                "a.example",
                "--server",
                "b.example",
                "--fallback",
                "fb.example",
                "--timeout",
                "0.5",
                "--timezone",
                "Europe/Paris",
            ]
        )

    config = mock_get_time.call_args.args[0]
    assert config.ntp_servers == ["a.example", "b.example"]
    assert config.fallback_server == "fb.example"
    assert config.ntp_timeout == 0.5
    assert mock_get_time.call_args.kwargs["tz_name"] == "Europe/Paris"


def test_main_total_failure_exits_nonzero(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that a failed fallback exits 1 with nothing on stdout."""
    error = FallbackFailed("fb.example", SourceUnavailable("fb.example", "timed out"))

    with patch("ntp_consensus.cli.get_accurate_time", new_callable=AsyncMock) as mock_get_time:
        mock_get_time.side_effect = error
        with pytest.raises(SystemExit) as exc_info:
            main([])

    assert exc_info.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "fb.example" in captured.err


def test_main_compare(capsys: pytest.CaptureFixture[str]) -> None:
    with patch("ntp_consensus.cli.get_accurate_time", new_callable=AsyncMock) as mock_get_time:
        mock_get_time.return_value = RESPONSE
        main(["--compare"])

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["2025-11-28T10:00:00Z", "drift +500.000ms"]


def test_main_unknown_timezone(capsys: pytest.CaptureFixture[str]) -> None:
    with patch("ntp_consensus.cli.get_accurate_time", new_callable=AsyncMock) as mock_get_time:
        with pytest.raises(SystemExit) as exc_info:
            main(["--timezone", "Invalid/Timezone"])

    assert exc_info.value.code == 2
    mock_get_time.assert_not_called()
    assert "unknown timezone" in capsys.readouterr().err


def test_main_invalid_timeout(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--timeout", "-1"])

    assert exc_info.value.code == 2
    assert "invalid configuration" in capsys.readouterr().err


@pytest.mark.network
def test_main_live(capsys: pytest.CaptureFixture[str]) -> None:
    """Test a full run against real servers."""
    try:
        main([])
    except SystemExit as e:
        pytest.skip(f"no NTP server reachable (exit {e.code})")

    parse_timestamp(capsys.readouterr().out.strip())


def test_main_malformed_hostname_exits_nonzero(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that an unencodable hostname ends in a clean exit 1."""
    with pytest.raises(SystemExit) as exc_info:
        main(["-s", "a..b", "--fallback", "a..b", "--timeout", "0.5"])

    assert exc_info.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "error: fallback server a..b failed" in captured.err
