"""Configuration for NTP consensus queries."""

from pydantic import BaseModel, Field, field_validator

DEFAULT_NTP_SERVERS = [
    "time.nist.gov",  # stratum 1 - US National Institute of Standards
    "time-a-g.nist.gov",  # stratum 1 - NIST server A
    "time-b-g.nist.gov",  # stratum 1 - NIST server B
    "0.beevik-ntp.pool.ntp.org",  # stratum 2 - Pool server
    "1.beevik-ntp.pool.ntp.org",  # stratum 2 - Pool server
    "2.beevik-ntp.pool.ntp.org",  # stratum 2 - Pool server
]

DEFAULT_FALLBACK_SERVER = "0.beevik-ntp.pool.ntp.org"


class TimeConfig(BaseModel):
    """Server roster and acceptance thresholds."""

    ntp_servers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_NTP_SERVERS),
        description="Servers queried for the consensus, in roster order",
    )
    fallback_server: str = Field(
        DEFAULT_FALLBACK_SERVER, description="Server queried alone when the consensus fails"
    )
    ntp_timeout: float = Field(2.0, description="Per-query timeout in seconds", gt=0)
    max_stratum: int = Field(4, description="Highest accepted stratum (inclusive)", ge=1, le=15)
    max_rtt_ms: float = Field(2000.0, description="Round-trip time limit (exclusive)", gt=0)

    @field_validator("ntp_servers")
    @classmethod
    def _roster_not_empty(cls, value: list[str]) -> list[str]:
        servers = [s.strip() for s in value if s.strip()]
        if not servers:
            raise ValueError("at least one NTP server is required")
        return servers


def get_config(**overrides: object) -> TimeConfig:
    """Return a validated configuration.

    Args:
        **overrides: Field values replacing the compiled-in defaults.
            ``None`` values are ignored so CLI options can be passed straight through.

    Returns:
        TimeConfig instance
    """
    return TimeConfig(**{k: v for k, v in overrides.items() if v is not None})
