"""Configuration models for the big-win notifier."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hov_bigwins.errors import ConfigError


class MetricKey(str, Enum):
    """Event field compared against the threshold and shown in messages."""

    NET_RESULT = "net_result"
    PAYOUT = "payout"


@dataclass
class BigWinsConfig:
    """Complete configuration for one poll cycle."""

    # Upstream
    api_url: str = ""
    hard_limit: int = 2000  # max events fetched per cycle
    fetch_timeout: float = 6.0  # seconds per page request

    # Webhook
    webhook_url: str = ""
    batch_size: int = 5  # lines per webhook message
    webhook_timeout: float = 10.0
    pace_delay: float = 0.25  # seconds between chunks

    # Big-win policy
    metric: MetricKey = MetricKey.NET_RESULT
    threshold_raw: int = 25_000_000
    display_divisor: float = 1
    display_unit: str = "VOI"
    max_posts_per_run: int = 20
    dry_run: bool = False

    # Storage
    db_path: str = "~/.hov_bigwins/state.db"
    cursor_cas: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    log_level: str = "info"

    def validate(self) -> BigWinsConfig:
        """Raise ConfigError if the config cannot drive a cycle."""
        if not self.webhook_url:
            raise ConfigError("Missing DISCORD_WEBHOOK_URL")
        if not self.api_url:
            raise ConfigError("Missing HOV_EVENTS_URL")
        if not isinstance(self.metric, MetricKey):
            raise ConfigError(f"Unknown metric: {self.metric!r}")
        if self.display_divisor <= 0:
            raise ConfigError("DISPLAY_DIVISOR must be > 0")
        if self.threshold_raw < 0:
            raise ConfigError("BIGWIN_THRESHOLD_RAW must be >= 0")
        if self.max_posts_per_run < 1:
            raise ConfigError("MAX_POSTS_PER_RUN must be >= 1")
        if self.batch_size < 1:
            raise ConfigError("BATCH_LINES_PER_MESSAGE must be >= 1")
        if self.hard_limit < 1:
            raise ConfigError("hard_limit must be >= 1")
        return self

    def summary(self) -> dict:
        """Subset echoed into the cycle trace."""
        return {
            "apiUrl": self.api_url,
            "thresholdRaw": self.threshold_raw,
            "metricKey": self.metric.value,
        }
