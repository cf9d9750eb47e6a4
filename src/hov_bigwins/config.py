"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Mapping

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from hov_bigwins.errors import ConfigError
from hov_bigwins.models.config import BigWinsConfig, MetricKey

_TRUE = {"1", "true", "yes", "on"}


def _num(value: Any, name: str, cast: Callable[[Any], Any] = int) -> Any:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


def _threshold(value: Any, name: str) -> int:
    # Accept "25000000" as well as "2.5e7"
    number = _num(value, name, float)
    if not number.is_integer():
        raise ConfigError(f"{name} must be a whole number of raw units, got {value!r}")
    return int(number)


def _metric(value: Any) -> MetricKey:
    try:
        return MetricKey(str(value))
    except ValueError as exc:
        choices = ", ".join(m.value for m in MetricKey)
        raise ConfigError(f"BIGWIN_METRIC must be one of {choices}, got {value!r}") from exc


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE


def load_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> BigWinsConfig:
    """Load notifier configuration from a TOML file and the environment.

    Priority (highest wins):
        1. Environment variables (DISCORD_WEBHOOK_URL, HOV_EVENTS_URL, ...)
        2. TOML config file
        3. Defaults from BigWinsConfig

    The result is not validated; call BigWinsConfig.validate() before a cycle.
    """
    env = os.environ if environ is None else environ

    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            try:
                with open(p, "rb") as f:
                    raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {p}: {exc}") from exc

    cfg = BigWinsConfig()

    # ── Upstream section ───────────────────────────────────
    upstream = raw.get("upstream", {})
    if v := upstream.get("api_url"):
        cfg.api_url = str(v)
    if (v := upstream.get("hard_limit")) is not None:
        cfg.hard_limit = _num(v, "upstream.hard_limit")
    if (v := upstream.get("timeout")) is not None:
        cfg.fetch_timeout = _num(v, "upstream.timeout", float)

    # ── Webhook section ────────────────────────────────────
    webhook = raw.get("webhook", {})
    if v := webhook.get("url"):
        cfg.webhook_url = str(v)
    if (v := webhook.get("batch_size")) is not None:
        cfg.batch_size = _num(v, "webhook.batch_size")
    if (v := webhook.get("timeout")) is not None:
        cfg.webhook_timeout = _num(v, "webhook.timeout", float)
    if (v := webhook.get("pace_delay")) is not None:
        cfg.pace_delay = _num(v, "webhook.pace_delay", float)

    # ── Big-win section ────────────────────────────────────
    bigwin = raw.get("bigwin", {})
    if v := bigwin.get("metric"):
        cfg.metric = _metric(v)
    if (v := bigwin.get("threshold_raw")) is not None:
        cfg.threshold_raw = _threshold(v, "bigwin.threshold_raw")
    if (v := bigwin.get("display_divisor")) is not None:
        cfg.display_divisor = _num(v, "bigwin.display_divisor", float)
    if v := bigwin.get("display_unit"):
        cfg.display_unit = str(v)
    if (v := bigwin.get("max_posts_per_run")) is not None:
        cfg.max_posts_per_run = _num(v, "bigwin.max_posts_per_run")
    if (v := bigwin.get("dry_run")) is not None:
        cfg.dry_run = _flag(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)
    if (v := storage.get("cursor_cas")) is not None:
        cfg.cursor_cas = _flag(v)

    # ── Server section ─────────────────────────────────────
    server = raw.get("server", {})
    if v := server.get("host"):
        cfg.host = str(v)
    if (v := server.get("port")) is not None:
        cfg.port = _num(v, "server.port")

    daemon = raw.get("daemon", {})
    if v := daemon.get("log_level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if v := env.get("DISCORD_WEBHOOK_URL"):
        cfg.webhook_url = v
    if v := env.get("HOV_EVENTS_URL"):
        cfg.api_url = v
    if v := env.get("BIGWIN_METRIC"):
        cfg.metric = _metric(v)
    if v := env.get("BIGWIN_THRESHOLD_RAW") or env.get("BIGWIN_THRESHOLD"):
        cfg.threshold_raw = _threshold(v, "BIGWIN_THRESHOLD_RAW")
    if v := env.get("DISPLAY_DIVISOR"):
        cfg.display_divisor = _num(v, "DISPLAY_DIVISOR", float)
    if v := env.get("CURRENCY_UNIT"):
        cfg.display_unit = v
    if v := env.get("MAX_POSTS_PER_RUN"):
        cfg.max_posts_per_run = _num(v, "MAX_POSTS_PER_RUN")
    if v := env.get("BATCH_LINES_PER_MESSAGE"):
        cfg.batch_size = _num(v, "BATCH_LINES_PER_MESSAGE")
    if (v := env.get("DRY_RUN")) is not None:
        cfg.dry_run = v == "true"
    if v := env.get("BIGWINS_DB_PATH"):
        cfg.db_path = v
    if (v := env.get("BIGWINS_CURSOR_CAS")) is not None:
        cfg.cursor_cas = _flag(v)
    if v := env.get("BIGWINS_LOG_LEVEL"):
        cfg.log_level = v

    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
