"""Render big-win events as chat lines."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from hov_bigwins.models.config import BigWinsConfig
from hov_bigwins.models.events import WinEvent

MAX_FRACTION_DIGITS = 6
_QUANTUM = Decimal(1).scaleb(-MAX_FRACTION_DIGITS)


def shorten_address(addr: str, head: int = 6, tail: int = 4) -> str:
    if len(addr) > head + tail:
        return f"{addr[:head]}…{addr[-tail:]}"
    return addr


def format_amount(raw: int, divisor: float | int = 1) -> str:
    """Scale ``raw`` by ``divisor`` with en-US grouping.

    Up to six fraction digits; at least two unless the divisor is 1.
    """
    amount = Decimal(raw) / Decimal(str(divisor))
    min_digits = 0 if divisor == 1 else 2
    rounded = amount.quantize(_QUANTUM, rounding=ROUND_HALF_UP)
    whole, _, frac = f"{rounded:,.{MAX_FRACTION_DIGITS}f}".partition(".")
    frac = frac.rstrip("0").ljust(min_digits, "0")
    if whole == "-0" and not frac:
        whole = "0"
    return f"{whole}.{frac}" if frac else whole


def format_line(event: WinEvent, cfg: BigWinsConfig) -> str:
    who = shorten_address(event.who) if event.who else "A player"
    amount = format_amount(event.metric(cfg.metric.value), cfg.display_divisor)
    link = f" {event.replay_url}" if event.replay_url else ""
    return f"{who} won {amount} {cfg.display_unit}. Congrats!!{link}"
