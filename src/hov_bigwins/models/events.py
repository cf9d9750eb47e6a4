"""Event and cursor models for the HoV events feed."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from hov_bigwins.errors import FetchError


@dataclass(frozen=True, order=True)
class Cursor:
    """Position of the last fully processed event.

    Field order gives the lexicographic (round, intra) comparison.
    """

    round: int = 0
    intra: int = 0

    def to_json_dict(self) -> dict[str, int]:
        return {"round": self.round, "intra": self.intra}


def _as_int(row: Mapping[str, Any], key: str, default: int | None = None) -> int:
    value = row.get(key, default)
    if value is None or isinstance(value, bool):
        raise FetchError(f"event field {key!r} missing or not an integer: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise FetchError(f"event field {key!r} is not a whole number: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise FetchError(f"event field {key!r} is not an integer: {value!r}") from exc


def _as_optional_int(row: Mapping[str, Any], key: str) -> int | None:
    if row.get(key) is None:
        return None
    return _as_int(row, key)


@dataclass(frozen=True)
class WinEvent:
    """A BetClaimed event from the HoV events API."""

    round: int
    intra: int
    who: str
    payout: int  # raw units
    net_result: int  # payout - total_bet_amount, raw units
    is_win: bool = True
    replay_url: str | None = None
    created_at: str = ""  # ISO 8601
    updated_at: str = ""
    txid: str = ""
    app_id: int | None = None
    event_type: str = ""
    amount: int = 0  # bet amount, raw units
    total_bet_amount: int = 0
    raw: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    @property
    def position(self) -> Cursor:
        return Cursor(self.round, self.intra)

    def metric(self, key: str) -> int:
        """Raw value of the metric used for threshold and display."""
        if key == "payout":
            return self.payout
        if key == "net_result":
            return self.net_result
        raise KeyError(key)

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> WinEvent:
        """Build from one element of the API's ``data`` array.

        Raises FetchError if identity fields are missing or malformed.
        """
        if not isinstance(row, Mapping):
            raise FetchError(f"event row is not an object: {row!r}")
        return cls(
            round=_as_int(row, "round"),
            intra=_as_int(row, "intra"),
            who=str(row.get("who") or ""),
            payout=_as_int(row, "payout", 0),
            net_result=_as_int(row, "net_result", 0),
            is_win=bool(row.get("is_win", True)),
            replay_url=row.get("replayUrl") or None,
            created_at=str(row.get("created_at") or ""),
            updated_at=str(row.get("updated_at") or ""),
            txid=str(row.get("txid") or ""),
            app_id=_as_optional_int(row, "app_id"),
            event_type=str(row.get("event_type") or ""),
            amount=_as_int(row, "amount", 0),
            total_bet_amount=_as_int(row, "total_bet_amount", 0),
            raw=row,
        )

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "round": self.round,
            "intra": self.intra,
            "txid": self.txid,
            "app_id": self.app_id,
            "event_type": self.event_type,
            "who": self.who,
            "amount": self.amount,
            "payout": self.payout,
            "total_bet_amount": self.total_bet_amount,
            "net_result": self.net_result,
            "is_win": self.is_win,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "replayUrl": self.replay_url,
        }


@dataclass
class FetchResult:
    """Everything collected by one paginated fetch."""

    events: list[WinEvent] = field(default_factory=list)
    max_round: int = 0
    max_intra: int = 0
    requested: list[str] = field(default_factory=list)

    @property
    def max_position(self) -> Cursor:
        return Cursor(self.max_round, self.max_intra)
