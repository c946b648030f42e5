"""Events emitted by the escrow program.

Events are fire-and-forget: they are appended to ``LedgerState.events`` on the
success path only and the program never reads them back.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .types import LedgerState


@dataclass(frozen=True)
class MessageSubmitted:
    sender: bytes
    msg_hash: bytes
    fee_paid: int
    new_fee: int
    timestamp: int


@dataclass(frozen=True)
class TimerStarted:
    deadline: int


@dataclass(frozen=True)
class TimerExtended:
    new_deadline: int


@dataclass(frozen=True)
class MarketingFeeSent:
    wallet: bytes
    amount: int


@dataclass(frozen=True)
class MarketingParamsUpdated:
    wallet: bytes
    bps: int


@dataclass(frozen=True)
class PrizeClaimed:
    winner: bytes
    amount: int


EVENT_TYPES = (
    MessageSubmitted,
    TimerStarted,
    TimerExtended,
    MarketingFeeSent,
    MarketingParamsUpdated,
    PrizeClaimed,
)


def emit(state: LedgerState, event: object) -> None:
    state.events.append(event)


def event_to_json(event: object) -> dict[str, Any]:
    out: dict[str, Any] = {"name": type(event).__name__}
    for key, value in asdict(event).items():
        out[key] = value.hex() if isinstance(value, bytes) else value
    return out
